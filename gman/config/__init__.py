"""Configuration — run settings and folder definitions."""
