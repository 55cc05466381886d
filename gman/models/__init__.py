"""Audit data models — definitions, patch keys and comparison results."""
