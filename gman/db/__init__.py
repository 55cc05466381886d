"""Database access for audit lookups."""
