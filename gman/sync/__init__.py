"""Comparison engine — normalization, patch audit and definition-driven traversal.

This package provides:
- Normalization: canonical text forms for procedural and markup sources
- Patch audit: patches present in the CodeSource but not recorded as run
- Drift detection: files that are new or changed relative to the database
- Orchestration: one audit run over all of the above
"""
