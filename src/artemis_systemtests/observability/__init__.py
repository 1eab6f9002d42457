"""
Observability package - logging and failure diagnostics for the suite.

Contains:
- Structured logging with the current test attached to every record
- Collection of cluster state when a test fails
"""
