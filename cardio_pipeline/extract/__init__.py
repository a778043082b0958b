"""
Extract Layer - Pure File I/O

This layer handles reading the raw input files with no business logic.
- No imports from transform or load layers
- Pure functions that return raw tables
- Raises on missing files and unparseable content
"""
