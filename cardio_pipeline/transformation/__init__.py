"""
Transformation Layer - Pure, Deterministic Functions

This layer contains all table transformations.
- Pure functions (input -> output), every step returns a new table
- No I/O operations
- Unit testable
- Deterministic results
"""
