"""
Load Layer - Data Persistence

This layer handles all data persistence operations.
- Local CSV export of the final and mortality tables
- No business logic, just I/O operations
"""
