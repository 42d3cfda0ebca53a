"""
Cat and user bookkeeping backend.

This package provides validated DTOs, service classes and a document
store abstraction (in-memory for tests, SQLAlchemy-backed otherwise) for
managing cats and the users who own them.
"""
