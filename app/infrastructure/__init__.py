"""
Infrastructure layer for the marketplace wallet backend.

Implements the domain ports against external systems:
- Storage (SQLAlchemy, or the in-memory backend for development and tests)
- Authentication (bcrypt, JWT, local sessions and Supabase Auth)
- Domain event handlers and rate limiting
- The FastAPI web layer
"""
