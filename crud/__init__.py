"""
User CRUD web application.

Server-rendered htmx fragments over a pluggable user repository
(in-memory, SQLite or PostgreSQL).
"""

__version__ = "0.1.0"
