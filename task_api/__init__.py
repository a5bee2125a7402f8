"""Task CRUD API: a small FastAPI service over a SQLite task table."""

__version__ = "1.0.0"
