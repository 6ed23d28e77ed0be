"""SQL persistence (SQLAlchemy async, PostgreSQL)."""
