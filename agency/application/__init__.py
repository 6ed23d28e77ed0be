"""Application layer: interfaces, DTOs, engine services, use cases.

Depends only on domain and protocol definitions (DIP).
Infrastructure implements the interfaces (Postgres and in-memory repositories).
"""
