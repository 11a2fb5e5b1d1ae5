"""
Foundation API Backend — Application Package Initializer
=========================================================

What: Marks the `app` directory as a Python package.
Who:  Used implicitly by Python's import system and explicitly by Alembic, pytest, and uvicorn.

Architecture Note:
    The backend keeps the usual layered split, plus two cross-cutting packages:

    ┌─────────────────────────────────────┐
    │   Routes + Admin controllers (API)  │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← products, session lookup
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    app.admin    generic CRUD controllers, entity registry and discovery
    app.filters  global exception filter and the redaction helper it uses
"""

__version__ = "1.0.0"
