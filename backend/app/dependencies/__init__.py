# Dependencies package init
"""
Foundation API Backend — Shared FastAPI Dependencies
======================================================

    - auth.py: optional_session / require_session
"""
