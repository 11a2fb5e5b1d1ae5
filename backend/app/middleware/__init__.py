# Middleware package init
"""
Foundation API Backend — Middleware Package
=============================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [CORS] → [Request ID] → [Access Log] → [Admin Audit]
            → [Body Capture] → [Unhandled Exception] → Route Handler

    - CORS answers preflight requests before anything else runs
    - Request ID is set before any log line is written
    - Admin audit only acts on /admin/ paths
    - Body capture stashes JSON bodies for error reporting
    - Unhandled exceptions become error responses inside the chain, so
      outer middleware still add their headers and log lines
"""
