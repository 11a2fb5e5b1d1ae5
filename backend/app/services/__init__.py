# Services package init
"""
Foundation API Backend — Services Layer
=========================================

What:  Business logic layer sitting between routes (HTTP) and persistence.
How:   Services take validated request models, apply business rules and
       return domain objects; errors are raised as app.exceptions types.

Service Inventory:
    - SessionService: resolves the signed-in user from the auth tables
    - ProductService: in-memory catalogue behind the /products example routes

Admin CRUD has no service here: BaseAdminController talks to a Repository
directly (see app.admin).
"""
