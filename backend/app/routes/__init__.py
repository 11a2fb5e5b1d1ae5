# Routes package init
"""
Foundation API Backend — API Routes Package
=============================================

Route Inventory:
    - health.py:      GET  /                   greeting
                      GET  /health             database health check
    - metrics.py:     GET  /metrics            Prometheus scrape endpoint
    - products.py:    /products                example CRUD resource
    - admin_auth.py:  /admin/{user,account,session,verification}

Routes stay thin: extract request data, call a service or controller,
return the response model. Errors propagate to the global exception filter.
"""
