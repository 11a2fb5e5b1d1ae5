# Swagger / OpenAPI package init
"""OpenAPI document merging and installation on the FastAPI app."""
