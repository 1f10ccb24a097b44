"""Application layer: FastAPI app, middleware, routes and services."""
