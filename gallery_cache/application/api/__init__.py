"""HTTP API: dependencies, middleware, models and routers."""
