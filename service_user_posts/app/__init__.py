"""
User Posts Gateway application package.

The gateway fronts a users/posts REST API and answers one route,
``GET /v1/user-posts/{id}``, with the user's profile and posts combined:
- Upstream access: via the user API client (direct or cache-aside)
- Caching: in-memory TTL cache with a periodic sweeper
- Error translation: upstream failures become structured JSON errors

Structure:
- app.main: FastAPI app, routes, and lifecycle wiring.
- app.adapters: HTTP client for the upstream user API.
- app.caching: Cache primitives.
- app.domain: Wire models, response assembly and the request handler.
"""
