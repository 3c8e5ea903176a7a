"""HTTP API layer: routes, response schemas and middleware."""

from where2play.api.routes import legacy_router, router

__all__ = ["legacy_router", "router"]
