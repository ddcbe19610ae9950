"""API layer - routing, dependencies and the response envelope."""


def get_api_router():  # type: ignore[no-untyped-def]
    """Import router lazily to avoid circular imports."""
    from roster.api.router import api_router

    return api_router


__all__ = ["get_api_router"]
