"""Dependency injection for the suid service.

The allocator context is process-wide and created once; routes receive it
through ``get_context`` so tests can swap in their own instance with
``app.dependency_overrides``.
"""

from suid.context import SuidContext, get_suid_context

__all__ = ["get_context"]


async def get_context() -> SuidContext:
    """Get the process-wide suid context.

    Returns:
        SuidContext: Shared allocator context
    """
    return get_suid_context()
