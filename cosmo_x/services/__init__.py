"""
Service layer modules orchestrate domain workflows (posts, lookups, search,
engagement, metrics) on top of the lower-level client adapters.
"""

__all__ = [
    "engage_service",
    "lookup_service",
    "measure_service",
    "post_service",
    "search_service",
]
