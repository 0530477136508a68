"""
Client adapters for the remote services cosmo_x talks to.
"""

__all__ = [
    "scheduler_client",
    "x_api_client",
]
