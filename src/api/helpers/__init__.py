"""API helper utilities."""
from api.helpers.errors import api_error, lifecycle_error

__all__ = [
    "api_error",
    "lifecycle_error",
]
