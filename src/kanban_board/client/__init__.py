"""Client side: REST API client and the optimistic board cache."""

from .api import ApiError, KanbanApiClient
from .cache import KanbanStateCache

__all__ = [
    "ApiError",
    "KanbanApiClient",
    "KanbanStateCache",
]
