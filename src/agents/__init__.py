"""Agent module exports."""

from .state import (
    KitState,
    ListingCopy,
)

__all__ = [
    "KitState",
    "ListingCopy",
]
