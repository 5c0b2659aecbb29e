"""Profile services."""

from .merge_service import MergeError, ProfileMergeService

__all__ = ["MergeError", "ProfileMergeService"]
