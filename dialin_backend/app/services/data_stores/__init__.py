from __future__ import annotations

# Re-export store surface for routers and services.

from .shots import DuplicateShotError, ShotStore
from .grinder_scales import GrinderScaleStore, ScaleValidationError
from .recommendations import RecommendationStore

__all__ = [
    "ShotStore",
    "DuplicateShotError",
    "GrinderScaleStore",
    "ScaleValidationError",
    "RecommendationStore",
]
