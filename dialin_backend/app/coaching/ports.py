# dialin_backend/app/coaching/ports.py
from __future__ import annotations

from typing import List, Optional, Protocol

from .grinder_scale import GrinderScale
from .models import PersistentGrindRecommendation, Shot

# Purpose:
# What the coaching core needs from storage. The SQLModel stores in
# services/data_stores implement these; the engines never import them.


class ShotSource(Protocol):
    def get_shots_for_bean(self, bean_id: str) -> List[Shot]: ...


class GrinderScaleSource(Protocol):
    def get_current_grinder_scale(self) -> Optional[GrinderScale]: ...


class RecommendationStore(Protocol):
    def get_active_recommendation(self, bean_id: str) -> Optional[PersistentGrindRecommendation]: ...

    def save_recommendation(self, rec: PersistentGrindRecommendation) -> PersistentGrindRecommendation: ...

    def supersede(self, bean_id: str) -> int: ...

    def update_recommendation(self, rec: PersistentGrindRecommendation) -> PersistentGrindRecommendation: ...

    def list_recommendations(self, bean_id: str) -> List[PersistentGrindRecommendation]: ...
