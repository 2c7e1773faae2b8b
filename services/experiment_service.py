"""
Experiment service - deterministic A/B variant assignment
"""
import uuid
import hashlib
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Any, List, Optional

from models.experiment import ExperimentAssignment, Variant
from database.repository import ExperimentRepository

logger = logging.getLogger(__name__)


def bucket_position(experiment_id: str, user_id: str) -> float:
    # (실험, 사용자) 해시를 [0, 1) 구간으로 매핑
    digest = hashlib.sha256(f"{experiment_id}:{user_id}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") / 2 ** 64


def pick_variant(variants: List[Variant], position: float) -> Optional[str]:
    # 누적 가중치 구간 중 position이 속하는 변형 선택
    total_weight = sum(v.weight for v in variants)
    if not variants or total_weight <= 0:
        return None

    target = position * total_weight
    cumulative = 0.0
    for variant in variants:
        cumulative += variant.weight
        if target < cumulative:
            return variant.name
    return variants[-1].name


class ExperimentService:
    # A/B 실험 배정 관련 비즈니스 로직을 처리하는 서비스 클래스

    def __init__(self, experiment_repository: ExperimentRepository,
                 clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self.experiment_repo = experiment_repository
        self.clock = clock

    def assign_variant(self, experiment_id: str, user_id: str) -> Dict[str, Any]:
        # 기존 배정이 있으면 그대로, 없으면 해시 기반으로 새로 배정
        try:
            existing = self.experiment_repo.get_assignment(experiment_id, user_id)
            if existing:
                return {"success": True, "assignment": existing.to_dict(), "created": False}

            experiment = self.experiment_repo.get_experiment(experiment_id)
            if not experiment:
                return {"success": False, "error": "Experiment not found"}
            if not experiment.is_active:
                return {"success": False, "error": "Experiment is not active"}

            variant = pick_variant(experiment.variants, bucket_position(experiment_id, user_id))
            if variant is None:
                return {"success": False, "error": "Experiment has no weighted variants"}

            assignment = ExperimentAssignment(
                assignment_id=str(uuid.uuid4()),
                experiment_id=experiment_id,
                user_id=user_id,
                variant=variant,
                assigned_at=self.clock().isoformat()
            )
            if not self.experiment_repo.create_assignment(assignment):
                return {"success": False, "error": "Failed to store assignment"}

            logger.info("User %s assigned to %s/%s", user_id, experiment_id, variant)
            return {"success": True, "assignment": assignment.to_dict(), "created": True}

        except Exception as e:
            return {"success": False, "error": str(e)}

    def track_conversion(self, assignment_id: str,
                         conversion_value: Optional[float] = None) -> Dict[str, Any]:
        if not self.experiment_repo.mark_conversion(assignment_id, conversion_value):
            return {"success": False, "error": "Assignment not found"}
        return {"success": True}
