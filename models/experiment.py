"""
A/B experiment data models
"""
from dataclasses import dataclass
from typing import List, Optional, Dict, Any


@dataclass
class Variant:
    name: str
    weight: float


@dataclass
class Experiment:
    """Experiment with weighted variants"""
    experiment_id: str
    name: str
    variants: List[Variant]
    is_active: bool = True


@dataclass
class ExperimentAssignment:
    """Variant assigned to one user for one experiment"""
    assignment_id: str
    experiment_id: str
    user_id: str
    variant: str
    converted: bool = False
    conversion_value: Optional[float] = None
    assigned_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "assignment_id": self.assignment_id,
            "experiment_id": self.experiment_id,
            "user_id": self.user_id,
            "variant": self.variant,
            "converted": self.converted,
            "conversion_value": self.conversion_value,
            "assigned_at": self.assigned_at
        }
