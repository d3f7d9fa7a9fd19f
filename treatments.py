from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

from units import clamp_probability

# relative risk per single therapy; combinations multiply (independent effects)
BP_MED_MULTIPLIER = 0.9
STATIN_MULTIPLIER = 0.75


@dataclass(frozen=True)
class TreatmentStrategy:
    id: str
    label: str
    multiplier: float


@dataclass(frozen=True)
class TreatmentResult:
    id: str
    label: str
    multiplier: float
    risk: float
    absolute_benefit: float


# display order
TREATMENT_STRATEGIES: Tuple[TreatmentStrategy, ...] = (
    TreatmentStrategy("baseline", "No pharmacotherapy", 1.0),
    TreatmentStrategy("bp1", "One blood pressure medication", BP_MED_MULTIPLIER),
    TreatmentStrategy("bp2", "Two blood pressure medications", BP_MED_MULTIPLIER * BP_MED_MULTIPLIER),
    TreatmentStrategy("statin", "Statin therapy", STATIN_MULTIPLIER),
    TreatmentStrategy(
        "combo",
        "Two blood pressure medications + statin",
        BP_MED_MULTIPLIER * BP_MED_MULTIPLIER * STATIN_MULTIPLIER,
    ),
)

BASELINE_ID = "baseline"


def project_treatments(baseline_risk: float) -> List[TreatmentResult]:
    """
    Risk under each strategy in TREATMENT_STRATEGIES, in the same order.
    """
    results = []
    for strategy in TREATMENT_STRATEGIES:
        treated = baseline_risk * strategy.multiplier
        results.append(
            TreatmentResult(
                id=strategy.id,
                label=strategy.label,
                multiplier=strategy.multiplier,
                risk=clamp_probability(treated),
                absolute_benefit=max(0.0, baseline_risk - treated),
            )
        )
    return results


def comparative(results: List[TreatmentResult]) -> List[TreatmentResult]:
    return [r for r in results if r.id != BASELINE_ID]
