from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Literal, Mapping, Optional, Tuple

Sex = Literal["female", "male"]
Race = Literal["white", "black", "other"]


class RiskEngineError(Exception):
    """Base class for failures of a single risk calculation."""


class ConfigurationError(RiskEngineError):
    """No coefficient set exists for the requested sex (or race)."""


class InvalidInputError(RiskEngineError):
    def __init__(self, message: str, fields: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.fields: Tuple[str, ...] = tuple(fields)


class ModelNotFoundError(RiskEngineError):
    def __init__(self, model_id: str) -> None:
        super().__init__(f"Unknown risk model: {model_id!r}")
        self.model_id = model_id


@dataclass(frozen=True)
class ClinicalInput:
    sex: str
    age: Optional[float] = None
    systolic: Optional[float] = None    # mmHg

    # mg/dL or mmol/L, resolved by units.normalize_cholesterol
    total_chol: Optional[float] = None
    hdl: Optional[float] = None

    egfr: Optional[float] = None
    bmi: Optional[float] = None
    race: Optional[str] = None

    smoker: bool = False
    diabetes: bool = False
    bp_medicated: bool = False
    statin: bool = False
    ckd: bool = False
    parent_infarction: bool = False
    parent_stroke: bool = False


# form field name -> ClinicalInput attribute
NUMERIC_FIELDS = {
    "age": "age",
    "systolic": "systolic",
    "totalChol": "total_chol",
    "hdl": "hdl",
    "egfr": "egfr",
    "bmi": "bmi",
}

FLAG_FIELDS = {
    "smoker": "smoker",
    "diabetes": "diabetes",
    "bpMedicated": "bp_medicated",
    "statin": "statin",
    "ckd": "ckd",
    "parentInfarction": "parent_infarction",
    "parentStroke": "parent_stroke",
}


def _to_number(raw: Any) -> Optional[float]:
    if raw is None:
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if raw == "":
            return None
    if isinstance(raw, bool):
        return math.nan
    try:
        return float(raw)
    except (TypeError, ValueError):
        return math.nan


def _to_flag(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        return raw.strip().lower() == "yes"
    return False


def parse_clinical_input(record: Mapping[str, Any]) -> ClinicalInput:
    """
    Convert a form-like record ({"age": "60", "smoker": "yes", ...}) into a
    typed ClinicalInput.

    Blank numeric fields become None and unparseable ones NaN; whether either
    is acceptable is decided by the model that consumes the field. Flags are
    true only for "yes" (or a real bool).
    """
    sex = str(record.get("sex") or "").strip().lower()
    race = record.get("race")
    race = str(race).strip().lower() if race not in (None, "") else None

    values = {attr: _to_number(record.get(key)) for key, attr in NUMERIC_FIELDS.items()}
    flags = {attr: _to_flag(record.get(key)) for key, attr in FLAG_FIELDS.items()}

    return ClinicalInput(sex=sex, race=race, **values, **flags)
