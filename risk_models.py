from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from config import settings
from risk_inputs import ClinicalInput, ConfigurationError, InvalidInputError, ModelNotFoundError
from units import clamp_probability, normalize_cholesterol, sigmoid

logger = logging.getLogger(__name__)


def _freeze(value: Any) -> Any:
    if isinstance(value, dict):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    return value


@dataclass(frozen=True)
class CoefficientTable:
    name: str
    version: str
    by_sex: Mapping[str, Any]

    def for_sex(self, sex: str) -> Mapping[str, Any]:
        try:
            return self.by_sex[sex]
        except KeyError:
            raise ConfigurationError(
                f"Missing {self.name} coefficients for sex {sex!r}."
            ) from None


@dataclass(frozen=True)
class RiskResult:
    risk: float                      # clamped to [0, 0.95]
    details: Optional[Dict[str, Any]] = None


# -----------------------------
# Coefficient tables
# -----------------------------
FINRISK_CURRENT = CoefficientTable(
    name="FINRISK",
    version="current",
    by_sex=_freeze({
        "male": {
            "coronary": {
                "intercept": 9.081, "age": 0.075, "smoking": 0.579, "totalChol": 0.320,
                "systolic": 0.011, "hdl": 1.082, "diabetes": 0.729, "parental": 0.338,
            },
            "stroke": {
                "intercept": 9.928, "age": 0.083, "smoking": 0.369,
                "systolic": 0.014, "hdl": 0.329, "diabetes": 0.705, "parental": 0.249,
            },
        },
        "female": {
            "coronary": {
                "intercept": 11.25, "age": 0.095, "smoking": 0.639, "totalChol": 0.244,
                "systolic": 0.013, "hdl": 0.845, "diabetes": 1.315, "parental": 0.421,
            },
            "stroke": {
                "intercept": 9.553, "age": 0.085, "smoking": 0.613,
                "systolic": 0.012, "hdl": 0.623, "diabetes": 0.914, "parental": 0.023,
            },
        },
    }),
)

FINRISK_LEGACY = CoefficientTable(
    name="FINRISK",
    version="legacy",
    by_sex=_freeze({
        "male": {
            "coronary": {
                "intercept": 11.213, "age": 0.0802, "smoking": 0.626, "totalChol": 0.3293,
                "systolic": 0.0166, "hdl": 0.5893, "diabetes": 0.7417, "parental": 0.3138,
            },
            "stroke": {
                "intercept": 11.6994, "age": 0.1153, "smoking": 0.4881,
                "systolic": 0.0149, "hdl": 0.4406, "diabetes": 0.879, "parental": 0.2933,
            },
        },
        "female": {
            "coronary": {
                "intercept": 11.839, "age": 0.0962, "smoking": 0.8776, "totalChol": 0.2119,
                "systolic": 0.0175, "hdl": 1.1009, "diabetes": 1.0303, "parental": 0.409,
            },
            "stroke": {
                "intercept": 7.9766, "age": 0.0633, "smoking": 0.4163,
                "systolic": 0.00893, "hdl": 0.7636, "diabetes": 1.2383, "parental": 0.547,
            },
        },
    }),
)


def _pooled(intercept, ln_age, ln_age_sq, ln_tc, age_tc, ln_hdl, age_hdl,
            tr_sbp, age_tr_sbp, nt_sbp, age_nt_sbp, smoker, age_smoker, diabetes, ckd):
    return {
        "intercept": intercept,
        "lnAge": ln_age,
        "lnAgeSq": ln_age_sq,
        "lnTotalChol": ln_tc,
        "lnAge_lnTotalChol": age_tc,
        "lnHDL": ln_hdl,
        "lnAge_lnHDL": age_hdl,
        "lnTreatedSBP": tr_sbp,
        "lnAge_lnTreatedSBP": age_tr_sbp,
        "lnUntreatedSBP": nt_sbp,
        "lnAge_lnUntreatedSBP": age_nt_sbp,
        "smoker": smoker,
        "lnAge_smoker": age_smoker,
        "diabetes": diabetes,
        "ckd": ckd,
    }


# race-stratified; "other" is the fallback bucket for unlisted races
PREVENT_POOLED = CoefficientTable(
    name="PREVENT",
    version="pooled-cohort",
    by_sex=_freeze({
        "male": {
            "white": _pooled(-5.55, 3.08, -0.92, 1.12, -0.3, -1.26, 0.38,
                             1.27, -0.35, 1.45, -0.41, 0.76, -0.21, 0.64, 0.52),
            "black": _pooled(-5.03, 2.98, -0.88, 0.94, -0.24, -1.18, 0.35,
                             1.35, -0.37, 1.51, -0.42, 0.62, -0.18, 0.7, 0.58),
            "other": _pooled(-5.45, 3.01, -0.9, 1.05, -0.27, -1.22, 0.36,
                             1.31, -0.36, 1.48, -0.41, 0.7, -0.2, 0.66, 0.55),
        },
        "female": {
            "white": _pooled(-6.3, 2.75, -0.82, 1.18, -0.32, -1.4, 0.4,
                             1.21, -0.34, 1.33, -0.38, 0.86, -0.24, 0.72, 0.62),
            "black": _pooled(-5.92, 2.68, -0.78, 1.05, -0.28, -1.32, 0.38,
                             1.28, -0.36, 1.4, -0.39, 0.74, -0.22, 0.78, 0.66),
            "other": _pooled(-6.15, 2.71, -0.8, 1.12, -0.3, -1.36, 0.39,
                             1.25, -0.35, 1.37, -0.39, 0.8, -0.23, 0.75, 0.64),
        },
    }),
)

PREVENT_TOTAL_CVD = CoefficientTable(
    name="PREVENT Total CVD",
    version="total-cvd",
    by_sex=_freeze({
        "female": {
            "intercept": -3.307728,
            "age": 0.7939329,
            "nonHdl": 0.0305239,
            "hdl": -0.1606857,
            "sbpBelow": -0.2394003,
            "sbpAbove": 0.360078,
            "diabetes": 0.8667604,
            "smoker": 0.5360739,
            "egfrBelow": 0.6045917,
            "egfrAbove": 0.0433769,
            "antiHypertensive": 0.3151672,
            "statin": -0.1477655,
            "antiHypertensive_sbpAbove": -0.0663612,
            "statin_nonHdl": 0.1197879,
            "age_nonHdl": -0.0819715,
            "age_hdl": 0.0306769,
            "age_sbpAbove": -0.0946348,
            "age_diabetes": -0.27057,
            "age_smoker": -0.078715,
            "age_egfrBelow": -0.1637806,
        },
        "male": {
            "intercept": -3.031168,
            "age": 0.7688528,
            "nonHdl": 0.0736174,
            "hdl": -0.0954431,
            "sbpBelow": -0.4347345,
            "sbpAbove": 0.3362658,
            "diabetes": 0.7692857,
            "smoker": 0.4386871,
            "egfrBelow": 0.5378979,
            "egfrAbove": 0.0164827,
            "antiHypertensive": 0.288879,
            "statin": -0.1337349,
            "antiHypertensive_sbpAbove": -0.0475924,
            "statin_nonHdl": 0.150273,
            "age_nonHdl": -0.0517874,
            "age_hdl": 0.0191169,
            "age_sbpAbove": -0.1049477,
            "age_diabetes": -0.2251948,
            "age_smoker": -0.0895067,
            "age_egfrBelow": -0.1543702,
        },
    }),
)


# -----------------------------
# Input resolution
# -----------------------------
_CHOLESTEROL_FIELDS = ("total_chol", "hdl")


def _numbers(inputs: ClinicalInput, fields: Tuple[str, ...], model_name: str, strict: bool) -> Dict[str, float]:
    values: Dict[str, float] = {}
    bad = []
    for name in fields:
        raw = getattr(inputs, name)
        value = math.nan if raw is None else float(raw)
        if name in _CHOLESTEROL_FIELDS:
            value = normalize_cholesterol(value)
        if not math.isfinite(value):
            bad.append(name)
            value = 0.0
        values[name] = value

    if bad:
        if strict:
            raise InvalidInputError(
                f"Missing or invalid numeric inputs for {model_name} calculation: {', '.join(bad)}.",
                fields=bad,
            )
        logger.warning("%s: substituting 0 for missing inputs %s", model_name, bad)
    return values


def _flag(value: bool) -> int:
    return 1 if value else 0


# -----------------------------
# FINRISK
# -----------------------------
def _finrisk(table: CoefficientTable, inp: ClinicalInput, strict: bool) -> RiskResult:
    coefficients = table.for_sex(inp.sex)
    v = _numbers(inp, ("age", "systolic", "total_chol", "hdl"), "FINRISK", strict)

    smoker = _flag(inp.smoker)
    diabetes = _flag(inp.diabetes)

    coronary = coefficients["coronary"]
    stroke = coefficients["stroke"]

    coronary_exponent = (
        coronary["intercept"]
        - coronary["age"] * v["age"]
        - coronary["smoking"] * smoker
        - coronary.get("totalChol", 0.0) * v["total_chol"]
        - coronary["systolic"] * v["systolic"]
        + coronary["hdl"] * v["hdl"]
        - coronary["diabetes"] * diabetes
        - coronary["parental"] * _flag(inp.parent_infarction)
    )
    stroke_exponent = (
        stroke["intercept"]
        - stroke["age"] * v["age"]
        - stroke["smoking"] * smoker
        - stroke.get("totalChol", 0.0) * v["total_chol"]
        - stroke["systolic"] * v["systolic"]
        + stroke["hdl"] * v["hdl"]
        - stroke["diabetes"] * diabetes
        - stroke["parental"] * _flag(inp.parent_stroke)
    )

    coronary_risk = sigmoid(-coronary_exponent)
    stroke_risk = sigmoid(-stroke_exponent)

    # coronary event and stroke treated as independent
    combined = 1.0 - (1.0 - coronary_risk) * (1.0 - stroke_risk)
    logger.debug("FINRISK %s: coronary=%.4f stroke=%.4f", table.version, coronary_risk, stroke_risk)

    return RiskResult(
        risk=clamp_probability(combined),
        details={
            "table": f"{table.name}/{table.version}",
            "coronary_risk": coronary_risk,
            "stroke_risk": stroke_risk,
            "combined_risk": combined,
        },
    )


# -----------------------------
# PREVENT (pooled cohort lineage)
# -----------------------------
def _prevent_pooled(table: CoefficientTable, inp: ClinicalInput, strict: bool) -> RiskResult:
    by_race = table.for_sex(inp.sex)
    race = inp.race or "white"
    if race in by_race:
        cohort = by_race[race]
    else:
        logger.warning("PREVENT: no coefficients for race %r, using 'other'", race)
        race = "other"
        cohort = by_race.get("other")
    if cohort is None:
        raise ConfigurationError("Missing PREVENT coefficient set for selected demographics.")

    v = _numbers(inp, ("age", "systolic", "total_chol", "hdl"), "PREVENT", strict)
    non_positive = [name for name, value in v.items() if value <= 0]
    if non_positive:
        raise InvalidInputError(
            f"PREVENT requires positive values for: {', '.join(non_positive)}.",
            fields=non_positive,
        )

    ln_age = math.log(v["age"])
    ln_tc = math.log(v["total_chol"])
    ln_hdl = math.log(v["hdl"])
    ln_sbp = math.log(v["systolic"])
    smoker = _flag(inp.smoker)

    if inp.bp_medicated:
        sbp_part = cohort["lnTreatedSBP"] * ln_sbp + cohort.get("lnAge_lnTreatedSBP", 0.0) * ln_age * ln_sbp
    else:
        sbp_part = cohort["lnUntreatedSBP"] * ln_sbp + cohort.get("lnAge_lnUntreatedSBP", 0.0) * ln_age * ln_sbp

    lp = (
        cohort["intercept"]
        + cohort["lnAge"] * ln_age
        + cohort.get("lnAgeSq", 0.0) * ln_age ** 2
        + cohort["lnTotalChol"] * ln_tc
        + cohort.get("lnAge_lnTotalChol", 0.0) * ln_age * ln_tc
        + cohort["lnHDL"] * ln_hdl
        + cohort.get("lnAge_lnHDL", 0.0) * ln_age * ln_hdl
        + sbp_part
        + cohort["smoker"] * smoker
        + cohort.get("lnAge_smoker", 0.0) * ln_age * smoker
        + cohort["diabetes"] * _flag(inp.diabetes)
        + cohort.get("ckd", 0.0) * _flag(inp.ckd)
    )
    logger.debug("PREVENT pooled lp=%.4f", lp)

    return RiskResult(
        risk=clamp_probability(sigmoid(lp)),
        details={"table": f"{table.name}/{table.version}", "race_group": race, "linear_predictor": lp},
    )


# -----------------------------
# PREVENT Total CVD
# -----------------------------
def _prevent_total_cvd(table: CoefficientTable, inp: ClinicalInput, strict: bool) -> RiskResult:
    c = table.for_sex(inp.sex)
    v = _numbers(inp, ("age", "systolic", "total_chol", "hdl", "egfr"), "PREVENT Total CVD", strict)

    smoker = _flag(inp.smoker)
    diabetes = _flag(inp.diabetes)
    bp_medicated = _flag(inp.bp_medicated)
    statin = _flag(inp.statin)

    age = (v["age"] - 55) / 10
    non_hdl = v["total_chol"] - v["hdl"] - 3.5
    hdl = (v["hdl"] - 1.3) / 0.3
    sbp_below = (min(v["systolic"], 110) - 110) / 20
    sbp_above = (max(v["systolic"], 110) - 130) / 20
    egfr_below = (min(v["egfr"], 60) - 60) / -15
    egfr_above = (max(v["egfr"], 60) - 90) / -15

    terms = {
        "age": age,
        "nonHdl": non_hdl,
        "hdl": hdl,
        "sbpBelow": sbp_below,
        "sbpAbove": sbp_above,
        "diabetes": diabetes,
        "smoker": smoker,
        "egfrBelow": egfr_below,
        "egfrAbove": egfr_above,
        "antiHypertensive": bp_medicated,
        "statin": statin,
        "antiHypertensive_sbpAbove": bp_medicated * sbp_above,
        "statin_nonHdl": statin * non_hdl,
        "age_nonHdl": age * non_hdl,
        "age_hdl": age * hdl,
        "age_sbpAbove": age * sbp_above,
        "age_diabetes": age * diabetes,
        "age_smoker": age * smoker,
        "age_egfrBelow": age * egfr_below,
    }

    if inp.bmi is not None and math.isfinite(inp.bmi):
        bmi = (inp.bmi - 27) / 5
        terms["bmi"] = bmi
        terms["age_bmi"] = age * bmi

    lp = c["intercept"] + sum(c.get(name, 0.0) * value for name, value in terms.items())
    logger.debug("PREVENT Total CVD lp=%.4f", lp)

    return RiskResult(
        risk=clamp_probability(sigmoid(lp)),
        details={"table": f"{table.name}/{table.version}", "linear_predictor": lp},
    )


# -----------------------------
# Registry
# -----------------------------
@dataclass(frozen=True)
class RiskModel:
    id: str
    name: str
    description: str
    table: CoefficientTable
    required_fields: Tuple[str, ...]
    optional_fields: Tuple[str, ...]
    evaluator: Callable[[CoefficientTable, ClinicalInput, bool], RiskResult]

    def evaluate(self, inputs: ClinicalInput, strict: Optional[bool] = None) -> RiskResult:
        if strict is None:
            strict = settings.strict_inputs
        return self.evaluator(self.table, inputs, strict)

    def calculate(self, inputs: ClinicalInput, strict: Optional[bool] = None) -> float:
        """10-year risk probability in [0, 0.95]."""
        return self.evaluate(inputs, strict=strict).risk


_FINRISK_FIELDS = ("sex", "age", "systolic", "total_chol", "hdl")
_FINRISK_FLAGS = ("smoker", "diabetes", "parent_infarction", "parent_stroke")

MODELS: Mapping[str, RiskModel] = MappingProxyType({
    m.id: m
    for m in (
        RiskModel(
            id="finrisk",
            name="FINRISK",
            description=(
                "FINRISK estimates 10-year risk of major coronary events and stroke "
                "using Finnish cohort data."
            ),
            table=FINRISK_CURRENT,
            required_fields=_FINRISK_FIELDS,
            optional_fields=_FINRISK_FLAGS,
            evaluator=_finrisk,
        ),
        RiskModel(
            id="finrisk-legacy",
            name="FINRISK (legacy coefficients)",
            description="FINRISK with the earlier published coefficient table.",
            table=FINRISK_LEGACY,
            required_fields=_FINRISK_FIELDS,
            optional_fields=_FINRISK_FLAGS,
            evaluator=_finrisk,
        ),
        RiskModel(
            id="prevent",
            name="PREVENT",
            description=(
                "PREVENT relies on U.S. cohort data and expands on the pooled cohort "
                "equations to estimate 10-year cardiovascular risk."
            ),
            table=PREVENT_POOLED,
            required_fields=("sex", "age", "systolic", "total_chol", "hdl"),
            optional_fields=("race", "smoker", "diabetes", "bp_medicated", "ckd"),
            evaluator=_prevent_pooled,
        ),
        RiskModel(
            id="riskcalculator",
            name="PREVENT Total CVD",
            description=(
                "PREVENT Total CVD equations with centred predictors, spline terms for "
                "blood pressure and kidney function, and age interactions."
            ),
            table=PREVENT_TOTAL_CVD,
            required_fields=("sex", "age", "systolic", "total_chol", "hdl", "egfr"),
            optional_fields=("bmi", "smoker", "diabetes", "bp_medicated", "statin"),
            evaluator=_prevent_total_cvd,
        ),
    )
})

ALIASES: Mapping[str, str] = MappingProxyType({
    "prevent-total-cvd": "riskcalculator",
})


def resolve_model(model_id: Any) -> Optional[RiskModel]:
    """Look up a model by id; None when it does not exist."""
    key = str(model_id or "").strip().lower()
    key = ALIASES.get(key, key)
    model = MODELS.get(key)
    if model is None:
        logger.info("Risk model %r not found", model_id)
    return model


def require_model(model_id: Any) -> RiskModel:
    model = resolve_model(model_id)
    if model is None:
        raise ModelNotFoundError(str(model_id))
    return model


def available_models() -> Dict[str, str]:
    return {model_id: model.name for model_id, model in MODELS.items()}
