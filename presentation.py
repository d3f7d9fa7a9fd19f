from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

import altair as alt
import pandas as pd

from risk_inputs import FLAG_FIELDS, NUMERIC_FIELDS, RiskEngineError, parse_clinical_input
from risk_models import RiskModel, resolve_model
from treatments import TreatmentResult, comparative, project_treatments

logger = logging.getLogger(__name__)

MODEL_NOT_FOUND_MESSAGE = "Unable to locate selected model."
CALCULATION_FAILED_MESSAGE = "Unable to calculate risk with the current inputs. Please review the form."

CHART_COLOURS = {
    "baseline": "#0c8fd6",
    "bp1": "#0fa4b9",
    "bp2": "#0bb47d",
    "statin": "#f3a712",
    "combo": "#ef476f",
}

# ClinicalInput attribute -> form field name
_FORM_NAMES = {attr: key for key, attr in {**NUMERIC_FIELDS, **FLAG_FIELDS}.items()}
_FORM_NAMES.update({"sex": "sex", "race": "race"})

FIELD_LABELS = {
    "sex": "Sex",
    "race": "Race",
    "age": "Age",
    "systolic": "Systolic BP",
    "totalChol": "Total cholesterol",
    "hdl": "HDL",
    "egfr": "eGFR",
    "bmi": "BMI",
}


def field_label(attr: str) -> str:
    name = _FORM_NAMES.get(attr, attr)
    return FIELD_LABELS.get(name, name)


def failure_message(error: RiskEngineError) -> str:
    fields = getattr(error, "fields", ())
    if fields:
        labels = ", ".join(field_label(f) for f in fields)
        return f"{CALCULATION_FAILED_MESSAGE} Missing or invalid: {labels}."
    return f"{CALCULATION_FAILED_MESSAGE} ({error})"


def format_percent(probability: float) -> str:
    return f"{probability * 100:.1f}%"


def treatment_line(result: TreatmentResult) -> str:
    return (
        f"{result.label}: {format_percent(result.risk)} "
        f"({result.absolute_benefit * 100:.1f}% absolute risk reduction)"
    )


def model_form_fields(model: RiskModel) -> List[str]:
    """Form fields the given model reads, for showing/hiding inputs."""
    return [_FORM_NAMES[name] for name in (*model.required_fields, *model.optional_fields)]


@dataclass
class CalculationOutcome:
    model: Optional[RiskModel] = None
    baseline_risk: Optional[float] = None
    treatments: List[TreatmentResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.baseline_risk is not None

    def headline(self) -> str:
        if not self.ok:
            return self.error or CALCULATION_FAILED_MESSAGE
        return f"Baseline risk ({self.model.name}): {format_percent(self.baseline_risk)}"


class RiskPresenter:
    """
    Owns the most recent calculation so the chart can be re-filtered
    without running the model again.
    """

    def __init__(self, strict: Optional[bool] = None) -> None:
        self.strict = strict
        self.last: CalculationOutcome = CalculationOutcome()

    def submit(self, record: Mapping[str, Any]) -> CalculationOutcome:
        model = resolve_model(record.get("model"))
        if model is None:
            self.last = CalculationOutcome(error=MODEL_NOT_FOUND_MESSAGE)
            return self.last

        try:
            inputs = parse_clinical_input(record)
            baseline = model.calculate(inputs, strict=self.strict)
        except RiskEngineError as e:
            logger.exception("Risk calculation failed for model %s", model.id)
            self.last = CalculationOutcome(model=model, error=failure_message(e))
            return self.last

        self.last = CalculationOutcome(
            model=model,
            baseline_risk=baseline,
            treatments=project_treatments(baseline),
        )
        return self.last

    def treatment_lines(self) -> List[str]:
        return [treatment_line(r) for r in comparative(self.last.treatments)]

    def chart_frame(self, selected: Optional[Iterable[str]] = None) -> pd.DataFrame:
        """
        Bar-chart data for the cached results, optionally limited to the
        strategy ids in `selected`.
        """
        wanted = None if selected is None else set(selected)
        rows: List[Dict[str, Any]] = []
        for r in self.last.treatments:
            if wanted is not None and r.id not in wanted:
                continue
            rows.append({
                "Strategy": r.label,
                "10y_risk_pct": round(r.risk * 100, 2),
                "colour": CHART_COLOURS.get(r.id, "#6b7280"),
            })
        return pd.DataFrame(rows, columns=["Strategy", "10y_risk_pct", "colour"])


def risk_chart(df: pd.DataFrame) -> alt.Chart:
    """Bar per strategy on a fixed 0-100% axis, coloured by strategy."""
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("Strategy:N", sort=list(df["Strategy"]), title=None),
            y=alt.Y(
                "10y_risk_pct:Q",
                scale=alt.Scale(domain=[0, 100]),
                title="10-year risk (%)",
            ),
            color=alt.Color(
                "Strategy:N",
                scale=alt.Scale(domain=list(df["Strategy"]), range=list(df["colour"])),
                legend=None,
            ),
            tooltip=["Strategy:N", alt.Tooltip("10y_risk_pct:Q", format=".1f", title="Risk (%)")],
        )
        .properties(height=380)
    )
