from __future__ import annotations

from typing import Any, Dict

import streamlit as st

from config import configure_logging, settings
from presentation import RiskPresenter, format_percent, model_form_fields, risk_chart
from risk_models import MODELS, available_models, resolve_model
from treatments import TREATMENT_STRATEGIES


# -----------------------------
# Helpers
# -----------------------------
def yes_no(label: str, key: str) -> str:
    return "yes" if st.checkbox(label, key=key) else "no"

def render_risk_badge(title: str, text: str) -> None:
    st.markdown(
        f"""
        <div style="border-radius:16px;padding:16px;background:#0c8fd6;color:white;">
          <div style="font-size:14px;opacity:0.95;">{title}</div>
          <div style="font-size:34px;font-weight:800;line-height:1.1;margin-top:4px;">{text}</div>
        </div>
        """,
        unsafe_allow_html=True,
    )


# -----------------------------
# Streamlit setup
# -----------------------------
st.set_page_config(page_title=settings.app_title, layout="wide")

st.title(settings.app_title)
st.caption("Educational only. Not medical advice.")

if "presenter" not in st.session_state:
    configure_logging(settings)
    st.session_state.presenter = RiskPresenter()

presenter: RiskPresenter = st.session_state.presenter

model_ids = list(available_models())
default_index = model_ids.index(settings.default_model) if settings.default_model in model_ids else 0

colL, colR = st.columns([1, 1.15], gap="large")

with colL:
    st.subheader("Model")
    model_id = st.selectbox(
        "Risk model",
        model_ids,
        index=default_index,
        format_func=lambda m: MODELS[m].name,
    )
    model = resolve_model(model_id)
    st.caption(model.description)
    fields = set(model_form_fields(model))

    st.divider()
    st.subheader("Inputs")

    record: Dict[str, Any] = {"model": model_id}
    record["sex"] = st.selectbox("Sex", ["female", "male"])
    record["age"] = st.number_input("Age (years)", 20, 90, 55)
    record["systolic"] = st.number_input("Systolic BP (mmHg)", 80, 220, 120)

    st.markdown("**Lipids** (mg/dL or mmol/L, detected automatically)")
    record["totalChol"] = st.number_input("Total cholesterol", 0.0, 400.0, 5.2, step=0.1)
    record["hdl"] = st.number_input("HDL", 0.0, 150.0, 1.4, step=0.1)

    if "egfr" in fields:
        record["egfr"] = st.number_input("eGFR (mL/min/1.73m²)", 5, 150, 90)
    if "bmi" in fields and st.checkbox("Include BMI"):
        record["bmi"] = st.number_input("BMI (kg/m²)", 15.0, 60.0, 27.0, step=0.1)
    if "race" in fields:
        record["race"] = st.selectbox("Race", ["white", "black", "other"])

    st.markdown("**Conditions**")
    record["smoker"] = yes_no("Current smoker", "smoker")
    record["diabetes"] = yes_no("Diabetes", "diabetes")
    if "bpMedicated" in fields:
        record["bpMedicated"] = yes_no("On BP medication", "bpMedicated")
    if "statin" in fields:
        record["statin"] = yes_no("On statin", "statin")
    if "ckd" in fields:
        record["ckd"] = yes_no("Chronic kidney disease", "ckd")
    if "parentInfarction" in fields:
        record["parentInfarction"] = yes_no("Parent had a heart attack", "parentInfarction")
    if "parentStroke" in fields:
        record["parentStroke"] = yes_no("Parent had a stroke", "parentStroke")

    if st.button("Calculate risk", type="primary"):
        presenter.submit(record)

with colR:
    st.subheader("Results")

    outcome = presenter.last
    if outcome.error:
        st.error(outcome.error)
    elif not outcome.ok:
        st.caption("Enter values and press Calculate risk.")
    else:
        render_risk_badge(f"Baseline 10-year risk ({outcome.model.name})", format_percent(outcome.baseline_risk))

        st.markdown("#### Treatment strategies")
        for line in presenter.treatment_lines():
            st.write(f"- {line}")

        labels = {s.id: s.label for s in TREATMENT_STRATEGIES}
        selected = st.multiselect(
            "Show in chart",
            list(labels),
            default=list(labels),
            format_func=lambda s: labels[s],
        )
        df = presenter.chart_frame(selected)
        if df.empty:
            st.caption("No strategies selected.")
        else:
            st.altair_chart(risk_chart(df), use_container_width=True)

st.divider()
st.markdown(
    """
### Important notes
- This is an educational calculator — not medical advice.
- Treatment effects are fixed relative risk reductions (BP medication 10% each, statin 25%), combined multiplicatively.
- Estimated risk is capped at 95%.
"""
)
