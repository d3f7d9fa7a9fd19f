"""Shared fixtures for the risk engine tests."""

import pytest

from risk_inputs import ClinicalInput


@pytest.fixture
def female_mmol_record() -> dict:
    """Form record for a 60-year-old woman with mmol/L lipids."""
    return {
        "model": "riskcalculator",
        "sex": "female",
        "age": "60",
        "systolic": "120",
        "totalChol": "5.2",
        "hdl": "1.4",
        "smoker": "no",
        "diabetes": "no",
        "bpMedicated": "no",
        "statin": "no",
        "egfr": "90",
    }


@pytest.fixture
def female_mmol() -> ClinicalInput:
    return ClinicalInput(
        sex="female", age=60, systolic=120, total_chol=5.2, hdl=1.4, egfr=90,
    )


@pytest.fixture
def male_mgdl() -> ClinicalInput:
    """55-year-old male smoker on BP medication, lipids in mg/dL."""
    return ClinicalInput(
        sex="male", age=55, systolic=135, total_chol=210, hdl=48, egfr=70,
        smoker=True, bp_medicated=True,
    )


@pytest.fixture
def finrisk_patient() -> ClinicalInput:
    return ClinicalInput(
        sex="male", age=58, systolic=145, total_chol=6.1, hdl=1.1,
        smoker=True, parent_infarction=True,
    )
