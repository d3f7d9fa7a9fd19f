"""Tests for form record parsing."""

import math

from risk_inputs import (
    ClinicalInput,
    InvalidInputError,
    ModelNotFoundError,
    RiskEngineError,
    parse_clinical_input,
)


class TestParseClinicalInput:
    """Test conversion of string-keyed form records."""

    def test_full_record(self, female_mmol_record, female_mmol):
        assert parse_clinical_input(female_mmol_record) == female_mmol

    def test_flags(self):
        parsed = parse_clinical_input({
            "sex": "male",
            "smoker": "yes",
            "diabetes": "no",
            "bpMedicated": True,
            "statin": "YES",
            "parentInfarction": "yes",
        })
        assert parsed.smoker is True
        assert parsed.diabetes is False
        assert parsed.bp_medicated is True
        assert parsed.statin is True
        assert parsed.parent_infarction is True
        assert parsed.parent_stroke is False

    def test_blank_is_none(self):
        parsed = parse_clinical_input({"sex": "female", "egfr": "  ", "bmi": None})
        assert parsed.egfr is None
        assert parsed.bmi is None

    def test_unparseable_is_nan(self):
        parsed = parse_clinical_input({"sex": "female", "age": "sixty"})
        assert math.isnan(parsed.age)

    def test_sex_and_race_normalized(self):
        parsed = parse_clinical_input({"sex": " Female ", "race": "Black"})
        assert parsed.sex == "female"
        assert parsed.race == "black"

    def test_missing_race(self):
        assert parse_clinical_input({"sex": "male", "race": ""}).race is None

    def test_unknown_keys_ignored(self):
        parsed = parse_clinical_input({"sex": "male", "model": "finrisk", "extra": "1"})
        assert parsed == ClinicalInput(sex="male")


class TestErrors:
    """Test the error taxonomy."""

    def test_hierarchy(self):
        assert issubclass(InvalidInputError, RiskEngineError)
        assert issubclass(ModelNotFoundError, RiskEngineError)

    def test_invalid_input_fields(self):
        err = InvalidInputError("bad", fields=["egfr", "age"])
        assert err.fields == ("egfr", "age")
        assert str(err) == "bad"

    def test_model_not_found_message(self):
        err = ModelNotFoundError("nope")
        assert "nope" in str(err)
