"""Tests for the treatment projector."""

import pytest

from treatments import (
    BASELINE_ID,
    TREATMENT_STRATEGIES,
    comparative,
    project_treatments,
)


def _multiplier(strategy_id):
    return next(s.multiplier for s in TREATMENT_STRATEGIES if s.id == strategy_id)


class TestStrategyTable:
    """Test the fixed strategy list."""

    def test_order(self):
        assert [s.id for s in TREATMENT_STRATEGIES] == ["baseline", "bp1", "bp2", "statin", "combo"]

    def test_baseline_multiplier(self):
        assert _multiplier("baseline") == 1.0

    def test_multipliers_in_unit_interval(self):
        for s in TREATMENT_STRATEGIES:
            assert 0 < s.multiplier <= 1

    def test_combined_is_product(self):
        """Combined strategies multiply their single-strategy effects."""
        assert _multiplier("bp2") == pytest.approx(_multiplier("bp1") ** 2)
        assert _multiplier("combo") == pytest.approx(_multiplier("bp2") * _multiplier("statin"))
        assert _multiplier("combo") == pytest.approx(0.6075)


class TestProjectTreatments:
    """Test per-strategy risk projection."""

    def test_one_result_per_strategy(self):
        results = project_treatments(0.2)
        assert [r.id for r in results] == [s.id for s in TREATMENT_STRATEGIES]
        assert [r.label for r in results] == [s.label for s in TREATMENT_STRATEGIES]

    def test_baseline_unchanged(self):
        baseline = project_treatments(0.2)[0]
        assert baseline.risk == 0.2
        assert baseline.absolute_benefit == 0

    @pytest.mark.parametrize("baseline_risk", [0.0, 0.01, 0.0423, 0.2, 0.95])
    def test_monotonic(self, baseline_risk):
        """No strategy raises risk or has negative benefit."""
        for r in project_treatments(baseline_risk):
            assert r.risk <= baseline_risk
            assert r.absolute_benefit >= 0

    def test_values(self):
        results = {r.id: r for r in project_treatments(0.2)}
        assert results["statin"].risk == pytest.approx(0.15)
        assert results["statin"].absolute_benefit == pytest.approx(0.05)
        assert results["combo"].risk == pytest.approx(0.2 * 0.6075)

    def test_deterministic(self):
        assert project_treatments(0.1053) == project_treatments(0.1053)

    def test_comparative_excludes_baseline(self):
        shown = comparative(project_treatments(0.2))
        assert BASELINE_ID not in [r.id for r in shown]
        assert len(shown) == len(TREATMENT_STRATEGIES) - 1
