"""
tests/test_financial.py
========================
Discounted cash-flow metrics, exposure and cost/market ratios.
"""
import pytest

from eve_platform.types import MonthlyRecord, CostRatioPolicy
from eve_platform.financial import (
    cash_flow_vector,
    npv,
    irr,
    mirr,
    discounted_payback,
    profitability_index,
    max_exposure,
    cost_ratio,
    land_cost_ratio,
    construction_cost_ratio,
    profitability_ratio,
    evaluate_cost_ratios,
    price_per_area,
    price_per_unit,
    sales_velocity,
)


class TestCashFlowVector:
    def test_realized_then_projected_then_zero(self):
        records = [
            MonthlyRecord("2025-03"),
            MonthlyRecord("2025-01", fluxo_real=-10.0, fluxo_proj=-99.0),
            MonthlyRecord("2025-02", fluxo_proj=5.0),
        ]
        assert cash_flow_vector(records) == [-10.0, 5.0, 0.0]

    def test_realized_zero_is_not_replaced(self):
        assert cash_flow_vector([MonthlyRecord("2025-01", fluxo_real=0.0, fluxo_proj=7.0)]) == [0.0]

    def test_empty(self):
        assert cash_flow_vector([]) == []


class TestNPV:
    def test_reference_scenario(self):
        assert npv([-1000, 300, 300, 300, 300], 0.10) == pytest.approx(-49.04, abs=0.1)

    def test_zero_rate_is_sum(self):
        flows = [-500, 120, 80, 400]
        assert npv(flows, 0.0) == pytest.approx(sum(flows))

    def test_empty(self):
        assert npv([], 0.1) == 0.0

    def test_rate_minus_one_does_not_raise(self):
        assert npv([-1, 2], -1.0) == 0.0

    def test_overflowing_terms_count_as_zero(self):
        assert npv([-1000] + [1] * 400, 10.0) == pytest.approx(-999.9, abs=0.01)


class TestIRR:
    def test_reference_scenario(self):
        assert irr([-1000, 300, 300, 300, 300]) == pytest.approx(7.71, abs=0.05)

    def test_npv_at_irr_is_zero(self):
        flows = [-1000, 200, 400, 600]
        rate = irr(flows) / 100
        assert npv(flows, rate) == pytest.approx(0.0, abs=1e-3)

    def test_same_signed_terminates(self):
        result = irr([100, 100, 100])
        assert isinstance(result, float)

    def test_all_zero(self):
        assert irr([0, 0, 0]) == pytest.approx(10.0)

    def test_too_short(self):
        assert irr([]) == 0.0
        assert irr([-100]) == 0.0


class TestMIRR:
    def test_formula(self):
        flows = [-1000, 500, 700]
        fv = 500 * 1.10 + 700
        expected = ((fv / 1000) ** (1 / 2) - 1) * 100
        assert mirr(flows, 0.08, 0.10) == pytest.approx(expected)

    def test_no_negative_flows(self):
        assert mirr([100, 200], 0.08, 0.10) == 0.0

    def test_short(self):
        assert mirr([-100], 0.08, 0.10) == 0.0

    def test_overflowing_reinvestment_is_zero(self):
        assert mirr([-1000.0] + [10.0] * 400, 0.08, 5.0) == 0.0
        assert mirr([-1000.0] + [1.0] * 8000, 0.08, 0.10) == 0.0


class TestDiscountedPayback:
    def test_reference_scenario(self):
        assert discounted_payback([-1200, 400, 400, 400, 400], 0.12) == 4

    def test_immediately_positive(self):
        assert discounted_payback([100, -50], 0.12) == 0

    def test_never_reached(self):
        assert discounted_payback([-1000, 10, 10], 0.12) == 3

    def test_empty(self):
        assert discounted_payback([], 0.12) == 0


class TestProfitabilityIndex:
    def test_zero_rate(self):
        assert profitability_index([-100, 60, 60], 0.0) == pytest.approx(1.2)

    def test_no_costs(self):
        assert profitability_index([10, 20], 0.1) == 0.0


class TestMaxExposure:
    def test_deepest_point_and_period(self):
        records = [
            MonthlyRecord("2025-02", vendas_valor=10.0, contas_pagar=100.0),
            MonthlyRecord("2025-01", vendas_valor=0.0, custos_terreno=50.0),
            MonthlyRecord("2025-03", vendas_valor=200.0, custos_construcao=20.0),
        ]
        result = max_exposure(records)
        assert result.value == pytest.approx(140.0)
        assert result.period == "2025-02"

    def test_never_negative(self):
        result = max_exposure([MonthlyRecord("2025-01", vendas_valor=5.0)])
        assert result.value == 0.0
        assert result.period == "2025-01"

    def test_empty(self):
        assert max_exposure([]).value == 0.0


class TestRatios:
    def test_cost_ratios(self):
        assert land_cost_ratio(30, 100) == pytest.approx(30.0)
        assert construction_cost_ratio(55, 100) == pytest.approx(55.0)
        assert profitability_ratio(20, 100) == pytest.approx(20.0)

    def test_zero_vgv(self):
        assert cost_ratio(12, 0) == 0.0
        assert land_cost_ratio(30, 0) == 0.0
        assert profitability_ratio(20, 0) == 0.0

    def test_policy_flags(self):
        r = evaluate_cost_ratios(40, 50, 10, 100)
        assert not r.land_within_policy
        assert r.construction_within_policy
        assert not r.profitability_within_policy

    def test_custom_policy(self):
        r = evaluate_cost_ratios(40, 50, 10, 100, CostRatioPolicy(land_max_perc=45, profitability_min_perc=5))
        assert r.land_within_policy
        assert r.profitability_within_policy

    def test_market(self):
        assert price_per_area(1000, 10) == 100
        assert price_per_unit(1000, 0) == 0.0
        assert sales_velocity(25, 100) == pytest.approx(25.0)
