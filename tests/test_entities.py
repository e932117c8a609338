"""
tests/test_entities.py
=======================
Project / holding / investor results.
"""
import pytest

from eve_platform.types import MonthlyRecord, ProjectInfo, HoldingPolicy
from eve_platform.financial import npv, irr, cash_flow_vector
from eve_platform.entities import (
    DEFAULT_DISCOUNT_RATE,
    resolve_discount_rate,
    bounded_discount_rate,
    calculate_entity_results,
)


@pytest.fixture
def project_records():
    return [
        MonthlyRecord("2025-01", vgv=1000.0, fluxo_real=-500.0, custos_terreno=200.0,
                      resultado_operacional=-50.0, receita_incorporacao=0.0),
        MonthlyRecord("2025-02", vgv=1000.0, fluxo_real=200.0, vendas_valor=300.0,
                      resultado_operacional=100.0, receita_incorporacao=300.0,
                      custos_financiamento=20.0),
        MonthlyRecord("2025-03", vgv=1000.0, fluxo_real=450.0, vendas_valor=400.0,
                      resultado_operacional=150.0, receita_incorporacao=400.0),
    ]


class TestDiscountRate:
    def test_explicit_wins(self):
        assert resolve_discount_rate(ProjectInfo(taxa_desconto_vpl=15), 0.05) == 0.05

    def test_from_project_info(self):
        assert resolve_discount_rate(ProjectInfo(taxa_desconto_vpl=15)) == pytest.approx(0.15)

    def test_default(self):
        assert resolve_discount_rate(None) == DEFAULT_DISCOUNT_RATE

    def test_bounded_rate_clamps_to_range(self):
        assert bounded_discount_rate(ProjectInfo(taxa_desconto_vpl=45), 0.0, 30.0) == 30.0
        assert bounded_discount_rate(ProjectInfo(taxa_desconto_vpl=-2), 0.0, 30.0) == 0.0
        assert bounded_discount_rate(ProjectInfo(taxa_desconto_vpl=12), 0.0, 30.0) == 12.0

    def test_bounded_rate_unset(self):
        assert bounded_discount_rate(ProjectInfo(), 0.0, 30.0) is None
        assert bounded_discount_rate(None, 0.0, 30.0) is None


class TestProjectEntity:
    def test_totals(self, project_records):
        info = ProjectInfo(area_terreno=400.0, num_uhs=10)
        p = calculate_entity_results(project_records, info, 0.10).projeto
        assert p.resultado == pytest.approx(200.0)
        assert p.resultado_vgv_perc == pytest.approx(20.0)
        assert p.receita_financeira == pytest.approx(700.0)
        assert p.despesa_financeira == pytest.approx(20.0)
        assert p.custo_terreno_total == pytest.approx(200.0)
        assert p.custo_terreno_m2 == pytest.approx(0.5)
        assert p.custo_terreno_vgv_perc == pytest.approx(20.0)
        assert p.area_terreno_por_uh == pytest.approx(40.0)

    def test_npv_and_irr_from_flows(self, project_records):
        p = calculate_entity_results(project_records, discount_rate=0.10).projeto
        flows = cash_flow_vector(project_records)
        assert p.vpv == pytest.approx(npv(flows, 0.10))
        assert p.tir == pytest.approx(irr(flows))

    def test_exposure(self, project_records):
        p = calculate_entity_results(project_records).projeto
        assert p.exposicao_maxima == pytest.approx(200.0)
        assert p.data_exposicao_maxima == "2025-01"

    def test_vgv_falls_back_to_info(self):
        records = [MonthlyRecord("2025-01", resultado_operacional=50.0)]
        p = calculate_entity_results(records, ProjectInfo(vgv=500.0)).projeto
        assert p.resultado_vgv_perc == pytest.approx(10.0)

    def test_missing_land_area(self, project_records):
        p = calculate_entity_results(project_records).projeto
        assert p.custo_terreno_m2 == 0.0
        assert p.area_terreno_por_uh == 0.0


class TestHoldingEntity:
    def test_default_policy(self, project_records):
        results = calculate_entity_results(project_records, discount_rate=0.10)
        p, h = results.projeto, results.holding
        assert h.resultado_total == pytest.approx(p.resultado * 1.15)
        assert h.dividendos == pytest.approx(p.resultado * 0.6)
        assert h.vpv == pytest.approx(p.vpv * 1.1)
        assert h.tir == pytest.approx(p.tir * 1.05)
        assert h.exposicao_maxima == pytest.approx(p.exposicao_maxima * 1.2)
        assert h.roi == pytest.approx(100.0)

    def test_roi_zero_when_loss(self):
        records = [MonthlyRecord("2025-01", custos_terreno=100.0, resultado_operacional=-10.0)]
        assert calculate_entity_results(records).holding.roi == 0.0

    def test_custom_policy(self, project_records):
        policy = HoldingPolicy(result_markup=1.0, dividend_split=0.5)
        h = calculate_entity_results(project_records, policy=policy).holding
        assert h.resultado_total == pytest.approx(200.0)
        assert h.dividendos == pytest.approx(100.0)


class TestInvestorEntity:
    def test_absent_by_default(self, project_records):
        assert calculate_entity_results(project_records).investidor is None

    def test_scaled_by_stake(self, project_records):
        results = calculate_entity_results(project_records, ProjectInfo(participacao_investidor=0.25))
        inv, h = results.investidor, results.holding
        assert inv is not None
        assert inv.resultado_total == pytest.approx(h.resultado_total * 0.25)
        assert inv.tir == h.tir


class TestEmpty:
    def test_all_zero(self):
        results = calculate_entity_results([])
        assert results.projeto.vpv == 0.0
        assert results.holding.resultado_total == 0.0
        assert results.investidor is None
