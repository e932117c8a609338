"""
tests/test_sample_data.py
==========================
Demo datasets feed the whole pipeline without errors.
"""
import pytest

from eve_platform.types import MonthlyRecord
from eve_platform.sample_data import generate_mock_data, generate_multiple_versions, generate_pa_baseline
from eve_platform.aggregator import calculate_kpis
from eve_platform.entities import calculate_entity_results
from eve_platform.quality import quality_score, validate_pa_vs_real
from eve_platform.comparison import compare_versions
from eve_platform.portfolio import consolidate_portfolio


class TestMockData:
    def test_shape(self):
        ds = generate_mock_data()
        assert len(ds.dados_mensais) == 9
        assert len(ds.marcos_projeto) == 7
        assert ds.projeto_info.versao == "3.2"
        assert ds.projeto_info.taxa_desconto_vpl == 12

    def test_pipeline(self):
        ds = generate_mock_data()
        kpis = calculate_kpis(ds.dados_mensais, show_accumulated=True)
        assert kpis.vgv.value == pytest.approx(76_914_000)
        results = calculate_entity_results(ds.dados_mensais, ds.projeto_info)
        assert results.projeto.custo_terreno_total > 0
        assert 0 <= quality_score(ds.dados_mensais) <= 100

    def test_baseline_covers_every_month(self):
        ds = generate_mock_data()
        baseline = generate_pa_baseline(ds.dados_mensais)
        assert baseline[0].vendas_valor == pytest.approx(ds.dados_mensais[0].vendas_valor * 1.1)
        assert validate_pa_vs_real(ds.dados_mensais, baseline)

    def test_baseline_keeps_absent_values_absent(self):
        baseline = generate_pa_baseline([MonthlyRecord("2025-01", vendas_valor=100.0)])
        assert baseline[0].vendas_valor == pytest.approx(110.0)
        assert baseline[0].custos_construcao is None
        assert baseline[0].fluxo_proj is None


class TestMultipleVersions:
    def test_deterministic(self):
        a = generate_multiple_versions(seed=7)
        b = generate_multiple_versions(seed=7)
        assert [r.fluxo_real for r in a[0].dados_mensais] == [r.fluxo_real for r in b[0].dados_mensais]

    def test_versions(self):
        versions = generate_multiple_versions()
        assert [v.projeto_info.versao for v in versions] == ["1.0", "2.0", "2.1"]

    def test_compare_and_consolidate(self):
        versions = generate_multiple_versions()
        result = compare_versions(versions[2], versions[0])
        assert result.significant_metrics
        portfolio = consolidate_portfolio(versions)
        assert portfolio.totals.vgv_total == pytest.approx(335_000_000)
