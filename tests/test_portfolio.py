"""
tests/test_portfolio.py
========================
Holding-level consolidation.
"""
import pytest

from eve_platform.types import MonthlyRecord, ProjectInfo, ProjectDataset, PortfolioDREPolicy
from eve_platform.portfolio import project_row, portfolio_totals, consolidated_dre, consolidate_portfolio


@pytest.fixture
def two_projects():
    a = ProjectDataset(
        dados_mensais=[
            MonthlyRecord("2025-01", vendas_valor=100.0, fluxo_proj=-50.0, fluxo_real=-40.0,
                          contas_receber=70.0, contas_pagar=30.0),
            MonthlyRecord("2025-02", vendas_valor=200.0, fluxo_proj=80.0, fluxo_real=90.0,
                          rentabilidade_perc=12.0, avanco_fisico_perc=35.0),
        ],
        projeto_info=ProjectInfo(nome="A", versao="1.0", vgv=1000.0),
    )
    b = ProjectDataset(
        dados_mensais=[MonthlyRecord("2025-01", vgv=500.0, vendas_valor=50.0, contas_pagar=20.0)],
        projeto_info=ProjectInfo(),
    )
    return [a, b]


class TestProjectRow:
    def test_sums_and_latest(self, two_projects):
        row = project_row(two_projects[0])
        assert row.projeto == "A"
        assert row.vendas_acumuladas == 300.0
        assert row.fluxo_projetado == 30.0
        assert row.fluxo_realizado == 50.0
        assert row.variacao_fluxo == 20.0
        assert row.saldo_liquido == 40.0
        assert row.rentabilidade == 12.0
        assert row.avanco_fisico == 35.0
        assert row.perc_vendido == pytest.approx(30.0)

    def test_defaults_and_vgv_fallback(self, two_projects):
        row = project_row(two_projects[1])
        assert (row.projeto, row.versao) == ("Projeto", "1.0")
        assert row.vgv == 500.0
        assert row.perc_vendido == pytest.approx(10.0)

    def test_no_vgv(self):
        row = project_row(ProjectDataset(dados_mensais=[MonthlyRecord("2025-01", vendas_valor=5.0)]))
        assert row.vgv == 0.0
        assert row.perc_vendido == pytest.approx(500.0)


class TestConsolidation:
    def test_totals(self, two_projects):
        result = consolidate_portfolio(two_projects)
        t = result.totals
        assert len(result.rows) == 2
        assert t.vgv_total == 1500.0
        assert t.vendas_total == 350.0
        assert t.contas_pagar_total == 50.0

    def test_dre_default_policy(self, two_projects):
        dre = consolidate_portfolio(two_projects).dre
        assert [c.categoria for c in dre.categorias] == [
            "Receitas Operacionais", "Custos e Despesas", "Resultado Financeiro",
        ]
        # sales 350, realized flow 50, payables 50
        assert dre.total_receitas == pytest.approx(350 + 7 + 0.5)
        assert dre.total_custos == pytest.approx(350 * 0.78 + 1.0)
        assert dre.resultado == pytest.approx(dre.total_receitas - dre.total_custos)

    def test_custom_policy(self, two_projects):
        totals = portfolio_totals([project_row(d) for d in two_projects])
        policy = PortfolioDREPolicy(cost_of_units_sold=0.0, commercial_expenses=0.0,
                                    administrative_expenses=0.0, financial_expense_on_payables=0.0)
        assert consolidated_dre(totals, policy).total_custos == 0.0

    def test_empty(self):
        result = consolidate_portfolio([])
        assert result.rows == []
        assert result.dre.resultado == 0.0
