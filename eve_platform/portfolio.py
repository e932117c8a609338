"""
eve_platform/portfolio.py
==========================
Holding-level roll-up of several projects: one summary row per project,
straight-sum portfolio totals, and a consolidated DRE.

The consolidated DRE applies the fixed percentages of ``PortfolioDREPolicy``
to the portfolio sales, realized flow and payables totals. Those splits are
illustrative policy constants; the datasets' own cost fields are not read.
"""
from __future__ import annotations
import logging
from typing import List, Optional, Sequence

from .types import (
    ProjectDataset, PortfolioRow, PortfolioTotals, PortfolioResult,
    ConsolidatedDRE, DRECategory, DRELine, PortfolioDREPolicy,
)

logger = logging.getLogger(__name__)


def _v(value: Optional[float]) -> float:
    return value if value is not None else 0.0


def project_row(dataset: ProjectDataset) -> PortfolioRow:
    records = sorted(dataset.dados_mensais, key=lambda r: r.mes_ano)
    info = dataset.projeto_info
    latest = records[-1] if records else None

    vgv = info.vgv or (latest.vgv if latest else None) or 0.0
    vendas = sum(_v(r.vendas_valor) for r in records)
    return PortfolioRow(
        projeto=info.nome or "Projeto",
        versao=info.versao or "1.0",
        vgv=vgv,
        vendas_acumuladas=vendas,
        fluxo_projetado=sum(_v(r.fluxo_proj) for r in records),
        fluxo_realizado=sum(_v(r.fluxo_real) for r in records),
        contas_receber=sum(_v(r.contas_receber) for r in records),
        contas_pagar=sum(_v(r.contas_pagar) for r in records),
        rentabilidade=_v(latest.rentabilidade_perc) if latest else 0.0,
        avanco_fisico=_v(latest.avanco_fisico_perc) if latest else 0.0,
        perc_vendido=vendas / (vgv or 1) * 100,
    )


def portfolio_totals(rows: Sequence[PortfolioRow]) -> PortfolioTotals:
    totals = PortfolioTotals()
    for row in rows:
        totals.vgv_total += row.vgv
        totals.vendas_total += row.vendas_acumuladas
        totals.fluxo_proj_total += row.fluxo_projetado
        totals.fluxo_real_total += row.fluxo_realizado
        totals.contas_receber_total += row.contas_receber
        totals.contas_pagar_total += row.contas_pagar
    return totals


def consolidated_dre(totals: PortfolioTotals, policy: Optional[PortfolioDREPolicy] = None) -> ConsolidatedDRE:
    pol = policy or PortfolioDREPolicy()
    sales = totals.vendas_total
    categories = [
        DRECategory("Receitas Operacionais", [
            DRELine("Vendas Imobiliárias", sales, "receita"),
            DRELine("Receitas Financeiras", sales * pol.financial_revenue_on_sales, "receita"),
        ]),
        DRECategory("Custos e Despesas", [
            DRELine("Custo dos Imóveis Vendidos", sales * pol.cost_of_units_sold, "custo"),
            DRELine("Despesas Comerciais", sales * pol.commercial_expenses, "custo"),
            DRELine("Despesas Administrativas", sales * pol.administrative_expenses, "custo"),
        ]),
        DRECategory("Resultado Financeiro", [
            DRELine("Receitas Financeiras", totals.fluxo_real_total * pol.financial_revenue_on_cash, "receita"),
            DRELine("Despesas Financeiras", totals.contas_pagar_total * pol.financial_expense_on_payables, "custo"),
        ]),
    ]
    revenue = sum(l.valor for c in categories for l in c.linhas if l.tipo == "receita")
    costs = sum(l.valor for c in categories for l in c.linhas if l.tipo == "custo")
    return ConsolidatedDRE(categorias=categories, total_receitas=revenue, total_custos=costs)


def consolidate_portfolio(
    datasets: Sequence[ProjectDataset],
    policy: Optional[PortfolioDREPolicy] = None,
) -> PortfolioResult:
    rows: List[PortfolioRow] = [project_row(d) for d in datasets]
    totals = portfolio_totals(rows)
    dre = consolidated_dre(totals, policy)
    logger.debug("Consolidated %d projects, VGV total %.2f", len(rows), totals.vgv_total)
    return PortfolioResult(rows=rows, totals=totals, dre=dre)
