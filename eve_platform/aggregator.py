"""
eve_platform/aggregator.py
===========================
Time-series aggregation over a project's monthly records: headline KPIs
(single month or accumulated to date), month-over-month variation, and the
chart-ready series and DRE table consumed by the dashboard.

Input order never matters: every entry point sorts by ``mes_ano`` first and
returns freshly built structures.
"""
from __future__ import annotations
import math
from dataclasses import asdict
from typing import Dict, List, Optional, Sequence

import pandas as pd

from .types import (
    MonthlyRecord, Milestone, KPIResult, ProfitabilityKPI, VGVKPI, UnitsValueKPI,
    DelinquencyKPI, SeriesRow,
)

# Sales target when the sheet has none: realized sales + 10%
DEFAULT_SALES_TARGET_FACTOR = 1.10
# Display-only baseline drawn under the operational/financial charts
PA_REFERENCE_FACTOR = 0.95


def _v(value: Optional[float]) -> float:
    return value if value is not None else 0.0


# ─── Ordering Helpers ─────────────────────────────────────────────────────────

def sort_records(records: Sequence[MonthlyRecord]) -> List[MonthlyRecord]:
    return sorted(records, key=lambda r: r.mes_ano)


def available_months(records: Sequence[MonthlyRecord]) -> List[str]:
    """Periods newest first (the default selection is the first entry)."""
    return sorted({r.mes_ano for r in records}, reverse=True)


def records_to_frame(records: Sequence[MonthlyRecord]) -> pd.DataFrame:
    """Tabular view of the records, chronological, absent values as NaN."""
    rows = [asdict(r) for r in sort_records(records)]
    if not rows:
        return pd.DataFrame(columns=["mes_ano"])
    return pd.DataFrame(rows).set_index("mes_ano", drop=False)


# ─── KPIs ─────────────────────────────────────────────────────────────────────

def _estimate_payback(ordered: List[MonthlyRecord]) -> float:
    cumulative = 0.0
    for i, r in enumerate(ordered):
        cumulative += _v(r.fluxo_real)
        if cumulative >= 0:
            return float(i + 1)
    return 0.0


def _kpis_for_period(ordered: List[MonthlyRecord], period: str, accumulated: bool) -> KPIResult:
    if accumulated:
        window = [r for r in ordered if r.mes_ano <= period]
    else:
        window = [r for r in ordered if r.mes_ano == period]
    if not window:
        return KPIResult(period=period)

    latest = window[-1]

    # Profitability: provided, else estimated from sales over payables
    rentabilidade = _v(latest.rentabilidade_perc)
    estimated = False
    if latest.rentabilidade_perc is None and latest.vendas_valor is not None and latest.contas_pagar:
        rentabilidade = (latest.vendas_valor / latest.contas_pagar - 1) * 100
        estimated = True

    pa_meses = latest.pa_meses if latest.pa_meses is not None else _estimate_payback(ordered)

    vgv = _v(latest.vgv)
    if accumulated:
        sales_value = sum(_v(r.vendas_valor) for r in window)
        sales_units = sum(_v(r.vendas_unid) for r in window)
    else:
        sales_value = _v(latest.vendas_valor)
        sales_units = _v(latest.vendas_unid)
    percent_sold = (sales_value / vgv) * 100 if vgv > 0 else 0.0

    # Inventory is a stock: always the latest month
    inventory = UnitsValueKPI(units=_v(latest.estoque_unid), value=_v(latest.estoque_valor))

    delinquency_perc = _v(latest.inadimplencia_perc)
    if latest.inadimplencia_valor is not None:
        delinquency_value = latest.inadimplencia_valor
    elif delinquency_perc > 0 and latest.contas_receber is not None:
        delinquency_value = (delinquency_perc / 100) * latest.contas_receber
    else:
        delinquency_value = 0.0

    return KPIResult(
        period=period,
        profitability=ProfitabilityKPI(value=rentabilidade, pa_meses=pa_meses, is_estimated=estimated),
        vgv=VGVKPI(value=vgv, percent_sold=percent_sold),
        accumulated_sales=UnitsValueKPI(units=sales_units, value=sales_value),
        inventory=inventory,
        delinquency=DelinquencyKPI(percent=delinquency_perc, value=delinquency_value),
    )


def flat_kpis(kpis: KPIResult) -> Dict[str, float]:
    """KPI values keyed by name, the shape used for variation and tables."""
    return {
        "rentabilidade": kpis.profitability.value,
        "pa_meses": kpis.profitability.pa_meses,
        "vgv": kpis.vgv.value,
        "percent_vendido": kpis.vgv.percent_sold,
        "vendas_unidades": kpis.accumulated_sales.units,
        "vendas_valor": kpis.accumulated_sales.value,
        "estoque_unidades": kpis.inventory.units,
        "estoque_valor": kpis.inventory.value,
        "inadimplencia_perc": kpis.delinquency.percent,
        "inadimplencia_valor": kpis.delinquency.value,
    }


def _pct_change(current: float, previous: Optional[float]) -> float:
    if not previous:
        return 0.0
    return (current - previous) / abs(previous) * 100


def calculate_kpis(
    records: Sequence[MonthlyRecord],
    selected_month: Optional[str] = None,
    show_accumulated: bool = False,
) -> KPIResult:
    """
    Headline KPIs for ``selected_month`` (latest month when omitted).

    With ``show_accumulated`` flows are summed over every month up to the
    selection; stocks (inventory, delinquency) always read the latest month.
    ``variation`` compares against the preceding chronological month.
    """
    ordered = sort_records(records)
    if not ordered:
        return KPIResult(period=selected_month or "")

    period = selected_month or ordered[-1].mes_ano
    result = _kpis_for_period(ordered, period, show_accumulated)

    earlier = [r.mes_ano for r in ordered if r.mes_ano < period]
    current = flat_kpis(result)
    if earlier:
        previous = flat_kpis(_kpis_for_period(ordered, earlier[-1], show_accumulated))
        result.variation = {k: _pct_change(v, previous.get(k)) for k, v in current.items()}
    else:
        result.variation = {k: 0.0 for k in current}
    return result


# ─── Chart Series ─────────────────────────────────────────────────────────────

def cash_flow_series(records: Sequence[MonthlyRecord]) -> List[SeriesRow]:
    return [
        {"period": r.mes_ano, "projected": _v(r.fluxo_proj), "realized": _v(r.fluxo_real)}
        for r in sort_records(records)
    ]


def sales_series(records: Sequence[MonthlyRecord]) -> List[SeriesRow]:
    rows: List[SeriesRow] = []
    for r in sort_records(records):
        vendas = _v(r.vendas_valor)
        meta = r.vendas_meta if r.vendas_meta is not None else vendas * DEFAULT_SALES_TARGET_FACTOR
        rows.append({"period": r.mes_ano, "vendas": vendas, "meta": meta})
    return rows


def progress_series(records: Sequence[MonthlyRecord]) -> List[SeriesRow]:
    return [
        {
            "period": r.mes_ano,
            "fisico": _v(r.avanco_fisico_perc),
            "financeiro": _v(r.avanco_financeiro_perc),
            "fisico_proj": _v(r.avanco_fisico_proj),
        }
        for r in sort_records(records)
    ]


def operational_cash_flow_series(records: Sequence[MonthlyRecord]) -> List[SeriesRow]:
    rows: List[SeriesRow] = []
    for r in sort_records(records):
        operational = r.fluxo_real if r.fluxo_real is not None else _v(r.fluxo_proj)
        rows.append({
            "period": r.mes_ano,
            "operational": operational,
            "pa_reference": _v(r.fluxo_proj) * PA_REFERENCE_FACTOR,
        })
    return rows


def financial_progress_series(records: Sequence[MonthlyRecord]) -> List[SeriesRow]:
    rows: List[SeriesRow] = []
    for r in sort_records(records):
        planned = _v(r.avanco_financeiro_proj)
        rows.append({
            "period": r.mes_ano,
            "financeiro_planejado": planned,
            "financeiro_realizado": _v(r.avanco_financeiro_perc),
            "pa_reference": planned * PA_REFERENCE_FACTOR,
        })
    return rows


# ─── Milestone Timeline ───────────────────────────────────────────────────────

MIN_MILESTONE_WIDTH = 2.0


def milestone_timeline(milestones: Sequence[Milestone]) -> List[SeriesRow]:
    """
    Horizontal positions (percent of the padded date range) for a Gantt view.
    The range runs from one month before the earliest date to one month after
    the latest. Milestones with unparseable dates are skipped.
    """
    parsed = []
    for m in milestones:
        start = pd.to_datetime(m.inicio, errors="coerce")
        end = pd.to_datetime(m.fim, errors="coerce")
        if pd.isna(start) or pd.isna(end):
            continue
        parsed.append((m, start, end))
    if not parsed:
        return []

    lo = min(min(s, e) for _, s, e in parsed) - pd.DateOffset(months=1)
    hi = max(max(s, e) for _, s, e in parsed) + pd.DateOffset(months=1)
    total_days = math.ceil((hi - lo).total_seconds() / 86400)

    rows: List[SeriesRow] = []
    for m, start, end in parsed:
        offset_days = math.ceil((start - lo).total_seconds() / 86400)
        span_days = math.ceil((end - start).total_seconds() / 86400)
        rows.append({
            "marco": m.marco,
            "status": m.status,
            "inicio": start.strftime("%Y-%m-%d"),
            "fim": end.strftime("%Y-%m-%d"),
            "left_pct": offset_days / total_days * 100,
            "width_pct": max(span_days / total_days * 100, MIN_MILESTONE_WIDTH),
        })
    return rows


# ─── DRE Table ────────────────────────────────────────────────────────────────

def calculate_dre(records: Sequence[MonthlyRecord], show_accumulated: bool = False) -> List[SeriesRow]:
    """Revenue (sales) minus cost (payables), per month or as running totals."""
    rows: List[SeriesRow] = []
    receita_acc = 0.0
    custos_acc = 0.0
    for r in sort_records(records):
        receita = _v(r.vendas_valor)
        custos = _v(r.contas_pagar)
        if show_accumulated:
            receita_acc += receita
            custos_acc += custos
            receita, custos = receita_acc, custos_acc
        rows.append({
            "period": r.mes_ano,
            "receita": receita,
            "custos": custos,
            "resultado": receita - custos,
        })
    return rows
