"""
eve_platform/entities.py
=========================
Per-entity results (Projeto / Holding / Investidor) for a single dataset.

The project entity is computed from the records. Holding and investor figures
are derived from it through ``HoldingPolicy`` markups and splits, which stand
in for real inter-company transfer rules.
"""
from __future__ import annotations
import logging
from typing import Optional, Sequence

from .types import (
    MonthlyRecord, ProjectInfo, EntityResults, ProjectEntityResult,
    HoldingEntityResult, HoldingPolicy,
)
from .financial import (
    cash_flow_vector, npv, irr, mirr, max_exposure,
    land_cost_ratio, profitability_ratio,
)

logger = logging.getLogger(__name__)

DEFAULT_DISCOUNT_RATE = 0.12


def _v(value: Optional[float]) -> float:
    return value if value is not None else 0.0


def resolve_discount_rate(projeto_info: Optional[ProjectInfo], discount_rate: Optional[float] = None) -> float:
    """Explicit rate, else the project's ``taxa_desconto_vpl`` (percent), else 12%."""
    if discount_rate is not None:
        return discount_rate
    if projeto_info is not None and projeto_info.taxa_desconto_vpl is not None:
        return projeto_info.taxa_desconto_vpl / 100
    return DEFAULT_DISCOUNT_RATE


def bounded_discount_rate(projeto_info: Optional[ProjectInfo], low: float, high: float) -> Optional[float]:
    """The project's ``taxa_desconto_vpl`` (percent) clamped to [low, high]; None when unset."""
    if projeto_info is None or projeto_info.taxa_desconto_vpl is None:
        return None
    return min(max(float(projeto_info.taxa_desconto_vpl), low), high)


def _project_result(
    records: Sequence[MonthlyRecord],
    info: ProjectInfo,
    rate: float,
) -> ProjectEntityResult:
    ordered = sorted(records, key=lambda r: r.mes_ano)
    flows = cash_flow_vector(ordered)
    exposure = max_exposure(ordered)
    latest = ordered[-1]

    if latest.vgv is not None:
        vgv = latest.vgv
    else:
        vgv = _v(info.vgv)

    land_total = sum(_v(r.custos_terreno) for r in ordered)
    resultado = sum(_v(r.resultado_operacional) for r in ordered)
    area_terreno = _v(info.area_terreno)
    num_uhs = _v(info.num_uhs)

    return ProjectEntityResult(
        resultado=resultado,
        resultado_vgv_perc=profitability_ratio(resultado, vgv),
        vpv=npv(flows, rate),
        tir=irr(flows),
        receita_financeira=sum(_v(r.receita_incorporacao) for r in ordered),
        despesa_financeira=sum(_v(r.custos_financiamento) for r in ordered),
        exposicao_maxima=exposure.value,
        data_exposicao_maxima=exposure.period,
        custo_terreno_total=land_total,
        custo_terreno_m2=land_total / area_terreno if area_terreno else 0.0,
        custo_terreno_vgv_perc=land_cost_ratio(land_total, vgv),
        area_terreno_por_uh=area_terreno / num_uhs if area_terreno and num_uhs else 0.0,
    )


def _holding_result(
    projeto: ProjectEntityResult,
    flows: Sequence[float],
    policy: HoldingPolicy,
) -> HoldingEntityResult:
    resultado = projeto.resultado
    land_total = abs(projeto.custo_terreno_total)
    roi = (resultado / land_total) * 100 if resultado > 0 and land_total else 0.0
    return HoldingEntityResult(
        resultado_total=resultado * policy.result_markup,
        dividendos=resultado * policy.dividend_split,
        vpv=projeto.vpv * policy.npv_markup,
        roi=roi,
        tir=projeto.tir * policy.irr_markup,
        mtir=mirr(flows, policy.financing_rate, policy.reinvestment_rate),
        exposicao_maxima=projeto.exposicao_maxima * policy.exposure_markup,
    )


def _investor_result(holding: HoldingEntityResult, stake: float) -> HoldingEntityResult:
    # Amounts scale with the stake; rates stay as computed for the holding.
    return HoldingEntityResult(
        resultado_total=holding.resultado_total * stake,
        dividendos=holding.dividendos * stake,
        vpv=holding.vpv * stake,
        roi=holding.roi,
        tir=holding.tir,
        mtir=holding.mtir,
        exposicao_maxima=holding.exposicao_maxima * stake,
    )


def calculate_entity_results(
    records: Sequence[MonthlyRecord],
    projeto_info: Optional[ProjectInfo] = None,
    discount_rate: Optional[float] = None,
    policy: Optional[HoldingPolicy] = None,
) -> EntityResults:
    """
    Project, holding and (when ``participacao_investidor`` is set) investor
    results. Empty input yields all-zero results and no investor.
    """
    if not records:
        return EntityResults()

    info = projeto_info or ProjectInfo()
    pol = policy or HoldingPolicy()
    rate = resolve_discount_rate(info, discount_rate)

    projeto = _project_result(records, info, rate)
    flows = cash_flow_vector(records)
    holding = _holding_result(projeto, flows, pol)

    investidor = None
    stake = info.participacao_investidor
    if stake is not None and stake > 0:
        investidor = _investor_result(holding, stake)

    logger.debug(
        "Entity results for %s: VPL=%.2f TIR=%.2f%% (rate %.4f)",
        info.nome or "project", projeto.vpv, projeto.tir, rate,
    )
    return EntityResults(projeto=projeto, holding=holding, investidor=investidor)
