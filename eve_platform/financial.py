"""
eve_platform/financial.py
==========================
Discounted cash-flow metrics and cost/market ratios for real-estate
feasibility studies (EVE, Estudo de Viabilidade Econômico-financeira).

Covers:
  - VPL / NPV, TIR / IRR (Newton-Raphson), MTIR / MIRR
  - Discounted payback (monthly periods, annual rate)
  - IL / profitability index
  - Maximum cash exposure over the project timeline
  - Cost ratios (land, construction, profitability over VGV)
  - Market ratios (price per m², price per unit, sales velocity)

Every function is total: degenerate input (empty vectors, zero denominators)
yields 0 or an empty result instead of raising.
"""
from __future__ import annotations
import logging
import math
from typing import List, Optional, Sequence

from .types import MonthlyRecord, ExposureResult, CostRatios, CostRatioPolicy

logger = logging.getLogger(__name__)

IRR_INITIAL_GUESS = 0.10
IRR_MAX_ITERATIONS = 100
IRR_PRECISION = 1e-6


def _v(value: Optional[float]) -> float:
    return value if value is not None else 0.0


def _ratio_perc(num: float, den: float) -> float:
    return (num / den) * 100 if den != 0 else 0.0


def _sorted(records: Sequence[MonthlyRecord]) -> List[MonthlyRecord]:
    return sorted(records, key=lambda r: r.mes_ano)


# ─── Cash-Flow Vector ─────────────────────────────────────────────────────────

def cash_flow_vector(records: Sequence[MonthlyRecord]) -> List[float]:
    """Realized flow per period, falling back to projected flow, in period order."""
    flows: List[float] = []
    for r in _sorted(records):
        if r.fluxo_real is not None:
            flows.append(r.fluxo_real)
        elif r.fluxo_proj is not None:
            flows.append(r.fluxo_proj)
        else:
            flows.append(0.0)
    return flows


# ─── Dynamic Indicators ───────────────────────────────────────────────────────

def npv(flows: Sequence[float], rate: float) -> float:
    """
    VPL = Σ F[t] / (1+i)^t, t starting at 0.

    A term whose discount factor overflows is taken as 0. A zero factor
    (rate of -100%) makes the sum undefined and yields 0.
    """
    if not flows:
        return 0.0
    total = 0.0
    for t, f in enumerate(flows):
        try:
            total += f / (1 + rate) ** t
        except OverflowError:
            continue
        except ZeroDivisionError:
            return 0.0
    return total


def irr(flows: Sequence[float]) -> float:
    """
    TIR via Newton-Raphson, returned as a percentage.

    Starts at 10%, runs at most 100 iterations and stops once |NPV| or the
    derivative drops below 1e-6. On non-convergence the last estimate is
    returned: this is a bounded approximation, not a validated root. For
    same-signed vectors the result carries no economic meaning.
    """
    if not flows or len(flows) < 2:
        return 0.0

    rate = IRR_INITIAL_GUESS
    for iteration in range(IRR_MAX_ITERATIONS):
        value = 0.0
        derivative = 0.0
        try:
            for t, f in enumerate(flows):
                factor = (1 + rate) ** t
                value += f / factor
                derivative -= t * f / (factor * (1 + rate))
        except (OverflowError, ZeroDivisionError):
            logger.debug("IRR stopped at iteration %d: arithmetic overflow at rate %s", iteration, rate)
            break

        if abs(value) < IRR_PRECISION:
            break
        if abs(derivative) < IRR_PRECISION:
            logger.debug("IRR derivative vanished at iteration %d", iteration)
            break

        nxt = rate - value / derivative
        if not math.isfinite(nxt):
            break
        rate = nxt
    else:
        logger.debug("IRR did not converge in %d iterations", IRR_MAX_ITERATIONS)

    return rate * 100


def mirr(flows: Sequence[float], financing_rate: float, reinvestment_rate: float) -> float:
    """
    MTIR, as a percentage:
    (FV of positive flows at reinvestment rate / |PV of negative flows at
    financing rate|) ^ (1/(n-1)) - 1. Returns 0 when there is no negative PV
    or the compounding leaves the float range.
    """
    if not flows or len(flows) < 2:
        return 0.0

    n = len(flows)
    negatives = [f if f < 0 else 0.0 for f in flows]
    pv_negative = abs(npv(negatives, financing_rate))
    if pv_negative == 0:
        return 0.0

    try:
        fv_positive = 0.0
        for t, f in enumerate(flows):
            if f > 0:
                fv_positive += f * (1 + reinvestment_rate) ** (n - 1 - t)
        ratio = fv_positive / pv_negative
        if ratio < 0 or not math.isfinite(ratio):
            return 0.0
        result = (ratio ** (1 / (n - 1)) - 1) * 100
    except (OverflowError, ZeroDivisionError):
        logger.debug("MIRR overflow over %d flows at reinvestment rate %s", n, reinvestment_rate)
        return 0.0
    return result if math.isfinite(result) else 0.0


def discounted_payback(flows: Sequence[float], annual_rate: float) -> int:
    """
    First period whose cumulative flow, discounted at annual_rate/12 per
    period, is non-negative. Returns len(flows) when never reached.
    """
    if not flows:
        return 0
    monthly = annual_rate / 12
    balance = 0.0
    try:
        for t, f in enumerate(flows):
            balance += f / (1 + monthly) ** t
            if balance >= 0:
                return t
    except (OverflowError, ZeroDivisionError):
        pass
    return len(flows)


def profitability_index(flows: Sequence[float], rate: float) -> float:
    """IL = PV(positive flows) / PV(|negative flows|); 0 when there are no costs."""
    if not flows:
        return 0.0
    benefits = npv([f if f > 0 else 0.0 for f in flows], rate)
    costs = npv([abs(f) if f < 0 else 0.0 for f in flows], rate)
    return benefits / costs if costs != 0 else 0.0


def max_exposure(records: Sequence[MonthlyRecord]) -> ExposureResult:
    """
    Largest negative cumulative position of sales minus
    (payables + construction + land), with the period it occurred in.
    """
    if not records:
        return ExposureResult()

    ordered = _sorted(records)
    balance = 0.0
    worst = 0.0
    worst_period = ordered[0].mes_ano
    for r in ordered:
        inflow = _v(r.vendas_valor)
        outflow = _v(r.contas_pagar) + _v(r.custos_construcao) + _v(r.custos_terreno)
        balance += inflow - outflow
        if balance < worst:
            worst = balance
            worst_period = r.mes_ano
    return ExposureResult(value=abs(worst), period=worst_period)


# ─── Cost Ratios ──────────────────────────────────────────────────────────────

def cost_ratio(cost: float, vgv: float) -> float:
    """Any cost line as a percentage of VGV; 0 when VGV is 0."""
    return _ratio_perc(cost, vgv)


def land_cost_ratio(land_cost: float, vgv: float) -> float:
    """Custo Terreno / VGV × 100. Recommended below 35%."""
    return cost_ratio(land_cost, vgv)


def construction_cost_ratio(construction_cost: float, vgv: float) -> float:
    """Custo Construção / VGV × 100. Recommended below 60% (usually 45–55%)."""
    return cost_ratio(construction_cost, vgv)


def profitability_ratio(net_result: float, vgv: float) -> float:
    """Lucratividade = resultado / VGV × 100. Recommended above 15%."""
    return _ratio_perc(net_result, vgv)


def evaluate_cost_ratios(
    land_cost: float,
    construction_cost: float,
    net_result: float,
    vgv: float,
    policy: Optional[CostRatioPolicy] = None,
) -> CostRatios:
    pol = policy or CostRatioPolicy()
    land = land_cost_ratio(land_cost, vgv)
    construction = construction_cost_ratio(construction_cost, vgv)
    profit = profitability_ratio(net_result, vgv)
    return CostRatios(
        land_vgv_perc=land,
        construction_vgv_perc=construction,
        profitability_vgv_perc=profit,
        land_within_policy=land < pol.land_max_perc,
        construction_within_policy=construction < pol.construction_max_perc,
        profitability_within_policy=profit > pol.profitability_min_perc,
    )


# ─── Market Ratios ────────────────────────────────────────────────────────────

def price_per_area(vgv: float, private_area_total: float) -> float:
    return vgv / private_area_total if private_area_total != 0 else 0.0


def price_per_unit(vgv: float, unit_count: float) -> float:
    return vgv / unit_count if unit_count != 0 else 0.0


def sales_velocity(units_sold: float, units_total: float) -> float:
    """VSO = sold / total × 100."""
    return _ratio_perc(units_sold, units_total)
