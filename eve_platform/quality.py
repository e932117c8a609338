"""Data-quality checklist and 0–100 score for a project's monthly records."""
from __future__ import annotations
from typing import List, Sequence

from .types import MonthlyRecord, QualityCheck

MIN_MONTHS = 6
PA_COVERAGE_THRESHOLD = 0.8


def _v(value):
    return value if value is not None else 0.0


def quality_checks(records: Sequence[MonthlyRecord]) -> List[QualityCheck]:
    """
    The fixed battery of checks. Each predicate looks at the whole list, so
    the outcome does not depend on record order. Empty input fails every check.
    """
    has = bool(records)
    return [
        # Completeness (30)
        QualityCheck("Period and VGV on every month", 15,
                     has and all(r.mes_ano and r.vgv is not None for r in records)),
        QualityCheck("Projected and realized flow on every month", 15,
                     has and all(r.fluxo_proj is not None and r.fluxo_real is not None for r in records)),
        # Consistency (40)
        QualityCheck("Sales never exceed VGV", 10,
                     has and all(_v(r.vendas_valor) <= _v(r.vgv) for r in records)),
        QualityCheck("Physical progress at most 100%", 10,
                     has and all(_v(r.avanco_fisico_perc) <= 100 for r in records)),
        QualityCheck("Financial progress at most 100%", 10,
                     has and all(_v(r.avanco_financeiro_perc) <= 100 for r in records)),
        QualityCheck("Positive profitability reported", 10,
                     any(r.rentabilidade_perc is not None and r.rentabilidade_perc > 0 for r in records)),
        # History depth and indicators (30)
        QualityCheck(f"At least {MIN_MONTHS} months of data", 10, len(records) >= MIN_MONTHS),
        QualityCheck("Maximum exposure reported", 10,
                     any(r.exposicao_maxima is not None for r in records)),
        QualityCheck("Project IRR reported", 10,
                     any(r.tir_projeto is not None for r in records)),
    ]


def quality_score(records: Sequence[MonthlyRecord]) -> int:
    if not records:
        return 0
    return min(100, sum(c.earned for c in quality_checks(records)))


def pa_coverage(real: Sequence[MonthlyRecord], pa: Sequence[MonthlyRecord]) -> float:
    """Share (0–1) of the baseline (PA) months that have a realized record."""
    if not real or not pa:
        return 0.0
    pa_months = {r.mes_ano for r in pa}
    real_months = {r.mes_ano for r in real}
    return len(pa_months & real_months) / len(pa_months)


def validate_pa_vs_real(real: Sequence[MonthlyRecord], pa: Sequence[MonthlyRecord]) -> bool:
    """True when at least 80% of the baseline (PA) months have realized data."""
    if not real or not pa:
        return False
    return pa_coverage(real, pa) >= PA_COVERAGE_THRESHOLD
