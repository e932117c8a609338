"""
eve_platform/comparison.py
===========================
Version-to-version comparison of project datasets.

For each metric and each analysis period (month, YTD, ITD, year, 100%
projection) the current and comparison values are read and the percentage
variance computed. YTD, ITD and year share the same aggregation (sum over
every record); they differ only in how the dashboard labels them.
"""
from __future__ import annotations
import logging
from dataclasses import replace
from typing import List, Optional, Sequence, Union

from .types import (
    ProjectDataset, MonthlyRecord, MetricDefinition, MetricComparison,
    PeriodValues, VersionComparison, ComparisonOptions,
)

logger = logging.getLogger(__name__)

PERIODS = ("month", "ytd", "itd", "year", "projection")

PERIOD_LABELS = {
    "month": "Mês Atual",
    "ytd": "YTD",
    "itd": "ITD",
    "year": "Ano Completo",
    "projection": "100% PROJ",
}

COMPARISON_METRICS: List[MetricDefinition] = [
    MetricDefinition("vendas_valor", "Vendas Realizadas", "currency", True),
    MetricDefinition("vendas_unid", "Unidades Vendidas", "number", True),
    MetricDefinition("vgv", "VGV Total", "currency", True, projection_from_info=True),
    MetricDefinition("fluxo_real", "Fluxo Realizado", "currency", True),
    MetricDefinition("fluxo_proj", "Fluxo Projetado", "currency", True),
    MetricDefinition("rentabilidade_perc", "Rentabilidade %", "percentage", True),
    MetricDefinition("avanco_fisico_perc", "Avanço Físico %", "percentage", True),
    MetricDefinition("contas_receber", "Contas a Receber", "currency", True),
    MetricDefinition("contas_pagar", "Contas a Pagar", "currency", False),
    MetricDefinition("inadimplencia_valor", "Inadimplência", "currency", False),
]

MetricLike = Union[str, MetricDefinition]


def _definition(metric: MetricLike) -> MetricDefinition:
    if isinstance(metric, MetricDefinition):
        return metric
    for m in COMPARISON_METRICS:
        if m.key == metric:
            return m
    return MetricDefinition(metric, metric, "number", True, projection_from_info=(metric == "vgv"))


def _field(record: MonthlyRecord, key: str) -> float:
    val = getattr(record, key, None)
    return float(val) if isinstance(val, (int, float)) else 0.0


# ─── Values & Variance ────────────────────────────────────────────────────────

def metric_value(dataset: ProjectDataset, period: str, metric: MetricLike) -> float:
    """Value of ``metric`` for one analysis period; 0 for an empty dataset."""
    definition = _definition(metric)
    records = sorted(dataset.dados_mensais, key=lambda r: r.mes_ano)
    if not records:
        return 0.0

    if period == "month":
        return _field(records[-1], definition.key)
    if period in ("ytd", "itd", "year"):
        return sum(_field(r, definition.key) for r in records)
    if period == "projection":
        if definition.projection_from_info:
            return dataset.projeto_info.vgv or 0.0
        return _field(records[-1], definition.key)
    return 0.0


def variance(current: float, previous: float) -> float:
    """(current - previous) / |previous| × 100; 100 or 0 when previous is 0."""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / abs(previous) * 100


def is_significant(variances: PeriodValues, threshold: float = 5.0) -> bool:
    return any(abs(v) > threshold for v in variances.as_dict().values())


def compare_metric(
    current: ProjectDataset,
    comparison: ProjectDataset,
    metric: MetricLike,
    threshold: float = 5.0,
) -> MetricComparison:
    definition = _definition(metric)
    cur = PeriodValues(**{p: metric_value(current, p, definition) for p in PERIODS})
    prev = PeriodValues(**{p: metric_value(comparison, p, definition) for p in PERIODS})
    cur_d, prev_d = cur.as_dict(), prev.as_dict()
    var = PeriodValues(**{p: variance(cur_d[p], prev_d[p]) for p in PERIODS})
    return MetricComparison(
        metric=definition,
        current=cur,
        previous=prev,
        variance=var,
        significant=is_significant(var, threshold),
    )


def compare_versions(
    current: ProjectDataset,
    comparison: ProjectDataset,
    metrics: Optional[Sequence[MetricLike]] = None,
    options: Optional[ComparisonOptions] = None,
) -> VersionComparison:
    """
    Compare two dataset versions metric by metric. With
    ``options.only_significant`` metrics whose five variances all stay within
    the threshold are dropped.
    """
    opts = options or ComparisonOptions()
    chosen = list(metrics) if metrics is not None else COMPARISON_METRICS
    rows = [compare_metric(current, comparison, m, opts.significance_threshold) for m in chosen]
    if opts.only_significant:
        rows = [r for r in rows if r.significant]

    result = VersionComparison(
        current_version=current.projeto_info.versao or "",
        compare_version=comparison.projeto_info.versao or "",
        metrics=rows,
    )
    logger.debug(
        "Compared v%s against v%s: %d metrics, %d significant",
        result.current_version, result.compare_version,
        len(rows), len(result.significant_metrics),
    )
    return result


# ─── Version History ──────────────────────────────────────────────────────────

def assign_version_tags(history: Sequence[ProjectDataset]) -> List[ProjectDataset]:
    """
    Give every dataset a version tag. Untagged datasets receive the next
    free sequential tag ("1.0", "2.0", ...); the input objects are left as is.
    """
    used = {d.projeto_info.versao for d in history if d.projeto_info.versao}
    counter = 0
    out: List[ProjectDataset] = []
    for dataset in history:
        if dataset.projeto_info.versao:
            out.append(dataset)
            continue
        counter += 1
        while f"{counter}.0" in used:
            counter += 1
        tag = f"{counter}.0"
        used.add(tag)
        out.append(replace(dataset, projeto_info=replace(dataset.projeto_info, versao=tag)))
    return out


def find_version(history: Sequence[ProjectDataset], tag: str) -> Optional[ProjectDataset]:
    for dataset in history:
        if dataset.projeto_info.versao == tag:
            return dataset
    return None


def comparable_versions(history: Sequence[ProjectDataset], current: ProjectDataset) -> List[ProjectDataset]:
    """Versions in the history other than the current one."""
    return [d for d in history if d.projeto_info.versao != current.projeto_info.versao]
