"""
eve_platform/formatting.py
===========================
Brazilian (pt-BR) number formatting for reais, percentages and counts,
period labels, and colour helpers for the dashboard.
"""
from __future__ import annotations
from typing import Optional

from .types import VarianceTone

NOT_AVAILABLE = "N/A"


def _br(text: str) -> str:
    # "1,234,567.89" → "1.234.567,89"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def format_number(value: Optional[float], decimals: int = 0) -> str:
    if value is None:
        return NOT_AVAILABLE
    return _br(f"{value:,.{decimals}f}")


def format_currency(value: Optional[float], decimals: int = 0) -> str:
    """
    Format a value in reais.
    e.g. 1234567 → "R$ 1.234.567", -500 → "-R$ 500"
    """
    if value is None:
        return NOT_AVAILABLE
    sign = "-" if value < 0 else ""
    return f"{sign}R$ {format_number(abs(value), decimals)}"


def format_compact_currency(value: Optional[float]) -> str:
    """Short form for KPI cards: mi / mil."""
    if value is None:
        return NOT_AVAILABLE
    abs_val = abs(value)
    sign = "-" if value < 0 else ""
    if abs_val >= 1_000_000:
        return f"{sign}R$ {_br(f'{abs_val / 1_000_000:,.1f}')} mi"
    if abs_val >= 1_000:
        return f"{sign}R$ {_br(f'{abs_val / 1_000:,.1f}')} mil"
    return format_currency(value)


def format_percentage(value: Optional[float], decimals: int = 1) -> str:
    if value is None:
        return NOT_AVAILABLE
    return f"{_br(f'{value:,.{decimals}f}')}%"


def format_variance(value: Optional[float], decimals: int = 1) -> str:
    """Signed percentage, e.g. +12,5% / -3,0%."""
    if value is None:
        return NOT_AVAILABLE
    sign = "+" if value > 0 else ""
    return f"{sign}{format_percentage(value, decimals)}"


def format_by_kind(value: Optional[float], kind: str) -> str:
    if kind == "currency":
        return format_currency(value)
    if kind == "percentage":
        return format_percentage(value)
    return format_number(value)


def period_label(mes_ano: str) -> str:
    """
    Canonical period → display label.
    e.g. "2025-01" → "01/2025"
    """
    if len(mes_ano) == 7 and mes_ano[4] == "-":
        return f"{mes_ano[5:]}/{mes_ano[:4]}"
    return mes_ano


def variance_tone(variance: float, positive_is_better: bool = True, neutral_band: float = 1.0) -> VarianceTone:
    """Classify a variance for display; within ±neutral_band is neutral."""
    if abs(variance) <= neutral_band:
        return "neutral"
    improved = variance > 0 if positive_is_better else variance < 0
    return "favorable" if improved else "unfavorable"


def get_tone_color(tone: str) -> str:
    return {"favorable": "#10b981", "unfavorable": "#ef4444", "neutral": "#6b7280"}.get(tone, "#6b7280")


def get_quality_color(score: int) -> str:
    """Colour for the 0–100 data-quality score."""
    if score >= 80:
        return "#10b981"
    elif score >= 60:
        return "#f59e0b"
    return "#ef4444"


def get_status_color(status: str) -> str:
    return {"concluido": "#10b981", "em_andamento": "#3b82f6", "planejado": "#9ca3af"}.get(status, "#6b7280")
