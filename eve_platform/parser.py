"""
eve_platform/parser.py
=======================
Record normalizer for the monthly-financials spreadsheet. Handles:
  - Date normalization (YYYY-MM, Portuguese Mon/YY, any calendar date)
  - Numeric coercion with comma decimals, keeping "absent" distinct from zero
  - Schema validation gate (blocking errors vs non-blocking warnings)
  - Workbook reading (.xlsx, .xls, .csv) into raw row dicts
  - Template generation for the expected workbook layout
"""
from __future__ import annotations
import io
import logging
import math
import re
import unicodedata
import warnings
from dataclasses import fields
from datetime import date, datetime
from typing import Dict, List, Optional, Any, Iterable

import pandas as pd

from .types import (
    MonthlyRecord, Milestone, ProjectInfo, ProjectDataset,
    ValidationIssue, SchemaValidation, IngestionResult,
)

logger = logging.getLogger(__name__)

RawRow = Dict[str, Any]


# ─── Column Contract ──────────────────────────────────────────────────────────

REQUIRED_COLUMNS: List[str] = ["mes_ano", "vgv", "vendas_valor", "fluxo_proj", "fluxo_real"]

# Every float field of MonthlyRecord
NUMERIC_COLUMNS: List[str] = [
    f.name for f in fields(MonthlyRecord)
    if f.name not in ("mes_ano", "data_exposicao_maxima")
]

ALL_COLUMNS: List[str] = ["mes_ano"] + NUMERIC_COLUMNS + ["data_exposicao_maxima"]

# Columns shipped in the blank template, in display order
TEMPLATE_COLUMNS: List[str] = [
    "mes_ano", "rentabilidade_perc", "pa_meses", "vgv", "vendas_unid", "vendas_valor",
    "estoque_unid", "estoque_valor", "inadimplencia_perc", "inadimplencia_valor",
    "contas_pagar", "contas_receber", "fluxo_proj", "fluxo_real",
    "avanco_fisico_perc", "avanco_fisico_proj", "avanco_financeiro_perc",
    "avanco_financeiro_proj", "vendas_meta",
]

COLUMN_ALIASES: Dict[str, str] = {
    "mes": "mes_ano",
    "mes_ano": "mes_ano",
    "mes_e_ano": "mes_ano",
    "periodo": "mes_ano",
    "competencia": "mes_ano",
    "vgv_total": "vgv",
    "vendas": "vendas_valor",
    "vendas_rs": "vendas_valor",
    "unidades_vendidas": "vendas_unid",
    "fluxo_projetado": "fluxo_proj",
    "fluxo_realizado": "fluxo_real",
    "rentabilidade": "rentabilidade_perc",
    "payback": "pa_meses",
    "inadimplencia": "inadimplencia_perc",
    "avanco_fisico": "avanco_fisico_perc",
    "avanco_financeiro": "avanco_financeiro_perc",
    "meta_vendas": "vendas_meta",
}

SHEET_MONTHLY = "dados_mensais"
SHEET_MILESTONES = "marcos_projeto"
SHEET_PROJECT = "projeto_info"

PT_MONTHS: Dict[str, str] = {
    "jan": "01", "fev": "02", "mar": "03", "abr": "04",
    "mai": "05", "jun": "06", "jul": "07", "ago": "08",
    "set": "09", "out": "10", "nov": "11", "dez": "12",
}

MILESTONE_STATUSES = ("planejado", "em_andamento", "concluido")

_CANONICAL_PERIOD = re.compile(r"^\d{4}-\d{2}$")
_PT_MONTH_PERIOD = re.compile(r"^[A-Za-z]{3}/\d{2}$")
_FLOAT_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class IngestionError(ValueError):
    """Raised by ``load_dataset`` when the schema gate rejects the input."""

    def __init__(self, validation: SchemaValidation):
        self.validation = validation
        msg = "; ".join(e.message for e in validation.errors) or "invalid input"
        super().__init__(f"Validation error: {msg}")


# ─── Header Cleaning ──────────────────────────────────────────────────────────

def _clean_header(value: Any) -> str:
    s = unicodedata.normalize("NFKD", str(value or "").strip().lower())
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    s = re.sub(r"[^a-z0-9]+", "_", s)
    return s.strip("_")


def canonical_column(value: Any) -> str:
    """Map a raw header (``"Mês/Ano"``, ``"VGV Total"``) onto the column contract."""
    cleaned = _clean_header(value)
    return COLUMN_ALIASES.get(cleaned, cleaned)


def canonicalize_row(row: RawRow) -> RawRow:
    out: RawRow = {}
    for key, val in row.items():
        col = canonical_column(key)
        # first occurrence wins when two headers collapse onto one column
        if col and col not in out:
            out[col] = val
    return out


# ─── Blank Detection ──────────────────────────────────────────────────────────

def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if value is pd.NaT:
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    return False


# ─── Date Normalization ───────────────────────────────────────────────────────

def _parse_period(value: Any) -> Optional[str]:
    """Return ``YYYY-MM`` for a recognisable date value, else None."""
    if isinstance(value, (datetime, date)):
        return f"{value.year:04d}-{value.month:02d}"

    s = str(value).strip()

    # Already YYYY-MM
    if _CANONICAL_PERIOD.match(s):
        return s

    # Jan/25, fev/24 ...
    if _PT_MONTH_PERIOD.match(s):
        month, year = s.split("/")
        return f"20{year}-{PT_MONTHS.get(month.lower(), '01')}"

    # Any other calendar date
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            ts = pd.to_datetime(s, errors="coerce", dayfirst="/" in s)
    except (ValueError, TypeError, OverflowError):
        return None
    if ts is None or pd.isna(ts):
        return None
    return f"{ts.year:04d}-{ts.month:02d}"


def normalize_date_string(value: Any) -> str:
    """
    Normalize a period cell to ``YYYY-MM``.
    Unrecognised input is passed through unchanged; blank becomes "".
    """
    if _is_blank(value):
        return ""
    period = _parse_period(value)
    if period is None:
        return str(value).strip()
    return period


# ─── Numeric Normalization ────────────────────────────────────────────────────

def normalize_number(value: Any) -> Optional[float]:
    """
    Coerce a cell to float. Blank → None (absent), never 0.
    Comma decimal separators are accepted ("12,5" → 12.5).
    """
    if _is_blank(value):
        return None
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    s = str(value).strip().replace(",", ".")
    m = _FLOAT_PREFIX.match(s)
    if not m:
        return None
    try:
        return float(m.group(0))
    except ValueError:
        return None


# ─── Schema Validation ────────────────────────────────────────────────────────

def validate_schema(rows: List[RawRow]) -> SchemaValidation:
    """
    Check required columns (blocking) and per-row parse problems (warnings).
    Rows are expected to carry canonical column names already.
    """
    errors: List[ValidationIssue] = []
    warns: List[ValidationIssue] = []

    if not rows:
        return SchemaValidation(
            is_valid=False,
            errors=[ValidationIssue("general", "Empty sheet or no monthly rows found", "error")],
            warnings=[],
            missing_columns=list(REQUIRED_COLUMNS),
        )

    available: set = set()
    for row in rows:
        available.update(row.keys())
    missing = [col for col in REQUIRED_COLUMNS if col not in available]

    for col in missing:
        errors.append(ValidationIssue(col, f"Required column '{col}' not found", "error"))

    seen_periods: Dict[str, int] = {}
    for index, row in enumerate(rows):
        line = index + 1
        raw_period = row.get("mes_ano")
        if not _is_blank(raw_period):
            period = _parse_period(raw_period)
            if period is None:
                warns.append(ValidationIssue(
                    "mes_ano", f"Row {line}: invalid date format '{raw_period}'", "warning"
                ))
            elif period in seen_periods:
                warns.append(ValidationIssue(
                    "mes_ano",
                    f"Row {line}: period {period} repeats row {seen_periods[period]}",
                    "warning",
                ))
            else:
                seen_periods[period] = line

        for col in NUMERIC_COLUMNS:
            val = row.get(col)
            if not _is_blank(val) and normalize_number(val) is None:
                warns.append(ValidationIssue(
                    col, f"Row {line}: invalid numeric value in {col}", "warning"
                ))

    return SchemaValidation(
        is_valid=not errors,
        errors=errors,
        warnings=warns,
        missing_columns=missing,
    )


# ─── Row Normalization ────────────────────────────────────────────────────────

def normalize_row(row: RawRow) -> MonthlyRecord:
    values = {col: normalize_number(row.get(col)) for col in NUMERIC_COLUMNS}
    exposure_date = row.get("data_exposicao_maxima")
    return MonthlyRecord(
        mes_ano=normalize_date_string(row.get("mes_ano")),
        data_exposicao_maxima=None if _is_blank(exposure_date) else normalize_date_string(exposure_date),
        **values,
    )


def _date_text(value: Any) -> str:
    if _is_blank(value):
        return ""
    if isinstance(value, (datetime, date)):
        return value.strftime("%Y-%m-%d")
    return str(value).strip()


def normalize_milestone(row: RawRow) -> Milestone:
    status = _clean_header(row.get("status")) or "planejado"
    if status not in MILESTONE_STATUSES:
        status = "planejado"
    return Milestone(
        marco=_date_text(row.get("marco")),
        inicio=_date_text(row.get("inicio")),
        fim=_date_text(row.get("fim")),
        status=status,  # type: ignore[arg-type]
    )


_INFO_NUMERIC = {
    "vgv", "num_uhs", "area_privativa_total", "area_privativa_media", "area_terreno",
    "preco_terreno", "duracao_meses", "prazo_vendas_meses", "taxa_desconto_vpl",
    "participacao_investidor",
}
_INFO_TEXT = {
    "nome", "versao", "responsavel", "data_criacao", "data_inicio_obra",
    "data_termino_obra", "data_lancamento",
}


def normalize_project_info(raw: Optional[Dict[str, Any]]) -> ProjectInfo:
    """Build ProjectInfo from a loose key/value mapping (e.g. the projeto_info sheet)."""
    info = ProjectInfo()
    if not raw:
        return info
    for key, val in raw.items():
        col = _clean_header(key)
        if col in _INFO_NUMERIC:
            setattr(info, col, normalize_number(val))
        elif col in _INFO_TEXT:
            setattr(info, col, None if _is_blank(val) else _date_text(val))
        elif col == "indices_correcao" and isinstance(val, dict):
            for idx_name, idx_val in val.items():
                num = normalize_number(idx_val)
                if num is not None:
                    info.indices_correcao[_clean_header(idx_name)] = num
        elif col in ("incc", "ipca", "igp_m"):
            num = normalize_number(val)
            if num is not None:
                info.indices_correcao[col] = num
    return info


# ─── Ingestion ────────────────────────────────────────────────────────────────

def ingest_rows(
    rows: Iterable[RawRow],
    milestone_rows: Optional[Iterable[RawRow]] = None,
    projeto_info: Optional[Dict[str, Any]] = None,
) -> IngestionResult:
    """
    Validate then normalize raw monthly rows into a ProjectDataset.
    A blocking error rejects the whole input: no partial dataset is returned.
    """
    canonical = [canonicalize_row(r) for r in rows]
    validation = validate_schema(canonical)
    if not validation.is_valid:
        logger.warning(
            "Ingestion rejected: %s", ", ".join(e.column for e in validation.errors)
        )
        return IngestionResult(validation=validation, dataset=None)

    records = [normalize_row(r) for r in canonical]
    milestones = [normalize_milestone(canonicalize_row(r)) for r in (milestone_rows or [])]
    milestones = [m for m in milestones if m.marco]
    info = normalize_project_info(projeto_info)

    if validation.warnings:
        logger.info("Ingested %d rows with %d warnings", len(records), len(validation.warnings))
    else:
        logger.info("Ingested %d rows", len(records))

    dataset = ProjectDataset(dados_mensais=records, marcos_projeto=milestones, projeto_info=info)
    return IngestionResult(validation=validation, dataset=dataset)


def load_dataset(
    rows: Iterable[RawRow],
    milestone_rows: Optional[Iterable[RawRow]] = None,
    projeto_info: Optional[Dict[str, Any]] = None,
) -> ProjectDataset:
    """Like ``ingest_rows`` but raises IngestionError on rejection."""
    result = ingest_rows(rows, milestone_rows, projeto_info)
    if result.dataset is None:
        raise IngestionError(result.validation)
    return result.dataset


# ─── Workbook Reading ─────────────────────────────────────────────────────────

def _frame_to_rows(df: pd.DataFrame) -> List[RawRow]:
    df = df.dropna(axis=0, how="all")
    if df.empty:
        return []
    df = df.astype(object).where(df.notna(), None)
    return df.to_dict(orient="records")


def _frame_to_mapping(df: pd.DataFrame) -> Dict[str, Any]:
    """Two-column key/value sheet → dict."""
    out: Dict[str, Any] = {}
    if df.shape[1] < 2:
        return out
    for key, val in df.iloc[:, :2].itertuples(index=False):
        if not _is_blank(key):
            out[str(key)] = None if _is_blank(val) else val
    return out


def read_workbook(file_bytes: bytes, filename: str) -> Dict[str, Any]:
    """
    Read an uploaded workbook into raw rows.
    Returns {"dados_mensais": [...], "marcos_projeto": [...], "projeto_info": {...}};
    sheets that are absent are simply missing from the dict.
    A .csv file is read as the monthly sheet.
    """
    fn_lower = filename.lower()
    out: Dict[str, Any] = {}

    if fn_lower.endswith(".csv"):
        df = pd.read_csv(io.BytesIO(file_bytes))
        out[SHEET_MONTHLY] = _frame_to_rows(df)
        return out

    engine = "xlrd" if fn_lower.endswith(".xls") else "openpyxl"
    xl = pd.ExcelFile(io.BytesIO(file_bytes), engine=engine)
    for sheet_name in xl.sheet_names:
        key = _clean_header(sheet_name)
        if key == SHEET_MONTHLY:
            out[SHEET_MONTHLY] = _frame_to_rows(xl.parse(sheet_name))
        elif key == SHEET_MILESTONES:
            out[SHEET_MILESTONES] = _frame_to_rows(xl.parse(sheet_name))
        elif key == SHEET_PROJECT:
            out[SHEET_PROJECT] = _frame_to_mapping(xl.parse(sheet_name, header=None))
    return out


def parse_workbook(file_bytes: bytes, filename: str) -> IngestionResult:
    """Read and ingest a workbook; reader failures become blocking errors."""
    try:
        sheets = read_workbook(file_bytes, filename)
    except Exception as e:
        logger.warning("Could not read %s: %s", filename, e)
        validation = SchemaValidation(
            is_valid=False,
            errors=[ValidationIssue("general", f"Could not read file: {e}", "error")],
            missing_columns=list(REQUIRED_COLUMNS),
        )
        return IngestionResult(validation=validation)

    if SHEET_MONTHLY not in sheets:
        validation = SchemaValidation(
            is_valid=False,
            errors=[ValidationIssue("general", f"Sheet '{SHEET_MONTHLY}' not found", "error")],
            missing_columns=list(REQUIRED_COLUMNS),
        )
        return IngestionResult(validation=validation)

    return ingest_rows(
        sheets[SHEET_MONTHLY],
        sheets.get(SHEET_MILESTONES),
        sheets.get(SHEET_PROJECT),
    )


# ─── Template ─────────────────────────────────────────────────────────────────

def build_template() -> bytes:
    """Blank workbook with the three expected sheets and one example row each."""
    example = {col: None for col in TEMPLATE_COLUMNS}
    example.update({
        "mes_ano": "2025-01", "vgv": 76914000, "vendas_valor": 3500000,
        "vendas_unid": 6, "contas_pagar": 4200000, "contas_receber": 5200000,
        "fluxo_proj": -800000, "fluxo_real": -750000,
    })
    monthly = pd.DataFrame([example], columns=TEMPLATE_COLUMNS)
    milestones = pd.DataFrame(
        [{"marco": "Lançamento Vendas", "inicio": "2025-01-15", "fim": "2025-01-15", "status": "planejado"}],
        columns=["marco", "inicio", "fim", "status"],
    )
    info = pd.DataFrame(
        [["nome", "Novo Projeto"], ["versao", "1.0"], ["vgv", 76914000],
         ["num_uhs", 126], ["area_terreno", 1170], ["taxa_desconto_vpl", 12]],
    )

    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        monthly.to_excel(writer, sheet_name=SHEET_MONTHLY, index=False)
        milestones.to_excel(writer, sheet_name=SHEET_MILESTONES, index=False)
        info.to_excel(writer, sheet_name=SHEET_PROJECT, index=False, header=False)
    return buf.getvalue()
