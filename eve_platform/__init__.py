"""EVE Dashboard: real-estate feasibility calculation engine (Python/Streamlit)."""
from .types import *
from .formatting import *
from .parser import (
    IngestionError,
    ingest_rows,
    load_dataset,
    parse_workbook,
    build_template,
)
from .aggregator import calculate_kpis, calculate_dre, available_months
from .financial import npv, irr, mirr, discounted_payback, profitability_index, max_exposure
from .entities import calculate_entity_results
from .quality import quality_score, quality_checks
from .comparison import compare_versions, COMPARISON_METRICS
from .portfolio import consolidate_portfolio
