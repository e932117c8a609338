"""
eve_platform/types.py
=====================
Python dataclasses for every data structure used across the EVE dashboard:
monthly records, datasets, KPI/entity/comparison/portfolio results and the
configurable policy constants.

Monthly fields keep the spreadsheet column names (``mes_ano``, ``vgv``,
``vendas_valor`` ...). Every numeric field is Optional: ``None`` means the
column was not provided, which is not the same thing as zero.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Literal, Any

# ─── Aliases ──────────────────────────────────────────────────────────────────

Severity = Literal["error", "warning"]
MilestoneStatus = Literal["planejado", "em_andamento", "concluido"]
PeriodKey = Literal["month", "ytd", "itd", "year", "projection"]
ValueFormat = Literal["currency", "percentage", "number"]
VarianceTone = Literal["favorable", "unfavorable", "neutral"]

# Chart/table rows handed to the presentation layer
SeriesRow = Dict[str, Any]
CashFlowVector = List[float]


# ─── Core Data Types ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class MonthlyRecord:
    mes_ano: str
    rentabilidade_perc: Optional[float] = None
    pa_meses: Optional[float] = None
    vgv: Optional[float] = None
    vendas_unid: Optional[float] = None
    vendas_valor: Optional[float] = None
    estoque_unid: Optional[float] = None
    estoque_valor: Optional[float] = None
    inadimplencia_perc: Optional[float] = None
    inadimplencia_valor: Optional[float] = None
    contas_pagar: Optional[float] = None
    contas_receber: Optional[float] = None
    fluxo_proj: Optional[float] = None
    fluxo_real: Optional[float] = None
    avanco_fisico_perc: Optional[float] = None
    avanco_fisico_proj: Optional[float] = None
    avanco_financeiro_perc: Optional[float] = None
    avanco_financeiro_proj: Optional[float] = None
    vendas_meta: Optional[float] = None

    # DRE line items
    receita_incorporacao: Optional[float] = None
    impostos_receita: Optional[float] = None
    receita_liquida: Optional[float] = None
    custos_terreno: Optional[float] = None
    custos_construcao: Optional[float] = None
    outros_custos: Optional[float] = None
    margem_operacional: Optional[float] = None
    despesas_incorporacao: Optional[float] = None
    despesas_comerciais: Optional[float] = None
    despesas_adm_spe: Optional[float] = None
    outras_despesas: Optional[float] = None
    resultado_operacional: Optional[float] = None
    custos_financiamento: Optional[float] = None

    # Dynamic indicators
    vpv_projeto: Optional[float] = None
    tir_projeto: Optional[float] = None
    mtir_projeto: Optional[float] = None
    il_projeto: Optional[float] = None
    payback_descontado: Optional[float] = None
    exposicao_maxima: Optional[float] = None
    data_exposicao_maxima: Optional[str] = None

    # Cost and market ratios
    custo_terreno_vgv: Optional[float] = None
    custo_construcao_vgv: Optional[float] = None
    lucratividade_vgv: Optional[float] = None
    preco_medio_m2: Optional[float] = None
    preco_medio_uh: Optional[float] = None
    vso_percentual: Optional[float] = None

    # Technical fields
    eve_total: Optional[float] = None
    real_total: Optional[float] = None
    cub_m2: Optional[float] = None
    bdi_percentual: Optional[float] = None
    custo_obra_m2_apv: Optional[float] = None


@dataclass(frozen=True)
class Milestone:
    marco: str
    inicio: str
    fim: str
    status: MilestoneStatus = "planejado"


@dataclass
class ProjectInfo:
    nome: Optional[str] = None
    versao: Optional[str] = None
    vgv: Optional[float] = None
    responsavel: Optional[str] = None
    data_criacao: Optional[str] = None
    num_uhs: Optional[float] = None
    area_privativa_total: Optional[float] = None
    area_privativa_media: Optional[float] = None
    area_terreno: Optional[float] = None
    preco_terreno: Optional[float] = None
    data_inicio_obra: Optional[str] = None
    data_termino_obra: Optional[str] = None
    duracao_meses: Optional[float] = None
    data_lancamento: Optional[str] = None
    prazo_vendas_meses: Optional[float] = None
    taxa_desconto_vpl: Optional[float] = None      # annual, in percent (12 → 12%)
    indices_correcao: Dict[str, float] = field(default_factory=dict)
    participacao_investidor: Optional[float] = None  # fraction 0–1


@dataclass
class ProjectDataset:
    dados_mensais: List[MonthlyRecord] = field(default_factory=list)
    marcos_projeto: List[Milestone] = field(default_factory=list)
    projeto_info: ProjectInfo = field(default_factory=ProjectInfo)


# ─── Validation / Ingestion ───────────────────────────────────────────────────

@dataclass
class ValidationIssue:
    column: str
    message: str
    severity: Severity


@dataclass
class SchemaValidation:
    is_valid: bool
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationIssue] = field(default_factory=list)
    missing_columns: List[str] = field(default_factory=list)


@dataclass
class IngestionResult:
    validation: SchemaValidation
    dataset: Optional[ProjectDataset] = None

    @property
    def accepted(self) -> bool:
        return self.dataset is not None


# ─── KPI Types ────────────────────────────────────────────────────────────────

@dataclass
class ProfitabilityKPI:
    value: float = 0.0
    pa_meses: float = 0.0
    is_estimated: bool = False


@dataclass
class VGVKPI:
    value: float = 0.0
    percent_sold: float = 0.0


@dataclass
class UnitsValueKPI:
    units: float = 0.0
    value: float = 0.0


@dataclass
class DelinquencyKPI:
    percent: float = 0.0
    value: float = 0.0


@dataclass
class KPIResult:
    period: str = ""
    profitability: ProfitabilityKPI = field(default_factory=ProfitabilityKPI)
    vgv: VGVKPI = field(default_factory=VGVKPI)
    accumulated_sales: UnitsValueKPI = field(default_factory=UnitsValueKPI)
    inventory: UnitsValueKPI = field(default_factory=UnitsValueKPI)
    delinquency: DelinquencyKPI = field(default_factory=DelinquencyKPI)
    # month-over-month % change, keyed like ``flat_kpis``
    variation: Dict[str, float] = field(default_factory=dict)


# ─── Financial Metrics ────────────────────────────────────────────────────────

@dataclass
class ExposureResult:
    value: float = 0.0
    period: str = ""


@dataclass
class CostRatios:
    land_vgv_perc: float = 0.0
    construction_vgv_perc: float = 0.0
    profitability_vgv_perc: float = 0.0
    land_within_policy: bool = True
    construction_within_policy: bool = True
    profitability_within_policy: bool = False


# ─── Entity Results ───────────────────────────────────────────────────────────

@dataclass
class ProjectEntityResult:
    resultado: float = 0.0
    resultado_vgv_perc: float = 0.0
    vpv: float = 0.0
    tir: float = 0.0
    receita_financeira: float = 0.0
    despesa_financeira: float = 0.0
    exposicao_maxima: float = 0.0
    data_exposicao_maxima: str = ""
    custo_terreno_total: float = 0.0
    custo_terreno_m2: float = 0.0
    custo_terreno_vgv_perc: float = 0.0
    area_terreno_por_uh: float = 0.0


@dataclass
class HoldingEntityResult:
    resultado_total: float = 0.0
    dividendos: float = 0.0
    vpv: float = 0.0
    roi: float = 0.0
    tir: float = 0.0
    mtir: float = 0.0
    exposicao_maxima: float = 0.0


@dataclass
class EntityResults:
    projeto: ProjectEntityResult = field(default_factory=ProjectEntityResult)
    holding: HoldingEntityResult = field(default_factory=HoldingEntityResult)
    investidor: Optional[HoldingEntityResult] = None


# ─── Quality ──────────────────────────────────────────────────────────────────

@dataclass
class QualityCheck:
    name: str
    points: int
    passed: bool

    @property
    def earned(self) -> int:
        return self.points if self.passed else 0


# ─── Version Comparison ───────────────────────────────────────────────────────

@dataclass
class PeriodValues:
    month: float = 0.0
    ytd: float = 0.0
    itd: float = 0.0
    year: float = 0.0
    projection: float = 0.0

    def as_dict(self) -> Dict[str, float]:
        return {
            "month": self.month, "ytd": self.ytd, "itd": self.itd,
            "year": self.year, "projection": self.projection,
        }


@dataclass(frozen=True)
class MetricDefinition:
    key: str
    label: str
    format: ValueFormat
    positive_is_better: bool = True
    # "projection" reads the dataset-level VGV instead of the latest record
    projection_from_info: bool = False


@dataclass
class MetricComparison:
    metric: MetricDefinition
    current: PeriodValues
    previous: PeriodValues
    variance: PeriodValues
    significant: bool = False


@dataclass
class VersionComparison:
    current_version: str
    compare_version: str
    metrics: List[MetricComparison] = field(default_factory=list)

    @property
    def significant_metrics(self) -> List[MetricComparison]:
        return [m for m in self.metrics if m.significant]


# ─── Portfolio ────────────────────────────────────────────────────────────────

@dataclass
class PortfolioRow:
    projeto: str
    versao: str
    vgv: float = 0.0
    vendas_acumuladas: float = 0.0
    fluxo_projetado: float = 0.0
    fluxo_realizado: float = 0.0
    contas_receber: float = 0.0
    contas_pagar: float = 0.0
    rentabilidade: float = 0.0
    avanco_fisico: float = 0.0
    perc_vendido: float = 0.0

    @property
    def variacao_fluxo(self) -> float:
        return self.fluxo_realizado - self.fluxo_projetado

    @property
    def saldo_liquido(self) -> float:
        return self.contas_receber - self.contas_pagar


@dataclass
class PortfolioTotals:
    vgv_total: float = 0.0
    vendas_total: float = 0.0
    fluxo_proj_total: float = 0.0
    fluxo_real_total: float = 0.0
    contas_receber_total: float = 0.0
    contas_pagar_total: float = 0.0


@dataclass
class DRELine:
    nome: str
    valor: float
    tipo: Literal["receita", "custo"]


@dataclass
class DRECategory:
    categoria: str
    linhas: List[DRELine] = field(default_factory=list)


@dataclass
class ConsolidatedDRE:
    categorias: List[DRECategory] = field(default_factory=list)
    total_receitas: float = 0.0
    total_custos: float = 0.0

    @property
    def resultado(self) -> float:
        return self.total_receitas - self.total_custos


@dataclass
class PortfolioResult:
    rows: List[PortfolioRow] = field(default_factory=list)
    totals: PortfolioTotals = field(default_factory=PortfolioTotals)
    dre: ConsolidatedDRE = field(default_factory=ConsolidatedDRE)


# ─── Policy Constants ─────────────────────────────────────────────────────────

@dataclass
class HoldingPolicy:
    """
    Markups and splits standing in for inter-company transfer rules.
    These are illustrative policy constants, not accounting truths.
    """
    result_markup: float = 1.15
    dividend_split: float = 0.60
    npv_markup: float = 1.10
    irr_markup: float = 1.05
    exposure_markup: float = 1.20
    financing_rate: float = 0.08
    reinvestment_rate: float = 0.10


@dataclass
class PortfolioDREPolicy:
    """
    Fixed percentage splits used to synthesize the consolidated income
    statement. Illustrative only: they do not read the datasets' cost fields.
    """
    financial_revenue_on_sales: float = 0.02
    cost_of_units_sold: float = 0.65
    commercial_expenses: float = 0.08
    administrative_expenses: float = 0.05
    financial_revenue_on_cash: float = 0.01
    financial_expense_on_payables: float = 0.02


@dataclass
class CostRatioPolicy:
    land_max_perc: float = 35.0
    construction_max_perc: float = 60.0
    profitability_min_perc: float = 15.0


@dataclass
class ComparisonOptions:
    significance_threshold: float = 5.0
    neutral_band: float = 1.0
    only_significant: bool = False
