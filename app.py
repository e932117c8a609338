"""
app.py
======
EVE Dashboard — Main Streamlit Application
Real-estate feasibility (Estudo de Viabilidade Econômica) executive view

Tabs:
  1. Visão Geral (KPIs)
  2. Fluxo & Vendas
  3. Avanço & Cronograma
  4. DRE
  5. Entidades (Projeto / Holding / Investidor)
  6. Qualidade dos Dados
  7. Comparação de Versões
  8. Holding (portfolio)
  9. Dados
"""

import logging
from dataclasses import asdict
from typing import Dict, List, Optional, Any

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from eve_platform.types import ProjectDataset, ComparisonOptions
from eve_platform.parser import parse_workbook, build_template
from eve_platform.aggregator import (
    available_months, calculate_kpis, cash_flow_series, sales_series,
    progress_series, operational_cash_flow_series, financial_progress_series,
    milestone_timeline, calculate_dre, records_to_frame,
)
from eve_platform.financial import (
    cash_flow_vector, mirr, discounted_payback, profitability_index,
    evaluate_cost_ratios, sales_velocity,
)
from eve_platform.entities import calculate_entity_results, resolve_discount_rate, bounded_discount_rate
from eve_platform.quality import quality_checks, quality_score, pa_coverage, validate_pa_vs_real
from eve_platform.comparison import (
    compare_versions, assign_version_tags, find_version, comparable_versions,
    PERIODS, PERIOD_LABELS,
)
from eve_platform.portfolio import consolidate_portfolio
from eve_platform.sample_data import generate_mock_data, generate_multiple_versions
from eve_platform.formatting import (
    format_currency, format_compact_currency, format_percentage, format_number,
    format_variance, format_by_kind, period_label, variance_tone,
    get_tone_color, get_quality_color, get_status_color,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
logger = logging.getLogger("eve_dashboard")

# ─── Page Configuration ───────────────────────────────────────────────────────

st.set_page_config(
    page_title="EVE Dashboard",
    page_icon="🏗️",
    layout="wide",
    initial_sidebar_state="expanded",
    menu_items={
        "About": "EVE Dashboard — Estudo de Viabilidade Econômica para incorporação imobiliária",
    },
)

# ─── Custom CSS ───────────────────────────────────────────────────────────────

st.markdown("""
<style>
    .main-header {
        background: linear-gradient(135deg, #0f766e 0%, #115e59 100%);
        border-radius: 12px;
        padding: 1.2rem 1.5rem;
        color: white;
        margin-bottom: 1.5rem;
        box-shadow: 0 4px 20px rgba(15,118,110,0.3);
    }
    .main-header h1 { margin: 0; font-size: 1.6rem; font-weight: 700; letter-spacing: -0.02em; }
    .main-header p  { margin: 0.25rem 0 0; font-size: 0.85rem; opacity: 0.85; }

    .kpi-card {
        background: white;
        border: 1px solid #e2e8f0;
        border-radius: 10px;
        padding: 1rem 1.2rem;
        box-shadow: 0 1px 4px rgba(0,0,0,0.06);
    }
    .kpi-label { font-size: 0.72rem; color: #64748b; text-transform: uppercase; letter-spacing: 0.05em; margin-bottom: 0.2rem; }
    .kpi-value { font-size: 1.5rem; font-weight: 700; color: #1e293b; }
    .kpi-sub   { font-size: 0.75rem; color: #94a3b8; margin-top: 0.15rem; }

    .section-title {
        font-size: 0.95rem;
        font-weight: 600;
        color: #1e293b;
        margin-bottom: 0.75rem;
        padding-bottom: 0.5rem;
        border-bottom: 1px solid #f1f5f9;
    }

    .insight-positive { background:#dcfce7; color:#166534; padding:0.3rem 0.7rem; border-radius:6px; font-size:0.8rem; margin-bottom:0.35rem; display:block; }
    .insight-warning  { background:#fef9c3; color:#854d0e; padding:0.3rem 0.7rem; border-radius:6px; font-size:0.8rem; margin-bottom:0.35rem; display:block; }
    .insight-negative { background:#fee2e2; color:#991b1b; padding:0.3rem 0.7rem; border-radius:6px; font-size:0.8rem; margin-bottom:0.35rem; display:block; }

    .quality-bar { height:6px; border-radius:3px; background:#e2e8f0; position:relative; }
    .quality-fill { height:100%; border-radius:3px; position:absolute; }

    div.stButton > button { border-radius: 8px; font-weight: 500; }
    .stTabs [data-baseweb="tab"] { font-size: 0.82rem; padding: 0.5rem 1rem; }
    [data-testid="metric-container"] { background: white; border: 1px solid #e2e8f0; border-radius: 10px; padding: 0.8rem; }
</style>
""", unsafe_allow_html=True)


# ─── Helpers ─────────────────────────────────────────────────────────────────

def _palette() -> List[str]:
    return ["#0f766e", "#14b8a6", "#3b82f6", "#f59e0b", "#8b5cf6", "#ef4444"]


def _layout(fig: go.Figure, title: str, height: int = 300) -> go.Figure:
    fig.update_layout(
        title=dict(text=title, font=dict(size=14, color="#1e293b")),
        paper_bgcolor="white", plot_bgcolor="#f8fafc",
        margin=dict(l=40, r=20, t=40, b=30),
        height=height,
        font=dict(family="sans-serif", size=11, color="#64748b"),
        xaxis=dict(gridcolor="#e2e8f0"), yaxis=dict(gridcolor="#e2e8f0"),
        legend=dict(orientation="h", yanchor="bottom", y=1.02, x=0),
    )
    return fig


def _build_series_chart(
    rows: List[Dict[str, Any]],
    bars: Dict[str, str],
    lines: Optional[Dict[str, str]] = None,
    title: str = "",
    dashed: Optional[List[str]] = None,
) -> go.Figure:
    """Bars and lines over the period axis; keys are series fields, values legend names."""
    fig = go.Figure()
    palette = _palette()
    x = [period_label(r["period"]) for r in rows]
    for i, (key, name) in enumerate(bars.items()):
        fig.add_trace(go.Bar(x=x, y=[r[key] for r in rows], name=name,
                             marker_color=palette[i % len(palette)]))
    for i, (key, name) in enumerate((lines or {}).items()):
        fig.add_trace(go.Scatter(
            x=x, y=[r[key] for r in rows], name=name, mode="lines+markers",
            line=dict(color=palette[(i + len(bars)) % len(palette)], width=2,
                      dash="dash" if key in (dashed or []) else "solid"),
        ))
    return _layout(fig, title)


def _kpi_card(label: str, value: str, sub: str = "", delta: Optional[float] = None,
              positive_is_better: bool = True) -> None:
    delta_html = ""
    if delta is not None:
        tone = variance_tone(delta, positive_is_better)
        delta_html = (f"<span style='color:{get_tone_color(tone)}; font-size:0.78rem;'>"
                      f"{format_variance(delta)}</span>")
    st.markdown(f"""
    <div class='kpi-card'>
        <div class='kpi-label'>{label}</div>
        <div class='kpi-value'>{value}</div>
        <div class='kpi-sub'>{sub} {delta_html}</div>
    </div>
    """, unsafe_allow_html=True)


# ─── Session State ────────────────────────────────────────────────────────────

DISCOUNT_RATE_MIN = 0.0
DISCOUNT_RATE_MAX = 30.0


def _init_state() -> None:
    defaults = {
        "step": "upload",           # upload | dashboard
        "dataset": None,
        "history": [],
        "validation": None,
        "discount_rate": 12.0,
        "show_accumulated": False,
        "selected_month": None,
        "only_significant": False,
        "significance_threshold": 5.0,
    }
    for k, v in defaults.items():
        if k not in st.session_state:
            st.session_state[k] = v


_init_state()


def _activate(dataset: ProjectDataset, history: Optional[List[ProjectDataset]] = None) -> None:
    history = assign_version_tags((history or []) + [dataset])
    current = history[-1]
    seeded = bounded_discount_rate(current.projeto_info, DISCOUNT_RATE_MIN, DISCOUNT_RATE_MAX)
    if seeded is not None:
        st.session_state["discount_rate"] = seeded
    st.session_state.update({
        "step": "dashboard",
        "dataset": current,
        "history": history,
        "selected_month": None,
    })


# ─── Sidebar ──────────────────────────────────────────────────────────────────

with st.sidebar:
    st.markdown("""
    <div style='text-align:center; padding:0.5rem 0 1rem;'>
        <span style='font-size:2rem;'>🏗️</span><br>
        <strong style='font-size:1rem; color:#0f766e;'>EVE Dashboard</strong><br>
        <span style='font-size:0.72rem; color:#64748b;'>Viabilidade Econômica</span>
    </div>
    """, unsafe_allow_html=True)

    st.markdown("---")

    if st.session_state["step"] == "dashboard":
        ds: ProjectDataset = st.session_state["dataset"]
        st.subheader("⚙️ Parâmetros")

        months = available_months(ds.dados_mensais)
        if months:
            current_sel = st.session_state["selected_month"] or months[0]
            st.session_state["selected_month"] = st.selectbox(
                "Mês de referência", months,
                index=months.index(current_sel) if current_sel in months else 0,
                format_func=period_label,
            )
        st.session_state["show_accumulated"] = st.checkbox(
            "Valores acumulados",
            value=st.session_state["show_accumulated"],
            help="Soma os fluxos de todos os meses até o mês de referência",
        )
        st.session_state["discount_rate"] = st.slider(
            "Taxa de desconto (VPL) % a.a.", DISCOUNT_RATE_MIN, DISCOUNT_RATE_MAX,
            st.session_state["discount_rate"], 0.5,
        )

        st.subheader("🔀 Comparação")
        st.session_state["significance_threshold"] = st.slider(
            "Limite de significância %", 1.0, 20.0,
            st.session_state["significance_threshold"], 0.5,
        )
        st.session_state["only_significant"] = st.checkbox(
            "Somente variações significativas",
            value=st.session_state["only_significant"],
        )

        st.markdown("---")
        if st.button("🔄 Nova Análise", width='stretch'):
            for k in ["step", "dataset", "history", "validation", "selected_month"]:
                st.session_state[k] = {"step": "upload", "history": []}.get(k)
            st.rerun()

    else:
        st.info("Envie a planilha do projeto para começar.", icon="📁")

    st.markdown("---")
    st.markdown("""
    <div style='font-size:0.7rem; color:#94a3b8; text-align:center;'>
        VPL · TIR · MTIR · IL · Payback Descontado<br>
        Exposição Máxima · DRE · Comparação de Versões
    </div>
    """, unsafe_allow_html=True)


# ─── Main Header ─────────────────────────────────────────────────────────────

st.markdown("""
<div class='main-header'>
    <h1>🏗️ EVE Dashboard</h1>
    <p>Estudo de Viabilidade Econômica — acompanhamento executivo de incorporação</p>
</div>
""", unsafe_allow_html=True)


# ═══════════════════════════════════════════════════════════════════════════════
# TAB RENDER FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════════

def _render_overview(ds: ProjectDataset, selected: Optional[str], accumulated: bool):
    kpis = calculate_kpis(ds.dados_mensais, selected, accumulated)
    var = kpis.variation

    st.markdown(f"<div class='section-title'>Indicadores — {period_label(kpis.period)}"
                f"{' (acumulado)' if accumulated else ''}</div>", unsafe_allow_html=True)

    c1, c2, c3 = st.columns(3)
    with c1:
        _kpi_card(
            "Rentabilidade" + (" (estimada)" if kpis.profitability.is_estimated else ""),
            format_percentage(kpis.profitability.value),
            f"Payback: {format_number(kpis.profitability.pa_meses)} meses",
            var.get("rentabilidade"),
        )
    with c2:
        _kpi_card("VGV", format_compact_currency(kpis.vgv.value),
                  f"{format_percentage(kpis.vgv.percent_sold)} vendido", var.get("vgv"))
    with c3:
        _kpi_card("Vendas", format_compact_currency(kpis.accumulated_sales.value),
                  f"{format_number(kpis.accumulated_sales.units)} unidades", var.get("vendas_valor"))

    st.markdown("")
    c4, c5, c6 = st.columns(3)
    with c4:
        _kpi_card("Estoque", format_compact_currency(kpis.inventory.value),
                  f"{format_number(kpis.inventory.units)} unidades", var.get("estoque_valor"),
                  positive_is_better=False)
    with c5:
        _kpi_card("Inadimplência", format_percentage(kpis.delinquency.percent),
                  format_currency(kpis.delinquency.value), var.get("inadimplencia_perc"),
                  positive_is_better=False)
    with c6:
        info = ds.projeto_info
        units_sold = sum(r.vendas_unid or 0 for r in ds.dados_mensais)
        vso = sales_velocity(units_sold, info.num_uhs or 0)
        _kpi_card("VSO", format_percentage(vso), f"{format_number(info.num_uhs)} UHs no projeto")

    # Indicators from the cash-flow vector
    st.markdown("---")
    st.markdown("<div class='section-title'>Indicadores Dinâmicos</div>", unsafe_allow_html=True)
    rate = resolve_discount_rate(ds.projeto_info, st.session_state["discount_rate"] / 100)
    flows = cash_flow_vector(ds.dados_mensais)
    d1, d2, d3 = st.columns(3)
    d1.metric("Índice de Lucratividade", f"{profitability_index(flows, rate):.2f}")
    d2.metric("MTIR (8% / 10%)", format_percentage(mirr(flows, 0.08, 0.10)))
    d3.metric("Payback Descontado", f"{discounted_payback(flows, rate)} meses")


def _render_cash_flow(ds: ProjectDataset):
    records = ds.dados_mensais
    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(_build_series_chart(
            cash_flow_series(records),
            bars={"projected": "Projetado", "realized": "Realizado"},
            title="Fluxo de Caixa",
        ), width='stretch')
    with col2:
        st.plotly_chart(_build_series_chart(
            sales_series(records),
            bars={"vendas": "Vendas"}, lines={"meta": "Meta"},
            title="Vendas vs Meta", dashed=["meta"],
        ), width='stretch')

    st.plotly_chart(_build_series_chart(
        operational_cash_flow_series(records),
        bars={"operational": "Fluxo Operacional"}, lines={"pa_reference": "Referência PA"},
        title="Fluxo de Caixa Operacional", dashed=["pa_reference"],
    ), width='stretch')


def _render_progress(ds: ProjectDataset):
    records = ds.dados_mensais
    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(_build_series_chart(
            progress_series(records), bars={},
            lines={"fisico": "Físico", "financeiro": "Financeiro", "fisico_proj": "Físico Projetado"},
            title="Avanço Físico x Financeiro (%)", dashed=["fisico_proj"],
        ), width='stretch')
    with col2:
        st.plotly_chart(_build_series_chart(
            financial_progress_series(records), bars={},
            lines={"financeiro_planejado": "Planejado", "financeiro_realizado": "Realizado",
                   "pa_reference": "Referência PA"},
            title="Avanço Financeiro (%)", dashed=["pa_reference"],
        ), width='stretch')

    st.markdown("<div class='section-title'>Cronograma de Marcos</div>", unsafe_allow_html=True)
    timeline = milestone_timeline(ds.marcos_projeto)
    if not timeline:
        st.info("Nenhum marco com datas válidas.")
        return
    fig = go.Figure(go.Bar(
        y=[t["marco"] for t in timeline],
        x=[t["width_pct"] for t in timeline],
        base=[t["left_pct"] for t in timeline],
        orientation="h",
        marker_color=[get_status_color(t["status"]) for t in timeline],
        customdata=[[t["inicio"], t["fim"], t["status"]] for t in timeline],
        hovertemplate="%{y}<br>%{customdata[0]} → %{customdata[1]}<br>%{customdata[2]}<extra></extra>",
    ))
    fig.update_yaxes(autorange="reversed")
    fig.update_xaxes(range=[0, 100], showticklabels=False)
    st.plotly_chart(_layout(fig, "Marcos do Projeto", height=60 + 36 * len(timeline)), width='stretch')


def _render_dre(ds: ProjectDataset, accumulated: bool):
    rows = calculate_dre(ds.dados_mensais, accumulated)
    if not rows:
        st.info("Sem dados mensais.")
        return
    df = pd.DataFrame(rows)
    df["period"] = df["period"].map(period_label)
    for col in ["receita", "custos", "resultado"]:
        df[col] = df[col].map(format_currency)
    df.columns = ["Período", "Receita", "Custos", "Resultado"]
    st.dataframe(df, width='stretch', hide_index=True)

    # Cost ratios against the configured limits
    records = ds.dados_mensais
    info = ds.projeto_info
    vgv = info.vgv or 0.0
    ratios = evaluate_cost_ratios(
        sum(r.custos_terreno or 0 for r in records),
        sum(r.custos_construcao or 0 for r in records),
        sum(r.resultado_operacional or 0 for r in records),
        vgv,
    )
    st.markdown("<div class='section-title'>Relações de Custo sobre VGV</div>", unsafe_allow_html=True)
    for label, value, ok in [
        ("Terreno / VGV", ratios.land_vgv_perc, ratios.land_within_policy),
        ("Construção / VGV", ratios.construction_vgv_perc, ratios.construction_within_policy),
        ("Lucratividade / VGV", ratios.profitability_vgv_perc, ratios.profitability_within_policy),
    ]:
        css = "insight-positive" if ok else "insight-warning"
        st.markdown(f"<span class='{css}'>{label}: {format_percentage(value)}</span>",
                    unsafe_allow_html=True)


def _render_entities(ds: ProjectDataset):
    rate = st.session_state["discount_rate"] / 100
    results = calculate_entity_results(ds.dados_mensais, ds.projeto_info, rate)
    p, h = results.projeto, results.holding

    col1, col2 = st.columns(2)
    with col1:
        st.markdown("<div class='section-title'>🏢 Projeto</div>", unsafe_allow_html=True)
        st.metric("Resultado", format_currency(p.resultado), f"{format_percentage(p.resultado_vgv_perc)} do VGV")
        st.metric("VPL", format_currency(p.vpv))
        st.metric("TIR", format_percentage(p.tir))
        st.metric("Exposição Máxima", format_currency(p.exposicao_maxima),
                  period_label(p.data_exposicao_maxima) if p.data_exposicao_maxima else None)
        st.caption(
            f"Terreno: {format_currency(p.custo_terreno_total)} · "
            f"{format_currency(p.custo_terreno_m2)}/m² · {format_percentage(p.custo_terreno_vgv_perc)} do VGV · "
            f"{format_number(p.area_terreno_por_uh, 1)} m²/UH"
        )
    with col2:
        st.markdown("<div class='section-title'>🏛️ Holding</div>", unsafe_allow_html=True)
        st.metric("Resultado Total", format_currency(h.resultado_total))
        st.metric("Dividendos", format_currency(h.dividendos))
        st.metric("VPL", format_currency(h.vpv))
        st.metric("ROI", format_percentage(h.roi))
        st.metric("TIR / MTIR", f"{format_percentage(h.tir)} / {format_percentage(h.mtir)}")
        st.metric("Exposição Máxima", format_currency(h.exposicao_maxima))

    if results.investidor is not None:
        inv = results.investidor
        st.markdown("<div class='section-title'>👤 Investidor</div>", unsafe_allow_html=True)
        i1, i2, i3 = st.columns(3)
        i1.metric("Resultado", format_currency(inv.resultado_total))
        i2.metric("Dividendos", format_currency(inv.dividendos))
        i3.metric("VPL", format_currency(inv.vpv))


def _render_quality(ds: ProjectDataset, history: List[ProjectDataset]):
    score = quality_score(ds.dados_mensais)
    color = get_quality_color(score)
    st.markdown(f"""
    <div class='kpi-card'>
        <div class='kpi-label'>Qualidade dos Dados</div>
        <div class='kpi-value' style='color:{color};'>{score}/100</div>
        <div class='quality-bar'><div class='quality-fill' style='width:{score}%; background:{color};'></div></div>
    </div>
    """, unsafe_allow_html=True)

    st.markdown("")
    for check in quality_checks(ds.dados_mensais):
        css = "insight-positive" if check.passed else "insight-negative"
        icon = "✅" if check.passed else "❌"
        st.markdown(f"<span class='{css}'>{icon} {check.name} ({check.earned}/{check.points})</span>",
                    unsafe_allow_html=True)

    candidates = comparable_versions(history, ds)
    if candidates:
        tags = [d.projeto_info.versao for d in candidates]
        pa_tag = st.selectbox("Versão de referência (PA)", tags)
        pa = find_version(history, pa_tag)
        coverage = pa_coverage(ds.dados_mensais, pa.dados_mensais)
        if validate_pa_vs_real(ds.dados_mensais, pa.dados_mensais):
            st.caption(f"Cobertura realizado x PA {pa_tag}: {format_percentage(coverage * 100)} (adequada).")
        else:
            st.caption(f"Cobertura realizado x PA {pa_tag}: {format_percentage(coverage * 100)} (insuficiente).")
    else:
        st.caption("Carregue uma versão PA para verificar a cobertura do realizado.")

    validation = st.session_state.get("validation")
    if validation is not None and validation.warnings:
        with st.expander(f"⚠️ {len(validation.warnings)} avisos de importação"):
            for w in validation.warnings:
                st.markdown(f"- **{w.column}**: {w.message}")


def _render_comparison(ds: ProjectDataset, history: List[ProjectDataset]):
    candidates = comparable_versions(history, ds)
    if not candidates:
        st.info("Carregue outra versão do projeto para comparar.")
        return

    tags = [d.projeto_info.versao for d in candidates]
    tag = st.selectbox("Comparar com a versão", tags)
    other = find_version(candidates, tag)
    if other is None:
        return

    opts = ComparisonOptions(
        significance_threshold=st.session_state["significance_threshold"],
        only_significant=st.session_state["only_significant"],
    )
    result = compare_versions(ds, other, options=opts)
    st.caption(f"v{result.current_version} vs v{result.compare_version} · "
               f"{len(result.significant_metrics)} métricas com variação significativa")

    rows = []
    for m in result.metrics:
        row = {"Métrica": m.metric.label}
        cur, prev, var = m.current.as_dict(), m.previous.as_dict(), m.variance.as_dict()
        for p in PERIODS:
            row[f"{PERIOD_LABELS[p]} atual"] = format_by_kind(cur[p], m.metric.format)
            row[f"{PERIOD_LABELS[p]} anterior"] = format_by_kind(prev[p], m.metric.format)
            row[f"{PERIOD_LABELS[p]} Δ"] = format_variance(var[p])
        row["Significativa"] = "●" if m.significant else ""
        rows.append(row)
    if rows:
        st.dataframe(pd.DataFrame(rows), width='stretch', hide_index=True)
    else:
        st.info("Nenhuma métrica acima do limite de significância.")


def _render_holding(history: List[ProjectDataset]):
    result = consolidate_portfolio(history)
    t = result.totals

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("VGV Total", format_compact_currency(t.vgv_total))
    c2.metric("Vendas", format_compact_currency(t.vendas_total))
    c3.metric("Fluxo Realizado", format_compact_currency(t.fluxo_real_total))
    c4.metric("Saldo Líquido", format_compact_currency(t.contas_receber_total - t.contas_pagar_total))

    st.dataframe(pd.DataFrame([{
        "Projeto": r.projeto,
        "Versão": r.versao,
        "VGV": format_currency(r.vgv),
        "Vendas": format_currency(r.vendas_acumuladas),
        "% Vendido": format_percentage(r.perc_vendido),
        "Fluxo Proj.": format_currency(r.fluxo_projetado),
        "Fluxo Real.": format_currency(r.fluxo_realizado),
        "Variação Fluxo": format_currency(r.variacao_fluxo),
        "Saldo Líquido": format_currency(r.saldo_liquido),
        "Rentabilidade": format_percentage(r.rentabilidade),
        "Avanço Físico": format_percentage(r.avanco_fisico),
    } for r in result.rows]), width='stretch', hide_index=True)

    st.markdown("<div class='section-title'>DRE Consolidada</div>", unsafe_allow_html=True)
    lines = []
    for cat in result.dre.categorias:
        for line in cat.linhas:
            sign = 1 if line.tipo == "receita" else -1
            lines.append({"Categoria": cat.categoria, "Conta": line.nome,
                          "Valor": format_currency(sign * line.valor)})
    lines.append({"Categoria": "", "Conta": "Resultado", "Valor": format_currency(result.dre.resultado)})
    st.dataframe(pd.DataFrame(lines), width='stretch', hide_index=True)


def _render_data_explorer(ds: ProjectDataset):
    df = records_to_frame(ds.dados_mensais)
    shown = st.multiselect("Colunas", list(df.columns), default=[c for c in df.columns if df[c].notna().any()][:12])
    st.dataframe(df[shown] if shown else df, width='stretch', hide_index=True)
    st.download_button(
        "⬇️ Exportar CSV", df.to_csv(index=False).encode("utf-8"),
        file_name=f"{ds.projeto_info.nome or 'projeto'}_dados.csv", mime="text/csv",
    )
    with st.expander("Informações do projeto"):
        st.json({k: v for k, v in asdict(ds.projeto_info).items() if v not in (None, {})})


# ═══════════════════════════════════════════════════════════════════════════════
# STEP 1: UPLOAD
# ═══════════════════════════════════════════════════════════════════════════════

if st.session_state["step"] == "upload":
    col1, col2 = st.columns([2, 1])

    with col1:
        st.markdown("### 📁 Enviar Planilha do Projeto")
        st.markdown("""
        <div style='background:#f0fdfa; border-radius:8px; padding:0.8rem 1rem; margin-bottom:1rem;
                    border-left:4px solid #0f766e; font-size:0.85rem; color:#115e59;'>
        <strong>Formatos:</strong> Excel (.xlsx, .xls) • CSV (.csv)
        <br><strong>Abas:</strong> dados_mensais (obrigatória), marcos_projeto, projeto_info
        <br><strong>Colunas obrigatórias:</strong> mes_ano, vgv, vendas_valor, fluxo_proj, fluxo_real
        </div>
        """, unsafe_allow_html=True)

        uploaded = st.file_uploader(
            "Planilha do projeto",
            type=["xlsx", "xls", "csv"],
            label_visibility="collapsed",
        )

        if uploaded is not None:
            with st.spinner("Processando planilha..."):
                result = parse_workbook(uploaded.read(), uploaded.name)
            st.session_state["validation"] = result.validation

            for err in result.validation.errors:
                st.error(f"❌ {err.column}: {err.message}")
            for w in result.validation.warnings[:10]:
                st.warning(f"⚠️ {w.column}: {w.message}")

            if result.accepted:
                ds_new = result.dataset
                st.success(f"✅ {uploaded.name}: {len(ds_new.dados_mensais)} meses, "
                           f"{len(ds_new.marcos_projeto)} marcos")
                if st.button("▶ Abrir Dashboard", type="primary", width='stretch'):
                    _activate(ds_new, st.session_state["history"])
                    st.rerun()

    with col2:
        st.markdown("### 📋 Modelo")
        st.download_button(
            "⬇️ Baixar modelo .xlsx", build_template(),
            file_name="modelo_eve.xlsx",
            mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            width='stretch',
        )

        st.markdown("### 🔧 Dados de Exemplo")
        if st.button("Carregar projeto de exemplo", width='stretch'):
            st.session_state["validation"] = None
            _activate(generate_mock_data())
            st.rerun()
        if st.button("Carregar 3 versões de exemplo", width='stretch'):
            versions = generate_multiple_versions()
            st.session_state["validation"] = None
            _activate(versions[-1], versions[:-1])
            st.rerun()


# ═══════════════════════════════════════════════════════════════════════════════
# STEP 2: DASHBOARD
# ═══════════════════════════════════════════════════════════════════════════════

elif st.session_state["step"] == "dashboard":
    ds: ProjectDataset = st.session_state["dataset"]
    history: List[ProjectDataset] = st.session_state["history"]
    info = ds.projeto_info

    # ── Project header ────────────────────────────────────────────────────────
    col_h1, col_h2, col_h3, col_h4 = st.columns(4)
    col_h1.metric("Projeto", info.nome or "Projeto")
    col_h2.metric("Versão", info.versao or "—")
    col_h3.metric("Meses", len(ds.dados_mensais))
    col_h4.metric("Qualidade", f"{quality_score(ds.dados_mensais)}/100")

    st.markdown("---")

    tabs = st.tabs([
        "🏠 Visão Geral", "💵 Fluxo & Vendas", "🏗️ Avanço & Cronograma", "📋 DRE",
        "🏢 Entidades", "✅ Qualidade", "🔀 Versões", "🏛️ Holding", "🔍 Dados",
    ])

    with tabs[0]:
        _render_overview(ds, st.session_state["selected_month"], st.session_state["show_accumulated"])
    with tabs[1]:
        _render_cash_flow(ds)
    with tabs[2]:
        _render_progress(ds)
    with tabs[3]:
        _render_dre(ds, st.session_state["show_accumulated"])
    with tabs[4]:
        _render_entities(ds)
    with tabs[5]:
        _render_quality(ds, history)
    with tabs[6]:
        _render_comparison(ds, history)
    with tabs[7]:
        _render_holding(history)
    with tabs[8]:
        _render_data_explorer(ds)
