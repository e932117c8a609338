"""
eve_platform/sample_data.py
============================
Deterministic demo datasets for the dashboard: one fully populated project
and a three-version history for the comparison view.
"""
from __future__ import annotations
import math
import random
from dataclasses import replace
from typing import List, Optional

from .types import MonthlyRecord, Milestone, ProjectInfo, ProjectDataset

DEMO_MONTHS = [
    "2024-09", "2024-10", "2024-11", "2024-12",
    "2025-01", "2025-02", "2025-03", "2025-04", "2025-05",
]

VERSION_MONTHS = [
    "2025-01", "2025-02", "2025-03", "2025-04",
    "2025-05", "2025-06", "2025-07", "2025-08",
]

DEMO_VGV = 76_914_000.0
DEMO_UNITS = 126
DEMO_LAND_AREA = 1170.0
DEMO_LAND_PRICE = 8_500_000.0
DEMO_PRIVATE_AREA = 4982.0


def _demo_record(month: str, index: int, total: int) -> MonthlyRecord:
    progress = (index + 1) / total
    cycle = index % 8

    terreno = DEMO_LAND_PRICE * min(progress * 1.2, 1)
    construcao = DEMO_VGV * 0.45 * progress
    vendas = DEMO_VGV * progress * 0.8
    receita = vendas * 1.05
    impostos = receita * 0.08
    outros = DEMO_VGV * 0.05 * progress
    unidades = math.floor(DEMO_UNITS * progress * 0.85)
    saldo = vendas - construcao - terreno

    return MonthlyRecord(
        mes_ano=month,
        vgv=DEMO_VGV,
        rentabilidade_perc=18 + math.sin(index * 0.3) * 3,
        pa_meses=max(36 - index * 2, 12),
        vendas_unid=unidades,
        vendas_valor=vendas,
        vendas_meta=vendas * 1.1,
        estoque_unid=DEMO_UNITS - unidades,
        estoque_valor=DEMO_VGV - vendas,
        inadimplencia_perc=max(0.0, 2.5 + math.sin(index * 0.5) * 1.5),
        inadimplencia_valor=vendas * 0.025,
        contas_pagar=construcao + terreno,
        contas_receber=vendas * 0.7,
        fluxo_proj=saldo * (-0.5 if cycle % 3 == 0 else 1),
        fluxo_real=saldo * (-0.3 if cycle % 3 == 0 else 0.9),
        avanco_fisico_perc=min(progress * 95, 85),
        avanco_fisico_proj=min((progress + 0.1) * 100, 100),
        avanco_financeiro_perc=min(progress * 90, 80),
        avanco_financeiro_proj=min((progress + 0.05) * 100, 95),
        eve_total=vendas * 1.1,
        real_total=vendas,
        receita_incorporacao=receita,
        impostos_receita=impostos,
        receita_liquida=receita - impostos,
        custos_terreno=terreno,
        custos_construcao=construcao,
        outros_custos=outros,
        margem_operacional=receita - terreno - construcao - outros,
        despesas_incorporacao=DEMO_VGV * 0.03 * progress,
        despesas_comerciais=DEMO_VGV * 0.04 * progress,
        despesas_adm_spe=DEMO_VGV * 0.02 * progress,
        outras_despesas=DEMO_VGV * 0.01 * progress,
        resultado_operacional=(receita - terreno - construcao) * 0.85 - DEMO_VGV * 0.1 * progress,
        custos_financiamento=DEMO_VGV * 0.08 * progress,
        vpv_projeto=(receita - terreno - construcao) * 0.7,
        tir_projeto=15 + math.sin(index * 0.4) * 3,
        mtir_projeto=14 + math.sin(index * 0.3) * 2,
        il_projeto=1.2 + math.sin(index * 0.2) * 0.3,
        payback_descontado=max(24 - index, 8),
        exposicao_maxima=max(terreno + construcao - vendas, 0.0),
        data_exposicao_maxima=month,
        custo_terreno_vgv=terreno / DEMO_VGV * 100,
        custo_construcao_vgv=construcao / DEMO_VGV * 100,
        lucratividade_vgv=(receita - terreno - construcao) / DEMO_VGV * 100,
        preco_medio_m2=DEMO_VGV / DEMO_PRIVATE_AREA,
        preco_medio_uh=DEMO_VGV / DEMO_UNITS,
        vso_percentual=unidades / DEMO_UNITS * 100,
        cub_m2=2800 + index * 50,
        bdi_percentual=25 + math.sin(index * 0.1) * 2,
        custo_obra_m2_apv=construcao / DEMO_PRIVATE_AREA,
    )


def generate_mock_data() -> ProjectDataset:
    """A single fully populated project (nine months, seven milestones)."""
    records = [_demo_record(m, i, len(DEMO_MONTHS)) for i, m in enumerate(DEMO_MONTHS)]
    milestones = [
        Milestone("Aprovação Projeto", "2024-01-15", "2024-03-30", "concluido"),
        Milestone("Lançamento Vendas", "2024-03-15", "2024-03-15", "concluido"),
        Milestone("Início da Obra", "2024-06-01", "2024-06-01", "concluido"),
        Milestone("Fundação", "2024-06-01", "2024-09-30", "concluido"),
        Milestone("Estrutura", "2024-09-01", "2025-06-30", "em_andamento"),
        Milestone("Acabamento", "2025-06-01", "2026-08-31", "planejado"),
        Milestone("Entrega das Chaves", "2026-09-01", "2026-12-01", "planejado"),
    ]
    info = ProjectInfo(
        nome="Residencial Amazônia",
        versao="3.2",
        vgv=DEMO_VGV,
        responsavel="João Silva",
        data_criacao="2024-01-15",
        num_uhs=DEMO_UNITS,
        area_privativa_total=DEMO_PRIVATE_AREA,
        area_privativa_media=DEMO_PRIVATE_AREA / DEMO_UNITS,
        area_terreno=DEMO_LAND_AREA,
        preco_terreno=DEMO_LAND_PRICE,
        data_inicio_obra="2024-06-01",
        data_termino_obra="2026-12-01",
        duracao_meses=30,
        data_lancamento="2024-03-15",
        prazo_vendas_meses=36,
        taxa_desconto_vpl=12,
        indices_correcao={"incc": 4.2, "ipca": 3.8, "igp_m": 4.5},
    )
    return ProjectDataset(dados_mensais=records, marcos_projeto=milestones, projeto_info=info)


def _scaled(value: Optional[float], factor: float) -> Optional[float]:
    return value * factor if value is not None else None


def generate_pa_baseline(records: List[MonthlyRecord]) -> List[MonthlyRecord]:
    """Action-plan (PA) baseline: sales +10%, construction -5%, projected flow +15%."""
    return [
        replace(
            r,
            vendas_valor=_scaled(r.vendas_valor, 1.1),
            custos_construcao=_scaled(r.custos_construcao, 0.95),
            fluxo_proj=_scaled(r.fluxo_proj, 1.15),
        )
        for r in records
    ]


# (version, multiplier, name, vgv)
_VERSIONS = [
    ("1.0", 0.85, "Versão Inicial", 100_000_000.0),
    ("2.0", 0.95, "Revisão Market", 115_000_000.0),
    ("2.1", 1.0, "Residencial Via Nova", 120_000_000.0),
]


def _version_milestones(version_index: int) -> List[Milestone]:
    return [
        Milestone("Lançamento do Projeto", "2025-01-01", "2025-01-15",
                  "concluido" if version_index == 2 else "planejado"),
        Milestone("Início das Obras", "2025-02-01", "2025-02-28",
                  "concluido" if version_index >= 1 else "planejado"),
        Milestone("50% Vendido", "2025-04-01", "2025-06-30",
                  "em_andamento" if version_index == 2 else "planejado"),
        Milestone("Obra 80% Concluída", "2025-08-01", "2025-10-31"),
        Milestone("Habite-se", "2025-11-01", "2025-12-31"),
    ]


def generate_multiple_versions(seed: int = 42) -> List[ProjectDataset]:
    """
    Three versions of the same project for the comparison view. Realized
    flow carries seeded noise (±100k) so repeated calls return equal data.
    """
    rng = random.Random(seed)
    datasets: List[ProjectDataset] = []
    for version_index, (tag, mult, name, vgv) in enumerate(_VERSIONS):
        records = []
        for index, month in enumerate(VERSION_MONTHS):
            base_sales = (3_500_000 + index * 500_000) * mult
            base_flow = (-800_000 + index * 300_000) * mult
            records.append(MonthlyRecord(
                mes_ano=month,
                rentabilidade_perc=(2.5 + index * 0.2) * mult,
                pa_meses=round((18 - index) * (mult + 0.1)),
                vgv=vgv,
                vendas_unid=round((10 + index * 2) * mult),
                vendas_valor=base_sales,
                estoque_unid=round((90 - index * 2) * (2 - mult)),
                estoque_valor=(45_000_000 - index * 600_000) * mult,
                inadimplencia_perc=(1.2 - index * 0.1) * (2 - mult),
                inadimplencia_valor=(300_000 - index * 10_000) * (2 - mult),
                contas_pagar=(4_200_000 - index * 200_000) * mult,
                contas_receber=(5_200_000 + index * 100_000) * mult,
                fluxo_proj=base_flow,
                fluxo_real=base_flow + rng.uniform(-100_000, 100_000),
                avanco_fisico_perc=index * 12.5 * mult,
                avanco_fisico_proj=(index * 12.5 + 5) * mult,
                avanco_financeiro_perc=index * 10 * mult,
                vendas_meta=base_sales * 1.1,
            ))
        datasets.append(ProjectDataset(
            dados_mensais=records,
            marcos_projeto=_version_milestones(version_index),
            projeto_info=ProjectInfo(
                nome=name,
                versao=tag,
                vgv=vgv,
                responsavel="Equipe Via.One",
                data_criacao=f"2025-{9 - version_index:02d}-01",
            ),
        ))
    return datasets
