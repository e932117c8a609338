"""
tests/conftest.py
=================
Shared pytest fixtures for the EVE Dashboard test suite.
"""
import sys
import os

# Ensure the project root is on the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from eve_platform.types import MonthlyRecord, Milestone, ProjectInfo, ProjectDataset


@pytest.fixture
def full_records():
    """Six fully populated, internally consistent months."""
    return [
        MonthlyRecord(
            mes_ano=f"2025-{m:02d}",
            vgv=1000.0,
            vendas_valor=100.0 * m,
            vendas_unid=float(m),
            fluxo_proj=-100.0 + 50 * m,
            fluxo_real=-120.0 + 50 * m,
            contas_pagar=80.0,
            contas_receber=60.0,
            avanco_fisico_perc=10.0 * m,
            avanco_financeiro_perc=8.0 * m,
            rentabilidade_perc=12.0,
            exposicao_maxima=300.0,
            tir_projeto=14.0,
        )
        for m in range(1, 7)
    ]


@pytest.fixture
def sample_dataset(full_records):
    return ProjectDataset(
        dados_mensais=full_records,
        marcos_projeto=[
            Milestone("Lançamento", "2025-01-01", "2025-01-31", "concluido"),
            Milestone("Obra", "2025-02-01", "2025-06-30", "em_andamento"),
        ],
        projeto_info=ProjectInfo(nome="Residencial Teste", versao="1.0", vgv=1000.0),
    )


@pytest.fixture
def raw_rows():
    """Spreadsheet-style rows with loose headers and pt-BR formatting."""
    return [
        {"Mês/Ano": "jan/25", "VGV": "1000", "Vendas Valor": "10,5", "Fluxo Proj": -50, "Fluxo Real": None},
        {"Mês/Ano": "2025-02", "VGV": 1000, "Vendas Valor": 20, "Fluxo Proj": -20, "Fluxo Real": -25},
    ]
