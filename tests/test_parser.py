"""
tests/test_parser.py
=====================
Record normalizer: date and number coercion, schema gate, ingestion,
workbook reading and template generation.

Run:  pytest tests/ -v
"""
import io
from datetime import datetime

import pandas as pd
import pytest

from eve_platform.parser import (
    REQUIRED_COLUMNS,
    IngestionError,
    canonical_column,
    normalize_date_string,
    normalize_number,
    validate_schema,
    normalize_row,
    normalize_milestone,
    normalize_project_info,
    ingest_rows,
    load_dataset,
    read_workbook,
    parse_workbook,
    build_template,
)


class TestNormalizeDateString:
    def test_canonical_passthrough(self):
        assert normalize_date_string("2025-03") == "2025-03"

    def test_pt_abbreviation(self):
        assert normalize_date_string("Jan/25") == "2025-01"
        assert normalize_date_string("fev/24") == "2024-02"
        assert normalize_date_string("DEZ/23") == "2023-12"

    def test_unknown_abbreviation_maps_to_january(self):
        assert normalize_date_string("xyz/25") == "2025-01"

    def test_iso_date(self):
        assert normalize_date_string("2024-07-15") == "2024-07"

    def test_datetime_object(self):
        assert normalize_date_string(datetime(2024, 11, 3)) == "2024-11"

    def test_pandas_timestamp(self):
        assert normalize_date_string(pd.Timestamp("2023-05-20")) == "2023-05"

    def test_unparseable_passes_through(self):
        assert normalize_date_string("not a date") == "not a date"

    def test_blank(self):
        assert normalize_date_string(None) == ""
        assert normalize_date_string("  ") == ""

    @pytest.mark.parametrize("value", ["Mar/25", "2025-03-10", "2025-03", "garbage"])
    def test_idempotent(self, value):
        once = normalize_date_string(value)
        assert normalize_date_string(once) == once


class TestNormalizeNumber:
    def test_int_and_float(self):
        assert normalize_number(5) == 5.0
        assert normalize_number(2.5) == pytest.approx(2.5)

    def test_comma_decimal(self):
        assert normalize_number("12,5") == pytest.approx(12.5)

    def test_leading_numeric_prefix(self):
        assert normalize_number("15%") == pytest.approx(15.0)

    def test_blank_is_absent_not_zero(self):
        assert normalize_number(None) is None
        assert normalize_number("") is None
        assert normalize_number(float("nan")) is None

    def test_zero_is_zero(self):
        assert normalize_number(0) == 0.0
        assert normalize_number("0") == 0.0

    def test_non_numeric(self):
        assert normalize_number("abc") is None

    def test_negative(self):
        assert normalize_number("-800000") == -800000.0


class TestCanonicalColumn:
    def test_accents_and_separators(self):
        assert canonical_column("Mês/Ano") == "mes_ano"
        assert canonical_column("VGV Total") == "vgv"

    def test_already_canonical(self):
        assert canonical_column("fluxo_real") == "fluxo_real"


class TestValidateSchema:
    def test_empty_rows_rejected(self):
        v = validate_schema([])
        assert not v.is_valid
        assert v.missing_columns == REQUIRED_COLUMNS

    def test_missing_vgv_names_column(self):
        rows = [{"mes_ano": "2025-01", "vendas_valor": 1, "fluxo_proj": 1, "fluxo_real": 1}]
        v = validate_schema(rows)
        assert not v.is_valid
        assert v.missing_columns == ["vgv"]
        assert any(e.column == "vgv" and e.severity == "error" for e in v.errors)

    def test_bad_date_is_warning(self):
        rows = [{"mes_ano": "??", "vgv": 1, "vendas_valor": 1, "fluxo_proj": 1, "fluxo_real": 1}]
        v = validate_schema(rows)
        assert v.is_valid
        assert any(w.column == "mes_ano" for w in v.warnings)

    def test_duplicate_period_is_warning(self):
        row = {"mes_ano": "2025-01", "vgv": 1, "vendas_valor": 1, "fluxo_proj": 1, "fluxo_real": 1}
        v = validate_schema([row, dict(row)])
        assert v.is_valid
        assert any("repeats" in w.message for w in v.warnings)

    def test_bad_number_is_warning(self):
        rows = [{"mes_ano": "2025-01", "vgv": "abc", "vendas_valor": 1, "fluxo_proj": 1, "fluxo_real": 1}]
        v = validate_schema(rows)
        assert v.is_valid
        assert [w.column for w in v.warnings] == ["vgv"]


class TestNormalizeRow:
    def test_absent_fields_stay_none(self):
        rec = normalize_row({"mes_ano": "Jan/25", "vgv": "100"})
        assert rec.mes_ano == "2025-01"
        assert rec.vgv == 100.0
        assert rec.rentabilidade_perc is None
        assert rec.fluxo_real is None

    def test_explicit_zero_kept(self):
        rec = normalize_row({"mes_ano": "2025-01", "rentabilidade_perc": 0})
        assert rec.rentabilidade_perc == 0.0


class TestMilestonesAndInfo:
    def test_unknown_status_defaults_to_planned(self):
        m = normalize_milestone({"marco": "Fundação", "inicio": "2024-06-01", "fim": "2024-09-30", "status": "??"})
        assert m.status == "planejado"

    def test_status_with_spaces(self):
        m = normalize_milestone({"marco": "Estrutura", "inicio": "x", "fim": "y", "status": "Em Andamento"})
        assert m.status == "em_andamento"

    def test_datetime_dates_rendered_iso(self):
        m = normalize_milestone({"marco": "A", "inicio": datetime(2024, 1, 15), "fim": datetime(2024, 3, 30)})
        assert (m.inicio, m.fim) == ("2024-01-15", "2024-03-30")

    def test_project_info(self):
        info = normalize_project_info({
            "Nome": "Residencial X", "versao": "2.0", "VGV": "1.000", "taxa_desconto_vpl": 12,
            "INCC": "4,2", "indices_correcao": {"ipca": 3.8},
        })
        assert info.nome == "Residencial X"
        assert info.versao == "2.0"
        assert info.vgv == pytest.approx(1.0)
        assert info.taxa_desconto_vpl == 12.0
        assert info.indices_correcao == {"incc": pytest.approx(4.2), "ipca": pytest.approx(3.8)}

    def test_empty_info(self):
        assert normalize_project_info(None).nome is None


class TestIngestRows:
    def test_accepts_loose_headers(self, raw_rows):
        result = ingest_rows(raw_rows, projeto_info={"nome": "P"})
        assert result.accepted
        records = result.dataset.dados_mensais
        assert [r.mes_ano for r in records] == ["2025-01", "2025-02"]
        assert records[0].vendas_valor == pytest.approx(10.5)
        assert records[0].fluxo_real is None
        assert result.dataset.projeto_info.nome == "P"

    def test_missing_vgv_rejected_without_dataset(self):
        rows = [{"mes_ano": "2025-01", "vendas_valor": 10, "fluxo_proj": 1, "fluxo_real": 1}]
        result = ingest_rows(rows)
        assert not result.accepted
        assert result.dataset is None
        assert "vgv" in result.validation.missing_columns

    def test_milestones_without_name_dropped(self, raw_rows):
        result = ingest_rows(raw_rows, milestone_rows=[
            {"marco": "Lançamento", "inicio": "2025-01-01", "fim": "2025-01-15"},
            {"marco": None, "inicio": "2025-02-01", "fim": "2025-02-15"},
        ])
        assert [m.marco for m in result.dataset.marcos_projeto] == ["Lançamento"]

    def test_load_dataset_raises(self):
        with pytest.raises(IngestionError) as exc:
            load_dataset([{"mes_ano": "2025-01"}])
        assert not exc.value.validation.is_valid
        assert "vgv" in str(exc.value)


class TestWorkbook:
    def test_template_roundtrips_through_reader(self):
        sheets = read_workbook(build_template(), "modelo.xlsx")
        assert set(sheets) == {"dados_mensais", "marcos_projeto", "projeto_info"}
        assert sheets["dados_mensais"][0]["mes_ano"] == "2025-01"
        assert sheets["projeto_info"]["nome"] == "Novo Projeto"

    def test_parse_template(self):
        result = parse_workbook(build_template(), "modelo.xlsx")
        assert result.accepted
        ds = result.dataset
        assert ds.dados_mensais[0].vgv == 76914000.0
        assert ds.dados_mensais[0].rentabilidade_perc is None
        assert ds.projeto_info.taxa_desconto_vpl == 12.0
        assert ds.marcos_projeto[0].marco == "Lançamento Vendas"

    def test_csv(self):
        df = pd.DataFrame([{"mes_ano": "2025-01", "vgv": 100, "vendas_valor": 10,
                            "fluxo_proj": -5, "fluxo_real": -4}])
        result = parse_workbook(df.to_csv(index=False).encode("utf-8"), "dados.csv")
        assert result.accepted
        assert result.dataset.dados_mensais[0].vendas_valor == 10.0

    def test_corrupt_file_is_blocking_error(self):
        result = parse_workbook(b"not an excel file", "broken.xlsx")
        assert not result.accepted
        assert result.validation.errors[0].column == "general"

    def test_missing_monthly_sheet(self):
        buf = io.BytesIO()
        with pd.ExcelWriter(buf, engine="openpyxl") as writer:
            pd.DataFrame({"a": [1]}).to_excel(writer, sheet_name="outra", index=False)
        result = parse_workbook(buf.getvalue(), "x.xlsx")
        assert not result.accepted
        assert "dados_mensais" in result.validation.errors[0].message
