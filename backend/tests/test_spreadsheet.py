import io
import threading
import time

import pytest
from openpyxl import load_workbook

from conftest import make_xlsx
from utils.errors import (
    EmptyFileError,
    ImportStateError,
    MissingColumnsError,
    NotFoundError,
    RowValidationError,
    SpreadsheetReadError,
)
from utils.importers import PRODUCT_COLUMNS, PRODUCT_TYPE_COLUMNS
from utils.spreadsheet import (
    ColumnSpec,
    ImportSession,
    ImportSessionStore,
    ImportState,
    build_template,
    parse_number,
    parse_workbook,
)

PRODUCT_HEADER = ["Produto", "Tipo", "Custo", "Taxa de Lucro", "Valor de Venda", "Valor Concorrente", "Nome Concorrente"]


class TestParseNumber:
    def test_plain_and_comma_decimals(self):
        assert parse_number("12,5") == 12.5
        assert parse_number(7) == 7.0
        assert parse_number(3.25) == 3.25

    def test_leading_number_with_suffix(self):
        assert parse_number("7 un") == 7.0

    def test_unparseable_is_zero(self):
        assert parse_number("abc") == 0.0
        assert parse_number("nan") == 0.0


class TestParseWorkbook:
    def test_blank_rows_are_skipped(self):
        data = make_xlsx([["Nome"], ["Caneta"], [None], ["Lápis"]])
        assert parse_workbook(data, PRODUCT_TYPE_COLUMNS) == [{"name": "Caneta"}, {"name": "Lápis"}]

    def test_headers_are_trimmed_and_case_insensitive(self):
        data = make_xlsx([["  NOME "], ["Caderno"]])
        assert parse_workbook(data, PRODUCT_TYPE_COLUMNS) == [{"name": "Caderno"}]

    def test_missing_required_column(self):
        data = make_xlsx([["Descrição"], ["Caneta"]])
        with pytest.raises(MissingColumnsError) as exc_info:
            parse_workbook(data, PRODUCT_TYPE_COLUMNS)
        assert exc_info.value.missing_labels == ["Nome"]
        assert str(exc_info.value) == "Required columns not found: Nome"

    def test_header_only_is_empty(self):
        with pytest.raises(EmptyFileError):
            parse_workbook(make_xlsx([["Nome"]]), PRODUCT_TYPE_COLUMNS)

    def test_blank_workbook_is_empty(self):
        with pytest.raises(EmptyFileError):
            parse_workbook(make_xlsx([]), PRODUCT_TYPE_COLUMNS)

    def test_not_a_workbook(self):
        with pytest.raises(SpreadsheetReadError):
            parse_workbook(b"definitely not a zip file", PRODUCT_TYPE_COLUMNS)

    def test_numbers_decoded_and_extra_columns_ignored(self):
        data = make_xlsx([
            PRODUCT_HEADER + ["Observação"],
            ["Caneta Azul", "Papelaria", "1,5", 100, "3", None, None, "ignorar"],
        ])
        [record] = parse_workbook(data, PRODUCT_COLUMNS)
        assert record == {
            "name": "Caneta Azul",
            "type": "Papelaria",
            "cost_price": 1.5,
            "profit_rate": 100.0,
            "sale_price": 3.0,
            "competitor_price": None,
            "competitor_name": None,
        }

    def test_optional_columns_may_be_absent(self):
        data = make_xlsx([
            ["Valor de Venda", "Produto", "Custo", "Tipo", "Taxa de Lucro"],
            [12, "Grampeador", 8, "Escritório", 50],
        ])
        [record] = parse_workbook(data, PRODUCT_COLUMNS)
        assert record["name"] == "Grampeador"
        assert record["sale_price"] == 12.0
        assert record["competitor_name"] is None

    def test_every_bad_row_is_reported_but_message_is_capped(self):
        rows = [PRODUCT_HEADER]
        rows += [[f"Produto {i}", None, 1, 10, 1.1] for i in range(6)]
        rows.append(["Completo", "Papelaria", 1, 10, 1.1])
        with pytest.raises(RowValidationError) as exc_info:
            parse_workbook(make_xlsx(rows), PRODUCT_COLUMNS, max_errors_shown=5)

        error = exc_info.value
        assert [e.row for e in error.row_errors] == [2, 3, 4, 5, 6, 7]
        message = str(error)
        assert message.startswith("Required fields are empty: Row 2: missing Tipo")
        assert "Row 6: missing Tipo" in message
        assert "Row 7" not in message
        assert message.endswith("(+1 more rows with errors)")

    def test_zero_is_not_empty(self):
        data = make_xlsx([PRODUCT_HEADER[:5], ["Brinde", "Promo", 0, 0, 0]])
        [record] = parse_workbook(data, PRODUCT_COLUMNS)
        assert record["cost_price"] == 0.0


class TestBuildTemplate:
    def test_header_row_in_column_order(self):
        content = build_template(PRODUCT_COLUMNS, sheet_name="Produtos")
        workbook = load_workbook(io.BytesIO(content))
        sheet = workbook["Produtos"]
        header = [cell.value for cell in next(sheet.iter_rows(min_row=1, max_row=1))]
        assert header == PRODUCT_HEADER
        assert sheet.max_row == 1


class TestImportSession:
    columns = [ColumnSpec(key="name", label="Nome", required=True)]

    def test_load_then_confirm(self):
        imported = []
        session = ImportSession(self.columns, on_import=imported.extend, preview_limit=2)
        assert session.state == ImportState.IDLE

        session.load(make_xlsx([["Nome"], ["A"], ["B"], ["C"]]))
        assert session.state == ImportState.PREVIEW_READY
        assert session.total == 3
        assert session.preview_rows == [{"name": "A"}, {"name": "B"}]

        assert session.confirm() == 3
        assert imported == [{"name": "A"}, {"name": "B"}, {"name": "C"}]
        assert session.state == ImportState.IDLE
        assert session.total == 0

    def test_invalid_file_leaves_nothing_to_confirm(self):
        session = ImportSession(self.columns, on_import=lambda records: None)
        with pytest.raises(MissingColumnsError):
            session.load(make_xlsx([["Outro"], ["x"]]))
        assert session.state == ImportState.PARSED
        assert session.error == "Required columns not found: Nome"
        with pytest.raises(ImportStateError):
            session.confirm()

    def test_failed_import_drops_preview(self):
        def _fail(records):
            raise RuntimeError("Type \"X\" not found")

        session = ImportSession(self.columns, on_import=_fail)
        session.load(make_xlsx([["Nome"], ["A"]]))
        with pytest.raises(RuntimeError):
            session.confirm()
        assert session.state == ImportState.PARSED
        assert session.records == []
        assert session.error == 'Type "X" not found'
        with pytest.raises(ImportStateError):
            session.confirm()

    def test_callback_can_be_given_on_confirm(self):
        seen = []
        session = ImportSession(self.columns)
        session.load(make_xlsx([["Nome"], ["A"]]))
        assert session.confirm(seen.extend) == 1
        assert seen == [{"name": "A"}]

    def test_confirm_without_target(self):
        session = ImportSession(self.columns)
        session.load(make_xlsx([["Nome"], ["A"]]))
        with pytest.raises(ImportStateError):
            session.confirm()

    def test_cancel(self):
        session = ImportSession(self.columns)
        session.load(make_xlsx([["Nome"], ["A"]]))
        session.cancel()
        assert session.state == ImportState.IDLE
        assert session.records == []


class TestImportSessionStore:
    def test_create_get_discard(self):
        store = ImportSessionStore()
        session = store.create([ColumnSpec(key="name", label="Nome", required=True)], entity="product-types")
        assert store.get(session.id) is session
        assert session.entity == "product-types"
        assert len(store) == 1

        store.discard(session.id)
        assert len(store) == 0
        with pytest.raises(NotFoundError):
            store.get(session.id)

    def test_other_owner_cannot_see_session(self):
        store = ImportSessionStore()
        session = store.create([ColumnSpec(key="name", label="Nome")], owner_id=1)
        assert store.get(session.id, owner_id=1) is session
        with pytest.raises(NotFoundError):
            store.get(session.id, owner_id=2)

    def test_expired_sessions_are_swept(self):
        now = [1000.0]
        store = ImportSessionStore(ttl_seconds=60, clock=lambda: now[0])
        columns = [ColumnSpec(key="name", label="Nome")]
        old = store.create(columns)

        now[0] += 30
        recent = store.create(columns)
        assert len(store) == 2

        now[0] += 45
        store.create(columns)
        assert len(store) == 2
        assert store.get(recent.id) is recent
        with pytest.raises(NotFoundError):
            store.get(old.id)

        now[0] += 120
        with pytest.raises(NotFoundError):
            store.get(recent.id)
        assert len(store) == 0


class TestConcurrentConfirm:
    def test_only_one_confirm_imports(self):
        imported = []

        def _slow_import(records):
            time.sleep(0.05)
            imported.append(list(records))

        session = ImportSession([ColumnSpec(key="name", label="Nome", required=True)], on_import=_slow_import)
        session.load(make_xlsx([["Nome"], ["A"]]))

        barrier = threading.Barrier(2)
        outcomes = []

        def _confirm():
            barrier.wait()
            try:
                outcomes.append(session.confirm())
            except ImportStateError:
                outcomes.append("rejected")

        threads = [threading.Thread(target=_confirm) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes, key=str) == [1, "rejected"]
        assert imported == [[{"name": "A"}]]
