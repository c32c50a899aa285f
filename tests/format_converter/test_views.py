"""Tests for shape views and script table extraction."""
import pytest

from format_converter.application.script_tables import split_top_level, table_from_r, table_from_sql
from format_converter.application.views import infer_column_type, record_view, render_scalar, tabular_view
from format_converter.domain.documents import RecordDocument, Table, TextDocument
from format_converter.domain.errors import SerializeError, SerializeFailure
from format_converter.domain.formats import FormatId


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, ""),
        (True, "true"),
        (False, "false"),
        (3, "3"),
        (2.5, "2.5"),
        ("text", "text"),
        ([1, "a"], '[1,"a"]'),
        ({"k": None}, '{"k":null}'),
    ],
)
def test_render_scalar(value, expected):
    assert render_scalar(value) == expected


@pytest.mark.parametrize(
    "values, expected",
    [
        (["1", "-2", ""], "integer"),
        (["1", "2.5", "3e2"], "real"),
        (["1", "two"], "text"),
        (["", " "], "text"),
    ],
)
def test_infer_column_type(values, expected):
    assert infer_column_type(values) == expected


class TestTabularView:
    """Test tabular_view."""

    def test_table_passes_through(self):
        table = Table(["a"], [["1"]])
        assert tabular_view(table) is table

    def test_records_project_onto_first_keys(self):
        document = RecordDocument([{"a": 1, "b": True}, {"b": None, "c": 4}], FormatId.RECORD_JSON)
        table = tabular_view(document)
        assert table.columns == ["a", "b"]
        assert table.rows == [["1", "true"], ["", ""]]

    @pytest.mark.parametrize("value", [[], {"a": 1}, "text", [1, 2], [{"a": 1}, 2], [{}], [{}, {"a": 1}]])
    def test_non_record_lists_are_rejected(self, value):
        with pytest.raises(SerializeError) as info:
            tabular_view(RecordDocument(value, FormatId.RECORD_JSON))
        assert info.value.reason is SerializeFailure.SHAPE_MISMATCH

    def test_xml_collection_is_unwrapped(self):
        tree = {"people": {"person": [{"name": "Ann"}, {"name": "Bo"}]}}
        table = tabular_view(RecordDocument(tree, FormatId.MARKUP_XML))
        assert table.columns == ["name"]
        assert table.rows == [["Ann"], ["Bo"]]

    def test_single_xml_record(self):
        tree = {"person": {"@id": "7", "name": "Ann", "age": "30"}}
        table = tabular_view(RecordDocument(tree, FormatId.MARKUP_XML))
        assert table.columns == ["@id", "name", "age"]
        assert table.rows == [["7", "Ann", "30"]]

    def test_sql_inserts(self):
        text = "INSERT INTO t (a, b) VALUES (1, 'x'), (2, NULL);"
        table = tabular_view(TextDocument(text, FormatId.SCRIPT_SQL))
        assert table.columns == ["a", "b"]
        assert table.rows == [["1", "x"], ["2", ""]]

    def test_sql_without_inserts(self):
        with pytest.raises(SerializeError):
            tabular_view(TextDocument("SELECT 1;", FormatId.SCRIPT_SQL))

    def test_plain_text_is_rejected(self):
        with pytest.raises(SerializeError):
            tabular_view(TextDocument("hello", FormatId.DOCUMENT_TEXT))


def test_record_view_of_table_keeps_strings():
    table = Table(["a", "b"], [["1"], ["2", "3"]])
    assert record_view(table) == [{"a": "1", "b": ""}, {"a": "2", "b": "3"}]


def test_record_view_rejects_prose():
    with pytest.raises(SerializeError):
        record_view(TextDocument("hello", FormatId.DOCUMENT_TEXT))


class TestSqlExtraction:
    """Test INSERT statement recovery."""

    def test_columns_from_create_table(self):
        sql = (
            "-- people\n"
            'CREATE TABLE "people" (\n  id INTEGER PRIMARY KEY,\n  "full name" VARCHAR(255),\n'
            "  PRIMARY KEY (id)\n);\n"
            "INSERT INTO people VALUES (1, 'Ann O''Neil');\n"
            "INSERT INTO people VALUES (2, 'Bo, Jr.');\n"
        )
        table = table_from_sql(sql)
        assert table.columns == ["id", "full name"]
        assert table.rows == [["1", "Ann O'Neil"], ["2", "Bo, Jr."]]

    def test_only_first_table_is_read(self):
        sql = "INSERT INTO a (x) VALUES (1);\nINSERT INTO b (y) VALUES (2);\nINSERT INTO a (x) VALUES (3);"
        table = table_from_sql(sql)
        assert table.rows == [["1"], ["3"]]

    def test_generated_column_names(self):
        table = table_from_sql("insert into t values (1, 2)")
        assert table.columns == ["column_1", "column_2"]

    def test_no_insert(self):
        assert table_from_sql("CREATE TABLE t (a INT);") is None

    def test_backslash_is_an_ordinary_character(self):
        sql = "INSERT INTO paths (p) VALUES ('C:\\');\nINSERT INTO paths (p) VALUES ('D:');\n"
        table = table_from_sql(sql)
        assert table.columns == ["p"]
        assert table.rows == [["C:\\"], ["D:"]]


class TestRExtraction:
    """Test data.frame literal recovery."""

    def test_data_frame_vectors(self):
        code = (
            "# sample data\n"
            "df <- data.frame(\n"
            '  name = c("Ann", "Bo"),  # names\n'
            "  score = c(9.5, NA),\n"
            "  stringsAsFactors = FALSE\n"
            ")\n"
            "summary(df)\n"
        )
        table = table_from_r(code)
        assert table.columns == ["name", "score"]
        assert table.rows == [["Ann", "9.5"], ["Bo", ""]]

    def test_length_one_vectors_recycle(self):
        table = table_from_r('data.frame(id = c(1, 2, 3), group = "a")')
        assert table.rows == [["1", "a"], ["2", "a"], ["3", "a"]]

    def test_backslash_escapes_in_strings(self):
        table = table_from_r('data.frame(s = c("a\\"b", "c\\\\"))')
        assert table.rows == [['a"b'], ["c\\"]]

    def test_no_data_frame(self):
        assert table_from_r("x <- read.csv('data.csv')") is None


def test_split_top_level_respects_quotes_and_parens():
    assert split_top_level("1, 'a,b', f(2, 3)") == ["1", " 'a,b'", " f(2, 3)"]
