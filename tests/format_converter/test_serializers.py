"""Tests for target serializers."""
import io
import json
import xml.etree.ElementTree as ET

import pytest

from format_converter.application.parsers.records import XmlParser
from format_converter.application.parsers.tabular import SpreadsheetParser
from format_converter.application.parsers.text import PdfParser
from format_converter.application.parsers.workbooks import TableauWorkbookParser
from format_converter.application.serializers import SERIALIZERS
from format_converter.application.serializers.markup import (
    HtmlSerializer,
    MarkdownSerializer,
    PlainTextSerializer,
    fence,
    records_to_markdown,
    table_to_markdown,
)
from format_converter.application.serializers.notebooks import JupyterSerializer, PercentNotebookSerializer
from format_converter.application.serializers.records import JsonSerializer, XmlSerializer, YamlSerializer, xml_name
from format_converter.application.serializers.scaffolds import (
    PythonScaffoldSerializer,
    SqlSerializer,
    python_sql_literals,
    sql_identifier,
    triple_quoted,
)
from format_converter.application.serializers.tabular import DelimitedSerializer
from format_converter.application.serializers.workbooks import (
    PowerQuerySerializer,
    SpreadsheetSerializer,
    TableauWorkbookSerializer,
    sheet_name,
)
from format_converter.domain.documents import RecordDocument, Table, TextDocument
from format_converter.domain.errors import SerializeError
from format_converter.domain.formats import FormatId

F = FormatId


@pytest.fixture
def people():
    return Table(["name", "age"], [["Alice", "30"], ["Bob", "25"]], F.TABULAR_CSV)


def test_serializers_cover_every_conversion_target():
    from format_converter.application.registry import EDGES
    from format_converter.application.transforms import TRANSFORMS

    for source, targets in EDGES.items():
        for target in targets:
            assert target in SERIALIZERS or (source, target) in TRANSFORMS, (source, target)


class TestDelimitedSerializer:
    """Test CSV/TSV output."""

    def test_minimal_quoting(self, options):
        table = Table(["a", "b"], [["x,y", 'q"t']])
        assert DelimitedSerializer(F.TABULAR_CSV).serialize(table, options) == 'a,b\n"x,y","q""t"'

    def test_records_use_first_record_keys(self, options):
        document = RecordDocument([{"a": 1}, {"a": 2}], F.RECORD_JSON)
        assert DelimitedSerializer(F.TABULAR_CSV).serialize(document, options) == "a\n1\n2"

    def test_short_rows_are_padded(self, options):
        table = Table(["a", "b"], [["1"]])
        assert DelimitedSerializer(F.TABULAR_TSV, "\t").serialize(table, options) == "a\tb\n1\t"


class TestRecordSerializers:
    """Test JSON, YAML and XML output."""

    def test_json_from_table(self, people, options):
        output = JsonSerializer().serialize(people, options)
        assert json.loads(output) == [{"name": "Alice", "age": "30"}, {"name": "Bob", "age": "25"}]
        assert output.startswith("[\n  {")

    def test_json_keeps_non_ascii(self, options):
        output = JsonSerializer().serialize(RecordDocument({"city": "Zürich"}), options)
        assert "Zürich" in output

    def test_yaml_from_table(self, options):
        table = Table(["name", "age"], [["Alice", "30"]])
        assert YamlSerializer().serialize(table, options) == "- name: Alice\n  age: '30'\n"

    def test_yaml_keeps_key_order(self, options):
        output = YamlSerializer().serialize(RecordDocument({"b": 1, "a": [True, None]}), options)
        assert output == "b: 1\na:\n- true\n- null\n"

    def test_yaml_text_is_a_literal_block(self, options):
        document = TextDocument("line one\nline two", F.DOCUMENT_TEXT)
        assert YamlSerializer().serialize(document, options) == "content: |\n  line one\n  line two\n"

    def test_xml_from_table(self, people, options):
        output = XmlSerializer().serialize(people, options)
        assert output.startswith('<?xml version="1.0" encoding="UTF-8"?>\n<data_table>')
        root = ET.fromstring(output.encode("utf-8"))
        assert [row.findtext("name") for row in root.findall("row")] == ["Alice", "Bob"]

    def test_xml_single_key_map_names_root(self, options):
        value = {"library": {"@city": "Oslo", "book": [{"@id": "1", "#text": "Dune"}, "Emma"]}}
        root = ET.fromstring(XmlSerializer().serialize(RecordDocument(value), options).encode("utf-8"))
        assert root.tag == "library"
        assert root.get("city") == "Oslo"
        books = root.findall("book")
        assert [book.text for book in books] == ["Dune", "Emma"]
        assert books[0].get("id") == "1"

    def test_xml_list_items(self, options):
        root = ET.fromstring(XmlSerializer().serialize(RecordDocument([1, None]), options).encode("utf-8"))
        assert [item.text for item in root.findall("item")] == ["1", None]

    @pytest.mark.parametrize(
        "key, expected",
        [("name", "name"), ("first name", "first_name"), ("1st", "_1st"), ("xmlns", "_xmlns"), ("", "_")],
    )
    def test_xml_name(self, key, expected):
        assert xml_name(key) == expected

    def test_xml_drops_characters_outside_xml(self, options):
        value = RecordDocument([{"a": "x\x01y", "@b": "\x0bz\ufffe"}])
        output = XmlSerializer().serialize(value, options)
        document = XmlParser().parse(output).value
        assert document == {"data_table": {"item": {"@b": "z", "a": "xy"}}}


class TestMarkdownSerializer:
    """Test Markdown output."""

    def test_table(self):
        table = Table(["a", "b"], [["1"], ["x|y", "l1\nl2"]])
        assert table_to_markdown(table) == "| a | b |\n| --- | --- |\n| 1 |  |\n| x\\|y | l1<br>l2 |\n"

    def test_records(self):
        output = records_to_markdown({"name": "demo", "tags": ["a", "b"], "meta": {}})
        assert output == "- **name**: demo\n- **tags**:\n  - a\n  - b\n- **meta**: _(empty)_\n"

    def test_nested_list_items(self):
        assert records_to_markdown([{"id": 1}]) == "- Item 1\n  - **id**: 1\n"

    def test_sql_script(self, options):
        output = MarkdownSerializer().serialize(TextDocument("SELECT 1;\n", F.SCRIPT_SQL), options)
        assert output == "# SQL Script\n\n```sql\nSELECT 1;\n```\n"

    def test_fence_outruns_backticks(self):
        assert fence("a ``` b", "python") == "````python\na ``` b\n````"

    def test_jupyter_cells(self, options):
        notebook = json.dumps({
            "cells": [
                {"cell_type": "markdown", "source": ["# Title\n", "Intro"]},
                {"cell_type": "code", "source": "print(1)", "outputs": []},
            ],
            "metadata": {"kernelspec": {"language": "python"}},
        })
        output = MarkdownSerializer().serialize(TextDocument(notebook, F.NOTEBOOK_JUPYTER), options)
        assert output == "# Title\nIntro\n\n```python\nprint(1)\n```\n"

    def test_html_page(self, options):
        html = "<html><head><title>T</title></head><body><p>Hello <b>world</b></p></body></html>"
        output = MarkdownSerializer().serialize(TextDocument(html, F.MARKUP_HTML), options)
        assert output == "# T\n\nHello **world**\n"


class TestHtmlAndTextSerializers:
    """Test HTML pages and plain text."""

    def test_markdown_page_uses_first_heading_as_title(self, options):
        output = HtmlSerializer().serialize(TextDocument("# Report\n\nSome *text*.", F.MARKUP_MARKDOWN), options)
        assert output.startswith("<!DOCTYPE html>")
        assert "<title>Report</title>" in output
        assert "<h1>Report</h1>" in output
        assert "<p>Some <em>text</em>.</p>" in output

    def test_text_paragraphs_are_escaped(self, options):
        output = HtmlSerializer().serialize(TextDocument("a < b\n\nsecond", F.DOCUMENT_TEXT), options)
        assert "<p>a &lt; b</p>\n<p>second</p>" in output
        assert "<title>data_table</title>" in output

    def test_notebook_outputs(self, options):
        notebook = json.dumps({
            "cells": [{
                "cell_type": "code",
                "source": "x < 1",
                "outputs": [{"output_type": "stream", "text": ["False\n"]}],
            }],
        })
        output = HtmlSerializer().serialize(TextDocument(notebook, F.NOTEBOOK_JUPYTER), options)
        assert "<pre><code>x &lt; 1</code></pre>" in output
        assert '<pre class="output">False\n</pre>' in output

    def test_html_rejects_records(self, options):
        with pytest.raises(SerializeError):
            HtmlSerializer().serialize(TextDocument("{}", F.RECORD_JSON), options)

    def test_text_from_html(self, options):
        html = "<h1>Title</h1><script>x()</script><p>Hello <b>world</b><br>again</p>"
        output = PlainTextSerializer().serialize(TextDocument(html, F.MARKUP_HTML), options)
        assert output == "Title\n\nHello world\nagain\n"

    def test_text_from_markdown(self, options):
        output = PlainTextSerializer().serialize(TextDocument("# Title\n\n- **one**", F.MARKUP_MARKDOWN), options)
        assert "Title" in output
        assert "one" in output
        assert "**" not in output


class TestNotebookSerializers:
    """Test Jupyter and percent notebook output."""

    def test_python_script_splits_on_blank_lines(self, options):
        script = TextDocument("import os\n\n\nprint(1)\nprint(2)", F.SCRIPT_PYTHON)
        notebook = json.loads(JupyterSerializer().serialize(script, options))
        assert notebook["nbformat"] == 4
        assert notebook["nbformat_minor"] == 4
        assert notebook["metadata"]["kernelspec"]["name"] == "python3"
        assert [cell["source"] for cell in notebook["cells"]] == [["import os"], ["print(1)\n", "print(2)"]]
        assert notebook["cells"][0]["execution_count"] is None
        assert notebook["cells"][0]["outputs"] == []

    def test_percent_round_trip_to_jupyter(self, options):
        percent = "# %% [markdown]\n# # Title\n\n# %%\nx = 1\n"
        notebook = json.loads(JupyterSerializer().serialize(TextDocument(percent, F.NOTEBOOK_GENERIC), options))
        assert [cell["cell_type"] for cell in notebook["cells"]] == ["markdown", "code"]
        assert notebook["cells"][0]["source"] == ["# Title"]

    def test_percent_from_python(self, options):
        script = TextDocument("import os\n\n\nprint(1)\nprint(2)", F.SCRIPT_PYTHON)
        output = PercentNotebookSerializer().serialize(script, options)
        assert output == "# %%\nimport os\n\n# %%\nprint(1)\nprint(2)\n"

    def test_percent_from_jupyter_comments_markdown(self, options):
        notebook = json.dumps({"cells": [{"cell_type": "markdown", "source": "Intro\n\nMore"}]})
        output = PercentNotebookSerializer().serialize(TextDocument(notebook, F.NOTEBOOK_JUPYTER), options)
        assert output == "# %% [markdown]\n# Intro\n#\n# More\n"

    def test_rejects_prose(self, options):
        with pytest.raises(SerializeError):
            JupyterSerializer().serialize(TextDocument("text", F.DOCUMENT_TEXT), options)


class TestSqlSerializer:
    """Test SQL output."""

    @pytest.fixture
    def scores(self):
        return Table(["id", "name", "score"], [["1", "Ann", "9.5"], ["2", "O'Neil", ""]])

    def test_create_and_insert(self, scores, options):
        output = SqlSerializer().serialize(scores, options)
        assert "CREATE TABLE data_table (\n  id INTEGER,\n  name VARCHAR(255),\n  score REAL\n);" in output
        assert "INSERT INTO data_table (id, name, score) VALUES (1, 'Ann', 9.5);" in output
        assert "INSERT INTO data_table (id, name, score) VALUES (2, 'O''Neil', NULL);" in output

    def test_type_inference_can_be_disabled(self, scores, options):
        from dataclasses import replace

        output = SqlSerializer().serialize(scores, replace(options, infer_types=False, varchar_length=40))
        assert "  id VARCHAR(40)," in output
        assert "VALUES ('1', 'Ann', '9.5');" in output

    def test_duplicate_and_blank_columns(self, options):
        output = SqlSerializer().serialize(Table(["a", "A", ""], [["x", "y", "z"]]), options)
        assert "(a, A_2, column_3)" in output

    @pytest.mark.parametrize(
        "name, expected",
        [("plain_name", "plain_name"), ("order", '"order"'), ("full name", '"full name"'), ('a"b', '"a""b"')],
    )
    def test_sql_identifier(self, name, expected):
        assert sql_identifier(name) == expected

    def test_statements_from_python(self, options):
        source = 'import sqlite3\nQUERY = "SELECT * FROM users"\nname = "selected user"\n'
        output = SqlSerializer().serialize(TextDocument(source, F.SCRIPT_PYTHON), options)
        assert "-- Found 1 statement(s)" in output
        assert "\nSELECT * FROM users;\n" in output
        assert "-- import sqlite3" in output

    def test_unparseable_python(self):
        statements, error = python_sql_literals("def (:\n")
        assert statements == []
        assert "line 1" in error

    def test_notes_from_text(self, options):
        output = SqlSerializer().serialize(TextDocument("hello\nit's me", F.DOCUMENT_TEXT), options)
        assert "CREATE TABLE notes (" in output
        assert "VALUES (2, 'it''s me');" in output


class TestPythonScaffold:
    """Generated Python must at least compile."""

    @pytest.mark.parametrize(
        "value",
        [
            Table(["a", "b"], [['say "hi"', "c:\\temp"]], F.TABULAR_CSV),
            RecordDocument({"items": [1, 2], "ok": True, "none": None}, F.RECORD_YAML),
            TextDocument("CREATE TABLE t (a INT);\nINSERT INTO t VALUES (1);", F.SCRIPT_SQL),
            TextDocument('df <- data.frame(x = c(1, 2), y = c("a", "b"))', F.SCRIPT_R),
            TextDocument('She said "hi"', F.DOCUMENT_TEXT),
            TextDocument("# %% [markdown]\n# Intro\n\n# %%\nx = 1\n", F.NOTEBOOK_GENERIC),
        ],
    )
    def test_compiles(self, value, options):
        output = PythonScaffoldSerializer().serialize(value, options)
        compile(output, "<scaffold>", "exec")

    def test_table_embeds_csv(self, people, options):
        output = PythonScaffoldSerializer().serialize(people, options)
        assert 'csv_data = """name,age\nAlice,30\nBob,25\n"""' in output
        assert '# df = pd.read_csv("data_table.csv")' in output

    def test_r_data_frame_is_recovered(self, options):
        value = TextDocument('df <- data.frame(x = c(1, 2))', F.SCRIPT_R)
        output = PythonScaffoldSerializer().serialize(value, options)
        assert "df = pd.DataFrame({'x': ['1', '2']})" in output

    def test_triple_quoted(self):
        assert triple_quoted('a"""b"') == '"""a\\"\\"\\"b\\""""'


class TestWorkbookSerializers:
    """Test spreadsheet and BI scaffolds."""

    def test_spreadsheet_round_trip(self, people, options):
        output = SpreadsheetSerializer().serialize(people, options)
        assert output.startswith("PK\x03\x04")
        table = SpreadsheetParser().parse(output)
        assert table.columns == ["name", "age"]
        assert table.rows == [["Alice", "30"], ["Bob", "25"]]

    def test_spreadsheet_is_a_real_workbook(self, options):
        openpyxl = pytest.importorskip("openpyxl")
        table = Table(["sku", "qty", "price", "code", "note"], [["A1", "4", "2.5", "007", "=SUM(B2)"]])
        output = SpreadsheetSerializer().serialize(table, options)
        sheet = openpyxl.load_workbook(io.BytesIO(output.encode("latin-1"))).active
        assert sheet.title == "data_table"
        assert sheet["A1"].font.bold
        assert [cell.value for cell in sheet[2]] == ["A1", 4, 2.5, "007", "=SUM(B2)"]
        assert sheet["E2"].data_type == "s"

    def test_spreadsheet_drops_control_characters(self, options):
        table = Table(["a"], [["x\x01y"]])
        output = SpreadsheetSerializer().serialize(table, options)
        assert SpreadsheetParser().parse(output).rows == [["xy"]]

    @pytest.mark.parametrize("name, expected", [("a/b:c", "a_b_c"), ("", "Sheet1"), ("x" * 40, "x" * 31)])
    def test_sheet_name(self, name, expected):
        assert sheet_name(name) == expected

    def test_power_query(self, people, options):
        output = PowerQuerySerializer().serialize(people, options)
        assert output.startswith("// Power Query (M) scaffold\n// Query: data_table\n")
        assert '{"name", "age"},' in output
        assert '{"Alice", "30"}' in output
        assert '{"age", Int64.Type}' in output
        assert '{"name", type text}' in output
        assert output.rstrip().endswith('#"Changed Type"')

    def test_tableau_round_trip(self, people, options):
        output = TableauWorkbookSerializer().serialize(people, options)
        assert output.startswith("<?xml version='1.0' encoding='utf-8' ?>\n<workbook")
        table = TableauWorkbookParser().parse(output)
        assert table.rows == [["data_table", "name", "string"], ["data_table", "age", "integer"]]

    def test_tableau_drops_characters_outside_xml(self, options):
        inventory = Table(["table", "column", "data_type"], [["Sa\x01les", "Amo\x1funt", "double"]], F.BI_WORKBOOK)
        table = TableauWorkbookParser().parse(TableauWorkbookSerializer().serialize(inventory, options))
        assert table.rows == [["Sales", "Amount", "real"]]

    def test_tableau_from_power_bi_inventory(self, options):
        inventory = Table(
            ["table", "column", "data_type"],
            [["Sales", "Amount", "double"], ["Sales", "Region", "string"], ["Dates", "Day", "dateTime"]],
            F.BI_WORKBOOK,
        )
        table = TableauWorkbookParser().parse(TableauWorkbookSerializer().serialize(inventory, options))
        assert table.rows == [
            ["Sales", "Amount", "real"],
            ["Sales", "Region", "string"],
            ["Dates", "Day", "datetime"],
        ]


def test_pdf_round_trip(options):
    pytest.importorskip("pymupdf")
    from format_converter.application.serializers.documents import PdfSerializer

    output = PdfSerializer().serialize(TextDocument("Hello PDF\n\nSecond paragraph", F.DOCUMENT_TEXT), options)
    assert output.startswith("%PDF-")
    text = PdfParser().parse(output).text
    assert "Hello PDF" in text
    assert "Second paragraph" in text
