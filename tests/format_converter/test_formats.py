"""Tests for format identifiers and descriptors."""
import pytest

from format_converter.domain.errors import UnknownFormat
from format_converter.domain.formats import FormatCategory, FormatDescriptor, FormatId


class TestFormatId:
    """Test FormatId lookups."""

    def test_from_string_accepts_value(self):
        assert FormatId.from_string("csv") is FormatId.TABULAR_CSV

    def test_from_string_accepts_label_and_name(self):
        assert FormatId.from_string("tabular-csv") is FormatId.TABULAR_CSV
        assert FormatId.from_string("RECORD_JSON") is FormatId.RECORD_JSON

    def test_from_string_is_case_insensitive(self):
        assert FormatId.from_string("  YAML ") is FormatId.RECORD_YAML

    def test_from_string_passes_enum_through(self):
        assert FormatId.from_string(FormatId.DOCUMENT_PDF) is FormatId.DOCUMENT_PDF

    def test_unknown_string_raises(self):
        with pytest.raises(UnknownFormat):
            FormatId.from_string("docx")

    def test_label(self):
        assert FormatId.NOTEBOOK_GENERIC.label == "notebook-generic"

    def test_closed_set(self):
        assert len(FormatId.all_formats()) == 18


def test_descriptor_default_extension_and_dict():
    descriptor = FormatDescriptor(
        FormatId.RECORD_YAML, "YAML", (".yaml", ".yml"), "YAML Ain't Markup Language", FormatCategory.MARKUP
    )
    assert descriptor.default_extension == ".yaml"
    assert descriptor.as_dict() == {
        "id": "yaml",
        "name": "YAML",
        "extensions": [".yaml", ".yml"],
        "description": "YAML Ain't Markup Language",
        "category": "markup",
    }
