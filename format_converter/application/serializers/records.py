"""JSON, YAML and XML serializers."""
from __future__ import annotations

import json
import re
import xml.etree.ElementTree as ET
from typing import Any

import yaml

from ...domain.codecs import Serializer
from ...domain.documents import RecordDocument, Table, TextDocument
from ...domain.formats import FormatId
from ...domain.requests import ConversionOptions
from ..views import record_view, render_scalar, xml_text


class JsonSerializer(Serializer):
    accepts = (Table, RecordDocument, TextDocument)

    def __init__(self, target: FormatId = FormatId.RECORD_JSON) -> None:
        super().__init__(target)

    def serialize(self, value: Any, options: ConversionOptions) -> str:
        return json.dumps(record_view(value), indent=options.indent, ensure_ascii=False)


class _LiteralText(str):
    """Marker for strings that should be dumped as YAML literal blocks."""


class _BlockDumper(yaml.SafeDumper):
    pass


def _represent_literal(dumper: yaml.SafeDumper, data: _LiteralText) -> yaml.ScalarNode:
    return dumper.represent_scalar("tag:yaml.org,2002:str", str(data), style="|")


_BlockDumper.add_representer(_LiteralText, _represent_literal)


class YamlSerializer(Serializer):
    """Block-style YAML that keeps key order; plain text becomes ``content: |``."""

    accepts = (Table, RecordDocument, TextDocument)

    def __init__(self, target: FormatId = FormatId.RECORD_YAML) -> None:
        super().__init__(target)

    def serialize(self, value: Any, options: ConversionOptions) -> str:
        if isinstance(value, TextDocument) and value.source not in (FormatId.SCRIPT_SQL, FormatId.SCRIPT_R):
            data: Any = {"content": _LiteralText(value.text.rstrip() + "\n")}
        else:
            data = record_view(value)
        return yaml.dump(
            data,
            Dumper=_BlockDumper,
            sort_keys=False,
            allow_unicode=True,
            default_flow_style=False,
            indent=max(options.indent or 2, 2),
        )


_INVALID_NAME_CHARS = re.compile(r"[^\w.\-]", re.UNICODE)


def xml_name(key: Any) -> str:
    """Coerce a record key into a valid XML element or attribute name."""
    name = _INVALID_NAME_CHARS.sub("_", str(key))
    if not name or not (name[0].isalpha() or name[0] == "_"):
        name = f"_{name}"
    if name.lower().startswith("xml"):
        name = f"_{name}"
    return name


def _fill(element: ET.Element, value: Any) -> None:
    if isinstance(value, dict):
        for key, item in value.items():
            key = str(key)
            if key.startswith("@") and len(key) > 1 and not isinstance(item, (dict, list)):
                element.set(xml_name(key[1:]), xml_text(render_scalar(item)))
            elif key == "#text":
                element.text = xml_text(render_scalar(item))
            else:
                _append(element, key, item)
    elif value is not None:
        element.text = xml_text(render_scalar(value))


def _append(parent: ET.Element, key: str, value: Any) -> None:
    if isinstance(value, list):
        for item in value:
            _append(parent, key, item)
        return
    _fill(ET.SubElement(parent, xml_name(key)), value)


class XmlSerializer(Serializer):
    """Element tree rendering of records.

    A top-level map with one key names the root element; anything else is
    wrapped in ``<name>``. List items repeat their parent key, or use
    ``<row>``/``<item>`` at the top level.
    """

    accepts = (Table, RecordDocument, TextDocument)

    def __init__(self, target: FormatId = FormatId.MARKUP_XML) -> None:
        super().__init__(target)

    def serialize(self, value: Any, options: ConversionOptions) -> str:
        data = record_view(value)
        item_tag = "row" if isinstance(value, (Table, TextDocument)) else "item"

        if isinstance(data, dict) and len(data) == 1:
            key, content = next(iter(data.items()))
            if not str(key).startswith(("@", "#")) and not isinstance(content, list):
                root = ET.Element(xml_name(key))
                _fill(root, content)
                return self._render(root, options)

        root = ET.Element(xml_name(options.name or "data_table"))
        if isinstance(data, list):
            for item in data:
                _append(root, item_tag, item)
        else:
            _fill(root, data)
        return self._render(root, options)

    def _render(self, root: ET.Element, options: ConversionOptions) -> str:
        ET.indent(root, space=" " * (options.indent or 0))
        body = ET.tostring(root, encoding="unicode")
        return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}\n'
