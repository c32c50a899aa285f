"""JSON, YAML and XML parsers producing ``RecordDocument`` trees."""
from __future__ import annotations

import base64
import datetime
import json
import xml.etree.ElementTree as ET
from typing import Any, Dict, Set

import yaml
from defusedxml import DefusedXmlException
from defusedxml import ElementTree as SafeET

from ...domain.codecs import Parser
from ...domain.documents import RecordDocument
from ...domain.errors import ParseError, ParseFailure
from ...domain.formats import FormatId


def _require_content(text: str, label: str) -> None:
    if not text.strip():
        raise ParseError(f"{label} input is empty", ParseFailure.EMPTY_INPUT)


class JsonParser(Parser):
    produces = RecordDocument

    def __init__(self, source: FormatId = FormatId.RECORD_JSON) -> None:
        super().__init__(source)

    def parse(self, text: str) -> RecordDocument:
        _require_content(text, "JSON")
        try:
            value = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ParseError(
                f"Malformed JSON at line {exc.lineno}, column {exc.colno}: {exc.msg}",
                ParseFailure.MALFORMED_RECORD,
                position=(exc.lineno, exc.colno),
                cause=exc,
            ) from exc
        return RecordDocument(value, self.source)


def _key_text(key: Any) -> str:
    if isinstance(key, str):
        return key
    if key is None:
        return "null"
    if isinstance(key, bool):
        return "true" if key else "false"
    return str(key)


def _plain(value: Any) -> Any:
    """Reduce PyYAML's richer scalars to the JSON data model."""
    if isinstance(value, dict):
        return {_key_text(key): _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if isinstance(value, set):
        return [_plain(item) for item in sorted(value, key=str)]
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    return value


class YamlParser(Parser):
    """YAML via ``yaml.safe_load``; timestamps become ISO strings."""

    produces = RecordDocument

    def __init__(self, source: FormatId = FormatId.RECORD_YAML) -> None:
        super().__init__(source)

    def parse(self, text: str) -> RecordDocument:
        _require_content(text, "YAML")
        try:
            value = yaml.safe_load(text)
        except yaml.MarkedYAMLError as exc:
            mark = exc.problem_mark or exc.context_mark
            position = (mark.line + 1, mark.column + 1) if mark is not None else None
            raise ParseError(
                f"Malformed YAML: {exc.problem or exc}",
                ParseFailure.MALFORMED_RECORD,
                position=position,
                cause=exc,
            ) from exc
        except yaml.YAMLError as exc:
            raise ParseError(f"Malformed YAML: {exc}", ParseFailure.MALFORMED_RECORD, cause=exc) from exc
        return RecordDocument(_plain(value), self.source)


def local_name(tag: str) -> str:
    """Strip a ``{namespace}`` prefix from an ElementTree tag or attribute."""
    return tag.rsplit("}", 1)[-1] if tag.startswith("{") else tag


def element_value(element: ET.Element) -> Any:
    """Map an element to a record tree.

    Text-only elements become their text and empty ones ``None``. Anything
    else becomes a map of ``@attribute`` keys, ``#text`` and child tags, with
    repeated child tags collected into lists.
    """
    children = list(element)
    text = (element.text or "").strip()
    if not element.attrib and not children:
        return text if text else None

    node: Dict[str, Any] = {}
    for key, value in element.attrib.items():
        node[f"@{local_name(key)}"] = value
    if text:
        node["#text"] = text

    repeated: Set[str] = set()
    for child in children:
        tag = local_name(child.tag)
        value = element_value(child)
        if tag not in node:
            node[tag] = value
        elif tag in repeated:
            node[tag].append(value)
        else:
            node[tag] = [node[tag], value]
            repeated.add(tag)
    return node


def parse_untrusted_xml(text: str, label: str) -> ET.Element:
    """Parse XML with entity and external reference expansion refused."""
    body = text.lstrip()
    skipped_lines = text[: len(text) - len(body)].count("\n")
    try:
        return SafeET.fromstring(body)
    except SafeET.ParseError as exc:
        line, column = exc.position
        raise ParseError(
            f"Malformed {label}: {exc}",
            ParseFailure.MALFORMED_RECORD,
            position=(line + skipped_lines, column + 1),
            cause=exc,
        ) from exc
    except DefusedXmlException as exc:
        raise ParseError(
            f"Refused {label}: {exc}",
            ParseFailure.MALFORMED_RECORD,
            cause=exc,
        ) from exc


class XmlParser(Parser):
    produces = RecordDocument

    def __init__(self, source: FormatId = FormatId.MARKUP_XML) -> None:
        super().__init__(source)

    def parse(self, text: str) -> RecordDocument:
        _require_content(text, "XML")
        root = parse_untrusted_xml(text, "XML")
        return RecordDocument({local_name(root.tag): element_value(root)}, self.source)
