"""HTML and Markdown helpers.

* ``html_to_markdown`` walks the document with ``html.parser`` and keeps
  basic structure (headings, lists, code, links, images, tables) while
  dropping script/style noise.
* ``markdown_to_html`` is a small block/inline renderer covering the
  Markdown this package itself emits plus the common CommonMark subset.
* ``html_to_text`` uses BeautifulSoup to reduce a page to readable text.
"""
from __future__ import annotations

import html as html_lib
import re
from html.parser import HTMLParser
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup

SKIP_CONTENT_TAGS = {"script", "style", "noscript", "template"}
IGNORE_STRUCTURE_TAGS = {"nav"}
HEADING_TAGS = {f"h{i}": i for i in range(1, 7)}
TEXT_BLOCK_TAGS = {
    "p", "div", "section", "article", "main", "header", "footer", "aside",
    "h1", "h2", "h3", "h4", "h5", "h6", "li", "tr", "pre", "blockquote",
    "table", "ul", "ol", "dl", "dt", "dd", "figure", "figcaption", "hr",
}


def _collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


# ---------------------------------------------------------------------------
# HTML -> Markdown
# ---------------------------------------------------------------------------
class _HTMLToMarkdownParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.out: List[str] = []
        self.list_stack: List[str] = []
        self.skip_depth = 0
        self.in_pre = False
        self.link_href: Optional[str] = None
        self.title: Optional[str] = None
        self.capture_title = False
        self.quote_start: List[int] = []
        self.current_table: Optional[List[List[str]]] = None
        self.current_row: Optional[List[str]] = None
        self.current_cell: Optional[List[str]] = None

    def _newline(self) -> None:
        if self.out and not self.out[-1].endswith("\n"):
            self.out.append("\n")

    def _blank_line(self) -> None:
        self._newline()
        if self.out and not "".join(self.out[-2:]).endswith("\n\n"):
            self.out.append("\n")

    def _append_text(self, text: str) -> None:
        if self.in_pre:
            self.out.append(text)
            return
        cleaned = _collapse_whitespace(text)
        if not cleaned:
            if text and self.out and not self.out[-1].endswith((" ", "\n")):
                self.out.append(" ")
            return
        if text[:1].isspace() and self.out and not self.out[-1].endswith((" ", "\n", "[")):
            cleaned = " " + cleaned
        if text[-1:].isspace():
            cleaned += " "
        self.out.append(cleaned)

    def handle_starttag(self, tag, attrs):
        tag = tag.lower()
        if tag == "title":
            self.capture_title = True
            return
        if tag in SKIP_CONTENT_TAGS or tag in IGNORE_STRUCTURE_TAGS:
            self.skip_depth += 1
            return
        if self.skip_depth:
            return

        attributes = {key.lower(): value or "" for key, value in attrs}
        if self.current_table is not None:
            if tag == "tr":
                self.current_row = []
            elif tag in ("td", "th"):
                self.current_cell = []
            return

        if tag in HEADING_TAGS:
            self._blank_line()
            self.out.append("#" * HEADING_TAGS[tag] + " ")
        elif tag == "br":
            self.out.append("\n")
        elif tag in ("p", "div", "section", "article", "main", "header", "footer", "aside"):
            self._blank_line()
        elif tag == "blockquote":
            self._blank_line()
            self.quote_start.append(len(self.out))
        elif tag in ("ul", "ol"):
            if not self.list_stack:
                self._blank_line()
            self.list_stack.append(tag)
        elif tag == "li":
            self._newline()
            indent = "  " * max(len(self.list_stack) - 1, 0)
            bullet = "1." if self.list_stack and self.list_stack[-1] == "ol" else "-"
            self.out.append(f"{indent}{bullet} ")
        elif tag == "pre":
            self._blank_line()
            self.out.append("```\n")
            self.in_pre = True
        elif tag == "code" and not self.in_pre:
            self.out.append("`")
        elif tag == "a":
            self.link_href = attributes.get("href", "")
            self.out.append("[")
        elif tag == "img":
            src = attributes.get("src", "")
            if src:
                self.out.append(f"![{_collapse_whitespace(attributes.get('alt', ''))}]({src})")
        elif tag == "hr":
            self._blank_line()
            self.out.append("---\n\n")
        elif tag in ("strong", "b"):
            self.out.append("**")
        elif tag in ("em", "i"):
            self.out.append("*")
        elif tag == "table":
            self._blank_line()
            self.current_table = []

    def handle_endtag(self, tag):
        tag = tag.lower()
        if tag == "title":
            self.capture_title = False
            return
        if tag in SKIP_CONTENT_TAGS or tag in IGNORE_STRUCTURE_TAGS:
            if self.skip_depth:
                self.skip_depth -= 1
            return
        if self.skip_depth:
            return

        if self.current_table is not None:
            if tag in ("td", "th") and self.current_cell is not None and self.current_row is not None:
                self.current_row.append(_collapse_whitespace("".join(self.current_cell)))
                self.current_cell = None
            elif tag == "tr" and self.current_row is not None:
                self.current_table.append(self.current_row)
                self.current_row = None
            elif tag == "table":
                self._emit_table(self.current_table)
                self.current_table = None
            return

        if tag in HEADING_TAGS or tag in ("p", "div", "section", "article", "main", "header", "footer", "aside"):
            self._blank_line()
        elif tag == "blockquote" and self.quote_start:
            start = self.quote_start.pop()
            body = "".join(self.out[start:]).strip("\n")
            del self.out[start:]
            quoted = "\n".join(f"> {line}".rstrip() for line in body.split("\n"))
            self.out.append(quoted)
            self._blank_line()
        elif tag in ("ul", "ol"):
            if self.list_stack:
                self.list_stack.pop()
            if not self.list_stack:
                self._blank_line()
        elif tag == "li":
            self._newline()
        elif tag == "pre" and self.in_pre:
            if self.out and not self.out[-1].endswith("\n"):
                self.out.append("\n")
            self.out.append("```\n")
            self.in_pre = False
            self._blank_line()
        elif tag == "code" and not self.in_pre:
            self.out.append("`")
        elif tag == "a" and self.link_href is not None:
            self.out.append(f"]({self.link_href})" if self.link_href else "]")
            self.link_href = None
        elif tag in ("strong", "b"):
            self.out.append("**")
        elif tag in ("em", "i"):
            self.out.append("*")

    def handle_data(self, data):
        if self.capture_title:
            title_text = _collapse_whitespace(data)
            if title_text:
                self.title = (self.title or "") + title_text
            return
        if self.skip_depth:
            return
        if self.current_table is not None:
            if self.current_cell is not None:
                self.current_cell.append(data)
            return
        self._append_text(data)

    def _emit_table(self, table: List[List[str]]) -> None:
        rows = [row for row in table if any(cell.strip() for cell in row)]
        if not rows:
            return
        width = max(len(row) for row in rows)
        rows = [row + [""] * (width - len(row)) for row in rows]
        lines = ["| " + " | ".join(cell.replace("|", "\\|") for cell in rows[0]) + " |"]
        lines.append("| " + " | ".join(["---"] * width) + " |")
        for row in rows[1:]:
            lines.append("| " + " | ".join(cell.replace("|", "\\|") for cell in row) + " |")
        self._blank_line()
        self.out.append("\n".join(lines) + "\n")
        self._blank_line()


def html_to_markdown(html: str) -> str:
    """Convert HTML to simplified Markdown.

    The ``<title>`` becomes the leading H1 when the body has none, and runs
    of blank lines collapse to one.
    """
    html = re.sub(r"(?is)<!DOCTYPE[^>]*>", " ", html)
    html = re.sub(r"(?is)<\?xml[^>]*>", " ", html)

    parser = _HTMLToMarkdownParser()
    parser.feed(html)
    parser.close()

    lines = [line.rstrip() for line in "".join(parser.out).splitlines()]
    if parser.title and not any(line.startswith("# ") for line in lines):
        lines = [f"# {parser.title}", ""] + lines

    cleaned: List[str] = []
    for line in lines:
        if not line.strip() and (not cleaned or not cleaned[-1].strip()):
            continue
        cleaned.append(line)
    return "\n".join(cleaned).strip() + "\n"


# ---------------------------------------------------------------------------
# HTML -> text
# ---------------------------------------------------------------------------
def html_to_text(html: str) -> str:
    """Readable text of an HTML page, one block element per line."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(list(SKIP_CONTENT_TAGS)):
        tag.decompose()
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for tag in soup.find_all(list(TEXT_BLOCK_TAGS)):
        tag.insert_before("\n")
        tag.insert_after("\n")
    for cell in soup.find_all(["td", "th"]):
        cell.insert_after("\t")

    lines: List[str] = []
    for raw in soup.get_text().splitlines():
        line = re.sub(r"[ \t]+", " ", raw).strip()
        if not line and (not lines or not lines[-1]):
            continue
        lines.append(line)
    return "\n".join(lines).strip() + "\n"


# ---------------------------------------------------------------------------
# Markdown -> HTML
# ---------------------------------------------------------------------------
_FENCE_RE = re.compile(r"^(\s*)(`{3,}|~{3,})\s*([\w+#.-]*)")
_HEADING_RE = re.compile(r"^(#{1,6})\s+(.*?)\s*#*\s*$")
_RULE_RE = re.compile(r"^\s{0,3}(?:(?:\*\s*){3,}|(?:-\s*){3,}|(?:_\s*){3,})$")
_LIST_ITEM_RE = re.compile(r"^(\s*)([-*+]|\d+[.)])\s+(.*)$")
_TABLE_SEPARATOR_RE = re.compile(r"^\s*\|?\s*:?-{3,}:?\s*(?:\|\s*:?-{3,}:?\s*)*\|?\s*$")
_QUOTE_RE = re.compile(r"^\s{0,3}>\s?(.*)$")

_CODE_SPAN_RE = re.compile(r"(`+)(.+?)\1")
_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)\s]+)(?:\s+&quot;(.*?)&quot;)?\)")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)\s]+)(?:\s+&quot;(.*?)&quot;)?\)")
_BOLD_RE = re.compile(r"(\*\*|__)(?=\S)(.+?)(?<=\S)\1")
_ITALIC_RE = re.compile(r"(?<![\w*])(\*|_)(?=\S)(.+?)(?<=\S)\1(?![\w*])")


def render_inline(text: str) -> str:
    """Escape ``text`` and apply code, image, link and emphasis markup."""
    spans: List[str] = []

    def _stash(match: re.Match) -> str:
        spans.append(f"<code>{html_lib.escape(match.group(2).strip(), quote=False)}</code>")
        return f"\x00{len(spans) - 1}\x00"

    text = _CODE_SPAN_RE.sub(_stash, text)
    text = html_lib.escape(text)
    text = _IMAGE_RE.sub(
        lambda m: f'<img src="{m.group(2)}" alt="{m.group(1)}"'
        + (f' title="{m.group(3)}"' if m.group(3) else "") + " />",
        text,
    )
    text = _LINK_RE.sub(
        lambda m: f'<a href="{m.group(2)}"'
        + (f' title="{m.group(3)}"' if m.group(3) else "") + f">{m.group(1)}</a>",
        text,
    )
    text = _BOLD_RE.sub(r"<strong>\2</strong>", text)
    text = _ITALIC_RE.sub(r"<em>\2</em>", text)
    text = re.sub(r"\\([\\`*_{}\[\]()#+\-.!|])", r"\1", text)
    return re.sub("\x00(\\d+)\x00", lambda m: spans[int(m.group(1))], text)


def _split_row(line: str) -> List[str]:
    line = line.strip()
    if line.startswith("|"):
        line = line[1:]
    if line.endswith("|") and not line.endswith("\\|"):
        line = line[:-1]
    return [cell.strip().replace("\\|", "|") for cell in re.split(r"(?<!\\)\|", line)]


def _alignments(separator: str) -> List[Optional[str]]:
    result: List[Optional[str]] = []
    for cell in _split_row(separator):
        if cell.startswith(":") and cell.endswith(":"):
            result.append("center")
        elif cell.endswith(":"):
            result.append("right")
        elif cell.startswith(":"):
            result.append("left")
        else:
            result.append(None)
    return result


def _render_table(lines: List[str]) -> str:
    header = _split_row(lines[0])
    aligns = _alignments(lines[1])

    def _cell(tag: str, text: str, index: int) -> str:
        align = aligns[index] if index < len(aligns) else None
        style = f' style="text-align: {align}"' if align else ""
        return f"<{tag}{style}>{render_inline(text)}</{tag}>"

    parts = ["<table>", "<thead>", "<tr>"]
    parts.extend(_cell("th", cell, i) for i, cell in enumerate(header))
    parts.extend(["</tr>", "</thead>", "<tbody>"])
    for line in lines[2:]:
        cells = _split_row(line)
        cells += [""] * (len(header) - len(cells))
        parts.append("<tr>")
        parts.extend(_cell("td", cell, i) for i, cell in enumerate(cells[:len(header)]))
        parts.append("</tr>")
    parts.extend(["</tbody>", "</table>"])
    return "\n".join(parts)


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip(" "))


def _render_list(lines: List[str], start: int) -> Tuple[str, int]:
    first = _LIST_ITEM_RE.match(lines[start])
    base = len(first.group(1))
    ordered = first.group(2)[0].isdigit()
    items: List[Tuple[List[str], List[str]]] = []
    index = start
    while index < len(lines):
        line = lines[index]
        match = _LIST_ITEM_RE.match(line)
        if match and len(match.group(1)) == base:
            items.append(([match.group(3)], []))
        elif match and len(match.group(1)) > base and items:
            items[-1][1].append(line)
        elif not line.strip():
            following = lines[index + 1] if index + 1 < len(lines) else ""
            if following.strip() and _indent_of(following) > base and items:
                items[-1][1].append("")
            elif not (_LIST_ITEM_RE.match(following) and _indent_of(following) == base):
                break
        elif _indent_of(line) > base and items:
            items[-1][1].append(line)
        elif items and not items[-1][1] and not _block_start(line):
            items[-1][0].append(line.strip())  # lazy continuation
        else:
            break
        index += 1

    tag = "ol" if ordered else "ul"
    parts = [f"<{tag}>"]
    for text, children in items:
        body = render_inline(" ".join(text))
        if children:
            depth = min(_indent_of(child) for child in children if child.strip())
            nested = "\n".join(_render_blocks([child[depth:] for child in children]))
            parts.append(f"<li>{body}\n{nested}\n</li>")
        else:
            parts.append(f"<li>{body}</li>")
    parts.append(f"</{tag}>")
    return "\n".join(parts), index


def _block_start(line: str) -> bool:
    return bool(
        _FENCE_RE.match(line)
        or _HEADING_RE.match(line)
        or _RULE_RE.match(line)
        or _LIST_ITEM_RE.match(line)
        or _QUOTE_RE.match(line)
    )


def _render_blocks(lines: List[str]) -> List[str]:
    blocks: List[str] = []
    paragraph: List[str] = []

    def _flush() -> None:
        if paragraph:
            blocks.append(f"<p>{render_inline(chr(10).join(paragraph))}</p>")
            paragraph.clear()

    index = 0
    while index < len(lines):
        line = lines[index]
        fence = _FENCE_RE.match(line)
        if fence:
            _flush()
            marker = fence.group(2)
            language = fence.group(3)
            code: List[str] = []
            index += 1
            while index < len(lines) and not lines[index].strip().startswith(marker):
                code.append(lines[index])
                index += 1
            css = f' class="language-{language}"' if language else ""
            blocks.append(f"<pre><code{css}>{html_lib.escape(chr(10).join(code), quote=False)}</code></pre>")
            index += 1
            continue
        if not line.strip():
            _flush()
            index += 1
            continue
        heading = _HEADING_RE.match(line)
        if heading:
            _flush()
            level = len(heading.group(1))
            blocks.append(f"<h{level}>{render_inline(heading.group(2))}</h{level}>")
            index += 1
            continue
        if _RULE_RE.match(line):
            _flush()
            blocks.append("<hr />")
            index += 1
            continue
        if "|" in line and index + 1 < len(lines) and _TABLE_SEPARATOR_RE.match(lines[index + 1]):
            _flush()
            end = index + 2
            while end < len(lines) and lines[end].strip() and "|" in lines[end]:
                end += 1
            blocks.append(_render_table(lines[index:end]))
            index = end
            continue
        if _QUOTE_RE.match(line):
            _flush()
            quoted: List[str] = []
            while index < len(lines) and lines[index].strip():
                match = _QUOTE_RE.match(lines[index])
                quoted.append(match.group(1) if match else lines[index])
                index += 1
            inner = "\n".join(_render_blocks(quoted))
            blocks.append(f"<blockquote>\n{inner}\n</blockquote>")
            continue
        if _LIST_ITEM_RE.match(line):
            _flush()
            rendered, index = _render_list(lines, index)
            blocks.append(rendered)
            continue
        paragraph.append(line.strip())
        index += 1
    _flush()
    return blocks


def markdown_to_html(text: str) -> str:
    """Render Markdown to an HTML fragment (no ``<html>`` wrapper)."""
    lines = text.replace("\r\n", "\n").expandtabs(4).split("\n")
    return "\n".join(_render_blocks(lines))


def first_heading(text: str) -> Optional[str]:
    for line in text.splitlines():
        match = _HEADING_RE.match(line)
        if match:
            return match.group(2)
    return None


def html_document(body: str, title: str) -> str:
    """Wrap an HTML fragment in a minimal standalone page."""
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        '<meta charset="utf-8" />\n'
        f"<title>{html_lib.escape(title)}</title>\n"
        "<style>\n"
        "body { font-family: sans-serif; max-width: 48rem; margin: 2rem auto; line-height: 1.5; }\n"
        "pre { background: #f6f8fa; padding: 0.75rem; overflow-x: auto; }\n"
        "table { border-collapse: collapse; }\n"
        "th, td { border: 1px solid #d0d7de; padding: 0.25rem 0.5rem; }\n"
        "</style>\n"
        "</head>\n"
        "<body>\n"
        f"{body}\n"
        "</body>\n"
        "</html>\n"
    )
