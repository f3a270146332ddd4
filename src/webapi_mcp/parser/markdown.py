"""Markdown API definition parser.

A Markdown definition is a sequence of headed sections. The section heading
decides what the following paragraphs or tables describe:

    ## API Name
    Weather

    ## URL
    https://api.example.com/v1/current

    ## Parameters
    | Name | Type   | Required | Description |
    |------|--------|----------|-------------|
    | city | string | true     | City name   |

Headings are matched case-insensitively against an English and a Chinese
vocabulary. Any other heading stops capture until the next known one.
"""

import logging

from markdown_it import MarkdownIt

logger = logging.getLogger(__name__)

SECTION_HEADINGS = {
    "api name": "name",
    "api名称": "name",
    "description": "description",
    "描述": "description",
    "url": "url",
    "接口地址": "url",
    "base url": "baseUrl",
    "基础地址": "baseUrl",
    "method": "method",
    "方法": "method",
    "parameters": "parameters",
    "参数": "parameters",
    "headers": "headers",
    "标头": "headers",
    "请求头": "headers",
    "result path": "resultPath",
    "返回路径": "resultPath",
    "timeout": "timeout",
    "超时时间": "timeout",
}

TABLE_SECTIONS = ("parameters", "headers")

_md = MarkdownIt("commonmark").enable("table")


def parse_markdown(content: str | bytes) -> dict | None:
    """Parse a Markdown API definition into a raw definition mapping.

    Returns None (and logs why) when the document cannot be tokenized or
    lacks a name or URL.
    """
    try:
        if isinstance(content, bytes):
            content = content.decode("utf-8")
        doc = _collect_sections(_md.parse(content))
    except Exception as e:
        logger.error("Failed to parse Markdown API definition: %s", e)
        return None

    if not doc.get("name") or not doc.get("url"):
        logger.error("Markdown API definition is missing its name or URL")
        return None
    return doc


def _collect_sections(tokens) -> dict:
    doc: dict = {"parameters": {}}
    section = None
    i = 0
    while i < len(tokens):
        token = tokens[i]

        if token.type == "heading_open":
            title = tokens[i + 1].content.strip().lower()
            section = SECTION_HEADINGS.get(title)
            if section == "headers":
                doc["headers"] = {}
            i += 3
            continue

        if token.type == "table_open":
            rows, i = _read_table(tokens, i)
            if section == "parameters":
                _add_parameters(doc, rows)
            elif section == "headers":
                _add_headers(doc, rows)
            continue

        if section and section not in TABLE_SECTIONS:
            text = None
            if token.type == "paragraph_open":
                text = tokens[i + 1].content
            elif token.type in ("fence", "code_block"):
                text = token.content
            if text is not None:
                _set_scalar(doc, section, _clean(text))

        i += 1
    return doc


def _read_table(tokens, start: int) -> tuple[list[list[str]], int]:
    """Read all rows (header row included) of the table opening at ``start``."""
    rows: list[list[str]] = []
    row: list[str] = []
    i = start + 1
    while i < len(tokens) and tokens[i].type != "table_close":
        token = tokens[i]
        if token.type == "tr_open":
            row = []
        elif token.type == "inline":
            row.append(_clean(token.content))
        elif token.type == "tr_close":
            rows.append(row)
        i += 1
    return rows, i + 1


def _add_parameters(doc: dict, rows: list[list[str]]) -> None:
    # first row is the table header
    for row in rows[1:]:
        name, type_, required, description = (row + ["", "", "", ""])[:4]
        if not name:
            continue
        doc["parameters"][name] = {
            "type": type_.lower() or "string",
            "required": required,
            "description": description,
        }


def _add_headers(doc: dict, rows: list[list[str]]) -> None:
    headers = doc.setdefault("headers", {})
    for row in rows[1:]:
        name, value = (row + ["", ""])[:2]
        if name and value:
            headers[name] = value


def _set_scalar(doc: dict, section: str, text: str) -> None:
    if section == "description" and doc.get("description"):
        doc["description"] = f"{doc['description']}\n\n{text}"
    elif section == "method":
        doc["method"] = text.upper()
    else:
        doc[section] = text


def _clean(text: str) -> str:
    return text.strip().strip("`").strip()
