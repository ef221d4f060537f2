# app/texcore/compiler/tables.py

from typing import List, Optional, Tuple
import logging
import re

logger = logging.getLogger(__name__)

TABLE_PATTERN = re.compile(r"\\begin\{table\}(?:\[(.*?)\])?([\s\S]*?)\\end\{table\}")
TABULAR_PATTERN = re.compile(r"\\begin\{tabular\}\{(.*?)\}([\s\S]*?)\\end\{tabular\}")
COLUMN_PATTERN = re.compile(r"[lcr]|p\{.*?\}")
CAPTION_PATTERN = re.compile(r"\\caption\{(.*?)\}")
LABEL_PATTERN = re.compile(r"\\label\{(.*?)\}")
CELL_SEPARATOR = re.compile(r"(?<!\\)&")
BLANK_LINES = re.compile(r"\n\s*\n")

PLACEMENTS = ("h", "t", "b", "p")
ALIGNMENTS = {"l": "left", "c": "center", "r": "right"}
HLINE = "\\hline"
HLINE_ROW = "<tr class='hline'></tr>"


def parse_column_spec(spec: str) -> Tuple[int, List[str]]:
    """Column count and CSS alignment per column of a tabular spec like ``l|c|p{3cm}``."""
    columns = COLUMN_PATTERN.findall(spec)
    alignments = [ALIGNMENTS.get(column, "left") for column in columns]
    return len(columns) or 1, alignments


def parse_placement(placement: Optional[str]) -> Optional[str]:
    """First recognised float placement letter, e.g. ``htbp`` -> ``h``."""
    if not placement:
        return None
    for letter in placement.strip():
        if letter in PLACEMENTS:
            return letter
    return None


def _cell(content: str, align: str) -> str:
    return f'<td style="text-align: {align}">{content}</td>'


def render_tabular(column_spec: str, body: str) -> str:
    """Render the body of one tabular environment as an HTML table."""
    count, alignments = parse_column_spec(column_spec)
    rows = [row.strip() for row in body.split("\\\\")]

    parts = ["<table>"]
    for row in rows:
        if not row:
            continue

        if row == HLINE:
            parts.append(HLINE_ROW)
            continue

        if row.startswith(HLINE):
            parts.append(HLINE_ROW)
            row = row[len(HLINE):].strip()
            if not row:
                continue

        cells = [cell.strip() for cell in CELL_SEPARATOR.split(row)]
        parts.append("<tr>")
        for index, cell in enumerate(cells):
            align = alignments[index] if index < len(alignments) else "left"
            parts.append(_cell(cell, align))
        for index in range(len(cells), count):
            align = alignments[index] if index < len(alignments) else "left"
            parts.append(_cell("", align))
        parts.append("</tr>")

    parts.append("</table>")
    return "".join(parts)


def process_tabular_environment(content: str) -> str:
    """Replace every tabular environment with an HTML table."""
    try:
        return TABULAR_PATTERN.sub(
            lambda match: render_tabular(match.group(1), match.group(2)),
            content
        )
    except Exception as e:
        logger.error(f"Tabular processing failed: {str(e)}")
        return content


def _render_table_float(match: re.Match) -> str:
    placement = parse_placement(match.group(1))
    body = match.group(2)

    centered = "\\centering" in body
    body = body.replace("\\centering", "")

    caption = ""
    caption_match = CAPTION_PATTERN.search(body)
    if caption_match:
        caption = caption_match.group(1)
        body = CAPTION_PATTERN.sub("", body)

    label = ""
    label_match = LABEL_PATTERN.search(body)
    if label_match:
        label = label_match.group(1)
        body = LABEL_PATTERN.sub("", body)

    table = BLANK_LINES.sub("\n", process_tabular_environment(body).strip())
    if centered and "<table" in table:
        table = table.replace("<table", "<table class='centered'", 1)

    result = "<div class='table-container'"
    if placement:
        result += f' data-placement="{placement}"'
    result += ">" + table

    if caption:
        anchor = f' id="{label}"' if label else ""
        result += f'<div class="table-caption"{anchor}>{caption}</div>'

    return result + "</div>"


def process_latex_tables(content: str) -> str:
    """Convert table floats, then any standalone tabular environments."""
    try:
        content = TABLE_PATTERN.sub(_render_table_float, content)
        return process_tabular_environment(content)
    except Exception as e:
        logger.error(f"Table processing failed: {str(e)}")
        return content
