"""
CSV parser for published spreadsheet exports.

Parses delimited text into a field matrix and tolerates:
- quoted fields with commas and line breaks inside
- doubled quotes ("") as one literal quote
- CR, LF and CRLF record separators
- a leading byte-order mark
"""

from typing import Iterable

BOM = "\ufeff"


def parse_csv(text: str) -> list[list[str]]:
    """
    Parse CSV text into rows of fields.

    Quote handling is a greedy toggle: a quote opens or closes quoting
    wherever it appears. An unbalanced quote is closed implicitly at end of
    input, so the rest of the text lands in the last field. Never raises.

    Trailing rows whose fields are all empty are dropped, and rows shorter
    than the header row are right-padded with empty strings.

    Args:
        text: Raw CSV payload

    Returns:
        List of rows, each a list of unquoted field strings
    """
    if not text:
        return []
    if text.startswith(BOM):
        text = text[1:]

    rows: list[list[str]] = []
    row: list[str] = []
    field: list[str] = []
    in_quotes = False
    length = len(text)
    i = 0

    while i < length:
        char = text[i]

        if char == '"':
            if in_quotes and i + 1 < length and text[i + 1] == '"':
                field.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
            i += 1
            continue

        if not in_quotes:
            if char == ",":
                row.append("".join(field))
                field = []
                i += 1
                continue
            if char == "\r" or char == "\n":
                row.append("".join(field))
                field = []
                rows.append(row)
                row = []
                if char == "\r" and i + 1 < length and text[i + 1] == "\n":
                    i += 1
                i += 1
                continue

        field.append(char)
        i += 1

    if field or row:
        row.append("".join(field))
        rows.append(row)

    while rows and all(value == "" for value in rows[-1]):
        rows.pop()

    if not rows:
        return rows

    width = len(rows[0])
    return [r + [""] * (width - len(r)) if len(r) < width else r for r in rows]


def _quote_field(value: str) -> str:
    if any(c in value for c in (",", '"', "\r", "\n")):
        return '"' + value.replace('"', '""') + '"'
    return value


def serialize_csv(rows: Iterable[Iterable[str]]) -> str:
    """Serialize rows to CSV text, quoting only where needed. Records end with CRLF."""
    lines = [",".join(_quote_field(str(value)) for value in row) for row in rows]
    if not lines:
        return ""
    return "\r\n".join(lines) + "\r\n"


def records_from_matrix(matrix: list[list[str]]) -> list[dict[str, str]]:
    """
    Map data rows to dicts keyed by the (trimmed) header row.

    Columns beyond the header are dropped; duplicate header names keep the
    rightmost value.
    """
    if not matrix:
        return []
    headers = [(h or "").strip() for h in matrix[0]]
    records = []
    for row in matrix[1:]:
        record = {}
        for index, header in enumerate(headers):
            record[header] = row[index] if index < len(row) else ""
        records.append(record)
    return records
