from typing import List


def _close_row(rows: List[List[str]], row: List[str], field: str):
    row.append(field.strip())

    # Rows made only of empty cells are blank lines
    if any(row):
        rows.append(row)


def parse_csv(csv_data: str) -> List[List[str]]:
    """
    Split CSV text into rows of trimmed fields.

    Quoted fields may span lines and contain commas, "" stands for a
    literal quote. The parser never fails: an unterminated quote keeps
    the rest of the input inside the current field.
    """

    rows: List[List[str]] = []
    row: List[str] = []
    field = ""
    in_quotes = False

    i = 0
    length = len(csv_data)

    while i < length:
        char = csv_data[i]
        next_char = csv_data[i + 1] if i + 1 < length else ""

        if char == '"':
            if in_quotes and next_char == '"':
                field += '"'
                i += 1
            else:
                in_quotes = not in_quotes

        elif char == "," and not in_quotes:
            row.append(field.strip())
            field = ""

        elif char in ("\n", "\r") and not in_quotes:
            if char == "\r" and next_char == "\n":
                i += 1

            if field or row:
                _close_row(rows, row, field)
                row = []
                field = ""

        else:
            field += char

        i += 1

    if field or row:
        _close_row(rows, row, field)

    return rows
