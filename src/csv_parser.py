import re
from dataclasses import dataclass
from typing import List, Tuple

from src.conversion_result import ConversionError, IssueKind

BOM = '\ufeff'

# Cells containing any of these characters must be quoted on output.
_NEEDS_QUOTING = re.compile(r'[,"\r\n]')


@dataclass
class CsvTable:
    """Parsed rows of a CSV file plus whether the file started with a BOM."""
    rows: List[List[str]]
    had_bom: bool = False

    @property
    def header(self) -> List[str]:
        return self.rows[0] if self.rows else []

    @property
    def data_rows(self) -> List[List[str]]:
        return self.rows[1:]


def strip_bom(content: str) -> Tuple[str, bool]:
    """Remove a leading byte-order mark and report whether one was present."""
    if content.startswith(BOM):
        return content[1:], True
    return content, False


def _parse_line(line: str, line_number: int) -> List[str]:
    cells = []
    current_cell = []
    in_quotes = False
    i = 0
    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                # Escaped quote
                current_cell.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == ',' and not in_quotes:
            cells.append(''.join(current_cell))
            current_cell = []
        else:
            current_cell.append(char)
        i += 1

    if in_quotes:
        raise ConversionError(
            IssueKind.UNTERMINATED_QUOTE,
            f"Unterminated quoted field on line {line_number}. "
            f"Quoted values spanning several lines are not supported."
        )

    cells.append(''.join(current_cell))
    return cells


def parse_csv(content: str) -> List[List[str]]:
    """
    Parse CSV text into rows of cells.

    Each physical line is parsed on its own. Lines that are blank after
    stripping whitespace are dropped.

    Args:
        content (str): The CSV text, without a byte-order mark.

    Returns:
        List[List[str]]: The rows, each a list of cell strings.

    Raises:
        ConversionError: If a line ends inside a quoted field.
    """
    rows = []
    for line_number, line in enumerate(re.split(r'\r?\n', content), 1):
        if not line.strip():
            continue
        rows.append(_parse_line(line, line_number))
    return rows


def read_csv_file(file_path: str) -> CsvTable:
    """
    Read and parse a UTF-8 CSV file.

    Args:
        file_path (str): The path to the CSV file.

    Returns:
        CsvTable: The parsed rows and the BOM flag.
    """
    try:
        with open(file_path, 'r', encoding='utf-8', newline='') as file:
            content = file.read()
    except FileNotFoundError as e:
        raise ConversionError(IssueKind.SOURCE_NOT_FOUND, f"CSV file '{file_path}' not found.") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConversionError(IssueKind.SOURCE_UNREADABLE, f"Error reading CSV file '{file_path}': {e}") from e

    content, had_bom = strip_bom(content)
    return CsvTable(rows=parse_csv(content), had_bom=had_bom)


def format_csv_cell(cell: str) -> str:
    """Quote a cell if it contains a comma, a double quote or a line break."""
    if _NEEDS_QUOTING.search(cell):
        return '"' + cell.replace('"', '""') + '"'
    return cell


def serialize_csv(rows: List[List[str]], with_bom: bool = False) -> str:
    """
    Reassemble CSV text from rows.

    Args:
        rows (List[List[str]]): The rows to serialize.
        with_bom (bool): Prefix the output with a byte-order mark.

    Returns:
        str: The CSV content, one line per row, each terminated by a newline.
    """
    lines = [','.join(format_csv_cell(cell) for cell in row) + '\n' for row in rows]
    return (BOM if with_bom else '') + ''.join(lines)
