import locale
import logging
import unicodedata
from typing import List, Tuple

from src.conversion_result import ConversionError
from src.csv_parser import read_csv_file, serialize_csv
from src.logging_config import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)


def _fold_accents(text: str) -> str:
    decomposed = unicodedata.normalize('NFKD', text)
    return ''.join(char for char in decomposed if not unicodedata.combining(char))


def _sort_key(row: List[str]) -> Tuple[str, str]:
    # Accent-folded key first so 'éclair' sorts with 'e' even under the C locale.
    key = row[0].strip().lower() if row else ''
    return _fold_accents(key), locale.strxfrm(key)


def use_system_collation() -> None:
    """Collate keys with the user's locale (LC_COLLATE from the environment)."""
    try:
        locale.setlocale(locale.LC_COLLATE, '')
    except locale.Error as e:
        logger.warning(f"Could not apply the system collation locale, using accent-folded key order: {e}")


def sort_rows(rows: List[List[str]]) -> List[List[str]]:
    """
    Sort data rows by their key column, case-insensitively.

    The header row stays first. Rows without a key are dropped. The sort is
    stable, so rows with equal keys keep their relative order.

    Args:
        rows (List[List[str]]): The table, header first.

    Returns:
        List[List[str]]: A new table with the data rows sorted.
    """
    if not rows:
        return []
    header = rows[0]
    data_rows = [row for row in rows[1:] if row and row[0].strip()]
    return [header] + sorted(data_rows, key=_sort_key)


def sort_csv_file(csv_file_path: str) -> bool:
    """
    Rewrite a CSV file with its data rows sorted by key.

    The byte-order mark is written back only if the file had one. Failures are
    logged and reported through the return value; they never abort a run.

    Args:
        csv_file_path (str): The CSV file to sort in place.

    Returns:
        bool: True if the file was rewritten (or was empty), False on failure.
    """
    try:
        table = read_csv_file(csv_file_path)
        if not table.rows:
            return True

        content = serialize_csv(sort_rows(table.rows), with_bom=table.had_bom)
        with open(csv_file_path, 'w', encoding='utf-8', newline='') as file:
            file.write(content)
    except (ConversionError, OSError) as e:
        logger.warning(f"Could not sort CSV file: {e}")
        return False

    bom_note = " (UTF-8 with BOM)" if table.had_bom else ""
    logger.info(f"Sorted CSV file: {csv_file_path}{bom_note}")
    return True
