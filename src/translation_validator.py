import logging
import re
from typing import Dict, List, Optional, Tuple

from src.conversion_result import ConversionError, Issue, IssueKind, Severity
from src.csv_parser import read_csv_file
from src.logging_config import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)

LANGUAGE_NAME_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')
KEY_HEADER_LABELS = ('key', 'keys')

# (column index in the row, language name)
LanguageColumn = Tuple[int, str]


class TranslationMapping:
    """Per-language mapping of translation key to translated string."""

    def __init__(self, languages: Optional[List[str]] = None):
        self._data: Dict[str, Dict[str, str]] = {}
        for language in languages or []:
            self.add_language(language)

    @property
    def languages(self) -> List[str]:
        return list(self._data)

    def add_language(self, language: str) -> None:
        self._data.setdefault(language, {})

    def has_key(self, language: str, key: str) -> bool:
        return key in self._data.get(language, {})

    def get(self, language: str, key: str) -> Optional[str]:
        return self._data.get(language, {}).get(key)

    def set(self, language: str, key: str, value: str) -> None:
        self._data[language][key] = value

    def for_language(self, language: str) -> Dict[str, str]:
        return dict(self._data[language])

    def key_count(self, language: str) -> int:
        return len(self._data.get(language, {}))


def _record_warning(issues: List[Issue], kind: IssueKind, message: str) -> None:
    logger.warning(message)
    issues.append(Issue(kind, Severity.WARNING, message))


def is_valid_language_name(lang_name: Optional[str]) -> bool:
    """
    Check whether a header cell is a usable language name.

    Valid names contain only letters, digits, underscores and hyphens.
    """
    if not lang_name or not lang_name.strip():
        return False
    return bool(LANGUAGE_NAME_PATTERN.match(lang_name.strip()))


def validate_header(
        header_row: List[str],
        issues: List[Issue],
        reject_duplicate_languages: bool = False
) -> List[LanguageColumn]:
    """
    Validate the header row and extract the language columns.

    Args:
        header_row: The first row of the CSV table.
        issues: Collected warnings are appended here.
        reject_duplicate_languages: Treat a repeated language column as fatal
            instead of letting the later column win.

    Returns:
        The (column index, language name) pairs in header order. A repeated
        language appears once per column.

    Raises:
        ConversionError: On fewer than two columns, an invalid language name,
            or when no language column remains.
    """
    if len(header_row) < 2:
        raise ConversionError(
            IssueKind.TOO_FEW_COLUMNS,
            "CSV file must have at least 2 columns (key + at least one language)."
        )

    if header_row[0].strip().lower() not in KEY_HEADER_LABELS:
        _record_warning(issues, IssueKind.UNEXPECTED_KEY_HEADER,
                        f"First column is '{header_row[0]}', expected 'key'")

    language_columns: List[LanguageColumn] = []
    seen_languages: Dict[str, int] = {}
    for index, cell in enumerate(header_row[1:], 1):
        lang_name = cell.strip()
        column_number = index + 1

        if not lang_name:
            _record_warning(issues, IssueKind.EMPTY_LANGUAGE_COLUMN,
                            f"Empty language name in column {column_number}, skipping.")
            continue

        if not is_valid_language_name(lang_name):
            raise ConversionError(
                IssueKind.INVALID_LANGUAGE_NAME,
                f"Invalid language name '{lang_name}' in column {column_number}. "
                f"Language names must contain only letters, numbers, underscores, and hyphens."
            )

        if lang_name in seen_languages:
            message = (f"Language '{lang_name}' appears in columns {seen_languages[lang_name]} "
                       f"and {column_number}")
            if reject_duplicate_languages:
                raise ConversionError(IssueKind.DUPLICATE_LANGUAGE_COLUMN, message + ".")
            _record_warning(issues, IssueKind.DUPLICATE_LANGUAGE_COLUMN,
                            message + "; values from the later column win.")
        else:
            seen_languages[lang_name] = column_number

        language_columns.append((index, lang_name))

    if not language_columns:
        raise ConversionError(IssueKind.NO_LANGUAGES, "No valid language columns found in CSV file.")

    return language_columns


def process_row(
        row: List[str],
        mapping: TranslationMapping,
        language_columns: List[LanguageColumn],
        row_number: int,
        issues: List[Issue]
) -> Optional[str]:
    """
    Copy one data row into the translation mapping.

    Args:
        row: The cells of the row.
        mapping: The mapping to update.
        language_columns: Output of validate_header.
        row_number: 1-based row number, used in messages.
        issues: Collected warnings are appended here.

    Returns:
        The row's key, or None when the row has no key and was skipped.
    """
    key = row[0].strip() if row else ''
    if not key:
        _record_warning(issues, IssueKind.EMPTY_KEY,
                        f"Skipping row {row_number} with empty key: {row!r}")
        return None

    for column_index, lang_name in language_columns:
        translation = row[column_index].strip() if column_index < len(row) else ''
        mapping.set(lang_name, key, translation)

    return key


def read_translations_from_csv(
        csv_file_path: str,
        reject_duplicate_languages: bool = False
) -> Tuple[TranslationMapping, List[str], List[Issue]]:
    """
    Read translations from a CSV file.

    Expected format: the first column holds the key, every further column is
    one language, named in the header row.

    Args:
        csv_file_path: Path to the CSV file.
        reject_duplicate_languages: See validate_header.

    Returns:
        The translation mapping, the ordered language names and the
        non-fatal issues found along the way.

    Raises:
        ConversionError: On any validation failure, including duplicate keys.
    """
    issues: List[Issue] = []
    table = read_csv_file(csv_file_path)

    if not table.rows:
        raise ConversionError(IssueKind.EMPTY_SOURCE, "CSV file is empty or has no header row.")

    language_columns = validate_header(table.header, issues, reject_duplicate_languages)
    mapping = TranslationMapping([lang_name for _, lang_name in language_columns])
    logger.info(f"Detected languages: {', '.join(mapping.languages)}")

    seen_keys: Dict[str, int] = {}
    for row_number, row in enumerate(table.data_rows, 2):
        key = process_row(row, mapping, language_columns, row_number, issues)
        if key is None:
            continue
        if key in seen_keys:
            raise ConversionError(
                IssueKind.DUPLICATE_KEY,
                f"Duplicate key '{key}' found! First occurrence: row {seen_keys[key]}, "
                f"duplicate occurrence: row {row_number}."
            )
        seen_keys[key] = row_number

    return mapping, mapping.languages, issues


def check_encoding_and_mojibake(file_path: str) -> List[str]:
    """
    Checks a file for UTF-8 encoding and common mojibake patterns.

    Args:
        file_path: The path to the file to check.

    Returns:
        A list of string error messages. An empty list means the file is valid.
    """
    errors = []

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            content = f.read()
    except UnicodeDecodeError:
        errors.append(f"File '{file_path}' is not a valid UTF-8 file.")
        return errors
    except OSError as e:
        errors.append(f"Could not read file '{file_path}'. Reason: {e}")
        return errors

    # 'Ã' followed by a byte in 0x80-0xFF is UTF-8 text decoded as latin-1/cp1252.
    mojibake_pattern = re.compile(r'Ã[\x80-\xff]')
    if mojibake_pattern.search(content):
        errors.append(f"Potential mojibake detected in '{file_path}'. Found patterns like 'Ã¼', 'Ã¤', etc.")

    if '\uFFFD' in content:
        errors.append(f"File '{file_path}' contains the Unicode replacement character (\uFFFD), "
                      f"indicating a previous encoding/decoding error.")

    return errors
