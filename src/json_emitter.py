import json
import logging
import os
from typing import Any, Dict, List, Optional

from tqdm import tqdm

from src.conversion_result import ConversionError, IssueKind
from src.logging_config import LOGGER_NAME
from src.translation_validator import TranslationMapping

logger = logging.getLogger(LOGGER_NAME)

VERSION_PROPERTY = "_version"


def build_full_document(translations: Dict[str, str]) -> Dict[str, str]:
    """Return the translations with keys in plain alphabetical order."""
    return {key: translations[key] for key in sorted(translations)}


def build_i18n_document(translations: Dict[str, str], version: str) -> Dict[str, str]:
    """
    Return the translations for a frontend i18n file.

    ``_version`` is the first property. A translation key with that same name
    replaces its value but not its position.
    """
    document = {VERSION_PROPERTY: version}
    document.update(build_full_document(translations))
    return document


def write_json_file(file_path: str, document: Dict[str, Any]) -> None:
    """
    Write a document as 2-space indented UTF-8 JSON.

    Raises:
        ConversionError: If the file cannot be written.
    """
    try:
        with open(file_path, 'w', encoding='utf-8') as f:
            json.dump(document, f, ensure_ascii=False, indent=2)
    except OSError as e:
        raise ConversionError(IssueKind.OUTPUT_WRITE_FAILED, f"Error writing {file_path}: {e}") from e
    logger.info(f"Created: {file_path}")


def write_language_files(
        mapping: TranslationMapping,
        languages: List[str],
        output_dir: str,
        version: Optional[str] = None
) -> List[str]:
    """
    Write one JSON file per language.

    Args:
        mapping: The translations read from the CSV file.
        languages: The languages to write, in order.
        output_dir: Target directory, created if missing.
        version: When given, files are written in the i18n flavor with this
            version embedded; otherwise in the full flavor.

    Returns:
        The paths of the written files.

    Raises:
        ConversionError: If the directory or a file cannot be written. Files
            already written for earlier languages are left in place.
    """
    try:
        os.makedirs(output_dir, exist_ok=True)
    except OSError as e:
        raise ConversionError(IssueKind.OUTPUT_WRITE_FAILED,
                              f"Could not create output directory '{output_dir}': {e}") from e

    written_files = []
    for lang_name in tqdm(languages, desc="Writing translation files", unit="language"):
        translations = mapping.for_language(lang_name)
        if version is None:
            document = build_full_document(translations)
        else:
            document = build_i18n_document(translations, version)
        json_path = os.path.join(output_dir, f"{lang_name}.json")
        write_json_file(json_path, document)
        written_files.append(json_path)
    return written_files
