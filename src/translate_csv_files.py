"""
Convert translations.csv into per-language JSON files.

Two pipelines share the CSV reading and validation:

* ``translate``       writes translation/<lang>.json, sorts the CSV file by key
                      and bumps ``version`` in settings.json.
* ``translate-i18n``  writes translation/i18n/<lang>.json with a leading
                      ``_version`` property and bumps ``i18nVersion``.
"""
import argparse
import logging
import os
import sys
from typing import List, Optional

from src.app_config import AppConfig, load_app_config
from src.conversion_result import (
    ConversionError,
    ConversionResult,
    Issue,
    IssueKind,
    Severity
)
from src.json_emitter import write_language_files
from src.logging_config import LOGGER_NAME
from src.table_sorter import sort_csv_file, use_system_collation
from src.translation_validator import (
    TranslationMapping,
    check_encoding_and_mojibake,
    read_translations_from_csv
)
from src.version_store import (
    DEFAULT_VERSION,
    I18N_VERSION_FIELD,
    VERSION_FIELD,
    SettingsStore,
    increment_version
)

logger = logging.getLogger(LOGGER_NAME)


def resolve_csv_path(arg_path: Optional[str], default_path: str) -> str:
    """Absolute paths are used as-is, relative ones are resolved against the CWD."""
    if not arg_path:
        return default_path
    if os.path.isabs(arg_path):
        return arg_path
    return os.path.join(os.getcwd(), arg_path)


def _load_translations(csv_file: str, config: AppConfig, result: ConversionResult) -> TranslationMapping:
    logger.info(f"Reading translations from: {csv_file}")

    if os.path.exists(csv_file):
        for problem in check_encoding_and_mojibake(csv_file):
            logger.warning(problem)
            result.issues.append(Issue(IssueKind.ENCODING_SUSPECT, Severity.WARNING, problem))

    mapping, languages, issues = read_translations_from_csv(csv_file, config.reject_duplicate_languages)
    result.issues.extend(issues)
    result.languages = languages
    result.key_counts = {lang_name: mapping.key_count(lang_name) for lang_name in languages}
    return mapping


def _read_version(store: SettingsStore, field: str, result: ConversionResult) -> str:
    version = store.read(field)
    if store.read_error:
        result.issues.append(Issue(IssueKind.SETTINGS_READ_FAILED, Severity.BEST_EFFORT, store.read_error))
    return version


def _bump_version(store: SettingsStore, field: str, current_version: str, result: ConversionResult) -> None:
    try:
        new_version = increment_version(current_version)
    except ValueError as e:
        logger.warning(f"Stored {field} '{current_version}' is invalid ({e}); restarting from {DEFAULT_VERSION}")
        new_version = increment_version(DEFAULT_VERSION)

    result.old_version = current_version
    result.new_version = new_version
    if not store.write(field, new_version):
        result.issues.append(Issue(
            IssueKind.SETTINGS_WRITE_FAILED,
            Severity.BEST_EFFORT,
            f"Could not persist {field} {new_version} to {store.settings_file_path}"
        ))


def _fail(result: ConversionResult, error: ConversionError) -> ConversionResult:
    logger.error(f"Error: {error}")
    result.issues.append(error.issue)
    return result


def _log_summary(result: ConversionResult, output_dir: str, config: AppConfig, version_label: str) -> None:
    output_label = os.path.relpath(output_dir, config.project_root)
    logger.info("Translation files generated successfully!")
    for lang_name in result.languages:
        logger.info(f"  - {output_label}/{lang_name}.json: {result.key_counts[lang_name]} keys")
    logger.info(f"  - {version_label}: {result.old_version} -> {result.new_version}")


def convert_full(csv_file: str, config: AppConfig) -> ConversionResult:
    """
    Run the full pipeline: JSON per language, sorted CSV, bumped ``version``.

    Args:
        csv_file: The CSV file to convert.
        config: Output locations and validation policy.

    Returns:
        ConversionResult: What was written, and every issue found.
    """
    result = ConversionResult()
    try:
        mapping = _load_translations(csv_file, config, result)
        logger.info("Generating translation files...")
        result.written_files = write_language_files(mapping, result.languages, config.translation_dir)
    except ConversionError as e:
        return _fail(result, e)

    logger.info("Sorting CSV file...")
    if not sort_csv_file(csv_file):
        result.issues.append(Issue(IssueKind.SORT_FAILED, Severity.BEST_EFFORT,
                                   f"Could not sort CSV file '{csv_file}'"))

    logger.info("Updating version...")
    store = SettingsStore(config.settings_file)
    _bump_version(store, VERSION_FIELD, _read_version(store, VERSION_FIELD, result), result)

    _log_summary(result, config.translation_dir, config, "Version")
    return result


def convert_i18n(csv_file: str, config: AppConfig) -> ConversionResult:
    """
    Run the i18n pipeline: JSON per language with ``_version``, bumped ``i18nVersion``.

    The files embed the i18n version current at the start of the run; the
    incremented value is stored for the next run. The CSV file is not sorted.
    """
    result = ConversionResult()
    store = SettingsStore(config.settings_file)
    try:
        mapping = _load_translations(csv_file, config, result)
        current_version = _read_version(store, I18N_VERSION_FIELD, result)
        logger.info("Generating i18n translation files...")
        result.written_files = write_language_files(
            mapping, result.languages, config.i18n_dir, version=current_version
        )
    except ConversionError as e:
        return _fail(result, e)

    logger.info("Updating i18n version...")
    _bump_version(store, I18N_VERSION_FIELD, current_version, result)

    _log_summary(result, config.i18n_dir, config, "i18n Version")
    return result


def _parse_args(argv: List[str], description: str) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("csv_file", nargs="?", default=None,
                        help="CSV file to read (default: translations.csv in the project root)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def _run(pipeline, argv: Optional[List[str]], description: str) -> int:
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv, description)
    config = load_app_config()
    use_system_collation()
    if args.debug:
        logger.setLevel(logging.DEBUG)
        logger.debug("debug mode enabled")

    csv_file = resolve_csv_path(args.csv_file, config.csv_file)
    return pipeline(csv_file, config).exit_code


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point of the full pipeline."""
    return _run(convert_full, argv, "Generate translation JSON files from a CSV file.")


def main_i18n(argv: Optional[List[str]] = None) -> int:
    """Entry point of the i18n pipeline."""
    return _run(convert_i18n, argv, "Generate i18n translation JSON files from a CSV file.")


if __name__ == "__main__":
    sys.exit(main())
