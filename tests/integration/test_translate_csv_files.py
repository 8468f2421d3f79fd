import json
import os
from unittest.mock import patch

import pytest

from src.conversion_result import IssueKind, Severity
from src.csv_parser import BOM
from src.translate_csv_files import (
    convert_full,
    convert_i18n,
    main,
    main_i18n,
    resolve_csv_path
)


def _read_json(path):
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _read_raw(path):
    with open(path, encoding="utf-8") as f:
        return f.read()


def test_full_conversion_writes_sorted_files(app_config, write_csv, sample_csv):
    csv_file = write_csv(sample_csv)

    result = convert_full(csv_file, app_config)

    assert result.ok
    assert result.languages == ["en", "de"]
    en_path = os.path.join(app_config.translation_dir, "en.json")
    de_path = os.path.join(app_config.translation_dir, "de.json")
    assert _read_raw(en_path) == '{\n  "bye": "Bye",\n  "hello": "Hello"\n}'
    assert _read_json(de_path) == {"bye": "Tschüss", "hello": "Hallo"}
    assert list(_read_json(de_path)) == ["bye", "hello"]


def test_full_conversion_sorts_source_and_bumps_version(app_config, write_csv, sample_csv):
    csv_file = write_csv(BOM + sample_csv)
    with open(app_config.settings_file, "w", encoding="utf-8") as f:
        json.dump({"version": "v1.0.0.9", "i18nVersion": "v2.0.0.0"}, f)

    result = convert_full(csv_file, app_config)

    assert result.old_version == "v1.0.0.9"
    assert result.new_version == "v1.0.1.0"
    assert _read_json(app_config.settings_file) == {"version": "v1.0.1.0", "i18nVersion": "v2.0.0.0"}
    assert _read_raw(csv_file) == BOM + "key,en,de\nbye,Bye,Tschüss\nhello,Hello,Hallo\n"


def test_i18n_conversion_embeds_current_version(app_config, write_csv, sample_csv):
    csv_file = write_csv(sample_csv)
    with open(app_config.settings_file, "w", encoding="utf-8") as f:
        json.dump({"version": "v1.0.0.7", "i18nVersion": "v1.0.0.3"}, f)

    result = convert_i18n(csv_file, app_config)

    assert result.ok
    en_document = _read_json(os.path.join(app_config.i18n_dir, "en.json"))
    assert list(en_document.items()) == [("_version", "v1.0.0.3"), ("bye", "Bye"), ("hello", "Hello")]
    assert _read_json(app_config.settings_file) == {"version": "v1.0.0.7", "i18nVersion": "v1.0.0.4"}
    # The i18n pipeline leaves the source file untouched.
    assert _read_raw(csv_file) == sample_csv


def test_i18n_conversion_without_settings_uses_default(app_config, write_csv, sample_csv):
    csv_file = write_csv(sample_csv)

    convert_i18n(csv_file, app_config)

    assert _read_json(os.path.join(app_config.i18n_dir, "de.json"))["_version"] == "v1.0.0.0"
    assert _read_json(app_config.settings_file) == {"i18nVersion": "v1.0.0.1"}


def test_duplicate_language_column_later_column_wins(app_config, write_csv):
    csv_file = write_csv("key,en,en\nhello,First,Second\nbye,Bye\n")

    result = convert_full(csv_file, app_config)

    assert result.ok
    assert result.languages == ["en"]
    assert _read_json(os.path.join(app_config.translation_dir, "en.json")) == {"bye": "", "hello": "Second"}
    assert IssueKind.DUPLICATE_LANGUAGE_COLUMN in [issue.kind for issue in result.issues]


def test_empty_key_row_is_skipped(app_config, write_csv):
    csv_file = write_csv("key,en,de\nhello,Hello,Hallo\n,Hello,Hallo\nbye,Bye,Tschüss\n")

    result = convert_full(csv_file, app_config)

    assert result.ok
    assert _read_json(os.path.join(app_config.translation_dir, "en.json")) == {"bye": "Bye", "hello": "Hello"}
    empty_key_issues = [issue for issue in result.issues if issue.kind == IssueKind.EMPTY_KEY]
    assert len(empty_key_issues) == 1
    assert empty_key_issues[0].severity is Severity.WARNING
    # The sorted source no longer carries the keyless row.
    assert _read_raw(csv_file) == "key,en,de\nbye,Bye,Tschüss\nhello,Hello,Hallo\n"


@pytest.mark.parametrize("pipeline", [convert_full, convert_i18n])
def test_duplicate_key_aborts_without_output(app_config, write_csv, pipeline):
    content = "key,en\nhello,Hello\nhello,Hi\n"
    csv_file = write_csv(content)

    result = pipeline(csv_file, app_config)

    assert not result.ok
    assert result.exit_code == 1
    assert result.fatal_issue.kind == IssueKind.DUPLICATE_KEY
    assert not os.path.exists(app_config.translation_dir)
    assert not os.path.exists(app_config.settings_file)
    assert _read_raw(csv_file) == content


def test_invalid_language_aborts_without_output(app_config, write_csv):
    csv_file = write_csv("key,en,de DE\nhello,Hello,Hallo\n")

    result = convert_full(csv_file, app_config)

    assert result.fatal_issue.kind == IssueKind.INVALID_LANGUAGE_NAME
    assert not os.path.exists(app_config.translation_dir)


def test_missing_source_file(app_config):
    result = convert_full(os.path.join(app_config.project_root, "nope.csv"), app_config)
    assert result.fatal_issue.kind == IssueKind.SOURCE_NOT_FOUND


def test_output_write_failure_is_fatal(app_config, write_csv, sample_csv):
    csv_file = write_csv(sample_csv)
    # A regular file where the output directory should be
    with open(app_config.translation_dir, "w", encoding="utf-8") as f:
        f.write("")

    result = convert_full(csv_file, app_config)

    assert result.fatal_issue.kind == IssueKind.OUTPUT_WRITE_FAILED
    assert not os.path.exists(app_config.settings_file)


def test_sort_failure_does_not_fail_the_run(app_config, write_csv, sample_csv):
    csv_file = write_csv(sample_csv)

    with patch("src.translate_csv_files.sort_csv_file", return_value=False):
        result = convert_full(csv_file, app_config)

    assert result.ok
    assert IssueKind.SORT_FAILED in [issue.kind for issue in result.issues]
    assert _read_json(app_config.settings_file) == {"version": "v1.0.0.1"}


def test_settings_write_failure_does_not_fail_the_run(app_config, write_csv, sample_csv):
    csv_file = write_csv(sample_csv)

    with patch("src.translate_csv_files.SettingsStore.write", return_value=False):
        result = convert_i18n(csv_file, app_config)

    assert result.ok
    assert result.exit_code == 0
    assert IssueKind.SETTINGS_WRITE_FAILED in [issue.kind for issue in result.issues]
    assert os.path.exists(os.path.join(app_config.i18n_dir, "en.json"))


def test_resolve_csv_path(tmp_path):
    default = "/project/translations.csv"
    assert resolve_csv_path(None, default) == default
    assert resolve_csv_path("/abs/file.csv", default) == "/abs/file.csv"
    with patch("os.getcwd", return_value=str(tmp_path)):
        assert resolve_csv_path("data/file.csv", default) == os.path.join(tmp_path, "data", "file.csv")


def test_main_exit_codes(app_config, write_csv, sample_csv):
    good_csv = write_csv(sample_csv)
    bad_csv = write_csv("key,en\na,1\na,2\n", path=os.path.join(app_config.project_root, "bad.csv"))

    with patch("src.translate_csv_files.load_app_config", return_value=app_config):
        assert main([good_csv]) == 0
        assert main_i18n([]) == 0
        assert main_i18n([bad_csv]) == 1

    assert _read_json(app_config.settings_file) == {"version": "v1.0.0.1", "i18nVersion": "v1.0.0.1"}
