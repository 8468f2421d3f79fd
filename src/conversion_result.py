"""Result and error types shared by the CSV conversion pipelines."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class Severity(Enum):
    FATAL = "fatal"
    WARNING = "warning"
    BEST_EFFORT = "best_effort"


class IssueKind(Enum):
    # Fatal: the run aborts
    SOURCE_NOT_FOUND = "source_not_found"
    SOURCE_UNREADABLE = "source_unreadable"
    EMPTY_SOURCE = "empty_source"
    UNTERMINATED_QUOTE = "unterminated_quote"
    TOO_FEW_COLUMNS = "too_few_columns"
    INVALID_LANGUAGE_NAME = "invalid_language_name"
    NO_LANGUAGES = "no_languages"
    DUPLICATE_KEY = "duplicate_key"
    DUPLICATE_LANGUAGE_COLUMN = "duplicate_language_column"
    OUTPUT_WRITE_FAILED = "output_write_failed"

    # Warnings: logged, processing continues
    UNEXPECTED_KEY_HEADER = "unexpected_key_header"
    EMPTY_LANGUAGE_COLUMN = "empty_language_column"
    EMPTY_KEY = "empty_key"
    ENCODING_SUSPECT = "encoding_suspect"

    # Best effort: logged, run still succeeds
    SETTINGS_READ_FAILED = "settings_read_failed"
    SETTINGS_WRITE_FAILED = "settings_write_failed"
    SORT_FAILED = "sort_failed"


@dataclass(frozen=True)
class Issue:
    kind: IssueKind
    severity: Severity
    message: str


class ConversionError(Exception):
    """Raised for a fatal condition; the current run must abort."""

    def __init__(self, kind: IssueKind, message: str):
        super().__init__(message)
        self.issue = Issue(kind, Severity.FATAL, message)

    @property
    def kind(self) -> IssueKind:
        return self.issue.kind


@dataclass
class ConversionResult:
    """Outcome of one conversion run."""
    languages: List[str] = field(default_factory=list)
    key_counts: Dict[str, int] = field(default_factory=dict)
    written_files: List[str] = field(default_factory=list)
    issues: List[Issue] = field(default_factory=list)
    old_version: Optional[str] = None
    new_version: Optional[str] = None

    @property
    def fatal_issue(self) -> Optional[Issue]:
        for issue in self.issues:
            if issue.severity is Severity.FATAL:
                return issue
        return None

    @property
    def ok(self) -> bool:
        return self.fatal_issue is None

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def warnings(self) -> List[Issue]:
        return [issue for issue in self.issues if issue.severity is not Severity.FATAL]
