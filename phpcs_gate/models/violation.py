"""
Violation Report Model
======================
Pydantic models for analyzer output.
This is the contract between the Analyzer Invoker and every downstream consumer.

ViolationMessage fields:
    text            — human-readable finding
    source_rule     — identifier of the rule that fired (e.g. "WordPress.WhiteSpace.ControlStructureSpacing")
    severity        — ordinal reported by the analyzer
    category        — ERROR or WARNING
    fixable         — True if the fixer claims it can resolve the finding
    line / column   — 1-based position

FileReport carries the messages for one path in emission order.
BatchReport is the consolidated outcome of checking a set of files; only
files with at least one message are listed.
"""
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class Category(str, Enum):
    ERROR = "ERROR"
    WARNING = "WARNING"


class ViolationMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    source_rule: str = ""
    severity: int = 5
    category: Category
    fixable: bool = False
    line: int = Field(default=1, ge=1)
    column: int = Field(default=1, ge=1)


class FileReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    messages: List[ViolationMessage] = []

    @computed_field
    @property
    def error_count(self) -> int:
        return sum(1 for m in self.messages if m.category is Category.ERROR)

    @computed_field
    @property
    def warning_count(self) -> int:
        return sum(1 for m in self.messages if m.category is Category.WARNING)

    @computed_field
    @property
    def fixable_count(self) -> int:
        return sum(1 for m in self.messages if m.fixable)


class BatchReport(BaseModel):
    """
    Consolidated result of one analyzer run.

    Totals and the pass/block flags are derived from ``files`` so they can
    never drift from the message lists. ``summary_text`` is filled in by
    the constructor helpers below.
    """
    model_config = ConfigDict(frozen=True)

    files: List[FileReport] = []
    target_count: int = 0
    summary_text: str = ""

    @field_validator("files")
    @classmethod
    def drop_empty_files(cls, v: List[FileReport]) -> List[FileReport]:
        # Clean files are omitted, never represented by an empty FileReport.
        return [f for f in v if f.messages]

    @computed_field
    @property
    def total_errors(self) -> int:
        return sum(f.error_count for f in self.files)

    @computed_field
    @property
    def total_warnings(self) -> int:
        return sum(f.warning_count for f in self.files)

    @computed_field
    @property
    def total_fixable(self) -> int:
        return sum(f.fixable_count for f in self.files)

    @computed_field
    @property
    def succeeded(self) -> bool:
        return self.total_errors == 0

    @computed_field
    @property
    def can_commit(self) -> bool:
        # Warnings never block.
        return self.succeeded

    @property
    def has_findings(self) -> bool:
        return bool(self.files)


def summarize(files: List[FileReport], target_count: int, fixer_name: str = "phpcbf") -> str:
    """
    Build the one-paragraph summary used as BatchReport.summary_text.

    Clean batches get a pass sentence; otherwise counts, the fixable hint and,
    when errors remain, the block notice.
    """
    errors = sum(f.error_count for f in files)
    warnings = sum(f.warning_count for f in files)
    fixable = sum(f.fixable_count for f in files)

    if not errors and not warnings:
        if target_count == 0:
            return "No PHP files to check."
        return "No coding standard violations found."

    parts = []
    if errors:
        parts.append(f"{errors} error(s)")
    if warnings:
        parts.append(f"{warnings} warning(s)")
    summary = f"Found {' and '.join(parts)} in {len(files)} file(s)."
    if fixable:
        summary += f" {fixable} can be auto-fixed with {fixer_name}."
    if errors:
        summary += " COMMIT BLOCKED - fix errors before committing."
    return summary


def build_report(files: List[FileReport], target_count: int) -> BatchReport:
    """Construct a BatchReport with its summary text filled in."""
    kept = [f for f in files if f.messages]
    return BatchReport(files=kept, target_count=target_count, summary_text=summarize(kept, target_count))


def clean_report(target_count: int = 0) -> BatchReport:
    """Trivial successful report: zero totals, no files."""
    return build_report([], target_count)
