"""
Output Formatter
================
THE SINGLE SOURCE OF TRUTH for all human-readable tool output.

STRICT DETERMINISM CONTRACT:
  - This module NEVER runs a command.
  - This module NEVER reads environment variables.
  - This module NEVER decides anything: pass/block, error flags and
    re-stage state all come from the models it is handed.
  - Given the same inputs and current directory, it ALWAYS returns the
    exact same output string.

Layout of a report block:

    {path} ({E} errors, {W} warnings):
      Line {L}, Col {C}: [ERROR] {text} (fixable)
        Source: {rule}
"""
import os
from typing import List, Optional

from phpcs_gate.core.errors import InvocationError
from phpcs_gate.models.fix_outcome import FixOutcome
from phpcs_gate.models.precommit_outcome import PreCommitOutcome
from phpcs_gate.models.violation import BatchReport, Category, FileReport, ViolationMessage

# ---------------------------------------------------------------------------
# Unicode Arrow
# ---------------------------------------------------------------------------
# U+2192 RIGHTWARDS ARROW, used for compatibility hints.
ARROW = "→"

# Name of the single-file fix command shown in tips.
FIX_TOOL_NAME = "fix-file"


# ---------------------------------------------------------------------------
# Compatibility hints
# ---------------------------------------------------------------------------
# Matched as substrings of ViolationMessage.source_rule, first match wins.
COMPAT_HINTS: List[tuple] = [
    ("RemovedFunction", "This function was removed in a newer PHP version"),
    ("DeprecatedFunction", "This function is deprecated and may be removed"),
    ("NewFeature", "This feature requires a newer PHP version"),
]


def compat_hint(source_rule: str) -> Optional[str]:
    for needle, hint in COMPAT_HINTS:
        if needle in source_rule:
            return hint
    return None


# ---------------------------------------------------------------------------
# Building blocks
# ---------------------------------------------------------------------------
def format_path(path: str, working_dir: Optional[str] = None) -> str:
    """
    Show an absolute ``path`` relative to ``working_dir`` when it lies
    beneath it. A missing or relative ``working_dir`` is taken from the
    process's current directory, which is where phpcs ran.
    """
    if not os.path.isabs(path):
        return path
    root = os.path.abspath(working_dir or os.curdir)
    prefix = root.rstrip("/\\") + os.sep
    if path.startswith(prefix):
        return path[len(prefix):]
    return path


def format_message(msg: ViolationMessage, with_column: bool = True, with_source: bool = True) -> List[str]:
    prefix = "[ERROR]" if msg.category is Category.ERROR else "[WARNING]"
    fixable = " (fixable)" if msg.fixable else ""
    position = f"Line {msg.line}, Col {msg.column}" if with_column else f"Line {msg.line}"
    lines = [f"  {position}: {prefix} {msg.text}{fixable}"]
    if with_source and msg.source_rule:
        lines.append(f"    Source: {msg.source_rule}")
    return lines


def format_file_block(report: FileReport, working_dir: Optional[str] = None, **message_opts) -> List[str]:
    lines = [
        f"{format_path(report.path, working_dir)} "
        f"({report.error_count} errors, {report.warning_count} warnings):"
    ]
    for msg in report.messages:
        lines.extend(format_message(msg, **message_opts))
    return lines


# ---------------------------------------------------------------------------
# BatchReport
# ---------------------------------------------------------------------------
def render_batch_report(report: BatchReport, working_dir: Optional[str] = None) -> str:
    """
    One block per file with findings, then the aggregate line (which carries
    the block notice when errors remain), then the fix tip.
    """
    if not report.has_findings:
        return report.summary_text

    lines: List[str] = []
    for file_report in report.files:
        lines.extend(format_file_block(file_report, working_dir))
        lines.append("")
    lines.append(report.summary_text)
    if report.total_fixable:
        lines.append("")
        lines.append(f"Tip: Run {FIX_TOOL_NAME} to auto-fix {report.total_fixable} issue(s).")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# FixOutcome
# ---------------------------------------------------------------------------
def render_fix_outcome(outcome: FixOutcome, working_dir: Optional[str] = None) -> str:
    path = format_path(outcome.path, working_dir)

    if not outcome.attempted:
        return f"No coding standard violations found in {path}."

    if outcome.failed:
        lines = [f"Failed to fix {path}:", outcome.failure or ""]
        if outcome.changed:
            lines.append("")
            lines.append("The file was modified before the fixer failed; review it before committing.")
        return "\n".join(lines)

    lines = [f"Fixed {path}" if outcome.changed else f"No fixable issues found in {path}", ""]
    remaining = outcome.remaining
    if not remaining.has_findings:
        lines.append("All issues resolved. File now passes the coding standard.")
    else:
        lines.append("Remaining issues:")
        lines.append(remaining.summary_text)
        for file_report in remaining.files:
            for msg in file_report.messages:
                lines.extend(format_message(msg, with_column=False, with_source=False))
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# PreCommitOutcome
# ---------------------------------------------------------------------------
def render_precommit(outcome: PreCommitOutcome, working_dir: Optional[str] = None) -> str:
    report = outcome.final_report
    if report.target_count == 0:
        return "PRE-COMMIT: PASSED\n\nNo staged PHP files to check. Commit can proceed."

    lines: List[str] = []

    if outcome.fixed_paths:
        lines.append(f"AUTO-FIXED {len(outcome.fixed_paths)} file(s):")
        lines.extend(f"  - {format_path(p, working_dir)}" for p in outcome.fixed_paths)
        lines.append("")

        instruction = outcome.restage_instruction
        if outcome.restaged:
            lines.append("Fixed files have been re-staged.")
            lines.append("")
        elif instruction is not None and not outcome.diagnostics:
            lines.append(f"Re-stage fixed files with:\n  {instruction.command}")
            lines.append("")

    for diagnostic in outcome.diagnostics:
        lines.append(f"{diagnostic.level.capitalize()}: {diagnostic.message}")
        lines.append("")

    if outcome.failures:
        lines.append(f"Could not auto-fix {len(outcome.failures)} file(s):")
        for failure in outcome.failures:
            reason = failure.reason.splitlines()[0] if failure.reason else "unknown error"
            lines.append(f"  - {format_path(failure.path, working_dir)}: {reason}")
        lines.append("")

    if outcome.can_commit:
        lines.append("PRE-COMMIT: PASSED")
        lines.append("")
        lines.append(report.summary_text)
        lines.append("")
        lines.append("Commit can proceed.")
    else:
        lines.append("PRE-COMMIT: BLOCKED")
        lines.append("")
        lines.append(report.summary_text)
        lines.append("")
        lines.append("Remaining issues:")
        for file_report in report.files:
            lines.append("")
            lines.extend(format_file_block(file_report, working_dir, with_source=False))
        lines.append("")
        lines.append("Fix errors before committing.")

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# PHP compatibility
# ---------------------------------------------------------------------------
def render_compatibility(report: BatchReport, php_version: str, working_dir: Optional[str] = None) -> str:
    if not report.has_findings:
        return (
            "PHP COMPATIBILITY: PASSED\n\n"
            f"All files are compatible with PHP {php_version}.\n"
            "No deprecated functions, removed features, or syntax issues found."
        )

    lines = ["PHP COMPATIBILITY: ISSUES FOUND", "", f"Checking compatibility with PHP {php_version}", ""]
    for file_report in report.files:
        lines.append(
            f"{format_path(file_report.path, working_dir)} "
            f"({file_report.error_count} errors, {file_report.warning_count} warnings):"
        )
        for msg in file_report.messages:
            lines.extend(format_message(msg, with_column=False, with_source=False))
            hint = compat_hint(msg.source_rule)
            if hint:
                lines.append(f"    {ARROW} {hint}")
        lines.append("")

    lines.append(f"Summary: {report.total_errors} error(s), {report.total_warnings} warning(s)")
    if report.total_errors:
        lines.append("")
        lines.append(f"Fix these issues to ensure compatibility with PHP {php_version}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------
def render_error(exc: Exception) -> str:
    """``Error: ...`` text for any failure; invocation failures get the full description."""
    if isinstance(exc, InvocationError):
        return f"Error: {exc.describe()}"
    return f"Error: {exc}"
