"""
Report Parser
=============
Converts the analyzer's JSON report into the Violation Report Model.

Wire contract (phpcs --report=json):

    {
      "totals": {"errors": int, "warnings": int, "fixable": int},
      "files": {
        "<path>": {
          "errors": int, "warnings": int,
          "messages": [
            {"message": str, "source": str, "severity": int, "fixable": bool,
             "type": "ERROR" | "WARNING", "line": int, "column": int}
          ]
        }
      }
    }

Rules:
  - Message order inside a file is preserved exactly.
  - File order follows the report's key order.
  - Per-file counts are recomputed from the messages; a disagreement with
    the wire counts is logged, never trusted over the messages.
  - Anything that does not validate against the contract raises
    ReportParseError. It is never coerced into an empty report.
"""
import json
import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, ValidationError

from phpcs_gate.core.errors import ReportParseError
from phpcs_gate.models.violation import (
    BatchReport,
    Category,
    FileReport,
    ViolationMessage,
    build_report,
)

logger = logging.getLogger(__name__)

_REPORT_KEYS = {"totals", "files"}


# ---------------------------------------------------------------------------
# Wire schema
# ---------------------------------------------------------------------------
class _WireMessage(BaseModel):
    message: str
    source: str = ""
    severity: int = 5
    fixable: bool = False
    type: Category
    line: int = 1
    column: int = 1


class _WireFile(BaseModel):
    errors: int = 0
    warnings: int = 0
    messages: List[_WireMessage] = []


class _WireTotals(BaseModel):
    errors: int = 0
    warnings: int = 0
    fixable: int = 0


class _WireReport(BaseModel):
    totals: _WireTotals
    files: Dict[str, _WireFile]


# ===================================================================
# Public Entry Point
# ===================================================================
def parse_report(
    raw: str,
    target_count: int,
    command: Optional[List[str]] = None,
) -> BatchReport:
    """
    Parse raw analyzer stdout into a BatchReport.

    Parameters
    ----------
    raw : str
        The analyzer's stdout.
    target_count : int
        Number of targets the analyzer was given (for the summary text).
    command : list[str] | None
        The argv that produced ``raw``, attached to any parse error.

    Raises
    ------
    ReportParseError
        If ``raw`` is not a report matching the wire contract.
    """
    payload = _extract_json(raw)
    if payload is None:
        raise ReportParseError(
            "Analyzer output is not a JSON report",
            command=command,
            stdout=raw,
            expected="a JSON object with 'totals' and 'files'",
        )

    try:
        wire = _WireReport.model_validate(payload)
    except ValidationError as exc:
        raise ReportParseError(
            f"Analyzer report is malformed: {exc.error_count()} validation error(s)",
            command=command,
            stdout=raw,
            expected="a JSON object with 'totals' and 'files'",
        ) from exc

    files: List[FileReport] = []
    for path, wire_file in wire.files.items():
        messages = [_to_message(m) for m in wire_file.messages]
        report = FileReport(path=path, messages=messages)
        if (report.error_count, report.warning_count) != (wire_file.errors, wire_file.warnings):
            logger.debug(
                "%s: wire counts %d/%d differ from messages %d/%d",
                path, wire_file.errors, wire_file.warnings,
                report.error_count, report.warning_count,
            )
        files.append(report)

    batch = build_report(files, target_count)
    if batch.total_errors != wire.totals.errors or batch.total_warnings != wire.totals.warnings:
        logger.debug(
            "report totals %d/%d differ from recomputed %d/%d",
            wire.totals.errors, wire.totals.warnings,
            batch.total_errors, batch.total_warnings,
        )
    return batch


def _to_message(m: _WireMessage) -> ViolationMessage:
    return ViolationMessage(
        text=m.message,
        source_rule=m.source,
        severity=m.severity,
        category=m.type,
        fixable=m.fixable,
        line=max(m.line, 1),
        column=max(m.column, 1),
    )


def _extract_json(raw: str) -> Optional[dict]:
    """
    Return the report object embedded in ``raw``.

    PHP can print notices/deprecations to stdout around the report, and
    those can contain braces of their own (``{closure}``). Each '{' is
    tried as the start of a JSON object; the first object that carries
    report keys wins, otherwise the first object decoded at all.
    """
    if not raw:
        return None
    decoder = json.JSONDecoder()
    fallback = None
    start = raw.find("{")
    while start != -1:
        try:
            obj, end = decoder.raw_decode(raw, start)
        except json.JSONDecodeError:
            start = raw.find("{", start + 1)
            continue
        if isinstance(obj, dict):
            if _REPORT_KEYS & obj.keys():
                return obj
            if fallback is None:
                fallback = obj
        start = raw.find("{", end)
    return fallback
