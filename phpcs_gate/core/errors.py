"""
Errors
======
Exception taxonomy shared by every layer.

    InputError        — a required path/target is missing; rejected before
                        any external invocation.
    InvocationError   — the external tool is missing, crashed, timed out or
                        produced something that is not a violation report.
                        Never coerced into "zero violations".
    ReportParseError  — structured output was malformed (an InvocationError).
    ToolchainError    — startup-only; the toolchain is absent or incomplete.
"""
import shlex
from typing import List, Optional

_OUTPUT_PREVIEW_CHARS = 500


class GateError(Exception):
    """Base class for all phpcs-gate errors."""


class InputError(GateError):
    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"{field} is required")


class InvocationError(GateError):
    """
    Raised when an external invocation does not yield a usable result.

    Carries enough context for ``describe()`` to explain what was run,
    what was expected and what came back.
    """

    def __init__(
        self,
        reason: str,
        command: Optional[List[str]] = None,
        exit_code: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
        expected: str = "",
    ) -> None:
        self.reason = reason
        self.command = list(command or [])
        self.exit_code = exit_code
        self.stdout = stdout or ""
        self.stderr = stderr or ""
        self.expected = expected
        self.notes: List[str] = []
        super().__init__(reason)

    def describe(self) -> str:
        lines = [self.reason]
        if self.command:
            lines.append(f"Command: {shlex.join(self.command)}")
        if self.expected:
            lines.append(f"Expected: {self.expected}")
        if self.exit_code is not None:
            lines.append(f"Exit code: {self.exit_code}")
        if self.stderr.strip():
            lines.append(f"stderr: {_preview(self.stderr)}")
        if self.stdout.strip():
            lines.append(f"stdout: {_preview(self.stdout)}")
        lines.extend(self.notes)
        return "\n".join(lines)


class ReportParseError(InvocationError):
    pass


class ToolchainError(GateError):
    def __init__(self, message: str, hint: str = "") -> None:
        self.hint = hint
        super().__init__(message if not hint else f"{message}\n{hint}")


def _preview(text: str) -> str:
    text = text.strip()
    if len(text) <= _OUTPUT_PREVIEW_CHARS:
        return text
    return text[:_OUTPUT_PREVIEW_CHARS] + " ... (truncated)"
