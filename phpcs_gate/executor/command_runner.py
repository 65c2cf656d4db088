"""
Command Runner
==============
Runs external analyzer/fixer commands and classifies their results.

BOUNDARY RULES (CRITICAL):
    - This is the ONLY module that looks at a raw exit code.
    - Every (exit code, stdout, stderr) triple is classified into exactly
      one of CLEAN / VIOLATIONS / FAILED before any caller sees it.
    - Runner NEVER parses reports; that is the parser's job.
    - Every call is blocking and bounded by a timeout. A timeout, a missing
      executable or an unusable working directory raises InvocationError.
"""
import logging
import shlex
import subprocess
import time
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from phpcs_gate.core.config import CHECK_TIMEOUT
from phpcs_gate.core.constants import PHPCBF_EXIT_FIXED, PHPCBF_EXIT_NOTHING, PHPCS_EXIT_CLEAN
from phpcs_gate.core.errors import InvocationError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Raw execution result
# ---------------------------------------------------------------------------
@dataclass
class CommandResult:
    """
    Structured output from a single external invocation.

    Fields
    ------
    argv : list[str]
        The exact argument vector that was executed.
    exit_code : int
        Process exit code.
    stdout / stderr : str
        Captured output channels.
    duration_seconds : float
        Wall clock duration.
    """
    argv: List[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    duration_seconds: float = 0.0


class CommandOutcome(str, Enum):
    CLEAN = "clean"
    VIOLATIONS = "violations"
    FAILED = "failed"


@dataclass
class ClassifiedResult:
    outcome: CommandOutcome
    result: CommandResult
    reason: str = ""

    def to_error(self, expected: str = "") -> InvocationError:
        r = self.result
        return InvocationError(
            self.reason or "External command failed",
            command=r.argv,
            exit_code=r.exit_code,
            stdout=r.stdout,
            stderr=r.stderr,
            expected=expected,
        )


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------
def run_command(
    argv: Sequence[str],
    cwd: Optional[str] = None,
    timeout: float = CHECK_TIMEOUT,
) -> CommandResult:
    """
    Run ``argv`` (no shell) and capture its output.

    Raises
    ------
    InvocationError
        Executable not found, working directory unusable, or timeout.
    """
    argv = [str(a) for a in argv]
    logger.debug("exec: %s (cwd=%s, timeout=%ss)", shlex.join(argv), cwd or ".", timeout)
    start = time.time()
    try:
        proc = subprocess.run(
            argv,
            cwd=cwd or None,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as exc:
        # Either the executable or the cwd is missing; the message says which.
        raise InvocationError(
            f"Could not start {argv[0]}: {exc.strerror or exc}",
            command=argv,
            expected="an installed executable and an existing working directory",
        ) from exc
    except subprocess.TimeoutExpired as exc:
        raise InvocationError(
            f"{argv[0]} timed out after {timeout}s",
            command=argv,
            stdout=_as_text(exc.stdout),
            stderr=_as_text(exc.stderr),
            expected=f"completion within {timeout}s",
        ) from exc
    except OSError as exc:
        raise InvocationError(
            f"Could not run {argv[0]}: {exc}",
            command=argv,
        ) from exc

    elapsed = time.time() - start
    logger.debug("exit %d from %s in %.2fs", proc.returncode, argv[0], elapsed)
    return CommandResult(
        argv=argv,
        exit_code=proc.returncode,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
        duration_seconds=elapsed,
    )


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------
def classify_check(result: CommandResult) -> ClassifiedResult:
    """
    Classify an analyzer run.

    - exit 0                                 → CLEAN
    - non-zero with output on stdout         → VIOLATIONS (report still to be parsed)
    - non-zero with nothing on stdout        → FAILED
    """
    if result.exit_code == PHPCS_EXIT_CLEAN:
        return ClassifiedResult(CommandOutcome.CLEAN, result)
    if result.stdout.strip():
        return ClassifiedResult(CommandOutcome.VIOLATIONS, result)
    return ClassifiedResult(
        CommandOutcome.FAILED,
        result,
        reason=f"{_tool_name(result)} exited with code {result.exit_code} and produced no report",
    )


def classify_fix(result: CommandResult) -> ClassifiedResult:
    """
    Classify a fixer run.

    The fixer's exit code is not a change signal: 0 (nothing fixed) and
    1 (fixes applied) are both successful runs. Any other code means the
    fixer could not do its job.
    """
    if result.exit_code == PHPCBF_EXIT_NOTHING:
        return ClassifiedResult(CommandOutcome.CLEAN, result)
    if result.exit_code == PHPCBF_EXIT_FIXED:
        return ClassifiedResult(CommandOutcome.VIOLATIONS, result)
    return ClassifiedResult(
        CommandOutcome.FAILED,
        result,
        reason=f"{_tool_name(result)} failed to fix the file (exit code {result.exit_code})",
    )


def _tool_name(result: CommandResult) -> str:
    return result.argv[0] if result.argv else "command"


def _as_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
