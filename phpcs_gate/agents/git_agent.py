"""
Git Agent
=========
Version-control collaborator: lists the staged working set and re-stages
files after fixing. Nothing else touches the index.

Resolution is forgiving: no git executable, not a repository, or any
other git failure degrades to an empty working set ("nothing to check").
Re-staging is strict: failures raise InvocationError so the caller can
decide how to report them.
"""
import logging
from typing import Iterable, List, Optional, Sequence

from phpcs_gate.core.config import GIT_TIMEOUT
from phpcs_gate.core.constants import GIT_STATUS_DELETED, PHP_EXTENSIONS
from phpcs_gate.core.errors import InvocationError
from phpcs_gate.executor.command_runner import run_command
from phpcs_gate.models.precommit_outcome import RestageInstruction
from phpcs_gate.models.staged_file import StagedFileEntry

logger = logging.getLogger(__name__)


class GitAgent:
    """
    Lists changed paths relative to the index and adds paths back to it.

    Parameters
    ----------
    git_bin : str
        git executable.
    extensions : tuple[str, ...]
        Extensions of the analyzed language (matched case-insensitively).
    timeout : float
        Bound for every git call.
    """

    def __init__(
        self,
        git_bin: str = "git",
        extensions: Sequence[str] = PHP_EXTENSIONS,
        timeout: float = GIT_TIMEOUT,
        runner=run_command,
    ) -> None:
        self.git_bin = git_bin
        self.extensions = tuple(e.lower() for e in extensions)
        self.timeout = timeout
        self.runner = runner

    # -------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------
    def list_changed(self, working_dir: Optional[str] = None) -> List[StagedFileEntry]:
        """
        All staged entries with their change status, in diff order.

        Raises InvocationError; ``staged_files`` is the degrading wrapper.
        """
        result = self.runner(
            [self.git_bin, "diff", "--cached", "--name-status", "-z"],
            cwd=working_dir,
            timeout=self.timeout,
        )
        if result.exit_code != 0:
            raise InvocationError(
                "git diff --cached failed",
                command=result.argv,
                exit_code=result.exit_code,
                stderr=result.stderr,
                expected="a git working tree",
            )
        return parse_name_status(result.stdout)

    def staged_files(self, working_dir: Optional[str] = None) -> List[StagedFileEntry]:
        """
        Staged files of the analyzed language, deleted entries excluded,
        duplicates collapsed. Any git failure yields [].
        """
        try:
            entries = self.list_changed(working_dir)
        except InvocationError as exc:
            logger.warning("No version-control context (%s); nothing to check", exc.reason)
            return []

        seen: set[str] = set()
        out: List[StagedFileEntry] = []
        for entry in entries:
            if entry.change_status.startswith(GIT_STATUS_DELETED):
                continue
            if not entry.path.lower().endswith(self.extensions):
                continue
            if entry.path in seen:
                continue
            seen.add(entry.path)
            out.append(entry)

        logger.info("Resolved %d staged file(s) of %d changed", len(out), len(entries))
        return out

    def staged_paths(self, working_dir: Optional[str] = None) -> List[str]:
        return [e.path for e in self.staged_files(working_dir)]

    # -------------------------------------------------------------------
    # Re-staging
    # -------------------------------------------------------------------
    def build_restage_instruction(self, paths: Iterable[str]) -> Optional[RestageInstruction]:
        """Instruction re-adding ``paths``; None when there is nothing to add."""
        paths = list(paths)
        if not paths:
            return None
        return RestageInstruction(argv=[self.git_bin, "add", "--", *paths], paths=paths)

    def restage(self, instruction: RestageInstruction, working_dir: Optional[str] = None) -> None:
        """Run the instruction as one git call. Raises InvocationError on failure."""
        result = self.runner(instruction.argv, cwd=working_dir, timeout=self.timeout)
        if result.exit_code != 0:
            raise InvocationError(
                "git add failed",
                command=result.argv,
                exit_code=result.exit_code,
                stderr=result.stderr,
                expected="exit code 0",
            )
        logger.info("Re-staged %d file(s)", len(instruction.paths))


def parse_name_status(output: str) -> List[StagedFileEntry]:
    """
    Parse NUL-delimited `git diff --name-status -z` output.

    Renames and copies (R###/C###) carry two paths; the destination is kept.
    """
    tokens = output.split("\0")
    entries: List[StagedFileEntry] = []
    i = 0
    while i < len(tokens):
        status = tokens[i].strip()
        if not status:
            i += 1
            continue
        if status[0] in ("R", "C"):
            if i + 2 >= len(tokens):
                break
            path = tokens[i + 2]
            i += 3
        else:
            if i + 1 >= len(tokens):
                break
            path = tokens[i + 1]
            i += 2
        if path:
            entries.append(StagedFileEntry(path=path, change_status=status))
    return entries
