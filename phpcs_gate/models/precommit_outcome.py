"""
Pre-Commit Outcome Model
========================
Terminal artifact of one orchestration run.

Fields:
    fixed_paths          — distinct paths changed by fixing, in candidate order
    final_report         — BatchReport over the full candidate set after fixing
    restage_instruction  — present iff fixed_paths is non-empty
    restaged             — True once the instruction ran successfully
    failures             — per-file fixer failures absorbed during the fix pass
    diagnostics          — warning-level notes (e.g. re-stage failure)
    can_commit           — copied from final_report.can_commit
"""
import shlex
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, computed_field

from .violation import BatchReport


class RestageInstruction(BaseModel):
    """Opaque re-add command; callers may execute ``argv`` as-is."""
    model_config = ConfigDict(frozen=True)

    argv: List[str]
    paths: List[str]

    @computed_field
    @property
    def command(self) -> str:
        return shlex.join(self.argv)


class FileFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    reason: str


class Diagnostic(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: str = "warning"
    message: str


class PreCommitOutcome(BaseModel):
    fixed_paths: List[str] = []
    final_report: BatchReport
    restage_instruction: Optional[RestageInstruction] = None
    restaged: bool = False
    failures: List[FileFailure] = []
    diagnostics: List[Diagnostic] = []

    @computed_field
    @property
    def can_commit(self) -> bool:
        return self.final_report.can_commit
