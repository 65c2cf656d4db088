"""
Orchestrator Agent
==================
The pre-commit engine. Drives Resolve → Fix → Verify → Decide → Re-stage,
strictly in that order, once per invocation, with no state kept between
runs.

Core Features:
    - Empty working set is a pass, not an error
    - Per-file fix isolation: a file whose fix fails is recorded and still
      verified; the batch carries on
    - Optional bounded parallelism in the fix pass; fixed_paths always
      follows candidate order
    - Verify pass over the ENTIRE candidate set in one analyzer call
    - Commit gate = zero ERROR findings; warnings never block
    - Single re-stage call, only after the whole fix pass has finished;
      a re-stage failure is a warning and never flips can_commit

Batch-fatal conditions (the verify pass cannot produce a trusted report)
propagate as InvocationError.
"""
import asyncio
import logging
from typing import List, Optional, Union

from phpcs_gate.agents.fix_agent import FixAgent
from phpcs_gate.agents.git_agent import GitAgent
from phpcs_gate.core.config import FIX_WORKERS
from phpcs_gate.core.errors import InputError, InvocationError
from phpcs_gate.models.fix_outcome import FixOutcome
from phpcs_gate.models.precommit_outcome import Diagnostic, FileFailure, PreCommitOutcome
from phpcs_gate.models.violation import BatchReport, clean_report
from phpcs_gate.services.analyzer import Analyzer, unique_paths
from phpcs_gate.services.compatibility import CompatibilityResult

logger = logging.getLogger(__name__)

OperationResult = Union[BatchReport, FixOutcome, PreCommitOutcome, CompatibilityResult]


def treat_as_error(result: Optional[OperationResult]) -> bool:
    """
    The "caller should treat this as an error" flag.

    True when there is no usable result (invocation failure), when a
    report, compatibility check or pre-commit run blocks the commit, or
    when a fix attempt failed.
    """
    if result is None:
        return True
    if isinstance(result, FixOutcome):
        return result.failed
    return not result.can_commit


class Orchestrator:
    """
    Orchestrates checking and pre-commit fixing for one working directory.

    Parameters
    ----------
    analyzer : Analyzer
        Analyzer Invoker (owns the resolved toolchain).
    fix_agent : FixAgent | None
        Fixer Invoker; built from ``analyzer`` when omitted.
    git_agent : GitAgent | None
        Version-control collaborator; a default GitAgent when omitted.
    max_workers : int
        Upper bound on concurrent per-file fix operations.
    """

    def __init__(
        self,
        analyzer: Analyzer,
        fix_agent: Optional[FixAgent] = None,
        git_agent: Optional[GitAgent] = None,
        max_workers: int = FIX_WORKERS,
    ) -> None:
        self.analyzer = analyzer
        self.fix_agent = fix_agent or FixAgent(analyzer)
        self.git_agent = git_agent or GitAgent()
        self.max_workers = max(1, max_workers)

    # -------------------------------------------------------------------
    # Single-shot operations
    # -------------------------------------------------------------------
    def check_staged(self, working_dir: Optional[str] = None) -> BatchReport:
        paths = self.git_agent.staged_paths(working_dir)
        return self.analyzer.check(paths, working_dir=working_dir)

    def check_file(self, file_path: str, working_dir: Optional[str] = None) -> BatchReport:
        return self.analyzer.check_file(file_path, working_dir)

    def check_directory(self, directory: str, working_dir: Optional[str] = None) -> BatchReport:
        return self.analyzer.check_directory(directory, working_dir)

    def fix_file(self, file_path: str, working_dir: Optional[str] = None) -> FixOutcome:
        if not file_path:
            raise InputError("file_path")
        return self.fix_agent.fix(file_path, working_dir)

    # -------------------------------------------------------------------
    # Pre-commit run
    # -------------------------------------------------------------------
    async def run(self, working_dir: Optional[str] = None, auto_stage: bool = False) -> PreCommitOutcome:
        """Execute one pre-commit run."""
        # ===========================================================
        # 1. Resolve
        # ===========================================================
        candidates = unique_paths(await asyncio.to_thread(self.git_agent.staged_paths, working_dir))
        logger.info("Step 1: %d candidate file(s)", len(candidates))
        if not candidates:
            return PreCommitOutcome(final_report=clean_report(0))

        # ===========================================================
        # 2. Fix pass (per-file, isolated)
        # ===========================================================
        results = await self._fix_pass(candidates, working_dir)
        fixed_paths: List[str] = []
        failures: List[FileFailure] = []
        for path, res in zip(candidates, results):
            if isinstance(res, FileFailure):
                failures.append(res)
                continue
            if res.changed:
                fixed_paths.append(path)
            if res.failure:
                failures.append(FileFailure(path=path, reason=res.failure))
        logger.info("Step 2: fixed %d file(s), %d failure(s)", len(fixed_paths), len(failures))

        # ===========================================================
        # 3. Verify pass (whole candidate set, one call; fatal on failure)
        # ===========================================================
        try:
            final_report = await asyncio.to_thread(self.analyzer.check, candidates, working_dir=working_dir)
        except InvocationError as exc:
            if fixed_paths:
                pending = self.git_agent.build_restage_instruction(fixed_paths)
                exc.notes.append(
                    f"Already rewritten by the fixer and not re-staged: {', '.join(fixed_paths)}\n"
                    f"Review them, then run:\n  {pending.command}"
                )
            raise
        logger.info(
            "Step 3: %d error(s), %d warning(s) after fixing",
            final_report.total_errors, final_report.total_warnings,
        )

        # ===========================================================
        # 4. Decide
        # ===========================================================
        instruction = self.git_agent.build_restage_instruction(fixed_paths)
        outcome = PreCommitOutcome(
            fixed_paths=fixed_paths,
            final_report=final_report,
            restage_instruction=instruction,
            failures=failures,
        )
        logger.info("Step 4: can_commit=%s", outcome.can_commit)

        # ===========================================================
        # 5. Optional re-stage
        # ===========================================================
        if auto_stage and instruction is not None:
            try:
                await asyncio.to_thread(self.git_agent.restage, instruction, working_dir)
                outcome.restaged = True
            except InvocationError as exc:
                logger.warning("Step 5: re-stage failed: %s", exc.reason)
                outcome.diagnostics.append(Diagnostic(
                    level="warning",
                    message=f"Could not re-stage files ({exc.reason}). Run manually:\n  {instruction.command}",
                ))

        return outcome

    async def _fix_pass(
        self,
        candidates: List[str],
        working_dir: Optional[str],
    ) -> List[Union[FixOutcome, FileFailure]]:
        """Fix every candidate; results come back in candidate order."""
        semaphore = asyncio.Semaphore(self.max_workers)

        async def fix_one(path: str) -> Union[FixOutcome, FileFailure]:
            async with semaphore:
                return await asyncio.to_thread(self._fix_isolated, path, working_dir)

        return list(await asyncio.gather(*(fix_one(p) for p in candidates)))

    def _fix_isolated(self, path: str, working_dir: Optional[str]) -> Union[FixOutcome, FileFailure]:
        try:
            return self.fix_agent.fix(path, working_dir)
        except InvocationError as exc:
            logger.warning("%s: could not be fixed: %s", path, exc.reason)
            return FileFailure(path=path, reason=exc.describe())
        except Exception as exc:
            logger.error("%s: unexpected fixer error: %s", path, exc, exc_info=True)
            return FileFailure(path=path, reason=f"Unexpected error: {exc}")
