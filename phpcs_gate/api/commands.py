"""
/api/tools
==========
The command surface: one POST route per orchestrator operation plus a
catalogue route.

Every tool route answers with the same envelope:

    {"text": str, "is_error": bool, "result": <model> | null}

    text      — Output Formatter rendering, ready to show to a person
    is_error  — the caller should treat this as an error (commit blocked,
                fix failed, or no usable result)
    result    — the serialized BatchReport / FixOutcome / PreCommitOutcome

Status codes:
    400 — a required input is missing ("Error: file_path is required");
          nothing was run.
    200 — everything else, including invocation failures, which come back
          with is_error=true and result=null. A crashed phpcs is a tool
          outcome, not a transport failure.
"""
import asyncio
import logging
from typing import Any, Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from phpcs_gate.agents.orchestrator import Orchestrator, treat_as_error
from phpcs_gate.core.errors import InputError, InvocationError
from phpcs_gate.core.output_formatter import (
    render_batch_report,
    render_compatibility,
    render_error,
    render_fix_outcome,
    render_precommit,
)
from phpcs_gate.services.compatibility import check_php_compatibility

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tools", tags=["Tools"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------
class WorkingDirRequest(BaseModel):
    working_dir: Optional[str] = Field(
        default=None,
        description="Working directory (git repository root). Defaults to the server's current directory.",
    )


class FileRequest(WorkingDirRequest):
    file_path: str = Field(default="", description="Path to the PHP file (absolute or relative to working_dir)")


class DirectoryRequest(WorkingDirRequest):
    directory: str = Field(default="", description="Path to the directory to check")


class PreCommitRequest(WorkingDirRequest):
    auto_stage: bool = Field(default=True, description="Automatically re-stage fixed files")


class CompatibilityRequest(WorkingDirRequest):
    target: str = Field(default="", description="File or directory to check")
    php_version: Optional[str] = Field(
        default=None,
        description='PHP version range in phpcs testVersion syntax, e.g. "7.4-" or "8.0-8.2"',
    )


class ToolResponse(BaseModel):
    text: str
    is_error: bool
    result: Optional[Any] = None


# ---------------------------------------------------------------------------
# Tool catalogue
# ---------------------------------------------------------------------------
TOOLS = [
    {
        "name": "check-staged",
        "description": "Check all staged PHP files against the configured coding standard. "
                       "Use this before committing to ensure code quality.",
        "request": WorkingDirRequest,
        "required": [],
    },
    {
        "name": "check-file",
        "description": "Check a single PHP file against the configured coding standard.",
        "request": FileRequest,
        "required": ["file_path"],
    },
    {
        "name": "check-directory",
        "description": "Check all PHP files in a directory against the configured coding standard.",
        "request": DirectoryRequest,
        "required": ["directory"],
    },
    {
        "name": "fix-file",
        "description": "Auto-fix coding standard violations in a PHP file using phpcbf.",
        "request": FileRequest,
        "required": ["file_path"],
    },
    {
        "name": "pre-commit",
        "description": "Pre-commit workflow: auto-fix staged PHP files, re-stage them, and report "
                       "remaining issues. Returns whether the commit should proceed.",
        "request": PreCommitRequest,
        "required": [],
    },
    {
        "name": "php-compatibility",
        "description": "Check PHP files for compatibility with a PHP version range "
                       "(removed/deprecated functions, new syntax).",
        "request": CompatibilityRequest,
        "required": ["target"],
    },
]


@router.get("")
async def list_tools():
    return {
        "tools": [
            {
                "name": tool["name"],
                "description": tool["description"],
                "method": "POST",
                "path": f"{router.prefix}/{tool['name']}",
                "input_schema": {**tool["request"].model_json_schema(), "required": tool["required"]},
            }
            for tool in TOOLS
        ]
    }


# ---------------------------------------------------------------------------
# Dependencies / helpers
# ---------------------------------------------------------------------------
def get_orchestrator(request: Request) -> Orchestrator:
    """The Orchestrator built at startup (see main.lifespan)."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Toolchain not initialised")
    return orchestrator


async def _respond(
    call: Callable[[], Any],
    render: Callable[[Any], str],
    tool: str,
) -> ToolResponse:
    try:
        result = await call()
    except InputError as exc:
        raise HTTPException(status_code=400, detail=render_error(exc))
    except InvocationError as exc:
        logger.error("[%s] invocation failed: %s", tool, exc.reason)
        return ToolResponse(text=render_error(exc), is_error=True, result=None)

    return ToolResponse(
        text=render(result),
        is_error=treat_as_error(result),
        result=result.model_dump(mode="json"),
    )


def _in_thread(fn, *args) -> Callable[[], Any]:
    return lambda: asyncio.to_thread(fn, *args)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@router.post("/check-staged", response_model=ToolResponse)
async def check_staged(body: WorkingDirRequest, orchestrator: Orchestrator = Depends(get_orchestrator)):
    return await _respond(
        _in_thread(orchestrator.check_staged, body.working_dir),
        lambda r: render_batch_report(r, body.working_dir),
        "check-staged",
    )


@router.post("/check-file", response_model=ToolResponse)
async def check_file(body: FileRequest, orchestrator: Orchestrator = Depends(get_orchestrator)):
    return await _respond(
        _in_thread(orchestrator.check_file, body.file_path, body.working_dir),
        lambda r: render_batch_report(r, body.working_dir),
        "check-file",
    )


@router.post("/check-directory", response_model=ToolResponse)
async def check_directory(body: DirectoryRequest, orchestrator: Orchestrator = Depends(get_orchestrator)):
    return await _respond(
        _in_thread(orchestrator.check_directory, body.directory, body.working_dir),
        lambda r: render_batch_report(r, body.working_dir),
        "check-directory",
    )


@router.post("/fix-file", response_model=ToolResponse)
async def fix_file(body: FileRequest, orchestrator: Orchestrator = Depends(get_orchestrator)):
    return await _respond(
        _in_thread(orchestrator.fix_file, body.file_path, body.working_dir),
        lambda r: render_fix_outcome(r, body.working_dir),
        "fix-file",
    )


@router.post("/pre-commit", response_model=ToolResponse)
async def pre_commit(body: PreCommitRequest, orchestrator: Orchestrator = Depends(get_orchestrator)):
    return await _respond(
        lambda: orchestrator.run(working_dir=body.working_dir, auto_stage=body.auto_stage),
        lambda r: render_precommit(r, body.working_dir),
        "pre-commit",
    )


@router.post("/php-compatibility", response_model=ToolResponse)
async def php_compatibility(body: CompatibilityRequest, orchestrator: Orchestrator = Depends(get_orchestrator)):
    return await _respond(
        _in_thread(
            check_php_compatibility,
            orchestrator.analyzer, body.target, body.php_version, body.working_dir,
        ),
        lambda r: render_compatibility(r.report, r.php_version, body.working_dir),
        "php-compatibility",
    )
