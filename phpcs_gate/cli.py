"""
phpcs-gate CLI
==============
Local entry points: the git pre-commit hook, one-off checks and fixes,
hook installation, and the HTTP server.

Exit codes:
    0 — clean / commit may proceed
    1 — commit blocked (errors remain) or the fix failed
    2 — invocation failure, missing input or unusable toolchain
"""
import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional, TypeVar

import typer
import uvicorn

from phpcs_gate.agents.orchestrator import Orchestrator, treat_as_error
from phpcs_gate.core.config import PHPCS_STANDARD
from phpcs_gate.core.errors import InputError, InvocationError, ToolchainError
from phpcs_gate.core.output_formatter import (
    render_batch_report,
    render_compatibility,
    render_error,
    render_fix_outcome,
    render_precommit,
)
from phpcs_gate.hooks.installer import install_hook
from phpcs_gate.services.analyzer import Analyzer
from phpcs_gate.services.compatibility import check_php_compatibility
from phpcs_gate.services.toolchain import resolve_toolchain
from phpcs_gate.utils.logging_config import setup_logging

EXIT_OK = 0
EXIT_BLOCKED = 1
EXIT_FAILURE = 2

T = TypeVar("T")

app = typer.Typer(
    name="phpcs-gate",
    help="Auto-fix and gate commits on PHP_CodeSniffer coding standards.",
    no_args_is_help=True,
)

WorkingDir = typer.Option(None, "--working-dir", "-C", help="Git repository root (defaults to the current directory).")
Verbose = typer.Option(False, "--verbose", "-v", help="Log progress to stderr.")
Standard = typer.Option(PHPCS_STANDARD, "--standard", "-s", help="Coding standard to check against.")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def build_orchestrator(standard: str = PHPCS_STANDARD) -> Orchestrator:
    """Resolve the toolchain and wire the invokers. Raises ToolchainError."""
    return Orchestrator(Analyzer(resolve_toolchain(standard=standard)))


def _init_logging(verbose: bool) -> None:
    setup_logging(level=logging.INFO if verbose else logging.WARNING, to_file=False)


def _invoke(call: Callable[[], T]) -> T:
    """Run ``call``; print any gate error and exit with EXIT_FAILURE."""
    try:
        return call()
    except ToolchainError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=EXIT_FAILURE)
    except (InputError, InvocationError) as exc:
        typer.echo(render_error(exc), err=True)
        raise typer.Exit(code=EXIT_FAILURE)


def _finish(text: str, is_error: bool) -> None:
    typer.echo(text)
    raise typer.Exit(code=EXIT_BLOCKED if is_error else EXIT_OK)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
@app.command("pre-commit")
def pre_commit(
    working_dir: Optional[str] = WorkingDir,
    auto_stage: bool = typer.Option(True, "--auto-stage/--no-auto-stage", help="Re-stage files the fixer changed."),
    standard: str = Standard,
    verbose: bool = Verbose,
) -> None:
    """Fix staged PHP files, re-stage them and block the commit on remaining errors."""
    _init_logging(verbose)
    orchestrator = _invoke(lambda: build_orchestrator(standard))
    outcome = _invoke(lambda: asyncio.run(orchestrator.run(working_dir=working_dir, auto_stage=auto_stage)))
    _finish(render_precommit(outcome, working_dir), treat_as_error(outcome))


@app.command("check")
def check(
    path: str = typer.Argument(..., help="PHP file or directory to check."),
    working_dir: Optional[str] = WorkingDir,
    standard: str = Standard,
    verbose: bool = Verbose,
) -> None:
    """Check a file or directory."""
    _init_logging(verbose)
    orchestrator = _invoke(lambda: build_orchestrator(standard))
    report = _invoke(lambda: orchestrator.check_file(path, working_dir))
    _finish(render_batch_report(report, working_dir), treat_as_error(report))


@app.command("check-staged")
def check_staged(
    working_dir: Optional[str] = WorkingDir,
    standard: str = Standard,
    verbose: bool = Verbose,
) -> None:
    """Check staged PHP files without fixing anything."""
    _init_logging(verbose)
    orchestrator = _invoke(lambda: build_orchestrator(standard))
    report = _invoke(lambda: orchestrator.check_staged(working_dir))
    _finish(render_batch_report(report, working_dir), treat_as_error(report))


@app.command("fix")
def fix(
    path: str = typer.Argument(..., help="PHP file to fix."),
    working_dir: Optional[str] = WorkingDir,
    standard: str = Standard,
    verbose: bool = Verbose,
) -> None:
    """Auto-fix one file with phpcbf."""
    _init_logging(verbose)
    orchestrator = _invoke(lambda: build_orchestrator(standard))
    outcome = _invoke(lambda: orchestrator.fix_file(path, working_dir))
    _finish(render_fix_outcome(outcome, working_dir), treat_as_error(outcome))


@app.command("compat")
def compat(
    target: str = typer.Argument(..., help="PHP file or directory to check."),
    php_version: Optional[str] = typer.Option(None, "--php-version", "-p", help='testVersion range, e.g. "7.4-".'),
    working_dir: Optional[str] = WorkingDir,
    verbose: bool = Verbose,
) -> None:
    """Check PHP version compatibility."""
    _init_logging(verbose)
    orchestrator = _invoke(build_orchestrator)
    result = _invoke(lambda: check_php_compatibility(orchestrator.analyzer, target, php_version, working_dir))
    _finish(render_compatibility(result.report, result.php_version, working_dir), treat_as_error(result))


@app.command("install-hook")
def install_hook_command(
    working_dir: Optional[str] = WorkingDir,
    force: bool = typer.Option(False, "--force", "-f", help="Replace an existing pre-commit hook (a backup is kept)."),
    ruleset: bool = typer.Option(True, "--ruleset/--no-ruleset", help="Create phpcs.xml when the project has none."),
) -> None:
    """Install the git pre-commit hook."""
    try:
        result = install_hook(Path(working_dir or "."), force=force, write_ruleset=ruleset)
    except (FileNotFoundError, FileExistsError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=EXIT_FAILURE)

    if result.backup_path:
        typer.echo(f"Backed up existing hook to {result.backup_path}")
    typer.echo(f"Pre-commit hook installed at {result.hook_path}")
    if result.ruleset_path:
        typer.echo(f"Created {result.ruleset_path}")


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
    reload: bool = typer.Option(False, help="Reload on code changes."),
) -> None:
    """Run the HTTP tool server."""
    uvicorn.run("main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
