"""
Git Hook Installer
==================
Writes ``.git/hooks/pre-commit`` so that every commit runs the pre-commit
workflow in-process, and drops a default ``phpcs.xml`` ruleset into the
project when it has none.

Rules:
    - A hook this module wrote earlier (recognised by HOOK_MARKER) is
      rewritten freely.
    - Any other existing hook is left alone unless ``force`` is set, in
      which case it is renamed to ``pre-commit.backup.<timestamp>`` first.
    - phpcs.xml / phpcs.xml.dist are never overwritten.
"""
import logging
import os
import shlex
import stat
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from phpcs_gate.core.config import PHP_COMPAT_STANDARD, PHP_COMPAT_VERSION, PHPCS_STANDARD

logger = logging.getLogger(__name__)

HOOK_MARKER = "# phpcs-gate pre-commit hook"

HOOK_TEMPLATE = """#!/bin/sh
{marker}
# Auto-fixes staged PHP files, re-stages them and blocks the commit
# while coding standard errors remain.
# Bypass with: git commit --no-verify
exec {python} -m phpcs_gate.cli pre-commit
"""

RULESET_NAMES = ("phpcs.xml", "phpcs.xml.dist")

RULESET_TEMPLATE = """<?xml version="1.0"?>
<ruleset name="WordPress Plugin/Theme">
    <description>{standard} Coding Standards</description>

    <file>.</file>

    <exclude-pattern>/vendor/*</exclude-pattern>
    <exclude-pattern>/node_modules/*</exclude-pattern>
    <exclude-pattern>/build/*</exclude-pattern>
    <exclude-pattern>/dist/*</exclude-pattern>
    <exclude-pattern>*.min.js</exclude-pattern>
    <exclude-pattern>*.min.css</exclude-pattern>

    <rule ref="{standard}"/>

    <config name="testVersion" value="{php_version}"/>
    <rule ref="{compat_standard}"/>
</ruleset>
"""


@dataclass
class HookInstallResult:
    hook_path: Path
    backup_path: Optional[Path] = None
    ruleset_path: Optional[Path] = None   # None when the project already had one


def render_hook(python: str = sys.executable) -> str:
    return HOOK_TEMPLATE.format(marker=HOOK_MARKER, python=shlex.quote(python))


def render_ruleset(
    standard: str = PHPCS_STANDARD,
    php_version: str = PHP_COMPAT_VERSION,
    compat_standard: str = PHP_COMPAT_STANDARD,
) -> str:
    return RULESET_TEMPLATE.format(
        standard=standard, php_version=php_version, compat_standard=compat_standard,
    )


def install_hook(root: Path, force: bool = False, write_ruleset: bool = True) -> HookInstallResult:
    """
    Install the pre-commit hook into the repository at ``root``.

    Raises
    ------
    FileNotFoundError
        ``root`` has no .git directory.
    FileExistsError
        A foreign pre-commit hook exists and ``force`` is False.
    """
    project_root = Path(root).resolve()
    git_dir = project_root / ".git"
    if not git_dir.is_dir():
        raise FileNotFoundError(f"Not a git repository (missing .git directory): {project_root}")

    hooks_dir = git_dir / "hooks"
    hooks_dir.mkdir(parents=True, exist_ok=True)
    hook_path = hooks_dir / "pre-commit"
    result = HookInstallResult(hook_path=hook_path)

    if hook_path.exists() and not _is_ours(hook_path):
        if not force:
            raise FileExistsError(
                f"{hook_path} already exists and was not written by phpcs-gate (use --force to replace it)"
            )
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        result.backup_path = hook_path.with_name(f"pre-commit.backup.{timestamp}")
        hook_path.rename(result.backup_path)
        logger.info("Backed up existing pre-commit hook to %s", result.backup_path)

    hook_path.write_text(render_hook(), encoding="utf-8")
    mode = os.stat(hook_path).st_mode
    os.chmod(hook_path, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    logger.info("Installed pre-commit hook at %s", hook_path)

    if write_ruleset and not any((project_root / name).exists() for name in RULESET_NAMES):
        result.ruleset_path = project_root / RULESET_NAMES[0]
        result.ruleset_path.write_text(render_ruleset(), encoding="utf-8")
        logger.info("Created default ruleset %s", result.ruleset_path)

    return result


def _is_ours(path: Path) -> bool:
    try:
        return HOOK_MARKER in path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return False
