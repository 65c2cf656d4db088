"""
Toolchain Service
=================
Locates phpcs/phpcbf, verifies the configured ruleset is installed and,
optionally, installs the toolchain through composer.

Philosophy:
    - Resolve ONCE at startup into an immutable ToolchainConfig.
    - Pass the config down explicitly; never mutate PATH or os.environ.
    - Failures here are fatal at startup (ToolchainError), never mid-run.
"""
import logging
import os
import re
import shutil
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from phpcs_gate.core.config import (
    AUTO_INSTALL,
    CHECK_TIMEOUT,
    COMPOSER_BIN,
    COMPOSER_BIN_DIR,
    INSTALL_TIMEOUT,
    PHP_COMPAT_STANDARD,
    PHPCBF_BIN,
    PHPCS_BIN,
    PHPCS_STANDARD,
)
from phpcs_gate.core.constants import COMPOSER_INSTALLER_PLUGIN, COMPOSER_PACKAGES
from phpcs_gate.core.errors import InvocationError, ToolchainError
from phpcs_gate.executor.command_runner import run_command

logger = logging.getLogger(__name__)

_STANDARDS_RE = re.compile(r"installed coding standards are (.+)", re.IGNORECASE)

INSTALL_HINT = (
    "Install with:\n"
    f"  composer global config allow-plugins.{COMPOSER_INSTALLER_PLUGIN} true\n"
    f"  composer global require {' '.join(COMPOSER_PACKAGES)}\n"
    "and make sure ~/.composer/vendor/bin is reachable (or set COMPOSER_BIN_DIR)."
)


@dataclass(frozen=True)
class ToolchainConfig:
    """Resolved executable paths and ruleset threaded into the invokers."""
    phpcs_path: str
    phpcbf_path: str
    standard: str = PHPCS_STANDARD
    check_timeout: float = CHECK_TIMEOUT
    standards: Tuple[str, ...] = field(default_factory=tuple)


# ===================================================================
# Discovery
# ===================================================================
def locate_executable(name: str, extra_dir: str = COMPOSER_BIN_DIR) -> Optional[str]:
    """
    Find ``name``: an explicit path first, then PATH, then ``extra_dir``.
    """
    if os.path.dirname(name):
        return name if os.path.isfile(name) and os.access(name, os.X_OK) else None
    found = shutil.which(name)
    if found:
        return found
    if extra_dir and os.path.isdir(extra_dir):
        return shutil.which(name, path=extra_dir)
    return None


def parse_standards(output: str) -> List[str]:
    """
    Parse `phpcs -i` output.

    "The installed coding standards are MySource, PEAR and WordPress"
    -> ["MySource", "PEAR", "WordPress"]
    """
    match = _STANDARDS_RE.search(output)
    if not match:
        return []
    raw = match.group(1).strip().rstrip(".")
    parts = re.split(r",\s*|\s+and\s+", raw)
    return [p.strip() for p in parts if p.strip()]


def list_standards(phpcs_path: str, timeout: float = CHECK_TIMEOUT) -> List[str]:
    """Return the rulesets phpcs reports as installed."""
    result = run_command([phpcs_path, "-i"], timeout=timeout)
    if result.exit_code != 0:
        raise InvocationError(
            "phpcs -i failed",
            command=result.argv,
            exit_code=result.exit_code,
            stdout=result.stdout,
            stderr=result.stderr,
            expected="the list of installed coding standards",
        )
    return parse_standards(result.stdout)


# ===================================================================
# Resolution
# ===================================================================
def resolve_toolchain(
    standard: str = PHPCS_STANDARD,
    auto_install: bool = AUTO_INSTALL,
) -> ToolchainConfig:
    """
    Resolve phpcs/phpcbf and verify ``standard`` is installed.

    Raises
    ------
    ToolchainError
        If the toolchain is missing or incomplete and could not be installed.
    """
    try:
        return _resolve(standard)
    except ToolchainError as exc:
        if not auto_install:
            raise
        logger.warning("Toolchain incomplete (%s), attempting auto-install...", exc)

    message = install_toolchain()
    logger.info(message)
    return _resolve(standard)


def _resolve(standard: str) -> ToolchainConfig:
    phpcs = locate_executable(PHPCS_BIN)
    if not phpcs:
        raise ToolchainError(f"{PHPCS_BIN} not found in PATH or {COMPOSER_BIN_DIR}.", INSTALL_HINT)
    phpcbf = locate_executable(PHPCBF_BIN)
    if not phpcbf:
        raise ToolchainError(f"{PHPCBF_BIN} not found in PATH or {COMPOSER_BIN_DIR}.", INSTALL_HINT)

    try:
        standards = list_standards(phpcs)
    except InvocationError as exc:
        raise ToolchainError("Failed to list phpcs standards.", exc.describe()) from exc

    if standard not in standards:
        raise ToolchainError(
            f"Coding standard '{standard}' not found (installed: {', '.join(standards) or 'none'}).",
            INSTALL_HINT,
        )

    if PHP_COMPAT_STANDARD not in standards:
        logger.warning("%s is not installed; PHP compatibility checks will fail", PHP_COMPAT_STANDARD)

    logger.info("phpcs: %s | phpcbf: %s | standards: %s", phpcs, phpcbf, ", ".join(standards))
    return ToolchainConfig(
        phpcs_path=phpcs,
        phpcbf_path=phpcbf,
        standard=standard,
        standards=tuple(standards),
    )


# ===================================================================
# Installation
# ===================================================================
def install_toolchain(timeout: float = INSTALL_TIMEOUT) -> str:
    """
    Install phpcs, WPCS and PHPCompatibility globally via composer.

    Returns a human-readable confirmation; raises ToolchainError on failure.
    """
    composer = locate_executable(COMPOSER_BIN)
    if not composer:
        raise ToolchainError(
            "Composer not found.",
            "Please install Composer first: https://getcomposer.org",
        )

    logger.info("Configuring composer plugins...")
    try:
        run_command(
            [composer, "global", "config", f"allow-plugins.{COMPOSER_INSTALLER_PLUGIN}", "true"],
            timeout=timeout,
        )
    except InvocationError as exc:
        # Already configured on most machines; the require step decides.
        logger.warning("composer plugin config skipped: %s", exc.reason)

    logger.info("Installing %s ...", ", ".join(COMPOSER_PACKAGES))
    try:
        result = run_command([composer, "global", "require", *COMPOSER_PACKAGES], timeout=timeout)
    except InvocationError as exc:
        raise ToolchainError("Auto-install failed.", exc.describe()) from exc
    if result.exit_code != 0:
        raise ToolchainError(
            f"Auto-install failed (composer exit code {result.exit_code}).",
            result.stderr.strip()[:500],
        )
    return f"Installed {len(COMPOSER_PACKAGES)} composer package(s)."
