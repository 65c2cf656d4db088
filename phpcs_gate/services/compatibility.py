"""
PHP Compatibility Service
=========================
Checks a file or directory against PHPCompatibilityWP for a target PHP
version range (phpcs ``testVersion`` syntax: "7.4-", "8.0", "7.4-8.2").

Runs through the same Analyzer.check() as every other check; only the
ruleset and the extra phpcs arguments differ.
"""
import logging
from typing import Optional

from pydantic import BaseModel, computed_field

from phpcs_gate.core.config import PHP_COMPAT_STANDARD, PHP_COMPAT_VERSION
from phpcs_gate.core.constants import COMPAT_IGNORE_PATTERNS
from phpcs_gate.core.errors import InputError
from phpcs_gate.models.violation import BatchReport
from phpcs_gate.services.analyzer import Analyzer

logger = logging.getLogger(__name__)


class CompatibilityResult(BaseModel):
    php_version: str
    report: BatchReport

    @computed_field
    @property
    def can_commit(self) -> bool:
        return self.report.can_commit


def check_php_compatibility(
    analyzer: Analyzer,
    target: str,
    php_version: Optional[str] = None,
    working_dir: Optional[str] = None,
    standard: str = PHP_COMPAT_STANDARD,
) -> CompatibilityResult:
    """
    Check ``target`` for PHP ``php_version`` compatibility.

    Raises InputError for an empty target and InvocationError when phpcs
    cannot produce a report.
    """
    if not target:
        raise InputError("target")

    version = php_version or PHP_COMPAT_VERSION
    extra_args = [
        "--runtime-set", "testVersion", version,
        f"--ignore={','.join(COMPAT_IGNORE_PATTERNS)}",
    ]
    report = analyzer.check([target], ruleset=standard, working_dir=working_dir, extra_args=extra_args)
    logger.info("PHP %s compatibility of %s: %d error(s)", version, target, report.total_errors)
    return CompatibilityResult(php_version=version, report=report)
