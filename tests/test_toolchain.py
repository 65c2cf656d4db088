"""
Unit Tests — Toolchain
======================
Executable discovery, `phpcs -i` parsing, startup resolution and the
composer install fallback. Nothing real is executed.
"""
from unittest.mock import patch

import pytest

from phpcs_gate.core.errors import InvocationError, ToolchainError
from phpcs_gate.executor.command_runner import CommandResult
from phpcs_gate.services import toolchain as tc
from phpcs_gate.services.toolchain import (
    ToolchainConfig,
    locate_executable,
    parse_standards,
    resolve_toolchain,
)

_STANDARDS_OUT = "The installed coding standards are MySource, PEAR, PSR12, WordPress and PHPCompatibilityWP\n"


class TestParseStandards:

    def test_comma_and_and(self):
        assert parse_standards(_STANDARDS_OUT) == ["MySource", "PEAR", "PSR12", "WordPress", "PHPCompatibilityWP"]

    def test_single_standard(self):
        assert parse_standards("The installed coding standards are PEAR") == ["PEAR"]

    def test_unrecognised_output(self):
        assert parse_standards("phpcs: command not found") == []


class TestLocateExecutable:

    def test_explicit_path(self, tmp_path):
        exe = tmp_path / "phpcs"
        exe.write_text("#!/bin/sh\n")
        exe.chmod(0o755)
        assert locate_executable(str(exe)) == str(exe)
        assert locate_executable(str(tmp_path / "missing")) is None

    def test_falls_back_to_extra_dir(self, tmp_path):
        exe = tmp_path / "phpcbf"
        exe.write_text("#!/bin/sh\n")
        exe.chmod(0o755)
        with patch("shutil.which", side_effect=lambda name, path=None: str(exe) if path else None):
            assert locate_executable("phpcbf", extra_dir=str(tmp_path)) == str(exe)

    def test_not_found(self, tmp_path):
        with patch("shutil.which", return_value=None):
            assert locate_executable("phpcs", extra_dir=str(tmp_path)) is None


class TestResolveToolchain:

    def _locate(self, name, extra_dir=None):
        return f"/usr/local/bin/{name}"

    def test_resolves(self):
        with patch.object(tc, "locate_executable", side_effect=self._locate), \
             patch.object(tc, "run_command", return_value=CommandResult(["phpcs", "-i"], 0, _STANDARDS_OUT)):
            config = resolve_toolchain(standard="WordPress", auto_install=False)

        assert config.phpcs_path == "/usr/local/bin/phpcs"
        assert config.phpcbf_path == "/usr/local/bin/phpcbf"
        assert config.standard == "WordPress"
        assert "PSR12" in config.standards

    def test_missing_phpcs(self):
        with patch.object(tc, "locate_executable", return_value=None):
            with pytest.raises(ToolchainError) as exc_info:
                resolve_toolchain(auto_install=False)
        assert "composer global require" in str(exc_info.value)

    def test_missing_standard(self):
        with patch.object(tc, "locate_executable", side_effect=self._locate), \
             patch.object(tc, "run_command", return_value=CommandResult(["phpcs", "-i"], 0, "The installed coding standards are PEAR")):
            with pytest.raises(ToolchainError) as exc_info:
                resolve_toolchain(standard="WordPress", auto_install=False)
        assert "'WordPress' not found" in str(exc_info.value)

    def test_auto_install_then_resolve(self):
        attempts = iter([ToolchainError("phpcs not found"), ToolchainConfig("phpcs", "phpcbf")])

        def fake_resolve(standard):
            value = next(attempts)
            if isinstance(value, Exception):
                raise value
            return value

        with patch.object(tc, "_resolve", side_effect=fake_resolve), \
             patch.object(tc, "install_toolchain", return_value="Installed") as install:
            config = resolve_toolchain(auto_install=True)

        install.assert_called_once()
        assert config.phpcs_path == "phpcs"


class TestInstallToolchain:

    def test_no_composer(self):
        with patch.object(tc, "locate_executable", return_value=None):
            with pytest.raises(ToolchainError) as exc_info:
                tc.install_toolchain()
        assert "Composer not found" in str(exc_info.value)

    def test_runs_composer_require(self):
        calls = []

        def runner(argv, cwd=None, timeout=None):
            calls.append(argv)
            return CommandResult(list(argv), 0)

        with patch.object(tc, "locate_executable", return_value="/usr/bin/composer"), \
             patch.object(tc, "run_command", side_effect=runner):
            tc.install_toolchain(timeout=9)

        assert calls[0][:3] == ["/usr/bin/composer", "global", "config"]
        assert calls[1][:3] == ["/usr/bin/composer", "global", "require"]
        assert "wp-coding-standards/wpcs" in calls[1]

    def test_require_failure(self):
        def runner(argv, cwd=None, timeout=None):
            if "require" in argv:
                raise InvocationError("composer timed out after 9s", command=list(argv))
            return CommandResult(list(argv), 0)

        with patch.object(tc, "locate_executable", return_value="/usr/bin/composer"), \
             patch.object(tc, "run_command", side_effect=runner):
            with pytest.raises(ToolchainError):
                tc.install_toolchain(timeout=9)
