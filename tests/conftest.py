"""
Shared test doubles
===================
Fake phpcs/phpcbf and git runners. They stand in for ``run_command`` so no
external executable is ever needed; files live under pytest's tmp_path.
"""
import json
from pathlib import Path

import pytest

from phpcs_gate.executor.command_runner import CommandResult
from phpcs_gate.services.toolchain import ToolchainConfig


def wire_message(text="Issue", category="ERROR", fixable=False, line=1, column=1,
                 source="WordPress.Test.Rule", severity=5):
    """One message in phpcs --report=json shape."""
    return {
        "message": text,
        "source": source,
        "severity": severity,
        "fixable": fixable,
        "type": category,
        "line": line,
        "column": column,
    }


def phpcs_json(files):
    """Full phpcs JSON report for {path: [wire messages]}."""
    out = {"files": {}}
    totals = {"errors": 0, "warnings": 0, "fixable": 0}
    for path, messages in files.items():
        errors = sum(1 for m in messages if m["type"] == "ERROR")
        warnings = sum(1 for m in messages if m["type"] == "WARNING")
        out["files"][path] = {"errors": errors, "warnings": warnings, "messages": messages}
        totals["errors"] += errors
        totals["warnings"] += warnings
        totals["fixable"] += sum(1 for m in messages if m["fixable"])
    out["totals"] = totals
    return json.dumps(out)


class FakePhpcs:
    """
    In-memory phpcs/phpcbf pair.

    ``findings`` maps a path to its current wire messages. phpcbf drops the
    fixable ones and appends a line to the real file, exactly like a fixer
    that rewrote it. ``fixer_exit`` forces a phpcbf exit code per path.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self.findings = {}
        self.fixer_exit = {}
        self.calls = []

    def add_file(self, path, messages=(), content="<?php\necho 'hi';\n"):
        full = self.root / path
        full.parent.mkdir(parents=True, exist_ok=True)
        full.write_text(content, encoding="utf-8")
        self.findings[path] = list(messages)

    def tool_calls(self, tool):
        return [c for c in self.calls if c[0] == tool]

    def __call__(self, argv, cwd=None, timeout=None):
        argv = list(argv)
        self.calls.append(argv)
        targets = [a for a in argv[1:] if not a.startswith("--")]
        if argv[0] == "phpcbf":
            return self._fix(argv, targets[0])
        return self._check(argv, targets)

    def _check(self, argv, targets):
        files = {t: self.findings[t] for t in targets if self.findings.get(t)}
        if not files:
            return CommandResult(argv=argv, exit_code=0, stdout=phpcs_json({}))
        return CommandResult(argv=argv, exit_code=2, stdout=phpcs_json(files))

    def _fix(self, argv, path):
        if path in self.fixer_exit:
            return CommandResult(argv=argv, exit_code=self.fixer_exit[path], stderr="phpcbf: cannot fix")
        messages = self.findings.get(path, [])
        remaining = [m for m in messages if not m["fixable"]]
        if len(remaining) == len(messages):
            return CommandResult(argv=argv, exit_code=0)
        self.findings[path] = remaining
        with open(self.root / path, "a", encoding="utf-8") as f:
            f.write("// fixed\n")
        return CommandResult(argv=argv, exit_code=1)


class FakeGit:
    """git runner: ``diff --cached`` answers from ``entries``; ``add`` is recorded."""

    def __init__(self, entries=(), diff_exit=0, add_exit=0):
        self.entries = list(entries)    # [(status, path, ...)]
        self.diff_exit = diff_exit
        self.add_exit = add_exit
        self.calls = []

    def __call__(self, argv, cwd=None, timeout=None):
        argv = list(argv)
        self.calls.append(argv)
        if argv[1] == "diff":
            out = "".join("\0".join(entry) + "\0" for entry in self.entries)
            stderr = "fatal: not a git repository" if self.diff_exit else ""
            return CommandResult(argv=argv, exit_code=self.diff_exit, stdout=out, stderr=stderr)
        if argv[1] == "add":
            stderr = "fatal: Unable to create index.lock" if self.add_exit else ""
            return CommandResult(argv=argv, exit_code=self.add_exit, stderr=stderr)
        raise AssertionError(f"unexpected git call {argv}")

    @property
    def add_calls(self):
        return [c for c in self.calls if c[1] == "add"]


@pytest.fixture
def toolchain():
    return ToolchainConfig(
        phpcs_path="phpcs",
        phpcbf_path="phpcbf",
        standard="WordPress",
        check_timeout=5,
        standards=("PEAR", "WordPress", "PHPCompatibilityWP"),
    )


@pytest.fixture
def fake_phpcs(tmp_path):
    return FakePhpcs(tmp_path)
