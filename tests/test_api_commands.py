"""
API Tests — /api/tools
======================
Envelope shape, 400 on missing input, invocation failures as is_error
responses. The orchestrator is wired to fake runners via dependency
overrides; the lifespan (real toolchain resolution) never runs.
"""
import pytest
from fastapi.testclient import TestClient

from conftest import FakeGit, wire_message
from main import app
from phpcs_gate.agents.fix_agent import FixAgent
from phpcs_gate.agents.git_agent import GitAgent
from phpcs_gate.agents.orchestrator import Orchestrator
from phpcs_gate.api.commands import get_orchestrator
from phpcs_gate.executor.command_runner import CommandResult
from phpcs_gate.services.analyzer import Analyzer

client = TestClient(app)


@pytest.fixture
def wire(toolchain):
    """Install an orchestrator built on the given runners; clean up after."""
    def _wire(phpcs, git=None):
        analyzer = Analyzer(toolchain, runner=phpcs)
        orchestrator = Orchestrator(
            analyzer,
            fix_agent=FixAgent(analyzer, runner=phpcs),
            git_agent=GitAgent(runner=git or FakeGit()),
        )
        app.dependency_overrides[get_orchestrator] = lambda: orchestrator
        return orchestrator

    yield _wire
    app.dependency_overrides.clear()


def _crash(argv, cwd=None, timeout=None):
    return CommandResult(argv=list(argv), exit_code=3, stderr="PHP Fatal error")


# ===================================================================
# Basics
# ===================================================================
class TestBasics:

    def test_health(self):
        assert client.get("/health").json() == {"status": "ok"}

    def test_catalogue(self):
        tools = client.get("/api/tools").json()["tools"]
        names = [t["name"] for t in tools]
        assert names == ["check-staged", "check-file", "check-directory", "fix-file", "pre-commit", "php-compatibility"]
        fix_file = tools[names.index("fix-file")]
        assert fix_file["path"] == "/api/tools/fix-file"
        assert fix_file["input_schema"]["required"] == ["file_path"]
        assert "file_path" in fix_file["input_schema"]["properties"]

    def test_uninitialised_toolchain(self):
        app.dependency_overrides.clear()
        response = client.post("/api/tools/check-staged", json={})
        assert response.status_code == 503


# ===================================================================
# Check routes
# ===================================================================
class TestCheckRoutes:

    def test_check_file_clean(self, wire, fake_phpcs, tmp_path):
        fake_phpcs.add_file("a.php")
        wire(fake_phpcs)
        response = client.post("/api/tools/check-file", json={"file_path": "a.php", "working_dir": str(tmp_path)})

        assert response.status_code == 200
        body = response.json()
        assert body["is_error"] is False
        assert body["text"] == "No coding standard violations found."
        assert body["result"]["can_commit"] is True

    def test_check_file_errors_flagged(self, wire, fake_phpcs, tmp_path):
        fake_phpcs.add_file("a.php", [wire_message("Bad", fixable=True)])
        wire(fake_phpcs)
        body = client.post("/api/tools/check-file", json={"file_path": "a.php"}).json()

        assert body["is_error"] is True
        assert body["result"]["total_errors"] == 1
        assert "Tip: Run fix-file" in body["text"]

    def test_missing_file_path_is_400(self, wire, fake_phpcs):
        wire(fake_phpcs)
        response = client.post("/api/tools/check-file", json={})
        assert response.status_code == 400
        assert response.json()["detail"] == "Error: file_path is required"
        assert fake_phpcs.calls == []

    def test_missing_directory_is_400(self, wire, fake_phpcs):
        wire(fake_phpcs)
        response = client.post("/api/tools/check-directory", json={"directory": ""})
        assert response.json()["detail"] == "Error: directory is required"

    def test_crash_is_error_without_result(self, wire):
        wire(_crash)
        response = client.post("/api/tools/check-file", json={"file_path": "a.php"})

        assert response.status_code == 200
        body = response.json()
        assert body["is_error"] is True
        assert body["result"] is None
        assert "PHP Fatal error" in body["text"]

    def test_check_staged_nothing_staged(self, wire, fake_phpcs):
        wire(fake_phpcs, FakeGit())
        body = client.post("/api/tools/check-staged", json={}).json()
        assert body["is_error"] is False
        assert body["text"] == "No PHP files to check."


# ===================================================================
# Fix / pre-commit / compatibility
# ===================================================================
class TestWorkflowRoutes:

    def test_fix_file(self, wire, fake_phpcs, tmp_path):
        fake_phpcs.add_file("a.php", [wire_message(fixable=True)])
        wire(fake_phpcs)
        body = client.post("/api/tools/fix-file", json={"file_path": "a.php", "working_dir": str(tmp_path)}).json()

        assert body["is_error"] is False
        assert body["result"]["changed"] is True
        assert body["text"].startswith("Fixed a.php")

    def test_pre_commit_defaults_to_auto_stage(self, wire, fake_phpcs, tmp_path):
        fake_phpcs.add_file("a.php", [wire_message(fixable=True)])
        git = FakeGit([("M", "a.php")])
        wire(fake_phpcs, git)
        body = client.post("/api/tools/pre-commit", json={"working_dir": str(tmp_path)}).json()

        assert body["is_error"] is False
        assert body["result"]["fixed_paths"] == ["a.php"]
        assert body["result"]["restaged"] is True
        assert git.add_calls == [["git", "add", "--", "a.php"]]
        assert "PRE-COMMIT: PASSED" in body["text"]

    def test_pre_commit_blocked(self, wire, fake_phpcs, tmp_path):
        fake_phpcs.add_file("c.php", [wire_message("Unfixable")])
        wire(fake_phpcs, FakeGit([("M", "c.php")]))
        body = client.post(
            "/api/tools/pre-commit", json={"working_dir": str(tmp_path), "auto_stage": False},
        ).json()

        assert body["is_error"] is True
        assert body["result"]["can_commit"] is False
        assert body["result"]["restage_instruction"] is None

    def test_php_compatibility(self, wire):
        seen = []

        def runner(argv, cwd=None, timeout=None):
            seen.append(list(argv))
            return CommandResult(argv=list(argv), exit_code=0)

        wire(runner)
        body = client.post("/api/tools/php-compatibility", json={"target": "src", "php_version": "8.1-"}).json()

        assert body["is_error"] is False
        assert body["result"]["php_version"] == "8.1-"
        assert body["text"].startswith("PHP COMPATIBILITY: PASSED")
        assert "--runtime-set" in seen[0]
        assert "8.1-" in seen[0]

    def test_php_compatibility_requires_target(self, wire, fake_phpcs):
        wire(fake_phpcs)
        response = client.post("/api/tools/php-compatibility", json={})
        assert response.status_code == 400
        assert response.json()["detail"] == "Error: target is required"
