"""
Unit Tests — Report Parser
==========================
phpcs JSON → BatchReport. Malformed output must raise, never turn into
an empty (passing) report.
"""
import json

import pytest

from conftest import phpcs_json, wire_message
from phpcs_gate.core.errors import InvocationError, ReportParseError
from phpcs_gate.models.violation import Category
from phpcs_gate.parser.report_parser import parse_report


class TestParseReport:

    def test_parses_messages_and_counts(self):
        raw = phpcs_json({
            "/repo/a.php": [
                wire_message("Missing doc comment", "ERROR", fixable=False, line=3, column=1,
                             source="Squiz.Commenting.FunctionComment.Missing"),
                wire_message("Tabs must be used", "WARNING", fixable=True, line=7, column=5),
            ],
        })
        report = parse_report(raw, 1)

        assert report.total_errors == 1
        assert report.total_warnings == 1
        assert report.total_fixable == 1
        file_report = report.files[0]
        assert file_report.path == "/repo/a.php"
        first = file_report.messages[0]
        assert first.text == "Missing doc comment"
        assert first.source_rule == "Squiz.Commenting.FunctionComment.Missing"
        assert first.category is Category.ERROR
        assert (first.line, first.column) == (3, 1)

    def test_file_and_message_order_preserved(self):
        raw = phpcs_json({
            "z.php": [wire_message(line=9), wire_message(line=1)],
            "a.php": [wire_message(line=4)],
        })
        report = parse_report(raw, 2)
        assert [f.path for f in report.files] == ["z.php", "a.php"]
        assert [m.line for m in report.files[0].messages] == [9, 1]

    def test_files_without_messages_are_omitted(self):
        raw = phpcs_json({"clean.php": [], "dirty.php": [wire_message()]})
        report = parse_report(raw, 2)
        assert [f.path for f in report.files] == ["dirty.php"]

    def test_counts_recomputed_from_messages(self):
        data = json.loads(phpcs_json({"a.php": [wire_message(), wire_message()]}))
        data["files"]["a.php"]["errors"] = 99
        data["totals"]["errors"] = 99
        report = parse_report(json.dumps(data), 1)
        assert report.total_errors == 2

    def test_leading_php_notices_are_skipped(self):
        raw = "PHP Deprecated: something in foo.php\n" + phpcs_json({"a.php": [wire_message()]})
        assert parse_report(raw, 1).total_errors == 1

    def test_notice_with_braces_is_skipped(self):
        raw = (
            "PHP Deprecated:  Something in {closure}() on line 3\n"
            + phpcs_json({"a.php": [wire_message()]})
            + "\nPHP Notice:  trailing {closure} noise\n"
        )
        report = parse_report(raw, 1)
        assert report.total_errors == 1
        assert [f.path for f in report.files] == ["a.php"]

    def test_truncated_report_raises(self):
        raw = "PHP Warning: in {closure}\n" + phpcs_json({"a.php": [wire_message()]})[:-20]
        with pytest.raises(ReportParseError):
            parse_report(raw, 1)

    def test_non_json_raises(self):
        with pytest.raises(ReportParseError) as exc_info:
            parse_report("ERROR: the \"Foo\" coding standard is not installed.", 1, command=["phpcs", "a.php"])
        assert exc_info.value.command == ["phpcs", "a.php"]
        assert isinstance(exc_info.value, InvocationError)

    def test_wrong_shape_raises(self):
        with pytest.raises(ReportParseError):
            parse_report('{"files": {"a.php": {"messages": [{"line": 1}]}}}', 1)

    def test_unknown_category_raises(self):
        raw = phpcs_json({"a.php": [wire_message(category="NOTICE")]})
        with pytest.raises(ReportParseError):
            parse_report(raw, 1)

    def test_empty_output_raises(self):
        with pytest.raises(ReportParseError):
            parse_report("", 1)
