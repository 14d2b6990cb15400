"""
Unit tests for verification report generation and formatting

Tests verify:
- Aggregate counts, row totals and overall status
- Discrepancy severity and recommendations
- Console, JSON and CSV output
"""

import csv
import json

import pytest

from reconciliation.compare import SchemaCheck, VerificationOutcome, compare_row_counts
from reconciliation.report import (
    DiscrepancyType,
    export_report_csv,
    export_report_json,
    format_report_console,
    generate_report,
    load_report_json,
)
from reconciliation.report.generator import _calculate_severity
from replication.errors import SchemaMismatchError, TableNotFoundError


@pytest.fixture
def mixed_outcomes():
    return [
        compare_row_counts("users", 100, 100),
        compare_row_counts("orders", 50, 45),
        VerificationOutcome(
            table="ghost",
            source_count=7,
            error=TableNotFoundError("Table ghost not found in destination database"),
        ),
    ]


class TestGenerateReport:
    """Test generate_report"""

    def test_all_matching(self):
        """Test a clean run passes"""
        report = generate_report([compare_row_counts("users", 3, 3)])

        assert report["status"] == "PASS"
        assert report["tables_matched"] == 1
        assert report["discrepancies"] == []
        assert report["recommendations"] == ["Destination is consistent with the source."]

    def test_no_data(self):
        """Test an empty verification"""
        report = generate_report([])

        assert report["status"] == "NO_DATA"
        assert report["total_tables"] == 0

    def test_mixed(self, mixed_outcomes):
        """Test matched, mismatched and errored tables are counted separately"""
        report = generate_report(mixed_outcomes)

        assert report["status"] == "FAIL"
        assert report["total_tables"] == 3
        assert report["tables_matched"] == 1
        assert report["tables_mismatched"] == 1
        assert report["tables_errored"] == 1

    def test_row_totals_skip_errors(self, mixed_outcomes):
        """Test row totals are summed over tables without errors"""
        report = generate_report(mixed_outcomes)

        assert report["source_total_rows"] == 150
        assert report["destination_total_rows"] == 145

    def test_discrepancies(self, mixed_outcomes):
        """Test one discrepancy per failing table"""
        report = generate_report(mixed_outcomes)
        by_table = {d["table"]: d for d in report["discrepancies"]}

        orders = by_table["orders"]
        assert orders["issue_type"] == DiscrepancyType.ROW_COUNT_MISMATCH
        assert orders["details"]["missing_rows"] == 5
        assert orders["details"]["extra_rows"] == 0
        assert orders["severity"] == "CRITICAL"

        assert by_table["ghost"]["issue_type"] == DiscrepancyType.VERIFICATION_ERROR

    def test_missing_tables_fail(self):
        """Test tables missing in the destination fail the report"""
        check = SchemaCheck(
            missing_in_destination=["audit"],
            source_tables=2,
            destination_tables=1,
            error=SchemaMismatchError(["audit"]),
        )

        report = generate_report([compare_row_counts("users", 1, 1)], check)

        assert report["status"] == "FAIL"
        assert report["missing_tables"] == ["audit"]
        assert any(d["issue_type"] == DiscrepancyType.MISSING_TABLE for d in report["discrepancies"])
        assert any("Apply the source schema" in r for r in report["recommendations"])

    def test_accepts_dicts(self, mixed_outcomes):
        """Test a saved report's table list regenerates the same counts"""
        first = generate_report(mixed_outcomes)
        second = generate_report(first["tables"])

        for key in ("status", "tables_matched", "tables_mismatched", "tables_errored",
                    "source_total_rows", "destination_total_rows"):
            assert first[key] == second[key]

    def test_extra_rows_recommendation(self):
        """Test extra destination rows suggest truncation"""
        report = generate_report([compare_row_counts("users", 10, 12)])
        assert any("2 extra rows" in r for r in report["recommendations"])


class TestSeverity:
    """Test _calculate_severity thresholds"""

    @pytest.mark.parametrize("source,diff,expected", [
        (0, 0, "LOW"),
        (0, 1, "CRITICAL"),
        (100000, 50, "LOW"),
        (1000, 5, "MEDIUM"),
        (100, 5, "HIGH"),
        (100, 10, "CRITICAL"),
    ])
    def test_thresholds(self, source, diff, expected):
        assert _calculate_severity(source, diff) == expected


class TestFormatters:
    """Test console and file output"""

    def test_console_lines(self, mixed_outcomes):
        """Test ✓/✗ lines and totals"""
        text = format_report_console(generate_report(mixed_outcomes))

        assert "✓ users - 100 rows" in text
        assert "✗ orders - MISMATCH (Source: 50, Destination: 45, Diff: 5)" in text
        assert "✗ ghost - ERROR: Table ghost not found in destination database" in text
        assert "Total Tables:    3" in text
        assert "Matched:         1" in text
        assert "Mismatched:      1" in text
        assert "Errors:          1" in text
        assert "Total Rows:      150 (Source) / 145 (Destination)" in text
        assert "RECOMMENDATIONS" in text

    def test_console_missing_tables(self):
        """Test missing tables are listed"""
        check = SchemaCheck(missing_in_destination=["audit"], error=SchemaMismatchError(["audit"]))
        text = format_report_console(generate_report([], check))

        assert "✗ audit - MISSING in destination database" in text

    def test_json_round_trip(self, tmp_path, mixed_outcomes):
        """Test a JSON export can be loaded back"""
        report = generate_report(mixed_outcomes)
        path = tmp_path / "report.json"

        export_report_json(report, str(path))

        assert load_report_json(str(path)) == json.loads(path.read_text(encoding="utf-8"))
        assert load_report_json(str(path))["status"] == "FAIL"

    def test_load_rejects_other_json(self, tmp_path):
        """Test a JSON file that is not a report is rejected"""
        path = tmp_path / "other.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")

        with pytest.raises(ValueError, match="not a verification report"):
            load_report_json(str(path))

    def test_csv_export(self, tmp_path, mixed_outcomes):
        """Test one CSV row per table"""
        path = tmp_path / "report.csv"

        export_report_csv(generate_report(mixed_outcomes), str(path))

        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))

        assert rows[0] == [
            "Table", "Status", "Source Count", "Destination Count", "Difference", "Error",
        ]
        assert rows[1] == ["users", "MATCH", "100", "100", "0", ""]
        assert rows[2] == ["orders", "MISMATCH", "50", "45", "5", ""]
        assert rows[3][:2] == ["ghost", "ERROR"]
        assert rows[3][3] == ""
