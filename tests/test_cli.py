import csv
import json
import unittest
from pathlib import Path

import click
from click.testing import CliRunner

from loan_finance.main import cli, parse_amount


class TestParseAmount(unittest.TestCase):
    def test_plain_and_currency_strings(self):
        self.assertEqual(parse_amount("500000"), 500000)
        self.assertEqual(parse_amount("₹5,00,000"), 500000)

    def test_suffixes(self):
        self.assertEqual(parse_amount("25k"), 25000)
        self.assertEqual(parse_amount("5.5L"), 550000)
        self.assertEqual(parse_amount("3 lakh"), 300000)
        self.assertEqual(parse_amount("2Cr"), 20000000)

    def test_rejects_text(self):
        with self.assertRaises(click.BadParameter):
            parse_amount("lots")


class TestCommands(unittest.TestCase):
    def setUp(self):
        self.runner = CliRunner()

    def test_emi(self):
        result = self.runner.invoke(cli, ["emi", "-p", "5L", "-r", "10.5", "-t", "60"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("₹10,747", result.output)
        self.assertIn("Reducing", result.output)

    def test_flat_emi(self):
        result = self.runner.invoke(cli, ["emi", "-p", "100000", "-r", "10", "-t", "12", "--type", "flat"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("₹9,167", result.output)

    def test_invalid_principal(self):
        result = self.runner.invoke(cli, ["emi", "-p", "lots", "-r", "10", "-t", "12"])
        self.assertNotEqual(result.exit_code, 0)

    def test_schedule_csv_export(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(
                cli, ["schedule", "-p", "100000", "-r", "12", "-t", "12", "-s", "2024-01-31", "--output", "plan.csv"]
            )
            self.assertEqual(result.exit_code, 0, result.output)
            with open("plan.csv", newline="", encoding="utf-8") as f:
                rows = list(csv.reader(f))
        self.assertEqual(len(rows), 13)
        self.assertEqual(rows[1][1], "2024-01-31")
        self.assertEqual(rows[2][1], "2024-02-29")
        self.assertEqual(rows[-1][5], "0")

    def test_schedule_json_export(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(
                cli, ["schedule", "-p", "₹1,20,000", "-r", "0", "-t", "12", "-s", "2024-01-05", "--output", "plan.json"]
            )
            self.assertEqual(result.exit_code, 0, result.output)
            data = json.loads(Path("plan.json").read_text(encoding="utf-8"))
        self.assertEqual(data["summary"]["emi"], 10000)
        self.assertEqual(len(data["schedule"]), 12)
        self.assertEqual(data["schedule"][0]["due_date"], "2024-01-05")

    def test_schedule_rejects_unknown_format(self):
        with self.runner.isolated_filesystem():
            result = self.runner.invoke(cli, ["schedule", "-p", "100000", "-r", "12", "-t", "12", "--output", "plan.txt"])
        self.assertNotEqual(result.exit_code, 0)

    def test_schedule_rejects_bad_date(self):
        result = self.runner.invoke(cli, ["schedule", "-p", "100000", "-r", "12", "-t", "12", "-s", "hello world"])
        self.assertNotEqual(result.exit_code, 0)

    def test_printed_schedule(self):
        result = self.runner.invoke(cli, ["schedule", "-p", "100000", "-r", "12", "-t", "12", "-s", "2024-01-05"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("05 Jan 2024", result.output)
        self.assertIn("05 Dec 2024", result.output)

    def test_outstanding_after_tenure(self):
        result = self.runner.invoke(cli, ["outstanding", "-p", "100000", "-r", "12", "-t", "12", "-s", "2000-01-01"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Outstanding        : ₹0", result.output)
        self.assertIn("Progress           : 100%", result.output)

    def test_yearly(self):
        result = self.runner.invoke(cli, ["yearly", "-p", "100000", "-r", "12", "-t", "24"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("100.00%", result.output)

    def test_breakup(self):
        result = self.runner.invoke(
            cli, ["breakup", "--net", "100000", "--credit-assured", "10000", "--approved", "500000"]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("₹1,10,000", result.output)

    def test_breakup_fallback(self):
        result = self.runner.invoke(cli, ["breakup", "--approved", "5L"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Total loan amount", result.output)
        self.assertIn("₹5,00,000", result.output)


if __name__ == "__main__":
    unittest.main()
