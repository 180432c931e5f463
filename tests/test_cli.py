import json
import os
import sys
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from openpyxl import load_workbook
from typer.testing import CliRunner

from qlab_from_csv.cli import app

DATA_DIR = Path(__file__).resolve().parent / "data"


class CliTest(unittest.TestCase):
    def setUp(self) -> None:
        self.runner = CliRunner()
        self._tmp = TemporaryDirectory()
        self.tmpdir = Path(self._tmp.name)
        env = {key: value for key, value in os.environ.items() if not key.startswith("QLAB_CSV_")}
        env["XDG_CONFIG_HOME"] = str(self.tmpdir)
        self._env = patch.dict(os.environ, env, clear=True)
        self._env.start()

    def tearDown(self) -> None:
        self._env.stop()
        self._tmp.cleanup()

    def test_convert_prints_cue_tree(self) -> None:
        result = self.runner.invoke(app, ["convert", str(DATA_DIR / "sample_cues.csv")])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("2 House out (pg1) (LX2,S1)", result.output)
        self.assertIn("  LX 2 (list 1) (patch 2)", result.output)
        self.assertIn("4 cues; issues: 0 INFO", result.output)

    def test_convert_with_log_file_and_report(self) -> None:
        report = self.tmpdir / "report.json"
        result = self.runner.invoke(
            app,
            ["convert", str(DATA_DIR / "x32_cues.csv"), "-t", "x32", "--log-file", "show.log", "--report", str(report)],
        )

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Log 10", result.output)
        data = json.loads(report.read_text("utf-8"))
        self.assertEqual(data["cues"][0]["children"][-1]["type"], "LogScriptCue")

    def test_config_file_supplies_template(self) -> None:
        config_dir = self.tmpdir / "qlab-from-csv"
        config_dir.mkdir()
        (config_dir / "config.toml").write_text('[conversion]\ntemplate = "x32"\n', encoding="utf-8")

        result = self.runner.invoke(app, ["convert", str(DATA_DIR / "x32_cues.csv")])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("DCA1 => Enable as \"Band\"", result.output)

    def test_fatal_issue_exits_non_zero(self) -> None:
        sheet = self.tmpdir / "bad.csv"
        sheet.write_text("LX,Sound\n1,2\n", encoding="utf-8")

        result = self.runner.invoke(app, ["convert", str(sheet)])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("MISSING_HEADER_COLUMN", result.output)

    def test_check_summarises_issues(self) -> None:
        result = self.runner.invoke(app, ["check", str(DATA_DIR / "x32_cues.csv"), "--template", "x32"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("UNKNOWN_COLUMN_NAME x1 (lines 1)", result.output)

    def test_make_sheet_workbook(self) -> None:
        out = self.tmpdir / "blank.xlsx"
        result = self.runner.invoke(app, ["make-sheet", "--out", str(out), "-t", "x32", "--dcas", "2"])

        self.assertEqual(result.exit_code, 0, result.output)
        wb = load_workbook(out)
        headers = [cell.value for cell in wb.active[1]]
        wb.close()
        self.assertEqual(headers, ["QLab", "Page", "Comment", "Mute", "DCA1", "DCA2"])

    def test_make_sheet_csv_for_simple_template(self) -> None:
        out = self.tmpdir / "blank.csv"
        result = self.runner.invoke(app, ["make-sheet", "--out", str(out)])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(out.read_text("utf-8").strip(), "QLab,Page,Comment,LX,Sound,Video")

    def test_make_sheet_unknown_template(self) -> None:
        result = self.runner.invoke(app, ["make-sheet", "--out", str(self.tmpdir / "x.csv"), "-t", "eos"])
        self.assertEqual(result.exit_code, 1)

    def test_templates_lists_names(self) -> None:
        result = self.runner.invoke(app, ["templates", "--dcas", "1"])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("simple: QLab, Page, Comment, LX, Sound, Video", result.output)
        self.assertIn("x32: QLab, Page, Comment, Mute, DCA1", result.output)


if __name__ == "__main__":
    unittest.main()
