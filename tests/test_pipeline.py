import json
import os
import sys
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from qlab_from_csv.config import ConversionConfig, load_config
from qlab_from_csv.issues import IssueAcceptor, IssueSeverity
from qlab_from_csv.models import GroupCue, LogScriptCue
from qlab_from_csv.pipeline import convert, convert_text, write_report
from qlab_from_csv.workbook import create_cue_sheet, load_cue_sheet, save_workbook, write_csv_sheet

DATA_DIR = Path(__file__).resolve().parent / "data"


class ConvertTest(unittest.TestCase):
    def test_simple_sheet(self) -> None:
        result = convert(DATA_DIR / "sample_cues.csv")

        self.assertTrue(result.is_valid)
        self.assertEqual(len(result.cues), 4)
        self.assertEqual(result.issues, ())
        self.assertEqual(len(result.csv_file.rows), 5)

    def test_log_file_adds_log_cues_to_groups_only(self) -> None:
        result = convert(DATA_DIR / "sample_cues.csv", ConversionConfig(log_file="log.csv"))

        logged = [cue for cue in result.cues if isinstance(cue, GroupCue)]
        self.assertEqual(len(logged), 2)
        for cue in logged:
            self.assertIsInstance(cue.children[-1], LogScriptCue)
            self.assertEqual(cue.children[-1].log_id, cue.cue_number)
        self.assertNotIsInstance(result.cues[0], GroupCue)

    def test_x32_sheet(self) -> None:
        result = convert(DATA_DIR / "x32_cues.csv", ConversionConfig(template="x32", patch=2))

        self.assertFalse(result.has_fatal_errors)
        self.assertEqual(len(result.cues), 3)
        self.assertEqual(result.csv_issues.issues, ())
        self.assertEqual(result.cue_issues.codes(), ["UNKNOWN_COLUMN_NAME"])
        self.assertEqual(result.cues[0].children[0].children[0].patch, 2)

    def test_csv_failure_stops_before_compiling(self) -> None:
        with TemporaryDirectory() as tmpdir:
            result = convert(Path(tmpdir) / "missing.csv")

        self.assertTrue(result.has_fatal_errors)
        self.assertEqual(result.csv_issues.codes(), ["FILE_NOT_READABLE"])
        self.assertEqual(len(result.cue_issues), 0)
        self.assertEqual(result.cues, [])
        self.assertFalse(result.is_valid)

    def test_missing_id_column_is_fatal(self) -> None:
        result = convert_text("LX,Sound\n1,2\n")

        self.assertTrue(result.has_fatal_errors)
        self.assertEqual(result.cue_issues.codes(), ["MISSING_HEADER_COLUMN"])
        self.assertEqual(result.cues, [])

    def test_x32_missing_id_column_reports_once(self) -> None:
        result = convert_text("Mute,DCA1\n1,Band 1\n", ConversionConfig(template="x32"))

        self.assertEqual(result.cue_issues.codes(), ["MISSING_HEADER_COLUMN"])
        self.assertEqual(result.cue_issues.count(IssueSeverity.FATAL), 1)

    def test_unknown_template_is_fatal(self) -> None:
        result = convert_text("QLab,LX\n1,2\n", ConversionConfig(template="nope"))
        self.assertEqual(result.cue_issues.codes(), ["UNKNOWN_TEMPLATE"])
        self.assertEqual(result.cues, [])

    def test_non_fatal_issues_do_not_block(self) -> None:
        result = convert_text("QLab,LX\n1,2 L9 P1 extra\n2,3,4\n")

        self.assertTrue(result.is_valid)
        self.assertEqual(result.csv_issues.codes(), ["INCONSISTENT_COLUMN_COUNT"])
        self.assertEqual(result.cue_issues.codes(), ["EXTRA_PARAMETERS"])
        self.assertEqual(len(result.cues), 2)

    def test_dca_zero_column_is_reported_and_report_still_written(self) -> None:
        result = convert_text("QLab,DCA0,DCA1\n1,Band 1+2,Vox 3\n", ConversionConfig(template="x32"))

        self.assertEqual(result.cue_issues.codes(), ["INVALID_DCA_COLUMN_NAME"])
        self.assertEqual(result.cues[0].description, "1<DCA1>")
        with TemporaryDirectory() as tmpdir:
            path = write_report(result, Path(tmpdir) / "report.json")
            report = json.loads(path.read_text("utf-8"))
        self.assertEqual(report["issues"][0]["cause"], "DCA0")

    def test_negative_pre_wait_is_a_fatal_issue(self) -> None:
        result = convert_text("QLab,Sound\n1,2\n", ConversionConfig(pre_wait=-1.0))

        self.assertEqual(result.cue_issues.codes(), ["INVALID_PRE_WAIT"])
        self.assertTrue(result.has_fatal_errors)
        self.assertEqual(result.cues, [])

    def test_conversion_is_deterministic(self) -> None:
        config = ConversionConfig(template="x32", patch=1, log_file="log.csv")
        first = convert(DATA_DIR / "x32_cues.csv", config)
        second = convert(DATA_DIR / "x32_cues.csv", config)
        self.assertEqual(first.cues, second.cues)

    def test_report_is_written(self) -> None:
        result = convert(DATA_DIR / "x32_cues.csv", ConversionConfig(template="x32"))
        with TemporaryDirectory() as tmpdir:
            path = write_report(result, Path(tmpdir) / "out" / "report.json", source="x32_cues.csv")
            report = json.loads(path.read_text("utf-8"))

        self.assertTrue(report["valid"])
        self.assertEqual(report["source"], "x32_cues.csv")
        self.assertEqual(len(report["cues"]), 3)
        self.assertEqual(report["cues"][0]["type"], "GroupCue")
        self.assertEqual(report["issues"][0]["code"], "UNKNOWN_COLUMN_NAME")
        self.assertEqual(report["summary"][0]["count"], 1)


class WorkbookTest(unittest.TestCase):
    def test_workbook_sheet_converts_like_csv(self) -> None:
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "cues.xlsx"
            workbook = create_cue_sheet(["QLab", "Page", "Comment", "LX", "Sound", "Video"])
            sheet = workbook.active
            sheet.append([1, 1, "Preset", 1, None, None])
            sheet.append([2, 1, "House out", "2 L1 P2", 1, None])
            save_workbook(workbook, path)

            result = convert(path)

        self.assertFalse(result.has_fatal_errors)
        self.assertEqual([cue.description for cue in result.cues], ["LX1", "2<LX2,S1>"])
        self.assertEqual([row.line for row in result.csv_file.rows], [2, 3])

    def test_missing_sheet_is_fatal(self) -> None:
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "cues.xlsx"
            save_workbook(create_cue_sheet(["QLab", "LX"]), path)
            issues = IssueAcceptor()
            csv_file = load_cue_sheet(path, issues, sheet="Other")

        self.assertIsNone(csv_file)
        self.assertEqual(issues.codes(), ["MISSING_SHEET"])

    def test_unreadable_workbook_is_fatal(self) -> None:
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "broken.xlsx"
            path.write_text("not a workbook", encoding="utf-8")
            issues = IssueAcceptor()
            csv_file = load_cue_sheet(path, issues)

        self.assertIsNone(csv_file)
        self.assertEqual(issues.codes(), ["FILE_NOT_READABLE"])

    def test_blank_csv_sheet_has_template_headers(self) -> None:
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "blank.csv"
            write_csv_sheet(["QLab", "Page", "Comment"], path)
            issues = IssueAcceptor()
            csv_file = load_cue_sheet(path, issues)

        self.assertEqual(csv_file.headers, ("QLab", "Page", "Comment"))
        self.assertEqual(csv_file.rows, ())


class ConfigTest(unittest.TestCase):
    def test_defaults_without_file(self) -> None:
        with TemporaryDirectory() as tmpdir, patch.dict(os.environ, {"XDG_CONFIG_HOME": tmpdir}, clear=False):
            for key in [key for key in os.environ if key.startswith("QLAB_CSV_")]:
                os.environ.pop(key)
            config = load_config()
        self.assertEqual(config, ConversionConfig())

    def test_file_then_environment(self) -> None:
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.toml"
            path.write_text('[conversion]\ntemplate = "x32"\npatch = 3\nlog_file = "show.csv"\n', encoding="utf-8")
            with patch.dict(os.environ, {"QLAB_CSV_PATCH": "4", "QLAB_CSV_PRE_WAIT": "bad"}, clear=False):
                config = load_config(path)

        self.assertEqual(config.template, "x32")
        self.assertEqual(config.log_file, "show.csv")
        self.assertEqual(config.patch, 4)
        self.assertIsNone(config.pre_wait)

    def test_negative_pre_wait_from_environment_is_ignored(self) -> None:
        with TemporaryDirectory() as tmpdir, patch.dict(
            os.environ, {"XDG_CONFIG_HOME": tmpdir, "QLAB_CSV_PRE_WAIT": "-1"}, clear=False
        ):
            with self.assertLogs("qlab_from_csv.config", level="WARNING"):
                config = load_config()
        self.assertIsNone(config.pre_wait)

        result = convert_text("QLab,Sound\n1,2\n", config)
        self.assertFalse(result.has_fatal_errors)
        self.assertEqual(result.cues[0].pre_wait, 0.0)

    def test_bad_file_key_keeps_the_other_keys(self) -> None:
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.toml"
            path.write_text(
                '[conversion]\npatch = "x"\nlog_file = "show.csv"\npre_wait = -2\nsheet = "CUES"\n', encoding="utf-8"
            )
            with patch.dict(os.environ, {}, clear=False):
                for key in [key for key in os.environ if key.startswith("QLAB_CSV_")]:
                    os.environ.pop(key)
                with self.assertLogs("qlab_from_csv.config", level="WARNING") as logs:
                    config = load_config(path)

        self.assertEqual(config.patch, 1)
        self.assertEqual(config.log_file, "show.csv")
        self.assertIsNone(config.pre_wait)
        self.assertEqual(config.sheet, "CUES")
        self.assertEqual(len(logs.records), 2)

    def test_merged_ignores_none(self) -> None:
        config = ConversionConfig(template="x32", patch=2).merged(template=None, patch=5, log_file="")
        self.assertEqual(config, ConversionConfig(template="x32", patch=5, log_file=""))


if __name__ == "__main__":
    unittest.main()
