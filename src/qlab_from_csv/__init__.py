"""Convert cue sheets into show-control cue trees."""

from .config import ConversionConfig
from .csvfile import CsvFile, CsvParser, parse_csv
from .issues import Issue, IssueAcceptor, IssueSeverity
from .pipeline import ConversionResult, convert, convert_text
from .rowparser import RowParser
from .template import CueTemplate
from .templates import build_simple_template, build_x32_template, select_template

__all__ = [
    "ConversionConfig",
    "ConversionResult",
    "CsvFile",
    "CsvParser",
    "CueTemplate",
    "Issue",
    "IssueAcceptor",
    "IssueSeverity",
    "RowParser",
    "build_simple_template",
    "build_x32_template",
    "convert",
    "convert_text",
    "parse_csv",
    "select_template",
]

__version__ = "0.1.0"
