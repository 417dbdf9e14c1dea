from .report import Metadata, Report, build_report
from .text import format_text
from .json_report import format_json, report_filename, save_json

__all__ = ["Metadata", "Report", "build_report", "format_text", "format_json", "report_filename", "save_json"]
