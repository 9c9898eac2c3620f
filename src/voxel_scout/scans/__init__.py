"""Scan digestion: classification, parsing, sources and caching."""

from .cache import ScanCache
from .classifier import classify_column, safe_prefix_length, summarize_steps
from .digest import digest, digest_records, digest_table, extract_latest_scan, parse_scan_header
from .sources import OutputLog, RecordScanSource, ScanSource, TextTableScanSource, strip_markup

__all__ = [
    "OutputLog",
    "RecordScanSource",
    "ScanCache",
    "ScanSource",
    "TextTableScanSource",
    "classify_column",
    "digest",
    "digest_records",
    "digest_table",
    "extract_latest_scan",
    "parse_scan_header",
    "safe_prefix_length",
    "strip_markup",
    "summarize_steps",
]
