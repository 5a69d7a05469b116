"""
Service Layer - ScanService, ProgressReporter and output formatters.
"""

from srccat.services.formatters import render, render_to_string
from srccat.services.progress import ProgressReporter
from srccat.services.scan_service import ScanService, scan_directory, validate_scan_root

__all__ = [
    "ScanService",
    "scan_directory",
    "validate_scan_root",
    "ProgressReporter",
    "render",
    "render_to_string",
]
