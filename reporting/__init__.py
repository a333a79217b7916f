"""
Reporting module for Parcel Scout.

Row parsers and exporters (CSV / JSON), the land shortlist PDF and the
command line.

Usage:
    from reporting import generate_report
    from core import TriageSession

    session = TriageSession("land")
    session.import_rows(read_rows("parcels.csv"))
    result = generate_report(session.ranked(tab="shortlist"), "reports/shortlist.pdf")
"""

from .exporters import (
    export_rows,
    parse_csv_text,
    parse_json_rows,
    read_rows,
    to_csv,
    to_json,
)
from .pdf_generator import (
    ReportNoRecords,
    ReportResult,
    ReportSuccess,
    ShortlistReportGenerator,
    generate_report,
)

__all__ = [
    # Parsing / export
    "export_rows",
    "parse_csv_text",
    "parse_json_rows",
    "read_rows",
    "to_csv",
    "to_json",
    # PDF
    "ReportNoRecords",
    "ReportResult",
    "ReportSuccess",
    "ShortlistReportGenerator",
    "generate_report",
]
