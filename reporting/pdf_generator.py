"""
Parcel Scout - Land Shortlist Report

Generates a landscape PDF table of ranked land parcels.
Uses ReportLab for deterministic PDF generation.

Output Structure:
1. Title line with record count and generation date
2. Ranked parcel table (one row per parcel, best first)
3. Footer on every page: wordmark left, page number right
"""

from dataclasses import dataclass
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import List, Optional, Sequence, Union

from reportlab.lib import colors
from reportlab.lib.enums import TA_LEFT
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from core.triage import RankedRecord
from utils.formatting import format_currency, format_number, format_score, water_label


# =============================================================================
# Report Generation Result Types
# =============================================================================

@dataclass
class ReportSuccess:
    """Returned when PDF generation succeeds."""
    path: Path
    records_included: int


@dataclass
class ReportNoRecords:
    """Returned when there is nothing to report."""
    message: str = "No parcels match the current filters."


# Type alias for generate_report return value
ReportResult = Union[ReportSuccess, ReportNoRecords]

REPORT_TITLE = "PARCEL SCOUT - Filtered Parcels"
WORDMARK = "PARCEL SCOUT"

TABLE_HEADERS = [
    "State", "County", "Town", "Parcel", "Acres", "Price", "$ / acre",
    "Water", "Tag", "LocScore", "Composite", "Valuation",
]


# =============================================================================
# Color Palette - print-friendly
# =============================================================================

class Palette:
    """Print-friendly palette: charcoal text, quiet accent."""
    CHARCOAL = colors.Color(0.2, 0.2, 0.22)
    SLATE = colors.Color(0.35, 0.38, 0.42)
    GRAY = colors.Color(0.5, 0.5, 0.5)
    LIGHT_GRAY = colors.Color(0.85, 0.85, 0.85)
    PALE_GRAY = colors.Color(0.95, 0.95, 0.95)
    WHITE = colors.white

    # Valuation hints
    SUCCESS = colors.Color(0.15, 0.4, 0.25)
    WARNING = colors.Color(0.5, 0.4, 0.15)
    DANGER = colors.Color(0.55, 0.15, 0.15)


BADGE_COLORS = {
    "undervalued": Palette.SUCCESS,
    "fair value": Palette.WARNING,
    "overpriced": Palette.DANGER,
}


# =============================================================================
# Style Configuration
# =============================================================================

def get_report_styles() -> dict:
    """Paragraph styles for the shortlist report."""
    styles = getSampleStyleSheet()

    styles.add(ParagraphStyle(
        name='ReportTitle',
        parent=styles['Normal'],
        fontSize=12,
        leading=16,
        textColor=Palette.CHARCOAL,
        alignment=TA_LEFT,
        fontName='Helvetica-Bold',
        spaceAfter=2*mm,
    ))

    styles.add(ParagraphStyle(
        name='ReportMeta',
        parent=styles['Normal'],
        fontSize=8,
        leading=11,
        textColor=Palette.SLATE,
        alignment=TA_LEFT,
        fontName='Helvetica',
    ))

    return styles


def table_row(ranked: RankedRecord) -> List[str]:
    """One table row of display strings for a ranked land record."""
    record = ranked.record
    scored = ranked.scored
    valuation = ranked.valuation

    return [
        record.get("State", ""),
        record.get("County", ""),
        record.get("Town", ""),
        record.get("Parcel", ""),
        format_number(record.get("Acres"), 2),
        format_currency(record.get("Price")),
        format_currency(scored.price_per_acre if scored else None),
        water_label(record.get("WaterProximity")),
        record.tag,
        format_score(scored.location_score if scored else None),
        format_score(scored.composite_score if scored else None),
        valuation.badge.value if valuation and valuation.badge else "",
    ]


class ShortlistReportGenerator:
    """
    Generates land shortlist PDFs.

    Usage:
        generator = ShortlistReportGenerator()
        result = generator.generate_report(session.ranked(tab="shortlist"))

    The same ranked input always produces the same table.
    """

    PAGE_WIDTH, PAGE_HEIGHT = landscape(A4)
    MARGIN_LEFT = 14*mm
    MARGIN_RIGHT = 14*mm
    MARGIN_TOP = 14*mm
    MARGIN_BOTTOM = 18*mm

    # Output directory
    OUTPUT_DIR = Path("reports")

    def __init__(self, output_dir: Optional[Union[str, Path]] = None):
        """Initialize the report generator with styles."""
        self.styles = get_report_styles()
        if output_dir is not None:
            self.OUTPUT_DIR = Path(output_dir)

    def generate_report(
        self,
        ranked: Sequence[RankedRecord],
        output_path: Optional[Union[str, Path]] = None,
    ) -> ReportResult:
        """
        Generate the shortlist PDF.

        Args:
            ranked: Ranked land records, best first
            output_path: Target file (default: OUTPUT_DIR/parcel_scout_filtered.pdf)

        Returns:
            ReportSuccess with path if PDF generated successfully
            ReportNoRecords if there is nothing to report
        """
        if not ranked:
            return ReportNoRecords()

        if output_path is None:
            output_path = self.OUTPUT_DIR / "parcel_scout_filtered.pdf"
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        output_path.write_bytes(self.generate_to_buffer(ranked))

        return ReportSuccess(path=output_path, records_included=len(ranked))

    def generate_to_buffer(self, ranked: Sequence[RankedRecord]) -> bytes:
        """Generate PDF and return as bytes (for testing or streaming)."""
        buffer = BytesIO()
        self._build_document(ranked, buffer)
        return buffer.getvalue()

    def _build_document(self, ranked: Sequence[RankedRecord], buffer: BytesIO):
        """Build the complete PDF document."""
        doc = SimpleDocTemplate(
            buffer,
            pagesize=landscape(A4),
            leftMargin=self.MARGIN_LEFT,
            rightMargin=self.MARGIN_RIGHT,
            topMargin=self.MARGIN_TOP,
            bottomMargin=self.MARGIN_BOTTOM,
            title=REPORT_TITLE,
            author="Parcel Scout",
            subject="Ranked land parcels",
        )

        story = [
            Paragraph(REPORT_TITLE, self.styles['ReportTitle']),
            Paragraph(
                f"{len(ranked)} parcels, ranked best first. "
                f"Generated {datetime.now().strftime('%d %B %Y')}.",
                self.styles['ReportMeta'],
            ),
            Spacer(1, 6*mm),
            self._build_table(ranked),
        ]

        doc.build(
            story,
            onFirstPage=self._draw_page_frame,
            onLaterPages=self._draw_page_frame,
        )

    def _build_table(self, ranked: Sequence[RankedRecord]) -> Table:
        rows = [TABLE_HEADERS] + [table_row(r) for r in ranked]

        col_widths = [
            12*mm, 26*mm, 30*mm, 26*mm, 16*mm, 24*mm, 22*mm,
            18*mm, 20*mm, 18*mm, 20*mm, 24*mm,
        ]
        table = Table(rows, colWidths=col_widths, repeatRows=1)

        style = [
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTNAME', (0, 1), (-1, -1), 'Helvetica'),
            ('FONTSIZE', (0, 0), (-1, -1), 8),
            ('BACKGROUND', (0, 0), (-1, 0), Palette.CHARCOAL),
            ('TEXTCOLOR', (0, 0), (-1, 0), Palette.WHITE),
            ('TEXTCOLOR', (0, 1), (-1, -1), Palette.CHARCOAL),
            ('ALIGN', (4, 0), (6, -1), 'RIGHT'),
            ('ALIGN', (9, 0), (10, -1), 'RIGHT'),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('GRID', (0, 0), (-1, -1), 0.5, Palette.LIGHT_GRAY),
            ('TOPPADDING', (0, 0), (-1, -1), 1.5*mm),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 1.5*mm),
            ('ROWBACKGROUNDS', (0, 1), (-1, -1), [Palette.WHITE, Palette.PALE_GRAY]),
        ]

        # Colour the valuation column by badge
        for row_index, item in enumerate(ranked, start=1):
            badge = item.valuation.badge.value if item.valuation and item.valuation.badge else None
            if badge in BADGE_COLORS:
                style.append(('TEXTCOLOR', (11, row_index), (11, row_index), BADGE_COLORS[badge]))

        table.setStyle(TableStyle(style))
        return table

    # =========================================================================
    # Page Drawing Functions
    # =========================================================================

    def _draw_page_frame(self, canvas_obj: canvas.Canvas, doc):
        """Draw footer - wordmark left, page number right."""
        canvas_obj.saveState()

        canvas_obj.setFont('Helvetica', 7)
        canvas_obj.setFillColor(Palette.GRAY)

        canvas_obj.drawString(
            self.MARGIN_LEFT,
            self.MARGIN_BOTTOM - 8*mm,
            WORDMARK
        )

        canvas_obj.drawRightString(
            self.PAGE_WIDTH - self.MARGIN_RIGHT,
            self.MARGIN_BOTTOM - 8*mm,
            f"{doc.page}"
        )

        canvas_obj.restoreState()


def generate_report(
    ranked: Sequence[RankedRecord],
    output_path: Optional[Union[str, Path]] = None,
) -> ReportResult:
    """
    Generate a land shortlist PDF.

    This is the primary entry point for report generation.

    Args:
        ranked: Ranked land records (TriageSession.ranked), best first
        output_path: Target file path

    Returns:
        ReportSuccess: If PDF generated successfully (contains path and count)
        ReportNoRecords: If there is nothing to report
    """
    generator = ShortlistReportGenerator()
    return generator.generate_report(ranked, output_path)
