from __future__ import annotations

import io
from typing import List

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from climate_ops.models import SituationReport

MARGIN = 40
LINE_HEIGHT = 13
BODY_FONT = ("Helvetica", 9)
HEADING_FONT = ("Helvetica-Bold", 11)


class _PageWriter:
    """Tracks the cursor on a canvas and starts a new page when it runs out of room."""

    def __init__(self, pdf: canvas.Canvas, width: float, height: float) -> None:
        self.pdf = pdf
        self.width = width
        self.height = height
        self.y = height - MARGIN

    def ensure(self, needed: float) -> None:
        if self.y - needed < MARGIN:
            self.pdf.showPage()
            self.y = self.height - MARGIN

    def heading(self, text: str) -> None:
        self.ensure(LINE_HEIGHT * 3)
        self.y -= 6
        self.pdf.setStrokeColor(colors.darkblue)
        self.pdf.line(MARGIN, self.y, self.width - MARGIN, self.y)
        self.y -= LINE_HEIGHT + 2
        self.pdf.setFont(*HEADING_FONT)
        self.pdf.drawString(MARGIN, self.y, text)
        self.y -= LINE_HEIGHT

    def paragraph(self, text: str, indent: float = 0) -> None:
        lines = simpleSplit(text, BODY_FONT[0], BODY_FONT[1], self.width - 2 * MARGIN - indent)
        for line in lines or [""]:
            self.ensure(LINE_HEIGHT)
            self.pdf.setFont(*BODY_FONT)
            self.pdf.drawString(MARGIN + indent, self.y, line)
            self.y -= LINE_HEIGHT

    def bullets(self, items: List[str]) -> None:
        for item in items:
            self.paragraph(f"- {item}", indent=10)


def render_situation_report_pdf(report: SituationReport) -> bytes:
    buff = io.BytesIO()
    pdf = canvas.Canvas(buff, pagesize=letter)
    pdf.setTitle(report.title)
    width, height = letter
    page = _PageWriter(pdf, width, height)

    pdf.setFont("Helvetica-Bold", 14)
    pdf.drawString(MARGIN, page.y, report.title)
    page.y -= 18
    pdf.setFont("Helvetica", 10)
    pdf.drawString(MARGIN, page.y, f"Report {report.id} | Mode: {report.mode} | Created: {report.created_at.isoformat()}")
    page.y -= 12

    page.heading("Executive summary")
    page.paragraph(report.executive_summary)

    page.heading("Situation overview")
    page.paragraph(f"Started: {report.start_time.isoformat()}")
    page.paragraph(f"Current status: {report.current_status}")
    page.paragraph(f"Affected areas: {', '.join(report.affected_areas) or 'none'}")
    page.paragraph(f"Estimated damage: {report.estimated_damage}")

    page.heading("Response status")
    for resource in report.deployed_resources:
        page.paragraph(
            f"{resource.type}: {resource.deployed} deployed, {resource.available} available, "
            f"{resource.maintenance} in maintenance (total {resource.total})",
            indent=10,
        )
    page.paragraph("Completed actions:")
    page.bullets(report.completed_actions)
    page.paragraph("Ongoing actions:")
    page.bullets(report.ongoing_actions)
    page.paragraph("Planned actions:")
    page.bullets(report.planned_actions)

    page.heading("Damage assessment")
    page.paragraph(
        f"Casualties: {report.casualties} | Displaced: {report.displaced} | Property damage: {report.property_damage}"
    )

    page.heading("Recommendations")
    page.bullets(report.recommendations)

    pdf.save()
    buff.seek(0)
    return buff.read()
