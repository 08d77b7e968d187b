import logging
import os
import re
from datetime import date, datetime
from io import BytesIO
from typing import List, Optional

import requests
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas
from reportlab.platypus import Table, TableStyle

from app import config
from app.models import CourtSession, Lawyer

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 40
USABLE_WIDTH = PAGE_WIDTH - 2 * MARGIN
GREEN = colors.HexColor("#2e7d32")
GREY_TEXT = colors.HexColor("#374151")
ROW_BACKGROUND = colors.HexColor("#F5F7FA")

TABLE_HEADERS = ["النتيجة", "الإجراء", "الموكل", "رقم الملف"]
COLUMN_WIDTHS = [120, 120, 155, 120]
FOOTER_HEIGHT = 40

NOT_AVAILABLE = "غير متوفر"
UNKNOWN = "غير معروف"
UNSPECIFIED = "غير محدد"

ARABIC_PATTERN = re.compile(r"[\u0600-\u06FF]")

_registered_font: Optional[str] = None


def fix_arabic_label(label) -> str:
    """Reverse the word order of multi-word Arabic strings for left-to-right drawing."""
    if not label:
        return ""
    label = str(label)
    if ARABIC_PATTERN.search(label):
        words = label.strip().split()
        if len(words) > 1:
            return " ".join(reversed(words))
    return label


def format_date(value) -> str:
    if isinstance(value, (date, datetime)):
        return value.strftime("%d/%m/%Y")
    return str(value) if value else NOT_AVAILABLE


def report_font(font_path: str = None) -> str:
    global _registered_font
    if _registered_font:
        return _registered_font
    font_path = font_path or config.REPORT_FONT_PATH
    if font_path and os.path.exists(font_path):
        pdfmetrics.registerFont(TTFont("ReportFont", font_path))
        _registered_font = "ReportFont"
    else:
        logger.warning(f"Report font not found at {font_path}, falling back to Helvetica")
        _registered_font = "Helvetica"
    return _registered_font


def load_logo(lawyer: Lawyer) -> Optional[ImageReader]:
    if not lawyer or not lawyer.logo:
        return None
    try:
        if lawyer.logo.startswith(("http://", "https://")):
            response = requests.get(lawyer.logo, timeout=10)
            response.raise_for_status()
            return ImageReader(BytesIO(response.content))
        if lawyer.logo_public_id:
            return ImageReader(os.path.join(config.MEDIA_ROOT, lawyer.logo_public_id))
    except Exception as e:
        logger.warning(f"Failed to load logo for avocat {lawyer.id}: {e}")
    return None


class SessionReport:
    """Draws session reports for one lawyer onto an A4 canvas."""

    def __init__(self, lawyer: Lawyer):
        self.lawyer = lawyer
        self.font = report_font()
        self.logo = load_logo(lawyer)
        self.buffer = BytesIO()
        self.canvas = canvas.Canvas(self.buffer, pagesize=A4)

    # Coordinates below are measured from the top of the page.
    def _text(self, text, top, size, align="right", x=MARGIN, width=USABLE_WIDTH, color=colors.black):
        c = self.canvas
        c.setFont(self.font, size)
        c.setFillColor(color)
        baseline = PAGE_HEIGHT - top - size
        text = fix_arabic_label(text)
        if align == "right":
            c.drawRightString(x + width, baseline, text)
        elif align == "center":
            c.drawCentredString(x + width / 2, baseline, text)
        else:
            c.drawString(x, baseline, text)

    def _separator(self, top, line_width=1):
        c = self.canvas
        c.setStrokeColor(GREEN)
        c.setLineWidth(line_width)
        c.line(MARGIN, PAGE_HEIGHT - top, PAGE_WIDTH - MARGIN, PAGE_HEIGHT - top)

    def _header(self, height, logo_size, name_size, text_size, text_top):
        c = self.canvas
        c.setFillColor(GREEN)
        c.rect(MARGIN, PAGE_HEIGHT - MARGIN - height, USABLE_WIDTH, height, stroke=0, fill=1)

        if self.logo:
            try:
                c.drawImage(
                    self.logo,
                    MARGIN + 10,
                    PAGE_HEIGHT - MARGIN - (height - logo_size) / 2 - logo_size,
                    width=logo_size,
                    height=logo_size,
                    mask="auto",
                )
            except Exception as e:
                logger.warning(f"Failed to draw logo in report: {e}")

        lawyer = self.lawyer
        self._text(f"الأستاذ {lawyer.prenom or ''} {lawyer.nom or ''}", text_top, name_size, color=colors.white)
        self._text("محامي معتمد لدى المحاكم", text_top + name_size + 4, text_size, color=colors.white)
        self._text(
            f"البريد الإلكتروني: {lawyer.email or NOT_AVAILABLE}",
            text_top + name_size + text_size + 10,
            text_size,
            color=colors.white,
        )

    def _footer(self):
        c = self.canvas
        footer_top = PAGE_HEIGHT - MARGIN - FOOTER_HEIGHT
        c.setFillColor(GREEN)
        c.rect(MARGIN, MARGIN, USABLE_WIDTH, FOOTER_HEIGHT, stroke=0, fill=1)
        third = USABLE_WIDTH / 3
        self._text(
            f"تم إنشاء هذا التقرير بتاريخ: {format_date(datetime.now())}",
            footer_top + 8, 8, align="left", x=MARGIN, width=third, color=colors.white,
        )
        self._text(
            f"البريد الإلكتروني: {self.lawyer.email or NOT_AVAILABLE}",
            footer_top + 8, 8, align="center", x=MARGIN + third, width=third, color=colors.white,
        )
        self._text(
            "مكتب المحاماة - الدفاع عن حقوقكم",
            footer_top + 8, 8, align="right", x=MARGIN + 2 * third, width=third, color=colors.white,
        )

    def _details(self, session: CourtSession, top: float, indent: float = 0) -> float:
        details = [
            ("الموقع", session.emplacement or NOT_AVAILABLE),
            ("التاريخ", format_date(session.date)),
            ("الترتيب", str(session.ordre) if session.ordre is not None else NOT_AVAILABLE),
        ]
        for label, value in details:
            self._text(f"{label}: {value}", top, 10, x=MARGIN + indent, width=USABLE_WIDTH - indent, color=GREY_TEXT)
            top += 15
        return top

    def _table(self, session: CourtSession, top: float, placeholders=True) -> float:
        client_name = session.client.nom if session.client else None
        case_number = session.case.case_number if session.case else session.case_number
        row = [
            session.remarque or (NOT_AVAILABLE if placeholders else ""),
            session.gouvernance or (NOT_AVAILABLE if placeholders else ""),
            client_name or (UNKNOWN if placeholders else ""),
            case_number or (UNSPECIFIED if placeholders else ""),
        ]
        data = [
            [fix_arabic_label(header) for header in TABLE_HEADERS],
            [fix_arabic_label(cell) for cell in row],
        ]
        table = Table(data, colWidths=COLUMN_WIDTHS, rowHeights=[25, 50])
        table.setStyle(TableStyle([
            ("FONTNAME", (0, 0), (-1, -1), self.font),
            ("FONTSIZE", (0, 0), (-1, 0), 11),
            ("FONTSIZE", (0, 1), (-1, -1), 9),
            ("BACKGROUND", (0, 0), (-1, 0), GREEN),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("BACKGROUND", (0, 1), (-1, -1), ROW_BACKGROUND),
            ("ALIGN", (0, 0), (-1, -1), "RIGHT"),
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("BOX", (0, 0), (-1, -1), 1, GREEN),
        ]))
        _, height = table.wrapOn(self.canvas, USABLE_WIDTH, PAGE_HEIGHT)
        table.drawOn(self.canvas, MARGIN, PAGE_HEIGHT - top - height)
        return top + height

    def _finish(self) -> bytes:
        self.canvas.save()
        return self.buffer.getvalue()

    def render_session(self, session: CourtSession) -> bytes:
        self.canvas.setTitle(f"Session Report - {session.id}")
        self._header(height=60, logo_size=40, name_size=14, text_size=9, text_top=MARGIN + 10)

        title_top = MARGIN + 60 + 20
        self._text("تقرير الجلسة", title_top, 16, align="center", color=GREEN)

        ref_top = title_top + 25
        half = USABLE_WIDTH / 2
        self._text(f"المرجع: {session.id}", ref_top, 9, align="left", width=half)
        self._text(f"التاريخ: {format_date(session.date)}", ref_top, 9, x=MARGIN + half, width=half)

        separator_top = ref_top + 15
        self._separator(separator_top)

        top = self._details(session, separator_top + 20)
        self._table(session, top + 20)
        self._footer()
        return self._finish()

    def render_day(self, sessions: List[CourtSession], day: date) -> bytes:
        self.canvas.setTitle(f"Sessions Report - {day.isoformat()}")
        self._header(height=80, logo_size=50, name_size=16, text_size=10, text_top=MARGIN + 15)

        title_top = MARGIN + 80 + 20
        self._text(f"جلسات اليوم - {format_date(day)}", title_top, 18, align="center", color=GREEN)

        separator_top = title_top + 30
        self._separator(separator_top, line_width=2)

        top = separator_top + 20
        for index, session in enumerate(sessions):
            if top + 150 > PAGE_HEIGHT - MARGIN - 60:
                self._footer()
                self.canvas.showPage()
                top = MARGIN
            self._text(f"الجلسة {index + 1}", top, 14, color=GREEN)
            top += 20
            top = self._details(session, top, indent=20)
            top = self._table(session, top + 10, placeholders=False) + 20

        self._footer()
        return self._finish()


def render_session_pdf(session: CourtSession, lawyer: Lawyer) -> bytes:
    return SessionReport(lawyer).render_session(session)


def render_day_pdf(sessions: List[CourtSession], day: date, lawyer: Lawyer) -> bytes:
    return SessionReport(lawyer).render_day(sessions, day)
