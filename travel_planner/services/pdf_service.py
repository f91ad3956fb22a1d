"""
PDF rendering for generated itineraries.

Layout is driven by an explicit cursor: every element measures itself, asks
for room with ``ensure_space`` and advances the cursor once drawn. Tables may
continue on the next page with their header repeated; tip bullets never split.
Page numbers need the final page count, so the footer is stamped by
``NumberedCanvas`` when the document is saved.
"""

import io
import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4, LETTER, landscape, portrait
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, Table, TableStyle

from travel_planner.config import settings
from travel_planner.exceptions import RenderError
from travel_planner.models.itinerary import (
    AccommodationOption,
    BudgetBreakdown,
    DayPlan,
    Itinerary,
    TransportOption,
)
from travel_planner.models.trip import TripMetadata, destination_problem

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


PAGE_SIZES = {"a4": A4, "letter": LETTER}

CURRENCY_SYMBOLS = {
    "INR": "Rs.",
    "USD": "$",
    "EUR": "EUR",
    "GBP": "GBP",
}

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"


def format_currency(amount: float, currency: str) -> str:
    """Format an amount as ``<symbol> 1,234,567`` without relying on locale settings"""
    symbol = CURRENCY_SYMBOLS.get(currency, currency)
    value = int(round(amount))
    digits = str(abs(value))

    parts = []
    for j, digit in enumerate(reversed(digits)):
        if j > 0 and j % 3 == 0:
            parts.append(",")
        parts.append(digit)
    grouped = "".join(reversed(parts))

    sign = "-" if value < 0 else ""
    return f"{symbol} {sign}{grouped}"


def suggested_filename(metadata: TripMetadata) -> str:
    destination = re.sub(r"\s+", "_", metadata.destination.strip())
    return f"{destination}_Itinerary_{metadata.generatedAt.date().isoformat()}.pdf"


def _clean(text) -> str:
    """Collapse whitespace and escape markup for Paragraph cells"""
    return escape(" ".join(str(text if text is not None else "").split()))


@dataclass
class Margins:
    top: float = 20 * mm
    right: float = 20 * mm
    bottom: float = 20 * mm
    left: float = 20 * mm


@dataclass
class PDFConfig:
    page_size: str = "a4"
    orientation: str = "portrait"
    margins: Margins = field(default_factory=Margins)

    title_size: int = 24
    heading_size: int = 16
    subheading_size: int = 14
    body_size: int = 10
    caption_size: int = 8

    primary: colors.Color = field(default_factory=lambda: colors.HexColor("#1e40af"))
    secondary: colors.Color = field(default_factory=lambda: colors.HexColor("#64748b"))
    accent: colors.Color = field(default_factory=lambda: colors.HexColor("#059669"))
    text: colors.Color = field(default_factory=lambda: colors.HexColor("#1f2937"))
    light_text: colors.Color = field(default_factory=lambda: colors.HexColor("#6b7280"))
    border: colors.Color = field(default_factory=lambda: colors.HexColor("#e5e7eb"))
    background: colors.Color = field(default_factory=lambda: colors.HexColor("#f8fafc"))

    app_name: str = "AI Travel Planner"
    logo_path: Optional[str] = None
    logo_size: float = 15 * mm
    compress: bool = True

    @classmethod
    def from_settings(cls) -> "PDFConfig":
        return cls(
            page_size=settings.pdf_page_size,
            orientation=settings.pdf_orientation,
            app_name=settings.app_name,
            logo_path=settings.pdf_logo_path,
        )

    @property
    def pagesize(self):
        size = PAGE_SIZES.get(self.page_size.lower(), A4)
        return landscape(size) if self.orientation == "landscape" else portrait(size)


@dataclass
class Cursor:
    """Vertical position measured from the top edge of the current page, in points"""
    y: float
    page: int = 1


class NumberedCanvas(canvas.Canvas):
    """Canvas that defers page output so every page can be stamped with the page total"""

    def __init__(self, *args, **kwargs):
        self._footer = kwargs.pop("footer")
        canvas.Canvas.__init__(self, *args, **kwargs)
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for page_number, state in enumerate(self._saved_page_states, start=1):
            self.__dict__.update(state)
            self._footer(self, page_number, total)
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)


class ItineraryLayout:
    """Draws one document. Created per render call, owns the cursor."""

    def __init__(self, pdf: canvas.Canvas, config: PDFConfig, metadata: TripMetadata, logo: Optional[ImageReader] = None):
        self.pdf = pdf
        self.config = config
        self.metadata = metadata
        self.logo = logo
        self.margins = config.margins
        self.page_width, self.page_height = config.pagesize
        self.content_width = self.page_width - self.margins.left - self.margins.right
        self.bottom_limit = self.page_height - self.margins.bottom
        self.cursor = Cursor(y=self.margins.top)

    # -------------------------
    # Cursor management
    # -------------------------
    def new_page(self):
        self.pdf.showPage()
        self.cursor.page += 1
        self.cursor.y = self.margins.top

    def ensure_space(self, required: float):
        if self.cursor.y + required > self.bottom_limit:
            self.new_page()

    def space(self, amount: float):
        self.cursor.y += amount

    def _baseline(self, y: float) -> float:
        return self.page_height - y

    def money(self, amount: float) -> str:
        return format_currency(amount, self.metadata.currency)

    # -------------------------
    # Primitives
    # -------------------------
    def text(self, value: str, x: float, y: float, font: str, size: float, color, align: str = "left"):
        self.pdf.setFont(font, size)
        self.pdf.setFillColor(color)
        if align == "right":
            self.pdf.drawRightString(x, self._baseline(y), value)
        else:
            self.pdf.drawString(x, self._baseline(y), value)

    def section_header(self, title: str) -> float:
        """Draw an underlined section title and return its baseline"""
        self.ensure_space(15 * mm)
        baseline = self.cursor.y
        self.text(title, self.margins.left, baseline, FONT_BOLD, self.config.heading_size, self.config.primary)

        title_width = self.pdf.stringWidth(title, FONT_BOLD, self.config.heading_size)
        self.pdf.setStrokeColor(self.config.primary)
        self.pdf.line(
            self.margins.left, self._baseline(baseline + 2 * mm),
            self.margins.left + title_width, self._baseline(baseline + 2 * mm)
        )
        self.cursor.y += 10 * mm
        return baseline

    def build_table(
        self,
        rows: Sequence[Sequence[str]],
        fractions: Sequence[float],
        header: Optional[Sequence[str]] = None,
        footer: Optional[Sequence[str]] = None,
        font_size: Optional[float] = None,
        header_color=None,
        right_columns: Sequence[int] = (),
        key_value: bool = False,
    ) -> Table:
        """Build a wrapped-cell table with column widths as fractions of the content width"""
        size = font_size or self.config.body_size
        leading = size * 1.2
        styles = {
            align: ParagraphStyle(
                f"cell-{align}", fontName=FONT, fontSize=size, leading=leading,
                textColor=self.config.text, alignment=align,
            )
            for align in (TA_LEFT, TA_RIGHT)
        }
        bold = ParagraphStyle("cell-bold", parent=styles[TA_LEFT], fontName=FONT_BOLD)
        head = ParagraphStyle("cell-head", parent=bold, textColor=colors.white)
        head_right = ParagraphStyle("cell-head-right", parent=head, alignment=TA_RIGHT)

        def cells(values, body_style_for):
            return [Paragraph(_clean(v), body_style_for(i)) for i, v in enumerate(values)]

        def body_style(i):
            if key_value and i == 0:
                return bold
            return styles[TA_RIGHT] if i in right_columns else styles[TA_LEFT]

        data = []
        if header:
            data.append(cells(header, lambda i: head_right if i in right_columns else head))
        data.extend(cells(row, body_style) for row in rows)
        if footer:
            foot = ParagraphStyle("cell-foot", parent=head, fontSize=self.config.subheading_size,
                                  leading=self.config.subheading_size * 1.2)
            foot_right = ParagraphStyle("cell-foot-right", parent=foot, alignment=TA_RIGHT)
            data.append(cells(footer, lambda i: foot_right if i > 0 else foot))

        table = Table(
            data,
            colWidths=[self.content_width * f for f in fractions],
            repeatRows=1 if header else 0,
        )

        commands = [
            ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ("GRID", (0, 0), (-1, -1), 0.25, self.config.border),
            ("TOPPADDING", (0, 0), (-1, -1), 1.5 * mm),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 1.5 * mm),
            ("LEFTPADDING", (0, 0), (-1, -1), 1.5 * mm),
            ("RIGHTPADDING", (0, 0), (-1, -1), 1.5 * mm),
        ]
        body_start = 1 if header else 0
        body_end = len(data) - (2 if footer else 1)
        if header:
            commands.append(("BACKGROUND", (0, 0), (-1, 0), header_color or self.config.secondary))
        if key_value:
            commands.append(("BACKGROUND", (0, 0), (0, -1), self.config.background))
        else:
            # zebra striping on body rows
            for row in range(body_start + 1, body_end + 1, 2):
                commands.append(("BACKGROUND", (0, row), (-1, row), self.config.background))
        if footer:
            commands.append(("BACKGROUND", (0, -1), (-1, -1), self.config.primary))
        table.setStyle(TableStyle(commands))
        return table

    def draw_table(self, table: Table):
        """Draw a table at the cursor, continuing it on new pages as needed"""
        while True:
            available = self.bottom_limit - self.cursor.y
            _, height = table.wrapOn(self.pdf, self.content_width, available)
            if height <= available:
                table.drawOn(self.pdf, self.margins.left, self._baseline(self.cursor.y + height))
                self.cursor.y += height
                return

            parts = table.split(self.content_width, available) if available > 0 else []
            if len(parts) < 2:
                if self.cursor.y <= self.margins.top:
                    # a single row taller than a page; nothing better is possible
                    table.drawOn(self.pdf, self.margins.left, self._baseline(self.cursor.y + height))
                    self.cursor.y += height
                    return
                self.new_page()
                continue

            first, table = parts[0], parts[1]
            _, first_height = first.wrapOn(self.pdf, self.content_width, available)
            first.drawOn(self.pdf, self.margins.left, self._baseline(self.cursor.y + first_height))
            self.new_page()

    # -------------------------
    # Sections
    # -------------------------
    def document_header(self):
        band = 30 * mm
        right = self.page_width - self.margins.right
        self.pdf.setFillColor(self.config.primary)
        self.pdf.rect(0, self.page_height - band, self.page_width, band, stroke=0, fill=1)

        self.text(self.config.app_name, self.margins.left, 15 * mm, FONT_BOLD, self.config.title_size, colors.white)
        tagline = f"Prepared for {self.metadata.ownerName}" if self.metadata.ownerName else "Your personalised travel plan"
        self.text(tagline, self.margins.left, 22 * mm, FONT, self.config.caption_size + 2, colors.white)

        self.text("Travel Itinerary", right, 15 * mm, FONT_BOLD, self.config.heading_size, colors.white, align="right")
        self.text(self.metadata.destination, right, 22 * mm, FONT, self.config.subheading_size, colors.white, align="right")

        if self.logo is not None:
            size = self.config.logo_size
            self.pdf.drawImage(
                self.logo, (self.page_width - size) / 2, self.page_height - (band + size) / 2,
                width=size, height=size, mask="auto", preserveAspectRatio=True,
            )

        self.cursor.y = band + 10 * mm

    def trip_overview(self, itinerary: Itinerary):
        meta = self.metadata
        baseline = self.section_header("Trip Overview")
        self.text(
            f"Generated: {meta.generatedAt.strftime('%d %b %Y')}",
            self.page_width - self.margins.right, baseline, FONT, self.config.body_size,
            self.config.light_text, align="right",
        )

        rows = [
            ["Destination", meta.destination],
            ["Duration", f"{meta.duration} {'Day' if meta.duration == 1 else 'Days'}"],
            ["Travelers", f"{meta.peopleCount} {'Person' if meta.peopleCount == 1 else 'People'}"],
            ["Total Budget", self.money(meta.budget)],
            ["Budget Per Person", self.money(meta.budget / meta.peopleCount)],
        ]
        if itinerary.bestTimeToVisit:
            rows.append(["Best Time to Visit", itinerary.bestTimeToVisit])
        if meta.ownerName:
            rows.append(["Prepared For", meta.ownerName])

        self.draw_table(self.build_table(rows, (0.3, 0.7), key_value=True))
        self.space(10 * mm)

    def daily_itinerary(self, days: List[DayPlan]):
        self.section_header("Daily Itinerary")

        for day in days:
            # keep the day title together with the start of its table
            self.ensure_space(30 * mm)
            self.text(f"Day {day.day}", self.margins.left, self.cursor.y, FONT_BOLD,
                      self.config.subheading_size, self.config.primary)
            self.space(3 * mm)

            if day.activities:
                rows = [
                    [a.time, a.name, a.description, self.money(a.cost)]
                    for a in day.activities
                ]
                self.draw_table(self.build_table(
                    rows, (0.15, 0.15, 0.55, 0.15),
                    header=["Time", "Activity", "Description", "Cost"],
                    right_columns=(3,),
                ))
                self.space(5 * mm)

            if day.meals:
                self.ensure_space(15 * mm)
                self.text("Meals", self.margins.left, self.cursor.y, FONT_BOLD,
                          self.config.caption_size + 1, self.config.text)
                self.space(2 * mm)
                rows = [
                    [m.type.capitalize(), m.suggestion, m.location or "Various", self.money(m.cost)]
                    for m in day.meals
                ]
                self.draw_table(self.build_table(
                    rows, (0.15, 0.50, 0.20, 0.15),
                    header=["Type", "Suggestion", "Location", "Cost"],
                    font_size=self.config.caption_size,
                    header_color=self.config.accent,
                    right_columns=(3,),
                ))
            self.space(10 * mm)

    def accommodation(self, options: List[AccommodationOption]):
        if not options:
            return
        self.section_header("Accommodations")
        rows = [
            [
                acc.name,
                acc.location,
                acc.description,
                f"{self.money(acc.pricePerNight)}/night",
                ", ".join(acc.amenities[:3]) if acc.amenities else "Standard",
            ]
            for acc in options
        ]
        self.draw_table(self.build_table(
            rows, (0.15, 0.15, 0.35, 0.15, 0.20),
            header=["Name", "Location", "Description", "Price/Night", "Key Amenities"],
            header_color=self.config.primary,
            right_columns=(3,),
        ))
        self.space(10 * mm)

    def transportation(self, options: List[TransportOption]):
        if not options:
            return
        self.section_header("Transportation")
        rows = [
            [t.type, t.description, self.money(t.cost), t.recommendedFor or "All travelers"]
            for t in options
        ]
        self.draw_table(self.build_table(
            rows, (0.15, 0.45, 0.15, 0.25),
            header=["Type", "Description", "Cost", "Recommended For"],
            header_color=self.config.primary,
            right_columns=(2,),
        ))
        self.space(10 * mm)

    def budget(self, breakdown: BudgetBreakdown):
        self.section_header("Budget Breakdown")
        rows = [
            ["Accommodation", self.money(breakdown.accommodation)],
            ["Food & Dining", self.money(breakdown.food)],
            ["Activities & Tours", self.money(breakdown.activities)],
            ["Transportation", self.money(breakdown.transportation)],
            ["Miscellaneous", self.money(breakdown.miscellaneous)],
        ]
        self.draw_table(self.build_table(
            rows, (0.70, 0.30),
            header=["Category", "Amount"],
            footer=["Total Budget", self.money(breakdown.total)],
            header_color=self.config.accent,
            right_columns=(1,),
        ))
        self.space(10 * mm)

    def tips(self, itinerary: Itinerary):
        if not itinerary.tips:
            return
        self.section_header("Local Tips & Insights")

        size = self.config.body_size
        line_height = 4 * mm
        bullet_x = self.margins.left + 2 * mm
        text_x = self.margins.left + 8 * mm
        max_width = self.content_width - 10 * mm

        for tip in itinerary.tips:
            lines = simpleSplit(" ".join(tip.split()), FONT, size, max_width) or [""]
            required = len(lines) * line_height + 3 * mm
            # a tip always moves to the next page whole
            self.ensure_space(required + 5 * mm)

            self.text("•", bullet_x, self.cursor.y, FONT, size, self.config.text)
            for i, line in enumerate(lines):
                self.text(line, text_x, self.cursor.y + i * line_height, FONT, size, self.config.text)
            self.cursor.y += required

        if itinerary.localCuisine:
            self.space(8 * mm)
            self.ensure_space(15 * mm)
            self.text("Local Cuisine to Try:", self.margins.left, self.cursor.y, FONT_BOLD,
                      self.config.subheading_size, self.config.primary)
            self.space(6 * mm)

            cuisine = " ".join(", ".join(itinerary.localCuisine).split())
            for line in simpleSplit(cuisine, FONT, size, self.content_width):
                self.ensure_space(line_height)
                self.text(line, self.margins.left, self.cursor.y, FONT, size, self.config.text)
                self.cursor.y += line_height

    def footer(self, pdf: canvas.Canvas, page_number: int, total_pages: int):
        """Stamp the rule, page count and attribution; run once per page at save time"""
        rule_y = self.margins.bottom - 5 * mm
        text_y = self.margins.bottom - 10 * mm
        right = self.page_width - self.margins.right

        pdf.saveState()
        pdf.setStrokeColor(self.config.border)
        pdf.line(self.margins.left, rule_y, right, rule_y)
        pdf.setFont(FONT, self.config.caption_size)
        pdf.setFillColor(self.config.light_text)
        pdf.drawRightString(right, text_y, f"Page {page_number} of {total_pages}")
        pdf.drawString(self.margins.left, text_y, f"Generated by {self.config.app_name}")
        pdf.restoreState()


class ItineraryPDFRenderer:
    """Renders a validated itinerary plus trip metadata into PDF bytes"""

    def __init__(self, config: Optional[PDFConfig] = None):
        self.config = config or PDFConfig.from_settings()

    def _load_logo(self) -> Optional[ImageReader]:
        if not self.config.logo_path:
            return None
        try:
            logo = ImageReader(self.config.logo_path)
            logo.getSize()
            return logo
        except Exception as e:
            logger.warning(f"Could not add logo to PDF: {e}")
            return None

    def render(self, itinerary: Itinerary, metadata: TripMetadata) -> bytes:
        """
        Lay out the itinerary and return the finished document.

        Raises:
            RenderError: invalid destination, or any failure during layout
        """
        problem = destination_problem(metadata.destination)
        if problem:
            logger.warning(f"Refusing to render PDF for destination '{metadata.destination}': {problem}")
            raise RenderError("Invalid destination provided. Cannot generate PDF for invalid locations.")

        try:
            buffer = io.BytesIO()
            logo = self._load_logo()
            layout = None

            def stamp_footer(pdf, page_number, total_pages):
                layout.footer(pdf, page_number, total_pages)

            pdf = NumberedCanvas(
                buffer,
                pagesize=self.config.pagesize,
                pageCompression=1 if self.config.compress else 0,
                invariant=1,
                footer=stamp_footer,
            )
            pdf.setTitle(f"Travel Itinerary - {metadata.destination}")
            pdf.setSubject(f"{metadata.duration} Day Travel Plan for {metadata.destination}")
            pdf.setAuthor(metadata.ownerName or self.config.app_name)
            pdf.setCreator(self.config.app_name)
            pdf.setKeywords(f"travel, itinerary, {metadata.destination}, vacation, planning")

            layout = ItineraryLayout(pdf, self.config, metadata, logo=logo)
            layout.document_header()
            layout.trip_overview(itinerary)
            layout.daily_itinerary(itinerary.days)
            layout.accommodation(itinerary.accommodation)
            layout.transportation(itinerary.transportation)
            layout.budget(itinerary.budgetBreakdown)
            layout.tips(itinerary)

            pdf.showPage()
            pdf.save()
            logger.info(f"Rendered PDF for {metadata.destination}: {layout.cursor.page} pages")
            return buffer.getvalue()

        except Exception as e:
            logger.error(f"Error generating PDF: {e}", exc_info=True)
            raise RenderError("Failed to generate PDF. Please try again.") from e


def get_pdf_renderer() -> ItineraryPDFRenderer:
    return ItineraryPDFRenderer()
