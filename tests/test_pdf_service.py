import re
from datetime import datetime

import pytest
from reportlab.lib.units import mm
from unittest.mock import patch

from tests.mock_llm_service import sample_itinerary
from travel_planner.exceptions import RenderError
from travel_planner.models.itinerary import Itinerary
from travel_planner.models.trip import TripMetadata
from travel_planner.services.pdf_service import (
    ItineraryLayout,
    ItineraryPDFRenderer,
    PDFConfig,
    format_currency,
    suggested_filename,
)


PAGE_STAMP = re.compile(rb"Page (\d+) of (\d+)")


def metadata(**overrides) -> TripMetadata:
    fields = {
        "destination": "Paris",
        "duration": 3,
        "peopleCount": 2,
        "budget": 60000,
        "currency": "INR",
        "generatedAt": datetime(2024, 4, 15, 10, 30),
    }
    fields.update(overrides)
    return TripMetadata(**fields)


def renderer(**overrides) -> ItineraryPDFRenderer:
    # uncompressed streams keep the drawn text searchable
    return ItineraryPDFRenderer(PDFConfig(compress=False, **overrides))


def long_itinerary(days=40, activities=10) -> Itinerary:
    data = sample_itinerary(days=days)
    for day in data["days"]:
        day["activities"] = [
            {
                "name": f"Stop {n}",
                "description": "A long description of the stop that wraps over several lines in the table " * 2,
                "time": "Afternoon",
                "cost": 1000 + n,
                "location": "Old town",
            }
            for n in range(activities)
        ]
    return Itinerary.model_validate(data)


def page_stamps(pdf: bytes):
    return [(int(n), int(total)) for n, total in PAGE_STAMP.findall(pdf)]


class TestFormatCurrency:
    @pytest.mark.parametrize("amount,currency,expected", [
        (0, "INR", "Rs. 0"),
        (999, "USD", "$ 999"),
        (1000, "USD", "$ 1,000"),
        (1234567, "INR", "Rs. 1,234,567"),
        (12345.6, "EUR", "EUR 12,346"),
        (-1234, "GBP", "GBP -1,234"),
        (-123, "USD", "$ -123"),
        (5000, "JPY", "JPY 5,000"),
    ])
    def test_formatting(self, amount, currency, expected):
        assert format_currency(amount, currency) == expected


def test_suggested_filename():
    assert suggested_filename(metadata(destination="New  York City")) == "New_York_City_Itinerary_2024-04-15.pdf"


def test_renders_pdf_document():
    itinerary = Itinerary.model_validate(sample_itinerary(days=3))
    pdf = renderer().render(itinerary, metadata())

    assert pdf.startswith(b"%PDF-")
    assert b"Trip Overview" in pdf
    assert b"Budget Breakdown" in pdf
    assert b"Generated by AI Travel Planner" in pdf
    assert page_stamps(pdf)[0] == (1, len(page_stamps(pdf)))


def test_numeric_destination_rejected_before_layout():
    itinerary = Itinerary.model_validate(sample_itinerary(days=1))
    with patch.object(ItineraryLayout, "document_header") as header:
        with pytest.raises(RenderError):
            renderer().render(itinerary, metadata(destination="42"))
    header.assert_not_called()


@pytest.mark.parametrize("destination", ["x", "test", "N/A"])
def test_other_invalid_destinations_rejected(destination):
    itinerary = Itinerary.model_validate(sample_itinerary(days=1))
    with pytest.raises(RenderError):
        renderer().render(itinerary, metadata(destination=destination))


def test_long_itinerary_pages_numbered_contiguously():
    pdf = renderer().render(long_itinerary(), metadata(duration=40))

    stamps = page_stamps(pdf)
    total = len(stamps)
    assert total > 1
    assert [n for n, _ in stamps] == list(range(1, total + 1))
    assert all(t == total for _, t in stamps)
    assert pdf.count(b"Generated by AI Travel Planner") == total


def test_rendering_is_deterministic():
    itinerary = long_itinerary(days=5, activities=4)
    first = renderer().render(itinerary, metadata(duration=5))
    second = renderer().render(itinerary, metadata(duration=5))

    assert page_stamps(first) == page_stamps(second)
    assert first == second


def test_tips_never_split_across_pages():
    data = sample_itinerary(days=2)
    data["tips"] = [f"Tip number {i}: " + "keep small change for tips and tolls " * 6 for i in range(60)]
    itinerary = Itinerary.model_validate(data)

    # pages each tip's bullet and text lines were drawn on
    tip_pages = []
    original_text = ItineraryLayout.text

    def record(layout, value, x, y, *args, **kwargs):
        if value == "•":
            tip_pages.append({layout.cursor.page})
        elif tip_pages and x == layout.margins.left + 8 * mm:
            tip_pages[-1].add(layout.cursor.page)
            assert y <= layout.bottom_limit
        return original_text(layout, value, x, y, *args, **kwargs)

    with patch.object(ItineraryLayout, "text", autospec=True, side_effect=record):
        pdf = renderer().render(itinerary, metadata(duration=2))

    assert len(tip_pages) == 60
    assert all(len(pages) == 1 for pages in tip_pages)
    assert len(set.union(*tip_pages)) > 1
    assert len(page_stamps(pdf)) > 1


def test_missing_logo_is_skipped(tmp_path):
    itinerary = Itinerary.model_validate(sample_itinerary(days=1))
    pdf = renderer(logo_path=str(tmp_path / "missing.png")).render(itinerary, metadata(duration=1))
    assert pdf.startswith(b"%PDF-")


def test_layout_fault_becomes_render_error():
    itinerary = Itinerary.model_validate(sample_itinerary(days=1))
    with patch.object(ItineraryLayout, "budget", side_effect=ValueError("boom")):
        with pytest.raises(RenderError, match="Failed to generate PDF"):
            renderer().render(itinerary, metadata(duration=1))
