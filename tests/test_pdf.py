"""
Tests for the utils_pdf module

Run: pytest tests/test_pdf.py -v
"""

import io
from datetime import date

from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

import utils_pdf
from schemas import TreatmentPlan


class RecordingCanvas(canvas.Canvas):
    """Canvas that records every string drawn with the page it landed on."""

    def __init__(self, *args, **kwargs):
        self.events = []
        self._drawing = False
        super().__init__(*args, **kwargs)

    def _record(self, draw, x, y, text, *args, **kwargs):
        if not self._drawing:
            self.events.append((self.getPageNumber(), y, text))
        nested, self._drawing = self._drawing, True
        try:
            return draw(x, y, text, *args, **kwargs)
        finally:
            self._drawing = nested

    def drawString(self, x, y, text, *args, **kwargs):
        return self._record(super().drawString, x, y, text, *args, **kwargs)

    def drawRightString(self, x, y, text, *args, **kwargs):
        return self._record(super().drawRightString, x, y, text, *args, **kwargs)

    def drawCentredString(self, x, y, text, *args, **kwargs):
        return self._record(super().drawCentredString, x, y, text, *args, **kwargs)

    def showPage(self):
        self.events.append((self.getPageNumber(), None, "<page break>"))
        return super().showPage()


def new_canvas():
    return RecordingCanvas(io.BytesIO(), pagesize=(utils_pdf.PAGE_WIDTH, utils_pdf.PAGE_HEIGHT))


def long_text(count):
    return "\n".join(f"{i + 1}. Scaling and root planing, quadrant visit {i + 1}" for i in range(count))


def test_pdf_filename():
    assert utils_pdf.pdf_filename("Jane  Mary Doe") == "treatment-plan-jane-mary-doe.pdf"
    assert utils_pdf.pdf_filename("Jane Doe", date(2026, 10, 17)) == \
        "treatment-plan-jane-doe-2026-10-17.pdf"


def test_wrap_text_indents_bullets_and_keeps_blank_lines():
    lines = utils_pdf.wrap_text("• First\n\n• Second", 400)

    assert lines == ["  • First", "", "  • Second"]


def test_wrap_text_wraps_long_lines_with_hanging_indent():
    text = "  " + " ".join(["periodontal"] * 40)

    lines = utils_pdf.wrap_text(text, 200)

    assert len(lines) > 1
    assert all(line.startswith("  ") for line in lines)


def test_wrap_text_breaks_unspaced_tokens():
    width = utils_pdf.CONTENT_WIDTH - 2 * utils_pdf.TEXT_INDENT
    text = "See https://example.org/" + "a" * 300 + "\n• " + "-" * 200

    lines = utils_pdf.wrap_text(text, width)

    assert len(lines) > 3
    assert all(
        stringWidth(line, utils_pdf.BODY_FONT, utils_pdf.BODY_SIZE) <= width for line in lines
    )
    assert "a" * 300 in "".join(line.strip() for line in lines)
    assert lines[-1].startswith("  ")


def test_section_taller_than_first_chunk_starts_on_fresh_page():
    c = new_canvas()
    # Half the first page is still free, but the banner keeps a full page of text with it
    cursor = (utils_pdf.HEADER_CURSOR + utils_pdf.BOTTOM_LIMIT) / 2

    utils_pdf.add_section(c, cursor, "PHASE I", long_text(40), utils_pdf._color("success"), "today")

    banner_page = next(page for page, _, text in c.events if text == "PHASE I")
    assert banner_page == 2


def test_split_into_pages_respects_capacities():
    chunks = utils_pdf.split_into_pages(["line"] * 100)

    assert sum(len(chunk) for chunk in chunks) == 100
    assert len(chunks[0]) < len(chunks[1])
    assert utils_pdf.split_into_pages([]) == [[]]


def test_check_page_break_keeps_cursor_when_block_fits():
    c = new_canvas()

    assert utils_pdf.check_page_break(c, 100, 20, "today") == 100
    assert c.getPageNumber() == 1


def test_check_page_break_starts_new_page():
    c = new_canvas()
    cursor = utils_pdf.BOTTOM_LIMIT - 10

    cursor = utils_pdf.check_page_break(c, cursor, 20, "today")

    assert cursor == utils_pdf.HEADER_CURSOR
    assert c.getPageNumber() == 2
    footer = [text for page, _, text in c.events if text.startswith("Page ")]
    assert footer == ["Page 1"]


def test_section_moves_to_next_page_before_drawing():
    c = new_canvas()
    content = long_text(12)
    cursor = utils_pdf.BOTTOM_LIMIT - utils_pdf.SECTION_MIN_SPACE - 1

    utils_pdf.add_section(c, cursor, "PHASE I", content, utils_pdf._color("success"), "today")

    drawn = [(page, text) for page, _, text in c.events if "quadrant visit" in text]
    assert len(drawn) == 12
    assert {page for page, _ in drawn} == {2}
    banner_page = next(page for page, _, text in c.events if text == "PHASE I")
    assert banner_page == 2


def test_oversized_section_is_chunked_across_pages():
    c = new_canvas()

    cursor = utils_pdf.add_section(
        c, utils_pdf.HEADER_CURSOR, "PHASE I", long_text(70), utils_pdf._color("success"), "today"
    )

    drawn = [(page, y) for page, y, text in c.events if "quadrant visit" in text]
    assert len(drawn) == 70
    assert c.getPageNumber() >= 3
    # Nothing is drawn below the printable area
    assert all(y >= utils_pdf.PAGE_HEIGHT - utils_pdf.BOTTOM_LIMIT for _, y in drawn)
    assert cursor <= utils_pdf.BOTTOM_LIMIT + 15 * utils_pdf.mm


def test_short_plan_fits_in_few_pages(patient, plan_payload):
    c = new_canvas()
    plan = TreatmentPlan.model_validate(plan_payload)

    pages = utils_pdf.draw_treatment_plan(c, patient, plan, doctor_name="Dr. Smith", on_date=date(2026, 10, 17))

    texts = [text for _, _, text in c.events]
    assert pages >= 1
    assert "PATIENT INFORMATION" in texts
    assert "Jane Doe" in texts
    assert "Dr. Smith" in texts
    assert "Bleeding Gums, Halitosis, Pain" in texts
    for _, title, _ in utils_pdf.config.PLAN_SECTIONS:
        assert title in texts
    assert texts.count("Generated on: 17 October 2026") == pages


def test_long_plan_spans_multiple_pages(patient, plan_payload):
    plan = TreatmentPlan.model_validate({**plan_payload, "phaseI": long_text(40), "maintenance": long_text(30)})
    c = new_canvas()

    pages = utils_pdf.draw_treatment_plan(c, patient, plan, on_date=date(2026, 10, 17))

    assert pages > 1
    footers = [(page, text) for page, _, text in c.events if text.startswith("Page ")]
    assert footers == [(n, f"Page {n}") for n in range(1, pages + 1)]


def test_build_treatment_plan_pdf_returns_pdf_bytes(patient, plan_payload):
    plan = TreatmentPlan.model_validate(plan_payload)

    data = utils_pdf.build_treatment_plan_pdf(patient, plan)

    assert data.startswith(b"%PDF")
    assert len(data) > 1000
