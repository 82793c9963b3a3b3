import io
import logging
import re
from datetime import date
from typing import List, Optional

from reportlab.lib.colors import Color, white
from reportlab.lib.pagesizes import A4, portrait
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

import config_master as config
from schemas import PatientData, TreatmentPlan

logger = logging.getLogger(__name__)

# Page geometry. Every cursor_y below is measured downwards from the top edge.
PAGE_WIDTH, PAGE_HEIGHT = portrait(A4)
MARGIN = 20 * mm
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN
HEADER_HEIGHT = 50 * mm
HEADER_CURSOR = 70 * mm
FOOTER_HEIGHT = 30 * mm
BOTTOM_LIMIT = PAGE_HEIGHT - 50 * mm
LINE_HEIGHT = 6 * mm
SECTION_MIN_SPACE = 60 * mm
BANNER_SPACE = 25 * mm
TEXT_INDENT = 10 * mm

BODY_FONT = 'Helvetica'
BOLD_FONT = 'Helvetica-Bold'
ITALIC_FONT = 'Helvetica-Oblique'
BODY_SIZE = 11


def _color(name: str) -> Color:
    r, g, b = config.PDF_COLORS[name]
    return Color(r / 255.0, g / 255.0, b / 255.0)


def _y(cursor_y: float) -> float:
    """Converts a top-down cursor into reportlab's bottom-up y coordinate."""
    return PAGE_HEIGHT - cursor_y


def pdf_filename(patient_name: str, on_date: Optional[date] = None) -> str:
    slug = re.sub(r"\s+", "-", patient_name).lower()
    if on_date is None:
        return f"treatment-plan-{slug}.pdf"
    return f"treatment-plan-{slug}-{on_date.isoformat()}.pdf"


def format_date(on_date: date) -> str:
    return on_date.strftime("%d %B %Y")


def wrap_text(text: str, width: float, font_name: str = BODY_FONT, font_size: float = BODY_SIZE) -> List[str]:
    """
    Wraps text to `width` points. Bullets are indented, blank lines are kept,
    and leading indentation carries over to continuation lines.
    """
    lines = []
    for raw in text.replace("•", "  •").split("\n"):
        stripped = raw.lstrip()
        if not stripped:
            lines.append("")
            continue
        indent = raw[:len(raw) - len(stripped)]
        indent_width = stringWidth(indent, font_name, font_size)
        if indent_width >= width / 2:
            indent, indent_width = "", 0
        available = width - indent_width
        for line in simpleSplit(stripped, font_name, font_size, available):
            for piece in _split_long_line(line, available, font_name, font_size):
                lines.append(indent + piece)
    return lines


def _split_long_line(line: str, width: float, font_name: str, font_size: float) -> List[str]:
    """simpleSplit only breaks at spaces; cut over-wide tokens (URLs, long names) by character."""
    if stringWidth(line, font_name, font_size) <= width:
        return [line]
    pieces = []
    current = ""
    for char in line:
        if current and stringWidth(current + char, font_name, font_size) > width:
            pieces.append(current)
            current = char.lstrip()
        else:
            current += char
    if current:
        pieces.append(current)
    return pieces


def block_height(lines: List[str]) -> float:
    return len(lines) * LINE_HEIGHT


def split_into_pages(lines: List[str]) -> List[List[str]]:
    """
    Cuts wrapped lines into chunks that each fit a fresh page, the first one
    leaving room for the section banner. Always returns at least one chunk.
    """
    first_capacity = max(1, int((BOTTOM_LIMIT - HEADER_CURSOR - BANNER_SPACE) // LINE_HEIGHT))
    page_capacity = max(1, int((BOTTOM_LIMIT - HEADER_CURSOR) // LINE_HEIGHT))
    chunks = [lines[:first_capacity]]
    for start in range(first_capacity, len(lines), page_capacity):
        chunks.append(lines[start:start + page_capacity])
    return chunks


#  Page furniture

def draw_header(c: canvas.Canvas) -> float:
    c.setFillColor(_color('primary'))
    c.rect(0, _y(HEADER_HEIGHT), PAGE_WIDTH, HEADER_HEIGHT, fill=1, stroke=0)

    c.setFillColor(white)
    c.setFont(BOLD_FONT, 24)
    c.drawCentredString(PAGE_WIDTH / 2, _y(25 * mm), config.PDF_TITLE)
    c.setFont(BODY_FONT, 12)
    c.drawCentredString(PAGE_WIDTH / 2, _y(35 * mm), config.PDF_SUBTITLE)
    return HEADER_CURSOR


def draw_footer(c: canvas.Canvas, generated_on: str) -> None:
    c.setFillColor(_color('light'))
    c.rect(0, 0, PAGE_WIDTH, FOOTER_HEIGHT, fill=1, stroke=0)

    c.setFillColor(_color('text'))
    c.setFont(ITALIC_FONT, 10)
    c.drawString(MARGIN, 15 * mm, f"Generated on: {generated_on}")
    c.drawRightString(PAGE_WIDTH - MARGIN, 15 * mm, f"Page {c.getPageNumber()}")


def check_page_break(c: canvas.Canvas, cursor_y: float, needed: float, generated_on: str) -> float:
    """Starts a new page when the next block would run past the printable area."""
    if cursor_y + needed <= BOTTOM_LIMIT:
        return cursor_y
    draw_footer(c, generated_on)
    c.showPage()
    return draw_header(c)


def draw_lines(c: canvas.Canvas, cursor_y: float, lines: List[str], x: float) -> float:
    c.setFillColor(_color('text'))
    c.setFont(BODY_FONT, BODY_SIZE)
    for i, line in enumerate(lines):
        if line:
            c.drawString(x, _y(cursor_y + i * LINE_HEIGHT), line)
    return cursor_y + block_height(lines)


#  Content blocks

def add_section(c: canvas.Canvas, cursor_y: float, title: str, content: str,
                color: Color, generated_on: str) -> float:
    lines = wrap_text(content, CONTENT_WIDTH - 2 * TEXT_INDENT)
    chunks = split_into_pages(lines)

    # The banner stays with the first chunk; both are measured before drawing
    needed = max(SECTION_MIN_SPACE, BANNER_SPACE + block_height(chunks[0]))
    cursor_y = check_page_break(c, cursor_y, needed, generated_on)

    c.setFillColor(color)
    c.rect(MARGIN, _y(cursor_y + 15 * mm), CONTENT_WIDTH, 20 * mm, fill=1, stroke=0)
    c.setFillColor(white)
    c.setFont(BOLD_FONT, 14)
    c.drawString(MARGIN + TEXT_INDENT, _y(cursor_y + 7 * mm), title)
    cursor_y += BANNER_SPACE

    cursor_y = draw_lines(c, cursor_y, chunks[0], MARGIN + TEXT_INDENT)
    for chunk in chunks[1:]:
        cursor_y = check_page_break(c, cursor_y, block_height(chunk), generated_on)
        cursor_y = draw_lines(c, cursor_y, chunk, MARGIN + TEXT_INDENT)

    return cursor_y + 15 * mm


def _draw_field(c: canvas.Canvas, x: float, cursor_y: float, label: str, value: str) -> None:
    c.setFont(BOLD_FONT, BODY_SIZE)
    c.drawString(x, _y(cursor_y), label)
    c.setFont(BODY_FONT, BODY_SIZE)
    c.drawString(x + stringWidth(label, BOLD_FONT, BODY_SIZE) + 2 * mm, _y(cursor_y), value)


def add_patient_info(c: canvas.Canvas, cursor_y: float, patient: PatientData,
                     doctor_name: Optional[str], generated_on: str) -> float:
    cursor_y = check_page_break(c, cursor_y, 120 * mm, generated_on)
    box_height = 100 * mm

    c.setFillColor(_color('light'))
    c.setStrokeColor(_color('primary'))
    c.setLineWidth(1)
    c.rect(MARGIN, _y(cursor_y + box_height), CONTENT_WIDTH, box_height, fill=1, stroke=1)

    c.setFillColor(_color('primary'))
    c.setFont(BOLD_FONT, 16)
    c.drawString(MARGIN + TEXT_INDENT, _y(cursor_y + 15 * mm), "PATIENT INFORMATION")

    c.setFillColor(_color('text'))
    left_column = MARGIN + TEXT_INDENT
    right_column = MARGIN + CONTENT_WIDTH / 2

    info_y = cursor_y + 30 * mm
    _draw_field(c, left_column, info_y, "Patient Name:", patient.patient_name)
    _draw_field(c, left_column, info_y + 12 * mm, "Age:", f"{patient.age} years")
    _draw_field(c, left_column, info_y + 24 * mm, "Gender:", patient.gender.value)

    right_y = info_y
    if doctor_name:
        _draw_field(c, right_column, right_y, "Treating Dentist:", doctor_name)
        right_y += 12 * mm
    _draw_field(c, right_column, right_y, "Date:", generated_on)

    symptoms = patient.symptoms.active_labels()
    symptoms_y = info_y + 40 * mm
    c.setFont(BOLD_FONT, BODY_SIZE)
    c.drawString(left_column, _y(symptoms_y), "Presenting Symptoms:")
    symptom_lines = wrap_text(", ".join(symptoms) if symptoms else "None reported",
                              CONTENT_WIDTH - 40 * mm)
    draw_lines(c, symptoms_y + 8 * mm, symptom_lines, left_column)

    return cursor_y + 115 * mm


def periodontal_findings_text(patient: PatientData) -> str:
    findings = patient.periodontal_findings
    return "\n\n".join([
        f"Probing Depths: {findings.probing_depths or 'N/A'}",
        f"Gingival Recession: {findings.gingival_recession or 'N/A'}",
        f"Tooth Mobility: {findings.mobility_grade or 'N/A'}",
        f"Radiographic Bone Loss: {findings.radiographic_bone_loss or 'N/A'}",
    ])


def add_clinical_findings(c: canvas.Canvas, cursor_y: float, patient: PatientData, generated_on: str) -> float:
    cursor_y = add_section(c, cursor_y, 'MEDICAL HISTORY', patient.medical_history or 'N/A',
                           _color('danger'), generated_on)
    cursor_y = add_section(c, cursor_y, 'DENTAL HISTORY', patient.dental_history or 'N/A',
                           _color('warning'), generated_on)
    return add_section(c, cursor_y, 'PERIODONTAL FINDINGS', periodontal_findings_text(patient),
                       _color('secondary'), generated_on)


def add_disclaimer(c: canvas.Canvas, cursor_y: float, generated_on: str) -> float:
    box_height = 35 * mm
    cursor_y = check_page_break(c, cursor_y, box_height + 10 * mm, generated_on)

    c.setFillColor(_color('notice'))
    c.setStrokeColor(_color('warning'))
    c.setLineWidth(2)
    c.rect(MARGIN, _y(cursor_y + box_height), CONTENT_WIDTH, box_height, fill=1, stroke=1)

    c.setFillColor(_color('text'))
    c.setFont(BOLD_FONT, 10)
    c.drawString(MARGIN + TEXT_INDENT, _y(cursor_y + 12 * mm), config.DISCLAIMER_TITLE)

    c.setFont(BODY_FONT, 10)
    lines = wrap_text(config.DISCLAIMER_TEXT, CONTENT_WIDTH - 2 * TEXT_INDENT, BODY_FONT, 10)
    for i, line in enumerate(lines):
        c.drawString(MARGIN + TEXT_INDENT, _y(cursor_y + 20 * mm + i * 4.5 * mm), line)
    return cursor_y + box_height


#  Document

def draw_treatment_plan(c: canvas.Canvas, patient: PatientData, plan: TreatmentPlan,
                        doctor_name: Optional[str] = None, on_date: Optional[date] = None) -> int:
    """
    Lays out the full report on `c` and returns the number of pages used.
    The canvas is left on the last page, footer drawn, ready to be saved.
    """
    generated_on = format_date(on_date or date.today())
    plan_json = plan.to_json()

    cursor_y = draw_header(c)
    cursor_y = add_patient_info(c, cursor_y, patient, doctor_name, generated_on)
    cursor_y = add_clinical_findings(c, cursor_y, patient, generated_on)

    for field, title, color_name in config.PLAN_SECTIONS:
        cursor_y = add_section(c, cursor_y, title, plan_json[field], _color(color_name), generated_on)

    add_disclaimer(c, cursor_y, generated_on)
    draw_footer(c, generated_on)
    return c.getPageNumber()


def build_treatment_plan_pdf(patient: PatientData, plan: TreatmentPlan,
                             doctor_name: Optional[str] = None, on_date: Optional[date] = None) -> bytes:
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=portrait(A4))
    c.setTitle(f"Periodontal Treatment Plan - {patient.patient_name}")
    c.setAuthor(doctor_name or config.PDF_SUBTITLE)

    pages = draw_treatment_plan(c, patient, plan, doctor_name=doctor_name, on_date=on_date)
    c.save()
    logger.info("Rendered treatment plan PDF for %s (%d pages)", patient.patient_name, pages)
    return buffer.getvalue()
