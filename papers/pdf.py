# src/papers/pdf.py
"""PDF rendering for papers and MCQ answer keys, built page by page with PyMuPDF."""
import logging
from datetime import date
from typing import List, Optional, Sequence, Tuple

import fitz  # PyMuPDF

from config import settings

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = fitz.paper_size("a4")
MARGIN = 40
LINE_GAP = 4
WATERMARK_TEXT = "Examly.pk - Free Trial"

SECTION_TITLES = {
    "mcq": "Objective: Multiple Choice Questions",
    "short": "Short Questions",
    "long": "Long Questions",
    "translate_urdu": "Translate into Urdu",
    "translate_english": "Translate into English",
    "idiom_phrases": "Idioms and Phrases",
    "passage": "Read the Passage",
    "directInDirect": "Direct and Indirect Narration",
    "activePassive": "Active and Passive Voice",
    "poetry_explanation": "Explain the Verses",
    "prose_explanation": "Explain the Prose",
    "sentence_correction": "Correct the Sentences",
    "sentence_completion": "Complete the Sentences",
}


class PdfWriter:
    """Flowing text writer: wraps lines to the page width and starts new pages as needed."""

    def __init__(self, watermark: Optional[str] = None):
        self.doc = fitz.open()
        self.watermark = watermark
        if settings.PDF_FONT_FILE:
            self.font = fitz.Font(fontfile=settings.PDF_FONT_FILE)
            self.bold_font = self.font
            self.font_args = {"fontname": "body", "fontfile": settings.PDF_FONT_FILE}
            self.bold_args = self.font_args
        else:
            self.font = fitz.Font("helv")
            self.bold_font = fitz.Font("hebo")
            self.font_args = {"fontname": "helv"}
            self.bold_args = {"fontname": "hebo"}
        self.page = None
        self.y = 0.0
        self._new_page()

    def _new_page(self):
        self.page = self.doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
        self.y = MARGIN
        if self.watermark:
            center = fitz.Point(PAGE_WIDTH / 2, PAGE_HEIGHT / 2)
            width = self.bold_font.text_length(self.watermark, fontsize=40)
            self.page.insert_text(
                fitz.Point(center.x - width / 2, center.y),
                self.watermark,
                fontsize=40,
                color=(0.85, 0.85, 0.85),
                morph=(center, fitz.Matrix(-45)),
                **self.bold_args,
            )

    def _ensure_space(self, height: float):
        if self.y + height > PAGE_HEIGHT - MARGIN:
            self._new_page()

    def wrap(self, text: str, size: float, bold: bool = False, width: Optional[float] = None) -> List[str]:
        font = self.bold_font if bold else self.font
        width = width or PAGE_WIDTH - 2 * MARGIN
        lines = []
        for paragraph in (text or "").splitlines() or [""]:
            current = ""
            for word in paragraph.split():
                candidate = f"{current} {word}" if current else word
                if current and font.text_length(candidate, fontsize=size) > width:
                    lines.append(current)
                    current = word
                else:
                    current = candidate
            lines.append(current)
        return lines

    def text(self, text: str, size: float = 11, bold: bool = False, indent: float = 0, center: bool = False):
        font = self.bold_font if bold else self.font
        args = self.bold_args if bold else self.font_args
        for line in self.wrap(text, size, bold, PAGE_WIDTH - 2 * MARGIN - indent):
            self._ensure_space(size + LINE_GAP)
            self.y += size
            x = MARGIN + indent
            if center:
                x = (PAGE_WIDTH - font.text_length(line, fontsize=size)) / 2
            self.page.insert_text(fitz.Point(x, self.y), line, fontsize=size, **args)
            self.y += LINE_GAP

    def row(self, left: str, right: str, size: float = 10):
        """One line with text on both margins."""
        self._ensure_space(size + LINE_GAP)
        self.y += size
        self.page.insert_text(fitz.Point(MARGIN, self.y), left, fontsize=size, **self.font_args)
        width = self.font.text_length(right, fontsize=size)
        self.page.insert_text(fitz.Point(PAGE_WIDTH - MARGIN - width, self.y), right, fontsize=size, **self.font_args)
        self.y += LINE_GAP

    def rule(self):
        self._ensure_space(8)
        self.y += 4
        self.page.draw_line(fitz.Point(MARGIN, self.y), fitz.Point(PAGE_WIDTH - MARGIN, self.y), width=0.5)
        self.y += 4

    def space(self, height: float = 8):
        self.y += height

    def image(self, data: bytes, height: float = 50):
        self._ensure_space(height)
        rect = fitz.Rect(MARGIN, self.y, MARGIN + height, self.y + height)
        try:
            self.page.insert_image(rect, stream=data, keep_proportion=True)
        except Exception as e:
            logger.warning(f"Could not embed image in PDF: {str(e)}")
            return
        self.y += height + LINE_GAP

    def to_bytes(self) -> bytes:
        data = self.doc.tobytes(garbage=3, deflate=True)
        self.doc.close()
        return data


def question_text(question, language: str) -> str:
    if language == "urdu" and question.question_text_ur:
        return question.question_text_ur
    if language == "bilingual" and question.question_text_ur:
        return f"{question.question_text}\n{question.question_text_ur}"
    return question.question_text


def render_paper(
        paper,
        sections: Sequence[Tuple[str, list, int, int, int]],
        institution: Optional[str] = None,
        logo: Optional[bytes] = None,
        watermark: bool = False,
        paper_date: Optional[date] = None,
) -> bytes:
    """Render a paper.

    `sections` holds (question_type, questions, to_attempt, marks_each, section_total)
    in print order. Sections with custom marks print their total instead of the product.
    """
    writer = PdfWriter(watermark=WATERMARK_TEXT if watermark else None)
    if logo:
        writer.image(logo)
    writer.text(institution or "Examly.pk", size=16, bold=True, center=True)
    writer.text(paper.title, size=13, bold=True, center=True)
    writer.space(4)
    writer.row(f"Class: {paper.class_name or ''}", f"Subject: {paper.subject_name or ''}")
    writer.row(f"Time: {paper.time_minutes} minutes", f"Total Marks: {paper.total_marks}")
    writer.row("Name: ____________________", f"Date: {(paper_date or date.today()).strftime('%d-%m-%Y')}")
    writer.rule()

    for number, (question_type, questions, to_attempt, marks_each, section_total) in enumerate(sections, start=1):
        if not questions:
            continue
        writer.space(6)
        writer.text(f"Q{number}. {SECTION_TITLES.get(question_type, question_type)}", size=12, bold=True)
        attempted = min(to_attempt, len(questions))
        if attempted * marks_each == section_total:
            marks_line = f"({attempted} x {marks_each} = {section_total})"
        else:
            marks_line = f"(Marks: {section_total})"
        if attempted < len(questions):
            marks_line = f"Attempt any {attempted} question(s). {marks_line}"
        writer.text(marks_line, size=10, indent=12)
        for index, question in enumerate(questions, start=1):
            writer.text(f"{index}. {question_text(question, paper.language)}", size=11, indent=12)
            if question_type == "mcq":
                options = [("A", question.option_a), ("B", question.option_b),
                           ("C", question.option_c), ("D", question.option_d)]
                writer.text("    ".join(f"({letter}) {value}" for letter, value in options if value),
                            size=10, indent=28)
    return writer.to_bytes()


def render_mcq_key(paper, rows: Sequence[Tuple[int, str]]) -> bytes:
    """Answer key: one line per MCQ with its correct option."""
    writer = PdfWriter()
    writer.text(f"MCQ Answer Key - {paper.title}", size=14, bold=True, center=True)
    writer.row(f"Class: {paper.class_name or ''}", f"Subject: {paper.subject_name or ''}")
    writer.rule()
    for number, option in rows:
        writer.text(f"{number}. {option or '-'}", size=11, indent=12)
    return writer.to_bytes()
