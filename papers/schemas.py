# src/papers/schemas.py
from pydantic import BaseModel, field_validator
from datetime import datetime, date
from typing import Optional, List, Dict
from catalog.models import QUESTION_TYPES

CHAPTER_OPTIONS = ("full_book", "half_book", "single_chapter", "custom")
LANGUAGES = ("english", "urdu", "bilingual")

class PaperGenerationRequest(BaseModel):
    """Schema for a paper generation request.

    Counts and difficulties are keyed by question type; marks for mcq, short and
    long come from the request, the language specific types fall back to the
    configured defaults unless `typeMarks` overrides them.
    """
    title: Optional[str] = None
    subjectId: Optional[int] = None
    classId: Optional[int] = None
    language: str = "bilingual"
    chapterOption: str = "full_book"
    selectedChapters: List[int] = []
    selectionMethod: str = "auto"  # auto, manual
    source_type: str = "all"
    questionCounts: Dict[str, int] = {}
    difficulties: Dict[str, str] = {}
    toAttemptValues: Dict[str, int] = {}
    selectedQuestions: Dict[str, List[int]] = {}
    reorderedQuestions: Optional[Dict[str, List[int]]] = None
    customMarks: Dict[int, int] = {}
    mcqMarks: int = 1
    shortMarks: int = 2
    longMarks: int = 5
    typeMarks: Dict[str, int] = {}
    timeMinutes: int = 60
    dateOfPaper: Optional[date] = None
    randomSeed: Optional[int] = None

    @field_validator("language")
    @classmethod
    def known_language(cls, v: str) -> str:
        if v not in LANGUAGES:
            raise ValueError(f"language must be one of {', '.join(LANGUAGES)}")
        return v

    @field_validator("chapterOption")
    @classmethod
    def known_option(cls, v: str) -> str:
        if v not in CHAPTER_OPTIONS:
            raise ValueError(f"chapterOption must be one of {', '.join(CHAPTER_OPTIONS)}")
        return v

    @field_validator("questionCounts", "toAttemptValues", "difficulties", "selectedQuestions", "typeMarks")
    @classmethod
    def known_types(cls, v: dict) -> dict:
        unknown = [t for t in v if t not in QUESTION_TYPES]
        if unknown:
            raise ValueError(f"unknown question types: {', '.join(unknown)}")
        return v

class PaperResponse(BaseModel):
    """Schema for paper response."""
    id: int
    title: str
    created_by: int
    class_name: Optional[str]
    subject_name: Optional[str]
    class_id: Optional[int]
    subject_id: Optional[int]
    language: str
    time_minutes: int
    total_marks: int
    to_attempt: Optional[Dict[str, int]] = None
    type_marks: Optional[Dict[str, int]] = None
    paper_pdf: Optional[str]
    paper_key: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True

class McqKeyRequest(BaseModel):
    paperId: int

class DeletePaperRequest(BaseModel):
    paperId: int
