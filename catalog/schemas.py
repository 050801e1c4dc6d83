# src/catalog/schemas.py
from pydantic import BaseModel, field_validator, model_validator
from datetime import datetime
from typing import Optional, List, Dict
from catalog.models import QUESTION_TYPES, DIFFICULTIES, SOURCE_TYPES, MCQ_OPTIONS

class ClassResponse(BaseModel):
    id: int
    name: int
    description: Optional[str]

    class Config:
        from_attributes = True

class ClassCreate(BaseModel):
    name: int
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def class_range(cls, v: int) -> int:
        if v < 1 or v > 12:
            raise ValueError("class must be between 1 and 12")
        return v

class SubjectResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]

    class Config:
        from_attributes = True

class SubjectCreate(BaseModel):
    """Schema for creating a subject, optionally linked to classes."""
    name: str
    description: Optional[str] = None
    class_ids: List[int] = []

class SubjectUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    class_ids: Optional[List[int]] = None

class ChapterResponse(BaseModel):
    id: int
    class_id: int
    subject_id: int
    name: str
    chapter_no: int

    class Config:
        from_attributes = True

class ChapterCreate(BaseModel):
    class_id: int
    subject_id: int
    name: str
    chapter_no: int = 1

class ChapterUpdate(BaseModel):
    name: Optional[str] = None
    chapter_no: Optional[int] = None

class QuestionResponse(BaseModel):
    """Schema for question response, with its chapter."""
    id: int
    subject_id: int
    chapter_id: int
    class_subject_id: Optional[int]
    question_type: str
    question_text: str
    question_text_ur: Optional[str]
    option_a: Optional[str]
    option_b: Optional[str]
    option_c: Optional[str]
    option_d: Optional[str]
    correct_option: Optional[str]
    answer_text: Optional[str]
    difficulty: str
    source_type: str
    created_at: datetime
    chapter: Optional[ChapterResponse] = None

    class Config:
        from_attributes = True

class QuestionBase(BaseModel):
    question_type: Optional[str] = None
    question_text: Optional[str] = None
    question_text_ur: Optional[str] = None
    option_a: Optional[str] = None
    option_b: Optional[str] = None
    option_c: Optional[str] = None
    option_d: Optional[str] = None
    correct_option: Optional[str] = None
    answer_text: Optional[str] = None
    difficulty: Optional[str] = None
    source_type: Optional[str] = None

    @field_validator("question_type")
    @classmethod
    def known_type(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in QUESTION_TYPES:
            raise ValueError("unknown question type")
        return v

    @field_validator("difficulty")
    @classmethod
    def known_difficulty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in DIFFICULTIES:
            raise ValueError(f"difficulty must be one of {', '.join(DIFFICULTIES)}")
        return v

    @field_validator("source_type")
    @classmethod
    def known_source(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in SOURCE_TYPES:
            raise ValueError(f"source_type must be one of {', '.join(SOURCE_TYPES)}")
        return v

    @field_validator("correct_option")
    @classmethod
    def option_letter(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().upper()
        if v not in MCQ_OPTIONS:
            raise ValueError("correct_option must be A, B, C or D")
        return v

class QuestionCreate(QuestionBase):
    """Schema for creating a question."""
    subject_id: int
    chapter_id: int
    class_subject_id: Optional[int] = None
    question_type: str
    question_text: str
    difficulty: str = "medium"
    source_type: str = "book"

    @model_validator(mode="after")
    def mcq_needs_options(self):
        if self.question_type == "mcq":
            if not all([self.option_a, self.option_b, self.option_c, self.option_d]):
                raise ValueError("MCQ questions need four options")
            if not self.correct_option:
                raise ValueError("MCQ questions need a correct option")
        return self

class QuestionUpdate(QuestionBase):
    chapter_id: Optional[int] = None

class BulkQuestionRequest(BaseModel):
    subjectId: int
    classId: int
    chapterIds: List[int]
    requirements: Optional[Dict[str, int]] = None
    sourceType: str = "all"
    random: bool = False
    limits: Dict[str, int] = {"mcq": 50, "short": 50, "long": 20}

class BulkQuestionResponse(BaseModel):
    mcq: List[QuestionResponse]
    short: List[QuestionResponse]
    long: List[QuestionResponse]
    metadata: dict

class QuizRequest(BaseModel):
    """Schema for an MCQ quiz request."""
    classId: int
    subjectId: int
    quizType: str = "full"  # full, chapter
    chapters: List[int] = []
    questionCount: Optional[int] = None
    difficulty: Optional[str] = None
