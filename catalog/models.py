# src/catalog/models.py
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from datetime import datetime
from typing import Optional

QUESTION_TYPES = (
    "mcq", "short", "long",
    "translate_urdu", "translate_english", "idiom_phrases", "passage",
    "directInDirect", "activePassive", "poetry_explanation", "prose_explanation",
    "sentence_correction", "sentence_completion",
)
DIFFICULTIES = ("easy", "medium", "hard")
SOURCE_TYPES = ("book", "model_paper", "past_paper")
MCQ_OPTIONS = ("A", "B", "C", "D")

class SchoolClass(Base):
    """A school class, 1 to 12."""
    __tablename__ = "classes"

    id: int = Column(Integer, primary_key=True, index=True)
    name: int = Column(Integer, unique=True, nullable=False)
    description: Optional[str] = Column(String, nullable=True)
    created_at: datetime = Column(DateTime, default=datetime.utcnow)

    class_subjects = relationship("ClassSubject", back_populates="school_class", cascade="all, delete-orphan")
    chapters = relationship("Chapter", back_populates="school_class", cascade="all, delete-orphan")

class Subject(Base):
    __tablename__ = "subjects"

    id: int = Column(Integer, primary_key=True, index=True)
    name: str = Column(String, nullable=False)
    description: Optional[str] = Column(String, nullable=True)
    created_at: datetime = Column(DateTime, default=datetime.utcnow)

    class_subjects = relationship("ClassSubject", back_populates="subject", cascade="all, delete-orphan")
    chapters = relationship("Chapter", back_populates="subject", cascade="all, delete-orphan")

class ClassSubject(Base):
    """Which subjects are taught in which class."""
    __tablename__ = "class_subjects"

    id: int = Column(Integer, primary_key=True, index=True)
    class_id: int = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    subject_id: int = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False)

    school_class = relationship("SchoolClass", back_populates="class_subjects")
    subject = relationship("Subject", back_populates="class_subjects")

    __table_args__ = (UniqueConstraint('class_id', 'subject_id', name='unique_class_subject'),)

class Chapter(Base):
    __tablename__ = "chapters"

    id: int = Column(Integer, primary_key=True, index=True)
    class_id: int = Column(Integer, ForeignKey("classes.id", ondelete="CASCADE"), index=True, nullable=False)
    subject_id: int = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), index=True, nullable=False)
    name: str = Column(String, nullable=False)
    chapter_no: int = Column(Integer, nullable=False, default=1)
    created_at: datetime = Column(DateTime, default=datetime.utcnow)

    school_class = relationship("SchoolClass", back_populates="chapters")
    subject = relationship("Subject", back_populates="chapters")
    questions = relationship("Question", back_populates="chapter", cascade="all, delete-orphan")

class Question(Base):
    """A question in the bank. MCQs carry options A to D and the correct letter."""
    __tablename__ = "questions"

    id: int = Column(Integer, primary_key=True, index=True)
    subject_id: int = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), index=True, nullable=False)
    chapter_id: int = Column(Integer, ForeignKey("chapters.id", ondelete="CASCADE"), index=True, nullable=False)
    class_subject_id: Optional[int] = Column(Integer, ForeignKey("class_subjects.id", ondelete="SET NULL"), nullable=True)
    question_type: str = Column(String, index=True, nullable=False)
    question_text: str = Column(Text, nullable=False)
    question_text_ur: Optional[str] = Column(Text, nullable=True)
    option_a: Optional[str] = Column(Text, nullable=True)
    option_b: Optional[str] = Column(Text, nullable=True)
    option_c: Optional[str] = Column(Text, nullable=True)
    option_d: Optional[str] = Column(Text, nullable=True)
    correct_option: Optional[str] = Column(String(1), nullable=True)
    answer_text: Optional[str] = Column(Text, nullable=True)
    difficulty: str = Column(String, nullable=False, default="medium")
    source_type: str = Column(String, nullable=False, default="book")
    created_at: datetime = Column(DateTime, default=datetime.utcnow)

    chapter = relationship("Chapter", back_populates="questions")
    subject = relationship("Subject")
