# src/papers/models.py
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text, JSON
from sqlalchemy.orm import relationship
from database import Base
from datetime import datetime
from typing import Dict, Optional

class Paper(Base):
    """A generated exam paper. paper_pdf/paper_key are set only for stored copies."""
    __tablename__ = "papers"

    id: int = Column(Integer, primary_key=True, index=True)
    title: str = Column(String, nullable=False)
    created_by: int = Column(Integer, ForeignKey("profiles.id", ondelete="CASCADE"), index=True, nullable=False)
    class_name: Optional[str] = Column(String, nullable=True)
    subject_name: Optional[str] = Column(String, nullable=True)
    class_id: int = Column(Integer, ForeignKey("classes.id", ondelete="SET NULL"), nullable=True)
    subject_id: int = Column(Integer, ForeignKey("subjects.id", ondelete="SET NULL"), nullable=True)
    language: str = Column(String, nullable=False, default="bilingual")
    time_minutes: int = Column(Integer, nullable=False, default=60)
    total_marks: int = Column(Integer, nullable=False, default=0)
    to_attempt: Optional[Dict[str, int]] = Column(JSON, nullable=True)
    type_marks: Optional[Dict[str, int]] = Column(JSON, nullable=True)
    paper_pdf: Optional[str] = Column(Text, nullable=True)
    paper_key: Optional[str] = Column(Text, nullable=True)
    created_at: datetime = Column(DateTime, default=datetime.utcnow)

    creator = relationship("Profile", back_populates="papers")
    questions = relationship("PaperQuestion", back_populates="paper", cascade="all, delete-orphan",
                             order_by="PaperQuestion.order_number")

class PaperQuestion(Base):
    __tablename__ = "paper_questions"

    id: int = Column(Integer, primary_key=True, index=True)
    paper_id: int = Column(Integer, ForeignKey("papers.id", ondelete="CASCADE"), index=True, nullable=False)
    question_id: int = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False)
    order_number: int = Column(Integer, nullable=False)
    question_type: str = Column(String, nullable=False)
    custom_marks: Optional[int] = Column(Integer, nullable=True)

    paper = relationship("Paper", back_populates="questions")
    question = relationship("Question")
