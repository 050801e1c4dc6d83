# src/catalog/services.py
import logging
import random as random_module

from fastapi import HTTPException
from sqlalchemy.orm import Session, joinedload
from typing import List, Optional
from catalog.models import SchoolClass, Subject, ClassSubject, Chapter, Question
from catalog.schemas import (
    ClassCreate, ClassResponse, SubjectCreate, SubjectUpdate, SubjectResponse,
    ChapterCreate, ChapterUpdate, ChapterResponse,
    QuestionCreate, QuestionUpdate, QuestionResponse,
    BulkQuestionRequest, BulkQuestionResponse, QuizRequest
)
from database import retry_read

logger = logging.getLogger(__name__)

DEFAULT_QUESTION_LIMIT = 1000
BULK_TYPES = ("mcq", "short", "long")

class CatalogService:
    @staticmethod
    def list_classes(db: Session) -> List[ClassResponse]:
        classes = retry_read(
            db,
            lambda: db.query(SchoolClass).order_by(SchoolClass.name.asc()).all(),
            label="Classes fetch",
        )
        return [ClassResponse.from_orm(c) for c in classes]

    @staticmethod
    def subjects_for_class(class_id: int, db: Session) -> List[SubjectResponse]:
        subjects = db.query(Subject).join(ClassSubject, ClassSubject.subject_id == Subject.id).filter(
            ClassSubject.class_id == class_id
        ).order_by(Subject.name.asc()).all()
        return [SubjectResponse.from_orm(s) for s in subjects]

    @staticmethod
    def list_subjects(db: Session) -> List[SubjectResponse]:
        return [SubjectResponse.from_orm(s) for s in db.query(Subject).order_by(Subject.name.asc()).all()]

    @staticmethod
    def chapters_for(subject_id: int, class_id: int, db: Session) -> List[ChapterResponse]:
        chapters = db.query(Chapter).filter(
            Chapter.subject_id == subject_id,
            Chapter.class_id == class_id
        ).order_by(Chapter.chapter_no.asc(), Chapter.id.asc()).all()
        return [ChapterResponse.from_orm(c) for c in chapters]

    @staticmethod
    def get_class(class_id: int, db: Session) -> SchoolClass:
        school_class = db.query(SchoolClass).filter(SchoolClass.id == class_id).first()
        if not school_class:
            raise HTTPException(status_code=404, detail="Class not found")
        return school_class

    @staticmethod
    def get_subject(subject_id: int, db: Session) -> Subject:
        subject = db.query(Subject).filter(Subject.id == subject_id).first()
        if not subject:
            raise HTTPException(status_code=404, detail="Subject not found")
        return subject

    @staticmethod
    def create_class(data: ClassCreate, db: Session) -> ClassResponse:
        if db.query(SchoolClass).filter(SchoolClass.name == data.name).first():
            raise HTTPException(status_code=400, detail="Class already exists")
        school_class = SchoolClass(name=data.name, description=data.description)
        db.add(school_class)
        db.commit()
        db.refresh(school_class)
        return ClassResponse.from_orm(school_class)

    @staticmethod
    def delete_class(class_id: int, db: Session) -> dict:
        db.delete(CatalogService.get_class(class_id, db))
        db.commit()
        return {"message": "Class deleted"}

    @staticmethod
    def create_subject(data: SubjectCreate, db: Session) -> SubjectResponse:
        subject = Subject(name=data.name.strip(), description=data.description)
        db.add(subject)
        db.flush()
        for class_id in set(data.class_ids):
            CatalogService.get_class(class_id, db)
            db.add(ClassSubject(class_id=class_id, subject_id=subject.id))
        db.commit()
        db.refresh(subject)
        return SubjectResponse.from_orm(subject)

    @staticmethod
    def update_subject(subject_id: int, data: SubjectUpdate, db: Session) -> SubjectResponse:
        subject = CatalogService.get_subject(subject_id, db)
        if data.name is not None:
            subject.name = data.name.strip()
        if data.description is not None:
            subject.description = data.description
        if data.class_ids is not None:
            db.query(ClassSubject).filter(ClassSubject.subject_id == subject.id).delete()
            for class_id in set(data.class_ids):
                CatalogService.get_class(class_id, db)
                db.add(ClassSubject(class_id=class_id, subject_id=subject.id))
        db.commit()
        db.refresh(subject)
        return SubjectResponse.from_orm(subject)

    @staticmethod
    def delete_subject(subject_id: int, db: Session) -> dict:
        db.delete(CatalogService.get_subject(subject_id, db))
        db.commit()
        return {"message": "Subject deleted"}

    @staticmethod
    def create_chapter(data: ChapterCreate, db: Session) -> ChapterResponse:
        CatalogService.get_class(data.class_id, db)
        CatalogService.get_subject(data.subject_id, db)
        chapter = Chapter(**data.model_dump())
        db.add(chapter)
        db.commit()
        db.refresh(chapter)
        return ChapterResponse.from_orm(chapter)

    @staticmethod
    def update_chapter(chapter_id: int, data: ChapterUpdate, db: Session) -> ChapterResponse:
        chapter = db.query(Chapter).filter(Chapter.id == chapter_id).first()
        if not chapter:
            raise HTTPException(status_code=404, detail="Chapter not found")
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(chapter, field, value)
        db.commit()
        db.refresh(chapter)
        return ChapterResponse.from_orm(chapter)

    @staticmethod
    def delete_chapter(chapter_id: int, db: Session) -> dict:
        chapter = db.query(Chapter).filter(Chapter.id == chapter_id).first()
        if not chapter:
            raise HTTPException(status_code=404, detail="Chapter not found")
        db.delete(chapter)
        db.commit()
        return {"message": "Chapter deleted"}


class QuestionService:
    @staticmethod
    def _with_chapter(query):
        return query.options(joinedload(Question.chapter))

    @staticmethod
    def get_by_ids(ids: List[int], db: Session) -> List[QuestionResponse]:
        if not ids:
            return []
        questions = QuestionService._with_chapter(db.query(Question)).filter(Question.id.in_(ids)).all()
        return [QuestionResponse.from_orm(q) for q in questions]

    @staticmethod
    def chapter_ids_for(subject_id: int, class_id: int, db: Session) -> List[int]:
        rows = db.query(Chapter.id).filter(Chapter.subject_id == subject_id, Chapter.class_id == class_id).all()
        return [row[0] for row in rows]

    @staticmethod
    def list_questions(
            db: Session,
            subject_id: Optional[int] = None,
            class_id: Optional[int] = None,
            question_type: Optional[str] = None,
            difficulty: Optional[str] = None,
            chapter_ids: Optional[List[int]] = None,
            source_type: Optional[str] = None,
            question_ids: Optional[List[int]] = None,
            limit: int = DEFAULT_QUESTION_LIMIT
    ) -> List[QuestionResponse]:
        """Questions by explicit ids, or by subject, class and type with optional filters."""
        if question_ids is not None:
            return QuestionService.get_by_ids(question_ids, db)
        if not subject_id or not class_id or not question_type:
            raise HTTPException(
                status_code=400,
                detail="subjectId, classId and questionType are required when not using questionIds"
            )

        allowed = QuestionService.chapter_ids_for(subject_id, class_id, db)
        if chapter_ids:
            allowed = [cid for cid in allowed if cid in set(chapter_ids)]
        if not allowed:
            return []

        query = QuestionService._with_chapter(db.query(Question)).filter(
            Question.chapter_id.in_(allowed),
            Question.question_type == question_type
        )
        if difficulty and difficulty != "any":
            query = query.filter(Question.difficulty == difficulty)
        if source_type and source_type != "all":
            query = query.filter(Question.source_type == source_type)
        questions = query.order_by(Question.id.asc()).limit(limit).all()
        return [QuestionResponse.from_orm(q) for q in questions]

    @staticmethod
    def bulk(data: BulkQuestionRequest, db: Session) -> BulkQuestionResponse:
        """MCQ, short and long questions for a chapter set in one call."""
        if not data.chapterIds:
            raise HTTPException(status_code=400, detail="Missing required parameters")
        allowed = set(QuestionService.chapter_ids_for(data.subjectId, data.classId, db))
        chapter_ids = [cid for cid in data.chapterIds if cid in allowed]

        result = {}
        for question_type in BULK_TYPES:
            limit = data.limits.get(question_type) or (20 if question_type == "long" else 50)
            if not chapter_ids or limit <= 0:
                result[question_type] = []
                continue
            query = db.query(Question).filter(
                Question.subject_id == data.subjectId,
                Question.chapter_id.in_(chapter_ids),
                Question.question_type == question_type
            )
            if data.sourceType != "all":
                query = query.filter(Question.source_type == data.sourceType)
            if data.random:
                query = query.order_by(Question.id.asc())
            else:
                query = query.order_by(Question.created_at.desc(), Question.id.desc())
            questions = query.limit(limit).all()
            if data.requirements:
                questions = questions[:data.requirements.get(question_type) or len(questions)]
            if data.random:
                random_module.shuffle(questions)
            result[question_type] = [QuestionResponse.from_orm(q) for q in questions]

        return BulkQuestionResponse(
            mcq=result["mcq"],
            short=result["short"],
            long=result["long"],
            metadata={
                "totalFetched": {t: len(result[t]) for t in BULK_TYPES},
                "requested": data.requirements,
            },
        )

    @staticmethod
    def quiz(data: QuizRequest, db: Session) -> List[QuestionResponse]:
        """MCQs of a subject in a class, optionally restricted to chapters and difficulty."""
        chapter_ids = QuestionService.chapter_ids_for(data.subjectId, data.classId, db)
        if data.quizType == "chapter" and data.chapters:
            chapter_ids = [cid for cid in chapter_ids if cid in set(data.chapters)]
        if not chapter_ids:
            return []
        query = db.query(Question).filter(
            Question.subject_id == data.subjectId,
            Question.chapter_id.in_(chapter_ids),
            Question.question_type == "mcq"
        )
        if data.difficulty and data.difficulty != "all":
            query = query.filter(Question.difficulty == data.difficulty)
        query = query.order_by(Question.id.asc())
        if data.questionCount:
            query = query.limit(data.questionCount)
        return [QuestionResponse.from_orm(q) for q in query.all()]

    @staticmethod
    def get_question(question_id: int, db: Session) -> Question:
        question = db.query(Question).filter(Question.id == question_id).first()
        if not question:
            raise HTTPException(status_code=404, detail="Question not found")
        return question

    @staticmethod
    def create_question(data: QuestionCreate, db: Session) -> QuestionResponse:
        chapter = db.query(Chapter).filter(Chapter.id == data.chapter_id).first()
        if not chapter or chapter.subject_id != data.subject_id:
            raise HTTPException(status_code=400, detail="Chapter does not belong to subject")
        question = Question(**data.model_dump())
        if question.class_subject_id is None:
            link = db.query(ClassSubject).filter(
                ClassSubject.class_id == chapter.class_id,
                ClassSubject.subject_id == chapter.subject_id
            ).first()
            question.class_subject_id = link.id if link else None
        db.add(question)
        db.commit()
        db.refresh(question)
        return QuestionResponse.from_orm(question)

    @staticmethod
    def update_question(question_id: int, data: QuestionUpdate, db: Session) -> QuestionResponse:
        question = QuestionService.get_question(question_id, db)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(question, field, value)
        db.commit()
        db.refresh(question)
        return QuestionResponse.from_orm(question)

    @staticmethod
    def delete_question(question_id: int, db: Session) -> dict:
        db.delete(QuestionService.get_question(question_id, db))
        db.commit()
        return {"message": "Question deleted"}
