# src/catalog/routes.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from catalog.services import CatalogService, QuestionService, DEFAULT_QUESTION_LIMIT
from catalog.schemas import (
    ClassCreate, ClassResponse, SubjectCreate, SubjectUpdate, SubjectResponse,
    ChapterCreate, ChapterUpdate, ChapterResponse,
    QuestionCreate, QuestionUpdate, QuestionResponse,
    BulkQuestionRequest, BulkQuestionResponse, QuizRequest
)
from auth.routes import check_admin_role
from database import get_db

router = APIRouter(prefix="/api", tags=["catalog"])
admin_router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(check_admin_role)])

def parse_ids(raw: Optional[str], name: str) -> Optional[List[int]]:
    """Parse a comma separated id list from a query string."""
    if raw is None:
        return None
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise HTTPException(status_code=400, detail=f"{name} must be a comma separated list of ids")

@router.get("/classes", response_model=List[ClassResponse])
def list_classes(db: Session = Depends(get_db)):
    return CatalogService.list_classes(db)

@router.get("/subjects", response_model=List[SubjectResponse])
def list_subjects(classId: Optional[int] = None, db: Session = Depends(get_db)):
    """Subjects taught in a class."""
    if classId is None:
        raise HTTPException(status_code=400, detail="Class ID is required")
    return CatalogService.subjects_for_class(classId, db)

@router.get("/chapters", response_model=List[ChapterResponse])
def list_chapters(subjectId: Optional[int] = None, classId: Optional[int] = None, db: Session = Depends(get_db)):
    if subjectId is None or classId is None:
        raise HTTPException(status_code=400, detail="Subject ID and Class ID are required")
    return CatalogService.chapters_for(subjectId, classId, db)

@router.get("/questions", response_model=List[QuestionResponse])
def list_questions(
    subjectId: Optional[int] = None,
    classId: Optional[int] = None,
    questionType: Optional[str] = None,
    difficulty: Optional[str] = None,
    chapterIds: Optional[str] = None,
    source_type: Optional[str] = None,
    questionIds: Optional[str] = None,
    limit: int = Query(DEFAULT_QUESTION_LIMIT, ge=1),
    db: Session = Depends(get_db)
):
    """Questions by ids, or by subject, class and type."""
    return QuestionService.list_questions(
        db,
        subject_id=subjectId,
        class_id=classId,
        question_type=questionType,
        difficulty=difficulty,
        chapter_ids=parse_ids(chapterIds, "chapterIds"),
        source_type=source_type,
        question_ids=parse_ids(questionIds, "questionIds"),
        limit=limit,
    )

@router.post("/questions/bulk", response_model=BulkQuestionResponse)
def bulk_questions(data: BulkQuestionRequest, db: Session = Depends(get_db)):
    return QuestionService.bulk(data, db)

@router.get("/quizz", response_model=List[ClassResponse])
def quiz_classes(db: Session = Depends(get_db)):
    return CatalogService.list_classes(db)

@router.get("/quizz/{class_id}/subjects", response_model=List[SubjectResponse])
def quiz_subjects(class_id: int, db: Session = Depends(get_db)):
    return CatalogService.subjects_for_class(class_id, db)

@router.post("/quizz/generate", response_model=List[QuestionResponse])
def generate_quiz(data: QuizRequest, db: Session = Depends(get_db)):
    """Build an MCQ quiz."""
    return QuestionService.quiz(data, db)

# Catalog management

@admin_router.post("/classes", response_model=ClassResponse, status_code=201)
def create_class(data: ClassCreate, db: Session = Depends(get_db)):
    return CatalogService.create_class(data, db)

@admin_router.delete("/classes/{class_id}")
def delete_class(class_id: int, db: Session = Depends(get_db)):
    return CatalogService.delete_class(class_id, db)

@admin_router.get("/subjects", response_model=List[SubjectResponse])
def all_subjects(db: Session = Depends(get_db)):
    return CatalogService.list_subjects(db)

@admin_router.post("/subjects", response_model=SubjectResponse, status_code=201)
def create_subject(data: SubjectCreate, db: Session = Depends(get_db)):
    return CatalogService.create_subject(data, db)

@admin_router.put("/subjects/{subject_id}", response_model=SubjectResponse)
def update_subject(subject_id: int, data: SubjectUpdate, db: Session = Depends(get_db)):
    return CatalogService.update_subject(subject_id, data, db)

@admin_router.delete("/subjects/{subject_id}")
def delete_subject(subject_id: int, db: Session = Depends(get_db)):
    return CatalogService.delete_subject(subject_id, db)

@admin_router.post("/chapters", response_model=ChapterResponse, status_code=201)
def create_chapter(data: ChapterCreate, db: Session = Depends(get_db)):
    return CatalogService.create_chapter(data, db)

@admin_router.put("/chapters/{chapter_id}", response_model=ChapterResponse)
def update_chapter(chapter_id: int, data: ChapterUpdate, db: Session = Depends(get_db)):
    return CatalogService.update_chapter(chapter_id, data, db)

@admin_router.delete("/chapters/{chapter_id}")
def delete_chapter(chapter_id: int, db: Session = Depends(get_db)):
    return CatalogService.delete_chapter(chapter_id, db)

@admin_router.post("/questions", response_model=QuestionResponse, status_code=201)
def create_question(data: QuestionCreate, db: Session = Depends(get_db)):
    return QuestionService.create_question(data, db)

@admin_router.put("/questions/{question_id}", response_model=QuestionResponse)
def update_question(question_id: int, data: QuestionUpdate, db: Session = Depends(get_db)):
    return QuestionService.update_question(question_id, data, db)

@admin_router.delete("/questions/{question_id}")
def delete_question(question_id: int, db: Session = Depends(get_db)):
    return QuestionService.delete_question(question_id, db)
