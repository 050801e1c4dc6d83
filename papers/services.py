# src/papers/services.py
import logging
import math
import random
import re

from fastapi import HTTPException
from sqlalchemy.orm import Session, joinedload
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple
from papers.models import Paper, PaperQuestion
from papers.schemas import PaperGenerationRequest, PaperResponse
from papers import pdf
from catalog.models import QUESTION_TYPES, Chapter, Question, SchoolClass, Subject
from catalog.schemas import QuestionResponse
from profiles.models import Profile
from subscription.services import SubscriptionService
from storage import storage
from config import settings

logger = logging.getLogger(__name__)

SOURCE_TYPE_ALIASES = {"model": "model_paper", "past": "past_paper"}
CANDIDATE_FACTOR = 3
NO_PAPERS_MESSAGE = "You have no papers remaining. Subscribe to a package to continue generating papers."


def safe_filename(title: Optional[str]) -> str:
    return re.sub(r"[^a-zA-Z0-9_\-\.]", "_", title or "paper")


def type_marks(data: PaperGenerationRequest) -> Dict[str, int]:
    """Marks per question for every type, request values over configured defaults."""
    marks = dict(settings.DEFAULT_TYPE_MARKS)
    marks.update({"mcq": data.mcqMarks, "short": data.shortMarks, "long": data.longMarks})
    marks.update(data.typeMarks)
    return marks


def group_by_type(paper_questions: Sequence[PaperQuestion]) -> Dict[str, List[PaperQuestion]]:
    groups: Dict[str, List[PaperQuestion]] = {}
    for pq in sorted(paper_questions, key=lambda pq: pq.order_number):
        groups.setdefault(pq.question_type, []).append(pq)
    return groups


def calculate_total_marks(
        paper_questions: Sequence[PaperQuestion],
        to_attempt: Dict[str, int],
        marks: Dict[str, int]
) -> int:
    """Sum marks of the questions a student has to attempt.

    Per type only the first `to_attempt` questions count (all of them when no
    value is given); each counts at its custom mark or the type's mark.
    """
    total = 0
    for question_type, group in group_by_type(paper_questions).items():
        attempted = group[:to_attempt.get(question_type) or len(group)]
        total += sum(pq.custom_marks or marks.get(question_type, 1) for pq in attempted)
    return total


class PaperService:
    @staticmethod
    def resolve_chapter_ids(data: PaperGenerationRequest, db: Session) -> List[int]:
        """Chapters the paper draws from, limited to the subject and class."""
        chapters = db.query(Chapter).filter(
            Chapter.subject_id == data.subjectId,
            Chapter.class_id == data.classId
        ).order_by(Chapter.chapter_no.asc(), Chapter.id.asc()).all()
        if not chapters:
            raise HTTPException(status_code=400, detail="No chapters found for this class and subject")

        if data.chapterOption == "full_book":
            return [c.id for c in chapters]
        if data.chapterOption == "half_book":
            return [c.id for c in chapters[:math.ceil(len(chapters) / 2)]]
        valid = [c.id for c in chapters if c.id in set(data.selectedChapters)]
        if not valid:
            raise HTTPException(status_code=400, detail="Select at least one chapter of this subject")
        return valid

    @staticmethod
    def find_questions_with_fallback(
            db: Session,
            question_type: str,
            subject_id: int,
            chapter_ids: List[int],
            source_type: Optional[str],
            difficulty: Optional[str],
            count: int,
            seed: Optional[int] = None
    ) -> List[Question]:
        """Up to `count` questions of a type, dropping the difficulty filter when it leaves too few."""
        source_type = SOURCE_TYPE_ALIASES.get(source_type, source_type)

        def candidates(with_difficulty: bool) -> List[Question]:
            query = db.query(Question).filter(
                Question.question_type == question_type,
                Question.subject_id == subject_id,
                Question.chapter_id.in_(chapter_ids)
            )
            if source_type and source_type != "all":
                query = query.filter(Question.source_type == source_type)
            if with_difficulty and difficulty and difficulty != "any":
                query = query.filter(Question.difficulty == difficulty)
            return query.order_by(Question.id.asc()).limit(count * CANDIDATE_FACTOR).all()

        questions = candidates(with_difficulty=True)
        if len(questions) < count and difficulty and difficulty != "any":
            logger.info(f"Only {len(questions)} {question_type} questions at {difficulty}, ignoring difficulty")
            questions = candidates(with_difficulty=False)
        random.Random(seed).shuffle(questions)
        return questions[:count]

    @staticmethod
    def select_questions(data: PaperGenerationRequest, chapter_ids: List[int], db: Session) -> List[Tuple[str, List[int]]]:
        """Question ids per type in print order."""
        selected = []
        if data.selectionMethod == "manual":
            chosen = data.reorderedQuestions or data.selectedQuestions
            for question_type in QUESTION_TYPES:
                ids = list(dict.fromkeys(chosen.get(question_type) or []))
                if not ids:
                    continue
                valid = {row[0] for row in db.query(Question.id).filter(
                    Question.id.in_(ids),
                    Question.subject_id == data.subjectId,
                    Question.question_type == question_type
                ).all()}
                kept = [qid for qid in ids if qid in valid]
                if len(kept) < len(ids):
                    logger.warning(f"Dropped {len(ids) - len(kept)} {question_type} questions outside subject {data.subjectId}")
                if kept:
                    selected.append((question_type, kept))
            return selected

        for question_type in QUESTION_TYPES:
            count = data.questionCounts.get(question_type) or 0
            if count <= 0:
                continue
            questions = PaperService.find_questions_with_fallback(
                db, question_type, data.subjectId, chapter_ids, data.source_type,
                data.difficulties.get(question_type), count, data.randomSeed
            )
            if questions:
                selected.append((question_type, [q.id for q in questions]))
            else:
                logger.warning(f"No {question_type} questions found for subject {data.subjectId}")
        return selected

    @staticmethod
    def sections_for(paper: Paper, to_attempt: Dict[str, int], marks: Dict[str, int]) -> list:
        sections = []
        for question_type, group in group_by_type(paper.questions).items():
            sections.append((
                question_type,
                [pq.question for pq in group],
                to_attempt.get(question_type) or len(group),
                marks.get(question_type, 1),
                calculate_total_marks(group, to_attempt, marks),
            ))
        return sections

    @staticmethod
    def load_logo(profile: Profile) -> Optional[bytes]:
        if not profile.logo:
            return None
        try:
            return storage.read(profile.logo)
        except Exception as e:
            logger.warning(f"Could not load logo for user {profile.id}: {str(e)}")
            return None

    @staticmethod
    def generate(data: PaperGenerationRequest, profile: Profile, db: Session) -> Tuple[Paper, bytes]:
        if not data.title or not data.subjectId or not data.classId:
            raise HTTPException(status_code=400, detail="Title, subject and class are required")

        eligibility = SubscriptionService.get_eligibility(profile, db)
        if not eligibility.can_generate:
            raise HTTPException(status_code=403, detail=eligibility.message or NO_PAPERS_MESSAGE)

        subject = db.query(Subject).filter(Subject.id == data.subjectId).first()
        school_class = db.query(SchoolClass).filter(SchoolClass.id == data.classId).first()
        if not subject or not school_class:
            raise HTTPException(status_code=404, detail="Class or subject not found")

        is_paid = SubscriptionService.is_paid_user(profile.id, db)
        try:
            chapter_ids = PaperService.resolve_chapter_ids(data, db)
            selected = PaperService.select_questions(data, chapter_ids, db)
            if not selected:
                raise HTTPException(status_code=400, detail="No questions found for the selected criteria")

            paper = Paper(
                title=data.title.strip(),
                created_by=profile.id,
                class_name=str(school_class.name),
                subject_name=subject.name,
                class_id=school_class.id,
                subject_id=subject.id,
                language=data.language,
                time_minutes=data.timeMinutes,
            )
            db.add(paper)
            db.flush()

            order_number = 1
            for question_type, ids in selected:
                for question_id in ids:
                    paper.questions.append(PaperQuestion(
                        question_id=question_id,
                        order_number=order_number,
                        question_type=question_type,
                        custom_marks=data.customMarks.get(question_id),
                    ))
                    order_number += 1
            db.flush()

            marks = type_marks(data)
            paper.to_attempt = dict(data.toAttemptValues)
            paper.type_marks = marks
            paper.total_marks = calculate_total_marks(paper.questions, data.toAttemptValues, marks)
            pdf_bytes = pdf.render_paper(
                paper,
                PaperService.sections_for(paper, data.toAttemptValues, marks),
                institution=profile.institution,
                logo=PaperService.load_logo(profile),
                watermark=not is_paid,
                paper_date=data.dateOfPaper,
            )
            if is_paid:
                PaperService.store_files(paper, pdf_bytes)

            SubscriptionService.record_paper_generated(profile, db)
            db.commit()
        except HTTPException:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            logger.error(f"Paper generation failed for user {profile.id}: {str(e)}", exc_info=True)
            raise HTTPException(status_code=500, detail="Failed to generate paper. Please try again later.")

        db.refresh(paper)
        logger.info(f"Paper {paper.id} generated for user {profile.id} with {order_number - 1} questions")
        if is_paid and paper.paper_pdf:
            PaperService.prune_stored_papers(profile.id, db)
        return paper, pdf_bytes

    @staticmethod
    def store_files(paper: Paper, pdf_bytes: bytes) -> None:
        """Upload the paper PDF and its MCQ key. Failures are logged, the paper is still returned."""
        timestamp = int(datetime.utcnow().timestamp() * 1000)
        try:
            paper.paper_pdf = storage.upload(
                settings.PAPERS_BUCKET,
                f"{paper.created_by}/{timestamp}_{safe_filename(paper.title)}.pdf",
                pdf_bytes,
                "application/pdf",
            )
        except Exception as e:
            logger.warning(f"Failed to save PDF for paper {paper.id}: {str(e)}")

        rows = PaperService.mcq_key_rows(paper)
        if not rows:
            return
        try:
            paper.paper_key = storage.upload(
                settings.KEYS_BUCKET,
                f"{paper.created_by}/{paper.id}_key.pdf",
                pdf.render_mcq_key(paper, rows),
                "application/pdf",
            )
        except Exception as e:
            logger.warning(f"Failed to save MCQ key for paper {paper.id}: {str(e)}")

    @staticmethod
    def prune_stored_papers(user_id: int, db: Session) -> int:
        """Keep only the newest stored PDFs of a user; older rows lose their file."""
        stored = db.query(Paper).filter(
            Paper.created_by == user_id,
            Paper.paper_pdf.isnot(None)
        ).order_by(Paper.created_at.desc(), Paper.id.desc()).all()
        removed = 0
        for old in stored[settings.MAX_STORED_PAPERS:]:
            try:
                storage.delete(old.paper_pdf)
            except Exception as e:
                logger.warning(f"Could not delete old PDF of paper {old.id}: {str(e)}")
            old.paper_pdf = None
            removed += 1
        if removed:
            db.commit()
            logger.info(f"Removed {removed} stored PDFs of user {user_id}")
        return removed

    @staticmethod
    def mcq_key_rows(paper: Paper) -> List[Tuple[int, str]]:
        groups = group_by_type(paper.questions)
        return [(index, pq.question.correct_option) for index, pq in enumerate(groups.get("mcq", []), start=1)]

    @staticmethod
    def get_owned_paper(paper_id: int, profile: Profile, db: Session) -> Paper:
        paper = db.query(Paper).options(
            joinedload(Paper.questions).joinedload(PaperQuestion.question)
        ).filter(Paper.id == paper_id).first()
        if not paper:
            raise HTTPException(status_code=404, detail="Paper not found")
        if paper.created_by != profile.id and not profile.is_admin:
            raise HTTPException(status_code=403, detail="Forbidden")
        return paper

    @staticmethod
    def list_papers(profile: Profile, db: Session) -> List[PaperResponse]:
        papers = db.query(Paper).filter(Paper.created_by == profile.id).order_by(
            Paper.created_at.desc(), Paper.id.desc()
        ).all()
        return [PaperResponse.from_orm(p) for p in papers]

    @staticmethod
    def download(paper_id: int, profile: Profile, db: Session) -> Tuple[Paper, bytes]:
        """Stored PDF when there is one, otherwise a fresh rendering."""
        paper = PaperService.get_owned_paper(paper_id, profile, db)
        if paper.paper_pdf:
            try:
                stored = storage.read(paper.paper_pdf)
            except Exception as e:
                logger.warning(f"Could not read stored PDF of paper {paper.id}: {str(e)}")
                stored = None
            if stored:
                return paper, stored
        marks = dict(settings.DEFAULT_TYPE_MARKS)
        marks.update({"mcq": 1, "short": 2, "long": 5})
        marks.update(paper.type_marks or {})
        pdf_bytes = pdf.render_paper(
            paper,
            PaperService.sections_for(paper, paper.to_attempt or {}, marks),
            institution=profile.institution,
            logo=PaperService.load_logo(profile),
            watermark=not SubscriptionService.is_paid_user(profile.id, db),
        )
        return paper, pdf_bytes

    @staticmethod
    def mcq_key(paper_id: int, profile: Profile, db: Session) -> Tuple[Paper, bytes]:
        paper = PaperService.get_owned_paper(paper_id, profile, db)
        rows = PaperService.mcq_key_rows(paper)
        if not rows:
            raise HTTPException(status_code=400, detail="This paper has no MCQs")
        return paper, pdf.render_mcq_key(paper, rows)

    @staticmethod
    def delete_files(paper_id: int, profile: Profile, db: Session) -> dict:
        """Remove a paper's stored PDF and key; the paper row stays."""
        paper = PaperService.get_owned_paper(paper_id, profile, db)
        for url in (paper.paper_pdf, paper.paper_key):
            if not url:
                continue
            try:
                storage.delete(url)
            except Exception as e:
                logger.error(f"Error deleting {url} of paper {paper.id}: {str(e)}")
        paper.paper_pdf = None
        paper.paper_key = None
        db.commit()
        return {"success": True, "message": "Paper deleted successfully"}

    @staticmethod
    def questions_for_selection(
            subject_id: int,
            class_id: int,
            chapter_ids: Optional[List[int]],
            source_type: Optional[str],
            difficulty: Optional[str],
            db: Session
    ) -> Dict[str, List[QuestionResponse]]:
        """Candidate questions grouped by type, for picking a paper by hand."""
        allowed = [row[0] for row in db.query(Chapter.id).filter(
            Chapter.subject_id == subject_id, Chapter.class_id == class_id
        ).all()]
        if chapter_ids:
            allowed = [cid for cid in allowed if cid in set(chapter_ids)]
        if not allowed:
            return {}
        source_type = SOURCE_TYPE_ALIASES.get(source_type, source_type)
        query = db.query(Question).options(joinedload(Question.chapter)).filter(
            Question.subject_id == subject_id,
            Question.chapter_id.in_(allowed)
        )
        if source_type and source_type != "all":
            query = query.filter(Question.source_type == source_type)
        if difficulty and difficulty != "any":
            query = query.filter(Question.difficulty == difficulty)

        grouped: Dict[str, List[QuestionResponse]] = {}
        for question in query.order_by(Question.id.asc()).all():
            grouped.setdefault(question.question_type, []).append(QuestionResponse.from_orm(question))
        return grouped
