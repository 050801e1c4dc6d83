# src/papers/routes.py
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session
from typing import List, Optional
from papers.services import PaperService, safe_filename
from papers.schemas import PaperGenerationRequest, PaperResponse, McqKeyRequest, DeletePaperRequest
from catalog.routes import parse_ids
from auth.routes import get_current_profile
from database import get_db
from profiles.models import Profile

router = APIRouter(prefix="/api", tags=["papers"])

def pdf_response(data: bytes, filename: str, paper_id: int) -> Response:
    return Response(
        content=data,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}.pdf"',
            "X-Paper-Id": str(paper_id),
        },
    )

@router.post("/generate-paper")
def generate_paper(
    data: PaperGenerationRequest,
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile)
):
    """Generate a paper and return it as a PDF attachment."""
    paper, pdf_bytes = PaperService.generate(data, current_profile, db)
    return pdf_response(pdf_bytes, safe_filename(paper.title), paper.id)

@router.get("/generate-paper")
def questions_for_manual_selection(
    subjectId: Optional[int] = None,
    classId: Optional[int] = None,
    chapterIds: Optional[str] = None,
    sourceType: Optional[str] = None,
    difficulty: Optional[str] = None,
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile)
):
    if subjectId is None or classId is None:
        raise HTTPException(status_code=400, detail="Subject ID and Class ID are required")
    return PaperService.questions_for_selection(
        subjectId, classId, parse_ids(chapterIds, "chapterIds"), sourceType, difficulty, db
    )

@router.get("/papers", response_model=List[PaperResponse])
def list_papers(db: Session = Depends(get_db), current_profile: Profile = Depends(get_current_profile)):
    return PaperService.list_papers(current_profile, db)

@router.get("/download-paper/{paper_id}")
def download_paper(
    paper_id: int,
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile)
):
    paper, pdf_bytes = PaperService.download(paper_id, current_profile, db)
    return pdf_response(pdf_bytes, safe_filename(paper.title), paper.id)

@router.post("/generate-mcq-key")
def generate_mcq_key(
    data: McqKeyRequest,
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile)
):
    paper, pdf_bytes = PaperService.mcq_key(data.paperId, current_profile, db)
    return pdf_response(pdf_bytes, f"{safe_filename(paper.title)}_key", paper.id)

@router.post("/papers/delete")
def delete_paper(
    data: DeletePaperRequest,
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile)
):
    """Delete the stored files of a paper."""
    return PaperService.delete_files(data.paperId, current_profile, db)
