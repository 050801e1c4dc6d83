# src/contact/routes.py
from fastapi import APIRouter, Body, Request
from fastapi.responses import JSONResponse
from contact.services import ContactService

router = APIRouter(prefix="/api", tags=["contact"])

@router.post("/contact")
def contact(request: Request, payload: dict = Body(...)):
    """Store a contact form submission."""
    data, error = ContactService.parse(payload)
    if error:
        return JSONResponse(status_code=400, content={"message": error})
    client_ip = request.headers.get("x-forwarded-for") or request.headers.get("x-real-ip") or (
        request.client.host if request.client else None
    )
    return ContactService.submit(data, client_ip)

@router.get("/contact")
def contact_status():
    return ContactService.status()
