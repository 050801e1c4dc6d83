# src/contact/services.py
import json
import logging
import os
import re
import time

from datetime import datetime
from typing import Optional, Tuple
from pydantic import ValidationError
from contact.schemas import ContactRequest
from config import settings

logger = logging.getLogger(__name__)

MISSING_FIELDS_MESSAGE = "All required fields must be filled"
INVALID_EMAIL_MESSAGE = "Invalid email format"
SEPARATOR = "=" * 40

class ContactService:
    @staticmethod
    def parse(payload: dict) -> Tuple[Optional[ContactRequest], Optional[str]]:
        """Validated submission, or the error message to send back."""
        try:
            return ContactRequest.model_validate(payload), None
        except ValidationError as e:
            errors = e.errors()
            if any(err["type"] in ("missing", "blank") for err in errors):
                return None, MISSING_FIELDS_MESSAGE
            if any(err["loc"] and err["loc"][0] == "email" for err in errors):
                return None, INVALID_EMAIL_MESSAGE
            return None, MISSING_FIELDS_MESSAGE

    @staticmethod
    def submit(data: ContactRequest, client_ip: Optional[str] = None) -> dict:
        """Persist a submission as JSON plus a line in the text log.

        Storage problems are logged; the sender always gets the confirmation.
        """
        now = datetime.utcnow()
        received_at = now.strftime("%m/%d/%Y, %I:%M:%S %p")
        submission = {
            "name": data.name,
            "email": str(data.email),
            "phone": data.phone,
            "userType": data.userType,
            "subject": data.subject,
            "message": data.message,
            "timestamp": now.isoformat() + "Z",
            "receivedAt": received_at,
            "ip": client_ip or "unknown",
        }
        logger.info(f"Contact form submission from {submission['email']} ({data.userType}): {data.subject}")

        directory = settings.CONTACT_SUBMISSIONS_DIR
        try:
            os.makedirs(directory, exist_ok=True)
            filename = f"contact-{int(time.time() * 1000)}-{re.sub(r'[^A-Za-z0-9_-]+', '-', data.name)}.json"
            with open(os.path.join(directory, filename), "w", encoding="utf-8") as f:
                json.dump(submission, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.warning(f"Could not save contact submission to file: {str(e)}")

        try:
            entry = (
                f"\n{SEPARATOR}\nNEW CONTACT FORM SUBMISSION\n"
                f"Timestamp: {received_at}\nName: {data.name}\nEmail: {submission['email']}\n"
                f"Phone: {data.phone or 'Not provided'}\nUser Type: {data.userType}\n"
                f"Subject: {data.subject}\nMessage:\n{data.message}\n{SEPARATOR}\n"
            )
            with open(os.path.join(directory, "contact-log.txt"), "a", encoding="utf-8") as f:
                f.write(entry)
        except OSError as e:
            logger.warning(f"Could not write contact log: {str(e)}")

        return {
            "success": True,
            "message": "Thank you for your message! We have received your inquiry and will contact you within 24 hours.",
            "contactEmail": settings.CONTACT_EMAIL,
            "contactPhone": settings.CONTACT_PHONE,
        }

    @staticmethod
    def status() -> dict:
        return {
            "status": "Contact API is working",
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "features": ["JSON file storage", "Text log file", "Input validation"],
        }
