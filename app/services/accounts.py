import logging
from typing import Optional

from fastapi import HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from app.auth.utils import get_password_hash
from app.models import Admin, Lawyer
from app.services.media import MediaStore, read_upload

logger = logging.getLogger(__name__)

LOGO_EXTENSIONS = {".jpeg", ".jpg", ".png"}
LOGO_MAX_SIZE = 5 * 1024 * 1024
LOGO_FOLDER = "logos"

LAWYER_REQUIRED_FIELDS = ("nom", "prenom", "email", "telephone", "adresse", "ville")


def ensure_email_available(db: Session, email: Optional[str], exclude_id: Optional[str] = None) -> None:
    """Lawyer and admin accounts share one login namespace."""
    if not email:
        return
    lawyer_query = db.query(Lawyer).filter(Lawyer.email == email)
    admin_query = db.query(Admin).filter(Admin.email == email)
    if exclude_id:
        lawyer_query = lawyer_query.filter(Lawyer.id != exclude_id)
        admin_query = admin_query.filter(Admin.id != exclude_id)
    if lawyer_query.first() or admin_query.first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")


def get_lawyer(db: Session, lawyer_id: str) -> Lawyer:
    lawyer = db.query(Lawyer).filter(Lawyer.id == lawyer_id).first()
    if not lawyer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Avocat not found")
    return lawyer


def build_lawyer(data: dict) -> Lawyer:
    for field in LAWYER_REQUIRED_FIELDS + ("password",):
        if not data.get(field):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} is required")
    if len(data["password"]) < 6:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Password must be at least 6 characters")
    password = data.pop("password")
    return Lawyer(password_hash=get_password_hash(password), **data)


def apply_lawyer_update(lawyer: Lawyer, update_data: dict) -> None:
    for field, value in update_data.items():
        if value is None:
            continue
        if field in LAWYER_REQUIRED_FIELDS and value == "":
            continue
        setattr(lawyer, field, value)


async def replace_logo(media: MediaStore, lawyer: Lawyer, logo: Optional[UploadFile]) -> None:
    """Store a new logo and destroy the one it replaces."""
    if logo is None or not logo.filename:
        return
    content = await read_upload(logo, LOGO_EXTENSIONS, LOGO_MAX_SIZE)
    stored = await media.upload(content, LOGO_FOLDER, logo.filename)
    if lawyer.logo_public_id:
        media.destroy(lawyer.logo_public_id)
    lawyer.logo = stored["url"]
    lawyer.logo_public_id = stored["public_id"]


def drop_logo(media: MediaStore, lawyer: Lawyer) -> None:
    if lawyer.logo_public_id:
        media.destroy(lawyer.logo_public_id)
