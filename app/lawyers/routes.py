import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import BaseModel, Field
from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_lawyer, get_current_principal
from app.auth.schemas import LawyerResponse, TokenData
from app.auth.utils import get_password_hash, verify_password
from app.database import get_db
from app.models import Lawyer
from app.services.accounts import (
    apply_lawyer_update, build_lawyer, drop_logo, ensure_email_available, get_lawyer, replace_logo
)
from app.services.media import MediaStore, get_media_store
from app.utils import validate_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/avocats", tags=["Avocats"])


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


def ensure_self(lawyer_id: str, current_lawyer: Lawyer) -> None:
    validate_id(lawyer_id, "avocat ID")
    if lawyer_id != current_lawyer.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only modify your own profile")


@router.get("/", response_model=List[LawyerResponse])
async def list_lawyers(
    principal: TokenData = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    return db.query(Lawyer).order_by(desc(Lawyer.created_at)).all()


@router.get("/me", response_model=LawyerResponse)
async def get_me(current_lawyer: Lawyer = Depends(get_current_lawyer)):
    return current_lawyer


@router.put("/me/password")
async def change_password(
    payload: PasswordChange,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    if not verify_password(payload.current_password, current_lawyer.password_hash):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Incorrect current password")
    current_lawyer.password_hash = get_password_hash(payload.new_password)
    db.commit()
    logger.info(f"Password changed for avocat {current_lawyer.id}")
    return {"message": "Password updated successfully"}


@router.get("/{lawyer_id}", response_model=LawyerResponse)
async def get_lawyer_by_id(
    lawyer_id: str,
    principal: TokenData = Depends(get_current_principal),
    db: Session = Depends(get_db)
):
    validate_id(lawyer_id, "avocat ID")
    return get_lawyer(db, lawyer_id)


@router.post("/", response_model=LawyerResponse, status_code=status.HTTP_201_CREATED)
async def create_lawyer(
    nom: str = Form(...),
    prenom: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    telephone: str = Form(...),
    adresse: str = Form(...),
    ville: str = Form(...),
    specialite_juridique: Optional[str] = Form(None),
    nom_cabinet: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    principal: TokenData = Depends(get_current_principal),
    media: MediaStore = Depends(get_media_store),
    db: Session = Depends(get_db)
):
    try:
        ensure_email_available(db, email)
        lawyer = build_lawyer({
            "nom": nom,
            "prenom": prenom,
            "email": email,
            "password": password,
            "telephone": telephone,
            "adresse": adresse,
            "ville": ville,
            "specialite_juridique": specialite_juridique,
            "nom_cabinet": nom_cabinet,
        })
        await replace_logo(media, lawyer, logo)
        db.add(lawyer)
        db.commit()
        db.refresh(lawyer)
        logger.info(f"Avocat {lawyer.id} created")
        return lawyer
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("Failed to create avocat")
        raise HTTPException(status_code=500, detail=f"Failed to create avocat: {str(e)}")


@router.put("/{lawyer_id}", response_model=LawyerResponse)
async def update_lawyer(
    lawyer_id: str,
    nom: Optional[str] = Form(None),
    prenom: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    telephone: Optional[str] = Form(None),
    adresse: Optional[str] = Form(None),
    ville: Optional[str] = Form(None),
    specialite_juridique: Optional[str] = Form(None),
    nom_cabinet: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    media: MediaStore = Depends(get_media_store),
    db: Session = Depends(get_db)
):
    """Update the caller's own profile. A new logo replaces and destroys the old one."""
    ensure_self(lawyer_id, current_lawyer)
    try:
        ensure_email_available(db, email, exclude_id=current_lawyer.id)
        apply_lawyer_update(current_lawyer, {
            "nom": nom,
            "prenom": prenom,
            "email": email,
            "telephone": telephone,
            "adresse": adresse,
            "ville": ville,
            "specialite_juridique": specialite_juridique,
            "nom_cabinet": nom_cabinet,
        })
        await replace_logo(media, current_lawyer, logo)
        db.commit()
        db.refresh(current_lawyer)
        logger.info(f"Avocat {current_lawyer.id} updated")
        return current_lawyer
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("Failed to update avocat")
        raise HTTPException(status_code=500, detail=f"Failed to update avocat: {str(e)}")


@router.delete("/{lawyer_id}")
async def delete_lawyer(
    lawyer_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    media: MediaStore = Depends(get_media_store),
    db: Session = Depends(get_db)
):
    ensure_self(lawyer_id, current_lawyer)
    drop_logo(media, current_lawyer)
    db.delete(current_lawyer)
    db.commit()
    logger.info(f"Avocat {lawyer_id} deleted")
    return {"message": "Avocat deleted"}
