import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_lawyer
from app.database import get_db
from app.models import CaseType, Lawyer
from app.utils import validate_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/types", tags=["Types"])


class SubType(BaseModel):
    name: str = Field(..., min_length=1)

class CaseTypeCreate(BaseModel):
    name: str = Field(..., min_length=1)
    sub_types: List[SubType] = []

class CaseTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    sub_types: Optional[List[SubType]] = None

class CaseTypeResponse(BaseModel):
    id: str
    name: str
    sub_types: List[SubType] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


def get_case_type(db: Session, type_id: str) -> CaseType:
    validate_id(type_id, "Type ID")
    case_type = db.query(CaseType).filter(CaseType.id == type_id).first()
    if not case_type:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Type not found")
    return case_type


def ensure_unique_name(db: Session, name: str, exclude_id: Optional[str] = None) -> None:
    query = db.query(CaseType).filter(CaseType.name == name)
    if exclude_id:
        query = query.filter(CaseType.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A type with this name already exists")


@router.get("/", response_model=List[CaseTypeResponse])
async def list_case_types(
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    return db.query(CaseType).order_by(CaseType.name).all()


@router.get("/main", response_model=List[str])
async def list_main_types(
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    """Category keys only, for the case form's first dropdown."""
    return [name for (name,) in db.query(CaseType.name).order_by(CaseType.name).all()]


@router.get("/{type_id}", response_model=CaseTypeResponse)
async def get_case_type_by_id(
    type_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    return get_case_type(db, type_id)


@router.post("/", response_model=CaseTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_case_type(
    type_data: CaseTypeCreate,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    ensure_unique_name(db, type_data.name)
    case_type = CaseType(name=type_data.name, sub_types=[sub.model_dump() for sub in type_data.sub_types])
    db.add(case_type)
    db.commit()
    db.refresh(case_type)
    logger.info(f"Case type {case_type.name} created")
    return case_type


@router.put("/{type_id}", response_model=CaseTypeResponse)
async def update_case_type(
    type_id: str,
    type_update: CaseTypeUpdate,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    case_type = get_case_type(db, type_id)
    if type_update.name is not None:
        ensure_unique_name(db, type_update.name, exclude_id=case_type.id)
        case_type.name = type_update.name
    if type_update.sub_types is not None:
        case_type.sub_types = [sub.model_dump() for sub in type_update.sub_types]
    db.commit()
    db.refresh(case_type)
    return case_type


@router.delete("/{type_id}")
async def delete_case_type(
    type_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    case_type = get_case_type(db, type_id)
    db.delete(case_type)
    db.commit()
    logger.info(f"Case type {type_id} deleted")
    return {"message": "Type deleted"}
