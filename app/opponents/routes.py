import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, validator
from sqlalchemy import desc, or_
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_lawyer
from app.database import get_db
from app.models import Lawyer, Opponent
from app.utils import blank_to_none, validate_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/adversaires", tags=["Adversaires"])


class OpponentCreate(BaseModel):
    nom: str = Field(..., min_length=1)
    cin: Optional[str] = None
    telephone: Optional[str] = None
    adresse: Optional[str] = None

    @validator("cin")
    def blank_cin(cls, v):
        return blank_to_none(v)

class OpponentUpdate(BaseModel):
    nom: Optional[str] = Field(None, min_length=1)
    cin: Optional[str] = None
    telephone: Optional[str] = None
    adresse: Optional[str] = None

    @validator("cin")
    def blank_cin(cls, v):
        return blank_to_none(v)

class OpponentResponse(BaseModel):
    id: str
    nom: str
    cin: Optional[str] = None
    telephone: Optional[str] = None
    adresse: Optional[str] = None

    class Config:
        from_attributes = True


def get_opponent(db: Session, opponent_id: str) -> Opponent:
    validate_id(opponent_id, "adversaire ID")
    opponent = db.query(Opponent).filter(Opponent.id == opponent_id).first()
    if not opponent:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Adversaire not found")
    return opponent


def ensure_unique_cin(db: Session, cin: Optional[str], exclude_id: Optional[str] = None) -> None:
    if not cin:
        return
    query = db.query(Opponent).filter(Opponent.cin == cin)
    if exclude_id:
        query = query.filter(Opponent.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="An adversaire with this CIN already exists")


@router.get("/", response_model=List[OpponentResponse])
async def list_opponents(
    search: Optional[str] = None,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    query = db.query(Opponent)
    if search:
        query = query.filter(or_(Opponent.nom.ilike(f"%{search}%"), Opponent.cin.ilike(f"%{search}%")))
    return query.order_by(desc(Opponent.created_at)).all()


@router.get("/{opponent_id}", response_model=OpponentResponse)
async def get_opponent_by_id(
    opponent_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    return get_opponent(db, opponent_id)


@router.post("/", response_model=OpponentResponse, status_code=status.HTTP_201_CREATED)
async def create_opponent(
    opponent_data: OpponentCreate,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    ensure_unique_cin(db, opponent_data.cin)
    opponent = Opponent(**opponent_data.model_dump())
    db.add(opponent)
    db.commit()
    db.refresh(opponent)
    logger.info(f"Adversaire {opponent.id} created")
    return opponent


@router.put("/{opponent_id}", response_model=OpponentResponse)
async def update_opponent(
    opponent_id: str,
    opponent_update: OpponentUpdate,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    opponent = get_opponent(db, opponent_id)
    update_data = opponent_update.model_dump(exclude_unset=True)
    if "cin" in update_data:
        ensure_unique_cin(db, update_data["cin"], exclude_id=opponent.id)
    for field, value in update_data.items():
        if field == "nom" and value is None:
            continue
        setattr(opponent, field, value)
    db.commit()
    db.refresh(opponent)
    return opponent


@router.delete("/{opponent_id}")
async def delete_opponent(
    opponent_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    opponent = get_opponent(db, opponent_id)
    db.delete(opponent)
    db.commit()
    logger.info(f"Adversaire {opponent_id} deleted")
    return {"message": "Adversaire deleted successfully"}
