"""Join rows between cases and their clients or opponents.

Every link is scoped through its case: a lawyer only sees and edits links
whose case they own.
"""
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_lawyer
from app.database import get_db
from app.models import Case, CaseClientLink, CaseOpponentLink, Client, Lawyer, Opponent
from app.utils import validate_id

logger = logging.getLogger(__name__)

client_links_router = APIRouter(prefix="/api/affaire-clients", tags=["Affaire Clients"])
opponent_links_router = APIRouter(prefix="/api/affaire-adversaires", tags=["Affaire Adversaires"])


class CaseClientLinkCreate(BaseModel):
    affaire_id: str
    client_id: str

class CaseClientLinkUpdate(BaseModel):
    affaire_id: Optional[str] = None
    client_id: Optional[str] = None

class CaseClientLinkResponse(BaseModel):
    id: str
    affaire_id: str
    client_id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class CaseOpponentLinkCreate(BaseModel):
    affaire_id: str
    adversaire_id: str

class CaseOpponentLinkUpdate(BaseModel):
    affaire_id: Optional[str] = None
    adversaire_id: Optional[str] = None

class CaseOpponentLinkResponse(BaseModel):
    id: str
    affaire_id: str
    adversaire_id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


def owned_case(db: Session, case_id: str, lawyer: Lawyer) -> Case:
    validate_id(case_id, "affaire_id")
    case = db.query(Case).filter(Case.id == case_id, Case.avocat_id == lawyer.id).first()
    if not case:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Affaire not found or not authorized")
    return case


def owned_client(db: Session, client_id: str, lawyer: Lawyer) -> Client:
    validate_id(client_id, "client_id")
    client = db.query(Client).filter(Client.id == client_id, Client.avocat_id == lawyer.id).first()
    if not client:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found or not authorized")
    return client


def existing_opponent(db: Session, opponent_id: str) -> Opponent:
    validate_id(opponent_id, "adversaire_id")
    opponent = db.query(Opponent).filter(Opponent.id == opponent_id).first()
    if not opponent:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Adversaire not found")
    return opponent


# =====================================================
# CASE <-> CLIENT
# =====================================================

def get_client_link(db: Session, link_id: str, lawyer: Lawyer) -> CaseClientLink:
    validate_id(link_id, "link ID")
    link = (
        db.query(CaseClientLink)
        .join(Case, Case.id == CaseClientLink.affaire_id)
        .filter(CaseClientLink.id == link_id, Case.avocat_id == lawyer.id)
        .first()
    )
    if not link:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Affaire-client link not found")
    return link


def ensure_client_link_free(db: Session, affaire_id: str, client_id: str, exclude_id: Optional[str] = None) -> None:
    query = db.query(CaseClientLink).filter(
        CaseClientLink.affaire_id == affaire_id,
        CaseClientLink.client_id == client_id,
    )
    if exclude_id:
        query = query.filter(CaseClientLink.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="This client is already linked to this affaire")


@client_links_router.get("/", response_model=List[CaseClientLinkResponse])
async def list_client_links(
    affaire_id: Optional[str] = None,
    client_id: Optional[str] = None,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    query = (
        db.query(CaseClientLink)
        .join(Case, Case.id == CaseClientLink.affaire_id)
        .filter(Case.avocat_id == current_lawyer.id)
    )
    if affaire_id:
        query = query.filter(CaseClientLink.affaire_id == validate_id(affaire_id, "affaire_id"))
    if client_id:
        query = query.filter(CaseClientLink.client_id == validate_id(client_id, "client_id"))
    return query.all()


@client_links_router.get("/{link_id}", response_model=CaseClientLinkResponse)
async def get_client_link_by_id(
    link_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    return get_client_link(db, link_id, current_lawyer)


@client_links_router.post("/", response_model=CaseClientLinkResponse, status_code=status.HTTP_201_CREATED)
async def create_client_link(
    link_data: CaseClientLinkCreate,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    owned_case(db, link_data.affaire_id, current_lawyer)
    owned_client(db, link_data.client_id, current_lawyer)
    ensure_client_link_free(db, link_data.affaire_id, link_data.client_id)
    link = CaseClientLink(affaire_id=link_data.affaire_id, client_id=link_data.client_id)
    db.add(link)
    db.commit()
    db.refresh(link)
    return link


@client_links_router.put("/{link_id}", response_model=CaseClientLinkResponse)
async def update_client_link(
    link_id: str,
    link_update: CaseClientLinkUpdate,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    link = get_client_link(db, link_id, current_lawyer)
    affaire_id = link_update.affaire_id or link.affaire_id
    client_id = link_update.client_id or link.client_id
    owned_case(db, affaire_id, current_lawyer)
    owned_client(db, client_id, current_lawyer)
    ensure_client_link_free(db, affaire_id, client_id, exclude_id=link.id)
    link.affaire_id = affaire_id
    link.client_id = client_id
    db.commit()
    db.refresh(link)
    return link


@client_links_router.delete("/{link_id}")
async def delete_client_link(
    link_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    link = get_client_link(db, link_id, current_lawyer)
    db.delete(link)
    db.commit()
    return {"message": "Affaire-client link deleted successfully"}


# =====================================================
# CASE <-> OPPONENT
# =====================================================

def get_opponent_link(db: Session, link_id: str, lawyer: Lawyer) -> CaseOpponentLink:
    validate_id(link_id, "link ID")
    link = (
        db.query(CaseOpponentLink)
        .join(Case, Case.id == CaseOpponentLink.affaire_id)
        .filter(CaseOpponentLink.id == link_id, Case.avocat_id == lawyer.id)
        .first()
    )
    if not link:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Affaire-adversaire link not found")
    return link


def ensure_opponent_link_free(db: Session, affaire_id: str, adversaire_id: str, exclude_id: Optional[str] = None) -> None:
    query = db.query(CaseOpponentLink).filter(
        CaseOpponentLink.affaire_id == affaire_id,
        CaseOpponentLink.adversaire_id == adversaire_id,
    )
    if exclude_id:
        query = query.filter(CaseOpponentLink.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="This adversaire is already linked to this affaire")


@opponent_links_router.get("/", response_model=List[CaseOpponentLinkResponse])
async def list_opponent_links(
    affaire_id: Optional[str] = None,
    adversaire_id: Optional[str] = None,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    query = (
        db.query(CaseOpponentLink)
        .join(Case, Case.id == CaseOpponentLink.affaire_id)
        .filter(Case.avocat_id == current_lawyer.id)
    )
    if affaire_id:
        query = query.filter(CaseOpponentLink.affaire_id == validate_id(affaire_id, "affaire_id"))
    if adversaire_id:
        query = query.filter(CaseOpponentLink.adversaire_id == validate_id(adversaire_id, "adversaire_id"))
    return query.all()


@opponent_links_router.get("/{link_id}", response_model=CaseOpponentLinkResponse)
async def get_opponent_link_by_id(
    link_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    return get_opponent_link(db, link_id, current_lawyer)


@opponent_links_router.post("/", response_model=CaseOpponentLinkResponse, status_code=status.HTTP_201_CREATED)
async def create_opponent_link(
    link_data: CaseOpponentLinkCreate,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    owned_case(db, link_data.affaire_id, current_lawyer)
    existing_opponent(db, link_data.adversaire_id)
    ensure_opponent_link_free(db, link_data.affaire_id, link_data.adversaire_id)
    link = CaseOpponentLink(affaire_id=link_data.affaire_id, adversaire_id=link_data.adversaire_id)
    db.add(link)
    db.commit()
    db.refresh(link)
    return link


@opponent_links_router.put("/{link_id}", response_model=CaseOpponentLinkResponse)
async def update_opponent_link(
    link_id: str,
    link_update: CaseOpponentLinkUpdate,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    link = get_opponent_link(db, link_id, current_lawyer)
    affaire_id = link_update.affaire_id or link.affaire_id
    adversaire_id = link_update.adversaire_id or link.adversaire_id
    owned_case(db, affaire_id, current_lawyer)
    existing_opponent(db, adversaire_id)
    ensure_opponent_link_free(db, affaire_id, adversaire_id, exclude_id=link.id)
    link.affaire_id = affaire_id
    link.adversaire_id = adversaire_id
    db.commit()
    db.refresh(link)
    return link


@opponent_links_router.delete("/{link_id}")
async def delete_opponent_link(
    link_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    link = get_opponent_link(db, link_id, current_lawyer)
    db.delete(link)
    db.commit()
    return {"message": "Affaire-adversaire link deleted successfully"}
