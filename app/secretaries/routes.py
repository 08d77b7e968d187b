import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import desc, or_
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_lawyer
from app.auth.utils import get_password_hash
from app.database import get_db
from app.models import Lawyer, Secretary
from app.secretaries.schemas import SecretaryCreate, SecretaryResponse, SecretaryUpdate
from app.utils import paginate, validate_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/secretaires", tags=["Secretaires"])

REQUIRED_FIELDS = ("nom", "prenom", "telephone", "adresse", "ville", "email")


def serialize_secretary(secretary: Secretary) -> dict:
    return SecretaryResponse.model_validate(secretary).model_dump()


def ensure_unique_email(db: Session, email: Optional[str], exclude_id: Optional[str] = None) -> None:
    if not email:
        return
    query = db.query(Secretary).filter(Secretary.email == email)
    if exclude_id:
        query = query.filter(Secretary.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")


def apply_secretary_update(secretary: Secretary, update_data: dict) -> None:
    """Merge a partial update; the password is re-hashed only when provided."""
    password = update_data.pop("password", None)
    for field, value in update_data.items():
        if value is None and field in REQUIRED_FIELDS:
            continue
        setattr(secretary, field, value)
    if password:
        secretary.password_hash = get_password_hash(password)


def get_owned_secretary(db: Session, secretary_id: str, lawyer: Lawyer) -> Secretary:
    validate_id(secretary_id, "secretaire ID")
    secretary = db.query(Secretary).filter(
        Secretary.id == secretary_id,
        Secretary.avocat_id == lawyer.id,
    ).first()
    if not secretary:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Secretaire not found")
    return secretary


@router.get("/")
async def list_secretaries(
    search: Optional[str] = None,
    page: Optional[int] = Query(None, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    query = db.query(Secretary).filter(Secretary.avocat_id == current_lawyer.id)
    if search:
        query = query.filter(or_(
            Secretary.nom.ilike(f"%{search}%"),
            Secretary.prenom.ilike(f"%{search}%"),
            Secretary.email.ilike(f"%{search}%"),
        ))
    query = query.order_by(desc(Secretary.created_at))
    if page is not None:
        return paginate(query, page, limit, serialize_secretary)
    return [serialize_secretary(secretary) for secretary in query.all()]


@router.get("/{secretary_id}", response_model=SecretaryResponse)
async def get_secretary(
    secretary_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    return get_owned_secretary(db, secretary_id, current_lawyer)


@router.post("/", response_model=SecretaryResponse, status_code=status.HTTP_201_CREATED)
async def create_secretary(
    secretary_data: SecretaryCreate,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    ensure_unique_email(db, secretary_data.email)
    data = secretary_data.model_dump(exclude={"password"})
    secretary = Secretary(
        avocat_id=current_lawyer.id,
        password_hash=get_password_hash(secretary_data.password),
        **data
    )
    db.add(secretary)
    db.commit()
    db.refresh(secretary)
    logger.info(f"Secretaire {secretary.id} created for avocat {current_lawyer.id}")
    return secretary


@router.put("/{secretary_id}", response_model=SecretaryResponse)
async def update_secretary(
    secretary_id: str,
    secretary_update: SecretaryUpdate,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    secretary = get_owned_secretary(db, secretary_id, current_lawyer)
    update_data = secretary_update.model_dump(exclude_unset=True)
    ensure_unique_email(db, update_data.get("email"), exclude_id=secretary.id)
    apply_secretary_update(secretary, update_data)
    db.commit()
    db.refresh(secretary)
    logger.info(f"Secretaire {secretary.id} updated")
    return secretary


@router.delete("/{secretary_id}")
async def delete_secretary(
    secretary_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    secretary = get_owned_secretary(db, secretary_id, current_lawyer)
    db.delete(secretary)
    db.commit()
    logger.info(f"Secretaire {secretary_id} deleted")
    return {"message": "Secretaire deleted successfully"}
