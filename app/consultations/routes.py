import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from app.auth.dependencies import get_current_lawyer
from app.consultations.schemas import ConsultationCreate, ConsultationUpdate
from app.database import get_db
from app.models import Client, Consultation, Lawyer, ScheduleStatus
from app.services.scheduling import ScheduleService, resolve_case, resolve_client_by_id
from app.utils import paginate, validate_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/consultations", tags=["Consultations"])


def format_consultation(consultation: Consultation) -> dict:
    return {
        "id": consultation.id,
        "date_debut": consultation.date.isoformat(),
        "heure_debut": consultation.heure_debut,
        "heure_fin": consultation.heure_fin,
        "client_id": {"id": consultation.client.id, "nom": consultation.client.nom} if consultation.client else None,
        "affaire_id": (
            {"id": consultation.case.id, "case_number": consultation.case.case_number}
            if consultation.case else None
        ),
        "status": consultation.status.value,
        "montant": consultation.montant,
        "mode_paiement": consultation.mode_paiement.value if consultation.mode_paiement else None,
        "notes": consultation.notes or "",
    }


def format_consultation_conflict(consultation: Consultation) -> dict:
    return {
        "id": consultation.id,
        "client": consultation.client.nom if consultation.client else "Unknown Client",
        "date_debut": consultation.date.isoformat(),
        "heure_debut": consultation.heure_debut,
        "heure_fin": consultation.heure_fin,
    }


def consultations_query(db: Session, lawyer: Lawyer):
    return (
        db.query(Consultation)
        .options(joinedload(Consultation.client), joinedload(Consultation.case))
        .filter(Consultation.avocat_id == lawyer.id)
    )


def get_owned_consultation(db: Session, consultation_id: str, lawyer: Lawyer) -> Consultation:
    validate_id(consultation_id, "consultation ID")
    consultation = consultations_query(db, lawyer).filter(Consultation.id == consultation_id).first()
    if not consultation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Consultation not found or not authorized")
    return consultation


@router.get("/")
async def list_consultations(
    search: Optional[str] = None,
    page: Optional[int] = Query(None, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    query = consultations_query(db, current_lawyer)
    if search:
        query = query.outerjoin(Client, Client.id == Consultation.client_id).filter(
            or_(Client.nom.ilike(f"%{search}%"), Consultation.notes.ilike(f"%{search}%"))
        )
    query = query.order_by(Consultation.date.desc(), Consultation.heure_debut)

    if page is not None:
        return paginate(query, page, limit, format_consultation)
    return [format_consultation(c) for c in query.all()]


@router.get("/{consultation_id}")
async def get_consultation(
    consultation_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    return format_consultation(get_owned_consultation(db, consultation_id, current_lawyer))


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_consultation(
    consultation_data: ConsultationCreate,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    client = resolve_client_by_id(db, current_lawyer, consultation_data.client_id)
    case = resolve_case(db, current_lawyer, consultation_data.affaire_id)

    ScheduleService(db, Consultation).ensure_available(
        current_lawyer.id,
        consultation_data.date,
        consultation_data.heure_debut,
        consultation_data.heure_fin,
        "Conflict with existing consultation",
        format_consultation_conflict,
    )

    consultation = Consultation(
        date=consultation_data.date,
        heure_debut=consultation_data.heure_debut,
        heure_fin=consultation_data.heure_fin,
        status=consultation_data.status or ScheduleStatus.PENDING,
        avocat_id=current_lawyer.id,
        client_id=client.id,
        affaire_id=case.id if case else None,
        notes=consultation_data.notes or "",
        montant=consultation_data.montant,
        mode_paiement=consultation_data.mode_paiement,
    )
    db.add(consultation)
    db.commit()
    logger.info(f"Consultation {consultation.id} created for avocat {current_lawyer.id}")
    return format_consultation(get_owned_consultation(db, consultation.id, current_lawyer))


@router.put("/{consultation_id}")
async def update_consultation(
    consultation_id: str,
    consultation_update: ConsultationUpdate,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    consultation = get_owned_consultation(db, consultation_id, current_lawyer)
    update_data = consultation_update.model_dump(exclude_unset=True)

    if update_data.get("client_id"):
        consultation.client_id = resolve_client_by_id(db, current_lawyer, update_data["client_id"]).id
    if "affaire_id" in update_data:
        case = resolve_case(db, current_lawyer, update_data["affaire_id"])
        consultation.affaire_id = case.id if case else None

    for field in ("date", "heure_debut", "heure_fin", "status"):
        if update_data.get(field) is not None:
            setattr(consultation, field, update_data[field])
    for field in ("notes", "montant", "mode_paiement"):
        if field in update_data:
            setattr(consultation, field, update_data[field])

    ScheduleService(db, Consultation).ensure_available(
        current_lawyer.id,
        consultation.date,
        consultation.heure_debut,
        consultation.heure_fin,
        "Conflict with existing consultation",
        format_consultation_conflict,
        exclude_id=consultation.id,
    )

    db.commit()
    db.expire_all()
    return format_consultation(get_owned_consultation(db, consultation.id, current_lawyer))


@router.delete("/{consultation_id}")
async def delete_consultation(
    consultation_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    consultation = get_owned_consultation(db, consultation_id, current_lawyer)
    db.delete(consultation)
    db.commit()
    logger.info(f"Consultation {consultation_id} deleted")
    return {"message": "Consultation deleted"}
