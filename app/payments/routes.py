import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import desc, or_
from sqlalchemy.orm import Session, joinedload

from app.auth.dependencies import get_current_lawyer
from app.database import get_db
from app.models import Client, Consultation, Lawyer, Payment, PaymentStatus
from app.payments.schemas import PaymentCreate, PaymentUpdate
from app.services.scheduling import resolve_case, resolve_client_by_id
from app.utils import paginate, validate_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/paiements", tags=["Paiements"])

MISSING_CLIENT = "غير متوفر"


def format_payment(payment: Payment) -> dict:
    return {
        "id": payment.id,
        "montant_total": payment.montant_total,
        "paid_amount": payment.paid_amount,
        "mode_paiement": payment.mode_paiement.value,
        "statut": payment.statut.value,
        "description": payment.description,
        "client_id": (
            {"id": payment.client.id, "nom": payment.client.nom}
            if payment.client else {"id": payment.client_id, "nom": MISSING_CLIENT}
        ),
        "affaire_id": {"id": payment.case.id, "case_number": payment.case.case_number} if payment.case else None,
        "consultation_id": (
            {
                "id": payment.consultation.id,
                "date_debut": payment.consultation.date.isoformat(),
                "heure_debut": payment.consultation.heure_debut,
            }
            if payment.consultation else None
        ),
        "avocat_id": payment.avocat_id,
        "date_creation": payment.date_creation,
    }


def payments_query(db: Session, lawyer: Lawyer):
    return (
        db.query(Payment)
        .options(
            joinedload(Payment.client),
            joinedload(Payment.case),
            joinedload(Payment.consultation),
        )
        .filter(Payment.avocat_id == lawyer.id)
    )


def get_owned_payment(db: Session, payment_id: str, lawyer: Lawyer) -> Payment:
    validate_id(payment_id, "paiement ID")
    payment = payments_query(db, lawyer).filter(Payment.id == payment_id).first()
    if not payment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Paiement not found or not authorized")
    return payment


def resolve_consultation(db: Session, lawyer: Lawyer, consultation_id: Optional[str]) -> Optional[str]:
    if not consultation_id:
        return None
    validate_id(consultation_id, "consultation_id")
    exists = db.query(Consultation.id).filter(
        Consultation.id == consultation_id,
        Consultation.avocat_id == lawyer.id,
    ).first()
    if not exists:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Consultation not found or not authorized")
    return consultation_id


@router.get("/")
async def list_payments(
    search: Optional[str] = None,
    page: Optional[int] = Query(None, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    query = payments_query(db, current_lawyer)
    if search:
        query = query.outerjoin(Client, Client.id == Payment.client_id).filter(
            or_(Client.nom.ilike(f"%{search}%"), Payment.description.ilike(f"%{search}%"))
        )
    query = query.order_by(desc(Payment.date_creation))

    if page is not None:
        return paginate(query, page, limit, format_payment)
    return [format_payment(p) for p in query.all()]


@router.get("/{payment_id}")
async def get_payment(
    payment_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    return format_payment(get_owned_payment(db, payment_id, current_lawyer))


@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_payment(
    payment_data: PaymentCreate,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    client = resolve_client_by_id(db, current_lawyer, payment_data.client_id)
    case = resolve_case(db, current_lawyer, payment_data.affaire_id)
    consultation_id = resolve_consultation(db, current_lawyer, payment_data.consultation_id)

    payment = Payment(
        montant_total=payment_data.paid_amount,
        paid_amount=payment_data.paid_amount,
        mode_paiement=payment_data.mode_paiement,
        statut=payment_data.statut or PaymentStatus.PENDING,
        description=payment_data.description,
        client_id=client.id,
        avocat_id=current_lawyer.id,
        affaire_id=case.id if case else None,
        consultation_id=consultation_id,
    )
    db.add(payment)
    db.commit()
    logger.info(f"Paiement {payment.id} created for avocat {current_lawyer.id}")
    return format_payment(get_owned_payment(db, payment.id, current_lawyer))


@router.put("/{payment_id}")
async def update_payment(
    payment_id: str,
    payment_update: PaymentUpdate,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    payment = get_owned_payment(db, payment_id, current_lawyer)
    update_data = payment_update.model_dump(exclude_unset=True)

    if update_data.get("client_id"):
        payment.client_id = resolve_client_by_id(db, current_lawyer, update_data["client_id"]).id
    if "affaire_id" in update_data:
        case = resolve_case(db, current_lawyer, update_data["affaire_id"])
        payment.affaire_id = case.id if case else None
    if "consultation_id" in update_data:
        payment.consultation_id = resolve_consultation(db, current_lawyer, update_data["consultation_id"])

    if update_data.get("paid_amount") is not None:
        payment.paid_amount = update_data["paid_amount"]
        payment.montant_total = update_data["paid_amount"]
    for field in ("mode_paiement", "statut"):
        if update_data.get(field) is not None:
            setattr(payment, field, update_data[field])
    if "description" in update_data:
        payment.description = update_data["description"]

    db.commit()
    db.expire_all()
    return format_payment(get_owned_payment(db, payment.id, current_lawyer))


@router.delete("/{payment_id}")
async def delete_payment(
    payment_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    payment = get_owned_payment(db, payment_id, current_lawyer)
    db.delete(payment)
    db.commit()
    logger.info(f"Paiement {payment_id} deleted")
    return {"message": "Paiement deleted successfully"}
