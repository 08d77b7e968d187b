"""Installments recorded against a payment.

Transactions carry no owner of their own; access goes through the parent
payment's ``avocat_id``.
"""
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_lawyer
from app.database import get_db
from app.models import Lawyer, Payment, PaymentTransaction, TransactionMode, TransactionType
from app.utils import validate_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/transactions-paiement", tags=["Transactions Paiement"])


class TransactionCreate(BaseModel):
    paiement_id: str
    montant: float = Field(..., ge=0)
    mode_paiement: TransactionMode
    type_transaction: TransactionType
    date_transaction: Optional[datetime] = None
    recu_pdf: Optional[str] = None

class TransactionUpdate(BaseModel):
    paiement_id: Optional[str] = None
    montant: Optional[float] = Field(None, ge=0)
    mode_paiement: Optional[TransactionMode] = None
    type_transaction: Optional[TransactionType] = None
    date_transaction: Optional[datetime] = None
    recu_pdf: Optional[str] = None

class TransactionResponse(BaseModel):
    id: str
    paiement_id: str
    montant: float
    mode_paiement: TransactionMode
    type_transaction: TransactionType
    date_transaction: Optional[datetime] = None
    recu_pdf: Optional[str] = None

    class Config:
        from_attributes = True


def owned_payment(db: Session, payment_id: str, lawyer: Lawyer) -> Payment:
    validate_id(payment_id, "paiement_id")
    payment = db.query(Payment).filter(Payment.id == payment_id, Payment.avocat_id == lawyer.id).first()
    if not payment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Paiement not found or not authorized")
    return payment


def get_owned_transaction(db: Session, transaction_id: str, lawyer: Lawyer) -> PaymentTransaction:
    validate_id(transaction_id, "transaction ID")
    transaction = (
        db.query(PaymentTransaction)
        .join(Payment, Payment.id == PaymentTransaction.paiement_id)
        .filter(PaymentTransaction.id == transaction_id, Payment.avocat_id == lawyer.id)
        .first()
    )
    if not transaction:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="TransactionPaiement not found")
    return transaction


@router.get("/", response_model=List[TransactionResponse])
async def list_transactions(
    paiement_id: Optional[str] = None,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    query = (
        db.query(PaymentTransaction)
        .join(Payment, Payment.id == PaymentTransaction.paiement_id)
        .filter(Payment.avocat_id == current_lawyer.id)
    )
    if paiement_id:
        query = query.filter(PaymentTransaction.paiement_id == validate_id(paiement_id, "paiement_id"))
    return query.order_by(desc(PaymentTransaction.date_transaction)).all()


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    return get_owned_transaction(db, transaction_id, current_lawyer)


@router.post("/", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    transaction_data: TransactionCreate,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    owned_payment(db, transaction_data.paiement_id, current_lawyer)
    values = transaction_data.model_dump(exclude_unset=True)
    if values.get("date_transaction") is None:
        values.pop("date_transaction", None)
    transaction = PaymentTransaction(**values)
    db.add(transaction)
    db.commit()
    db.refresh(transaction)
    logger.info(f"Transaction {transaction.id} recorded on paiement {transaction.paiement_id}")
    return transaction


@router.put("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(
    transaction_id: str,
    transaction_update: TransactionUpdate,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    transaction = get_owned_transaction(db, transaction_id, current_lawyer)
    update_data = transaction_update.model_dump(exclude_unset=True)
    if update_data.get("paiement_id"):
        owned_payment(db, update_data["paiement_id"], current_lawyer)

    for field, value in update_data.items():
        if value is None and field != "recu_pdf":
            continue
        setattr(transaction, field, value)
    db.commit()
    db.refresh(transaction)
    return transaction


@router.delete("/{transaction_id}")
async def delete_transaction(
    transaction_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    transaction = get_owned_transaction(db, transaction_id, current_lawyer)
    db.delete(transaction)
    db.commit()
    return {"message": "TransactionPaiement deleted"}
