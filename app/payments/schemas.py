from pydantic import BaseModel, Field
from typing import Optional
from app.models import PaymentMode, PaymentStatus

class PaymentCreate(BaseModel):
    client_id: str
    paid_amount: float = Field(..., ge=0)
    mode_paiement: PaymentMode
    statut: Optional[PaymentStatus] = None
    description: Optional[str] = None
    affaire_id: Optional[str] = None
    consultation_id: Optional[str] = None

class PaymentUpdate(BaseModel):
    client_id: Optional[str] = None
    paid_amount: Optional[float] = Field(None, ge=0)
    mode_paiement: Optional[PaymentMode] = None
    statut: Optional[PaymentStatus] = None
    description: Optional[str] = None
    affaire_id: Optional[str] = None
    consultation_id: Optional[str] = None
