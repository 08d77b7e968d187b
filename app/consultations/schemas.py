from pydantic import BaseModel, Field
from typing import Optional
import datetime
from app.models import ConsultationPaymentMode, ScheduleStatus

class ConsultationCreate(BaseModel):
    date: datetime.date
    heure_debut: str
    heure_fin: str
    client_id: str
    status: Optional[ScheduleStatus] = None
    affaire_id: Optional[str] = None
    notes: Optional[str] = None
    montant: Optional[float] = Field(None, ge=0)
    mode_paiement: Optional[ConsultationPaymentMode] = None

class ConsultationUpdate(BaseModel):
    date: Optional[datetime.date] = None
    heure_debut: Optional[str] = None
    heure_fin: Optional[str] = None
    client_id: Optional[str] = None
    status: Optional[ScheduleStatus] = None
    affaire_id: Optional[str] = None
    notes: Optional[str] = None
    montant: Optional[float] = Field(None, ge=0)
    mode_paiement: Optional[ConsultationPaymentMode] = None
