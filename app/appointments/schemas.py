from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum
import datetime
from app.models import RecurrenceFrequency, ScheduleStatus

class AppointmentType(str, Enum):
    CONSULTATION = "consultation"
    MEETING = "meeting"

class AppointmentCreate(BaseModel):
    client: str = Field(..., min_length=1)
    type: AppointmentType
    aff: Optional[str] = None
    date: datetime.date
    heure_debut: str
    heure_fin: str
    location: str = Field(..., min_length=1)
    status: Optional[ScheduleStatus] = None
    notes: Optional[str] = None
    recurrence_frequency: RecurrenceFrequency = RecurrenceFrequency.NONE
    recurrence_end_date: Optional[datetime.date] = None
    affaire_id: Optional[str] = None

class AppointmentUpdate(BaseModel):
    client: Optional[str] = Field(None, min_length=1)
    type: Optional[AppointmentType] = None
    aff: Optional[str] = None
    date: Optional[datetime.date] = None
    heure_debut: Optional[str] = None
    heure_fin: Optional[str] = None
    location: Optional[str] = None
    status: Optional[ScheduleStatus] = None
    notes: Optional[str] = None
    recurrence_frequency: Optional[RecurrenceFrequency] = None
    recurrence_end_date: Optional[datetime.date] = None
    affaire_id: Optional[str] = None
