from pydantic import BaseModel, Field
from typing import Optional
import datetime
from app.models import ScheduleStatus

class SessionCreate(BaseModel):
    ordre: int = Field(..., ge=0)
    emplacement: str = Field(..., min_length=1)
    date: datetime.date
    heure_debut: str
    heure_fin: str
    client: str = Field(..., min_length=1)
    status: Optional[ScheduleStatus] = None
    affaire_id: Optional[str] = None
    rendez_vous_id: Optional[str] = None
    remarque: Optional[str] = None
    gouvernance: Optional[str] = None

class SessionUpdate(BaseModel):
    ordre: Optional[int] = Field(None, ge=0)
    emplacement: Optional[str] = Field(None, min_length=1)
    date: Optional[datetime.date] = None
    heure_debut: Optional[str] = None
    heure_fin: Optional[str] = None
    client: Optional[str] = Field(None, min_length=1)
    status: Optional[ScheduleStatus] = None
    affaire_id: Optional[str] = None
    rendez_vous_id: Optional[str] = None
    remarque: Optional[str] = None
    gouvernance: Optional[str] = None
