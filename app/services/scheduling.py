"""Time-slot conflict detection shared by sessions, rendez-vous and consultations.

Times are zero-padded ``HH:MM`` strings, so lexicographic comparison matches
chronological order. Two slots conflict when they belong to the same lawyer,
fall on the same date and satisfy ``existing.start < new.end`` and
``existing.end > new.start``. Back-to-back slots do not conflict.
"""
import re
from datetime import date
from typing import Callable, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.models import Case, Client, Lawyer
from app.utils import validate_id

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def validate_time_range(heure_debut: str, heure_fin: str) -> None:
    for label, value in (("heure_debut", heure_debut), ("heure_fin", heure_fin)):
        if not value or not TIME_PATTERN.match(value):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid {label}: expected HH:MM"
            )
    if heure_fin <= heure_debut:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="heure_fin must be after heure_debut"
        )


class ScheduleService:
    def __init__(self, db: Session, model):
        self.db = db
        self.model = model

    def lock_owner(self, owner_id: str) -> None:
        # Serializes check-then-write per lawyer where the backend supports row locks.
        self.db.query(Lawyer.id).filter(Lawyer.id == owner_id).with_for_update().first()

    def find_conflicts(
        self,
        owner_id: str,
        day: date,
        start: str,
        end: str,
        exclude_id: Optional[str] = None
    ) -> List:
        model = self.model
        query = self.db.query(model).filter(
            model.avocat_id == owner_id,
            model.date == day,
            model.heure_debut < end,
            model.heure_fin > start,
        )
        if exclude_id:
            query = query.filter(model.id != exclude_id)
        return query.order_by(model.heure_debut).all()

    def ensure_available(
        self,
        owner_id: str,
        day: date,
        start: str,
        end: str,
        message: str,
        formatter: Callable,
        exclude_id: Optional[str] = None
    ) -> None:
        """Raise a 400 listing every overlapping record, formatted per entity."""
        validate_time_range(start, end)
        self.lock_owner(owner_id)
        conflicts = self.find_conflicts(owner_id, day, start, end, exclude_id)
        if conflicts:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "message": message,
                    "conflicts": [formatter(item) for item in conflicts],
                }
            )


def resolve_client_by_name(db: Session, lawyer: Lawyer, name: str) -> Client:
    client = db.query(Client).filter(Client.nom == name, Client.avocat_id == lawyer.id).first()
    if not client:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found or not authorized")
    return client


def resolve_client_by_id(db: Session, lawyer: Lawyer, client_id: str) -> Client:
    """Consultations reference clients by id; a bad or foreign id is a 400."""
    validate_id(client_id, "client_id")
    client = db.query(Client).filter(Client.id == client_id, Client.avocat_id == lawyer.id).first()
    if not client:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid client_id: {client_id}")
    return client


def resolve_case(db: Session, lawyer: Lawyer, affaire_id: Optional[str]) -> Optional[Case]:
    if not affaire_id or affaire_id == "null":
        return None
    validate_id(affaire_id, "affaire_id")
    case = db.query(Case).filter(Case.id == affaire_id, Case.avocat_id == lawyer.id).first()
    if not case:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Affaire not found or not authorized")
    return case


def parse_day(value: Optional[str]) -> date:
    if not value or not DATE_PATTERN.match(value):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid date format. Use YYYY-MM-DD.")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid date value. Please provide a valid date.")


def slot_bounds(day: date, heure_debut: str, heure_fin: str):
    iso_day = day.isoformat()
    return f"{iso_day}T{heure_debut}:00", f"{iso_day}T{heure_fin}:00"
