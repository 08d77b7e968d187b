import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from app.appointments.schemas import AppointmentCreate, AppointmentType, AppointmentUpdate
from app.auth.dependencies import get_current_lawyer
from app.database import get_db
from app.models import Appointment, CourtSession, Lawyer, RecurrenceFrequency, ScheduleStatus
from app.services.scheduling import ScheduleService, resolve_case, resolve_client_by_name, slot_bounds
from app.utils import paginate, validate_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/rendez-vous", tags=["Rendez-vous"])

EVENT_TYPES = {
    AppointmentType.CONSULTATION: {"label": "استشارة", "color": "#4caf50"},
    AppointmentType.MEETING: {"label": "اجتماع مع الموكل بخصوص ملف", "color": "#0288d1"},
}
DEADLINE_MARKER = "موعد نهائي"
DEADLINE_COLOR = "#7b1fa2"
DEFAULT_LOCATION = "غير محدد"


def appointment_type(appointment: Appointment) -> AppointmentType:
    return AppointmentType.MEETING if appointment.aff else AppointmentType.CONSULTATION


def parse_notes(raw: Optional[str]) -> dict:
    """Stored notes are JSON {notes, location}; older rows may hold plain text."""
    if not raw:
        return {"notes": "", "location": DEFAULT_LOCATION}
    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.warning("Failed to parse rendez-vous notes, using raw text")
        return {"notes": raw, "location": raw}
    if not isinstance(parsed, dict):
        return {"notes": raw, "location": raw}
    return {
        "notes": parsed.get("notes") or "",
        "location": parsed.get("location") or DEFAULT_LOCATION,
    }


def dump_notes(notes: Optional[str], location: Optional[str]) -> str:
    return json.dumps({"notes": notes or "", "location": location or DEFAULT_LOCATION}, ensure_ascii=False)


def format_appointment(appointment: Appointment) -> dict:
    kind = appointment_type(appointment)
    event = EVENT_TYPES[kind]
    client_name = appointment.client.nom if appointment.client else "Unknown Client"
    is_deadline = DEADLINE_MARKER in (appointment.description or "")
    start, end = slot_bounds(appointment.date, appointment.heure_debut, appointment.heure_fin)
    stored = parse_notes(appointment.notes)

    recurrence = None
    if appointment.recurrence_frequency and appointment.recurrence_frequency != RecurrenceFrequency.NONE:
        recurrence = {
            "frequency": appointment.recurrence_frequency.value,
            "endDate": appointment.recurrence_end_date.isoformat() if appointment.recurrence_end_date else None,
        }

    return {
        "id": appointment.id,
        "title": f"{client_name} - {event['label']}{f' ( الملف: {appointment.aff})' if appointment.aff else ''}",
        "start": start,
        "end": end,
        "client": client_name,
        "client_id": appointment.client_id,
        "type": kind.value,
        "aff": appointment.aff,
        "location": stored["location"],
        "status": appointment.status.value,
        "notes": stored["notes"],
        "color": DEADLINE_COLOR if is_deadline else event["color"],
        "recurrence": recurrence,
        "affaire_id": appointment.affaire_id,
    }


def format_appointment_conflict(appointment: Appointment) -> dict:
    kind = appointment_type(appointment)
    client_name = appointment.client.nom if appointment.client else "Unknown Client"
    label = DEADLINE_MARKER if DEADLINE_MARKER in (appointment.description or "") else EVENT_TYPES[kind]["label"]
    start, end = slot_bounds(appointment.date, appointment.heure_debut, appointment.heure_fin)
    return {
        "id": appointment.id,
        "title": f"{client_name} - {label}",
        "start": start,
        "end": end,
        "client": client_name,
        "type": kind.value,
    }


def appointments_query(db: Session):
    return db.query(Appointment).options(joinedload(Appointment.client))


def get_owned_appointment(db: Session, appointment_id: str, lawyer: Lawyer) -> Appointment:
    validate_id(appointment_id, "rendez-vous ID")
    appointment = appointments_query(db).filter(
        Appointment.id == appointment_id,
        Appointment.avocat_id == lawyer.id,
    ).first()
    if not appointment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="RendezVous not found or not authorized")
    return appointment


def validate_appointment(
    db: Session,
    lawyer: Lawyer,
    kind: AppointmentType,
    aff: Optional[str],
    affaire_id: Optional[str],
    frequency: RecurrenceFrequency,
    end_date
):
    """Check the meeting/case/recurrence rules and return the linked case, if any."""
    if kind == AppointmentType.MEETING and not aff:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="aff is required for meeting type")
    if frequency != RecurrenceFrequency.NONE and not end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="recurrence_end_date is required for recurring events"
        )
    case = resolve_case(db, lawyer, affaire_id)
    if case and aff and case.case_number != aff:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="aff does not match affaire case_number")
    return case

# =====================================================
# LISTINGS
# =====================================================

@router.get("/")
async def list_appointments(
    search: Optional[str] = None,
    page: Optional[int] = Query(None, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    query = appointments_query(db).filter(Appointment.avocat_id == current_lawyer.id)
    if search:
        query = query.filter(or_(
            Appointment.description.ilike(f"%{search}%"),
            Appointment.aff.ilike(f"%{search}%"),
            Appointment.notes.ilike(f"%{search}%"),
        ))
    query = query.order_by(Appointment.date, Appointment.heure_debut)

    if page is not None:
        return paginate(query, page, limit, format_appointment)
    return [format_appointment(a) for a in query.all()]

@router.get("/avocat/{avocat_id}")
async def list_appointments_by_lawyer(
    avocat_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    validate_id(avocat_id, "avocat ID")
    if avocat_id != current_lawyer.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    appointments = (
        appointments_query(db)
        .filter(Appointment.avocat_id == avocat_id)
        .order_by(Appointment.date, Appointment.heure_debut)
        .all()
    )
    return [format_appointment(a) for a in appointments]

@router.get("/client/{client_id}")
async def list_appointments_by_client(
    client_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    validate_id(client_id, "client ID")
    appointments = (
        appointments_query(db)
        .filter(Appointment.client_id == client_id, Appointment.avocat_id == current_lawyer.id)
        .order_by(Appointment.date, Appointment.heure_debut)
        .all()
    )
    return [format_appointment(a) for a in appointments]

@router.get("/{appointment_id}")
async def get_appointment(
    appointment_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    return format_appointment(get_owned_appointment(db, appointment_id, current_lawyer))

# =====================================================
# RENDEZ-VOUS CRUD OPERATIONS
# =====================================================

@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_appointment(
    appointment_data: AppointmentCreate,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    client = resolve_client_by_name(db, current_lawyer, appointment_data.client)
    case = validate_appointment(
        db,
        current_lawyer,
        appointment_data.type,
        appointment_data.aff,
        appointment_data.affaire_id,
        appointment_data.recurrence_frequency,
        appointment_data.recurrence_end_date,
    )

    ScheduleService(db, Appointment).ensure_available(
        current_lawyer.id,
        appointment_data.date,
        appointment_data.heure_debut,
        appointment_data.heure_fin,
        "Conflict with existing rendez-vous",
        format_appointment_conflict,
    )

    is_recurring = appointment_data.recurrence_frequency != RecurrenceFrequency.NONE
    appointment = Appointment(
        description=EVENT_TYPES[appointment_data.type]["label"],
        aff=appointment_data.aff if appointment_data.type == AppointmentType.MEETING else None,
        date=appointment_data.date,
        heure_debut=appointment_data.heure_debut,
        heure_fin=appointment_data.heure_fin,
        status=appointment_data.status or ScheduleStatus.PENDING,
        avocat_id=current_lawyer.id,
        client_id=client.id,
        affaire_id=case.id if case else None,
        notes=dump_notes(appointment_data.notes, appointment_data.location),
        recurrence_frequency=appointment_data.recurrence_frequency,
        recurrence_end_date=appointment_data.recurrence_end_date if is_recurring else None,
    )
    db.add(appointment)
    db.commit()
    logger.info(f"Rendez-vous {appointment.id} created for avocat {current_lawyer.id}")
    return format_appointment(get_owned_appointment(db, appointment.id, current_lawyer))

@router.put("/{appointment_id}")
async def update_appointment(
    appointment_id: str,
    appointment_update: AppointmentUpdate,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    appointment = get_owned_appointment(db, appointment_id, current_lawyer)
    update_data = appointment_update.model_dump(exclude_unset=True)

    kind = update_data.get("type") or appointment_type(appointment)
    aff = update_data["aff"] if "aff" in update_data else appointment.aff
    affaire_id = update_data["affaire_id"] if "affaire_id" in update_data else appointment.affaire_id
    frequency = update_data.get("recurrence_frequency") or appointment.recurrence_frequency
    end_date = (
        update_data["recurrence_end_date"] if "recurrence_end_date" in update_data
        else appointment.recurrence_end_date
    )
    case = validate_appointment(db, current_lawyer, kind, aff, affaire_id, frequency, end_date)

    if update_data.get("client"):
        appointment.client_id = resolve_client_by_name(db, current_lawyer, update_data["client"]).id
    for field in ("date", "heure_debut", "heure_fin", "status"):
        if update_data.get(field) is not None:
            setattr(appointment, field, update_data[field])

    stored = parse_notes(appointment.notes)
    if "notes" in update_data or "location" in update_data:
        appointment.notes = dump_notes(
            update_data["notes"] if "notes" in update_data else stored["notes"],
            update_data.get("location") or stored["location"],
        )

    appointment.description = EVENT_TYPES[kind]["label"]
    appointment.aff = aff if kind == AppointmentType.MEETING else None
    appointment.affaire_id = case.id if case else None
    appointment.recurrence_frequency = frequency
    appointment.recurrence_end_date = end_date if frequency != RecurrenceFrequency.NONE else None

    ScheduleService(db, Appointment).ensure_available(
        current_lawyer.id,
        appointment.date,
        appointment.heure_debut,
        appointment.heure_fin,
        "Conflict with existing rendez-vous",
        format_appointment_conflict,
        exclude_id=appointment.id,
    )

    db.commit()
    db.expire_all()
    logger.info(f"Rendez-vous {appointment.id} updated")
    return format_appointment(get_owned_appointment(db, appointment.id, current_lawyer))

@router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    """Delete a rendez-vous unless hearings were scheduled from it."""
    appointment = get_owned_appointment(db, appointment_id, current_lawyer)

    sessions = db.query(CourtSession).filter(CourtSession.rendez_vous_id == appointment.id).all()
    if sessions:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": "Cannot delete rendez-vous as it is associated with sessions",
                "sessions": [
                    {
                        "id": s.id,
                        "date": s.date.isoformat(),
                        "heure_debut": s.heure_debut,
                        "heure_fin": s.heure_fin,
                    }
                    for s in sessions
                ],
            }
        )

    db.delete(appointment)
    db.commit()
    logger.info(f"Rendez-vous {appointment_id} deleted")
    return {"message": "RendezVous deleted"}
