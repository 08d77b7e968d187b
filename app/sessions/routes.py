import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from app.auth.dependencies import get_current_lawyer
from app.database import get_db
from app.models import Appointment, CourtSession, Lawyer, ScheduleStatus
from app.services.reports import render_day_pdf, render_session_pdf
from app.services.scheduling import (
    ScheduleService, parse_day, resolve_case, resolve_client_by_name, slot_bounds
)
from app.sessions.schemas import SessionCreate, SessionUpdate
from app.utils import paginate, validate_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["Sessions"])

SESSION_COLOR = "#2e7d32"
CONFLICT_MESSAGE = "تضارب في موعد الجلسة مع جلسات أخرى"


def format_session(session: CourtSession) -> dict:
    start, end = slot_bounds(session.date, session.heure_debut, session.heure_fin)
    return {
        "id": session.id,
        "remarque": session.remarque or "",
        "ordre": session.ordre,
        "emplacement": session.emplacement,
        "date": session.date.isoformat(),
        "heure_debut": session.heure_debut,
        "heure_fin": session.heure_fin,
        "start": start,
        "end": end,
        "client": session.client.nom if session.client else "Unknown Client",
        "client_id": session.client_id,
        "status": session.status.value,
        "affaire_id": {"id": session.case.id, "case_number": session.case.case_number} if session.case else None,
        "rendez_vous_id": session.rendez_vous_id,
        "case_number": session.case_number or "",
        "gouvernance": session.gouvernance or "",
        "color": SESSION_COLOR,
    }


def format_session_conflict(session: CourtSession) -> dict:
    client_name = session.client.nom if session.client else None
    start, end = slot_bounds(session.date, session.heure_debut, session.heure_fin)
    display_date = session.date.strftime("%d/%m/%Y")
    return {
        "id": session.id,
        "title": f"{client_name or 'Unknown Client'} - جلسة",
        "start": start,
        "end": end,
        "startTime": session.heure_debut,
        "endTime": session.heure_fin,
        "date": display_date,
        "client": client_name or "Unknown Client",
        "conflictDetails": (
            f"جلسة للعميل {client_name or 'غير معروف'} في {display_date} "
            f"من {session.heure_debut} إلى {session.heure_fin}"
        ),
    }


def sessions_query(db: Session, lawyer: Lawyer):
    return (
        db.query(CourtSession)
        .options(joinedload(CourtSession.client), joinedload(CourtSession.case))
        .filter(CourtSession.avocat_id == lawyer.id)
    )


def get_owned_session(db: Session, session_id: str, lawyer: Lawyer) -> CourtSession:
    validate_id(session_id, "session ID")
    session = sessions_query(db, lawyer).filter(CourtSession.id == session_id).first()
    if not session:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found or not authorized")
    return session


def resolve_appointment(db: Session, lawyer: Lawyer, rendez_vous_id: Optional[str]) -> Optional[str]:
    if not rendez_vous_id or rendez_vous_id == "null":
        return None
    validate_id(rendez_vous_id, "rendez_vous_id")
    exists = db.query(Appointment.id).filter(
        Appointment.id == rendez_vous_id,
        Appointment.avocat_id == lawyer.id,
    ).first()
    if not exists:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Rendez-vous not found or not authorized")
    return rendez_vous_id


def pdf_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )

# =====================================================
# LISTINGS
# =====================================================

@router.get("/day")
async def list_sessions_by_day(
    date: Optional[str] = None,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    day = parse_day(date)
    sessions = (
        sessions_query(db, current_lawyer)
        .filter(CourtSession.date == day)
        .order_by(CourtSession.heure_debut)
        .all()
    )
    return [format_session(session) for session in sessions]

@router.get("/day/pdf")
async def sessions_day_pdf(
    date: Optional[str] = None,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    """Render every session of one day as a single PDF report."""
    day = parse_day(date)
    sessions = (
        sessions_query(db, current_lawyer)
        .filter(CourtSession.date == day)
        .order_by(CourtSession.ordre, CourtSession.heure_debut)
        .all()
    )
    if not sessions:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No sessions found for the selected day")

    try:
        content = render_day_pdf(sessions, day, current_lawyer)
    except Exception as e:
        logger.exception("Failed to generate sessions PDF")
        raise HTTPException(status_code=500, detail=f"Failed to generate PDF: {str(e)}")

    logger.info(f"Generated day report for {day.isoformat()} ({len(sessions)} sessions)")
    return pdf_response(content, f"sessions_{day.isoformat()}.pdf")

@router.get("/")
async def list_sessions(
    search: Optional[str] = None,
    page: Optional[int] = Query(None, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    query = sessions_query(db, current_lawyer)
    if search:
        query = query.filter(or_(
            CourtSession.emplacement.ilike(f"%{search}%"),
            CourtSession.case_number.ilike(f"%{search}%"),
            CourtSession.remarque.ilike(f"%{search}%"),
        ))
    query = query.order_by(CourtSession.date, CourtSession.heure_debut)

    if page is not None:
        return paginate(query, page, limit, format_session)
    return [format_session(session) for session in query.all()]

@router.get("/avocat/{avocat_id}")
async def list_sessions_by_lawyer(
    avocat_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    validate_id(avocat_id, "avocat ID")
    if avocat_id != current_lawyer.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    sessions = sessions_query(db, current_lawyer).order_by(CourtSession.date, CourtSession.heure_debut).all()
    return [format_session(session) for session in sessions]

@router.get("/client/{client_id}")
async def list_sessions_by_client(
    client_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    validate_id(client_id, "client ID")
    sessions = (
        sessions_query(db, current_lawyer)
        .filter(CourtSession.client_id == client_id)
        .order_by(CourtSession.date, CourtSession.heure_debut)
        .all()
    )
    return [format_session(session) for session in sessions]

@router.get("/{session_id}")
async def get_session(
    session_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    return format_session(get_owned_session(db, session_id, current_lawyer))

@router.get("/{session_id}/pdf")
async def session_pdf(
    session_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    session = get_owned_session(db, session_id, current_lawyer)
    if not session.client or session.ordre is None or not session.emplacement or not session.date \
            or not session.heure_debut or not session.heure_fin:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Session data incomplete for PDF generation")

    try:
        content = render_session_pdf(session, current_lawyer)
    except Exception as e:
        logger.exception("Failed to generate session PDF")
        raise HTTPException(status_code=500, detail=f"Failed to generate PDF: {str(e)}")

    logger.info(f"Generated report for session {session.id}")
    return pdf_response(content, f"session_{session.id}.pdf")

# =====================================================
# SESSION CRUD OPERATIONS
# =====================================================

@router.post("/", status_code=status.HTTP_201_CREATED)
async def create_session(
    session_data: SessionCreate,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    """Schedule a hearing. Rejects overlapping slots on the same day with a 400."""
    client = resolve_client_by_name(db, current_lawyer, session_data.client)
    case = resolve_case(db, current_lawyer, session_data.affaire_id)
    rendez_vous_id = resolve_appointment(db, current_lawyer, session_data.rendez_vous_id)

    ScheduleService(db, CourtSession).ensure_available(
        current_lawyer.id,
        session_data.date,
        session_data.heure_debut,
        session_data.heure_fin,
        CONFLICT_MESSAGE,
        format_session_conflict,
    )

    session = CourtSession(
        remarque=session_data.remarque,
        ordre=session_data.ordre,
        emplacement=session_data.emplacement,
        date=session_data.date,
        heure_debut=session_data.heure_debut,
        heure_fin=session_data.heure_fin,
        status=session_data.status or ScheduleStatus.PENDING,
        avocat_id=current_lawyer.id,
        client_id=client.id,
        rendez_vous_id=rendez_vous_id,
        affaire_id=case.id if case else None,
        case_number=case.case_number if case else "",
        gouvernance=session_data.gouvernance or "",
    )
    db.add(session)
    db.commit()
    logger.info(f"Session {session.id} created for avocat {current_lawyer.id}")
    return format_session(get_owned_session(db, session.id, current_lawyer))

@router.put("/{session_id}")
async def update_session(
    session_id: str,
    session_update: SessionUpdate,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    """Partially update a hearing and re-run the conflict check against the merged slot."""
    session = get_owned_session(db, session_id, current_lawyer)
    update_data = session_update.model_dump(exclude_unset=True)

    if update_data.get("client"):
        session.client_id = resolve_client_by_name(db, current_lawyer, update_data["client"]).id
    if "affaire_id" in update_data:
        case = resolve_case(db, current_lawyer, update_data["affaire_id"])
        session.affaire_id = case.id if case else None
        session.case_number = case.case_number if case else ""
    if "rendez_vous_id" in update_data:
        session.rendez_vous_id = resolve_appointment(db, current_lawyer, update_data["rendez_vous_id"])

    for field in ("ordre", "emplacement", "date", "heure_debut", "heure_fin", "status"):
        if update_data.get(field) is not None:
            setattr(session, field, update_data[field])
    for field in ("remarque", "gouvernance"):
        if field in update_data:
            setattr(session, field, update_data[field] or "")

    ScheduleService(db, CourtSession).ensure_available(
        current_lawyer.id,
        session.date,
        session.heure_debut,
        session.heure_fin,
        CONFLICT_MESSAGE,
        format_session_conflict,
        exclude_id=session.id,
    )

    db.commit()
    db.expire_all()
    logger.info(f"Session {session.id} updated")
    return format_session(get_owned_session(db, session.id, current_lawyer))

@router.delete("/{session_id}")
async def delete_session(
    session_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    session = get_owned_session(db, session_id, current_lawyer)
    db.delete(session)
    db.commit()
    logger.info(f"Session {session_id} deleted")
    return {"message": "Session deleted successfully"}
