import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy import asc, desc, or_
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_lawyer
from app.cases.schemas import (
    CaseArchiveRequest, CaseResponse, CaseStats, CaseTypesResponse,
    PreviewResponse, SignedUrlResponse
)
from app.database import get_db
from app.models import Case, CaseClientLink, CaseLevel, CaseStatus, ClientRole, FeeType, Lawyer
from app.services.case_service import CaseService, parse_json_list
from app.services.media import MediaStore, get_media_store
from app.services.taxonomy import case_type_map
from app.utils import paginate, validate_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/affaires", tags=["Affaires"])

SORTABLE_FIELDS = {
    "createdAt": Case.date_creation,
    "date_creation": Case.date_creation,
    "updated_at": Case.updated_at,
    "case_number": Case.case_number,
    "category": Case.category,
    "lawyer_fees": Case.lawyer_fees,
}

# =====================================================
# LISTINGS
# =====================================================

def serialize_case(case: Case) -> dict:
    return CaseResponse.model_validate(case).model_dump()


@router.get("/")
async def list_cases(
    search: Optional[str] = None,
    sort_by: str = Query("date_creation"),
    order: str = Query("desc"),
    page: Optional[int] = Query(None, ge=1),
    limit: int = Query(10, ge=1, le=500),
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    """List the caller's active (non-archived) cases.

    Without ``page`` the first ``limit`` cases come back as a plain list;
    with it the result is the ``{data, total, page, pages}`` envelope.
    """
    service = CaseService(db)
    column = SORTABLE_FIELDS.get(sort_by, Case.date_creation)
    ordering = asc(column) if order == "asc" else desc(column)
    query = service.lawyer_cases(current_lawyer).filter(Case.is_archived.is_(False))
    if search:
        query = query.filter(or_(
            Case.case_number.ilike(f"%{search}%"),
            Case.adversaire.ilike(f"%{search}%"),
            Case.type.ilike(f"%{search}%"),
        ))
    query = query.order_by(ordering)

    if page is not None:
        envelope = paginate(query, page, limit, lambda case: case)
        envelope["data"] = [serialize_case(case) for case in service.with_totals(envelope["data"])]
        return envelope
    return [serialize_case(case) for case in service.with_totals(query.limit(limit).all())]

@router.get("/stats", response_model=CaseStats)
async def get_stats(
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    return CaseService(db).get_stats(current_lawyer)

@router.get("/types", response_model=CaseTypesResponse)
async def get_case_types(
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    """Category -> sub-types map, read from the case_types table."""
    return case_type_map(db)

@router.get("/files/{token}")
async def serve_signed_file(token: str, media: MediaStore = Depends(get_media_store)):
    path = media.resolve_signed(token)
    if path is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found or link expired")
    return FileResponse(path, filename=path.name)

@router.get("/download/{file_path:path}", response_model=SignedUrlResponse)
async def download_attachment(
    file_path: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db),
    media: MediaStore = Depends(get_media_store)
):
    return CaseService(db, media).download_link(current_lawyer, file_path)

@router.get("/preview/{file_path:path}", response_model=PreviewResponse)
async def preview_attachment(
    file_path: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db),
    media: MediaStore = Depends(get_media_store)
):
    return CaseService(db, media).preview_link(current_lawyer, file_path)

@router.get("/category/{category}", response_model=List[CaseResponse])
async def list_cases_by_category(
    category: str,
    case_level: Optional[str] = None,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    if category not in case_type_map(db):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid category")

    service = CaseService(db)
    query = service.lawyer_cases(current_lawyer).filter(
        Case.is_archived.is_(False),
        Case.category == category,
    )
    if case_level in (CaseLevel.PRIMARY.value, CaseLevel.APPEAL.value):
        query = query.filter(Case.case_level == CaseLevel(case_level))
    return service.with_totals(query.order_by(desc(Case.date_creation)).all())

@router.get("/client/{client_id}", response_model=List[CaseResponse])
async def list_cases_by_client(
    client_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    validate_id(client_id, "client ID")
    service = CaseService(db)
    cases = (
        service.lawyer_cases(current_lawyer)
        .join(CaseClientLink, CaseClientLink.affaire_id == Case.id)
        .filter(CaseClientLink.client_id == client_id, Case.is_archived.is_(False))
        .order_by(desc(Case.date_creation))
        .all()
    )
    if not cases:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No affaires found for this client")
    return service.with_totals(cases)

def _ensure_self(avocat_id: str, current_lawyer: Lawyer) -> None:
    validate_id(avocat_id, "avocat ID")
    if avocat_id != current_lawyer.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")

@router.get("/avocat/{avocat_id}", response_model=List[CaseResponse])
async def list_cases_by_lawyer(
    avocat_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    _ensure_self(avocat_id, current_lawyer)
    service = CaseService(db)
    cases = (
        service.lawyer_cases(current_lawyer)
        .filter(Case.is_archived.is_(False))
        .order_by(desc(Case.date_creation))
        .all()
    )
    if not cases:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No affaires found for this avocat")
    return service.with_totals(cases)

@router.get("/archives/avocat/{avocat_id}", response_model=List[CaseResponse])
async def list_archived_cases(
    avocat_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    _ensure_self(avocat_id, current_lawyer)
    service = CaseService(db)
    cases = (
        service.lawyer_cases(current_lawyer)
        .filter(Case.is_archived.is_(True))
        .order_by(desc(Case.archived_at))
        .all()
    )
    return service.with_totals(cases)

@router.get("/{case_id}", response_model=CaseResponse)
async def get_case(
    case_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    service = CaseService(db)
    case = service.get_case_for_lawyer(case_id, current_lawyer)
    return service.with_totals([case])[0]

# =====================================================
# CASE CRUD OPERATIONS
# =====================================================

@router.post("/", response_model=CaseResponse, status_code=status.HTTP_201_CREATED)
async def create_case(
    client_id: str = Form(...),
    adversaire: str = Form(..., min_length=1),
    client_role: ClientRole = Form(...),
    category: str = Form(...),
    case_type: str = Form(..., alias="type"),
    fee_type: FeeType = Form(...),
    lawyer_fees: float = Form(..., ge=0),
    case_number: Optional[str] = Form(None),
    case_level: CaseLevel = Form(CaseLevel.PRIMARY),
    primary_case_number: Optional[str] = Form(None),
    case_expenses: Optional[float] = Form(None, ge=0),
    statut: CaseStatus = Form(CaseStatus.IN_PROGRESS),
    attachment_names: Optional[str] = Form(None),
    attachments: Optional[List[UploadFile]] = File(None),
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db),
    media: MediaStore = Depends(get_media_store)
):
    """Create a case, store its attachments and link it to the client."""
    service = CaseService(db, media)
    data = {
        "client_id": client_id,
        "adversaire": adversaire,
        "client_role": client_role,
        "category": category,
        "type": case_type,
        "fee_type": fee_type,
        "lawyer_fees": lawyer_fees,
        "case_number": case_number,
        "case_level": case_level,
        "primary_case_number": primary_case_number,
        "case_expenses": case_expenses,
        "statut": statut,
    }
    try:
        names = parse_json_list(attachment_names, "attachment_names")
        case = await service.create_case(current_lawyer, data, attachments, names)
        return service.with_totals([case])[0]
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("Failed to create affaire")
        raise HTTPException(status_code=500, detail=f"Failed to create affaire: {str(e)}")

@router.put("/restore/{case_id}", response_model=CaseResponse)
async def restore_case(
    case_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    service = CaseService(db)
    case = service.restore_case(service.get_case_for_lawyer(case_id, current_lawyer))
    return service.with_totals([case])[0]

@router.put("/{case_id}", response_model=CaseResponse)
async def update_case(
    case_id: str,
    client_id: Optional[str] = Form(None),
    adversaire: Optional[str] = Form(None),
    client_role: Optional[ClientRole] = Form(None),
    category: Optional[str] = Form(None),
    case_type: Optional[str] = Form(None, alias="type"),
    fee_type: Optional[FeeType] = Form(None),
    lawyer_fees: Optional[float] = Form(None, ge=0),
    case_number: Optional[str] = Form(None),
    case_level: Optional[CaseLevel] = Form(None),
    primary_case_number: Optional[str] = Form(None),
    case_expenses: Optional[float] = Form(None, ge=0),
    statut: Optional[CaseStatus] = Form(None),
    attachment_names: Optional[str] = Form(None),
    existing_attachments: Optional[str] = Form(None),
    attachments: Optional[List[UploadFile]] = File(None),
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db),
    media: MediaStore = Depends(get_media_store)
):
    """Partially update a case. Omitted fields keep their stored values."""
    service = CaseService(db, media)
    case = service.get_case_for_lawyer(case_id, current_lawyer)
    submitted = {
        "client_id": client_id,
        "adversaire": adversaire,
        "client_role": client_role,
        "category": category,
        "type": case_type,
        "fee_type": fee_type,
        "lawyer_fees": lawyer_fees,
        "case_number": case_number,
        "case_level": case_level,
        "primary_case_number": primary_case_number,
        "case_expenses": case_expenses,
        "statut": statut,
    }
    changes = {field: value for field, value in submitted.items() if value is not None}
    try:
        names = parse_json_list(attachment_names, "attachment_names")
        kept = parse_json_list(existing_attachments, "existing_attachments") if existing_attachments is not None else None
        case = await service.update_case(case, current_lawyer, changes, attachments, names, kept)
        return service.with_totals([case])[0]
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("Failed to update affaire")
        raise HTTPException(status_code=500, detail=f"Failed to update affaire: {str(e)}")

@router.put("/{case_id}/attachments", response_model=CaseResponse)
async def add_attachments(
    case_id: str,
    attachment_names: Optional[str] = Form(None),
    attachments: Optional[List[UploadFile]] = File(None),
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db),
    media: MediaStore = Depends(get_media_store)
):
    service = CaseService(db, media)
    case = service.get_case_for_lawyer(case_id, current_lawyer)
    try:
        names = parse_json_list(attachment_names, "attachment_names")
        case = await service.add_attachments(case, attachments, names)
        return service.with_totals([case])[0]
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("Failed to add attachments")
        raise HTTPException(status_code=500, detail=f"Failed to add attachments: {str(e)}")

@router.delete("/{case_id}/attachments/{file_path:path}", response_model=CaseResponse)
async def delete_attachment(
    case_id: str,
    file_path: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db),
    media: MediaStore = Depends(get_media_store)
):
    service = CaseService(db, media)
    case = service.get_case_for_lawyer(case_id, current_lawyer)
    case = service.delete_attachment(case, file_path)
    return service.with_totals([case])[0]

@router.put("/{case_id}/archive", response_model=CaseResponse)
async def archive_case(
    case_id: str,
    payload: Optional[CaseArchiveRequest] = None,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    service = CaseService(db)
    case = service.get_case_for_lawyer(case_id, current_lawyer)
    case = service.archive_case(case, payload.remarks if payload else None)
    return service.with_totals([case])[0]

@router.delete("/{case_id}")
async def delete_case(
    case_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db),
    media: MediaStore = Depends(get_media_store)
):
    service = CaseService(db, media)
    case = service.get_case_for_lawyer(case_id, current_lawyer)
    service.delete_case(case)
    return {"message": "Affaire deleted permanently"}
