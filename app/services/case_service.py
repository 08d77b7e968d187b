import json
import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException, UploadFile, status
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.models import (
    Case, CaseClientLink, CaseLevel, CaseStatus, Client, ClientRole, Consultation,
    CourtSession, FeeType, Lawyer, ScheduleStatus, generate_uuid
)
from app.services.finance import attach_total_paid
from app.services.media import MediaStore, read_upload
from app.services.taxonomy import is_valid_category
from app.utils import validate_id

logger = logging.getLogger(__name__)

MAX_ATTACHMENTS = 5
MAX_ATTACHMENT_SIZE = 10 * 1024 * 1024  # 10MB
ATTACHMENT_EXTENSIONS = {
    '.pdf', '.doc', '.docx', '.txt',
    '.jpg', '.jpeg', '.png', '.gif', '.webp',
    '.xls', '.xlsx'
}
PREVIEW_FORMATS = {"pdf", "jpg", "jpeg", "png"}

CASE_FIELDS = (
    "case_number", "client_role", "statut", "category", "type", "client_id",
    "adversaire", "case_level", "primary_case_number", "fee_type",
    "lawyer_fees", "case_expenses",
)


def parse_json_list(raw: Optional[str], label: str) -> list:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {label}: expected a JSON array")
    if not isinstance(value, list):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {label}: expected a JSON array")
    return value


def month_bounds(now: datetime) -> Tuple[datetime, datetime]:
    """Return (start of last month, start of this month)."""
    current_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    previous_start = (current_start - timedelta(days=1)).replace(day=1)
    return previous_start, current_start


def attachment_file_name(attachment: dict, file_format: str) -> str:
    name = attachment.get("name") or "attachment"
    if file_format and not name.lower().endswith(f".{file_format.lower()}"):
        name = f"{name}.{file_format}"
    return name


class CaseService:
    def __init__(self, db: Session, media: MediaStore = None):
        self.db = db
        self.media = media

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def lawyer_cases(self, lawyer: Lawyer):
        return self.db.query(Case).options(joinedload(Case.client)).filter(Case.avocat_id == lawyer.id)

    def get_case_for_lawyer(self, case_id: str, lawyer: Lawyer) -> Case:
        validate_id(case_id, "affaire ID")
        case = self.lawyer_cases(lawyer).filter(Case.id == case_id).first()
        if not case:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Affaire not found")
        return case

    def get_client_for_lawyer(self, client_id: str, lawyer: Lawyer) -> Client:
        validate_id(client_id, "client_id")
        client = self.db.query(Client).filter(Client.id == client_id, Client.avocat_id == lawyer.id).first()
        if not client:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found or not authorized")
        return client

    def with_totals(self, cases: List[Case]) -> List[Case]:
        return attach_total_paid(self.db, cases)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_case(self, values: Dict) -> None:
        if not is_valid_category(self.db, values.get("category"), values.get("type")):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid category or type")
        if values.get("client_role") == ClientRole.DEFENDANT and not values.get("case_number"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="case_number is required when client_role is défendeur"
            )
        if values.get("case_level") == CaseLevel.APPEAL and not values.get("primary_case_number"):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="primary_case_number is required for appeal cases"
            )
        if values.get("fee_type") == FeeType.COMPREHENSIVE and values.get("case_expenses") is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="case_expenses is required for comprehensive fee type"
            )

    # ------------------------------------------------------------------
    # Attachments
    # ------------------------------------------------------------------

    async def store_attachments(self, case_id: str, files: List[UploadFile], names: list) -> List[dict]:
        files = [f for f in (files or []) if f is not None and f.filename]
        if len(files) > MAX_ATTACHMENTS:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Too many attachments: maximum is {MAX_ATTACHMENTS} per request"
            )

        stored = []
        for index, file in enumerate(files):
            content = await read_upload(file, ATTACHMENT_EXTENSIONS, MAX_ATTACHMENT_SIZE)
            uploaded = await self.media.upload(content, f"affaires/{case_id}", file.filename)
            display_name = names[index] if index < len(names) and names[index] else file.filename
            stored.append({
                "url": uploaded["url"],
                "name": str(display_name),
                "public_id": uploaded["public_id"],
                "resource_type": uploaded["resource_type"],
                "format": uploaded["format"],
            })
        return stored

    async def add_attachments(self, case: Case, files: List[UploadFile], names: list) -> Case:
        if not [f for f in (files or []) if f is not None and f.filename]:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No attachments provided")
        new_attachments = await self.store_attachments(case.id, files, names)
        # JSON columns only track reassignment
        case.attachments = list(case.attachments or []) + new_attachments
        self.db.commit()
        self.db.refresh(case)
        logger.info(f"Added {len(new_attachments)} attachment(s) to affaire {case.id}")
        return case

    def delete_attachment(self, case: Case, file_path: str) -> Case:
        attachments = list(case.attachments or [])
        match = next(
            (a for a in attachments if a.get("public_id") == file_path or file_path in (a.get("url") or "")),
            None,
        )
        if not match:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Attachment not found")

        if match.get("public_id"):
            self.media.destroy(match["public_id"])
        case.attachments = [a for a in attachments if a is not match]
        self.db.commit()
        self.db.refresh(case)
        logger.info(f"Deleted attachment {match.get('public_id')} from affaire {case.id}")
        return case

    def find_attachment(self, lawyer: Lawyer, file_path: str) -> Tuple[Case, dict]:
        for case in self.db.query(Case).filter(Case.avocat_id == lawyer.id).all():
            for attachment in case.attachments or []:
                if attachment.get("public_id") == file_path or file_path in (attachment.get("url") or ""):
                    return case, attachment
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Attachment not found")

    def locate_attachment(self, attachment: dict) -> Tuple[str, str, str]:
        """Return (public_id, resource_type, format), preferring the stored metadata."""
        public_id = attachment.get("public_id")
        if not public_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found in storage")
        probe = self.media.probe(public_id)
        if not probe["exists"]:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found in storage")
        resource_type = attachment.get("resource_type") or probe["resource_type"]
        file_format = attachment.get("format") or probe["format"]
        return public_id, resource_type, file_format

    def download_link(self, lawyer: Lawyer, file_path: str) -> dict:
        _, attachment = self.find_attachment(lawyer, file_path)
        public_id, resource_type, file_format = self.locate_attachment(attachment)
        return {
            "signedUrl": self.media.signed_url(public_id, resource_type),
            "fileName": attachment_file_name(attachment, file_format),
        }

    def preview_link(self, lawyer: Lawyer, file_path: str) -> dict:
        _, attachment = self.find_attachment(lawyer, file_path)
        public_id, resource_type, file_format = self.locate_attachment(attachment)
        if (file_format or "").lower() not in PREVIEW_FORMATS:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Preview is only available for PDF, JPG and PNG files"
            )
        return {
            "signedUrl": self.media.signed_url(public_id, resource_type),
            "fileType": file_format,
            "fileName": attachment_file_name(attachment, file_format),
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def link_client(self, case: Case, client_id: str, previous_client_id: Optional[str] = None) -> None:
        """Point the case's client link at ``client_id``, creating it if needed."""
        existing = self.db.query(CaseClientLink).filter(
            CaseClientLink.affaire_id == case.id,
            CaseClientLink.client_id == client_id,
        ).first()
        if existing:
            return
        link = None
        if previous_client_id:
            link = self.db.query(CaseClientLink).filter(
                CaseClientLink.affaire_id == case.id,
                CaseClientLink.client_id == previous_client_id,
            ).first()
        if link:
            link.client_id = client_id
        else:
            self.db.add(CaseClientLink(affaire_id=case.id, client_id=client_id))

    async def create_case(self, lawyer: Lawyer, data: Dict, files: List[UploadFile], names: list) -> Case:
        self.get_client_for_lawyer(data["client_id"], lawyer)
        self.validate_case(data)

        if data.get("case_level") != CaseLevel.APPEAL:
            data["primary_case_number"] = None
        if data.get("fee_type") != FeeType.COMPREHENSIVE:
            data["case_expenses"] = None

        case = Case(id=generate_uuid(), avocat_id=lawyer.id, **data)
        case.attachments = await self.store_attachments(case.id, files, names)
        self.db.add(case)
        self.link_client(case, case.client_id)
        self.db.commit()
        self.db.refresh(case)
        logger.info(f"Affaire {case.id} created for avocat {lawyer.id}")
        return case

    async def update_case(
        self,
        case: Case,
        lawyer: Lawyer,
        changes: Dict,
        files: List[UploadFile],
        names: list,
        existing_attachments: Optional[list] = None,
    ) -> Case:
        previous_client_id = case.client_id
        if "client_id" in changes and changes["client_id"] != previous_client_id:
            self.get_client_for_lawyer(changes["client_id"], lawyer)

        merged = {field: changes.get(field, getattr(case, field)) for field in CASE_FIELDS}
        self.validate_case(merged)
        if merged["case_level"] != CaseLevel.APPEAL:
            merged["primary_case_number"] = None
        if merged["fee_type"] != FeeType.COMPREHENSIVE:
            merged["case_expenses"] = None

        for field, value in merged.items():
            setattr(case, field, value)

        attachments = list(case.attachments or [])
        if existing_attachments is not None:
            keep = {
                item.get("url") if isinstance(item, dict) else str(item)
                for item in existing_attachments
            }
            dropped = [a for a in attachments if a.get("url") not in keep]
            for attachment in dropped:
                if attachment.get("public_id"):
                    self.media.destroy(attachment["public_id"])
            attachments = [a for a in attachments if a.get("url") in keep]
        case.attachments = attachments + await self.store_attachments(case.id, files, names)

        if case.client_id and case.client_id != previous_client_id:
            self.link_client(case, case.client_id, previous_client_id)

        self.db.commit()
        self.db.refresh(case)
        logger.info(f"Affaire {case.id} updated")
        return case

    def archive_case(self, case: Case, remarks: Optional[str]) -> Case:
        case.is_archived = True
        case.statut = CaseStatus.ARCHIVED
        case.archived_at = datetime.utcnow()
        case.archive_remarks = remarks
        self.db.commit()
        self.db.refresh(case)
        logger.info(f"Affaire {case.id} archived")
        return case

    def restore_case(self, case: Case) -> Case:
        case.is_archived = False
        case.statut = CaseStatus.IN_PROGRESS
        case.archived_at = None
        case.archive_remarks = None
        self.db.commit()
        self.db.refresh(case)
        logger.info(f"Affaire {case.id} restored")
        return case

    def delete_case(self, case: Case) -> None:
        for attachment in case.attachments or []:
            if attachment.get("public_id"):
                self.media.destroy(attachment["public_id"])
        self.db.delete(case)
        self.db.commit()
        logger.info(f"Affaire {case.id} deleted")

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    def get_stats(self, lawyer: Lawyer, now: datetime = None) -> Dict[str, int]:
        previous_start, current_start = month_bounds(now or datetime.utcnow())

        active_cases = self.db.query(Case).filter(Case.avocat_id == lawyer.id, Case.is_archived.is_(False))
        last_month_cases = active_cases.filter(
            Case.date_creation >= previous_start,
            Case.date_creation < current_start,
        )

        def distinct_clients(query):
            return query.with_entities(func.count(func.distinct(Case.client_id))).scalar() or 0

        sessions = self.db.query(CourtSession).filter(
            CourtSession.avocat_id == lawyer.id,
            CourtSession.status != ScheduleStatus.CANCELLED,
        )
        consultations = self.db.query(Consultation).filter(Consultation.avocat_id == lawyer.id)

        return {
            "totalCases": active_cases.count(),
            "previousTotalCases": last_month_cases.count(),
            "totalClients": distinct_clients(active_cases),
            "previousTotalClients": distinct_clients(last_month_cases),
            "totalSessions": sessions.count(),
            "previousTotalSessions": sessions.filter(
                CourtSession.date >= previous_start.date(),
                CourtSession.date < current_start.date(),
            ).count(),
            "totalConsultations": consultations.count(),
            "previousTotalConsultations": consultations.filter(
                Consultation.date >= previous_start.date(),
                Consultation.date < current_start.date(),
            ).count(),
        }
