from pydantic import BaseModel
from typing import Optional, List, Dict
from datetime import datetime
from app.models import ClientRole, CaseStatus, CaseLevel, FeeType

class Attachment(BaseModel):
    url: str
    name: str
    public_id: Optional[str] = None
    resource_type: Optional[str] = None
    format: Optional[str] = None

class ClientSummary(BaseModel):
    id: str
    nom: str

    class Config:
        from_attributes = True

class CaseResponse(BaseModel):
    id: str
    case_number: Optional[str] = None
    client_role: ClientRole
    statut: CaseStatus
    category: str
    type: str
    avocat_id: str
    client_id: Optional[str] = None
    client: Optional[ClientSummary] = None
    adversaire: str
    case_level: CaseLevel
    primary_case_number: Optional[str] = None
    fee_type: FeeType
    lawyer_fees: float
    case_expenses: Optional[float] = None
    attachments: List[Attachment] = []
    is_archived: bool
    archived_at: Optional[datetime] = None
    archive_remarks: Optional[str] = None
    date_creation: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    total_paid_amount: float = 0

    class Config:
        from_attributes = True

class CaseArchiveRequest(BaseModel):
    remarks: Optional[str] = None

class CaseStats(BaseModel):
    totalCases: int
    previousTotalCases: int
    totalClients: int
    previousTotalClients: int
    totalSessions: int
    previousTotalSessions: int
    totalConsultations: int
    previousTotalConsultations: int

class SignedUrlResponse(BaseModel):
    signedUrl: str
    fileName: str

class PreviewResponse(SignedUrlResponse):
    fileType: str

CaseTypesResponse = Dict[str, List[str]]
