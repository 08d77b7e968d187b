from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime

from app.utils import blank_to_none

class ClientCreate(BaseModel):
    nom: str = Field(..., min_length=1)
    cin: Optional[str] = None
    telephone_1: str = Field(..., min_length=1)
    telephone_2: Optional[str] = None
    adresse_1: str = Field(..., min_length=1)
    adresse_2: Optional[str] = None
    affaires: Optional[List[str]] = None

    @validator("cin")
    def blank_cin(cls, v):
        return blank_to_none(v)

class ClientUpdate(BaseModel):
    nom: Optional[str] = Field(None, min_length=1)
    cin: Optional[str] = None
    telephone_1: Optional[str] = Field(None, min_length=1)
    telephone_2: Optional[str] = None
    adresse_1: Optional[str] = Field(None, min_length=1)
    adresse_2: Optional[str] = None
    affaires: Optional[List[str]] = None

    @validator("cin")
    def blank_cin(cls, v):
        return blank_to_none(v)

class LinkedCase(BaseModel):
    id: str
    case_number: Optional[str] = None
    category: str
    type: str
    statut: str

class ClientResponse(BaseModel):
    id: str
    nom: str
    cin: Optional[str] = None
    telephone_1: str
    telephone_2: Optional[str] = None
    adresse_1: str
    adresse_2: Optional[str] = None
    avocat_id: str
    created_at: Optional[datetime] = None
    total_affairs: int = 0
    affaires: List[LinkedCase] = []

class ClientName(BaseModel):
    id: str
    nom: str
