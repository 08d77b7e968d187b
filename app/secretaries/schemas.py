from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

class SecretaryCreate(BaseModel):
    nom: str = Field(..., min_length=1)
    prenom: str = Field(..., min_length=1)
    telephone: str = Field(..., min_length=1)
    adresse: str = Field(..., min_length=1)
    ville: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)

class SecretaryUpdate(BaseModel):
    nom: Optional[str] = Field(None, min_length=1)
    prenom: Optional[str] = Field(None, min_length=1)
    telephone: Optional[str] = Field(None, min_length=1)
    adresse: Optional[str] = Field(None, min_length=1)
    ville: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6)

class SecretaryResponse(BaseModel):
    id: str
    nom: str
    prenom: str
    telephone: str
    adresse: str
    ville: str
    email: str
    avocat_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class AdminSecretaryCreate(SecretaryCreate):
    avocat_id: str

class AdminSecretaryUpdate(SecretaryUpdate):
    avocat_id: Optional[str] = None
