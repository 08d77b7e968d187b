from pydantic import BaseModel, EmailStr, Field, validator
from typing import Optional
from datetime import datetime
from app.models import UserRole

class TokenData(BaseModel):
    id: Optional[str] = None
    role: Optional[UserRole] = None

class LawyerRegister(BaseModel):
    nom: str
    prenom: str
    email: EmailStr
    password: str = Field(..., min_length=6)
    telephone: str
    adresse: str
    ville: str
    specialite_juridique: Optional[str] = None
    nom_cabinet: Optional[str] = None

    @validator("nom", "prenom", "telephone", "adresse", "ville")
    def not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("field is required")
        return v.strip()

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class ForgotPasswordRequest(BaseModel):
    email: EmailStr

class ResetPasswordRequest(BaseModel):
    email: EmailStr
    otp: str
    new_password: str = Field(..., min_length=6)

class LawyerResponse(BaseModel):
    id: str
    nom: str
    prenom: str
    email: str
    telephone: str
    adresse: str
    ville: str
    logo: Optional[str] = None
    specialite_juridique: Optional[str] = None
    nom_cabinet: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class AdminResponse(BaseModel):
    id: str
    email: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class Token(BaseModel):
    access_token: str
    token_type: str

class RegisterResponse(Token):
    avocat: LawyerResponse

class LoginResponse(Token):
    role: UserRole
    user: dict
