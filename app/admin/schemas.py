from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

class AdminUpdate(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6)

class ContactMessageCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    message: str = Field(..., min_length=1)

class ContactMessageResponse(BaseModel):
    id: str
    name: str
    email: str
    message: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class MessageReply(BaseModel):
    subject: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)

class ActivityLogResponse(BaseModel):
    id: str
    action: str
    details: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
