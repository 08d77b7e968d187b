import logging
import secrets
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.auth.schemas import (
    AdminResponse, ForgotPasswordRequest, LawyerRegister, LawyerResponse, LoginRequest,
    LoginResponse, RegisterResponse, ResetPasswordRequest
)
from app.auth.utils import get_password_hash, issue_token, verify_password
from app.config import OTP_EXPIRE_MINUTES
from app.database import get_db
from app.models import Admin, Lawyer, PasswordResetCode, UserRole
from app.services.accounts import ensure_email_available
from app.services.mailer import Mailer, get_mailer, password_reset_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register_lawyer(lawyer_data: LawyerRegister, db: Session = Depends(get_db)):
    ensure_email_available(db, lawyer_data.email)

    lawyer = Lawyer(
        nom=lawyer_data.nom,
        prenom=lawyer_data.prenom,
        email=lawyer_data.email,
        password_hash=get_password_hash(lawyer_data.password),
        telephone=lawyer_data.telephone,
        adresse=lawyer_data.adresse,
        ville=lawyer_data.ville,
        specialite_juridique=lawyer_data.specialite_juridique,
        nom_cabinet=lawyer_data.nom_cabinet,
    )
    db.add(lawyer)
    db.commit()
    db.refresh(lawyer)
    logger.info(f"Avocat {lawyer.id} registered")

    return {
        "avocat": lawyer,
        "access_token": issue_token(lawyer.id, UserRole.LAWYER.value),
        "token_type": "bearer",
    }


@router.post("/login", response_model=LoginResponse)
async def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Admins are checked before lawyers; both share the email namespace."""
    admin = db.query(Admin).filter(Admin.email == credentials.email).first()
    if admin and verify_password(credentials.password, admin.password_hash):
        return {
            "access_token": issue_token(admin.id, UserRole.ADMIN.value),
            "token_type": "bearer",
            "role": UserRole.ADMIN,
            "user": AdminResponse.model_validate(admin).model_dump(),
        }

    lawyer = db.query(Lawyer).filter(Lawyer.email == credentials.email).first()
    if lawyer and verify_password(credentials.password, lawyer.password_hash):
        return {
            "access_token": issue_token(lawyer.id, UserRole.LAWYER.value),
            "token_type": "bearer",
            "role": UserRole.LAWYER,
            "user": LawyerResponse.model_validate(lawyer).model_dump(),
        }

    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid credentials")


@router.post("/forgot-password")
async def forgot_password(
    request: ForgotPasswordRequest,
    mailer: Mailer = Depends(get_mailer),
    db: Session = Depends(get_db)
):
    lawyer = db.query(Lawyer).filter(Lawyer.email == request.email).first()
    if not lawyer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No account found with this email")

    code = f"{secrets.randbelow(900000) + 100000}"
    expires_at = datetime.utcnow() + timedelta(minutes=OTP_EXPIRE_MINUTES)

    try:
        reset = db.query(PasswordResetCode).filter(PasswordResetCode.email == request.email).first()
        if reset:
            reset.code = code
            reset.expires_at = expires_at
        else:
            db.add(PasswordResetCode(email=request.email, code=code, expires_at=expires_at))

        mailer.send(
            request.email,
            "إعادة تعيين كلمة المرور",
            password_reset_email(code, OTP_EXPIRE_MINUTES),
        )
        db.commit()
    except Exception as e:
        db.rollback()
        logger.exception("Failed to send password reset email")
        raise HTTPException(status_code=500, detail=f"Failed to send reset code: {str(e)}")

    return {"message": "Reset code sent to your email"}


@router.post("/reset-password")
async def reset_password(request: ResetPasswordRequest, db: Session = Depends(get_db)):
    reset = db.query(PasswordResetCode).filter(PasswordResetCode.email == request.email).first()
    if not reset or reset.code != request.otp or reset.expires_at < datetime.utcnow():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired code")

    lawyer = db.query(Lawyer).filter(Lawyer.email == request.email).first()
    if not lawyer:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No account found with this email")

    lawyer.password_hash = get_password_hash(request.new_password)
    db.delete(reset)
    db.commit()
    logger.info(f"Password reset for avocat {lawyer.id}")
    return {"message": "Password reset successfully"}
