"""Platform administration: accounts, dashboard counters, contact messages and the activity feed.

Every mutation here appends to the activity log, which keeps only the most
recent entries.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlalchemy import desc, func, or_
from sqlalchemy.orm import Session, joinedload

from app.admin.schemas import (
    ActivityLogResponse, AdminUpdate, ContactMessageCreate, ContactMessageResponse, MessageReply
)
from app.auth.dependencies import get_current_admin
from app.auth.schemas import AdminResponse, LawyerResponse
from app.auth.utils import get_password_hash
from app.database import get_db
from app.models import Admin, ContactMessage, Lawyer, Secretary
from app.secretaries.routes import apply_secretary_update, ensure_unique_email, serialize_secretary
from app.secretaries.schemas import AdminSecretaryCreate, AdminSecretaryUpdate
from app.services.accounts import (
    apply_lawyer_update, build_lawyer, drop_logo, ensure_email_available, get_lawyer, replace_logo
)
from app.services.activity import log_activity, recent_activity
from app.services.mailer import Mailer, get_mailer, message_reply_email
from app.services.media import MediaStore, get_media_store
from app.utils import paginate, validate_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


def serialize_lawyer(lawyer: Lawyer) -> dict:
    return LawyerResponse.model_validate(lawyer).model_dump()


def serialize_admin_secretary(secretary: Secretary) -> dict:
    data = serialize_secretary(secretary)
    data["avocat"] = (
        {"id": secretary.lawyer.id, "nom": secretary.lawyer.nom, "prenom": secretary.lawyer.prenom}
        if secretary.lawyer else None
    )
    return data


def get_secretary(db: Session, secretary_id: str) -> Secretary:
    validate_id(secretary_id, "secretaire ID")
    secretary = (
        db.query(Secretary)
        .options(joinedload(Secretary.lawyer))
        .filter(Secretary.id == secretary_id)
        .first()
    )
    if not secretary:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Secretaire not found")
    return secretary

# =====================================================
# DASHBOARD
# =====================================================

@router.get("/stats")
async def get_admin_stats(
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    return {
        "totalAvocats": db.query(Lawyer).count(),
        "totalSecretaires": db.query(Secretary).count(),
        "totalMessages": db.query(ContactMessage).count(),
    }

@router.get("/avocats-by-city")
async def lawyers_by_city(
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    rows = (
        db.query(Lawyer.ville, func.count(Lawyer.id).label("count"))
        .group_by(Lawyer.ville)
        .order_by(desc("count"))
        .all()
    )
    return [{"city": ville, "count": count} for ville, count in rows]

@router.get("/secretaires-by-avocat")
async def secretaries_by_lawyer(
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    rows = (
        db.query(Lawyer.nom, Lawyer.prenom, func.count(Secretary.id).label("count"))
        .join(Secretary, Secretary.avocat_id == Lawyer.id)
        .group_by(Lawyer.id, Lawyer.nom, Lawyer.prenom)
        .order_by(desc("count"))
        .all()
    )
    return [{"avocat": f"{nom} {prenom}", "count": count} for nom, prenom, count in rows]

@router.get("/activity-logs", response_model=list[ActivityLogResponse])
async def get_activity_logs(
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    return recent_activity(db)

# =====================================================
# ADMIN ACCOUNT
# =====================================================

@router.get("/me")
async def get_admin_me(current_admin: Admin = Depends(get_current_admin)):
    return {"data": AdminResponse.model_validate(current_admin).model_dump()}

@router.put("/me")
async def update_admin_me(
    admin_update: AdminUpdate,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    if admin_update.email and admin_update.email != current_admin.email:
        ensure_email_available(db, admin_update.email, exclude_id=current_admin.id)
        current_admin.email = admin_update.email
    if admin_update.password:
        current_admin.password_hash = get_password_hash(admin_update.password)

    log_activity(db, "تحديث إعدادات الإدارة", f"البريد الإلكتروني: {current_admin.email}")
    db.refresh(current_admin)
    return {
        "data": AdminResponse.model_validate(current_admin).model_dump(),
        "message": "Settings updated successfully",
    }

# =====================================================
# LAWYER MANAGEMENT
# =====================================================

@router.get("/avocats")
async def list_lawyers(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    query = db.query(Lawyer)
    if search:
        query = query.filter(or_(
            Lawyer.nom.ilike(f"%{search}%"),
            Lawyer.prenom.ilike(f"%{search}%"),
            Lawyer.email.ilike(f"%{search}%"),
        ))
    return paginate(query.order_by(desc(Lawyer.created_at)), page, limit, serialize_lawyer)

@router.get("/avocats/{lawyer_id}")
async def get_lawyer_by_id(
    lawyer_id: str,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    validate_id(lawyer_id, "avocat ID")
    return {"data": serialize_lawyer(get_lawyer(db, lawyer_id))}

@router.post("/avocats", status_code=status.HTTP_201_CREATED)
async def create_lawyer(
    nom: str = Form(...),
    prenom: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    telephone: str = Form(...),
    adresse: str = Form(...),
    ville: str = Form(...),
    specialite_juridique: Optional[str] = Form(None),
    nom_cabinet: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    current_admin: Admin = Depends(get_current_admin),
    media: MediaStore = Depends(get_media_store),
    db: Session = Depends(get_db)
):
    try:
        ensure_email_available(db, email)
        lawyer = build_lawyer({
            "nom": nom,
            "prenom": prenom,
            "email": email,
            "password": password,
            "telephone": telephone,
            "adresse": adresse,
            "ville": ville,
            "specialite_juridique": specialite_juridique,
            "nom_cabinet": nom_cabinet,
        })
        await replace_logo(media, lawyer, logo)
        db.add(lawyer)
        log_activity(db, "إنشاء محامي", f"المحامي: {nom} {prenom}")
        db.refresh(lawyer)
        return {"data": serialize_lawyer(lawyer), "message": "Avocat created successfully"}
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("Failed to create avocat")
        raise HTTPException(status_code=500, detail=f"Failed to create avocat: {str(e)}")

@router.put("/avocats/{lawyer_id}")
async def update_lawyer(
    lawyer_id: str,
    nom: Optional[str] = Form(None),
    prenom: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    telephone: Optional[str] = Form(None),
    adresse: Optional[str] = Form(None),
    ville: Optional[str] = Form(None),
    specialite_juridique: Optional[str] = Form(None),
    nom_cabinet: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    current_admin: Admin = Depends(get_current_admin),
    media: MediaStore = Depends(get_media_store),
    db: Session = Depends(get_db)
):
    validate_id(lawyer_id, "avocat ID")
    lawyer = get_lawyer(db, lawyer_id)
    try:
        ensure_email_available(db, email, exclude_id=lawyer.id)
        apply_lawyer_update(lawyer, {
            "nom": nom,
            "prenom": prenom,
            "email": email,
            "telephone": telephone,
            "adresse": adresse,
            "ville": ville,
            "specialite_juridique": specialite_juridique,
            "nom_cabinet": nom_cabinet,
        })
        await replace_logo(media, lawyer, logo)
        log_activity(db, "تحديث محامي", f"المحامي: {lawyer.nom} {lawyer.prenom}")
        db.refresh(lawyer)
        return {"data": serialize_lawyer(lawyer), "message": "Avocat updated successfully"}
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        logger.exception("Failed to update avocat")
        raise HTTPException(status_code=500, detail=f"Failed to update avocat: {str(e)}")

@router.delete("/avocats/{lawyer_id}")
async def delete_lawyer(
    lawyer_id: str,
    current_admin: Admin = Depends(get_current_admin),
    media: MediaStore = Depends(get_media_store),
    db: Session = Depends(get_db)
):
    validate_id(lawyer_id, "avocat ID")
    lawyer = get_lawyer(db, lawyer_id)
    drop_logo(media, lawyer)
    details = f"المحامي: {lawyer.nom} {lawyer.prenom}"
    db.delete(lawyer)
    log_activity(db, "حذف محامي", details)
    return {"message": "Avocat deleted successfully"}

# =====================================================
# SECRETARY MANAGEMENT
# =====================================================

@router.get("/secretaires")
async def list_secretaries(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    query = db.query(Secretary).options(joinedload(Secretary.lawyer))
    if search:
        query = query.filter(or_(
            Secretary.nom.ilike(f"%{search}%"),
            Secretary.prenom.ilike(f"%{search}%"),
            Secretary.email.ilike(f"%{search}%"),
        ))
    return paginate(query.order_by(desc(Secretary.created_at)), page, limit, serialize_admin_secretary)

@router.get("/secretaires/{secretary_id}")
async def get_secretary_by_id(
    secretary_id: str,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    return {"data": serialize_admin_secretary(get_secretary(db, secretary_id))}

@router.post("/secretaires", status_code=status.HTTP_201_CREATED)
async def create_secretary(
    secretary_data: AdminSecretaryCreate,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    validate_id(secretary_data.avocat_id, "avocat_id")
    get_lawyer(db, secretary_data.avocat_id)
    ensure_unique_email(db, secretary_data.email)

    data = secretary_data.model_dump(exclude={"password"})
    secretary = Secretary(password_hash=get_password_hash(secretary_data.password), **data)
    db.add(secretary)
    log_activity(db, "إنشاء سكرتير", f"السكرتير: {secretary.nom} {secretary.prenom}")
    return {
        "data": serialize_admin_secretary(get_secretary(db, secretary.id)),
        "message": "Secretaire created successfully",
    }

@router.put("/secretaires/{secretary_id}")
async def update_secretary(
    secretary_id: str,
    secretary_update: AdminSecretaryUpdate,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    secretary = get_secretary(db, secretary_id)
    update_data = secretary_update.model_dump(exclude_unset=True)
    if update_data.get("avocat_id"):
        validate_id(update_data["avocat_id"], "avocat_id")
        get_lawyer(db, update_data["avocat_id"])
    else:
        update_data.pop("avocat_id", None)
    ensure_unique_email(db, update_data.get("email"), exclude_id=secretary.id)

    apply_secretary_update(secretary, update_data)
    log_activity(db, "تحديث سكرتير", f"السكرتير: {secretary.nom} {secretary.prenom}")
    db.expire_all()
    return {
        "data": serialize_admin_secretary(get_secretary(db, secretary_id)),
        "message": "Secretaire updated successfully",
    }

@router.delete("/secretaires/{secretary_id}")
async def delete_secretary(
    secretary_id: str,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    secretary = get_secretary(db, secretary_id)
    details = f"السكرتير: {secretary.nom} {secretary.prenom}"
    db.delete(secretary)
    log_activity(db, "حذف سكرتير", details)
    return {"message": "Secretaire deleted successfully"}

# =====================================================
# CONTACT MESSAGES
# =====================================================

@router.post("/messages", status_code=status.HTTP_201_CREATED)
async def create_message(message_data: ContactMessageCreate, db: Session = Depends(get_db)):
    """Public contact form endpoint."""
    message = ContactMessage(**message_data.model_dump())
    db.add(message)
    log_activity(db, "إنشاء رسالة", f"المرسل: {message.name}, البريد: {message.email}")
    return {"message": "Message sent successfully"}

@router.get("/messages")
async def list_messages(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    query = db.query(ContactMessage)
    if search:
        query = query.filter(or_(
            ContactMessage.name.ilike(f"%{search}%"),
            ContactMessage.email.ilike(f"%{search}%"),
            ContactMessage.message.ilike(f"%{search}%"),
        ))
    return paginate(
        query.order_by(desc(ContactMessage.created_at)),
        page,
        limit,
        lambda m: ContactMessageResponse.model_validate(m).model_dump(),
    )

@router.post("/messages/{message_id}/reply")
async def reply_message(
    message_id: str,
    reply: MessageReply,
    current_admin: Admin = Depends(get_current_admin),
    mailer: Mailer = Depends(get_mailer),
    db: Session = Depends(get_db)
):
    validate_id(message_id, "message ID")
    message = db.query(ContactMessage).filter(ContactMessage.id == message_id).first()
    if not message:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")

    try:
        mailer.send(message.email, reply.subject, message_reply_email(reply.subject, reply.body), reply.body)
    except Exception as e:
        logger.exception("Failed to send reply email")
        raise HTTPException(status_code=500, detail=f"Failed to send reply: {str(e)}")

    log_activity(db, "الرد على رسالة", f"إلى: {message.email}, الموضوع: {reply.subject}")
    return {"message": "Reply sent successfully"}

@router.delete("/messages/{message_id}")
async def delete_message(
    message_id: str,
    current_admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    validate_id(message_id, "message ID")
    message = db.query(ContactMessage).filter(ContactMessage.id == message_id).first()
    if not message:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    details = f"المرسل: {message.name}, البريد: {message.email}"
    db.delete(message)
    log_activity(db, "حذف رسالة", details)
    return {"message": "Message deleted successfully"}
