from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, Enum, Float, Date, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
from datetime import datetime
import enum
import uuid


def generate_uuid():
    return str(uuid.uuid4())

# =====================================================
# ENUMS
# =====================================================

class UserRole(str, enum.Enum):
    ADMIN = "admin"
    LAWYER = "avocat"

class ClientRole(str, enum.Enum):
    PLAINTIFF = "plaignant"
    DEFENDANT = "défendeur"

class CaseStatus(str, enum.Enum):
    IN_PROGRESS = "en cours"
    CLOSED = "terminée"
    ARCHIVED = "archived"

class CaseLevel(str, enum.Enum):
    PRIMARY = "primary"
    APPEAL = "appeal"

class FeeType(str, enum.Enum):
    COMPREHENSIVE = "comprehensive"
    LAWYER_ONLY = "lawyer_only"

class ScheduleStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

class RecurrenceFrequency(str, enum.Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

class ConsultationPaymentMode(str, enum.Enum):
    CASH = "espèce"
    CHECK = "chèque"
    TRANSFER = "virement"
    CARD = "carte"

class PaymentMode(str, enum.Enum):
    CHECK = "cheque"
    CASH = "espece"

class PaymentStatus(str, enum.Enum):
    PENDING = "en attente"
    PAID = "payé"
    CANCELLED = "annulé"

class TransactionMode(str, enum.Enum):
    CASH = "espèces"
    CHECK = "chèque"
    TRANSFER = "virement"

class TransactionType(str, enum.Enum):
    PAYMENT = "paiement"
    ADVANCE = "avance"

# =====================================================
# ACCOUNTS
# =====================================================

class Lawyer(Base):
    __tablename__ = "lawyers"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    nom = Column(String(100), nullable=False)
    prenom = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    telephone = Column(String(50), nullable=False)
    adresse = Column(String(255), nullable=False)
    ville = Column(String(100), nullable=False)
    logo = Column(String(500))
    logo_public_id = Column(String(255))
    specialite_juridique = Column(String(255))
    nom_cabinet = Column(String(255))
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    secretaries = relationship("Secretary", back_populates="lawyer", cascade="all, delete-orphan")

class Secretary(Base):
    __tablename__ = "secretaries"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    nom = Column(String(100), nullable=False)
    prenom = Column(String(100), nullable=False)
    telephone = Column(String(50), nullable=False)
    adresse = Column(String(255), nullable=False)
    ville = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    avocat_id = Column(String(36), ForeignKey("lawyers.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    lawyer = relationship("Lawyer", back_populates="secretaries")

class Admin(Base):
    __tablename__ = "admins"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=func.now())

class PasswordResetCode(Base):
    __tablename__ = "password_reset_codes"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    code = Column(String(6), nullable=False)
    expires_at = Column(DateTime, nullable=False)

# =====================================================
# CLIENTS & OPPONENTS
# =====================================================

class Client(Base):
    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    nom = Column(String(255), nullable=False, index=True)
    cin = Column(String(50), unique=True)
    telephone_1 = Column(String(50), nullable=False)
    telephone_2 = Column(String(50))
    adresse_1 = Column(String(255), nullable=False)
    adresse_2 = Column(String(255))
    avocat_id = Column(String(36), ForeignKey("lawyers.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    case_links = relationship("CaseClientLink", back_populates="client", cascade="all, delete-orphan")

class Opponent(Base):
    __tablename__ = "adversaires"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    nom = Column(String(255), nullable=False)
    cin = Column(String(50), unique=True)
    telephone = Column(String(50))
    adresse = Column(String(255))
    created_at = Column(DateTime, default=func.now())

    case_links = relationship("CaseOpponentLink", back_populates="opponent", cascade="all, delete-orphan")

# =====================================================
# CASES
# =====================================================

class Case(Base):
    __tablename__ = "affaires"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    case_number = Column(String(100), index=True)
    client_role = Column(Enum(ClientRole), nullable=False)
    statut = Column(Enum(CaseStatus), default=CaseStatus.IN_PROGRESS, nullable=False)
    category = Column(String(100), nullable=False, index=True)
    type = Column(String(255), nullable=False)
    avocat_id = Column(String(36), ForeignKey("lawyers.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="SET NULL"), index=True)
    adversaire = Column(String(255), nullable=False)
    case_level = Column(Enum(CaseLevel), default=CaseLevel.PRIMARY, nullable=False)
    primary_case_number = Column(String(100))
    fee_type = Column(Enum(FeeType), nullable=False)
    lawyer_fees = Column(Float, nullable=False, default=0)
    case_expenses = Column(Float)

    # [{url, name, public_id, resource_type, format}]
    attachments = Column(JSON, default=list)

    is_archived = Column(Boolean, default=False, nullable=False)
    archived_at = Column(DateTime)
    archive_remarks = Column(Text)
    date_creation = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    client = relationship("Client")
    client_links = relationship("CaseClientLink", back_populates="case", cascade="all, delete-orphan")
    opponent_links = relationship("CaseOpponentLink", back_populates="case", cascade="all, delete-orphan")

class CaseClientLink(Base):
    __tablename__ = "affaire_clients"
    __table_args__ = (UniqueConstraint("affaire_id", "client_id", name="uq_affaire_client"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    affaire_id = Column(String(36), ForeignKey("affaires.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=func.now())

    case = relationship("Case", back_populates="client_links")
    client = relationship("Client", back_populates="case_links")

class CaseOpponentLink(Base):
    __tablename__ = "affaire_adversaires"
    __table_args__ = (UniqueConstraint("affaire_id", "adversaire_id", name="uq_affaire_adversaire"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    affaire_id = Column(String(36), ForeignKey("affaires.id", ondelete="CASCADE"), nullable=False, index=True)
    adversaire_id = Column(String(36), ForeignKey("adversaires.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=func.now())

    case = relationship("Case", back_populates="opponent_links")
    opponent = relationship("Opponent", back_populates="case_links")

class CaseType(Base):
    __tablename__ = "case_types"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(100), unique=True, nullable=False, index=True)
    # [{name}]
    sub_types = Column(JSON, default=list)
    created_at = Column(DateTime, default=func.now())

# =====================================================
# SCHEDULING
# =====================================================

class Appointment(Base):
    __tablename__ = "rendez_vous"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    description = Column(String(255))
    aff = Column(String(100))
    date = Column(Date, nullable=False, index=True)
    heure_debut = Column(String(5), nullable=False)
    heure_fin = Column(String(5), nullable=False)
    status = Column(Enum(ScheduleStatus), default=ScheduleStatus.PENDING, nullable=False)
    avocat_id = Column(String(36), ForeignKey("lawyers.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="SET NULL"), index=True)
    affaire_id = Column(String(36), ForeignKey("affaires.id", ondelete="SET NULL"))
    # JSON encoded {"notes": ..., "location": ...}
    notes = Column(Text)
    recurrence_frequency = Column(Enum(RecurrenceFrequency), default=RecurrenceFrequency.NONE, nullable=False)
    recurrence_end_date = Column(Date)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    client = relationship("Client")
    case = relationship("Case")
    sessions = relationship("CourtSession", back_populates="appointment")

class CourtSession(Base):
    __tablename__ = "sessions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    emplacement = Column(String(255), nullable=False)
    date = Column(Date, nullable=False, index=True)
    heure_debut = Column(String(5), nullable=False)
    heure_fin = Column(String(5), nullable=False)
    status = Column(Enum(ScheduleStatus), default=ScheduleStatus.PENDING, nullable=False)
    avocat_id = Column(String(36), ForeignKey("lawyers.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="SET NULL"), index=True)
    rendez_vous_id = Column(String(36), ForeignKey("rendez_vous.id", ondelete="SET NULL"), index=True)
    affaire_id = Column(String(36), ForeignKey("affaires.id", ondelete="SET NULL"))
    case_number = Column(String(100))
    remarque = Column(Text)
    ordre = Column(Integer, nullable=False)
    gouvernance = Column(Text)
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    lawyer = relationship("Lawyer")
    client = relationship("Client")
    case = relationship("Case")
    appointment = relationship("Appointment", back_populates="sessions")

class Consultation(Base):
    __tablename__ = "consultations"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    date = Column(Date, nullable=False, index=True)
    heure_debut = Column(String(5), nullable=False)
    heure_fin = Column(String(5), nullable=False)
    status = Column(Enum(ScheduleStatus), default=ScheduleStatus.PENDING, nullable=False)
    avocat_id = Column(String(36), ForeignKey("lawyers.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="SET NULL"), index=True)
    affaire_id = Column(String(36), ForeignKey("affaires.id", ondelete="SET NULL"))
    notes = Column(Text)
    montant = Column(Float)
    mode_paiement = Column(Enum(ConsultationPaymentMode))
    created_at = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    client = relationship("Client")
    case = relationship("Case")

# =====================================================
# PAYMENTS
# =====================================================

class Payment(Base):
    __tablename__ = "paiements"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    montant_total = Column(Float, nullable=False, default=0)
    paid_amount = Column(Float, nullable=False, default=0)
    mode_paiement = Column(Enum(PaymentMode), nullable=False)
    statut = Column(Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)
    description = Column(Text)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="SET NULL"), index=True)
    avocat_id = Column(String(36), ForeignKey("lawyers.id", ondelete="CASCADE"), nullable=False, index=True)
    affaire_id = Column(String(36), ForeignKey("affaires.id", ondelete="SET NULL"), index=True)
    consultation_id = Column(String(36), ForeignKey("consultations.id", ondelete="SET NULL"))
    date_creation = Column(DateTime, default=func.now())
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

    client = relationship("Client")
    case = relationship("Case")
    consultation = relationship("Consultation")
    transactions = relationship("PaymentTransaction", back_populates="payment", cascade="all, delete-orphan")

class PaymentTransaction(Base):
    __tablename__ = "transactions_paiement"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    date_transaction = Column(DateTime, default=func.now())
    montant = Column(Float, nullable=False)
    mode_paiement = Column(Enum(TransactionMode), nullable=False)
    type_transaction = Column(Enum(TransactionType), nullable=False)
    recu_pdf = Column(String(500))
    paiement_id = Column(String(36), ForeignKey("paiements.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=func.now())

    payment = relationship("Payment", back_populates="transactions")

# =====================================================
# PLATFORM ADMINISTRATION
# =====================================================

class ContactMessage(Base):
    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=func.now(), onupdate=func.now())

class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    action = Column(String(255), nullable=False)
    details = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
