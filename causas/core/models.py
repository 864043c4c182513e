from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from flask_login import UserMixin
from sqlalchemy import Column, Enum as SAEnum, ForeignKey, Index, Table, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates
from werkzeug.security import generate_password_hash

from causas.core.demo_people import generate_demo_lawyers
from causas.core.extensions import db

REQUIRED_ASSIGNEES_COUNT = 2
DIRECT_ROTATION_POOL = "direct"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, Enum):
    LAWYER = "lawyer"
    ADMIN = "admin"


class Jurisdiccion(str, Enum):
    NACIONAL = "nacional"
    FEDERAL = "federal"
    CABA = "caba"
    PROVINCIA_BS_AS = "provincia_bs_as"


class AssignmentMode(str, Enum):
    AUTO = "auto"
    DIRECT = "direct"


class CausaStatus(str, Enum):
    DRAFT = "draft"
    ASSIGNED = "assigned"


class InviteStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


user_especialidad = Table(
    "user_especialidad",
    db.metadata,
    Column("user_id", ForeignKey("user_account.id", ondelete="CASCADE"), primary_key=True),
    Column("especialidad_id", ForeignKey("especialidad.id", ondelete="CASCADE"), primary_key=True),
    Index("ix_user_especialidad_especialidad", "especialidad_id"),
)


class Especialidad(db.Model):
    __tablename__ = "especialidad"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(db.String(120), unique=True, nullable=False)
    active: Mapped[bool] = mapped_column(default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    lawyers = relationship("User", secondary=user_especialidad, back_populates="specialties")


class User(UserMixin, db.Model):
    __tablename__ = "user_account"
    __table_args__ = (Index("ix_user_account_practicing_email", "is_practicing", "email"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(db.String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(db.String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SAEnum(UserRole, name="user_role"),
        nullable=False,
        default=UserRole.LAWYER,
    )
    is_practicing: Mapped[bool] = mapped_column(default=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)

    specialties = relationship("Especialidad", secondary=user_especialidad, back_populates="lawyers")

    @validates("email")
    def normalize_email(self, _key, value: str) -> str:
        return (value or "").strip().lower()

    @property
    def specialty_ids(self) -> list[int]:
        return sorted(s.id for s in self.specialties)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class RotationState(db.Model):
    # One row per rotation pool: a specialty id, or the shared "direct" pool
    __tablename__ = "rotation_state"

    pool_key: Mapped[str] = mapped_column(db.String(64), primary_key=True)
    cursor: Mapped[int] = mapped_column(nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)


class Causa(db.Model):
    __tablename__ = "causa"
    __table_args__ = (
        Index("ix_causa_status_created", "status", "created_at"),
        Index("ix_causa_brought_by", "brought_by_user_id", "created_at"),
        Index("ix_causa_specialty_status", "specialty_id", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    caratula_tentativa: Mapped[str] = mapped_column(db.String(255), nullable=False)
    specialty_id: Mapped[int] = mapped_column(ForeignKey("especialidad.id"), nullable=False)
    objeto: Mapped[str] = mapped_column(db.Text, nullable=False)
    resumen: Mapped[str] = mapped_column(db.Text, nullable=False)
    jurisdiccion: Mapped[Jurisdiccion] = mapped_column(SAEnum(Jurisdiccion, name="jurisdiccion"), nullable=False)
    brought_by_user_id: Mapped[int] = mapped_column(ForeignKey("user_account.id"), nullable=False)
    brought_by_participates: Mapped[bool] = mapped_column(nullable=False, default=False)
    assignment_mode: Mapped[AssignmentMode] = mapped_column(
        SAEnum(AssignmentMode, name="assignment_mode"),
        nullable=False,
        default=AssignmentMode.AUTO,
    )
    direct_assignee_ids: Mapped[list[int]] = mapped_column(db.JSON, nullable=False, default=list)
    direct_justification: Mapped[str] = mapped_column(db.Text, nullable=False, default="")
    required_assignees_count: Mapped[int] = mapped_column(nullable=False, default=REQUIRED_ASSIGNEES_COUNT)
    status: Mapped[CausaStatus] = mapped_column(
        SAEnum(CausaStatus, name="causa_status"),
        nullable=False,
        default=CausaStatus.DRAFT,
    )
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    specialty = relationship("Especialidad")
    brought_by = relationship("User", foreign_keys=[brought_by_user_id])
    confirmations = relationship(
        "CausaConfirmacion",
        back_populates="causa",
        cascade="all, delete-orphan",
        order_by="CausaConfirmacion.id",
    )
    invitations = relationship(
        "Invitacion",
        back_populates="causa",
        cascade="all, delete-orphan",
        order_by="Invitacion.id",
    )

    @property
    def confirmed_user_ids(self) -> list[int]:
        return [c.user_id for c in self.confirmations]


class CausaConfirmacion(db.Model):
    __tablename__ = "causa_confirmacion"
    __table_args__ = (UniqueConstraint("causa_id", "user_id", name="uq_causa_confirmacion_user"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    causa_id: Mapped[int] = mapped_column(ForeignKey("causa.id"), nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user_account.id"), nullable=False)
    confirmed_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    causa = relationship("Causa", back_populates="confirmations")
    user = relationship("User")


class Invitacion(db.Model):
    __tablename__ = "invitacion"
    __table_args__ = (
        # A lawyer is never invited twice to the same case
        UniqueConstraint("causa_id", "invited_user_id", name="uq_invitacion_causa_user"),
        Index("ix_invitacion_invited_status", "invited_user_id", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    causa_id: Mapped[int] = mapped_column(ForeignKey("causa.id"), nullable=False, index=True)
    invited_user_id: Mapped[int] = mapped_column(ForeignKey("user_account.id"), nullable=False)
    invited_email: Mapped[str] = mapped_column(db.String(255), nullable=False, default="")
    status: Mapped[InviteStatus] = mapped_column(
        SAEnum(InviteStatus, name="invite_status"),
        nullable=False,
        default=InviteStatus.PENDING,
    )
    mode: Mapped[AssignmentMode] = mapped_column(SAEnum(AssignmentMode, name="invite_mode"), nullable=False)
    direct_justification: Mapped[str] = mapped_column(db.Text, nullable=False, default="")
    invited_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    responded_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_by_user_id: Mapped[int] = mapped_column(ForeignKey("user_account.id"), nullable=False)

    causa = relationship("Causa", back_populates="invitations")
    invited_user = relationship("User", foreign_keys=[invited_user_id])


DEMO_SPECIALTIES: tuple[str, ...] = ("Civil", "Comercial", "Familia", "Laboral", "Penal")


def seed_demo_data(session) -> None:
    specialties = [Especialidad(name=name) for name in DEMO_SPECIALTIES]
    session.add_all(specialties)
    session.flush()

    admin = User(
        email="admin@estudio.local",
        password_hash=generate_password_hash("admin123"),
        role=UserRole.ADMIN,
        is_practicing=False,
    )
    session.add(admin)

    for idx, email in enumerate(generate_demo_lawyers(len(specialties) * 3)):
        lawyer = User(
            email=email,
            password_hash=generate_password_hash("abogado123"),
            role=UserRole.LAWYER,
            is_practicing=True,
        )
        # Every lawyer covers two consecutive specialties
        lawyer.specialties = [
            specialties[idx % len(specialties)],
            specialties[(idx + 1) % len(specialties)],
        ]
        session.add(lawyer)
    session.commit()
