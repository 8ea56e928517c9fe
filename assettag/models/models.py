import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    String,
    DateTime,
    Boolean,
    ForeignKey,
    Integer,
    BigInteger,
    Float,
    JSON,
    Text,
    LargeBinary,
    Index,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship, Mapped, mapped_column

from ..db import Base


def uuid_pk() -> Mapped[uuid.UUID]:
    return mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = uuid_pk()
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(50), default="User", index=True)  # Administrator|Manager|User|Viewer
    status: Mapped[str] = mapped_column(String(20), default="Active", index=True)  # Active|Inactive
    department: Mapped[Optional[str]] = mapped_column(String(255))
    job_title: Mapped[Optional[str]] = mapped_column(String(255))
    phone_number: Mapped[Optional[str]] = mapped_column(String(100))
    profile_photo: Mapped[Optional[str]] = mapped_column(Text)
    notification_preferences: Mapped[Optional[dict]] = mapped_column(JSON)
    permissions: Mapped[Optional[dict]] = mapped_column(JSON)  # overrides on top of the role defaults
    last_login: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    reset_password_token: Mapped[Optional[str]] = mapped_column(String(128), index=True)  # sha256 hex of the raw token
    reset_password_expire: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), onupdate=datetime.utcnow)

    @property
    def is_active(self) -> bool:
        return self.status != "Inactive"


class Equipment(Base):
    """Tracked assets, addressed externally by their tag id (asset_id)"""
    __tablename__ = "equipment"

    id: Mapped[uuid.UUID] = uuid_pk()
    asset_id: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(100), default="Other", index=True)
    location: Mapped[Optional[str]] = mapped_column(String(255), index=True)
    status: Mapped[str] = mapped_column(String(100), default="In Use", index=True)
    model: Mapped[Optional[str]] = mapped_column(String(255))
    serial: Mapped[Optional[str]] = mapped_column(String(255))
    purchase_date: Mapped[Optional[str]] = mapped_column(String(40))  # ISO date string as entered
    acquisition_date: Mapped[Optional[str]] = mapped_column(String(40))
    cost: Mapped[Optional[float]] = mapped_column(Float)
    currency: Mapped[Optional[str]] = mapped_column(String(10), default="NGN")
    maintenance_period: Mapped[Optional[str]] = mapped_column(String(50), default="")
    maintenance_schedule: Mapped[Optional[str]] = mapped_column(String(50), default="")
    last_maintenance_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    next_scheduled_maintenance: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    maintenance_status: Mapped[str] = mapped_column(String(50), default="Not Scheduled")
    maintenance_due_notification_sent: Mapped[bool] = mapped_column(Boolean, default=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)  # legacy single-note field
    qr_code: Mapped[Optional[str]] = mapped_column(Text)
    assigned_to: Mapped[Optional[str]] = mapped_column(String(255))
    department: Mapped[Optional[str]] = mapped_column(String(255), index=True)
    last_modified: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), onupdate=datetime.utcnow)

    notes_history = relationship("AssetNote", back_populates="equipment", cascade="all, delete-orphan", order_by="AssetNote.created_at")
    attached_files = relationship("AssetFile", back_populates="equipment", cascade="all, delete-orphan", order_by="AssetFile.upload_date")


class AssetNote(Base):
    __tablename__ = "asset_notes"

    id: Mapped[uuid.UUID] = uuid_pk()
    equipment_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("equipment.id", ondelete="CASCADE"), index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    created_by: Mapped[str] = mapped_column(String(255), default="Admin")
    updated_by: Mapped[str] = mapped_column(String(255), default="Admin")

    equipment = relationship("Equipment", back_populates="notes_history")


class AssetFile(Base):
    """Documents attached to an asset; the bytes live in the database"""
    __tablename__ = "asset_files"

    id: Mapped[uuid.UUID] = uuid_pk()
    equipment_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("equipment.id", ondelete="CASCADE"), index=True)
    file_id: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    content_type: Mapped[Optional[str]] = mapped_column(String(255))
    data: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    size: Mapped[int] = mapped_column(Integer, default=0)
    upload_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)

    equipment = relationship("Equipment", back_populates="attached_files")


class Maintenance(Base):
    __tablename__ = "maintenance"

    id: Mapped[uuid.UUID] = uuid_pk()
    asset_id: Mapped[str] = mapped_column(String(100), index=True, nullable=False)  # Equipment.asset_id
    asset_name: Mapped[str] = mapped_column(String(255), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    scheduled_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    started_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    completed_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    service_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    technician: Mapped[str] = mapped_column(String(255), nullable=False)
    cost: Mapped[float] = mapped_column(Float, default=0)
    status: Mapped[str] = mapped_column(String(50), default="Scheduled", index=True)  # Scheduled|In Progress|Completed|Cancelled|Not Started
    priority: Mapped[str] = mapped_column(String(20), default="Medium")  # Low|Medium|High|Critical
    is_overdue: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    notification_sent: Mapped[bool] = mapped_column(Boolean, default=False)
    reminder_sent: Mapped[bool] = mapped_column(Boolean, default=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    next_maintenance_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    completed_by: Mapped[Optional[str]] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), onupdate=datetime.utcnow)

    __table_args__ = (
        Index('idx_maintenance_asset_date', 'asset_id', 'date'),
        Index('idx_maintenance_status_scheduled', 'status', 'scheduled_date'),
    )


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = uuid_pk()
    type: Mapped[str] = mapped_column(String(50), nullable=False)  # maintenance|status_change|assignment|alert|info|reminder|critical
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    asset_id: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    asset_name: Mapped[Optional[str]] = mapped_column(String(255))
    user_id: Mapped[Optional[str]] = mapped_column(String(64), index=True)  # None = general (admin) notification
    priority: Mapped[str] = mapped_column(String(20), default="medium")  # low|medium|high|critical
    read: Mapped[bool] = mapped_column(Boolean, default=False)
    action_required: Mapped[bool] = mapped_column(Boolean, default=False)
    action_url: Mapped[Optional[str]] = mapped_column(String(500))
    metadata_json: Mapped[Optional[dict]] = mapped_column("metadata", JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), onupdate=datetime.utcnow)

    __table_args__ = (
        Index('idx_notification_read_created', 'read', 'created_at'),
    )


class Activity(Base):
    __tablename__ = "activities"

    id: Mapped[uuid.UUID] = uuid_pk()
    asset_name: Mapped[str] = mapped_column(String(255), nullable=False)
    asset_id: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    action: Mapped[str] = mapped_column(String(255), nullable=False)
    action_type: Mapped[str] = mapped_column(String(50), nullable=False)  # Added|Updated|Deleted|Checked Out|Checked In|Maintenance|Other
    user: Mapped[str] = mapped_column(String(255), default="Admin")
    icon: Mapped[Optional[str]] = mapped_column(String(20), default="📝")
    details: Mapped[Optional[str]] = mapped_column(Text)
    date: Mapped[Optional[str]] = mapped_column(String(50))  # human label, e.g. "Just now"
    timestamp: Mapped[int] = mapped_column(BigInteger, index=True)  # epoch milliseconds
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)


class Tag(Base):
    __tablename__ = "tags"

    id: Mapped[uuid.UUID] = uuid_pk()
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True)  # Location|Department|Asset Type|Status
    color: Mapped[str] = mapped_column(String(20), default="#3B82F6")
    description: Mapped[Optional[str]] = mapped_column(Text)
    usage_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), onupdate=datetime.utcnow)


class AppSettings(Base):
    """Single-row application settings"""
    __tablename__ = "app_settings"

    id: Mapped[uuid.UUID] = uuid_pk()
    app_name: Mapped[str] = mapped_column(String(255), default="Q tag Manager")
    timezone: Mapped[str] = mapped_column(String(50), default="UTC-5")
    maintenance_mode: Mapped[bool] = mapped_column(Boolean, default=False)
    api_key: Mapped[Optional[str]] = mapped_column(String(255))
    last_api_use: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    logo_url: Mapped[str] = mapped_column(Text, default="")
    primary_color: Mapped[str] = mapped_column(String(20), default="#3B82F6")
    secondary_color: Mapped[str] = mapped_column(String(20), default="#10B981")
    company_name: Mapped[str] = mapped_column(String(255), default="AssetManager")
    email_notifications_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    email_host: Mapped[str] = mapped_column(String(255), default="")
    email_port: Mapped[int] = mapped_column(Integer, default=587)
    email_username: Mapped[str] = mapped_column(String(255), default="")
    email_password: Mapped[str] = mapped_column(String(255), default="")
    integrations: Mapped[Optional[dict]] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), onupdate=datetime.utcnow)
