from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    username: Mapped[str] = mapped_column(String(150), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default="admin")
    can_view_all: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)


class CustomerRow(Base):
    __tablename__ = "customers"
    __table_args__ = (
        Index("idx_customers_creator_id", "creator_id"),
        Index("idx_customers_platform", "platform"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    # No FK: a customer outlives the account that created it.
    creator_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    contact_info: Mapped[str] = mapped_column(Text, nullable=False, default="")
    platform: Mapped[str] = mapped_column(String(32), nullable=False)
    deal_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    expiry_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    last_tracked_date: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    images: Mapped[list["CustomerImageRow"]] = relationship(
        "CustomerImageRow",
        back_populates="customer",
        cascade="all, delete-orphan",
        order_by="CustomerImageRow.position",
        lazy="selectin",
    )
    copywritings: Mapped[list["CustomerCopywritingRow"]] = relationship(
        "CustomerCopywritingRow",
        back_populates="customer",
        cascade="all, delete-orphan",
        order_by="CustomerCopywritingRow.position",
        lazy="selectin",
    )


class CustomerImageRow(Base):
    __tablename__ = "customer_images"
    __table_args__ = (
        Index("idx_customer_images_customer_id", "customer_id", "position"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    customer_id: Mapped[str] = mapped_column(ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    url: Mapped[str] = mapped_column(Text, nullable=False)  # data URI or storage:// key
    is_ai_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    customer: Mapped[CustomerRow] = relationship("CustomerRow", back_populates="images")


class CustomerCopywritingRow(Base):
    __tablename__ = "customer_copywritings"
    __table_args__ = (
        Index("idx_customer_copywritings_customer_id", "customer_id", "position"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    customer_id: Mapped[str] = mapped_column(ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    is_ai_generated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    model_used: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    customer: Mapped[CustomerRow] = relationship("CustomerRow", back_populates="copywritings")


class ManualSectionRow(Base):
    __tablename__ = "manual_sections"
    __table_args__ = (
        Index("idx_manual_sections_platform", "platform"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    platform: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False, default="guide")
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class AuditEventRow(Base):
    """
    Append-only audit trail event.
    """

    __tablename__ = "audit_events"
    __table_args__ = (
        UniqueConstraint("request_id", "id", name="uq_audit_request_id_id"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    request_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    actor_user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    actor_username: Mapped[str | None] = mapped_column(String(150), nullable=True)

    action: Mapped[str] = mapped_column(String(128), nullable=False)  # e.g. "customer.save"
    entity_type: Mapped[str | None] = mapped_column(String(128), nullable=True)
    entity_id: Mapped[str | None] = mapped_column(String(128), nullable=True)

    metadata_json: Mapped[str | None] = mapped_column(Text, nullable=True)  # small JSON string
