"""SQLAlchemy models for people, equipment, inspection cycles and audit sign-offs."""
from sqlalchemy import (
    Column, String, DateTime, Text, Uuid,
    ForeignKey, CheckConstraint, Index, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid

from .database import Base
from .services.classifier import CATEGORY_TAGS

ITEM_CONDITIONS = ("good", "defect")


class Person(Base):
    """Roster member matched across imports by employee reference."""
    __tablename__ = "people"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    employee_ref = Column(String(50), unique=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    equipment = relationship("EquipmentItem", back_populates="owner")
    cycles = relationship("InspectionCycle", back_populates="person")


class EquipmentItem(Base):
    """Barcoded PPE item; the barcode is the primary key."""
    __tablename__ = "equipment_items"

    barcode = Column(String(100), primary_key=True)
    category = Column(String(30), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    size = Column(String(50), nullable=True)
    owner_id = Column(Uuid, ForeignKey("people.id"), nullable=False, index=True)
    imported_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint(
            category.in_(CATEGORY_TAGS),
            name="chk_equipment_category",
        ),
    )

    # Relationships
    owner = relationship("Person", back_populates="equipment")


class InspectionCycle(Base):
    """One person's completed monthly inspection."""
    __tablename__ = "inspection_cycles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    person_id = Column(Uuid, ForeignKey("people.id"), nullable=False, index=True)
    month = Column(String(7), nullable=False, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        # Authoritative once-per-month guard; application checks are only a shortcut.
        UniqueConstraint("person_id", "month", name="uq_inspection_cycle_person_month"),
    )

    # Relationships
    person = relationship("Person", back_populates="cycles")
    results = relationship("ItemResult", back_populates="cycle", cascade="all, delete-orphan")


class ItemResult(Base):
    """Condition of one equipment item within one cycle."""
    __tablename__ = "item_results"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    cycle_id = Column(
        Uuid,
        ForeignKey("inspection_cycles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    barcode = Column(String(100), ForeignKey("equipment_items.barcode"), nullable=False, index=True)
    condition = Column(String(10), nullable=False)
    notes = Column(Text, nullable=True)
    photo_ref = Column(Text, nullable=True)
    checked_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint(
            condition.in_(ITEM_CONDITIONS),
            name="chk_item_result_condition",
        ),
        UniqueConstraint("cycle_id", "barcode", name="uq_item_result_cycle_barcode"),
        Index("idx_item_results_condition", "condition"),
    )

    # Relationships
    cycle = relationship("InspectionCycle", back_populates="results")
    item = relationship("EquipmentItem")


class AuditSignoff(Base):
    """Quarterly completeness attestation; first sign-off wins."""
    __tablename__ = "audit_signoffs"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    quarter = Column(String(7), nullable=False, unique=True, index=True)
    signed_by = Column(String(255), nullable=False)
    signed_at = Column(DateTime(timezone=True), nullable=False)
    notes = Column(Text, nullable=True)
