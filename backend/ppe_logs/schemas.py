"""Pydantic schemas for API and use-case payloads."""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Literal, Optional
from datetime import datetime
from uuid import UUID


Condition = Literal["good", "defect"]


# Import schemas
class RawRecord(BaseModel):
    """One row of an equipment export, keyed by the export's column headers."""

    employee_ref: Optional[str] = Field(default=None, alias="Employee No")
    employee_name: Optional[str] = Field(default=None, alias="Employee Name")
    location: Optional[str] = Field(default=None, alias="Location")
    product_id: Optional[str] = Field(default=None, alias="Product ID")
    garment_details: Optional[str] = Field(default=None, alias="Garment Details")
    size: Optional[str] = Field(default=None, alias="Size")
    current_condition: Optional[str] = Field(default=None, alias="Current Condition")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ImportSummary(BaseModel):
    persons_touched: int = 0
    persons_created: int = 0
    items_imported: int = 0
    items_skipped: int = 0
    skipped_by_reason: dict[str, int] = Field(default_factory=dict)
    items_not_in_import: int = 0


# Roster schemas
class PersonOut(BaseModel):
    id: UUID
    name: str
    employee_ref: str
    model_config = ConfigDict(from_attributes=True)


class PersonListItem(PersonOut):
    equipment_count: int = 0


class EquipmentItemOut(BaseModel):
    barcode: str
    category: str
    category_label: str
    description: str
    size: Optional[str] = None
    owner_id: UUID


class CategoryOut(BaseModel):
    tag: str
    label: str


# Inspection schemas
class ItemResultIn(BaseModel):
    barcode: str = Field(min_length=1)
    condition: Condition
    notes: Optional[str] = None
    photo_ref: Optional[str] = None

    @field_validator("barcode")
    @classmethod
    def _strip_barcode(cls, value: str) -> str:
        return value.strip()


class SubmittedCycle(BaseModel):
    cycle_id: UUID
    person_id: UUID
    month: str
    completed_at: datetime
    items_checked: int
    defect_count: int


class ItemResultOut(BaseModel):
    id: UUID
    barcode: str
    condition: str
    notes: Optional[str] = None
    photo_ref: Optional[str] = None
    checked_at: datetime
    category: Optional[str] = None
    description: Optional[str] = None
    size: Optional[str] = None


class CycleOut(BaseModel):
    id: UUID
    person_id: UUID
    month: str
    completed_at: datetime
    model_config = ConfigDict(from_attributes=True)


class CycleDetail(BaseModel):
    cycle: CycleOut
    items: list[ItemResultOut]


class CycleHistoryItem(CycleOut):
    person_name: Optional[str] = None
    items_checked: int = 0
    defects: int = 0


class DefectItem(BaseModel):
    barcode: str
    category: Optional[str] = None
    description: str = ""
    notes: Optional[str] = None
    photo_ref: Optional[str] = None


class DefectNotification(BaseModel):
    """Payload handed to the notifier when a submission contains defects."""

    person_id: UUID
    person_name: str
    month: str
    reported_at: datetime
    defects: list[DefectItem]


class OpenDefectOut(BaseModel):
    result_id: UUID
    barcode: str
    category: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None
    photo_ref: Optional[str] = None
    checked_at: datetime
    month: str
    person_id: UUID
    person_name: str


# Completeness schemas
class MonthlyPersonStatus(BaseModel):
    person: PersonOut
    status: Literal["complete", "incomplete"]
    last_cycle_at: Optional[datetime] = None
    open_defect_count: int = 0
    equipment_count: int = 0


class MonthlySummary(BaseModel):
    month: str
    total: int
    complete: int
    incomplete: int
    people: list[MonthlyPersonStatus]


class QuarterPersonRow(BaseModel):
    person: PersonOut
    month_flags: dict[str, bool]
    all_complete: bool


# Audit schemas
class SignoffCreate(BaseModel):
    quarter: str
    signed_by: str
    notes: Optional[str] = None


class SignoffOut(BaseModel):
    id: UUID
    quarter: str
    signed_by: str
    signed_at: datetime
    notes: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class QuarterlyCompleteness(BaseModel):
    quarter: str
    months: list[str]
    people: list[QuarterPersonRow]
    complete_count: int = 0
    signoff: Optional[SignoffOut] = None
