"""Transient per-session inspection draft (never persisted until submission)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from ..schemas import ItemResultIn

CONDITIONS: tuple[str, ...] = ("good", "defect")


@dataclass
class DraftItem:
    barcode: str
    description: str = ""
    condition: str | None = None
    notes: str = ""
    photo_ref: str | None = None


@dataclass
class InspectionDraft:
    """Item conditions chosen so far for one person's monthly check."""

    items: dict[str, DraftItem] = field(default_factory=dict)

    @classmethod
    def for_equipment(cls, equipment: Iterable[object]) -> "InspectionDraft":
        draft = cls()
        for item in equipment:
            barcode = getattr(item, "barcode")
            draft.items[barcode] = DraftItem(
                barcode=barcode,
                description=getattr(item, "description", "") or "",
            )
        return draft

    def _item(self, barcode: str) -> DraftItem:
        try:
            return self.items[barcode]
        except KeyError:
            raise KeyError(f"Barcode {barcode} is not part of this draft") from None

    def set_condition(self, barcode: str, condition: str) -> None:
        if condition not in CONDITIONS:
            raise ValueError(f"Invalid condition: {condition}")
        item = self._item(barcode)
        item.condition = condition
        if condition == "good":
            item.notes = ""
            item.photo_ref = None

    def set_notes(self, barcode: str, notes: str) -> None:
        item = self._item(barcode)
        if item.condition != "defect":
            raise ValueError("Notes can only be recorded for defect items")
        item.notes = notes

    def attach_photo(self, barcode: str, photo_ref: str | None) -> None:
        item = self._item(barcode)
        if item.condition != "defect":
            raise ValueError("Photos can only be attached to defect items")
        item.photo_ref = photo_ref

    @property
    def is_complete(self) -> bool:
        return bool(self.items) and all(item.condition for item in self.items.values())

    @property
    def defect_barcodes(self) -> list[str]:
        return [item.barcode for item in self.items.values() if item.condition == "defect"]

    def to_results(self) -> list[ItemResultIn]:
        if not self.is_complete:
            missing = [item.barcode for item in self.items.values() if not item.condition]
            raise ValueError(f"Condition not set for: {', '.join(missing)}")
        return [
            ItemResultIn(
                barcode=item.barcode,
                condition=item.condition,
                notes=item.notes or None,
                photo_ref=item.photo_ref,
            )
            for item in self.items.values()
        ]
