from __future__ import annotations

import pytest

from ppe_logs.domain_errors import DomainError
from ppe_logs.models import EquipmentItem, Person
from ppe_logs.use_cases.equipment_import import (
    ImportFilters,
    import_files_use_case,
    import_records_use_case,
    matches_site,
    parse_import_rows,
    should_exclude_condition,
)

FILTERS = ImportFilters(site_filter="HARROLD", excluded_conditions=("CONDEMNED", "LOST", "STOLEN"))


def _row(ref="1001", name="Alex Carter", barcode="BC1", details="FIRE COAT GOLD PBI",
         location="HARROLD STATION", condition="ISSUED", size="L"):
    return {
        "Employee No": ref,
        "Employee Name": name,
        "Location": location,
        "Product ID": barcode,
        "Garment Details": details,
        "Size": size,
        "Current Condition": condition,
    }


def test_import_creates_people_and_classified_items(db_session) -> None:
    summary = import_records_use_case(
        db=db_session,
        rows=[
            _row(barcode="BC1", details="FIRE COAT GOLD PBI"),
            _row(barcode="BC2", details="LEATHER BOOT"),
            _row(ref="1002", name="Sam Patel", barcode="BC3", details="FLASH HOOD"),
        ],
        filters=FILTERS,
    )

    assert summary.persons_touched == 2
    assert summary.persons_created == 2
    assert summary.items_imported == 3
    assert summary.items_skipped == 0

    alex = db_session.query(Person).filter(Person.employee_ref == "1001").one()
    categories = {item.barcode: item.category for item in db_session.query(EquipmentItem).all()}
    assert categories == {"BC1": "fire_tunic", "BC2": "boots", "BC3": "hood"}
    assert db_session.get(EquipmentItem, "BC1").owner_id == alex.id


def test_duplicate_barcode_first_seen_wins_by_default(db_session) -> None:
    summary = import_records_use_case(
        db=db_session,
        rows=[
            _row(barcode="BC1", details="FIRE COAT GOLD PBI"),
            _row(barcode="BC1", details="LEATHER BOOT"),
        ],
        filters=FILTERS,
    )

    items = db_session.query(EquipmentItem).all()
    assert len(items) == 1
    assert items[0].description == "FIRE COAT GOLD PBI"
    assert summary.skipped_by_reason == {"duplicate_barcode": 1}


def test_duplicate_barcode_last_seen_wins_when_configured(db_session) -> None:
    filters = ImportFilters(
        site_filter="HARROLD",
        excluded_conditions=("CONDEMNED",),
        duplicate_barcode_wins="last",
    )

    import_records_use_case(
        db=db_session,
        rows=[
            _row(barcode="BC1", details="FIRE COAT GOLD PBI"),
            _row(barcode="BC1", details="LEATHER BOOT"),
        ],
        filters=filters,
    )

    items = db_session.query(EquipmentItem).all()
    assert len(items) == 1
    assert items[0].description == "LEATHER BOOT"
    assert items[0].category == "boots"


def test_unknown_duplicate_policy_is_rejected(db_session) -> None:
    filters = ImportFilters(site_filter="", excluded_conditions=(), duplicate_barcode_wins="newest")

    with pytest.raises(DomainError) as exc:
        import_records_use_case(db=db_session, rows=[_row()], filters=filters)

    assert exc.value.code == "IMPORT_INVALID_POLICY"
    assert exc.value.http_status == 400


def test_rows_without_employee_reference_create_nothing(db_session) -> None:
    summary = import_records_use_case(
        db=db_session,
        rows=[_row(ref="", barcode="BC1"), _row(ref="   ", barcode="BC2")],
        filters=FILTERS,
    )

    assert summary.skipped_by_reason == {"missing_reference": 2}
    assert db_session.query(Person).count() == 0
    assert db_session.query(EquipmentItem).count() == 0


def test_other_sites_and_excluded_conditions_are_skipped(db_session) -> None:
    summary = import_records_use_case(
        db=db_session,
        rows=[
            _row(barcode="BC1", location="BEDFORD"),
            _row(barcode="BC2", condition="WRITTEN OFF - CONDEMNED"),
            _row(barcode="BC3", condition="lost"),
            _row(barcode=""),
            _row(barcode="BC5"),
        ],
        filters=FILTERS,
    )

    assert summary.items_imported == 1
    assert summary.skipped_by_reason == {
        "other_site": 1,
        "excluded_condition": 2,
        "missing_barcode": 1,
    }
    assert [item.barcode for item in db_session.query(EquipmentItem).all()] == ["BC5"]


def test_reimport_keeps_person_name_and_reassigns_item(db_session) -> None:
    import_records_use_case(
        db=db_session,
        rows=[_row(ref="1001", name="Alex Carter", barcode="BC1"), _row(ref="1002", name="Sam Patel", barcode="BC2")],
        filters=FILTERS,
    )

    summary = import_records_use_case(
        db=db_session,
        rows=[_row(ref="1001", name="A. Carter-Renamed", barcode="BC2", details="RTC COAT HI VIS")],
        filters=FILTERS,
    )

    assert summary.persons_created == 0
    assert summary.items_not_in_import == 1
    alex = db_session.query(Person).filter(Person.employee_ref == "1001").one()
    assert alex.name == "Alex Carter"
    moved = db_session.get(EquipmentItem, "BC2")
    assert moved.owner_id == alex.id
    assert moved.category == "rtc_tunic"
    assert db_session.query(Person).count() == 2


def test_missing_name_falls_back_to_reference(db_session) -> None:
    import_records_use_case(db=db_session, rows=[_row(ref="2001", name="")], filters=FILTERS)

    assert db_session.query(Person).one().name == "2001"


def test_empty_site_filter_accepts_every_location() -> None:
    assert matches_site("ANYWHERE", "")
    assert matches_site("Harrold Fire Station", "HARROLD")
    assert not matches_site(None, "HARROLD")


def test_condition_exclusion_is_substring_and_case_insensitive() -> None:
    vocabulary = ("CONDEMNED", "LOST", "STOLEN")

    assert should_exclude_condition("Item Stolen", vocabulary)
    assert not should_exclude_condition("IN SERVICE", vocabulary)
    assert not should_exclude_condition(None, vocabulary)


def test_parse_import_rows_tolerates_ragged_rows_and_blank_lines() -> None:
    lines = [
        "Employee No, Employee Name ,Location,Product ID,Garment Details,Size,Current Condition",
        "1001,Alex Carter,HARROLD,BC1,FIRE COAT GOLD PBI,L,ISSUED,unexpected-extra",
        ",,,,,,",
        "1002,Sam Patel,HARROLD,BC2",
    ]

    records = parse_import_rows(lines)

    assert len(records) == 2
    assert records[0].employee_name == "Alex Carter"
    assert records[0].garment_details == "FIRE COAT GOLD PBI"
    assert records[1].product_id == "BC2"
    assert records[1].garment_details is None


def test_import_files_reads_utf8_bom_exports(db_session, tmp_path) -> None:
    export = tmp_path / "export.csv"
    export.write_text(
        "Employee No,Employee Name,Location,Product ID,Garment Details,Size,Current Condition\n"
        "1001,Alex Carter,HARROLD,BC1,FIRE COAT GOLD PBI,L,ISSUED\n",
        encoding="utf-8-sig",
    )

    summary = import_files_use_case(db=db_session, paths=[export], filters=FILTERS)

    assert summary.items_imported == 1
    assert db_session.get(EquipmentItem, "BC1").category == "fire_tunic"
