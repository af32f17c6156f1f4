"""Seed database with a demo roster and one month of inspections."""
from datetime import datetime, timezone

from ppe_logs.database import Base, SessionLocal, engine
from ppe_logs.models import Person
from ppe_logs.schemas import ItemResultIn
from ppe_logs.services.periods import format_month
from ppe_logs.use_cases.equipment_import import ImportFilters, import_records_use_case
from ppe_logs.use_cases.inspection_cycles import InspectionHooks, submit_cycle_use_case

DEMO_ROWS = [
    # (Employee No, Employee Name, Product ID, Garment Details, Size)
    ("1001", "Alex Carter", "BC100101", "FIRE COAT GOLD PBI MATRIX", "L"),
    ("1001", "Alex Carter", "BC100102", "FIRE TROUSER GOLD PBI MATRIX", "L"),
    ("1001", "Alex Carter", "BC100103", "FIRE FIGHTER GLOVE", "9"),
    ("1001", "Alex Carter", "BC100104", "HEROS TITAN HELMET", "M"),
    ("1002", "Sam Patel", "BC100201", "RTC COAT HI VIS", "M"),
    ("1002", "Sam Patel", "BC100202", "LEATHER BOOT", "8"),
    ("1002", "Sam Patel", "BC100203", "FLASH HOOD", "ONE SIZE"),
    ("1003", "Jordan Lee", "BC100301", "BA FACE MASK", "M"),
    ("1003", "Jordan Lee", "BC100302", "RSQ GLOVE", "10"),
]


def seed():
    """Seed database with demo data."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    try:
        if db.query(Person).first():
            print("⏭️  Roster already present, skipping seed")
            return

        rows = [
            {
                "Employee No": ref,
                "Employee Name": name,
                "Location": "HARROLD STATION",
                "Product ID": barcode,
                "Garment Details": details,
                "Size": size,
                "Current Condition": "ISSUED",
            }
            for ref, name, barcode, details, size in DEMO_ROWS
        ]
        summary = import_records_use_case(
            db=db,
            rows=rows,
            filters=ImportFilters(site_filter="HARROLD", excluded_conditions=("CONDEMNED", "LOST", "STOLEN")),
        )
        print(f"✅ Imported {summary.items_imported} items for {summary.persons_created} people")

        now = datetime.now(timezone.utc)
        month = format_month(now.year, now.month)
        alex = db.query(Person).filter(Person.employee_ref == "1001").one()
        results = [
            ItemResultIn(barcode="BC100101", condition="good"),
            ItemResultIn(barcode="BC100102", condition="good"),
            ItemResultIn(barcode="BC100103", condition="defect", notes="Split seam on left thumb"),
            ItemResultIn(barcode="BC100104", condition="good"),
        ]
        submit_cycle_use_case(db=db, person_id=alex.id, month=month, results=results, hooks=InspectionHooks())
        print(f"✅ Recorded {month} inspection for {alex.name}")

        print("\n🎉 Database seeded successfully!")

    except Exception as e:
        print(f"❌ Error seeding database: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed()
