"""initial schema: people, equipment, inspection cycles, item results, audit sign-offs

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-16
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

CATEGORY_TAGS = (
    "fire_tunic", "rtc_tunic", "trousers", "fire_gloves", "rtc_gloves",
    "boots", "hood", "helmet", "half_mask", "ba_mask", "other",
)


def upgrade() -> None:
    op.create_table(
        "people",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("employee_ref", sa.String(50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_people_employee_ref", "people", ["employee_ref"], unique=True)

    op.create_table(
        "equipment_items",
        sa.Column("barcode", sa.String(100), primary_key=True),
        sa.Column("category", sa.String(30), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("size", sa.String(50), nullable=True),
        sa.Column("owner_id", sa.Uuid(), sa.ForeignKey("people.id"), nullable=False),
        sa.Column("imported_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            "category IN (" + ", ".join(f"'{tag}'" for tag in CATEGORY_TAGS) + ")",
            name="chk_equipment_category",
        ),
    )
    op.create_index("ix_equipment_items_category", "equipment_items", ["category"])
    op.create_index("ix_equipment_items_owner_id", "equipment_items", ["owner_id"])

    op.create_table(
        "inspection_cycles",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("person_id", sa.Uuid(), sa.ForeignKey("people.id"), nullable=False),
        sa.Column("month", sa.String(7), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("person_id", "month", name="uq_inspection_cycle_person_month"),
    )
    op.create_index("ix_inspection_cycles_person_id", "inspection_cycles", ["person_id"])
    op.create_index("ix_inspection_cycles_month", "inspection_cycles", ["month"])

    op.create_table(
        "item_results",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "cycle_id",
            sa.Uuid(),
            sa.ForeignKey("inspection_cycles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("barcode", sa.String(100), sa.ForeignKey("equipment_items.barcode"), nullable=False),
        sa.Column("condition", sa.String(10), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("photo_ref", sa.Text(), nullable=True),
        sa.Column("checked_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("condition IN ('good', 'defect')", name="chk_item_result_condition"),
        sa.UniqueConstraint("cycle_id", "barcode", name="uq_item_result_cycle_barcode"),
    )
    op.create_index("ix_item_results_cycle_id", "item_results", ["cycle_id"])
    op.create_index("ix_item_results_barcode", "item_results", ["barcode"])
    op.create_index("idx_item_results_condition", "item_results", ["condition"])

    op.create_table(
        "audit_signoffs",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("quarter", sa.String(7), nullable=False),
        sa.Column("signed_by", sa.String(255), nullable=False),
        sa.Column("signed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    op.create_index("ix_audit_signoffs_quarter", "audit_signoffs", ["quarter"], unique=True)


def downgrade() -> None:
    op.drop_table("audit_signoffs")
    op.drop_table("item_results")
    op.drop_table("inspection_cycles")
    op.drop_table("equipment_items")
    op.drop_table("people")
