"""init schema

Revision ID: 0001_init
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa


revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def _counters():
    return [
        sa.Column("total_room", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("available_room", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("deposited_room", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("rented_room", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    ]


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("first_name", sa.String(length=80), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(length=80), nullable=False, server_default=""),
        sa.Column("email", sa.String(length=200), nullable=True),
        sa.Column("phone_country_code", sa.String(length=8), nullable=False, server_default="+84"),
        sa.Column("phone_number", sa.String(length=20), nullable=True),
        sa.Column("phone_number_full", sa.String(length=30), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("roles", sa.String(length=80), nullable=False, server_default="customer"),
        sa.Column("address", sa.String(length=300), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("is_locked", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"])
    op.create_index("ix_users_phone_number", "users", ["phone_number"])

    op.create_table(
        "bankings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("bank_name", sa.String(length=160), nullable=False),
        sa.Column("account_number", sa.String(length=60), nullable=False),
        sa.Column("account_holder", sa.String(length=160), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_bankings_user_id", "bankings", ["user_id"])

    op.create_table(
        "motels",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("owner_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("address", sa.String(length=300), nullable=False, server_default=""),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("total_floor", sa.Integer(), nullable=False, server_default="0"),
        *_counters(),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_motels_owner_id", "motels", ["owner_id"])

    op.create_table(
        "floors",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("motel_id", sa.Integer(), sa.ForeignKey("motels.id"), nullable=False),
        sa.Column("name", sa.String(length=80), nullable=False),
        sa.Column("key", sa.String(length=40), nullable=False),
        *_counters(),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_floors_motel_id", "floors", ["motel_id"])

    op.create_table(
        "rooms",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("floor_id", sa.Integer(), sa.ForeignKey("floors.id"), nullable=False),
        sa.Column("name", sa.String(length=80), nullable=False),
        sa.Column("key", sa.String(length=60), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="available"),
        sa.Column("price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("deposit_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("electricity_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("water_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("wifi_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("vehicle_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("garbage_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("acreage", sa.Float(), nullable=False, server_default="0"),
        sa.Column("minimum_months", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("person", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("vehicle", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("id_electric_meter", sa.String(length=80), nullable=True),
        sa.Column("room_password", sa.String(length=40), nullable=True),
        sa.Column("utilities_json", sa.Text(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("available_date", sa.Date(), nullable=True),
        sa.Column("unavailable_date", sa.Date(), nullable=True),
        sa.Column("previous_electricity_number", sa.Float(), nullable=False, server_default="0"),
        sa.Column("current_electricity_number", sa.Float(), nullable=False, server_default="0"),
        sa.Column("previous_water_number", sa.Float(), nullable=False, server_default="0"),
        sa.Column("current_water_number", sa.Float(), nullable=False, server_default="0"),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("rented_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_rooms_floor_id", "rooms", ["floor_id"])
    op.create_index("ix_rooms_status", "rooms", ["status"])

    op.create_table(
        "energy_readings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("room_id", sa.Integer(), sa.ForeignKey("rooms.id"), nullable=False),
        sa.Column("recorded_at", sa.DateTime(), nullable=False),
        sa.Column("kwh", sa.Float(), nullable=False),
    )
    op.create_index("ix_energy_readings_room_time", "energy_readings", ["room_id", "recorded_at"])

    op.create_table(
        "jobs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("room_id", sa.Integer(), sa.ForeignKey("rooms.id"), nullable=False),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("rental_period", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("bail", sa.Float(), nullable=False, server_default="0"),
        sa.Column("deposit", sa.Float(), nullable=False, server_default="0"),
        sa.Column("after_check_in_cost", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total", sa.Float(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=40), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_actived", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("full_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("phone_number", sa.String(length=30), nullable=True),
        sa.Column("room_password", sa.String(length=40), nullable=True),
        sa.Column("identity_images_json", sa.Text(), nullable=True),
        sa.Column("current_order_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_jobs_user_id", "jobs", ["user_id"])
    op.create_index("ix_jobs_room_id", "jobs", ["room_id"])
    op.create_index("ix_jobs_status", "jobs", ["status"])

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("job_id", sa.Integer(), sa.ForeignKey("jobs.id"), nullable=False),
        sa.Column("key_order", sa.String(length=20), nullable=False),
        sa.Column("type", sa.String(length=30), nullable=False),
        sa.Column("description", sa.String(length=300), nullable=False, server_default=""),
        sa.Column("amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("payment_method", sa.String(length=20), nullable=True),
        sa.Column("expire_time", sa.DateTime(), nullable=True),
        sa.Column("start_time", sa.Date(), nullable=True),
        sa.Column("end_time", sa.Date(), nullable=True),
        sa.Column("number_day_stay", sa.Integer(), nullable=True),
        sa.Column("electric_number", sa.Float(), nullable=False, server_default="0"),
        sa.Column("electric_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("water_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("service_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("vehicle_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("room_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("wifi_price", sa.Float(), nullable=False, server_default="0"),
        sa.Column("energy_detail_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("key_order", name="uq_orders_key_order"),
    )
    op.create_index("ix_orders_user_id", "orders", ["user_id"])
    op.create_index("ix_orders_job_id", "orders", ["job_id"])
    op.create_index("ix_orders_job_type_start", "orders", ["job_id", "type", "start_time"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id"), nullable=False),
        sa.Column("motel_id", sa.Integer(), sa.ForeignKey("motels.id"), nullable=False),
        sa.Column("room_id", sa.Integer(), sa.ForeignKey("rooms.id"), nullable=False),
        sa.Column("banking_id", sa.Integer(), sa.ForeignKey("bankings.id"), nullable=True),
        sa.Column("key_payment", sa.String(length=40), nullable=False),
        sa.Column("key_order", sa.String(length=20), nullable=False),
        sa.Column("description", sa.String(length=300), nullable=False, server_default=""),
        sa.Column("amount", sa.Float(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="waiting"),
        sa.Column("payment_method", sa.String(length=20), nullable=False, server_default="cash"),
        sa.Column("type", sa.String(length=30), nullable=False),
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    for col in ("user_id", "order_id", "motel_id", "room_id", "status"):
        op.create_index(f"ix_transactions_{col}", "transactions", [col])

    op.create_table(
        "bills",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id"), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("motel_id", sa.Integer(), sa.ForeignKey("motels.id"), nullable=False),
        sa.Column("room_id", sa.Integer(), sa.ForeignKey("rooms.id"), nullable=False),
        sa.Column("id_bill", sa.String(length=20), nullable=False),
        sa.Column("date_bill", sa.Date(), nullable=False),
        sa.Column("type", sa.String(length=30), nullable=False),
        sa.Column("description", sa.String(length=300), nullable=False, server_default=""),
        sa.Column("name_motel", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("address_motel", sa.String(length=300), nullable=False, server_default=""),
        sa.Column("name_room", sa.String(length=80), nullable=False, server_default=""),
        sa.Column("name_user", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("phone_user", sa.String(length=30), nullable=False, server_default=""),
        sa.Column("address_user", sa.String(length=300), nullable=False, server_default=""),
        sa.Column("email_user", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("name_owner", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("email_owner", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("phone_owner", sa.String(length=30), nullable=False, server_default=""),
        sa.Column("address_owner", sa.String(length=300), nullable=False, server_default=""),
        sa.Column("name_bank_owner", sa.String(length=160), nullable=False, server_default=""),
        sa.Column("number_bank_owner", sa.String(length=60), nullable=False, server_default=""),
        sa.Column("name_owner_bank_owner", sa.String(length=160), nullable=False, server_default=""),
        sa.Column("total_all", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_and_tax_all", sa.Float(), nullable=False, server_default="0"),
        sa.Column("total_tax_all", sa.Float(), nullable=False, server_default="0"),
        sa.Column("type_tax_all", sa.Float(), nullable=False, server_default="0"),
        sa.Column("start_time", sa.Date(), nullable=True),
        sa.Column("end_time", sa.Date(), nullable=True),
        sa.Column("line_items_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    for col in ("order_id", "user_id", "motel_id", "room_id"):
        op.create_index(f"ix_bills_{col}", "bills", [col])

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("type", sa.String(length=40), nullable=False, server_default="notification"),
        sa.Column("tag", sa.String(length=40), nullable=True),
        sa.Column("content_tag", sa.String(length=80), nullable=True),
        sa.Column("url", sa.String(length=300), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    op.create_table(
        "audit_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("actor_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity_type", sa.String(length=80), nullable=False),
        sa.Column("entity_id", sa.String(length=80), nullable=False),
        sa.Column("before_json", sa.Text(), nullable=True),
        sa.Column("after_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )


def downgrade():
    for table in (
        "audit_events",
        "notifications",
        "bills",
        "transactions",
        "orders",
        "jobs",
        "energy_readings",
        "rooms",
        "floors",
        "motels",
        "bankings",
        "users",
    ):
        op.drop_table(table)
