"""add organization directory tables

Revision ID: 20261019_02
Revises: 20261019_01
Create Date: 2026-10-19 12:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_02"
down_revision = "20261019_01"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "companies",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.UniqueConstraint("name", name="uq_companies_name"),
        sa.UniqueConstraint("code", name="uq_companies_code"),
        mysql_charset="utf8mb4",
    )

    op.create_table(
        "business_sites",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["company_id"], ["companies.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("code", name="uq_business_sites_code"),
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_business_sites_company_id", "business_sites", ["company_id"])

    op.create_table(
        "departments",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("business_site_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["business_site_id"], ["business_sites.id"], ondelete="CASCADE"
        ),
        sa.UniqueConstraint("code", name="uq_departments_code"),
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_departments_business_site_id", "departments", ["business_site_id"])

    op.create_table(
        "positions",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.UniqueConstraint("name", name="uq_positions_name"),
        sa.UniqueConstraint("code", name="uq_positions_code"),
        mysql_charset="utf8mb4",
    )

    op.add_column("users", sa.Column("code", sa.String(length=32), nullable=True))
    op.add_column("users", sa.Column("company_id", sa.Integer(), nullable=True))
    op.add_column("users", sa.Column("business_site_id", sa.Integer(), nullable=True))
    op.add_column("users", sa.Column("department_id", sa.Integer(), nullable=True))
    op.add_column("users", sa.Column("position_id", sa.Integer(), nullable=True))
    op.create_unique_constraint("uq_users_code", "users", ["code"])
    op.create_foreign_key(
        "fk_users_company_id", "users", "companies", ["company_id"], ["id"], ondelete="SET NULL"
    )
    op.create_foreign_key(
        "fk_users_business_site_id",
        "users",
        "business_sites",
        ["business_site_id"],
        ["id"],
        ondelete="SET NULL",
    )
    op.create_foreign_key(
        "fk_users_department_id",
        "users",
        "departments",
        ["department_id"],
        ["id"],
        ondelete="SET NULL",
    )
    op.create_foreign_key(
        "fk_users_position_id", "users", "positions", ["position_id"], ["id"], ondelete="SET NULL"
    )


def downgrade() -> None:
    op.drop_constraint("fk_users_position_id", "users", type_="foreignkey")
    op.drop_constraint("fk_users_department_id", "users", type_="foreignkey")
    op.drop_constraint("fk_users_business_site_id", "users", type_="foreignkey")
    op.drop_constraint("fk_users_company_id", "users", type_="foreignkey")
    op.drop_constraint("uq_users_code", "users", type_="unique")
    op.drop_column("users", "position_id")
    op.drop_column("users", "department_id")
    op.drop_column("users", "business_site_id")
    op.drop_column("users", "company_id")
    op.drop_column("users", "code")
    op.drop_table("positions")
    op.drop_index("ix_departments_business_site_id", table_name="departments")
    op.drop_table("departments")
    op.drop_index("ix_business_sites_company_id", table_name="business_sites")
    op.drop_table("business_sites")
    op.drop_table("companies")
