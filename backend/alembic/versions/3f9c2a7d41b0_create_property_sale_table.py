"""create property_sale table

Revision ID: 3f9c2a7d41b0
Revises:
Create Date: 2025-01-27 10:12:31.204117
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3f9c2a7d41b0"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

DEFAULT_DESCRIPTION = "Second-Hand Dwelling house /Apartment"

INDEXES = [
    ("ix_property_sale_sale_date", ["sale_date"]),
    ("ix_property_sale_address", ["address"]),
    ("ix_property_sale_eircode", ["eircode"]),
    ("ix_property_sale_price", ["price"]),
    ("ix_property_sale_year", ["year"]),
    ("ix_property_sale_county", ["county"]),
    ("ix_property_sale_full_address", ["full_address"]),
    ("ix_property_sale_year_sale_date", ["year", "sale_date"]),
]


def upgrade() -> None:
    bind = op.get_bind()
    insp = sa.inspect(bind)

    if not insp.has_table("property_sale"):
        op.create_table(
            "property_sale",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("sale_date", sa.Date(), nullable=False),
            sa.Column("address", sa.Text(), nullable=False),
            sa.Column("eircode", sa.Text(), nullable=True),
            sa.Column("price", sa.Numeric(12, 2), nullable=False),
            sa.Column("year", sa.Integer(), nullable=False),
            sa.Column("county", sa.Text(), nullable=True),
            sa.Column("full_address", sa.Text(), nullable=False, server_default=""),
            sa.Column("description", sa.Text(), nullable=False, server_default=DEFAULT_DESCRIPTION),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        )

    # indexes (only if missing)
    existing_indexes = {ix["name"] for ix in sa.inspect(bind).get_indexes("property_sale")}
    for ix_name, cols in INDEXES:
        if ix_name not in existing_indexes:
            op.create_index(ix_name, "property_sale", cols, unique=False)


def downgrade() -> None:
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if not insp.has_table("property_sale"):
        return

    existing_indexes = {ix["name"] for ix in insp.get_indexes("property_sale")}
    for ix_name, _ in INDEXES:
        if ix_name in existing_indexes:
            op.drop_index(ix_name, table_name="property_sale")
    op.drop_table("property_sale")
