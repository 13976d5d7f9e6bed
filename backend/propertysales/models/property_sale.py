"""SQLAlchemy model for recorded property sale transactions."""
from __future__ import annotations

from sqlalchemy import Column, Date, DateTime, Index, Integer, Numeric, Text
from sqlalchemy.sql import func

from propertysales.db.orm_registry import Base

DEFAULT_DESCRIPTION = "Second-Hand Dwelling house /Apartment"


class PropertySale(Base):
    __tablename__ = "property_sale"
    __table_args__ = (
        Index("ix_property_sale_year_sale_date", "year", "sale_date"),
    )

    # PK
    id = Column(Integer, primary_key=True, autoincrement=True)

    # dedup key: (address, sale_date, eircode)
    sale_date = Column(Date, nullable=False, index=True)
    address = Column(Text, nullable=False, index=True)
    eircode = Column(Text, nullable=True, index=True)

    price = Column(Numeric(12, 2), nullable=False, index=True)  # EUR
    year = Column(Integer, nullable=False, index=True)          # sale_date.year
    county = Column(Text, nullable=True, index=True)
    full_address = Column(Text, nullable=False, default="", server_default="", index=True)
    description = Column(
        Text, nullable=False, default=DEFAULT_DESCRIPTION, server_default=DEFAULT_DESCRIPTION
    )

    # meta
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<PropertySale id={self.id} {self.sale_date} {self.address!r} {self.price}>"
