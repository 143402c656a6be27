"""Read-only organization directory: companies, sites, departments and positions."""

from __future__ import annotations

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base


class Company(Base):
    __tablename__ = "companies"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)

    sites: Mapped[list["BusinessSite"]] = relationship(
        back_populates="company", order_by="BusinessSite.name"
    )


class BusinessSite(Base):
    """Office or plant belonging to a company."""

    __tablename__ = "business_sites"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    company_id: Mapped[int] = mapped_column(
        ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True
    )

    company: Mapped[Company] = relationship(back_populates="sites")
    departments: Mapped[list["Department"]] = relationship(
        back_populates="business_site", order_by="Department.name"
    )


class Department(Base):
    __tablename__ = "departments"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    business_site_id: Mapped[int] = mapped_column(
        ForeignKey("business_sites.id", ondelete="CASCADE"), nullable=False, index=True
    )

    business_site: Mapped[BusinessSite] = relationship(back_populates="departments")


class Position(Base):
    __tablename__ = "positions"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
