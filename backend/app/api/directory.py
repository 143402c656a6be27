"""Read-only organization directory used to pick chat partners."""

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.database import get_db
from app.models import BusinessSite, Company, Department, Position
from app.schemas import BusinessSiteRead, CompanyRead, DepartmentRead, PositionRead

router = APIRouter(tags=["directory"])


@router.get("/companies", response_model=list[CompanyRead])
def list_companies(db: Session = Depends(get_db)) -> list[Company]:
    return list(db.execute(select(Company).order_by(Company.name)).scalars())


@router.get("/sites", response_model=list[BusinessSiteRead])
def list_sites(db: Session = Depends(get_db)) -> list[BusinessSite]:
    return list(db.execute(select(BusinessSite).order_by(BusinessSite.name)).scalars())


@router.get("/sites/{company_id}", response_model=list[BusinessSiteRead])
def list_company_sites(company_id: int, db: Session = Depends(get_db)) -> list[BusinessSite]:
    """Return the sites of one company; unknown companies simply have none."""

    stmt = (
        select(BusinessSite)
        .where(BusinessSite.company_id == company_id)
        .order_by(BusinessSite.name)
    )
    return list(db.execute(stmt).scalars())


@router.get("/departments", response_model=list[DepartmentRead])
def list_departments(db: Session = Depends(get_db)) -> list[Department]:
    return list(db.execute(select(Department).order_by(Department.name)).scalars())


@router.get("/departments/{site_id}", response_model=list[DepartmentRead])
def list_site_departments(site_id: int, db: Session = Depends(get_db)) -> list[Department]:
    stmt = (
        select(Department)
        .where(Department.business_site_id == site_id)
        .order_by(Department.name)
    )
    return list(db.execute(stmt).scalars())


@router.get("/positions", response_model=list[PositionRead])
def list_positions(db: Session = Depends(get_db)) -> list[Position]:
    return list(db.execute(select(Position).order_by(Position.id)).scalars())
