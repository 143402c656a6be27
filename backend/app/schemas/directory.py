"""Schemas for the organization directory endpoints."""

from pydantic import ConfigDict
from pydantic.alias_generators import to_camel

from app.schemas.common import CamelModel


class OrgUnitRef(CamelModel):
    """Short reference to a directory entry embedded in other payloads."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    name: str
    code: str


class CompanyRead(OrgUnitRef):
    pass


class BusinessSiteRead(OrgUnitRef):
    company_id: int


class DepartmentRead(OrgUnitRef):
    business_site_id: int


class PositionRead(OrgUnitRef):
    pass
