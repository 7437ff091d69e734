"""Normalized person identity models consumed by the credential assembler.

Normalization itself happens upstream; these models only fix the shape that
reaches the credential subject.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Address(BaseModel):
    """Postal address in the shape published by identity check credentials."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    uprn: int | None = None
    organisation_name: str | None = Field(default=None, alias="organisationName")
    department_name: str | None = Field(default=None, alias="departmentName")
    sub_building_name: str | None = Field(default=None, alias="subBuildingName")
    building_number: str | None = Field(default=None, alias="buildingNumber")
    building_name: str | None = Field(default=None, alias="buildingName")
    dependent_street_name: str | None = Field(default=None, alias="dependentStreetName")
    street_name: str | None = Field(default=None, alias="streetName")
    double_dependent_address_locality: str | None = Field(
        default=None, alias="doubleDependentAddressLocality"
    )
    dependent_address_locality: str | None = Field(default=None, alias="dependentAddressLocality")
    address_locality: str | None = Field(default=None, alias="addressLocality")
    postal_code: str | None = Field(default=None, alias="postalCode")
    address_country: str | None = Field(default=None, alias="addressCountry")
    valid_from: date | None = Field(default=None, alias="validFrom")
    valid_until: date | None = Field(default=None, alias="validUntil")

    def to_claim(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class NamePartType(str, Enum):
    GIVEN_NAME = "GivenName"
    FAMILY_NAME = "FamilyName"


class NamePart(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: NamePartType
    value: str


class Name(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name_parts: tuple[NamePart, ...] = Field(default=(), alias="nameParts")

    def to_claim(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class BirthDate(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: date

    def to_claim(self) -> dict[str, str]:
        return {"value": self.value.isoformat()}


class PersonIdentity(BaseModel):
    """Addresses, names and birth dates of the verified person."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    addresses: tuple[Address, ...] = ()
    names: tuple[Name, ...] = ()
    birth_dates: tuple[BirthDate, ...] = Field(default=(), alias="birthDates")


__all__ = [
    "Address",
    "BirthDate",
    "Name",
    "NamePart",
    "NamePartType",
    "PersonIdentity",
]
