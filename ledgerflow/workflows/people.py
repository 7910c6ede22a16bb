"""Sample person used to populate customers and identity verifications."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class PersonName(BaseModel):
    first: str
    middle: Optional[str] = None
    last: str


class PersonAddress(BaseModel):
    street: str
    street2: Optional[str] = None
    city: str
    subdivision: str
    postal_code: str
    country_code: str


class IdentificationNumber(BaseModel):
    type: str
    issuing_country_code: str
    identification_number: str


class Person(BaseModel):
    """Personal details submitted for an individual customer."""

    name: PersonName
    address: PersonAddress
    date_of_birth: str
    email_address: str
    phone_number: str
    identification_numbers: List[IdentificationNumber] = Field(default_factory=list)

    def customer_params(self) -> Dict[str, Any]:
        return {
            "type": "individual",
            **self.model_dump(mode="json"),
        }

    def attested_verification_params(self, customer_guid: str) -> Dict[str, Any]:
        data = self.model_dump(
            mode="json",
            include={"name", "address", "date_of_birth", "identification_numbers"},
        )
        return {
            "type": "kyc",
            "method": "attested",
            "customer_guid": customer_guid,
            **data,
        }


def sample_person() -> Person:
    return Person(
        name=PersonName(first="Jane", last="Doe"),
        address=PersonAddress(
            street="15310 Taylor Walk Suite 995",
            city="New York",
            subdivision="NY",
            postal_code="12099",
            country_code="US",
        ),
        date_of_birth="2001-01-01",
        email_address="jane.doe@example.org",
        phone_number="+12406525665",
        identification_numbers=[
            IdentificationNumber(
                type="social_security_number",
                issuing_country_code="US",
                identification_number="669-55-0349",
            ),
            IdentificationNumber(
                type="drivers_license",
                issuing_country_code="US",
                identification_number="D152096714850065",
            ),
        ],
    )
