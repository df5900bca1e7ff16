"""Customer DTOs handed to the order services."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from modules.customers.models import Customer


class CustomerDTO(BaseModel):
    """Identity fields used for notification and loyalty targeting."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    email: str
    phone: str = ""
    address: str = ""

    @classmethod
    def from_entity(cls, customer: Customer) -> CustomerDTO:
        return cls(
            id=customer.id,
            name=customer.name,
            email=customer.email,
            phone=customer.phone,
            address=customer.address,
        )
