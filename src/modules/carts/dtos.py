"""Cart DTOs."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict


class CartLineDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    variant_id: UUID
    quantity: int
