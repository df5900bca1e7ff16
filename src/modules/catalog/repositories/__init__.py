"""Inventory repositories package."""

from modules.catalog.repositories.django_repository import InventoryDjangoRepository
from modules.catalog.repositories.interfaces import IInventoryRepository

__all__ = ["IInventoryRepository", "InventoryDjangoRepository"]
