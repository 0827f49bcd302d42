"""Persistence and collaborator ports."""
from .multi_order_repository import MultiOrderRepository
from .rider_directory import RiderDirectory
from .sub_order_store import SubOrderStore

__all__ = ["MultiOrderRepository", "RiderDirectory", "SubOrderStore"]
