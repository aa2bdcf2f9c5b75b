"""
Storage Module.

Provides the JSON document store and the grade sheet and user
repositories built on it.
"""

from panelgrade.store.json_store import DEFAULT_USERS, JsonStore, StoreError
from panelgrade.store.repository import GradeSheetRepository, UserRepository, new_id

__all__ = [
    "DEFAULT_USERS",
    "GradeSheetRepository",
    "JsonStore",
    "StoreError",
    "UserRepository",
    "new_id",
]
