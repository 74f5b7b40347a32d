"""Org data store implementations."""

from feedloop.org_data.store import OrgDataStore
from feedloop.org_data.stores.inmemory import InMemoryOrgDataStore

__all__ = [
    "OrgDataStore",
    "InMemoryOrgDataStore",
]
