"""Closed enumerations for account roles and lifecycle status."""

from enum import StrEnum


class Role(StrEnum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    INSPECTOR = "INSPECTOR"
    # Tenant-client: an account belonging to one client, scoped to that client's records
    CLIENT = "CLIENT"


class AccountStatus(StrEnum):
    ACTIVE = "ACTIVE"
    LOCKED = "LOCKED"
    DISABLED = "DISABLED"

