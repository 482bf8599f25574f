"""
siteorder.auth.models

Auth domain models.

Responsibilities:
- Define the authenticated identity type (`Principal`) injected into endpoints.
"""

from __future__ import annotations

from dataclasses import dataclass

SUPER_ADMIN_ROLE = "super_admin"


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity. `subject` is the user id used across
    orders, profiles and user_packages.
    """

    subject: str
    roles: frozenset[str]

    @property
    def is_admin(self) -> bool:
        return "admin" in self.roles or SUPER_ADMIN_ROLE in self.roles
