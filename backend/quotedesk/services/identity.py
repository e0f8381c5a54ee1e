from __future__ import annotations

from dataclasses import dataclass

from quotedesk.models.domain import RoleName


@dataclass(frozen=True)
class Principal:
    """The acting user as resolved by the identity layer."""

    id: str
    role: RoleName = RoleName.buyer
    active_company_id: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.admin
