from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity extracted from a validated JWT.

    Carried through the request via FastAPI's dependency system.

        user_id: subject from JWT. This is the principal the ledger
                 stores as owner, verifier, institution or refugee.
        roles:   platform roles (admin, user). Ledger permissions are
                 NOT roles: being a verifier or an institution is
                 recorded in the stores themselves.
    """

    user_id: str
    roles: frozenset[str]

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def is_platform_admin(self) -> bool:
        return "admin" in self.roles
