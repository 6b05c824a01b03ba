from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence


@dataclass(frozen=True)
class IdentityProfile:
    """What the identity provider tells us about an authenticated account."""

    uid: str
    email: str
    display_name: str = ""
    photo_url: str = ""
    email_verified: bool = False
    provider: str = "password"


class IdentityProviderPort(Protocol):
    async def verify_id_token(self, id_token: str) -> IdentityProfile:
        ...

    async def list_accounts(self) -> Sequence[IdentityProfile]:
        ...
