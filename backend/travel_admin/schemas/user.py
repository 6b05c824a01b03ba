from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..auth.rbac_contract import Role
from ..domain.ports.user import UserAccountData

Gender = Literal["Male", "Female", "Other"]

PROFILE_FIELDS: tuple[str, ...] = (
    "first_name",
    "last_name",
    "gender",
    "date_of_birth",
    "mobile",
    "avatar",
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProfileRead(CamelModel):
    first_name: str
    last_name: str
    gender: str
    date_of_birth: str
    mobile: str
    avatar: str


class AccountMetadataRead(CamelModel):
    created_at: datetime
    last_login_at: datetime
    is_active: bool
    email_verified: bool


class UserRecordRead(CamelModel):
    uid: str
    email: str
    role: Role
    category: str
    profile: ProfileRead
    metadata: AccountMetadataRead
    permissions: list[str] = Field(default_factory=list)
    assigned_by: str = ""

    @classmethod
    def from_account(cls, account: UserAccountData) -> "UserRecordRead":
        return cls(
            uid=account.id,
            email=account.email,
            role=Role(account.role),
            category=account.category or "",
            profile=ProfileRead(
                **{name: getattr(account, name) or "" for name in PROFILE_FIELDS}
            ),
            metadata=AccountMetadataRead(
                created_at=account.created_at,
                last_login_at=account.last_login_at,
                is_active=account.is_active,
                email_verified=account.email_verified,
            ),
            permissions=list(account.permissions or []),
            assigned_by=account.assigned_by or "",
        )


class ProfileUpdate(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )

    first_name: str | None = Field(None, max_length=255)
    last_name: str | None = Field(None, max_length=255)
    gender: Gender | None = None
    date_of_birth: str | None = Field(None, max_length=32)
    mobile: str | None = Field(None, max_length=32)
    avatar: str | None = None

    def changes(self) -> dict[str, Any]:
        """Only the fields the caller sent; omitted fields stay unchanged."""
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None
        }


class AdminUserUpdate(CamelModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )

    role: Role | None = None
    category: str | None = Field(None, max_length=100)
    is_active: bool | None = None
    profile: ProfileUpdate | None = None

    def changes(self) -> dict[str, Any]:
        changes: dict[str, Any] = {}
        if self.role is not None:
            changes["role"] = self.role
        if self.category is not None:
            changes["category"] = self.category
        if self.is_active is not None:
            changes["is_active"] = self.is_active
        if self.profile is not None:
            changes["profile"] = self.profile.changes()
        return changes


class UserListResponse(BaseModel):
    users: list[UserRecordRead]


class OkResponse(BaseModel):
    ok: bool = True


class MeResponse(BaseModel):
    user: UserRecordRead
    dashboard: str
