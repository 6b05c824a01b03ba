from datetime import datetime

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, validates

from ..auth.rbac_contract import ALL_ROLES, DEFAULT_GENDER, GENDERS, parse_role
from .base import Base


class UserAccount(Base):
    """One row per identity-provider account, keyed by the provider's user id."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str] = mapped_column(
        String(320), nullable=False, index=True
    )
    role: Mapped[str] = mapped_column(
        String(32), nullable=False, server_default="User", index=True
    )
    category: Mapped[str] = mapped_column(
        String(100), nullable=False, server_default=""
    )

    # Profile
    first_name: Mapped[str] = mapped_column(String(255), nullable=False, server_default="")
    last_name: Mapped[str] = mapped_column(String(255), nullable=False, server_default="")
    gender: Mapped[str] = mapped_column(
        String(16), nullable=False, server_default=DEFAULT_GENDER
    )
    date_of_birth: Mapped[str] = mapped_column(String(32), nullable=False, server_default="")
    mobile: Mapped[str] = mapped_column(String(32), nullable=False, server_default="")
    avatar: Mapped[str] = mapped_column(Text, nullable=False, server_default="")

    # Metadata
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="true"
    )
    email_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="false"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    last_login_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    permissions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    assigned_by: Mapped[str] = mapped_column(String(128), nullable=False, server_default="")

    __table_args__ = (
        CheckConstraint(
            "role IN ({})".format(", ".join(f"'{role}'" for role in sorted(ALL_ROLES))),
            name="valid_user_role",
        ),
        CheckConstraint(
            "gender IN ({})".format(", ".join(f"'{g}'" for g in sorted(GENDERS))),
            name="valid_user_gender",
        ),
    )

    @validates("role")
    def validate_role(self, key: str, value: str) -> str:
        """Reject any role outside the six defined roles before it reaches the DB."""
        return parse_role(value).value

    @validates("gender")
    def validate_gender(self, key: str, value: str) -> str:
        if value not in GENDERS:
            raise ValueError(
                f"Invalid gender '{value}'. Must be one of: {', '.join(sorted(GENDERS))}"
            )
        return value
