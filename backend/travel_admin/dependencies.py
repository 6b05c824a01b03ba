from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from .config import settings
from .crud.user_account import UserAccountRepository
from .database import get_session
from .domain.ports.audit import AuditPort
from .domain.ports.identity import IdentityProviderPort
from .domain.ports.user import UserAccountData, UserPort
from .infrastructure.identity_provider import IdentityProviderClient
from .security.token_inspection import ExpiredTokenError, InvalidTokenError, validate_access_token
from .services.audit.audit_service import AuditService

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


def get_user_port(db: AsyncSession = Depends(get_db)) -> UserPort:
    return UserAccountRepository(db)


def get_audit_port(db: AsyncSession = Depends(get_db)) -> AuditPort:
    return AuditService(db)


def get_identity_provider() -> IdentityProviderPort:
    return IdentityProviderClient(
        base_url=settings.identity_provider_url,
        api_key=settings.identity_provider_api_key,
        project_id=settings.identity_provider_project_id,
        admin_token=settings.identity_provider_admin_token,
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    user_port: UserPort = Depends(get_user_port),
) -> UserAccountData:
    """Resolve the bearer token to a stored, active account.

    The role used for authorization is always the stored one, never the
    role claim carried in the token.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated"
        )

    try:
        payload = validate_access_token(credentials.credentials)
    except ExpiredTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has expired"
        ) from None
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token"
        ) from None

    account = await user_port.get_by_id(payload["sub"])
    if account is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found"
        )
    if not account.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Account is deactivated"
        )

    return account
