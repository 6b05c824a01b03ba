from fastapi import APIRouter, Depends

from ..auth.rbac_contract import dashboard_for
from ..config import settings
from ..dependencies import get_current_user, get_identity_provider, get_user_port
from ..domain.ports.identity import IdentityProviderPort
from ..domain.ports.user import UserAccountData, UserPort
from ..schemas.auth import SessionCreate, SessionResponse
from ..schemas.user import MeResponse, OkResponse, ProfileUpdate, UserRecordRead
from ..security.token_inspection import create_access_token
from ..use_cases.accounts.provision_account import provision_account
from ..use_cases.accounts.update_profile import update_own_profile

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/session", response_model=SessionResponse)
async def create_session(
    payload: SessionCreate,
    user_port: UserPort = Depends(get_user_port),
    identity_provider: IdentityProviderPort = Depends(get_identity_provider),
) -> SessionResponse:
    identity = await identity_provider.verify_id_token(payload.id_token)
    result = await provision_account(
        user_port, identity, super_admin_emails=settings.super_admin_emails
    )
    return SessionResponse(
        access_token=create_access_token(identity.uid, result.role.value),
        role=result.role,
        persisted=result.persisted,
    )


@router.get("/me", response_model=MeResponse)
async def read_me(
    user: UserAccountData = Depends(get_current_user),
) -> MeResponse:
    return MeResponse(
        user=UserRecordRead.from_account(user), dashboard=dashboard_for(user.role)
    )


@router.patch("/me/profile", response_model=OkResponse)
async def patch_my_profile(
    payload: ProfileUpdate,
    user_port: UserPort = Depends(get_user_port),
    user: UserAccountData = Depends(get_current_user),
) -> OkResponse:
    await update_own_profile(user_port, user, payload.changes())
    return OkResponse()
