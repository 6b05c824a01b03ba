from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from ..domain.ports.identity import IdentityProfile, IdentityProviderPort
from ..errors import AuthError, UpstreamError

logger = logging.getLogger("travel_admin.identity")

_PROVIDER_NAMES = {
    "google.com": "google",
    "facebook.com": "facebook",
    "password": "password",
}

_LIST_PAGE_SIZE = 1000


class IdentityProviderClient(IdentityProviderPort):
    """REST client for the identity provider's account endpoints.

    ``verify_id_token`` resolves a client-supplied ID token to the account it
    belongs to. ``list_accounts`` pages through every account in the project
    and needs an admin bearer token.
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str = "",
        project_id: str = "",
        admin_token: str = "",
        timeout_seconds: float = 10.0,
        max_retries: int = 2,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._project_id = project_id
        self._admin_token = admin_token
        self._timeout_seconds = timeout_seconds
        self._max_retries = max_retries
        self._transport = transport

    async def verify_id_token(self, id_token: str) -> IdentityProfile:
        if not self._api_key:
            raise UpstreamError("Identity provider is not configured")

        response = await self._request(
            "POST",
            "accounts:lookup",
            params={"key": self._api_key},
            json={"idToken": id_token},
        )
        if response.status_code in (
            httpx.codes.BAD_REQUEST,
            httpx.codes.UNAUTHORIZED,
            httpx.codes.FORBIDDEN,
        ):
            raise AuthError("Invalid identity token")
        self._raise_for_upstream(response)

        users = self._json_payload(response).get("users") or []
        if not users or not isinstance(users[0], Mapping):
            raise AuthError("Invalid identity token")
        return _map_account(users[0])

    async def list_accounts(self) -> Sequence[IdentityProfile]:
        if not self._project_id or not self._admin_token:
            raise UpstreamError("Identity provider admin access is not configured")

        accounts: list[IdentityProfile] = []
        page_token: str | None = None
        while True:
            params = {"maxResults": str(_LIST_PAGE_SIZE)}
            if page_token:
                params["nextPageToken"] = page_token
            response = await self._request(
                "GET",
                f"projects/{self._project_id}/accounts:batchGet",
                params=params,
                headers={"Authorization": f"Bearer {self._admin_token}"},
            )
            self._raise_for_upstream(response)
            payload = self._json_payload(response)
            accounts.extend(
                _map_account(item)
                for item in payload.get("users") or []
                if isinstance(item, Mapping) and item.get("localId")
            )
            page_token = payload.get("nextPageToken")
            if not page_token:
                break

        logger.info("Fetched %d accounts from identity provider", len(accounts))
        return accounts

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        url = f"{self._base_url}/{path.lstrip('/')}"
        last_error: httpx.RequestError | None = None
        for attempt in range(self._max_retries + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=self._timeout_seconds, transport=self._transport
                ) as client:
                    return await client.request(
                        method, url, params=params, json=json, headers=headers
                    )
            except httpx.RequestError as exc:
                last_error = exc
                logger.warning(
                    "Identity provider request failed attempt=%d path=%s error=%s",
                    attempt + 1,
                    path,
                    exc,
                )
                if attempt >= self._max_retries:
                    break
                await asyncio.sleep(0.5 * (attempt + 1))

        raise UpstreamError(details=str(last_error)) from last_error

    @staticmethod
    def _raise_for_upstream(response: httpx.Response) -> None:
        if response.is_success:
            return
        logger.error(
            "Identity provider returned status=%s body=%s",
            response.status_code,
            response.text[:500],
        )
        raise UpstreamError(details={"status": response.status_code})

    @staticmethod
    def _json_payload(response: httpx.Response) -> Mapping[str, Any]:
        try:
            payload = response.json()
        except ValueError as exc:
            logger.error(
                "Identity provider returned non-JSON body=%s", response.text[:500]
            )
            raise UpstreamError(details="Malformed identity provider response") from exc
        if not isinstance(payload, Mapping):
            raise UpstreamError(details="Malformed identity provider response")
        return payload


def _map_account(item: Mapping[str, Any]) -> IdentityProfile:
    provider = "password"
    provider_info = item.get("providerUserInfo") or []
    if provider_info and isinstance(provider_info[0], Mapping):
        provider_id = str(provider_info[0].get("providerId") or "password")
        provider = _PROVIDER_NAMES.get(provider_id, provider_id)
    return IdentityProfile(
        uid=str(item["localId"]),
        email=str(item.get("email") or ""),
        display_name=str(item.get("displayName") or ""),
        photo_url=str(item.get("photoUrl") or ""),
        email_verified=bool(item.get("emailVerified", False)),
        provider=provider,
    )
