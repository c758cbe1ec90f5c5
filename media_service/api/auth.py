"""인증 위임 - 요청 자격 증명을 외부 사용자 서비스로 전달해 호출자를 확인"""

from __future__ import annotations

import asyncio
from typing import Protocol

import aiohttp
from fastapi import Request

from media_service.errors import AuthenticationRequiredError
from media_service.logger import get_logger
from media_service.models import Identity

logger = get_logger("api.auth")

AUTH_ME_PATH = "/api/v1/auth/me"


class IdentityResolver(Protocol):
    """자격 증명 -> 호출자 (또는 None)"""

    async def start(self) -> None: ...

    async def close(self) -> None: ...

    async def resolve(
        self,
        authorization: str | None,
        cookie: str | None,
    ) -> Identity | None: ...


def _identity_from_body(body: object) -> Identity | None:
    """{success: true, data: {user: {id, username}}} 응답에서 호출자를 추출합니다."""
    if not isinstance(body, dict) or not body.get("success"):
        return None
    data = body.get("data")
    user = data.get("user") if isinstance(data, dict) else None
    if not isinstance(user, dict) or not user.get("id"):
        return None
    return Identity(id=str(user["id"]), username=str(user.get("username") or ""))


class IdentityClient:
    """사용자 서비스의 /auth/me 를 호출해 호출자를 확인합니다.

    자격 증명이 없거나, 거부되었거나, 사용자 서비스에 연결할 수 없으면 None을 반환합니다.
    """

    def __init__(self, base_url: str, timeout_seconds: float = 5.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._session: aiohttp.ClientSession | None = None

    async def start(self) -> None:
        """HTTP 세션 생성"""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds)
            )

    async def close(self) -> None:
        """HTTP 세션 종료"""
        if self._session:
            await self._session.close()
            self._session = None

    async def resolve(
        self,
        authorization: str | None,
        cookie: str | None,
    ) -> Identity | None:
        if not authorization and not cookie:
            return None

        headers = {"Accept": "application/json"}
        if authorization:
            headers["Authorization"] = authorization
        if cookie:
            headers["Cookie"] = cookie

        await self.start()
        assert self._session is not None

        try:
            async with self._session.get(
                f"{self.base_url}{AUTH_ME_PATH}", headers=headers
            ) as resp:
                if resp.status != 200:
                    logger.info("사용자 서비스 인증 거부: HTTP %d", resp.status)
                    return None
                body = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("사용자 서비스 연결 실패: %s", e)
            return None
        except ValueError as e:
            logger.warning("사용자 서비스 응답 파싱 실패: %s", e)
            return None

        identity = _identity_from_body(body)
        if identity is None:
            logger.warning("사용자 서비스 응답 형식이 올바르지 않습니다.")
        return identity


async def require_identity(request: Request) -> Identity:
    """인증된 호출자를 반환하는 FastAPI 의존성

    Raises:
        AuthenticationRequiredError: 호출자를 확인할 수 없는 경우
    """
    resolver: IdentityResolver = request.app.state.identity_resolver
    identity = await resolver.resolve(
        request.headers.get("authorization"),
        request.headers.get("cookie"),
    )
    if identity is None:
        raise AuthenticationRequiredError()
    return identity
