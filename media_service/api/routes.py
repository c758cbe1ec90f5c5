"""미디어 API 라우트"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from media_service.api.auth import require_identity
from media_service.config import Settings
from media_service.errors import InvalidUrlError
from media_service.models import (
    ExtractionStatus,
    Identity,
    MediaFilter,
    MediaType,
    Page,
    PageRequest,
    Platform,
)
from media_service.registrar import MediaRegistrar

router = APIRouter()


class RegisterRequest(BaseModel):
    """POST /media 요청 본문 (형식 검증은 URL 처리기에서 수행)"""

    url: Any = None


def get_registrar(request: Request) -> MediaRegistrar:
    return request.app.state.registrar


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def _page_request(settings: Settings, page: int, limit: int | None) -> PageRequest:
    return PageRequest.clamp(
        page,
        limit,
        default_limit=settings.pagination.default_limit,
        max_limit=settings.pagination.max_limit,
    )


def _page_body(result: Page) -> dict[str, Any]:
    return {
        "media": [item.to_dict() for item in result.items],
        "pagination": result.pagination_dict(),
    }


@router.get("/status")
async def api_status() -> dict[str, str]:
    return {"status": "OK", "message": "API is running"}


# /media/{media_id} 보다 먼저 선언해야 함
@router.get("/media/extract")
async def extract_preview(
    url: str | None = None,
    identity: Identity = Depends(require_identity),
    registrar: MediaRegistrar = Depends(get_registrar),
) -> dict[str, Any]:
    """저장하지 않고 정규화/플랫폼 감지 결과를 미리 봅니다."""
    if not url:
        raise InvalidUrlError("URL parameter is required")
    return registrar.preview(url)


@router.get("/media/search")
async def search_media(
    q: str | None = None,
    platform: Platform | None = None,
    media_type: MediaType | None = Query(None, alias="type"),
    page: int = 1,
    limit: int | None = None,
    identity: Identity = Depends(require_identity),
    registrar: MediaRegistrar = Depends(get_registrar),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    result = await registrar.search(
        q,
        MediaFilter(platform=platform, type=media_type),
        _page_request(settings, page, limit),
    )
    body = _page_body(result)
    body["query"] = {
        "q": q,
        "platform": platform.value if platform else None,
        "type": media_type.value if media_type else None,
    }
    return body


@router.post("/media")
async def register_media(
    payload: RegisterRequest,
    identity: Identity = Depends(require_identity),
    registrar: MediaRegistrar = Depends(get_registrar),
) -> JSONResponse:
    """URL 등록: 신규 201, 이미 등록된 URL은 기존 항목과 함께 200"""
    result = await registrar.register(payload.url, identity)
    return JSONResponse(
        status_code=201 if result.created else 200,
        content=result.item.to_dict(),
    )


@router.get("/media/{media_id}")
async def get_media(
    media_id: str,
    identity: Identity = Depends(require_identity),
    registrar: MediaRegistrar = Depends(get_registrar),
) -> dict[str, Any]:
    item = await registrar.get_by_id(media_id)
    return item.to_dict()


@router.get("/media")
async def list_media(
    platform: Platform | None = None,
    media_type: MediaType | None = Query(None, alias="type"),
    status: ExtractionStatus | None = None,
    page: int = 1,
    limit: int | None = None,
    identity: Identity = Depends(require_identity),
    registrar: MediaRegistrar = Depends(get_registrar),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    result = await registrar.list_media(
        MediaFilter(platform=platform, type=media_type, status=status),
        _page_request(settings, page, limit),
    )
    return _page_body(result)
