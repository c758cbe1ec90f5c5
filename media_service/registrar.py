"""미디어 등록기 - URL 검증/정규화 후 정규 URL 기준 멱등 등록"""

from __future__ import annotations

from typing import Any

from media_service.database.repository import MediaRepository
from media_service.errors import (
    InvalidUrlError,
    NotFoundError,
    StorageConflictError,
    StorageUnavailableError,
)
from media_service.logger import get_logger
from media_service.models import (
    ExtractionStatus,
    Identity,
    MediaFilter,
    MediaItem,
    MediaType,
    Page,
    PageRequest,
    RegistrationResult,
)
from media_service.processor.url_processor import detect_platform, normalize_url, validate_url

logger = get_logger("registrar")


class MediaRegistrar:
    """미디어 등록/조회 오케스트레이터

    같은 정규 URL에 대해 항목은 최대 하나만 존재합니다. 동시 등록 경합은
    저장소의 유니크 제약이 최종 판정하며, 패배한 쪽은 기존 항목을 다시 읽어 반환합니다.
    """

    def __init__(self, repository: MediaRepository) -> None:
        self.repository = repository

    @staticmethod
    def _validated(raw_url: Any) -> str:
        validation = validate_url(raw_url)
        if not validation.is_valid:
            raise InvalidUrlError(validation.error or "Invalid URL")
        return raw_url.strip()

    async def register(self, raw_url: Any, caller: Identity) -> RegistrationResult:
        """URL을 등록합니다. 이미 등록된 정규 URL이면 기존 항목을 반환합니다.

        Raises:
            InvalidUrlError: URL 검증 실패 (저장소 접근 전)
        """
        url = self._validated(raw_url)
        normalized_url = normalize_url(url)
        platform = detect_platform(url)

        existing = await self.repository.find_by_normalized_url(normalized_url)
        if existing:
            logger.info(
                "기존 항목 반환 (id=%s, caller=%s): %s",
                existing.id,
                caller.id,
                normalized_url,
            )
            return RegistrationResult(created=False, item=existing)

        item = MediaItem(
            url=url,
            normalized_url=normalized_url,
            platform=platform,
            type=MediaType.UNKNOWN,
            extraction_status=ExtractionStatus.PENDING,
        )

        try:
            created = await self.repository.create(item)
        except StorageConflictError as e:
            # 조회와 저장 사이에 다른 요청이 먼저 저장한 경우
            winner = await self.repository.find_by_normalized_url(normalized_url)
            if winner is None:
                raise StorageUnavailableError(
                    f"유니크 충돌 후 항목을 찾을 수 없습니다: {normalized_url}"
                ) from e
            logger.info(
                "동시 등록 충돌 복구 (id=%s, caller=%s): %s",
                winner.id,
                caller.id,
                normalized_url,
            )
            return RegistrationResult(created=False, item=winner)

        logger.info(
            "신규 등록 (id=%s, platform=%s, caller=%s): %s",
            created.id,
            created.platform.value,
            caller.id,
            normalized_url,
        )
        return RegistrationResult(created=True, item=created)

    async def get_by_id(self, item_id: int | str) -> MediaItem:
        """id로 항목을 조회합니다.

        Raises:
            NotFoundError: 존재하지 않거나 형식이 잘못된 id
        """
        try:
            numeric_id = int(item_id)
        except (TypeError, ValueError):
            raise NotFoundError("Media not found") from None

        item = await self.repository.get(numeric_id)
        if item is None:
            raise NotFoundError("Media not found")
        return item

    async def list_media(self, media_filter: MediaFilter, page: PageRequest) -> Page:
        return await self.repository.list_media(media_filter, page)

    async def search(
        self,
        query: str | None,
        media_filter: MediaFilter,
        page: PageRequest,
    ) -> Page:
        # 검색은 상태 필터를 지원하지 않음
        search_filter = MediaFilter(platform=media_filter.platform, type=media_filter.type)
        return await self.repository.search(query, search_filter, page)

    def preview(self, raw_url: Any) -> dict[str, Any]:
        """저장하지 않고 정규화/플랫폼 감지 결과만 반환합니다."""
        url = self._validated(raw_url)
        return {
            "url": url,
            "normalizedUrl": normalize_url(url),
            "platform": detect_platform(url).value,
            "type": MediaType.UNKNOWN.value,
            "title": None,
            "description": None,
            "thumbnail": None,
            "duration": None,
            "extractionStatus": ExtractionStatus.PENDING.value,
            "message": "Metadata extraction not yet implemented",
        }
