"""데이터 모델 정의 - 시스템 전반에서 사용되는 데이터 클래스"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# SQLite INTEGER 최대값 (OFFSET 상한)
SQLITE_MAX_INTEGER = 2**63 - 1


class Platform(Enum):
    """URL 출처 플랫폼"""

    YOUTUBE = "youtube"
    GENERIC = "generic"


class MediaType(Enum):
    """미디어 유형 (추출 단계에서 결정)"""

    VIDEO = "video"
    ARTICLE = "article"
    AUDIO = "audio"
    UNKNOWN = "unknown"


class ExtractionStatus(Enum):
    """메타데이터 추출 상태"""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class MediaItem:
    """등록된 미디어 링크"""

    url: str
    normalized_url: str
    platform: Platform = Platform.GENERIC
    type: MediaType = MediaType.UNKNOWN
    extraction_status: ExtractionStatus = ExtractionStatus.PENDING
    extraction_error: str | None = None

    # 추출 워커가 채우는 필드
    title: str | None = None
    description: str | None = None
    thumbnail: str | None = None
    duration: float | None = None
    tags: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    # DB 저장 후 할당되는 필드
    id: int | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """API 응답용 JSON 딕셔너리로 변환합니다."""
        return {
            "id": self.id,
            "url": self.url,
            "normalizedUrl": self.normalized_url,
            "platform": self.platform.value,
            "type": self.type.value,
            "title": self.title,
            "description": self.description,
            "thumbnail": self.thumbnail,
            "duration": self.duration,
            "extractionStatus": self.extraction_status.value,
            "extractionError": self.extraction_error,
            "tags": list(self.tags),
            "metadata": dict(self.metadata),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass(frozen=True)
class Identity:
    """인증된 호출자"""

    id: str
    username: str = ""


@dataclass(frozen=True)
class MediaFilter:
    """목록/검색 필터 (None이면 조건 없음)"""

    platform: Platform | None = None
    type: MediaType | None = None
    status: ExtractionStatus | None = None


@dataclass(frozen=True)
class PageRequest:
    """보정된 페이지 요청"""

    page: int = 1
    limit: int = 20

    @classmethod
    def clamp(
        cls,
        page: int | None,
        limit: int | None,
        default_limit: int = 20,
        max_limit: int = 100,
    ) -> PageRequest:
        """page < 1은 1로, limit > max_limit은 max_limit으로 보정합니다.

        OFFSET이 SQLite 정수 범위를 넘지 않도록 page 상한도 적용합니다.
        """
        page = page if page and page > 0 else 1
        if not limit or limit < 1:
            limit = default_limit
        limit = min(limit, max_limit)
        return cls(page=min(page, SQLITE_MAX_INTEGER // limit), limit=limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class Page:
    """페이지 단위 조회 결과"""

    items: list[MediaItem]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    def pagination_dict(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }


@dataclass(frozen=True)
class RegistrationResult:
    """등록 결과 - created=False이면 기존 항목 반환"""

    created: bool
    item: MediaItem
