"""플랫폼 규칙 테이블 - 호스트 매칭과 정규화 규칙

새 플랫폼은 PlatformRule 하나를 PLATFORM_RULES에 추가하는 것으로 지원합니다.
규칙은 순서대로 평가되며 처음 매칭된 규칙이 적용되고, 매칭이 없으면 GENERIC_RULE이 쓰입니다.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Callable
from urllib.parse import parse_qsl, urlencode

from media_service.models import Platform
from media_service.processor.url_parts import UrlParts, strip_query_params


@dataclass(frozen=True)
class PlatformRule:
    """플랫폼 태그, 호스트 매처, 정규화 함수의 묶음"""

    platform: Platform
    matches: Callable[[str], bool]
    canonicalize: Callable[[UrlParts], UrlParts]


# ──────────────────────────────────────────────
# YouTube
# ──────────────────────────────────────────────
YOUTUBE_HOSTS = frozenset({"youtube.com", "www.youtube.com", "m.youtube.com", "youtu.be"})
YOUTUBE_CANONICAL_HOST = "www.youtube.com"

# /shorts/<id>, /embed/<id>, /live/<id>, /v/<id>
_YOUTUBE_ID_PATHS = frozenset({"shorts", "embed", "live", "v"})
_VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")

YOUTUBE_TRACKING_PARAMS = frozenset(
    {
        "si",
        "feature",
        "pp",
        "ab_channel",
        "app",
        "fbclid",
        "gclid",
        "embeds_referring_euri",
        "embeds_referring_origin",
        "source_ve_path",
    }
)


def _youtube_video_id(parts: UrlParts) -> str | None:
    """URL에서 영상 ID를 추출합니다. 영상 URL이 아니면 None."""
    segments = [segment for segment in parts.path.split("/") if segment]

    if parts.host == "youtu.be":
        candidate = segments[0] if segments else ""
    elif segments == ["watch"]:
        candidate = next(
            (value for key, value in parse_qsl(parts.query) if key == "v"),
            "",
        )
    elif len(segments) >= 2 and segments[0] in _YOUTUBE_ID_PATHS:
        candidate = segments[1]
    else:
        return None

    return candidate if _VIDEO_ID_RE.match(candidate) else None


def canonicalize_youtube(parts: UrlParts) -> UrlParts:
    """YouTube 별칭 호스트를 www.youtube.com으로 통합합니다.

    영상 URL은 https://www.youtube.com/watch?v=<id> 로 축약하고 (v 외 파라미터 제거),
    채널/재생목록 등 그 외 페이지는 트래킹 파라미터만 제거합니다.
    """
    video_id = _youtube_video_id(parts)
    if video_id:
        return UrlParts(
            scheme="https",
            host=YOUTUBE_CANONICAL_HOST,
            path="/watch",
            query=urlencode({"v": video_id}),
        )

    return replace(
        parts,
        scheme="https",
        host=YOUTUBE_CANONICAL_HOST,
        port=None,
        userinfo="",
        query=strip_query_params(parts.query, YOUTUBE_TRACKING_PARAMS, ("utm_",)),
    )


YOUTUBE_RULE = PlatformRule(
    platform=Platform.YOUTUBE,
    matches=lambda host: host in YOUTUBE_HOSTS,
    canonicalize=canonicalize_youtube,
)

# 일반 URL은 공통 정규화(소문자화, 기본 포트/슬래시/프래그먼트 제거)만 적용
GENERIC_RULE = PlatformRule(
    platform=Platform.GENERIC,
    matches=lambda host: True,
    canonicalize=lambda parts: parts,
)

PLATFORM_RULES: tuple[PlatformRule, ...] = (YOUTUBE_RULE,)


def match_rule(
    host: str,
    rules: tuple[PlatformRule, ...] = PLATFORM_RULES,
) -> PlatformRule:
    """호스트에 처음 매칭되는 규칙을 반환합니다."""
    for rule in rules:
        if rule.matches(host):
            return rule
    return GENERIC_RULE
