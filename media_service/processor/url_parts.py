"""URL 구성 요소 분해/조립"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit


@dataclass(frozen=True)
class UrlParts:
    """정규화 단계 사이에서 전달되는 URL 구성 요소"""

    scheme: str
    host: str
    port: int | None = None
    path: str = ""
    query: str = ""
    fragment: str = ""
    userinfo: str = ""


def split_url(raw: str) -> UrlParts:
    """URL을 분해합니다. 스킴과 호스트는 소문자로 변환됩니다.

    Raises:
        ValueError: 포트나 IPv6 리터럴이 잘못된 경우
    """
    parts = urlsplit(raw.strip())
    netloc = parts.netloc
    userinfo = netloc.rpartition("@")[0] if "@" in netloc else ""
    host = (parts.hostname or "").rstrip(".")

    return UrlParts(
        scheme=parts.scheme.lower(),
        host=host,
        port=parts.port,
        path=parts.path,
        query=parts.query,
        fragment=parts.fragment,
        userinfo=userinfo,
    )


def join_url(parts: UrlParts) -> str:
    """UrlParts를 하나의 URL 문자열로 조립합니다."""
    host = f"[{parts.host}]" if ":" in parts.host else parts.host
    netloc = host if parts.port is None else f"{host}:{parts.port}"
    if parts.userinfo:
        netloc = f"{parts.userinfo}@{netloc}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def strip_query_params(query: str, drop: frozenset[str], drop_prefixes: tuple[str, ...] = ()) -> str:
    """query string에서 지정한 파라미터를 제거하고 나머지 순서는 유지합니다."""
    kept = [
        (key, value)
        for key, value in parse_qsl(query, keep_blank_values=True)
        if key.lower() not in drop and not key.lower().startswith(drop_prefixes)
    ]
    return urlencode(kept)
