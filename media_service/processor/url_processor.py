"""URL 처리기 - 검증, 정규화, 플랫폼 감지

세 함수 모두 I/O와 상태가 없는 순수 함수입니다.
"""

from __future__ import annotations

import ipaddress
import re
from dataclasses import dataclass, replace

from media_service.models import Platform
from media_service.processor.platforms import match_rule
from media_service.processor.url_parts import UrlParts, join_url, split_url

ALLOWED_SCHEMES = frozenset({"http", "https"})
DEFAULT_PORTS = {"http": 80, "https": 443}

_HOST_LABEL_RE = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")


@dataclass(frozen=True)
class ValidationResult:
    """URL 검증 결과"""

    is_valid: bool
    error: str | None = None


def _invalid(reason: str) -> ValidationResult:
    return ValidationResult(is_valid=False, error=reason)


def _is_valid_host(host: str) -> bool:
    """도메인 이름, IPv4, IPv6 리터럴인지 확인합니다."""
    if ":" in host:
        try:
            ipaddress.IPv6Address(host)
        except ValueError:
            return False
        return True

    try:
        ascii_host = host.encode("idna").decode("ascii")
    except UnicodeError:
        # 빈 라벨(".com")이나 63자를 넘는 라벨
        return False

    labels = ascii_host.split(".")
    if labels[-1].isdigit():
        # 숫자로 끝나는 호스트는 IPv4 주소여야 함 (999.999.999.999, 1.2.3 거부)
        try:
            ipaddress.IPv4Address(ascii_host)
        except ValueError:
            return False
        return True

    return all(_HOST_LABEL_RE.match(label) for label in labels)


def validate_url(raw: object) -> ValidationResult:
    """URL이 등록 가능한 http(s) URL인지 검사합니다."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return _invalid("URL is required")
    if not isinstance(raw, str):
        return _invalid("URL must be a string")

    candidate = raw.strip()
    if any(ch.isspace() for ch in candidate):
        return _invalid("URL must not contain whitespace")

    try:
        parts = split_url(candidate)
    except ValueError:
        return _invalid("Invalid URL format")

    if not parts.scheme:
        return _invalid("Invalid URL format")

    if parts.scheme not in ALLOWED_SCHEMES:
        return _invalid(
            f"Unsupported URL scheme '{parts.scheme}': only HTTP and HTTPS URLs are allowed"
        )

    if not parts.host:
        return _invalid("URL must include a hostname")

    if not _is_valid_host(parts.host):
        return _invalid(f"Invalid hostname '{parts.host}'")

    return ValidationResult(is_valid=True)


def _strip_defaults(parts: UrlParts) -> UrlParts:
    """기본 포트, 끝 슬래시, 프래그먼트를 제거합니다."""
    port = None if parts.port == DEFAULT_PORTS.get(parts.scheme) else parts.port
    return replace(parts, port=port, path=parts.path.rstrip("/"), fragment="")


def normalize_url(raw: str) -> str:
    """검증된 URL을 정규 URL 문자열로 변환합니다.

    순서: 스킴/호스트 소문자화 -> 플랫폼 별칭 통합 및 트래킹 파라미터 제거
    -> 기본 포트/끝 슬래시/프래그먼트 제거 -> 재조립.
    정규화된 URL을 다시 정규화해도 결과가 같습니다.

    Raises:
        ValueError: validate_url을 통과하지 못한 URL
    """
    result = validate_url(raw)
    if not result.is_valid:
        raise ValueError(f"정규화할 수 없는 URL입니다 ({result.error}): {raw!r}")

    parts = split_url(raw)
    parts = match_rule(parts.host).canonicalize(parts)
    parts = _strip_defaults(parts)
    return join_url(parts)


def detect_platform(raw: object) -> Platform:
    """URL 호스트로 플랫폼을 판별합니다. 알 수 없으면 GENERIC."""
    if not isinstance(raw, str):
        return Platform.GENERIC
    try:
        host = split_url(raw).host
    except ValueError:
        return Platform.GENERIC
    return match_rule(host).platform
