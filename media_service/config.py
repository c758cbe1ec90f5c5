"""설정 관리 모듈 - YAML + .env 기반 설정 로드 및 검증"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from dotenv import load_dotenv

DEFAULT_USER_SERVICE_URL = "http://localhost:8583"


@dataclass
class ServerConfig:
    """HTTP 서버 설정"""

    host: str = "127.0.0.1"
    port: int = 8584
    api_prefix: str = "/api/v1"
    service_name: str = "media-service"
    version: str = "0.1.0"


@dataclass
class StorageConfig:
    """저장소 설정"""

    db_path: str = "data/media.db"


@dataclass
class AuthConfig:
    """외부 사용자 서비스(인증) 설정"""

    user_service_url: str = DEFAULT_USER_SERVICE_URL
    timeout_seconds: float = 5.0


@dataclass
class PaginationConfig:
    """목록/검색 페이지네이션 설정"""

    default_limit: int = 20
    max_limit: int = 100


@dataclass
class Settings:
    """전체 애플리케이션 설정"""

    server: ServerConfig = field(default_factory=ServerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    pagination: PaginationConfig = field(default_factory=PaginationConfig)

    @classmethod
    def load(
        cls,
        config_path: str = "config/settings.yaml",
        env_path: str = "config/.env",
    ) -> Settings:
        """설정 파일과 환경 변수를 로드하여 Settings 인스턴스를 생성합니다."""
        env_file = Path(env_path)
        if env_file.exists():
            load_dotenv(env_file)

        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(
                f"설정 파일을 찾을 수 없습니다: {config_path}\n"
                f"config/settings.example.yaml을 복사하여 생성해 주세요."
            )

        with open(config_file, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        return cls._from_dict(raw)

    @classmethod
    def _from_dict(cls, raw: dict) -> Settings:
        """딕셔너리에서 Settings 인스턴스를 생성합니다."""
        srv_raw = raw.get("server", {})
        server = ServerConfig(
            host=srv_raw.get("host", "127.0.0.1"),
            port=int(srv_raw.get("port", 8584)),
            api_prefix=srv_raw.get("api_prefix", "/api/v1").rstrip("/"),
            service_name=srv_raw.get("service_name", "media-service"),
            version=str(srv_raw.get("version", "0.1.0")),
        )

        st_raw = raw.get("storage", {})
        storage = StorageConfig(
            db_path=cls._resolve_env(st_raw.get("db_path", "data/media.db"))
            or "data/media.db",
        )

        auth_raw = raw.get("auth", {})
        auth = AuthConfig(
            # 환경 변수가 비어 있으면 로컬 사용자 서비스로 대체
            user_service_url=cls._resolve_env(
                auth_raw.get("user_service_url", DEFAULT_USER_SERVICE_URL)
            )
            or DEFAULT_USER_SERVICE_URL,
            timeout_seconds=float(auth_raw.get("timeout_seconds", 5.0)),
        )

        pg_raw = raw.get("pagination", {})
        pagination = PaginationConfig(
            default_limit=int(pg_raw.get("default_limit", 20)),
            max_limit=int(pg_raw.get("max_limit", 100)),
        )

        return cls(
            server=server,
            storage=storage,
            auth=auth,
            pagination=pagination,
        )

    @staticmethod
    def _resolve_env(value: str) -> str:
        """${ENV_VAR} 형식의 값을 환경 변수로 치환합니다."""
        if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
            env_key = value[2:-1]
            return os.getenv(env_key, "")
        return value

    def validate(self) -> list[str]:
        """설정 값의 유효성을 검사하고 경고 메시지 리스트를 반환합니다."""
        warnings = []

        if not self.auth.user_service_url.startswith(("http://", "https://")):
            warnings.append(
                f"사용자 서비스 URL 형식이 올바르지 않습니다: {self.auth.user_service_url}"
            )

        if self.auth.timeout_seconds <= 0:
            warnings.append("사용자 서비스 타임아웃은 0보다 커야 합니다.")

        if self.pagination.max_limit > 100:
            warnings.append(
                f"max_limit({self.pagination.max_limit})이 100을 초과합니다."
            )

        if not 1 <= self.pagination.default_limit <= self.pagination.max_limit:
            warnings.append(
                f"default_limit({self.pagination.default_limit})은 "
                f"1 이상 max_limit 이하여야 합니다."
            )

        if self.server.api_prefix and not self.server.api_prefix.startswith("/"):
            warnings.append(
                f"API prefix는 '/'로 시작해야 합니다: {self.server.api_prefix}"
            )

        db_dir = Path(self.storage.db_path).expanduser().parent
        if not db_dir.exists():
            warnings.append(
                f"DB 디렉토리가 없습니다 (시작 시 생성됨): {db_dir}"
            )

        return warnings
