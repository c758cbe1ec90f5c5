"""Settings 설정 로드 테스트"""

import pytest
import yaml

from media_service.config import (
    DEFAULT_USER_SERVICE_URL,
    AuthConfig,
    PaginationConfig,
    ServerConfig,
    Settings,
    StorageConfig,
)


@pytest.fixture
def sample_config(tmp_path):
    """테스트용 설정 파일 생성"""
    config = {
        "server": {
            "host": "0.0.0.0",
            "port": 9000,
            "api_prefix": "/api/v2/",
            "service_name": "test-media-service",
            "version": "1.2.3",
        },
        "storage": {
            "db_path": str(tmp_path / "data" / "media.db"),
        },
        "auth": {
            "user_service_url": "http://users.internal:8583",
            "timeout_seconds": 2,
        },
        "pagination": {
            "default_limit": 10,
            "max_limit": 50,
        },
    }
    config_path = tmp_path / "settings.yaml"
    with open(config_path, "w") as f:
        yaml.dump(config, f)
    return config_path


class TestSettings:
    """Settings 클래스 테스트"""

    def test_load_from_yaml(self, sample_config):
        """YAML 파일에서 설정 로드 테스트"""
        settings = Settings.load(config_path=str(sample_config), env_path="/nonexistent")

        assert settings.server.port == 9000
        assert settings.server.api_prefix == "/api/v2"
        assert settings.server.service_name == "test-media-service"
        assert settings.auth.user_service_url == "http://users.internal:8583"
        assert settings.auth.timeout_seconds == 2.0
        assert settings.pagination.default_limit == 10
        assert settings.pagination.max_limit == 50

    def test_missing_config_file(self):
        """존재하지 않는 설정 파일 로드 시 에러 테스트"""
        with pytest.raises(FileNotFoundError):
            Settings.load(config_path="/nonexistent/settings.yaml")

    def test_env_resolution(self, monkeypatch):
        """환경 변수 치환 테스트"""
        monkeypatch.setenv("TEST_USER_SERVICE", "http://resolved:8583")
        result = Settings._resolve_env("${TEST_USER_SERVICE}")
        assert result == "http://resolved:8583"

    def test_env_resolution_missing(self):
        """존재하지 않는 환경 변수 치환 테스트"""
        result = Settings._resolve_env("${NONEXISTENT_VAR}")
        assert result == ""

    def test_env_resolution_plain_string(self):
        """일반 문자열은 치환하지 않음 테스트"""
        result = Settings._resolve_env("plain-value")
        assert result == "plain-value"

    def test_user_service_url_from_env_file(self, tmp_path, monkeypatch):
        """.env 파일의 값이 ${USER_SERVICE_URL}에 반영되는지 테스트"""
        # load_dotenv가 설정한 값도 테스트 종료 시 원복되도록 먼저 등록
        monkeypatch.setenv("USER_SERVICE_URL", "")
        monkeypatch.delenv("USER_SERVICE_URL")
        config_path = tmp_path / "settings.yaml"
        config_path.write_text('auth:\n  user_service_url: "${USER_SERVICE_URL}"\n')
        env_path = tmp_path / ".env"
        env_path.write_text("USER_SERVICE_URL=http://from-dotenv:8583\n")

        settings = Settings.load(config_path=str(config_path), env_path=str(env_path))
        assert settings.auth.user_service_url == "http://from-dotenv:8583"

    def test_unset_env_falls_back_to_default(self, tmp_path, monkeypatch):
        """환경 변수가 없으면 기본 사용자 서비스 URL 사용"""
        monkeypatch.delenv("USER_SERVICE_URL", raising=False)
        config_path = tmp_path / "settings.yaml"
        config_path.write_text('auth:\n  user_service_url: "${USER_SERVICE_URL}"\n')

        settings = Settings.load(config_path=str(config_path), env_path="/nonexistent")
        assert settings.auth.user_service_url == DEFAULT_USER_SERVICE_URL

    def test_validate_no_warnings(self, sample_config, tmp_path):
        """정상 설정은 경고 없음 (DB 디렉토리 존재 시)"""
        (tmp_path / "data").mkdir()
        settings = Settings.load(config_path=str(sample_config), env_path="/nonexistent")
        assert settings.validate() == []

    def test_validate_warnings(self, sample_config):
        """설정 검증 경고 테스트"""
        settings = Settings.load(config_path=str(sample_config), env_path="/nonexistent")
        settings.auth.user_service_url = "users.internal"
        settings.pagination.max_limit = 500
        warnings = settings.validate()

        assert any("사용자 서비스 URL" in w for w in warnings)
        assert any("max_limit" in w for w in warnings)
        # data 디렉토리를 만들지 않았으므로 경고 발생
        assert any("DB 디렉토리" in w for w in warnings)

    def test_empty_config(self, tmp_path):
        """빈 설정 파일 로드 테스트"""
        config_path = tmp_path / "empty.yaml"
        config_path.write_text("")

        settings = Settings.load(config_path=str(config_path), env_path="/nonexistent")
        assert isinstance(settings.server, ServerConfig)
        assert isinstance(settings.storage, StorageConfig)
        assert isinstance(settings.auth, AuthConfig)
        assert isinstance(settings.pagination, PaginationConfig)
        assert settings.server.api_prefix == "/api/v1"
        assert settings.pagination.max_limit == 100


class TestPaginationConfig:
    """PaginationConfig 데이터 클래스 테스트"""

    def test_defaults(self):
        """기본값은 20 / 100"""
        config = PaginationConfig()
        assert config.default_limit == 20
        assert config.max_limit == 100
