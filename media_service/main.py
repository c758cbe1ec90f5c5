"""Media Service - HTTP 서버 엔트리포인트

Usage:
    media-service                              # config/settings.yaml로 서버 실행
    media-service --port 9000                  # 포트 지정
    python -m media_service.main --config path/to/settings.yaml
"""

from __future__ import annotations

import argparse
import os

import uvicorn

from media_service.api.app import create_app
from media_service.config import Settings
from media_service.logger import UVICORN_LOGGERS, get_logger, setup_logger

logger = get_logger("main")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """CLI 인자를 파싱합니다."""
    parser = argparse.ArgumentParser(
        description="Media Service - 미디어 링크 등록/조회 API 서버",
    )
    parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="설정 파일 경로 (기본: config/settings.yaml)",
    )
    parser.add_argument(
        "--env",
        default="config/.env",
        help="환경 변수 파일 경로 (기본: config/.env)",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="바인딩 호스트 (설정 파일 값 대신 사용)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="바인딩 포트 (설정 파일 값 대신 사용)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """메인 엔트리포인트"""
    args = parse_args(argv)

    settings = Settings.load(config_path=args.config, env_path=args.env)
    if args.host:
        settings.server.host = args.host
    if args.port:
        settings.server.port = args.port

    log_level = os.getenv("LOG_LEVEL", "INFO")
    setup_logger(
        level=log_level,
        log_dir=os.getenv("LOG_DIR") or None,
        attach=UVICORN_LOGGERS,
    )

    for w in settings.validate():
        logger.warning("설정 경고: %s", w)

    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        log_level=log_level.lower(),
        # 로깅은 setup_logger에서 구성
        log_config=None,
    )


if __name__ == "__main__":
    main()
