"""FastAPI 애플리케이션 구성 - 라이프사이클, 에러 응답, 헬스 체크"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from media_service.api.auth import IdentityClient, IdentityResolver
from media_service.api.routes import router
from media_service.config import Settings
from media_service.database.repository import MediaRepository
from media_service.errors import MediaServiceError
from media_service.logger import get_logger
from media_service.registrar import MediaRegistrar

logger = get_logger("api")

HTTP_ERROR_CODES = {
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def error_response(
    status_code: int,
    code: str,
    message: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """공통 에러 응답 본문: {success: false, error: {code, message}}"""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": {"code": code, "message": message}},
        headers=headers,
    )


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(MediaServiceError)
    async def handle_service_error(request: Request, exc: MediaServiceError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s 실패: %s", request.method, request.url.path, exc)
        return error_response(exc.status_code, exc.code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # 라우팅 단계 오류 (없는 경로, 허용되지 않은 메서드)
        code = HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
        return error_response(exc.status_code, code, str(exc.detail), headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}"
            for err in exc.errors()
        )
        return error_response(400, "VALIDATION_ERROR", details or "Invalid request")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "처리되지 않은 오류: %s %s - %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
        return error_response(500, "INTERNAL_ERROR", "Internal server error")


def create_app(
    settings: Settings,
    repository: MediaRepository | None = None,
    identity_resolver: IdentityResolver | None = None,
) -> FastAPI:
    """애플리케이션을 생성합니다.

    Args:
        settings: 서비스 설정
        repository: 미디어 저장소 (None이면 settings.storage.db_path 사용)
        identity_resolver: 호출자 확인기 (None이면 사용자 서비스 클라이언트)
    """
    repository = repository or MediaRepository(settings.storage.db_path)
    identity_resolver = identity_resolver or IdentityClient(
        settings.auth.user_service_url,
        timeout_seconds=settings.auth.timeout_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await repository.initialize()
        await identity_resolver.start()
        logger.info(
            "%s %s 시작 (prefix=%s)",
            settings.server.service_name,
            settings.server.version,
            settings.server.api_prefix,
        )
        try:
            yield
        finally:
            await identity_resolver.close()
            await repository.close()

    app = FastAPI(
        title=settings.server.service_name,
        version=settings.server.version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.repository = repository
    app.state.registrar = MediaRegistrar(repository)
    app.state.identity_resolver = identity_resolver

    _register_error_handlers(app)
    app.include_router(router, prefix=settings.server.api_prefix)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {
            "status": "healthy",
            "service": settings.server.service_name,
            "version": settings.server.version,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/ping", response_class=PlainTextResponse)
    async def ping() -> str:
        return f"{settings.server.service_name} {settings.server.version}"

    return app
