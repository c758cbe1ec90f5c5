"""환경 설정 검증 스크립트

Usage:
    python -m media_service.check_setup
"""

from __future__ import annotations

import asyncio
import os
import sqlite3
import sys
from pathlib import Path

import aiohttp

from media_service.config import Settings


def check_python_version() -> bool:
    """Python 버전 확인"""
    version = sys.version_info
    ok = version >= (3, 11)
    status = "✅" if ok else "❌"
    print(f"{status} Python {version.major}.{version.minor}.{version.micro} ... {'OK' if ok else 'Python 3.11+ 필요'}")
    return ok


def check_sqlite() -> bool:
    """SQLite FTS5 사용 가능 확인"""
    conn = sqlite3.connect(":memory:")
    try:
        conn.execute("CREATE VIRTUAL TABLE fts_probe USING fts5(body)")
    except sqlite3.OperationalError:
        print(f"❌ SQLite database ... FTS5 미지원 (v{sqlite3.sqlite_version})")
        return False
    finally:
        conn.close()

    print(f"✅ SQLite database ... OK (v{sqlite3.sqlite_version}, FTS5)")
    return True


def check_config_files(config_path: str, env_path: str) -> bool:
    """설정 파일 존재 확인"""
    settings_exists = Path(config_path).exists()
    env_exists = Path(env_path).exists()

    if settings_exists:
        print(f"✅ {config_path} ... OK")
    else:
        print(f"⚠️  {config_path} ... 없음 (cp config/settings.example.yaml {config_path})")

    if env_exists:
        print(f"✅ {env_path} ... OK")
    else:
        print(f"⚠️  {env_path} ... 없음 (USER_SERVICE_URL 등은 환경 변수로 지정)")

    return settings_exists


def check_db_dir(db_path: str) -> bool:
    """DB 디렉토리 쓰기 권한 확인"""
    db_dir = Path(db_path).expanduser().parent
    probe = db_dir
    while not probe.exists() and probe != probe.parent:
        probe = probe.parent

    ok = os.access(probe, os.W_OK)
    status = "✅" if ok else "❌"
    msg = "OK" if ok else f"쓰기 권한 없음 ({probe})"
    print(f"{status} Database directory {db_dir} ... {msg}")
    return ok


async def check_user_service(base_url: str, timeout_seconds: float = 5.0) -> bool:
    """사용자 서비스 연결 확인 (HTTP 응답이 오면 OK)"""
    timeout = aiohttp.ClientTimeout(total=timeout_seconds)
    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(base_url) as resp:
                print(f"✅ User service {base_url} ... OK (HTTP {resp.status})")
                return True
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        print(f"❌ User service {base_url} ... 연결 실패 ({e})")
        return False


async def main(
    config_path: str = "config/settings.yaml",
    env_path: str = "config/.env",
) -> bool:
    """모든 설정 항목을 검증합니다."""
    print("=" * 50)
    print("  Media Service - 환경 설정 검증")
    print("=" * 50)
    print()

    results = []

    # 기본 확인
    results.append(check_python_version())
    results.append(check_sqlite())
    print()

    results.append(check_config_files(config_path, env_path))
    print()

    # 설정 기반 확인
    try:
        settings = Settings.load(config_path=config_path, env_path=env_path)

        for w in settings.validate():
            print(f"⚠️  {w}")
        results.append(check_db_dir(settings.storage.db_path))
        results.append(
            await check_user_service(
                settings.auth.user_service_url,
                settings.auth.timeout_seconds,
            )
        )
    except FileNotFoundError:
        print("⚠️  설정 파일 없음 - 세부 검증 스킵")
        print("   config/settings.example.yaml을 복사하여 config/settings.yaml을 생성하세요.")

    print()
    print("=" * 50)

    ok = all(results)
    if ok:
        print("✅ All checks passed!")
    else:
        failed = results.count(False)
        print(f"⚠️  {failed}개 항목에 주의가 필요합니다.")

    print("=" * 50)
    return ok


if __name__ == "__main__":
    sys.exit(0 if asyncio.run(main()) else 1)
