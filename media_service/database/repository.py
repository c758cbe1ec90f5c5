"""미디어 저장소 - aiosqlite 기반 비동기 조회/등록 및 전문 검색"""

from __future__ import annotations

import json
import re
from pathlib import Path

import aiosqlite

from media_service.errors import StorageConflictError, StorageUnavailableError
from media_service.logger import get_logger
from media_service.models import (
    ExtractionStatus,
    MediaFilter,
    MediaItem,
    MediaType,
    Page,
    PageRequest,
    Platform,
)

logger = get_logger("database")

CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS media_items (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    url               TEXT NOT NULL,
    normalized_url    TEXT NOT NULL UNIQUE,
    platform          TEXT NOT NULL DEFAULT 'generic',
    type              TEXT NOT NULL DEFAULT 'unknown',
    title             TEXT,
    description       TEXT,
    thumbnail         TEXT,
    duration          REAL CHECK (duration IS NULL OR duration >= 0),
    extraction_status TEXT NOT NULL DEFAULT 'pending',
    extraction_error  TEXT,
    tags              TEXT NOT NULL DEFAULT '[]',
    metadata          TEXT NOT NULL DEFAULT '{}',
    created_at        TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    updated_at        TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);

CREATE INDEX IF NOT EXISTS idx_platform ON media_items(platform);
CREATE INDEX IF NOT EXISTS idx_type ON media_items(type);
CREATE INDEX IF NOT EXISTS idx_extraction_status ON media_items(extraction_status);
CREATE INDEX IF NOT EXISTS idx_created_at ON media_items(created_at DESC);

CREATE VIRTUAL TABLE IF NOT EXISTS media_search USING fts5(
    title, description, url,
    content='media_items', content_rowid='id'
);

CREATE TRIGGER IF NOT EXISTS media_items_ai AFTER INSERT ON media_items BEGIN
    INSERT INTO media_search(rowid, title, description, url)
    VALUES (new.id, new.title, new.description, new.url);
END;

CREATE TRIGGER IF NOT EXISTS media_items_ad AFTER DELETE ON media_items BEGIN
    INSERT INTO media_search(media_search, rowid, title, description, url)
    VALUES ('delete', old.id, old.title, old.description, old.url);
END;

CREATE TRIGGER IF NOT EXISTS media_items_au AFTER UPDATE ON media_items BEGIN
    INSERT INTO media_search(media_search, rowid, title, description, url)
    VALUES ('delete', old.id, old.title, old.description, old.url);
    INSERT INTO media_search(rowid, title, description, url)
    VALUES (new.id, new.title, new.description, new.url);
END;
"""

_NORMALIZED_URL_CONFLICT = "media_items.normalized_url"
_SEARCH_TERM_RE = re.compile(r"\w+")


def build_match_query(query: str) -> str | None:
    """검색어를 FTS5 MATCH 식으로 변환합니다 (단어 OR 검색).

    검색 가능한 단어가 없으면 None을 반환합니다.
    """
    terms = _SEARCH_TERM_RE.findall(query)
    if not terms:
        return None
    return " OR ".join(f'"{term}"' for term in terms)


class MediaRepository:
    """미디어 저장소 - normalized_url 유니크 제약을 중복 판정의 기준으로 사용"""

    def __init__(self, db_path: str, timeout_seconds: float = 5.0) -> None:
        self.db_path = db_path
        self.timeout_seconds = timeout_seconds
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        """데이터베이스 연결 및 테이블 생성 (이미 연결되어 있으면 무시)"""
        if self._db is not None:
            return

        if self.db_path != ":memory:":
            Path(self.db_path).expanduser().parent.mkdir(parents=True, exist_ok=True)

        try:
            # autocommit: 실패한 INSERT가 같은 연결의 다른 요청 쓰기를 롤백하지 않도록
            self._db = await aiosqlite.connect(
                self.db_path,
                timeout=self.timeout_seconds,
                isolation_level=None,
            )
            self._db.row_factory = aiosqlite.Row
            await self._db.execute("PRAGMA journal_mode=WAL")
            await self._db.executescript(CREATE_TABLE_SQL)
        except aiosqlite.OperationalError as e:
            raise StorageUnavailableError(f"데이터베이스 초기화 실패: {e}") from e
        logger.info("데이터베이스 초기화 완료: %s", self.db_path)

    async def close(self) -> None:
        """데이터베이스 연결 종료"""
        if self._db:
            await self._db.close()
            self._db = None

    def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            raise StorageUnavailableError("DB가 초기화되지 않았습니다.")
        return self._db

    async def _fetchone(self, sql: str, params: tuple = ()) -> aiosqlite.Row | None:
        try:
            cursor = await self._conn().execute(sql, params)
            return await cursor.fetchone()
        except aiosqlite.OperationalError as e:
            raise StorageUnavailableError(str(e)) from e

    async def _fetchall(self, sql: str, params: tuple = ()) -> list[aiosqlite.Row]:
        try:
            cursor = await self._conn().execute(sql, params)
            return list(await cursor.fetchall())
        except aiosqlite.OperationalError as e:
            raise StorageUnavailableError(str(e)) from e

    async def create(self, item: MediaItem) -> MediaItem:
        """신규 항목을 저장하고 저장소가 할당한 id/시각이 채워진 항목을 반환합니다.

        Raises:
            StorageConflictError: 같은 normalized_url이 이미 존재하는 경우
        """
        try:
            cursor = await self._conn().execute(
                """
                INSERT INTO media_items
                    (url, normalized_url, platform, type, extraction_status, tags, metadata)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    item.url,
                    item.normalized_url,
                    item.platform.value,
                    item.type.value,
                    item.extraction_status.value,
                    json.dumps(item.tags),
                    json.dumps(item.metadata),
                ),
            )
        except aiosqlite.IntegrityError as e:
            if _NORMALIZED_URL_CONFLICT in str(e):
                raise StorageConflictError(item.normalized_url) from e
            raise
        except aiosqlite.OperationalError as e:
            raise StorageUnavailableError(str(e)) from e

        item_id = cursor.lastrowid
        logger.info("미디어 저장 완료 (id=%d): %s", item_id, item.normalized_url)
        created = await self.get(item_id)
        assert created is not None
        return created

    async def get(self, item_id: int) -> MediaItem | None:
        """id로 항목을 조회합니다."""
        row = await self._fetchone("SELECT * FROM media_items WHERE id = ?", (item_id,))
        return self._row_to_item(row) if row else None

    async def find_by_normalized_url(self, normalized_url: str) -> MediaItem | None:
        """정규 URL로 항목을 조회합니다."""
        row = await self._fetchone(
            "SELECT * FROM media_items WHERE normalized_url = ?",
            (normalized_url,),
        )
        return self._row_to_item(row) if row else None

    @staticmethod
    def _filter_clause(media_filter: MediaFilter) -> tuple[str, list]:
        """필터를 WHERE 절과 파라미터로 변환합니다."""
        conditions = []
        params: list = []
        if media_filter.platform:
            conditions.append("m.platform = ?")
            params.append(media_filter.platform.value)
        if media_filter.type:
            conditions.append("m.type = ?")
            params.append(media_filter.type.value)
        if media_filter.status:
            conditions.append("m.extraction_status = ?")
            params.append(media_filter.status.value)
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        return where, params

    async def list_media(self, media_filter: MediaFilter, page: PageRequest) -> Page:
        """필터에 맞는 항목을 최신순으로 페이지 조회합니다."""
        where, params = self._filter_clause(media_filter)

        rows = await self._fetchall(
            f"""
            SELECT m.* FROM media_items m {where}
            ORDER BY m.created_at DESC, m.id DESC
            LIMIT ? OFFSET ?
            """,
            (*params, page.limit, page.offset),
        )
        count_row = await self._fetchone(
            f"SELECT COUNT(*) FROM media_items m {where}",
            tuple(params),
        )
        total = count_row[0] if count_row else 0

        return Page(
            items=[self._row_to_item(row) for row in rows],
            page=page.page,
            limit=page.limit,
            total=total,
        )

    async def search(
        self,
        query: str | None,
        media_filter: MediaFilter,
        page: PageRequest,
    ) -> Page:
        """제목/설명/URL 전문 검색. 검색어가 없으면 list_media와 동일합니다."""
        if not query or not query.strip():
            return await self.list_media(media_filter, page)

        match = build_match_query(query)
        if match is None:
            return Page(items=[], page=page.page, limit=page.limit, total=0)

        where, params = self._filter_clause(media_filter)
        hits = "(SELECT rowid, rank FROM media_search WHERE media_search MATCH ?) AS hits"

        rows = await self._fetchall(
            f"""
            SELECT m.* FROM media_items m
            JOIN {hits} ON hits.rowid = m.id
            {where}
            ORDER BY hits.rank, m.created_at DESC, m.id DESC
            LIMIT ? OFFSET ?
            """,
            (match, *params, page.limit, page.offset),
        )
        count_row = await self._fetchone(
            f"""
            SELECT COUNT(*) FROM media_items m
            JOIN {hits} ON hits.rowid = m.id
            {where}
            """,
            (match, *params),
        )
        total = count_row[0] if count_row else 0

        return Page(
            items=[self._row_to_item(row) for row in rows],
            page=page.page,
            limit=page.limit,
            total=total,
        )

    async def update_extraction(
        self,
        item_id: int,
        status: ExtractionStatus,
        *,
        media_type: MediaType | None = None,
        title: str | None = None,
        description: str | None = None,
        thumbnail: str | None = None,
        duration: float | None = None,
        tags: list[str] | None = None,
        metadata: dict | None = None,
        error_msg: str | None = None,
    ) -> MediaItem | None:
        """추출 워커 전용: 추출 결과와 상태를 기록합니다.

        url, normalized_url, id, created_at은 변경하지 않습니다.
        extraction_error는 FAILED 상태에서만 저장됩니다.
        """
        current = await self.get(item_id)
        if current is None:
            return None

        try:
            await self._conn().execute(
                """
                UPDATE media_items
                SET extraction_status = ?, extraction_error = ?, type = ?,
                    title = ?, description = ?, thumbnail = ?, duration = ?,
                    tags = ?, metadata = ?,
                    updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now')
                WHERE id = ?
                """,
                (
                    status.value,
                    error_msg if status == ExtractionStatus.FAILED else None,
                    (media_type or current.type).value,
                    title if title is not None else current.title,
                    description if description is not None else current.description,
                    thumbnail if thumbnail is not None else current.thumbnail,
                    duration if duration is not None else current.duration,
                    json.dumps(tags if tags is not None else current.tags),
                    json.dumps(metadata if metadata is not None else current.metadata),
                    item_id,
                ),
            )
        except aiosqlite.OperationalError as e:
            raise StorageUnavailableError(str(e)) from e

        logger.info("추출 상태 업데이트 (id=%d): %s", item_id, status.value)
        return await self.get(item_id)

    @staticmethod
    def _row_to_item(row: aiosqlite.Row) -> MediaItem:
        """DB 행을 MediaItem으로 변환합니다."""
        return MediaItem(
            id=row["id"],
            url=row["url"],
            normalized_url=row["normalized_url"],
            platform=Platform(row["platform"]),
            type=MediaType(row["type"]),
            title=row["title"],
            description=row["description"],
            thumbnail=row["thumbnail"],
            duration=row["duration"],
            extraction_status=ExtractionStatus(row["extraction_status"]),
            extraction_error=row["extraction_error"],
            tags=json.loads(row["tags"]),
            metadata=json.loads(row["metadata"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
