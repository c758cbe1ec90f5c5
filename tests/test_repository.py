"""MediaRepository 테스트 - 임시 SQLite 파일 사용"""

import pytest

from media_service.database.repository import MediaRepository, build_match_query
from media_service.errors import StorageConflictError, StorageUnavailableError
from media_service.models import (
    ExtractionStatus,
    MediaFilter,
    MediaItem,
    MediaType,
    PageRequest,
    Platform,
)


@pytest.fixture
async def repo(tmp_path):
    """테스트용 DB repository"""
    db_path = str(tmp_path / "test.db")
    repository = MediaRepository(db_path)
    await repository.initialize()
    yield repository
    await repository.close()


def make_item(url: str, platform: Platform = Platform.GENERIC) -> MediaItem:
    return MediaItem(url=url, normalized_url=url, platform=platform)


class TestMediaRepository:
    """MediaRepository 테스트"""

    @pytest.mark.asyncio
    async def test_create_and_get(self, repo):
        """저장 후 id 조회 테스트"""
        created = await repo.create(make_item("https://example.com/article1"))

        assert created.id is not None and created.id > 0
        assert created.created_at is not None
        assert created.updated_at is not None
        assert created.extraction_status == ExtractionStatus.PENDING
        assert created.type == MediaType.UNKNOWN

        fetched = await repo.get(created.id)
        assert fetched == created

    @pytest.mark.asyncio
    async def test_get_missing(self, repo):
        """존재하지 않는 id 조회 테스트"""
        assert await repo.get(9999) is None

    @pytest.mark.asyncio
    async def test_find_by_normalized_url(self, repo):
        """정규 URL 조회 테스트"""
        item = MediaItem(
            url="https://youtu.be/abc",
            normalized_url="https://www.youtube.com/watch?v=abc",
            platform=Platform.YOUTUBE,
        )
        created = await repo.create(item)

        found = await repo.find_by_normalized_url("https://www.youtube.com/watch?v=abc")
        assert found is not None
        assert found.id == created.id
        assert found.url == "https://youtu.be/abc"
        assert await repo.find_by_normalized_url("https://youtu.be/abc") is None

    @pytest.mark.asyncio
    async def test_duplicate_normalized_url_rejected(self, repo):
        """동일 정규 URL 중복 저장 시 StorageConflictError"""
        await repo.create(make_item("https://example.com/same-url"))

        with pytest.raises(StorageConflictError):
            await repo.create(make_item("https://example.com/same-url"))

        page = await repo.list_media(MediaFilter(), PageRequest())
        assert page.total == 1

    @pytest.mark.asyncio
    async def test_conflict_does_not_discard_other_writes(self, repo):
        """충돌 후에도 다른 항목 저장은 유지"""
        first = await repo.create(make_item("https://example.com/one"))
        with pytest.raises(StorageConflictError):
            await repo.create(make_item("https://example.com/one"))
        second = await repo.create(make_item("https://example.com/two"))

        assert await repo.get(first.id) is not None
        assert await repo.get(second.id) is not None

    @pytest.mark.asyncio
    async def test_tags_and_metadata_round_trip(self, repo):
        """JSON 컬럼 저장 테스트"""
        item = make_item("https://example.com/json")
        item.tags = ["music", "80s"]
        item.metadata = {"channel": "test", "views": 10}
        created = await repo.create(item)

        assert created.tags == ["music", "80s"]
        assert created.metadata == {"channel": "test", "views": 10}

    @pytest.mark.asyncio
    async def test_list_newest_first(self, repo):
        """최신순 정렬 테스트"""
        for i in range(5):
            await repo.create(make_item(f"https://example.com/article{i}"))

        page = await repo.list_media(MediaFilter(), PageRequest(page=1, limit=10))
        assert page.total == 5
        assert [item.url for item in page.items] == [
            f"https://example.com/article{i}" for i in reversed(range(5))
        ]

    @pytest.mark.asyncio
    async def test_list_pagination(self, repo):
        """페이지 분할 테스트"""
        for i in range(5):
            await repo.create(make_item(f"https://example.com/page{i}"))

        first = await repo.list_media(MediaFilter(), PageRequest(page=1, limit=2))
        third = await repo.list_media(MediaFilter(), PageRequest(page=3, limit=2))

        assert len(first.items) == 2
        assert first.total_pages == 3
        assert first.has_next is True
        assert len(third.items) == 1
        assert third.has_next is False
        assert third.has_prev is True

    @pytest.mark.asyncio
    async def test_list_filters(self, repo):
        """platform/type/status 필터 테스트"""
        yt = await repo.create(
            MediaItem(
                url="https://youtu.be/vid1",
                normalized_url="https://www.youtube.com/watch?v=vid1",
                platform=Platform.YOUTUBE,
            )
        )
        await repo.create(make_item("https://example.com/generic"))
        await repo.update_extraction(yt.id, ExtractionStatus.COMPLETED, media_type=MediaType.VIDEO)

        youtube = await repo.list_media(MediaFilter(platform=Platform.YOUTUBE), PageRequest())
        assert [item.id for item in youtube.items] == [yt.id]

        videos = await repo.list_media(MediaFilter(type=MediaType.VIDEO), PageRequest())
        assert videos.total == 1

        pending = await repo.list_media(
            MediaFilter(status=ExtractionStatus.PENDING), PageRequest()
        )
        assert pending.total == 1
        assert pending.items[0].platform == Platform.GENERIC

    @pytest.mark.asyncio
    async def test_update_extraction_completed(self, repo):
        """추출 완료 기록 테스트"""
        created = await repo.create(make_item("https://example.com/extract"))

        updated = await repo.update_extraction(
            created.id,
            ExtractionStatus.COMPLETED,
            media_type=MediaType.ARTICLE,
            title="테스트 기사",
            description="설명",
            duration=12.5,
            tags=["news"],
            metadata={"lang": "ko"},
            error_msg="무시됨",
        )

        assert updated is not None
        assert updated.extraction_status == ExtractionStatus.COMPLETED
        assert updated.type == MediaType.ARTICLE
        assert updated.title == "테스트 기사"
        assert updated.duration == 12.5
        assert updated.tags == ["news"]
        assert updated.metadata == {"lang": "ko"}
        # 에러 메시지는 FAILED에서만 저장
        assert updated.extraction_error is None
        # 불변 필드
        assert updated.url == created.url
        assert updated.normalized_url == created.normalized_url
        assert updated.created_at == created.created_at

    @pytest.mark.asyncio
    async def test_update_extraction_failed(self, repo):
        """추출 실패 기록 테스트"""
        created = await repo.create(make_item("https://example.com/fail"))

        updated = await repo.update_extraction(
            created.id,
            ExtractionStatus.FAILED,
            error_msg="타임아웃 발생",
        )
        assert updated.extraction_status == ExtractionStatus.FAILED
        assert updated.extraction_error == "타임아웃 발생"

    @pytest.mark.asyncio
    async def test_update_extraction_missing(self, repo):
        """존재하지 않는 항목 업데이트"""
        assert await repo.update_extraction(404, ExtractionStatus.FAILED) is None

    @pytest.mark.asyncio
    async def test_search_by_title(self, repo):
        """제목 전문 검색 테스트"""
        a = await repo.create(make_item("https://example.com/a"))
        b = await repo.create(make_item("https://example.com/b"))
        await repo.update_extraction(a.id, ExtractionStatus.COMPLETED, title="Python asyncio tutorial")
        await repo.update_extraction(b.id, ExtractionStatus.COMPLETED, title="Cooking pasta at home")

        page = await repo.search("asyncio", MediaFilter(), PageRequest())
        assert page.total == 1
        assert page.items[0].id == a.id

    @pytest.mark.asyncio
    async def test_search_ranks_by_relevance(self, repo):
        """검색어를 더 많이 포함한 항목이 먼저 온다"""
        one = await repo.create(make_item("https://example.com/one-term"))
        both = await repo.create(make_item("https://example.com/both-terms"))
        other = await repo.create(make_item("https://example.com/unrelated"))
        await repo.update_extraction(one.id, ExtractionStatus.COMPLETED, title="guitar lesson")
        await repo.update_extraction(
            both.id, ExtractionStatus.COMPLETED, title="guitar lesson for jazz beginners"
        )
        await repo.update_extraction(other.id, ExtractionStatus.COMPLETED, title="cooking pasta")

        page = await repo.search("jazz guitar", MediaFilter(), PageRequest())
        assert page.total == 2
        assert page.items[0].id == both.id

    @pytest.mark.asyncio
    async def test_search_matches_url_terms(self, repo):
        """추출 전 항목은 URL 단어로 검색"""
        created = await repo.create(make_item("https://example.com/rickroll-article"))
        await repo.create(make_item("https://example.com/other"))

        page = await repo.search("rickroll", MediaFilter(), PageRequest())
        assert [item.id for item in page.items] == [created.id]

    @pytest.mark.asyncio
    async def test_search_with_filter(self, repo):
        """검색 + platform 필터 테스트"""
        await repo.create(make_item("https://example.com/concert"))
        yt = await repo.create(
            MediaItem(
                url="https://youtu.be/concert",
                normalized_url="https://www.youtube.com/watch?v=concert",
                platform=Platform.YOUTUBE,
            )
        )

        page = await repo.search("concert", MediaFilter(platform=Platform.YOUTUBE), PageRequest())
        assert [item.id for item in page.items] == [yt.id]

    @pytest.mark.asyncio
    async def test_search_without_query_lists_newest_first(self, repo):
        """검색어가 없으면 최신순 목록"""
        for i in range(3):
            await repo.create(make_item(f"https://example.com/plain{i}"))

        page = await repo.search(None, MediaFilter(), PageRequest())
        assert page.total == 3
        assert page.items[0].url == "https://example.com/plain2"

        blank = await repo.search("   ", MediaFilter(), PageRequest())
        assert blank.total == 3

    @pytest.mark.asyncio
    async def test_search_punctuation_only(self, repo):
        """검색 가능한 단어가 없으면 빈 결과"""
        await repo.create(make_item("https://example.com/x"))
        page = await repo.search('"*) (-', MediaFilter(), PageRequest())
        assert page.total == 0
        assert page.items == []

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, repo):
        """initialize 중복 호출 테스트"""
        created = await repo.create(make_item("https://example.com/keep"))
        await repo.initialize()
        assert await repo.get(created.id) is not None

    @pytest.mark.asyncio
    async def test_uninitialized_repository(self, tmp_path):
        """초기화 전 사용 시 StorageUnavailableError"""
        repository = MediaRepository(str(tmp_path / "never.db"))
        with pytest.raises(StorageUnavailableError):
            await repository.get(1)


class TestBuildMatchQuery:
    """FTS5 MATCH 식 생성 테스트"""

    def test_terms_joined_with_or(self):
        assert build_match_query("jazz guitar") == '"jazz" OR "guitar"'

    def test_special_characters_removed(self):
        assert build_match_query('rick "astley" AND') == '"rick" OR "astley" OR "AND"'

    def test_no_terms(self):
        assert build_match_query("*** ()") is None
