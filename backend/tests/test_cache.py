"""Tests for the read-through cache and the cached service wrappers."""

import threading
import time

from conftest import make_input
import pytest
import redis

from transdesk.core.cache import (
    EMPTY_SENTINEL,
    CacheStore,
    KeyedLocks,
    ReadThroughCache,
    jittered_ttl,
    matrix_key,
)
from transdesk.core.config import settings
from transdesk.core.exceptions import ConflictError, ResourceNotFoundError
from transdesk.dashboard import CachedDashboardService, DashboardService
from transdesk.languages import CachedLanguageService, LanguageCreate, LanguageService
from transdesk.projects import CachedProjectService, ProjectService, ProjectUpdate
from transdesk.translations import (
    BatchTranslationParams,
    CachedTranslationService,
    MatrixPage,
    TranslationService,
    TranslationUpdate,
)


def _fetch_text(cache, key, loader):
    return cache.fetch(
        key,
        loader,
        dump=lambda value: value,
        load=lambda raw: raw,
        empty=lambda: "",
        is_empty=lambda value: value == "",
    )


class BrokenRedis:
    """Client stub whose every call fails like an unreachable server."""

    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise redis.ConnectionError("connection refused")

        return fail


class TestCacheStore:
    def test_prefix_is_applied(self, cache_store, redis_client):
        cache_store.set("k", "v", 60)

        assert redis_client.get("test:k") == "v"
        assert cache_store.get("k") == "v"
        assert cache_store.keys() == ["k"]

    def test_delete_pattern(self, cache_store):
        for key in ("translation_matrix:1:all:-1:0", "translation_matrix:1:all:10:0", "translation_matrix:2:all:-1:0"):
            cache_store.set(key, "x", 60)

        removed = cache_store.delete_pattern("translation_matrix:1:*")

        assert removed == 2
        assert cache_store.keys("translation_matrix:*") == ["translation_matrix:2:all:-1:0"]

    def test_errors_are_swallowed(self):
        store = CacheStore(BrokenRedis(), prefix="test:")

        assert store.get("k") is None
        assert store.set("k", "v", 60) is False
        assert store.delete("k") == 0
        assert store.delete_pattern("k*") == 0
        assert store.keys() == []
        assert store.ping() is False

    def test_broken_store_falls_through_to_loader(self):
        cache = ReadThroughCache(CacheStore(BrokenRedis()), default_ttl=60, empty_ttl=10)
        calls = []

        value = _fetch_text(cache, "k", lambda: calls.append(1) or "fresh")

        assert value == "fresh"
        assert calls == [1]


class TestReadThrough:
    def test_miss_then_hit(self, cache):
        calls = []

        def loader():
            calls.append(1)
            return "value"

        assert _fetch_text(cache, "k", loader) == "value"
        assert _fetch_text(cache, "k", loader) == "value"
        assert len(calls) == 1

    def test_empty_result_stores_sentinel(self, cache, cache_store, redis_client):
        calls = []

        def loader():
            calls.append(1)
            return ""

        assert _fetch_text(cache, "nothing", loader) == ""
        assert _fetch_text(cache, "nothing", loader) == ""

        assert calls == [1]
        assert cache_store.get("nothing") == EMPTY_SENTINEL
        assert 0 < redis_client.ttl("test:nothing") <= 300

    def test_ttl_includes_jitter(self, cache, redis_client):
        _fetch_text(cache, "k", lambda: "value")

        ttl = redis_client.ttl("test:k")
        assert 1800 + settings.CACHE_JITTER_MIN_SECONDS - 5 <= ttl
        assert ttl <= 1800 + settings.CACHE_JITTER_MAX_SECONDS

    def test_jitter_bounds(self):
        values = {jittered_ttl(100) for _ in range(50)}

        assert min(values) >= 100 + settings.CACHE_JITTER_MIN_SECONDS
        assert max(values) <= 100 + settings.CACHE_JITTER_MAX_SECONDS

    def test_loader_error_is_not_cached(self, cache, cache_store):
        def loader():
            raise RuntimeError("db down")

        with pytest.raises(RuntimeError):
            _fetch_text(cache, "k", loader)

        assert cache_store.get("k") is None
        assert len(cache.locks) == 0

    def test_corrupt_entry_is_reloaded(self, cache, cache_store):
        cache_store.set("page", "{not json", 60)

        page = cache.fetch(
            "page",
            lambda: MatrixPage(matrix={}, total=5),
            dump=lambda p: p.model_dump_json(),
            load=MatrixPage.model_validate_json,
            empty=lambda: MatrixPage(matrix={}, total=0),
            is_empty=lambda p: p.total == 0,
        )

        assert page.total == 5


class TestKeyedLocks:
    def test_concurrent_misses_load_once(self, cache):
        """Callers racing on one key trigger a single load."""
        workers = 8
        barrier = threading.Barrier(workers)
        calls = []
        results = []

        def loader():
            calls.append(1)
            time.sleep(0.05)
            return "loaded"

        def worker():
            barrier.wait()
            results.append(_fetch_text(cache, "hot", loader))

        threads = [threading.Thread(target=worker) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert calls == [1]
        assert results == ["loaded"] * workers
        assert len(cache.locks) == 0

    def test_entry_removed_after_release(self):
        locks = KeyedLocks()

        with locks.hold("a"):
            with locks.hold("b"):
                assert len(locks) == 2
            assert len(locks) == 1

        assert len(locks) == 0

    def test_released_on_error(self):
        locks = KeyedLocks()

        with pytest.raises(ValueError):
            with locks.hold("a"):
                raise ValueError("boom")

        assert len(locks) == 0


@pytest.fixture
def cached_service(session, cache):
    return CachedTranslationService(TranslationService(session), cache)


class TestCachedTranslations:
    """Cache keys are written by reads and dropped by writes."""

    def test_matrix_is_cached(self, cached_service, cache_store, seeded_project, session, languages):
        first = cached_service.get_matrix(seeded_project.id, 10, 0)
        assert matrix_key(seeded_project.id, 10, 0) in cache_store.keys()

        # Written behind the cache's back
        TranslationService(session).upsert_batch(
            [make_input(seeded_project.id, "zz", languages["en"].id, "Sneaky")]
        )

        second = cached_service.get_matrix(seeded_project.id, 10, 0)
        assert second.as_values() == first.as_values()
        assert second.total == 2

    def test_non_positive_limits_share_a_key(self, cached_service, cache_store, seeded_project):
        cached_service.get_matrix(seeded_project.id, 0, 0)
        cached_service.get_matrix(seeded_project.id, -7, 0)

        assert cache_store.keys("translation_matrix:*") == [matrix_key(seeded_project.id, -1, 0)]

    def test_empty_matrix_is_sentinel(self, cached_service, cache_store, project, languages):
        page = cached_service.get_matrix(project.id, 10, 0)

        assert page.total == 0
        assert cache_store.get(matrix_key(project.id, 10, 0)) == EMPTY_SENTINEL

    def test_search_page_uses_short_ttl(self, cached_service, redis_client, seeded_project):
        cached_service.get_matrix(seeded_project.id, 10, 0, keyword="Hello")

        key = "test:" + matrix_key(seeded_project.id, 10, 0, "Hello")
        assert redis_client.ttl(key) <= settings.CACHE_SEARCH_TTL_SECONDS + settings.CACHE_JITTER_MAX_SECONDS

    def test_create_invalidates_project_pages(self, cached_service, cache_store, seeded_project, other_project, languages):
        cached_service.get_matrix(seeded_project.id, 10, 0)
        cached_service.get_matrix(other_project.id, 10, 0)
        cached_service.get_by_project_id(seeded_project.id, 10, 0)
        cache_store.set("dashboard:stats", "{}", 60)

        cached_service.create(
            make_input(seeded_project.id, "new", languages["en"].id, "New"), actor_id=1
        )

        keys = cache_store.keys()
        assert not any(k.startswith(f"translation_matrix:{seeded_project.id}:") for k in keys)
        assert not any(k.startswith(f"translation:{seeded_project.id}:") for k in keys)
        assert matrix_key(other_project.id, 10, 0) in keys
        assert "dashboard:stats" not in keys
        assert "new" in cached_service.get_matrix(seeded_project.id, 10, 0).matrix

    def test_failed_write_keeps_cache(self, cached_service, cache_store, seeded_project, languages):
        cached_service.get_matrix(seeded_project.id, 10, 0)

        with pytest.raises(ConflictError):
            cached_service.create(
                make_input(seeded_project.id, "a.b", languages["en"].id, "dup"), actor_id=1
            )

        assert matrix_key(seeded_project.id, 10, 0) in cache_store.keys()

    def test_update_drops_item_and_pages(self, cached_service, cache_store, seeded_project):
        cell_id = cached_service.get_matrix(seeded_project.id, 10, 0).matrix["a.b"]["en"].id
        assert cached_service.get_by_id(cell_id).value == "Hello"

        cached_service.update(cell_id, TranslationUpdate(value="Howdy"), actor_id=1)

        assert f"translation_item:{cell_id}" not in cache_store.keys()
        assert cached_service.get_by_id(cell_id).value == "Howdy"
        assert cached_service.get_matrix(seeded_project.id, 10, 0).matrix["a.b"]["en"].value == "Howdy"

    def test_missing_item_is_sentinel(self, cached_service, cache_store):
        with pytest.raises(ResourceNotFoundError):
            cached_service.get_by_id(55555)
        with pytest.raises(ResourceNotFoundError):
            cached_service.get_by_id(55555)

        assert cache_store.get("translation_item:55555") == EMPTY_SENTINEL

    def test_upsert_drops_every_item(self, cached_service, cache_store, seeded_project, languages):
        cell_id = cached_service.get_matrix(seeded_project.id, 10, 0).matrix["a.b"]["en"].id
        cached_service.get_by_id(cell_id)

        cached_service.upsert_batch(
            [make_input(seeded_project.id, "a.b", languages["en"].id, "Upserted")]
        )

        assert cache_store.keys("translation_item:*") == []
        assert cached_service.get_by_id(cell_id).value == "Upserted"

    def test_delete_batch(self, cached_service, cache_store, seeded_project):
        page = cached_service.get_matrix(seeded_project.id, -1, 0)
        ids = [cell.id for cells in page.matrix.values() for cell in cells.values()]

        cached_service.delete_batch(ids)

        assert cache_store.keys("translation_matrix:*") == []
        assert cached_service.get_matrix(seeded_project.id, -1, 0).total == 0

    def test_delete_drops_item_and_pages(self, cached_service, cache_store, seeded_project):
        cell_id = cached_service.get_matrix(seeded_project.id, 10, 0).matrix["c.d"]["en"].id
        cached_service.get_by_project_id(seeded_project.id, 10, 0)
        cached_service.get_by_id(cell_id)

        cached_service.delete(cell_id, actor_id=1)

        keys = cache_store.keys()
        assert f"translation_item:{cell_id}" not in keys
        assert not any(k.startswith(f"translation_matrix:{seeded_project.id}:") for k in keys)
        assert not any(k.startswith(f"translation:{seeded_project.id}:") for k in keys)
        with pytest.raises(ResourceNotFoundError):
            cached_service.get_by_id(cell_id)

    def test_create_batch_clears_missing_item(self, cached_service, cache_store, seeded_project, languages):
        page = cached_service.get_matrix(seeded_project.id, -1, 0)
        next_id = max(cell.id for cells in page.matrix.values() for cell in cells.values()) + 1
        with pytest.raises(ResourceNotFoundError):
            cached_service.get_by_id(next_id)
        assert cache_store.get(f"translation_item:{next_id}") == EMPTY_SENTINEL

        created = cached_service.create_batch(
            [make_input(seeded_project.id, "batch.key", languages["en"].id, "Batch")]
        )

        assert created[0].id == next_id
        assert f"translation_item:{next_id}" not in cache_store.keys()
        assert cached_service.get_by_id(next_id).value == "Batch"

    def test_import_clears_missing_item_and_pages(self, cached_service, cache_store, seeded_project, languages):
        page = cached_service.get_matrix(seeded_project.id, -1, 0)
        cached_service.get_by_project_id(seeded_project.id, 10, 0)
        next_id = max(cell.id for cells in page.matrix.values() for cell in cells.values()) + 1
        with pytest.raises(ResourceNotFoundError):
            cached_service.get_by_id(next_id)

        cached_service.import_data(seeded_project.id, b'{"imported.key": {"en": "In"}}')

        keys = cache_store.keys()
        assert not any(k.startswith("translation_item:") for k in keys)
        assert not any(k.startswith(f"translation_matrix:{seeded_project.id}:") for k in keys)
        assert not any(k.startswith(f"translation:{seeded_project.id}:") for k in keys)
        assert cached_service.get_by_id(next_id).key_name == "imported.key"

    def test_by_key_drops_pages(self, cached_service, cache_store, seeded_project):
        cached_service.get_matrix(seeded_project.id, 10, 0)
        cached_service.get_by_project_id(seeded_project.id, 10, 0)

        cached_service.create_batch_from_request(
            BatchTranslationParams(
                project_id=seeded_project.id,
                key_name="a.b",
                translations={"en": "Hey", "fr": "Salut"},
            )
        )

        keys = cache_store.keys()
        assert not any(k.startswith(f"translation_matrix:{seeded_project.id}:") for k in keys)
        assert not any(k.startswith(f"translation:{seeded_project.id}:") for k in keys)
        values = cached_service.get_matrix(seeded_project.id, 10, 0).as_values()
        assert values["a.b"] == {"en": "Hey", "fr": "Salut"}


class TestCachedDirectories:
    def test_language_write_drops_all_matrices(self, session, cache, cache_store, seeded_project, other_project):
        translations = CachedTranslationService(TranslationService(session), cache)
        languages = CachedLanguageService(LanguageService(session), cache)
        translations.get_matrix(seeded_project.id, 10, 0)
        translations.get_matrix(other_project.id, 10, 0)
        assert [lang.code for lang in languages.get_all()] == ["en", "fr"]

        languages.create(LanguageCreate(code="de", name="German"), actor_id=1)

        assert cache_store.keys("translation_matrix:*") == []
        assert [lang.code for lang in languages.get_all()] == ["de", "en", "fr"]

    def test_default_language_follows_updates(self, session, cache, languages):
        service = CachedLanguageService(LanguageService(session), cache)
        assert service.get_default().code == "en"

        service.create(LanguageCreate(code="es", name="Spanish", is_default=True), actor_id=1)

        assert service.get_default().code == "es"
        assert service.get_by_id(languages["en"].id).is_default is False

    def test_project_rename_and_delete(self, session, cache, cache_store, seeded_project):
        service = CachedProjectService(ProjectService(session), cache)
        assert service.get_by_id(seeded_project.id).name == "Web App"

        service.update(seeded_project.id, ProjectUpdate(name="Portal"), actor_id=1)
        assert service.get_by_id(seeded_project.id).name == "Portal"

        service.delete(seeded_project.id)
        with pytest.raises(ResourceNotFoundError):
            service.get_by_id(seeded_project.id)

    def test_dashboard_stats(self, session, cache, cache_store, seeded_project):
        service = CachedDashboardService(DashboardService(session), cache)

        stats = service.get_stats()

        assert stats.total_projects == 1
        assert stats.total_languages == 2
        assert stats.total_translations == 3
        assert stats.total_keys == 2
        assert "dashboard:stats" in cache_store.keys()
