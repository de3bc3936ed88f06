"""Shared read-through cache used by the cached service wrappers.

Provides:
- CacheStore: prefix-aware wrapper over a redis-py client that treats every
  Redis error as a miss / no-op
- KeyedLocks: per-key mutual exclusion with create-on-first-use and
  remove-on-last-release semantics (stampede protection, per process only)
- ReadThroughCache: lock, read, load on miss, write back with jittered TTL,
  cache a short-lived sentinel for empty results
- cache key builders shared by loaders and invalidation
"""

from collections.abc import Callable, Generator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from functools import lru_cache
import hashlib
import json
import random
import threading
from typing import Any, TypeVar

import redis
from sqlmodel import SQLModel

from transdesk.core.config import settings
from transdesk.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=SQLModel)

# Stored in place of a value when the backing store had nothing to return
EMPTY_SENTINEL = "empty"

TRANSLATION_LIST_PREFIX = "translation:"
TRANSLATION_MATRIX_PREFIX = "translation_matrix:"
TRANSLATION_ITEM_PREFIX = "translation_item:"
PROJECT_PREFIX = "project:"
PROJECTS_PREFIX = "projects:"
LANGUAGE_PREFIX = "language:"
LANGUAGES_KEY = "languages"
USER_PREFIX = "user:"
USERS_PREFIX = "users:"
DASHBOARD_STATS_KEY = "dashboard:stats"


def hash_keyword(keyword: str) -> str:
    """Short stable digest so free-text search terms never end up in keys."""
    return hashlib.sha1(keyword.encode("utf-8")).hexdigest()[:16]


def matrix_key(project_id: int, limit: int, offset: int, keyword: str = "") -> str:
    if keyword:
        return (
            f"{TRANSLATION_MATRIX_PREFIX}{project_id}:search:"
            f"{hash_keyword(keyword)}:{limit}:{offset}"
        )
    return f"{TRANSLATION_MATRIX_PREFIX}{project_id}:all:{limit}:{offset}"


def matrix_pattern(project_id: int | None = None) -> str:
    """Pattern for one project's matrix pages, or every project's."""
    if project_id is None:
        return f"{TRANSLATION_MATRIX_PREFIX}*"
    return f"{TRANSLATION_MATRIX_PREFIX}{project_id}:*"


def translation_list_key(project_id: int, limit: int, offset: int) -> str:
    return f"{TRANSLATION_LIST_PREFIX}{project_id}:{limit}:{offset}"


def translation_list_pattern(project_id: int) -> str:
    return f"{TRANSLATION_LIST_PREFIX}{project_id}:*"


def translation_item_key(translation_id: int) -> str:
    return f"{TRANSLATION_ITEM_PREFIX}{translation_id}"


def listing_key(prefix: str, limit: int, offset: int, keyword: str = "") -> str:
    return f"{prefix}{limit}:{offset}:{hash_keyword(keyword) if keyword else '-'}"


def model_loader(model: type[M]) -> Callable[[str], M]:
    """Build a decoder turning a cached JSON document back into `model`."""

    def load(raw: str) -> M:
        return model.model_validate(json.loads(raw))

    return load


def dump_model(obj: SQLModel) -> str:
    return obj.model_dump_json()


def dump_list(items: Sequence[SQLModel]) -> str:
    return json.dumps([item.model_dump(mode="json") for item in items])


def list_loader(model: type[M]) -> Callable[[str], list[M]]:
    def load(raw: str) -> list[M]:
        return [model.model_validate(item) for item in json.loads(raw)]

    return load


def dump_page(page: tuple[Sequence[SQLModel], int]) -> str:
    items, total = page
    return json.dumps(
        {"items": [item.model_dump(mode="json") for item in items], "total": total}
    )


def page_loader(model: type[M]) -> Callable[[str], tuple[list[M], int]]:
    def load(raw: str) -> tuple[list[M], int]:
        data = json.loads(raw)
        return [model.model_validate(item) for item in data["items"]], int(data["total"])

    return load


def page_is_empty(page: tuple[Sequence[Any], int]) -> bool:
    return page[1] == 0


def jittered_ttl(base_seconds: int) -> int:
    """Base TTL plus random jitter so entries written together expire apart."""
    return base_seconds + random.randint(
        settings.CACHE_JITTER_MIN_SECONDS, settings.CACHE_JITTER_MAX_SECONDS
    )


class CacheStore:
    """Redis-backed key/value store.

    All keys get the configured prefix. The cache is an optimization only,
    so any Redis failure is logged and reported as a miss (reads) or
    ignored (writes and deletes).
    """

    def __init__(self, client: redis.Redis, prefix: str = ""):
        self._client = client
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError as e:
            logger.warning("cache_store_error", op="ping", error=str(e))
            return False

    def get(self, key: str) -> str | None:
        try:
            value = self._client.get(self._key(key))
        except redis.RedisError as e:
            logger.warning("cache_store_error", op="get", key=key, error=str(e))
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        try:
            self._client.setex(self._key(key), ttl_seconds, value)
            return True
        except redis.RedisError as e:
            logger.warning("cache_store_error", op="set", key=key, error=str(e))
            return False

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            return int(self._client.delete(*(self._key(k) for k in keys)))
        except redis.RedisError as e:
            logger.warning("cache_store_error", op="delete", keys=list(keys), error=str(e))
            return 0

    def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern (prefix applied).

        Uses SCAN rather than KEYS so large keyspaces do not block Redis.
        """
        removed = 0
        try:
            batch: list[Any] = []
            for key in self._client.scan_iter(match=self._key(pattern), count=500):
                batch.append(key)
                if len(batch) >= 500:
                    removed += int(self._client.delete(*batch))
                    batch = []
            if batch:
                removed += int(self._client.delete(*batch))
        except redis.RedisError as e:
            logger.warning(
                "cache_store_error", op="delete_pattern", pattern=pattern, error=str(e)
            )
        return removed

    def keys(self, pattern: str = "*") -> list[str]:
        """List unprefixed keys matching a pattern. Meant for diagnostics and tests."""
        try:
            found = list(self._client.scan_iter(match=self._key(pattern)))
        except redis.RedisError as e:
            logger.warning("cache_store_error", op="keys", pattern=pattern, error=str(e))
            return []
        names = [k.decode("utf-8") if isinstance(k, bytes) else k for k in found]
        return [name[len(self._prefix) :] for name in names]


@dataclass
class _LockEntry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class KeyedLocks:
    """One lock per cache key, alive only while someone holds or waits on it.

    The registry itself is guarded by a single mutex; the per-key lock is
    acquired outside of it so unrelated keys never wait on each other.
    Protection is per process: separate instances can still race.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[str, _LockEntry] = {}

    @contextmanager
    def hold(self, key: str) -> Generator[None, None, None]:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = _LockEntry()
                self._entries[key] = entry
            entry.holders += 1

        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    self._entries.pop(key, None)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


class ReadThroughCache:
    """Read-through cache with stampede, penetration and avalanche protection."""

    def __init__(
        self,
        store: CacheStore,
        locks: KeyedLocks | None = None,
        *,
        default_ttl: int | None = None,
        empty_ttl: int | None = None,
    ):
        self.store = store
        self.locks = locks or KeyedLocks()
        self.default_ttl = (
            default_ttl if default_ttl is not None else settings.CACHE_DEFAULT_TTL_SECONDS
        )
        self.empty_ttl = (
            empty_ttl if empty_ttl is not None else settings.CACHE_EMPTY_TTL_SECONDS
        )

    def fetch(
        self,
        key: str,
        loader: Callable[[], T],
        *,
        dump: Callable[[T], str],
        load: Callable[[str], T],
        empty: Callable[[], T],
        is_empty: Callable[[T], bool],
        base_ttl: int | None = None,
    ) -> T:
        """Return the cached value for `key` or load, store and return it.

        Concurrent callers for the same key are serialized so only the
        first one reaches the loader; the rest find the freshly written
        entry. Exceptions raised by the loader propagate and nothing is
        cached.
        """
        with self.locks.hold(key):
            raw = self.store.get(key)
            if raw == EMPTY_SENTINEL:
                logger.debug("cache_hit_empty", key=key)
                return empty()
            if raw is not None:
                try:
                    value = load(raw)
                except (ValueError, KeyError, TypeError) as e:
                    logger.warning("cache_decode_failed", key=key, error=str(e))
                else:
                    logger.debug("cache_hit", key=key)
                    return value

            logger.debug("cache_miss", key=key)
            value = loader()
            if is_empty(value):
                self.store.set(key, EMPTY_SENTINEL, self.empty_ttl)
            else:
                ttl = jittered_ttl(base_ttl if base_ttl is not None else self.default_ttl)
                self.store.set(key, dump(value), ttl)
            return value

    def invalidate(self, *keys: str, patterns: tuple[str, ...] = ()) -> None:
        """Drop exact keys and every key matching the given patterns."""
        removed = self.store.delete(*keys)
        for pattern in patterns:
            removed += self.store.delete_pattern(pattern)
        logger.debug(
            "cache_invalidated", keys=list(keys), patterns=list(patterns), removed=removed
        )


def get_redis() -> redis.Redis | None:
    """Create the Redis client, or None when caching is not configured."""
    if not settings.cache_enabled:
        logger.info("cache_disabled", redis_configured=bool(settings.REDIS_URL))
        return None
    assert settings.REDIS_URL is not None
    return redis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=settings.REDIS_CONNECT_TIMEOUT,
    )


@lru_cache
def get_cache() -> ReadThroughCache | None:
    """Process-wide cache shared by every cached service (one KeyedLocks)."""
    client = get_redis()
    if client is None:
        return None
    store = CacheStore(client, prefix=settings.CACHE_KEY_PREFIX)
    logger.info("cache_configured", prefix=settings.CACHE_KEY_PREFIX)
    return ReadThroughCache(store)
