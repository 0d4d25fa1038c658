"""
Redis-backed notice repository.

Each notice is a JSON string under `<prefix>:notice:<id>`; the ids are
tracked in the sorted set `<prefix>:notices`, scored by creation time so
listing returns notices oldest first.
"""

import logging
from typing import List, Optional

import redis

from tech_radar.config.settings import Settings, get_settings
from tech_radar.errors import Conflict, NotFound
from tech_radar.models.notice import DeprecationNotice
from tech_radar.store.base import NoticeRepository

logger = logging.getLogger(__name__)


class RedisNoticeRepository(NoticeRepository):
    """
    Notice repository on Redis.

    A client can be injected (tests pass a fake); otherwise one is created
    lazily from settings on first use.
    """

    def __init__(
        self,
        client: Optional["redis.Redis"] = None,
        settings: Optional[Settings] = None,
        key_prefix: Optional[str] = None,
    ):
        self.settings = settings or get_settings()
        self.key_prefix = key_prefix or self.settings.redis_key_prefix
        self._redis = client

    def _get_redis(self) -> "redis.Redis":
        """Get or create Redis connection."""
        if self._redis is None:
            try:
                self._redis = redis.Redis.from_url(
                    self.settings.redis_url,
                    decode_responses=True,
                    socket_timeout=self.settings.redis_socket_timeout,
                )
                self._redis.ping()
                logger.info(f"Connected to Redis at {self.settings.redis_host}:{self.settings.redis_port}")
            except Exception as e:
                self._redis = None
                logger.error(f"Failed to connect to Redis: {e}")
                raise
        return self._redis

    def _get_key(self, notice_id: str) -> str:
        return f"{self.key_prefix}:notice:{notice_id}"

    def _get_index_key(self) -> str:
        return f"{self.key_prefix}:notices"

    def _write(self, notice: DeprecationNotice) -> None:
        self._get_redis().set(self._get_key(notice.id), notice.model_dump_json())

    def add(self, notice: DeprecationNotice) -> DeprecationNotice:
        client = self._get_redis()
        if client.exists(self._get_key(notice.id)):
            raise Conflict(f"Notice with ID {notice.id} already exists", entity_id=notice.id)
        self._write(notice)
        client.zadd(self._get_index_key(), {notice.id: notice.created_at.timestamp()})
        logger.debug(f"Stored notice {notice.id}", extra={"target_id": notice.target_id})
        return notice.model_copy(deep=True)

    def get(self, notice_id: str) -> Optional[DeprecationNotice]:
        data = self._get_redis().get(self._get_key(notice_id))
        if not data:
            return None
        return DeprecationNotice.model_validate_json(data)

    def list(self) -> List[DeprecationNotice]:
        notices = []
        for notice_id in self._get_redis().zrange(self._get_index_key(), 0, -1):
            notice = self.get(notice_id)
            if notice is None:
                logger.warning(f"Notice {notice_id} indexed but missing")
                continue
            notices.append(notice)
        return notices

    def save(self, notice: DeprecationNotice) -> DeprecationNotice:
        if not self._get_redis().exists(self._get_key(notice.id)):
            raise NotFound("Deprecation notice", notice.id)
        self._write(notice)
        return notice.model_copy(deep=True)

    def delete(self, notice_id: str) -> bool:
        client = self._get_redis()
        removed = client.delete(self._get_key(notice_id))
        client.zrem(self._get_index_key(), notice_id)
        return bool(removed)
