from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Any, List, Mapping, Optional, Tuple

from .engine import MarkupParser, RegexMarkupParser
from .models import CachedMessageRecord, Segment
from .repository import MessageCacheRepository, SqlAlchemyMessageCacheRepository
from .response import AssistantResponse, parse_assistant_response

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = timedelta(days=7)


@dataclass
class ServiceConfig:
    database_url: str
    cache_ttl_days: float = 7
    memo_size: int = 256


@dataclass
class RenderedMessage:
    conversation_id: int
    message_id: int
    response: AssistantResponse
    segments: List[Segment]


class MessageRenderService:
    """
    Turns stored or freshly received assistant replies into render-ready
    segments. Interactive elements are cached per message so they survive a
    history reload that does not carry them; parser output is memoized by
    message content.
    """

    def __init__(
        self,
        repository: MessageCacheRepository,
        parser: Optional[MarkupParser] = None,
        cache_ttl: timedelta = DEFAULT_CACHE_TTL,
        memo_size: int = 256,
    ):
        self.repo = repository
        self.parser = parser or RegexMarkupParser()
        self.cache_ttl = cache_ttl
        self.memo_size = memo_size
        if memo_size > 0:
            self._parse = lru_cache(maxsize=memo_size)(self._parse_uncached)
        else:
            self._parse = self._parse_uncached

    def _parse_uncached(self, content: str) -> Tuple[Segment, ...]:
        return tuple(self.parser.parse(content))

    def segments(self, content: str) -> List[Segment]:
        return list(self._parse(content))

    def _is_expired(self, record: CachedMessageRecord, now: Optional[datetime] = None) -> bool:
        now = now or datetime.utcnow()
        return now - record.cached_at > self.cache_ttl

    def remember(self, conversation_id: int, message_id: int, response: AssistantResponse) -> Optional[CachedMessageRecord]:
        if not response.has_elements():
            return None
        record = CachedMessageRecord(
            conversation_id=conversation_id,
            message_id=message_id,
            **response.elements(),
        )
        self.repo.save_cached(record)
        return record

    def recall(self, conversation_id: int, message_id: int) -> Optional[CachedMessageRecord]:
        record = self.repo.get_cached(conversation_id, message_id)
        if not record:
            return None
        if self._is_expired(record):
            logger.info("Cache entry for conversation %s message %s expired", conversation_id, message_id)
            self.repo.delete_cached(conversation_id, message_id)
            return None
        return record

    def forget(self, conversation_id: int, message_id: int) -> bool:
        return self.repo.delete_cached(conversation_id, message_id)

    def forget_conversation(self, conversation_id: int) -> int:
        return self.repo.delete_conversation(conversation_id)

    def cached_count(self) -> int:
        return self.repo.count()

    def purge_expired(self) -> int:
        purged = self.repo.delete_older_than(datetime.utcnow() - self.cache_ttl)
        if purged:
            logger.info("Purged %d expired cache entries", purged)
        return purged

    def render_message(
        self,
        conversation_id: int,
        message_id: int,
        content: str,
        interactive_elements: Optional[Mapping[str, Any]] = None,
    ) -> RenderedMessage:
        if interactive_elements:
            response = parse_assistant_response(content, interactive_elements)
            self.remember(conversation_id, message_id, response)
        else:
            cached = self.recall(conversation_id, message_id)
            if cached:
                response = parse_assistant_response(content, cached.elements())
            else:
                response = parse_assistant_response(content)
        return RenderedMessage(
            conversation_id=conversation_id,
            message_id=message_id,
            response=response,
            segments=self.segments(response.content),
        )


def build_service(config: ServiceConfig) -> MessageRenderService:
    repo = SqlAlchemyMessageCacheRepository(config.database_url)
    return MessageRenderService(
        repository=repo,
        parser=RegexMarkupParser(),
        cache_ttl=timedelta(days=config.cache_ttl_days),
        memo_size=config.memo_size,
    )
