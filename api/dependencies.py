from __future__ import annotations

import os
from functools import lru_cache

from chat_assistant.markup import MessageRenderService, ServiceConfig, build_service


def load_config() -> ServiceConfig:
    return ServiceConfig(
        database_url=os.getenv("DATABASE_URL", "sqlite+pysqlite:///./data/chat_assistant.db"),
        cache_ttl_days=float(os.getenv("MESSAGE_CACHE_TTL_DAYS", "7")),
        memo_size=int(os.getenv("SEGMENT_MEMO_SIZE", "256")),
    )


@lru_cache(maxsize=1)
def get_service() -> MessageRenderService:
    return build_service(load_config())
