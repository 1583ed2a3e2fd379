from datetime import datetime, timedelta

from chat_assistant.markup import (
    AssistantResponse,
    CachedMessageRecord,
    InMemoryMessageCacheRepository,
    MessageRenderService,
    RegexMarkupParser,
    SegmentKind,
    SqlAlchemyMessageCacheRepository,
    TextSegment,
    parse_assistant_response,
)
from chat_assistant.markup.repository import CachedMessageModel


class CountingParser(RegexMarkupParser):
    def __init__(self):
        self.calls = 0

    def parse(self, content):
        self.calls += 1
        return super().parse(content)


def test_response_prefers_structured_elements():
    elements = {
        "interactiveList": [{"term": "Graph", "definition": "Nodes and edges"}],
        "suggested_questions": ["What is BFS?"],
        "youtubeResources": [{"title": "Graphs", "url": "https://youtu.be/abc"}],
    }
    response = parse_assistant_response("Plain answer", elements)
    assert response.content == "Plain answer"
    assert response.interactive_list == [{"term": "Graph", "definition": "Nodes and edges"}]
    assert response.suggested_questions == ["What is BFS?"]
    assert response.outline is None
    assert response.youtube_resources == [{"title": "Graphs", "url": "https://youtu.be/abc"}]


def test_response_unpacks_json_envelope():
    raw = (
        '{"content": {"data": "FAQ answer"},'
        ' "interactiveElements": {"suggestedQuestions": ["Next?"], "outline": [{"title": "T", "subtopics": []}]},'
        ' "youtube_resources": [{"title": "V", "url": "https://youtu.be/v"}]}'
    )
    response = parse_assistant_response(raw)
    assert response.content == "FAQ answer"
    assert response.suggested_questions == ["Next?"]
    assert response.outline == [{"title": "T", "subtopics": []}]
    assert response.youtube_resources == [{"title": "V", "url": "https://youtu.be/v"}]
    assert response.interactive_list is None


def test_response_plain_text_and_foreign_json_pass_through():
    assert parse_assistant_response("Just text") == AssistantResponse(content="Just text")
    assert parse_assistant_response('{"answer": 42}') == AssistantResponse(content='{"answer": 42}')
    assert parse_assistant_response("[1, 2]") == AssistantResponse(content="[1, 2]")


def test_service_memoizes_segments_by_content():
    parser = CountingParser()
    service = MessageRenderService(InMemoryMessageCacheRepository(), parser=parser, memo_size=8)

    first = service.segments("hello [VIDEO_CONTENT:Clip:https://v]")
    first.append(TextSegment("mutated by caller"))
    second = service.segments("hello [VIDEO_CONTENT:Clip:https://v]")

    assert parser.calls == 1
    assert [s.kind for s in second] == [SegmentKind.TEXT, SegmentKind.VIDEO_CONTENT]


def test_service_without_memo_parses_every_time():
    parser = CountingParser()
    service = MessageRenderService(InMemoryMessageCacheRepository(), parser=parser, memo_size=0)
    service.segments("same")
    service.segments("same")
    assert parser.calls == 2


def test_render_message_caches_and_recalls_elements():
    repo = InMemoryMessageCacheRepository()
    service = MessageRenderService(repo)
    content = "See [INTERACTIVE_LIST:Refs][SOURCE:1:t:i:d:https://r][/INTERACTIVE_LIST]"

    fresh = service.render_message(10, 1, content, interactive_elements={"suggestedQuestions": ["Why?"]})
    assert fresh.response.suggested_questions == ["Why?"]
    assert (10, 1) in repo.entries

    reloaded = service.render_message(10, 1, content)
    assert reloaded.response.suggested_questions == ["Why?"]
    assert [s.kind for s in reloaded.segments] == [SegmentKind.TEXT, SegmentKind.INTERACTIVE_LIST]


def test_remember_skips_responses_without_elements():
    repo = InMemoryMessageCacheRepository()
    service = MessageRenderService(repo)
    assert service.remember(1, 1, AssistantResponse(content="nothing", suggested_questions=[])) is None
    assert repo.entries == {}


def test_expired_entry_is_dropped_on_recall():
    repo = InMemoryMessageCacheRepository()
    service = MessageRenderService(repo, cache_ttl=timedelta(days=7))
    repo.save_cached(
        CachedMessageRecord(
            conversation_id=3,
            message_id=4,
            outline=[{"title": "Old"}],
            cached_at=datetime.utcnow() - timedelta(days=8),
        )
    )
    assert service.recall(3, 4) is None
    assert repo.entries == {}


def test_purge_and_forget_conversation():
    repo = InMemoryMessageCacheRepository()
    service = MessageRenderService(repo)
    stale = datetime.utcnow() - timedelta(days=30)
    repo.save_cached(CachedMessageRecord(conversation_id=1, message_id=1, outline=[1], cached_at=stale))
    repo.save_cached(CachedMessageRecord(conversation_id=1, message_id=2, outline=[2]))
    repo.save_cached(CachedMessageRecord(conversation_id=2, message_id=1, outline=[3]))

    assert service.purge_expired() == 1
    assert service.forget_conversation(1) == 1
    assert list(repo.entries) == [(2, 1)]


def test_sqlalchemy_cache_repository_roundtrip(tmp_path):
    db_path = tmp_path / "cache.db"
    repo = SqlAlchemyMessageCacheRepository(f"sqlite+pysqlite:///{db_path}")

    record = CachedMessageRecord(
        conversation_id=5,
        message_id=9,
        interactive_list=[{"term": "Heap", "definition": "Priority queue"}],
        suggested_questions=["How does heapify work?"],
    )
    repo.save_cached(record)
    fetched = repo.get_cached(5, 9)
    assert fetched and fetched.interactive_list == record.interactive_list
    assert fetched.suggested_questions == ["How does heapify work?"]
    assert fetched.outline is None

    repo.save_cached(CachedMessageRecord(conversation_id=5, message_id=10, outline=[]))
    repo.save_cached(
        CachedMessageRecord(
            conversation_id=6,
            message_id=1,
            outline=[{"title": "Old"}],
            cached_at=datetime.utcnow() - timedelta(days=10),
        )
    )
    assert repo.count() == 3
    assert repo.delete_older_than(datetime.utcnow() - timedelta(days=7)) == 1
    assert repo.delete_cached(5, 10) is True
    assert repo.delete_cached(5, 10) is False
    assert repo.delete_conversation(5) == 1
    assert repo.count() == 0


def test_sqlalchemy_repository_treats_corrupt_payload_as_miss(tmp_path):
    repo = SqlAlchemyMessageCacheRepository(f"sqlite+pysqlite:///{tmp_path / 'cache.db'}")
    payloads = {1: "{not json", 2: "[]", 3: "42", 4: '"text"'}
    with repo.SessionLocal() as session:
        for message_id, payload in payloads.items():
            session.add(
                CachedMessageModel(
                    conversation_id=1,
                    message_id=message_id,
                    elements_json=payload,
                    cached_at=datetime.utcnow(),
                )
            )
        session.commit()
    for message_id in payloads:
        assert repo.get_cached(1, message_id) is None
    assert repo.count() == 4


def test_sqlalchemy_repository_creates_missing_database_dir(tmp_path):
    db_path = tmp_path / "nested" / "dir" / "cache.db"
    repo = SqlAlchemyMessageCacheRepository(f"sqlite+pysqlite:///{db_path}")
    repo.save_cached(CachedMessageRecord(conversation_id=1, message_id=1, suggested_questions=["Q?"]))
    assert db_path.exists()
    assert repo.get_cached(1, 1).suggested_questions == ["Q?"]


def test_in_memory_repository_count_and_service_stats():
    repo = InMemoryMessageCacheRepository()
    service = MessageRenderService(repo)
    assert service.cached_count() == 0
    service.render_message(1, 1, "a", interactive_elements={"outline": [{"title": "T"}]})
    service.render_message(1, 2, "b", interactive_elements={"suggestedQuestions": ["Q?"]})
    service.render_message(1, 3, "c")
    assert repo.count() == 2
    assert service.cached_count() == 2


def test_bracket_flood_is_not_treated_as_json():
    raw = "[" * 200000
    assert parse_assistant_response(raw) == AssistantResponse(content=raw)
    nested = '{"content": ' + "[" * 200000
    assert parse_assistant_response(nested) == AssistantResponse(content=nested)


def test_render_message_survives_bracket_flood():
    service = MessageRenderService(InMemoryMessageCacheRepository())
    raw = "[" * 200000
    rendered = service.render_message(1, 1, raw)
    assert rendered.response.content == raw
    assert rendered.segments == [TextSegment(raw)]
