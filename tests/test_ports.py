import pytest

from questionhub.entities import QuestionEntity, QuestionId
from questionhub.ports import CachePort, GptAnswerPort, QuestionPort


@pytest.mark.parametrize(
    ("port", "methods"),
    [
        (CachePort, ["get", "set", "delete"]),
        (GptAnswerPort, ["get_answer"]),
        (QuestionPort, ["add", "update", "delete", "get", "list"]),
    ],
)
def test_ports_cannot_be_instantiated(port, methods):
    with pytest.raises(TypeError) as info:
        port()
    message = str(info.value)
    assert port.__name__ in message
    for name in methods:
        assert name in message


@pytest.mark.asyncio
async def test_incomplete_implementation_is_rejected():
    class HalfCache(CachePort):
        async def get(self, key):
            return key

    with pytest.raises(TypeError) as info:
        HalfCache()
    message = str(info.value)
    assert "set" in message
    assert "delete" in message

    class FullCache(HalfCache):
        async def set(self, key, value, expiration):
            return None

        async def delete(self, key):
            return None

    cache = FullCache()
    key = str(QuestionId.parse("k1"))
    assert await cache.get(key) == "k1"


@pytest.mark.asyncio
async def test_complete_implementation_is_usable_through_port():
    class EchoAnswers(GptAnswerPort):
        async def get_answer(self, question):
            return question.upper()

    port: GptAnswerPort = EchoAnswers()
    question = QuestionEntity(QuestionId.parse("7"), "title", "why")
    assert await port.get_answer(question.content) == "WHY"


@pytest.mark.asyncio
async def test_question_port_subclass_round_trip():
    class Single(QuestionPort):
        def __init__(self):
            self.item = None

        async def add(self, question):
            self.item = question
            return question

        async def update(self, question):
            return await self.add(question)

        async def delete(self, question_id):
            self.item = None

        async def get(self, question_id):
            return self.item

        async def list(self, question_filter):
            return [self.item]

    store = Single()
    question = QuestionEntity(QuestionId("1"), "t", "c")
    assert await store.add(question) == question
    assert await store.get(QuestionId("1")) == question