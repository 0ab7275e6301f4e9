import types

import pytest
from openai import OpenAIError

from place_curator.core.errors import AITextError
from place_curator.vendors.ai_text import AITextClient, extract_json_array


class DummyCompletions:
    def __init__(self, content="[]", error=None, choices=True):
        self.content = content
        self.error = error
        self.choices = choices
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        if not self.choices:
            return types.SimpleNamespace(choices=[], usage=None)
        message = types.SimpleNamespace(content=self.content)
        return types.SimpleNamespace(choices=[types.SimpleNamespace(message=message)], usage=None)


def _client(completions):
    fake = types.SimpleNamespace(chat=types.SimpleNamespace(completions=completions))
    return AITextClient("key", "test-model", client=fake)


def test_extract_json_array_from_prose():
    text = 'Sure! Here you go:\n```json\n["小吃", "甜點"]\n```'
    assert extract_json_array(text) == ["小吃", "甜點"]
    assert extract_json_array('note [not json] then [1, 2]') == [1, 2]


def test_extract_json_array_raises_without_array():
    with pytest.raises(ValueError):
        extract_json_array('{"keywords": "none"}')


def test_expand_and_classify_call_shapes():
    completions = DummyCompletions(content='["a"]')
    client = _client(completions)

    assert client.expand("prompt one") == '["a"]'
    client.classify("prompt two")

    assert completions.calls[0]["model"] == "test-model"
    assert completions.calls[0]["temperature"] == 0.7
    assert completions.calls[1]["max_tokens"] == 4096
    assert completions.calls[1]["messages"][-1] == {"role": "user", "content": "prompt two"}


def test_failures_become_ai_text_errors():
    with pytest.raises(AITextError):
        _client(DummyCompletions(error=OpenAIError("boom"))).expand("p")
    with pytest.raises(AITextError):
        _client(DummyCompletions(choices=False)).expand("p")
    with pytest.raises(AITextError):
        _client(DummyCompletions(content="   ")).classify("p")
