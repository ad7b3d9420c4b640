import asyncio
import json
from types import SimpleNamespace

import pytest
from openai import OpenAIError

from jdoc_api.core.config import Settings
from jdoc_api.core.errors import UpstreamUnavailableError
from jdoc_api.services.analysis import PROCEDURE_NAMES, AnalysisService, build_analysis_client


class FakeOpenAI:
    def __init__(self, *, transcript="текст приёма", completion=None, delay=0.0, error=None):
        self.transcribe_calls = []
        self.chat_calls = []
        self._transcript = transcript
        self._completion = completion
        self._delay = delay
        self._error = error
        self.audio = SimpleNamespace(transcriptions=SimpleNamespace(create=self._transcribe))
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._complete))

    async def _transcribe(self, **kwargs):
        self.transcribe_calls.append(kwargs)
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error:
            raise self._error
        return SimpleNamespace(text=self._transcript)

    async def _complete(self, **kwargs):
        self.chat_calls.append(kwargs)
        message = SimpleNamespace(content=self._completion)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def test_analyze_transcribes_then_extracts_json():
    fields = {"patientName": "Иванов", "procedures": {name: 0 for name in PROCEDURE_NAMES}}
    client = FakeOpenAI(completion=json.dumps(fields, ensure_ascii=False))
    service = AnalysisService(client, Settings())

    result = asyncio.run(service.analyze("visit.webm", b"audio-bytes"))

    assert result.text == "текст приёма"
    assert result.fields == fields
    assert client.transcribe_calls[0]["model"] == "whisper-1"
    assert client.transcribe_calls[0]["language"] == "ru"
    assert client.transcribe_calls[0]["file"] == ("visit.webm", b"audio-bytes")
    chat = client.chat_calls[0]
    assert chat["response_format"] == {"type": "json_object"}
    assert chat["temperature"] == 0
    assert "HILT" in chat["messages"][0]["content"]


@pytest.mark.parametrize("completion", [None, "", "not json", "[1, 2]"])
def test_bad_completion_is_upstream_failure(completion):
    service = AnalysisService(FakeOpenAI(completion=completion), Settings())
    with pytest.raises(UpstreamUnavailableError):
        asyncio.run(service.analyze("a.webm", b"x"))


def test_empty_transcript_is_upstream_failure():
    client = FakeOpenAI(transcript="   ", completion="{}")
    with pytest.raises(UpstreamUnavailableError):
        asyncio.run(AnalysisService(client, Settings()).analyze("a.webm", b"x"))
    assert client.chat_calls == []


def test_timeout_is_single_terminal_failure():
    client = FakeOpenAI(completion="{}", delay=1.0)
    service = AnalysisService(client, Settings(analysis_timeout_seconds=0.05))

    with pytest.raises(UpstreamUnavailableError) as exc:
        asyncio.run(service.analyze("a.webm", b"x"))

    assert "timed out" in exc.value.detail
    assert len(client.transcribe_calls) == 1


def test_provider_error_is_not_retried():
    client = FakeOpenAI(error=OpenAIError("quota exceeded"))
    with pytest.raises(UpstreamUnavailableError):
        asyncio.run(AnalysisService(client, Settings()).analyze("a.webm", b"x"))
    assert len(client.transcribe_calls) == 1


def test_build_client_requires_api_key():
    with pytest.raises(UpstreamUnavailableError):
        build_analysis_client(Settings(openai_api_key=None))

    client = build_analysis_client(Settings(openai_api_key="sk-test"))
    assert client.max_retries == 0
