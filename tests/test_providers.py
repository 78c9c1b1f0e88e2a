from types import SimpleNamespace

import groq
import httpx
import pytest
import requests

import config
from ai_providers import factory
from ai_providers.groq_provider import GroqProvider
from ai_providers.local_stub import LocalStub
from ai_providers.ollama_provider import OllamaProvider
from errors import GenerationFailed, ProviderUnavailable, TransientProviderError
from services.quiz_parser import parse_quiz_response
from services.quizzer import QuizGenerator, build_prompt


class _FakeCompletions:
    def __init__(self, result):
        self.result = result
        self.kwargs = None

    def create(self, **kwargs):
        self.kwargs = kwargs
        if isinstance(self.result, Exception):
            raise self.result
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=self.result))])


def _groq(result):
    completions = _FakeCompletions(result)
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return GroqProvider(client=client), completions


def test_groq_returns_message_content():
    prov, completions = _groq('{"questions": []}')
    assert prov.generate("prompt", "llama-3.1-8b-instant", timeout=12) == '{"questions": []}'
    assert completions.kwargs["model"] == "llama-3.1-8b-instant"
    assert completions.kwargs["timeout"] == 12
    assert completions.kwargs["messages"][1] == {"role": "user", "content": "prompt"}


def test_groq_timeout_is_transient():
    request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
    prov, _ = _groq(groq.APITimeoutError(request=request))
    with pytest.raises(TransientProviderError):
        prov.generate("prompt", "m")


def test_groq_other_api_errors_are_unavailable():
    request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
    response = httpx.Response(404, request=request)
    prov, _ = _groq(groq.NotFoundError("model not found", response=response, body=None))
    with pytest.raises(ProviderUnavailable):
        prov.generate("prompt", "missing-model")


def test_ollama_posts_chat_request(monkeypatch):
    seen = {}

    def fake_post(url, json, timeout):
        seen.update(url=url, json=json, timeout=timeout)
        return SimpleNamespace(raise_for_status=lambda: None,
                               json=lambda: {"message": {"content": "{}"}})

    monkeypatch.setattr(requests, "post", fake_post)
    prov = OllamaProvider(model="llama3", url="http://ollama:11434/api/chat")

    assert prov.generate("prompt", "llama3", timeout=9) == "{}"
    assert seen["json"]["model"] == "llama3"
    assert seen["timeout"] == 9
    assert prov.default_models == ["llama3"]


def test_ollama_errors_are_mapped(monkeypatch):
    def timeout(*a, **kw):
        raise requests.Timeout("slow")

    monkeypatch.setattr(requests, "post", timeout)
    with pytest.raises(TransientProviderError):
        OllamaProvider().generate("prompt", "llama3")

    def http_error(*a, **kw):
        raise requests.HTTPError("500")

    monkeypatch.setattr(requests, "post", http_error)
    with pytest.raises(ProviderUnavailable):
        OllamaProvider().generate("prompt", "llama3")


def test_local_stub_output_validates():
    content = ("Photosynthesis converts light energy into chemical energy. "
               "Chlorophyll absorbs mostly blue and red light. "
               "The Calvin cycle fixes carbon dioxide into sugars.")
    raw = LocalStub().generate(build_prompt(content, 4, "easy"), "local-stub")
    questions = parse_quiz_response(raw)
    assert len(questions) == 4
    assert {q["correctAnswer"] for q in questions} == {"A", "B", "C", "D"}


def test_provider_selection(monkeypatch):
    monkeypatch.setattr(config, "GROQ_API_KEY", None)
    monkeypatch.setattr(config, "OLLAMA_MODEL", None)
    assert isinstance(factory.get_provider(), LocalStub)

    monkeypatch.setattr(config, "OLLAMA_MODEL", "mistral")
    prov = factory.get_provider()
    assert isinstance(prov, OllamaProvider)
    assert factory.model_chain(prov) == ["mistral"]

    monkeypatch.setattr(config, "GROQ_API_KEY", "gsk_test")
    assert isinstance(factory.get_provider(), GroqProvider)


def test_model_chain_override(monkeypatch):
    monkeypatch.setattr(config, "QUIZ_MODELS", ["a", "b"])
    assert factory.model_chain(LocalStub()) == ["a", "b"]


def test_ping():
    assert factory.ping(LocalStub(), "local-stub") is True
    prov, _ = _groq(TransientProviderError("down"))
    assert factory.ping(prov, "m") is False


def _ollama_reply(monkeypatch, json_fn, calls=None):
    def fake_post(url, json, timeout):
        if calls is not None:
            calls.append(json["model"])
        return SimpleNamespace(raise_for_status=lambda: None, json=json_fn)

    monkeypatch.setattr(requests, "post", fake_post)


def test_ollama_non_json_reply_is_unavailable(monkeypatch):
    def html_page():
        raise requests.JSONDecodeError("Expecting value", "<html>proxy</html>", 0)

    _ollama_reply(monkeypatch, html_page)
    with pytest.raises(ProviderUnavailable):
        OllamaProvider().generate("prompt", "llama3")


def test_ollama_unexpected_json_shape_is_unavailable(monkeypatch):
    _ollama_reply(monkeypatch, lambda: ["not", "a", "chat", "reply"])
    with pytest.raises(ProviderUnavailable):
        OllamaProvider().generate("prompt", "llama3")

    _ollama_reply(monkeypatch, lambda: {"message": "oops"})
    with pytest.raises(ProviderUnavailable):
        OllamaProvider().generate("prompt", "llama3")


def test_non_json_ollama_reply_is_retried_then_fails_generation(monkeypatch):
    def html_page():
        raise requests.JSONDecodeError("Expecting value", "<html>proxy</html>", 0)

    calls = []
    _ollama_reply(monkeypatch, html_page, calls)
    gen = QuizGenerator(OllamaProvider(model="llama3"), attempts_per_model=2, sleep=lambda s: None)

    with pytest.raises(GenerationFailed) as exc:
        gen.generate("content", 3, "easy")

    assert calls == ["llama3", "llama3"]
    assert isinstance(exc.value.last_error, ProviderUnavailable)


def test_groq_client_leaves_retries_to_the_generator():
    assert GroqProvider(api_key="gsk_test").client.max_retries == 0
