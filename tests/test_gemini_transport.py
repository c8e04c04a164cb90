"""GeminiTransport tests with a fake google-genai SDK."""

from __future__ import annotations

import asyncio
import base64
from types import SimpleNamespace

import pytest

from modules.remote import transport as transport_module
from modules.remote.errors import CredentialMissing, HardRemoteFailure, TransientRemoteFailure
from modules.remote.transport import GeminiTransport, InlineImage, RemoteRequest


class FakePart:
    @staticmethod
    def from_text(text):
        return ("text", text)

    @staticmethod
    def from_bytes(data, mime_type):
        return ("bytes", data, mime_type)


class FakeConfig:
    def __init__(self, **kwargs):
        self.kwargs = kwargs


def make_fake_types():
    return SimpleNamespace(
        Part=FakePart,
        Content=lambda role, parts: SimpleNamespace(role=role, parts=parts),
        Tool=lambda google_search: ("tool", google_search),
        GoogleSearch=lambda: "google_search",
        ImageConfig=lambda aspect_ratio: ("image_config", aspect_ratio),
        GenerateContentConfig=FakeConfig,
    )


class FakeModels:
    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = []

    async def generate_content(self, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome


def install_fake_sdk(monkeypatch, outcome):
    models = FakeModels(outcome)
    created = {}

    class FakeClient:
        def __init__(self, api_key):
            created["api_key"] = api_key
            self.aio = SimpleNamespace(models=models)

    modules = {
        "google.genai": SimpleNamespace(Client=FakeClient),
        "google.genai.types": make_fake_types(),
    }
    monkeypatch.setattr(transport_module.importlib, "import_module", lambda name: modules[name])
    return models, created


def make_response(parts, chunks=None):
    metadata = SimpleNamespace(grounding_chunks=chunks) if chunks is not None else None
    candidate = SimpleNamespace(content=SimpleNamespace(parts=parts), grounding_metadata=metadata)
    return SimpleNamespace(candidates=[candidate])


def test_missing_key_raises_before_sdk_import(monkeypatch):
    def fail_import(name):
        raise AssertionError("SDK must not be imported without a key")

    monkeypatch.setattr(transport_module.importlib, "import_module", fail_import)

    with pytest.raises(CredentialMissing):
        asyncio.run(GeminiTransport("").generate(RemoteRequest(model="m", parts=["ping"])))


def test_missing_sdk_is_a_hard_failure(monkeypatch):
    def missing(name):
        raise ImportError("No module named 'google.genai'")

    monkeypatch.setattr(transport_module.importlib, "import_module", missing)

    with pytest.raises(HardRemoteFailure):
        asyncio.run(GeminiTransport("key").generate(RemoteRequest(model="m", parts=["ping"])))


def test_text_and_grounding_are_mapped(monkeypatch):
    response = make_response(
        parts=[
            SimpleNamespace(text="thinking...", inline_data=None, thought=True),
            SimpleNamespace(text="---\nPROMPT: a", inline_data=None, thought=False),
            SimpleNamespace(text="\nTAGS: b", inline_data=None, thought=False),
        ],
        chunks=[
            SimpleNamespace(web=SimpleNamespace(title="Site", uri="https://example.com")),
            SimpleNamespace(web=None),
        ],
    )
    models, created = install_fake_sdk(monkeypatch, response)

    result = asyncio.run(
        GeminiTransport(" key ").generate(RemoteRequest(model="text-model", parts=["find"], search_grounding=True))
    )

    assert created["api_key"] == "key"
    assert result.text == "---\nPROMPT: a\nTAGS: b"
    assert result.grounding_chunks == [{"web": {"title": "Site", "uri": "https://example.com"}}, {}]
    call = models.calls[0]
    assert call["model"] == "text-model"
    assert call["contents"][0].parts == [("text", "find")]
    assert call["config"].kwargs == {"tools": [("tool", "google_search")]}


def test_inline_images_are_base64_encoded(monkeypatch):
    raw = b"\x89PNG fake"
    response = make_response(
        parts=[SimpleNamespace(text=None, inline_data=SimpleNamespace(data=raw, mime_type="image/png"), thought=False)]
    )
    models, _ = install_fake_sdk(monkeypatch, response)
    request = RemoteRequest(
        model="image-model",
        parts=[InlineImage(data=base64.b64encode(b"src").decode("ascii"), mime_type="image/jpeg"), "brighter"],
        aspect_ratio="1:1",
    )

    result = asyncio.run(GeminiTransport("key").generate(request))

    assert result.inline_images == [InlineImage(data=base64.b64encode(raw).decode("ascii"), mime_type="image/png")]
    call = models.calls[0]
    assert call["contents"][0].parts == [("bytes", b"src", "image/jpeg"), ("text", "brighter")]
    assert call["config"].kwargs == {"image_config": ("image_config", "1:1")}


def test_sdk_errors_are_classified(monkeypatch):
    install_fake_sdk(monkeypatch, RuntimeError("503 UNAVAILABLE: model overloaded"))

    with pytest.raises(TransientRemoteFailure) as excinfo:
        asyncio.run(GeminiTransport("key").generate(RemoteRequest(model="m", parts=["ping"], max_output_tokens=1)))

    assert "overloaded" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_no_config_when_nothing_requested(monkeypatch):
    models, _ = install_fake_sdk(monkeypatch, SimpleNamespace(candidates=[], text="pong"))

    result = asyncio.run(GeminiTransport("key").generate(RemoteRequest(model="m", parts=["ping"])))

    assert result.text == "pong"
    assert models.calls[0]["config"] is None
