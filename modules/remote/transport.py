"""Transport contract for the remote AI capability and its Gemini adapter."""

from __future__ import annotations

import base64
import importlib
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Union

from modules.remote.errors import CredentialMissing, HardRemoteFailure, classify_failure

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class InlineImage:
    """Binary image payload carried as base64 text."""

    data: str
    mime_type: str = "image/png"


RequestPart = Union[str, InlineImage]


@dataclass(slots=True)
class RemoteRequest:
    """Vendor-neutral description of one generation call."""

    model: str
    parts: list[RequestPart]
    search_grounding: bool = False
    max_output_tokens: Optional[int] = None
    aspect_ratio: Optional[str] = None


@dataclass(slots=True)
class RemoteResponse:
    """What the core needs back from a generation call."""

    text: str = ""
    grounding_chunks: list[dict[str, Any]] = field(default_factory=list)
    inline_images: list[InlineImage] = field(default_factory=list)


class RemoteTransport(Protocol):
    """Anything able to execute a RemoteRequest."""

    async def generate(self, request: RemoteRequest) -> RemoteResponse:
        ...


class GeminiTransport:
    """RemoteTransport backed by the ``google-genai`` SDK."""

    def __init__(self, api_key: Optional[str]) -> None:
        self.api_key = (api_key or "").strip()
        self._client: Any = None
        self._types: Any = None

    def _ensure_client(self) -> tuple[Any, Any]:
        if not self.api_key:
            raise CredentialMissing("API_KEY_NOT_FOUND")
        if self._client is None:
            try:
                genai_module = importlib.import_module("google.genai")
                types_module = importlib.import_module("google.genai.types")
            except ImportError as exc:
                raise HardRemoteFailure(
                    f"google-genai is not installed ({exc}). Run: pip install google-genai",
                    original=exc,
                ) from exc
            self._client = genai_module.Client(api_key=self.api_key)
            self._types = types_module
        return self._client, self._types

    def _build_contents(self, types: Any, request: RemoteRequest) -> list[Any]:
        parts = []
        for part in request.parts:
            if isinstance(part, InlineImage):
                parts.append(types.Part.from_bytes(data=base64.b64decode(part.data), mime_type=part.mime_type))
            else:
                parts.append(types.Part.from_text(text=str(part)))
        return [types.Content(role="user", parts=parts)]

    def _build_config(self, types: Any, request: RemoteRequest) -> Any:
        kwargs: dict[str, Any] = {}
        if request.search_grounding:
            kwargs["tools"] = [types.Tool(google_search=types.GoogleSearch())]
        if request.max_output_tokens is not None:
            kwargs["max_output_tokens"] = request.max_output_tokens
        if request.aspect_ratio:
            kwargs["image_config"] = types.ImageConfig(aspect_ratio=request.aspect_ratio)
        return types.GenerateContentConfig(**kwargs) if kwargs else None

    async def generate(self, request: RemoteRequest) -> RemoteResponse:
        client, types = self._ensure_client()
        contents = self._build_contents(types, request)
        config = self._build_config(types, request)
        logger.debug("Gemini request model=%s parts=%d grounding=%s", request.model, len(contents[0].parts), request.search_grounding)
        try:
            response = await client.aio.models.generate_content(
                model=request.model,
                contents=contents,
                config=config,
            )
        except Exception as exc:
            raise classify_failure(exc) from exc
        return self._to_remote_response(response)

    # Internal helpers ---------------------------------------------------------
    def _to_remote_response(self, response: Any) -> RemoteResponse:
        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            return RemoteResponse(text=str(getattr(response, "text", "") or ""))
        candidate = candidates[0]

        texts: list[str] = []
        images: list[InlineImage] = []
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and getattr(inline, "data", None):
                data = inline.data
                if isinstance(data, (bytes, bytearray)):
                    data = base64.b64encode(data).decode("ascii")
                images.append(InlineImage(data=str(data), mime_type=getattr(inline, "mime_type", None) or "image/png"))
                continue
            if getattr(part, "thought", False):
                continue
            text = getattr(part, "text", None)
            if text:
                texts.append(text)

        chunks: list[dict[str, Any]] = []
        metadata = getattr(candidate, "grounding_metadata", None)
        for chunk in getattr(metadata, "grounding_chunks", None) or []:
            web = getattr(chunk, "web", None)
            if web is None:
                chunks.append({})
                continue
            chunks.append({"web": {"title": getattr(web, "title", None), "uri": getattr(web, "uri", None)}})

        return RemoteResponse(text="".join(texts), grounding_chunks=chunks, inline_images=images)
