"""Resilient client for prompt discovery and image synthesis."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, TypeVar

from config.settings import AppConfig
from modules.remote.errors import CredentialMissing, EmptyResult, is_quota_failure
from modules.remote.parsing import (
    CitationSource,
    PromptRecord,
    extract_citation_sources,
    parse_prompt_response,
)
from modules.remote.retry import RetryPolicy, SleepCallable, call_with_retry
from modules.remote.transport import GeminiTransport, InlineImage, RemoteRequest, RemoteResponse, RemoteTransport
from modules.utils.image_utils import decode_data_url, encode_data_url

T = TypeVar("T")

SYNTHESIS_PREAMBLE = "Professional studio photography, high dynamic range: "
REFINE_PREAMBLE = "Refine lighting and details: "
SYNTHESIS_ASPECT_RATIO = "1:1"
EMPTY_SYNTHESIS_MESSAGE = "Image buffer empty. Safety filters may have engaged."
EMPTY_REFINE_MESSAGE = "Refinement stream interrupted."

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class HealthReport:
    """Outcome of a health probe. Probes never raise; failures land here."""

    reachable: bool
    message: str
    is_quota_limited: bool = False
    details: Optional[str] = None
    credential_missing: bool = False


@dataclass(slots=True)
class DiscoveryResult:
    """Prompts plus the flat list of sources reported for the whole response."""

    prompts: list[PromptRecord] = field(default_factory=list)
    sources: list[CitationSource] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class GeneratedImage:
    """An image handed to the caller; the client never keeps a reference."""

    locator: str
    encoded_payload: str
    originating_prompt: str

    @classmethod
    def from_locator(cls, locator: str, originating_prompt: str) -> "GeneratedImage":
        _, payload = decode_data_url(locator)
        return cls(locator=locator, encoded_payload=payload, originating_prompt=originating_prompt)


def build_discovery_prompt(query: str, count: int) -> str:
    """Instruction asking the model for prompts in the delimited format."""
    return (
        f'SCAN THE INTERNET for the absolute best AI image prompts for: "{query.strip()}".\n'
        "Focus on Midjourney v6 and DALL-E 3 styles.\n"
        f"Format your response exactly as follows for {count} prompts:\n"
        "---\n"
        "TITLE: [Name]\n"
        "PROMPT: [Full prompt]\n"
        "TAGS: [tag1, tag2]"
    )


class StudioClient:
    """Facade over a RemoteTransport adding retries, parsing and validation."""

    def __init__(
        self,
        config: AppConfig,
        transport: Optional[RemoteTransport] = None,
        sleep: Optional[SleepCallable] = None,
    ) -> None:
        self.config = config
        self.transport: RemoteTransport = transport or GeminiTransport(config.gemini_api_key)
        self.retry_policy = RetryPolicy(
            retries=config.retry_attempts,
            initial_delay=config.retry_initial_delay,
        )
        self._sleep = sleep

    # Internal helpers ---------------------------------------------------------
    def _require_credential(self) -> None:
        if not self.config.has_credential:
            raise CredentialMissing("API_KEY_NOT_FOUND")

    async def _with_retry(self, fn: Callable[[], Awaitable[T]]) -> T:
        if self._sleep is None:
            return await call_with_retry(fn, self.retry_policy)
        return await call_with_retry(fn, self.retry_policy, sleep=self._sleep)

    async def _generate(self, request: RemoteRequest) -> RemoteResponse:
        self._require_credential()
        return await self._with_retry(lambda: self.transport.generate(request))

    @staticmethod
    def _first_image_locator(response: RemoteResponse, empty_message: str) -> str:
        if not response.inline_images:
            raise EmptyResult(empty_message)
        image = response.inline_images[0]
        return encode_data_url(image.data, image.mime_type)

    # Public operations --------------------------------------------------------
    async def probe_health(self) -> HealthReport:
        """Issue a minimal call and report reachability without raising."""
        if not self.config.has_credential:
            logger.warning("Health probe skipped: no API credential configured.")
            return HealthReport(
                reachable=False,
                message="API Key Missing.",
                details="Set GEMINI_API_KEY (or API_KEY) in the environment or .env file.",
                credential_missing=True,
            )

        request = RemoteRequest(model=self.config.text_model, parts=["ping"], max_output_tokens=1)
        try:
            await self._generate(request)
        except CredentialMissing as exc:
            return HealthReport(reachable=False, message="API Key Missing.", details=str(exc), credential_missing=True)
        except Exception as exc:  # noqa: BLE001
            quota = is_quota_failure(exc)
            logger.error("Health probe failed (%s): %s", describe_failure(exc), exc)
            return HealthReport(
                reachable=False,
                message="Quota Alert" if quota else "Neural Static",
                is_quota_limited=quota,
                details=str(exc),
            )
        logger.info("Health probe succeeded against %s", self.config.text_model)
        return HealthReport(reachable=True, message="Neural Link Online")

    async def discover_prompts(self, query: str) -> DiscoveryResult:
        """Run a search-grounded discovery call and parse its prompts and sources."""
        request = RemoteRequest(
            model=self.config.text_model,
            parts=[build_discovery_prompt(query, self.config.prompt_count)],
            search_grounding=True,
        )
        response = await self._generate(request)
        result = DiscoveryResult(
            prompts=parse_prompt_response(response.text),
            sources=extract_citation_sources(response.grounding_chunks),
        )
        logger.info(
            "Discovery for %r returned %d prompts and %d sources",
            query,
            len(result.prompts),
            len(result.sources),
        )
        return result

    async def synthesize_image(self, prompt_text: str) -> str:
        """Generate a square studio image and return it as a data URL."""
        request = RemoteRequest(
            model=self.config.image_model,
            parts=[f"{SYNTHESIS_PREAMBLE}{prompt_text}"],
            aspect_ratio=SYNTHESIS_ASPECT_RATIO,
        )
        response = await self._generate(request)
        return self._first_image_locator(response, EMPTY_SYNTHESIS_MESSAGE)

    async def refine_image(self, existing_encoded_image: str, instruction: str) -> str:
        """Edit an existing image with a free-text instruction; returns a data URL."""
        mime_type, payload = decode_data_url(existing_encoded_image)
        request = RemoteRequest(
            model=self.config.image_model,
            parts=[
                InlineImage(data=payload, mime_type=mime_type),
                f"{REFINE_PREAMBLE}{instruction}",
            ],
        )
        response = await self._generate(request)
        return self._first_image_locator(response, EMPTY_REFINE_MESSAGE)


def describe_failure(exc: Any) -> str:
    """Short label for logs and banners: ``quota`` or ``hard``."""
    return "quota" if is_quota_failure(exc) else "hard"
