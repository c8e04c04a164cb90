"""Callback implementations for the Gradio interface."""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from config.settings import AppConfig
from modules.editing.history import AdjustmentHistory
from modules.remote.client import GeneratedImage, StudioClient
from modules.remote.parsing import CitationSource, PromptRecord
from modules.services.connection_monitor import ConnectionMonitor, ErrorBanner
from modules.services.storage_service import StorageService

logger = logging.getLogger(__name__)


@dataclass
class StudioSession:
    """Per-browser-session state kept in ``gr.State``."""

    monitor: ConnectionMonitor
    history: AdjustmentHistory
    prompts: list[PromptRecord] = field(default_factory=list)
    sources: list[CitationSource] = field(default_factory=list)
    active_image: Optional[GeneratedImage] = None
    is_searching: bool = False
    is_processing: bool = False


def new_session(config: AppConfig) -> StudioSession:
    return StudioSession(
        monitor=ConnectionMonitor(
            discovery_cooldown_seconds=config.discovery_cooldown_seconds,
            probe_cooldown_seconds=config.probe_cooldown_seconds,
        ),
        history=AdjustmentHistory(capacity=config.history_capacity),
    )


def format_banner(banner: Optional[ErrorBanner]) -> str:
    if banner is None:
        return ""
    lines = [f"**{banner.message}**"]
    if banner.details:
        lines.append(f"`{banner.details}`")
    return "\n\n".join(lines)


def format_prompts(prompts: list[PromptRecord]) -> str:
    if not prompts:
        return "Scanner ready."
    blocks = [f"### Neural Findings ({len(prompts)})"]
    for number, record in enumerate(prompts, start=1):
        tags = " ".join(f"`{tag}`" for tag in record.tags if tag)
        blocks.append(f"**{number}. {record.title}** {tags}\n\n> {record.prompt_text}")
    return "\n\n".join(blocks)


def format_sources(sources: list[CitationSource]) -> str:
    if not sources:
        return ""
    links = [f"- [{source.title}]({source.uri})" for source in sources]
    return "**Source Metadata & Citations**\n\n" + "\n".join(links)


def render_preview_html(image: Optional[GeneratedImage], description: str) -> str:
    """Hand the filter description to the browser as the rendering surface."""
    if image is None:
        return "<p>No image in the studio yet.</p>"
    return (
        f'<img src="{html.escape(image.locator, quote=True)}" alt="Studio View" '
        f'style="max-width: 100%; filter: {html.escape(description, quote=True)};">'
    )


def history_label(history: AdjustmentHistory) -> str:
    return f"Step {history.position + 1}/{len(history.entries)}"


def build_callbacks(
    config: AppConfig,
    client: Optional[StudioClient] = None,
    storage: Optional[StorageService] = None,
) -> dict[str, Any]:
    """Return a dictionary of Gradio callback functions."""

    def _ensure_client() -> StudioClient:
        if client is None:
            raise RuntimeError("Remote client is not configured.")
        return client

    def _normalize_index(value: Any, size: int) -> Optional[int]:
        try:
            index = int(value) - 1
        except (TypeError, ValueError):
            return None
        if 0 <= index < size:
            return index
        return None

    def _preview(session: StudioSession) -> str:
        return render_preview_html(session.active_image, session.history.filter_description())

    def _channel_values(session: StudioSession) -> tuple[float, ...]:
        return tuple(session.history.working.as_dict().values())

    def _editor_outputs(session: StudioSession) -> tuple[Any, ...]:
        return (session, _preview(session), *_channel_values(session), history_label(session.history))

    async def on_check_health(session: StudioSession) -> tuple[StudioSession, str, str]:
        try:
            await session.monitor.check(_ensure_client())
        except Exception as exc:  # noqa: BLE001
            session.monitor.banner = ErrorBanner("Health check failed", str(exc))
        return session, session.monitor.status_label, format_banner(session.monitor.banner)

    async def on_discover(query: str, session: StudioSession) -> tuple[StudioSession, str, str, str, str]:
        monitor = session.monitor

        def _outputs() -> tuple[StudioSession, str, str, str, str]:
            return (
                session,
                format_prompts(session.prompts),
                format_sources(session.sources),
                monitor.status_label,
                format_banner(monitor.banner),
            )

        if not (query or "").strip() or session.is_searching or not monitor.discovery_allowed:
            return _outputs()

        session.is_searching = True
        monitor.clear_banner()
        try:
            result = await _ensure_client().discover_prompts(query)
        except Exception as exc:  # noqa: BLE001
            monitor.record_discovery_failure(exc)
        else:
            session.prompts = result.prompts
            session.sources = result.sources
        finally:
            session.is_searching = False
        return _outputs()

    async def on_visualize(prompt_number: Any, session: StudioSession) -> tuple[Any, ...]:
        index = _normalize_index(prompt_number, len(session.prompts))
        if index is None:
            return (*_editor_outputs(session), "Pick a prompt number from the findings first.")
        if session.is_processing:
            return (*_editor_outputs(session), "Synthesis already running.")

        record = session.prompts[index]
        session.is_processing = True
        try:
            locator = await _ensure_client().synthesize_image(record.prompt_text)
        except Exception as exc:  # noqa: BLE001
            logger.error("Synthesis failed for %r: %s", record.title, exc)
            return (*_editor_outputs(session), f"Synthesis failed: {exc}")
        finally:
            session.is_processing = False

        session.active_image = GeneratedImage.from_locator(locator, record.prompt_text)
        session.history = AdjustmentHistory(capacity=config.history_capacity)
        return (*_editor_outputs(session), f"Opened '{record.title}' in the studio.")

    async def on_refine(instruction: str, session: StudioSession) -> tuple[StudioSession, str, str]:
        image = session.active_image
        if image is None or session.is_processing or not (instruction or "").strip():
            return session, _preview(session), ""

        session.is_processing = True
        try:
            locator = await _ensure_client().refine_image(image.locator, instruction)
        except Exception as exc:  # noqa: BLE001
            logger.error("Refinement failed: %s", exc)
            return session, _preview(session), f"Refinement Sync Failed: {exc}"
        finally:
            session.is_processing = False

        session.active_image = GeneratedImage.from_locator(locator, image.originating_prompt)
        return session, _preview(session), "Refinement applied."

    def on_adjust(channel: str, value: float, session: StudioSession) -> tuple[StudioSession, str]:
        session.history.set_channel(channel, value)
        return session, _preview(session)

    def on_adjust_end(session: StudioSession) -> tuple[StudioSession, str]:
        # Gradio fires release even when the slider did not move.
        if session.history.has_pending_edit:
            session.history.commit()
        return session, history_label(session.history)

    def on_undo(session: StudioSession) -> tuple[Any, ...]:
        session.history.undo()
        return _editor_outputs(session)

    def on_redo(session: StudioSession) -> tuple[Any, ...]:
        session.history.redo()
        return _editor_outputs(session)

    def on_reset(session: StudioSession) -> tuple[Any, ...]:
        session.history.reset()
        return _editor_outputs(session)

    def on_close_studio(session: StudioSession) -> tuple[Any, ...]:
        session.active_image = None
        return _editor_outputs(session)

    def on_tick(session: StudioSession) -> tuple[StudioSession, str]:
        session.monitor.tick()
        return session, session.monitor.status_label

    def on_download(session: StudioSession) -> tuple[Optional[str], str]:
        if session.active_image is None:
            return None, "Nothing to download yet."
        if storage is None:
            return None, "Storage is not configured."
        try:
            path = storage.save_image(
                session.active_image.locator,
                {"prompt": session.active_image.originating_prompt, "filter": session.history.filter_description()},
            )
        except Exception as exc:  # noqa: BLE001
            return None, f"Download failed: {exc}"
        removed = storage.cleanup(max(1, config.max_exports))
        if removed:
            logger.info("Export retention removed %d old image(s)", removed)
        return str(path), f"Saved {path.name}"

    return {
        "new_session": lambda: new_session(config),
        "on_check_health": on_check_health,
        "on_discover": on_discover,
        "on_visualize": on_visualize,
        "on_refine": on_refine,
        "on_adjust": on_adjust,
        "on_adjust_end": on_adjust_end,
        "on_undo": on_undo,
        "on_redo": on_redo,
        "on_reset": on_reset,
        "on_close_studio": on_close_studio,
        "on_tick": on_tick,
        "on_download": on_download,
    }
