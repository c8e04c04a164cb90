"""One-off script for debugging discovery, synthesis and the studio callbacks."""

import asyncio
from pathlib import Path

from config.settings import load_config
from modules.remote.client import StudioClient
from modules.services.storage_service import StorageService
from modules.ui.callbacks import build_callbacks
from modules.utils.logging import setup_logging


async def run() -> None:
    # 1. Real configuration and services
    config = load_config()
    setup_logging(config)
    client = StudioClient(config)
    callbacks = build_callbacks(
        config,
        client=client,
        storage=StorageService(Path("debug_outputs")),
    )
    session = callbacks["new_session"]()

    # 2. Health probe, then a discovery scan
    session, status, banner = await callbacks["on_check_health"](session)
    print("Status:", status, banner)

    query = "neon-lit rainy alley, cinematic"
    session, findings, sources, status, banner = await callbacks["on_discover"](query, session)
    print(findings)
    print(sources)
    if banner:
        print("Banner:", banner)
    if not session.prompts:
        print("No prompts returned; check the banner above.")
        return

    # 3. Visualize the first prompt and push a couple of adjustments through history
    outputs = await callbacks["on_visualize"](1, session)
    session, message = outputs[0], outputs[-1]
    print(message)
    if session.active_image is None:
        return

    callbacks["on_adjust"]("sharpness", 80, session)
    callbacks["on_adjust_end"](session)
    print("Filter:", session.history.filter_description())

    path, message = callbacks["on_download"](session)
    print(message, path or "")


if __name__ == "__main__":
    asyncio.run(run())
