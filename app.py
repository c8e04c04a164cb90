"""Application entry point for PromptMaster Studio."""

from __future__ import annotations

from typing import Optional

from config.settings import load_config
from modules.remote.client import StudioClient
from modules.ui.layout import build_app
from modules.utils.logging import setup_logging


def main(config_path: Optional[str] = None) -> None:
    """Load configuration and launch the Gradio interface."""
    config = load_config(config_path)
    logger = setup_logging(config)
    logger.info("Configuration loaded from %s", config.metadata.get("env_file"))
    if not config.has_credential:
        logger.warning("No API credential found; remote features will report 'API Key Missing.'")
    app = build_app(config, client=StudioClient(config))
    app.queue()
    app.launch(share=False, inbrowser=False)


if __name__ == "__main__":
    main()
