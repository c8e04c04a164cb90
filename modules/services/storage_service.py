"""File storage helpers."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Dict, Optional

from PIL import PngImagePlugin

from modules.utils.image_utils import load_image

FILE_PREFIX = "PromptMaster-Studio-"

logger = logging.getLogger(__name__)


class StorageService:
    """Handle saving generated assets."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = Path(output_dir)

    def save_image(self, locator: str, metadata: Optional[Dict[str, str]] = None) -> Path:
        """Persist a data-URL image as PNG and return the file path."""
        image = load_image(locator)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        stamp = int(time.time() * 1000)
        path = self.output_dir / f"{FILE_PREFIX}{stamp}.png"
        while path.exists():
            stamp += 1
            path = self.output_dir / f"{FILE_PREFIX}{stamp}.png"

        info = PngImagePlugin.PngInfo()
        for key, value in (metadata or {}).items():
            info.add_text(str(key), str(value))
        if image.mode not in ("RGB", "RGBA", "L", "LA", "P"):
            image = image.convert("RGBA")
        image.save(path, format="PNG", pnginfo=info)
        logger.info("Saved studio image to %s", path)
        return path

    def list_images(self) -> list[Path]:
        """Return saved images, newest first."""
        if not self.output_dir.exists():
            return []
        return sorted(
            self.output_dir.glob(f"{FILE_PREFIX}*.png"),
            key=lambda item: (item.stat().st_mtime, item.name),
            reverse=True,
        )

    def cleanup(self, max_items: int = 100) -> int:
        """Limit the number of stored artifacts; returns how many were removed."""
        stale = self.list_images()[max(0, max_items):]
        for path in stale:
            path.unlink(missing_ok=True)
        return len(stale)
