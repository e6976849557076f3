"""Plain-text export of the consolidated OCR output."""

from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, Optional, Union

import structlog

logger = structlog.get_logger(__name__)


class TextExporter:
    """Writes text to timestamped files in an export directory."""

    def __init__(
        self,
        export_dir: Union[str, Path],
        filename_prefix: str = "ocr-output",
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        """
        Initialize the exporter.

        Args:
            export_dir: Directory receiving exported files.
            filename_prefix: Prefix of exported file names. Starting it with
                "ocr" keeps exports out of later Drive listings.
            clock: Time source for the filename timestamp.
        """
        self.export_dir = Path(export_dir)
        self.filename_prefix = filename_prefix
        self._clock = clock

    def filename(self, now: Optional[datetime] = None) -> str:
        now = now or self._clock()
        return f"{self.filename_prefix}-{now.strftime('%Y%m%d-%H%M%S')}.txt"

    def export(self, text: str) -> Path:
        """
        Write text to a new file.

        Returns:
            Path of the written file.

        Raises:
            OSError: If the directory or file cannot be written.
        """
        self.export_dir.mkdir(parents=True, exist_ok=True)

        path = self.export_dir / self.filename()
        counter = 1
        while path.exists():
            path = path.with_name(f"{path.stem.rsplit('~', 1)[0]}~{counter}.txt")
            counter += 1

        path.write_text(text, encoding="utf-8")
        logger.info("text_exported", path=str(path), characters=len(text))
        return path
