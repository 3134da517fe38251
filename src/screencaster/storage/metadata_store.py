"""Recording metadata persistence (JSON-based)."""

import logging
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from screencaster.config import get_settings
from screencaster.models.errors import MetadataError
from screencaster.models.recording import RecordingInfo

logger = logging.getLogger(__name__)


class MetadataStore:
    """Reads and writes the recording.json descriptor of a session folder."""

    def __init__(self, filename: str | None = None):
        self.filename = filename or get_settings().metadata_filename

    def path_for(self, folder: Path) -> Path:
        return Path(folder) / self.filename

    def create_folder(self, folder: Path) -> Path:
        """Create the output folder for a session."""
        try:
            folder.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise MetadataError(
                f"Failed to create recording directory: {e}", details={"folder": str(folder)}
            )
        return folder

    def save(self, info: RecordingInfo) -> Path:
        """Save the descriptor into its folder."""
        if not info.files.folder_path:
            raise MetadataError("Recording has no folder path")
        path = self.path_for(Path(info.files.folder_path))
        info.updated_at = datetime.now(UTC)
        try:
            path.write_text(info.model_dump_json(indent=2))
        except OSError as e:
            raise MetadataError(
                f"Failed to save recording metadata: {e}", details={"path": str(path)}
            )
        logger.debug("Saved recording metadata to %s", path)
        return path

    def load(self, folder: Path) -> RecordingInfo:
        """Load the descriptor from a session folder."""
        path = self.path_for(folder)
        if not path.exists():
            raise MetadataError(f"Recording metadata not found: {path}")
        try:
            return RecordingInfo.model_validate_json(path.read_text())
        except (OSError, ValidationError) as e:
            raise MetadataError(
                f"Failed to load recording metadata: {e}", details={"path": str(path)}
            )
