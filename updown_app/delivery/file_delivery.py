"""File-based snapshot delivery mechanism."""

from pathlib import Path
from typing import Any

import orjson

from ..config.delivery import FileDeliveryConfig
from .base import BaseSnapshotDelivery


class FileSnapshotDelivery(BaseSnapshotDelivery):
    """
    Appends snapshots to a JSON lines file, or keeps only the latest one
    in a JSON file.
    """

    def __init__(self, name: str, config: FileDeliveryConfig):
        super().__init__(name, config)
        self.config: FileDeliveryConfig = config
        self.output_path = Path(config.output_path)

        if config.create_dirs:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)

    def _write(self, snapshot: dict[str, Any]) -> str:
        if self.config.format == "json":
            tmp_path = self.output_path.with_suffix(self.output_path.suffix + ".tmp")
            tmp_path.write_bytes(orjson.dumps(snapshot, option=orjson.OPT_INDENT_2))
            tmp_path.replace(self.output_path)
        else:
            with open(self.output_path, "ab") as f:
                f.write(orjson.dumps(snapshot, option=orjson.OPT_APPEND_NEWLINE))

        return f"Written to {self.output_path}"

    def health_check(self) -> bool:
        """Check the output directory is writable."""
        parent = self.output_path.parent
        return parent.exists() and parent.is_dir()
