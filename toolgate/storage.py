"""JsonFileStore - versioned JSON file persistence with atomic writes and backup."""

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

STORE_VERSION = 1


class JsonFileStore:
    """Persist a list of records under a single JSON file.

    Uses atomic writes (temp file + rename) with an automatic ``.bak``
    backup. With ``store_path=None`` the store is memory-only and
    ``load``/``save`` are no-ops.
    """

    records_key = "records"

    def __init__(self, store_path: Optional[str] = None):
        self._store_path = Path(os.path.expanduser(store_path)) if store_path else None

    @property
    def store_path(self) -> Optional[Path]:
        return self._store_path

    def _read_records(self) -> List[Dict[str, Any]]:
        """Read raw records from disk. Returns [] when missing or unreadable."""
        if self._store_path is None:
            return []
        if not self._store_path.exists():
            logger.info(f"Store not found at {self._store_path}, starting empty")
            return []

        try:
            data = json.loads(self._store_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load store from {self._store_path}: {e}")
            return []
        if not isinstance(data, dict):
            logger.error(f"Store at {self._store_path} is not a JSON object, starting empty")
            return []

        version = data.get("version", 1)
        if version != STORE_VERSION:
            logger.warning(f"Store version mismatch: expected {STORE_VERSION}, got {version}")
        return list(data.get(self.records_key, []))

    def _write_records(self, records: List[Dict[str, Any]]) -> None:
        """Persist records to disk with atomic write and backup."""
        if self._store_path is None:
            return
        self._store_path.parent.mkdir(parents=True, exist_ok=True)

        content = json.dumps(
            {"version": STORE_VERSION, self.records_key: records},
            indent=2,
            ensure_ascii=False,
            default=str,
        )

        if self._store_path.exists():
            bak_path = self._store_path.with_suffix(self._store_path.suffix + ".bak")
            try:
                shutil.copy2(str(self._store_path), str(bak_path))
            except OSError as e:
                logger.debug(f"Backup creation failed (non-fatal): {e}")

        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self._store_path.stem}-", suffix=".tmp", dir=str(self._store_path.parent)
        )
        try:
            try:
                os.write(fd, content.encode("utf-8"))
            finally:
                os.close(fd)
            os.replace(tmp_path, str(self._store_path))
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
