"""Atomic JSON file I/O with logging.

Only the snapshot runner touches the filesystem; the engines are pure.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class FileStore:
    """Centralised file I/O: always logs errors, never silently swallows."""

    @staticmethod
    def read_json(path: Path, default: Any = None) -> Any:
        """Read a JSON file, returning *default* if missing or corrupt."""
        try:
            raw = path.read_text(encoding="utf-8")
            data = json.loads(raw)
            return data if data is not None else default
        except (OSError, json.JSONDecodeError, TypeError) as exc:
            logger.debug("read_json(%s) failed: %s", path, exc)
            return default

    @staticmethod
    def write_json(path: Path, data: Any) -> bool:
        """Atomic JSON write with ``indent=2`` via a ``.tmp`` sibling.

        Returns ``True`` when the file was replaced.
        """
        tmp = path.with_suffix(path.suffix + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as exc:
            logger.error("write_json(%s) failed: %s", path, exc)
            with contextlib.suppress(OSError):
                tmp.unlink(missing_ok=True)
            return False
        return True
