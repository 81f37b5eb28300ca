"""Overflow tier - blob directory for oversized payloads."""

import gzip
import hashlib
import json
import os
import shutil
import uuid
from pathlib import Path
from urllib.parse import quote

from loguru import logger

from app.services.cache.errors import StoreUnavailable
from settings import OVERFLOW_DIR


class OverflowTier:
    """Gzipped JSON blobs laid out as ``<dataset>/<sha256(key)>.json.gz``.

    References are paths relative to the root directory.
    """

    def __init__(self, root: Path | str = OVERFLOW_DIR):
        self.root = Path(root)

    def path_for(self, dataset_id: str, key: str) -> str:
        """Reference an entry's payload would be stored under."""
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return f"{quote(dataset_id, safe='')}/{digest}.json.gz"

    def _resolve(self, ref: str) -> Path:
        root = self.root.resolve()
        path = (root / ref).resolve()
        if root not in path.parents:
            raise StoreUnavailable(f"Overflow reference outside store: {ref!r}")
        return path

    def store(self, path: str, records: list[dict]) -> str:
        """Write a payload; returns its reference."""
        target = self._resolve(path)
        tmp = target.with_name(f"{target.name}.{uuid.uuid4().hex}.tmp")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with gzip.open(tmp, "wt", encoding="utf-8") as f:
                json.dump(records, f)
            os.replace(tmp, target)
        except (OSError, TypeError, ValueError) as e:
            if tmp.exists():
                tmp.unlink()
            raise StoreUnavailable(f"Overflow store failed for {path}: {e}") from e
        logger.debug("Overflow stored: {} ({} records)", path, len(records))
        return path

    def fetch(self, ref: str) -> list[dict]:
        """Read a payload back."""
        target = self._resolve(ref)
        try:
            with gzip.open(target, "rt", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, EOFError, ValueError) as e:
            raise StoreUnavailable(f"Overflow fetch failed for {ref}: {e}") from e

    def delete(self, ref: str) -> bool:
        """Remove a payload; missing payloads are fine."""
        target = self._resolve(ref)
        try:
            existed = target.exists()
            target.unlink(missing_ok=True)
        except OSError as e:
            raise StoreUnavailable(f"Overflow delete failed for {ref}: {e}") from e
        return existed

    def delete_dataset(self, dataset_id: str) -> None:
        """Remove every payload of a dataset."""
        target = self._resolve(quote(dataset_id, safe=""))
        try:
            shutil.rmtree(target)
        except FileNotFoundError:
            return
        except OSError as e:
            raise StoreUnavailable(f"Overflow delete failed for {dataset_id}: {e}") from e
        logger.info("Overflow payloads removed for {}", dataset_id)
