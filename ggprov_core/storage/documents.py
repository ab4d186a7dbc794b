from __future__ import annotations

import json
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator

import fsspec

# Item documents are rewritten whole; workers in one process share this lock.
_document_lock = threading.RLock()


@contextmanager
def document_lock() -> Iterator[None]:
    """Hold the document lock across a read-modify-write of an item document."""
    with _document_lock:
        yield


def read_document(uri: str) -> dict[str, Any] | None:
    fs, path = fsspec.core.url_to_fs(uri)
    with _document_lock:
        if not fs.exists(path):
            return None
        with fs.open(path, "rb") as handle:
            payload = json.loads(handle.read().decode("utf-8"))
    if not isinstance(payload, dict):
        return None
    return payload


def read_items(uri: str, key: str) -> list[dict[str, Any]]:
    payload = read_document(uri) or {}
    items = payload.get(key, [])
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def write_items(uri: str, key: str, items: list[dict[str, Any]]) -> str:
    fs, path = fsspec.core.url_to_fs(uri)
    payload = {
        "updated_at": datetime.now(timezone.utc).isoformat(),
        key: items,
    }
    data = json.dumps(payload, ensure_ascii=True).encode("utf-8")
    with _document_lock:
        fs.makedirs("/".join(path.split("/")[:-1]), exist_ok=True)
        with fs.open(path, "wb") as handle:
            handle.write(data)
    return uri


def write_text(uri: str, text: str) -> str:
    fs, path = fsspec.core.url_to_fs(uri)
    fs.makedirs("/".join(path.split("/")[:-1]), exist_ok=True)
    with fs.open(path, "wb") as handle:
        handle.write(text.encode("utf-8"))
    return uri
