from __future__ import annotations

from pathlib import Path
from typing import Iterable
from urllib.parse import urlparse

_BACKEND_SCHEMES: dict[str, str] = {
    "s3": "s3",
    "gcs": "gs",
    "gs": "gs",
    "memory": "memory",
}


def _strip_slashes(value: str) -> str:
    return value.strip("/")


def _join_parts(parts: Iterable[str]) -> str:
    return "/".join(_strip_slashes(part) for part in parts if part)


def has_uri_scheme(value: str) -> bool:
    return bool(urlparse(value).scheme)


def backend_scheme(storage_backend: str) -> str | None:
    return _BACKEND_SCHEMES.get(storage_backend)


def normalize_bucket_uri(bucket: str, *, scheme: str | None = None) -> str:
    if has_uri_scheme(bucket):
        return bucket.rstrip("/")
    if scheme is None:
        return bucket.rstrip("/")
    return f"{scheme}://{_strip_slashes(bucket)}"


def control_root(bucket: str, prefix: str) -> str:
    parsed = urlparse(bucket)
    if parsed.scheme:
        if parsed.scheme == "file":
            base = f"file://{parsed.path}"
        elif parsed.netloc:
            base = f"{parsed.scheme}://{parsed.netloc}"
            if parsed.path and parsed.path != "/":
                base = f"{base}/{_strip_slashes(parsed.path)}"
        else:
            base = bucket.rstrip("/")
    else:
        base = f"s3://{_strip_slashes(bucket)}"
    if not prefix:
        return base
    return f"{base}/{_strip_slashes(prefix)}"


def join_uri(base_uri: str, *parts: str) -> str:
    parsed = urlparse(base_uri)
    if parsed.scheme == "file":
        safe_parts = [_strip_slashes(part) for part in parts if part]
        return str(Path(parsed.path).joinpath(*safe_parts))
    if parsed.scheme and parsed.netloc:
        base = base_uri.rstrip("/")
        return f"{base}/{_join_parts(parts)}"
    safe_parts = [_strip_slashes(part) for part in parts if part]
    return str(Path(base_uri).joinpath(*safe_parts))


def control_uri(base_uri: str, filename: str) -> str:
    return join_uri(base_uri, "control", filename)
