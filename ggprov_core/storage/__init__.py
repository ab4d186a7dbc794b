from ggprov_core.storage.paths import (
    backend_scheme,
    control_root,
    control_uri,
    has_uri_scheme,
    join_uri,
    normalize_bucket_uri,
)

__all__ = [
    "backend_scheme",
    "control_root",
    "control_uri",
    "has_uri_scheme",
    "join_uri",
    "normalize_bucket_uri",
]
