import os
from dataclasses import dataclass
from functools import lru_cache

from ggprov_core.storage.paths import (
    backend_scheme,
    control_root,
    has_uri_scheme,
    join_uri,
    normalize_bucket_uri,
)


@dataclass(frozen=True)
class Config:
    storage_backend: str
    local_control_root: str | None
    control_bucket: str
    control_prefix: str
    artifacts_uri: str | None
    env: str
    log_level: str
    control_plane_store: str
    device_association_topic: str | None
    device_runner_token: str | None
    aws_region: str | None
    gg_lookup_timeout_seconds: float
    aws_connect_timeout_seconds: float
    aws_read_timeout_seconds: float
    gcp_project: str | None
    pubsub_publish_timeout_seconds: float

    def control_root_uri(self) -> str:
        if self.storage_backend == "local":
            if not self.local_control_root:
                raise ValueError("LOCAL_CONTROL_ROOT is required for local storage")
            return self.local_control_root
        return control_root(self.bucket_uri(self.control_bucket), self.control_prefix)

    def artifacts_root_uri(self) -> str:
        if self.artifacts_uri:
            return self.artifacts_uri
        return join_uri(self.control_root_uri(), "artifacts")

    def storage_scheme(self) -> str | None:
        return backend_scheme(self.storage_backend)

    def bucket_uri(self, bucket: str) -> str:
        scheme = self.storage_scheme()
        if self.storage_backend != "local" and scheme is None and not has_uri_scheme(
            bucket
        ):
            raise ValueError(
                "Bucket must include a URI scheme when STORAGE_BACKEND="
                f"{self.storage_backend} (example: s3://bucket)"
            )
        return normalize_bucket_uri(bucket, scheme=scheme)

    @classmethod
    def from_env(cls) -> "Config":
        missing: list[str] = []

        def require(name: str) -> str:
            value = os.getenv(name)
            if value is None or value == "":
                missing.append(name)
                return ""
            return value

        storage_backend = os.getenv("STORAGE_BACKEND", "local").strip().lower()
        allowed_backends = {"local", "s3", "gcs", "gs", "memory", "remote"}
        if storage_backend not in allowed_backends:
            allowed = ", ".join(sorted(allowed_backends))
            raise ValueError(f"STORAGE_BACKEND must be one of: {allowed}")

        remote_required = storage_backend != "local"
        control_bucket = require("CONTROL_BUCKET") if remote_required else os.getenv(
            "CONTROL_BUCKET", ""
        )
        control_prefix = os.getenv("CONTROL_PREFIX", "ggprov").strip("/")
        local_control_root = os.getenv("LOCAL_CONTROL_ROOT")
        if storage_backend == "local" and not local_control_root:
            missing.append("LOCAL_CONTROL_ROOT")

        env = os.getenv("ENV", "dev")
        log_level = os.getenv("LOG_LEVEL", "INFO")
        control_plane_store = os.getenv("CONTROL_PLANE_STORE", "json").strip().lower()
        device_association_topic = _optional(os.getenv("DEVICE_ASSOCIATION_TOPIC"))
        device_runner_token = _optional(os.getenv("DEVICE_RUNNER_TOKEN"))
        aws_region = _optional(
            os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION")
        )
        gg_lookup_timeout_seconds = _parse_positive_float(
            "GG_LOOKUP_TIMEOUT_SECONDS",
            os.getenv("GG_LOOKUP_TIMEOUT_SECONDS", "30"),
        )
        aws_connect_timeout_seconds = _parse_positive_float(
            "AWS_CONNECT_TIMEOUT_SECONDS",
            os.getenv("AWS_CONNECT_TIMEOUT_SECONDS", "5"),
        )
        aws_read_timeout_seconds = _parse_positive_float(
            "AWS_READ_TIMEOUT_SECONDS",
            os.getenv("AWS_READ_TIMEOUT_SECONDS", "20"),
        )
        pubsub_publish_timeout_seconds = _parse_positive_float(
            "PUBSUB_PUBLISH_TIMEOUT_SECONDS",
            os.getenv("PUBSUB_PUBLISH_TIMEOUT_SECONDS", "30"),
        )

        if missing:
            missing_list = ", ".join(sorted(set(missing)))
            raise ValueError(f"Missing required env vars: {missing_list}")

        return cls(
            storage_backend=storage_backend,
            local_control_root=local_control_root,
            control_bucket=control_bucket,
            control_prefix=control_prefix,
            artifacts_uri=_optional(os.getenv("ARTIFACTS_URI")),
            env=env,
            log_level=log_level,
            control_plane_store=control_plane_store,
            device_association_topic=device_association_topic,
            device_runner_token=device_runner_token,
            aws_region=aws_region,
            gg_lookup_timeout_seconds=gg_lookup_timeout_seconds,
            aws_connect_timeout_seconds=aws_connect_timeout_seconds,
            aws_read_timeout_seconds=aws_read_timeout_seconds,
            gcp_project=_optional(os.getenv("GOOGLE_CLOUD_PROJECT")),
            pubsub_publish_timeout_seconds=pubsub_publish_timeout_seconds,
        )


def _optional(value: str | None) -> str | None:
    if value is None:
        return None
    text = value.strip()
    return text or None


def _parse_positive_float(name: str, value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number") from exc
    if parsed <= 0:
        raise ValueError(f"{name} must be positive")
    return parsed


@lru_cache(maxsize=1)
def get_config() -> Config:
    return Config.from_env()
