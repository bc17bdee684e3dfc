"""Configuration loading and Pydantic models for camgate."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class ServerConfig(BaseModel):
    """Listener binding and response configuration.

    A port of 0 disables that listener.
    """

    host: str = "0.0.0.0"
    http_port: int = 0
    https_port: int = 443
    realm: str = "camgate"
    powered_by: str = "bacon"
    log_level: str = "INFO"
    log_format: str = "text"


class TLSConfig(BaseModel):
    """Certificate material for the HTTPS listener."""

    key_file: str = "ssl/privkey.pem"
    cert_file: str = "ssl/fullchain.pem"
    chain_file: str = "ssl/chain.pem"


class AuthConfig(BaseModel):
    """Credential file location."""

    passwords_file: str = "passwords.json"


class StorageConfig(BaseModel):
    """Object store backend configuration."""

    backend: str = "aws"
    aws_bucket: str = "buzzercam"
    aws_region: str = ""
    aws_endpoint_url: str = ""
    local_root: str = "./data/objects"


class ObservabilityConfig(BaseModel):
    """Prometheus exporter configuration."""

    metrics_port: int = 0


class CamgateConfig(BaseModel):
    """Top-level camgate configuration."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    tls: TLSConfig = Field(default_factory=TLSConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


def _section(data: dict[str, Any] | None, keys: tuple[str, ...]) -> dict[str, Any]:
    """Pick the known flat keys of a YAML section, leaving defaults to Pydantic."""
    if data is None:
        return {}
    return {k: data[k] for k in keys if k in data}


def _parse_storage(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the storage section from YAML data.

    Handles nested structure: storage.aws.bucket -> aws_bucket,
    storage.local.root_dir -> local_root.
    """
    if data is None:
        return {}

    result: dict[str, Any] = {}
    if "backend" in data:
        result["backend"] = data["backend"]

    aws_section = data.get("aws")
    if isinstance(aws_section, dict):
        if "bucket" in aws_section:
            result["aws_bucket"] = aws_section["bucket"]
        if "region" in aws_section:
            result["aws_region"] = aws_section["region"] or ""
        if "endpoint_url" in aws_section:
            result["aws_endpoint_url"] = aws_section["endpoint_url"] or ""

    local_section = data.get("local")
    if isinstance(local_section, dict) and "root_dir" in local_section:
        result["local_root"] = local_section["root_dir"]

    return result


def load_config(path: Path) -> CamgateConfig:
    """Load a CamgateConfig from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        A fully populated CamgateConfig validated by Pydantic.

    Raises:
        FileNotFoundError: If the config file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        pydantic.ValidationError: If a value has the wrong type.
    """
    with open(path, "r") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    return CamgateConfig(
        server=ServerConfig(
            **_section(
                raw.get("server"),
                (
                    "host",
                    "http_port",
                    "https_port",
                    "realm",
                    "powered_by",
                    "log_level",
                    "log_format",
                ),
            )
        ),
        tls=TLSConfig(**_section(raw.get("tls"), ("key_file", "cert_file", "chain_file"))),
        auth=AuthConfig(**_section(raw.get("auth"), ("passwords_file",))),
        storage=StorageConfig(**_parse_storage(raw.get("storage"))),
        observability=ObservabilityConfig(
            **_section(raw.get("observability"), ("metrics_port",))
        ),
    )
