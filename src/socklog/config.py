from __future__ import annotations

import codecs
import logging
import math
from typing import Any, Dict

import yaml
from pydantic import BaseModel, field_validator

from .transport import DEFAULT_CONNECTION_TIMEOUT

"""
Config layer
- load_yaml(path) -> dict
- SinkConfig (Pydantic v2) + validate_config(raw) -> SinkConfig

Example:
  target: tcp://logs.internal:5140
  persistent: true
  connection_timeout: 2.5
  timeout: 5

`level` only shapes SocketSinkHandler.from_config; the CLI sends every
line it is given and ignores it.
"""


# This function loads and parses YAML into a raw dictionary using yaml.safe_load.
def load_yaml(path: str) -> Dict[str, Any]:
    """
    Load and parse YAML into a raw dict using yaml.safe_load.

    Raises:
        FileNotFoundError: if the file does not exist
        yaml.YAMLError: if YAML is malformed/unsafe
        ValueError: if the top-level document is not a mapping
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        # Treat empty file as empty mapping
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Top-level YAML must be a mapping/dict (file: {path})")
    return data


class SinkConfig(BaseModel):
    target: str
    persistent: bool = False
    connection_timeout: float = DEFAULT_CONNECTION_TIMEOUT
    timeout: int = 0
    level: str = "DEBUG"
    encoding: str = "utf-8"
    terminator: str = "\n"

    # --- Validators ---

    # The target is forwarded verbatim to the transport, so only emptiness is checked here.
    @field_validator("target")
    @classmethod
    def _target_non_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("target must be a non-empty connection string")
        return v

    @field_validator("connection_timeout")
    @classmethod
    def _connection_timeout_non_negative(cls, v: float) -> float:
        if not math.isfinite(v) or v < 0:
            raise ValueError("connection_timeout must be 0 or a positive finite number")
        return float(v)

    @field_validator("timeout")
    @classmethod
    def _timeout_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("timeout must be 0 or a positive integer")
        return v

    # This validator maps the level onto a stdlib logging level name.
    @field_validator("level")
    @classmethod
    def _level_known(cls, v: str) -> str:
        name = v.strip().upper()
        if not isinstance(logging.getLevelName(name), int):
            raise ValueError(f"unknown logging level {v!r}")
        return name

    @field_validator("encoding")
    @classmethod
    def _encoding_known(cls, v: str) -> str:
        try:
            codecs.lookup(v)
        except LookupError:
            raise ValueError(f"unknown encoding {v!r}") from None
        return v


# This function validates and normalizes a raw dictionary into a SinkConfig object.
def validate_config(raw: Dict[str, Any]) -> SinkConfig:
    return SinkConfig.model_validate(raw)


__all__ = ["load_yaml", "SinkConfig", "validate_config"]
