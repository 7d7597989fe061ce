from __future__ import annotations
import os
from typing import List, Optional

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..addressing import normalize_address
from ..errors import BadRequestError
from ..ingestion import MAX_FILE_SIZE
from ..objectstore import NETWORK_DEFAULTS, Network, parse_secret_key

APP_NAME = "basin-gateway"
APP_VERSION = os.getenv("APP_VERSION", "0.1.0")


def split_listen(value: str):
    host, sep, port = value.rpartition(":")
    if not sep or not host or not port.isdigit() or not 0 < int(port) < 65536:
        raise ValueError(f"listen must be host:port, got {value!r}")
    return host.strip("[]"), int(port)


class GatewaySettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="BASIN_", env_file=".env", case_sensitive=False, extra="ignore")

    private_key: SecretStr  # faucet wallet, secp256k1 hex
    os_address: str  # object store the gateway writes to
    listen: str = Field(default="127.0.0.1:8081")
    network: Network = Network.TESTNET
    rpc_url: Optional[str] = None
    object_api_url: Optional[str] = None
    chain_id: Optional[int] = None
    request_timeout_s: float = 20.0
    broadcast_timeout_s: float = 60.0
    max_file_size: int = Field(default=MAX_FILE_SIZE, gt=0)
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])
    verbosity: int = 0
    quiet: bool = False

    @field_validator("private_key", mode="before")
    @classmethod
    def _check_private_key(cls, v):
        raw = v.get_secret_value() if isinstance(v, SecretStr) else v
        return parse_secret_key(raw)

    @field_validator("os_address")
    @classmethod
    def _check_os_address(cls, v: str) -> str:
        try:
            return str(normalize_address(v))
        except BadRequestError as e:
            raise ValueError(f"invalid object store address: {e.message}") from e

    @field_validator("listen")
    @classmethod
    def _check_listen(cls, v: str) -> str:
        split_listen(v)
        return v

    @model_validator(mode="after")
    def _check_endpoints(self) -> "GatewaySettings":
        if self.network == Network.MEMORY:
            return self
        defaults = NETWORK_DEFAULTS[self.network]
        self.rpc_url = self.rpc_url or defaults.rpc_url
        self.object_api_url = self.object_api_url or defaults.object_api_url
        missing = [name for name in ("rpc_url", "object_api_url") if not getattr(self, name)]
        if missing:
            flags = ", ".join("--" + name.replace("_", "-") for name in missing)
            envs = ", ".join("BASIN_" + name.upper() for name in missing)
            raise ValueError(f"network {self.network.value} has no preset for {flags} ({envs})")
        return self
