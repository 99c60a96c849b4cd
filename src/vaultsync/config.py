"""
User configuration, stored as TOML in the vaultsync config directory.

The directory defaults to `~/.config/vaultsync` and can be moved with the `VAULTSYNC_CONFIG_DIR`
environment variable. A default file is written on first import.
"""

import os
import tomllib
from pathlib import Path
from typing import Annotated, TypeAlias

import tomlkit
from pydantic import (
    BaseModel,
    Field,
    HttpUrl,
    PlainSerializer,
    PositiveInt,
    WebsocketUrl,
    field_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from vaultsync.logging import logger
from vaultsync.types import ChainId

CONFIG_DIR = Path(
    os.environ.get("VAULTSYNC_CONFIG_DIR", Path.home() / ".config" / "vaultsync")
).expanduser()
CONFIG_FILE = CONFIG_DIR / "config.toml"
DB_PATH = CONFIG_DIR / "vaultsync.db"

RpcEndpoint: TypeAlias = HttpUrl | WebsocketUrl | Path


class DatabaseSettings(BaseModel):
    path: Annotated[
        Path,
        PlainSerializer(lambda path: str(path.absolute()), return_type=str),
    ]


class SyncSettings(BaseModel):
    """
    Defaults for `vaultsync vault update`. Command line options take precedence.
    """

    chunk_size: PositiveInt = 2_000
    to_block: str = "latest:-64"
    max_blocks_per_request: PositiveInt = 2_000
    max_retries: PositiveInt = 10


class Settings(BaseSettings):
    model_config = SettingsConfigDict()

    database: DatabaseSettings
    rpc: dict[ChainId, RpcEndpoint]
    sync: SyncSettings = Field(default_factory=SyncSettings)

    @field_validator("rpc", mode="after")
    def resolve_ipc_paths(
        cls,  # noqa: N805
        endpoints: dict[ChainId, RpcEndpoint],
    ) -> dict[ChainId, RpcEndpoint]:
        """
        Expand IPC socket paths to absolute paths. HTTP and websocket URLs pass through unchanged.
        """

        for chain_id, endpoint in endpoints.items():
            if isinstance(endpoint, Path):
                endpoints[chain_id] = endpoint.expanduser().absolute()
        return endpoints


def load_config_from_file(config_path: Path) -> Settings:
    with config_path.open("rb") as config_file:
        return Settings.model_validate(tomllib.load(config_file))


def save_config_to_file(config: Settings, config_path: Path = CONFIG_FILE) -> None:
    config_path.write_text(tomlkit.dumps(config.model_dump(mode="json")))


def _load_or_create_settings() -> Settings:
    if CONFIG_FILE.exists():
        return load_config_from_file(CONFIG_FILE)

    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    default_settings = Settings(database=DatabaseSettings(path=DB_PATH), rpc={})
    save_config_to_file(default_settings)
    logger.info(f"Created a default configuration file at {CONFIG_FILE}")
    return default_settings


settings = _load_or_create_settings()
