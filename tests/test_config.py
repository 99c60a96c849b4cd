from pathlib import Path

import pytest
from pydantic import HttpUrl, ValidationError, WebsocketUrl
from web3 import HTTPProvider, IPCProvider, LegacyWebSocketProvider

from vaultsync.cli.utils import _provider_for_endpoint, get_web3_from_config
from vaultsync.config import (
    CONFIG_FILE,
    DatabaseSettings,
    Settings,
    SyncSettings,
    load_config_from_file,
    save_config_to_file,
    settings,
)


def test_default_config_file_was_written():
    assert CONFIG_FILE.exists()
    assert load_config_from_file(CONFIG_FILE) == settings
    assert settings.sync == SyncSettings()


def test_config_round_trip(tmp_path: Path):
    config_path = tmp_path / "config.toml"
    config = Settings(
        database=DatabaseSettings(path=tmp_path / "ledger.db"),
        rpc={43114: HttpUrl("https://api.avax.network/ext/bc/C/rpc")},
        sync=SyncSettings(chunk_size=500, to_block="finalized"),
    )

    save_config_to_file(config, config_path)
    loaded = load_config_from_file(config_path)

    assert loaded == config
    assert loaded.sync.chunk_size == 500
    assert loaded.sync.max_blocks_per_request == 2_000


def test_sync_section_is_optional(tmp_path: Path):
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        f'[database]\npath = "{tmp_path / "ledger.db"}"\n\n[rpc]\n43114 = "~/avalanche.ipc"\n'
    )

    loaded = load_config_from_file(config_path)

    assert loaded.sync == SyncSettings()
    assert loaded.rpc[43114] == Path("~/avalanche.ipc").expanduser().absolute()


def test_invalid_sync_values_are_rejected():
    with pytest.raises(ValidationError):
        SyncSettings(chunk_size=0)


def test_missing_rpc_endpoint():
    with pytest.raises(ValueError, match="does not have an RPC endpoint"):
        get_web3_from_config(chain_id=999_999_999)


@pytest.mark.parametrize(
    ("endpoint", "provider_type"),
    [
        (HttpUrl("https://api.avax.network/ext/bc/C/rpc"), HTTPProvider),
        (WebsocketUrl("ws://localhost:8546"), LegacyWebSocketProvider),
        (Path("/tmp/avalanche.ipc"), IPCProvider),
    ],
)
def test_provider_for_endpoint(endpoint, provider_type):  # noqa: ANN001
    assert isinstance(_provider_for_endpoint(endpoint), provider_type)


def test_provider_for_unsupported_endpoint():
    with pytest.raises(ValueError, match="Unsupported RPC endpoint"):
        _provider_for_endpoint("localhost:8545")  # type: ignore[arg-type]
