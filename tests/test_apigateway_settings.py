import logging

import pytest
from pydantic import ValidationError

from basin_gateway.apigateway import GatewaySettings
from basin_gateway.apigateway import __main__ as cli
from basin_gateway.objectstore import Network
from basin_gateway.objectstore.adapters import EvmChainClient, ObjectApiStore

KEY = "0x" + "11" * 32
ETH = "0x52963ef50e27e06d72d59fcb4f3c2a687be3cfef"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("PRIVATE_KEY", "OS_ADDRESS", "LISTEN", "NETWORK", "MAX_FILE_SIZE", "RPC_URL", "OBJECT_API_URL"):
        monkeypatch.delenv(f"BASIN_{name}", raising=False)


def test_settings_normalize_inputs():
    s = GatewaySettings(private_key="11" * 32, os_address=ETH, network="memory")
    assert s.private_key.get_secret_value() == KEY
    assert s.os_address == "t410fkkld55ioe7qg24wvt7fu6pbknb56ht7pt4zamxa"
    assert s.listen == "127.0.0.1:8081"
    assert s.max_file_size == 100 * 1024 * 1024
    assert s.cors_allow_origins == ["*"]
    assert KEY not in repr(s)


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("BASIN_PRIVATE_KEY", KEY)
    monkeypatch.setenv("BASIN_OS_ADDRESS", "t02345")
    monkeypatch.setenv("BASIN_NETWORK", "memory")
    monkeypatch.setenv("BASIN_MAX_FILE_SIZE", "1024")
    s = GatewaySettings()
    assert s.network == Network.MEMORY
    assert s.max_file_size == 1024


@pytest.mark.parametrize(
    "overrides",
    [
        {"private_key": "nope"},
        {"os_address": "0x1234"},
        {"listen": "8081"},
        {"listen": "localhost:99999"},
        {"network": "mainnet"},
    ],
)
def test_settings_reject_bad_values(overrides):
    values = {"private_key": KEY, "os_address": "t02345", "network": "memory"}
    values.update(overrides)
    with pytest.raises(ValidationError):
        GatewaySettings(**values)


def test_settings_require_key_and_store():
    with pytest.raises(ValidationError):
        GatewaySettings()


def test_resolve_listen():
    assert cli.resolve_listen("127.0.0.1:8081") == ("127.0.0.1", 8081)
    assert cli.resolve_listen("[::1]:9000") == ("::1", 9000)
    with pytest.raises(ValueError):
        cli.resolve_listen("127.0.0.1")


def test_cli_flags_override_env(monkeypatch):
    monkeypatch.setenv("BASIN_OS_ADDRESS", "t09999")
    args = cli.build_parser().parse_args(["-p", KEY, "-o", "t02345", "-n", "memory", "-vv"])
    s = cli.load_settings(args)
    assert s.os_address == "t02345"
    assert s.network == Network.MEMORY
    assert s.verbosity == 2


def test_main_runs_server(monkeypatch):
    calls = {}

    def fake_run(app, **kwargs):
        calls["app"] = app
        calls.update(kwargs)

    monkeypatch.setattr(cli.uvicorn, "run", fake_run)
    assert cli.main(["-p", KEY, "-o", "t02345", "-n", "memory", "--listen", "127.0.0.1:9100"]) == 0
    assert calls["host"] == "127.0.0.1" and calls["port"] == 9100
    assert calls["app"].state.gateway.store_address.actor_id == 2345


def test_main_rejects_missing_key(capsys):
    with pytest.raises(SystemExit) as ei:
        cli.main(["-o", "t02345"])
    assert ei.value.code == 2
    assert "private_key" in capsys.readouterr().err


def test_quiet_disables_logging():
    try:
        cli.configure_logging(3, quiet=True)
        assert logging.getLogger("apigateway").isEnabledFor(logging.CRITICAL) is False
    finally:
        logging.disable(logging.NOTSET)


def test_default_network_needs_endpoints():
    with pytest.raises(ValidationError, match="--rpc-url, --object-api-url"):
        GatewaySettings(private_key=KEY, os_address="t02345")
    s = GatewaySettings(
        private_key=KEY,
        os_address="t02345",
        rpc_url="http://rpc.test",
        object_api_url="http://objects.test",
    )
    assert s.network == Network.TESTNET


def test_localnet_fills_endpoints_from_presets():
    s = GatewaySettings(private_key=KEY, os_address="t02345", network="localnet")
    assert s.rpc_url == "http://127.0.0.1:8545"
    assert s.object_api_url == "http://127.0.0.1:8001"


def test_main_reports_missing_endpoints_as_usage_error(monkeypatch, capsys):
    monkeypatch.setattr(cli.uvicorn, "run", lambda app, **kwargs: None)
    with pytest.raises(SystemExit) as ei:
        cli.main(["-p", KEY, "-o", "t02345"])
    assert ei.value.code == 2
    assert "--rpc-url" in capsys.readouterr().err


def test_main_default_network_with_endpoint_flags(monkeypatch):
    calls = {}
    monkeypatch.setattr(cli.uvicorn, "run", lambda app, **kwargs: calls.update(app=app))
    argv = ["-p", KEY, "-o", "t02345", "--rpc-url", "http://rpc.test", "--object-api-url", "http://objects.test"]
    assert cli.main(argv) == 0
    backend = calls["app"].state.gateway.backend
    assert isinstance(backend.accounts, EvmChainClient)
    assert isinstance(backend.store, ObjectApiStore)
    assert backend.accounts.rpc_url == "http://rpc.test"
