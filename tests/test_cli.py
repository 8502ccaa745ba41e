import json

import pytest

from bridge import cli
from bridge.client import EthClient
from ingestion.provider import EthProvider
from ingestion.rpc import ScriptedTransport
from fakes import BRIDGE, deposit_log, mock_get_logs, mock_last_finalized_block, mock_receipt, tx


@pytest.fixture
def scripted(monkeypatch, tmp_path):
    monkeypatch.delenv("RPC_URL_OVERRIDE", raising=False)
    cfg = tmp_path / "config.yaml"
    cfg.write_text("rpc:\n  url: \"${RPC_URL}\"\nbridge:\n  contract: \"" + BRIDGE + "\"\n")

    transport = ScriptedTransport()
    transport.add_response("eth_chainId", [], "0x1")
    transport.add_response("eth_blockNumber", [], "0x400")

    async def fake_connect(settings):
        client = EthClient(EthProvider(transport))
        await client.describe()
        return client

    monkeypatch.setattr(EthClient, "connect", staticmethod(fake_connect))
    return transport, str(cfg)


def test_describe(scripted, capsys):
    transport, cfg = scripted
    assert cli.main(["--config", cfg, "describe"]) == 0
    assert json.loads(capsys.readouterr().out) == {"chain_id": 1, "block_number": 1024}
    assert len(transport.calls("eth_chainId")) == 1
    assert len(transport.calls("eth_blockNumber")) == 1


@pytest.mark.parametrize(
    "body",
    [
        "rpc:\n  url: \"http://rpc.example.org\"\nbridge:\n  contract: \"" + BRIDGE + "\"\n",
        "rpc:\n  url: \"${RPC_URL}\"\n",  # no bridge section
    ],
)
def test_bad_config_is_invalid_input(scripted, tmp_path, capsys, body):
    transport, _ = scripted
    bad = tmp_path / "bad.yaml"
    bad.write_text(body)
    assert cli.main(["--config", str(bad), "describe"]) == cli.EXIT_INVALID
    assert capsys.readouterr().err.startswith("ERROR Configuration error")
    assert transport.requests == []


def test_missing_config_is_invalid_input(scripted, tmp_path, capsys):
    assert cli.main(["--config", str(tmp_path / "nope.yaml"), "describe"]) == cli.EXIT_INVALID
    assert capsys.readouterr().err.startswith("ERROR ")


def test_events_sorted(scripted, capsys):
    transport, cfg = scripted
    a, b = tx(1), tx(2)
    la, lb = deposit_log(a, 11, 3), deposit_log(b, 10, 0)
    mock_receipt(transport, a, 11, [la])
    mock_receipt(transport, b, 10, [lb])
    mock_get_logs(transport, BRIDGE, 10, 11, [la, lb])

    assert cli.main(["--config", cfg, "events", "--from", "10", "--to", "11"]) == 0
    rows = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    assert [(r["block_number"], r["tx_hash"], r["log_index_in_tx"]) for r in rows] == [(10, b, 0), (11, a, 0)]


def test_action_exit_codes(scripted, capsys):
    transport, cfg = scripted
    h = tx(3)
    mock_receipt(transport, h, 900, [deposit_log(h, 900, 0)])

    mock_last_finalized_block(transport, 899)
    assert cli.main(["--config", cfg, "action", "--tx", h, "--index", "0"]) == cli.EXIT_RETRYABLE

    mock_last_finalized_block(transport, 900)
    assert cli.main(["--config", cfg, "action", "--tx", h, "--index", "1"]) == cli.EXIT_PERMANENT
    assert cli.main(["--config", cfg, "action", "--tx", "0x12", "--index", "0"]) == cli.EXIT_INVALID

    capsys.readouterr()
    assert cli.main(["--config", cfg, "action", "--tx", h, "--index", "0"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["type"] == "token_deposit"
    assert out["tx_hash"] == h
    assert out["event_index"] == 0
