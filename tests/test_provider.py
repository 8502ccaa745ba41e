import pytest

from common.errors import BridgeError, BridgeErrorKind
from ingestion.rpc import ScriptedTransport, Transport
from fakes import BRIDGE, mock_get_logs, mock_receipt, rpc_log, tx


def test_scripted_transport_satisfies_protocol():
    assert isinstance(ScriptedTransport(), Transport)


@pytest.mark.asyncio
async def test_scripted_transport_replaces_and_records(transport):
    transport.add_response("eth_blockNumber", [], "0x1")
    transport.add_response("eth_blockNumber", [], "0x2")
    assert await transport.request("eth_blockNumber", []) == "0x2"
    with pytest.raises(BridgeError) as ei:
        await transport.request("eth_chainId", [])
    assert ei.value.kind == BridgeErrorKind.RPC_REJECTED
    assert transport.requests == [("eth_blockNumber", []), ("eth_chainId", [])]


@pytest.mark.asyncio
async def test_quantities(transport, provider):
    transport.add_response("eth_chainId", [], "0xaa36a7")
    transport.add_response("eth_blockNumber", [], "0x0")
    assert await provider.chain_id() == 11155111
    assert await provider.head_block_number() == 0


@pytest.mark.asyncio
async def test_malformed_quantity(transport, provider):
    transport.add_response("eth_chainId", [], "one")
    with pytest.raises(BridgeError) as ei:
        await provider.chain_id()
    assert ei.value.kind == BridgeErrorKind.PROVIDER_INTEGRITY


@pytest.mark.asyncio
async def test_receipt_parsing(transport, provider):
    h = tx(1)
    mock_receipt(transport, h, 12, [rpc_log(h, 12, 3, data="0xabcd")])
    r = await provider.transaction_receipt(h)
    assert r.block_number == 12
    assert r.transaction_hash == h
    assert len(r.logs) == 1
    assert r.logs[0].log_index == 3
    assert r.logs[0].data == b"\xab\xcd"

    transport.add_response("eth_getTransactionReceipt", [tx(2)], None)
    assert await provider.transaction_receipt(tx(2)) is None


@pytest.mark.asyncio
async def test_logs_must_be_a_list(transport, provider):
    mock_get_logs(transport, BRIDGE, 1, 2, {"logs": []})
    with pytest.raises(BridgeError) as ei:
        await provider.logs(BRIDGE, 1, 2)
    assert ei.value.kind == BridgeErrorKind.PROVIDER_INTEGRITY


@pytest.mark.asyncio
async def test_block_by_tag(transport, provider):
    transport.add_response("eth_getBlockByNumber", ["finalized", False], {"number": "0x309", "hash": "0xAB"})
    b = await provider.block_by_tag("finalized")
    assert b.number == 777
    assert b.hash == "0xab"
