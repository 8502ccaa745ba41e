from bridge.actions import BridgeActionExtractor, TokenDepositAction
from bridge.events import BridgeEventDecoder, TokensClaimed, TokensDeposited, TOKENS_DEPOSITED_TOPIC0
from ingestion.models import RawLog, VerifiedLog
from fakes import BRIDGE, RECIPIENT, SENDER, claim_log, deposit_log, rpc_log, topic, tx


def _verified(rpc: dict, idx: int = 0) -> VerifiedLog:
    return VerifiedLog(block_number=10, tx_hash=tx(1), log_index_in_tx=idx, log=RawLog.from_rpc(rpc))


def test_decode_tokens_deposited():
    ev = BridgeEventDecoder(BRIDGE).decode(_verified(deposit_log(tx(1), 10, 0, nonce=42, amount=123)))
    assert ev == TokensDeposited(
        source_chain_id=12,
        nonce=42,
        destination_chain_id=2,
        token_id=3,
        amount=123,
        sender_address=SENDER,
        recipient_address=RECIPIENT,
    )


def test_decode_tokens_claimed():
    ev = BridgeEventDecoder().decode(_verified(claim_log(tx(1), 10, 0)))
    assert isinstance(ev, TokensClaimed)
    assert ev.amount == 5 * 10**18
    assert ev.recipient_address == SENDER
    assert ev.sender_address == bytes.fromhex("aa" * 32)


def test_unknown_or_malformed_logs_decode_to_none():
    dec = BridgeEventDecoder()
    good = deposit_log(tx(1), 10, 0)
    assert dec.decode(_verified(rpc_log(tx(1), 10, 0))) is None
    assert dec.decode(_verified(rpc_log(tx(1), 10, 0, topics=[topic(1)]))) is None
    # truncated data
    assert dec.decode(_verified({**good, "data": good["data"][:130]})) is None
    # missing indexed topic
    assert dec.decode(_verified({**good, "topics": good["topics"][:3]})) is None
    # chain id that does not fit in uint8
    assert dec.decode(_verified({**good, "topics": [topic(TOKENS_DEPOSITED_TOPIC0), topic(300), topic(1), topic(2)]})) is None


def test_extractor_only_acts_on_deposits():
    ex = BridgeActionExtractor()
    dep = BridgeEventDecoder().decode(_verified(deposit_log(tx(1), 10, 0)))
    claim = BridgeEventDecoder().decode(_verified(claim_log(tx(1), 10, 0)))
    action = ex.extract(dep, tx(1), 4)
    assert isinstance(action, TokenDepositAction)
    assert action.to_dict()["event_index"] == 4
    assert action.to_dict()["recipient_address"] == "0x" + RECIPIENT.hex()
    assert ex.extract(claim, tx(1), 4) is None
