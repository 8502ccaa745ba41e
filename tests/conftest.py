import pytest

from ingestion.provider import EthProvider
from ingestion.rpc import ScriptedTransport


@pytest.fixture
def transport():
    return ScriptedTransport()


@pytest.fixture
def provider(transport):
    return EthProvider(transport)
