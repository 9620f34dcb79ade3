from unittest.mock import MagicMock

import pytest

from block_tracker.api_clients import EtherscanClient, Web3Client
from block_tracker.config import Config
from block_tracker.exceptions import IndexerNoDataError

WALLET = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"
CONTRACT = "0x6B175474E89094C44Da98b954EedeAC495271d0F"


def make_config(**overrides) -> Config:
    values = dict(
        alchemy_api_key="alchemy-test-key",
        etherscan_api_key="etherscan-test-key",
        rate_limit_delay=0.0,
        lookup_timeout=2.0,
    )
    values.update(overrides)
    return Config(**values)


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def chain():
    """Chain-state reader for an empty-code wallet holding 1.5 ETH."""
    chain = MagicMock(spec=Web3Client)
    chain.get_native_balance.return_value = 1500000000000000000
    chain.get_transaction_count.return_value = 5
    chain.get_block_number.return_value = 19000000
    chain.get_code.return_value = b""
    chain.reverse_resolve_name.return_value = None
    return chain


@pytest.fixture
def indexer():
    """Indexer that answers every query with Etherscan's 'No transactions found'."""
    indexer = MagicMock(spec=EtherscanClient)
    indexer.list_transactions.side_effect = IndexerNoDataError("No transactions found")
    indexer.list_token_transfers.side_effect = IndexerNoDataError("No transactions found")
    indexer.get_verified_source.side_effect = IndexerNoDataError("NOTOK")
    return indexer
