from unittest.mock import MagicMock

import pytest
import requests

from block_tracker.api_clients import EtherscanClient, Web3Client
from block_tracker.exceptions import ChainConnectionError, IndexerNoDataError

from conftest import CONTRACT, WALLET, make_config


def etherscan_with(payload, config=None):
    session = MagicMock(spec=requests.Session)
    session.get.return_value.json.return_value = payload
    return EtherscanClient(config or make_config(), session=session), session


class TestEtherscanClient:

    def test_list_transactions_request(self):
        client, session = etherscan_with({"status": "1", "message": "OK", "result": []})

        assert client.list_transactions(WALLET, limit=10) == []

        args, kwargs = session.get.call_args
        assert args[0] == "https://api.etherscan.io/v2/api"
        params = kwargs["params"]
        assert params["module"] == "account"
        assert params["action"] == "txlist"
        assert params["address"] == WALLET
        assert params["offset"] == 10
        assert params["sort"] == "desc"
        assert params["chainid"] == 1
        assert params["apikey"] == "etherscan-test-key"
        assert kwargs["timeout"] == 10.0

    def test_testnet_chain_id(self):
        client, session = etherscan_with(
            {"status": "1", "message": "OK", "result": []}, make_config(network="sepolia"))

        client.list_token_transfers(WALLET)

        params = session.get.call_args.kwargs["params"]
        assert params["chainid"] == 11155111
        assert params["action"] == "tokentx"
        assert params["offset"] == 100

    def test_soft_failure_status(self):
        client, _ = etherscan_with(
            {"status": "0", "message": "No transactions found", "result": []})

        with pytest.raises(IndexerNoDataError) as exc:
            client.list_transactions(WALLET)

        assert "No transactions found" in exc.value.message
        assert exc.value.address == WALLET

    def test_non_list_result_is_soft_failure(self):
        client, _ = etherscan_with(
            {"status": "1", "message": "OK", "result": "Max rate limit reached"})

        with pytest.raises(IndexerNoDataError):
            client.list_token_transfers(WALLET)

    def test_http_error_propagates(self):
        client, session = etherscan_with({})
        session.get.return_value.raise_for_status.side_effect = requests.HTTPError("502")

        with pytest.raises(requests.HTTPError):
            client.list_transactions(WALLET)

    def test_verified_source_first_record(self):
        record = {"ContractName": "Dai", "SourceCode": "contract Dai {}"}
        client, session = etherscan_with({"status": "1", "message": "OK", "result": [record]})

        assert client.get_verified_source(CONTRACT) == record
        params = session.get.call_args.kwargs["params"]
        assert params["module"] == "contract"
        assert params["action"] == "getsourcecode"

    def test_verified_source_empty_result(self):
        client, _ = etherscan_with({"status": "1", "message": "OK", "result": []})

        with pytest.raises(IndexerNoDataError):
            client.get_verified_source(CONTRACT)


class TestWeb3Client:

    @pytest.fixture
    def client(self, config):
        client = Web3Client(config)
        client.w3 = MagicMock()
        return client

    def test_provider_url(self, config):
        assert config.provider_url == "https://eth-mainnet.g.alchemy.com/v2/alchemy-test-key"

    def test_connect_failure(self, client):
        client.w3.is_connected.return_value = False

        with pytest.raises(ChainConnectionError):
            client.connect()

    def test_connect_exception(self, client):
        client.w3.is_connected.side_effect = requests.ConnectionError("refused")

        with pytest.raises(ChainConnectionError):
            client.connect()

    def test_chain_state_reads(self, client):
        client.w3.eth.get_balance.return_value = 1500000000000000000
        client.w3.eth.get_transaction_count.return_value = 5
        client.w3.eth.block_number = 19000000

        assert client.get_native_balance(WALLET) == 1500000000000000000
        assert client.get_transaction_count(WALLET) == 5
        assert client.get_block_number() == 19000000

    def test_empty_code(self, client):
        client.w3.eth.get_code.return_value = b""

        assert client.get_code(WALLET.lower()) == b""
        assert client.is_contract_address(WALLET) is False
        client.w3.eth.get_code.assert_called_with(WALLET)

    def test_token_balance(self, client):
        contract = client.w3.eth.contract.return_value
        contract.functions.balanceOf.return_value.call.return_value = 42

        assert client.get_token_balance(CONTRACT, WALLET.lower()) == 42
        contract.functions.balanceOf.assert_called_once_with(WALLET)

    def test_reverse_resolve_off_mainnet(self):
        client = Web3Client(make_config(network="sepolia"))
        client.w3 = MagicMock()

        assert client.reverse_resolve_name(WALLET) is None
        client.w3.ens.name.assert_not_called()

    def test_reverse_resolve_mainnet(self, client):
        client.w3.ens.name.return_value = "vitalik.eth"

        assert client.reverse_resolve_name(WALLET) == "vitalik.eth"

    def test_reverse_resolve_failure(self, client):
        client.w3.ens.name.side_effect = ValueError("no resolver")

        assert client.reverse_resolve_name(WALLET) is None
