import time
import logging
from typing import Optional, List, Dict, Any
import requests
from web3 import Web3

from .config import Config
from .exceptions import ChainConnectionError, IndexerNoDataError

# Set up logging
logger = logging.getLogger(__name__)

# Minimal ABI fragments for the read-only calls we issue
ERC20_BALANCE_ABI = [
    {"constant": True, "inputs": [{"name": "owner", "type": "address"}],
     "name": "balanceOf", "outputs": [{"name": "", "type": "uint256"}],
     "type": "function"},
]

ERC721_METADATA_ABI = [
    {"constant": True, "inputs": [], "name": "name", "outputs": [
        {"name": "", "type": "string"}], "type": "function"},
    {"constant": True, "inputs": [], "name": "symbol", "outputs": [
        {"name": "", "type": "string"}], "type": "function"},
    {"constant": True, "inputs": [], "name": "totalSupply", "outputs": [
        {"name": "", "type": "uint256"}], "type": "function"},
]


class EtherscanClient:
    """Client for the Etherscan v2 API (historical indexer)."""

    def __init__(self, config: Config, session: Optional[requests.Session] = None):
        self.config = config
        self.base_url = config.etherscan_base_url
        self.api_key = config.etherscan_api_key
        self.session = session or requests.Session()

    def _make_request(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Make a request to Etherscan API.

        Raises IndexerNoDataError when the envelope status is not "1" or the
        result is not a list. Transport errors propagate as requests exceptions.
        """
        params = dict(params)
        params["chainid"] = self.config.chain_id
        params["apikey"] = self.api_key

        response = self.session.get(
            self.base_url, params=params, timeout=self.config.request_timeout)
        response.raise_for_status()

        data = response.json()

        # Rate limiting
        if self.config.rate_limit_delay:
            time.sleep(self.config.rate_limit_delay)

        if data.get("status") != "1":
            raise IndexerNoDataError(
                f"Etherscan API: {data.get('message', 'Unknown error')}",
                address=params.get("address"),
                details={"module": params.get("module"),
                         "action": params.get("action"),
                         "result": data.get("result")})
        if not isinstance(data.get("result"), list):
            raise IndexerNoDataError(
                "Etherscan API returned a non-list result",
                address=params.get("address"),
                details={"module": params.get("module"),
                         "action": params.get("action")})

        return data

    def list_transactions(self, address: str, limit: int = 10,
                          sort: str = "desc") -> List[Dict[str, Any]]:
        """Get normal transactions for an address, newest first by default."""
        params = {
            "module": "account",
            "action": "txlist",
            "address": address,
            "startblock": 0,
            "endblock": 99999999,
            "page": 1,
            "offset": limit,
            "sort": sort
        }

        data = self._make_request(params)
        return data["result"]

    def list_token_transfers(self, address: str, limit: int = 100,
                             sort: str = "desc") -> List[Dict[str, Any]]:
        """Get ERC-20 transfer events involving an address."""
        params = {
            "module": "account",
            "action": "tokentx",
            "address": address,
            "page": 1,
            "offset": limit,
            "sort": sort
        }

        data = self._make_request(params)
        return data["result"]

    def get_verified_source(self, address: str) -> Dict[str, Any]:
        """Get contract source code, ABI and compiler metadata."""
        params = {
            "module": "contract",
            "action": "getsourcecode",
            "address": address
        }

        result = self._make_request(params)["result"]
        if not result or not isinstance(result[0], dict):
            raise IndexerNoDataError(
                "Etherscan API returned no source record", address=address)
        return result[0]


class Web3Client:
    """Client for JSON-RPC chain-state reads through Alchemy."""

    def __init__(self, config: Config, provider_url: Optional[str] = None):
        self.config = config
        if provider_url is None:
            provider_url = config.provider_url

        self.w3 = Web3(Web3.HTTPProvider(
            provider_url, request_kwargs={"timeout": config.request_timeout}))

    def connect(self) -> None:
        """Check that the provider answers; raise ChainConnectionError otherwise."""
        try:
            connected = self.w3.is_connected()
        except Exception as e:
            raise ChainConnectionError(
                f"Failed to connect to Ethereum {self.config.network}: {e}") from e
        if not connected:
            raise ChainConnectionError(
                f"Failed to connect to Ethereum {self.config.network}")
        logger.info(f"Connected to Ethereum {self.config.network}")

    def get_native_balance(self, address: str) -> int:
        """Balance in wei."""
        return int(self.w3.eth.get_balance(Web3.to_checksum_address(address)))

    def get_transaction_count(self, address: str) -> int:
        return int(self.w3.eth.get_transaction_count(Web3.to_checksum_address(address)))

    def get_block_number(self) -> int:
        return int(self.w3.eth.block_number)

    def get_code(self, address: str) -> bytes:
        """Deployed bytecode; empty for externally owned accounts."""
        return bytes(self.w3.eth.get_code(Web3.to_checksum_address(address)))

    def is_contract_address(self, address: str) -> bool:
        return len(self.get_code(address)) > 0

    def call_read_only(self, address: str, abi: List[Dict[str, Any]],
                       function: str, *args: Any) -> Any:
        """Simulate a view function call against the latest block."""
        contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(address), abi=abi)
        return getattr(contract.functions, function)(*args).call()

    def get_token_balance(self, token_address: str, owner: str) -> int:
        """ERC-20 balanceOf(owner) in the token's smallest unit."""
        return int(self.call_read_only(
            token_address, ERC20_BALANCE_ABI, "balanceOf",
            Web3.to_checksum_address(owner)))

    def reverse_resolve_name(self, address: str) -> Optional[str]:
        """ENS name for an address. ENS is only consulted on mainnet."""
        if not self.config.is_mainnet:
            return None
        try:
            return self.w3.ens.name(Web3.to_checksum_address(address))
        except Exception as e:
            logger.warning(f"ENS lookup failed for {address}: {e}")
            return None
