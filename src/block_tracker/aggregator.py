"""
Report aggregation.

Runs the lookups of one analysis mode in parallel against the chain-state
reader (Web3Client) and the historical indexer (EtherscanClient), joins them
into LookupResult values and assembles a single report. Lookups that define
the report are fatal when they fail; the rest degrade to an empty value.
"""

import json
import time
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Union

from .config import Config
from .api_clients import EtherscanClient, Web3Client, ERC721_METADATA_ABI
from .exceptions import (
    ChainStateError,
    ContractInfoUnavailableError,
    NotAContractError,
)
from .models import (
    UNKNOWN,
    AnalysisMode,
    ContractReport,
    LookupResult,
    NFTReport,
    Report,
    TokenHolding,
    TransactionRecord,
    WalletReport,
)
from .utils import (
    build_token_holding,
    format_units,
    parse_etherscan_transactions,
    sort_holdings,
    unique_token_contracts,
    validate_address,
)

logger = logging.getLogger(__name__)

UNVERIFIED_ABI = "Contract source code not verified"
MAX_WORKERS = 4


class Aggregator:
    """Produces wallet, contract and NFT reports for an address."""

    def __init__(self, config: Config, chain: Optional[Web3Client] = None,
                 indexer: Optional[EtherscanClient] = None):
        config.validate()
        self.config = config
        self.chain = chain if chain is not None else Web3Client(config)
        self.indexer = indexer if indexer is not None else EtherscanClient(config)
        self._connected = False

    def produce_report(self, address: str, mode: Union[AnalysisMode, str]) -> Report:
        """
        Build the report for `address` in the given analysis mode.

        Raises a FatalAnalysisError subclass when no meaningful report can be
        produced. Failures of non-defining lookups are logged and replaced
        with empty values instead.
        """
        address = validate_address(address)
        mode = AnalysisMode(mode)
        self._ensure_connected()

        builders = {
            AnalysisMode.WALLET: self._wallet_report,
            AnalysisMode.CONTRACT: self._contract_report,
            AnalysisMode.NFT: self._nft_report,
        }

        logger.info(f"Analyzing {mode.value} {address}")
        executor = ThreadPoolExecutor(
            max_workers=MAX_WORKERS + max(self.config.token_balance_cap, 0),
            thread_name_prefix=f"lookup-{mode.value}")
        try:
            return builders[mode](address, executor)
        finally:
            # Do not block on lookups that already timed out
            executor.shutdown(wait=False, cancel_futures=True)

    def _ensure_connected(self) -> None:
        if not self._connected:
            self.chain.connect()
            self._connected = True

    # ------------------------------------------------------------------
    # Lookup plumbing
    # ------------------------------------------------------------------

    def _join(self, futures: Dict[str, Future], submitted_at: float) -> Dict[str, LookupResult]:
        """Wait for every future until its deadline and wrap the outcome."""
        results = {}
        for name, future in futures.items():
            remaining = max(0.0, submitted_at + self.config.lookup_timeout - time.monotonic())
            try:
                results[name] = LookupResult(name=name, value=future.result(timeout=remaining))
            except Exception as e:
                future.cancel()
                results[name] = LookupResult(name=name, error=e)
        return results

    def _degrade(self, result: LookupResult, default: Any, address: str,
                 mode: AnalysisMode) -> Any:
        if not result.ok:
            logger.warning(
                f"{result.name} lookup failed for {address} ({mode.value}): "
                f"{type(result.error).__name__}: {result.error}")
        return result.unwrap_or(default)

    def _require_contract(self, address: str, mode: AnalysisMode) -> None:
        try:
            code = self.chain.get_code(address)
        except Exception as e:
            logger.error(f"get_code failed for {address} ({mode.value}): {e}")
            raise ChainStateError(
                f"Failed to read contract code: {e}", address=address,
                mode=mode.value) from e
        if not code or code == "0x":
            raise NotAContractError(address, mode.value)

    # ------------------------------------------------------------------
    # Wallet
    # ------------------------------------------------------------------

    def _wallet_report(self, address: str, executor: ThreadPoolExecutor) -> WalletReport:
        mode = AnalysisMode.WALLET
        submitted_at = time.monotonic()
        futures = {
            "chain_state": executor.submit(self._read_chain_state, address),
            "recent_transactions": executor.submit(self._fetch_recent_transactions, address),
            "token_transfers": executor.submit(self._fetch_token_transfers, address),
        }
        if self.config.is_mainnet:
            futures["ens_name"] = executor.submit(self.chain.reverse_resolve_name, address)
        results = self._join(futures, submitted_at)

        state = results["chain_state"]
        if not state.ok:
            logger.error(f"Chain state lookup failed for {address}: {state.error}")
            raise ChainStateError(
                f"Failed to fetch wallet data: {state.error}",
                address=address, mode=mode.value) from state.error
        state = state.value

        transactions: List[TransactionRecord] = self._degrade(
            results["recent_transactions"], [], address, mode)
        transfers = self._degrade(results["token_transfers"], [], address, mode)
        tokens: List[TokenHolding] = self._fetch_token_holdings(address, transfers, executor)
        ens_name = None
        if "ens_name" in results:
            ens_name = self._degrade(results["ens_name"], None, address, mode)

        # Oldest record in the fetched window, not the account's true first tx
        first_activity = transactions[-1].timestamp if transactions else None

        return WalletReport(
            address=address,
            native_balance=format_units(state["balance"]),
            raw_balance=str(state["balance"]),
            transaction_count=state["transaction_count"],
            block_number=state["block_number"],
            ens_name=ens_name,
            tokens=tokens,
            transactions=transactions,
            first_activity=first_activity,
        )

    def _read_chain_state(self, address: str) -> Dict[str, int]:
        return {
            "balance": self.chain.get_native_balance(address),
            "transaction_count": self.chain.get_transaction_count(address),
            "block_number": self.chain.get_block_number(),
        }

    def _fetch_recent_transactions(self, address: str) -> List[TransactionRecord]:
        raw = self.indexer.list_transactions(
            address, limit=self.config.recent_tx_limit, sort="desc")
        transactions = parse_etherscan_transactions(raw)
        transactions.sort(key=lambda tx: (tx.block_number, tx.timestamp), reverse=True)
        return transactions[:self.config.recent_tx_limit]

    def _fetch_token_transfers(self, address: str) -> List[Dict[str, Any]]:
        return self.indexer.list_token_transfers(
            address, limit=self.config.token_transfer_limit, sort="desc")

    def _fetch_token_holdings(self, address: str, transfers: List[Dict[str, Any]],
                              executor: ThreadPoolExecutor) -> List[TokenHolding]:
        """Read balanceOf for each candidate token, each under its own deadline."""
        tokens = unique_token_contracts(transfers, self.config.token_balance_cap)
        if not tokens:
            return []

        submitted_at = time.monotonic()
        results = self._join({
            token["contract_address"]: executor.submit(
                self.chain.get_token_balance, token["contract_address"], address)
            for token in tokens
        }, submitted_at)

        holdings = []
        for token in tokens:
            result = results[token["contract_address"]]
            if not result.ok:
                logger.warning(
                    f"Failed to get balance for token {token['symbol']} "
                    f"({token['contract_address']}) held by {address}: "
                    f"{type(result.error).__name__}: {result.error}")
                continue
            holding = build_token_holding(token, result.value)
            if holding is not None:
                holdings.append(holding)
        return sort_holdings(holdings)

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    def _contract_report(self, address: str, executor: ThreadPoolExecutor) -> ContractReport:
        mode = AnalysisMode.CONTRACT
        self._require_contract(address, mode)

        submitted_at = time.monotonic()
        results = self._join(
            {"verified_source": executor.submit(self.indexer.get_verified_source, address)},
            submitted_at)
        source = results["verified_source"]
        if not source.ok:
            logger.error(f"Verified source lookup failed for {address}: {source.error}")
            raise ContractInfoUnavailableError(
                address, mode.value, details={"cause": str(source.error)}) from source.error

        return parse_contract_source(address, source.value)

    # ------------------------------------------------------------------
    # NFT
    # ------------------------------------------------------------------

    def _nft_report(self, address: str, executor: ThreadPoolExecutor) -> NFTReport:
        mode = AnalysisMode.NFT
        self._require_contract(address, mode)

        def call(function: str) -> Callable[[], Any]:
            return lambda: self.chain.call_read_only(address, ERC721_METADATA_ABI, function)

        submitted_at = time.monotonic()
        results = self._join({
            "name": executor.submit(call("name")),
            "symbol": executor.submit(call("symbol")),
            "totalSupply": executor.submit(call("totalSupply")),
        }, submitted_at)

        name = self._degrade(results["name"], UNKNOWN, address, mode)
        symbol = self._degrade(results["symbol"], UNKNOWN, address, mode)
        total_supply = self._degrade(results["totalSupply"], UNKNOWN, address, mode)

        return NFTReport(
            address=address,
            name=str(name),
            symbol=str(symbol),
            total_supply=str(total_supply),
        )


def parse_contract_source(address: str, raw: Dict[str, Any]) -> ContractReport:
    """Turn an Etherscan getsourcecode record into a ContractReport."""
    source_code = raw.get("SourceCode") or None
    verified = source_code is not None and source_code != "0x"

    abi = None
    abi_text = raw.get("ABI")
    if abi_text and abi_text != UNVERIFIED_ABI:
        try:
            abi = json.loads(abi_text)
        except ValueError as e:
            logger.warning(f"Could not parse ABI for {address}: {e}")

    return ContractReport(
        address=address,
        name=raw.get("ContractName") or None,
        compiler_version=raw.get("CompilerVersion") or None,
        verified=verified,
        abi=abi,
        source_code=source_code,
        constructor_arguments=raw.get("ConstructorArguments") or None,
    )
