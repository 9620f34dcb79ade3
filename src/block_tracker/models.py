"""
Data models for BlockTracker reports.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Callable, Generic, List, Optional, TypeVar, Union

T = TypeVar("T")

UNKNOWN = "Unknown"


class AnalysisMode(str, Enum):
    """Which lookup set runs and which report is produced."""
    WALLET = "wallet"
    CONTRACT = "contract"
    NFT = "nft"


@dataclass
class TokenHolding:
    """ERC-20 balance held by a wallet."""
    contract_address: str
    name: str
    symbol: str
    decimals: int
    balance: str  # 4 decimal places
    raw_balance: str


@dataclass
class TransactionRecord:
    """Normal transaction as listed by the indexer."""
    hash: str
    from_address: str
    to_address: Optional[str]  # None for contract creation
    value: str  # e.g. "0.5000 ETH"
    timestamp: int
    block_number: int
    failed: bool = False

    @property
    def is_contract_creation(self) -> bool:
        return self.to_address is None


@dataclass
class WalletReport:
    """Balance, activity and holdings of an externally owned account."""
    address: str
    native_balance: str
    raw_balance: str
    transaction_count: int
    block_number: int
    ens_name: Optional[str] = None
    tokens: List[TokenHolding] = field(default_factory=list)
    transactions: List[TransactionRecord] = field(default_factory=list)
    first_activity: Optional[int] = None
    mode: AnalysisMode = AnalysisMode.WALLET

    @property
    def balance(self) -> str:
        return f"{self.native_balance} ETH"


@dataclass
class ContractReport:
    """Verified source metadata of a smart contract."""
    address: str
    name: Optional[str] = None
    compiler_version: Optional[str] = None
    verified: bool = False
    abi: Optional[List[Any]] = None
    source_code: Optional[str] = None
    constructor_arguments: Optional[str] = None
    mode: AnalysisMode = AnalysisMode.CONTRACT


@dataclass
class NFTReport:
    """Collection metadata read from an ERC-721 contract."""
    address: str
    name: str = UNKNOWN
    symbol: str = UNKNOWN
    total_supply: str = UNKNOWN
    standard: str = "ERC-721"
    mode: AnalysisMode = AnalysisMode.NFT


Report = Union[WalletReport, ContractReport, NFTReport]


@dataclass
class LookupResult(Generic[T]):
    """Outcome of one independent upstream lookup."""
    name: str
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value if self.error is None else default

    @classmethod
    def capture(cls, name: str, func: Callable[[], T]) -> "LookupResult[T]":
        """Run func and keep either its value or the exception it raised."""
        try:
            return cls(name=name, value=func())
        except Exception as e:
            return cls(name=name, error=e)


def report_to_dict(report: Report) -> dict:
    """Plain dict of a report, suitable for JSON export."""
    data = asdict(report)
    data["mode"] = report.mode.value
    if isinstance(report, WalletReport):
        data["balance"] = report.balance
    return data
