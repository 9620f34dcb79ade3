"""
Error hierarchy for BlockTracker.

Fatal errors abort an analysis and their message is shown to the user as is.
IndexerNoDataError is a soft failure: the aggregator absorbs it and never
lets it reach the caller.
"""

from typing import Any, Dict, Optional


class BlockTrackerError(Exception):
    """Base exception for all BlockTracker errors."""

    def __init__(self, message: str, address: Optional[str] = None,
                 mode: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.address = address
        self.mode = mode
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "address": self.address,
            "mode": self.mode,
            "details": self.details,
        }


class ConfigurationError(BlockTrackerError, ValueError):
    """Missing API key or unsupported network."""


class FatalAnalysisError(BlockTrackerError):
    """The requested analysis cannot produce any report."""


class InvalidAddressError(FatalAnalysisError):
    """Input is not 0x followed by 40 hex characters."""

    def __init__(self, address: str):
        super().__init__(
            "Invalid Ethereum address format. Must start with 0x and be 42 characters long.",
            address=address)


class ChainConnectionError(FatalAnalysisError):
    """The JSON-RPC provider could not be reached."""


class ChainStateError(FatalAnalysisError):
    """Balance, nonce or block height could not be read."""


class NotAContractError(FatalAnalysisError):
    """No code is deployed at the address."""

    def __init__(self, address: str, mode: Optional[str] = None):
        super().__init__(
            "This address is not a smart contract (no code deployed)",
            address=address, mode=mode)


class ContractInfoUnavailableError(FatalAnalysisError):
    """The indexer holds no source record for the contract."""

    def __init__(self, address: str, mode: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(
            "Failed to fetch contract information",
            address=address, mode=mode, details=details)


class IndexerNoDataError(BlockTrackerError):
    """Etherscan answered with a non-1 status or a non-list result."""
