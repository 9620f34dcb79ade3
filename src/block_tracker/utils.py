"""
Utility functions for validation, unit conversion and display formatting.
"""

from typing import Any, Dict, List, Optional, Union
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
import re
import logging

from .exceptions import InvalidAddressError
from .models import TokenHolding, TransactionRecord

logger = logging.getLogger(__name__)

ADDRESS_PATTERN = re.compile(r'^0x[0-9a-fA-F]{40}$')
ETHER_DECIMALS = 18
DISPLAY_PRECISION = 4


def is_valid_ethereum_address(address: str) -> bool:
    """Check if a string is 0x followed by 40 hex characters."""
    if not address or not isinstance(address, str):
        return False
    return bool(ADDRESS_PATTERN.match(address))


def validate_address(address: str) -> str:
    """Return the address with its case preserved, or raise InvalidAddressError."""
    candidate = address.strip() if isinstance(address, str) else address
    if not is_valid_ethereum_address(candidate):
        raise InvalidAddressError(str(address))
    return candidate


def normalize_address(address: str) -> str:
    """Lowercase form used for case-insensitive comparison."""
    if not address:
        return ""
    return address.lower()


def shorten_address(address: Optional[str], start: int = 6, end: int = 4) -> str:
    """Shorten an address or hash for display, e.g. 0x1234...5678."""
    if not address:
        return ""
    if len(address) <= start + end:
        return address
    return f"{address[:start]}...{address[-end:]}"


def to_decimal_units(raw: Union[int, str], decimals: int) -> Decimal:
    """Exact value of a smallest-unit integer in whole units."""
    with localcontext() as ctx:
        ctx.prec = 100
        return Decimal(int(raw)).scaleb(-decimals)


def format_units(raw: Union[int, str], decimals: int = ETHER_DECIMALS,
                 precision: int = DISPLAY_PRECISION) -> str:
    """Convert a smallest-unit integer to a fixed-precision decimal string."""
    quantum = Decimal(1).scaleb(-precision)
    with localcontext() as ctx:
        ctx.prec = 100
        value = to_decimal_units(raw, decimals).quantize(quantum, rounding=ROUND_HALF_UP)
    return f"{value:.{precision}f}"


def format_ether(wei: Union[int, str]) -> str:
    """Wei amount as '<decimal> ETH'."""
    return f"{format_units(wei, ETHER_DECIMALS)} ETH"


def parse_decimals(value: Any, default: int = ETHER_DECIMALS) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def format_date(timestamp: Optional[int]) -> str:
    """Format a unix timestamp (seconds) as a UTC date."""
    if timestamp is None:
        return "Unknown"
    return datetime.fromtimestamp(int(timestamp), tz=timezone.utc).strftime(
        "%b %d, %Y %H:%M UTC")


def format_number(number: Union[int, str]) -> str:
    """Format a number with thousands separators; non-numbers pass through."""
    try:
        value = Decimal(str(number))
    except (InvalidOperation, ValueError, TypeError):
        return str(number)
    if value == value.to_integral_value():
        return f"{int(value):,}"
    return f"{value:,}"


def parse_etherscan_transactions(raw_transactions: List[Dict[str, Any]]) -> List[TransactionRecord]:
    """Parse raw Etherscan txlist entries into TransactionRecord objects."""
    transactions = []

    for tx in raw_transactions or []:
        try:
            transactions.append(TransactionRecord(
                hash=tx['hash'],
                from_address=tx['from'],
                to_address=tx.get('to') or None,
                value=format_ether(tx.get('value') or 0),
                timestamp=int(tx['timeStamp']),
                block_number=int(tx['blockNumber']),
                failed=tx.get('isError') == '1',
            ))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(
                f"Error parsing transaction {tx.get('hash', 'unknown')}: {e}")
            continue

    logger.info(
        f"Parsed {len(transactions)} valid transactions from {len(raw_transactions or [])} raw transactions")
    return transactions


def unique_token_contracts(transfers: List[Dict[str, Any]], cap: int) -> List[Dict[str, Any]]:
    """
    Reduce token transfer events to distinct token contracts.

    Keeps the order in which each contract first appears in the transfer list
    and stops after `cap` contracts.
    """
    seen = {}
    for transfer in transfers or []:
        if len(seen) >= cap:
            break
        if not isinstance(transfer, dict):
            continue
        contract = transfer.get('contractAddress')
        if not contract or normalize_address(contract) in seen:
            continue
        seen[normalize_address(contract)] = {
            'contract_address': contract,
            'name': transfer.get('tokenName') or 'Unknown Token',
            'symbol': transfer.get('tokenSymbol') or 'UNKNOWN',
            'decimals': parse_decimals(transfer.get('tokenDecimal')),
        }
    return list(seen.values())


def build_token_holding(token: Dict[str, Any], raw_balance: int) -> Optional[TokenHolding]:
    """TokenHolding for a strictly positive balance, None otherwise."""
    if raw_balance is None or int(raw_balance) <= 0:
        return None
    return TokenHolding(
        contract_address=token['contract_address'],
        name=token['name'],
        symbol=token['symbol'],
        decimals=token['decimals'],
        balance=format_units(raw_balance, token['decimals']),
        raw_balance=str(int(raw_balance)),
    )


def sort_holdings(holdings: List[TokenHolding]) -> List[TokenHolding]:
    """Sort holdings by decimal balance, largest first."""
    return sorted(
        holdings,
        key=lambda h: to_decimal_units(h.raw_balance, h.decimals),
        reverse=True)
