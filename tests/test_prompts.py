from datetime import datetime, timezone

import pytest

from block_tracker.models import (
    AnalysisMode,
    ContractReport,
    NFTReport,
    TokenHolding,
    TransactionRecord,
    WalletReport,
)
from block_tracker.prompts import render_intelligence_prompt

from conftest import CONTRACT, WALLET

GENERATED_AT = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


def wallet_report(tx_count=0):
    transactions = [
        TransactionRecord(
            hash=f"0x{i:064x}", from_address=WALLET,
            to_address=None if i == 0 else CONTRACT,
            value="0.1000 ETH", timestamp=1700000000 - i, block_number=100 - i,
            failed=i == 1)
        for i in range(tx_count)
    ]
    return WalletReport(
        address=WALLET,
        native_balance="1.5000",
        raw_balance="1500000000000000000",
        transaction_count=5,
        block_number=19000000,
        ens_name="vitalik.eth",
        tokens=[TokenHolding(CONTRACT, "Dai Stablecoin", "DAI", 18, "10.0000", str(10 ** 19))],
        transactions=transactions,
        first_activity=transactions[-1].timestamp if transactions else None,
    )


def test_prompt_is_deterministic():
    report = wallet_report(tx_count=3)

    first = render_intelligence_prompt(report, "wallet", GENERATED_AT)
    second = render_intelligence_prompt(report, AnalysisMode.WALLET, GENERATED_AT)

    assert first == second


def test_wallet_prompt_sections():
    prompt = render_intelligence_prompt(wallet_report(tx_count=2), "wallet", GENERATED_AT)

    assert prompt.startswith("# Blockchain Intelligence Analysis Request")
    assert "**Analysis Type:** WALLET" in prompt
    assert "**Generated:** 2024-05-01T12:30:00+00:00" in prompt
    assert f"**Address:** {WALLET}" in prompt
    assert "**ENS Name:** vitalik.eth" in prompt
    assert "**ETH Balance:** 1.5000 ETH" in prompt
    assert "- **Dai Stablecoin (DAI)**: 10.0000" in prompt
    assert "## Analysis Tasks" in prompt
    assert "## Recent Transaction Context" in prompt
    assert "To: Contract Creation" in prompt
    assert "Status: Failed" in prompt
    assert prompt.endswith("Focus on factual, evidence-based analysis.")


def test_recent_transactions_capped_at_five():
    prompt = render_intelligence_prompt(wallet_report(tx_count=9), "wallet", GENERATED_AT)

    assert "5. Hash:" in prompt
    assert "6. Hash:" not in prompt


def test_empty_wallet_prompt():
    report = WalletReport(
        address=WALLET, native_balance="0.0000", raw_balance="0",
        transaction_count=0, block_number=1)

    prompt = render_intelligence_prompt(report, "wallet", GENERATED_AT)

    assert "No ERC-20 tokens detected" in prompt
    assert "No recent transactions available" in prompt
    assert "**First Activity:** Unknown" in prompt
    assert "ENS Name" not in prompt


def test_contract_prompt():
    report = ContractReport(address=CONTRACT, name="Dai", verified=True)

    prompt = render_intelligence_prompt(report, "contract", GENERATED_AT)

    assert "**Analysis Type:** CONTRACT" in prompt
    assert f"**Contract Address:** {CONTRACT}" in prompt
    assert "**Verified:** Yes" in prompt
    assert "**Compiler:** Unknown" in prompt
    assert "Upgrade Status" in prompt
    assert "Recent Transaction Context" not in prompt


def test_nft_prompt():
    report = NFTReport(address=CONTRACT, name="BoredApeYachtClub", symbol="BAYC")

    prompt = render_intelligence_prompt(report, "nft", GENERATED_AT)

    assert "**Total Supply:** Unknown" in prompt
    assert "**Standard:** ERC-721" in prompt
    assert "Holder Analysis" in prompt


def test_mode_must_match_report():
    with pytest.raises(ValueError):
        render_intelligence_prompt(NFTReport(address=CONTRACT), "wallet", GENERATED_AT)
