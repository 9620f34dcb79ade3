"""
Intelligence prompt rendering.

Turns a report into a markdown request for an external AI assistant. The
output depends only on the report, the mode and the supplied timestamp.
"""

from datetime import datetime
from typing import Union

from .models import AnalysisMode, ContractReport, NFTReport, Report, WalletReport
from .utils import format_date

RECENT_TX_EXCERPT = 5

HEADER = """# Blockchain Intelligence Analysis Request

**Analysis Type:** {mode}
**Generated:** {generated_at}
**Network:** Ethereum

---

## Target Information

"""

WALLET_TASKS = """## Analysis Tasks

Please analyze this Ethereum wallet and provide insights on:

1. **Activity Patterns**: Analyze transaction frequency, timing, and patterns
2. **Fund Flow**: Identify major inflows/outflows and unusual transfers
3. **Entity Classification**: Is this likely an exchange, individual, contract, or other entity?
4. **Risk Assessment**: Flag any suspicious patterns or high-risk behaviors
5. **Associated Addresses**: Identify frequently interacting addresses
6. **Token Portfolio Analysis**: Evaluate the token holdings for diversification and risk
7. **Wallet Behavior**: Based on tokens held, what type of investor/user is this?
"""

CONTRACT_TASKS = """## Analysis Tasks

Please analyze this smart contract and provide insights on:

1. **Contract Purpose**: What does this contract do?
2. **Security Assessment**: Are there any known vulnerabilities or red flags?
3. **Usage Patterns**: How active is this contract?
4. **Token Analysis**: If this is a token contract, analyze tokenomics
5. **Upgrade Status**: Is this contract upgradeable? Who controls it?
"""

NFT_TASKS = """## Analysis Tasks

Please analyze this NFT collection and provide insights on:

1. **Collection Overview**: Project background and legitimacy
2. **Market Activity**: Trading volume, floor price trends
3. **Holder Analysis**: Distribution of ownership, whale concentration
4. **Rarity & Traits**: Notable trait distributions if available
5. **Contract Security**: Is the contract safe? Any mint/transfer restrictions?
"""

OUTPUT_FORMAT = """
---

## Output Format

Please provide:
1. **Executive Summary** (2-3 sentences)
2. **Key Findings** (bullet points)
3. **Risk Level** (Low/Medium/High with justification)
4. **Recommendations** (actionable next steps)

**Note:** This is an automated intelligence request. Focus on factual, evidence-based analysis."""


def _wallet_section(report: WalletReport) -> str:
    lines = [f"**Address:** {report.address}"]
    if report.ens_name:
        lines.append(f"**ENS Name:** {report.ens_name}")
    lines += [
        f"**ETH Balance:** {report.balance}",
        f"**Transaction Count:** {report.transaction_count}",
        f"**First Activity:** {format_date(report.first_activity)}",
        "",
        "## ERC-20 Token Holdings",
        "",
    ]
    if report.tokens:
        lines += [f"- **{t.name} ({t.symbol})**: {t.balance}" for t in report.tokens]
    else:
        lines.append("No ERC-20 tokens detected")
    lines += ["", WALLET_TASKS, "## Recent Transaction Context", ""]

    excerpt = report.transactions[:RECENT_TX_EXCERPT]
    if excerpt:
        for i, tx in enumerate(excerpt, 1):
            to = tx.to_address or "Contract Creation"
            status = ", Status: Failed" if tx.failed else ""
            lines.append(f"{i}. Hash: {tx.hash}, Value: {tx.value}, To: {to}{status}")
    else:
        lines.append("No recent transactions available")
    lines.append("")
    return "\n".join(lines) + "\n"


def _contract_section(report: ContractReport) -> str:
    return (
        f"**Contract Address:** {report.address}\n"
        f"**Name:** {report.name or 'Unknown'}\n"
        f"**Compiler:** {report.compiler_version or 'Unknown'}\n"
        f"**Verified:** {'Yes' if report.verified else 'No'}\n"
        f"\n{CONTRACT_TASKS}\n"
    )


def _nft_section(report: NFTReport) -> str:
    return (
        f"**Collection Address:** {report.address}\n"
        f"**Name:** {report.name or 'Unknown'}\n"
        f"**Symbol:** {report.symbol or 'Unknown'}\n"
        f"**Total Supply:** {report.total_supply or 'Unknown'}\n"
        f"**Standard:** {report.standard}\n"
        f"\n{NFT_TASKS}\n"
    )


def render_intelligence_prompt(report: Report, mode: Union[AnalysisMode, str],
                               generated_at: datetime) -> str:
    """Render the AI analysis prompt for a report."""
    mode = AnalysisMode(mode)
    prompt = HEADER.format(mode=mode.value.upper(), generated_at=generated_at.isoformat())

    if mode is AnalysisMode.WALLET and isinstance(report, WalletReport):
        prompt += _wallet_section(report)
    elif mode is AnalysisMode.CONTRACT and isinstance(report, ContractReport):
        prompt += _contract_section(report)
    elif mode is AnalysisMode.NFT and isinstance(report, NFTReport):
        prompt += _nft_section(report)
    else:
        raise ValueError(
            f"{type(report).__name__} cannot be rendered as a {mode.value} prompt")

    return prompt + OUTPUT_FORMAT
