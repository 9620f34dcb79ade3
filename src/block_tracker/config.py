import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

from .exceptions import ConfigurationError

# Load environment variables from .env file
load_dotenv()

# Etherscan v2 selects the chain with a chainid parameter
CHAIN_IDS = {
    "mainnet": 1,
    "sepolia": 11155111,
    "holesky": 17000,
}


def _is_placeholder(value: Optional[str]) -> bool:
    return not value or not value.strip() or value.strip().lower().startswith("your_")


@dataclass
class Config:
    """Application configuration."""

    # API Keys
    alchemy_api_key: str
    etherscan_api_key: str

    # Network: mainnet, sepolia or holesky
    network: str = "mainnet"

    # API URLs
    etherscan_base_url: str = "https://api.etherscan.io/v2/api"

    # Analysis settings
    recent_tx_limit: int = 10
    token_transfer_limit: int = 100
    token_balance_cap: int = 10
    request_timeout: float = 10.0
    lookup_timeout: float = 10.0
    rate_limit_delay: float = 0.2  # seconds between API calls

    # Output settings
    log_level: str = "WARNING"

    def __post_init__(self):
        self.network = self.network.strip().lower()
        if self.network not in CHAIN_IDS:
            raise ConfigurationError(
                f"Unsupported network '{self.network}'. Use one of: {', '.join(CHAIN_IDS)}")

    @property
    def provider_url(self) -> str:
        return f"https://eth-{self.network}.g.alchemy.com/v2/{self.alchemy_api_key}"

    @property
    def chain_id(self) -> int:
        return CHAIN_IDS[self.network]

    @property
    def is_mainnet(self) -> bool:
        return self.network == "mainnet"

    def validate(self) -> None:
        """Raise ConfigurationError unless both API keys are present."""
        missing = []
        if _is_placeholder(self.alchemy_api_key):
            missing.append("ALCHEMY_API_KEY")
        if _is_placeholder(self.etherscan_api_key):
            missing.append("ETHERSCAN_API_KEY")
        if missing:
            raise ConfigurationError(
                f"{' and '.join(missing)} environment variable is required",
                details={"missing": missing})

    @classmethod
    def from_env(cls) -> "Config":
        """Create config from environment variables."""
        try:
            config = cls(
                alchemy_api_key=os.getenv("ALCHEMY_API_KEY", ""),
                etherscan_api_key=os.getenv("ETHERSCAN_API_KEY", ""),
                network=os.getenv("NETWORK", "mainnet"),
                etherscan_base_url=os.getenv(
                    "ETHERSCAN_BASE_URL", "https://api.etherscan.io/v2/api"),
                recent_tx_limit=int(os.getenv("RECENT_TX_LIMIT", "10")),
                token_transfer_limit=int(os.getenv("TOKEN_TRANSFER_LIMIT", "100")),
                token_balance_cap=int(os.getenv("TOKEN_BALANCE_CAP", "10")),
                request_timeout=float(os.getenv("REQUEST_TIMEOUT", "10.0")),
                lookup_timeout=float(os.getenv("LOOKUP_TIMEOUT", "10.0")),
                rate_limit_delay=float(os.getenv("RATE_LIMIT_DELAY", "0.2")),
                log_level=os.getenv("LOG_LEVEL", "WARNING").upper(),
            )
        except ValueError as e:
            if isinstance(e, ConfigurationError):
                raise
            raise ConfigurationError(f"Invalid configuration value: {e}") from e
        config.validate()
        return config
