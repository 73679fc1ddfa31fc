import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


@dataclass
class Config:
    """Application configuration."""

    # API Keys
    etherscan_api_key: Optional[str] = None

    # API URLs
    etherscan_base_url: str = "https://api.etherscan.io/api"

    # Pagination settings
    page_size: int = 10000
    max_pages: int = 100  # 0 disables the page budget
    max_retries: int = 0
    retry_backoff: float = 1.0  # seconds, multiplied by the attempt number
    request_timeout: float = 30.0
    rate_limit_delay: float = 0.2  # seconds between API calls

    # Cache settings
    cache_ttl: float = 300.0
    cache_max_entries: int = 1024

    # Price used when Etherscan cannot answer
    fallback_eth_price: Decimal = Decimal("2000")

    # Output settings
    output_format: str = "table"  # table, json
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "Config":
        """Create config from environment variables."""
        return cls(
            etherscan_api_key=os.getenv("ETHERSCAN_API_KEY") or None,
            etherscan_base_url=os.getenv(
                "ETHERSCAN_BASE_URL", "https://api.etherscan.io/api"),
            page_size=int(os.getenv("PAGE_SIZE", "10000")),
            max_pages=int(os.getenv("MAX_PAGES", "100")),
            max_retries=int(os.getenv("MAX_RETRIES", "0")),
            retry_backoff=float(os.getenv("RETRY_BACKOFF", "1.0")),
            request_timeout=float(os.getenv("REQUEST_TIMEOUT", "30")),
            rate_limit_delay=float(os.getenv("RATE_LIMIT_DELAY", "0.2")),
            cache_ttl=float(os.getenv("CACHE_TTL", "300")),
            cache_max_entries=int(os.getenv("CACHE_MAX_ENTRIES", "1024")),
            fallback_eth_price=Decimal(
                os.getenv("FALLBACK_ETH_PRICE", "2000")),
            output_format=os.getenv("OUTPUT_FORMAT", "table"),
            log_level=os.getenv("LOG_LEVEL", "WARNING").upper(),
        )
