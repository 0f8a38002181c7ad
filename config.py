"""Configuration management with environment variable support."""

import logging
import os
from dataclasses import dataclass, field
from typing import Literal


@dataclass(frozen=True)
class RedisConfig:
    """Redis connection configuration."""

    host: str = field(default_factory=lambda: os.getenv("REDIS_HOST", "localhost"))
    port: int = field(default_factory=lambda: int(os.getenv("REDIS_PORT", "6379")))
    db: int = field(default_factory=lambda: int(os.getenv("REDIS_DB", "0")))
    password: str | None = field(default_factory=lambda: os.getenv("REDIS_PASSWORD"))

    @property
    def url(self) -> str:
        """Build Redis connection URL."""
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


@dataclass(frozen=True)
class EventStoreConfig:
    """Event sink selection."""

    backend: Literal["memory", "redis"] = field(
        default_factory=lambda: os.getenv("EVENT_STORE", "memory").lower()  # type: ignore
    )
    stream_prefix: str = field(
        default_factory=lambda: os.getenv("EVENT_STREAM_PREFIX", "blackjack")
    )

    def __post_init__(self) -> None:
        if self.backend not in ("memory", "redis"):
            raise ValueError(f"Unknown event store backend: {self.backend}")


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""

    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())


@dataclass(frozen=True)
class GameConfig:
    """
    Table rules and limits.

    Fixed for the lifetime of a table; a new table is needed to change them.
    """

    # Buy-in limits (moved from global to local wallet on join)
    min_buy_in: int = 1000
    max_buy_in: int = 100000

    # Main bet limits
    min_wager: int = 250
    max_wager: int = 10000

    # Payout ratios
    payout: int = 1  # Regular win pays 1:1
    insurance_payout: float = 2.0  # 2:1
    blackjack_payout: float = 1.5  # 3:2
    surrender_payout: float = 0.5  # Half the stake back

    # Shoe
    num_decks: int = 6
    penetration: float = 0.65

    # Table
    seats: int = 3
    dealer_hits_soft_17: bool = False

    def __post_init__(self) -> None:
        """Validate rule combinations."""
        if self.min_buy_in < 0 or self.max_buy_in < self.min_buy_in:
            raise ValueError("buy-in limits must satisfy 0 <= min_buy_in <= max_buy_in")
        if self.min_wager < 1 or self.max_wager < self.min_wager:
            raise ValueError("wager limits must satisfy 1 <= min_wager <= max_wager")
        if self.payout < 1:
            raise ValueError("payout must be at least 1")
        if self.blackjack_payout < 1.0:
            raise ValueError("blackjack_payout must be at least 1.0")
        if not 0.0 <= self.surrender_payout <= 1.0:
            raise ValueError("surrender_payout must be between 0 and 1")
        if self.num_decks < 1 or self.num_decks > 8:
            raise ValueError("num_decks must be between 1 and 8")
        if self.seats < 1 or self.seats > 3:
            raise ValueError("seats must be between 1 and 3")


@dataclass(frozen=True)
class AppConfig:
    """Application configuration."""

    debug: bool = field(default_factory=lambda: os.getenv("DEBUG", "false").lower() == "true")

    redis: RedisConfig = field(default_factory=RedisConfig)
    event_store: EventStoreConfig = field(default_factory=EventStoreConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    game: GameConfig = field(default_factory=GameConfig)


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for the engine."""
    level = level or config.logging.level
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Global configuration instance
config = AppConfig()
