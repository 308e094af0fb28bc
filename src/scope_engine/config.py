"""Zone Scope Engine configuration settings.

Loads tunables from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

# Load .env file so local overrides apply without exporting variables
load_dotenv()


@dataclass
class Settings:
    """Engine settings loaded from environment variables."""

    # Metrics
    default_height_ft: float = field(
        default_factory=lambda: float(os.getenv("SCOPE_DEFAULT_HEIGHT_FT", "8.0"))
    )
    metric_precision: int = field(
        default_factory=lambda: int(os.getenv("SCOPE_METRIC_PRECISION", "2"))
    )

    # Validation
    quantity_tolerance: float = field(
        default_factory=lambda: float(os.getenv("SCOPE_QUANTITY_TOLERANCE", "1.2"))
    )

    # Resolution
    resolver_iteration_cap: int = field(
        default_factory=lambda: int(os.getenv("SCOPE_RESOLVER_ITERATION_CAP", "10000"))
    )

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    def validate(self) -> None:
        """Validate settings values.

        Raises:
            ValueError: If a setting is outside its usable range.
        """
        if self.default_height_ft <= 0:
            raise ValueError("SCOPE_DEFAULT_HEIGHT_FT must be positive")
        if self.quantity_tolerance < 1.0:
            raise ValueError("SCOPE_QUANTITY_TOLERANCE must be at least 1.0")
        if self.resolver_iteration_cap < 1:
            raise ValueError("SCOPE_RESOLVER_ITERATION_CAP must be at least 1")
        if self.metric_precision < 0:
            raise ValueError("SCOPE_METRIC_PRECISION cannot be negative")


# Global settings instance
settings = Settings()
