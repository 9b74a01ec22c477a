"""Extractor configuration with environment variable loading.

Pydantic-based configuration for PDF text extraction, plus the logging setup
host applications use to route extractor logs.
"""

import logging
import os
import sys

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

# Load environment variables from .env file
load_dotenv()

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
# Third-party loggers that warn on every recoverable PDF quirk
NOISY_LOGGERS = ("pypdf", "pdfminer", "fontTools")


def _env_flag(name: str) -> bool:
    return os.getenv(name, "false").strip().lower() in ("1", "true", "yes", "on")


class ExtractorConfig(BaseModel):
    """Configuration for PDF text extraction.

    Attributes:
        page_min: First page to extract (1-based).
        page_max: Last page to extract, clamped to the document's page count.
        x_range_min: Glyphs whose device x is below this are dropped.
        x_range_max: Glyphs whose device x is at or above this are dropped.
        show_page_numbers: Prefix each page buffer with "Page N".
    """

    page_min: int = Field(
        default_factory=lambda: int(os.getenv("DOCEXTRACT_PAGE_MIN", "1")),
        ge=1,
        description="First page to extract (1-based)",
    )
    page_max: int = Field(
        default_factory=lambda: int(os.getenv("DOCEXTRACT_PAGE_MAX", "1000")),
        ge=1,
        description="Last page to extract (clamped to page count)",
    )
    x_range_min: float = Field(
        default_factory=lambda: float(os.getenv("DOCEXTRACT_X_RANGE_MIN", "-inf")),
        description="Lower bound of the horizontal device-space window (inclusive)",
    )
    x_range_max: float = Field(
        default_factory=lambda: float(os.getenv("DOCEXTRACT_X_RANGE_MAX", "inf")),
        description="Upper bound of the horizontal device-space window (exclusive)",
    )
    show_page_numbers: bool = Field(
        default_factory=lambda: _env_flag("DOCEXTRACT_SHOW_PAGE_NUMBERS"),
        description="Prefix each page with a 'Page N' marker",
    )

    @model_validator(mode="after")
    def validate_ranges(self) -> "ExtractorConfig":
        """Validate that page and horizontal ranges are not inverted."""
        if self.page_max < self.page_min:
            raise ValueError(
                f"page_max ({self.page_max}) must not be less than page_min ({self.page_min})"
            )
        if self.x_range_max <= self.x_range_min:
            raise ValueError(
                f"x_range_max ({self.x_range_max}) must be greater than "
                f"x_range_min ({self.x_range_min})"
            )
        return self


def get_extractor_config() -> ExtractorConfig:
    """Create extractor configuration from environment.

    Returns:
        Configured ExtractorConfig instance.

    Raises:
        ValueError: If an environment value is malformed or ranges are inverted.
    """
    return ExtractorConfig()


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for applications embedding the extractor.

    Args:
        level: Log level name. Defaults to the LOG_LEVEL environment
            variable, or INFO.
    """
    logging.basicConfig(
        level=(level or os.getenv("LOG_LEVEL", "INFO")).upper(),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.ERROR)
