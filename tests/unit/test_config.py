"""Unit tests for ExtractorConfig and logging setup.

Tests environment loading and range validation.
"""

import logging
import math

import pytest
import pytest_check as check
from pydantic import ValidationError

from docextract.config import NOISY_LOGGERS, ExtractorConfig, configure_logging, get_extractor_config


class TestExtractorConfig:
    """Tests for ExtractorConfig validation."""

    def test_defaults(self) -> None:
        """Config extracts every page across the full width by default."""
        config = ExtractorConfig()

        assert config.page_min == 1
        assert config.page_max == 1000
        assert config.x_range_min == -math.inf
        assert config.x_range_max == math.inf
        assert config.show_page_numbers is False

    def test_explicit_values(self) -> None:
        """Config accepts explicit values for all fields."""
        config = ExtractorConfig(
            page_min=2, page_max=5, x_range_min=0.0, x_range_max=300.0, show_page_numbers=True
        )

        assert config.page_min == 2
        assert config.page_max == 5
        assert config.x_range_min == 0.0
        assert config.x_range_max == 300.0
        assert config.show_page_numbers is True

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Environment variables provide defaults."""
        monkeypatch.setenv("DOCEXTRACT_PAGE_MIN", "3")
        monkeypatch.setenv("DOCEXTRACT_PAGE_MAX", "7")
        monkeypatch.setenv("DOCEXTRACT_X_RANGE_MIN", "50")
        monkeypatch.setenv("DOCEXTRACT_X_RANGE_MAX", "550.5")
        monkeypatch.setenv("DOCEXTRACT_SHOW_PAGE_NUMBERS", "yes")

        config = get_extractor_config()

        check.equal(config.page_min, 3)
        check.equal(config.page_max, 7)
        check.equal(config.x_range_min, 50.0)
        check.equal(config.x_range_max, 550.5)
        check.is_true(config.show_page_numbers)

    @pytest.mark.parametrize("flag", ["false", "0", "no", ""])
    def test_page_number_flag_off(self, monkeypatch: pytest.MonkeyPatch, flag: str) -> None:
        """Anything other than a truthy word disables page markers."""
        monkeypatch.setenv("DOCEXTRACT_SHOW_PAGE_NUMBERS", flag)

        assert get_extractor_config().show_page_numbers is False

    def test_malformed_environment_value(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A non-numeric page bound raises ValueError."""
        monkeypatch.setenv("DOCEXTRACT_PAGE_MIN", "first")

        with pytest.raises(ValueError):
            get_extractor_config()

    def test_rejects_page_zero(self) -> None:
        """Pages are numbered from 1."""
        with pytest.raises(ValidationError) as exc_info:
            ExtractorConfig(page_min=0)

        assert "page_min" in str(exc_info.value)

    def test_rejects_inverted_page_range(self) -> None:
        """page_max below page_min is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            ExtractorConfig(page_min=5, page_max=2)

        assert "page_max" in str(exc_info.value)

    def test_rejects_empty_x_range(self) -> None:
        """The horizontal window must have positive width."""
        with pytest.raises(ValidationError) as exc_info:
            ExtractorConfig(x_range_min=100.0, x_range_max=100.0)

        assert "x_range_max" in str(exc_info.value)

    def test_single_page_range(self) -> None:
        """A range of one page is valid."""
        config = ExtractorConfig(page_min=4, page_max=4)

        assert config.page_min == config.page_max == 4


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_quiets_third_party_loggers(self) -> None:
        """PDF and font library loggers only report errors."""
        configure_logging("DEBUG")

        for name in NOISY_LOGGERS:
            check.equal(logging.getLogger(name).level, logging.ERROR)
