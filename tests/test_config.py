"""Tests for configuration models and logging setup."""

import logging

import pytest
from pydantic import ValidationError

from sitebook.logging_config import setup_logging
from sitebook.models.config import ByteSize, SitebookConfig


class TestSitebookConfig:
    """Tests for SitebookConfig."""

    def test_defaults(self):
        """Test default settings."""
        config = SitebookConfig()

        assert config.url is None
        assert config.crawl.page_delay == 0.3
        assert config.crawl.nav_selectors is None
        assert config.images.enabled is True
        assert config.images.batch_size == 5
        assert config.images.batch_delay == 0.2
        assert config.images.max_image_size == 20 * 1024 * 1024
        assert config.network.max_retries == 2
        assert config.output.format == "markdown"
        assert config.log_level == "INFO"

    def test_nested_dicts(self):
        """Test construction from nested dictionaries."""
        config = SitebookConfig(
            url="https://docs.example.com/intro",
            crawl={"page_delay": 1.0, "max_pages": 20},
            images={"batch_size": 3, "max_image_size": "5mb"},
        )

        assert config.crawl.page_delay == 1.0
        assert config.crawl.max_pages == 20
        assert config.images.batch_size == 3
        assert config.images.max_image_size == 5 * 1024 * 1024

    def test_extra_fields_forbidden(self):
        """Test that unknown keys are rejected."""
        with pytest.raises(ValidationError):
            SitebookConfig(unknown_option=True)
        with pytest.raises(ValidationError):
            SitebookConfig(crawl={"max_depth": 3})

    @pytest.mark.parametrize(
        "data",
        [
            {"images": {"batch_size": 0}},
            {"crawl": {"page_delay": -1}},
            {"output": {"format": "pdf"}},
            {"log_level": "TRACE"},
            {"network": {"read_timeout": 1}},
        ],
    )
    def test_invalid_values(self, data):
        """Test field constraints."""
        with pytest.raises(ValidationError):
            SitebookConfig.model_validate(data)

    def test_yaml_round_trip(self):
        """Test that YAML output loads back to the same config."""
        config = SitebookConfig(
            url="https://docs.example.com/intro",
            crawl={"nav_selectors": [".menu a[href]"], "page_delay": 0.5},
            output={"format": "both", "title": "Handbook"},
        )

        loaded = SitebookConfig.from_yaml(config.to_yaml())

        assert loaded == config

    def test_from_yaml(self):
        """Test loading YAML text."""
        config = SitebookConfig.from_yaml(
            """
url: https://docs.example.com/intro
crawl:
  page_delay: 0.5
images:
  batch_size: 3
  max_image_size: 2mb
output:
  format: composite
"""
        )

        assert config.url == "https://docs.example.com/intro"
        assert config.crawl.page_delay == 0.5
        assert config.images.max_image_size == 2 * 1024 * 1024
        assert config.output.format == "composite"

    def test_from_empty_yaml(self):
        """Test that an empty document gives the defaults."""
        assert SitebookConfig.from_yaml("") == SitebookConfig()

    def test_from_yaml_file(self, tmp_path):
        """Test loading a YAML file."""
        path = tmp_path / "sitebook.yaml"
        path.write_text("url: https://docs.example.com/intro\n")

        assert SitebookConfig.from_yaml_file(path).url == "https://docs.example.com/intro"


class TestByteSize:
    """Tests for ByteSize parsing."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (1024, 1024),
            ("200kb", 200 * 1024),
            ("1mb", 1024 * 1024),
            ("1.5MB", int(1.5 * 1024 * 1024)),
            ("2gb", 2 * 1024**3),
            ("512b", 512),
            ("4096", 4096),
        ],
    )
    def test_parse(self, value, expected):
        """Test accepted formats."""
        assert ByteSize._parse(value) == expected

    @pytest.mark.parametrize("value", ["lots", "xmb", 1.5, None])
    def test_parse_invalid(self, value):
        """Test rejected values."""
        with pytest.raises(ValueError):
            ByteSize._parse(value)


class TestLogging:
    """Tests for setup_logging."""

    def test_setup_logging_levels(self, tmp_path):
        """Test level, handlers and propagation."""
        logger = setup_logging(level="DEBUG", log_file=tmp_path / "run.log", force=True)

        assert logger.name == "sitebook"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        assert logger.propagate is False

        logging.getLogger("sitebook.discovery").debug("discovering")
        for handler in logger.handlers:
            handler.flush()
        assert "discovering" in (tmp_path / "run.log").read_text()

        for handler in logger.handlers:
            handler.close()
        setup_logging(level="WARNING", force=True)
