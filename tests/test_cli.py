"""Tests for the command-line interface."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from sitebook.cli import build_config, create_parser, main
from sitebook.host.protocols import SeedContext
from sitebook.models.events import RunStats

SEED_HTML = """
<html><head><title>Example Docs</title></head><body>
<nav><ul><li><a href="/intro">Intro</a></li><li><a href="/setup">Setup</a></li></ul></nav>
<main><p>Welcome.</p></main>
</body></html>
"""


class TestBuildConfig:
    """Tests for turning arguments into a SitebookConfig."""

    @pytest.fixture
    def parser(self):
        return create_parser()

    def test_flags_override_defaults(self, parser):
        """Test that CLI flags land in the right config sections."""
        args = parser.parse_args(
            [
                "https://docs.example.com/intro",
                "--format",
                "both",
                "--title",
                "Handbook",
                "--page-delay",
                "1.5",
                "--max-pages",
                "10",
                "--image-batch-size",
                "2",
                "--no-images",
                "-v",
            ]
        )
        config = build_config(args)

        assert config.url == "https://docs.example.com/intro"
        assert config.output.format == "both"
        assert config.output.title == "Handbook"
        assert config.crawl.page_delay == 1.5
        assert config.crawl.max_pages == 10
        assert config.images.batch_size == 2
        assert config.images.enabled is False
        assert config.log_level == "DEBUG"

    def test_yaml_merged_with_flags(self, parser, tmp_path):
        """Test that flags override the YAML file and untouched keys survive."""
        path = tmp_path / "sitebook.yaml"
        path.write_text(
            "url: https://docs.example.com/start\n"
            "crawl:\n  page_delay: 0.8\n  max_pages: 5\n"
            "output:\n  format: composite\n"
        )
        args = parser.parse_args(["--config", str(path), "--max-pages", "7", "-q"])
        config = build_config(args)

        assert config.url == "https://docs.example.com/start"
        assert config.crawl.page_delay == 0.8
        assert config.crawl.max_pages == 7
        assert config.output.format == "composite"
        assert config.log_level == "ERROR"

    def test_defaults_without_flags(self, parser):
        """Test that no flags keeps the model defaults."""
        config = build_config(parser.parse_args(["https://docs.example.com/intro"]))

        assert config.output.directory == Path("./sitebook-output")
        assert config.images.enabled is True


class TestMain:
    """Tests for the main entry point."""

    def test_missing_url(self, capsys):
        """Test that running without a URL fails."""
        assert main([]) == 1
        assert "seed page URL" in capsys.readouterr().out

    def test_invalid_config(self, tmp_path, capsys):
        """Test that an invalid config file is reported."""
        path = tmp_path / "bad.yaml"
        path.write_text("crawl:\n  max_depth: 3\n")

        assert main(["--config", str(path)]) == 1
        assert "Configuration error" in capsys.readouterr().out

    def test_preview(self, capsys):
        """Test that --preview lists pages through the host's seed page."""
        seed = SeedContext(url="https://docs.example.com/intro", html=SEED_HTML)

        with patch("sitebook.cli.LocalHostBridge") as mock_host_cls:
            host = MagicMock()
            host.load_seed = AsyncMock(return_value=seed)
            mock_host_cls.return_value.__aenter__ = AsyncMock(return_value=host)
            mock_host_cls.return_value.__aexit__ = AsyncMock(return_value=None)

            code = main(["https://docs.example.com/intro", "--preview", "-q"])

        assert code == 0
        out = capsys.readouterr().out
        assert "Setup" in out
        assert "2 pages" in out

    def test_generate(self, capsys):
        """Test a full run through a mocked host and generator."""
        seed = SeedContext(url="https://docs.example.com/intro", html=SEED_HTML)
        artifact = MagicMock(stats=RunStats(pages_discovered=2, pages_fetched=2))

        with patch("sitebook.cli.LocalHostBridge") as mock_host_cls, patch("sitebook.cli.Generator") as mock_gen_cls:
            host = MagicMock(delivered=[Path("out/example-docs.zip")])
            host.load_seed = AsyncMock(return_value=seed)
            mock_host_cls.return_value.__aenter__ = AsyncMock(return_value=host)
            mock_host_cls.return_value.__aexit__ = AsyncMock(return_value=None)
            mock_gen_cls.return_value.generate = AsyncMock(return_value=[artifact])

            code = main(["https://docs.example.com/intro", "--no-images"])

        assert code == 0
        out = capsys.readouterr().out
        assert "Pages fetched: 2" in out
        assert "example-docs.zip" in out

    def test_seed_fetch_failure(self, capsys):
        """Test that an unreachable seed page exits with an error."""
        from sitebook.errors import FetchError

        with patch("sitebook.cli.LocalHostBridge") as mock_host_cls:
            host = MagicMock()
            host.load_seed = AsyncMock(side_effect=FetchError("https://x.example.com", "HTTP 500"))
            mock_host_cls.return_value.__aenter__ = AsyncMock(return_value=host)
            mock_host_cls.return_value.__aexit__ = AsyncMock(return_value=None)

            code = main(["https://x.example.com", "-q"])

        assert code == 1
        assert "Could not load seed page" in capsys.readouterr().out
