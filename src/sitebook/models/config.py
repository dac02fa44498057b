"""Pydantic configuration models for sitebook."""

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


class ByteSize(int):
    """
    Custom type that parses human-readable byte sizes.

    Accepts:
        - Integers (bytes)
        - Strings like '200kb', '1mb', '5gb'

    Examples:
        >>> ByteSize._parse('200kb')
        204800
        >>> ByteSize._parse('1mb')
        1048576
        >>> ByteSize._parse(1024)
        1024
    """

    @classmethod
    def __get_pydantic_core_schema__(cls, source: Any, handler: Any) -> Any:
        from pydantic_core import core_schema

        return core_schema.no_info_plain_validator_function(cls._parse)

    @classmethod
    def _parse(cls, v: Any) -> int:
        if isinstance(v, int):
            return v
        if isinstance(v, str):
            v = v.lower().strip()
            # Order matters: check longer suffixes first
            units = [("gb", 1024**3), ("mb", 1024**2), ("kb", 1024), ("b", 1)]
            for unit, mult in units:
                if v.endswith(unit):
                    num_str = v[: -len(unit)].strip()
                    try:
                        return int(float(num_str) * mult)
                    except ValueError as err:
                        raise ValueError(f"Invalid number in byte size: {v}") from err
            try:
                return int(v)
            except ValueError:
                pass
        raise ValueError(f"Invalid byte size: {v}. Use format like '200kb', '1mb', or integer bytes.")


class CrawlConfig(BaseModel):
    """Configuration for navigation discovery and page fetching."""

    nav_selectors: Optional[list[str]] = Field(
        None,
        description="CSS selectors for navigation links (None = built-in list)",
    )
    page_delay: float = Field(0.3, ge=0, description="Seconds to wait after each page fetch")
    allowed_host: Optional[str] = Field(
        None,
        description="Host whose links count as in-site (None = host of the seed page)",
    )
    max_pages: Optional[int] = Field(None, ge=1, description="Maximum pages to fetch (None = unlimited)")

    model_config = {"extra": "forbid"}


class ImageConfig(BaseModel):
    """Configuration for image collection and download."""

    enabled: bool = Field(True, description="Download images and rewrite them to local paths")
    batch_size: int = Field(5, ge=1, description="Images downloaded concurrently per batch")
    batch_delay: float = Field(0.2, ge=0, description="Seconds to wait between batches")
    timeout: float = Field(20.0, gt=0, description="Per-image request timeout in seconds")
    max_image_size: ByteSize = Field(
        ByteSize(20 * 1024 * 1024),
        description="Largest accepted image (e.g., '5mb')",
    )

    model_config = {"extra": "forbid"}


class NetworkConfig(BaseModel):
    """Configuration for the HTTP clients used by the local host."""

    proxy: Optional[str] = Field(None, description="HTTP/HTTPS proxy URL")
    user_agent: Optional[str] = Field(None, description="User-Agent for direct fetches")
    privileged_user_agent: Optional[str] = Field(
        None,
        description="User-Agent for the fallback fetch (None = browser-like default)",
    )
    max_retries: int = Field(2, ge=0, description="Retry attempts for the fallback fetch")
    read_timeout: int = Field(30, ge=5, description="Read timeout in seconds")

    model_config = {"extra": "forbid"}


class OutputConfig(BaseModel):
    """Configuration for the produced artifacts."""

    directory: Path = Field(Path("./sitebook-output"), description="Directory artifacts are written to")
    format: Literal["markdown", "composite", "both"] = Field(
        "markdown",
        description="Markdown bundle, composite print document, or both",
    )
    title: Optional[str] = Field(None, description="Document title (None = seed page title)")
    write_failure_report: bool = Field(True, description="Write the image failure report when needed")

    model_config = {"extra": "forbid"}


class SitebookConfig(BaseModel):
    """
    Root configuration model for sitebook.

    Example:
        config = SitebookConfig(
            url="https://docs.example.com/intro",
            output=OutputConfig(directory=Path("./book"), format="both"),
        )

    YAML format:
        url: https://docs.example.com/intro
        crawl:
          page_delay: 0.5
        images:
          batch_size: 3
        output:
          format: composite
    """

    url: Optional[str] = Field(None, description="Seed page URL")

    crawl: CrawlConfig = Field(default_factory=CrawlConfig)
    images: ImageConfig = Field(default_factory=ImageConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO",
        description="Logging level",
    )
    log_file: Optional[Path] = Field(None, description="Log file path")

    model_config = {"extra": "forbid"}

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        import yaml

        return yaml.dump(self.model_dump(mode="json", exclude_none=True), default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "SitebookConfig":
        """Load config from YAML string."""
        import yaml

        data = yaml.safe_load(yaml_str) or {}
        return cls.model_validate(data)

    @classmethod
    def from_yaml_file(cls, path: Path) -> "SitebookConfig":
        """Load config from YAML file."""
        return cls.from_yaml(path.read_text())
