"""End-to-end tests for Generator against an in-memory host."""

import pytest

from sitebook import Generator, NoPagesDiscoveredError, SitebookConfig
from sitebook.host.protocols import SeedContext
from sitebook.images.rewriter import WARNING_PREFIX
from sitebook.models.document import CompositeDocument, MarkdownBundle
from sitebook.models.events import EventType

BASE = "https://docs.example.com"

TREE_NAV = """
<nav class="sidebar">
  <ul>
    <li><a href="/intro">Intro</a>
      <ul><li><a href="/setup">Setup</a></li></ul>
    </li>
  </ul>
</nav>
"""


@pytest.fixture
def config():
    return SitebookConfig.model_validate(
        {
            "crawl": {"page_delay": 0},
            "images": {"batch_delay": 0},
        }
    )


@pytest.fixture
def seed(page):
    return SeedContext(url=f"{BASE}/intro", html=page("Intro", "<p>Welcome to the docs.</p>", nav=TREE_NAV))


class TestGeneratorScenarios:
    """Whole-run behavior."""

    @pytest.mark.asyncio
    async def test_missing_page_becomes_placeholder_section(self, fake_host, config, seed):
        """Test that a 404 page is a placeholder section and the run completes."""
        host = fake_host()
        bundle = await Generator(host, config).generate_markdown(seed)

        assert isinstance(bundle, MarkdownBundle)
        markdown = bundle.markdown
        assert "# Intro" in markdown
        assert "Welcome to the docs." in markdown
        assert "# Setup" in markdown
        assert "Page fetch failed" in markdown
        assert markdown.index("# Intro\n") < markdown.index("# Setup\n")
        assert bundle.stats.pages_fetched == 1
        assert bundle.stats.pages_failed == 1
        assert host.delivered == [bundle]

    @pytest.mark.asyncio
    async def test_no_navigation_fails_run(self, fake_host, config, page):
        """Test that a seed page without navigation raises before fetching."""
        host = fake_host()
        events = []
        seed = SeedContext(url=f"{BASE}/intro", html=page("Lonely", "<p>No sidebar here.</p>"))

        with pytest.raises(NoPagesDiscoveredError):
            await Generator(host, config, on_event=events.append).generate_markdown(seed)

        assert host.html_calls == []
        assert host.delivered == []
        assert events[-1].type == EventType.FAILED

    @pytest.mark.asyncio
    async def test_shared_and_failed_images(self, fake_host, config, seed, page, png_bytes):
        """Test one download per image URL and one warning per failed image."""
        shared = f"{BASE}/img/shared.png"
        seed = SeedContext(
            url=seed.url,
            html=page("Intro", '<p>Overview <img src="/img/shared.png" alt="Shared"></p>', nav=TREE_NAV),
        )
        host = fake_host(
            pages={
                f"{BASE}/setup": page(
                    "Setup",
                    '<p>Again <img src="/img/shared.png" alt="Shared"></p>'
                    '<p>Broken <img src="/img/broken.png" alt="Broken"></p>'
                    '<p>Extra <img src="/img/extra.png" alt="Extra"></p>',
                )
            },
            images={
                shared: ("image/png", png_bytes),
                f"{BASE}/img/extra.png": ("image/png", png_bytes),
                f"{BASE}/img/broken.png": 404,
            },
        )

        bundle = await Generator(host, config).generate_markdown(seed)

        assert host.binary_calls.count(shared) == 1
        local = next(image.relative_path for image in bundle.images if image.original_url == shared)
        assert local.startswith("./images/img_1_")
        assert bundle.markdown.count(f"]({local})") == 2
        assert bundle.markdown.count(WARNING_PREFIX) == 1
        assert bundle.failure_report is not None
        assert bundle.failure_report.count(f"1. {BASE}/img/broken.png") == 1
        assert bundle.stats.images_total == 3
        assert bundle.stats.images_downloaded == 2
        assert bundle.stats.images_failed == 1

    @pytest.mark.asyncio
    async def test_all_images_succeed(self, fake_host, config, page, png_bytes):
        """Test that a clean run has no failure report and no warnings."""
        seed = SeedContext(url=f"{BASE}/intro", html=page("Intro", '<p>Pic <img src="/a.png"></p>', nav=TREE_NAV))
        host = fake_host(
            pages={f"{BASE}/setup": page("Setup", '<p>Pic <img src="/b.png"></p>')},
            images={f"{BASE}/a.png": ("image/png", png_bytes), f"{BASE}/b.png": ("image/png", png_bytes)},
        )

        bundle = await Generator(host, config).generate_markdown(seed)

        assert bundle.failure_report is None
        assert WARNING_PREFIX not in bundle.markdown
        assert len(bundle.images) == 2

    @pytest.mark.asyncio
    async def test_lazy_image_points_at_local_copy(self, fake_host, config, page, png_bytes):
        """Test that a relative data-src image is downloaded and referenced locally."""
        seed = SeedContext(
            url=f"{BASE}/intro",
            html=page("Intro", '<p>Lazy <img data-src="img/lazy.png" alt="Lazy"></p>', nav=TREE_NAV),
        )
        host = fake_host(
            pages={f"{BASE}/setup": page("Setup")},
            images={f"{BASE}/img/lazy.png": ("image/png", png_bytes)},
        )

        markdown, composite = await Generator(host, config).generate(seed, formats=["markdown", "composite"])

        local = markdown.images[0].relative_path
        assert f"![Lazy]({local})" in markdown.markdown
        assert "img/lazy.png" not in markdown.markdown
        assert f'src="{local}"' in composite.html
        assert f"{BASE}/img/lazy.png" not in composite.html

    @pytest.mark.asyncio
    async def test_images_disabled(self, fake_host, config, page, png_bytes):
        """Test that disabled images keep remote URLs and fetch nothing."""
        config.images.enabled = False
        seed = SeedContext(url=f"{BASE}/intro", html=page("Intro", '<p>Pic <img src="/a.png"></p>', nav=TREE_NAV))
        host = fake_host(images={f"{BASE}/a.png": ("image/png", png_bytes)})

        bundle = await Generator(host, config).generate_markdown(seed)

        assert host.binary_calls == []
        assert f"({BASE}/a.png)" in bundle.markdown

    @pytest.mark.asyncio
    async def test_runs_do_not_share_state(self, fake_host, config, page, png_bytes):
        """Test that a second run starts from a fresh context."""
        seed = SeedContext(url=f"{BASE}/intro", html=page("Intro", '<p>Pic <img src="/a.png"></p>', nav=TREE_NAV))
        host = fake_host(
            pages={f"{BASE}/setup": page("Setup")},
            images={f"{BASE}/a.png": ("image/png", png_bytes)},
        )
        generator = Generator(host, config)

        first = await generator.generate_markdown(seed)
        second = await generator.generate_markdown(seed)

        assert [i.local_filename for i in first.images] == [i.local_filename for i in second.images]
        assert second.stats.pages_fetched == first.stats.pages_fetched == 2
        assert second.stats.pages_discovered == 2
        assert first.stats is not second.stats


class TestGeneratorApi:
    """Tests for the Generator entry points."""

    @pytest.mark.asyncio
    async def test_generate_both_formats_share_one_run(self, fake_host, config, seed, page):
        """Test that both artifacts come from a single fetch pass."""
        host = fake_host(pages={f"{BASE}/setup": page("Setup", "<p>Install.</p>")})

        artifacts = await Generator(host, config).generate(seed, formats=["markdown", "composite"])

        assert [type(a) for a in artifacts] == [MarkdownBundle, CompositeDocument]
        assert host.html_calls == [f"{BASE}/setup"]
        assert host.delivered == artifacts
        assert artifacts[0].stats is artifacts[1].stats

    @pytest.mark.asyncio
    async def test_generate_uses_configured_format(self, fake_host, config, seed, page):
        """Test the output.format default."""
        config.output.format = "both"
        host = fake_host(pages={f"{BASE}/setup": page("Setup")})

        artifacts = await Generator(host, config).generate(seed)

        assert [a.filename for a in artifacts] == ["intro.md", "intro.html"]

    @pytest.mark.asyncio
    async def test_generate_rejects_unknown_format(self, fake_host, config, seed):
        """Test that an unknown format fails before any fetching."""
        host = fake_host()

        with pytest.raises(ValueError):
            await Generator(host, config).generate(seed, formats=["pdf"])
        assert host.html_calls == []

    @pytest.mark.asyncio
    async def test_generate_composite(self, fake_host, config, seed, page):
        """Test the composite document entry point."""
        host = fake_host(pages={f"{BASE}/setup": page("Setup", "<p>Install.</p>")})

        composite = await Generator(host, config).generate_composite(seed)

        assert '<h1 class="chapter-title" id="bookmark-0">1. Intro</h1>' in composite.html
        assert '<h2 class="chapter-title" id="bookmark-1">2. Setup</h2>' in composite.html
        assert host.delivered == [composite]

    @pytest.mark.asyncio
    async def test_event_sequence(self, fake_host, config, seed, page):
        """Test lifecycle events in order."""
        host = fake_host(pages={f"{BASE}/setup": page("Setup")})
        events = []

        await Generator(host, config, on_event=events.append).generate_markdown(seed)

        types = [e.type for e in events]
        assert types[0] == EventType.STARTED
        assert types[1] == EventType.DISCOVERY_COMPLETE
        assert events[1].total == 2
        assert types[-2] == EventType.ARTIFACT_DELIVERED
        assert types[-1] == EventType.COMPLETED

    def test_preview(self, fake_host, config, seed):
        """Test that preview lists pages without fetching."""
        host = fake_host()

        preview = Generator(host, config).preview(seed)

        assert preview.title == "Intro"
        assert preview.page_count == 2
        assert [(p.title, p.level) for p in preview.pages] == [("Intro", 1), ("Setup", 2)]
        assert host.html_calls == []

    def test_max_pages(self, fake_host, config, seed):
        """Test that crawl.max_pages truncates the page list."""
        config.crawl.max_pages = 1

        pages = Generator(fake_host(), config).discover(seed)

        assert [p.title for p in pages] == ["Intro"]

    @pytest.mark.asyncio
    async def test_configured_title(self, fake_host, config, seed, page):
        """Test that output.title names the document and its file."""
        config.output.title = "Example Handbook"
        host = fake_host(pages={f"{BASE}/setup": page("Setup")})

        bundle = await Generator(host, config).generate_markdown(seed)

        assert bundle.markdown.startswith("# Example Handbook\n")
        assert bundle.filename == "example-handbook.md"
