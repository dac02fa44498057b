"""Tests for HTML to Markdown conversion."""

import pytest

from sitebook.conversion import HtmlToMarkdown
from sitebook.conversion.markdown import TAG_KINDS, NodeKind, collapse_blank_lines


class TestHtmlToMarkdown:
    """Tests for HtmlToMarkdown."""

    @pytest.fixture
    def converter(self):
        return HtmlToMarkdown()

    @pytest.mark.parametrize("level", [1, 2, 3, 4, 5, 6])
    def test_headings(self, converter, level):
        """Test that hN becomes N hashes."""
        result = converter.convert(f"<h{level}>Title</h{level}>")

        assert result == f"{'#' * level} Title\n"

    def test_ordered_list(self, converter):
        """Test a simple ordered list."""
        assert converter.convert("<ol><li>one</li><li>two</li></ol>") == "1. one\n2. two\n"

    def test_ordered_list_start(self, converter):
        """Test that the start attribute is honored."""
        assert converter.convert('<ol start="3"><li>x</li><li>y</li></ol>') == "3. x\n4. y\n"

    def test_nested_list(self, converter):
        """Test that nested items are indented under their parent."""
        html = """
        <ul>
          <li>a
            <ul><li>b</li></ul>
          </li>
          <li>c</li>
        </ul>
        """
        assert converter.convert(html) == "* a\n  * b\n* c\n"

    def test_nested_ordered_in_unordered(self, converter):
        """Test mixed list types number independently."""
        html = "<ul><li>top<ol><li>first</li><li>second</li></ol></li></ul>"

        assert converter.convert(html) == "* top\n  1. first\n  2. second\n"

    def test_list_between_paragraphs(self, converter):
        """Test block spacing around lists."""
        html = "<p>Before</p><ul><li>item</li></ul><p>After</p>"

        assert converter.convert(html) == "Before\n\n* item\n\nAfter\n"

    def test_paragraph_whitespace_collapsed(self, converter):
        """Test that runs of whitespace in text collapse to one space."""
        assert converter.convert("<p>hello\n     world</p>") == "hello world\n"

    def test_code_block_with_language(self, converter):
        """Test fenced code blocks with a language hint."""
        html = '<pre><code class="language-python">def f():\n    return 1\n</code></pre>'

        assert converter.convert(html) == "```python\ndef f():\n    return 1\n```\n"

    def test_code_block_containing_fence(self, converter):
        """Test that code containing ``` gets a longer fence."""
        html = "<pre>```\nnested\n```</pre>"

        assert converter.convert(html) == "````\n```\nnested\n```\n````\n"

    def test_code_block_keeps_blank_lines(self, converter):
        """Test that blank lines inside code are not collapsed."""
        html = "<pre><code>a\n\n\n\nb</code></pre>"

        assert converter.convert(html) == "```\na\n\n\n\nb\n```\n"

    def test_inline_code(self, converter):
        """Test inline code spans."""
        assert converter.convert("<p>Run <code>make</code> now</p>") == "Run `make` now\n"

    def test_inline_code_with_backtick(self, converter):
        """Test inline code containing a backtick."""
        assert converter.convert("<p><code>a`b</code></p>") == "``a`b``\n"

    def test_emphasis(self, converter):
        """Test strong, emphasis and strikethrough."""
        html = "<p>This is <strong>bold</strong>, <em>soft</em> and <del>gone</del></p>"

        assert converter.convert(html) == "This is **bold**, *soft* and ~~gone~~\n"

    def test_emphasis_keeps_outer_spaces(self, converter):
        """Test that whitespace inside an emphasis tag stays outside the markers."""
        assert converter.convert("<p>a<b> bold </b>b</p>") == "a **bold** b\n"

    def test_link(self, converter):
        """Test link rendering."""
        assert converter.convert('<p><a href="https://x.example.com/a">X</a></p>') == "[X](https://x.example.com/a)\n"

    def test_link_without_href(self, converter):
        """Test that a link without a target renders as text."""
        assert converter.convert("<p><a>plain</a></p>") == "plain\n"

    def test_empty_link_dropped(self, converter):
        """Test that a link without text renders nothing."""
        assert converter.convert('<p>x<a href="/y"></a></p>') == "x\n"

    def test_image(self, converter):
        """Test image rendering."""
        html = '<img src="https://x.example.com/a.png" alt="Diagram">'

        assert converter.convert(html) == "![Diagram](https://x.example.com/a.png)\n"

    def test_lazy_image(self, converter):
        """Test that data-src is used when src is missing."""
        assert converter.convert('<img data-src="https://x.example.com/b.png">') == "![](https://x.example.com/b.png)\n"

    def test_blockquote(self, converter):
        """Test blockquote prefixing."""
        html = "<blockquote><p>first</p><p>second</p></blockquote>"

        assert converter.convert(html) == "> first\n>\n> second\n"

    def test_line_break_and_rule(self, converter):
        """Test br and hr."""
        assert converter.convert("<p>one<br>two</p><hr>") == "one  \ntwo\n\n---\n"

    def test_table(self, converter):
        """Test that the first row becomes the header and pipes are escaped."""
        html = """
        <table>
          <thead><tr><th>Name</th><th>Value</th></tr></thead>
          <tbody>
            <tr><td>a</td><td>x|y</td></tr>
            <tr><td>b</td></tr>
          </tbody>
        </table>
        """
        expected = "| Name | Value |\n| --- | --- |\n| a | x\\|y |\n| b |  |\n"

        assert converter.convert(html) == expected

    def test_table_without_thead(self, converter):
        """Test that a table without thead still gets one header row."""
        html = "<table><tr><td>h1</td><td>h2</td></tr><tr><td>1</td><td>2</td></tr></table>"

        assert converter.convert(html) == "| h1 | h2 |\n| --- | --- |\n| 1 | 2 |\n"

    def test_nested_table_rows_not_merged(self, converter):
        """Test that rows of an inner table are not rows of the outer one."""
        html = "<table><tr><td>outer<table><tr><td>inner</td></tr></table></td></tr></table>"
        lines = converter.convert(html).strip().split("\n")

        assert len(lines) == 2
        assert "outer" in lines[0]
        assert "inner" in lines[0]

    def test_dropped_and_hidden_nodes(self, converter):
        """Test that scripts, styles, comments and hidden elements vanish."""
        html = """
        <div>
          <script>alert(1)</script>
          <style>p { color: red; }</style>
          <!-- a comment -->
          <p style="display: none">hidden</p>
          <p>shown</p>
        </div>
        """
        assert converter.convert(html) == "shown\n"

    def test_unknown_tags_are_transparent(self, converter):
        """Test that unknown elements render their children."""
        assert converter.convert("<custom-card><p>inside</p></custom-card>") == "inside\n"

    def test_empty_input(self, converter):
        """Test that empty input yields an empty string."""
        assert converter.convert("") == ""
        assert converter.convert("   ") == ""

    def test_malformed_input(self, converter):
        """Test that unbalanced markup still converts."""
        result = converter.convert("<div><p>unclosed <b>bold")

        assert "unclosed" in result
        assert "bold" in result

    def test_internal_failure_falls_back_to_text(self, converter, monkeypatch):
        """Test that a rendering failure returns the plain text."""

        def broken(tag, state):
            raise RuntimeError("boom")

        monkeypatch.setattr(converter, "_render_children", broken)

        assert converter.convert("<p>Plain <b>text</b></p>") == "Plain \ntext\n"

    def test_every_mapped_tag_has_a_handler(self, converter):
        """Test that each node kind used in the tag table is dispatchable."""
        assert set(TAG_KINDS.values()) | {NodeKind.CONTAINER} <= set(converter._handlers)


class TestCollapseBlankLines:
    """Tests for collapse_blank_lines."""

    def test_collapses_outside_fences(self):
        """Test that blank runs shrink to one line."""
        assert collapse_blank_lines("a\n\n\n\nb") == "a\n\nb"

    def test_keeps_fenced_content(self):
        """Test that fenced blocks are untouched."""
        text = "```\n1\n\n\n2\n```"

        assert collapse_blank_lines(text) == text

    def test_drops_single_leading_space(self):
        """Test that one leading space is removed but indentation is kept."""
        assert collapse_blank_lines(" text\n  * nested") == "text\n  * nested"
