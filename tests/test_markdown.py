"""Tests for the MDX to markdown transformer."""

from __future__ import annotations

from docshelf.ingestion.markdown import (
    transform_callouts,
    transform_cards,
    transform_code_blocks,
    transform_internal_links,
    transform_markdown,
    transform_mcp_component,
    transform_steps,
    transform_tabs,
)


class TestComponents:
    """Test individual component transforms."""

    def test_callout_becomes_blockquote(self) -> None:
        result = transform_callouts("<Note>Remember this</Note>")

        assert "> **📝 Note:**" in result
        assert "Remember this" in result
        assert "<Note>" not in result

    def test_cards_become_bullets(self) -> None:
        result = transform_cards('<CardGroup><Card title="Hooks" href="/hooks">Run scripts</Card></CardGroup>')

        assert "- **Hooks**: Run scripts" in result
        assert "Card" not in result

    def test_tabs_become_sections(self) -> None:
        result = transform_tabs('<Tabs><Tab title="macOS">brew install</Tab></Tabs>')

        assert "### macOS" in result
        assert "brew install" in result

    def test_steps_numbered(self) -> None:
        result = transform_steps("<Steps><Step>First</Step><Step>Second</Step></Steps>")

        assert "1. First" in result
        assert "2. Second" in result

    def test_code_fence_attributes_dropped(self) -> None:
        assert transform_code_blocks("```bash theme={null}\nls\n```") == "```bash\nls\n```"
        assert transform_code_blocks("```python showLineNumbers\nx\n```") == "```python\nx\n```"

    def test_mcp_component_removed(self) -> None:
        assert transform_mcp_component("before <MCPServersTable platform=\"all\" /> after") == "before  after"

    def test_internal_links_rewritten(self) -> None:
        result = transform_internal_links("See [hooks](/en/hooks) for details")

        assert result == "See hooks - Read with `docshelf get hooks` for details"


class TestTransformMarkdown:
    """Test the full pipeline."""

    def test_plain_markdown_only_normalised(self) -> None:
        assert transform_markdown("# Title\r\n\r\n\r\n\r\nBody   \r\n") == "# Title\n\nBody\n"

    def test_components_and_whitespace(self) -> None:
        result = transform_markdown("# Setup\n\n<Tip>\nUse the CLI\n</Tip>\n\n\n\nDone")

        assert result.startswith("# Setup\n")
        assert "💡 Tip" in result
        assert "\n\n\n" not in result
        assert result.endswith("Done\n")
