"""Tests for Markdown report rendering."""
import pytest

from retail_api.services.insights_service import generate_insights
from retail_api.services.report_service import markdown_table, render_markdown


class TestMarkdownTable:
    """Tests for the table helper."""

    def test_header_separator_and_rows(self):
        lines = markdown_table(["Month", "Total"], [("2024-01", 138000.0)])
        assert lines == [
            "| Month | Total |",
            "| --- | --- |",
            "| 2024-01 | 138,000.00 |",
        ]

    def test_none_and_pipes(self):
        lines = markdown_table(["A", "B"], [(None, "x|y")])
        assert lines[-1] == "| — | x\\|y |"

    def test_empty_rows(self):
        assert markdown_table(["A"], []) == ["_No data available._"]


@pytest.mark.asyncio
class TestRenderMarkdown:
    """Rendering the sample report."""

    async def test_sample_report_tables(self, db_session, sample_dataset):
        markdown = render_markdown(await generate_insights(db_session))

        assert markdown.startswith("# Retail Sales Window Analytics\n")
        assert "| 2024-01 | 138,000.00 | 138,000.00 |" in markdown
        assert "| 2024-02 | 120,000.00 | 138,000.00 | -13.04% |" in markdown
        assert "| 2024-03 | 136,000.00 | 131,333.33 | 3 |" in markdown
        assert "| Huye | 2024 Q1 | 1 | Office Chair | Furniture | 1 | 60,000.00 |" in markdown
        assert "## Customer spending buckets (NTILE 4)" in markdown

    async def test_sample_report_insights(self, db_session, sample_dataset):
        markdown = render_markdown(await generate_insights(db_session))
        assert "- **Office Chair is the most frequent regional best-seller.**" in markdown

    async def test_empty_report(self, db_session):
        markdown = render_markdown(await generate_insights(db_session), title="Empty")

        assert markdown.startswith("# Empty\n")
        assert "_No transactions recorded yet._" in markdown
        assert markdown.count("_No data available._") == 5
