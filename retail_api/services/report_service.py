"""Markdown report rendering module.

Renders an InsightsReport as a Markdown document: the insights as bullet
points followed by one table per analysis.
"""
from typing import Any, Optional, Sequence

from retail_api.schemas.insights import InsightsReport


def _cell(value: Any) -> str:
    if value is None:
        return "—"
    if isinstance(value, float):
        return f"{value:,.2f}"
    return str(value).replace("|", "\\|")


def markdown_table(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> list[str]:
    """Render rows as a GitHub-flavoured Markdown table."""
    if not rows:
        return ["_No data available._"]

    lines = [
        "| " + " | ".join(headers) + " |",
        "| " + " | ".join("---" for _ in headers) + " |",
    ]
    lines.extend("| " + " | ".join(_cell(v) for v in row) + " |" for row in rows)
    return lines


def _pct(value: Optional[float]) -> str:
    return "—" if value is None else f"{value:+.2f}%"


def render_markdown(report: InsightsReport, title: str = "Retail Sales Window Analytics") -> str:
    """
    Render the insights report as Markdown.

    Args:
        report: Insights together with the five result sets
        title: Document heading

    Returns:
        Markdown text ending in a newline
    """
    lines = [
        f"# {title}",
        "",
        f"_Generated {report.generated_at:%Y-%m-%d %H:%M} UTC_",
        "",
        "## Key insights",
        "",
    ]
    if report.insights:
        lines.extend(f"- **{i.title}.** {i.detail}" for i in report.insights)
    else:
        lines.append("_No transactions recorded yet._")

    top = report.top_products
    lines += ["", f"## Top {top.top_n} products by region and quarter", ""]
    lines += markdown_table(
        ["Region", "Quarter", "Rank", "Product", "Category", "Units", "Revenue"],
        [
            (i.region, f"{i.year} Q{i.quarter}", i.rank, i.product_name, i.category, i.units_sold, i.revenue)
            for i in top.items
        ],
    )

    lines += ["", "## Monthly running totals", ""]
    lines += markdown_table(
        ["Month", "Monthly total", "Running total"],
        [(i.month, i.monthly_total, i.running_total) for i in report.running_totals.items],
    )

    lines += ["", "## Month-over-month growth", ""]
    lines += markdown_table(
        ["Month", "Monthly total", "Previous month", "Growth"],
        [(i.month, i.monthly_total, i.previous_total, _pct(i.growth_pct)) for i in report.growth.items],
    )

    quartiles = report.spending_quartiles
    lines += ["", f"## Customer spending buckets (NTILE {quartiles.buckets})", ""]
    lines += markdown_table(
        ["Bucket", "Customer", "Region", "Purchases", "Total spent"],
        [
            (i.quartile, i.customer_name, i.region, i.purchase_count, i.total_spent)
            for i in quartiles.items
        ],
    )
    if quartiles.summary:
        lines.append("")
        lines += markdown_table(
            ["Bucket", "Customers", "Min", "Max", "Average", "Total"],
            [
                (s.quartile, s.customer_count, s.min_spent, s.max_spent, s.avg_spent, s.total_spent)
                for s in quartiles.summary
            ],
        )

    averages = report.moving_averages
    lines += ["", f"## {averages.window}-month moving average", ""]
    lines += markdown_table(
        ["Month", "Monthly total", "Moving average", "Months in window"],
        [(i.month, i.monthly_total, i.moving_average, i.months_in_window) for i in averages.items],
    )

    return "\n".join(lines) + "\n"
