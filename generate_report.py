#!/usr/bin/env python
"""
Retail Insights Report Script

Fetches the window-function analyses and their business insights from the
Retail Window Analytics API and prints them or writes them to a file.

Usage:
    python generate_report.py
    python generate_report.py --output REPORT.md
    python generate_report.py --format json --output insights.json
"""
import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict

import httpx


class ReportClient:
    """Thin client for the analytics endpoints."""

    def __init__(self, api_url: str = "http://localhost:8000", timeout: int = 60):
        """
        Initialize client.

        Args:
            api_url: Base URL of the Retail Window Analytics API
            timeout: Request timeout in seconds
        """
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    def _get(self, path: str) -> httpx.Response:
        with httpx.Client(timeout=self.timeout) as client:
            response = client.get(f"{self.api_url}{path}")
            response.raise_for_status()
            return response

    def fetch_markdown(self) -> str:
        """Fetch the rendered Markdown report."""
        return self._get("/analytics/report").text

    def fetch_insights(self) -> Dict[str, Any]:
        """Fetch insights and the underlying result sets as JSON."""
        return self._get("/analytics/insights").json()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Generate the retail window-analytics insights report",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--url",
        type=str,
        default="http://localhost:8000",
        help="Base API URL (default: http://localhost:8000)"
    )
    parser.add_argument(
        "--format",
        choices=("markdown", "json"),
        default="markdown",
        help="Output format (default: markdown)"
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Write the report to this file instead of stdout"
    )
    args = parser.parse_args()

    client = ReportClient(api_url=args.url)
    try:
        if args.format == "json":
            content = json.dumps(client.fetch_insights(), indent=2, ensure_ascii=False)
        else:
            content = client.fetch_markdown()
    except httpx.HTTPError as e:
        print(f"❌ API error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.output:
        args.output.write_text(content, encoding="utf-8")
        print(f"💾 Report written to {args.output}")
    else:
        print(content)


if __name__ == "__main__":
    main()
