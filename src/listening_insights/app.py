from __future__ import annotations

import argparse
import json
import os
import sys

from listening_insights.aggregator import aggregate
from listening_insights.config import Settings, configure_logging, load_local_env_file
from listening_insights.errors import ListeningInsightsError


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Summarize your Spotify top tracks")
    parser.add_argument(
        "--access-token",
        default=os.getenv("SPOTIFY_ACCESS_TOKEN"),
        help="Access token (defaults to SPOTIFY_ACCESS_TOKEN env)",
    )
    parser.add_argument(
        "--refresh-token",
        default=os.getenv("SPOTIFY_REFRESH_TOKEN"),
        help="Refresh token (defaults to SPOTIFY_REFRESH_TOKEN env)",
    )
    parser.add_argument("--json", action="store_true", help="Print the raw response payload as JSON")
    return parser.parse_args(argv)


def format_report(payload: dict) -> str:
    lines = ["Average audio features"]
    for name, value in sorted(payload["features"].items()):
        lines.append(f"  {name:<17}{value:10.4f}")
    lines.append("")
    lines.append("Top genres")
    if not payload["genres"]:
        lines.append("  (none)")
    for rank, genre in enumerate(payload["genres"], start=1):
        lines.append(f"  {rank}. {genre['name']} ({genre['count']})")
    if payload.get("access_token"):
        lines.append("")
        lines.append("Access token was refreshed; store the new one for later runs.")
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    load_local_env_file()
    args = parse_args(argv)
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    try:
        payload = aggregate(args.access_token or "", args.refresh_token or "", settings=settings)
    except ListeningInsightsError as exc:
        print(f"Error ({exc.kind}): {exc.message}", file=sys.stderr)
        return 1

    print(json.dumps(payload, indent=2) if args.json else format_report(payload))
    return 0


if __name__ == "__main__":
    sys.exit(main())
