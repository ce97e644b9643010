"""CLI for mirror_resolver."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Literal

from mirror_resolver.config import ConfigError, ResolverConfig
from mirror_resolver.engine import MirrorEngine
from mirror_resolver.outcome_cache import OutcomeCache
from mirror_resolver.resolver import TOPIC_FAILED, TOPIC_SUCCEEDED, ResolutionResult
from mirror_resolver.resource import ImageResource
from mirror_resolver.rewriter import PreemptiveRewriter
from mirror_resolver.state import ResourceRegistry
from mirror_resolver.transports import BrowserProbeTransport, HttpProbeTransport
from utils.log_utils import tprint
from utils.settings_store import deep_log, get_settings, load_settings_file, update_settings

OutputFormat = Literal["text", "json"]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Find working mirrors for image URLs whose host is unreachable."
    )
    parser.add_argument("urls", nargs="+", help="Broken image URLs (e.g. https://k03.mbdny.org/a/1.jpg).")
    parser.add_argument(
        "--transport",
        choices=["http", "browser"],
        default="http",
        help="Probe with plain HTTP requests or a headless Chromium image load.",
    )
    parser.add_argument("--timeout-ms", type=int, default=None, help="Per-probe deadline.")
    parser.add_argument("--max-attempts", type=int, default=None, help="Candidates per URL.")
    parser.add_argument("--settings", default=None, help="Path to a JSON settings file.")
    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format.",
    )
    parser.add_argument(
        "--guess",
        action="store_true",
        help="Print the fast-swap guess for each URL without any network access.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable deep logging.")
    return parser


def _load_config(args: argparse.Namespace) -> ResolverConfig:
    settings = load_settings_file(args.settings) if args.settings else get_settings()
    overrides: dict[str, Any] = {}
    if args.timeout_ms is not None:
        overrides["probe_timeout_ms"] = args.timeout_ms
    if args.max_attempts is not None:
        overrides["max_attempts"] = args.max_attempts
    if args.verbose:
        overrides["log_level"] = "DEEP"
    if overrides:
        settings = update_settings(**overrides)
    return ResolverConfig.from_settings(settings)


def _make_transport(name: str, config: ResolverConfig) -> HttpProbeTransport | BrowserProbeTransport:
    if name == "browser":
        return BrowserProbeTransport()
    return HttpProbeTransport(min_content_bytes=config.min_content_bytes)


async def _resolve_all(
    urls: list[str], config: ResolverConfig, transport_name: str
) -> list[dict[str, Any]]:
    async with _make_transport(transport_name, config) as transport:
        engine = MirrorEngine.create(transport, config)
        resources = [ImageResource(url) for url in urls]
        settled: dict[int, ResolutionResult] = {}

        def _on_settled(payload: dict[str, Any]) -> None:
            settled[id(payload["resource"])] = payload["result"]

        engine.bus.subscribe(TOPIC_SUCCEEDED, _on_settled)
        engine.bus.subscribe(TOPIC_FAILED, _on_settled)
        try:
            await asyncio.gather(*(engine.resolver.resolve(r) for r in resources))
            await engine.resolver.wait_pending()
        finally:
            await engine.close()

    rows: list[dict[str, Any]] = []
    for url, resource in zip(urls, resources):
        result = settled.get(id(resource))
        if result is None:
            rows.append({"url": url, "status": "not_applicable", "resolved_url": None})
            continue
        rows.append(
            {
                "url": url,
                "status": result.state.value,
                "resolved_url": result.resolved_url,
                "probed": len(result.attempts),
                "last_error": result.last_error.value if result.last_error else None,
                "retried": result.is_retry_pass,
                "elapsed_ms": result.elapsed_ms,
            }
        )
    return rows


def _guess_all(urls: list[str], config: ResolverConfig) -> list[dict[str, Any]]:
    rewriter = PreemptiveRewriter(OutcomeCache(), ResourceRegistry(), config)
    return [{"url": url, "guess": rewriter.guess(url)} for url in urls]


def _render_text(rows: list[dict[str, Any]]) -> str:
    lines = []
    for row in rows:
        if "guess" in row:
            lines.append(f"{row['url']} -> {row['guess'] or '(no fast swap)'}")
        elif row["resolved_url"]:
            lines.append(f"{row['url']} -> {row['resolved_url']}")
        elif row["status"] == "not_applicable":
            lines.append(f"{row['url']} -> (not a mirror address)")
        else:
            lines.append(f"{row['url']} -> FAILED ({row.get('last_error') or 'no candidates'})")
    return "\n".join(lines)


def _render(rows: list[dict[str, Any]], fmt: OutputFormat) -> str:
    if fmt == "json":
        return json.dumps(rows, ensure_ascii=False, indent=2)
    return _render_text(rows)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = _load_config(args)
    except ConfigError as exc:
        tprint(f"[CLI][ERROR] Invalid settings: {exc}")
        return 2

    if args.guess:
        print(_render(_guess_all(args.urls, config), args.format))
        return 0

    deep_log(f"[DEEP][CLI] Resolving {len(args.urls)} URL(s) via {args.transport}")
    try:
        rows = asyncio.run(_resolve_all(args.urls, config, args.transport))
    except RuntimeError as exc:
        tprint(f"[CLI][ERROR] {exc}")
        return 2
    print(_render(rows, args.format))
    failed = [row for row in rows if row["status"] not in ("succeeded", "not_applicable")]
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
