"""Markets subcommand: fetch (one aggregation pass, printed)."""

from __future__ import annotations

import asyncio
import json

import typer

from polyhub.aggregation.aggregator import MarketAggregator
from polyhub.api.filters import filter_markets
from polyhub.ingestion.errors import UpstreamError
from polyhub.ingestion.polymarket.gamma import GammaClient
from polyhub.models.market import UnifiedMarket

app = typer.Typer(help="Market aggregation from the Gamma API")


async def _aggregate(settings, target: int) -> list[UnifiedMarket]:
    async with GammaClient.from_settings(settings) as client:
        aggregator = MarketAggregator.from_settings(client, settings)
        return await aggregator.aggregate(target)


@app.command("fetch")
def fetch(
    ctx: typer.Context,
    limit: int = typer.Option(50, "--limit", "-n", help="Target number of entries"),
    kind: str | None = typer.Option(None, "--type", "-t", help="featured | trending"),
    as_json: bool = typer.Option(False, "--json", help="Print the response data as JSON"),
) -> None:
    """Run one aggregation pass against Gamma and print the ranked list."""
    settings = ctx.obj["settings"]
    target = max(1, min(settings.max_limit, limit))
    try:
        merged = asyncio.run(_aggregate(settings, target))
    except UpstreamError as e:
        typer.echo(f"Upstream error: {e}", err=True)
        raise typer.Exit(1)
    data = filter_markets(merged, kind, target)
    if as_json:
        typer.echo(json.dumps([m.model_dump(mode="json", by_alias=True) for m in data], indent=2))
        return
    for m in data:
        question = (m.question or "")[:60]
        typer.echo(f"  {m.id[:20]:<20}  {m.total_volume:>14,.0f}  {m.category.id:<13}  {question}")
    typer.echo(f"Total: {len(data)} of {len(merged)} aggregated")
