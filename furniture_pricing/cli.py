from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer
import yaml

from .calculators.margins import clamp_margin, margin_from_markup, markup_from_margin, price_from_cost
from .calculators.pricing import compute_pricing, price_summary
from .models import CostBreakdown, PriceSummary
from .store import PriceSheetError, PriceSheetStore, SettingsStore
from .utils import money

logger = logging.getLogger(__name__)

app = typer.Typer(help="Furniture shop pricing CLI", no_args_is_help=True)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log fallback and sync decisions")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _load_settings(path: str):
    try:
        return SettingsStore(path).load()
    except PriceSheetError as e:
        typer.echo(str(e))
        raise typer.Exit(code=2)


def _echo_breakdown(bd: CostBreakdown, summary: PriceSummary) -> None:
    typer.echo("Labor")
    for entry in bd.labor.breakdown:
        detail = f" ({entry.detail})" if entry.detail else f" {entry.hours:g} h @ {money(entry.rate)}"
        typer.echo(f"  {entry.type}{detail}: {money(entry.cost)}")
    typer.echo(f"  total: {money(bd.labor.cost)}")
    m = bd.materials
    typer.echo("Materials")
    typer.echo(f"  wood: {money(m.wood.base_cost)} + waste {money(m.wood.waste_cost)} = {money(m.wood.total_cost)}")
    for name in ("sheet", "hardware", "upholstery", "finishing"):
        typer.echo(f"  {name}: {money(getattr(m, name).cost)}")
    typer.echo(f"  total: {money(m.total)}")
    typer.echo(f"CNC: {bd.cnc.runtime:g} h @ {money(bd.cnc.rate)} = {money(bd.cnc.cost)}")
    typer.echo(f"Overhead: {bd.overhead.hours:g} h @ {money(bd.overhead.rate)} = {money(bd.overhead.cost)}")
    typer.echo(f"Components: {money(bd.components_cost)}")
    typer.echo(f"Cost: {money(summary.cost)}")
    typer.echo(f"Wholesale: {money(summary.wholesale)}")
    typer.echo(f"MSRP: {money(summary.msrp)}")


@app.command()
def price(
    item_file: str = typer.Argument(..., help="YAML or JSON file with the calculator input"),
    settings: str = typer.Option("configs/settings.yaml", help="Rate settings file"),
    as_json: bool = typer.Option(False, "--json", help="Emit the breakdown as JSON"),
    preserve_wood: bool = typer.Option(False, help="Keep hand-entered wood costs instead of catalog prices"),
):
    """Price one piece, component or custom project against the rate settings."""
    path = Path(item_file)
    if not path.exists():
        typer.echo(f"Input not found: {path}")
        raise typer.Exit(code=2)
    try:
        item = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        typer.echo(f"Could not parse {path}: {e}")
        raise typer.Exit(code=2)

    rate_settings = _load_settings(settings)
    bd = compute_pricing(item, rate_settings, preserve_wood_overrides=preserve_wood)
    summary = price_summary(bd, rate_settings)
    if as_json:
        typer.echo(json.dumps({**bd.as_dict(), "totals": summary.model_dump()}, indent=2))
    else:
        _echo_breakdown(bd, summary)


@app.command()
def margin(
    cost: float = typer.Argument(..., help="Total cost"),
    margin_percent: float = typer.Option(..., "--margin", help="Wholesale margin percent"),
    msrp_percent: Optional[float] = typer.Option(None, "--msrp", help="MSRP margin percent, applied on wholesale"),
):
    """Convert a cost into wholesale (and optionally MSRP) prices."""
    wholesale_margin = clamp_margin(margin_percent)
    if wholesale_margin != margin_percent:
        typer.echo(f"[warn] margin clamped to {wholesale_margin:g}%")
    wholesale = price_from_cost(cost, wholesale_margin)
    markup = markup_from_margin(wholesale_margin)
    typer.echo(f"Wholesale: {money(wholesale)} (markup x{markup:.3f}, margin {margin_from_markup(markup):.1f}%)")
    if msrp_percent is not None:
        typer.echo(f"MSRP: {money(price_from_cost(wholesale, clamp_margin(msrp_percent)))}")


@app.command("list")
def list_items(sheet: str = typer.Option("price_sheet.yaml", help="Price sheet file")):
    """Show saved price sheet entries with their cost and any manual price."""
    try:
        items = PriceSheetStore(sheet).list()
    except PriceSheetError as e:
        typer.echo(str(e))
        raise typer.Exit(code=2)
    if not items:
        typer.echo("Price sheet is empty.")
        return
    for item in items:
        kind = "component" if item.is_component else ("custom" if item.is_custom else "piece")
        line = f"{item.id}  {item.display_name} [{kind}] v{item.version}: {money(item.cost)}"
        if item.manual_price is not None:
            line += f" (manual price {money(item.manual_price)})"
        typer.echo(line)


@app.command()
def sync(
    item_id: str = typer.Argument(..., help="Price sheet entry id"),
    sheet: str = typer.Option("price_sheet.yaml", help="Price sheet file"),
    settings: str = typer.Option("configs/settings.yaml", help="Rate settings file"),
    expected_version: Optional[int] = typer.Option(None, help="Reject the sync if the entry changed since this version"),
    preserve_wood: bool = typer.Option(False, help="Keep hand-entered wood costs instead of catalog prices"),
):
    """Re-price a saved entry against the current rate settings."""
    rate_settings = _load_settings(settings)
    store = PriceSheetStore(sheet)
    try:
        before = store.get(item_id)
        after = store.sync(item_id, rate_settings, expected_version=expected_version, preserve_wood_overrides=preserve_wood)
    except PriceSheetError as e:
        typer.echo(str(e))
        raise typer.Exit(code=2)
    typer.echo(f"Synced {after.display_name}: {money(before.cost)} -> {money(after.cost)} (v{after.version})")


if __name__ == "__main__":  # pragma: no cover
    app()
