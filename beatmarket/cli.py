"""
Beat the Market CLI

Primary commands:
- btm add / remove / show      edit the valuation sheet
- btm stats                    total return (and vs. selected indices)
- btm select list|add|remove   choose comparison symbols
- btm chart                    compose + render + export PNG
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from beatmarket.errors import BeatMarketError

console = Console()

app = typer.Typer(
    add_completion=False,
    help="""Beat the Market: track your portfolio against the indices

\b
  btm add 2024-01-02 10500     Log a valuation
  btm show                     Valuations with % change
  btm select add QQQ           Compare against QQQ too
  btm chart                    Portfolio vs market chart (PNG)

\b
Run 'btm <command> --help' for details.
""",
)
select_app = typer.Typer(add_completion=False, help="Comparison symbols (indices / ETFs)")
app.add_typer(select_app, name="select")

_STYLES = {"success": "green", "error": "bold red", "info": "cyan", "warning": "yellow"}


@dataclass
class _State:
    sheet_path: str | None = None
    selection_path: str | None = None


_state = _State()


def _message(text: str, kind: str = "info") -> None:
    ts = datetime.now().strftime("%H:%M:%S")
    console.print(f"[{_STYLES.get(kind, 'white')}]\\[{ts}] \\[{kind.upper()}] {escape(text)}[/]")


def _fail(text: str) -> None:
    _message(f"ERROR: {text}", "error")
    raise typer.Exit(code=1)


def _settings():
    from beatmarket.config import load_settings

    return load_settings()


def _sheet_path() -> str:
    return _state.sheet_path or _settings().sheet_path


def _selection_path() -> str:
    return _state.selection_path or _settings().selection_path


def _load_store():
    from beatmarket.sheet import read_sheet

    try:
        return read_sheet(_sheet_path())
    except BeatMarketError as e:
        _fail(str(e))


def _load_selection():
    from beatmarket.sheet import read_selection

    try:
        return read_selection(_selection_path(), default=_settings().default_symbols)
    except (BeatMarketError, ValueError) as e:
        _fail(f"could not read selection: {e}")


def _make_provider(demo: bool, seed: int | None):
    if demo:
        from beatmarket.providers import RandomWalkProvider

        return RandomWalkProvider(seed=seed)
    from beatmarket.providers.fmp import FmpReferenceProvider

    return FmpReferenceProvider(_settings())


def _compose(store, selected, demo: bool, seed: int | None):
    from beatmarket.composer import compose_sync

    _message("Fetching market data...", "info")
    try:
        bundle = compose_sync(store, selected, _make_provider(demo, seed))
    except BeatMarketError as e:
        _fail(str(e))
    for w in bundle.warnings:
        _message(w, "warning")
    return bundle


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output."),
    sheet_path: str = typer.Option("", "--sheet-path", help="Override BTM_SHEET (CSV)."),
    selection_path: str = typer.Option("", "--selection-path", help="Override BTM_SELECTION (JSON)."),
):
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    _state.sheet_path = sheet_path or None
    _state.selection_path = selection_path or None


@app.command("add")
def add_cmd(
    day: str = typer.Argument(..., metavar="DATE", help="Valuation date (YYYY-MM-DD)."),
    value: float = typer.Argument(..., help="Portfolio value (must be > 0)."),
):
    """Add a valuation point."""
    from beatmarket.sheet import write_sheet

    store = _load_store()
    try:
        point = store.insert(day, value)
    except BeatMarketError as e:
        _fail(str(e))
    write_sheet(store, _sheet_path())
    _message(f"SUCCESS: Added data point for {point.date}", "success")


@app.command("remove")
def remove_cmd(index: int = typer.Argument(..., help="Row number as shown by `btm show`.")):
    """Remove a valuation point by position."""
    from beatmarket.sheet import write_sheet

    store = _load_store()
    try:
        point = store.remove_at(index)
    except IndexError as e:
        _fail(str(e))
    write_sheet(store, _sheet_path())
    _message(f"Data point removed ({point.date})", "info")


@app.command("show")
def show_cmd():
    """Valuations with percent change against the first point."""
    from beatmarket.performance import percent_change_series
    from beatmarket.utils.formatting import change_style, fmt_signed_pct, fmt_usd

    store = _load_store()
    if store.size() == 0:
        console.print(Panel("No data points yet. Use `btm add DATE VALUE`.", title="Portfolio", expand=False))
        raise typer.Exit(code=0)

    tbl = Table(title="Portfolio valuations")
    tbl.add_column("#", justify="right", style="dim")
    tbl.add_column("date", style="bold")
    tbl.add_column("value", justify="right")
    tbl.add_column("change", justify="right")
    for i, (p, pct) in enumerate(zip(store.all(), percent_change_series(store.values()))):
        tbl.add_row(str(i), p.date, fmt_usd(p.value), f"[{change_style(pct)}]{fmt_signed_pct(pct)}[/]")
    console.print(tbl)


@app.command("stats")
def stats_cmd(
    fetch: bool = typer.Option(False, "--fetch", help="Also compare against the selected symbols."),
    demo: bool = typer.Option(False, "--demo", help="Use the random-walk demo feed instead of FMP."),
    seed: int = typer.Option(None, "--seed", help="Seed for --demo."),
):
    """Total return, number of data points, and excess return vs. the selection."""
    from beatmarket.performance import performance_summary
    from beatmarket.utils.formatting import change_style, fmt_signed_pct

    store = _load_store()
    bundle = _compose(store, _load_selection(), demo, seed) if fetch else None
    s = performance_summary(store, bundle)

    lines = [
        f"total return: [{change_style(s.total_return_pct)}]{fmt_signed_pct(s.total_return_pct)}[/]",
        f"data points: {s.data_points}",
    ]
    if s.first_date:
        lines.append(f"range: {s.first_date} → {s.last_date}")
    for sym, rel in s.relative.items():
        lines.append(f"vs {sym}: [{change_style(rel)}]{fmt_signed_pct(rel)}[/]")
    console.print(Panel("\n".join(lines), title="Stats", expand=False))


@select_app.command("list")
def select_list():
    """Show the selected comparison symbols."""
    selected = _load_selection()
    console.print(Panel(", ".join(selected) or "(none)", title="Selected symbols", expand=False))


@select_app.command("add")
def select_add(symbol: str = typer.Argument(..., help="Ticker, e.g. SPY, QQQ, DIA, IWM, VTI.")):
    """Check a comparison symbol."""
    from beatmarket.sheet import write_selection

    selected = _load_selection()
    selected.toggle(symbol, True)
    write_selection(selected, _selection_path())
    _message(f"Updated index selection: {', '.join(selected)}", "info")


@select_app.command("remove")
def select_remove(symbol: str = typer.Argument(...)):
    """Uncheck a comparison symbol."""
    from beatmarket.sheet import write_selection

    selected = _load_selection()
    selected.toggle(symbol, False)
    write_selection(selected, _selection_path())
    _message(f"Updated index selection: {', '.join(selected) or '(none)'}", "info")


@app.command("chart")
def chart_cmd(
    symbols: str = typer.Option("", "--symbols", "-s", help="Comma list overriding the saved selection."),
    demo: bool = typer.Option(False, "--demo", help="Use the random-walk demo feed instead of FMP."),
    seed: int = typer.Option(None, "--seed", help="Seed for --demo."),
    export: str = typer.Option("", "--export", "-o", help="PNG path (default: BTM_EXPORT_DIR/beat-the-market-portfolio-<date>.png)."),
    no_export: bool = typer.Option(False, "--no-export", help="Only print the composed series."),
):
    """Compose the portfolio against the selected indices and export the chart."""
    from beatmarket.chart import MatplotlibChartSink, assign_colors, default_export_name
    from beatmarket.selection import SelectedSymbols
    from beatmarket.utils.formatting import change_style, fmt_signed_pct

    store = _load_store()
    if symbols.strip():
        selected = SelectedSymbols(s for s in symbols.split(","))
    else:
        selected = _load_selection()
    bundle = _compose(store, selected, demo, seed)

    tbl = Table(title="Portfolio vs Market Performance")
    tbl.add_column("date", style="bold")
    for name in bundle.names:
        tbl.add_column(name, justify="right")
    for i, label in enumerate(bundle.labels):
        cells = [f"[{change_style(s.values[i])}]{fmt_signed_pct(s.values[i])}[/]" for s in bundle.series]
        tbl.add_row(label, *cells)
    console.print(tbl)

    if no_export:
        _message("Chart updated successfully", "success")
        return

    sink = MatplotlibChartSink()
    sink.render(bundle, assign_colors(bundle, sink.style))
    path = Path(export) if export else Path(_settings().export_dir) / default_export_name()
    try:
        out = sink.export(path)
    except (BeatMarketError, OSError) as e:
        _fail(f"could not export chart: {e}")
    finally:
        sink.close()
    _message(f"Chart exported successfully: {out}", "success")


def main():
    app()


if __name__ == "__main__":
    main()
