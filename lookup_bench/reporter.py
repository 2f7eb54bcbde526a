from __future__ import annotations

from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from lookup_bench.domain.models import IndexStats, LoadReport, LookupKeySet, PlanReport, TableStats
from lookup_bench.runner import ComparisonReport, format_overhead
from lookup_bench.utils.profiler import ResourceStats


def _console(console: Optional[Console]) -> Console:
    return console or Console()


def print_table_stats(stats: TableStats, console: Optional[Console] = None) -> None:
    console = _console(console)
    console.print(f"[bold]Table statistics[/bold] ({stats.table})")
    console.print(f"   Rows: {stats.row_count:,}")
    console.print(f"   Total size: {stats.total_size}")
    console.print("   Index sizes:")
    for name, size in stats.index_sizes.items():
        console.print(f"     - {name}: {size}")


def print_index_stats(stats: IndexStats, console: Optional[Console] = None) -> None:
    console = _console(console)
    console.print(f"[bold]Index statistics[/bold] ({stats.index})")
    console.print(f"   Documents: {stats.doc_count:,}")
    console.print(f"   Store size: {stats.size_mb:.0f} MB")
    console.print("   Field mapping:")
    for name, field_type in stats.field_types.items():
        console.print(f"     - {name}: {field_type}")


def print_lookup_keys(keys: LookupKeySet, console: Optional[Console] = None) -> None:
    console = _console(console)
    console.print("[bold]Lookup keys[/bold]")
    for dimension in keys.dimensions():
        console.print(f"   {dimension:<8} {keys[dimension]}")


def print_results(
    report: ComparisonReport,
    title: str = "Lookup Benchmark Results",
    console: Optional[Console] = None,
) -> None:
    """
    Render benchmark results as a rich table.

    Rows follow the order the strategies were declared in, not latency.
    Strategies that failed under the tolerant policy are listed as FAILED.
    """
    console = _console(console)

    if not report.order:
        console.print("[yellow]No results to display.[/yellow]")
        return

    table = Table(title=title, box=box.ROUNDED, caption="In declaration order")
    table.add_column("Method", style="cyan", no_wrap=True)
    table.add_column("Avg (ms)", justify="right", style="bold green")
    table.add_column("Min (ms)", justify="right", style="green")
    table.add_column("Max (ms)", justify="right", style="yellow")
    table.add_column("Iterations", justify="right", style="magenta")

    for name in report.order:
        result = report.get(name)
        if result is None:
            error = report.failures.get(name, "not run")
            table.add_row(name, "[red]FAILED[/red]", "-", "-", f"[dim]{escape(error)}[/dim]")
            continue
        table.add_row(
            name,
            f"{result.avg_ms:.3f}",
            f"{result.min_ms:.3f}",
            f"{result.max_ms:.3f}",
            str(result.iterations),
        )

    console.print(table)


def print_overheads(report: ComparisonReport, console: Optional[Console] = None) -> None:
    """Print each strategy's average relative to the baseline's."""
    console = _console(console)
    overheads = report.overheads()
    if not overheads:
        return
    baseline = report.get(report.baseline) if report.baseline else None
    if baseline is None:
        return

    console.print(f"\n[bold]Relative to {baseline.method}[/bold]")
    console.print(f"   {baseline.method:<30} {baseline.avg_ms:>10.3f}ms (baseline)")
    for name, pct in overheads:
        result = report.get(name)
        if result is None:
            continue
        style = "red" if pct > 0 else "green"
        console.print(
            f"   {name:<30} {result.avg_ms:>10.3f}ms ([{style}]{format_overhead(pct)}[/{style}])"
        )


def print_plans(plans: Sequence[PlanReport], console: Optional[Console] = None) -> None:
    console = _console(console)
    if not plans:
        return
    console.print("\n[bold]Execution plans[/bold]")
    for plan in plans:
        console.print(f"\n[cyan]{plan.label}[/cyan]")
        if not plan.ok:
            console.print(f"   [red]unavailable:[/red] {escape(plan.error or '')}")
            continue
        for line in plan.lines:
            console.print(f"   {line}", markup=False)


def print_load_report(
    report: LoadReport,
    resources: Optional[ResourceStats] = None,
    console: Optional[Console] = None,
) -> None:
    console = _console(console)
    status = "[red]ABORTED[/red]" if report.aborted else "[green]DONE[/green]"
    console.print(
        f"{status} {report.writer}: {report.inserted:,}/{report.target:,} records | "
        f"{report.batches:,} batches | {report.retries} retries | "
        f"{report.elapsed_seconds / 60:.1f} min | {report.rate:,.0f} records/s"
    )
    if report.error:
        console.print(f"   last error: {report.error}", markup=False)
    if resources is not None and resources.peak_rss_mb is not None:
        cpu = f"{resources.cpu_percent:.1f}%" if resources.cpu_percent is not None else "N/A"
        console.print(f"   peak RSS: {resources.peak_rss_mb:.1f} MB | CPU: {cpu}")


__all__ = [
    "print_table_stats",
    "print_index_stats",
    "print_lookup_keys",
    "print_results",
    "print_overheads",
    "print_plans",
    "print_load_report",
]
