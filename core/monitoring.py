"""Console display for the run scheduler.

Renders the per-cycle results table and the countdown shown while the
scheduler waits for the next cycle.  Everything here is presentation only;
the authoritative record of a run is the log.
"""

import asyncio
import time
from typing import TYPE_CHECKING, Optional

from rich import box
from rich.console import Console
from rich.live import Live
from rich.table import Table
from rich.text import Text

if TYPE_CHECKING:
    from core.orchestrator import CycleSummary

console = Console()


def format_time(seconds: float) -> str:
    """Format seconds as ``HH:MM:SS`` (hours may exceed 24)."""
    total = max(0, int(seconds))
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def render_cycle_summary(summary: "CycleSummary", target: Optional[Console] = None) -> Table:
    """Print the results of one scheduler cycle as a table.

    Args:
        summary: Counters collected during the cycle.
        target: Console to print on (defaults to the module console).

    Returns:
        The rendered :class:`~rich.table.Table`.
    """
    table = Table(
        title=f"Cycle #{summary.cycle} results",
        box=box.SIMPLE_HEAVY,
    )
    table.add_column("Action")
    table.add_column("Succeeded", justify="right")
    table.add_column("Attempted", justify="right")

    if summary.faucet_enabled:
        table.add_row("Faucet claims", str(summary.faucet_successes), str(summary.wallet_count))
    if summary.game_enabled:
        table.add_row("Games", str(summary.game_successes), str(summary.games_total))
    if not (summary.faucet_enabled or summary.game_enabled):
        table.add_row("(nothing enabled)", "-", "-")

    (target or console).print(table)
    return table


async def countdown(
    seconds: float,
    stop_event: Optional[asyncio.Event] = None,
    target: Optional[Console] = None,
) -> bool:
    """Show ``Time until next run: HH:MM:SS`` until *seconds* have passed.

    Args:
        seconds: Length of the wait.
        stop_event: When set, the countdown ends early.
        target: Console to draw on (defaults to the module console).

    Returns:
        ``True`` if the full wait elapsed, ``False`` if *stop_event* ended it.
    """
    out = target or console
    stop_event = stop_event or asyncio.Event()
    end_time = time.monotonic() + seconds

    with Live(console=out, refresh_per_second=2, transient=True) as live:
        while True:
            remaining = end_time - time.monotonic()
            if remaining <= 0:
                break
            live.update(Text(f"Time until next run: {format_time(remaining)}"))
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=min(1.0, remaining))
                return False
            except asyncio.TimeoutError:
                pass

    out.print("Countdown finished! Starting new run...")
    return True
