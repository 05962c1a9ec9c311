"""
operations/dashboard.py -- Background refresh of the dashboard panel.

The UI runs on a single-threaded dispatcher (the console's asyncio event
loop). Dashboard queries block, so they run on a worker thread via
asyncio.to_thread; the result is handed back and applied to the panel only
from the loop. Worker threads never touch the panel or the session.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from core.database import PersistenceUnavailableError
from operations.billing import format_currency
from operations.models import DashboardStats

logger = logging.getLogger("backoffice.operations.dashboard")

StatsLoader = Callable[[], DashboardStats]
StatsSink = Callable[[DashboardStats], None]


class DashboardPanel:
    """Displayed dashboard state. Mutated only on the dispatcher."""

    def __init__(self, currency: str = "USD") -> None:
        self.currency = currency
        self.stats = DashboardStats()
        self.refreshed = False

    def apply(self, stats: DashboardStats) -> None:
        self.stats = stats
        self.refreshed = True

    def render(self) -> list[str]:
        s = self.stats
        low_stock = f"{s.low_stock_items}" + ("  (!)" if s.low_stock_items > 0 else "")
        return [
            f"Total Orders Today : {s.orders_today}",
            f"Today's Revenue    : {format_currency(s.revenue_today, self.currency)}",
            f"Active Tables      : {s.active_tables}",
            f"Low Stock Items    : {low_stock}",
        ]


async def refresh_dashboard(loader: StatsLoader, apply: StatsSink) -> DashboardStats | None:
    """Run loader on a worker thread, then call apply on the event loop.

    A storage failure is logged and the panel keeps its previous values;
    returns None in that case.
    """
    try:
        stats = await asyncio.to_thread(loader)
    except PersistenceUnavailableError:
        logger.warning("Dashboard refresh failed", exc_info=True)
        return None
    apply(stats)
    return stats


async def refresh_loop(loader: StatsLoader, apply: StatsSink, interval_seconds: float = 60.0) -> None:
    """Refresh the dashboard every interval_seconds until cancelled.

    Sleeps first: the panel is loaded on demand when the user opens it, and
    this task keeps it current afterwards. Started with asyncio.create_task()
    after login; task.cancel() on logout unwinds it out of asyncio.sleep.
    """
    while True:
        await asyncio.sleep(interval_seconds)
        await refresh_dashboard(loader, apply)
