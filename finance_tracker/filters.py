"""
Filter Pipeline

Narrowing a record list is always two steps, in this order:

1. TIME: a coarse recency cutoff (week / month / year). The record stores
   push this down to the table store as a ``date >= cutoff`` predicate.
2. TEXT: a case-insensitive substring search, applied to whatever the
   time step returned.

Because search runs on the time-narrowed set it can never widen the window:
searching "coffee" over the past week never returns last month's coffee.

The pure functions here are shared by the stores (client-side search) and
by anything that needs to filter records it already holds.
"""

import asyncio
import calendar
from datetime import date, timedelta
from typing import Any, Awaitable, Callable, Iterable, Optional, Sequence, TypeVar, Union

from finance_tracker.config import get_settings
from finance_tracker.models.records import TimeFilter


RecordT = TypeVar("RecordT")

DEFAULT_SEARCH_FIELDS = ("description", "category")


def shift_months(day: date, months: int) -> date:
    """
    Move a date by whole months, clamping to the end of the target month.

    2024-03-31 minus one month is 2024-02-29.
    """
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    last_day = calendar.monthrange(year, month + 1)[1]
    return date(year, month + 1, min(day.day, last_day))


def time_filter_cutoff(
    time_filter: Union[TimeFilter, str, None],
    today: date,
) -> Optional[date]:
    """
    Earliest date a record may carry to pass the time filter.

    Returns None when nothing should be cut (``all`` or no filter).
    """
    if time_filter is None:
        return None
    time_filter = TimeFilter(time_filter)

    if time_filter == TimeFilter.WEEK:
        return today - timedelta(days=7)
    if time_filter == TimeFilter.MONTH:
        return shift_months(today, -1)
    if time_filter == TimeFilter.YEAR:
        return shift_months(today, -12)
    return None


def matches_search(
    record: Any,
    query: Optional[str],
    fields: Sequence[str] = DEFAULT_SEARCH_FIELDS,
) -> bool:
    """Case-insensitive substring match against any of ``fields``."""
    if not query:
        return True
    needle = query.lower()
    for field in fields:
        value = getattr(record, field, None)
        if value and needle in str(value).lower():
            return True
    return False


def apply_search(
    records: Iterable[RecordT],
    query: Optional[str],
    fields: Sequence[str] = DEFAULT_SEARCH_FIELDS,
) -> list[RecordT]:
    """Keep the records matching ``query``. An empty query keeps everything."""
    return [r for r in records if matches_search(r, query, fields)]


def apply_time_filter(
    records: Iterable[RecordT],
    time_filter: Union[TimeFilter, str, None],
    today: date,
    date_field: str = "date",
) -> list[RecordT]:
    """Keep the records dated on or after the filter's cutoff."""
    cutoff = time_filter_cutoff(time_filter, today)
    if cutoff is None:
        return list(records)
    return [r for r in records if getattr(r, date_field) >= cutoff]


def filter_records(
    records: Iterable[RecordT],
    time_filter: Union[TimeFilter, str, None],
    query: Optional[str],
    today: date,
    date_field: str = "date",
    fields: Sequence[str] = DEFAULT_SEARCH_FIELDS,
) -> list[RecordT]:
    """Time first, then text."""
    narrowed = apply_time_filter(records, time_filter, today, date_field)
    return apply_search(narrowed, query, fields)


class SearchDebouncer:
    """
    Rate-limits the search box.

    Each ``submit`` restarts a quiet-period timer; the callback runs only
    once the query has stayed unchanged for ``quiescence_ms``. Submitting the
    query that was last sent again does nothing. A query is any value that
    compares by equality, e.g. a ``(time_filter, text)`` pair. A callback
    that has already started is never cancelled; the stores drop stale
    responses themselves.
    """

    def __init__(
        self,
        callback: Callable[[Any], Awaitable[Any]],
        quiescence_ms: Optional[int] = None,
    ):
        if quiescence_ms is None:
            quiescence_ms = get_settings().app.search_debounce_ms
        self._callback = callback
        self._delay = quiescence_ms / 1000
        self._timer: Optional[asyncio.TimerHandle] = None
        self._latest: Any = None
        self._last_sent: Any = None
        self._in_flight: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def submit(self, query: Any) -> None:
        """Record a keystroke. Must be called from within the event loop."""
        self._latest = query
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._delay, self._trigger, query)

    def reset(self) -> None:
        """Forget the last sent query; the next one goes out even if equal."""
        self._last_sent = None

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _trigger(self, query: Any) -> None:
        self._timer = None
        task = asyncio.get_running_loop().create_task(self._send(query))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _send(self, query: Any) -> None:
        if query == self._last_sent:
            return
        self._last_sent = query
        await self._callback(query)

    async def flush(self) -> None:
        """Send the latest query now instead of waiting out the timer."""
        self._cancel_timer()
        if self._latest is not None:
            await self._send(self._latest)

    async def wait_idle(self) -> None:
        """Wait for every callback that has already started."""
        if self._in_flight:
            await asyncio.gather(*list(self._in_flight))


async def submit_filters(
    store: Any,
    debouncer: SearchDebouncer,
    time_filter: Optional[Union[TimeFilter, str]],
    search: Optional[str],
) -> None:
    """
    Route a list view's filter controls into ``store.fetch``.

    The debouncer's callback must fetch ``store`` with a
    ``(time_filter, search)`` pair. Re-rendering with unchanged controls sends
    nothing. If the store was fetched with other filters in between (an
    overview page loading everything), the controls' filters are sent again.
    """
    request = (TimeFilter(time_filter) if time_filter else None, (search or "").strip() or None)
    if (store.time_filter, store.search) != request:
        debouncer.reset()
    debouncer.submit(request)
    await debouncer.flush()
