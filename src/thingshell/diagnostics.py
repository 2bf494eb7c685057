"""Read-only diagnostic battery against the engine's data store."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from thingshell.records import resolve

if TYPE_CHECKING:
    from thingshell.collaborators import DataStore

NO_FILTERS: list[dict[str, Any]] = []


@dataclass(frozen=True)
class DiagnosticQuery:
    label: str
    call: Callable[[DataStore], Any]


@dataclass(frozen=True)
class DiagnosticResult:
    label: str
    value: Any = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


DIAGNOSTIC_QUERIES: tuple[DiagnosticQuery, ...] = (
    DiagnosticQuery(
        "query",
        lambda store: store.query(
            ["wind_speed", "location"], [{"name": "weather", "op": "=", "value": "Partly cloud"}]
        ),
    ),
    DiagnosticQuery("count", lambda store: store.get_count([{"name": "wind_speed", "op": ">", "value": 1}])),
    DiagnosticQuery("max", lambda store: store.get_max("wind_speed", NO_FILTERS)),
    DiagnosticQuery("min", lambda store: store.get_min("wind_speed", NO_FILTERS)),
    DiagnosticQuery("sum", lambda store: store.get_sum("wind_speed", NO_FILTERS)),
    DiagnosticQuery("avg", lambda store: store.get_avg("wind_speed", NO_FILTERS)),
    DiagnosticQuery("argmax", lambda store: store.get_argmax(["location", "weather"], "wind_speed", NO_FILTERS)),
    DiagnosticQuery("argmin", lambda store: store.get_argmin(["location", "weather"], "wind_speed", NO_FILTERS)),
)


async def _run_query(store: DataStore, query: DiagnosticQuery) -> DiagnosticResult:
    try:
        value = await resolve(query.call(store))
    except Exception as exc:
        return DiagnosticResult(query.label, error=exc)
    return DiagnosticResult(query.label, value=value)


async def run_diagnostics(
    store: DataStore,
    on_result: Callable[[DiagnosticResult], None],
    queries: tuple[DiagnosticQuery, ...] = DIAGNOSTIC_QUERIES,
) -> list[DiagnosticResult]:
    """Issue every query at once and report each result as it settles."""

    tasks = [asyncio.ensure_future(_run_query(store, query)) for query in queries]
    results: list[DiagnosticResult] = []
    for next_done in asyncio.as_completed(tasks):
        result = await next_done
        on_result(result)
        results.append(result)
    return results
