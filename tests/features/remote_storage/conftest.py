"""BDD step definitions for remote read label matchers."""

import asyncio
from dataclasses import dataclass, field
from typing import Any

import pytest
from pytest_bdd import given, parsers, then, when

from promdoc.adapters.storage.in_memory import InMemorySeriesStorage
from promdoc.core.models import LabelMatcher, MatchType, Query, QueryResult
from promdoc.core.service import RemoteStorageService
from tests.helpers import label_dict, make_series

_OPERATORS = {
    "=": MatchType.EQ,
    "!=": MatchType.NEQ,
    "=~": MatchType.RE,
    "!~": MatchType.NRE,
}


def run_async(coro: Any) -> Any:
    """Run a coroutine synchronously."""
    return asyncio.run(coro)


@dataclass
class RemoteStorageScenarioContext:
    """Shared state between steps in a remote storage scenario."""

    service: RemoteStorageService = field(
        default_factory=lambda: RemoteStorageService(InMemorySeriesStorage())
    )
    result: QueryResult | None = None


@pytest.fixture
def ctx() -> RemoteStorageScenarioContext:
    """Fresh scenario context for each test."""
    return RemoteStorageScenarioContext()


@given("an in-memory remote storage service")
def step_service(ctx: RemoteStorageScenarioContext) -> None:
    ctx.service = RemoteStorageService(InMemorySeriesStorage())


@given(
    parsers.parse(
        'the series {metric}{{host="{host}"}} with samples at {first:d} and {second:d}'
    )
)
def step_series(
    ctx: RemoteStorageScenarioContext, metric: str, host: str, first: int, second: int
) -> None:
    series = make_series(
        {"__name__": metric, "host": host}, [(first, 1.0), (second, 2.0)]
    )
    run_async(ctx.service.write([series]))


@when(
    parsers.parse(
        'I read {metric} from {start:d} to {end:d} where {label} {op} "{value}"'
    )
)
def step_read(
    ctx: RemoteStorageScenarioContext,
    metric: str,
    start: int,
    end: int,
    label: str,
    op: str,
    value: str,
) -> None:
    query = Query(
        start,
        end,
        (
            LabelMatcher("__name__", MatchType.EQ, metric),
            LabelMatcher(label, _OPERATORS[op], value),
        ),
    )
    ctx.result = run_async(ctx.service.query(query))


@then(parsers.parse('the result holds the hosts "{hosts}"'))
def step_hosts(ctx: RemoteStorageScenarioContext, hosts: str) -> None:
    assert ctx.result is not None
    found = [label_dict(ts)["host"] for ts in ctx.result.timeseries]
    assert found == hosts.split(",")


@then("the result is empty")
def step_empty(ctx: RemoteStorageScenarioContext) -> None:
    assert ctx.result is not None
    assert ctx.result.timeseries == ()


@then(parsers.parse('the series for host "{host}" has samples at "{timestamps}"'))
def step_samples(ctx: RemoteStorageScenarioContext, host: str, timestamps: str) -> None:
    assert ctx.result is not None
    (series,) = [
        ts for ts in ctx.result.timeseries if label_dict(ts)["host"] == host
    ]
    assert [s.timestamp for s in series.samples] == [
        int(t) for t in timestamps.split(",")
    ]
