"""Invocation boundary: one connected adapter per call.

Every entry point here resolves the URL, connects exactly one adapter and
guarantees its release on every exit path before returning or raising.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from fastmcp.utilities.logging import get_logger

from askdb.agent.agent import ModelLike
from askdb.agent.models import AskOutcome, PipelineSettings
from askdb.agent.pipeline import AskPipeline
from askdb.database.adapters import create_adapter
from askdb.database.adapters.common import AdapterOptions
from askdb.database.adapters.protocol import DatabaseAdapter
from askdb.database.connection import Dialect, parse_connection, resolve_dialect
from askdb.errors import SchemaEmptyError
from askdb.execute.models import SqlRunOutcome
from askdb.execute.runner import run_sql_flow
from askdb.models import DatabaseSchema

_logger = get_logger(__name__)

AdapterFactory = Callable[[Dialect, AdapterOptions | None], DatabaseAdapter]


@contextmanager
def open_adapter(
    url: str,
    options: AdapterOptions | None = None,
    *,
    adapter_factory: AdapterFactory = create_adapter,
) -> Iterator[DatabaseAdapter]:
    """Connect the adapter for ``url`` and disconnect it exactly once on exit.

    URL errors are raised before an adapter exists. Connection errors and
    anything raised inside the ``with`` block still pass through the single
    ``disconnect`` call.
    """
    dialect = resolve_dialect(url)
    descriptor = parse_connection(url)
    adapter = adapter_factory(dialect, options)
    try:
        adapter.connect(descriptor)
        yield adapter
    finally:
        adapter.disconnect()


def fetch_schema(adapter: DatabaseAdapter) -> DatabaseSchema:
    """Fetch the schema and require at least one table."""
    _logger.info("Fetching schema...")
    schema = adapter.get_schema()
    if schema.is_empty():
        msg = (
            "No tables found in database schema. Ensure your database has tables "
            "and the user has access to them."
        )
        raise SchemaEmptyError(msg)
    return schema


def ask_database(
    url: str,
    question: str,
    model: ModelLike,
    *,
    options: AdapterOptions | None = None,
    settings: PipelineSettings | None = None,
    adapter_factory: AdapterFactory = create_adapter,
) -> AskOutcome:
    """Answer ``question`` against the database at ``url``."""
    with open_adapter(url, options, adapter_factory=adapter_factory) as adapter:
        schema = fetch_schema(adapter)
        return AskPipeline(adapter, model, settings=settings).run(question, schema)


def run_sql(
    url: str,
    sql: str,
    model: ModelLike,
    *,
    options: AdapterOptions | None = None,
    settings: PipelineSettings | None = None,
    adapter_factory: AdapterFactory = create_adapter,
) -> SqlRunOutcome:
    """Execute ``sql``; on failure return the model's repair proposal."""
    with open_adapter(url, options, adapter_factory=adapter_factory) as adapter:
        return run_sql_flow(sql=sql, adapter=adapter, model=model, settings=settings)


def describe_schema(
    url: str,
    *,
    options: AdapterOptions | None = None,
    adapter_factory: AdapterFactory = create_adapter,
) -> DatabaseSchema:
    """Return the schema snapshot; an empty database yields no tables."""
    with open_adapter(url, options, adapter_factory=adapter_factory) as adapter:
        return adapter.get_schema()
