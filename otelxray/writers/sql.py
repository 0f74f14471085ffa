"""
otelxray.writers.sql - The ``sql`` block of a segment.

Only relational databases get a sql block; spans from other database
systems (redis, mongodb, ...) keep their db.* attributes as annotations.
"""

from __future__ import annotations

from typing import Any, Dict

from otelxray.core import conventions as conv
from otelxray.utils.values import as_str
from otelxray.writers.context import SegmentContext

DEFAULT_DATABASE_HOST = "localhost"


def write_sql(context: SegmentContext) -> None:
    """Write the ``sql`` block for spans whose db.system is a SQL database.

    Example:
        db.system=mysql, db.name=customers, db.statement="SELECT 1"
        -> {"url": "localhost/customers", "database_type": "mysql",
            "sanitized_query": "SELECT 1"}
    """
    attributes = context.span_attributes
    connection_string = as_str(attributes.get(conv.DB_CONNECTION_STRING))
    system = as_str(attributes.get(conv.DB_SYSTEM))
    database = as_str(attributes.get(conv.DB_NAME))
    statement = as_str(attributes.get(conv.DB_STATEMENT))
    user = as_str(attributes.get(conv.DB_USER))

    if system not in conv.SQL_SYSTEMS:
        attributes.rollback()
        return

    sql: Dict[str, Any] = {
        "url": f"{connection_string or DEFAULT_DATABASE_HOST}/{database or ''}",
        "database_type": system,
    }
    if user is not None:
        sql["user"] = user
    if statement is not None:
        sql["sanitized_query"] = statement

    attributes.commit()
    context.document["sql"] = sql
