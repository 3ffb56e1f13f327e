"""
Keyset pagination helpers shared by the repositories.

A continuation token is the api_id of the last item returned on the previous
page; the next page starts strictly after that item in the listing order.
"""

import sqlite3
from typing import Callable, TypeVar

from ..exceptions import BadRequestError

T = TypeVar("T")

STATS_SELECT = """
    SELECT COUNT(*) AS total,
           SUM(e.marker = 'unread') AS unread,
           SUM(e.marker = 'read') AS read,
           SUM(e.marker = 'saved') AS saved
    FROM entries e
"""


def anchor_row(
    conn: sqlite3.Connection,
    table: str,
    continuation: str,
    user_pk: int | None,
    columns: str = "id",
) -> sqlite3.Row:
    """Resolve a continuation token to the row it names, scoped to its owner."""
    if user_pk is None:
        row = conn.execute(
            f"SELECT {columns} FROM {table} WHERE api_id = ?", (continuation,)
        ).fetchone()
    else:
        row = conn.execute(
            f"SELECT {columns} FROM {table} WHERE api_id = ? AND user_id = ?",
            (continuation, user_pk)
        ).fetchone()
    if row is None:
        raise BadRequestError("Invalid continuation token")
    return row


def page_by_id(
    conn: sqlite3.Connection,
    select: str,
    table: str,
    alias: str,
    where: list[str],
    params: list,
    continuation: str,
    count: int,
    converter: Callable[[sqlite3.Row], T],
    user_pk: int | None = None,
) -> tuple[list[T], str]:
    """Run an id-ascending listing and split off the continuation token."""
    if count < 1:
        raise BadRequestError("Page count must be positive")

    where = list(where)
    params = list(params)
    if continuation:
        anchor = anchor_row(conn, table, continuation, user_pk)
        where.append(f"{alias}.id > ?")
        params.append(anchor["id"])

    query = select
    if where:
        query += " WHERE " + " AND ".join(where)
    query += f" ORDER BY {alias}.id ASC LIMIT ?"
    params.append(count + 1)

    rows = conn.execute(query, params).fetchall()
    return split_page(rows, count, converter)


def split_page(
    rows: list[sqlite3.Row],
    count: int,
    converter: Callable[[sqlite3.Row], T],
) -> tuple[list[T], str]:
    """Trim the look-ahead row; the token is the last returned item's id."""
    has_more = len(rows) > count
    items = [converter(row) for row in rows[:count]]
    next_token = items[-1].id if has_more and items else ""
    return items, next_token
