"""Load raw CREATE TABLE text per table from a dump file or a live MySQL database.

Both loaders return the same shape, ``{table_name: create_table_sql}``; the
diff engine does not care where the text came from.

Database locators use the form ``user:password@host[:port]~database``.
"""

from __future__ import annotations

import re
import sys
from pathlib import Path

import mysql.connector
from mysql.connector import Error as MySQLError

from ddl_parser import TableDefinition, parse_table_definition

DEFAULT_PORT = 3306

CREATE_TABLE_RE = re.compile(
    r"CREATE\s+TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?(?:`?\w+`?\.)?`?(\w+)`?\s*\(",
    flags=re.I,
)
CONN_STR_RE = re.compile(r"^([^:]*):(.*)@([^~]*)~([^~]+)$")


class SchemaLoadError(RuntimeError):
    """A schema could not be read completely; the run must not continue."""


def find_block_end(text: str, open_idx: int, limit: int | None = None) -> int:
    """Return the index just past the statement that opens its body at `open_idx`.

    The body is matched by balanced parentheses, ignoring any inside quoted
    literals or identifiers; the statement then runs to the next unquoted `;`.
    The scan never passes `limit` (the start of the next statement), so one
    malformed table cannot swallow the tables after it.
    """
    if limit is None:
        limit = len(text)
    depth = 0
    quote = ""
    idx = open_idx
    while idx < limit:
        ch = text[idx]
        if quote:
            if ch == "\\" and quote != "`":
                idx += 1
            elif ch == quote:
                quote = ""
        elif ch in "'\"`":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth = max(0, depth - 1)
        elif ch == ";" and depth == 0:
            return idx + 1
        idx += 1
    return limit


def split_dump(text: str) -> dict[str, str]:
    tables: dict[str, str] = {}
    m = CREATE_TABLE_RE.search(text)
    while m:
        following = CREATE_TABLE_RE.search(text, m.end())
        limit = following.start() if following else len(text)
        end = find_block_end(text, m.end() - 1, limit)
        tables[m.group(1)] = text[m.start() : end].strip()
        m = following
    return tables


def load_file_schema(path: str | Path) -> dict[str, str]:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SchemaLoadError(f"cannot read schema dump {path}: {exc}") from exc
    return split_dump(text)


def parse_connection_string(conn_str: str) -> dict:
    m = CONN_STR_RE.match(conn_str)
    if not m:
        raise SchemaLoadError(
            f"invalid connection string: {conn_str!r} (expected user:password@host[:port]~database)"
        )

    user, password, address, database = m.groups()
    host, _, port = address.partition(":")
    if port and not port.isdigit():
        raise SchemaLoadError(f"invalid port in connection string: {port!r}")

    return {
        "user": user,
        "password": password,
        "host": host or "localhost",
        "port": int(port) if port else DEFAULT_PORT,
        "database": database,
    }


class DatabaseConnection:
    """Context manager around a mysql-connector connection."""

    def __init__(self, host: str, port: int, user: str, password: str, database: str):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = database
        self.connection = None

    def __enter__(self) -> DatabaseConnection:
        try:
            self.connection = mysql.connector.connect(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self.password,
                database=self.database,
            )
        except MySQLError as exc:
            raise SchemaLoadError(
                f"cannot connect to database '{self.database}' on {self.host}:{self.port}: {exc}"
            ) from exc
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.connection and self.connection.is_connected():
            self.connection.close()

    def execute_query(self, query: str) -> list[tuple]:
        cursor = self.connection.cursor()
        try:
            cursor.execute(query)
            return cursor.fetchall()
        except MySQLError as exc:
            raise SchemaLoadError(f"query failed on '{self.database}': {query}: {exc}") from exc
        finally:
            cursor.close()

    def list_tables(self) -> list[str]:
        rows = self.execute_query("SHOW FULL TABLES WHERE Table_type = 'BASE TABLE'")
        return sorted(str(row[0]) for row in rows)

    def show_create_table(self, table: str) -> str:
        rows = self.execute_query(f"SHOW CREATE TABLE `{table}`")
        if not rows or len(rows[0]) < 2:
            raise SchemaLoadError(f"table not found: {self.database}.{table}")
        return str(rows[0][1])


def load_database_schema(conn_str: str) -> dict[str, str]:
    params = parse_connection_string(conn_str)
    tables: dict[str, str] = {}
    with DatabaseConnection(**params) as db:
        names = db.list_tables()
        for i, table in enumerate(names, 1):
            print(f"  {params['database']}: [{i}/{len(names)}] {table}", file=sys.stderr, flush=True)
            tables[table] = db.show_create_table(table)
    return tables


LOADERS = {
    "file": load_file_schema,
    "db": load_database_schema,
}


def load_schema(kind: str, locator: str) -> dict[str, str]:
    try:
        loader = LOADERS[kind]
    except KeyError:
        raise ValueError(f"invalid data source: {kind!r} (expected one of {', '.join(LOADERS)})") from None
    return loader(locator)


def parse_schema(raw: dict[str, str]) -> dict[str, TableDefinition]:
    return {name: parse_table_definition(sql) for name, sql in raw.items()}
