"""Parse MySQL CREATE TABLE text into a structural table model and render it back."""

from __future__ import annotations

import dataclasses
import re

# A parenthesized group with up to two nesting levels, e.g. `(10,2)` or `(`a`(10))`.
PARENS = r"\((?:[^()]|\((?:[^()]|\([^()]*\))*\))*\)"
QUOTED = r"'(?:[^'\\]|\\.)*'"

# Column items start right after the body's `(`, after a `,` or at a line start.
# The definition may not begin with `(` so a table name is never read as a column.
COLUMN_RE = re.compile(
    rf"(?:^|(?<=[(,]))\s*`([^`]+)`\s+([^\s,()'](?:{QUOTED}|{PARENS}|[^,()'])*)",
    flags=re.M,
)

FOREIGN_PATTERN = (
    r"(?<!`)\b(?:CONSTRAINT\s*(?:`(?P<fk_name>[^`]+)`)?\s*)?"
    rf"(?P<foreign>FOREIGN\s+KEY\s*{PARENS}[^,()]*(?:{PARENS}[^,()]*)*)"
)
KEY_PATTERN = (
    r"(?<!`)\b(?P<kind>PRIMARY\s+KEY|UNIQUE(?:\s+(?:KEY|INDEX))?|FULLTEXT(?:\s+(?:KEY|INDEX))?|KEY|INDEX)"
    rf"\s*(?:`(?P<name>[^`]+)`)?\s*(?P<columns>{PARENS})"
)
CONSTRAINT_RE = re.compile(f"{FOREIGN_PATTERN}|{KEY_PATTERN}", flags=re.I)

OPTIONS_RE = re.compile(r"ENGINE\s*=\s*(\w+)\s+DEFAULT\s+CHARSET\s*=\s*(\w+)", flags=re.I)


@dataclasses.dataclass(frozen=True)
class ConstraintKind:
    attr: str
    create_keyword: str
    add_keyword: str
    drop_keyword: str
    named: bool = True


# Fixed emission order for both CREATE TABLE rendering and ALTER generation.
CONSTRAINT_KINDS: tuple[ConstraintKind, ...] = (
    ConstraintKind("primary", "PRIMARY KEY", "PRIMARY KEY", "PRIMARY KEY", named=False),
    ConstraintKind("unique", "UNIQUE KEY", "UNIQUE INDEX", "INDEX"),
    ConstraintKind("keys", "KEY", "INDEX", "INDEX"),
    ConstraintKind("foreign", "CONSTRAINT", "CONSTRAINT", "FOREIGN KEY"),
    ConstraintKind("fulltext", "FULLTEXT KEY", "FULLTEXT INDEX", "INDEX"),
)


def quote_identifier(name: str) -> str:
    return f"`{name}`"


def constraint_clause(keyword: str, name: str, definition: str, named: bool = True) -> str:
    parts = [keyword]
    if named and name:
        parts.append(quote_identifier(name))
    parts.append(definition)
    return " ".join(parts)


@dataclasses.dataclass
class TableDefinition:
    """Structural snapshot of one table.

    Every category is always present, possibly empty. Equality compares all
    maps by content, so two definitions parsed from differently ordered text
    are equal when they declare the same things.
    """

    columns: dict[str, str] = dataclasses.field(default_factory=dict)
    column_positions: dict[str, int] = dataclasses.field(default_factory=dict)
    primary: dict[str, str] = dataclasses.field(default_factory=dict)
    unique: dict[str, str] = dataclasses.field(default_factory=dict)
    keys: dict[str, str] = dataclasses.field(default_factory=dict)
    foreign: dict[str, str] = dataclasses.field(default_factory=dict)
    fulltext: dict[str, str] = dataclasses.field(default_factory=dict)
    options: dict[str, str] = dataclasses.field(default_factory=dict)

    def constraints(self, kind: ConstraintKind) -> dict[str, str]:
        return getattr(self, kind.attr)

    def ordered_columns(self) -> list[tuple[str, str]]:
        names = sorted(self.columns, key=lambda c: (self.column_positions.get(c, 0), c))
        return [(name, self.columns[name]) for name in names]

    def to_sql(self, table: str) -> str:
        """Render a complete CREATE TABLE statement, terminated by `;`."""
        items = [f"  {quote_identifier(name)} {definition}" for name, definition in self.ordered_columns()]
        for kind in CONSTRAINT_KINDS:
            for name, definition in sorted(self.constraints(kind).items()):
                items.append("  " + constraint_clause(kind.create_keyword, name, definition, kind.named))

        lines = [f"CREATE TABLE {quote_identifier(table)} ("]
        lines.append(",\n".join(items))

        tail = ")"
        engine = self.options.get("engine")
        charset = self.options.get("charset")
        if engine:
            tail += f" ENGINE={engine}"
        if charset:
            tail += f" DEFAULT CHARSET={charset}"
        lines.append(tail + ";")
        return "\n".join(lines)


def parse_columns(sql: str) -> tuple[dict[str, str], dict[str, int]]:
    columns: dict[str, str] = {}
    positions: dict[str, int] = {}
    for m in COLUMN_RE.finditer(sql):
        name = m.group(1)
        # A later hit on a known name is an index key part such as `(`a` DESC)`.
        if name in columns:
            continue
        columns[name] = m.group(2).strip()
        positions[name] = len(positions) + 1
    return columns, positions


def _kind_attr(keyword: str) -> str:
    keyword = " ".join(keyword.upper().split())
    if keyword == "PRIMARY KEY":
        return "primary"
    if keyword.startswith("UNIQUE"):
        return "unique"
    if keyword.startswith("FULLTEXT"):
        return "fulltext"
    return "keys"


def parse_constraints(sql: str, table: TableDefinition) -> None:
    for m in CONSTRAINT_RE.finditer(sql):
        if m.group("foreign"):
            table.foreign[m.group("fk_name") or ""] = m.group("foreign").strip()
            continue
        target = getattr(table, _kind_attr(m.group("kind")))
        target[m.group("name") or ""] = m.group("columns")


def parse_options(sql: str) -> dict[str, str]:
    m = OPTIONS_RE.search(sql)
    if not m:
        return {}
    return {"engine": m.group(1), "charset": m.group(2)}


def parse_table_definition(sql: str) -> TableDefinition:
    """Build a TableDefinition from one CREATE TABLE statement.

    The three scans (columns, constraints, options) run independently over
    the same text. A category the text does not match is left empty; this
    function never raises on malformed input.
    """
    columns, positions = parse_columns(sql)
    table = TableDefinition(columns=columns, column_positions=positions, options=parse_options(sql))
    parse_constraints(sql, table)
    return table
