"""Compare two schema snapshots and generate the SQL that moves the target toward the source."""

from __future__ import annotations

import dataclasses

from ddl_parser import CONSTRAINT_KINDS, ConstraintKind, TableDefinition, constraint_clause, quote_identifier

SCRIPT_PREAMBLE = "-- set default character\nSET NAMES utf8;\n\n"


@dataclasses.dataclass
class SchemaDiff:
    dropped: list[str] = dataclasses.field(default_factory=list)
    added: dict[str, TableDefinition] = dataclasses.field(default_factory=dict)
    # table -> (target definition, source definition)
    modified: dict[str, tuple[TableDefinition, TableDefinition]] = dataclasses.field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (self.dropped or self.added or self.modified)


def compare_schemas(source: dict[str, TableDefinition], target: dict[str, TableDefinition]) -> SchemaDiff:
    """Classify every table as dropped (target only), added (source only) or modified."""
    diff = SchemaDiff()
    for name in sorted(target.keys() - source.keys()):
        diff.dropped.append(name)
    for name in sorted(source.keys() - target.keys()):
        diff.added[name] = source[name]
    for name in sorted(source.keys() & target.keys()):
        if source[name] != target[name]:
            diff.modified[name] = (target[name], source[name])
    return diff


def column_changes(target: TableDefinition, source: TableDefinition) -> list[str]:
    changes: list[str] = []
    for col, source_def in source.ordered_columns():
        target_def = target.columns.get(col)
        if target_def is None:
            changes.append(f"ADD COLUMN {quote_identifier(col)} {source_def}")
        elif target_def != source_def:
            changes.append(f"MODIFY COLUMN {quote_identifier(col)} {source_def}")

    for col, _ in target.ordered_columns():
        if col not in source.columns:
            changes.append(f"DROP COLUMN {quote_identifier(col)}")
    return changes


def constraint_changes(kind: ConstraintKind, target: dict[str, str], source: dict[str, str]) -> list[str]:
    # Only constraints declared by the source are reconciled; target-only ones are left alone.
    changes: list[str] = []
    for name, source_def in sorted(source.items()):
        if target.get(name) == source_def:
            continue
        add = constraint_clause(kind.add_keyword, name, source_def, kind.named)
        # An unnamed index or foreign key has no identifier to drop by.
        if kind.named and not name:
            changes.append(f"ADD {add}")
            continue
        drop = constraint_clause(kind.drop_keyword, name, "", kind.named).rstrip()
        changes.append(f"DROP {drop}, ADD {add}")
    return changes


def option_changes(target: TableDefinition, source: TableDefinition) -> list[str]:
    if target.options == source.options:
        return []
    engine = source.options.get("engine")
    charset = source.options.get("charset")
    if not engine or not charset:
        return []
    return [f"ENGINE={engine}, DEFAULT CHARSET={charset}"]


def table_changes(target: TableDefinition, source: TableDefinition) -> list[str]:
    """Return the ALTER clauses that turn `target` into `source`."""
    changes = column_changes(target, source)
    for kind in CONSTRAINT_KINDS:
        changes.extend(constraint_changes(kind, target.constraints(kind), source.constraints(kind)))
    changes.extend(option_changes(target, source))
    return changes


def generate_table_alter(table: str, target: TableDefinition, source: TableDefinition) -> str:
    changes = table_changes(target, source)
    if not changes:
        return ""
    return f"ALTER TABLE {quote_identifier(table)}\n" + ",\n".join(changes) + ";"


def render_block(table: str, statement: str) -> str:
    return f"-- {table}\n{statement}\n\n"


def generate_alters(diff: SchemaDiff) -> str:
    """Render DROP, CREATE and ALTER blocks, each group ordered by table name."""
    blocks: list[str] = []
    for table in sorted(diff.dropped):
        blocks.append(render_block(table, f"DROP TABLE {quote_identifier(table)};"))
    for table in sorted(diff.added):
        blocks.append(render_block(table, diff.added[table].to_sql(table)))
    for table in sorted(diff.modified):
        target, source = diff.modified[table]
        alter = generate_table_alter(table, target, source)
        if alter:
            blocks.append(render_block(table, alter))
    return "".join(blocks)


def render_script(diff: SchemaDiff) -> str:
    return SCRIPT_PREAMBLE + generate_alters(diff)
