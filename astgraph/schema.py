"""SQLite schema for the code graph: creation, migration and truncation."""

from __future__ import annotations

import logging
import sqlite3

log = logging.getLogger(__name__)

# Layout history:
#   1 - initial tables
#   2 - foreign keys (edges cascade, nodes.parent_id set to NULL)
#   3 - edges carry the line of the reference as part of their key
#   4 - edges carry a confidence score; full-text index over symbols
SCHEMA_VERSION = 4

_FTS_TABLE = "symbol_fts"
_FTS_FIELDS = ("name", "signature", "doc_comment")

_EDGE_KEY_COLUMNS = (
    ("source_id", "TEXT NOT NULL REFERENCES nodes(id) ON DELETE CASCADE"),
    ("target_id", "TEXT NOT NULL REFERENCES nodes(id) ON DELETE CASCADE"),
    ("kind", "TEXT NOT NULL"),
)
_EDGE_LINE_COLUMN = ("source_line", "INTEGER NOT NULL DEFAULT 0")
_EDGE_CONFIDENCE_COLUMN = ("confidence", "REAL NOT NULL DEFAULT 1.0")
_EDGE_KEY_WITHOUT_LINE = "PRIMARY KEY (source_id, target_id, kind)"
_EDGE_KEY_WITH_LINE = "PRIMARY KEY (source_id, target_id, kind, source_line)"

# (index name, table, indexed columns)
_INDEXES = (
    ("idx_nodes_name", "nodes", "name"),
    ("idx_nodes_kind", "nodes", "kind"),
    ("idx_nodes_file", "nodes", "file_path"),
    ("idx_nodes_language", "nodes", "language"),
    ("idx_nodes_parent", "nodes", "parent_id"),
    ("idx_nodes_file_kind", "nodes", "file_path, kind"),
    ("idx_edges_source", "edges", "source_id"),
    ("idx_edges_target", "edges", "target_id"),
    ("idx_edges_kind", "edges", "kind"),
    ("idx_edges_source_target", "edges", "source_id, target_id"),
    ("idx_edges_source_kind", "edges", "source_id, kind"),
    ("idx_edges_target_kind", "edges", "target_id, kind"),
    ("idx_edges_source_line", "edges", "source_id, source_line"),
    ("idx_edges_confidence", "edges", "confidence"),
)


def _table(name, columns, constraints=()):
    parts = [f"{column} {decl}" for column, decl in columns]
    parts.extend(constraints)
    return f"CREATE TABLE IF NOT EXISTS {name} ({', '.join(parts)})"


def _node_columns(self_table):
    return (
        ("id", "TEXT PRIMARY KEY"),
        ("name", "TEXT NOT NULL"),
        ("kind", "TEXT NOT NULL"),
        ("file_path", "TEXT NOT NULL"),
        ("line_start", "INTEGER NOT NULL"),
        ("line_end", "INTEGER NOT NULL"),
        ("signature", "TEXT"),
        ("doc_comment", "TEXT"),
        ("visibility", "TEXT NOT NULL"),
        ("language", "TEXT NOT NULL"),
        ("parent_id", f"TEXT REFERENCES {self_table}(id) ON DELETE SET NULL"),
    )


def _fts_row(prefix=""):
    """Value list for one FTS row; NULL text fields are stored as ''."""
    values = [f"{prefix}id", f"{prefix}name"]
    values.extend(f"COALESCE({prefix}{field},'')" for field in _FTS_FIELDS[1:])
    return ", ".join(values)


_FTS_COLUMNS = ", ".join(("id",) + _FTS_FIELDS)
_FTS_INSERT_NEW = f"INSERT INTO {_FTS_TABLE}({_FTS_COLUMNS}) VALUES ({_fts_row('NEW.')})"
_FTS_DELETE_OLD = f"DELETE FROM {_FTS_TABLE} WHERE id = OLD.id"

# (trigger name, event on nodes, statements run for each row)
_TRIGGERS = (
    ("nodes_fts_ai", "INSERT", (_FTS_INSERT_NEW,)),
    ("nodes_fts_ad", "DELETE", (_FTS_DELETE_OLD,)),
    ("nodes_fts_au", "UPDATE", (_FTS_DELETE_OLD, _FTS_INSERT_NEW)),
)


def _trigger(name, event, body):
    statements = " ".join(f"{statement};" for statement in body)
    return f"CREATE TRIGGER IF NOT EXISTS {name} AFTER {event} ON nodes BEGIN {statements} END"


def _script(statements):
    return "".join(f"{statement};\n" for statement in statements)


def _schema_statements():
    yield _table("schema_version", (("version", "INTEGER PRIMARY KEY"),))
    yield _table("nodes", _node_columns("nodes"))
    yield _table(
        "edges",
        _EDGE_KEY_COLUMNS + (_EDGE_LINE_COLUMN, _EDGE_CONFIDENCE_COLUMN),
        (_EDGE_KEY_WITH_LINE,),
    )
    fts_args = ", ".join(("id UNINDEXED",) + _FTS_FIELDS + ("tokenize='unicode61'",))
    yield f"CREATE VIRTUAL TABLE IF NOT EXISTS {_FTS_TABLE} USING fts5({fts_args})"
    yield _table("file_hashes", (("file_path", "TEXT PRIMARY KEY"), ("hash", "BLOB NOT NULL")))
    for name, table, columns in _INDEXES:
        yield f"CREATE INDEX IF NOT EXISTS {name} ON {table}({columns})"
    for name, event, body in _TRIGGERS:
        yield _trigger(name, event, body)


def _replace_table(table, staging, create, copy):
    """Statements that rebuild `table` through a staging copy."""
    return [create, copy, f"DROP TABLE {table}", f"ALTER TABLE {staging} RENAME TO {table}"]


def _stamp(version):
    return f"INSERT OR REPLACE INTO schema_version VALUES ({version})"


def _in_transaction(statements):
    """Run `statements` atomically with foreign-key checks suspended."""
    return _script(
        ["PRAGMA foreign_keys = OFF", "BEGIN", *statements, "COMMIT", "PRAGMA foreign_keys = ON"]
    )


def _to_v2_script():
    known = "(SELECT id FROM nodes)"
    statements = _replace_table(
        "nodes",
        "nodes_v2",
        _table("nodes_v2", _node_columns("nodes_v2")),
        "INSERT OR IGNORE INTO nodes_v2 SELECT * FROM nodes",
    )
    statements += _replace_table(
        "edges",
        "edges_v2",
        _table("edges_v2", _EDGE_KEY_COLUMNS, (_EDGE_KEY_WITHOUT_LINE,)),
        f"INSERT OR IGNORE INTO edges_v2 SELECT * FROM edges "
        f"WHERE source_id IN {known} AND target_id IN {known}",
    )
    statements.append(_stamp(2))
    return _in_transaction(statements)


def _to_v3_script():
    # Lines were never recorded before v3, so every copied edge gets 0.
    statements = _replace_table(
        "edges",
        "edges_v3",
        _table("edges_v3", _EDGE_KEY_COLUMNS + (_EDGE_LINE_COLUMN,), (_EDGE_KEY_WITH_LINE,)),
        "INSERT OR IGNORE INTO edges_v3 (source_id, target_id, kind, source_line) "
        "SELECT source_id, target_id, kind, 0 FROM edges",
    )
    statements.append(_stamp(3))
    return _in_transaction(statements)


def _drop_fts_script():
    statements = [f"DROP TRIGGER IF EXISTS {name}" for name, _, _ in _TRIGGERS]
    statements.append(f"DROP TABLE IF EXISTS {_FTS_TABLE}")
    return _script(statements)


def _backfill_fts_script():
    return _script([f"INSERT INTO {_FTS_TABLE}({_FTS_COLUMNS}) SELECT {_fts_row()} FROM nodes"])


def _scalar(conn, sql):
    """First column of the first row, or 0 when the query fails or yields nothing."""
    try:
        row = conn.execute(sql).fetchone()
    except sqlite3.Error:
        return 0
    if row is None or row[0] is None:
        return 0
    return row[0]


def create_schema(conn):
    """Create every table, index, FTS table and trigger that is missing."""
    conn.executescript(_script(_schema_statements()))
    log.info("SQLite schema ready")


def migrate_schema(conn):
    """Bring an existing database up to SCHEMA_VERSION."""
    version = _scalar(conn, "SELECT COALESCE(MAX(version), 0) FROM schema_version")
    if version >= SCHEMA_VERSION:
        return

    node_count = _scalar(conn, "SELECT COUNT(*) FROM nodes")
    edge_count = _scalar(conn, "SELECT COUNT(*) FROM edges")
    if version == 0 and node_count == 0 and edge_count == 0:
        # Fresh database: create_schema already built the latest layout.
        conn.execute(_stamp(SCHEMA_VERSION))
        conn.commit()
        return

    if version < 2:
        log.info("Migrating database schema to version 2 (adding FK constraints)...")
        conn.executescript(_to_v2_script())
        log.info("Schema migration to v2 complete")

    if version < 3:
        log.info("Migrating database schema to version 3 (adding edges.source_line)...")
        conn.executescript(_to_v3_script())
        log.info("Schema migration to v3 complete (re-scan to populate source_line)")

    if version < 4:
        log.info("Migrating database schema to version 4 (adding edges.confidence + FTS5)...")
        conn.executescript(_drop_fts_script())
        name, decl = _EDGE_CONFIDENCE_COLUMN
        try:
            conn.execute(f"ALTER TABLE edges ADD COLUMN {name} {decl}")
        except sqlite3.OperationalError:
            pass  # column left behind by a half-finished earlier run
        conn.execute(_stamp(4))
        conn.commit()
        log.info("Schema migration to v4 complete")

    create_schema(conn)

    if _scalar(conn, f"SELECT COUNT(*) FROM {_FTS_TABLE}") == 0:
        nodes_rows = _scalar(conn, "SELECT COUNT(*) FROM nodes")
        if nodes_rows > 0:
            conn.executescript(_backfill_fts_script())
            log.info("Backfilled symbol_fts with %d rows", nodes_rows)


def clear_database(conn):
    """Delete every edge, node and file hash."""
    conn.executescript(_script(f"DELETE FROM {table}" for table in ("edges", "nodes", "file_hashes")))
    log.info("Database cleared")