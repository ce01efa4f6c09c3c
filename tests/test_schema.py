import sqlite3

import pytest

from astgraph.schema import SCHEMA_VERSION, clear_database, create_schema, migrate_schema


@pytest.fixture
def conn():
    connection = sqlite3.connect(":memory:")
    yield connection
    connection.close()


def _columns(conn, table):
    return [row[1] for row in conn.execute(f"PRAGMA table_info({table})")]


def _objects(conn, kind):
    return {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = ?", (kind,))}


def _version(conn):
    return conn.execute("SELECT MAX(version) FROM schema_version").fetchone()[0]


def _insert_node(conn, node_id, name, signature=None):
    conn.execute(
        "INSERT INTO nodes (id, name, kind, file_path, line_start, line_end, signature, "
        "doc_comment, visibility, language, parent_id) "
        "VALUES (?, ?, 'Function', 'a.py', 1, 2, ?, NULL, 'Public', 'python', NULL)",
        (node_id, name, signature),
    )


def test_create_schema_builds_tables(conn):
    create_schema(conn)
    tables = _objects(conn, "table")
    assert {"schema_version", "nodes", "edges", "file_hashes", "symbol_fts"} <= tables
    assert _columns(conn, "edges") == [
        "source_id",
        "target_id",
        "kind",
        "source_line",
        "confidence",
    ]


def test_create_schema_builds_indexes_and_triggers(conn):
    create_schema(conn)
    assert {"idx_edges_confidence", "idx_nodes_file_kind", "idx_edges_source_line"} <= _objects(
        conn, "index"
    )
    assert {"nodes_fts_ai", "nodes_fts_ad", "nodes_fts_au"} <= _objects(conn, "trigger")


def test_create_schema_is_idempotent(conn):
    create_schema(conn)
    _insert_node(conn, "aa", "alpha")
    conn.commit()
    create_schema(conn)
    assert conn.execute("SELECT name FROM nodes").fetchall() == [("alpha",)]


def test_fts_follows_inserts_updates_and_deletes(conn):
    create_schema(conn)
    _insert_node(conn, "aa", "parser", signature="fn parser()")
    rows = conn.execute("SELECT id FROM symbol_fts WHERE symbol_fts MATCH 'parser'").fetchall()
    assert rows == [("aa",)]

    conn.execute("UPDATE nodes SET name = 'lexer' WHERE id = 'aa'")
    assert conn.execute("SELECT id FROM symbol_fts WHERE symbol_fts MATCH 'lexer'").fetchall() == [
        ("aa",)
    ]
    assert conn.execute("SELECT COUNT(*) FROM symbol_fts").fetchone()[0] == 1

    conn.execute("DELETE FROM nodes WHERE id = 'aa'")
    assert conn.execute("SELECT COUNT(*) FROM symbol_fts").fetchone()[0] == 0


def test_edges_cascade_when_foreign_keys_enabled(conn):
    create_schema(conn)
    conn.execute("PRAGMA foreign_keys = ON")
    _insert_node(conn, "aa", "a")
    _insert_node(conn, "bb", "b")
    conn.execute("INSERT INTO edges (source_id, target_id, kind) VALUES ('aa', 'bb', 'CALLS')")
    conn.execute("DELETE FROM nodes WHERE id = 'bb'")
    assert conn.execute("SELECT COUNT(*) FROM edges").fetchone()[0] == 0


def test_edge_defaults(conn):
    create_schema(conn)
    _insert_node(conn, "aa", "a")
    _insert_node(conn, "bb", "b")
    conn.execute("INSERT INTO edges (source_id, target_id, kind) VALUES ('aa', 'bb', 'CALLS')")
    assert conn.execute("SELECT source_line, confidence FROM edges").fetchone() == (0, 1.0)


def test_migrate_fresh_database_stamps_version(conn):
    create_schema(conn)
    migrate_schema(conn)
    assert _version(conn) == 4


def test_migrate_is_noop_when_current(conn):
    create_schema(conn)
    migrate_schema(conn)
    _insert_node(conn, "aa", "alpha")
    conn.commit()
    migrate_schema(conn)
    assert _version(conn) == SCHEMA_VERSION
    assert conn.execute("SELECT COUNT(*) FROM nodes").fetchone()[0] == 1


_NODES_V1 = """
CREATE TABLE schema_version (version INTEGER PRIMARY KEY);
CREATE TABLE nodes (
    id TEXT PRIMARY KEY, name TEXT NOT NULL, kind TEXT NOT NULL,
    file_path TEXT NOT NULL, line_start INTEGER NOT NULL, line_end INTEGER NOT NULL,
    signature TEXT, doc_comment TEXT, visibility TEXT NOT NULL, language TEXT NOT NULL,
    parent_id TEXT
);
"""


def _seed_nodes(conn):
    _insert_node(conn, "aa", "alpha")
    _insert_node(conn, "bb", "beta")


def test_migrate_from_v3(conn):
    conn.executescript(
        _NODES_V1
        + """
        CREATE TABLE edges (
            source_id TEXT NOT NULL, target_id TEXT NOT NULL, kind TEXT NOT NULL,
            source_line INTEGER NOT NULL DEFAULT 0,
            PRIMARY KEY (source_id, target_id, kind, source_line)
        );
        INSERT INTO schema_version VALUES (3);
        """
    )
    _seed_nodes(conn)
    conn.execute(
        "INSERT INTO edges (source_id, target_id, kind, source_line) VALUES ('aa', 'bb', 'CALLS', 7)"
    )
    conn.commit()

    migrate_schema(conn)

    assert _version(conn) == SCHEMA_VERSION
    assert "confidence" in _columns(conn, "edges")
    assert conn.execute("SELECT source_line, confidence FROM edges").fetchall() == [(7, 1.0)]
    assert conn.execute("SELECT COUNT(*) FROM symbol_fts").fetchone()[0] == 2
    assert "idx_edges_confidence" in _objects(conn, "index")


def test_migrate_from_v2_resets_source_line(conn):
    conn.executescript(
        _NODES_V1
        + """
        CREATE TABLE edges (
            source_id TEXT NOT NULL, target_id TEXT NOT NULL, kind TEXT NOT NULL,
            PRIMARY KEY (source_id, target_id, kind)
        );
        INSERT INTO schema_version VALUES (2);
        """
    )
    _seed_nodes(conn)
    conn.execute("INSERT INTO edges VALUES ('aa', 'bb', 'CALLS')")
    conn.commit()

    migrate_schema(conn)

    assert _version(conn) == SCHEMA_VERSION
    assert conn.execute(
        "SELECT source_id, target_id, kind, source_line, confidence FROM edges"
    ).fetchall() == [("aa", "bb", "CALLS", 0, 1.0)]


def test_migrate_from_v1_drops_dangling_edges(conn):
    conn.executescript(
        _NODES_V1
        + """
        CREATE TABLE edges (
            source_id TEXT NOT NULL, target_id TEXT NOT NULL, kind TEXT NOT NULL
        );
        """
    )
    _seed_nodes(conn)
    conn.execute("INSERT INTO edges VALUES ('aa', 'bb', 'CALLS')")
    conn.execute("INSERT INTO edges VALUES ('aa', 'zz', 'CALLS')")
    conn.commit()

    migrate_schema(conn)

    assert _version(conn) == SCHEMA_VERSION
    assert conn.execute("SELECT source_id, target_id FROM edges").fetchall() == [("aa", "bb")]
    assert conn.execute("SELECT COUNT(*) FROM nodes").fetchone()[0] == 2
    assert conn.execute("SELECT COUNT(*) FROM symbol_fts").fetchone()[0] == 2


def test_clear_database_empties_tables(conn):
    create_schema(conn)
    _seed_nodes(conn)
    conn.execute("INSERT INTO edges (source_id, target_id, kind) VALUES ('aa', 'bb', 'CALLS')")
    conn.execute("INSERT INTO file_hashes VALUES ('a.py', ?)", (bytes(32),))
    conn.commit()

    clear_database(conn)

    for table in ("nodes", "edges", "file_hashes", "symbol_fts"):
        assert conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0] == 0