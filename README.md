# astgraph

`astgraph` works on an in-memory graph of source-code symbols: files, classes,
functions, methods, routes and processes, joined by edges such as calls,
imports, inheritance, HTTP fetches and route handlers. It turns name-based
raw edges into concrete edges with a confidence value, finds web routes from
file-based routing layouts, traces processes from entry points, and provides
the SQLite schema and the storage interface for keeping such a graph.

It has no dependencies beyond the standard library.

## Install

```
pip install .
```

Run the tests with:

```
pip install .[test]
pytest
```

## Modules

- `astgraph.graph`: the data model. `NodeId` (a 64-bit id printed as 16 hex
  digits; `NodeId.new(file_path, name, kind, line)` derives one,
  `NodeId.from_hex(text)` parses one), the enums `SymbolKind`, `EdgeKind`,
  `Language` and `Visibility`, the dataclasses `SymbolNode`, `Edge`,
  `RawEdge` and `GraphMetadata`, and `CodeGraph` with `add_node`,
  `add_edge`, `add_raw_edge`, `outgoing` and `refresh_metadata`. The
  confidence levels are `CONFIDENCE_EXACT` (1.0), `CONFIDENCE_SAME_FILE`
  (0.95), `CONFIDENCE_IMPORT_SCOPED` (0.9) and `CONFIDENCE_GLOBAL` (0.5).
- `astgraph.routes`: `derive_route_path(path)` maps a forward-slashed file
  path to its URL path for Next.js (App Router pages and `route.ts` files,
  Pages Router), Remix, Nuxt and SvelteKit layouts, or returns `None`.
  `detect_filebased_routes(graph)` adds a `Route` node for every such file
  that has a `File` node, plus `HANDLES_ROUTE` raw edges from its handler
  (one route per exported HTTP verb function in `route.ts` files).
- `astgraph.mro`: `c3_linearize(class_id, parents)`,
  `python_parents_map(graph)`, `enclosing_class(graph, node_id)`,
  `lookup_super_method(...)` and `extract_super_method(target)`, used to
  resolve Python `super().method()` calls.
- `astgraph.paths`: `load_path_aliases(root)` reads `paths` aliases from
  `tsconfig.json` or `jsconfig.json`; also `normalize_path`,
  `resolve_alias_target`, `strip_ext`, `build_file_index` and
  `resolve_import_by_path`.
- `astgraph.resolver`: `resolve_edges(graph, root)` resolves every raw edge
  in place and returns a `ResolveStats` (`resolved`, `unresolved`,
  `external`, `super_resolved`, `synthesized_calls`, `unresolved_calls`,
  `internal_rate`). It also adds `CALLS` edges from a fetching symbol to the
  handlers of the route it fetches. The lookup helpers `build_name_index`,
  `resolve_call_target`, `resolve_import_by_name` and `resolve_type_target`
  are public too.
- `astgraph.processes`: `detect_entry_points(graph)` finds route handlers,
  `main`-style functions and test functions; `trace_processes(graph,
  max_depth=6, max_steps=50)` adds a `Process` node per entry point with
  `ENTRY_POINT_OF` and `STEP_IN_PROCESS` edges along its call chain, and
  returns `(process_count, step_edge_count)`.
- `astgraph.schema`: `create_schema(conn)`, `migrate_schema(conn)` and
  `clear_database(conn)` for a `sqlite3` connection. The schema has `nodes`,
  `edges`, `file_hashes`, `schema_version` and an FTS5 table `symbol_fts`
  kept in step with `nodes` by triggers (so SQLite must be built with FTS5).
  `SCHEMA_VERSION` is 4; older databases are migrated step by step.
- `astgraph.storage`: the abstract `GraphStorage` interface (save and load a
  graph, file hashes, call chains, shortest path, hotspots, symbol search and
  more), `BackendKind`, and `default_db_path(project_root)`, which returns
  `.ast-graph/graph.db` under the project and creates the directory.

## Example

```python
import sqlite3

from astgraph.graph import (
    CodeGraph, EdgeKind, Language, NodeId, RawEdge, SymbolKind, SymbolNode,
)
from astgraph.processes import trace_processes
from astgraph.resolver import resolve_edges
from astgraph.routes import derive_route_path
from astgraph.schema import create_schema, migrate_schema

graph = CodeGraph(project_root="my-project")


def add(name, line):
    node = SymbolNode(
        id=NodeId.new("app.py", name, SymbolKind.FUNCTION, line),
        name=name,
        kind=SymbolKind.FUNCTION,
        file_path="app.py",
        line_range=(line, line + 3),
        language=Language.PYTHON,
    )
    graph.add_node(node)
    return node.id


main_id = add("main", 1)
add("helper", 10)
graph.add_raw_edge(RawEdge(source=main_id, kind=EdgeKind.CALLS, target_name="helper", source_line=2))

stats = resolve_edges(graph, "my-project")
print(stats.resolved)                 # 1
print(trace_processes(graph))         # (1, 2)

print(derive_route_path("/repo/app/users/[id]/page.tsx"))   # /users/:id

conn = sqlite3.connect(":memory:")
create_schema(conn)
migrate_schema(conn)
```

## What this package does not do

- It does not parse source files. Nodes and raw edges must come from your
  own parser.
- It has no working storage backend. `astgraph.schema` creates and migrates
  the tables and `astgraph.storage.GraphStorage` describes the operations a
  store offers, but nothing in the package implements that interface: there
  is no code here that writes a `CodeGraph` to the database, reads it back
  or runs the queries.
- It has no command-line program.