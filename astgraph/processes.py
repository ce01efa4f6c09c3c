"""Process tracing: entry-point detection and call-chain walks into Process nodes."""

from __future__ import annotations

from collections import deque

from .graph import (
    CONFIDENCE_EXACT,
    Edge,
    EdgeKind,
    NodeId,
    SymbolKind,
    SymbolNode,
    Visibility,
)

DEFAULT_MAX_DEPTH = 6
DEFAULT_MAX_STEPS = 50

_CALLABLE_KINDS = {SymbolKind.FUNCTION, SymbolKind.METHOD, SymbolKind.CONSTRUCTOR}


def trace_processes(graph, max_depth=DEFAULT_MAX_DEPTH, max_steps=DEFAULT_MAX_STEPS):
    """Add Process nodes and their edges to `graph` in place.

    Returns ``(process_count, step_edge_count)``.
    """
    entry_points = detect_entry_points(graph)
    if not entry_points:
        return 0, 0

    process_count = 0
    step_count = 0
    new_nodes = []
    new_edges = []

    for entry_id, entry_label in entry_points:
        entry = graph.nodes.get(entry_id)
        if entry is None:
            continue
        file_path = entry.file_path
        line = entry.line_range[0]
        proc_name = f"Process: {entry_label if entry_label is not None else entry.name}"
        proc_id = NodeId.new(file_path, proc_name, SymbolKind.PROCESS, line)
        if proc_id in graph.nodes:
            continue

        new_nodes.append(
            SymbolNode(
                id=proc_id,
                name=proc_name,
                kind=SymbolKind.PROCESS,
                file_path=file_path,
                line_range=(line, line),
                signature=f"process rooted at {entry.name}",
                doc_comment=None,
                visibility=Visibility.PUBLIC,
                language=entry.language,
                parent=None,
            )
        )
        process_count += 1

        new_edges.append(
            Edge(
                source=entry_id,
                target=proc_id,
                kind=EdgeKind.ENTRY_POINT_OF,
                source_line=line,
                confidence=CONFIDENCE_EXACT,
            )
        )

        queue = deque([(entry_id, 0)])
        seen = {entry_id}
        step_index = 1
        new_edges.append(
            Edge(
                source=entry_id,
                target=proc_id,
                kind=EdgeKind.STEP_IN_PROCESS,
                source_line=step_index,
                confidence=CONFIDENCE_EXACT,
            )
        )
        step_count += 1
        step_index += 1

        while queue:
            current, depth = queue.popleft()
            if depth >= max_depth or step_count >= max_steps * process_count:
                continue
            for edge in list(graph.outgoing(current)):
                if edge.kind != EdgeKind.CALLS:
                    continue
                if edge.target in seen:
                    continue
                seen.add(edge.target)
                if step_index > max_steps:
                    break
                new_edges.append(
                    Edge(
                        source=edge.target,
                        target=proc_id,
                        kind=EdgeKind.STEP_IN_PROCESS,
                        source_line=step_index,
                        confidence=edge.confidence,
                    )
                )
                step_count += 1
                step_index += 1
                queue.append((edge.target, depth + 1))

    for node in new_nodes:
        graph.add_node(node)
    for edge in new_edges:
        graph.add_edge(edge)
    graph.refresh_metadata()
    return process_count, step_count


def _last_segment(name):
    last = name.rsplit(".", 1)[-1]
    return last.rsplit("::", 1)[-1]


def detect_entry_points(graph):
    """Entry points as ``(node_id, label)`` pairs; label is the route name for handlers."""
    entries = []
    seen = set()

    for src, edges in graph.adjacency.items():
        for edge in edges:
            if edge.kind != EdgeKind.HANDLES_ROUTE or src in seen:
                continue
            seen.add(src)
            target = graph.nodes.get(edge.target)
            entries.append((src, target.name if target is not None else None))

    for node_id, node in graph.nodes.items():
        if node.kind not in _CALLABLE_KINDS:
            continue
        name = node.name
        last = _last_segment(name)
        is_main = last in ("main", "Main") or name == "Program.Main"
        is_test = (
            last.startswith("test_")
            or last.startswith("Test")
            or last.endswith("Test")
            or last.endswith("_test")
        )
        if (is_main or is_test) and node_id not in seen:
            seen.add(node_id)
            entries.append((node_id, None))

    return entries