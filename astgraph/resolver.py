"""Cross-file resolution of raw, name-based edges into concrete graph edges."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .graph import (
    CONFIDENCE_EXACT,
    CONFIDENCE_GLOBAL,
    CONFIDENCE_IMPORT_SCOPED,
    CONFIDENCE_SAME_FILE,
    Edge,
    EdgeKind,
    Language,
    NodeId,
    SymbolKind,
)
from .mro import (
    c3_linearize,
    enclosing_class,
    extract_super_method,
    lookup_super_method,
    python_parents_map,
)
from .paths import (
    build_file_index,
    load_path_aliases,
    resolve_alias_target,
    resolve_import_by_path,
)

log = logging.getLogger(__name__)

_EXTERNAL_NAMES = frozenset(
    {
        "useCallback", "useState", "useMemo", "useEffect", "useRef", "useContext",
        "useReducer", "useLayoutEffect", "useImperativeHandle", "useDebugValue",
        "setTimeout", "setInterval", "clearTimeout", "clearInterval",
        "requestAnimationFrame", "cancelAnimationFrame",
        "parseInt", "parseFloat", "Number", "Boolean", "String", "isNaN", "isFinite",
        "encodeURIComponent", "decodeURIComponent", "encodeURI", "decodeURI",
        "isEqual", "isNil", "cloneDeep", "debounce", "throttle", "omit", "pick",
        "super", "this",
    }
)
_EXTERNAL_HEAD_PREFIXES = (
    "React.", "window.", "document.", "console.", "Math.", "JSON.", "Object.",
    "Array.", "String.", "Number.", "Promise.", "Store.", "_.",
    "new Date",
)

_TOP_UNRESOLVED = 20


@dataclass
class ResolveStats:
    """Counters collected while resolving raw edges."""

    raw_edges: int = 0
    resolved: int = 0
    unresolved: int = 0
    external: int = 0
    super_resolved: int = 0
    synthesized_calls: int = 0
    unresolved_calls: dict[str, int] = field(default_factory=dict)

    @property
    def internal_rate(self):
        """Percentage of internal (non-external) raw edges that resolved."""
        denom = self.resolved + self.unresolved
        return self.resolved * 100.0 / denom if denom else 0.0


def build_name_index(graph):
    """Map symbol names, and their last ``::`` / ``.`` segments, to node ids."""
    index = {}
    for node_id, node in graph.nodes.items():
        name = node.name
        index.setdefault(name, []).append(node_id)
        last = name.rsplit("::", 1)[-1]
        if last != name:
            index.setdefault(last, []).append(node_id)
        last = name.rsplit(".", 1)[-1]
        if last != name:
            index.setdefault(last, []).append(node_id)
    return index


def resolve_call_target(target, index):
    """Node ids a call target may refer to, or None."""
    ids = index.get(target)
    if ids is not None:
        return list(ids)

    head, dot, tail = target.partition(".")
    if dot and head and "a" <= head[0] <= "z":
        ids = index.get(f"{head[0].upper()}{head[1:]}.{tail}")
        if ids is not None:
            return list(ids)

    last = target.rsplit(".", 1)[-1]
    if last != target:
        ids = index.get(last)
        if ids is not None:
            return list(ids)

    last = target.rsplit("::", 1)[-1]
    if last != target:
        ids = index.get(last)
        if ids is not None:
            return list(ids)

    return None


def resolve_import_by_name(target, index):
    """Name-based fallback for imports that could not be resolved by path."""
    ids = index.get(target)
    if ids is not None:
        return list(ids)
    last = target.rsplit("::", 1)[-1]
    if last != target:
        ids = index.get(last)
        if ids is not None:
            return list(ids)
    return None


def resolve_type_target(target, index):
    """Node ids for a type name used by extends, implements or references."""
    clean = target.split("<", 1)[0].strip()
    ids = index.get(clean)
    if ids is not None:
        return list(ids)
    last = clean.rsplit("::", 1)[-1]
    if last != clean:
        ids = index.get(last)
        if ids is not None:
            return list(ids)
    return None


def _is_external_call(target, constant_heads):
    head = target.split(".", 1)[0]
    return (
        target in _EXTERNAL_NAMES
        or head in _EXTERNAL_NAMES
        or target.startswith(_EXTERNAL_HEAD_PREFIXES)
        or ("." in target and head in constant_heads)
    )


def _route_path(name):
    _, sep, path = name.partition(" ")
    return path if sep else None


def resolve_edges(graph, root):
    """Turn the graph's raw edges into resolved edges in place.

    Structural edges are resolved first so that Python ``super()`` calls can
    use the resulting EXTENDS edges; then calls; finally CALLS edges are
    synthesized across HTTP boundaries from FETCHES and HANDLES_ROUTE.
    """
    path_aliases = load_path_aliases(root)
    if path_aliases:
        log.info("Loaded %d tsconfig path aliases", len(path_aliases))
    name_index = build_name_index(graph)
    file_index = build_file_index(graph)
    node_file = {node_id: str(node.file_path) for node_id, node in graph.nodes.items()}
    route_index = {}
    for node_id, node in graph.nodes.items():
        if node.kind == SymbolKind.ROUTE:
            route_index.setdefault(node.name, []).append(node_id)
    constant_heads = {
        node.name for node in graph.nodes.values() if node.kind == SymbolKind.CONSTANT
    }

    raw_edges = graph.raw_edges
    graph.raw_edges = []
    stats = ResolveStats(raw_edges=len(raw_edges))

    def pick_confidence(source, target, hit_count):
        src_file = node_file.get(source)
        if src_file is not None and src_file == node_file.get(target):
            return CONFIDENCE_SAME_FILE
        return CONFIDENCE_IMPORT_SCOPED if hit_count == 1 else CONFIDENCE_GLOBAL

    def link(raw, target, kind, confidence):
        graph.add_edge(
            Edge(
                source=raw.source,
                target=target,
                kind=kind,
                source_line=raw.source_line,
                confidence=confidence,
            )
        )
        stats.resolved += 1

    def link_exact_hex(raw, kind):
        target = NodeId.from_hex(raw.target_name)
        if target is not None and target in graph.nodes:
            link(raw, target, kind, CONFIDENCE_EXACT)
            return True
        return False

    # Pass 1: everything except CALLS.
    for raw in raw_edges:
        kind = raw.kind
        if kind == EdgeKind.CALLS:
            continue
        if kind in (EdgeKind.CONTAINS, EdgeKind.HANDLES_ROUTE):
            if not link_exact_hex(raw, kind):
                stats.unresolved += 1
        elif kind == EdgeKind.IMPORTS:
            if raw.target_module is None and link_exact_hex(raw, kind):
                continue
            alias_resolved = (
                resolve_alias_target(raw.target_name, path_aliases)
                if raw.target_module is None
                else None
            )
            targets = None
            if raw.target_module is not None:
                targets = resolve_import_by_path(raw.target_module, file_index)
            if targets is None and alias_resolved is not None:
                targets = resolve_import_by_path(alias_resolved, file_index)
            if targets is not None:
                for target in targets:
                    link(raw, target, kind, CONFIDENCE_EXACT)
                continue
            targets = resolve_import_by_name(raw.target_name, name_index)
            if targets is None:
                stats.unresolved += 1
                continue
            confidence = CONFIDENCE_IMPORT_SCOPED if len(targets) == 1 else CONFIDENCE_GLOBAL
            for target in targets:
                link(raw, target, kind, confidence)
        elif kind in (EdgeKind.EXTENDS, EdgeKind.IMPLEMENTS, EdgeKind.REFERENCES):
            targets = resolve_type_target(raw.target_name, name_index)
            if targets is None:
                stats.unresolved += 1
                continue
            for target in targets:
                link(raw, target, kind, pick_confidence(raw.source, target, len(targets)))
        elif kind == EdgeKind.FETCHES:
            targets = route_index.get(raw.target_name)
            if targets is not None:
                for target in targets:
                    link(raw, target, kind, CONFIDENCE_EXACT)
                continue
            path = _route_path(raw.target_name)
            if path is None:
                stats.unresolved += 1
                continue
            matched = False
            for name, ids in route_index.items():
                if _route_path(name) == path:
                    for target in ids:
                        link(raw, target, kind, CONFIDENCE_GLOBAL)
                        matched = True
            if not matched:
                stats.unresolved += 1
        else:
            stats.unresolved += 1

    # Pass 2: CALLS, with C3 MRO for Python super() calls.
    py_parents = python_parents_map(graph)
    mro_cache = {}
    for raw in raw_edges:
        if raw.kind != EdgeKind.CALLS:
            continue

        method_name = extract_super_method(raw.target_name)
        source_node = graph.nodes.get(raw.source)
        if (
            method_name is not None
            and source_node is not None
            and source_node.language == Language.PYTHON
        ):
            class_id = enclosing_class(graph, raw.source)
            if class_id is not None:
                if class_id not in mro_cache:
                    mro_cache[class_id] = c3_linearize(class_id, py_parents)
                target = lookup_super_method(
                    graph, class_id, method_name, mro_cache, py_parents
                )
                if target is not None:
                    link(raw, target, EdgeKind.CALLS, CONFIDENCE_EXACT)
                    stats.super_resolved += 1
                    continue

        targets = resolve_call_target(raw.target_name, name_index)
        if targets is not None:
            for target in targets:
                link(
                    raw,
                    target,
                    EdgeKind.CALLS,
                    pick_confidence(raw.source, target, len(targets)),
                )
        elif _is_external_call(raw.target_name, constant_heads):
            stats.external += 1
        else:
            stats.unresolved += 1
            stats.unresolved_calls[raw.target_name] = (
                stats.unresolved_calls.get(raw.target_name, 0) + 1
            )

    if stats.super_resolved:
        log.info("Resolved %d Python super().X calls via C3 MRO", stats.super_resolved)

    # Pass 3: caller -[CALLS]-> handler across the HTTP boundary.
    handlers_of = {}
    for src, edges in graph.adjacency.items():
        for edge in edges:
            if edge.kind == EdgeKind.HANDLES_ROUTE:
                handlers_of.setdefault(edge.target, []).append(src)
    to_add = [
        Edge(
            source=src,
            target=handler,
            kind=EdgeKind.CALLS,
            source_line=edge.source_line,
            confidence=edge.confidence,
        )
        for src, edges in graph.adjacency.items()
        for edge in edges
        if edge.kind == EdgeKind.FETCHES
        for handler in handlers_of.get(edge.target, ())
    ]
    for edge in to_add:
        graph.add_edge(edge)
    stats.synthesized_calls = len(to_add)
    if to_add:
        log.info(
            "Synthesized %d cross-HTTP CALLS edges from FETCHES + HANDLES_ROUTE",
            len(to_add),
        )

    graph.refresh_metadata()
    log.info(
        "Resolution complete: %d resolved, %d internal-unresolved, %d external "
        "(out of %d raw edges) - internal rate: %.1f%%",
        stats.resolved,
        stats.unresolved,
        stats.external,
        stats.raw_edges,
        stats.internal_rate,
    )
    if stats.unresolved_calls:
        top = sorted(stats.unresolved_calls.items(), key=lambda kv: (-kv[1], kv[0]))
        top = top[:_TOP_UNRESOLVED]
        log.info("Top %d unresolved call targets:", len(top))
        for name, count in top:
            log.info("  %6d  %s", count, name)
    return stats