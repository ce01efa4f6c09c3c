"""C3 method resolution order for resolving Python ``super()`` calls."""

from __future__ import annotations

from .graph import EdgeKind, Language, SymbolKind

_CONTAINER_KINDS = {
    SymbolKind.CLASS,
    SymbolKind.STRUCT,
    SymbolKind.TRAIT,
    SymbolKind.INTERFACE,
}
_METHOD_KINDS = {SymbolKind.METHOD, SymbolKind.FUNCTION}


def c3_linearize(class_id, parents):
    """C3 linearization of `class_id`, starting with the class itself.

    Returns None for an inconsistent or cyclic hierarchy.
    """
    memo = {}

    def linearize(cls):
        if cls in memo:
            cached = memo[cls]
            return list(cached) if cached is not None else None
        memo[cls] = None  # in progress: a revisit means a cycle
        direct = list(parents.get(cls, []))
        to_merge = []
        for parent in direct:
            lin = linearize(parent)
            if lin is None:
                memo[cls] = None
                return None
            to_merge.append(lin)
        if direct:
            to_merge.append(list(direct))
        result = [cls]
        while True:
            to_merge = [lst for lst in to_merge if lst]
            if not to_merge:
                break
            picked = next(
                (
                    lst[0]
                    for lst in to_merge
                    if not any(lst[0] in other[1:] for other in to_merge)
                ),
                None,
            )
            if picked is None:
                memo[cls] = None
                return None
            result.append(picked)
            for lst in to_merge:
                if lst[0] == picked:
                    del lst[0]
        memo[cls] = list(result)
        return result

    return linearize(class_id)


def python_parents_map(graph):
    """Map each Python class to its direct Python base classes via EXTENDS edges."""
    parents = {}
    for src, edges in graph.adjacency.items():
        src_node = graph.nodes.get(src)
        if src_node is None:
            continue
        if src_node.language != Language.PYTHON or src_node.kind != SymbolKind.CLASS:
            continue
        for edge in edges:
            if edge.kind != EdgeKind.EXTENDS:
                continue
            target = graph.nodes.get(edge.target)
            if (
                target is not None
                and target.kind == SymbolKind.CLASS
                and target.language == Language.PYTHON
            ):
                parents.setdefault(src, []).append(edge.target)
    return parents


def enclosing_class(graph, node_id):
    """The class-like parent of a node, or None."""
    node = graph.nodes.get(node_id)
    if node is None or node.parent is None:
        return None
    parent = graph.nodes.get(node.parent)
    if parent is not None and parent.kind in _CONTAINER_KINDS:
        return node.parent
    return None


def _member_simple_name(qualified):
    return qualified.rsplit(".", 1)[-1]


def lookup_super_method(graph, class_id, method_name, mro_cache, parents):
    """First method named `method_name` among the ancestors of `class_id` in C3 order."""
    if class_id in mro_cache:
        mro = mro_cache[class_id]
    else:
        mro = c3_linearize(class_id, parents)
        mro_cache[class_id] = mro
    if mro is None:
        return None
    for cls_id in mro[1:]:
        for node_id, node in graph.nodes.items():
            if node.parent != cls_id or node.kind not in _METHOD_KINDS:
                continue
            if _member_simple_name(node.name) == method_name:
                return node_id
    return None


def extract_super_method(target):
    """Method name of a ``super().method`` target, or None if it is not one."""
    if not target.startswith("super("):
        return None
    close = target.find(").")
    if close < 0:
        return None
    after = target[close + 2:]
    if not after or "." in after or "(" in after:
        return None
    return after