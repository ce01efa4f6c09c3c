"""File-based route detection for Next.js, Remix, Nuxt and SvelteKit layouts."""

from __future__ import annotations

from .graph import (
    EdgeKind,
    Language,
    NodeId,
    RawEdge,
    SymbolKind,
    SymbolNode,
    Visibility,
)

_HTTP_VERBS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")
_HANDLER_KINDS = {SymbolKind.FUNCTION, SymbolKind.METHOD, SymbolKind.CONSTRUCTOR}
_SCRIPT_EXTS = (".tsx", ".ts", ".jsx", ".js")


def _route_node(node_id, name, file_path, language):
    return SymbolNode(
        id=node_id,
        name=name,
        kind=SymbolKind.ROUTE,
        file_path=file_path,
        line_range=(0, 0),
        signature=f"route {name}",
        doc_comment=None,
        visibility=Visibility.PUBLIC,
        language=language,
        parent=None,
    )


def detect_filebased_routes(graph):
    """Add Route nodes and HANDLES_ROUTE raw edges for file-based routing files."""
    new_nodes = []
    new_raw_edges = []

    for file_path, node_ids in list(graph.file_index.items()):
        normalized = file_path.replace("\\", "/")
        route_path = derive_route_path(normalized)
        if route_path is None:
            continue

        file_node_id = next(
            (
                nid
                for nid in node_ids
                if nid in graph.nodes and graph.nodes[nid].kind == SymbolKind.FILE
            ),
            None,
        )
        if file_node_id is None:
            continue
        file_node = graph.nodes.get(file_node_id)
        language = file_node.language if file_node is not None else Language.TYPESCRIPT

        is_app_route_ts = "/app/" in normalized and normalized.endswith(
            ("/route.ts", "/route.tsx", "/route.js")
        )
        if is_app_route_ts:
            emitted_any = False
            for verb in _HTTP_VERBS:
                handler_id = next(
                    (
                        nid
                        for nid in node_ids
                        if nid in graph.nodes
                        and (
                            graph.nodes[nid].name == verb
                            or graph.nodes[nid].name.endswith(f".{verb}")
                        )
                    ),
                    None,
                )
                if handler_id is None:
                    continue
                emitted_any = True
                verb_route_name = f"{verb} {route_path}"
                verb_id = NodeId.new(normalized, verb_route_name, SymbolKind.ROUTE, 0)
                if verb_id not in graph.nodes:
                    new_nodes.append(
                        _route_node(verb_id, verb_route_name, file_path, language)
                    )
                new_raw_edges.append(
                    RawEdge(
                        source=handler_id,
                        kind=EdgeKind.HANDLES_ROUTE,
                        target_name=str(verb_id),
                        target_module=None,
                        source_line=0,
                    )
                )
            if emitted_any:
                continue

        route_name = f"GET {route_path}"
        route_id = NodeId.new(normalized, route_name, SymbolKind.ROUTE, 0)
        if route_id not in graph.nodes:
            new_nodes.append(_route_node(route_id, route_name, file_path, language))
        handlers = [
            (nid, graph.nodes[nid])
            for nid in node_ids
            if nid in graph.nodes and graph.nodes[nid].kind in _HANDLER_KINDS
        ]
        if handlers:
            handler_id, _ = min(handlers, key=lambda pair: pair[1].line_range[0])
            new_raw_edges.append(
                RawEdge(
                    source=handler_id,
                    kind=EdgeKind.HANDLES_ROUTE,
                    target_name=str(route_id),
                    target_module=None,
                    source_line=0,
                )
            )

    for node in new_nodes:
        graph.add_node(node)
    for edge in new_raw_edges:
        graph.add_raw_edge(edge)


def _trim_suffix_all(text, suffix):
    while suffix and text.endswith(suffix):
        text = text[: -len(suffix)]
    return text


def _trim_prefix_all(text, prefix):
    while prefix and text.startswith(prefix):
        text = text[len(prefix):]
    return text


def _parent_dir(path):
    return path.rpartition("/")[0] if "/" in path else ""


def _strip_index(no_ext):
    return "" if no_ext == "index" else _trim_suffix_all(no_ext, "/index")


def derive_route_path(normalized):
    """URL path for a forward-slashed file path, or None if it is not a route file."""
    lower = normalized.lower()

    if "/routes/" in lower and lower.endswith("/+page.svelte"):
        after = normalized.split("/routes/")[-1]
        return _svelte_path(_trim_suffix_all(after, "/+page.svelte"))

    if "/app/" in lower and lower.endswith(("/page.tsx", "/page.ts", "/page.jsx", "/page.js")):
        after = normalized.split("/app/")[-1]
        return _nextjs_path(_parent_dir(after))

    if "/app/" in lower and lower.endswith(("/route.ts", "/route.tsx", "/route.js")):
        after = normalized.split("/app/")[-1]
        return _nextjs_path(_parent_dir(after))

    if "/pages/" in lower and lower.endswith(_SCRIPT_EXTS):
        after = normalized.split("/pages/")[-1]
        lower_after = after.lower()
        if lower_after.startswith(("_app.", "_document.", "_error.", "api/")):
            return None
        return _nextjs_path(_strip_index(_strip_ext(after)))

    if "/pages/" in lower and lower.endswith(".vue"):
        after = normalized.split("/pages/")[-1]
        return _nextjs_path(_strip_index(_trim_suffix_all(after, ".vue")))

    if "/routes/" in lower and lower.endswith(_SCRIPT_EXTS):
        after = normalized.split("/routes/")[-1]
        cleaned = (
            _strip_ext(after)
            .replace("._index", "")
            .replace("_index", "")
            .replace(".", "/")
            .replace("$", ":")
        ).rstrip("/")
        return "/" if not cleaned else "/" + cleaned.lstrip("/")

    return None


def _is_group(segment):
    return segment.startswith("(") and segment.endswith(")")


def _nextjs_path(rel):
    trimmed = rel.strip("/")
    if not trimmed:
        return "/"
    parts = []
    for seg in trimmed.split("/"):
        if _is_group(seg):
            continue
        if seg.startswith("[...") and seg[4:].endswith("]"):
            parts.append(f":{seg[4:-1]}*")
        elif seg.startswith("[") and seg[1:].endswith("]"):
            parts.append(f":{seg[1:-1]}")
        else:
            parts.append(seg)
    return "/" + "/".join(parts)


def _svelte_path(rel):
    trimmed = rel.strip("/")
    if not trimmed:
        return "/"
    parts = []
    for seg in trimmed.split("/"):
        if _is_group(seg):
            continue
        if seg.startswith("[") and seg[1:].endswith("]"):
            parts.append(":" + _trim_prefix_all(seg[1:-1], "..."))
        else:
            parts.append(seg)
    return "/" + "/".join(parts)


def _strip_ext(path):
    for ext in (".tsx", ".ts", ".jsx", ".js", ".vue", ".svelte"):
        if path.endswith(ext):
            return path[: -len(ext)]
    return path