"""Path helpers for import resolution: tsconfig aliases, normalization, file index."""

from __future__ import annotations

import os

from .graph import SymbolKind

_CONFIG_NAMES = ("tsconfig.json", "jsconfig.json")
_RESOLVE_EXTS = (".tsx", ".jsx", ".ts", ".mjs", ".cjs", ".js")
_PROBE_SUFFIXES = (
    "",
    ".js",
    ".jsx",
    ".ts",
    ".tsx",
    "/index.js",
    "/index.jsx",
    "/index.ts",
    "/index.tsx",
)


def _slashed(path):
    return str(path).replace("\\", "/")


def _rstrip_all(text, suffix):
    while suffix and text.endswith(suffix):
        text = text[: -len(suffix)]
    return text


def _read_base_url(text, root):
    key = '"baseUrl"'
    start = text.find(key)
    if start < 0:
        return _slashed(root)
    after = text[start + len(key):]
    colon = after.find(":")
    if colon < 0:
        return _slashed(root)
    after = after[colon + 1:].lstrip()
    if not after.startswith('"'):
        return _slashed(root)
    inner = after[1:]
    end = inner.find('"')
    if end < 0:
        return _slashed(root)
    return _slashed(os.path.join(str(root), inner[:end]))


def _paths_block(text):
    start = text.find('"paths"')
    if start < 0:
        return None
    after = text[start:]
    brace = after.find("{")
    if brace < 0:
        return None
    block = after[brace:]
    depth = 0
    for i, ch in enumerate(block):
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return block[: i + 1]
    return block


def _path_entries(block):
    """Yield ``(key, first_value)`` pairs scanned from a ``paths`` block."""
    pos = 0
    while pos < len(block):
        rel = block.find('"', pos)
        if rel < 0:
            return
        key_start = rel + 1
        key_end = block.find('"', key_start)
        if key_end < 0:
            return
        key = block[key_start:key_end]
        pos = key_end + 1
        bracket = block.find("[", pos)
        if bracket < 0:
            return
        arr = bracket + 1
        quote = block.find('"', arr)
        if quote < 0:
            return
        val_start = quote + 1
        val_end = block.find('"', val_start)
        if val_end < 0:
            return
        value = block[val_start:val_end]
        pos = val_end + 1
        yield key, value


def load_path_aliases(root):
    """Read ``(alias_prefix, absolute_dir)`` pairs from tsconfig.json or jsconfig.json.

    Only the first config file that can be read is consulted.
    """
    aliases = []
    for name in _CONFIG_NAMES:
        try:
            with open(os.path.join(str(root), name), encoding="utf-8") as fh:
                text = fh.read()
        except (OSError, UnicodeDecodeError):
            continue
        base_url = _read_base_url(text, root)
        block = _paths_block(text)
        if block is not None:
            for key, value in _path_entries(block):
                alias_prefix = _rstrip_all(key, "/*").rstrip("*")
                target_suffix = _rstrip_all(value, "/*").rstrip("*")
                aliases.append(
                    (alias_prefix, normalize_path(f"{base_url}/{target_suffix}"))
                )
        break
    return aliases


def normalize_path(path):
    """Forward-slash a path and collapse ``.``, ``..`` and empty segments."""
    norm = path.replace("\\", "/")
    parts = []
    for seg in norm.split("/"):
        if seg in ("", "."):
            continue
        if seg == "..":
            if parts:
                parts.pop()
        else:
            parts.append(seg)
    result = "/".join(parts)
    return f"/{result}" if norm.startswith("/") else result


def resolve_alias_target(target, aliases):
    """Absolute path for an aliased import, or None if no alias prefix matches."""
    for prefix, abs_dir in aliases:
        if target.startswith(prefix):
            rest = target[len(prefix):].lstrip("/")
            return abs_dir if not rest else f"{abs_dir}/{rest}"
    return None


def strip_ext(path):
    """Drop a JavaScript/TypeScript module extension, if present."""
    for ext in _RESOLVE_EXTS:
        if path.endswith(ext):
            return path[: -len(ext)]
    return path


def build_file_index(graph):
    """Map normalized File-node paths, with and without extension, to their ids."""
    index = {}
    for node_id, node in graph.nodes.items():
        if node.kind != SymbolKind.FILE:
            continue
        norm = normalize_path(_slashed(node.file_path))
        index[strip_ext(norm)] = node_id
        index[norm] = node_id
    return index


def resolve_import_by_path(abs_base, file_index):
    """Find the file an import path points at by probing extensions and index files."""
    base = normalize_path(abs_base)
    for suffix in _PROBE_SUFFIXES:
        node_id = file_index.get(base + suffix)
        if node_id is not None:
            return [node_id]
    return None