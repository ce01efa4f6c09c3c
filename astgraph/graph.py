"""Core graph model: symbol nodes, resolved and raw edges, and the code graph."""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass, field
from enum import Enum

CONFIDENCE_EXACT = 1.0
CONFIDENCE_SAME_FILE = 0.95
CONFIDENCE_IMPORT_SCOPED = 0.9
CONFIDENCE_GLOBAL = 0.5

_HEX_RE = re.compile(r"[0-9a-fA-F]{1,16}")


@dataclass(frozen=True, order=True)
class NodeId:
    """Stable 64-bit identifier of a symbol, rendered as 16 hex digits."""

    value: int

    @classmethod
    def new(cls, file_path, name, kind, line):
        """Derive an id from a symbol's file, name, kind and start line."""
        key = f"{file_path}\0{name}\0{kind.label()}\0{line}".encode("utf-8")
        digest = hashlib.sha256(key).digest()
        return cls(int.from_bytes(digest[:8], "big"))

    @classmethod
    def from_hex(cls, text):
        """Parse a hex id; returns None when the text is not a valid id."""
        if not isinstance(text, str) or not _HEX_RE.fullmatch(text):
            return None
        return cls(int(text, 16))

    def __str__(self):
        return f"{self.value:016x}"


class SymbolKind(Enum):
    FILE = "File"
    MODULE = "Module"
    FUNCTION = "Function"
    METHOD = "Method"
    CONSTRUCTOR = "Constructor"
    CLASS = "Class"
    STRUCT = "Struct"
    ENUM = "Enum"
    INTERFACE = "Interface"
    TRAIT = "Trait"
    PROPERTY = "Property"
    FIELD = "Field"
    CONSTANT = "Constant"
    VARIABLE = "Variable"
    TYPE_ALIAS = "TypeAlias"
    IMPORT = "Import"
    ROUTE = "Route"
    PROCESS = "Process"

    def label(self):
        """The label under which this kind is stored."""
        return self.value

    @classmethod
    def from_label(cls, label):
        """Kind for a stored label, or None if the label is unknown."""
        try:
            return cls(label)
        except ValueError:
            return None


class EdgeKind(Enum):
    CONTAINS = "CONTAINS"
    CALLS = "CALLS"
    IMPORTS = "IMPORTS"
    EXTENDS = "EXTENDS"
    IMPLEMENTS = "IMPLEMENTS"
    REFERENCES = "REFERENCES"
    HANDLES_ROUTE = "HANDLES_ROUTE"
    FETCHES = "FETCHES"
    ENTRY_POINT_OF = "ENTRY_POINT_OF"
    STEP_IN_PROCESS = "STEP_IN_PROCESS"

    def rel_type(self):
        """The relationship type name under which this edge kind is stored."""
        return self.value

    @classmethod
    def from_rel_type(cls, text):
        """Edge kind for a stored relationship type, or None if unknown."""
        try:
            return cls(text)
        except ValueError:
            return None


class Language(Enum):
    RUST = "rust"
    PYTHON = "python"
    TYPESCRIPT = "typescript"
    JAVASCRIPT = "javascript"
    CSHARP = "csharp"
    JAVA = "java"
    GO = "go"
    SWIFT = "swift"
    PHP = "php"

    @classmethod
    def from_str(cls, text):
        """Language for its stored name, or None if unknown."""
        try:
            return cls(text)
        except ValueError:
            return None


class Visibility(Enum):
    PUBLIC = "Public"
    PRIVATE = "Private"
    PROTECTED = "Protected"
    INTERNAL = "Internal"

    @classmethod
    def from_debug_str(cls, text):
        """Visibility for its stored name; unknown names map to PRIVATE."""
        try:
            return cls(text)
        except ValueError:
            return cls.PRIVATE


@dataclass
class SymbolNode:
    id: NodeId
    name: str
    kind: SymbolKind
    file_path: str
    line_range: tuple[int, int]
    language: Language
    signature: str | None = None
    doc_comment: str | None = None
    visibility: Visibility = Visibility.PUBLIC
    parent: NodeId | None = None


@dataclass
class Edge:
    source: NodeId
    target: NodeId
    kind: EdgeKind
    source_line: int = 0
    confidence: float = CONFIDENCE_EXACT


@dataclass
class RawEdge:
    """An edge whose target is still a name awaiting resolution."""

    source: NodeId
    kind: EdgeKind
    target_name: str
    target_module: str | None = None
    source_line: int = 0


@dataclass
class GraphMetadata:
    total_nodes: int = 0
    total_edges: int = 0
    total_files: int = 0


@dataclass
class CodeGraph:
    """In-memory code graph: nodes, adjacency, pending raw edges and file data."""

    project_root: str = "."
    nodes: dict[NodeId, SymbolNode] = field(default_factory=dict)
    adjacency: dict[NodeId, list[Edge]] = field(default_factory=dict)
    raw_edges: list[RawEdge] = field(default_factory=list)
    file_index: dict[str, list[NodeId]] = field(default_factory=dict)
    file_hashes: dict[str, bytes] = field(default_factory=dict)
    metadata: GraphMetadata = field(default_factory=GraphMetadata)

    def add_node(self, node):
        """Insert or replace a node, indexing it under its file."""
        if node.id not in self.nodes:
            self.file_index.setdefault(node.file_path, []).append(node.id)
        self.nodes[node.id] = node

    def add_edge(self, edge):
        self.adjacency.setdefault(edge.source, []).append(edge)

    def add_raw_edge(self, edge):
        self.raw_edges.append(edge)

    def outgoing(self, node_id):
        """Edges leaving `node_id` (empty when it has none)."""
        return self.adjacency.get(node_id, [])

    def refresh_metadata(self):
        self.metadata = GraphMetadata(
            total_nodes=len(self.nodes),
            total_edges=sum(len(edges) for edges in self.adjacency.values()),
            total_files=sum(1 for ids in self.file_index.values() if ids),
        )