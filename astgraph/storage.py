"""Backend-agnostic storage interface for the code graph."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path

_DB_DIR = ".ast-graph"
_DB_FILE = "graph.db"


class GraphStorage(ABC):
    """Interface every graph store implements, so callers are independent of the engine."""

    @abstractmethod
    def save_graph(self, graph):
        """Persist the whole graph; returns ``(node_count, edge_count)`` inserted."""

    @abstractmethod
    def load_graph(self, project_root):
        """Reconstruct a CodeGraph from storage."""

    @abstractmethod
    def load_file_hashes(self):
        """Per-file content hashes, keyed by file path, for incremental scans."""

    @abstractmethod
    def remove_file_nodes(self, file_path):
        """Remove every node, edge and file hash belonging to one file."""

    @abstractmethod
    def clear(self):
        """Drop all stored data."""

    @abstractmethod
    def get_stats(self):
        """Summary counts of nodes, edges, files, languages and kinds."""

    @abstractmethod
    def call_chain(self, node_id, max_depth):
        """Downstream callees of a symbol up to `max_depth` hops."""

    @abstractmethod
    def reverse_call_chain(self, node_id, max_depth):
        """Upstream callers of a symbol up to `max_depth` hops."""

    @abstractmethod
    def shortest_path(self, from_id, to_id):
        """Shortest undirected path between two symbols."""

    @abstractmethod
    def find_implementations(self, trait_name):
        """Symbols implementing a trait or interface, directly or transitively."""

    @abstractmethod
    def hotspots(self, limit):
        """Most connected symbols."""

    @abstractmethod
    def find_symbols(self, pattern, limit):
        """Symbols whose name contains `pattern`."""

    @abstractmethod
    def symbol_callers(self, node_id):
        """Direct callers of a symbol."""

    @abstractmethod
    def symbol_callees(self, node_id):
        """Direct callees of a symbol."""

    @abstractmethod
    def symbol_members(self, node_id):
        """Members contained in a symbol."""

    @abstractmethod
    def dead_symbols(self, kinds, exclude_path_substrings, limit):
        """Symbols of the given kinds with no incoming CALLS edge."""

    @abstractmethod
    def symbols_in_range(self, file_path_substring, line_start, line_end):
        """Symbols whose line range intersects ``[line_start, line_end]`` in matching files."""

    @abstractmethod
    def run_raw_query(self, query):
        """Run a backend-native query and return its rows."""

    @abstractmethod
    def search_symbols(self, query, limit):
        """Ranked keyword search over name, signature and doc comment."""

    @abstractmethod
    def backend_name(self):
        """Human-readable backend name."""


class BackendKind(Enum):
    """Available storage backends."""

    SQLITE = "sqlite"


def default_db_path(project_root):
    """Default database path, ``.ast-graph/graph.db`` under the project root.

    The directory is created when possible.
    """
    directory = Path(os.fspath(project_root)) / _DB_DIR
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError:
        pass
    return directory / _DB_FILE