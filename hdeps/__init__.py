"""Incremental dependency index over outline headlines."""

from hdeps.index import DependencyIndex, ScanCache
from hdeps.query import Graph, compare, find, graph, graphs, merge_graphs, order_entries
from hdeps.scanner import rebuild, scan_document, update_from_documents

__version__ = "0.1.0"
