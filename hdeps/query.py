"""Queries over a DependencyIndex: ancestor search, ordering, sub-graphs.

All traversals carry a visited set, so declared cycles terminate.
"""

from collections import namedtuple

Graph = namedtuple("Graph", ["vertices", "edges"])

SMALLER, EQUAL, GREATER = -1, 0, 1
ORDER_NAMES = {SMALLER: "smaller", EQUAL: "equal", GREATER: "greater"}


def find(index, predicate, start):
    """Depth-first search along dependencies for the first id matching predicate.

    predicate is tried on start first, then on each dependency in declared
    order, recursively. A vertex already visited is not tried again.
    Returns the matching id or None.
    """
    visited = set()
    stack = [start]
    while stack:
        nid = stack.pop()
        if nid in visited:
            continue
        visited.add(nid)
        if predicate(nid):
            return nid
        stack.extend(reversed(index.get_dependencies(nid) or []))
    return None


def depends_on(index, a, b):
    """True if b is reachable from a along one or more dependency edges."""
    for dep_id in index.get_dependencies(a) or []:
        if find(index, lambda nid: nid == b, dep_id) is not None:
            return True
    return False


def compare(index, a, b):
    """Order a against b by reachability.

    GREATER if a depends (transitively) on b, SMALLER if b depends on a,
    EQUAL if neither does or both do (a cycle). Works with
    functools.cmp_to_key.
    """
    if a == b:
        return EQUAL
    a_needs_b = depends_on(index, a, b)
    b_needs_a = depends_on(index, b, a)
    if a_needs_b and not b_needs_a:
        return GREATER
    if b_needs_a and not a_needs_b:
        return SMALLER
    return EQUAL


def order_entries(index, ids, reverse=False):
    """Order ids so dependencies come before their dependers.

    compare is only a partial order, so this is a stable topological pass
    rather than a plain sort: repeatedly take the first remaining id that
    no other remaining id is SMALLER than. With reverse, dependers first.
    """
    remaining = []
    for nid in ids:
        if nid not in remaining:
            remaining.append(nid)

    ordered = []
    while remaining:
        pick = 0
        for i, nid in enumerate(remaining):
            if not any(compare(index, other, nid) == SMALLER
                       for other in remaining if other != nid):
                pick = i
                break
        ordered.append(remaining.pop(pick))

    if reverse:
        ordered.reverse()
    return ordered


def merge_graphs(*graphs):
    """Union of vertex sets and order-preserving union of edge lists."""
    vertices = set()
    edges = []
    seen = set()
    for g in graphs:
        vertices |= g.vertices
        for edge in g.edges:
            if edge not in seen:
                seen.add(edge)
                edges.append(edge)
    return Graph(vertices, edges)


def graph(index, root):
    """Sub-graph reachable from root along dependency edges.

    Edges are listed depth-first: each (parent, child) edge is followed by
    the edges below child, before parent's next dependency.
    """
    vertices = {root}
    edges = []
    seen_edges = set()
    visited = {root}

    stack = [(root, iter(index.get_dependencies(root) or []))]
    while stack:
        parent, children = stack[-1]
        for child in children:
            vertices.add(child)
            if (parent, child) not in seen_edges:
                seen_edges.add((parent, child))
                edges.append((parent, child))
            if child not in visited:
                visited.add(child)
                stack.append((child, iter(index.get_dependencies(child) or [])))
                break
        else:
            stack.pop()
    return Graph(vertices, edges)


def graphs(index, roots):
    """Merged sub-graph of every root."""
    return merge_graphs(*[graph(index, root) for root in roots])
