"""In-memory dependency index and scan cache.

Both are plain constructible objects. Nothing here touches documents; the
scanner feeds them and the query layer reads them.
"""

from collections import defaultdict

NEVER_SCANNED = float("-inf")


def _dedupe(items):
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def _closure(adjacency, start):
    """Reachable ids from start, direct neighbours first, then each one's expansion.

    Returns None when start has no adjacency entry. start itself appears
    only if a cycle leads back to it.
    """
    if start not in adjacency:
        return None
    result = []
    seen = set()
    expanded = {start}

    def emit(node):
        direct = adjacency.get(node) or []
        for nid in direct:
            if nid not in seen:
                seen.add(nid)
                result.append(nid)
        return iter(direct)

    stack = [emit(start)]
    while stack:
        for nid in stack[-1]:
            if nid not in expanded:
                expanded.add(nid)
                stack.append(emit(nid))
                break
        else:
            stack.pop()
    return result


class DependencyIndex:
    """Forward (id -> declared dependencies) and reverse (id -> dependers) maps."""

    def __init__(self):
        self.forward = {}
        self.reverse = defaultdict(list)

    def put(self, nid, dependencies):
        """Record the complete dependency list of nid.

        forward[nid] is replaced. nid is added to reverse[d] for every d in
        the new list, and retracted from reverse[d] for every d that the
        previous list had but this one no longer does.
        """
        deps = _dedupe(dependencies)
        old = self.forward.get(nid, [])
        self.forward[nid] = deps
        for dep_id in old:
            if dep_id not in deps:
                self._retract(dep_id, nid)
        for dep_id in deps:
            dependers = self.reverse[dep_id]
            if nid not in dependers:
                dependers.append(nid)

    def forget(self, nid):
        """Remove nid's forward entry and its contributions to reverse."""
        for dep_id in self.forward.pop(nid, []):
            self._retract(dep_id, nid)

    def _retract(self, dep_id, nid):
        dependers = self.reverse.get(dep_id)
        if dependers and nid in dependers:
            dependers.remove(nid)
            if not dependers:
                del self.reverse[dep_id]

    def get_dependencies(self, nid, transitive=False):
        if transitive:
            return _closure(self.forward, nid)
        deps = self.forward.get(nid)
        return None if deps is None else list(deps)

    def get_dependers(self, nid, transitive=False):
        if transitive:
            return _closure(self.reverse, nid)
        dependers = self.reverse.get(nid)
        return None if dependers is None else list(dependers)

    def ids(self):
        """Every id with a forward entry, in insertion order."""
        return list(self.forward)

    def clear(self):
        self.forward.clear()
        self.reverse.clear()

    def __contains__(self, nid):
        return nid in self.forward

    def __len__(self):
        return len(self.forward)


class ScanCache:
    """document -> timestamp of its last successful scan, plus the ids it held."""

    def __init__(self):
        self._times = {}
        self._ids = {}

    def get_update_time(self, doc):
        return self._times.get(doc, NEVER_SCANNED)

    def put_update_time(self, doc, t):
        self._times[doc] = t

    def get_ids(self, doc):
        return self._ids.get(doc, [])

    def put_ids(self, doc, ids):
        self._ids[doc] = list(ids)

    def held_elsewhere(self, nid, doc):
        """True if a document other than doc held nid at its last scan."""
        return any(nid in ids for other, ids in self._ids.items() if other != doc)

    def drop(self, doc):
        self._times.pop(doc, None)
        self._ids.pop(doc, None)

    def documents(self):
        return sorted(self._times)

    def clear(self):
        self._times.clear()
        self._ids.clear()
