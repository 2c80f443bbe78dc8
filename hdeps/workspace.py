"""A project's documents bound to one index, cache and label table."""

import logging

from hdeps import outline
from hdeps.config import document_paths, load_config, project_root
from hdeps.index import DependencyIndex, ScanCache
from hdeps.scanner import forget_document, rebuild, update_from_documents

log = logging.getLogger("hdeps.workspace")


class Workspace:
    """Owns the index for one project root and keeps it current on refresh()."""

    def __init__(self, root=None, reader=None):
        self.root = root or project_root()
        self.config = load_config(self.root)
        self.id_property = self.config["id_property"]
        self.depends_property = self.config["depends_property"]
        self.reader = reader or outline.OutlineReader(self.id_property, self.depends_property)
        self.index = DependencyIndex()
        self.cache = ScanCache()
        self._entries = {}

    def documents(self):
        return document_paths(self.root)

    def refresh(self, force=False):
        """Scan stale documents and drop documents that no longer exist."""
        docs = self.documents()
        for doc in self.cache.documents():
            if doc not in docs:
                forget_document(self.index, self.cache, doc)
                self._entries.pop(doc, None)
        report = update_from_documents(self.index, self.cache, self.reader, docs, force=force)
        self._reload_entries(report)
        return report

    def rebuild(self):
        docs = self.documents()
        self._entries.clear()
        report = rebuild(self.index, self.cache, self.reader, docs)
        self._reload_entries(report)
        return report

    def _reload_entries(self, report):
        # a reader without entries() gives bare entries: labels fall back to ids
        entries_of = getattr(self.reader, "entries", None)
        for doc in report["scanned"]:
            if entries_of is not None:
                self._entries[doc] = entries_of(doc)
            else:
                self._entries[doc] = {
                    nid: {"id": nid, "path": doc} for nid in self.cache.get_ids(doc)}

    @property
    def entries(self):
        """identifier -> entry dict across all scanned documents."""
        merged = {}
        for doc in sorted(self._entries):
            for nid, e in self._entries[doc].items():
                merged.setdefault(nid, e)
        return merged

    def is_known(self, nid):
        """Defined by a document, or referenced as a dependency by one."""
        return (nid in self.entries or nid in self.index.forward
                or nid in self.index.reverse)

    def locate(self, nid):
        return outline.locate(self.entries, nid)

    def label_resolver(self):
        return outline.label_resolver(self.entries)

    def add_dependency(self, nid, dep_id):
        entry = self.locate(nid)
        self.locate(dep_id)
        if nid == dep_id:
            raise ValueError(f"{nid}: self-dependency")
        return outline.add_dependency(
            entry["path"], nid, dep_id, self.id_property, self.depends_property)

    def remove_dependency(self, nid, dep_id):
        entry = self.locate(nid)
        return outline.remove_dependency(
            entry["path"], nid, dep_id, self.id_property, self.depends_property)

    def assign_ids(self):
        """Assign identifiers in every document. Returns {doc: [new ids]}."""
        created = {}
        for doc in self.documents():
            new_ids = outline.assign_ids(doc, self.id_property)
            if new_ids:
                log.info("%s: assigned %d identifier(s)", doc, len(new_ids))
                created[doc] = new_ids
        return created
