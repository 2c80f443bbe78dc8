"""Document scanning and incremental index updates."""

import logging

log = logging.getLogger("hdeps.scanner")


def scan_document(index, cache, reader, doc, mtime=None):
    """Read every entry of doc into the index and record the scan time.

    Each entry with an identifier is written with its complete dependency
    list (possibly empty). Entries the document held at its previous scan
    but no longer does are forgotten. Returns the ids seen.
    """
    if mtime is None:
        mtime = reader.modification_time(doc)
    entries = reader.list_entries(doc)

    seen = []
    for nid, deps in entries:
        if not nid:
            continue
        if nid in seen:
            log.warning("%s: duplicate identifier %s, last definition wins", doc, nid)
        else:
            seen.append(nid)
        index.put(nid, list(deps or []))

    for nid in cache.get_ids(doc):
        if nid not in seen and not cache.held_elsewhere(nid, doc):
            log.debug("%s: %s no longer present", doc, nid)
            index.forget(nid)

    cache.put_ids(doc, seen)
    cache.put_update_time(doc, mtime)
    log.info("Scanned %s: %d entries", doc, len(seen))
    return seen


def update_from_documents(index, cache, reader, docs, force=False):
    """Rescan every stale (or, with force, every) document.

    A document is stale when its modification time is strictly newer than
    its cached scan time. Failures are logged and collected; they do not
    stop the remaining documents.

    Returns {"scanned": [...], "skipped": [...], "failed": {doc: message}}.
    """
    report = {"scanned": [], "skipped": [], "failed": {}}
    for doc in docs:
        try:
            mtime = reader.modification_time(doc)
            if not force and mtime <= cache.get_update_time(doc):
                log.debug("Skipping %s: up to date", doc)
                report["skipped"].append(doc)
                continue
            scan_document(index, cache, reader, doc, mtime=mtime)
        except Exception as e:  # any reader failure stays with its document
            log.warning("Failed to scan %s: %s", doc, e)
            report["failed"][doc] = str(e)
            continue
        report["scanned"].append(doc)
    return report


def rebuild(index, cache, reader, docs):
    """Clear index and cache, then rescan every document."""
    index.clear()
    cache.clear()
    return update_from_documents(index, cache, reader, docs, force=True)


def forget_document(index, cache, doc):
    """Drop what a document contributed, e.g. after it was deleted."""
    for nid in cache.get_ids(doc):
        if not cache.held_elsewhere(nid, doc):
            index.forget(nid)
    cache.drop(doc)
    log.info("Forgot %s", doc)
