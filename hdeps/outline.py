"""Outline documents: headlines, property drawers, identifiers.

Documents are org-style outlines. A headline is one or more '*' followed by
a space; an optional property drawer right after it (planning lines such as
SCHEDULED: may sit in between) holds ':NAME: value' lines:

    * TODO Write report
      :PROPERTIES:
      :ID:       2c1f7a0e-...
      :DEPENDS:  a1b2 id:c3d4
      :END:

Minimal parser, no external deps.
"""

import os
import re
import uuid

RE_HEADLINE = re.compile(r'^(\*+)\s+(.*?)\s*$')
RE_TAGS = re.compile(r'\s+(:[\w@#%]+)+:\s*$')
RE_PLANNING = re.compile(r'^\s*(SCHEDULED|DEADLINE|CLOSED):')
RE_DRAWER_START = re.compile(r'^(\s*):PROPERTIES:\s*$', re.IGNORECASE)
RE_DRAWER_END = re.compile(r'^\s*:END:\s*$', re.IGNORECASE)
RE_PROPERTY = re.compile(r'^(\s*):([^:\s]+):(?:\s+(.*?))?\s*$')


class UnknownEntryError(LookupError):
    """An identifier that no scanned document defines."""

    def __init__(self, nid):
        super().__init__(f"{nid}: no entry with this identifier")
        self.nid = nid


def create_identifier():
    return str(uuid.uuid4())


def modification_time(path):
    return os.path.getmtime(path)


def split_ids(value):
    """Split a multi-valued id property. 'id:' prefixes are dropped."""
    ids = []
    for token in (value or "").split():
        if token.lower().startswith("id:"):
            token = token[3:]
        if token:
            ids.append(token)
    return ids


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _read_lines(path):
    with open(path, "r", encoding="utf-8") as f:
        return f.read().split("\n")


def _write_lines(path, lines):
    tmp_path = path + ".tmp"
    with open(tmp_path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines))
    os.rename(tmp_path, path)


def _scan_lines(lines):
    """Yield one raw entry dict per headline, with drawer line span if any."""
    i = 0
    while i < len(lines):
        m = RE_HEADLINE.match(lines[i])
        if not m:
            i += 1
            continue
        title = RE_TAGS.sub("", m.group(2))
        entry = {
            "level": len(m.group(1)),
            "title": title,
            "line": i,
            "drawer": None,
            "properties": {},
        }
        j = i + 1
        while j < len(lines) and RE_PLANNING.match(lines[j]):
            j += 1
        if j < len(lines) and RE_DRAWER_START.match(lines[j]):
            start = j
            j += 1
            while j < len(lines) and not RE_DRAWER_END.match(lines[j]):
                if RE_HEADLINE.match(lines[j]):
                    raise ValueError(f"line {start + 1}: unterminated property drawer")
                pm = RE_PROPERTY.match(lines[j])
                if pm:
                    entry["properties"][pm.group(2).upper()] = pm.group(3) or ""
                j += 1
            if j >= len(lines):
                raise ValueError(f"line {start + 1}: unterminated property drawer")
            entry["drawer"] = (start, j)
        yield entry
        i = max(j, i + 1)


def parse_outline(path, id_property="ID", depends_property="DEPENDS"):
    """Parse a document into entry dicts: id, title, level, depends, line.

    id is None for headlines without an identifier. line is 1-based.
    """
    entries = []
    for raw in _scan_lines(_read_lines(path)):
        props = raw["properties"]
        entries.append({
            "id": props.get(id_property.upper()) or None,
            "title": raw["title"],
            "level": raw["level"],
            "depends": split_ids(props.get(depends_property.upper())),
            "line": raw["line"] + 1,
        })
    return entries


class OutlineReader:
    """Document collaborator handed to the scanner.

    Keeps the entry dicts of the last parse of each document, so labels and
    locations come from the same read the index was built from.
    """

    def __init__(self, id_property="ID", depends_property="DEPENDS"):
        self.id_property = id_property
        self.depends_property = depends_property
        self._parsed = {}

    def list_entries(self, path):
        parsed = parse_outline(path, self.id_property, self.depends_property)
        entries = {}
        for e in parsed:
            if e["id"]:
                e["path"] = path
                entries[e["id"]] = e
        self._parsed[path] = entries
        return [(e["id"], e["depends"]) for e in parsed if e["id"]]

    def entries(self, path):
        """identifier -> entry dict (with 'path') from the last list_entries(path)."""
        return dict(self._parsed.get(path, {}))

    def modification_time(self, path):
        return modification_time(path)


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------

def locate(entries, nid):
    """Return the entry for nid or raise UnknownEntryError."""
    if nid not in entries:
        raise UnknownEntryError(nid)
    return entries[nid]


def label_resolver(entries):
    """Return resolve_label(nid): the entry title, or nid itself if unknown."""
    def resolve_label(nid):
        e = entries.get(nid)
        if e and e.get("title"):
            return e["title"]
        return nid
    return resolve_label


# ---------------------------------------------------------------------------
# Editing
# ---------------------------------------------------------------------------

def _find_raw(lines, nid, id_property):
    for raw in _scan_lines(lines):
        if raw["properties"].get(id_property.upper()) == nid:
            return raw
    raise UnknownEntryError(nid)


def _drawer_indent(lines, raw):
    start, _ = raw["drawer"]
    return RE_DRAWER_START.match(lines[start]).group(1)


def set_property(path, nid, name, value, id_property="ID"):
    """Set (or with value None, remove) one property of the entry nid."""
    lines = _read_lines(path)
    raw = _find_raw(lines, nid, id_property)
    start, end = raw["drawer"]
    indent = _drawer_indent(lines, raw)

    for k in range(start + 1, end):
        pm = RE_PROPERTY.match(lines[k])
        if pm and pm.group(2).upper() == name.upper():
            if value is None:
                del lines[k]
            else:
                lines[k] = f"{pm.group(1)}:{pm.group(2)}: {value}"
            _write_lines(path, lines)
            return

    if value is not None:
        lines.insert(end, f"{indent}:{name}: {value}")
        _write_lines(path, lines)


def get_dependency_ids(path, nid, id_property="ID", depends_property="DEPENDS"):
    lines = _read_lines(path)
    raw = _find_raw(lines, nid, id_property)
    return split_ids(raw["properties"].get(depends_property.upper()))


def add_dependency(path, nid, dep_id, id_property="ID", depends_property="DEPENDS"):
    """Append dep_id to nid's dependency property. Returns False if already there."""
    deps = get_dependency_ids(path, nid, id_property, depends_property)
    if dep_id in deps:
        return False
    deps.append(dep_id)
    set_property(path, nid, depends_property, " ".join(deps), id_property)
    return True


def remove_dependency(path, nid, dep_id, id_property="ID", depends_property="DEPENDS"):
    """Drop dep_id from nid's dependency property. Returns False if absent."""
    deps = get_dependency_ids(path, nid, id_property, depends_property)
    if dep_id not in deps:
        return False
    deps = [d for d in deps if d != dep_id]
    set_property(path, nid, depends_property, " ".join(deps) if deps else None, id_property)
    return True


def assign_ids(path, id_property="ID"):
    """Give every headline lacking an identifier a new one. Returns the new ids."""
    lines = _read_lines(path)
    raws = list(_scan_lines(lines))
    created = []
    # bottom-up so earlier line numbers stay valid while inserting
    for raw in reversed(raws):
        if raw["properties"].get(id_property.upper()):
            continue
        nid = create_identifier()
        indent = " " * (raw["level"] + 1)
        if raw["drawer"]:
            start, end = raw["drawer"]
            indent = _drawer_indent(lines, raw)
            for k in range(start + 1, end):
                pm = RE_PROPERTY.match(lines[k])
                if pm and pm.group(2).upper() == id_property.upper():
                    # empty id line, filled in place
                    lines[k] = f"{pm.group(1)}:{pm.group(2)}: {nid}"
                    break
            else:
                lines.insert(end, f"{indent}:{id_property}: {nid}")
        else:
            at = raw["line"] + 1
            while at < len(lines) and RE_PLANNING.match(lines[at]):
                at += 1
            lines[at:at] = [
                f"{indent}:PROPERTIES:",
                f"{indent}:{id_property}: {nid}",
                f"{indent}:END:",
            ]
        created.append(nid)
    if created:
        _write_lines(path, lines)
    created.reverse()
    return created
