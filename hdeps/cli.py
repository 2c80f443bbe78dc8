"""hdeps: dependency graph over outline headlines.

Scans the project's outline documents (.hdeps/config.json "documents",
default **/*.org) and answers dependency questions about their entries.

Subcommands (read):
  update [--force] [--json]            Scan documents and report what was (re)scanned
  deps ID [--transitive] [--reverse] [--json]
                                       Dependencies of ID (dependers with --reverse)
  compare A B                          Print smaller, equal or greater
  sort ID [ID ...] [--reverse] [--json]
                                       Order entries so dependencies come first
  graph ID [ID ...] [--output FILE] [--json]
                                       Dependency sub-graph as DOT (or JSON)

Subcommands (write):
  add-dep ID DEP                       Declare that ID depends on DEP
  remove-dep ID DEP                    Drop a declared dependency
  assign-ids                           Give every headline an identifier
"""

import json
import logging
import os
import sys

from hdeps.export import export_dot, export_json
from hdeps.outline import UnknownEntryError
from hdeps.query import ORDER_NAMES, compare, graphs, order_entries
from hdeps.workspace import Workspace

log = logging.getLogger("hdeps.cli")


def _print_ids(ids, resolve_label):
    print(f"{'ID':<38} Title")
    print("-" * 70)
    for nid in ids:
        print(f"{nid:<38} {resolve_label(nid)}")


def _split_flags(args, known):
    """Split args into positionals and flags. An unknown --flag is a ValueError."""
    positional, flags = [], set()
    for a in args:
        if not a.startswith("--"):
            positional.append(a)
        elif a in known:
            flags.add(a)
        else:
            raise ValueError(f"unknown flag '{a}'")
    return positional, flags


def _require_known(ws, nid):
    if not ws.is_known(nid):
        raise UnknownEntryError(nid)


# ---------------------------------------------------------------------------
# Read subcommands
# ---------------------------------------------------------------------------

def cmd_update(ws, args):
    """Scan documents and print the scan report."""
    _, flags = _split_flags(args, {"--force", "--json"})
    report = ws.refresh(force="--force" in flags)

    if "--json" in flags:
        print(json.dumps({
            "scanned": report["scanned"],
            "skipped": report["skipped"],
            "failed": report["failed"],
            "entries": len(ws.index),
        }, indent=2))
        return 1 if report["failed"] else 0

    print(f"Scanned {len(report['scanned'])} document(s), "
          f"skipped {len(report['skipped'])}, "
          f"{len(ws.index)} entries indexed.")
    for doc, msg in sorted(report["failed"].items()):
        print(f"  FAILED {doc}: {msg}")
    return 1 if report["failed"] else 0


def cmd_deps(ws, args):
    """Print dependencies (or dependers with --reverse) of one entry."""
    positional, flags = _split_flags(args, {"--transitive", "--reverse", "--json"})
    if len(positional) != 1:
        print("Usage: hdeps deps ID [--transitive] [--reverse] [--json]", file=sys.stderr)
        return 1
    nid = positional[0]
    transitive = "--transitive" in flags
    reverse = "--reverse" in flags
    _require_known(ws, nid)

    if reverse:
        ids = ws.index.get_dependers(nid, transitive=transitive)
    else:
        ids = ws.index.get_dependencies(nid, transitive=transitive)
    resolve_label = ws.label_resolver()

    if "--json" in flags:
        print(json.dumps({
            "id": nid,
            "direction": "dependers" if reverse else "dependencies",
            "transitive": transitive,
            "recorded": ids is not None,
            "ids": [{"id": i, "label": resolve_label(i)} for i in ids or []],
        }, indent=2))
        return 0

    what = "dependers" if reverse else "dependencies"
    if ids is None:
        print(f"No {what} recorded for {nid}.")
        return 0
    if not ids:
        print(f"{nid} has no {what}.")
        return 0
    _print_ids(ids, resolve_label)
    print(f"\nTotal: {len(ids)} {'transitive ' if transitive else ''}{what}.")
    return 0


def cmd_compare(ws, args):
    """Print how A orders against B."""
    if len(args) != 2:
        print("Usage: hdeps compare A B", file=sys.stderr)
        return 1
    a, b = args
    _require_known(ws, a)
    _require_known(ws, b)
    print(ORDER_NAMES[compare(ws.index, a, b)])
    return 0


def cmd_sort(ws, args):
    """Print entries in dependency order."""
    ids, flags = _split_flags(args, {"--reverse", "--json"})
    if not ids:
        print("Usage: hdeps sort ID [ID ...] [--reverse] [--json]", file=sys.stderr)
        return 1
    for nid in ids:
        _require_known(ws, nid)

    ordered = order_entries(ws.index, ids, reverse="--reverse" in flags)
    resolve_label = ws.label_resolver()

    if "--json" in flags:
        print(json.dumps([{"id": i, "label": resolve_label(i)} for i in ordered], indent=2))
        return 0

    _print_ids(ordered, resolve_label)
    return 0


def cmd_graph(ws, args):
    """Print (or write) the merged dependency sub-graph of the given roots."""
    output_path = None
    json_output = False
    roots = []

    i = 0
    while i < len(args):
        if args[i] == "--output" and i + 1 < len(args):
            i += 1
            output_path = args[i]
        elif args[i] == "--json":
            json_output = True
        elif args[i].startswith("--"):
            print(f"Error: unknown flag '{args[i]}'", file=sys.stderr)
            return 1
        else:
            roots.append(args[i])
        i += 1

    if not roots:
        print("Usage: hdeps graph ID [ID ...] [--output FILE] [--json]", file=sys.stderr)
        return 1
    for nid in roots:
        _require_known(ws, nid)

    g = graphs(ws.index, roots)
    resolve_label = ws.label_resolver()
    if json_output:
        text = export_json(g, resolve_label) + "\n"
    else:
        text = export_dot(g, resolve_label, name=ws.config["graph_name"])

    if output_path is None:
        sys.stdout.write(text)
        return 0

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(text)
    print(f"Wrote {output_path}: {len(g.vertices)} vertices, {len(g.edges)} edges")
    return 0


# ---------------------------------------------------------------------------
# Write subcommands
# ---------------------------------------------------------------------------

def cmd_add_dep(ws, args):
    if len(args) != 2:
        print("Usage: hdeps add-dep ID DEP", file=sys.stderr)
        return 1
    nid, dep_id = args
    if ws.add_dependency(nid, dep_id):
        print(f"{nid}: now depends on {dep_id}")
    else:
        print(f"{nid}: already depends on {dep_id}")
    return 0


def cmd_remove_dep(ws, args):
    if len(args) != 2:
        print("Usage: hdeps remove-dep ID DEP", file=sys.stderr)
        return 1
    nid, dep_id = args
    if ws.remove_dependency(nid, dep_id):
        print(f"{nid}: no longer depends on {dep_id}")
    else:
        print(f"{nid}: does not depend on {dep_id}")
    return 0


def cmd_assign_ids(ws, args):
    created = ws.assign_ids()
    total = sum(len(ids) for ids in created.values())
    for doc, ids in sorted(created.items()):
        print(f"{doc}: {len(ids)} identifier(s) assigned")
    print(f"Assigned {total} identifier(s).")
    return 0


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

COMMANDS = {
    "update": cmd_update,
    "deps": cmd_deps,
    "compare": cmd_compare,
    "sort": cmd_sort,
    "graph": cmd_graph,
    "add-dep": cmd_add_dep,
    "remove-dep": cmd_remove_dep,
    "assign-ids": cmd_assign_ids,
}

# These scan for themselves (update) or work on raw documents
NO_INITIAL_SCAN = {"update", "assign-ids"}


def main():
    level = os.environ.get("HDEPS_LOG_LEVEL", "WARNING").upper()
    if not isinstance(logging.getLevelName(level), int):
        print(f"Error: HDEPS_LOG_LEVEL: unknown level '{level}'", file=sys.stderr)
        return 1
    logging.basicConfig(level=level, stream=sys.stderr)

    if len(sys.argv) < 2:
        print(__doc__)
        return 1

    cmd = sys.argv[1]
    log.debug("Running %s %s", cmd, " ".join(sys.argv[2:]))
    handler = COMMANDS.get(cmd)
    if handler is None:
        print(f"Unknown command: {cmd}")
        print(__doc__)
        return 1

    try:
        ws = Workspace()
        if cmd not in NO_INITIAL_SCAN:
            report = ws.refresh()
            for doc, msg in sorted(report["failed"].items()):
                print(f"WARNING: could not scan {doc}: {msg}", file=sys.stderr)
        return handler(ws, sys.argv[2:])
    except (UnknownEntryError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
