"""Graph export to DOT and JSON text."""

import json


def _quote(text):
    return '"' + str(text).replace("\\", "\\\\").replace('"', '\\"') + '"'


def export_dot(graph, resolve_label, name="dependencies"):
    """Render a Graph as a DOT digraph, labels via resolve_label.

    One line per edge in graph order. Vertices that take part in no edge
    (e.g. a root without dependencies) get a line of their own, sorted.
    """
    lines = [f"digraph {_quote(name)} {{"]
    in_edges = set()
    for src, dst in graph.edges:
        in_edges.add(src)
        in_edges.add(dst)
        lines.append(f"  {_quote(resolve_label(src))} -> {_quote(resolve_label(dst))};")
    for nid in sorted(graph.vertices - in_edges):
        lines.append(f"  {_quote(resolve_label(nid))};")
    lines.append("}")
    return "\n".join(lines) + "\n"


def export_json(graph, resolve_label):
    """Render a Graph as JSON: sorted vertices with labels, edges in order."""
    output = {
        "vertices": [
            {"id": nid, "label": resolve_label(nid)}
            for nid in sorted(graph.vertices)
        ],
        "edges": [{"from": src, "to": dst} for src, dst in graph.edges],
    }
    return json.dumps(output, indent=2)
