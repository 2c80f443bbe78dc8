# /// script
# requires-python = ">=3.10"
# dependencies = ["fastmcp"]
# ///
"""MCP server exposing the hdeps commands as tools.

Launched via: uv run --with-editable . server/hdeps_mcp.py
Transport: stdio (JSON-RPC over stdin/stdout)
"""

import logging
import os
import subprocess
import sys

from fastmcp import FastMCP

from hdeps.config import project_root

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

PROJECT_DIR = project_root()
TIMEOUT = 30

logging.basicConfig(level=logging.INFO, stream=sys.stderr)
log = logging.getLogger("hdeps-mcp")

mcp = FastMCP("hdeps")

# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------


def _format_result(result: subprocess.CompletedProcess) -> str:
    """Command stdout; on a non-zero exit, stderr follows as an ERROR: line."""
    parts = [result.stdout.strip()]
    if result.returncode != 0 and result.stderr.strip():
        parts.append(f"ERROR: {result.stderr.strip()}")
    return "\n".join(p for p in parts if p) or "(no output)"


def _run(*args: str) -> str:
    """Run one hdeps command against PROJECT_DIR and return its output text."""
    log.info("hdeps %s (project %s)", " ".join(args), PROJECT_DIR)
    try:
        result = subprocess.run(
            [sys.executable, "-m", "hdeps", *args],
            capture_output=True,
            text=True,
            timeout=TIMEOUT,
            env={**os.environ, "HDEPS_PROJECT_DIR": PROJECT_DIR},
        )
    except subprocess.TimeoutExpired:
        return f"ERROR: command timed out after {TIMEOUT}s"
    except OSError as e:
        return f"ERROR: {e}"
    return _format_result(result)


def _ids(value: str) -> list[str]:
    """Split a comma- or space-separated id list."""
    return [v for v in value.replace(",", " ").split() if v]


# ---------------------------------------------------------------------------
# Read tools
# ---------------------------------------------------------------------------


@mcp.tool()
def deps_update(force: bool = False) -> str:
    """Scan the outline documents and report which were scanned, skipped or failed.

    Args:
        force: Rescan every document even if unchanged
    """
    args = ["update", "--json"]
    if force:
        args.append("--force")
    return _run(*args)


@mcp.tool()
def deps_list(entry_id: str, transitive: bool = False, reverse: bool = False) -> str:
    """List the dependencies of an entry. Returns JSON with ids and labels.

    Args:
        entry_id: Entry identifier (the ID property of the headline)
        transitive: Follow dependencies of dependencies
        reverse: List dependers (entries that depend on this one) instead
    """
    args = ["deps", entry_id, "--json"]
    if transitive:
        args.append("--transitive")
    if reverse:
        args.append("--reverse")
    return _run(*args)


@mcp.tool()
def deps_compare(a: str, b: str) -> str:
    """Compare two entries: 'greater' if A depends on B, 'smaller' if B depends on A, else 'equal'."""
    return _run("compare", a, b)


@mcp.tool()
def deps_sort(entry_ids: str, reverse: bool = False) -> str:
    """Order entries so that dependencies come before the entries needing them.

    Args:
        entry_ids: Comma-separated entry identifiers
        reverse: Dependers first instead
    """
    args = ["sort"] + _ids(entry_ids) + ["--json"]
    if reverse:
        args.append("--reverse")
    return _run(*args)


@mcp.tool()
def deps_graph(entry_ids: str, json_output: bool = False) -> str:
    """Dependency sub-graph of one or more entries, as DOT text (or JSON).

    Args:
        entry_ids: Comma-separated root entry identifiers
        json_output: Return vertices and edges as JSON instead of DOT
    """
    args = ["graph"] + _ids(entry_ids)
    if json_output:
        args.append("--json")
    return _run(*args)


# ---------------------------------------------------------------------------
# Write tools
# ---------------------------------------------------------------------------


@mcp.tool()
def deps_add(entry_id: str, dependency_id: str) -> str:
    """Declare that an entry depends on another entry (edits the document)."""
    return _run("add-dep", entry_id, dependency_id)


@mcp.tool()
def deps_remove(entry_id: str, dependency_id: str) -> str:
    """Drop a declared dependency from an entry (edits the document)."""
    return _run("remove-dep", entry_id, dependency_id)


@mcp.tool()
def deps_assign_ids() -> str:
    """Give every headline without an identifier a new one."""
    return _run("assign-ids")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    mcp.run()
