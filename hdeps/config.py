"""Project configuration: root directory, .hdeps/config.json, document globs."""

import glob
import json
import os

DEFAULT_CONFIG = {
    "documents": ["**/*.org"],
    "id_property": "ID",
    "depends_property": "DEPENDS",
    "graph_name": "dependencies",
}

_CONFIG = {}


def project_root():
    """HDEPS_PROJECT_DIR if set (and not an unexpanded placeholder), else cwd."""
    raw = os.environ.get("HDEPS_PROJECT_DIR", "")
    if raw and not raw.startswith("$"):
        return os.path.abspath(raw)
    return os.getcwd()


def load_config(root=None):
    """Load config from <root>/.hdeps/config.json merged over the defaults."""
    root = root or project_root()
    if root in _CONFIG:
        return _CONFIG[root]
    cfg = dict(DEFAULT_CONFIG)
    config_path = os.path.join(root, ".hdeps", "config.json")
    if os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            loaded = json.load(f)
        if not isinstance(loaded, dict):
            raise ValueError(f"{config_path}: expected a JSON object")
        cfg.update(loaded)
    if isinstance(cfg["documents"], str):
        cfg["documents"] = [cfg["documents"]]
    _CONFIG[root] = cfg
    return cfg


def reset_config():
    """Drop cached configs (used after editing config.json in the same process)."""
    _CONFIG.clear()


def document_paths(root=None):
    """Expand the configured document globs into a sorted list of files."""
    root = root or project_root()
    cfg = load_config(root)
    paths = set()
    for pattern in cfg["documents"]:
        for path in glob.glob(os.path.join(root, pattern), recursive=True):
            if os.path.isfile(path):
                paths.add(os.path.abspath(path))
    return sorted(paths)
