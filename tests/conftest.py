import pytest

from hdeps.config import reset_config

PROJECT_ORG = """\
#+TITLE: Project

* Design API
  :PROPERTIES:
  :ID:       api
  :END:
* TODO Implement client :work:
  :PROPERTIES:
  :ID:       client
  :DEPENDS:  api
  :END:
* Ship release
  SCHEDULED: <2026-10-20 Tue>
  :PROPERTIES:
  :ID:       ship
  :DEPENDS:  id:client docs
  :END:
"""

NOTES_ORG = """\
* Write docs
  :PROPERTIES:
  :ID:       docs
  :DEPENDS:  api
  :END:
* Loose idea
Some text.
"""


class FakeReader:
    """Document collaborator backed by a dict; records every scan."""

    def __init__(self, docs=None):
        # doc -> {"mtime": float, "entries": [(id, [deps])]} or an exception to raise
        self.docs = docs or {}
        self.scans = []

    def modification_time(self, doc):
        spec = self.docs[doc]
        if isinstance(spec, Exception):
            raise spec
        return spec["mtime"]

    def list_entries(self, doc):
        self.scans.append(doc)
        return self.docs[doc]["entries"]


@pytest.fixture(autouse=True)
def _fresh_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def write_doc(tmp_path):
    """Write a document under tmp_path and return its absolute path."""
    def _write(name, text):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def project(tmp_path, write_doc, monkeypatch):
    """A project root with two outline documents, selected via HDEPS_PROJECT_DIR."""
    write_doc("project.org", PROJECT_ORG)
    write_doc("notes/notes.org", NOTES_ORG)
    monkeypatch.setenv("HDEPS_PROJECT_DIR", str(tmp_path))
    return tmp_path


@pytest.fixture
def fake_reader():
    return FakeReader
