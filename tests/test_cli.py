import json
import sys

import pytest

from hdeps import cli


def run(monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", ["hdeps", *args])
    return cli.main()


class TestReadCommands:
    def test_no_args_prints_usage(self, project, monkeypatch, capsys):
        assert run(monkeypatch) == 1
        assert "Subcommands (read)" in capsys.readouterr().out

    def test_unknown_command(self, project, monkeypatch, capsys):
        assert run(monkeypatch, "frobnicate") == 1
        assert "Unknown command: frobnicate" in capsys.readouterr().out

    def test_update(self, project, monkeypatch, capsys):
        assert run(monkeypatch, "update") == 0
        assert "Scanned 2 document(s), skipped 0, 4 entries indexed." in capsys.readouterr().out

    def test_update_json_reports_failures(self, project, monkeypatch, capsys):
        (project / "bad.org").write_bytes(b"\xff\xfe* broken\n")
        assert run(monkeypatch, "update", "--json") == 1
        data = json.loads(capsys.readouterr().out)
        assert len(data["scanned"]) == 2
        assert list(data["failed"]) == [str(project / "bad.org")]

    def test_deps(self, project, monkeypatch, capsys):
        assert run(monkeypatch, "deps", "ship") == 0
        out = capsys.readouterr().out
        assert "TODO Implement client" in out
        assert "Write docs" in out
        assert "Total: 2 dependencies." in out

    def test_deps_transitive_json(self, project, monkeypatch, capsys):
        assert run(monkeypatch, "deps", "ship", "--transitive", "--json") == 0
        data = json.loads(capsys.readouterr().out)
        assert [i["id"] for i in data["ids"]] == ["client", "docs", "api"]
        assert data["recorded"] is True

    def test_dependers(self, project, monkeypatch, capsys):
        assert run(monkeypatch, "deps", "api", "--reverse", "--json") == 0
        data = json.loads(capsys.readouterr().out)
        assert [i["id"] for i in data["ids"]] == ["docs", "client"]

    def test_deps_none(self, project, monkeypatch, capsys):
        assert run(monkeypatch, "deps", "api") == 0
        assert "api has no dependencies." in capsys.readouterr().out

    def test_unknown_id_is_an_error(self, project, monkeypatch, capsys):
        assert run(monkeypatch, "deps", "nobody") == 1
        assert "Error: nobody: no entry with this identifier" in capsys.readouterr().err

    def test_compare(self, project, monkeypatch, capsys):
        assert run(monkeypatch, "compare", "ship", "api") == 0
        assert run(monkeypatch, "compare", "api", "ship") == 0
        assert run(monkeypatch, "compare", "client", "docs") == 0
        assert capsys.readouterr().out.split() == ["greater", "smaller", "equal"]

    def test_sort(self, project, monkeypatch, capsys):
        assert run(monkeypatch, "sort", "ship", "docs", "api", "--json") == 0
        data = json.loads(capsys.readouterr().out)
        assert [i["id"] for i in data] == ["api", "docs", "ship"]

    def test_graph_dot(self, project, monkeypatch, capsys):
        assert run(monkeypatch, "graph", "client") == 0
        assert capsys.readouterr().out == (
            'digraph "dependencies" {\n'
            '  "TODO Implement client" -> "Design API";\n'
            "}\n"
        )

    def test_graph_output_file(self, project, monkeypatch, capsys):
        out_path = project / "deps.dot"
        assert run(monkeypatch, "graph", "ship", "docs", "--output", str(out_path)) == 0
        assert "4 vertices, 4 edges" in capsys.readouterr().out
        assert out_path.read_text(encoding="utf-8").startswith('digraph "dependencies" {')

    def test_graph_name_from_config(self, project, monkeypatch, capsys):
        (project / ".hdeps").mkdir()
        (project / ".hdeps" / "config.json").write_text('{"graph_name": "plan"}')
        assert run(monkeypatch, "graph", "api") == 0
        assert capsys.readouterr().out.startswith('digraph "plan" {')

    def test_graph_unknown_flag(self, project, monkeypatch, capsys):
        assert run(monkeypatch, "graph", "api", "--png") == 1
        assert "unknown flag '--png'" in capsys.readouterr().err

    @pytest.mark.parametrize("args", [
        ["deps", "ship", "--transtive"],
        ["sort", "ship", "api", "--revrese"],
        ["update", "--forse"],
    ])
    def test_misspelled_flag_is_an_error(self, project, monkeypatch, capsys, args):
        assert run(monkeypatch, *args) == 1
        captured = capsys.readouterr()
        assert f"Error: unknown flag '{args[-1]}'" in captured.err
        assert captured.out == ""

    def test_invalid_log_level(self, project, monkeypatch, capsys):
        monkeypatch.setenv("HDEPS_LOG_LEVEL", "chatty")
        assert run(monkeypatch, "deps", "ship") == 1
        assert "Error: HDEPS_LOG_LEVEL: unknown level 'CHATTY'" in capsys.readouterr().err

    def test_log_level_is_case_insensitive(self, project, monkeypatch):
        monkeypatch.setenv("HDEPS_LOG_LEVEL", "debug")
        assert run(monkeypatch, "compare", "ship", "api") == 0


class TestWriteCommands:
    def test_add_and_remove_dependency(self, project, monkeypatch, capsys):
        assert run(monkeypatch, "add-dep", "docs", "client") == 0
        assert run(monkeypatch, "deps", "docs", "--json") == 0
        out = capsys.readouterr().out
        assert "docs: now depends on client" in out
        data = json.loads(out[out.index("{"):])
        assert [i["id"] for i in data["ids"]] == ["api", "client"]

        assert run(monkeypatch, "remove-dep", "docs", "client") == 0
        assert "docs: no longer depends on client" in capsys.readouterr().out

    def test_add_dependency_on_unknown_entry(self, project, monkeypatch, capsys):
        assert run(monkeypatch, "add-dep", "docs", "nobody") == 1
        assert "nobody: no entry with this identifier" in capsys.readouterr().err

    def test_self_dependency_rejected(self, project, monkeypatch, capsys):
        assert run(monkeypatch, "add-dep", "docs", "docs") == 1
        assert "docs: self-dependency" in capsys.readouterr().err

    def test_assign_ids(self, project, monkeypatch, capsys):
        assert run(monkeypatch, "assign-ids") == 0
        assert "Assigned 1 identifier(s)." in capsys.readouterr().out
        assert run(monkeypatch, "update") == 0
        assert "5 entries indexed" in capsys.readouterr().out


@pytest.mark.parametrize("args", [["deps"], ["compare", "a"], ["sort"], ["graph"], ["add-dep", "a"]])
def test_usage_errors(project, monkeypatch, capsys, args):
    assert run(monkeypatch, *args) == 1
    assert "Usage: hdeps" in capsys.readouterr().err
