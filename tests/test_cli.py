import json

import pytest

from blame_nav import cli, config


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    global_dir = tmp_path / "global-config"
    monkeypatch.setattr(config, "GLOBAL_CONFIG_DIR", global_dir)
    monkeypatch.setattr(config, "GLOBAL_CONFIG_FILE", global_dir / "config.json")
    for var in ("BLAME_NAV_GIT", "BLAME_NAV_TIMEOUT", "NO_COLOR"):
        monkeypatch.delenv(var, raising=False)


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main([])
    assert exc.value.code == 0
    assert "blame-nav" in capsys.readouterr().out


def test_blame_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["blame", str(tmp_path / "nope.txt"), "--print"])
    assert exc.value.code == 1
    assert "file not found" in capsys.readouterr().err


def test_blame_print(git_repo, capsys):
    repo, shas = git_repo
    cli.main(["blame", str(repo / "notes.txt"), "--print"])
    out = capsys.readouterr().out

    assert out.startswith("Git Blame: notes.txt @ HEAD")
    assert f"── {shas[2][:7]} (Tests, just now) \"third\" ──" in out
    assert "3 blocks | ↑/↓/j/k: navigate" in out
    assert "\033[" not in out


def test_blame_json_at_rev(git_repo, capsys):
    repo, shas = git_repo
    cli.main(["blame", str(repo / "notes.txt"), "--json", "--rev", f"{shas[2]}^"])
    data = json.loads(capsys.readouterr().out)

    assert data["ref"] == f"{shas[2]}^"
    assert [(b["start_line"], b["end_line"]) for b in data["blocks"]] == [(1, 2), (3, 3)]
    assert data["blocks"][0]["commit_sha"] == shas[0]
    assert data["blocks"][0]["lines"] == ["one", "two"]


def test_blame_outside_repository_fails(tmp_path, capsys):
    path = tmp_path / "loose.txt"
    path.write_text("x\n")
    with pytest.raises(SystemExit) as exc:
        cli.main(["blame", str(path), "--json"])
    assert exc.value.code == 1
    assert "Git blame error" in capsys.readouterr().err


def test_interactive_requires_terminal(git_repo, capsys):
    repo, _ = git_repo
    with pytest.raises(SystemExit):
        cli.main(["blame", str(repo / "notes.txt")])
    assert "needs a terminal" in capsys.readouterr().err


def test_config_set_and_show(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    cli.main(["config", "set", "timeout", "12"])
    cli.main(["config", "set", "git", "/opt/git", "--global"])
    capsys.readouterr()

    cli.main(["config", "show"])
    out = capsys.readouterr().out
    assert "timeout:   12.0" in out
    assert "git:       /opt/git" in out
    assert json.loads((tmp_path / ".blame-nav" / "config.json").read_text()) == {"timeout": 12.0}


def test_config_set_invalid_value(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    with pytest.raises(SystemExit) as exc:
        cli.main(["config", "set", "color", "maybe"])
    assert exc.value.code == 1
    assert "color must be true or false" in capsys.readouterr().err
