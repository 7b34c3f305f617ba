import datetime as dt
import json
import subprocess
from pathlib import Path

from folio.content.history import GitHistory, NullHistory, load_contributors_file
from folio.core.ports import HistoryService


def test_git_contributors_oldest_first_without_repeats(mocker, tmp_path: Path):
    run = mocker.patch("folio.content.history.subprocess.run")
    run.return_value = mocker.Mock(stdout="Carol\nBob\nAlice\nBob\n")

    history = GitHistory(tmp_path)

    assert history.contributors(tmp_path / "index.md") == ["Bob", "Alice", "Carol"]
    args = run.call_args.args[0]
    assert args[:3] == ["git", "log", "--follow"]
    assert run.call_args.kwargs["cwd"] == tmp_path


def test_git_last_modified(mocker, tmp_path: Path):
    mocker.patch(
        "folio.content.history.subprocess.run",
        return_value=mocker.Mock(stdout="2024-03-04T10:11:12+01:00\n"),
    )

    assert GitHistory(tmp_path).last_modified(tmp_path / "index.md") == dt.date(2024, 3, 4)


def test_git_failures_mean_no_history(mocker, tmp_path: Path):
    mocker.patch("folio.content.history.subprocess.run", side_effect=FileNotFoundError("git"))
    history = GitHistory(tmp_path)

    assert history.contributors(tmp_path) == []
    assert history.last_modified(tmp_path) is None

    mocker.patch(
        "folio.content.history.subprocess.run",
        side_effect=subprocess.CalledProcessError(128, ["git"]),
    )
    assert history.last_modified(tmp_path) is None


def test_history_services_satisfy_the_port(tmp_path: Path):
    assert isinstance(NullHistory(), HistoryService)
    assert isinstance(GitHistory(tmp_path), HistoryService)


def test_load_contributors_file(tmp_path: Path):
    (tmp_path / "contributors.json").write_text(json.dumps(["Ana", ["bob123", "Bob Smith"], 7, " "]))

    assert load_contributors_file(tmp_path) == ["Ana", "Bob Smith"]


def test_load_contributors_file_missing_or_broken(tmp_path: Path):
    assert load_contributors_file(tmp_path) == []

    (tmp_path / "contributors.json").write_text("{not json")
    assert load_contributors_file(tmp_path) == []
