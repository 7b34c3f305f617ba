import json
import logging

import pytest
from typer.testing import CliRunner

from folio.cli.app import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def logging_mock(mocker):
    """Leave the root logger alone while the commands run."""
    return mocker.patch("folio.cli.app.configure_logging")


def test_build_writes_outputs(site_root, tmp_path):
    """Build should write the feed, the sitemap and the JSON listings."""
    output = tmp_path / "public"

    result = runner.invoke(
        app,
        ["build", "--site-root", str(site_root), "--output", str(output), "--build-time", "2024-06-01T12:00:00"],
    )

    assert result.exit_code == 0, result.stdout
    assert "Wrote" in result.stdout
    assert (output / "rss.xml").exists()
    assert (output / "sitemap.xml").exists()
    listing = json.loads((output / "bits" / "index.json").read_text(encoding="utf-8"))
    assert [d["slug"] for d in listing["documents"]] == ["quick-tip"]
    assert "Sat, 01 Jun 2024 12:00:00 GMT" in (output / "rss.xml").read_text(encoding="utf-8")


def test_build_reads_site_config(site_root, tmp_path):
    (site_root / ".folio.toml").write_text('[site]\nbase_url = "https://configured.example"\n')
    output = tmp_path / "public"

    result = runner.invoke(app, ["build", "-s", str(site_root), "-o", str(output)])

    assert result.exit_code == 0, result.stdout
    assert "https://configured.example/blog/hello-world" in (output / "sitemap.xml").read_text(encoding="utf-8")


def test_check_clean_site(site_root):
    result = runner.invoke(app, ["check", "--site-root", str(site_root)])

    assert result.exit_code == 0
    assert "No problems found" in result.stdout


def test_check_reports_warnings(site_root, make_item):
    make_item(site_root, "bits", "broken", "no front matter at all\n")

    result = runner.invoke(app, ["check", "--site-root", str(site_root)])
    strict = runner.invoke(app, ["check", "--site-root", str(site_root), "--strict"])

    assert result.exit_code == 0
    assert "1 warnings" in result.stdout
    assert strict.exit_code == 1


def test_tags(site_root):
    result = runner.invoke(app, ["tags", "--site-root", str(site_root)])

    assert result.exit_code == 0
    assert "NgRx" in result.stdout
    assert "TypeScript" in result.stdout


def test_tags_for_one_kind(site_root):
    result = runner.invoke(app, ["tags", "--site-root", str(site_root), "--kind", "bit"])

    assert result.exit_code == 0
    assert "NgRx" in result.stdout
    assert "TypeScript" not in result.stdout


def test_show_document(site_root):
    result = runner.invoke(app, ["show", "post", "hello-world", "--site-root", str(site_root)])

    assert result.exit_code == 0
    assert "Hello World" in result.stdout
    assert "second-post" in result.stdout


def test_show_unknown_document(site_root):
    result = runner.invoke(app, ["show", "post", "nope", "--site-root", str(site_root)])

    assert result.exit_code == 1
    assert "nope" in result.stdout


def test_missing_content_root(tmp_path):
    (tmp_path / ".folio.toml").write_text('[paths]\ncontent_dir = "missing"\n')

    result = runner.invoke(app, ["check", "--site-root", str(tmp_path)])

    assert result.exit_code == 1
    assert "Error" in result.stdout


def test_verbosity_flags_set_the_run_level(site_root, logging_mock):
    runner.invoke(app, ["-v", "check", "--site-root", str(site_root)])
    runner.invoke(app, ["--quiet", "check", "--site-root", str(site_root)])
    runner.invoke(app, ["check", "--site-root", str(site_root)])

    assert [c.args[0] for c in logging_mock.call_args_list] == [logging.DEBUG, logging.WARNING, None]


def test_tags_for_one_tag(site_root):
    result = runner.invoke(app, ["tags", "--site-root", str(site_root), "--tag", "NGRX"])

    assert result.exit_code == 0
    assert "hello-world" in result.stdout
    assert "quick-tip" in result.stdout
    assert "second-post" not in result.stdout


def test_tags_for_unknown_tag(site_root):
    result = runner.invoke(app, ["tags", "--site-root", str(site_root), "--tag", "cobol"])

    assert result.exit_code == 0
    assert "No documents tagged" in result.stdout


def test_build_logs_its_run(site_root, tmp_path, caplog):
    with caplog.at_level(logging.INFO, logger="folio.cli.app"):
        runner.invoke(
            app,
            ["build", "-s", str(site_root), "-o", str(tmp_path / "out"), "--build-time", "2024-06-01T12:00:00"],
        )

    (record,) = [r for r in caplog.records if r.name == "folio.cli.app"]
    assert record.getMessage().endswith("stamped 2024-06-01T12:00:00+00:00")
