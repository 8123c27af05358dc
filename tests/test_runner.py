"""Tests for repo_inventory.report.runner ensuring orchestration flows through dependencies.

Run with:
    pytest tests/test_runner.py --maxfail=1 -v --cov=repo_inventory.report.runner --cov-report=term-missing
"""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from repo_inventory.report import runner
from repo_inventory.retrieval import collectors
from repo_inventory.retrieval.http_client import ApiResponse

ACME_REPOS = [
    {"name": "A", "visibility": "public", "size": 1024, "default_branch": "main",
     "created_at": "2021-01-01T00:00:00Z", "updated_at": "2024-01-01T00:00:00Z", "open_issues_count": 1},
    {"name": "B", "visibility": "internal", "size": 0, "default_branch": "main",
     "created_at": "2022-01-01T00:00:00Z", "updated_at": "2024-02-01T00:00:00Z", "open_issues_count": 0},
]

BRANCH_DATES = {
    "main": "2024-01-01T00:00:00Z",
    "dev": "2024-02-01T00:00:00Z",
    "feature": "2024-03-01T00:00:00Z",
}


def _api(data, headers=None):
    return ApiResponse(url="u", status_code=200, headers=headers or {}, data=data)


def _acme_paged(url, token, per_page, params=None):
    if url.endswith("/orgs/acme/repos"):
        return list(ACME_REPOS)
    if url.endswith("/repos/acme/A/branches"):
        return [{"name": name} for name in ("feature", "main", "dev")]
    if url.endswith("/repos/acme/B/branches"):
        return None
    return []


def _acme_fetch(url, token, params=None):
    if url.endswith("/repos/acme/A/commits"):
        return _api([{"commit": {"committer": {"date": BRANCH_DATES[params["sha"]]}}}])
    return None


def _writer(collected):
    def _write(org, records, output_dir):
        collected[org] = records
        return Path(output_dir) / f"{org}.csv"
    return _write


@patch("repo_inventory.retrieval.collectors.fetch", side_effect=_acme_fetch)
@patch("repo_inventory.retrieval.collectors.paged_get", side_effect=_acme_paged)
def test_acme_scenario_last_pushed_dates(mock_paged, mock_fetch, tmp_path):
    collected = {}
    reports = runner.run(["acme"], "tok", output_dir=tmp_path, writer=_writer(collected))

    records = collected["acme"]
    assert [r.repo_name for r in records] == ["A", "B"]
    assert records[0].last_pushed_date == "2024-03-01T00:00:00Z"
    assert records[0].total_branches == 3
    assert records[1].last_pushed_date == "N/A"
    assert records[1].total_branches == "N/A"
    assert reports[0].path == tmp_path / "acme.csv"
    assert runner.render_summary(reports) == "Org: acme | Total Repositories: 2"


@patch("repo_inventory.retrieval.collectors.fetch", side_effect=_acme_fetch)
@patch("repo_inventory.retrieval.collectors.paged_get", side_effect=_acme_paged)
def test_rerun_with_same_upstream_data_is_identical(mock_paged, mock_fetch, tmp_path):
    first = runner.collect_org_records("acme", "tok")
    second = runner.collect_org_records("acme", "tok")
    assert first == second


@patch("repo_inventory.report.runner.get_repo_detail")
@patch("repo_inventory.report.runner.list_org_repos")
def test_records_keep_listing_order_and_cardinality(mock_list, mock_detail):
    repos = [{"name": f"r{i}", "size": 0} for i in range(25)]
    mock_list.return_value = repos

    def _detail(repo, org, token, per_page):
        if int(repo["name"][1:]) % 3 == 0:
            return collectors.placeholder_record(repo)
        return collectors.placeholder_record(dict(repo, visibility="public"))

    mock_detail.side_effect = _detail
    records = runner.collect_org_records("acme", "tok", per_page=10, max_workers=4)
    assert [r.repo_name for r in records] == [repo["name"] for repo in repos]
    assert mock_list.call_args.args == ("acme", "tok", 10)


@patch("repo_inventory.retrieval.collectors.fetch", side_effect=RuntimeError("down"))
@patch("repo_inventory.retrieval.collectors.paged_get", side_effect=RuntimeError("down"))
def test_every_repo_yields_a_row_when_sub_fetches_explode(mock_paged, mock_fetch):
    with patch("repo_inventory.report.runner.list_org_repos", return_value=ACME_REPOS):
        records = runner.collect_org_records("acme", "tok")
    assert [r.repo_name for r in records] == ["A", "B"]
    assert all(r.total_tags == "N/A" and r.total_branches == "N/A" for r in records)
    assert all(r.total_commits == "N/A" and r.last_pushed_date == "N/A" for r in records)
    assert [r.created_date for r in records] == ["2021-01-01T00:00:00Z", "2022-01-01T00:00:00Z"]


@patch("repo_inventory.report.runner.list_org_repos", return_value=[ACME_REPOS[0], "garbage"])
@patch("repo_inventory.retrieval.collectors.fetch", return_value=None)
@patch("repo_inventory.retrieval.collectors.paged_get", return_value=None)
def test_non_dict_listing_item_still_yields_a_row(mock_paged, mock_fetch, mock_list):
    records = runner.collect_org_records("acme", "tok")
    assert [r.repo_name for r in records] == ["A", "N/A"]
    assert records[1].size_mb == "0.00"


@patch("repo_inventory.report.runner.list_org_repos", return_value=[])
def test_org_without_repos_still_writes_report(mock_list, tmp_path):
    writer = MagicMock(return_value=tmp_path / "empty.csv")
    report = runner.process_org("ghost", "tok", output_dir=tmp_path, writer=writer)
    writer.assert_called_once_with("ghost", [], tmp_path)
    assert report.records == []


def test_run_processes_orgs_in_order(monkeypatch):
    seen = []

    def _process(org, token, per_page, output_dir, max_workers, writer):
        seen.append(org)
        return runner.OrgReport(org=org, records=[], path=None)

    monkeypatch.setattr(runner, "process_org", _process)
    reports = runner.run(["b", "a", "c"], "tok")
    assert seen == ["b", "a", "c"]
    assert [r.org for r in reports] == ["b", "a", "c"]


@patch("repo_inventory.report.runner.list_org_repos", return_value=[])
def test_writer_failure_is_logged_and_run_continues(mock_list, tmp_path, capsys):
    writer = MagicMock(side_effect=[OSError("disk full"), tmp_path / "ok.csv"])
    reports = runner.run(["one", "two"], "tok", output_dir=tmp_path, writer=writer)
    assert reports[0].path is None
    assert reports[1].path == tmp_path / "ok.csv"
    assert "disk full" in capsys.readouterr().out


def test_main_exits_when_orgs_missing(monkeypatch, capsys):
    monkeypatch.delenv("INPUT_ORGS", raising=False)
    monkeypatch.setenv("INPUT_PAT", "pat")
    called = []
    monkeypatch.setattr(runner, "run", lambda *a, **k: called.append(a))
    with pytest.raises(SystemExit) as excinfo:
        runner.main([])
    assert excinfo.value.code == 1
    assert not called
    assert "INPUT_ORGS" in capsys.readouterr().out


def test_main_exits_when_token_missing(monkeypatch, tmp_path):
    monkeypatch.setenv("INPUT_ORGS", "acme")
    monkeypatch.delenv("INPUT_PAT", raising=False)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.setenv("LOCAL_SECRETS_FILE", str(tmp_path / "none.json"))
    with pytest.raises(SystemExit) as excinfo:
        runner.main([])
    assert excinfo.value.code == 1


def test_main_runs_and_prints_summary(monkeypatch, capsys, tmp_path):
    monkeypatch.delenv("INPUT_ORGS", raising=False)
    captured = {}

    def _run(orgs, token, per_page, output_dir, max_workers):
        captured.update(orgs=orgs, token=token, per_page=per_page)
        return [runner.OrgReport(org=o, records=[], path=None) for o in orgs]

    monkeypatch.setattr(runner, "run", _run)
    runner.main(["--orgs", "acme,globex", "--token", "secret", "--output-dir", str(tmp_path)])
    out = capsys.readouterr().out
    assert captured == {"orgs": ["acme", "globex"], "token": "secret", "per_page": 100}
    assert "Org: globex | Total Repositories: 0" in out
    assert "secret" not in out
