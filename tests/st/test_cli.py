"""CLI 系统测试（click CliRunner + 测试替身执行器）"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from docsdraft import __version__
from docsdraft.cli import main
from docsdraft.utils.shell import get_executor, set_executor
from tests.fakes import CompositeExecutor, FakeAws, FakeSite

_ENV_VARS = (
    "GITHUB_HEAD_REF", "GITHUB_EVENT_PATH", "GITHUB_REPOSITORY", "GITHUB_WORKSPACE",
    "GITHUB_OUTPUT", "GITHUB_TOKEN", "GITHUB_API_URL", "DOCS_DRAFT_BASE_URL",
    "DOCS_DRAFT_S3_BUCKET_NAME", "DOCS_DRAFT_CLOUD_FRONT_DISTRIBUTION_ID",
    "DOCS_AWS_ACCESS_KEY_ID", "DOCS_AWS_SECRET_ACCESS_KEY", "DOCSDRAFT_DEPLOY_LOG",
)


@pytest.fixture
def env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    (tmp_path / "docs").mkdir()
    values = {
        "GITHUB_REPOSITORY": "octo/docs",
        "GITHUB_WORKSPACE": str(tmp_path),
        "GITHUB_OUTPUT": str(tmp_path / "github_output"),
        "DOCS_DRAFT_BASE_URL": "https://drafts.example.com",
        "DOCS_DRAFT_S3_BUCKET_NAME": "docs-drafts",
        "DOCS_DRAFT_CLOUD_FRONT_DISTRIBUTION_ID": "E123",
    }
    for k, v in values.items():
        monkeypatch.setenv(k, v)
    return values


@pytest.fixture
def fakes():
    aws, site = FakeAws(), FakeSite()
    original = get_executor()
    set_executor(CompositeExecutor(aws, site))
    yield aws, site
    set_executor(original)


def _invoke(tmp_path: Path, *args: str):
    return CliRunner().invoke(main, [*args, "-c", str(tmp_path / "missing.yml")])


def _outputs(tmp_path: Path) -> str:
    return (tmp_path / "github_output").read_text()


def _write_build(tmp_path: Path) -> None:
    assets = tmp_path / "docs" / "build" / "assets"
    assets.mkdir(parents=True)
    (assets / "app.js").write_text("x")
    (tmp_path / "docs" / "build" / "index.html").write_text("<html/>")


class TestVersion:
    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        assert __version__ in result.output


class TestResolve:
    def test_resolve(self, tmp_path, env) -> None:
        result = _invoke(tmp_path, "resolve", "refs/heads/feature/login")
        assert result.exit_code == 0, result.output
        assert "draft_directory=feature-login" in result.output
        assert _outputs(tmp_path) == (
            "draft_branch=feature/login\n"
            "draft_directory=feature-login\n"
            "url=https://drafts.example.com/langflow-drafts/feature-login/index.html\n"
        )

    def test_resolve_from_head_ref(self, tmp_path, env, monkeypatch) -> None:
        monkeypatch.setenv("GITHUB_HEAD_REF", "main")
        result = _invoke(tmp_path, "resolve")
        assert "draft_directory=main" in result.output

    def test_resolve_invalid(self, tmp_path, env) -> None:
        result = _invoke(tmp_path, "resolve", "bad name")
        assert result.exit_code == 1
        assert "VALIDATION_ERROR" in result.output
        assert not (tmp_path / "github_output").exists()

    def test_resolve_without_ref(self, tmp_path, env) -> None:
        result = _invoke(tmp_path, "resolve")
        assert result.exit_code == 2
        assert "GITHUB_HEAD_REF" in result.output


class TestSteps:
    def test_build_failure(self, tmp_path, env, fakes) -> None:
        fakes[1].fail_build = True
        result = _invoke(tmp_path, "build", "--ref", "main")
        assert result.exit_code == 1
        assert "BUILD_ERROR" in result.output

    def test_check_assets(self, tmp_path, env, fakes) -> None:
        _write_build(tmp_path)
        result = _invoke(tmp_path, "check-assets", "--ref", "feature/x")
        assert result.exit_code == 0, result.output
        assert "Perform full publish: true" in result.output
        assert "perform_full_publish=true" in _outputs(tmp_path)

    def test_publish_and_invalidate(self, tmp_path, env, fakes) -> None:
        aws, _ = fakes
        _write_build(tmp_path)
        result = _invoke(tmp_path, "publish", "--ref", "feature/x", "--incremental")
        assert result.exit_code == 0, result.output
        assert "langflow-drafts/feature-x/app.js" not in aws.keys("docs-drafts")
        assert "langflow-drafts/feature-x/assets/app.js" in aws.keys("docs-drafts")
        assert aws.calls[0][-1] == "--size-only"

        result = _invoke(tmp_path, "invalidate", "--ref", "feature/x")
        assert result.exit_code == 0, result.output
        assert "/langflow-drafts/feature-x/*" in result.output


class TestDeploy:
    def test_deploy(self, tmp_path, env, fakes, monkeypatch) -> None:
        aws, _ = fakes
        monkeypatch.setenv("GITHUB_HEAD_REF", "docs/update-api")
        monkeypatch.setenv("DOCSDRAFT_DEPLOY_LOG", str(tmp_path / "deploy.log"))
        result = _invoke(tmp_path, "deploy", "--no-comment")
        assert result.exit_code == 0, result.output
        out = _outputs(tmp_path)
        assert "draft_directory=docs-update-api" in out
        assert "perform_full_publish=true" in out
        assert "langflow-drafts/docs-update-api/index.html" in aws.keys("docs-drafts")
        assert "部署草稿到 S3" in (tmp_path / "deploy.log").read_text(encoding="utf-8")

    def test_fork_refused(self, tmp_path, env, fakes, monkeypatch) -> None:
        aws, site = fakes
        event = tmp_path / "event.json"
        event.write_text(json.dumps({"pull_request": {"number": 3, "head": {"repo": {"fork": True}}}}))
        monkeypatch.setenv("GITHUB_EVENT_PATH", str(event))
        result = _invoke(tmp_path, "deploy", "--ref", "main")
        assert result.exit_code == 1
        assert "fork" in result.output
        assert aws.calls == [] and site.calls == []
