"""共享 fixture — 注入测试替身的服务容器与 aws 适配器"""

from __future__ import annotations

from pathlib import Path

import pytest

from docsdraft.core.config import Config
from docsdraft.services.aws import AwsCli
from docsdraft.services.container import ServiceContainer
from docsdraft.utils.logger import reset_logging
from tests.fakes import CompositeExecutor, FakeAws, FakeCommenter, FakeSite


@pytest.fixture(autouse=True)
def _clean_logging():
    yield
    reset_logging()


@pytest.fixture
def fake_aws() -> FakeAws:
    return FakeAws()


@pytest.fixture
def fake_site() -> FakeSite:
    return FakeSite()


@pytest.fixture
def aws_cli(fake_aws: FakeAws) -> AwsCli:
    return AwsCli(fake_aws, access_key_id="AKIA", secret_access_key="secret", region="us-west-2")


@pytest.fixture
def config() -> Config:
    return Config(
        base_url="https://drafts.example.com",
        bucket="docs-drafts",
        distribution_id="E123",
    )


@pytest.fixture
def commenter() -> FakeCommenter:
    return FakeCommenter()


@pytest.fixture
def container(
    tmp_path: Path, config: Config, fake_aws: FakeAws,
    fake_site: FakeSite, commenter: FakeCommenter,
) -> ServiceContainer:
    (tmp_path / "docs").mkdir()
    c = ServiceContainer(
        config=config, executor=CompositeExecutor(fake_aws, fake_site),
        repository="octo/docs", workspace=str(tmp_path),
    )
    c._instances["commenter"] = commenter
    return c
