"""服务容器 — 统一依赖注入

CLI 与编排器通过容器获取各服务，同一容器内的实例共享同一个
Config 与 CommandExecutor。测试时注入 fake 执行器即可替换全部外部命令。

依赖关系图（→ 表示依赖）:
  detector / synchronizer / invalidator → aws → executor
  builder → executor
  commenter → config.github_*

用法:
    container = ServiceContainer(config=cfg, repository="owner/repo")
    diff = container.detector.detect(...)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docsdraft.core.config import Config
    from docsdraft.services.aws import AwsCli
    from docsdraft.services.build.executor import SiteBuilder
    from docsdraft.services.comments import PullRequestCommenter
    from docsdraft.services.publish.diff import AssetDiffDetector
    from docsdraft.services.publish.invalidation import CacheInvalidator
    from docsdraft.services.publish.sync import DraftSynchronizer
    from docsdraft.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器"""

    def __init__(
        self,
        config: Config | None = None,
        executor: CommandExecutor | None = None,
        repository: str = "",
        workspace: str = ".",
    ) -> None:
        self._instances: dict[str, object] = {}
        if config is None:
            from docsdraft.core.config import get_config
            config = get_config()
        if executor is None:
            from docsdraft.utils.shell import get_executor
            executor = get_executor()
        self._config = config
        self._executor = executor
        self.repository = repository
        self.workspace = workspace

    @property
    def config(self) -> Config:
        return self._config

    @property
    def aws(self) -> AwsCli:
        if "aws" not in self._instances:
            from docsdraft.services.aws import AwsCli
            self._instances["aws"] = AwsCli.from_config(self._config, self._executor)
        return self._instances["aws"]  # type: ignore[return-value]

    @property
    def builder(self) -> SiteBuilder:
        if "builder" not in self._instances:
            from docsdraft.services.build.executor import SiteBuilder
            self._instances["builder"] = SiteBuilder(
                self._config, self._executor, workspace=self.workspace,
            )
        return self._instances["builder"]  # type: ignore[return-value]

    @property
    def detector(self) -> AssetDiffDetector:
        if "detector" not in self._instances:
            from docsdraft.services.publish.diff import AssetDiffDetector
            self._instances["detector"] = AssetDiffDetector(self.aws)
        return self._instances["detector"]  # type: ignore[return-value]

    @property
    def synchronizer(self) -> DraftSynchronizer:
        if "synchronizer" not in self._instances:
            from docsdraft.services.publish.sync import DraftSynchronizer
            self._instances["synchronizer"] = DraftSynchronizer(self.aws)
        return self._instances["synchronizer"]  # type: ignore[return-value]

    @property
    def invalidator(self) -> CacheInvalidator:
        if "invalidator" not in self._instances:
            from docsdraft.services.publish.invalidation import CacheInvalidator
            self._instances["invalidator"] = CacheInvalidator(
                self.aws, caller_reference_prefix=self._config.caller_reference_prefix,
            )
        return self._instances["invalidator"]  # type: ignore[return-value]

    @property
    def commenter(self) -> PullRequestCommenter:
        if "commenter" not in self._instances:
            from docsdraft.services.comments import PullRequestCommenter
            self._instances["commenter"] = PullRequestCommenter(
                repository=self.repository,
                token=self._config.github_token,
                api_url=self._config.github_api_url,
            )
        return self._instances["commenter"]  # type: ignore[return-value]
