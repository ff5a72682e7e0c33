"""编排器数据模型

- DeployPlan: 部署计划（本次运行的输入）
- DeployReport: 部署报告（各步骤产出与状态）
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from docsdraft.core.branch import DraftLocation
from docsdraft.core.models import (
    AssetDiff,
    BuildResult,
    InvalidationResult,
    PublishResult,
)


@dataclass
class DeployPlan:
    """部署计划"""

    ref: str
    pr_number: int = 0
    repository: str = ""
    workspace: str = "."
    skip_install: bool = False
    comment: bool = True

    @property
    def should_comment(self) -> bool:
        return self.comment and self.pr_number > 0


@dataclass
class DeployReport:
    """部署执行报告"""

    plan: DeployPlan
    location: DraftLocation | None = None
    url: str = ""
    build: BuildResult | None = None
    diff: AssetDiff | None = None
    publish: PublishResult | None = None
    invalidation: InvalidationResult | None = None
    comment_id: int | None = None
    steps: list[dict[str, Any]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.invalidation is not None

    def outputs(self) -> dict[str, str]:
        """对应流水线步骤输出的键值"""
        data: dict[str, str] = {}
        if self.location is not None:
            data["draft_branch"] = self.location.branch
            data["draft_directory"] = self.location.directory
        if self.url:
            data["url"] = self.url
        if self.diff is not None:
            data["perform_full_publish"] = str(self.diff.changed).lower()
        return data
