"""流水线运行上下文

从 GitHub Actions 环境变量与事件载荷中提取本次运行需要的输入：
源分支、PR 编号、来源仓库、是否来自 fork 等。
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from docsdraft.core.exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """单次运行的外部输入"""

    head_ref: str = ""
    pr_number: int = 0
    repository: str = ""
    workspace: str = "."
    output_file: str = ""
    fork: bool = False

    @classmethod
    def from_github_env(cls, environ: Mapping[str, str] | None = None) -> RunContext:
        """从 GITHUB_* 环境变量构造，事件载荷不存在时对应字段留空"""
        environ = os.environ if environ is None else environ
        event = _load_event(environ.get("GITHUB_EVENT_PATH", ""))
        pull_request = event.get("pull_request") or {}
        head = pull_request.get("head") or {}
        head_repo = head.get("repo") or {}
        return cls(
            head_ref=environ.get("GITHUB_HEAD_REF", "") or head.get("ref", ""),
            pr_number=int(pull_request.get("number") or 0),
            repository=environ.get("GITHUB_REPOSITORY", ""),
            workspace=environ.get("GITHUB_WORKSPACE", "") or ".",
            output_file=environ.get("GITHUB_OUTPUT", ""),
            fork=bool(head_repo.get("fork", False)),
        )

    def ensure_trusted(self) -> None:
        """fork 来源的 PR 不允许使用凭据部署"""
        if self.fork:
            raise ValidationError("拒绝为 fork 仓库发起的 PR 部署草稿")

    def write_outputs(self, outputs: Mapping[str, str]) -> None:
        """以 key=value 形式追加到 GITHUB_OUTPUT，未设置时忽略"""
        if not self.output_file:
            return
        for key, value in outputs.items():
            if "\n" in str(value):
                raise ValidationError(f"输出值不能包含换行: {key}")
        with open(self.output_file, "a", encoding="utf-8") as f:
            for key, value in outputs.items():
                f.write(f"{key}={value}\n")
        logger.debug("已写入 %d 个步骤输出: %s", len(outputs), self.output_file)


def _load_event(path: str) -> dict[str, Any]:
    if not path or not Path(path).exists():
        return {}
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    return data if isinstance(data, dict) else {}
