"""站点构建执行器

职责:
- 依赖安装 (yarn install)
- 站点构建 (yarn build)，BASE_URL 指向草稿目录
- 构建日志落盘，失败时截取日志尾部用于 PR 评论
"""

from __future__ import annotations

import logging
import os
import time
from collections import deque
from pathlib import Path
from typing import TYPE_CHECKING

from docsdraft.core.models import BuildResult
from docsdraft.utils.shell import get_executor, run_cmd
from docsdraft.utils.yaml_io import atomic_write

if TYPE_CHECKING:
    from docsdraft.core.branch import DraftLocation
    from docsdraft.core.config import Config
    from docsdraft.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)


def read_log_tail(path: str | Path, lines: int = 50) -> str:
    """读取日志文件最后 N 行，文件不存在返回空串"""
    p = Path(path)
    if not p.exists():
        return ""
    with open(p, encoding="utf-8", errors="replace") as f:
        tail = deque(f, maxlen=max(lines, 0))
    return "".join(tail).rstrip("\n")


class SiteBuilder:
    """文档站点构建器"""

    def __init__(
        self, config: Config, executor: CommandExecutor | None = None,
        workspace: str | Path = ".",
    ) -> None:
        self.config = config
        self.executor = executor or get_executor()
        self.workspace = Path(workspace)

    @property
    def docs_dir(self) -> Path:
        return self.workspace / self.config.docs_dir

    @property
    def output_dir(self) -> Path:
        return self.docs_dir / self.config.build_dir

    @property
    def assets_dir(self) -> Path:
        return self.output_dir / self.config.assets_subdir

    def install(self) -> None:
        """安装站点依赖，失败抛 ExecutionError"""
        run_cmd(
            self.config.install_cmd, cwd=str(self.docs_dir),
            label="install", executor=self.executor,
        )

    def build(self, location: DraftLocation, log_path: str | Path) -> BuildResult:
        """构建站点，输出写入 log_path；失败时返回 failed 结果而不抛异常"""
        env = {
            **os.environ,
            "BASE_URL": location.base_path,
            "FORCE_COLOR": "0",
            "SEGMENT_PUBLIC_WRITE_KEY": self.config.segment_write_key,
        }
        logger.info("构建站点: %s (BASE_URL=%s)", self.config.build_cmd, location.base_path)
        start = time.monotonic()
        r = self.executor.execute(self.config.build_cmd, cwd=str(self.docs_dir), env=env)
        duration = time.monotonic() - start

        log_file = Path(log_path)
        atomic_write(log_file, r.output)

        if not r.success:
            tail = read_log_tail(log_file, self.config.build_log_tail_lines)
            logger.error("构建失败 (rc=%d, %.1fs)，日志: %s", r.returncode, duration, log_file)
            return BuildResult(
                status="failed", duration=duration, log_path=str(log_file),
                log_tail=tail, returncode=r.returncode,
            )

        logger.info("构建完成 (%.1fs): %s", duration, self.output_dir)
        return BuildResult(
            status="success", duration=duration,
            output_dir=str(self.output_dir), log_path=str(log_file),
        )
