"""草稿目录同步

将本地草稿树（页面 + assets + 来源仓库标记文件）同步到远端 <root>/<dir>/:

  - 资源有变化 (full):        内容感知同步，--delete 清理远端多余文件
  - 资源无变化 (incremental): 追加 --size-only，大小一致的文件跳过传输

同步源为 staging 根目录、目标为 s3://<bucket>/<root>，并以
--exclude "*" --include "<dir>/*" 限定作用范围，保证其他分支的草稿目录
不会被 --delete 误删。

同步后无条件刷新标记对象的 touched 元数据，供过期草稿清理流程判断活跃度。
失败不回滚，半同步状态由下一次运行修复。
"""

from __future__ import annotations

import json
import logging
import shutil
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from docsdraft.core.branch import MARKER_NAME
from docsdraft.core.exceptions import ExecutionError, PublishError
from docsdraft.core.models import PublishMode, PublishResult
from docsdraft.services.publish.diff import parse_sync_output
from docsdraft.utils.yaml_io import atomic_write

if TYPE_CHECKING:
    from docsdraft.core.branch import DraftLocation
    from docsdraft.services.aws import AwsCli

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DraftSynchronizer:
    """草稿同步器"""

    def __init__(self, aws: AwsCli, clock: Callable[[], datetime] = _utcnow) -> None:
        self.aws = aws
        self.clock = clock

    @staticmethod
    def stage(
        build_dir: str | Path, staging_root: str | Path,
        location: DraftLocation, repository: str,
    ) -> Path:
        """把构建产物移动到 <staging_root>/<dir>/ 并写入来源仓库标记文件"""
        src = Path(build_dir)
        if not src.is_dir():
            raise PublishError(f"构建产物目录不存在: {src}")
        root = Path(staging_root)
        target = root / location.directory
        if target.resolve().parent != root.resolve():
            raise PublishError(f"草稿目录超出暂存根目录: {location.directory!r}")
        if target.exists():
            shutil.rmtree(target)
        root.mkdir(parents=True, exist_ok=True)
        shutil.move(str(src), str(target))
        atomic_write(target / MARKER_NAME, f"{repository}\n")
        logger.info("草稿已暂存: %s (来源仓库 %s)", target, repository)
        return root

    @staticmethod
    def sync_args(
        staging_root: str | Path, bucket: str,
        location: DraftLocation, mode: PublishMode,
    ) -> list[str]:
        args = [
            "s3", "sync", str(staging_root),
            location.s3_uri(bucket, location.drafts_root),
            "--no-progress",
            "--delete",
            "--exclude", "*",
            "--include", location.sync_filter,
        ]
        if mode is PublishMode.INCREMENTAL:
            args.append("--size-only")
        return args

    def touch_args(self, bucket: str, location: DraftLocation, touched_at: str) -> list[str]:
        marker = location.s3_uri(bucket, location.marker_key)
        return [
            "s3", "cp", marker, marker,
            "--metadata", json.dumps({"touched": touched_at}),
            "--metadata-directive", "REPLACE",
            "--content-type", "text/plain",
        ]

    def touch_marker(self, bucket: str, location: DraftLocation) -> str:
        """原地复制标记对象以刷新 touched 元数据，返回时间戳"""
        touched_at = self.clock().astimezone(timezone.utc).isoformat(timespec="seconds")
        logger.info("标记草稿最后修改时间: %s", touched_at)
        try:
            self.aws.run(self.touch_args(bucket, location, touched_at), label="touch marker")
        except ExecutionError as e:
            raise PublishError(f"更新标记对象失败: {e}") from e
        return touched_at

    def publish(
        self, staging_root: str | Path, bucket: str,
        location: DraftLocation, mode: PublishMode,
    ) -> PublishResult:
        """同步草稿目录并刷新标记对象"""
        logger.info("部署草稿到 S3 (%s): %s", mode.value, location.prefix)
        try:
            r = self.aws.run(
                self.sync_args(staging_root, bucket, location, mode),
                label="draft sync",
            )
        except ExecutionError as e:
            raise PublishError(f"草稿同步失败: {e}") from e
        operations, _ = parse_sync_output(r.stdout)
        touched_at = self.touch_marker(bucket, location)
        return PublishResult(mode=mode, operations=operations, touched_at=touched_at)
