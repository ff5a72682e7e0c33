"""资源差异检测

用 aws s3 sync --delete --dryrun 对比本地构建产物 assets/ 与远端草稿 assets/，
不传输任何数据，只根据计划中的 upload/delete 操作判断是否需要全量发布。

比较基于文件大小（--size-only），内容改变但大小不变的文件会被漏判，
这是成本与精度之间已接受的取舍。
"""

from __future__ import annotations

import logging
import re
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from docsdraft.core.models import AssetDiff, SyncOperation

if TYPE_CHECKING:
    from docsdraft.core.branch import DraftLocation
    from docsdraft.services.aws import AwsCli

logger = logging.getLogger(__name__)

_LINE_PATTERN = re.compile(
    r"^(?P<dryrun>\(dryrun\) )?(?P<action>upload|delete|copy|download|move): (?P<rest>.+)$"
)


def _split_paths(action: str, rest: str) -> tuple[str, str]:
    if action == "delete":
        return rest, ""
    if action in ("upload", "copy"):
        idx = rest.rfind(" to s3://")
    else:
        idx = rest.find(" to ")
    if idx < 0:
        return rest, ""
    return rest[:idx], rest[idx + len(" to "):]


def parse_sync_output(text: str) -> tuple[list[SyncOperation], list[str]]:
    """解析 aws s3 sync 输出，返回 (操作列表, 未识别行)"""
    operations: list[SyncOperation] = []
    unparsed: list[str] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        m = _LINE_PATTERN.match(line)
        if m is None:
            unparsed.append(line)
            continue
        source, destination = _split_paths(m.group("action"), m.group("rest"))
        operations.append(SyncOperation(
            action=m.group("action"), source=source,
            destination=destination, dryrun=bool(m.group("dryrun")),
        ))
    return operations, unparsed


class AssetDiffDetector:
    """构建资源差异检测器"""

    def __init__(self, aws: AwsCli) -> None:
        self.aws = aws

    @staticmethod
    def dryrun_args(local_assets: Path, bucket: str, location: DraftLocation) -> list[str]:
        remote = location.s3_uri(bucket, f"{location.assets_prefix}/")
        # --delete 让远端多出的文件也出现在计划中，--dryrun 下不会真正删除
        return [
            "s3", "sync", f"{local_assets}/", remote,
            "--size-only", "--delete", "--dryrun", "--no-progress",
        ]

    def detect(self, local_assets: str | Path, bucket: str, location: DraftLocation) -> AssetDiff:
        """对比本地与远端资源集合，返回差异分类

        本地目录不存在时按空集合对比：远端也为空则无变化，否则远端文件全部计为 delete。
        """
        local = Path(local_assets)
        logger.info("检查新增资源: %s -> %s", local, location.assets_prefix)
        if local.is_dir():
            diff = self._dryrun(local, bucket, location)
        else:
            logger.warning("本地资源目录不存在: %s，按空集合对比", local)
            with tempfile.TemporaryDirectory(prefix="docsdraft-assets-") as empty:
                diff = self._dryrun(Path(empty), bucket, location)
            diff.local_missing = True

        if diff.changed:
            logger.info("资源有变化，执行全量发布: %s", diff.summary())
        else:
            logger.info("资源无变化，执行增量发布")
        return diff

    def _dryrun(self, local: Path, bucket: str, location: DraftLocation) -> AssetDiff:
        r = self.aws.run(self.dryrun_args(local, bucket, location), label="assets dryrun")
        operations, unparsed = parse_sync_output(r.stdout)
        for line in unparsed:
            logger.debug("未识别的 sync 输出: %s", line)
        return AssetDiff(operations=operations, unparsed=unparsed)
