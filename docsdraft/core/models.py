"""核心数据模型

构建、资源差异、同步、缓存失效各阶段的结果统一定义于此。
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

# =========================================================================
# 发布模式
# =========================================================================


class PublishMode(str, Enum):
    """发布模式: 资源有变化时全量同步，否则仅按大小比较的增量同步"""

    FULL = "full"
    INCREMENTAL = "incremental"


# =========================================================================
# 构建
# =========================================================================


@dataclass
class BuildResult:
    """站点构建结果"""

    status: str  # "success" | "failed"
    duration: float = 0.0  # 秒
    output_dir: str = ""
    log_path: str = ""
    log_tail: str = ""
    returncode: int = 0

    @property
    def success(self) -> bool:
        return self.status == "success"


# =========================================================================
# 同步
# =========================================================================


@dataclass
class SyncOperation:
    """aws s3 sync 输出中的一条操作"""

    action: str  # "upload" | "delete" | "copy" | "download"
    source: str
    destination: str = ""
    dryrun: bool = False

    @property
    def mutating(self) -> bool:
        """是否会改变远端对象集合"""
        return self.action in ("upload", "delete", "copy")


@dataclass
class AssetDiff:
    """本地资源与远端资源的差异分类（仅 dry-run，不传输数据）"""

    operations: list[SyncOperation] = field(default_factory=list)
    unparsed: list[str] = field(default_factory=list)
    local_missing: bool = False  # 本地目录不存在，按空集合对比

    @property
    def changed(self) -> bool:
        return any(op.action in ("upload", "delete") for op in self.operations)

    @property
    def mode(self) -> PublishMode:
        return PublishMode.FULL if self.changed else PublishMode.INCREMENTAL

    def summary(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for op in self.operations:
            counts[op.action] = counts.get(op.action, 0) + 1
        return counts


@dataclass
class PublishResult:
    """草稿同步结果"""

    mode: PublishMode
    operations: list[SyncOperation] = field(default_factory=list)
    touched_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "operations": [asdict(op) for op in self.operations],
            "touched_at": self.touched_at,
        }


# =========================================================================
# 缓存失效
# =========================================================================


@dataclass
class InvalidationResult:
    """CDN 缓存失效结果"""

    invalidation_id: str
    paths: list[str] = field(default_factory=list)
    caller_reference: str = ""
    status: str = "Completed"
