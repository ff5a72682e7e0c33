"""草稿发布模块

拆分说明:
- diff.py: 资源差异检测（dry-run，按大小比较）
- sync.py: 草稿目录同步 + 标记对象 touched 时间更新
- invalidation.py: CDN 缓存失效并等待完成
"""

from docsdraft.services.publish.diff import AssetDiffDetector, parse_sync_output
from docsdraft.services.publish.invalidation import CacheInvalidator
from docsdraft.services.publish.sync import DraftSynchronizer

__all__ = [
    "AssetDiffDetector",
    "CacheInvalidator",
    "DraftSynchronizer",
    "parse_sync_output",
]
