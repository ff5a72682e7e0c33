"""CDN 缓存失效

只对草稿目录下的通配路径发起一次失效请求，避免影响其他草稿；
CallerReference 由当前时间生成以区分请求。创建后阻塞等待完成，
确认之前不视为发布成功。失败不会删除已同步的内容。
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from docsdraft.core.exceptions import ExecutionError, InvalidationError
from docsdraft.core.models import InvalidationResult

if TYPE_CHECKING:
    from docsdraft.core.branch import DraftLocation
    from docsdraft.services.aws import AwsCli

logger = logging.getLogger(__name__)


class CacheInvalidator:
    """CloudFront 缓存失效触发器"""

    def __init__(
        self, aws: AwsCli,
        caller_reference_prefix: str = "langflow-docs-draft-files",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.aws = aws
        self.caller_reference_prefix = caller_reference_prefix
        self.clock = clock

    def build_batch(self, location: DraftLocation) -> dict[str, Any]:
        return {
            "Paths": {"Quantity": 1, "Items": [location.invalidation_path]},
            "CallerReference": f"{self.caller_reference_prefix}-{int(self.clock())}",
        }

    def invalidate(self, distribution_id: str, location: DraftLocation) -> InvalidationResult:
        """创建失效请求并等待完成"""
        batch = self.build_batch(location)
        logger.info("失效请求:\n%s", json.dumps(batch, indent=2))
        try:
            logger.info("创建失效请求")
            r = self.aws.run([
                "cloudfront", "create-invalidation",
                "--distribution-id", distribution_id,
                "--invalidation-batch", json.dumps(batch),
                "--query", "Invalidation.Id",
                "--output", "text",
            ], label="create invalidation")
            invalidation_id = r.stdout.strip()
            if not invalidation_id:
                raise InvalidationError("create-invalidation 未返回失效请求 ID")

            logger.info("等待失效完成: %s", invalidation_id)
            self.aws.run([
                "cloudfront", "wait", "invalidation-completed",
                "--distribution-id", distribution_id,
                "--id", invalidation_id,
            ], label="wait invalidation")
        except ExecutionError as e:
            raise InvalidationError(f"缓存失效失败: {e}") from e

        logger.info("失效完成: %s", invalidation_id)
        return InvalidationResult(
            invalidation_id=invalidation_id,
            paths=list(batch["Paths"]["Items"]),
            caller_reference=batch["CallerReference"],
        )
