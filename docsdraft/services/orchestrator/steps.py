"""编排器步骤实现 - 7 步流水线

步骤顺序：
1. resolve - 校验分支名并解析草稿路径（任何远端调用之前）
2. build - 安装依赖并构建站点，失败时发布失败评论
3. announce - 发布构建成功评论
4. detect - 检测资源差异，决定全量/增量发布
5. publish - 暂存并同步草稿目录，刷新标记对象
6. invalidate - CDN 缓存失效并等待完成
7. finalize - 更新评论为部署成功并附草稿链接
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, NoReturn

from docsdraft.core.branch import DraftLocation
from docsdraft.core.exceptions import BuildError, ExecutionError
from docsdraft.services.comments import (
    REACTION_BUILD_FAILURE,
    REACTION_BUILD_SUCCESS,
    REACTION_DEPLOY_SUCCESS,
    build_failure_body,
    build_success_body,
    deploy_success_body,
)

if TYPE_CHECKING:
    from docsdraft.services.container import ServiceContainer
    from docsdraft.services.orchestrator.models import DeployPlan, DeployReport

logger = logging.getLogger(__name__)


class DeploySteps:
    """部署步骤集合"""

    def __init__(self, container: ServiceContainer) -> None:
        self.c = container

    def _location(self, report: DeployReport) -> DraftLocation:
        if report.location is None:
            raise RuntimeError("草稿路径尚未解析")
        return report.location

    def resolve(self, plan: DeployPlan, report: DeployReport) -> None:
        """步骤1: 校验分支名、必填配置，解析草稿路径与访问地址"""
        cfg = self.c.config
        location = DraftLocation.from_ref(plan.ref, cfg.drafts_root)
        cfg.require("bucket", "distribution_id", "base_url")
        cfg.check_url("base_url")
        report.location = location
        report.url = location.url(cfg.base_url)
        report.steps.append({
            "step": "resolve", "status": "done",
            "branch": location.branch, "directory": location.directory,
        })
        logger.info("[Step 1] 草稿目录: %s -> %s", plan.ref, location.directory)

    def build(self, plan: DeployPlan, report: DeployReport) -> None:
        """步骤2: 安装依赖并构建站点"""
        location = self._location(report)
        builder = self.c.builder
        log_path = Path(plan.workspace) / self.c.config.build_log
        try:
            if not plan.skip_install:
                builder.install()
            result = builder.build(location, log_path)
        except ExecutionError as e:
            # 站点生成器无法启动（命令不存在等）同样按构建失败处理
            self._fail_build(plan, report, str(e))
        report.build = result
        if not result.success:
            self._fail_build(plan, report, result.log_tail)
        report.steps.append({
            "step": "build", "status": "done",
            "duration": round(result.duration, 1), "output_dir": result.output_dir,
        })
        logger.info("[Step 2] 构建完成: %s", result.output_dir)

    def _fail_build(self, plan: DeployPlan, report: DeployReport, log_tail: str) -> NoReturn:
        report.steps.append({"step": "build", "status": "failed"})
        if plan.should_comment:
            report.comment_id = self.c.commenter.upsert_status(
                plan.pr_number, build_failure_body(log_tail), REACTION_BUILD_FAILURE,
            )
        raise BuildError("站点构建失败", log_tail=log_tail)

    def announce(self, plan: DeployPlan, report: DeployReport) -> None:
        """步骤3: 发布构建成功评论"""
        if not plan.should_comment:
            report.steps.append({"step": "announce", "status": "skipped"})
            return
        report.comment_id = self.c.commenter.upsert_status(
            plan.pr_number, build_success_body(), REACTION_BUILD_SUCCESS,
        )
        report.steps.append({
            "step": "announce", "status": "done", "comment_id": report.comment_id,
        })
        logger.info("[Step 3] 构建成功评论: %s", report.comment_id)

    def detect(self, plan: DeployPlan, report: DeployReport) -> None:
        """步骤4: 检测资源差异"""
        location = self._location(report)
        diff = self.c.detector.detect(
            self.c.builder.assets_dir, self.c.config.bucket, location,
        )
        report.diff = diff
        report.steps.append({
            "step": "detect", "status": "done",
            "mode": diff.mode.value, "operations": diff.summary(),
        })
        logger.info("[Step 4] 发布模式: %s", diff.mode.value)

    def publish(self, plan: DeployPlan, report: DeployReport) -> None:
        """步骤5: 暂存草稿树并同步到远端"""
        location = self._location(report)
        if report.diff is None:
            raise RuntimeError("资源差异尚未检测")
        cfg = self.c.config
        sync = self.c.synchronizer
        staging = sync.stage(
            self.c.builder.output_dir, Path(plan.workspace) / cfg.staging_dir,
            location, plan.repository,
        )
        result = sync.publish(staging, cfg.bucket, location, report.diff.mode)
        report.publish = result
        report.steps.append({
            "step": "publish", "status": "done", "mode": result.mode.value,
            "operations": len(result.operations), "touched_at": result.touched_at,
        })
        logger.info("[Step 5] 草稿已同步: %d 个操作", len(result.operations))

    def invalidate(self, plan: DeployPlan, report: DeployReport) -> None:
        """步骤6: CDN 缓存失效并等待完成"""
        location = self._location(report)
        result = self.c.invalidator.invalidate(self.c.config.distribution_id, location)
        report.invalidation = result
        report.steps.append({
            "step": "invalidate", "status": "done",
            "invalidation_id": result.invalidation_id, "paths": result.paths,
        })
        logger.info("[Step 6] 缓存失效完成: %s", result.invalidation_id)

    def finalize(self, plan: DeployPlan, report: DeployReport) -> None:
        """步骤7: 更新评论为部署成功"""
        if not plan.should_comment:
            report.steps.append({"step": "report", "status": "skipped"})
            return
        report.comment_id = self.c.commenter.upsert_status(
            plan.pr_number, deploy_success_body(report.url), REACTION_DEPLOY_SUCCESS,
        )
        report.steps.append({
            "step": "report", "status": "done", "url": report.url,
        })
        logger.info("[Step 7] 部署成功: %s", report.url)
