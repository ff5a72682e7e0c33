"""部署编排器 - 协调 7 步流水线

步骤严格串行；任一步骤失败即终止本次运行，不重试、不回滚。
构建失败会发布失败评论；发布/失效阶段失败不发布任何成功评论，
仅记录在部署日志中。
"""

from __future__ import annotations

import logging

from docsdraft.core.exceptions import DocsDraftError
from docsdraft.services.container import ServiceContainer
from docsdraft.services.orchestrator.models import DeployPlan, DeployReport
from docsdraft.services.orchestrator.steps import DeploySteps

logger = logging.getLogger(__name__)


class Orchestrator:
    """7 步草稿部署编排器"""

    def __init__(self, container: ServiceContainer | None = None) -> None:
        self.c = container or ServiceContainer()
        self.steps = DeploySteps(self.c)

    def run(self, plan: DeployPlan, report: DeployReport | None = None) -> DeployReport:
        """执行部署流程，失败时异常向上传播（report 中保留已完成步骤）"""
        report = report or DeployReport(plan=plan)
        try:
            self.steps.resolve(plan, report)
            self.steps.build(plan, report)
            self.steps.announce(plan, report)
            self.steps.detect(plan, report)
            self.steps.publish(plan, report)
            self.steps.invalidate(plan, report)
            self.steps.finalize(plan, report)
        except DocsDraftError as e:
            logger.error("部署终止 [%s]: %s", e.code, e)
            raise
        return report
