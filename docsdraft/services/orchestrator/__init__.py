"""草稿部署编排器

拆分说明:
- models.py: DeployPlan / DeployReport
- steps.py: 7 个步骤实现
- orchestrator.py: 协调器
"""

from docsdraft.services.orchestrator.models import DeployPlan, DeployReport
from docsdraft.services.orchestrator.orchestrator import Orchestrator
from docsdraft.services.orchestrator.steps import DeploySteps

__all__ = [
    "DeployPlan",
    "DeployReport",
    "DeploySteps",
    "Orchestrator",
]
