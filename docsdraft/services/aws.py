"""AWS CLI 适配器

所有 s3 / cloudfront 调用都通过 aws 命令行完成，凭据以环境变量传入子进程，
不写入 ~/.aws，也不出现在日志中。
"""

from __future__ import annotations

import logging
import os
import shlex
from typing import TYPE_CHECKING

from docsdraft.core.exceptions import ExecutionError
from docsdraft.utils.shell import CommandResult, get_executor

if TYPE_CHECKING:
    from docsdraft.core.config import Config
    from docsdraft.utils.shell import CommandExecutor

logger = logging.getLogger(__name__)


class AwsCli:
    """aws 命令执行封装"""

    def __init__(
        self,
        executor: CommandExecutor | None = None,
        *,
        access_key_id: str = "",
        secret_access_key: str = "",
        region: str = "",
        binary: str = "aws",
    ) -> None:
        self.executor = executor or get_executor()
        self.binary = binary
        self._credentials = {
            k: v for k, v in (
                ("AWS_ACCESS_KEY_ID", access_key_id),
                ("AWS_SECRET_ACCESS_KEY", secret_access_key),
                ("AWS_DEFAULT_REGION", region),
            ) if v
        }

    @classmethod
    def from_config(cls, config: Config, executor: CommandExecutor | None = None) -> AwsCli:
        return cls(
            executor,
            access_key_id=config.aws_access_key_id,
            secret_access_key=config.aws_secret_access_key,
            region=config.aws_region,
        )

    def _env(self) -> dict[str, str]:
        return {**os.environ, "AWS_PAGER": "", **self._credentials}

    def run(self, args: list[str], *, label: str = "aws", cwd: str = ".") -> CommandResult:
        """执行 aws 子命令，非零退出码抛 ExecutionError"""
        cmd = [self.binary, *args]
        logger.info("%s: %s", label, shlex.join(cmd))
        r = self.executor.execute(cmd, cwd=cwd, env=self._env())
        for line in r.output.splitlines():
            if line.strip():
                logger.info("  | %s", line)
        if not r.success:
            raise ExecutionError(f"{label}失败 (rc={r.returncode}): {r.output[-500:]}")
        return r
