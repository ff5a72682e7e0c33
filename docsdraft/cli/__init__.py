"""docsdraft 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
业务异常 (DocsDraftError) 统一转换为 click 错误输出，退出码 1。
"""

import os
from typing import Any

import click

from docsdraft import __version__
from docsdraft.core.config import Config, init_config
from docsdraft.core.context import RunContext
from docsdraft.core.exceptions import DocsDraftError
from docsdraft.utils.logger import setup_logging


class DocsDraftGroup(click.Group):
    """将业务异常转换为友好的命令行错误"""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except DocsDraftError as e:
            raise click.ClickException(f"[{e.code}] {e}") from e


def _load(config_path: str) -> tuple[Config, RunContext]:
    """加载配置与运行上下文"""
    return init_config(config_path), RunContext.from_github_env()


def _require_ref(ref: str, run_ctx: RunContext) -> str:
    value = ref or run_ctx.head_ref
    if not value:
        raise click.UsageError("未指定分支：请传入 --ref 或设置 GITHUB_HEAD_REF")
    return value


@click.group(cls=DocsDraftGroup)
@click.version_option(version=__version__)
def main() -> None:
    """docsdraft - PR 文档草稿预览发布"""
    setup_logging(
        level=os.getenv("DOCSDRAFT_LOG_LEVEL", "INFO"),
        json_output=os.getenv("DOCSDRAFT_LOG_JSON", "") == "1",
        log_file=os.getenv("DOCSDRAFT_DEPLOY_LOG") or None,
    )


# 注册各领域子命令
from docsdraft.cli.cmd_draft import register as _reg_draft  # noqa: E402
from docsdraft.cli.cmd_deploy import register as _reg_deploy  # noqa: E402

_reg_draft(main)
_reg_deploy(main)
