"""CLI — 构建与完整部署命令"""

from __future__ import annotations

import click

from docsdraft.cli import _load, _require_ref
from docsdraft.core.branch import DraftLocation
from docsdraft.core.exceptions import BuildError
from docsdraft.services.container import ServiceContainer
from docsdraft.services.orchestrator import DeployPlan, DeployReport, Orchestrator


def register(group: click.Group) -> None:
    group.add_command(build)
    group.add_command(deploy)


@click.command()
@click.option("--ref", default="", help="源分支（默认 GITHUB_HEAD_REF）")
@click.option("--skip-install", is_flag=True, help="跳过依赖安装")
@click.option("--config", "-c", default="configs/default.yml", help="配置文件路径")
def build(ref: str, skip_install: bool, config: str) -> None:
    """以草稿目录为 BASE_URL 构建文档站点"""
    cfg, run_ctx = _load(config)
    location = DraftLocation.from_ref(_require_ref(ref, run_ctx), cfg.drafts_root)
    builder = ServiceContainer(config=cfg, workspace=run_ctx.workspace).builder
    if not skip_install:
        builder.install()
    result = builder.build(location, f"{run_ctx.workspace}/{cfg.build_log}")
    if not result.success:
        click.echo(result.log_tail, err=True)
        raise BuildError(f"站点构建失败 (rc={result.returncode})", log_tail=result.log_tail)
    click.echo(f"构建完成 ({result.duration:.1f}s): {result.output_dir}")


@click.command()
@click.option("--ref", default="", help="源分支（默认 GITHUB_HEAD_REF）")
@click.option("--pr", "pr_number", default=0, type=int, help="PR 编号（默认取事件载荷）")
@click.option("--skip-install", is_flag=True, help="跳过依赖安装")
@click.option("--no-comment", is_flag=True, help="不在 PR 上发布状态评论")
@click.option("--config", "-c", default="configs/default.yml", help="配置文件路径")
def deploy(
    ref: str, pr_number: int, skip_install: bool,
    no_comment: bool, config: str,
) -> None:
    """完整流程：解析 → 构建 → 评论 → 检测 → 同步 → 失效 → 评论"""
    cfg, run_ctx = _load(config)
    run_ctx.ensure_trusted()
    plan = DeployPlan(
        ref=_require_ref(ref, run_ctx),
        pr_number=pr_number or run_ctx.pr_number,
        repository=run_ctx.repository,
        workspace=run_ctx.workspace,
        skip_install=skip_install,
        comment=not no_comment,
    )
    container = ServiceContainer(
        config=cfg, repository=run_ctx.repository, workspace=run_ctx.workspace,
    )
    report = DeployReport(plan=plan)
    try:
        Orchestrator(container).run(plan, report)
    finally:
        run_ctx.write_outputs(report.outputs())
    click.echo(f"Deploy successful! {report.url}")
