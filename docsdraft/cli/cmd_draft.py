"""CLI — 草稿路径解析与单步发布命令"""

from __future__ import annotations

import click

from docsdraft.cli import _load, _require_ref
from docsdraft.core.branch import DraftLocation
from docsdraft.core.context import RunContext
from docsdraft.core.models import PublishMode
from docsdraft.services.container import ServiceContainer


def register(group: click.Group) -> None:
    group.add_command(resolve)
    group.add_command(check_assets)
    group.add_command(publish)
    group.add_command(invalidate)


def _prepare(config_path: str, ref: str) -> tuple[ServiceContainer, DraftLocation, RunContext]:
    cfg, run_ctx = _load(config_path)
    location = DraftLocation.from_ref(_require_ref(ref, run_ctx), cfg.drafts_root)
    container = ServiceContainer(
        config=cfg, repository=run_ctx.repository, workspace=run_ctx.workspace,
    )
    return container, location, run_ctx


@click.command()
@click.argument("ref", default="")
@click.option("--config", "-c", default="configs/default.yml", help="配置文件路径")
def resolve(ref: str, config: str) -> None:
    """解析分支对应的草稿目录与访问地址"""
    cfg, run_ctx = _load(config)
    location = DraftLocation.from_ref(_require_ref(ref, run_ctx), cfg.drafts_root)
    outputs = {
        "draft_branch": location.branch,
        "draft_directory": location.directory,
    }
    if cfg.base_url:
        outputs["url"] = location.url(cfg.base_url)
    for key, value in outputs.items():
        click.echo(f"{key}={value}")
    run_ctx.write_outputs(outputs)


@click.command(name="check-assets")
@click.option("--ref", default="", help="源分支（默认 GITHUB_HEAD_REF）")
@click.option("--config", "-c", default="configs/default.yml", help="配置文件路径")
def check_assets(ref: str, config: str) -> None:
    """检查构建资源是否有新增/变化，决定全量或增量发布"""
    c, location, run_ctx = _prepare(config, ref)
    c.config.require("bucket")
    diff = c.detector.detect(c.builder.assets_dir, c.config.bucket, location)
    full = str(diff.changed).lower()
    for op in diff.operations:
        click.echo(f"  {op.action}: {op.source}")
    click.echo(f"Perform full publish: {full}")
    run_ctx.write_outputs({"perform_full_publish": full})


@click.command()
@click.option("--ref", default="", help="源分支（默认 GITHUB_HEAD_REF）")
@click.option(
    "--full/--incremental", "full", default=None,
    help="发布模式（不指定则先检测资源差异）",
)
@click.option("--config", "-c", default="configs/default.yml", help="配置文件路径")
def publish(ref: str, full: bool | None, config: str) -> None:
    """暂存构建产物并同步到草稿目录"""
    c, location, run_ctx = _prepare(config, ref)
    c.config.require("bucket")
    if full is None:
        diff = c.detector.detect(c.builder.assets_dir, c.config.bucket, location)
        mode = diff.mode
    else:
        mode = PublishMode.FULL if full else PublishMode.INCREMENTAL
    staging = c.synchronizer.stage(
        c.builder.output_dir,
        f"{run_ctx.workspace}/{c.config.staging_dir}",
        location, run_ctx.repository,
    )
    result = c.synchronizer.publish(staging, c.config.bucket, location, mode)
    click.echo(
        f"草稿已发布 ({result.mode.value}): {location.prefix} "
        f"{len(result.operations)} 个操作, touched={result.touched_at}"
    )


@click.command()
@click.option("--ref", default="", help="源分支（默认 GITHUB_HEAD_REF）")
@click.option("--config", "-c", default="configs/default.yml", help="配置文件路径")
def invalidate(ref: str, config: str) -> None:
    """使草稿目录下的 CDN 缓存失效并等待完成"""
    c, location, _ = _prepare(config, ref)
    c.config.require("distribution_id")
    result = c.invalidator.invalidate(c.config.distribution_id, location)
    click.echo(f"失效完成: {result.invalidation_id} {' '.join(result.paths)}")
