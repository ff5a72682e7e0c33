"""集中配置管理

支持从 YAML 文件加载 + 环境变量覆盖（流水线通过 vars / secrets 注入）。
凭据只从环境变量读取，不应写入配置文件。
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from urllib.parse import urlparse

from docsdraft.core.exceptions import ConfigError
from docsdraft.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

# 字段名 -> 环境变量名（沿用流水线中的变量命名）
ENV_OVERRIDES: dict[str, str] = {
    "base_url": "DOCS_DRAFT_BASE_URL",
    "bucket": "DOCS_DRAFT_S3_BUCKET_NAME",
    "distribution_id": "DOCS_DRAFT_CLOUD_FRONT_DISTRIBUTION_ID",
    "segment_write_key": "DOCS_DRAFT_SEGMENT_PUBLIC_WRITE_KEY",
    "aws_access_key_id": "DOCS_AWS_ACCESS_KEY_ID",
    "aws_secret_access_key": "DOCS_AWS_SECRET_ACCESS_KEY",
    "aws_region": "DOCS_AWS_REGION",
    "github_api_url": "GITHUB_API_URL",
    "github_token": "GITHUB_TOKEN",
}

_SECRET_FIELDS = frozenset(("aws_access_key_id", "aws_secret_access_key", "github_token"))
_HTTP_SCHEMES = frozenset(("http", "https"))


def check_http_url(url: str, setting: str) -> str:
    """校验地址为带主机名的 http(s) URL，返回去掉末尾 / 的地址

    草稿链接会写进 PR 评论，GitHub API 地址用于 urlopen，
    两者都不允许 file://、s3:// 或缺少主机名的值。

    Raises:
        ConfigError: 协议不是 http/https 或缺少主机名
    """
    parsed = urlparse(url)
    if parsed.scheme not in _HTTP_SCHEMES or not parsed.netloc:
        raise ConfigError(f"{setting} 必须是 http(s) 地址: {url!r}")
    return url.rstrip("/")


@dataclass
class Config:
    """草稿发布全局配置"""

    # 目录
    docs_dir: str = "docs"
    build_dir: str = "build"          # 相对 docs_dir
    assets_subdir: str = "assets"     # 相对 build_dir
    staging_dir: str = ".docsdraft/staging"
    build_log: str = "build.log"
    deploy_log: str = "deploy.log"

    # 构建
    install_cmd: str = "yarn install"
    build_cmd: str = "yarn build"
    build_log_tail_lines: int = 50
    segment_write_key: str = ""

    # 发布
    drafts_root: str = "langflow-drafts"
    base_url: str = ""
    bucket: str = ""
    distribution_id: str = ""
    caller_reference_prefix: str = "langflow-docs-draft-files"

    # 凭据
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_region: str = "us-west-2"

    # PR 评论
    github_api_url: str = "https://api.github.com"
    github_token: str = ""

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str = "configs/default.yml") -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        data = load_yaml(path)
        if not data:
            return cls()
        known = {f for f in cls.__dataclass_fields__ if f != "extra"}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        secrets = sorted(_SECRET_FIELDS & matched.keys())
        if secrets:
            logger.warning("配置文件中包含凭据字段，建议改用环境变量: %s", ", ".join(secrets))
        cfg = cls(**matched)
        cfg.extra = extra
        return cfg

    def apply_env(self, environ: Mapping[str, str] | None = None) -> Config:
        """用环境变量覆盖对应字段（仅覆盖非空值），返回自身"""
        environ = os.environ if environ is None else environ
        for name, var in ENV_OVERRIDES.items():
            value = environ.get(var, "")
            if value:
                setattr(self, name, value)
        return self

    def require(self, *names: str) -> None:
        """校验必填字段，缺失时一次性列出全部"""
        missing = [n for n in names if not getattr(self, n)]
        if missing:
            hints = [f"{n} ({ENV_OVERRIDES[n]})" if n in ENV_OVERRIDES else n for n in missing]
            raise ConfigError(f"缺少必填配置: {', '.join(hints)}")

    def check_url(self, name: str) -> str:
        """校验 URL 字段，错误信息带上对应的环境变量名"""
        setting = f"{name} ({ENV_OVERRIDES[name]})" if name in ENV_OVERRIDES else name
        return check_http_url(getattr(self, name), setting)

    def to_dict(self, *, redact: bool = True) -> dict:
        data = asdict(self)
        if redact:
            for name in _SECRET_FIELDS:
                if data.get(name):
                    data[name] = "***"
        return data


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(
    path: str = "configs/default.yml",
    environ: Mapping[str, str] | None = None,
) -> Config:
    """从文件 + 环境变量初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path).apply_env(environ)
    logger.info("配置已加载: %s", path)
    return _current
