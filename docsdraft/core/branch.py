"""分支名 → 草稿目录解析

分支引用（如 refs/heads/feature/x）经校验、去前缀、替换路径分隔符后，
得到扁平、可作为存储键的草稿目录名（feature-x）。

映射是纯函数：相同输入总是得到相同目录。仅分隔符不同的分支
（feature/x 与 feature-x）会映射到同一目录，这是已知且接受的歧义。
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from docsdraft.core.exceptions import ValidationError

BRANCH_PATTERN = re.compile(r"^[A-Za-z0-9/_.-]+$")
REF_PREFIX = "refs/heads/"
PATH_SEPARATOR = "/"
SEPARATOR_SUBSTITUTE = "-"
MARKER_NAME = ".github_source_repository"

# 字符合法但不能作为目录名使用
_RESERVED_DIRECTORIES = frozenset(("", ".", ".."))


def validate_branch_name(ref: str) -> None:
    """校验分支名只包含字母、数字以及 _ - . /

    Raises:
        ValidationError: 分支名为空或包含非法字符
    """
    if not BRANCH_PATTERN.fullmatch(ref or ""):
        bad = sorted({c for c in (ref or "") if not BRANCH_PATTERN.fullmatch(c)})
        raise ValidationError(
            f"分支名包含非法字符，仅允许字母、数字、_、-、. 和 /: {ref!r}",
            details=[f"非法字符: {c!r}" for c in bad] or ["分支名为空"],
        )


def extract_branch(ref: str) -> str:
    """去掉 refs/heads/ 前缀；无前缀时原样返回"""
    if ref.startswith(REF_PREFIX):
        return ref[len(REF_PREFIX):]
    return ref


def to_draft_directory(branch: str) -> str:
    """将分支名中的 / 替换为 -

    Raises:
        ValidationError: 结果为空、"." 或 ".."（如 refs/heads/、refs/heads/..）
    """
    directory = branch.replace(PATH_SEPARATOR, SEPARATOR_SUBSTITUTE)
    if directory in _RESERVED_DIRECTORIES:
        raise ValidationError(
            f"分支 {branch!r} 无法映射为草稿目录",
            details=[f"草稿目录不能为 {directory!r}"],
        )
    return directory


def resolve_draft_directory(ref: str) -> str:
    """校验并解析分支引用，返回草稿目录名

    >>> resolve_draft_directory("refs/heads/feature/login")
    'feature-login'
    >>> resolve_draft_directory("main")
    'main'
    """
    validate_branch_name(ref)
    return to_draft_directory(extract_branch(ref))


@dataclass(frozen=True)
class DraftLocation:
    """单个草稿在远端存储与 CDN 上的全部派生路径"""

    branch: str
    directory: str
    drafts_root: str = "langflow-drafts"

    @classmethod
    def from_ref(cls, ref: str, drafts_root: str = "langflow-drafts") -> DraftLocation:
        validate_branch_name(ref)
        branch = extract_branch(ref)
        return cls(
            branch=branch,
            directory=to_draft_directory(branch),
            drafts_root=drafts_root.strip("/"),
        )

    @property
    def prefix(self) -> str:
        """页面内容前缀: <root>/<dir>"""
        return f"{self.drafts_root}/{self.directory}"

    @property
    def assets_prefix(self) -> str:
        return f"{self.prefix}/assets"

    @property
    def marker_key(self) -> str:
        """记录来源仓库的标记对象键"""
        return f"{self.prefix}/{MARKER_NAME}"

    @property
    def base_path(self) -> str:
        """站点生成器的 BASE_URL"""
        return f"/{self.prefix}"

    @property
    def invalidation_path(self) -> str:
        """CDN 失效通配路径，只覆盖本草稿目录"""
        return f"/{self.prefix}/*"

    @property
    def sync_filter(self) -> str:
        """同步时 --include 使用的过滤模式（相对 drafts_root）"""
        return f"{self.directory}/*"

    def url(self, base_url: str) -> str:
        """草稿首页的访问地址"""
        return f"{base_url.rstrip('/')}/{self.prefix}/index.html"

    @staticmethod
    def s3_uri(bucket: str, key: str = "") -> str:
        return f"s3://{bucket}/{key}" if key else f"s3://{bucket}"
