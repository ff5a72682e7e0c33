"""docsdraft - 文档草稿预览发布工具

为每个 Pull Request 构建文档站点，按分支名发布到独立的草稿目录，
并通过 PR 评论回报构建/部署状态。
"""

__version__ = "0.3.0"
