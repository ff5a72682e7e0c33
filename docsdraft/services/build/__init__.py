"""站点构建模块

- executor.py: 依赖安装与站点生成器调用、构建日志采集
"""

from docsdraft.services.build.executor import SiteBuilder, read_log_tail

__all__ = ["SiteBuilder", "read_log_tail"]
