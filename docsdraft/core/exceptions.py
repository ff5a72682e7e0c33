"""统一异常体系

所有业务异常继承 DocsDraftError，替代散落的 ValueError / RuntimeError。
CLI 层据此输出友好提示；任何异常对本次运行都是终止性的，不做重试。
"""

from __future__ import annotations


class DocsDraftError(Exception):
    """工具基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(DocsDraftError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(DocsDraftError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class ExecutionError(DocsDraftError):
    """外部命令执行失败"""

    code = "EXECUTION_ERROR"


class BuildError(DocsDraftError):
    """站点生成器构建失败"""

    code = "BUILD_ERROR"

    def __init__(self, message: str, log_tail: str = "") -> None:
        super().__init__(message)
        self.log_tail = log_tail


class PublishError(DocsDraftError):
    """草稿同步到远端存储失败"""

    code = "PUBLISH_ERROR"


class InvalidationError(DocsDraftError):
    """CDN 缓存失效请求失败或未能确认完成"""

    code = "INVALIDATION_ERROR"


class CommentError(DocsDraftError):
    """PR 评论接口调用失败"""

    code = "COMMENT_ERROR"
