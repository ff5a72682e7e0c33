"""PR 评论服务

通过 GitHub REST API 在 PR 上发布构建/部署状态。每条状态评论都带隐藏标记，
后续运行定位到最后一条带标记的评论原地更新，而不是重复追加：
成功与失败是同一条评论互斥的两种状态。
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from typing import Any

from docsdraft.core.config import check_http_url
from docsdraft.core.exceptions import CommentError

logger = logging.getLogger(__name__)

STATUS_MARKER = "<!-- docs-draft-status -->"

# GitHub 评论正文长度上限
MAX_COMMENT_LENGTH = 65536
_PAGE_SIZE = 100

REACTION_BUILD_SUCCESS = "rocket"
REACTION_BUILD_FAILURE = "confused"
REACTION_DEPLOY_SUCCESS = "hooray"
STATUS_REACTIONS = frozenset((
    REACTION_BUILD_SUCCESS, REACTION_BUILD_FAILURE, REACTION_DEPLOY_SUCCESS,
))


# =========================================================================
# 评论正文
# =========================================================================

def build_success_body() -> str:
    return "Build successful! :white_check_mark:\nDeploying docs draft."


def build_failure_body(log_tail: str) -> str:
    header = "Build failure! :x:\n"
    lines = [f"> {line}" if line else ">" for line in log_tail.splitlines()]
    lines = lines or ["> (no build output)"]
    budget = MAX_COMMENT_LENGTH - len(STATUS_MARKER) - 1
    body = header + "\n".join(lines)
    # 超长时从头部丢弃，错误信息通常在日志末尾
    while len(body) > budget and len(lines) > 1:
        lines.pop(0)
        body = header + "> ...\n" + "\n".join(lines)
    return body[:budget]


def deploy_success_body(url: str) -> str:
    return f"Deploy successful! [View draft]({url})"


# =========================================================================
# GitHub 评论客户端
# =========================================================================

class PullRequestCommenter:
    """PR 评论客户端"""

    def __init__(
        self, repository: str, token: str = "",
        api_url: str = "https://api.github.com",
        timeout: int = 30,
    ) -> None:
        api_url = check_http_url(api_url, "GitHub API 地址 (GITHUB_API_URL)")
        self.repository = repository
        self.token = token
        self.api_url = api_url
        self.timeout = timeout

    def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        body = json.dumps(payload).encode("utf-8") if payload is not None else None
        req = urllib.request.Request(
            f"{self.api_url}{path}", data=body, method=method,
            headers={
                "Accept": "application/vnd.github+json",
                "Content-Type": "application/json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
        )
        if self.token:
            req.add_header("Authorization", f"Bearer {self.token}")
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:  # nosec B310
                raw = resp.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            raise CommentError(f"GitHub API HTTP 错误 {e.code}: {method} {path} {e.reason}") from e
        except urllib.error.URLError as e:
            raise CommentError(f"GitHub API 网络错误: {e.reason}") from e
        try:
            return json.loads(raw) if raw else None
        except json.JSONDecodeError as e:
            raise CommentError(f"GitHub API 响应格式错误: {e}") from e

    def _paginate(self, path: str) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        page = 1
        while True:
            batch = self._request("GET", f"{path}?per_page={_PAGE_SIZE}&page={page}") or []
            items.extend(batch)
            if len(batch) < _PAGE_SIZE:
                return items
            page += 1

    def list_comments(self, pr_number: int) -> list[dict[str, Any]]:
        return self._paginate(f"/repos/{self.repository}/issues/{pr_number}/comments")

    def _find(self, pr_number: int, body_includes: str) -> dict[str, Any] | None:
        found = None
        for c in self.list_comments(pr_number):
            if body_includes in (c.get("body") or ""):
                found = c
        return found

    def find_comment(self, pr_number: int, body_includes: str) -> int | None:
        """返回最后一条包含指定文本的评论 ID"""
        found = self._find(pr_number, body_includes)
        return int(found["id"]) if found else None

    def create_comment(self, pr_number: int, body: str) -> int:
        data = self._request(
            "POST", f"/repos/{self.repository}/issues/{pr_number}/comments",
            {"body": body},
        )
        return int(data["id"])

    def update_comment(self, comment_id: int, body: str) -> None:
        self._request(
            "PATCH", f"/repos/{self.repository}/issues/comments/{comment_id}",
            {"body": body},
        )

    def add_reaction(self, comment_id: int, reaction: str) -> None:
        self._request(
            "POST", f"/repos/{self.repository}/issues/comments/{comment_id}/reactions",
            {"content": reaction},
        )

    def list_reactions(self, comment_id: int) -> list[dict[str, Any]]:
        return self._paginate(f"/repos/{self.repository}/issues/comments/{comment_id}/reactions")

    def delete_reaction(self, comment_id: int, reaction_id: int) -> None:
        self._request(
            "DELETE",
            f"/repos/{self.repository}/issues/comments/{comment_id}/reactions/{reaction_id}",
        )

    def clear_status_reactions(self, comment_id: int, author: str) -> int:
        """删除 author 留下的状态 reaction，其他用户的 reaction 保留，返回删除数"""
        removed = 0
        for r in self.list_reactions(comment_id):
            login = (r.get("user") or {}).get("login", "")
            if r.get("content") in STATUS_REACTIONS and login == author:
                self.delete_reaction(comment_id, int(r["id"]))
                removed += 1
        return removed

    def upsert_status(self, pr_number: int, body: str, reaction: str = "") -> int:
        """更新或创建带标记的状态评论，返回评论 ID

        已有评论上本工具之前留下的 reaction 会先清除，评论上只保留当前状态。
        """
        full_body = f"{STATUS_MARKER}\n{body}"
        existing = self._find(pr_number, STATUS_MARKER)
        if existing is None:
            comment_id = self.create_comment(pr_number, full_body)
            logger.info("已创建 PR #%d 状态评论: %d", pr_number, comment_id)
        else:
            comment_id = int(existing["id"])
            self.update_comment(comment_id, full_body)
            logger.info("已更新 PR #%d 状态评论: %d", pr_number, comment_id)
            author = (existing.get("user") or {}).get("login", "")
            if reaction and author:
                self.clear_status_reactions(comment_id, author)
        if reaction:
            self.add_reaction(comment_id, reaction)
        return comment_id
