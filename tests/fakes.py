"""测试替身 — 内存版 aws / yarn / GitHub 评论

  FakeAws        模拟 aws s3 sync / s3 cp / cloudfront 的内存桶
  FakeSite       模拟 yarn install / yarn build，生成 build/ 目录
  FakeCommenter  以内存列表替代 GitHub 评论接口

FakeAws / FakeSite 实现 CommandExecutor 协议，注入 ServiceContainer 即可，无需 patch subprocess。
"""

from __future__ import annotations

import json
import re
import shlex
from collections import defaultdict
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Any

from docsdraft.services.comments import PullRequestCommenter
from docsdraft.utils.shell import CommandResult

# =========================================================================
# aws
# =========================================================================


@dataclass
class FakeObject:
    body: bytes
    metadata: dict[str, str] = field(default_factory=dict)


def _split_s3(uri: str) -> tuple[str, str]:
    bucket, _, key = uri[len("s3://"):].partition("/")
    return bucket, key


class FakeAws:
    """按 aws CLI 语义操作内存桶的执行器"""

    def __init__(self) -> None:
        self.buckets: dict[str, dict[str, FakeObject]] = defaultdict(dict)
        self.calls: list[list[str]] = []
        self.failures: dict[tuple[str, ...], tuple[int, str]] = {}
        self.invalidations: dict[str, dict[str, Any]] = {}

    def fail(self, *command: str, returncode: int = 1, stderr: str = "boom") -> None:
        self.failures[command] = (returncode, stderr)

    def put(self, bucket: str, key: str, body: bytes | str) -> None:
        data = body.encode() if isinstance(body, str) else body
        self.buckets[bucket][key] = FakeObject(data)

    def keys(self, bucket: str, prefix: str = "") -> set[str]:
        return {k for k in self.buckets[bucket] if k.startswith(prefix)}

    def execute(
        self, cmd: str | list[str], *, cwd: str = ".",
        env: dict[str, str] | None = None, timeout: int | None = None,
    ) -> CommandResult:
        args = shlex.split(cmd) if isinstance(cmd, str) else list(cmd)
        self.calls.append(args)
        sub = args[1:]
        for key, (rc, err) in self.failures.items():
            if tuple(sub[:len(key)]) == key:
                return CommandResult(rc, "", err)
        if sub[:2] == ["s3", "sync"]:
            return self._sync(sub[2:], cwd)
        if sub[:2] == ["s3", "cp"]:
            return self._cp(sub[2:])
        if sub[:2] == ["cloudfront", "create-invalidation"]:
            return self._create_invalidation(sub[2:])
        if sub[:3] == ["cloudfront", "wait", "invalidation-completed"]:
            opts, _ = self._parse(sub[3:])
            ok = opts.get("--id") in self.invalidations
            return CommandResult(0 if ok else 255, "", "" if ok else "Waiter failed")
        return CommandResult(252, "", f"unsupported: {args}")

    @staticmethod
    def _parse(rest: list[str]) -> tuple[dict[str, Any], list[str]]:
        valued = {
            "--exclude", "--include", "--metadata", "--metadata-directive",
            "--content-type", "--distribution-id", "--invalidation-batch",
            "--query", "--output", "--id",
        }
        opts: dict[str, Any] = {"filters": []}
        positional: list[str] = []
        it = iter(rest)
        for arg in it:
            if arg in ("--exclude", "--include"):
                opts["filters"].append((arg[2:], next(it)))
            elif arg in valued:
                opts[arg] = next(it)
            elif arg.startswith("--"):
                opts[arg] = True
            else:
                positional.append(arg)
        return opts, positional

    def _sync(self, rest: list[str], cwd: str) -> CommandResult:
        opts, (src, dst) = self._parse(rest)
        local_root = Path(cwd) / src
        if not local_root.is_dir():
            return CommandResult(255, "", f"The user-provided path {src} does not exist.")
        bucket, prefix = _split_s3(dst)
        if prefix and not prefix.endswith("/"):
            prefix += "/"

        def included(rel: str) -> bool:
            result = True
            for kind, pattern in opts["filters"]:
                if fnmatchcase(rel, pattern):
                    result = kind == "include"
            return result

        local = {
            p.relative_to(local_root).as_posix(): p
            for p in sorted(local_root.rglob("*")) if p.is_file()
        }
        local = {rel: p for rel, p in local.items() if included(rel)}
        store = self.buckets[bucket]
        remote = {
            k[len(prefix):]: obj for k, obj in store.items()
            if k.startswith(prefix) and included(k[len(prefix):])
        }

        dry = "(dryrun) " if opts.get("--dryrun") else ""
        lines: list[str] = []
        for rel, path in local.items():
            data = path.read_bytes()
            obj = remote.get(rel)
            if obj is not None and len(obj.body) == len(data):
                if opts.get("--size-only") or obj.body == data:
                    continue
            lines.append(f"{dry}upload: {src.rstrip('/')}/{rel} to s3://{bucket}/{prefix}{rel}")
            if not dry:
                store[prefix + rel] = FakeObject(data)
        if opts.get("--delete"):
            for rel in sorted(set(remote) - set(local)):
                lines.append(f"{dry}delete: s3://{bucket}/{prefix}{rel}")
                if not dry:
                    del store[prefix + rel]
        return CommandResult(0, "\n".join(lines) + ("\n" if lines else ""), "")

    def _cp(self, rest: list[str]) -> CommandResult:
        opts, (src, dst) = self._parse(rest)
        src_bucket, src_key = _split_s3(src)
        obj = self.buckets[src_bucket].get(src_key)
        if obj is None:
            return CommandResult(1, "", "An error occurred (404) when calling the HeadObject operation")
        metadata = dict(obj.metadata)
        if opts.get("--metadata-directive") == "REPLACE":
            metadata = json.loads(opts.get("--metadata", "{}"))
        dst_bucket, dst_key = _split_s3(dst)
        self.buckets[dst_bucket][dst_key] = FakeObject(obj.body, metadata)
        return CommandResult(0, f"copy: {src} to {dst}\n", "")

    def _create_invalidation(self, rest: list[str]) -> CommandResult:
        opts, _ = self._parse(rest)
        inv_id = f"I{len(self.invalidations) + 1:04d}"
        self.invalidations[inv_id] = {
            "distribution_id": opts["--distribution-id"],
            "batch": json.loads(opts["--invalidation-batch"]),
        }
        return CommandResult(0, f"{inv_id}\n", "")


# =========================================================================
# yarn
# =========================================================================


class FakeSite:
    """yarn install / yarn build 替身，build 时按 BASE_URL 生成站点"""

    def __init__(
        self, assets: dict[str, str] | None = None,
        fail_build: bool = False, fail_install: bool = False,
    ) -> None:
        self.assets = assets if assets is not None else {"js/main.abc123.js": "console.log(1)"}
        self.fail_build = fail_build
        self.fail_install = fail_install
        self.calls: list[tuple[list[str], str, dict[str, str]]] = []

    def execute(
        self, cmd: str | list[str], *, cwd: str = ".",
        env: dict[str, str] | None = None, timeout: int | None = None,
    ) -> CommandResult:
        args = shlex.split(cmd) if isinstance(cmd, str) else list(cmd)
        self.calls.append((args, cwd, dict(env or {})))
        if args == ["yarn", "install"]:
            if self.fail_install:
                return CommandResult(1, "", "error Couldn't find package")
            return CommandResult(0, "Done in 1.00s.\n", "")
        if args == ["yarn", "build"]:
            if self.fail_build:
                log = "\n".join(f"line {i}" for i in range(80))
                return CommandResult(1, log + "\n", "[ERROR] Docusaurus found broken links!\n")
            base = (env or {}).get("BASE_URL", "/")
            out = Path(cwd) / "build"
            (out / "assets").mkdir(parents=True, exist_ok=True)
            (out / "index.html").write_text(f"<base href='{base}/'>", encoding="utf-8")
            for rel, body in self.assets.items():
                p = out / "assets" / rel
                p.parent.mkdir(parents=True, exist_ok=True)
                p.write_text(body, encoding="utf-8")
            return CommandResult(0, "[SUCCESS] Generated static files in \"build\".\n", "")
        return CommandResult(127, "", f"command not found: {args[0]}")


class CompositeExecutor:
    """aws 命令交给 FakeAws，其余交给 FakeSite"""

    def __init__(self, aws: FakeAws, site: FakeSite) -> None:
        self.aws = aws
        self.site = site

    def execute(self, cmd: str | list[str], **kwargs: Any) -> CommandResult:
        args = shlex.split(cmd) if isinstance(cmd, str) else list(cmd)
        target = self.aws if args[:1] == ["aws"] else self.site
        return target.execute(args, **kwargs)


# =========================================================================
# GitHub 评论
# =========================================================================


class FakeCommenter(PullRequestCommenter):
    """以内存列表替代 GitHub REST 调用"""

    def __init__(self, repository: str = "octo/docs", login: str = "github-actions[bot]") -> None:
        super().__init__(repository=repository, token="t")
        self.login = login
        self.comments: dict[int, list[dict[str, Any]]] = defaultdict(list)
        self.reaction_log: dict[int, list[dict[str, Any]]] = defaultdict(list)
        self.requests: list[tuple[str, str]] = []
        self._next_id = 100

    @property
    def reactions(self) -> dict[int, list[str]]:
        return {cid: [r["content"] for r in items] for cid, items in self.reaction_log.items() if items}

    def react_as(self, comment_id: int, content: str, login: str) -> None:
        self._next_id += 1
        self.reaction_log[comment_id].append(
            {"id": self._next_id, "content": content, "user": {"login": login}},
        )

    def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        self.requests.append((method, path))
        route, _, query = path.partition("?")
        page_size = page = 0
        if query:
            params = dict(p.split("=") for p in query.split("&"))
            page_size, page = int(params["per_page"]), int(params["page"])
        if m := re.fullmatch(r"/repos/[^/]+/[^/]+/issues/(\d+)/comments", route):
            pr = int(m.group(1))
            if method == "GET":
                return self.comments[pr][(page - 1) * page_size:page * page_size]
            self._next_id += 1
            self.comments[pr].append(
                {"id": self._next_id, "body": payload["body"], "user": {"login": self.login}},
            )
            return {"id": self._next_id}
        if m := re.fullmatch(r"/repos/[^/]+/[^/]+/issues/comments/(\d+)/reactions", route):
            cid = int(m.group(1))
            if method == "GET":
                return self.reaction_log[cid][(page - 1) * page_size:page * page_size]
            self.react_as(cid, payload["content"], self.login)
            return {"content": payload["content"]}
        if m := re.fullmatch(r"/repos/[^/]+/[^/]+/issues/comments/(\d+)/reactions/(\d+)", route):
            cid, rid = int(m.group(1)), int(m.group(2))
            self.reaction_log[cid] = [r for r in self.reaction_log[cid] if r["id"] != rid]
            return None
        if m := re.fullmatch(r"/repos/[^/]+/[^/]+/issues/comments/(\d+)", route):
            for items in self.comments.values():
                for c in items:
                    if c["id"] == int(m.group(1)):
                        c["body"] = payload["body"]
                        return c
        raise AssertionError(f"unexpected request: {method} {path}")

    def bodies(self, pr: int) -> list[str]:
        return [c["body"] for c in self.comments[pr]]
