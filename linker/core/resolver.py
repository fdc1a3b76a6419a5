"""链接解析器

把清单树解析为有序的链接记录列表。每个顶层键 dst 按以下规则处理:

1. dst 是已注册的资源名:
   - instance = true: 在资源目录下新建 <name>-<随机后缀> 子目录并链接到它
   - 否则直接链接到资源路径
2. dst 不是资源名，其值为表: 表中每一项 dst_ = "ref"
   - ref 是资源名: 链接 <dst>/<dst_> -> 资源路径
   - ref 是已存在的路径: 链接 <dst_> -> ref
   - 否则记录为无法解析并跳过
3. 顶层标量 dst = "ref": 与第 2 条的引用规则相同，链接位置为 <dst>

解析失败的条目不会中断整个清单，只记录到 Resolution.issues。
创建实例目录发生在解析阶段，链接失败时由调用方通过 discard_instances 删除。
"""

import secrets
import string
from functools import partial
from pathlib import Path, PurePosixPath
from typing import Callable, Dict, List, Optional, Set

from linker.core.data_structures import (
    Flag,
    LinkEntry,
    ManifestNode,
    Resolution,
    ResolutionIssue,
    Resource,
    Scalar,
    Table,
    Unsupported,
)
from linker.core.exceptions import MalformedManifestEntry
from linker.core.logger import get_logger

logger = get_logger("resolver")

INSTANCE_KEY = "instance"
INSTANCE_SUFFIX_LENGTH = 9
_ALPHABET = string.ascii_letters + string.digits


def generate_instance_id(length: int = INSTANCE_SUFFIX_LENGTH) -> str:
    """生成实例目录的随机字母数字后缀"""
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


class LinkResolver:
    """链接解析器

    Args:
        resources: 资源表 {name: Resource}
        directory: 要创建链接的目录
        id_factory: 实例后缀生成函数，测试中可替换为确定性实现
    """

    def __init__(
        self,
        resources: Dict[str, Resource],
        directory: Path,
        id_factory: Optional[Callable[[], str]] = None,
        suffix_length: int = INSTANCE_SUFFIX_LENGTH,
    ):
        self.resources = resources
        self.directory = Path(directory)
        self.id_factory = id_factory or partial(generate_instance_id, suffix_length)
        self._seen: Set[str] = set()
        self.instance_dirs: List[Path] = []

    def resolve(self, manifest: Table) -> Resolution:
        """解析清单

        Returns:
            按清单顺序排列的链接记录以及被跳过的条目

        Raises:
            MalformedManifestEntry: 两个条目解析到同一个链接位置
        """
        resolution = Resolution()
        self._seen = set()
        self.instance_dirs = []

        for dst, items in manifest.items():
            if not self._valid_name(dst):
                self._skip(resolution, dst, "invalid link name")
                continue

            if isinstance(items, Scalar):
                self._resolve_reference(resolution, dst, items.value, location=dst)
            elif isinstance(items, Table):
                resource = self.resources.get(dst)
                if resource is not None:
                    self._resolve_named(resolution, dst, resource, items)
                else:
                    self._resolve_nested(resolution, dst, items)
            else:
                self._skip(resolution, dst, self._malformed_reason(items))

        logger.info(
            "Manifest resolved",
            dir=str(self.directory),
            entries=len(resolution.entries),
            skipped=len(resolution.issues),
        )
        return resolution

    def _resolve_named(self, resolution: Resolution, dst: str, resource: Resource, items: Table) -> None:
        """按资源名解析，支持 instance 隔离"""
        flag = items.get(INSTANCE_KEY)
        if flag is not None and not isinstance(flag, Flag):
            self._skip(resolution, dst, "instance must be a boolean")
            return

        if flag is not None and flag.value:
            instance_dir = Path(resource.path) / f"{resource.name}-{self.id_factory()}"
            created = not instance_dir.exists()
            try:
                instance_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                self._skip(resolution, dst, f"cannot create instance directory: {e}", str(instance_dir))
                return
            if created:
                self.instance_dirs.append(instance_dir)
            logger.info("Instance directory created", resource=resource.name, path=str(instance_dir))
            self._add(resolution, dst, str(instance_dir))
        else:
            self._add(resolution, dst, resource.path)

    def _resolve_nested(self, resolution: Resolution, dst: str, items: Table) -> None:
        """按嵌套表解析，每一项引用一个资源名或路径"""
        for dst_, res in items.items():
            key = f"{dst}.{dst_}"
            if dst_ == INSTANCE_KEY and isinstance(res, Flag):
                # 请求了一个未注册资源的实例
                self._skip(resolution, dst, "resource not found", dst)
                continue
            if not self._valid_name(dst_):
                self._skip(resolution, key, "invalid link name")
                continue
            if not isinstance(res, Scalar):
                self._skip(resolution, key, self._malformed_reason(res))
                continue

            resource = self.resources.get(res.value)
            if resource is not None:
                self._add(resolution, str(PurePosixPath(dst, dst_)), resource.path)
                continue

            literal = self._existing_path(res.value)
            if literal is not None:
                self._add(resolution, dst_, str(literal))
            else:
                self._skip(resolution, key, "resource not found", res.value)

    def _resolve_reference(self, resolution: Resolution, key: str, reference: str, location: str) -> None:
        resource = self.resources.get(reference)
        if resource is not None:
            self._add(resolution, location, resource.path)
            return

        literal = self._existing_path(reference)
        if literal is not None:
            self._add(resolution, location, str(literal))
        else:
            self._skip(resolution, key, "resource not found", reference)

    def _existing_path(self, reference: str) -> Optional[Path]:
        """字面路径回退，相对路径以目标目录为基准"""
        if not reference:
            return None
        candidate = Path(reference).expanduser()
        if not candidate.is_absolute():
            candidate = self.directory / candidate
        if candidate.exists():
            return candidate
        return None

    def _add(self, resolution: Resolution, name: str, path: str) -> None:
        if name in self._seen:
            raise MalformedManifestEntry(
                f"多个条目解析到同一个链接位置: {name}",
                details={"name": name},
            )
        self._seen.add(name)
        resolution.entries.append(LinkEntry(name=name, path=path))
        logger.debug("Link resolved", name=name, path=path)

    def _skip(self, resolution: Resolution, key: str, reason: str, reference: Optional[str] = None) -> None:
        issue = ResolutionIssue(key=key, reason=reason, reference=reference)
        resolution.issues.append(issue)
        logger.info("Manifest entry skipped", key=key, reason=reason, reference=reference)

    @staticmethod
    def _malformed_reason(node: ManifestNode) -> str:
        if isinstance(node, Unsupported):
            return f"unsupported value type: {node.type_name}"
        if isinstance(node, Flag):
            return "expected a resource name, path or table, got a boolean"
        return "expected a resource name or path, got a table"

    @staticmethod
    def _valid_name(name: str) -> bool:
        if not name:
            return False
        path = PurePosixPath(name)
        return not path.is_absolute() and ".." not in path.parts and "\\" not in name

    def discard_instances(self) -> None:
        """删除本次解析新建的实例目录，非空目录保留"""
        for instance_dir in reversed(self.instance_dirs):
            try:
                instance_dir.rmdir()
                logger.info("Instance directory discarded", path=str(instance_dir))
            except OSError as e:
                logger.warning("Failed to discard instance directory", path=str(instance_dir), error=str(e))
        self.instance_dirs = []
