"""资源注册表

持久化保存资源表与各目录的链接记录，文件格式为 JSON:

    {"resources": [{"name": ..., "path": ...}],
     "links": [{"dir": ..., "link": [{"name": ..., "path": ...}]}]}

每次修改后立即整体写回磁盘。写入采用临时文件加 os.replace，
但不做文件加锁，多个进程同时写入时以最后一次为准。
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

from linker.core.data_structures import LinkEntry, LinkSet, Resource
from linker.core.exceptions import (
    InvalidResourceError,
    MissingHomeDirectory,
    RegistryIOError,
    RegistryParseError,
    ResourceNotFoundError,
)
from linker.core.logger import get_logger

logger = get_logger("registry")

REGISTRY_ENV_VAR = "LINKER_REGISTRY"


def default_registry_path() -> Path:
    """获取默认注册表路径 ~/.linker/config.json

    环境变量 LINKER_REGISTRY 优先。

    Raises:
        MissingHomeDirectory: 无法确定用户主目录时抛出
    """
    override = os.environ.get(REGISTRY_ENV_VAR)
    if override:
        return Path(override).expanduser()

    try:
        home = Path.home()
    except (KeyError, RuntimeError) as e:
        raise MissingHomeDirectory("无法确定用户主目录", details=str(e))

    path = home / ".linker" / "config.json"
    logger.debug("Default registry path", path=str(path))
    return path


class Registry:
    """资源注册表

    唯一的数据来源：资源表（按名称唯一）和按目录记录的链接集合。
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._resources: Dict[str, Resource] = {}
        self._links: Dict[str, LinkSet] = {}

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Registry":
        """从磁盘加载注册表

        文件不存在时初始化一个空注册表并立即写入。

        Raises:
            RegistryIOError: 文件无法读取
            RegistryParseError: 文件内容无法解析
        """
        registry = cls(path or default_registry_path())

        if not registry.path.exists():
            logger.warning("Registry file not found, creating one", path=str(registry.path))
            registry.save()
            return registry

        try:
            contents = registry.path.read_text(encoding="utf-8")
        except OSError as e:
            raise RegistryIOError(f"无法读取注册表 {registry.path}: {e}", details=str(e))

        try:
            data = json.loads(contents) if contents.strip() else {}
        except json.JSONDecodeError as e:
            raise RegistryParseError(f"无法解析注册表 {registry.path}: {e}", details=str(e))

        registry._populate(data)
        logger.info(
            "Registry loaded",
            path=str(registry.path),
            resources=len(registry._resources),
            links=len(registry._links),
        )
        return registry

    def _populate(self, data) -> None:
        if not isinstance(data, dict):
            raise RegistryParseError(
                f"注册表顶层必须是对象: {self.path}",
                details={"type": type(data).__name__},
            )
        try:
            for item in data.get("resources", []):
                resource = Resource.from_dict(item)
                self._resources[resource.name] = resource
            # 早期版本的注册表只有 resources 字段
            for item in data.get("links", []):
                link_set = LinkSet.from_dict(item)
                self._links[link_set.directory] = link_set
        except (KeyError, TypeError, AttributeError) as e:
            raise RegistryParseError(f"注册表格式错误 {self.path}: {e}", details=str(e))

    def to_dict(self) -> Dict[str, list]:
        return {
            "resources": [resource.to_dict() for resource in self._resources.values()],
            "links": [link_set.to_dict() for link_set in self._links.values()],
        }

    def save(self) -> None:
        """整体写回磁盘

        Raises:
            RegistryIOError: 写入失败时抛出
        """
        contents = json.dumps(self.to_dict(), indent=2, ensure_ascii=False)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(contents)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            logger.error("Failed to write registry", path=str(self.path), error=str(e))
            raise RegistryIOError(f"无法写入注册表 {self.path}: {e}", details=str(e))

        logger.debug("Registry saved", path=str(self.path))

    # 资源

    @property
    def resources(self) -> Dict[str, Resource]:
        """资源表副本，按注册顺序"""
        return dict(self._resources)

    def get_resource(self, name: str) -> Optional[Resource]:
        return self._resources.get(name)

    def add_resource(self, name: str, path: str) -> Resource:
        """添加或替换资源

        Raises:
            InvalidResourceError: 名称为空
        """
        if not name:
            raise InvalidResourceError("资源名称不能为空")

        resource = Resource(name=name, path=str(path))
        replaced = name in self._resources
        self._resources[name] = resource
        self.save()

        logger.info(
            "Resource updated" if replaced else "Resource added",
            name=name,
            path=resource.path,
        )
        return resource

    def remove_resource(self, name: Optional[str] = None, all: bool = False) -> List[Resource]:
        """删除单个或全部资源

        不会级联删除引用这些资源的链接记录。

        Returns:
            被删除的资源列表

        Raises:
            InvalidResourceError: 既未指定名称也未指定 all
            ResourceNotFoundError: 指定的资源不存在
        """
        if all:
            removed = list(self._resources.values())
            self._resources.clear()
        elif name:
            if name not in self._resources:
                raise ResourceNotFoundError(f"资源不存在: {name}", details={"name": name})
            removed = [self._resources.pop(name)]
        else:
            raise InvalidResourceError("请指定资源名称或使用 --all")

        self.save()
        logger.info("Resources removed", count=len(removed), names=[r.name for r in removed])
        return removed

    # 链接记录

    @property
    def link_sets(self) -> List[LinkSet]:
        return list(self._links.values())

    def get_link_set(self, directory: str) -> Optional[LinkSet]:
        return self._links.get(str(directory))

    def add_link(self, directory: str, entries: List[LinkEntry]) -> LinkSet:
        """记录目录的链接集合，已有记录会被整体替换"""
        directory = str(directory)
        link_set = LinkSet(directory=directory, entries=list(entries))
        self._links[directory] = link_set
        self.save()
        logger.info("Link set recorded", dir=directory, count=len(link_set))
        return link_set

    def remove_link(self, directory: str) -> Optional[LinkSet]:
        """删除目录的链接记录，不存在时不做任何事"""
        directory = str(directory)
        link_set = self._links.pop(directory, None)
        if link_set is None:
            return None
        self.save()
        logger.info("Link set removed", dir=directory, count=len(link_set))
        return link_set
