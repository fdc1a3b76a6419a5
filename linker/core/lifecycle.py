"""链接生命周期

对某个目录重新链接时，先拆除并删除旧的链接记录，再解析清单、
创建新链接并写入新的记录:

    1. 拆除旧链接，删除旧记录（持久化）
    2. 解析清单
    3. 创建链接
    4. 记录新的链接集合（持久化）

各步骤之间不是原子的：进程在步骤 1 之后中断时，目录处于未链接状态，
注册表中也没有记录。
解析或创建链接失败时，本次新建的实例目录会被删除。
"""

from pathlib import Path
from typing import Callable, Optional

from linker.core.data_structures import LinkSet, LinkState, Resolution, Table
from linker.core.exceptions import LinkerException
from linker.core.logger import OperationScope, get_logger
from linker.core.registry import Registry
from linker.core.resolver import INSTANCE_SUFFIX_LENGTH, LinkResolver
from linker.core.symlink_manager import SymlinkManager

logger = get_logger("lifecycle")


class LinkLifecycle:
    """目录链接生命周期管理"""

    def __init__(
        self,
        registry: Registry,
        symlink_manager: Optional[SymlinkManager] = None,
        id_factory: Optional[Callable[[], str]] = None,
        suffix_length: int = INSTANCE_SUFFIX_LENGTH,
    ):
        self.registry = registry
        self.symlink_manager = symlink_manager or SymlinkManager()
        self.id_factory = id_factory
        self.suffix_length = suffix_length

    def state(self, directory: Path) -> LinkState:
        if self.registry.get_link_set(self._key(directory)) is None:
            return LinkState.UNLINKED
        return LinkState.LINKED

    def link(self, directory: Path, manifest: Table) -> Resolution:
        """按清单重新链接目录

        Returns:
            解析结果，其中 issues 为被跳过的条目

        Raises:
            SymlinkException: 链接创建失败，本次创建的链接和实例目录已被删除
            MalformedManifestEntry: 清单中有条目冲突
        """
        directory = Path(directory)
        key = self._key(directory)

        with OperationScope("link", logger=logger, dir=key):
            self.unlink(directory)

            resolver = LinkResolver(
                self.registry.resources,
                directory,
                id_factory=self.id_factory,
                suffix_length=self.suffix_length,
            )
            try:
                resolution = resolver.resolve(manifest)
                self.symlink_manager.materialize(resolution.entries, directory)
            except LinkerException:
                resolver.discard_instances()
                raise

            self.registry.add_link(key, resolution.entries)

        return resolution

    def unlink(self, directory: Path) -> Optional[LinkSet]:
        """拆除目录的全部链接并删除记录

        Returns:
            被删除的链接集合，目录未链接时返回 None
        """
        directory = Path(directory)
        key = self._key(directory)
        link_set = self.registry.get_link_set(key)
        if link_set is None:
            logger.debug("Directory not linked", dir=key)
            return None

        self.symlink_manager.remove_all(link_set.entries, Path(link_set.directory))
        return self.registry.remove_link(key)

    @staticmethod
    def _key(directory: Path) -> str:
        return str(Path(directory).absolute())
