"""符号链接管理器

把解析得到的链接记录物化为磁盘上的符号链接，以及拆除、检查这些链接。
只删除链接本身，从不删除链接指向的目标。
"""

import errno
import sys
from pathlib import Path
from typing import Dict, Iterable, List

from linker.core.data_structures import LinkEntry, LinkHealth
from linker.core.exceptions import (
    BrokenSymlinkError,
    SymlinkCreationError,
    SymlinkException,
    SymlinkPermissionError,
)
from linker.core.logger import get_logger

logger = get_logger("symlink_manager")


class SymlinkManager:
    """符号链接管理器

    负责创建、删除和验证符号链接。使用平台原生的符号链接，
    Windows 上需要管理员权限或开启开发者模式。
    """

    def __init__(self):
        self._is_windows = sys.platform == 'win32'

    def create_symlink(self, source: Path, link: Path) -> bool:
        """创建符号链接

        Args:
            source: 链接指向的源路径
            link: 链接所在位置

        Returns:
            新建返回 True，链接位置已存在时返回 False

        Raises:
            SymlinkPermissionError: 权限不足
            SymlinkCreationError: 其他创建失败
        """
        source = Path(source)
        link = Path(link)

        if link.exists() or link.is_symlink():
            logger.debug("Link already exists, skipping", link=str(link))
            return False

        details = {"source": str(source), "link": str(link)}

        try:
            link.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            # 上级路径是普通文件或破损链接
            raise SymlinkCreationError(
                f"无法创建链接所在目录 {link.parent}: {e}",
                details={**details, "error": str(e)},
            )

        try:
            link.symlink_to(source, target_is_directory=source.is_dir())
        except FileExistsError:
            return False
        except PermissionError as e:
            hint = "需要管理员权限或开发者模式" if self._is_windows else str(e)
            raise SymlinkPermissionError(
                f"权限不足：无法创建符号链接 {link} ({hint})",
                details={**details, "error": str(e)},
            )
        except OSError as e:
            if e.errno in (errno.EACCES, errno.EPERM):
                raise SymlinkPermissionError(
                    f"权限不足：无法创建符号链接 {link}",
                    details={**details, "error": str(e)},
                )
            raise SymlinkCreationError(
                f"创建符号链接失败: {link} -> {source}: {e}",
                details={**details, "error": str(e)},
            )

        logger.info("Symlink created", link=str(link), source=str(source))
        return True

    def remove_symlink(self, link: Path) -> bool:
        """删除符号链接

        链接不存在不算错误；链接位置上的普通文件或目录不会被删除。

        Returns:
            删除成功返回 True

        Raises:
            SymlinkException: 删除失败时抛出
        """
        link = Path(link)

        if not link.is_symlink():
            if link.exists():
                logger.warning("Not a symlink, leaving it in place", link=str(link))
            else:
                logger.debug("Symlink does not exist", link=str(link))
            return False

        try:
            link.unlink()
        except OSError as e:
            raise SymlinkException(
                f"删除符号链接失败: {link}: {e}",
                details={"link": str(link), "error": str(e)},
            )

        logger.info("Symlink removed", link=str(link))
        return True

    def materialize(self, entries: Iterable[LinkEntry], directory: Path) -> Dict[str, bool]:
        """在目录下创建一组链接

        已存在的链接位置会被跳过，重复执行不产生变化。
        任一链接创建失败时，先删除本次已创建的链接再抛出异常。

        Returns:
            每个链接的结果 {name: 是否新建}
        """
        directory = Path(directory)
        entries = list(entries)
        logger.info("Materializing links", dir=str(directory), count=len(entries))

        results: Dict[str, bool] = {}
        created: List[Path] = []
        for entry in entries:
            link = directory / entry.name
            try:
                results[entry.name] = self.create_symlink(Path(entry.path), link)
            except SymlinkException:
                self._rollback(created)
                raise
            if results[entry.name]:
                created.append(link)

        return results

    def remove_all(self, entries: Iterable[LinkEntry], directory: Path) -> Dict[str, bool]:
        """删除一组链接

        Returns:
            每个链接的结果 {name: 是否删除}
        """
        directory = Path(directory)
        entries = list(entries)
        logger.info("Removing links", dir=str(directory), count=len(entries))

        return {entry.name: self.remove_symlink(directory / entry.name) for entry in entries}

    def verify_symlink(self, link: Path) -> bool:
        """验证符号链接存在且目标可访问

        Raises:
            BrokenSymlinkError: 链接不存在或已损坏
        """
        link = Path(link)

        if not link.is_symlink():
            raise BrokenSymlinkError(f"符号链接不存在: {link}", details={"link": str(link)})

        try:
            link.resolve(strict=True)
        except (OSError, RuntimeError) as e:
            raise BrokenSymlinkError(
                f"符号链接破损: {link}",
                details={"link": str(link), "error": str(e)},
            )
        return True

    def check_health(self, entries: Iterable[LinkEntry], directory: Path) -> Dict[str, LinkHealth]:
        """检查一组链接的健康状态"""
        directory = Path(directory)
        results: Dict[str, LinkHealth] = {}
        for entry in entries:
            link = directory / entry.name
            if not link.is_symlink():
                results[entry.name] = LinkHealth.MISSING
                continue
            try:
                self.verify_symlink(link)
                results[entry.name] = LinkHealth.VALID
            except BrokenSymlinkError:
                results[entry.name] = LinkHealth.BROKEN
        return results

    def _rollback(self, created: List[Path]) -> None:
        for link in reversed(created):
            try:
                link.unlink()
                logger.info("Rolled back symlink", link=str(link))
            except OSError as e:
                logger.error("Failed to roll back symlink", link=str(link), error=str(e))
