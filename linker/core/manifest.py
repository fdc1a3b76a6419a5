"""清单读取器

读取工作目录下的 resource.toml，返回其中 [resource] 表对应的清单树。

    [resource]
    checkpoint = { instance = true }

    [resource.dataset]
    cityscapes = "cityscapes"
    ade20k = "/data/ade20k"
"""

import tomllib
from pathlib import Path
from typing import Optional

from linker.core.data_structures import Table
from linker.core.exceptions import ManifestIOError, ManifestParseError
from linker.core.logger import get_logger

logger = get_logger("manifest")

DEFAULT_FILENAME = "resource.toml"
DEFAULT_TABLE = "resource"


class ManifestReader:
    """清单读取器"""

    def __init__(
        self,
        directory: Optional[Path] = None,
        filename: str = DEFAULT_FILENAME,
        table: str = DEFAULT_TABLE,
    ):
        self.directory = Path(directory) if directory else Path.cwd()
        self.filename = filename
        self.table = table

    @property
    def path(self) -> Path:
        return self.directory / self.filename

    def ensure(self) -> bool:
        """确保清单文件存在

        Returns:
            文件原本已存在返回 True，新建返回 False

        Raises:
            ManifestIOError: 写入失败时抛出
        """
        if self.path.exists():
            return True

        logger.warning("Manifest file not found, creating one", path=str(self.path))
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(f"[{self.table}]\n", encoding="utf-8")
        except OSError as e:
            raise ManifestIOError(f"无法创建清单文件 {self.path}: {e}", details=str(e))
        return False

    def load(self) -> Table:
        """读取并解析清单

        文件不存在时创建空清单并返回空表。

        Raises:
            ManifestIOError: 文件无法读取
            ManifestParseError: TOML 格式错误（包括重复的键）
        """
        if not self.ensure():
            return Table()

        try:
            with open(self.path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ManifestParseError(f"无法解析清单文件 {self.path}: {e}", details=str(e))
        except OSError as e:
            raise ManifestIOError(f"无法读取清单文件 {self.path}: {e}", details=str(e))

        return self.parse(data)

    def loads(self, contents: str) -> Table:
        """从字符串解析清单"""
        try:
            data = tomllib.loads(contents)
        except tomllib.TOMLDecodeError as e:
            raise ManifestParseError(f"无法解析清单: {e}", details=str(e))
        return self.parse(data)

    def parse(self, data: dict) -> Table:
        section = data.get(self.table)
        if section is None:
            logger.info("Manifest has no link table", table=self.table, path=str(self.path))
            return Table()
        if not isinstance(section, dict):
            raise ManifestParseError(
                f"清单中的 [{self.table}] 必须是表",
                details={"type": type(section).__name__},
            )

        manifest = Table.from_mapping(section)
        logger.debug("Manifest parsed", path=str(self.path), entries=len(manifest))
        return manifest
