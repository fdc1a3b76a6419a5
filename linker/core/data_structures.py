"""Linker 核心数据结构定义

定义资源、链接记录、链接集合以及清单树等核心对象。"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union
from enum import Enum


class LinkState(Enum):
    """目录的链接状态"""
    UNLINKED = "unlinked"
    LINKED = "linked"


class LinkHealth(Enum):
    """单个链接的健康状态"""
    VALID = "valid"
    BROKEN = "broken"
    MISSING = "missing"


@dataclass
class Resource:
    """已注册的资源"""
    name: str
    path: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "path": self.path}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Resource":
        return cls(name=str(data["name"]), path=str(data["path"]))


@dataclass
class LinkEntry:
    """一条已创建的符号链接

    name 为链接在目录内的相对位置，path 为链接指向的源路径。
    """
    name: str
    path: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "path": self.path}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LinkEntry":
        return cls(name=str(data["name"]), path=str(data["path"]))


@dataclass
class LinkSet:
    """某个目录下的一组链接记录"""
    directory: str
    entries: List[LinkEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def to_dict(self) -> Dict[str, Any]:
        # 与注册表文件格式保持一致: {"dir": ..., "link": [...]}
        return {
            "dir": self.directory,
            "link": [entry.to_dict() for entry in self.entries],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LinkSet":
        return cls(
            directory=str(data["dir"]),
            entries=[LinkEntry.from_dict(item) for item in data.get("link", [])],
        )


# 清单树: Scalar | Flag | Table | Unsupported

@dataclass(frozen=True)
class Scalar:
    """字符串值（资源名或路径）"""
    value: str


@dataclass(frozen=True)
class Flag:
    """布尔值（instance 标记）"""
    value: bool


@dataclass(frozen=True)
class Unsupported:
    """清单中出现的其他类型值"""
    value: Any

    @property
    def type_name(self) -> str:
        return type(self.value).__name__


@dataclass
class Table:
    """嵌套表，保持声明顺序"""
    children: Dict[str, "ManifestNode"] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.children)

    def get(self, key: str) -> Optional["ManifestNode"]:
        return self.children.get(key)

    def items(self) -> Iterator[Tuple[str, "ManifestNode"]]:
        return iter(self.children.items())

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "Table":
        """把解析得到的嵌套字典转换为清单树"""
        return cls({key: to_node(value) for key, value in data.items()})


ManifestNode = Union[Scalar, Flag, Table, Unsupported]


def to_node(value: Any) -> ManifestNode:
    """把单个值转换为清单树节点"""
    # bool 必须先于其他类型判断
    if isinstance(value, bool):
        return Flag(value)
    if isinstance(value, str):
        return Scalar(value)
    if isinstance(value, dict):
        return Table.from_mapping(value)
    return Unsupported(value)


@dataclass
class ResolutionIssue:
    """解析过程中被跳过的条目"""
    key: str
    reason: str
    reference: Optional[str] = None

    def __str__(self) -> str:
        if self.reference is not None:
            return f"{self.key}: {self.reason} ({self.reference})"
        return f"{self.key}: {self.reason}"


@dataclass
class Resolution:
    """清单解析结果"""
    entries: List[LinkEntry] = field(default_factory=list)
    issues: List[ResolutionIssue] = field(default_factory=list)
