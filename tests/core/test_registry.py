"""Registry 单元测试"""

import json
from pathlib import Path

import pytest

from linker.core.data_structures import LinkEntry
from linker.core.exceptions import (
    InvalidResourceError,
    MissingHomeDirectory,
    RegistryParseError,
    ResourceNotFoundError,
)
from linker.core.registry import Registry, default_registry_path


@pytest.fixture
def registry_path(tmp_path):
    """注册表文件路径（父目录尚不存在）"""
    return tmp_path / ".linker" / "config.json"


@pytest.fixture
def registry(registry_path):
    return Registry.load(registry_path)


class TestRegistryLoad:
    """测试注册表加载"""

    def test_missing_file_creates_empty_registry(self, registry_path):
        """测试文件不存在时初始化并写入空注册表"""
        registry = Registry.load(registry_path)

        assert registry.resources == {}
        assert registry.link_sets == []
        assert registry_path.exists()
        assert json.loads(registry_path.read_text()) == {"resources": [], "links": []}

    def test_load_existing_file(self, registry_path):
        """测试加载已有文件"""
        registry_path.parent.mkdir(parents=True)
        registry_path.write_text(json.dumps({
            "resources": [{"name": "imagenet", "path": "/data/imagenet"}],
            "links": [{"dir": "/work", "link": [{"name": "imagenet", "path": "/data/imagenet"}]}],
        }))

        registry = Registry.load(registry_path)

        assert registry.get_resource("imagenet").path == "/data/imagenet"
        link_set = registry.get_link_set("/work")
        assert link_set.entries == [LinkEntry("imagenet", "/data/imagenet")]

    def test_load_legacy_file_without_links(self, registry_path):
        """测试只有 resources 字段的旧格式"""
        registry_path.parent.mkdir(parents=True)
        registry_path.write_text(json.dumps({"resources": [{"name": "a", "path": "/a"}]}))

        registry = Registry.load(registry_path)

        assert list(registry.resources) == ["a"]
        assert registry.link_sets == []

    def test_load_invalid_json(self, registry_path):
        """测试 JSON 格式错误"""
        registry_path.parent.mkdir(parents=True)
        registry_path.write_text("{not json")

        with pytest.raises(RegistryParseError):
            Registry.load(registry_path)

    def test_load_wrong_shape(self, registry_path):
        """测试结构错误"""
        registry_path.parent.mkdir(parents=True)
        registry_path.write_text(json.dumps({"resources": [{"path": "/a"}]}))

        with pytest.raises(RegistryParseError):
            Registry.load(registry_path)

    def test_load_top_level_list(self, registry_path):
        registry_path.parent.mkdir(parents=True)
        registry_path.write_text("[]")

        with pytest.raises(RegistryParseError):
            Registry.load(registry_path)


class TestResources:
    """测试资源的增删"""

    def test_add_resource_round_trip(self, registry, registry_path):
        """测试添加后重新加载仍然存在"""
        registry.add_resource("x", "/p")

        reloaded = Registry.load(registry_path)

        assert reloaded.get_resource("x").path == "/p"

    def test_add_resource_upserts(self, registry):
        """测试同名资源被替换而不是重复"""
        registry.add_resource("x", "/old")
        registry.add_resource("y", "/y")
        registry.add_resource("x", "/new")

        assert list(registry.resources) == ["x", "y"]
        assert registry.get_resource("x").path == "/new"

    def test_add_resource_empty_name(self, registry):
        with pytest.raises(InvalidResourceError):
            registry.add_resource("", "/p")

    def test_remove_resource_is_exact(self, registry, registry_path):
        """测试只删除指定资源"""
        registry.add_resource("x", "/x")
        registry.add_resource("xy", "/xy")

        removed = registry.remove_resource("x")

        assert [r.name for r in removed] == ["x"]
        assert list(Registry.load(registry_path).resources) == ["xy"]

    def test_remove_all_keeps_links(self, registry, registry_path):
        """测试删除全部资源不影响链接记录"""
        registry.add_resource("x", "/x")
        registry.add_resource("y", "/y")
        registry.add_link("/work", [LinkEntry("x", "/x")])

        registry.remove_resource(all=True)

        reloaded = Registry.load(registry_path)
        assert reloaded.resources == {}
        assert reloaded.get_link_set("/work") is not None

    def test_remove_unknown_resource(self, registry):
        with pytest.raises(ResourceNotFoundError):
            registry.remove_resource("missing")

    def test_remove_requires_target(self, registry):
        with pytest.raises(InvalidResourceError):
            registry.remove_resource()


class TestLinks:
    """测试链接记录"""

    def test_add_link_replaces_existing(self, registry):
        """测试同一目录的记录被整体替换"""
        registry.add_link("/work", [LinkEntry("a", "/a"), LinkEntry("b", "/b")])
        registry.add_link("/work", [LinkEntry("c", "/c")])

        assert len(registry.link_sets) == 1
        assert registry.get_link_set("/work").entries == [LinkEntry("c", "/c")]

    def test_remove_link(self, registry, registry_path):
        registry.add_link("/work", [LinkEntry("a", "/a")])

        removed = registry.remove_link("/work")

        assert removed.entries == [LinkEntry("a", "/a")]
        assert Registry.load(registry_path).get_link_set("/work") is None

    def test_remove_link_absent_is_noop(self, registry):
        assert registry.remove_link("/nowhere") is None

    def test_file_format(self, registry, registry_path):
        """测试写入的文件格式"""
        registry.add_resource("x", "/x")
        registry.add_link("/work", [LinkEntry("x", "/x")])

        data = json.loads(registry_path.read_text())

        assert data == {
            "resources": [{"name": "x", "path": "/x"}],
            "links": [{"dir": "/work", "link": [{"name": "x", "path": "/x"}]}],
        }

    def test_save_leaves_no_temp_files(self, registry, registry_path):
        registry.add_resource("x", "/x")

        assert [p.name for p in registry_path.parent.iterdir()] == ["config.json"]


class TestDefaultPath:
    """测试默认路径"""

    def test_default_path_under_home(self, monkeypatch, tmp_path):
        monkeypatch.delenv("LINKER_REGISTRY", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert default_registry_path() == tmp_path / ".linker" / "config.json"

    def test_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("LINKER_REGISTRY", str(tmp_path / "custom.json"))

        assert default_registry_path() == tmp_path / "custom.json"

    def test_missing_home(self, monkeypatch):
        monkeypatch.delenv("LINKER_REGISTRY", raising=False)

        def no_home(cls):
            raise RuntimeError("Could not determine home directory.")

        monkeypatch.setattr(Path, "home", classmethod(no_home))

        with pytest.raises(MissingHomeDirectory):
            default_registry_path()
