"""Linker remove 命令的单元测试"""

import pytest
from click.testing import CliRunner

from linker.cli.main import cli
from linker.core.data_structures import LinkEntry
from linker.core.registry import Registry


@pytest.fixture
def registry_path(tmp_path):
    path = tmp_path / ".linker" / "config.json"
    registry = Registry.load(path)
    registry.add_resource("a", "/a")
    registry.add_resource("b", "/b")
    registry.add_link("/work", [LinkEntry("a", "/a")])
    return path


class TestRemoveCli:
    """remove 命令行测试"""

    def test_remove_one(self, registry_path):
        result = CliRunner().invoke(cli, ["--registry", str(registry_path), "remove", "a"])

        assert result.exit_code == 0, result.output
        assert list(Registry.load(registry_path).resources) == ["b"]

    def test_remove_all_keeps_links(self, registry_path):
        result = CliRunner().invoke(cli, ["--registry", str(registry_path), "remove", "--all"])

        assert result.exit_code == 0, result.output
        registry = Registry.load(registry_path)
        assert registry.resources == {}
        assert registry.get_link_set("/work") is not None

    def test_remove_unknown(self, registry_path):
        result = CliRunner().invoke(cli, ["--registry", str(registry_path), "remove", "zzz"])

        assert result.exit_code == 1
        assert "zzz" in result.output
        assert len(Registry.load(registry_path).resources) == 2

    def test_remove_without_target(self, registry_path):
        result = CliRunner().invoke(cli, ["--registry", str(registry_path), "remove"])

        assert result.exit_code == 1
        assert "--all" in result.output
