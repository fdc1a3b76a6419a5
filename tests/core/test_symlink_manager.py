"""符号链接管理器测试"""

import errno
from pathlib import Path
from unittest.mock import patch

import pytest

from linker.core.data_structures import LinkEntry, LinkHealth
from linker.core.exceptions import (
    BrokenSymlinkError,
    SymlinkCreationError,
    SymlinkPermissionError,
)
from linker.core.symlink_manager import SymlinkManager


class TestSymlinkManager:
    """SymlinkManager 测试类"""

    @pytest.fixture
    def symlink_manager(self):
        return SymlinkManager()

    @pytest.fixture
    def source_dir(self, tmp_path):
        """创建源目录"""
        dir_path = tmp_path / "source_dir"
        dir_path.mkdir()
        (dir_path / "file1.txt").write_text("file1")
        return dir_path

    @pytest.fixture
    def source_file(self, tmp_path):
        file_path = tmp_path / "source.txt"
        file_path.write_text("test content")
        return file_path

    @pytest.fixture
    def workdir(self, tmp_path):
        path = tmp_path / "work"
        path.mkdir()
        return path

    # 创建

    def test_create_symlink_directory(self, symlink_manager, workdir, source_dir):
        link = workdir / "data"

        assert symlink_manager.create_symlink(source_dir, link) is True
        assert link.is_symlink()
        assert (link / "file1.txt").read_text() == "file1"

    def test_create_symlink_file(self, symlink_manager, workdir, source_file):
        link = workdir / "link.txt"

        assert symlink_manager.create_symlink(source_file, link) is True
        assert link.read_text() == "test content"

    def test_create_symlink_creates_parents(self, symlink_manager, workdir, source_dir):
        link = workdir / "nested" / "deeper" / "data"

        symlink_manager.create_symlink(source_dir, link)

        assert link.is_symlink()

    def test_create_symlink_existing_is_skipped(self, symlink_manager, workdir, source_file):
        """测试链接位置已存在时跳过而不报错"""
        link = workdir / "link.txt"
        link.write_text("existing")

        assert symlink_manager.create_symlink(source_file, link) is False
        assert link.read_text() == "existing"

    def test_create_symlink_existing_broken_link_is_skipped(self, symlink_manager, workdir, tmp_path):
        link = workdir / "dangling"
        link.symlink_to(tmp_path / "gone")

        assert symlink_manager.create_symlink(tmp_path, link) is False

    def test_create_symlink_parent_is_file(self, symlink_manager, workdir, source_dir):
        """测试链接的上级路径是普通文件时报错"""
        (workdir / "dataset").write_text("not a directory")

        with pytest.raises(SymlinkCreationError):
            symlink_manager.create_symlink(source_dir, workdir / "dataset" / "city")

        assert (workdir / "dataset").read_text() == "not a directory"

    def test_create_symlink_parent_is_broken_link(self, symlink_manager, workdir, source_dir, tmp_path):
        (workdir / "dataset").symlink_to(tmp_path / "gone")

        with pytest.raises(SymlinkCreationError):
            symlink_manager.create_symlink(source_dir, workdir / "dataset" / "city")

    def test_create_symlink_permission_error(self, symlink_manager, workdir, source_dir):
        with patch.object(Path, "symlink_to", side_effect=PermissionError(errno.EACCES, "denied")):
            with pytest.raises(SymlinkPermissionError):
                symlink_manager.create_symlink(source_dir, workdir / "data")

    def test_create_symlink_os_error(self, symlink_manager, workdir, source_dir):
        with patch.object(Path, "symlink_to", side_effect=OSError(errno.EIO, "io error")):
            with pytest.raises(SymlinkCreationError):
                symlink_manager.create_symlink(source_dir, workdir / "data")

    # 删除

    def test_remove_symlink(self, symlink_manager, workdir, source_dir):
        link = workdir / "data"
        symlink_manager.create_symlink(source_dir, link)

        assert symlink_manager.remove_symlink(link) is True
        assert not link.exists()
        assert source_dir.exists()
        assert (source_dir / "file1.txt").exists()

    def test_remove_symlink_not_exists(self, symlink_manager, workdir):
        assert symlink_manager.remove_symlink(workdir / "missing") is False

    def test_remove_symlink_keeps_real_directory(self, symlink_manager, workdir):
        """测试链接位置上的真实目录不会被删除"""
        real = workdir / "real"
        real.mkdir()

        assert symlink_manager.remove_symlink(real) is False
        assert real.is_dir()

    # 批量操作

    def test_materialize_is_idempotent(self, symlink_manager, workdir, source_dir, source_file):
        """测试重复物化结果相同且不报错"""
        entries = [
            LinkEntry("data", str(source_dir)),
            LinkEntry("sub/file.txt", str(source_file)),
        ]

        first = symlink_manager.materialize(entries, workdir)
        second = symlink_manager.materialize(entries, workdir)

        assert first == {"data": True, "sub/file.txt": True}
        assert second == {"data": False, "sub/file.txt": False}
        assert (workdir / "data").resolve() == source_dir.resolve()
        assert (workdir / "sub" / "file.txt").resolve() == source_file.resolve()

    def test_materialize_rolls_back_on_failure(self, symlink_manager, workdir, source_dir):
        """测试创建失败时删除本次已创建的链接"""
        entries = [LinkEntry("a", str(source_dir)), LinkEntry("b", str(source_dir))]
        original = SymlinkManager.create_symlink

        def fail_on_b(self, source, link):
            if Path(link).name == "b":
                raise SymlinkCreationError("boom")
            return original(self, source, link)

        with patch.object(SymlinkManager, "create_symlink", fail_on_b):
            with pytest.raises(SymlinkCreationError):
                symlink_manager.materialize(entries, workdir)

        assert not (workdir / "a").is_symlink()

    def test_remove_all(self, symlink_manager, workdir, source_dir):
        entries = [LinkEntry("a", str(source_dir)), LinkEntry("b", str(source_dir))]
        symlink_manager.materialize(entries[:1], workdir)

        results = symlink_manager.remove_all(entries, workdir)

        assert results == {"a": True, "b": False}
        assert not (workdir / "a").exists()
        assert source_dir.exists()

    # 健康检查

    def test_verify_broken_symlink(self, symlink_manager, workdir, tmp_path):
        link = workdir / "dangling"
        link.symlink_to(tmp_path / "gone")

        with pytest.raises(BrokenSymlinkError):
            symlink_manager.verify_symlink(link)

    def test_check_health(self, symlink_manager, workdir, source_dir, tmp_path):
        (workdir / "ok").symlink_to(source_dir)
        (workdir / "broken").symlink_to(tmp_path / "gone")
        entries = [
            LinkEntry("ok", str(source_dir)),
            LinkEntry("broken", str(tmp_path / "gone")),
            LinkEntry("missing", str(source_dir)),
        ]

        health = symlink_manager.check_health(entries, workdir)

        assert health == {
            "ok": LinkHealth.VALID,
            "broken": LinkHealth.BROKEN,
            "missing": LinkHealth.MISSING,
        }
