"""Integration tests for the dirstore command-line interface."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from dirstore.cli import main
from dirstore.metadata import read_metadata


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep user config and environment from leaking into CLI runs."""
    config = tmp_path / "config.toml"
    config.write_text("")
    monkeypatch.setenv("DIRSTORE_CONFIG", str(config))
    monkeypatch.delenv("STORAGE_ROOT", raising=False)
    monkeypatch.delenv("STORAGE_DEFAULT_ROOT", raising=False)
    return config


@pytest.fixture
def root(tmp_path, capsys) -> Path:
    root = tmp_path.resolve() / "R"
    assert main(["init", str(root)]) == 0
    capsys.readouterr()
    return root


class TestInit:
    def test_init(self, tmp_path, capsys):
        target = tmp_path.resolve() / "store"
        assert main(["init", str(target)]) == 0
        assert capsys.readouterr().out.strip() == str(target)
        assert (target / ".storage-root.json").is_file()

    def test_init_twice(self, root, capsys):
        assert main(["init", str(root)]) == 1
        assert "already has a storage root" in capsys.readouterr().err


class TestMkdir:
    def test_mkdir(self, root, capsys):
        code = main([
            "mkdir", "My Report", "Quarterly numbers",
            "--time", "2000-01-01T00:00:00Z",
            "--tag", "work", "-t", "q3",
            "--root", str(root),
        ])

        path = root / "frequent" / "my-report-aaaaaaa"
        assert code == 0
        assert capsys.readouterr().out.strip() == str(path)
        meta = read_metadata(path)
        assert meta.name == "My Report"
        assert meta.description == "Quarterly numbers"
        assert meta.tags == ["work", "q3"]
        assert (root / "by-id" / "aaaaaaa").resolve() == path

    def test_mkdir_partition(self, root):
        assert main(["mkdir", "x", "-d", "2000-01-01T00:00:00Z", "-p", "inbox", "-r", str(root)]) == 0
        assert (root / "inbox" / "x-aaaaaaa").is_dir()

    def test_mkdir_discovers_root_from_cwd(self, root, monkeypatch):
        monkeypatch.chdir(root)
        assert main(["mkdir", "Found", "-d", "2000-01-01T00:00:00Z"]) == 0
        assert (root / "frequent" / "found-aaaaaaa").is_dir()

    def test_mkdir_root_from_env(self, root, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("STORAGE_ROOT", str(root))
        assert main(["mkdir", "Env", "-d", "2000-01-01T00:00:00Z"]) == 0
        assert (root / "frequent" / "env-aaaaaaa").is_dir()

    def test_mkdir_default_partition_from_config(self, root, isolated_env):
        isolated_env.write_text('[storage]\ndefault_partition = "inbox"\n')
        assert main(["mkdir", "x", "-d", "2000-01-01T00:00:00Z", "-r", str(root)]) == 0
        assert (root / "inbox" / "x-aaaaaaa").is_dir()

    def test_mkdir_time_from_file(self, root, tmp_path):
        source = tmp_path / "scan.pdf"
        source.write_text("x")
        mtime_ns = (946_684_800 + 1) * 1_000_000_000
        os.utime(source, ns=(mtime_ns, mtime_ns))

        assert main(["mkdir", "Scan", "-d", str(source), "-r", str(root)]) == 0
        assert (root / "frequent" / "scan-aaaaaab").is_dir()

    def test_mkdir_blank_name(self, root, capsys):
        assert main(["mkdir", "   ", "-r", str(root)]) == 1
        assert "must not be empty" in capsys.readouterr().err

    def test_mkdir_before_epoch(self, root, capsys):
        assert main(["mkdir", "Old", "-d", "1999-12-31T23:59:59Z", "-r", str(root)]) == 1
        assert "before the epoch" in capsys.readouterr().err

    def test_mkdir_collision(self, root, capsys):
        args = ["mkdir", "Same", "-d", "2000-01-01T00:00:00Z", "-r", str(root)]
        assert main(args) == 0
        assert main(args) == 1
        assert "already exists" in capsys.readouterr().err


class TestMv:
    def test_mv(self, root, capsys):
        main(["mkdir", "My Report", "-d", "2000-01-01T00:00:00Z", "-r", str(root)])
        source = root / "frequent" / "my-report-aaaaaaa"
        capsys.readouterr()

        assert main(["mv", str(source), str(root / "archive")]) == 0

        target = root / "archive" / "my-report-aaaaaaa"
        assert capsys.readouterr().out.strip() == str(target)
        assert (root / "all" / "my-report-aaaaaaa").resolve() == target
        assert (root / "by-id" / "aaaaaaa").resolve() == target

    def test_mv_partial_failure(self, root, capsys):
        main(["mkdir", "Good", "-d", "2000-01-01T00:00:00Z", "-r", str(root)])
        capsys.readouterr()

        code = main([
            "mv",
            str(root / "frequent" / "good-aaaaaaa"),
            str(root / "frequent" / "missing-aaaaaab"),
            str(root / "archive"),
        ])

        captured = capsys.readouterr()
        assert code == 1
        assert "missing-aaaaaab" in captured.err
        assert (root / "archive" / "good-aaaaaaa").is_dir()

    def test_mv_ambiguous_rename(self, root, capsys):
        main(["mkdir", "A", "-d", "2000-01-01T00:00:00Z", "-r", str(root)])
        main(["mkdir", "B", "-d", "2000-01-01T00:00:01Z", "-r", str(root)])
        capsys.readouterr()

        code = main([
            "mv",
            str(root / "frequent" / "a-aaaaaaa"),
            str(root / "frequent" / "b-aaaaaab"),
            str(root / "archive" / "renamed"),
        ])

        assert code == 1
        assert "multiple directories" in capsys.readouterr().err


class TestLsAndReindex:
    def test_ls(self, root, capsys):
        main(["mkdir", "Listed Item", "-d", "2000-01-01T00:00:00Z", "-t", "blue", "-r", str(root)])
        main(["mkdir", "Other", "-d", "2000-01-01T00:00:01Z", "-p", "archive", "-r", str(root)])
        capsys.readouterr()

        assert main(["ls", "-r", str(root)]) == 0
        out = capsys.readouterr().out
        assert "Listed Item" in out
        assert "Other" in out

        assert main(["ls", "-r", str(root), "--tag", "blue"]) == 0
        out = capsys.readouterr().out
        assert "Listed Item" in out
        assert "Other" not in out

        assert main(["ls", "-r", str(root), "-p", "archive"]) == 0
        out = capsys.readouterr().out
        assert "Other" in out
        assert "Listed Item" not in out

    def test_ls_empty(self, root, capsys):
        assert main(["ls", "-r", str(root)]) == 0
        assert "No storage directories" in capsys.readouterr().out

    def test_reindex(self, root, capsys):
        main(["mkdir", "Indexed", "-d", "2000-01-01T00:00:00Z", "-r", str(root)])
        (root / "all" / "indexed-aaaaaaa").unlink()
        capsys.readouterr()

        assert main(["reindex", "-r", str(root)]) == 0
        assert "Reindexed 1 directories" in capsys.readouterr().out
        assert (root / "all" / "indexed-aaaaaaa").is_symlink()

    def test_reindex_outside_storage_root(self, tmp_path, capsys):
        plain = tmp_path / "plain"
        plain.mkdir()

        assert main(["reindex", "-r", str(plain)]) == 1
        assert "Not a storage root" in capsys.readouterr().err
        assert not (plain / "all").exists()


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "usage" in capsys.readouterr().out.lower()
