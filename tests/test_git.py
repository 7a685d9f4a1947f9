"""Tests for the git adapter."""

from __future__ import annotations

import pytest

from cvsreplay.errors import GitRepositoryError
from cvsreplay.git import EntryKind, GitRepository, WalkResult
from tests.conftest import BINARY


@pytest.fixture
def repo(git_repo):
    return GitRepository.open(git_repo.path)


class TestOpen:
    def test_not_a_repository(self, tmp_path):
        with pytest.raises(GitRepositoryError, match="open"):
            GitRepository.open(tmp_path / "nothing-here")


class TestFindBranch:
    def test_local(self, git_repo, repo):
        git_repo.commit({"a.txt": b"a"})
        branch = repo.find_branch("main")
        assert branch is not None
        assert branch.name == "main"

    def test_missing(self, git_repo, repo):
        git_repo.commit({"a.txt": b"a"})
        assert repo.find_branch("nope") is None

    def test_remote(self, git_repo, repo):
        tip = git_repo.commit({"a.txt": b"a"}, ref=None)
        git_repo.create_ref("refs/remotes/origin/feature", tip)
        assert repo.find_branch("origin/feature") is None
        branch = repo.find_branch("origin/feature", remote=True)
        assert branch is not None
        assert branch.name == "origin/feature"
        assert list(branch.linear_history()) == [tip]

    def test_local_not_found_as_remote(self, git_repo, repo):
        git_repo.commit({"a.txt": b"a"})
        assert repo.find_branch("main", remote=True) is None


class TestLinearHistory:
    def test_single_commit(self, git_repo, repo):
        c1 = git_repo.commit({"a.txt": b"a"})
        assert list(repo.find_branch("main").linear_history()) == [c1]

    def test_oldest_first(self, git_repo, repo):
        c1 = git_repo.commit({"a.txt": b"1"})
        c2 = git_repo.commit({"a.txt": b"2"})
        c3 = git_repo.commit({"a.txt": b"3"})
        assert list(repo.find_branch("main").linear_history()) == [c1, c2, c3]

    def test_merges_follow_first_parent(self, git_repo, repo):
        c1 = git_repo.commit({"a.txt": b"1"})
        side1 = git_repo.commit({"a.txt": b"1", "s.txt": b"s"}, ref=None, parents=[c1])
        side2 = git_repo.commit({"a.txt": b"1", "s.txt": b"s2"}, ref=None, parents=[side1])
        c2 = git_repo.commit({"a.txt": b"2"})
        merge = git_repo.commit({"a.txt": b"2", "s.txt": b"s2"}, parents=[c2, side2])

        history = list(repo.find_branch("main").linear_history())
        assert history == [c1, c2, merge]
        assert side1 not in history and side2 not in history
        for older, newer in zip(history, history[1:]):
            assert git_repo.repo[newer].parent_ids[0] == older


class TestObjects:
    def test_commit_info(self, git_repo, repo):
        oid = git_repo.commit({"a.txt": b"a"}, message="Subject\n\nBody\n", time=1_234_567_890)
        info = repo.commit(oid)
        assert info.id == oid
        assert info.time == 1_234_567_890
        assert info.raw_message == b"Subject\n\nBody\n"
        assert info.tree_id == git_repo.repo[oid].tree_id

    def test_blob_text_and_binary(self, git_repo, repo):
        oid = git_repo.commit({"a.txt": b"hi\n", "b.bin": BINARY})
        tree = git_repo.repo[oid].tree
        text = repo.blob(tree["a.txt"].id)
        binary = repo.blob(tree["b.bin"].id)
        assert text.content == b"hi\n"
        assert not text.is_binary
        assert binary.content == BINARY
        assert binary.is_binary

    def test_wrong_object_type(self, git_repo, repo):
        oid = git_repo.commit({"a.txt": b"a"})
        with pytest.raises(GitRepositoryError, match="not a blob"):
            repo.blob(oid)


class TestWalkTree:
    def _tree(self, git_repo):
        oid = git_repo.commit(
            {
                "a.txt": b"a",
                "dir/b.txt": b"b",
                "dir/sub/c.txt": (b"c", 0o100755),
                "z.txt": b"z",
            }
        )
        return git_repo.repo[oid].tree_id

    def test_pre_order(self, git_repo, repo):
        tree_id = self._tree(git_repo)
        visited = []

        def visit(prefix, entry):
            visited.append((prefix, entry.name, entry.kind))
            return WalkResult.CONTINUE

        assert repo.walk_tree(tree_id, visit) is WalkResult.CONTINUE
        assert visited == [
            ("", "a.txt", EntryKind.BLOB),
            ("", "dir", EntryKind.TREE),
            ("dir/", "b.txt", EntryKind.BLOB),
            ("dir/", "sub", EntryKind.TREE),
            ("dir/sub/", "c.txt", EntryKind.BLOB),
            ("", "z.txt", EntryKind.BLOB),
        ]

    def test_filemode(self, git_repo, repo):
        tree_id = self._tree(git_repo)
        modes = {}

        def visit(prefix, entry):
            modes[prefix + entry.name] = entry.filemode
            return WalkResult.CONTINUE

        repo.walk_tree(tree_id, visit)
        assert modes["a.txt"] == 0o100644
        assert modes["dir/sub/c.txt"] == 0o100755
        assert modes["dir"] == 0o040000

    def test_skip_does_not_descend(self, git_repo, repo):
        tree_id = self._tree(git_repo)
        visited = []

        def visit(prefix, entry):
            visited.append(prefix + entry.name)
            return WalkResult.SKIP if entry.name == "dir" else WalkResult.CONTINUE

        repo.walk_tree(tree_id, visit)
        assert visited == ["a.txt", "dir", "z.txt"]

    def test_abort_stops_walk(self, git_repo, repo):
        tree_id = self._tree(git_repo)
        visited = []

        def visit(prefix, entry):
            visited.append(prefix + entry.name)
            return WalkResult.ABORT if entry.name == "b.txt" else WalkResult.CONTINUE

        assert repo.walk_tree(tree_id, visit) is WalkResult.ABORT
        assert visited == ["a.txt", "dir", "dir/b.txt"]

    def test_submodule_entry_is_other(self, git_repo, repo):
        builder = git_repo.repo.TreeBuilder()
        builder.insert("vendor", git_repo.commit({"x": b"x"}, ref=None), 0o160000)
        tree_id = builder.write()
        kinds = []

        def visit(prefix, entry):
            kinds.append((entry.name, entry.kind, entry.type_name))
            return WalkResult.CONTINUE

        repo.walk_tree(tree_id, visit)
        assert kinds == [("vendor", EntryKind.OTHER, "commit")]
