import pytest

from gitmirror.config import Config
from gitmirror.git import Git
from gitmirror.mirror import inspect, MirrorState
from gitmirror.tests.conftest import run_git

pytestmark = pytest.mark.git


@pytest.fixture
def git():
    return Git(Config())


def test_absent(tmp_path, git):
    assert inspect(str(tmp_path / "repo.git"), git) == MirrorState.ABSENT


def test_file_is_absent(tmp_path, git):
    (tmp_path / "repo.git").write_text("")

    assert inspect(str(tmp_path / "repo.git"), git) == MirrorState.ABSENT


def test_local_repository(tmp_path, git):
    run_git("init", "--quiet", "--bare", str(tmp_path / "repo.git"))

    state = inspect(str(tmp_path / "repo.git"), git)

    assert state == MirrorState.LOCAL_NONMIRROR
    assert state.exists
    assert not state.is_mirror


def test_mirror(tmp_path, git):
    repo = str(tmp_path / "repo.git")
    run_git("init", "--quiet", "--bare", repo)
    run_git(f"--git-dir={repo}", "config", "remote.origin.mirror", "true")

    state = inspect(repo, git)

    assert state == MirrorState.LOCAL_MIRROR
    assert state.exists
    assert state.is_mirror


def test_mirror_flag_false(tmp_path, git):
    repo = str(tmp_path / "repo.git")
    run_git("init", "--quiet", "--bare", repo)
    run_git(f"--git-dir={repo}", "config", "remote.origin.mirror", "no")

    assert inspect(repo, git) == MirrorState.LOCAL_NONMIRROR


def test_invalid_mirror_flag(tmp_path, git):
    repo = str(tmp_path / "repo.git")
    run_git("init", "--quiet", "--bare", repo)
    run_git(f"--git-dir={repo}", "config", "remote.origin.mirror", "maybe")

    assert inspect(repo, git) == MirrorState.LOCAL_NONMIRROR


def test_directory_without_repository(tmp_path, git):
    (tmp_path / "repo.git").mkdir()

    assert inspect(str(tmp_path / "repo.git"), git) == MirrorState.LOCAL_NONMIRROR


def test_state_not_cached(tmp_path, git):
    repo = str(tmp_path / "repo.git")

    assert inspect(repo, git) == MirrorState.ABSENT

    run_git("init", "--quiet", "--bare", repo)

    assert inspect(repo, git) == MirrorState.LOCAL_NONMIRROR
