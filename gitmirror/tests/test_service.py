import pytest

from gitmirror.config import Config
from gitmirror.errors import UsageError
from gitmirror.service import ServiceKind


def test_service_names():
    assert ServiceKind.from_service_name("git-receive-pack") == ServiceKind.PUSH
    assert ServiceKind.from_service_name("git-upload-pack") == ServiceKind.FETCH
    assert ServiceKind.from_service_name("git-upload-archive") == ServiceKind.ARCHIVE


def test_unknown_service():
    with pytest.raises(UsageError) as e:
        ServiceKind.from_service_name("git-lfs-authenticate")

    assert "unexpected service" in str(e.value)


def test_is_write():
    assert ServiceKind.PUSH.is_write
    assert not ServiceKind.FETCH.is_write
    assert not ServiceKind.ARCHIVE.is_write


def test_local_handler():
    config = Config(
        git_receive_pack="/x/receive",
        git_upload_pack="/x/upload",
        git_upload_archive="/x/archive",
    )

    assert ServiceKind.PUSH.local_handler(config) == "/x/receive"
    assert ServiceKind.FETCH.local_handler(config) == "/x/upload"
    assert ServiceKind.ARCHIVE.local_handler(config) == "/x/archive"
