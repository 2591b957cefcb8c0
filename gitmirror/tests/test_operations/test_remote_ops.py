from gitmirror.config import Config
from gitmirror.operations import ForwardOperations
from gitmirror.operations.remote import sq_quote
from gitmirror.routing import ForwardUpstream
from gitmirror.service import ServiceKind, ServiceRequest
from gitmirror.tests.conftest import make_script

CONFIG = Config(
    master_host="master.example.com",
    master_account="mirror",
    master_identity="/home/mirror/.ssh/id_mirror",
    ssh="/usr/bin/ssh",
    ssh_opts=("-o", "StrictHostKeyChecking=no"),
)


def make_ops(config, path="/srv/git/repo.git", options=()):
    request = ServiceRequest(ServiceKind.FETCH, "repo", tuple(options))
    decision = ForwardUpstream("git-upload-pack", path)

    return ForwardOperations(config, request, decision)


def test_sq_quote():
    assert sq_quote("/srv/repo.git") == "'/srv/repo.git'"
    assert sq_quote("it's") == "'it'\\''s'"


def test_command():
    assert make_ops(CONFIG)._compose_command() == [
        "/usr/bin/ssh",
        "-o",
        "StrictHostKeyChecking=no",
        "-i/home/mirror/.ssh/id_mirror",
        "mirror@master.example.com",
        "git-upload-pack '/srv/git/repo.git'",
    ]


def test_command_with_options():
    ops = make_ops(CONFIG, options=["--strict", "--timeout=5"])

    assert ops._compose_command()[-1] == (
        "git-upload-pack --strict --timeout=5 '/srv/git/repo.git'"
    )


def test_command_with_special_characters():
    ops = make_ops(CONFIG, path="/srv/git/my repo; rm -rf $HOME.git")

    assert ops._compose_command()[-1] == (
        "git-upload-pack '/srv/git/my repo; rm -rf $HOME.git'"
    )


def test_forward(tmp_path, capfd):
    ssh = make_script(tmp_path / "ssh", 'for arg; do echo "$arg"; done; exit 0')
    config = Config(
        master_host="master.example.com",
        master_account="mirror",
        master_identity="/id",
        ssh=ssh,
    )

    assert make_ops(config).run() == 0

    assert capfd.readouterr().out.splitlines() == [
        "-i/id",
        "mirror@master.example.com",
        "git-upload-pack '/srv/git/repo.git'",
    ]


def test_ssh_failure(tmp_path, capfd):
    ssh = make_script(
        tmp_path / "ssh", "echo 'ssh: Could not resolve hostname' >&2; exit 255"
    )
    config = Config(master_host="nowhere", master_account="mirror", ssh=ssh)

    assert make_ops(config).run() == 255
    assert "Could not resolve hostname" in capfd.readouterr().err
