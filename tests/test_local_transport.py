"""Tests running real shell commands through LocalTransport."""
import os
import shutil
import stat
from pathlib import Path

import pytest

from venv_deploy.commands import exec_in_environment
from venv_deploy.config import Settings
from venv_deploy.environments import create, destroy
from venv_deploy.errors import CommandFailure, TransferFailure
from venv_deploy.relocation import relocate
from venv_deploy.transport import CommandHostPackages, LocalTransport
from venv_deploy.types import Environment

needs_rsync = pytest.mark.skipif(shutil.which("rsync") is None, reason="rsync not installed")

FAKE_VIRTUALENV = """#!/bin/sh
for last; do :; done
echo "$@" >> "{log}"
mkdir -p "$last/bin" "$last/lib"
"""


@pytest.fixture
def local_settings(tmp_path):
    """Settings whose bootstrap tool is a shell script logging each creation"""
    tool = tmp_path / "fake-virtualenv"
    tool.write_text(FAKE_VIRTUALENV.format(log=tmp_path / "creations.log"))
    return Settings(
        release_path=str(tmp_path / "releases" / "1"),
        shared_path=str(tmp_path / "shared"),
        current_path=str(tmp_path / "current"),
        bootstrap_interpreter="sh",
        bootstrap_tool=str(tool),
    )


def creations(tmp_path):
    log = tmp_path / "creations.log"
    return log.read_text().splitlines() if log.exists() else []


def write_script(path, text, mode=0o755):
    path.write_text(text)
    path.chmod(mode)


def make_source(settings):
    """Populate the shared environment with launcher scripts and a library"""
    source = settings.shared
    bin_dir = os.fspath(source.bin_dir)
    lib_dir = os.fspath(source.lib_dir)
    os.makedirs(bin_dir)
    os.makedirs(os.path.join(lib_dir, "python3", "site-packages"))

    write_script(Path(bin_dir) / "pip", f"#!{source.python}\nimport pip\n")
    write_script(Path(bin_dir) / "flask", f"#!{source.python}3.11 -u\nimport flask\n")
    write_script(Path(bin_dir) / "tool", "#!/usr/bin/env python3\nprint('hi')\n")
    write_script(Path(bin_dir) / "notes", f"see #!{source.python}\n", mode=0o644)
    os.symlink("/bin/sh", os.path.join(bin_dir, "python"))
    Path(lib_dir, "python3", "site-packages", "six.py").write_text("# six\n")
    return source


def test_create_twice_runs_creation_once(tmp_path, local_settings):
    transport = LocalTransport()

    create(transport, local_settings, local_settings.shared)
    create(transport, local_settings, local_settings.shared)

    lines = creations(tmp_path)
    assert len(lines) == 1
    assert lines[0] == f"--distribute --quiet {local_settings.shared.root}"
    assert os.path.isdir(os.fspath(local_settings.shared.root))


def test_destroy_absent_path_succeeds(tmp_path):
    destroy(LocalTransport(), Environment(str(tmp_path / "never-created")))


def test_destroy_then_create_again(tmp_path, local_settings):
    transport = LocalTransport()
    create(transport, local_settings, local_settings.shared)
    destroy(transport, local_settings.shared)
    assert not os.path.exists(os.fspath(local_settings.shared.root))

    create(transport, local_settings, local_settings.shared)
    assert len(creations(tmp_path)) == 2


@needs_rsync
def test_relocate_rewrites_shebangs(tmp_path, local_settings):
    source = make_source(local_settings)
    destination = local_settings.release
    transport = LocalTransport()

    relocate(transport, local_settings, source, destination)

    dest_bin = os.fspath(destination.bin_dir)
    with open(os.path.join(dest_bin, "pip")) as f:
        assert f.readline() == f"#!{destination.python}\n"
    with open(os.path.join(dest_bin, "flask")) as f:
        assert f.readline() == f"#!{destination.python}\n"
    with open(os.path.join(dest_bin, "tool")) as f:
        assert f.read() == "#!/usr/bin/env python3\nprint('hi')\n"
    with open(os.path.join(dest_bin, "notes")) as f:
        assert f.read() == f"see #!{source.python}\n"

    assert os.path.islink(os.path.join(dest_bin, "python"))
    assert os.stat(os.path.join(dest_bin, "pip")).st_mode & stat.S_IXUSR
    assert os.path.exists(os.path.join(os.fspath(destination.lib_dir), "python3", "site-packages", "six.py"))

    with open(os.path.join(os.fspath(source.bin_dir), "pip")) as f:
        assert f.readline() == f"#!{source.python}\n"


@needs_rsync
def test_relocate_twice_keeps_destination_shebangs(tmp_path, local_settings):
    source = make_source(local_settings)
    destination = local_settings.release
    transport = LocalTransport()

    relocate(transport, local_settings, source, destination)
    relocate(transport, local_settings, source, destination)

    dest_bin = os.fspath(destination.bin_dir)
    for name in ("pip", "flask"):
        with open(os.path.join(dest_bin, name)) as f:
            first = f.readline()
        assert first == f"#!{destination.python}\n"
        assert str(source.root) not in first
    assert len(creations(tmp_path)) == 1


@needs_rsync
def test_relocate_is_additive(tmp_path, local_settings):
    source = make_source(local_settings)
    destination = local_settings.release
    transport = LocalTransport()
    create(transport, local_settings, destination)
    extra = os.path.join(os.fspath(destination.bin_dir), "release-only")
    with open(extra, "w") as f:
        f.write("keep me\n")

    relocate(transport, local_settings, source, destination)

    assert os.path.exists(extra)


def test_exec_scopes_path(tmp_path):
    venv = Environment(str(tmp_path / "venv"))
    os.makedirs(os.fspath(venv.bin_dir))
    write_script(tmp_path / "venv" / "bin" / "whoami-venv", '#!/bin/sh\necho "$VIRTUAL_ENV|$EXTRA"\n')

    result = exec_in_environment(LocalTransport(), "whoami-venv", venv, {"EXTRA": "kept"})

    assert result.stdout.strip() == f"{venv.root}|kept"


def test_run_failure_raises_command_failure():
    with pytest.raises(CommandFailure) as exc:
        LocalTransport().run("echo oops >&2; exit 3")
    assert exc.value.returncode == 3
    assert "oops" in exc.value.stderr


def test_put_writes_file(tmp_path):
    path = tmp_path / "requirements.txt"
    LocalTransport().put("six\nrequests", str(path))
    assert path.read_text() == "six\nrequests"


def test_put_failure_raises_transfer_failure(tmp_path):
    with pytest.raises(TransferFailure):
        LocalTransport().put("six", str(tmp_path / "missing-dir" / "requirements.txt"))


def test_host_packages_command(tmp_path):
    log = tmp_path / "pkg.log"
    installer = tmp_path / "pkg-install"
    write_script(installer, f'#!/bin/sh\necho "$@" >> "{log}"\n')

    CommandHostPackages(LocalTransport(), [str(installer), "-y"]).install(["python", "rsync"])
    CommandHostPackages(LocalTransport(), [str(installer), "-y"]).install([])

    assert log.read_text().splitlines() == ["-y python rsync"]
