"""Shared fixtures: a fake FreeBSD host standing in for gpart/zpool/zfs/sysctl.

FakeHost answers the commands the installer runs with the same text the real
tools print, and records every argv so tests can assert on the sequence.

It also keeps ZFS mount state the way the kernel does: creating a dataset
mounts it when its (possibly inherited) mountpoint allows, importing without
-N mounts the whole pool, and mounting something already mounted fails.
"""

import logging
import subprocess

import pytest

from zfsinstall import logging_utils
from zfsinstall.install_config import InstallOptions
from zfsinstall.lib import command, gpart
from zfsinstall.lib.topology import parse_topology


class FakeHost:
    def __init__(self):
        self.disks = {"da0", "da1", "da2", "da3", "da4", "ada0"}
        self.partition_tables = set()
        self.providers = []
        self.spa_version = 5000
        self.imported = []
        self.importable = []
        self.pool_props = {}
        self.datasets = {}  # name -> own mountpoint, None when inherited
        self.mounted = set()
        self.legacy_mounts = {}  # directory -> dataset
        self.fail_on = []
        self.calls = []

    # --- helpers for assertions ---

    def commands(self, *prefix):
        return [c for c in self.calls if tuple(c[: len(prefix)]) == prefix]

    def label_for(self, provider):
        return f"gptid/5e3a1c2b-0000-11ee-8000-{provider}"

    def mountpoint_of(self, name):
        while "/" in name:
            own = self.datasets.get(name)
            if own is not None:
                return own
            name = name.rsplit("/", 1)[0]
        return "none"  # pools are created with -m none

    # --- subprocess.run replacement ---

    def run(self, argv, **kwargs):
        argv = list(argv)
        self.calls.append(argv)

        for prefix in self.fail_on:
            if tuple(argv[: len(prefix)]) == tuple(prefix):
                return self._result(argv, 1, "", f"{argv[0]}: simulated failure\n")

        handler = getattr(self, "_" + argv[0].replace("-", "_"), None)
        if handler is None:
            return self._result(argv, 0)
        return handler(argv)

    def _result(self, argv, rc, stdout="", stderr=""):
        return subprocess.CompletedProcess(argv, rc, stdout=stdout, stderr=stderr)

    def _sysctl(self, argv):
        if self.spa_version is None:
            return self._result(argv, 1, "", "sysctl: unknown oid 'vfs.zfs.version.spa'\n")
        return self._result(argv, 0, f"{self.spa_version}\n")

    def _gpart(self, argv):
        verb, device = argv[1], argv[-1]
        if verb == "show":
            if device in self.partition_tables:
                return self._result(argv, 0, f"=>  40  41942960  {device}  GPT  (20G)\n")
            return self._result(argv, 1, "", f"gpart: No such geom: {device}.\n")
        if verb == "create":
            self.partition_tables.add(device)
            return self._result(argv, 0, f"{device} created\n")
        if verb == "add":
            index = argv[argv.index("-i") + 1]
            provider = f"{device}p{index}"
            self.providers.append(provider)
            return self._result(argv, 0, f"{provider} added\n")
        return self._result(argv, 0)

    def _glabel(self, argv):
        lines = [f"{self.label_for(p)}     N/A  {p}" for p in self.providers]
        return self._result(argv, 0, "\n".join(lines) + "\n")

    def _zpool(self, argv):
        verb = argv[1]
        if verb == "list":
            return self._result(argv, 0, "".join(f"{p}\n" for p in self.imported))
        if verb == "import" and len(argv) == 2:
            if not self.importable:
                return self._result(argv, 1, "", "no pools available to import\n")
            out = "".join(
                f"   pool: {p}\n     id: 1234567890\n  state: ONLINE\n action: The pool can be imported.\n"
                for p in self.importable
            )
            return self._result(argv, 0, out)
        if verb == "create":
            self.imported.append(self._pool_name(argv))
            return self._result(argv, 0)
        if verb == "export":
            pool = argv[-1]
            self.imported.remove(pool)
            self.mounted = {m for m in self.mounted if not m.startswith(pool + "/")}
            self.legacy_mounts = {d: m for d, m in self.legacy_mounts.items() if not m.startswith(pool + "/")}
            return self._result(argv, 0)
        if verb == "import":
            pool = argv[-1]
            self.imported.append(pool)
            if "-N" not in argv:
                for name in self.datasets:
                    if name.startswith(pool + "/") and self.mountpoint_of(name) not in ("none", "legacy"):
                        self.mounted.add(name)
            return self._result(argv, 0)
        if verb == "set":
            key, value = argv[2].split("=", 1)
            self.pool_props[(argv[3], key)] = value
            return self._result(argv, 0)
        if verb == "get":
            return self._result(argv, 0, self.pool_props.get((argv[-1], argv[-2]), "-") + "\n")
        return self._result(argv, 0)

    def _zfs(self, argv):
        verb, name = argv[1], argv[-1]
        if verb == "create":
            own = None
            for i, arg in enumerate(argv):
                if arg == "-o" and argv[i + 1].startswith("mountpoint="):
                    own = argv[i + 1].split("=", 1)[1]
            self.datasets[name] = own
            if self.mountpoint_of(name) not in ("none", "legacy"):
                self.mounted.add(name)
            return self._result(argv, 0)
        if verb == "mount":
            if name in self.mounted:
                return self._result(argv, 1, "", f"cannot mount '{name}': filesystem already mounted\n")
            self.mounted.add(name)
            return self._result(argv, 0)
        if verb == "umount":
            if name not in self.mounted:
                return self._result(argv, 1, "", f"cannot unmount '{name}': not currently mounted\n")
            self.mounted.discard(name)
            return self._result(argv, 0)
        return self._result(argv, 0)

    def _mount(self, argv):
        # mount -t zfs <dataset> <dir>
        dataset, directory = argv[-2], argv[-1]
        if dataset in self.mounted:
            return self._result(argv, 1, "", f"mount: {dataset}: Device busy\n")
        self.mounted.add(dataset)
        self.legacy_mounts[directory] = dataset
        return self._result(argv, 0)

    def _umount(self, argv):
        dataset = self.legacy_mounts.pop(argv[-1], None)
        if dataset is None:
            return self._result(argv, 1, "", f"umount: {argv[-1]}: not a file system root directory\n")
        self.mounted.discard(dataset)
        return self._result(argv, 0)

    @staticmethod
    def _pool_name(argv):
        # zpool create [-f] [-m mp] [-d] [-o k=v]... [-O k=v]... <pool> <vdevs...>
        i = 2
        while argv[i].startswith("-"):
            i += 1 if argv[i] in ("-f", "-d") else 2
        return argv[i]


class RecordingOSInstaller:
    def __init__(self):
        self.installed = []

    def install(self, target_root, *, dry_run=False):
        self.installed.append(target_root)


class RecordingBootEnvs:
    def __init__(self):
        self.calls = []

    def create(self, name, *, source, dry_run=False):
        self.calls.append(("create", name, source))

    def activate(self, name, *, dry_run=False):
        self.calls.append(("activate", name))


@pytest.fixture(autouse=True)
def reset_logging():
    root = logging.getLogger()
    yield
    # Only the installer's own handlers; pytest's capture handlers are subclasses.
    for h in list(root.handlers):
        if type(h) in (logging.FileHandler, logging.StreamHandler):
            root.removeHandler(h)
            h.close()
    logging_utils._active_path = None


@pytest.fixture
def host(monkeypatch):
    h = FakeHost()
    monkeypatch.setattr(command.subprocess, "run", h.run)
    monkeypatch.setattr(gpart, "is_disk_device", lambda device: device in h.disks)
    return h


@pytest.fixture
def target_root(tmp_path):
    root = tmp_path / "mnt"
    root.mkdir()
    return root


@pytest.fixture
def make_options(target_root):
    def _make(events, **kwargs):
        kwargs.setdefault("target_root", str(target_root))
        kwargs.setdefault("source", "/dist")
        return InstallOptions(groups=tuple(parse_topology(events)), **kwargs)

    return _make


@pytest.fixture
def os_installer():
    return RecordingOSInstaller()


@pytest.fixture
def boot_envs():
    return RecordingBootEnvs()
