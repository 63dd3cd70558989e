"""Tests for lib/bootconf.py, lib/fstab.py and lib/distribution.py."""

import pytest

from zfsinstall.errors import PreconditionError
from zfsinstall.lib import bootconf
from zfsinstall.lib.distribution import TarballInstaller, is_url
from zfsinstall.lib.fstab import FstabEntry, render_fstab


def test_render_fstab():
    text = render_fstab([FstabEntry("/dev/gptid/abc", "none", "swap", "sw")])
    assert text.splitlines()[0].startswith("# Device")
    assert text.splitlines()[1] == "/dev/gptid/abc\tnone\tswap\tsw\t0\t0"


def test_fstab_entries_order():
    entries = bootconf.fstab_entries(swap_label="gptid/abc", root_dataset="zroot/root")
    assert [e.spec for e in entries] == ["zroot/root", "/dev/gptid/abc"]
    assert bootconf.fstab_entries(swap_label=None, root_dataset=None) == []


def test_no_fstab_without_entries(tmp_path):
    assert bootconf.write_fstab(target_root=str(tmp_path), entries=[]) is None
    assert not (tmp_path / "etc").exists()


def test_loader_conf_appends_once(tmp_path):
    cfg = tmp_path / "boot/loader.conf"
    cfg.parent.mkdir()
    cfg.write_text('autoboot_delay="3"')

    bootconf.write_loader_conf(target_root=str(tmp_path))
    bootconf.write_loader_conf(target_root=str(tmp_path))

    assert cfg.read_text() == 'autoboot_delay="3"\nzfs_load="YES"\n'


def test_loader_conf_legacy_root(tmp_path):
    bootconf.write_loader_conf(target_root=str(tmp_path), root_dataset="tank/root")
    lines = (tmp_path / "boot/loader.conf").read_text().splitlines()
    assert lines == ['zfs_load="YES"', 'vfs.root.mountfrom="zfs:tank/root"']


def test_rc_conf(tmp_path):
    bootconf.enable_zfs_rc(target_root=str(tmp_path))
    assert (tmp_path / "etc/rc.conf").read_text() == 'zfs_enable="YES"\n'


class TestTarballInstaller:
    @pytest.mark.parametrize(
        "source,expected",
        [
            ("ftp://ftp.freebsd.org/pub/FreeBSD/releases/amd64/14.1-RELEASE", True),
            ("https://download.freebsd.org/releases/amd64/14.1-RELEASE/", True),
            ("/usr/freebsd-dist", False),
            ("file.txz", False),
        ],
    )
    def test_is_url(self, source, expected):
        assert is_url(source) is expected

    def test_missing_sets(self, tmp_path):
        (tmp_path / "base.txz").write_bytes(b"")
        with pytest.raises(PreconditionError, match="kernel.txz"):
            TarballInstaller(str(tmp_path)).check()

    def test_local_extract(self, host, tmp_path):
        TarballInstaller("/usr/freebsd-dist").install(str(tmp_path))
        assert host.calls == [
            ["tar", "-xpf", "/usr/freebsd-dist/base.txz", "-C", str(tmp_path)],
            ["tar", "-xpf", "/usr/freebsd-dist/kernel.txz", "-C", str(tmp_path)],
        ]

    def test_fetch_then_extract(self, host, tmp_path):
        TarballInstaller("https://mirror.example.org/14.1/", sets=("base.txz",)).install(str(tmp_path))
        fetch, extract = host.calls
        assert fetch[:2] == ["fetch", "-o"]
        assert fetch[-1] == "https://mirror.example.org/14.1/base.txz"
        assert extract[:3] == ["tar", "-xpf", fetch[2]]
