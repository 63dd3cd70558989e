"""Tests for lib/zpool.py: version gating, name checks and the create argv."""

import pytest

from zfsinstall.errors import ConfigurationError, PreconditionError
from zfsinstall.lib import zpool
from zfsinstall.lib.partition import PartitionedDevice
from zfsinstall.lib.topology import RedundancyGroup, RedundancyMode


ZPOOL_IMPORT = """\
   pool: zroot
     id: 15744924744405325367
  state: ONLINE
 action: The pool can be imported using its name or numeric identifier.
 config:

\tzroot                                         ONLINE
\t  gptid/0d4e7f21-5a5f-11e9-9a3e-0cc47a8b1a7e  ONLINE

   pool: backup
     id: 902938478289923312
  state: ONLINE
 action: The pool can be imported using its name or numeric identifier.
 config:

\tbackup      ONLINE
\t  ada2      ONLINE
"""


class TestResolveVersion:
    def test_default_is_module_max_and_sentinel_omits(self):
        assert zpool.resolve_version(None, 5000, compat=False) is None

    def test_default_legacy_module(self):
        assert zpool.resolve_version(None, 28, compat=False) == 28

    def test_explicit_lower_version(self):
        assert zpool.resolve_version(28, 5000, compat=False) == 28

    def test_explicit_sentinel_omits(self):
        assert zpool.resolve_version(5000, 5000, compat=False) is None

    def test_above_module_max(self):
        with pytest.raises(ConfigurationError, match="exceeds the module maximum 28"):
            zpool.resolve_version(5000, 28, compat=False)

    def test_compat_with_feature_flags(self):
        assert zpool.resolve_version(None, 5000, compat=True) is None

    def test_compat_with_legacy_module(self):
        with pytest.raises(ConfigurationError, match="Compatibility mode"):
            zpool.resolve_version(None, 28, compat=True)

    def test_compat_with_explicit_legacy_version(self):
        with pytest.raises(ConfigurationError):
            zpool.resolve_version(28, 5000, compat=True)


class TestModuleVersion:
    def test_reads_sysctl(self, host):
        host.spa_version = 28
        assert zpool.module_max_version() == 28

    def test_module_missing(self, host):
        host.spa_version = None
        with pytest.raises(PreconditionError, match="ZFS kernel support"):
            zpool.module_max_version()

    def test_too_old(self, host):
        host.spa_version = 6
        with pytest.raises(PreconditionError, match="too old"):
            zpool.module_max_version()

    def test_garbage_output(self):
        with pytest.raises(PreconditionError):
            zpool.parse_module_version("unknown\n")


class TestPoolNames:
    @pytest.mark.parametrize("name", ["zroot", "tank0", "sys.pool", "a-b_c"])
    def test_valid(self, name):
        assert zpool.validate_pool_name(name) == name

    @pytest.mark.parametrize("name", ["", "0pool", "my pool", "mirror0", "raidz", "log", "spare1"])
    def test_invalid(self, name):
        with pytest.raises(ConfigurationError):
            zpool.validate_pool_name(name)

    def test_parse_importable(self):
        assert zpool.parse_importable_pools(ZPOOL_IMPORT) == ["zroot", "backup"]

    def test_available(self, host):
        zpool.check_pool_name_available("zroot")

    def test_already_imported(self, host):
        host.imported.append("zroot")
        with pytest.raises(ConfigurationError, match="already imported"):
            zpool.check_pool_name_available("zroot")

    def test_importable(self, host):
        host.importable.append("zroot")
        with pytest.raises(ConfigurationError, match="can be imported"):
            zpool.check_pool_name_available("zroot")


class TestAssemble:
    def _partitioned(self, *devices):
        return [PartitionedDevice(d, f"gptid/{d}-uuid") for d in devices]

    def test_stripe_of_mirrors(self):
        groups = [
            RedundancyGroup(RedundancyMode.MIRROR, ("da0", "da1")),
            RedundancyGroup(RedundancyMode.MIRROR, ("da2", "da3")),
        ]
        vdevs = zpool.assemble_vdevs(groups, self._partitioned("da0", "da1", "da2", "da3"))
        argv = [a for v in vdevs for a in v.argv()]
        assert argv == [
            "mirror", "/dev/gptid/da0-uuid", "/dev/gptid/da1-uuid",
            "mirror", "/dev/gptid/da2-uuid", "/dev/gptid/da3-uuid",
        ]

    def test_stripe_members_are_bare(self):
        groups = [RedundancyGroup(RedundancyMode.STRIPE, ("da0", "da1"))]
        vdevs = zpool.assemble_vdevs(groups, self._partitioned("da0", "da1"))
        assert vdevs[0].argv() == ["/dev/gptid/da0-uuid", "/dev/gptid/da1-uuid"]

    def test_missing_device(self):
        groups = [RedundancyGroup(RedundancyMode.STRIPE, ("da0", "da1"))]
        with pytest.raises(ConfigurationError, match="da1"):
            zpool.assemble_vdevs(groups, self._partitioned("da0"))


class TestCreateArgv:
    def _spec(self, **kwargs):
        vdev = zpool.VdevSpec(RedundancyMode.RAIDZ2, ("gptid/a", "gptid/b", "gptid/c", "gptid/d"))
        kwargs.setdefault("altroot", "/mnt")
        kwargs.setdefault("cachefile", "/tmp/zpool.cache")
        return zpool.PoolSpec(name="zroot", vdevs=(vdev,), **kwargs)

    def test_minimal(self):
        assert self._spec().create_argv() == [
            "zpool", "create", "-f", "-m", "none",
            "-o", "altroot=/mnt", "-o", "cachefile=/tmp/zpool.cache",
            "zroot", "raidz2", "/dev/gptid/a", "/dev/gptid/b", "/dev/gptid/c", "/dev/gptid/d",
        ]

    def test_version_and_properties(self):
        argv = self._spec(version=28, fs_properties={"compression": "lzjb", "checksum": "fletcher4"}).create_argv()
        assert argv[argv.index("version=28") - 1] == "-o"
        assert "compression=lzjb" in argv
        assert "checksum=fletcher4" in argv
        assert argv.index("checksum=fletcher4") < argv.index("zroot")

    def test_compat_enables_exactly_three_features(self):
        argv = self._spec(compat=True).create_argv()
        assert "-d" in argv
        features = [a for a in argv if a.startswith("feature@")]
        assert features == [
            "feature@async_destroy=enabled",
            "feature@empty_bpobj=enabled",
            "feature@lz4_compress=enabled",
        ]
        assert not any(a.startswith("version=") for a in argv)
