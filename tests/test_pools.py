"""Unit tests for PoolRegistry."""

from pathlib import Path

import pytest

from poolbox.discovery.pools import PoolRegistry, normalize_alias
from poolbox.exceptions import DuplicatePoolError, PoolboxError
from poolbox.observability.audit import MemoryAuditSink


class TestNormalizeAlias:

    @pytest.mark.parametrize("alias", ["docs", "@docs", "@@docs", " @docs "])
    def test_single_at(self, alias):
        assert normalize_alias(alias) == "@docs"

    @pytest.mark.parametrize("alias", ["", "@", "a/b", "@a\\b"])
    def test_invalid(self, alias):
        with pytest.raises(PoolboxError):
            normalize_alias(alias)


class TestPoolRegistry:
    """Test registration, scanning and the manifest cache."""

    def test_register_scans_pool(self, pool_root):
        registry = PoolRegistry()

        pool = registry.register_pool("shared", pool_root)

        assert pool.alias == "@shared"
        assert pool.root == pool_root.resolve()
        assert not pool.writable
        assert [m.alias_path for m in registry.manifests()] == ["@shared/pdf", "@shared/video"]
        assert registry.manifest("@shared/video/").description == "Cut and merge video clips"

    def test_duplicate_alias(self, pool_root, tmp_path):
        registry = PoolRegistry()
        registry.register_pool("@shared", pool_root)

        with pytest.raises(DuplicatePoolError):
            registry.register_pool("shared", tmp_path)

    def test_pool_may_not_exist_yet(self, tmp_path):
        registry = PoolRegistry()

        registry.register_pool("@later", tmp_path / "later")

        assert registry.manifests() == []
        assert registry.get("@later") is not None

    def test_refresh_replaces_cache(self, pool_root, make_manifest):
        registry = PoolRegistry()
        registry.register_pool("@shared", pool_root)
        make_manifest(pool_root / "audio", "Mix audio")

        assert registry.manifest("@shared/audio") is None
        assert registry.refresh() == 3
        assert registry.manifest("@shared/audio").description == "Mix audio"

    def test_refresh_drops_deleted(self, pool_root):
        registry = PoolRegistry()
        registry.register_pool("@shared", pool_root)
        (pool_root / "pdf" / "SKILL.md").unlink()

        registry.refresh()

        assert [m.alias_path for m in registry.manifests()] == ["@shared/video"]

    def test_unregister(self, pool_root, tmp_path, make_manifest):
        make_manifest(tmp_path / "other" / "x", "other")
        registry = PoolRegistry()
        registry.register_pool("@shared", pool_root)
        registry.register_pool("@shared2", tmp_path / "other")

        assert registry.unregister_pool("@shared")
        assert not registry.unregister_pool("@shared")
        assert [m.alias_path for m in registry.manifests()] == ["@shared2/x"]

    def test_env_vars(self, tmp_path):
        registry = PoolRegistry()
        registry.register_pool("@my-docs", tmp_path / "docs")

        assert registry.env_vars() == {"MY_DOCS": str((tmp_path / "docs").resolve())}

    def test_pools_in_registration_order(self, tmp_path):
        registry = PoolRegistry()
        registry.register_pool("@b", tmp_path / "b")
        registry.register_pool("@a", tmp_path / "a")

        assert [p.alias for p in registry.pools()] == ["@b", "@a"]

    def test_scan_audited(self, pool_root):
        sink = MemoryAuditSink()
        registry = PoolRegistry(audit_sink=sink, box_id="s1")

        registry.register_pool("@shared", pool_root)

        event = sink.events[0]
        assert (event.kind, event.box, event.path) == ("scan", "s1", "@shared")
        assert event.detail == {"manifests": 2}

    def test_registries_are_independent(self, pool_root):
        first, second = PoolRegistry(), PoolRegistry()
        first.register_pool("@shared", pool_root)

        assert second.manifests() == []
        assert second.get("@shared") is None
