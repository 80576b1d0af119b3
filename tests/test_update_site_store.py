"""Integration tests for the update-site store source against an in-memory SQLite store."""

import os
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from repobrowser.db.models import UnitRecord, UpdateSiteEntry
from repobrowser.engine.context import RequestContext
from repobrowser.engine.errors import BackendError, ConfigurationError, UnsupportedOperationError
from repobrowser.fs.registry import FilesystemRegistry
from repobrowser.fs.resolver import resolve
from repobrowser.fs.updatesite import UpdateSiteFilesystem, UpdateSiteStoreProvider


def _sites(factory, context, temp_dir=None):
    return list(UpdateSiteStoreProvider(factory, temp_dir).get_filesystems(context))


def _core(factory, context, temp_dir=None):
    return [fs for fs in _sites(factory, context, temp_dir) if fs.name == "core"][0]


class TestCatalog:

    def test_one_filesystem_per_named_site(self, seeded_store, context):
        sites = _sites(seeded_store, context)
        assert [fs.name for fs in sites] == ["addons", "core"]
        assert all(isinstance(fs, UpdateSiteFilesystem) for fs in sites)

    def test_site_descriptor(self, seeded_store, context):
        core = _core(seeded_store, context)
        assert core.site.title == "Core Site"
        assert core.site.timestamp == 1700000000000

    def test_title_defaults_to_name(self, store, context):
        session = store()
        session.add(UpdateSiteEntry(name="untitled", title=None, last_modified=5))
        session.commit()
        session.close()
        (site,) = _sites(store, context)
        assert site.site.display_title == "untitled"

    def test_catalog_failure_wrapped(self, context):
        factory = MagicMock()
        factory.return_value.query.side_effect = OperationalError("SELECT", {}, Exception("store down"))
        with pytest.raises(BackendError) as exc_info:
            _sites(factory, context)
        assert exc_info.value.provider == "update_sites"
        assert exc_info.value.request_id == "req_test"

    def test_empty_store(self, store, context):
        assert _sites(store, context) == []


class TestLayout:

    def test_root_lists_site_folder(self, seeded_store, context):
        core = _core(seeded_store, context)
        (entry,) = core.list_entries("")
        assert entry.is_folder
        assert entry.name == "core"
        assert entry.last_modified == 1700000000000

    def test_site_folder(self, seeded_store, context):
        core = _core(seeded_store, context)
        names = [e.name for e in core.list_entries("core")]
        assert names == ["features", "plugins", "content.xml", "artifacts.xml"]

    def test_features_skip_disabled(self, seeded_store, context):
        core = _core(seeded_store, context)
        files = core.list_entries("core/features")
        assert [f.name for f in files] == ["com.example.feat_1.0.0.jar"]
        assert files[0].size == 10
        assert files[0].mime_type == "application/java-archive"
        assert files[0].last_modified == 1700000001000

    def test_plugins_before_fragments(self, seeded_store, context):
        core = _core(seeded_store, context)
        names = [f.name for f in core.list_entries("core/plugins")]
        assert names == [
            "com.example.bundle_1.0.0.jar",
            "com.example.bundle.nl_1.0.0.jar",
            "com.example.orphan.nl_2.0.0.jar",
        ]

    def test_folder_exists(self, seeded_store, context):
        core = _core(seeded_store, context)
        assert core.folder_exists("core")
        assert core.folder_exists("core/features")
        assert core.folder_exists("core/plugins/")
        assert not core.folder_exists("core/binary")
        assert not core.folder_exists("addons")
        assert core.list_entries("core/binary") == []

    def test_resolve_unit_file(self, seeded_store, context):
        core = _core(seeded_store, context)
        found = resolve(core, "core/plugins/com.example.bundle_1.0.0.jar")
        assert found is not None and not found.is_folder
        assert resolve(core, "core/plugins/missing.jar") is None
        assert resolve(core, "core/content.xml/x") is None

    def test_empty_site(self, seeded_store, context):
        addons = [fs for fs in _sites(seeded_store, context) if fs.name == "addons"][0]
        assert addons.list_entries("addons/features") == []
        assert addons.list_entries("addons/plugins") == []

    def test_merged_with_registry(self, seeded_store):
        registry = FilesystemRegistry()
        registry.register(UpdateSiteStoreProvider(seeded_store))
        with RequestContext() as ctx:
            assert [e.name for e in registry.merged_listing(ctx, "")] == ["addons", "core"]
            found = registry.find_resource(ctx, "core/content.xml")
            assert found.mime_type == "text/xml"

    def test_write_refused(self, seeded_store, context):
        core = _core(seeded_store, context)
        assert core.is_readonly()
        with pytest.raises(UnsupportedOperationError):
            core.delete("core/content.xml")


class TestBinaries:

    def test_open_extracts_to_temp_file(self, seeded_store, context, tmp_path):
        core = _core(seeded_store, context, temp_dir=str(tmp_path))
        file = resolve(core, "core/features/com.example.feat_1.0.0.jar")
        with file.open() as stream:
            temp_path = stream.temp_path
            assert os.path.dirname(temp_path) == str(tmp_path)
            assert os.path.exists(temp_path)
            assert stream.read() == b"FEATUREJAR"
        assert not os.path.exists(temp_path)

    def test_temp_file_deleted_at_end_of_stream(self, seeded_store, context, tmp_path):
        core = _core(seeded_store, context, temp_dir=str(tmp_path))
        file = resolve(core, "core/plugins/com.example.bundle_1.0.0.jar")
        stream = file.open()
        temp_path = stream.temp_path
        while stream.read(4):
            pass
        assert not os.path.exists(temp_path)

    def test_each_open_is_fresh(self, seeded_store, context):
        core = _core(seeded_store, context)
        file = resolve(core, "core/plugins/com.example.bundle.nl_1.0.0.jar")
        assert file.read_bytes() == b"NLJAR"
        assert file.read_bytes() == b"NLJAR"


class TestRecords:

    def test_feature_fields(self, seeded_store, context):
        core = _core(seeded_store, context)
        (feature,) = core.features
        assert feature.label == "Example Feature"
        assert [(r.id, r.range) for r in feature.required_features] == [("com.example.dep", "0.0.0")]
        assert [(p.id, p.version) for p in feature.plugins] == [("com.example.bundle", "1.0.0")]

    def test_plugin_name_from_label(self, seeded_store, context):
        core = _core(seeded_store, context)
        assert core.plugins[0].name == "Example Bundle"
        assert [p.fragment for p in core.plugins] == [False, True, True]

    def test_unknown_kind_rejected(self, seeded_store, context):
        session = seeded_store()
        core_id = session.query(UpdateSiteEntry.id).filter(UpdateSiteEntry.name == "core").scalar()
        session.add(UnitRecord(site_id=core_id, kind="widget", unit_id="com.example.widget"))
        session.commit()
        session.close()

        core = _core(seeded_store, context)
        with pytest.raises(ConfigurationError) as exc_info:
            core.list_entries("core/features")
        assert exc_info.value.record_kind == "widget"

    def test_same_id_kept_in_store_order(self, store, context):
        session = store()
        site = UpdateSiteEntry(name="core")
        site.records.extend([
            UnitRecord(kind="plugin", unit_id="com.example.b", version="1.9.0"),
            UnitRecord(kind="plugin", unit_id="com.example.b", version="1.10.0"),
            UnitRecord(kind="plugin", unit_id="com.example.a", version="2.0.0"),
        ])
        session.add(site)
        session.commit()
        session.close()

        (core,) = _sites(store, context)
        assert [(p.id, p.version) for p in core.plugins] == [
            ("com.example.a", "2.0.0"),
            ("com.example.b", "1.9.0"),
            ("com.example.b", "1.10.0"),
        ]

    def test_records_without_id_skipped(self, seeded_store, context):
        session = seeded_store()
        core_id = session.query(UpdateSiteEntry.id).filter(UpdateSiteEntry.name == "core").scalar()
        session.add(UnitRecord(site_id=core_id, kind="plugin", unit_id=""))
        session.commit()
        session.close()

        core = _core(seeded_store, context)
        assert len(core.plugins) == 3


class TestGeneratedDocuments:

    def test_content_units(self, seeded_store, context):
        core = _core(seeded_store, context)
        root = resolve(core, "core/content.xml").content.parse()
        units = root.find("units")
        assert units.get("size") == "4"
        assert [u.get("id") for u in units] == [
            "com.example.feat.feature.group",
            "com.example.bundle",
            "com.example.bundle.nl",
            "com.example.orphan.nl",
        ]

    def test_fragment_hosts(self, seeded_store, context):
        core = _core(seeded_store, context)
        root = resolve(core, "core/content.xml").content.parse()
        hosts = {
            u.get("id"): u.find("provides")[-1]
            for u in root.find("units") if u.get("id").endswith(".nl")
        }
        assert hosts["com.example.bundle.nl"].get("version") == "1.0.0"
        assert hosts["com.example.orphan.nl"].get("name") == "com.example.missing"
        assert hosts["com.example.orphan.nl"].get("version") == "0.0.0"

    def test_timestamp_and_title(self, seeded_store, context):
        core = _core(seeded_store, context)
        file = resolve(core, "core/artifacts.xml")
        root = file.content.parse()
        assert root.get("name") == "Core Site Artifacts"
        props = {p.get("name"): p.get("value") for p in root.find("properties")}
        assert props["p2.timestamp"] == "1700000000000"
        assert file.last_modified == 1700000000000

    def test_artifact_sizes_from_store(self, seeded_store, context):
        core = _core(seeded_store, context)
        root = resolve(core, "core/artifacts.xml").content.parse()
        sizes = {
            a.get("id"): {p.get("name"): p.get("value") for p in a.find("properties")}["artifact.size"]
            for a in root.find("artifacts")
        }
        assert sizes == {
            "com.example.feat": "10",
            "com.example.bundle": "10",
            "com.example.bundle.nl": "5",
            "com.example.orphan.nl": "6",
        }

    def test_documents_generated_once(self, seeded_store, context):
        core = _core(seeded_store, context)
        assert core.document("content.xml") is core.document("content.xml")
        with pytest.raises(KeyError):
            core.document("compositeContent.xml")


class TestLifecycle:

    def test_close_idempotent(self, seeded_store, context):
        core = _core(seeded_store, context)
        core.close()
        core.close()
        assert core.closed

    def test_closed_with_context(self, seeded_store):
        registry = FilesystemRegistry()
        registry.register(UpdateSiteStoreProvider(seeded_store))
        with RequestContext() as ctx:
            sites = registry.get_filesystems(ctx)
        assert all(fs.closed for fs in sites)
