"""
Repository Browser Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

from pathlib import Path

import pytest


SAMPLE_MANIFEST = (
    "Manifest-Version: 1.0\n"
    "Bundle-SymbolicName: com.example.bundle;singleton:=true\n"
    "Bundle-Version: 1.0.0\n"
    "Require-Bundle: org.eclipse.core.runtime;bundle-version=\"[3.4.0,4.0.0)\",\n"
    " org.eclipse.ui;resolution:=optional\n"
    "Import-Package: javax.servlet;version=\"2.5.0\",\n"
    " org.osgi.framework\n"
)

FRAGMENT_MANIFEST = (
    "Manifest-Version: 1.0\n"
    "Bundle-SymbolicName: com.example.bundle.nl\n"
    "Fragment-Host: com.example.bundle;bundle-version=\"1.0.0\"\n"
)

ORPHAN_FRAGMENT_MANIFEST = (
    "Manifest-Version: 1.0\n"
    "Bundle-SymbolicName: com.example.orphan.nl\n"
    "Fragment-Host: com.example.missing\n"
)


# ---------------------------------------------------------------------------
# Global state isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_globals():
    """Reset global singletons between tests."""
    import repobrowser.engine.config as cfg_mod
    from repobrowser.engine.logging import shutdown_logging

    cfg_mod._config = None
    shutdown_logging()
    yield
    cfg_mod._config = None
    shutdown_logging()


@pytest.fixture
def context():
    """A fresh RequestContext, closed after the test."""
    from repobrowser.engine.context import RequestContext

    ctx = RequestContext(request_id="req_test")
    yield ctx
    ctx.close()


# ---------------------------------------------------------------------------
# Local directory trees
# ---------------------------------------------------------------------------

@pytest.fixture
def local_repo(tmp_path) -> Path:
    """
    A repository directory:

        repo/
        ├── Alpha.txt
        ├── zeta.txt
        ├── b_folder/
        ├── A_folder/
        ├── a/content.jar, a/artifacts.jar
        └── b/sub/content.xml, b/sub/artifacts.xml
    """
    root = tmp_path / "repo"
    root.mkdir()
    (root / "Alpha.txt").write_text("alpha", encoding="utf-8")
    (root / "zeta.txt").write_text("zeta", encoding="utf-8")
    (root / "b_folder").mkdir()
    (root / "A_folder").mkdir()
    (root / "a").mkdir()
    (root / "a" / "content.jar").write_bytes(b"PK\x03\x04content")
    (root / "a" / "artifacts.jar").write_bytes(b"PK\x03\x04artifacts")
    (root / "b" / "sub").mkdir(parents=True)
    (root / "b" / "sub" / "content.xml").write_text("<repository/>", encoding="utf-8")
    (root / "b" / "sub" / "artifacts.xml").write_text("<repository/>", encoding="utf-8")
    return root


# ---------------------------------------------------------------------------
# Document store
# ---------------------------------------------------------------------------

@pytest.fixture
def store():
    """An empty in-memory SQLite store; returns the session factory."""
    from repobrowser.db.session import init_store

    return init_store("sqlite://", create_tables=True)


@pytest.fixture
def seeded_store(store):
    """
    Store with sites "core" (units), "addons" (empty) and a nameless row.

    core:
      feature  com.example.feat 1.0.0 (requires com.example.dep, embeds com.example.bundle)
      feature  com.example.off  (disabled)
      plugin   com.example.bundle 1.0.0
      fragment com.example.bundle.nl 1.0.0 (host com.example.bundle)
      fragment com.example.orphan.nl 2.0.0 (host absent)
    """
    from repobrowser.db.models import UnitRecord, UpdateSiteEntry

    session = store()
    core = UpdateSiteEntry(name="core", title="Core Site", last_modified=1700000000000)
    addons = UpdateSiteEntry(name="addons", title="Add-ons", last_modified=1600000000000)
    nameless = UpdateSiteEntry(name="", title="Nameless", last_modified=0)
    session.add_all([core, addons, nameless])
    session.flush()

    session.add_all([
        UnitRecord(
            site_id=core.id, kind="feature", unit_id="com.example.feat", version="1.0.0",
            label="Example Feature", description="An example", description_url="http://example.com/feat",
            provider_name="Example", license="Apache 2.0", license_url="http://example.com/license",
            copyright="(c) Example", copyright_url="http://example.com/copyright",
            enabled=True,
            import_features=["com.example.dep", ""], import_versions=[],
            plugin_ids=["com.example.bundle"], plugin_versions=["1.0.0"],
            file_name="com.example.feat_1.0.0.jar", file_data=b"FEATUREJAR",
            file_last_modified=1700000001000,
        ),
        UnitRecord(
            site_id=core.id, kind="feature", unit_id="com.example.off", version="0.1.0",
            enabled=False, file_data=b"OFF",
        ),
        UnitRecord(
            site_id=core.id, kind="fragment", unit_id="com.example.bundle.nl", version="1.0.0",
            label="Bundle NL", provider_name="Example", manifest=FRAGMENT_MANIFEST,
            file_data=b"NLJAR", file_last_modified=1700000003000,
        ),
        UnitRecord(
            site_id=core.id, kind="fragment", unit_id="com.example.orphan.nl", version="2.0.0",
            label="Orphan NL", manifest=ORPHAN_FRAGMENT_MANIFEST, file_data=b"ORPHAN",
        ),
        UnitRecord(
            site_id=core.id, kind="plugin", unit_id="com.example.bundle", version="1.0.0",
            label="Example Bundle", provider_name="Example", manifest=SAMPLE_MANIFEST,
            file_data=b"PK\x03\x04bundle", file_last_modified=1700000002000,
        ),
    ])
    session.commit()
    session.close()
    return store


@pytest.fixture
def translator():
    from repobrowser.engine.translation import load_translation_set

    return load_translation_set()
