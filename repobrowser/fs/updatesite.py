"""
Update-Site Store Source — update sites held in the SQLAlchemy document store.

Each catalog row becomes one filesystem laid out as:

    {site}/
    ├── features/{id}_{version}.jar
    ├── plugins/{id}_{version}.jar
    ├── content.xml
    └── artifacts.xml

content.xml and artifacts.xml are generated from the site's records on
first access. Binaries are extracted to a temporary file per open().
Store failures surface as BackendError; an unknown record kind as
ConfigurationError.
"""

from __future__ import annotations

import logging
import os
import tempfile
from typing import TYPE_CHECKING, BinaryIO, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from repobrowser.db.models import UNIT_KINDS, UnitRecord, UpdateSiteEntry
from repobrowser.db.session import session_scope
from repobrowser.engine.errors import BackendError, ConfigurationError
from repobrowser.fs.base import Filesystem, FilesystemProvider
from repobrowser.fs.resources import File, Folder, Resource, TempFileStream, join_path, split_path
from repobrowser.p2.documents import ARTIFACTS_XML, CONTENT_XML, RepositoryDocument
from repobrowser.p2.units import (
    JAR_MIME_TYPE,
    Feature,
    Plugin,
    PluginReference,
    RequiredFeature,
    pair_with_versions,
)
from repobrowser.p2.update_site import (
    SiteDescriptor,
    build_artifacts_document,
    build_content_document,
)

if TYPE_CHECKING:
    from repobrowser.engine.context import RequestContext

logger = logging.getLogger("repobrowser.fs.updatesite")

FEATURES_FOLDER = "features"
PLUGINS_FOLDER = "plugins"


class StoredBinaryContent:
    """
    A jar stored in unit_records.file_data.

    The size comes from the store without loading the blob. Each open()
    writes the blob to a temporary file that is deleted once read.
    """

    def __init__(
        self,
        session: Session,
        record_id: int,
        size: int,
        file_name: str,
        temp_dir: Optional[str] = None,
    ):
        self._session = session
        self._record_id = record_id
        self._size = size
        self._file_name = file_name
        self._temp_dir = temp_dir

    @property
    def size(self) -> int:
        return self._size

    @property
    def mime_type(self) -> str:
        return JAR_MIME_TYPE

    def open(self) -> BinaryIO:
        try:
            data = (
                self._session.query(UnitRecord.file_data)
                .filter(UnitRecord.id == self._record_id)
                .scalar()
            )
        except SQLAlchemyError as e:
            raise BackendError(
                f"Cannot read binary of record {self._record_id}: {e}",
                path=self._file_name,
                record_id=self._record_id,
            ) from e

        fd, temp_path = tempfile.mkstemp(prefix="repobrowser-", suffix=".jar", dir=self._temp_dir)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data or b"")
            return TempFileStream(temp_path)
        except OSError as e:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise BackendError(
                f"Cannot extract {self._file_name}: {e}",
                path=self._file_name,
                record_id=self._record_id,
            ) from e


class UpdateSiteFilesystem(Filesystem):
    """One update site. Owns a store session, released on close()."""

    def __init__(
        self,
        site: SiteDescriptor,
        site_id: int,
        session: Session,
        temp_dir: Optional[str] = None,
        request_id: Optional[str] = None,
    ):
        super().__init__(site.name)
        self.site = site
        self.site_id = site_id
        self._session = session
        self._temp_dir = temp_dir
        self._request_id = request_id
        self._units: Optional[Tuple[List[Feature], List[Plugin]]] = None
        self._documents: Dict[str, RepositoryDocument] = {}

    # ── Records ──

    def _load_units(self) -> Tuple[List[Feature], List[Plugin]]:
        """
        Features and plugins of the site, each ordered by unit id and then
        by insertion. Versions are free-form and are not compared.
        """
        try:
            rows = (
                self._session.query(UnitRecord, func.length(UnitRecord.file_data))
                .filter(UnitRecord.site_id == self.site_id)
                .order_by(UnitRecord.unit_id, UnitRecord.id)
                .all()
            )
        except SQLAlchemyError as e:
            raise BackendError(
                f"Cannot read records of site '{self.site.name}': {e}",
                filesystem=self.name,
                provider="update_sites",
            ) from e

        features: List[Feature] = []
        plugins: List[Plugin] = []
        fragments: List[Plugin] = []
        for record, size in rows:
            if record.kind not in UNIT_KINDS:
                raise ConfigurationError(
                    f"Unknown record kind '{record.kind}' in site '{self.site.name}'",
                    record_kind=record.kind,
                    filesystem=self.name,
                    record_id=record.id,
                )
            if not record.unit_id:
                continue
            if record.kind == "feature":
                if record.enabled:
                    features.append(self._feature(record, size or 0))
            elif record.kind == "fragment":
                fragments.append(self._plugin(record, size or 0))
            else:
                plugins.append(self._plugin(record, size or 0))

        logger.debug(
            f"Site '{self.site.name}': {len(features)} features, "
            f"{len(plugins)} plugins, {len(fragments)} fragments"
        )
        return features, plugins + fragments

    def _binary(self, record: UnitRecord, size: int, version: str) -> StoredBinaryContent:
        return StoredBinaryContent(
            self._session,
            record.id,
            size,
            record.file_name or f"{record.unit_id}_{version}.jar",
            self._temp_dir,
        )

    def _feature(self, record: UnitRecord, size: int) -> Feature:
        feature = Feature(
            id=record.unit_id,
            version=record.version,
            label=record.label or "",
            description=record.description or "",
            description_url=record.description_url or "",
            provider_name=record.provider_name or "",
            license=record.license or "",
            license_url=record.license_url or "",
            copyright=record.copyright or "",
            copyright_url=record.copyright_url or "",
            category=record.category or "",
            required_features=[
                RequiredFeature(id=rid, range=rng)
                for rid, rng in pair_with_versions(record.import_features, record.import_versions)
            ],
            plugins=[
                PluginReference(id=pid, version=ver)
                for pid, ver in pair_with_versions(record.plugin_ids, record.plugin_versions)
            ],
            last_modified=record.file_last_modified or 0,
        )
        feature.binary = self._binary(record, size, feature.version)
        return feature

    def _plugin(self, record: UnitRecord, size: int) -> Plugin:
        plugin = Plugin(
            id=record.unit_id,
            version=record.version,
            name=record.label or "",
            provider_name=record.provider_name or "",
            fragment=record.kind == "fragment",
            manifest=record.manifest or "",
            last_modified=record.file_last_modified or 0,
        )
        plugin.binary = self._binary(record, size, plugin.version)
        return plugin

    def units(self) -> Tuple[List[Feature], List[Plugin]]:
        if self._units is None:
            self._units = self._load_units()
        return self._units

    @property
    def features(self) -> List[Feature]:
        return self.units()[0]

    @property
    def plugins(self) -> List[Plugin]:
        return self.units()[1]

    def document(self, name: str) -> RepositoryDocument:
        """content.xml or artifacts.xml, generated once per instance."""
        if name not in self._documents:
            features, plugins = self.units()
            if name == CONTENT_XML:
                self._documents[name] = build_content_document(
                    self.site, features, plugins, self._request_id
                )
            elif name == ARTIFACTS_XML:
                self._documents[name] = build_artifacts_document(
                    self.site, features, plugins, self._request_id
                )
            else:
                raise KeyError(name)
        return self._documents[name]

    # ── Filesystem ──

    def list_entries(self, path: str) -> List[Resource]:
        segments = split_path(path)
        site = self.site.name
        stamp = self.site.timestamp

        if not segments:
            return [Folder(self, site, stamp)]
        if segments == [site]:
            entries: List[Resource] = [
                Folder(self, join_path(site, FEATURES_FOLDER), stamp),
                Folder(self, join_path(site, PLUGINS_FOLDER), stamp),
            ]
            for name in (CONTENT_XML, ARTIFACTS_XML):
                document = self.document(name)
                entries.append(File(self, join_path(site, name), document, document.last_modified))
            return entries
        if segments == [site, FEATURES_FOLDER]:
            return [self._unit_file(FEATURES_FOLDER, unit) for unit in self.features]
        if segments == [site, PLUGINS_FOLDER]:
            return [self._unit_file(PLUGINS_FOLDER, unit) for unit in self.plugins]
        return []

    def _unit_file(self, folder: str, unit) -> File:
        path = join_path(join_path(self.site.name, folder), unit.file_name)
        return File(self, path, unit.binary, unit.last_modified)

    def folder_exists(self, path: str) -> bool:
        segments = split_path(path)
        if not segments or segments[0] != self.site.name:
            return False
        return len(segments) == 1 or (
            len(segments) == 2 and segments[1] in (FEATURES_FOLDER, PLUGINS_FOLDER)
        )

    def folder_last_modified(self, path: str) -> int:
        return self.site.timestamp if split_path(path) else 0

    def _do_close(self) -> None:
        self._session.close()

    def __repr__(self) -> str:
        return f"<UpdateSiteFilesystem(name='{self.name}', site_id={self.site_id})>"


class UpdateSiteStoreProvider(FilesystemProvider):
    """One UpdateSiteFilesystem per catalog row, ordered by name."""

    name = "update_sites"

    def __init__(self, session_factory: sessionmaker, temp_dir: Optional[str] = None):
        self._session_factory = session_factory
        self._temp_dir = temp_dir

    def _catalog(self) -> List[Tuple[int, SiteDescriptor]]:
        with session_scope(self._session_factory) as session:
            rows = session.query(UpdateSiteEntry).order_by(UpdateSiteEntry.name).all()
            return [
                (row.id, SiteDescriptor(
                    name=row.name,
                    title=row.title or row.name,
                    timestamp=row.last_modified or 0,
                ))
                for row in rows
                if row.name
            ]

    def get_filesystems(self, context: "RequestContext") -> Iterable[Filesystem]:
        filesystems: List[Filesystem] = []
        try:
            for site_id, site in self._catalog():
                filesystems.append(UpdateSiteFilesystem(
                    site,
                    site_id,
                    self._session_factory(),
                    self._temp_dir,
                    context.request_id,
                ))
        except SQLAlchemyError as e:
            for filesystem in filesystems:
                filesystem.close()
            raise BackendError(
                f"Cannot read update site catalog: {e}",
                provider=self.name,
                request_id=context.request_id,
            ) from e
        return filesystems
