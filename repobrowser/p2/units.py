"""
Software Unit Models — Features and Plugins as published by an update site.

Feature: an installable group of plugins with license and copyright text.
Plugin: an OSGi bundle (or fragment) with its verbatim MANIFEST.MF.

Versions are free-form strings and are never validated; an absent version
becomes "0.0.0". The backing binary is any FileContent and is excluded from
serialization.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from repobrowser.engine.errors import ConfigurationError
from repobrowser.p2.manifest import Manifest, parse_manifest

logger = logging.getLogger("repobrowser.p2.units")

DEFAULT_VERSION = "0.0.0"
JAR_MIME_TYPE = "application/java-archive"


def pair_with_versions(
    ids: Optional[Sequence[Any]],
    versions: Optional[Sequence[Any]],
    default: str = DEFAULT_VERSION,
) -> List[Tuple[str, str]]:
    """
    Zip parallel id/version lists.

    A missing or empty companion version becomes default; entries with an
    empty id are skipped.
    """
    ids = list(ids or [])
    versions = list(versions or [])
    pairs: List[Tuple[str, str]] = []
    for i, raw_id in enumerate(ids):
        unit_id = str(raw_id).strip() if raw_id is not None else ""
        if not unit_id:
            continue
        version = versions[i] if i < len(versions) else None
        pairs.append((unit_id, str(version) if version else default))
    return pairs


class RequiredFeature(BaseModel):
    id: str
    range: str = DEFAULT_VERSION


class PluginReference(BaseModel):
    id: str
    version: str = DEFAULT_VERSION


class Requirement(BaseModel):
    """A (name, range) pair read from a manifest header."""
    name: str
    range: str = DEFAULT_VERSION


# ---------------------------------------------------------------------------
# Units
# ---------------------------------------------------------------------------

class SoftwareUnit(BaseModel):
    """Common attributes of features and plugins."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str = Field(description="Symbolic name")
    version: str = Field(default=DEFAULT_VERSION, description="Free-form version string")
    last_modified: int = Field(default=0, description="Binary modification time, epoch ms")
    binary: Optional[Any] = Field(default=None, exclude=True, description="FileContent of the jar")

    @field_validator("version", mode="before")
    @classmethod
    def default_version(cls, v: Any) -> str:
        return str(v) if v else DEFAULT_VERSION

    @property
    def file_name(self) -> str:
        return f"{self.id}_{self.version}.jar"

    @property
    def size(self) -> int:
        return self.binary.size if self.binary is not None else 0

    @property
    def mime_type(self) -> str:
        return getattr(self.binary, "mime_type", None) or JAR_MIME_TYPE


class Feature(SoftwareUnit):
    """An Eclipse feature: a named group of plugins."""

    label: str = ""
    description: str = ""
    description_url: str = ""
    provider_name: str = ""
    license: str = ""
    license_url: str = ""
    copyright: str = ""
    copyright_url: str = ""
    category: str = ""
    required_features: List[RequiredFeature] = Field(default_factory=list)
    plugins: List[PluginReference] = Field(default_factory=list)

    @property
    def group_id(self) -> str:
        return f"{self.id}.feature.group"

    @property
    def jar_id(self) -> str:
        return f"{self.id}.feature.jar"

    def __repr__(self) -> str:
        return f"<Feature(id='{self.id}', version='{self.version}')>"


class Plugin(SoftwareUnit):
    """An OSGi bundle or fragment."""

    name: str = ""
    provider_name: str = ""
    fragment: bool = False
    manifest: str = Field(default="", description="Verbatim MANIFEST.MF text")

    _parsed: Optional[Manifest] = PrivateAttr(default=None)

    def parsed_manifest(self) -> Manifest:
        if self._parsed is None:
            self._parsed = parse_manifest(self.manifest)
        return self._parsed

    def fragment_host(self) -> Optional[str]:
        """
        Host bundle id of a fragment, None for plain plugins.

        Raises:
            ConfigurationError: If a fragment has no Fragment-Host header.
        """
        if not self.fragment:
            return None
        elements = self.parsed_manifest().elements("Fragment-Host")
        if not elements:
            raise ConfigurationError(
                f"Fragment '{self.id}' has no Fragment-Host header",
                header="Fragment-Host",
                unit_id=self.id,
            )
        return elements[0].values[0]

    def required_bundles(self) -> List[Requirement]:
        """Non-optional Require-Bundle entries."""
        return self._requirements("Require-Bundle", ("bundle-version", "version"))

    def imported_packages(self) -> List[Requirement]:
        """Non-optional Import-Package entries."""
        return self._requirements("Import-Package", ("version",))

    def _requirements(self, header: str, version_attributes: Tuple[str, ...]) -> List[Requirement]:
        result: List[Requirement] = []
        for element in self.parsed_manifest().elements(header):
            if element.is_optional:
                continue
            declared = next(
                (element.attribute(a) for a in version_attributes if element.attribute(a)),
                None,
            )
            for name in element.values:
                result.append(Requirement(name=name, range=declared or DEFAULT_VERSION))
        return result

    def __repr__(self) -> str:
        kind = "Fragment" if self.fragment else "Plugin"
        return f"<{kind}(id='{self.id}', version='{self.version}')>"
