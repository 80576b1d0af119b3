"""
Update-Site Metadata Generator — content.xml and artifacts.xml for one site.

Input is a SiteDescriptor plus the site's ordered Feature and Plugin lists.
Values are copied verbatim; no version or range validation is done.
Any ConfigurationError raised while building aborts the document.
"""

from __future__ import annotations

import logging
import time
import xml.etree.ElementTree as ET
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel

from repobrowser.engine.logging import log, log_document_generated
from repobrowser.p2.documents import (
    ARTIFACTS_XML,
    CONTENT_XML,
    RepositoryDocument,
    add_properties,
    close_size,
    new_repository,
    serialize,
    sized,
    text_element,
)
from repobrowser.p2.units import DEFAULT_VERSION, Feature, Plugin

logger = logging.getLogger("repobrowser.p2.update_site")

SIMPLE_ARTIFACT_REPOSITORY = "org.eclipse.equinox.p2.artifact.repository.simpleRepository"
LOCAL_METADATA_REPOSITORY = "org.eclipse.equinox.internal.p2.metadata.repository.LocalMetadataRepository"

NS_IU = "org.eclipse.equinox.p2.iu"
NS_BUNDLE = "osgi.bundle"
NS_FRAGMENT = "osgi.fragment"
NS_PACKAGE = "java.package"
NS_ECLIPSE_TYPE = "org.eclipse.equinox.p2.eclipse.type"

CLASSIFIER_FEATURE = "org.eclipse.update.feature"
CLASSIFIER_BUNDLE = "osgi.bundle"

FEATURE_INSTALL_FILTER = "(org.eclipse.update.install.features=true)"

MAPPING_RULES: Tuple[Tuple[str, str], ...] = (
    ("(& (classifier=osgi.bundle))", "${repoUrl}/plugins/${id}_${version}.jar"),
    ("(& (classifier=binary))", "${repoUrl}/binary/${id}_${version}"),
    ("(& (classifier=org.eclipse.update.feature))", "${repoUrl}/features/${id}_${version}.jar"),
)


class SiteDescriptor(BaseModel):
    """Identity of one update site."""
    name: str
    title: str = ""
    timestamp: int = 0

    @property
    def display_title(self) -> str:
        return self.title or self.name


def _repository_properties(site: SiteDescriptor) -> List[Tuple[str, str]]:
    return [("p2.timestamp", str(site.timestamp)), ("p2.compressed", "false")]


def _exact(version: str) -> str:
    return f"[{version},{version}]"


def _record(document: RepositoryDocument, site: SiteDescriptor, started: float, count: int,
            request_id: Optional[str]) -> None:
    duration_ms = round((time.perf_counter() - started) * 1000, 2)
    logger.info(f"Generated {document.name} for site '{site.name}' ({count} entries, {duration_ms}ms)")
    log(log_document_generated(
        document=document.name,
        request_id=request_id,
        duration_ms=duration_ms,
        size_bytes=document.size,
        source=site.name,
        entry_count=count,
    ))


# ---------------------------------------------------------------------------
# artifacts.xml
# ---------------------------------------------------------------------------

def build_artifacts_document(
    site: SiteDescriptor,
    features: Sequence[Feature],
    plugins: Sequence[Plugin],
    request_id: Optional[str] = None,
) -> RepositoryDocument:
    """Build the simple artifact repository listing every feature and plugin jar."""
    started = time.perf_counter()
    root = new_repository(f"{site.display_title} Artifacts", SIMPLE_ARTIFACT_REPOSITORY, "1")
    add_properties(root, _repository_properties(site))

    mappings = sized(root, "mappings")
    for rule_filter, output in MAPPING_RULES:
        ET.SubElement(mappings, "rule", {"filter": rule_filter, "output": output})
    close_size(mappings)

    artifacts = sized(root, "artifacts")
    for feature in features:
        artifact = ET.SubElement(artifacts, "artifact", {
            "classifier": CLASSIFIER_FEATURE,
            "id": feature.id,
            "version": feature.version,
        })
        add_properties(artifact, [
            ("artifact.size", str(feature.size)),
            ("download.size", str(feature.size)),
            ("download.contentType", feature.mime_type),
        ])
    for plugin in plugins:
        artifact = ET.SubElement(artifacts, "artifact", {
            "classifier": CLASSIFIER_BUNDLE,
            "id": plugin.id,
            "version": plugin.version,
        })
        add_properties(artifact, [
            ("artifact.size", str(plugin.size)),
            ("download.size", str(plugin.size)),
        ])
    close_size(artifacts)

    document = serialize(root, "artifactRepository", "1.1.0", ARTIFACTS_XML, site.timestamp)
    _record(document, site, started, len(artifacts), request_id)
    return document


# ---------------------------------------------------------------------------
# content.xml
# ---------------------------------------------------------------------------

def _add_provided(provides: ET.Element, namespace: str, name: str, version: str) -> None:
    ET.SubElement(provides, "provided", {"namespace": namespace, "name": name, "version": version})


def _add_required(requires: ET.Element, namespace: str, name: str, range_: str) -> ET.Element:
    return ET.SubElement(requires, "required", {"namespace": namespace, "name": name, "range": range_})


def _feature_unit(units: ET.Element, feature: Feature) -> None:
    unit = ET.SubElement(units, "unit", {"id": feature.group_id, "version": feature.version})
    ET.SubElement(unit, "update", {
        "id": feature.group_id,
        "range": f"[0.0.0,{feature.version})",
        "severity": "0",
    })
    add_properties(unit, [
        ("org.eclipse.equinox.p2.name", feature.label),
        ("org.eclipse.equinox.p2.description", feature.description),
        ("org.eclipse.equinox.p2.description.url", feature.description_url),
        ("org.eclipse.equinox.p2.type.group", "true"),
    ])

    provides = sized(unit, "provides")
    _add_provided(provides, NS_IU, feature.group_id, feature.version)
    close_size(provides)

    requires = sized(unit, "requires")
    for required in feature.required_features:
        _add_required(requires, NS_IU, f"{required.id}.feature.group", required.range or DEFAULT_VERSION)
    for plugin in feature.plugins:
        _add_required(requires, NS_IU, plugin.id, _exact(plugin.version))
    self_jar = _add_required(requires, NS_IU, feature.jar_id, _exact(feature.version))
    text_element(self_jar, "filter", FEATURE_INSTALL_FILTER)
    close_size(requires)

    ET.SubElement(unit, "touchpoint", {"id": "null", "version": "0.0.0"})

    licenses = sized(unit, "licenses")
    text_element(licenses, "license", feature.license,
                 {"uri": feature.license_url, "url": feature.license_url})
    close_size(licenses)

    text_element(unit, "copyright", feature.copyright,
                 {"uri": feature.copyright_url, "url": feature.copyright_url})


def _host_version(host: str, plugins: Sequence[Plugin]) -> str:
    for candidate in plugins:
        if candidate.id == host:
            return candidate.version
    return DEFAULT_VERSION


def _plugin_unit(units: ET.Element, plugin: Plugin, plugins: Sequence[Plugin]) -> None:
    unit = ET.SubElement(units, "unit", {"id": plugin.id, "version": plugin.version})
    add_properties(unit, [
        ("org.eclipse.equinox.p2.name", plugin.name),
        ("org.eclipse.equinox.p2.provider", plugin.provider_name),
    ])

    provides = sized(unit, "provides")
    _add_provided(provides, NS_IU, plugin.id, plugin.version)
    _add_provided(provides, NS_BUNDLE, plugin.id, plugin.version)
    _add_provided(provides, NS_ECLIPSE_TYPE, "bundle", "1.0.0")
    if plugin.fragment:
        host = plugin.fragment_host()
        _add_provided(provides, NS_FRAGMENT, host, _host_version(host, plugins))
    close_size(provides)

    requires = sized(unit, "requires")
    for bundle in plugin.required_bundles():
        _add_required(requires, NS_BUNDLE, bundle.name, bundle.range)
    for package in plugin.imported_packages():
        _add_required(requires, NS_PACKAGE, package.name, package.range)
    close_size(requires)

    artifacts = sized(unit, "artifacts")
    ET.SubElement(artifacts, "artifact", {
        "classifier": CLASSIFIER_BUNDLE,
        "id": plugin.id,
        "version": plugin.version,
    })
    close_size(artifacts)

    ET.SubElement(unit, "touchpoint", {"id": "org.eclipse.equinox.p2.osgi", "version": "1.0.0"})

    touchpoint_data = sized(unit, "touchpointData")
    instructions = sized(touchpoint_data, "instructions")
    text_element(instructions, "instruction", "false", {"key": "zipped"})
    text_element(instructions, "instruction", plugin.manifest, {"key": "manifest"})
    close_size(instructions)
    close_size(touchpoint_data)


def build_content_document(
    site: SiteDescriptor,
    features: Sequence[Feature],
    plugins: Sequence[Plugin],
    request_id: Optional[str] = None,
) -> RepositoryDocument:
    """
    Build the metadata repository with one unit per feature, then per plugin.

    Raises:
        ConfigurationError: If a fragment lacks its Fragment-Host header.
    """
    started = time.perf_counter()
    root = new_repository(site.display_title, LOCAL_METADATA_REPOSITORY, "1")
    add_properties(root, _repository_properties(site))

    units = sized(root, "units")
    for feature in features:
        _feature_unit(units, feature)
    for plugin in plugins:
        _plugin_unit(units, plugin, plugins)
    close_size(units)

    document = serialize(root, "metadataRepository", "1.1.0", CONTENT_XML, site.timestamp)
    _record(document, site, started, len(units), request_id)
    return document
