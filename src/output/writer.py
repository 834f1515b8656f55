"""Render the catalog as the listing JSON schema, a Markdown summary and its web page."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional

import markdown

from constants import Constants
from aggregate.aggregator import Aggregation
from gather.models import Author, AuthorName, AuthorObject, Catalog, Package, PackageVersion
from input_parser import Settings

logger = logging.getLogger(__name__)


def _author_to_json(author: Optional[Author], force_object: bool) -> Any:
    if author is None:
        return None
    if isinstance(author, AuthorName):
        return {"name": author.name} if force_object else author.name
    if isinstance(author, AuthorObject):
        return _without_nulls({"name": author.name, "email": author.email, "url": author.url})
    raise TypeError(f"Unsupported author {author!r}")


def _without_nulls(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


def version_to_json(version: PackageVersion, force_author_object: bool = False) -> Dict[str, Any]:
    """Serialize one version. Field order is fixed to keep diffs readable."""
    manifest = version.manifest
    samples = None
    if manifest.samples is not None:
        samples = [
            _without_nulls({"displayName": s.display_name, "description": s.description, "path": s.path})
            for s in manifest.samples
        ]
    vrc_get = None
    if manifest.vrc_get is not None:
        vrc_get = _without_nulls({"yanked": manifest.yanked})
    return _without_nulls({
        "name": manifest.name,
        "displayName": manifest.display_name,
        "version": manifest.version,
        "unity": manifest.unity,
        "description": manifest.description,
        "keywords": list(manifest.keywords) if manifest.keywords is not None else None,
        "dependencies": manifest.dependencies,
        "vpmDependencies": manifest.vpm_dependencies,
        "samples": samples,
        "changelogUrl": manifest.changelog_url,
        "author": _author_to_json(manifest.author, force_author_object),
        "documentationUrl": manifest.documentation_url,
        "license": manifest.license,
        "licensesUrl": manifest.licenses_url,
        "vrchatVersion": manifest.vrchat_version,
        "zipSHA256": version.zip_sha256,
        "hideInEditor": manifest.hide_in_editor,
        "unityRelease": manifest.unity_release,
        "url": version.url,
        "legacyFolders": manifest.legacy_folders,
        "legacyFiles": manifest.legacy_files,
        "legacyPackages": list(manifest.legacy_packages) if manifest.legacy_packages is not None else None,
        "vrc-get": vrc_get,
    })


def render_listing(settings: Settings, catalog: Catalog, aggregation: Optional[Aggregation] = None) -> Dict[str, Any]:
    """Build the listing document.

    Packages gathered from repositories take precedence over aggregated
    packages of the same name.

    Args:
        settings: Global settings of the run.
        catalog: Final catalog.
        aggregation: External listings to merge, if any.

    Returns:
        JSON-ready dict.
    """
    packages: Dict[str, Any] = {}
    for name, package in catalog.packages.items():
        packages[name] = {
            "versions": {
                version.version: version_to_json(version, settings.force_output_author_as_object)
                for version in package.versions
            }
        }
    if aggregation is not None:
        for listing in aggregation.aggregated:
            for name, aggregated_package in listing.packages.items():
                if name in packages:
                    continue
                packages[name] = {
                    "versions": {number: version.data for number, version in aggregated_package.versions.items()}
                }
    return _without_nulls({
        "name": catalog.name,
        "author": catalog.author,
        "url": catalog.url,
        "id": catalog.id,
        "packages": packages,
    })


def _markdown_author(author: Author) -> List[str]:
    if isinstance(author, AuthorName):
        return [f"- author: {author.name}"]
    if isinstance(author, AuthorObject):
        lines = ["- author:", f"  - name: {author.name}"]
        if author.email is not None:
            lines.append(f"  - email: {author.email}")
        if author.url is not None:
            lines.append(f"  - url: [{author.url}]({author.url})")
        return lines
    raise TypeError(f"Unsupported author {author!r}")


def _markdown_package(name: str, package: Package) -> List[str]:
    first = package.latest
    upm = first.manifest
    lines = [f"## {name}", ""]
    if upm.display_name is not None:
        lines.append(f"- displayName: {upm.display_name}")
    if upm.description is not None:
        lines.append(f"- description: {upm.description}")
    if upm.keywords:
        lines.append("- keywords:")
        lines.extend(f"  - {keyword}" for keyword in upm.keywords)
    for label, link in (
        ("changelogUrl", upm.changelog_url),
        ("documentationUrl", upm.documentation_url),
    ):
        if link is not None:
            lines.append(f"- {label}: [{link}]({link})")
    if upm.license is not None:
        lines.append(f"- license: {upm.license}")
    if upm.licenses_url is not None:
        lines.append(f"- licensesUrl: [{upm.licenses_url}]({upm.licenses_url})")
    if upm.unity is not None:
        lines.append(f"- unity: {upm.unity}")
    if upm.unity_release is not None:
        lines.append(f"- unityRelease: {upm.unity_release}")
    if upm.vrchat_version is not None:
        lines.append(f"- <s>vrchatVersion: {upm.vrchat_version}</s>")
    for label, deps in (("dependencies", upm.dependencies), ("vpmDependencies", upm.vpm_dependencies)):
        if deps:
            lines.append(f"- {label}:")
            lines.extend(f"  - {dep} : {spec}" for dep, spec in deps.items())
    if upm.author is not None:
        lines.extend(_markdown_author(upm.author))
    lines.append("- metadata:")
    lines.append(f"  - totalDownloadCount: {package.total_download_count}")
    lines.append(f"  - repositoryUrl: [{package.repository_url}]({package.repository_url})")
    if upm.vrc_get is not None:
        lines.append("- vrc-get:")
        if isinstance(upm.yanked, bool):
            lines.append(f"  - yanked: {'true' if upm.yanked else 'false'}")
        elif isinstance(upm.yanked, str):
            lines.append(f"  - yanked: {upm.yanked}")
        lines.append("```json")
        lines.append(json.dumps(upm.vrc_get, indent=2, ensure_ascii=False))
        lines.append("```")

    lines.append("- versions:")
    for version in package.versions:
        label = version.version if version.semver.prerelease else f"**{version.version}**"
        unitypackage = f" \\[[.unitypackage]({version.unitypackage_url})\\]" if version.unitypackage_url else ""
        unitypackage_count = (
            f" *({version.unitypackage_download_count})*"
            if version.unitypackage_download_count is not None else ""
        )
        lines.append(
            f"  - {label} \\[[.zip]({version.url})\\]{unitypackage} -> "
            f"*{version.download_count} downloads*{unitypackage_count}"
        )
    lines.append("")
    return lines


def render_markdown(catalog: Catalog) -> str:
    """Human-readable summary of the catalog."""
    lines = [
        f"# {catalog.id}",
        "",
        "This repository listing was generated using pristine-listing.",
        "",
        f"- id: {catalog.id}",
        f"- name: {catalog.name}",
        f"- author: {catalog.author}",
        f"- url: [{catalog.url}]({catalog.url})",
        "",
    ]
    for name, package in catalog.packages.items():
        lines.extend(_markdown_package(name, package))
    return "\n".join(lines) + "\n"


_PAGE_STYLE = """<style>
    body {
      font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Helvetica, Arial, sans-serif;
      margin: 2em;
      line-height: 1.6;
    }
  </style>
"""


def render_html(markdown_text: str) -> str:
    """Web page version of the Markdown summary."""
    return _PAGE_STYLE + markdown.markdown(markdown_text)


def write_outputs(
    output_dir: str,
    settings: Settings,
    catalog: Catalog,
    aggregation: Optional[Aggregation] = None,
) -> Dict[str, str]:
    """Write index.json, list.md and index.html.

    Returns:
        Mapping of output kind to written path.
    """
    os.makedirs(output_dir, exist_ok=True)
    index_path = os.path.join(output_dir, Constants.OUTPUT_INDEX_JSON)
    markdown_path = os.path.join(output_dir, Constants.OUTPUT_LIST_MD)
    html_path = os.path.join(output_dir, Constants.OUTPUT_INDEX_HTML)
    markdown_text = render_markdown(catalog)

    with open(index_path, "w", encoding="utf-8") as f:
        json.dump(render_listing(settings, catalog, aggregation), f, indent=2, ensure_ascii=False)
    with open(markdown_path, "w", encoding="utf-8") as f:
        f.write(markdown_text)
    with open(html_path, "w", encoding="utf-8") as f:
        f.write(render_html(markdown_text))

    logger.info("Wrote %s, %s and %s", index_path, markdown_path, html_path)
    return {"json": index_path, "markdown": markdown_path, "html": html_path}
