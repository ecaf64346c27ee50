"""Dependency extraction for every supported ecosystem."""

import json
import re
from collections.abc import Callable

from .models import (
    DEV_SENTINEL,
    Ecosystem,
    Manifest,
    ManifestParseError,
    UnsupportedEcosystemError,
)

GROUP_ID = re.compile(r"<groupId>(.*?)</groupId>", re.DOTALL)
ARTIFACT_ID = re.compile(r"<artifactId>(.*?)</artifactId>", re.DOTALL)
QUOTED_NAME = re.compile(r"""['"]([^'"]+)['"]""")
INCLUDE_ATTR = re.compile(r'Include="(.*?)"')
QUOTED_PATH = re.compile(r'"([^"]+)"')
R_INSTALL = re.compile(r"""install\.packages\(\s*['"](.*?)['"]""")
R_INSTALL_VECTOR = re.compile(r"install\.packages\(\s*c\((.*?)\)")
PACKAGE_ID = re.compile(r'<package\s+id="(.*?)"')


def _load_json_object(content: str, ecosystem: Ecosystem) -> dict:
    """Parse a JSON manifest, raising ManifestParseError on bad input."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ManifestParseError(f"Invalid {ecosystem.value} manifest: {e}") from e

    if not isinstance(data, dict):
        raise ManifestParseError(f"Invalid {ecosystem.value} manifest: expected a JSON object")
    return data


def _section_keys(data: dict, key: str) -> list[str]:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        raise ManifestParseError(f'"{key}" must be an object')
    return list(section.keys())


def extract_java(content: str) -> list[str]:
    """Pull groupId:artifactId pairs out of <dependency> blocks."""
    packages = []
    for block in content.split("<dependency>")[1:]:
        group_id = GROUP_ID.search(block)
        artifact_id = ARTIFACT_ID.search(block)
        if group_id and artifact_id:
            packages.append(f"{group_id.group(1).strip()}:{artifact_id.group(1).strip()}")
    return packages


def extract_python(content: str) -> list[str]:
    """Names of pinned lines; unpinned lines are kept verbatim."""
    packages = []
    for line in content.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if "==" in stripped:
            packages.append(stripped.split("==", 1)[0].strip())
        else:
            packages.append(stripped)
    return packages


def extract_node(content: str) -> list[str]:
    data = _load_json_object(content, Ecosystem.NODE)
    return (
        _section_keys(data, "dependencies")
        + [DEV_SENTINEL]
        + _section_keys(data, "devDependencies")
    )


def extract_flutter(content: str) -> list[str]:
    packages = []
    for line in content.splitlines():
        stripped = line.strip()
        if ":" not in stripped or "sdk:" in stripped or stripped.startswith("#"):
            continue
        name, value = stripped.split(":", 1)
        # Block headers such as "dependencies:" carry no value.
        if not value.strip():
            continue
        packages.append(name.strip())
    return packages


def extract_ruby(content: str) -> list[str]:
    packages = []
    for line in content.splitlines():
        stripped = line.strip()
        if not stripped.startswith("gem "):
            continue
        match = QUOTED_NAME.search(stripped)
        if match:
            packages.append(match.group(1))
    return packages


def extract_php(content: str) -> list[str]:
    data = _load_json_object(content, Ecosystem.PHP)
    return (
        _section_keys(data, "require")
        + [DEV_SENTINEL]
        + _section_keys(data, "require-dev")
    )


def extract_dotnet(content: str) -> list[str]:
    """PackageReference includes (SDK projects) and package ids (packages.config)."""
    packages = []
    for line in content.splitlines():
        if "<PackageReference" in line:
            match = INCLUDE_ATTR.search(line)
        else:
            match = PACKAGE_ID.search(line)
        if match:
            packages.append(match.group(1))
    return packages


def extract_rust(content: str) -> list[str]:
    """Left-hand side of every key/value line.

    Any ``key = value`` line counts, including keys from non-dependency
    sections such as ``[package]``.
    """
    return [line.split("=", 1)[0].strip() for line in content.splitlines() if "=" in line]


def extract_go(content: str) -> list[str]:
    """Last path segment of every imported package."""
    paths = []
    in_import_block = False
    for line in content.splitlines():
        stripped = line.strip()
        if in_import_block:
            if stripped.startswith(")"):
                in_import_block = False
                continue
            match = QUOTED_PATH.search(stripped)
            if match:
                paths.append(match.group(1))
        elif stripped.startswith("import"):
            if stripped.replace(" ", "") == "import(":
                in_import_block = True
                continue
            match = QUOTED_PATH.search(stripped)
            if match:
                paths.append(match.group(1))

    return [segment for segment in (path.rstrip("/").split("/")[-1] for path in paths) if segment]


def extract_r(content: str) -> list[str]:
    packages = []
    for line in content.splitlines():
        if "install.packages(" not in line:
            continue
        vector = R_INSTALL_VECTOR.search(line)
        if vector:
            packages.extend(QUOTED_NAME.findall(vector.group(1)))
            continue
        match = R_INSTALL.search(line)
        if match:
            packages.append(match.group(1))
    return packages


EXTRACTORS: dict[Ecosystem, Callable[[str], list[str]]] = {
    Ecosystem.JAVA: extract_java,
    Ecosystem.PYTHON: extract_python,
    Ecosystem.NODE: extract_node,
    Ecosystem.FLUTTER: extract_flutter,
    Ecosystem.RUBY: extract_ruby,
    Ecosystem.PHP: extract_php,
    Ecosystem.DOTNET: extract_dotnet,
    Ecosystem.RUST: extract_rust,
    Ecosystem.GO: extract_go,
    Ecosystem.R: extract_r,
}


def extract_dependencies(content: str, ecosystem: Ecosystem) -> list[str]:
    """Extract declared package identifiers in declaration order.

    Args:
        content: The manifest content
        ecosystem: Ecosystem the content was detected as

    Returns:
        Ordered package identifiers; node and php lists contain DEV_SENTINEL
        between regular and dev dependencies

    Raises:
        ManifestParseError: Structured content could not be parsed
        UnsupportedEcosystemError: No extractor exists for the ecosystem
    """
    extractor = EXTRACTORS.get(ecosystem)
    if extractor is None:
        raise UnsupportedEcosystemError(f"Unsupported ecosystem: {ecosystem.value}")
    return extractor(content)


def parse_manifest(content: str, ecosystem: Ecosystem) -> Manifest:
    """Extract dependencies and wrap them in a Manifest."""
    return Manifest(
        ecosystem=ecosystem,
        raw=content,
        entries=extract_dependencies(content, ecosystem),
    )
