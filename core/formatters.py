"""Serialize resolved dependencies back into each ecosystem's manifest syntax."""

import json
from collections.abc import Callable

from .models import DEV_SENTINEL, Ecosystem, UnsupportedEcosystemError


def split_at_sentinel(deps: dict[str, str]) -> tuple[dict[str, str], dict[str, str]]:
    """Split a result mapping into (regular, dev) groups at DEV_SENTINEL.

    Without a sentinel every entry is regular. Relative order is kept in
    both groups.
    """
    regular: dict[str, str] = {}
    dev: dict[str, str] = {}
    target = regular
    for name, version in deps.items():
        if name == DEV_SENTINEL:
            target = dev
            continue
        target[name] = version
    return regular, dev


def format_java(deps: dict[str, str]) -> str:
    blocks = []
    for name, version in deps.items():
        group_id, _, artifact_id = name.partition(":")
        blocks.append(
            "  <dependency>\n"
            f"    <groupId>{group_id}</groupId>\n"
            f"    <artifactId>{artifact_id}</artifactId>\n"
            f"    <version>{version}</version>\n"
            "  </dependency>"
        )
    return "\n".join(["<dependencies>", *blocks, "</dependencies>"])


def format_python(deps: dict[str, str]) -> str:
    return "\n".join(f"{name}=={version}" for name, version in deps.items())


def format_node(deps: dict[str, str]) -> str:
    regular, dev = split_at_sentinel(deps)
    return json.dumps({"dependencies": regular, "devDependencies": dev}, indent=2)


def format_php(deps: dict[str, str]) -> str:
    regular, dev = split_at_sentinel(deps)
    manifest: dict[str, dict[str, str]] = {"require": regular}
    if dev:
        manifest["require-dev"] = dev
    return json.dumps(manifest, indent=2)


def format_flutter(deps: dict[str, str]) -> str:
    lines = ["dependencies:", "  flutter:", "    sdk: flutter"]
    lines.extend(f"  {name}: ^{version}" for name, version in deps.items())
    return "\n".join(lines)


def format_ruby(deps: dict[str, str]) -> str:
    gems = "\n".join(f"gem '{name}', '{version}'" for name, version in deps.items())
    return f"source 'https://rubygems.org'\n\n{gems}"


def format_dotnet(deps: dict[str, str]) -> str:
    # An empty result still needs a marker identify() recognises.
    if not deps:
        return "<packages>\n</packages>"
    return "\n".join(
        f'<PackageReference Include="{name}" Version="{version}" />'
        for name, version in deps.items()
    )


def format_rust(deps: dict[str, str]) -> str:
    lines = ["[dependencies]"]
    lines.extend(f'{name} = "{version}"' for name, version in deps.items())
    return "\n".join(lines)


def format_go(deps: dict[str, str]) -> str:
    # Go imports carry no version.
    lines = ["import ("]
    lines.extend(f'\t"{name}"' for name in deps)
    lines.append(")")
    return "\n".join(lines)


def format_r(deps: dict[str, str]) -> str:
    if not deps:
        return "install.packages(character(0))"
    return "\n".join(
        f'install.packages("{name}", version = "{version}")' for name, version in deps.items()
    )


FORMATTERS: dict[Ecosystem, Callable[[dict[str, str]], str]] = {
    Ecosystem.JAVA: format_java,
    Ecosystem.PYTHON: format_python,
    Ecosystem.NODE: format_node,
    Ecosystem.FLUTTER: format_flutter,
    Ecosystem.RUBY: format_ruby,
    Ecosystem.PHP: format_php,
    Ecosystem.DOTNET: format_dotnet,
    Ecosystem.RUST: format_rust,
    Ecosystem.GO: format_go,
    Ecosystem.R: format_r,
}


def format_manifest(deps: dict[str, str], ecosystem: Ecosystem) -> str:
    """Render resolved dependencies in the ecosystem's native syntax.

    Args:
        deps: Package identifier to resolved version, in extraction order
        ecosystem: Target ecosystem

    Returns:
        Manifest text; the dev sentinel itself is never emitted
    """
    formatter = FORMATTERS.get(ecosystem)
    if formatter is None:
        raise UnsupportedEcosystemError(f"Unsupported ecosystem: {ecosystem.value}")

    if ecosystem not in (Ecosystem.NODE, Ecosystem.PHP):
        deps = {name: version for name, version in deps.items() if name != DEV_SENTINEL}
    return formatter(deps)
