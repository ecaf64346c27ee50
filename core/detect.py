"""Ecosystem detection for dependency manifests."""

import re

from .models import Ecosystem

PINNED_LINE = re.compile(r"^[A-Za-z0-9_.\-]+==\S+$")
GO_MODULE = re.compile(r"^module\s+\S+", re.MULTILINE)
GEM_LINE = re.compile(r"^\s*gem\s", re.MULTILINE)


def _is_java(content: str) -> bool:
    return "<dependencies>" in content


def _is_dotnet(content: str) -> bool:
    return "<packages>" in content or "<PackageReference" in content


def _is_flutter(content: str) -> bool:
    return "dependencies:" in content and "flutter:" in content


def _is_ruby(content: str) -> bool:
    if "source 'https://rubygems.org'" in content or 'source "https://rubygems.org"' in content:
        return True
    return bool(GEM_LINE.search(content))


def _is_rust(content: str) -> bool:
    return "[dependencies]" in content


def _is_node(content: str) -> bool:
    return '"dependencies":' in content or '"devDependencies":' in content


def _is_php(content: str) -> bool:
    return '"require":' in content or '"require-dev":' in content


def _is_r(content: str) -> bool:
    return "install.packages(" in content


def _is_go(content: str) -> bool:
    if "import (" in content:
        return True
    return "require (" in content and bool(GO_MODULE.search(content))


def _is_python(content: str) -> bool:
    return any(PINNED_LINE.match(line.strip()) for line in content.splitlines())


# Most specific markers first; the first match wins.
DETECTION_RULES = [
    (Ecosystem.JAVA, _is_java),
    (Ecosystem.DOTNET, _is_dotnet),
    (Ecosystem.FLUTTER, _is_flutter),
    (Ecosystem.RUBY, _is_ruby),
    (Ecosystem.RUST, _is_rust),
    (Ecosystem.NODE, _is_node),
    (Ecosystem.PHP, _is_php),
    (Ecosystem.R, _is_r),
    (Ecosystem.GO, _is_go),
    (Ecosystem.PYTHON, _is_python),
]


def identify(content: str) -> Ecosystem:
    """Detect the ecosystem a manifest belongs to.

    Args:
        content: The pasted manifest content

    Returns:
        Detected ecosystem, or Ecosystem.UNKNOWN when no marker matches
    """
    if not content or not content.strip():
        return Ecosystem.UNKNOWN

    for ecosystem, matches in DETECTION_RULES:
        if matches(content):
            return ecosystem

    return Ecosystem.UNKNOWN
