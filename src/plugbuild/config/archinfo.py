"""
Architecture names and matching rules.

Architectures are dotted names that get more specific from left to right
(for example ``web`` -> ``web.browser``). A program built for a general
architecture runs on every more specific host architecture.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ArchSpec:
    """Description of a known build architecture."""

    arch_id: str
    description: str
    is_web: bool = False


KNOWN_ARCHITECTURES = {
    "os": ArchSpec(
        arch_id="os",
        description="Server side, any operating system",
    ),
    "os.linux.x86_64": ArchSpec(
        arch_id="os.linux.x86_64",
        description="Server side, 64-bit Linux",
    ),
    "os.osx.x86_64": ArchSpec(
        arch_id="os.osx.x86_64",
        description="Server side, 64-bit macOS",
    ),
    "os.windows.x86_32": ArchSpec(
        arch_id="os.windows.x86_32",
        description="Server side, 32-bit Windows",
    ),
    "web": ArchSpec(
        arch_id="web",
        description="Any client served over HTTP",
        is_web=True,
    ),
    "web.browser": ArchSpec(
        arch_id="web.browser",
        description="Desktop and mobile browsers",
        is_web=True,
    ),
    "web.cordova": ArchSpec(
        arch_id="web.cordova",
        description="Cordova mobile app webview",
        is_web=True,
    ),
}


def get_arch_spec(arch: str) -> Optional[ArchSpec]:
    """
    Get architecture specification by name.

    Args:
        arch: Architecture name (e.g., 'web.browser')

    Returns:
        ArchSpec if known, None otherwise
    """
    return KNOWN_ARCHITECTURES.get(arch)


def matches(host: str, program: str) -> bool:
    """
    Check whether a program built for ``program`` can run on ``host``.

    Args:
        host: The concrete target architecture (e.g., 'web.browser')
        program: The architecture a unit or processor was built for (e.g., 'web')

    Returns:
        True if host equals program or is a more specific form of it
    """
    return host == program or host.startswith(program + ".")


def most_specific_match(host: str, programs) -> Optional[str]:
    """
    Pick the most specific architecture in ``programs`` that ``host`` matches.

    Args:
        host: Target architecture
        programs: Candidate architectures

    Returns:
        The matching candidate with the most dotted segments, or None
    """
    best = None
    for program in programs:
        if not matches(host, program):
            continue
        if best is None or program.count(".") > best.count("."):
            best = program
    return best


def is_web(arch: str) -> bool:
    """
    Check whether an architecture is served to a web client.

    Known architectures answer from the table; any other name is web if it
    is a form of ``web``.
    """
    spec = get_arch_spec(arch)
    if spec is not None:
        return spec.is_web
    return matches(arch, "web")
