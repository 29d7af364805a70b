"""Lexical path confinement for jailed file access.

Every name handed to the filesystem is mapped onto the root with
``resolve_path`` before the OS sees it. The mapping is purely lexical: the
name is forced absolute, cleaned with Unix-style rules so that ``..`` can
never climb above ``/``, and the result is appended to the root. Nothing on
disk is consulted, so symlinks inside the root are not followed or checked.
"""

import os
import posixpath

SLASH = "/"


def _host_separators() -> tuple[str, ...]:
    return tuple(sep for sep in (os.sep, os.altsep) if sep)


def to_slash(name: str) -> str:
    """Replace the host separator with ``/`` when the host does not use it."""
    if os.sep == SLASH:
        return name
    return name.replace(os.sep, SLASH)


def from_slash(name: str) -> str:
    """Replace ``/`` with the host separator when the host does not use it."""
    if os.sep == SLASH:
        return name
    return name.replace(SLASH, os.sep)


def clean_slash_path(path: str) -> str:
    """Return the shortest slash-separated path equivalent to ``path``.

    Repeated slashes collapse, ``.`` segments are dropped and ``..`` pops the
    previous segment. A rooted path never climbs above ``/``. The empty path
    cleans to ``.``.
    """
    if not path:
        return "."
    cleaned = posixpath.normpath(path)
    # normpath preserves exactly two leading slashes.
    if cleaned.startswith("//"):
        cleaned = SLASH + cleaned.lstrip(SLASH)
    return cleaned


def resolve_path(root: str, name: str) -> str:
    """Map ``name`` to a host path that is ``root`` or lies below it.

    Traversal above the root is absorbed rather than rejected, so
    ``resolve_path("/srv", "../../etc/passwd")`` is ``/srv/etc/passwd``.
    Names that clean to ``/`` (``""``, ``"."``, ``".."``, ``"/"``) return
    ``root`` unchanged.
    """
    cleaned = clean_slash_path(SLASH + to_slash(name))
    relative = from_slash(cleaned.lstrip(SLASH))
    if not relative:
        return root
    if root.endswith(_host_separators()):
        return root + relative
    return root + os.sep + relative


def join_path(root: str, *elements: str) -> str:
    """Join slash-separated elements, ignoring empty ones, and resolve them."""
    joined = SLASH.join(element for element in elements if element)
    return resolve_path(root, joined)
