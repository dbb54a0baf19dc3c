"""Host probing helpers shared by probe bodies.

All helpers are stateless and take their subjects explicitly, so the
registry may call them lazily at any point.  They duck-type against
DOM-like objects (``xml.dom.minidom`` nodes work) and plain mappings.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

VENDOR_PREFIXES: tuple[str, ...] = ("Webkit", "Moz", "O", "ms", "Khtml")

# Values of these types are plain data, never host objects.
_NON_HOST_TYPES: tuple[type, ...] = (bool, int, float, complex, str, bytes)

_MISSING: Any = object()


def get_member(obj: Any, name: str, default: Any = None) -> Any:
    """Return *name* from a mapping key or an attribute of *obj*."""
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def has_member(obj: Any, name: str) -> bool:
    """Whether *obj* exposes *name* as a key or attribute."""
    return get_member(obj, name, _MISSING) is not _MISSING


def cssprop(style_name: str, element: Any) -> bool:
    """Check whether *element* supports a style property.

    Tries the bare name first, then each vendor-prefixed, capitalised
    variant (``transform`` -> ``WebkitTransform``, ``MozTransform``, ...).

    Args:
        style_name: Camel-cased style property name.
        element: Element whose ``style`` member is inspected.

    Returns:
        ``True`` if any candidate is exposed as a string value.
    """
    style = get_member(element, "style")
    if not style:
        return False
    if isinstance(get_member(style, style_name), str):
        return True
    capitalized = style_name[:1].upper() + style_name[1:]
    return any(
        isinstance(get_member(style, prefix + capitalized), str)
        for prefix in reversed(VENDOR_PREFIXES)
    )


def clear_element(element: Any) -> Any:
    """Remove all children from a DOM-like *element* and return it."""
    if element is not None:
        while element.lastChild is not None:
            element.removeChild(element.lastChild)
    return element


def is_host_type(obj: Any, prop: str) -> bool:
    """Check whether ``obj.prop`` holds a host object rather than plain data.

    Missing members, ``None`` and primitive values are not host types.
    Any other value counts, including empty collections such as an
    element's ``childNodes``.
    """
    value = get_member(obj, prop, _MISSING)
    if value is _MISSING or isinstance(value, _NON_HOST_TYPES):
        return False
    return value is not None
