"""Identifier casing transforms.

Every transform here is idempotent: applying it to its own output returns
the same string. The generator relies on that so a name can be re-derived
from an already-cased name (e.g. a ``$ref`` pointing at a schema whose key
is already PascalCase) without drifting.

Brand names (see :attr:`~specsdk.models.NamingTables.brand_names`) are
treated as single words and keep their declared casing in type names:
``wireguard-peer`` becomes ``WireGuardPeer`` and ``getWireGuardPeers``
becomes ``get_wireguard_peers``.
"""

from __future__ import annotations

import keyword
import re
from typing import Any, Iterable

_SEPARATOR_RE = re.compile(r"[\s_\-./]+")
_ACRONYM_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")
_HUMP_RE = re.compile(r"([a-z0-9])([A-Z])")
_NON_WORD_RE = re.compile(r"\W+")
_UNDERSCORES_RE = re.compile(r"_+")

_SYMBOL_WORDS = (
    (".", "dot"),
    ("+", "plus"),
    ("*", "star"),
    ("/", "slash"),
)


def to_pascal_case(name: str, brand_names: Iterable[str] = ()) -> str:
    """Convert *name* to PascalCase.

    A name without separators only gets its first letter upper-cased, so
    existing camel humps survive (``organisationMember`` ->
    ``OrganisationMember``). Otherwise the name is split on ``_``, ``-``,
    ``.``, ``/`` and whitespace and each part is capitalised with the rest
    lower-cased (``ADDON_provider`` -> ``AddonProvider``). A leading digit
    gets an ``_`` prefix.

    Args:
        name: The raw name.
        brand_names: Words to keep verbatim when they appear as a part.

    Returns:
        The PascalCase name.
    """
    if name.startswith("_") and name[1:2].isdigit():
        name = name[1:]
    if _SEPARATOR_RE.search(name):
        brands = {brand.lower(): brand for brand in brand_names}
        parts = [part for part in _SEPARATOR_RE.split(name) if part]
        result = "".join(
            brands.get(part.lower(), part[:1].upper() + part[1:].lower())
            for part in parts
        )
    else:
        result = name[:1].upper() + name[1:]

    result = _NON_WORD_RE.sub("", result)
    if result[:1].isdigit():
        result = "_" + result
    return result


def type_name(name: str, brand_names: Iterable[str] = ()) -> str:
    """Return the generated class name for a schema key or ``$ref`` segment."""
    brand_names = list(brand_names)
    if name in brand_names:
        return name
    return to_pascal_case(name, brand_names)


def to_snake_case(name: str, brand_names: Iterable[str] = ()) -> str:
    """Convert *name* to snake_case.

    Acronym runs stay together (``addonAIId`` -> ``addon_ai_id``) and brand
    names collapse to one lower-case word.

    Args:
        name: The raw name.
        brand_names: Words treated as a single word.

    Returns:
        The snake_case name, without leading or trailing underscores.
    """
    for brand in sorted(brand_names, key=len, reverse=True):
        name = name.replace(brand, f"_{brand.lower()}_")
    name = _ACRONYM_RE.sub(r"\1_\2", name)
    name = _HUMP_RE.sub(r"\1_\2", name)
    name = _NON_WORD_RE.sub("_", name)
    return _UNDERSCORES_RE.sub("_", name).strip("_").lower()


def python_identifier(name: str, reserved: Iterable[str] = ()) -> str:
    """Make *name* a legal Python identifier.

    Non-word characters become ``_``, a leading digit gets an ``_`` prefix,
    and keywords or *reserved* names get an ``_`` suffix.

    Args:
        name: Candidate identifier.
        reserved: Extra names that must not be used as-is.

    Returns:
        A valid identifier.
    """
    name = _NON_WORD_RE.sub("_", name)
    if not name:
        return "_"
    if name[0].isdigit():
        name = "_" + name
    if keyword.iskeyword(name) or name in set(reserved):
        name += "_"
    return name


def package_name(service: str, brand_names: Iterable[str] = ()) -> str:
    """Derive a package (module) name from a service name.

    Example::

        package_name("network-group")  # 'network_group'
    """
    return python_identifier(to_snake_case(service, brand_names))


def enum_member_name(value: Any) -> str:
    """Derive an UPPER_SNAKE enum member name from an enum literal.

    Symbols that would otherwise vanish are spelled out, so ``text/plain``
    and ``textplain`` do not collide (``TEXT_SLASH_PLAIN`` vs
    ``TEXTPLAIN``).
    """
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float)):
        text = str(value).replace("-", "minus_").replace(".", "_")
        return python_identifier(f"VALUE_{text}".upper())

    text = str(value)
    for symbol, word in _SYMBOL_WORDS:
        text = text.replace(symbol, f"_{word}_")
    member = to_snake_case(text).upper()
    if not member:
        return "EMPTY"
    if member[0].isdigit():
        member = f"VALUE_{member}"
    return python_identifier(member)


def unique_name(candidate: str, taken: set[str]) -> str:
    """Return *candidate*, or ``candidate_2``, ``candidate_3``... if taken.

    The chosen name is added to *taken*.
    """
    name = candidate
    counter = 2
    while name in taken:
        name = f"{candidate}_{counter}"
        counter += 1
    taken.add(name)
    return name
