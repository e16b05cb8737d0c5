from __future__ import annotations

import string
from dataclasses import dataclass
from typing import Iterable, List

from ..models.source_key import SourceKey, TallyRole

DEFAULT_ADDRESS_TEMPLATE = "/exec/1/{source}"
DEFAULT_STRICT_ADDRESS_TEMPLATE = "/exec/1/{scope}/{source}"

TEMPLATE_FIELDS = frozenset({"source", "scope", "index", "role"})

_ME_ROLES = (
    TallyRole.PROGRAM,
    TallyRole.PREVIEW_DURING_TRANSITION,
    TallyRole.UPSTREAM_KEYER_FILL,
)


def template_fields(template: str) -> set[str]:
    """Names of the ``{placeholders}`` used by an address template."""
    return {name for _, name, _, _ in string.Formatter().parse(template) if name is not None}


def validate_template(template: str, *, strict: bool) -> None:
    fields = template_fields(template)
    unknown = fields - TEMPLATE_FIELDS
    if unknown:
        raise ValueError(f"Address template {template!r} uses unknown placeholders: {sorted(unknown)}")
    if "source" not in fields:
        raise ValueError(f"Address template {template!r} must contain {{source}}")
    if not strict and fields & {"scope", "index", "role"}:
        raise ValueError(f"Address template {template!r} can only use {{source}} when strict_me is off")
    if not template.startswith("/"):
        raise ValueError(f"OSC address template {template!r} must start with '/'")


@dataclass(frozen=True)
class TallyAddressing:
    """Maps source keys to OSC addresses.

    With ``strict_me`` off every role of a source collapses onto one address;
    with it on the address is qualified by the ME row or DSK the key belongs to.
    """

    template: str = DEFAULT_ADDRESS_TEMPLATE
    strict_template: str = DEFAULT_STRICT_ADDRESS_TEMPLATE
    strict_me: bool = False

    def __post_init__(self) -> None:
        validate_template(self.template, strict=False)
        validate_template(self.strict_template, strict=True)

    def address_for(self, key: SourceKey) -> str:
        if self.strict_me:
            return self.strict_template.format(
                source=key.source,
                scope=key.scope,
                index=key.index,
                role=key.role.value,
            )
        return self.template.format(source=key.source)

    def reset_addresses(
        self,
        source: int,
        me_indices: Iterable[int] = (),
        dsk_indices: Iterable[int] = (),
    ) -> List[str]:
        """Every address a source id can light, for the startup reset sweep."""
        if not self.strict_me:
            return [self.template.format(source=source)]
        keys = [SourceKey(me, role, source) for me in me_indices for role in _ME_ROLES]
        keys += [SourceKey(dsk, TallyRole.DOWNSTREAM_KEYER_FILL, source) for dsk in dsk_indices]
        return list(dict.fromkeys(self.address_for(key) for key in keys))


__all__ = [
    "DEFAULT_ADDRESS_TEMPLATE",
    "DEFAULT_STRICT_ADDRESS_TEMPLATE",
    "TallyAddressing",
    "template_fields",
    "validate_template",
]
