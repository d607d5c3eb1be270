"""
refs:
    Component reference parsing
"""

from dataclasses import dataclass
from typing import Optional

from kitn.config import DEFAULT_NAMESPACE
from kitn.exceptions import InvalidComponentRefError


@dataclass(frozen=True)
class ComponentRef:
    """A parsed `[@namespace/]name[@version]` reference."""
    name: str
    namespace: str = DEFAULT_NAMESPACE
    version: Optional[str] = None

    @property
    def key(self) -> str:
        """Key used for this component in the installed-state mapping."""
        if self.namespace == DEFAULT_NAMESPACE:
            return self.name
        return f"{self.namespace}/{self.name}"

    def __str__(self) -> str:
        text = self.key
        if self.version is not None:
            text += f"@{self.version}"
        return text


def parse_component_ref(raw: str) -> ComponentRef:
    """
    Parse a component reference.

    A leading `@` always introduces a namespace, which ends at the first `/`.
    In what remains, the first `@` separates name from version. Input is
    taken verbatim; callers pass trimmed tokens.

    Raises:
        InvalidComponentRefError: If a namespace has no `/` after it.
    """
    namespace = DEFAULT_NAMESPACE
    rest = raw

    if rest.startswith("@"):
        slash = rest.find("/")
        if slash == -1:
            raise InvalidComponentRefError(
                f"Invalid component reference: {raw}. Expected @namespace/name"
            )
        namespace = rest[:slash]
        rest = rest[slash + 1:]

    name, sep, version = rest.partition("@")
    if not sep:
        return ComponentRef(name=rest, namespace=namespace)
    return ComponentRef(name=name, namespace=namespace, version=version)
