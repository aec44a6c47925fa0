"""Object metadata, owner references, secret references and label selectors."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class _Operator(str, Enum):
    IN = "In"
    NOT_IN = "NotIn"
    EXISTS = "Exists"
    DOES_NOT_EXIST = "DoesNotExist"


@dataclass
class OwnerReference:
    """A reference from an object to the object that owns it."""

    api_version: str
    kind: str
    name: str
    uid: str
    controller: bool | None = None
    block_owner_deletion: bool | None = None


@dataclass
class ObjectMeta:
    """Metadata that every stored object carries."""

    name: str = ""
    namespace: str = ""
    uid: str = ""
    resource_version: str = ""
    generation: int = 0
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    owner_references: list[OwnerReference] = field(default_factory=list)
    finalizers: list[str] = field(default_factory=list)
    creation_timestamp: datetime | None = None
    deletion_timestamp: datetime | None = None

    def controller_of(self) -> OwnerReference | None:
        """Return the owner reference marked as controller, if there is one."""
        return next((ref for ref in self.owner_references if ref.controller), None)

    def key(self) -> str:
        """Return the ``namespace/name`` key, or just the name without a namespace."""
        return f"{self.namespace}/{self.name}" if self.namespace else self.name

    def is_being_deleted(self) -> bool:
        """Tell whether a deletion timestamp has been set."""
        return self.deletion_timestamp is not None


@dataclass
class SecretRef:
    """A reference to a secret by name and, optionally, namespace."""

    name: str = ""
    namespace: str = ""


@dataclass
class LabelSelector:
    """A label query made of exact matches and set-based expressions.

    Each expression is a ``(key, operator, values)`` triple where the operator
    is one of ``In``, ``NotIn``, ``Exists`` or ``DoesNotExist``.
    """

    match_labels: dict[str, str] = field(default_factory=dict)
    match_expressions: list[tuple[str, str, tuple[str, ...]]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.match_expressions = [
            self._normalise(expression) for expression in self.match_expressions
        ]

    @staticmethod
    def _normalise(expression: tuple) -> tuple[str, str, tuple[str, ...]]:
        key, operator, *rest = expression
        values: Iterable[str] = rest[0] if rest else ()
        values = tuple(values)
        try:
            op = _Operator(operator)
        except ValueError:
            raise ValueError(f"{operator!r} is not a valid pod selector operator") from None
        if op in (_Operator.IN, _Operator.NOT_IN) and not values:
            raise ValueError(f"for '{op.value}' operator, values must not be empty")
        if op in (_Operator.EXISTS, _Operator.DOES_NOT_EXIST) and values:
            raise ValueError(f"for '{op.value}' operator, values must be empty")
        return key, op.value, values

    def matches(self, labels: Mapping[str, str] | None) -> bool:
        """Tell whether the given labels satisfy every term of the selector."""
        labels = labels or {}
        if any(labels.get(key) != value for key, value in self.match_labels.items()):
            return False
        for key, operator, values in self.match_expressions:
            present = key in labels
            op = _Operator(operator)
            if op is _Operator.IN and not (present and labels[key] in values):
                return False
            if op is _Operator.NOT_IN and present and labels[key] in values:
                return False
            if op is _Operator.EXISTS and not present:
                return False
            if op is _Operator.DOES_NOT_EXIST and present:
                return False
        return True