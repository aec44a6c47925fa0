"""Group, version and kind identifiers and a registry of known object types."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GroupVersion:
    """An API group together with its version."""

    group: str
    version: str

    def with_kind(self, kind: str) -> GroupVersionKind:
        """Return the identifier of ``kind`` within this group version."""
        return GroupVersionKind(self.group, self.version, kind)

    def __str__(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version


@dataclass(frozen=True)
class GroupVersionKind:
    """An API group, version and kind."""

    group: str
    version: str
    kind: str

    def __str__(self) -> str:
        return f"{GroupVersion(self.group, self.version)}, Kind={self.kind}"


GROUP_VERSION = GroupVersion(group="druid.gardener.cloud", version="v1alpha1")


class Scheme:
    """Maps Python types to the group, version and kind they are served under."""

    def __init__(self) -> None:
        self._kinds: dict[type, GroupVersionKind] = {}
        self._types: dict[GroupVersionKind, type] = {}

    def add_known_types(self, group_version: GroupVersion, *args: type) -> None:
        """Register each type under its class name as kind in ``group_version``."""
        for known_type in args:
            gvk = group_version.with_kind(known_type.__name__)
            existing = self._types.get(gvk)
            if existing is not None and existing is not known_type:
                raise ValueError(
                    f"double registration of different types for {gvk}: "
                    f"{existing.__qualname__} and {known_type.__qualname__}"
                )
            self._types[gvk] = known_type
            self._kinds[known_type] = gvk

    def kind_for(self, obj: object) -> GroupVersionKind:
        """Return the kind registered for an object or a type.

        Raises KeyError when the type is not registered.
        """
        cls = obj if isinstance(obj, type) else type(obj)
        try:
            return self._kinds[cls]
        except KeyError:
            raise KeyError(f"no kind is registered for the type {cls.__qualname__}") from None


def add_to_scheme(scheme: Scheme) -> Scheme:
    """Register the druid resource types with ``scheme`` and return it."""
    from druidkit import etcd_types

    scheme.add_known_types(
        GROUP_VERSION,
        etcd_types.Etcd,
        etcd_types.EtcdList,
        etcd_types.EtcdCopyBackupsTask,
        etcd_types.EtcdCopyBackupsTaskList,
    )
    return scheme