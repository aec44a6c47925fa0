"""Claiming, adopting and releasing the objects that an etcd resource controls."""

from __future__ import annotations

import copy
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from druidkit.meta import LabelSelector, ObjectMeta, OwnerReference
from druidkit.scheme import GROUP_VERSION, GroupVersion, GroupVersionKind, Scheme

OWNED_BY_ANNOTATION = "gardener.cloud/owned-by"
OWNER_TYPE_ANNOTATION = "gardener.cloud/owner-type"

_ETCD_GVK = GROUP_VERSION.with_kind("Etcd")


class NotFoundError(Exception):
    """The object does not exist (any more)."""


class InvalidError(Exception):
    """The server rejected a change as invalid."""


class AdoptionError(Exception):
    """An object could not be adopted by the controller."""


class ResourceKind(str, Enum):
    """Kinds of objects an etcd resource may own."""

    STATEFUL_SET = "StatefulSet"
    JOB = "Job"
    SERVICE_ACCOUNT = "ServiceAccount"
    ROLE = "Role"
    ROLE_BINDING = "RoleBinding"
    POD_DISRUPTION_BUDGET = "PodDisruptionBudget"
    SERVICE = "Service"
    CONFIG_MAP = "ConfigMap"
    LEASE = "Lease"


_OWNER_REFERENCE_KINDS = {
    ResourceKind.JOB,
    ResourceKind.SERVICE_ACCOUNT,
    ResourceKind.ROLE,
    ResourceKind.ROLE_BINDING,
    ResourceKind.POD_DISRUPTION_BUDGET,
}


@dataclass
class Resource:
    """A stored object of some kind with its metadata and specification."""

    kind: ResourceKind
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: dict[str, Any] = field(default_factory=dict)


class _Client(Protocol):
    def list(
        self, kind: ResourceKind, namespace: str, selector: LabelSelector
    ) -> list[Resource]: ...

    def patch(self, obj: Resource, original: Resource) -> Any: ...


def _meta(obj: Any) -> ObjectMeta:
    return obj if isinstance(obj, ObjectMeta) else obj.metadata


def _group_of(api_version: str) -> str:
    group, sep, _ = api_version.partition("/")
    return group if sep else ""


def _has_etcd_annotations(annotations: dict[str, str] | None, controller: Any) -> bool:
    annotations = annotations or {}
    return (
        annotations.get(OWNED_BY_ANNOTATION) == _meta(controller).key()
        and annotations.get(OWNER_TYPE_ANNOTATION) == _ETCD_GVK.kind.lower()
    )


class BaseControllerRefManager:
    """Decides whether objects belong to a controller and reconciles that ownership."""

    def __init__(
        self,
        controller: Any,
        selector: LabelSelector,
        can_adopt_func: Callable[[], None] | None = None,
    ) -> None:
        self.controller = controller
        self.selector = selector
        self.can_adopt_func = can_adopt_func
        self._lock = threading.Lock()
        self._checked = False
        self._can_adopt_error: BaseException | None = None

    def can_adopt(self) -> None:
        """Raise if adoption is not allowed; the check runs at most once."""
        with self._lock:
            if not self._checked:
                self._checked = True
                if self.can_adopt_func is not None:
                    try:
                        self.can_adopt_func()
                    except Exception as exc:  # remembered and raised on every call
                        self._can_adopt_error = exc
        if self._can_adopt_error is not None:
            raise self._can_adopt_error

    def claim_object(
        self,
        obj: Resource,
        match: Callable[[Resource], bool],
        adopt: Callable[[Resource], Any],
        release: Callable[[Resource], Any],
    ) -> bool:
        """Try to take ownership of ``obj`` and tell whether it is now owned.

        Orphans that match are adopted, owned objects that no longer match are
        released. Errors other than a vanished object are raised.
        """
        controller_meta = _meta(self.controller)
        controller_ref = obj.metadata.controller_of()
        if controller_ref is not None:
            if controller_ref.uid != controller_meta.uid:
                return False
            if match(obj):
                try:
                    adopt(obj)
                except NotFoundError:
                    return False
                return True
            if controller_meta.is_being_deleted():
                return False
            try:
                release(obj)
            except NotFoundError:
                return False
            return False

        if controller_meta.is_being_deleted() or not match(obj):
            return False
        if obj.metadata.is_being_deleted():
            return False
        if not _has_etcd_annotations(obj.metadata.annotations, self.controller):
            try:
                adopt(obj)
            except NotFoundError:
                return False
        return True


class EtcdDruidRefManager(BaseControllerRefManager):
    """Manages the ownership of the objects that belong to an etcd resource."""

    def __init__(
        self,
        client: _Client,
        scheme: Scheme,
        controller: Any,
        selector: LabelSelector,
        controller_kind: GroupVersionKind,
        can_adopt: Callable[[], None] | None = None,
    ) -> None:
        super().__init__(controller, selector, can_adopt)
        self.controller_kind = controller_kind
        self.client = client
        self.scheme = scheme

    def fetch_stateful_sets(self, etcd: Any) -> list[Resource]:
        """List the stateful sets in the etcd's namespace matching its selector."""
        selector = etcd.spec.selector
        if selector is None:
            return []
        return list(
            self.client.list(ResourceKind.STATEFUL_SET, etcd.metadata.namespace, selector)
        )

    def claim_pod_disruption_budget(
        self, pdb: Resource, *args: Callable[[Resource], bool]
    ) -> Resource | None:
        """Claim a pod disruption budget; return a copy of it if it is now owned."""

        def match(obj: Resource) -> bool:
            if not self.selector.matches(pdb.metadata.labels):
                return False
            return all(check(obj) for check in args)

        if self.claim_object(pdb, match, self.adopt_resource, self.release_resource):
            return copy.deepcopy(pdb)
        return None

    def adopt_resource(self, obj: Resource) -> None:
        """Patch ``obj`` so that the controller owns it."""
        meta = obj.metadata
        try:
            self.can_adopt()
        except Exception as exc:
            raise AdoptionError(
                f"can't adopt resource {meta.namespace}/{meta.name} ({meta.uid}): {exc}"
            ) from exc

        clone = copy.deepcopy(obj)
        if obj.kind is ResourceKind.STATEFUL_SET:
            self._disown(clone.metadata)
            annotations = dict(clone.metadata.annotations or {})
            annotations[OWNED_BY_ANNOTATION] = _meta(self.controller).key()
            annotations[OWNER_TYPE_ANNOTATION] = _ETCD_GVK.kind.lower()
            clone.metadata.annotations = annotations
        elif obj.kind in _OWNER_REFERENCE_KINDS:
            self._set_controller_reference(clone.metadata)
        else:
            raise TypeError(f"cannot adopt resource: {obj.kind.value}")

        self.client.patch(clone, obj)

    def release_resource(self, obj: Resource) -> None:
        """Patch ``obj`` so that the controller no longer owns it.

        A vanished or invalid object is ignored.
        """
        clone = copy.deepcopy(obj)
        if obj.kind is ResourceKind.STATEFUL_SET:
            clone.metadata.annotations.pop(OWNED_BY_ANNOTATION, None)
            clone.metadata.annotations.pop(OWNER_TYPE_ANNOTATION, None)
        elif obj.kind is not ResourceKind.POD_DISRUPTION_BUDGET:
            raise TypeError(f"cannot release resource: {obj.kind.value}")

        self._disown(clone.metadata)
        try:
            self.client.patch(clone, obj)
        except (NotFoundError, InvalidError):
            return

    def _disown(self, meta: ObjectMeta) -> None:
        uid = _meta(self.controller).uid
        meta.owner_references = [ref for ref in meta.owner_references if ref.uid != uid]

    def _set_controller_reference(self, meta: ObjectMeta) -> None:
        owner = _meta(self.controller)
        if owner.namespace and meta.namespace != owner.namespace:
            raise AdoptionError(
                f"cross-namespace owner references are disallowed, owner's namespace "
                f"{owner.namespace}, obj's namespace {meta.namespace}"
            )
        gvk = self.scheme.kind_for(self.controller)
        ref = OwnerReference(
            api_version=str(GroupVersion(gvk.group, gvk.version)),
            kind=gvk.kind,
            name=owner.name,
            uid=owner.uid,
            controller=True,
            block_owner_deletion=True,
        )

        def same_object(other: OwnerReference) -> bool:
            return (
                _group_of(other.api_version) == gvk.group
                and other.kind == ref.kind
                and other.name == ref.name
            )

        existing = meta.controller_of()
        if existing is not None and not same_object(existing):
            raise AdoptionError(
                f"Object {meta.namespace}/{meta.name} is already owned by another "
                f"{existing.kind} controller {existing.name}"
            )
        references: Iterable[OwnerReference] = meta.owner_references
        updated = [ref if same_object(other) else other for other in references]
        if not any(same_object(other) for other in meta.owner_references):
            updated.append(ref)
        meta.owner_references = updated


def recheck_deletion_timestamp(get_object: Callable[[], Any]) -> Callable[[], None]:
    """Return a check that refuses adoption once the fetched object is being deleted."""

    def check() -> None:
        try:
            obj = get_object()
        except Exception as exc:
            raise AdoptionError(f"can't recheck DeletionTimestamp: {exc}") from exc
        meta = _meta(obj)
        if meta.deletion_timestamp is not None:
            raise AdoptionError(
                f"{meta.namespace}/{meta.name} has just been deleted at {meta.deletion_timestamp}"
            )

    return check