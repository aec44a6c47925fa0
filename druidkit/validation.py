"""Validation of etcd and backup copy task resources."""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Any

from druidkit.etcd_types import (
    Etcd,
    EtcdCopyBackupsTask,
    EtcdCopyBackupsTaskSpec,
    EtcdSpec,
    StoreSpec,
)
from druidkit.field import FieldError, Path, invalid, required
from druidkit.meta import ObjectMeta

_DNS1123_LABEL = r"[a-z0-9]([-a-z0-9]*[a-z0-9])?"
_LABEL_RE = re.compile(_DNS1123_LABEL)
_SUBDOMAIN_RE = re.compile(rf"{_DNS1123_LABEL}(\.{_DNS1123_LABEL})*")
_LABEL_MAX = 63
_SUBDOMAIN_MAX = 253

_STORAGE_PROVIDERS = {
    "aws": "S3",
    "S3": "S3",
    "azure": "ABS",
    "ABS": "ABS",
    "gcp": "GCS",
    "GCS": "GCS",
    "openstack": "Swift",
    "Swift": "Swift",
    "alicloud": "OSS",
    "OSS": "OSS",
    "Local": "Local",
}


def _storage_provider(provider: str) -> str:
    try:
        return _STORAGE_PROVIDERS[provider]
    except KeyError:
        raise ValueError(f"unsupported storage provider: {provider!r}") from None


def _subdomain_problems(value: str) -> list[str]:
    problems = []
    if len(value) > _SUBDOMAIN_MAX:
        problems.append(f"must be no more than {_SUBDOMAIN_MAX} characters")
    if not _SUBDOMAIN_RE.fullmatch(value):
        problems.append(
            "a lowercase RFC 1123 subdomain must consist of lower case alphanumeric "
            "characters, '-' or '.', and must start and end with an alphanumeric character"
        )
    return problems


def _label_problems(value: str) -> list[str]:
    problems = []
    if len(value) > _LABEL_MAX:
        problems.append(f"must be no more than {_LABEL_MAX} characters")
    if not _LABEL_RE.fullmatch(value):
        problems.append(
            "a lowercase RFC 1123 label must consist of lower case alphanumeric "
            "characters or '-', and must start and end with an alphanumeric character"
        )
    return problems


def _immutable(new: Any, old: Any, path: Path) -> list[FieldError]:
    if new != old:
        return [invalid(path, new, "field is immutable")]
    return []


def _nonnegative(value: timedelta, path: Path) -> list[FieldError]:
    if value < timedelta(0):
        return [invalid(path, value, "must be greater than or equal to 0")]
    return []


def validate_object_meta(meta: ObjectMeta, path: Path) -> list[FieldError]:
    """Check that a namespaced object has a valid name and namespace."""
    errors: list[FieldError] = []
    if not meta.name:
        errors.append(required(path.child("name"), "name or generateName is required"))
    else:
        errors.extend(invalid(path.child("name"), meta.name, msg) for msg in _subdomain_problems(meta.name))
    if not meta.namespace:
        errors.append(required(path.child("namespace"), ""))
    else:
        errors.extend(
            invalid(path.child("namespace"), meta.namespace, msg) for msg in _label_problems(meta.namespace)
        )
    if meta.generation < 0:
        errors.append(invalid(path.child("generation"), meta.generation, "must be greater than or equal to 0"))
    return errors


def validate_object_meta_update(new: ObjectMeta, old: ObjectMeta, path: Path) -> list[FieldError]:
    """Check that identifying metadata is left unchanged by an update."""
    errors: list[FieldError] = []
    errors += _immutable(new.name, old.name, path.child("name"))
    errors += _immutable(new.namespace, old.namespace, path.child("namespace"))
    errors += _immutable(new.uid, old.uid, path.child("uid"))
    errors += _immutable(new.creation_timestamp, old.creation_timestamp, path.child("creationTimestamp"))
    if new.generation < 0:
        errors.append(invalid(path.child("generation"), new.generation, "must be greater than or equal to 0"))
    return errors


def _validate_store(store: StoreSpec, name: str, namespace: str, path: Path) -> list[FieldError]:
    errors: list[FieldError] = []
    if not (namespace in store.prefix and name in store.prefix):
        errors.append(invalid(path.child("prefix"), store.prefix, "must contain object name and namespace"))
    if store.provider:
        try:
            _storage_provider(store.provider)
        except ValueError as exc:
            errors.append(invalid(path.child("provider"), store.provider, str(exc)))
    return errors


def _validate_store_update(new: StoreSpec, old: StoreSpec, path: Path) -> list[FieldError]:
    return _immutable(new.prefix, old.prefix, path.child("prefix"))


def validate_etcd(etcd: Etcd) -> list[FieldError]:
    """Validate an etcd resource."""
    errors = validate_object_meta(etcd.metadata, Path("metadata"))
    errors += validate_etcd_spec(etcd.spec, etcd.metadata.name, etcd.metadata.namespace, Path("spec"))
    return errors


def validate_etcd_update(new: Etcd, old: Etcd) -> list[FieldError]:
    """Validate an etcd resource that is about to replace ``old``."""
    errors = validate_object_meta_update(new.metadata, old.metadata, Path("metadata"))
    errors += validate_etcd_spec_update(
        new.spec, old.spec, new.metadata.deletion_timestamp is not None, Path("spec")
    )
    errors += validate_etcd(new)
    return errors


def validate_etcd_spec(spec: EtcdSpec, name: str, namespace: str, path: Path) -> list[FieldError]:
    """Validate the backup store and owner check of an etcd specification."""
    errors: list[FieldError] = []
    backup = spec.backup
    if backup.store is not None:
        errors += _validate_store(backup.store, name, namespace, path.child("backup.store"))

    owner_check = backup.owner_check
    if owner_check is not None:
        owner_path = path.child("backup.ownerCheck")
        if not owner_check.name:
            errors.append(required(owner_path.child("name"), "field is required"))
        if not owner_check.id:
            errors.append(required(owner_path.child("id"), "field is required"))
        for value, key in (
            (owner_check.interval, "interval"),
            (owner_check.timeout, "timeout"),
            (owner_check.dns_cache_ttl, "dnsCacheTTL"),
        ):
            if value is not None:
                errors += _nonnegative(value, owner_path.child(key))
    return errors


def validate_etcd_spec_update(
    new: EtcdSpec, old: EtcdSpec, deletion_timestamp_set: bool, path: Path
) -> list[FieldError]:
    """Validate a change of an etcd specification."""
    if deletion_timestamp_set and new != old:
        return _immutable(new, old, path)
    if new.backup.store is not None and old.backup.store is not None:
        return _validate_store_update(new.backup.store, old.backup.store, path.child("backup.store"))
    return []


def validate_etcd_copy_backups_task(task: EtcdCopyBackupsTask) -> list[FieldError]:
    """Validate a backup copy task."""
    errors = validate_object_meta(task.metadata, Path("metadata"))
    errors += validate_etcd_copy_backups_task_spec(
        task.spec, task.metadata.name, task.metadata.namespace, Path("spec")
    )
    return errors


def validate_etcd_copy_backups_task_update(
    new: EtcdCopyBackupsTask, old: EtcdCopyBackupsTask
) -> list[FieldError]:
    """Validate a backup copy task that is about to replace ``old``."""
    errors = validate_object_meta_update(new.metadata, old.metadata, Path("metadata"))
    errors += validate_etcd_copy_backups_task_spec_update(
        new.spec, old.spec, new.metadata.deletion_timestamp is not None, Path("spec")
    )
    errors += validate_etcd_copy_backups_task(new)
    return errors


def validate_etcd_copy_backups_task_spec(
    spec: EtcdCopyBackupsTaskSpec, name: str, namespace: str, path: Path
) -> list[FieldError]:
    """Validate the source and target stores of a backup copy task."""
    errors = _validate_store(spec.source_store, name, namespace, path.child("sourceStore"))
    errors += _validate_store(spec.target_store, name, namespace, path.child("targetStore"))
    return errors


def validate_etcd_copy_backups_task_spec_update(
    new: EtcdCopyBackupsTaskSpec,
    old: EtcdCopyBackupsTaskSpec,
    deletion_timestamp_set: bool,
    path: Path,
) -> list[FieldError]:
    """Validate a change of a backup copy task specification."""
    if deletion_timestamp_set and new != old:
        return _immutable(new, old, path)
    errors = _validate_store_update(new.source_store, old.source_store, path.child("sourceStore"))
    errors += _validate_store_update(new.target_store, old.target_store, path.child("targetStore"))
    return errors