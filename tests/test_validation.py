from datetime import datetime, timedelta, timezone

import pytest

from druidkit import validation
from druidkit.etcd_types import (
    BackupSpec,
    Etcd,
    EtcdCopyBackupsTask,
    EtcdCopyBackupsTaskSpec,
    EtcdSpec,
    OwnerCheckSpec,
    StoreSpec,
)
from druidkit.field import ErrorType, Path
from druidkit.meta import ObjectMeta

NAME = "etcd-main"
NAMESPACE = "shoot--foo--bar"
UUID = "f1a38edd-e506-412a-82e6-e0fa839d0707"
PROVIDER = "aws"
VALID_PREFIX = f"{NAMESPACE}--{UUID}/{NAME}"

REQUIRED = ErrorType.REQUIRED
INVALID = ErrorType.INVALID


def _summary(errors):
    return sorted((error.type.value, error.field) for error in errors)


def _expect(*pairs):
    return sorted((kind.value, field) for kind, field in pairs)


@pytest.fixture
def etcd():
    return Etcd(
        metadata=ObjectMeta(name=NAME, namespace=NAMESPACE),
        spec=EtcdSpec(
            backup=BackupSpec(
                store=StoreSpec(prefix=VALID_PREFIX, provider=PROVIDER),
                owner_check=OwnerCheckSpec(
                    name="owner.foo.example.com",
                    id="bar",
                    interval=timedelta(seconds=30),
                    timeout=timedelta(minutes=2),
                    dns_cache_ttl=timedelta(minutes=1),
                ),
            )
        ),
    )


@pytest.fixture
def task():
    return EtcdCopyBackupsTask(
        metadata=ObjectMeta(name=NAME, namespace=NAMESPACE),
        spec=EtcdCopyBackupsTaskSpec(
            source_store=StoreSpec(prefix=VALID_PREFIX, provider=PROVIDER),
            target_store=StoreSpec(prefix=VALID_PREFIX, provider=PROVIDER),
        ),
    )


def test_forbid_empty_etcd():
    errors = validation.validate_etcd(Etcd())
    assert _summary(errors) == _expect((REQUIRED, "metadata.name"), (REQUIRED, "metadata.namespace"))


def test_forbid_invalid_backup_store(etcd):
    etcd.spec.backup.store = StoreSpec(prefix="invalid", provider="invalid")
    assert _summary(validation.validate_etcd(etcd)) == _expect(
        (INVALID, "spec.backup.store.prefix"), (INVALID, "spec.backup.store.provider")
    )


def test_allow_valid_backup_store(etcd):
    etcd.spec.backup.store = StoreSpec(prefix=VALID_PREFIX, provider=PROVIDER)
    assert validation.validate_etcd(etcd) == []


def test_allow_missing_backup_store(etcd):
    etcd.spec.backup.store = None
    assert validation.validate_etcd(etcd) == []


def test_forbid_invalid_owner_check(etcd):
    etcd.spec.backup.owner_check = OwnerCheckSpec(
        name="",
        id="",
        interval=timedelta(seconds=-30),
        timeout=timedelta(minutes=-2),
        dns_cache_ttl=timedelta(minutes=-1),
    )
    assert _summary(validation.validate_etcd(etcd)) == _expect(
        (REQUIRED, "spec.backup.ownerCheck.name"),
        (REQUIRED, "spec.backup.ownerCheck.id"),
        (INVALID, "spec.backup.ownerCheck.interval"),
        (INVALID, "spec.backup.ownerCheck.timeout"),
        (INVALID, "spec.backup.ownerCheck.dnsCacheTTL"),
    )


def test_allow_valid_owner_check(etcd):
    assert validation.validate_etcd(etcd) == []


def test_update_forbidden_when_deletion_timestamp_set(etcd):
    etcd.metadata.deletion_timestamp = datetime.now(timezone.utc)
    etcd.metadata.resource_version = "1"
    new = etcd.deep_copy()
    new.metadata.resource_version = "2"
    new.spec.backup.port = 42
    assert _summary(validation.validate_etcd_update(new, etcd)) == _expect((INVALID, "spec"))


def test_update_forbids_store_prefix_change(etcd):
    etcd.metadata.resource_version = "1"
    new = etcd.deep_copy()
    new.metadata.resource_version = "2"
    new.spec.backup.store.prefix = NAMESPACE + "/" + NAME
    assert _summary(validation.validate_etcd_update(new, etcd)) == _expect(
        (INVALID, "spec.backup.store.prefix")
    )


def test_update_allows_everything_else(etcd):
    etcd.metadata.resource_version = "1"
    new = etcd.deep_copy()
    new.metadata.resource_version = "2"
    new.spec.replicas = 42
    new.spec.backup.owner_check = OwnerCheckSpec(name="owner.foo.example.com", id="baz")
    new.spec.backup.store.container = "foo"
    new.spec.backup.store.provider = "gcp"
    assert validation.validate_etcd_update(new, etcd) == []


def test_forbid_empty_copy_task():
    errors = validation.validate_etcd_copy_backups_task(EtcdCopyBackupsTask())
    assert _summary(errors) == _expect((REQUIRED, "metadata.name"), (REQUIRED, "metadata.namespace"))


def test_forbid_invalid_copy_task_stores(task):
    task.spec.source_store = StoreSpec(prefix="invalid", provider="invalid")
    task.spec.target_store = StoreSpec(prefix="invalid", provider="invalid")
    assert _summary(validation.validate_etcd_copy_backups_task(task)) == _expect(
        (INVALID, "spec.sourceStore.prefix"),
        (INVALID, "spec.sourceStore.provider"),
        (INVALID, "spec.targetStore.prefix"),
        (INVALID, "spec.targetStore.provider"),
    )


def test_allow_valid_copy_task_stores(task):
    assert validation.validate_etcd_copy_backups_task(task) == []


def test_copy_task_update_forbidden_when_deletion_timestamp_set(task):
    task.metadata.deletion_timestamp = datetime.now(timezone.utc)
    task.metadata.resource_version = "1"
    new = task.deep_copy()
    new.metadata.resource_version = "2"
    new.spec.source_store.container = "foo"
    assert _summary(validation.validate_etcd_copy_backups_task_update(new, task)) == _expect((INVALID, "spec"))


def test_copy_task_update_forbids_prefix_changes(task):
    task.metadata.resource_version = "1"
    new = task.deep_copy()
    new.metadata.resource_version = "2"
    new.spec.source_store.prefix = NAMESPACE + "/" + NAME
    new.spec.target_store.prefix = NAMESPACE + "/" + NAME
    assert _summary(validation.validate_etcd_copy_backups_task_update(new, task)) == _expect(
        (INVALID, "spec.sourceStore.prefix"), (INVALID, "spec.targetStore.prefix")
    )


def test_copy_task_update_allows_everything_else(task):
    task.metadata.resource_version = "1"
    new = task.deep_copy()
    new.metadata.resource_version = "2"
    new.spec.source_store.container = "foo"
    new.spec.source_store.provider = "gcp"
    new.spec.target_store.container = "bar"
    new.spec.target_store.provider = "gcp"
    assert validation.validate_etcd_copy_backups_task_update(new, task) == []


def test_object_meta_rejects_bad_name():
    errors = validation.validate_object_meta(ObjectMeta(name="Etcd_Main", namespace=NAMESPACE), Path("metadata"))
    assert _summary(errors) == _expect((INVALID, "metadata.name"))


def test_object_meta_update_rejects_rename():
    old = ObjectMeta(name=NAME, namespace=NAMESPACE)
    new = ObjectMeta(name=NAME + "-x", namespace=NAMESPACE)
    errors = validation.validate_object_meta_update(new, old, Path("metadata"))
    assert _summary(errors) == _expect((INVALID, "metadata.name"))
    assert errors[0].detail == "field is immutable"


def test_spec_update_ignores_missing_store():
    old = EtcdSpec(backup=BackupSpec(store=StoreSpec(prefix=VALID_PREFIX)))
    new = EtcdSpec(backup=BackupSpec(store=None))
    assert validation.validate_etcd_spec_update(new, old, False, Path("spec")) == []