# druidkit

druidkit models etcd cluster resources and the rules that apply to them. It has no third-party dependencies.

| Module | Contents |
| --- | --- |
| `druidkit.meta` | `ObjectMeta`, `OwnerReference`, `SecretRef` and `LabelSelector` |
| `druidkit.etcd_types` | `Etcd`, `EtcdCopyBackupsTask`, their specs, statuses and list types, and enums such as `MetricsLevel`, `CompressionPolicy`, `ConditionType` and `EtcdRole` |
| `druidkit.scheme` | `GroupVersion`, `GroupVersionKind`, `Scheme`, `GROUP_VERSION` (`druid.gardener.cloud/v1alpha1`) and `add_to_scheme` |
| `druidkit.field` | `Path`, `FieldError`, `ErrorType` and the helpers `required` and `invalid` |
| `druidkit.validation` | Validation of resources on create and on update |
| `druidkit.refmanager` | Adopting and releasing the objects that an etcd resource controls |
| `druidkit.config` | `CompactionLeaseConfig`, `EtcdMemberConfig` and `EtcdCustodianController` |

## Installation

```
pip install .
```

To install the test dependencies as well:

```
pip install ".[test]"
```

## Validating an Etcd resource

```python
from druidkit.meta import ObjectMeta
from druidkit.etcd_types import Etcd, EtcdSpec, BackupSpec, StoreSpec
from druidkit.validation import validate_etcd, validate_etcd_update

etcd = Etcd(
    metadata=ObjectMeta(name="etcd-main", namespace="shoot--foo--bar"),
    spec=EtcdSpec(
        backup=BackupSpec(
            store=StoreSpec(prefix="shoot--foo--bar/etcd-main", provider="aws"),
        ),
    ),
)

for error in validate_etcd(etcd):
    print(error)
```

The validators return a list of `FieldError`s. An empty list means the object is valid. Each error has these fields:

- `type`: an `ErrorType`, such as `ErrorType.REQUIRED` or `ErrorType.INVALID`.
- `field`: the dotted path, such as `spec.backup.store.prefix`.
- `bad_value`: the rejected value.
- `detail`: a message.

`validate_etcd` and `validate_etcd_copy_backups_task` run these checks:

- **Name**: it must be present and be a lowercase RFC 1123 subdomain.
- **Namespace**: it must be present and be an RFC 1123 label.
- **Store prefix**: every backup store prefix must contain both the object's name and its namespace.
- **Store provider**: a provider, if given, must be one of `aws`, `S3`, `azure`, `ABS`, `gcp`, `GCS`, `openstack`, `Swift`, `alicloud`, `OSS` or `Local`.
- **Owner check**: `spec.backup.ownerCheck` needs a `name` and an `id`. Its `interval`, `timeout` and `dns_cache_ttl` must not be negative.

The update validators, `validate_etcd_update(new, old)` and `validate_etcd_copy_backups_task_update(new, old)`, check the following:

- The name, namespace, uid and creation timestamp cannot change.
- Store prefixes cannot change.
- Once `new` has a deletion timestamp, the spec cannot change at all.
- The new object must also pass the create-time checks.

## Field paths

```python
from druidkit.field import Path, required

path = Path("spec").child("backup.ownerCheck", "name")
error = required(path, "field is required")
print(error)  # spec.backup.ownerCheck.name: Required value: field is required
```

## Managing owned objects

`EtcdDruidRefManager` decides whether a child `Resource` belongs to an etcd resource, and adopts or releases it.

- **Stateful sets**: adoption removes the controller's owner reference. It then writes the annotations `gardener.cloud/owned-by` (`namespace/name` of the etcd) and `gardener.cloud/owner-type` (`etcd`).
- **Jobs, service accounts, roles, role bindings and pod disruption budgets**: adoption gets a controller owner reference. The reference is built from the kind that the `Scheme` has registered for the controller.
- **Release**: only stateful sets and pod disruption budgets can be released.

```python
from druidkit.etcd_types import Etcd
from druidkit.meta import LabelSelector, ObjectMeta
from druidkit.refmanager import EtcdDruidRefManager, Resource, ResourceKind
from druidkit.scheme import GROUP_VERSION, Scheme, add_to_scheme


class InMemoryClient:
    def __init__(self):
        self.patches = []

    def list(self, kind, namespace, selector):
        return []

    def patch(self, obj, original):
        self.patches.append(obj)


etcd = Etcd(metadata=ObjectMeta(name="etcd-main", namespace="shoot--foo--bar", uid="uid-1"))
client = InMemoryClient()
manager = EtcdDruidRefManager(
    client,
    add_to_scheme(Scheme()),
    etcd,
    LabelSelector(match_labels={"app": "etcd"}),
    GROUP_VERSION.with_kind("Etcd"),
)

pdb = Resource(
    ResourceKind.POD_DISRUPTION_BUDGET,
    ObjectMeta(name="etcd-main", namespace="shoot--foo--bar", labels={"app": "etcd"}),
)
claimed = manager.claim_pod_disruption_budget(pdb)
```

`claim_pod_disruption_budget` returns a deep copy of the object it was given when the object is now owned, and `None` otherwise. The patched object with its new owner reference is what the manager sent to `client.patch`.

Error handling:

- **Adoption**: if an adoption patch raises `NotFoundError`, the object is treated as not claimed.
- **Release**: `release_resource` ignores `NotFoundError` and `InvalidError`.
- **Adoption permission**: the optional `can_adopt` callable runs at most once. Any error it raises makes every later adoption fail with `AdoptionError`.
- **Deletion check**: `recheck_deletion_timestamp(get_object)` builds such a callable. It refuses adoption once the fetched object has a deletion timestamp.

## What druidkit does not do

druidkit does not connect to a cluster and does not run controllers or reconcile loops. It does not create stateful sets, jobs or leases from an etcd spec. `EtcdDruidRefManager` works through whatever client object you pass in. That client must provide these methods:

- `list(kind, namespace, selector)`, which returns `Resource`s.
- `patch(obj, original)`.

The package does not provide a command-line program.

## Running the tests

```
pytest
```