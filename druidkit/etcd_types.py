"""Resource types for etcd clusters and etcd backup copy tasks."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from druidkit.meta import LabelSelector, ObjectMeta, SecretRef

ResourceRequirements = dict[str, dict[str, str]]
"""Compute resources keyed by ``limits`` and ``requests``, each a map of quantities."""


class MetricsLevel(str, Enum):
    """How much detail etcd exports in its metrics."""

    BASIC = "basic"
    EXTENSIVE = "extensive"


class GarbageCollectionPolicy(str, Enum):
    """Policy for garbage collecting old backups."""

    EXPONENTIAL = "Exponential"
    LIMIT_BASED = "LimitBased"


class CompressionPolicy(str, Enum):
    """Compression applied to snapshots."""

    GZIP = "gzip"
    LZW = "lzw"
    ZLIB = "zlib"


class CompactionMode(str, Enum):
    """Auto-compaction mode: duration based or revision based retention."""

    PERIODIC = "periodic"
    REVISION = "revision"


class ConditionStatus(str, Enum):
    """Status of a condition."""

    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"
    PROGRESSING = "Progressing"


class ConditionType(str, Enum):
    """Type of a condition."""

    READY = "Ready"
    ALL_MEMBERS_READY = "AllMembersReady"
    BACKUP_READY = "BackupReady"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"


class EtcdMemberConditionStatus(str, Enum):
    """Status of an etcd cluster member."""

    READY = "Ready"
    NOT_READY = "NotReady"
    UNKNOWN = "Unknown"


class EtcdRole(str, Enum):
    """Role of an etcd cluster member."""

    LEADER = "Leader"
    MEMBER = "Member"


DEFAULT_COMPRESSION = CompressionPolicy.GZIP
DEFAULT_COMPRESSION_ENABLED = False
CONDITION_CHECK_ERROR = "ConditionCheckError"


@dataclass
class StoreSpec:
    """Object store where backups are kept."""

    prefix: str = ""
    container: str | None = None
    provider: str | None = None
    secret_ref: SecretRef | None = None


@dataclass
class SecretReference(SecretRef):
    """A secret reference that may name the data key holding the credentials."""

    data_key: str | None = None


@dataclass
class TLSConfig:
    """TLS secrets for the CA, the server and optionally the client."""

    tls_ca_secret_ref: SecretReference = field(default_factory=SecretReference)
    server_tls_secret_ref: SecretRef = field(default_factory=SecretRef)
    client_tls_secret_ref: SecretRef = field(default_factory=SecretRef)


@dataclass
class CompressionSpec:
    """Compression settings for full and delta snapshots."""

    enabled: bool | None = None
    policy: CompressionPolicy | None = None


@dataclass
class OwnerCheckSpec:
    """Settings for checking the cluster owner recorded in a DNS record."""

    name: str = ""
    id: str = ""
    interval: timedelta | None = None
    timeout: timedelta | None = None
    dns_cache_ttl: timedelta | None = None


@dataclass
class LeaderElectionSpec:
    """Settings for leader election of the backup sidecar."""

    reelection_period: timedelta | None = None
    etcd_connection_timeout: timedelta | None = None


@dataclass
class BackupSpec:
    """Settings for full and delta snapshots of etcd."""

    port: int | None = None
    tls: TLSConfig | None = None
    image: str | None = None
    store: StoreSpec | None = None
    resources: ResourceRequirements | None = None
    compaction_resources: ResourceRequirements | None = None
    full_snapshot_schedule: str | None = None
    garbage_collection_policy: GarbageCollectionPolicy | None = None
    garbage_collection_period: timedelta | None = None
    delta_snapshot_period: timedelta | None = None
    delta_snapshot_memory_limit: str | None = None
    snapshot_compression: CompressionSpec | None = None
    enable_profiling: bool | None = None
    etcd_snapshot_timeout: timedelta | None = None
    owner_check: OwnerCheckSpec | None = None
    leader_election: LeaderElectionSpec | None = None


@dataclass
class EtcdConfig:
    """Settings of the etcd container."""

    quota: str | None = None
    defragmentation_schedule: str | None = None
    server_port: int | None = None
    client_port: int | None = None
    image: str | None = None
    auth_secret_ref: SecretRef | None = None
    metrics: MetricsLevel | None = None
    resources: ResourceRequirements | None = None
    client_url_tls: TLSConfig | None = None
    peer_url_tls: TLSConfig | None = None
    etcd_defrag_timeout: timedelta | None = None
    heartbeat_duration: timedelta | None = None


@dataclass
class SharedConfig:
    """Settings shared by etcd and the backup sidecar."""

    auto_compaction_mode: CompactionMode | None = None
    auto_compaction_retention: str | None = None


@dataclass
class SchedulingConstraints:
    """Affinity and topology spread constraints for the etcd pods."""

    affinity: dict[str, Any] | None = None
    topology_spread_constraints: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class EtcdSpec:
    """Desired state of an etcd cluster."""

    selector: LabelSelector | None = None
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    etcd: EtcdConfig = field(default_factory=EtcdConfig)
    backup: BackupSpec = field(default_factory=BackupSpec)
    common: SharedConfig = field(default_factory=SharedConfig)
    scheduling_constraints: SchedulingConstraints = field(default_factory=SchedulingConstraints)
    replicas: int = 0
    priority_class_name: str | None = None
    storage_class: str | None = None
    storage_capacity: str | None = None
    volume_claim_template: str | None = None


@dataclass
class CrossVersionObjectReference:
    """Identifies a referred resource by kind, name and API version."""

    kind: str = ""
    name: str = ""
    api_version: str = ""


@dataclass
class Condition:
    """An observation of one aspect of a resource's state."""

    type: ConditionType
    status: ConditionStatus
    last_transition_time: datetime | None = None
    last_update_time: datetime | None = None
    reason: str = ""
    message: str = ""


@dataclass
class EtcdMemberStatus:
    """Membership information about one etcd cluster member."""

    name: str
    status: EtcdMemberConditionStatus
    id: str | None = None
    role: EtcdRole | None = None
    reason: str = ""
    last_transition_time: datetime | None = None


@dataclass
class EtcdStatus:
    """Observed state of an etcd cluster."""

    observed_generation: int | None = None
    etcd: CrossVersionObjectReference | None = None
    conditions: list[Condition] = field(default_factory=list)
    service_name: str | None = None
    last_error: str | None = None
    cluster_size: int | None = None
    current_replicas: int = 0
    replicas: int = 0
    ready_replicas: int = 0
    ready: bool | None = None
    updated_replicas: int = 0
    label_selector: LabelSelector | None = None
    members: list[EtcdMemberStatus] = field(default_factory=list)


@dataclass
class Etcd:
    """An etcd cluster resource."""

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: EtcdSpec = field(default_factory=EtcdSpec)
    status: EtcdStatus = field(default_factory=EtcdStatus)

    def deep_copy(self) -> Etcd:
        """Return a fully independent copy."""
        return copy.deepcopy(self)


@dataclass
class EtcdList:
    """A list of etcd resources."""

    items: list[Etcd] = field(default_factory=list)
    resource_version: str = ""


@dataclass
class WaitForFinalSnapshotSpec:
    """Whether and how long to wait for a final full snapshot before copying."""

    enabled: bool = False
    timeout: timedelta | None = None


@dataclass
class EtcdCopyBackupsTaskSpec:
    """Parameters of a task that copies backups between stores."""

    source_store: StoreSpec = field(default_factory=StoreSpec)
    target_store: StoreSpec = field(default_factory=StoreSpec)
    max_backup_age: int | None = None
    max_backups: int | None = None
    wait_for_final_snapshot: WaitForFinalSnapshotSpec | None = None


@dataclass
class EtcdCopyBackupsTaskStatus:
    """Observed state of a backup copy task."""

    conditions: list[Condition] = field(default_factory=list)
    observed_generation: int | None = None
    last_error: str | None = None


@dataclass
class EtcdCopyBackupsTask:
    """A task copying etcd backups from a source store to a target store."""

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: EtcdCopyBackupsTaskSpec = field(default_factory=EtcdCopyBackupsTaskSpec)
    status: EtcdCopyBackupsTaskStatus = field(default_factory=EtcdCopyBackupsTaskStatus)

    def deep_copy(self) -> EtcdCopyBackupsTask:
        """Return a fully independent copy."""
        return copy.deepcopy(self)


@dataclass
class EtcdCopyBackupsTaskList:
    """A list of backup copy tasks."""

    items: list[EtcdCopyBackupsTask] = field(default_factory=list)
    resource_version: str = ""