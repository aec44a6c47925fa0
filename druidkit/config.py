"""Configuration for the compaction and custodian controllers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta


@dataclass(frozen=True)
class CompactionLeaseConfig:
    """Settings for the compaction controller.

    ``active_deadline_duration`` is how long a compaction job may run before it
    is killed; ``events_threshold`` is how many etcd events are allowed before a
    compaction job is triggered.
    """

    compaction_enabled: bool = False
    active_deadline_duration: timedelta = timedelta(0)
    events_threshold: int = 0


@dataclass(frozen=True)
class EtcdMemberConfig:
    """Thresholds after which an etcd member counts as ``NotReady`` or ``Unknown``."""

    etcd_member_not_ready_threshold: timedelta = timedelta(0)
    etcd_member_unknown_threshold: timedelta = timedelta(0)


@dataclass(frozen=True)
class EtcdCustodianController:
    """Settings for the etcd custodian controller."""

    etcd_member: EtcdMemberConfig = field(default_factory=EtcdMemberConfig)
    sync_period: timedelta = timedelta(0)