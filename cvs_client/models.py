# -*- coding: utf-8 -*-
"""
Volume data model for the Cloud Volumes Service API.

Request-side models render to the camelCase wire dict with ``to_params()``.
Response-side models decode from the API JSON with ``from_dict()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from cvs_client.contract import LIFECYCLE_STATE_AVAILABLE, LIFECYCLE_STATE_ERROR


def _int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _str(value: Any) -> str:
    return "" if value is None else str(value)


def _dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


# =========================================================
# Snapshot policy
# =========================================================
@dataclass(frozen=True)
class HourlySchedule:
    minute: int = 0
    snapshots_to_keep: int = 0

    def to_params(self) -> dict:
        return {"minute": self.minute, "snapshotsToKeep": self.snapshots_to_keep}

    @classmethod
    def from_dict(cls, data: Any) -> "HourlySchedule":
        data = _dict(data)
        return cls(minute=_int(data.get("minute")), snapshots_to_keep=_int(data.get("snapshotsToKeep")))


@dataclass(frozen=True)
class DailySchedule:
    hour: int = 0
    minute: int = 0
    snapshots_to_keep: int = 0

    def to_params(self) -> dict:
        return {"hour": self.hour, "minute": self.minute, "snapshotsToKeep": self.snapshots_to_keep}

    @classmethod
    def from_dict(cls, data: Any) -> "DailySchedule":
        data = _dict(data)
        return cls(
            hour=_int(data.get("hour")),
            minute=_int(data.get("minute")),
            snapshots_to_keep=_int(data.get("snapshotsToKeep")),
        )


@dataclass(frozen=True)
class WeeklySchedule:
    day: str = ""
    hour: int = 0
    minute: int = 0
    snapshots_to_keep: int = 0

    def to_params(self) -> dict:
        return {
            "day": self.day,
            "hour": self.hour,
            "minute": self.minute,
            "snapshotsToKeep": self.snapshots_to_keep,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "WeeklySchedule":
        data = _dict(data)
        return cls(
            day=_str(data.get("day")),
            hour=_int(data.get("hour")),
            minute=_int(data.get("minute")),
            snapshots_to_keep=_int(data.get("snapshotsToKeep")),
        )


@dataclass(frozen=True)
class MonthlySchedule:
    days_of_month: str = ""
    hour: int = 0
    minute: int = 0
    snapshots_to_keep: int = 0

    def to_params(self) -> dict:
        return {
            "daysOfMonth": self.days_of_month,
            "hour": self.hour,
            "minute": self.minute,
            "snapshotsToKeep": self.snapshots_to_keep,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "MonthlySchedule":
        data = _dict(data)
        return cls(
            days_of_month=_str(data.get("daysOfMonth")),
            hour=_int(data.get("hour")),
            minute=_int(data.get("minute")),
            snapshots_to_keep=_int(data.get("snapshotsToKeep")),
        )


@dataclass(frozen=True)
class SnapshotPolicy:
    """
    Snapshot schedule set for a volume.

    The wire format always carries all four schedule shapes; an unset
    schedule goes out zero-valued.
    """

    enabled: bool = False
    daily_schedule: Optional[DailySchedule] = None
    hourly_schedule: Optional[HourlySchedule] = None
    weekly_schedule: Optional[WeeklySchedule] = None
    monthly_schedule: Optional[MonthlySchedule] = None

    def to_params(self) -> dict:
        return {
            "enabled": self.enabled,
            "dailySchedule": (self.daily_schedule or DailySchedule()).to_params(),
            "hourlySchedule": (self.hourly_schedule or HourlySchedule()).to_params(),
            "weeklySchedule": (self.weekly_schedule or WeeklySchedule()).to_params(),
            "monthlySchedule": (self.monthly_schedule or MonthlySchedule()).to_params(),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "SnapshotPolicy":
        data = _dict(data)
        return cls(
            enabled=bool(data.get("enabled", False)),
            daily_schedule=DailySchedule.from_dict(data.get("dailySchedule")),
            hourly_schedule=HourlySchedule.from_dict(data.get("hourlySchedule")),
            weekly_schedule=WeeklySchedule.from_dict(data.get("weeklySchedule")),
            monthly_schedule=MonthlySchedule.from_dict(data.get("monthlySchedule")),
        )


# =========================================================
# Export policy
# =========================================================
@dataclass(frozen=True)
class ExportPolicyRule:
    access: str = ""
    allowed_clients: str = ""
    nfsv3: bool = False
    nfsv4: bool = False

    def to_params(self) -> dict:
        return {
            "access": self.access,
            "allowedClients": self.allowed_clients,
            "nfsv3": {"checked": self.nfsv3},
            "nfsv4": {"checked": self.nfsv4},
        }

    @classmethod
    def from_dict(cls, data: Any) -> "ExportPolicyRule":
        data = _dict(data)
        return cls(
            access=_str(data.get("access")),
            allowed_clients=_str(data.get("allowedClients")),
            nfsv3=bool(_dict(data.get("nfsv3")).get("checked", False)),
            nfsv4=bool(_dict(data.get("nfsv4")).get("checked", False)),
        )


@dataclass(frozen=True)
class ExportPolicy:
    # Evaluation order on the server follows list order.
    rules: Tuple[ExportPolicyRule, ...] = ()

    def to_params(self) -> dict:
        return {"rules": [rule.to_params() for rule in self.rules]}

    @classmethod
    def from_dict(cls, data: Any) -> "ExportPolicy":
        rules = _dict(data).get("rules") or []
        return cls(rules=tuple(ExportPolicyRule.from_dict(r) for r in rules))


# =========================================================
# Volumes
# =========================================================
@dataclass
class VolumeRequest:
    name: str = ""
    region: str = ""
    creation_token: str = ""
    protocol_types: List[str] = field(default_factory=list)
    network: str = ""
    size: int = 0
    service_level: str = ""
    snapshot_policy: Optional[SnapshotPolicy] = None
    export_policy: Optional[ExportPolicy] = None
    volume_id: str = ""
    zone: str = ""
    storage_class: str = ""
    shared_vpc_project_number: str = ""

    def to_params(self, *, network: Optional[str] = None) -> dict:
        """
        Render the request body.

        ``exportPolicy`` is always present so an update can clear the rules.
        ``shared_vpc_project_number`` only picks the network project and is
        never sent.
        """
        params: Dict[str, Any] = {}
        scalars = (
            ("name", self.name),
            ("region", self.region),
            ("creationToken", self.creation_token),
            ("network", self.network if network is None else network),
            ("quotaInBytes", self.size),
            ("serviceLevel", self.service_level),
            ("volumeId", self.volume_id),
            ("zone", self.zone),
            ("storageClass", self.storage_class),
        )
        for key, value in scalars:
            if value:
                params[key] = value
        if self.protocol_types:
            params["protocolTypes"] = list(self.protocol_types)
        if self.snapshot_policy is not None:
            params["snapshotPolicy"] = self.snapshot_policy.to_params()
        params["exportPolicy"] = (self.export_policy or ExportPolicy()).to_params()
        return params


@dataclass(frozen=True)
class MountPoint:
    export: str = ""
    server: str = ""
    protocol_type: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "MountPoint":
        data = _dict(data)
        return cls(
            export=_str(data.get("export")),
            server=_str(data.get("server")),
            protocol_type=_str(data.get("protocolType")),
        )


@dataclass(frozen=True)
class VolumeResult:
    name: str = ""
    region: str = ""
    creation_token: str = ""
    protocol_types: Tuple[str, ...] = ()
    network: str = ""
    size: int = 0
    service_level: str = ""
    snapshot_policy: Optional[SnapshotPolicy] = None
    export_policy: Optional[ExportPolicy] = None
    volume_id: str = ""
    lifecycle_state: str = ""
    lifecycle_state_details: str = ""
    mount_points: Tuple[MountPoint, ...] = ()
    zone: str = ""
    storage_class: str = ""

    @property
    def is_available(self) -> bool:
        return self.lifecycle_state == LIFECYCLE_STATE_AVAILABLE

    @property
    def is_error(self) -> bool:
        return self.lifecycle_state == LIFECYCLE_STATE_ERROR

    @classmethod
    def from_dict(cls, data: Any) -> "VolumeResult":
        data = _dict(data)
        snapshot = data.get("snapshotPolicy")
        export = data.get("exportPolicy")
        return cls(
            name=_str(data.get("name")),
            region=_str(data.get("region")),
            creation_token=_str(data.get("creationToken")),
            protocol_types=tuple(data.get("protocolTypes") or ()),
            network=_str(data.get("network")),
            size=_int(data.get("quotaInBytes")),
            service_level=_str(data.get("serviceLevel")),
            snapshot_policy=SnapshotPolicy.from_dict(snapshot) if snapshot else None,
            export_policy=ExportPolicy.from_dict(export) if export else None,
            volume_id=_str(data.get("volumeId")),
            lifecycle_state=_str(data.get("lifeCycleState")),
            lifecycle_state_details=_str(data.get("lifeCycleStateDetails")),
            mount_points=tuple(MountPoint.from_dict(m) for m in data.get("mountPoints") or ()),
            zone=_str(data.get("zone")),
            storage_class=_str(data.get("storageClass")),
        )


# =========================================================
# Envelopes
# =========================================================
@dataclass(frozen=True)
class ApiErrorResponse:
    code: int = 0
    message: str = ""

    @property
    def signals_success(self) -> bool:
        return self.code == 0 and not self.message


@dataclass(frozen=True)
class CreateVolumeResult:
    volume_id: str = ""
    code: int = 0
    message: str = ""
    job_key: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "CreateVolumeResult":
        data = _dict(data)
        response = _dict(data.get("response"))
        job_key, inner = "", {}
        # The inner key names the backend job; only its single entry matters.
        for key, value in response.items():
            job_key, inner = str(key), _dict(value)
            break
        return cls(
            volume_id=_str(inner.get("volumeId")),
            code=_int(data.get("code")),
            message=_str(data.get("message")),
            job_key=job_key,
        )
