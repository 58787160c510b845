from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Union

# Closed set of value types a decoded scan field may carry
FieldValue = Union[str, bool, int, float]

# Wire field names in the fixed order used by the scan encoder (index = key token)
WIRE_FIELDS = (
    "courseId",
    "activityId",
    "activityType",
    "data",
    "rollcallId",
    "groupSetId",
    "accessCode",
    "action",
    "enableGroupRollcall",
    "createUser",
    "joinCourse",
)

_ATTR_FOR_WIRE = {
    "courseId": "course_id",
    "activityId": "activity_id",
    "activityType": "activity_type",
    "data": "data",
    "rollcallId": "rollcall_id",
    "groupSetId": "group_set_id",
    "accessCode": "access_code",
    "action": "action",
    "enableGroupRollcall": "enable_group_rollcall",
    "createUser": "create_user",
    "joinCourse": "join_course",
}

CODE_SPACE = 10000
CODE_WIDTH = 4


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Outcome(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class CheckinMode(str, Enum):
    QR = "qr"
    NUMBER = "number"


@dataclass
class Account:
    id: str
    name: str = ""
    is_auto: bool = True
    latest_cookie: Optional[str] = None

    @property
    def has_cookie(self) -> bool:
        return bool(self.latest_cookie)


@dataclass
class ScanPayload:
    """
    Structured result of decoding a scan string.

    Known fields are attributes; keys the decoder does not recognise land in
    `extras` under their raw name. Mapping-style access uses wire names.
    """
    course_id: Optional[FieldValue] = None
    activity_id: Optional[FieldValue] = None
    activity_type: Optional[FieldValue] = None
    data: Optional[FieldValue] = None
    rollcall_id: Optional[FieldValue] = None
    group_set_id: Optional[FieldValue] = None
    access_code: Optional[FieldValue] = None
    action: Optional[FieldValue] = None
    enable_group_rollcall: Optional[FieldValue] = None
    create_user: Optional[FieldValue] = None
    join_course: Optional[FieldValue] = None
    extras: Dict[str, FieldValue] = field(default_factory=dict)

    def set(self, key: str, value: FieldValue):
        attr = _ATTR_FOR_WIRE.get(key)
        if attr:
            setattr(self, attr, value)
        else:
            self.extras[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        attr = _ATTR_FOR_WIRE.get(key)
        if attr:
            value = getattr(self, attr)
            return default if value is None else value
        return self.extras.get(key, default)

    def __getitem__(self, key: str) -> FieldValue:
        if key not in self:
            raise KeyError(key)
        return self.get(key)

    def __contains__(self, key: object) -> bool:
        attr = _ATTR_FOR_WIRE.get(key) if isinstance(key, str) else None
        if attr:
            return getattr(self, attr) is not None
        return key in self.extras

    def __len__(self) -> int:
        return len(self.to_dict())

    def to_dict(self) -> Dict[str, FieldValue]:
        out: Dict[str, FieldValue] = {}
        for wire in WIRE_FIELDS:
            value = getattr(self, _ATTR_FOR_WIRE[wire])
            if value is not None:
                out[wire] = value
        out.update(self.extras)
        return out


@dataclass(frozen=True)
class CheckinPayload:
    """What gets submitted for one check-in: a QR data blob or a numeric code."""
    rollcall_id: Optional[str]
    data: Optional[str] = None
    number_code: Optional[str] = None

    @classmethod
    def from_scan(cls, scan: ScanPayload) -> "CheckinPayload":
        rollcall_id = scan.get("rollcallId")
        data = scan.get("data")
        return cls(
            rollcall_id=None if rollcall_id is None else str(rollcall_id),
            data=None if data is None else str(data),
        )

    @classmethod
    def numeric(cls, rollcall_id: str, code: str) -> "CheckinPayload":
        return cls(rollcall_id=str(rollcall_id), number_code=code)

    @property
    def mode(self) -> CheckinMode:
        return CheckinMode.NUMBER if self.number_code is not None else CheckinMode.QR

    def missing_fields(self) -> List[str]:
        missing = []
        if not self.rollcall_id:
            missing.append("rollcallId")
        if self.mode == CheckinMode.QR and not self.data:
            missing.append("data")
        return missing

    def body(self, device_id: str) -> Dict[str, str]:
        if self.mode == CheckinMode.NUMBER:
            return {"deviceId": device_id, "numberCode": self.number_code}
        return {"data": self.data, "deviceId": device_id}


@dataclass(frozen=True)
class AttemptRecord:
    account_id: str
    cookie_used: Optional[str]
    request_payload: Dict[str, Any]
    response_status: Optional[int]
    response_body: Any
    outcome: Outcome
    error: Optional[str] = None
    error_kind: Optional[str] = None
    scan_id: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def succeeded(self) -> bool:
        return self.outcome == Outcome.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account_id": self.account_id,
            "cookie_used": self.cookie_used,
            "scan_id": self.scan_id,
            "request_payload": self.request_payload,
            "response_status": self.response_status,
            "response_body": self.response_body,
            "outcome": self.outcome.value,
            "error": self.error,
            "error_kind": self.error_kind,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class ProbeResult:
    code: str
    success: bool


@dataclass
class BruteForceSession:
    rollcall_id: str
    probe_account_id: str
    batch_size: int = 500
    discovered_code: Optional[str] = None
    batches_run: int = 0
    probes_sent: int = 0

    @staticmethod
    def format_code(n: int) -> str:
        return str(n).zfill(CODE_WIDTH)

    def search_space(self) -> Iterator[str]:
        for n in range(CODE_SPACE):
            yield self.format_code(n)

    def batches(self) -> Iterator[List[str]]:
        """Contiguous ascending slices of the code space."""
        for start in range(0, CODE_SPACE, self.batch_size):
            stop = min(start + self.batch_size, CODE_SPACE)
            yield [self.format_code(n) for n in range(start, stop)]


@dataclass
class RollcallTask:
    rollcall_id: str
    status: str = ""
    is_number: bool = False
    is_radar: bool = False
    title: str = ""
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_api(cls, item: Dict[str, Any]) -> "RollcallTask":
        return cls(
            rollcall_id=str(item.get("rollcall_id", "")),
            status=item.get("status") or "",
            is_number=bool(item.get("is_number")),
            is_radar=bool(item.get("is_radar")),
            title=item.get("title") or item.get("course_title") or "",
            raw=dict(item),
        )

    @property
    def is_numeric_recovery(self) -> bool:
        return self.status == "absent" and self.is_number and not self.is_radar

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rollcall_id": self.rollcall_id,
            "status": self.status,
            "is_number": self.is_number,
            "is_radar": self.is_radar,
            "title": self.title,
        }


@dataclass
class ScanReport:
    scan_id: str
    raw: str
    payload: ScanPayload
    accounts: List[str] = field(default_factory=list)
    records: List[AttemptRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scan_id": self.scan_id,
            "raw": self.raw,
            "payload": self.payload.to_dict(),
            "accounts": self.accounts,
            "records": [r.to_dict() for r in self.records],
        }


@dataclass
class DigitalReport:
    tasks: List[RollcallTask] = field(default_factory=list)
    records: List[AttemptRecord] = field(default_factory=list)
    codes: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tasks": [t.to_dict() for t in self.tasks],
            "codes": self.codes,
            "records": [r.to_dict() for r in self.records],
        }
