from dataclasses import dataclass, field, replace
from enum import Enum, IntEnum
from typing import Optional


class Situation(IntEnum):
    """勤怠記録の状態"""
    NORMAL = 0
    WARNING = -1


class ClockType(IntEnum):
    """打刻種別"""
    SIGN_IN = 1
    SIGN_OUT = 2

    @property
    def label(self) -> str:
        return "上班" if self is ClockType.SIGN_IN else "下班"


def clock_type_label(value: int) -> str:
    try:
        return ClockType(value).label
    except ValueError:
        return str(value)


class ItemStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"


# pending → processing → success | error の順にのみ遷移できる
_ALLOWED_TRANSITIONS = {
    ItemStatus.PENDING: {ItemStatus.PROCESSING},
    ItemStatus.PROCESSING: {ItemStatus.SUCCESS, ItemStatus.ERROR},
    ItemStatus.SUCCESS: set(),
    ItemStatus.ERROR: set(),
}


@dataclass(frozen=True)
class PunchEntry:
    """1日の中の打刻枠（上班/下班）"""
    range_name: str
    range_id: str
    clock_attribution: int
    clock_time: Optional[str] = None
    status_desc: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "PunchEntry":
        return cls(
            range_name=data.get("rangeName", ""),
            range_id=str(data.get("rangeId", "")),
            clock_attribution=int(data.get("clockAttribution") or 0),
            clock_time=data.get("clockTime") or None,
            status_desc=data.get("statusDesc") or None,
        )

    @property
    def needs_correction(self) -> bool:
        """打刻なし、または異常ステータス付き"""
        return not self.clock_time or bool(self.status_desc)


@dataclass(frozen=True)
class AttendanceRecord:
    """月次勤怠一覧の1日分"""
    date: str
    timestamp: int
    is_workday: bool
    situation: int
    is_current_month: bool = True
    sign_time_list: list[PunchEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "AttendanceRecord":
        return cls(
            date=str(data.get("date", "")),
            timestamp=int(data["time"]),
            is_workday=bool(data.get("isWorkday", True)),
            situation=int(data.get("situation", Situation.NORMAL)),
            is_current_month=bool(data.get("isCurrentMonth", True)),
            sign_time_list=[
                PunchEntry.from_dict(p) for p in data.get("signTimeList") or []
            ],
        )

    @property
    def is_warning(self) -> bool:
        return self.situation == Situation.WARNING


@dataclass(frozen=True)
class CorrectionEntry:
    """既存の補签（bdk）申請"""
    start_date: int

    @classmethod
    def from_dict(cls, data: dict) -> "CorrectionEntry":
        return cls(start_date=int(data["startDate"]))


@dataclass(frozen=True)
class SubmissionConfig:
    """補签申請フローの設定。1回の実行で全件共通"""
    flow_type: object
    flow_setting_id: object
    department_id: object

    @classmethod
    def from_dict(cls, data: dict) -> "SubmissionConfig":
        departments = data.get("departmentList") or []
        if not departments:
            raise ValueError("departmentList が空です")
        return cls(
            flow_type=data.get("flow_type", data.get("flowType")),
            flow_setting_id=data.get("flowSettingId"),
            department_id=departments[0].get("departmentId"),
        )


@dataclass(frozen=True)
class ApprovalItem:
    """補签が必要な1打刻分。状態変更は新しいスナップショットを返す"""
    date: str                           # MM-DD
    time: str                           # HH:MM
    clock_type: int                     # 1=上班 2=下班
    range_id: str
    timestamp: int                      # 対象日のUnixタイムスタンプ（0:00）
    status: ItemStatus = ItemStatus.PENDING
    error: Optional[str] = None

    def advance(self, status: ItemStatus, error: Optional[str] = None) -> "ApprovalItem":
        if status not in _ALLOWED_TRANSITIONS[self.status]:
            raise ValueError(f"不正な状態遷移: {self.status.value} -> {status.value}")
        return replace(
            self, status=status, error=error if status is ItemStatus.ERROR else None
        )

    @property
    def label(self) -> str:
        return f"{clock_type_label(self.clock_type)}: {self.date} {self.time}"


@dataclass(frozen=True)
class RunSummary:
    success_count: int
    error_count: int
    items: tuple[ApprovalItem, ...]

    @classmethod
    def from_items(cls, items) -> "RunSummary":
        items = tuple(items)
        return cls(
            success_count=sum(1 for i in items if i.status is ItemStatus.SUCCESS),
            error_count=sum(1 for i in items if i.status is ItemStatus.ERROR),
            items=items,
        )

    @property
    def failed_items(self) -> list[ApprovalItem]:
        return [i for i in self.items if i.status is ItemStatus.ERROR]


class SubmitOutcome(str, Enum):
    SUCCESS = "success"
    RECOVERABLE = "recoverable"     # 重複提出。リトライで解消しうる
    TERMINAL = "terminal"


@dataclass
class SubmitResult:
    outcome: SubmitOutcome
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome is SubmitOutcome.SUCCESS


@dataclass(frozen=True)
class SessionContext:
    """HRサービスの認証情報"""
    cookies: dict
    csrf_token: str

    def headers(self) -> dict:
        cookie = "; ".join(f"{k}={v}" for k, v in self.cookies.items())
        return {"Cookie": cookie, "X-CSRF-TOKEN": self.csrf_token}
