from typing import TypedDict, Optional

from services.models import ApprovalItem, RunSummary


class RunPhase:
    IDLE = "idle"
    ANALYZING = "analyzing"
    PREVIEWING = "previewing"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    FAILED = "failed"


class ResignState(TypedDict):
    year_month: str                     # yyyyMM
    phase: str                          # RunPhase
    items: list[ApprovalItem]           # 補签対象（提出後は最終状態）
    summary: Optional[RunSummary]       # 完了時の成功/失敗件数
    auto_confirm: bool                  # プレビューを飛ばして提出するか
    error_message: Optional[str]        # 失敗理由
    extra: dict                         # 任意の追加データ
