# graph/orchestrator.py
from typing import Callable, Optional

from graph.graph import initial_state
from graph.nodes.analyze_node import analyze_node
from graph.nodes.notify_node import notify_node
from graph.nodes.submit_node import submit_node
from graph.state import ResignState, RunPhase
from services.attendance_analyzer import AttendanceAnalyzer
from services.models import ApprovalItem, RunSummary, SessionContext
from services.resign_executor import ProgressCallback, ResignExecutor


class ResignOrchestrator:
    """対話実行の状態機械

    idle → analyzing → previewing → submitting → completed、
    analyzing / submitting からは failed に抜ける。
    previewing は cancel で idle に戻り、completed / failed は dismiss で idle に戻る。
    analyzing / submitting 中の start は拒否する（キューしない）。
    """

    def __init__(
        self,
        analyzer: AttendanceAnalyzer,
        executor: ResignExecutor,
        notifier,
        on_progress: Optional[ProgressCallback] = None,
        on_result: Optional[Callable[[RunSummary], None]] = None,
    ):
        self._analyzer = analyzer
        self._executor = executor
        self._notifier = notifier
        self._on_progress = on_progress
        self._on_result = on_result
        self._state: ResignState = initial_state("")
        self._state["phase"] = RunPhase.IDLE
        self._session: Optional[SessionContext] = None
        self._active = False

    @property
    def phase(self) -> str:
        return self._state["phase"]

    @property
    def items(self) -> tuple[ApprovalItem, ...]:
        """描画用のスナップショット"""
        return tuple(self._state["items"])

    @property
    def summary(self) -> Optional[RunSummary]:
        return self._state["summary"]

    @property
    def error_message(self) -> Optional[str]:
        return self._state["error_message"]

    def is_running(self) -> bool:
        return self._active

    async def start(self, session: SessionContext, year_month: str) -> bool:
        """分析を開始してプレビューまで進める。実行中なら何もせずFalse"""
        if self._active:
            print(f"[補签] 実行中のため {year_month} の開始要求を拒否しました")
            return False

        self._active = True
        self._session = session
        self._state = initial_state(year_month)
        try:
            update = await analyze_node(
                self._state, analyzer=self._analyzer, session=session
            )
            self._state.update(update)
        finally:
            self._active = False

        notify_node(self._state, notifier=self._notifier)
        return True

    async def confirm(self) -> bool:
        """プレビュー中の補签を提出する。対象0件やプレビュー外では何もしない"""
        if self._active or self.phase != RunPhase.PREVIEWING or not self._state["items"]:
            return False

        self._active = True
        self._state["phase"] = RunPhase.SUBMITTING
        try:
            update = await submit_node(
                self._state,
                executor=self._executor,
                session=self._session,
                on_progress=self._handle_progress,
            )
            self._state.update(update)
        finally:
            self._active = False

        notify_node(self._state, notifier=self._notifier)
        if self.phase == RunPhase.COMPLETED and self._on_result:
            self._on_result(self._state["summary"])
        return True

    def cancel(self) -> bool:
        """プレビューを破棄してidleに戻る"""
        if self.phase != RunPhase.PREVIEWING:
            return False
        self._reset()
        return True

    def dismiss(self) -> bool:
        """完了・失敗の結果を閉じてidleに戻る"""
        if self.phase not in (RunPhase.COMPLETED, RunPhase.FAILED):
            return False
        self._reset()
        return True

    def _handle_progress(self, index: int, item: ApprovalItem) -> None:
        items = list(self._state["items"])
        items[index] = item
        self._state["items"] = items
        if self._on_progress:
            self._on_progress(index, item)

    def _reset(self) -> None:
        self._state = initial_state("")
        self._state["phase"] = RunPhase.IDLE
        self._session = None
