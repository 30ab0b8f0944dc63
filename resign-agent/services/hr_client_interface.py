from abc import ABC, abstractmethod

from services.models import (
    AttendanceRecord,
    CorrectionEntry,
    PunchEntry,
    SessionContext,
    SubmissionConfig,
    SubmitResult,
)


class HRClientInterface(ABC):
    """HR勤怠サービスの抽象インターフェース

    取得系は失敗時に DataFetchError（設定取得は ConfigFetchError）を送出する。
    submit_correction は拒否を例外にせず SubmitResult で返す。
    """

    @abstractmethod
    async def fetch_month_records(
        self, session: SessionContext, year_month: str
    ) -> list[AttendanceRecord]:
        """月次勤怠一覧"""
        ...

    @abstractmethod
    async def fetch_day_detail(
        self, session: SessionContext, api_date: str
    ) -> list[PunchEntry]:
        """日別の打刻詳細（yyyyMMdd）"""
        ...

    @abstractmethod
    async def fetch_existing_corrections(
        self, session: SessionContext, day_timestamp: int
    ) -> list[CorrectionEntry]:
        """対象日の既存補签申請"""
        ...

    @abstractmethod
    async def fetch_submission_config(self, session: SessionContext) -> SubmissionConfig:
        """補签申請フロー設定"""
        ...

    @abstractmethod
    async def submit_correction(
        self, session: SessionContext, payload: dict
    ) -> SubmitResult:
        """補签申請を1件提出"""
        ...

    @abstractmethod
    async def close(self) -> None:
        """リソース解放"""
        ...
