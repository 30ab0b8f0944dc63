from services.hr_client_interface import HRClientInterface
from services.models import (
    AttendanceRecord,
    CorrectionEntry,
    PunchEntry,
    SessionContext,
    SubmissionConfig,
    SubmitOutcome,
    SubmitResult,
)


class DummyHRClient(HRClientInterface):
    """ダミーHRクライアント（ログ出力のみ）。ドライラン用。

    records / details を渡すとその内容を返す。提出は常に成功し、submitted に記録される。
    """

    def __init__(
        self,
        records: list[AttendanceRecord] = None,
        details: dict[str, list[PunchEntry]] = None,
        corrections: dict[int, list[CorrectionEntry]] = None,
    ):
        self._records = records or []
        self._details = details or {}
        self._corrections = corrections or {}
        self.submitted: list[dict] = []

    async def fetch_month_records(
        self, session: SessionContext, year_month: str
    ) -> list[AttendanceRecord]:
        print(f"[DummyHRClient] 勤怠一覧取得（シミュレーション）: {year_month}")
        return list(self._records)

    async def fetch_day_detail(
        self, session: SessionContext, api_date: str
    ) -> list[PunchEntry]:
        return list(self._details.get(api_date, []))

    async def fetch_existing_corrections(
        self, session: SessionContext, day_timestamp: int
    ) -> list[CorrectionEntry]:
        return list(self._corrections.get(day_timestamp, []))

    async def fetch_submission_config(self, session: SessionContext) -> SubmissionConfig:
        return SubmissionConfig(flow_type=0, flow_setting_id=0, department_id=0)

    async def submit_correction(
        self, session: SessionContext, payload: dict
    ) -> SubmitResult:
        print(f"[DummyHRClient] 補签提出（シミュレーション）: {payload['start_date']}")
        self.submitted.append(payload)
        return SubmitResult(outcome=SubmitOutcome.SUCCESS)

    async def close(self) -> None:
        pass
