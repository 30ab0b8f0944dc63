import asyncio
from typing import Callable, Optional

from services.errors import (
    ConfigFetchError,
    DataFetchError,
    DuplicateSubmissionError,
    RetryBudgetExhaustedError,
    SubmissionRejectedError,
)
from services.hr_client_interface import HRClientInterface
from services.models import (
    ApprovalItem,
    ItemStatus,
    SessionContext,
    SubmissionConfig,
    SubmitOutcome,
)
from services.timeutil import from_timestamp, midnight_timestamp

ProgressCallback = Callable[[int, ApprovalItem], None]


async def _sleep(seconds: float) -> None:
    """テスト時にモック可能な待機"""
    await asyncio.sleep(seconds)


class ResignExecutor:
    """補签申請を1件ずつ提出する

    提出間隔は固定（既定10秒）。重複提出と判定された場合のみ
    同じ申請を最大 max_attempts 回まで再提出する。
    """

    def __init__(
        self,
        client: HRClientInterface,
        max_attempts: int = 5,
        pacing_seconds: float = 10,
        tz_name: str = None,
    ):
        self._client = client
        self._max_attempts = max_attempts
        self._pacing_seconds = pacing_seconds
        self._tz_name = tz_name

    @classmethod
    def from_config(cls, client: HRClientInterface, config: dict) -> "ResignExecutor":
        rules = config["submitter"]
        return cls(
            client,
            max_attempts=rules["max_attempts"],
            pacing_seconds=rules["pacing_seconds"],
            tz_name=config.get("timezone"),
        )

    async def execute(
        self,
        session: SessionContext,
        items: list[ApprovalItem],
        on_progress: Optional[ProgressCallback] = None,
    ) -> list[ApprovalItem]:
        """全件を順に提出し、最終状態のスナップショット一覧を返す

        渡されたitemsは変更しない。設定取得に失敗した場合は1件も提出せず
        ConfigFetchError を送出する。
        """
        try:
            submission_config = await self._client.fetch_submission_config(session)
        except ConfigFetchError:
            raise
        except DataFetchError as e:
            raise ConfigFetchError(str(e)) from e

        results = list(items)
        for index, item in enumerate(results):
            item = item.advance(ItemStatus.PROCESSING)
            results[index] = item
            if on_progress:
                on_progress(index, item)

            item = await self._submit(session, item, submission_config)
            results[index] = item
            if on_progress:
                on_progress(index, item)

            if index < len(results) - 1:
                await _sleep(self._pacing_seconds)

        return results

    def build_payload(self, item: ApprovalItem, submission_config: SubmissionConfig) -> dict:
        day = from_timestamp(item.timestamp, self._tz_name).strftime("%Y-%m-%d")
        return {
            "flow_type": submission_config.flow_type,
            "flowSettingId": submission_config.flow_setting_id,
            "departmentId": submission_config.department_id,
            "date": str(midnight_timestamp(item.timestamp, self._tz_name)),
            "start_date": f"{day} {item.time}",
            "timeRangeId": item.range_id,
            "bdkDate": day,
            "clockType": item.clock_type,
        }

    async def _submit(
        self,
        session: SessionContext,
        item: ApprovalItem,
        submission_config: SubmissionConfig,
    ) -> ApprovalItem:
        """提出（重複提出のみリトライ）"""
        payload = self.build_payload(item, submission_config)
        last_error: Optional[DuplicateSubmissionError] = None

        for attempt in range(1, self._max_attempts + 1):
            try:
                await self._submit_once(session, payload)
                print(f"[補签提出] {item.label} 成功")
                return item.advance(ItemStatus.SUCCESS)
            except DuplicateSubmissionError as e:
                last_error = e
                print(f"[補签提出] {item.label} 重複提出のため再提出 ({attempt}/{self._max_attempts})")
            except SubmissionRejectedError as e:
                print(f"[補签提出] {item.label} 失敗: {e}")
                return item.advance(ItemStatus.ERROR, str(e))

        exhausted = RetryBudgetExhaustedError(
            self._max_attempts, str(last_error) if last_error else "重复提交多次失败"
        )
        print(f"[補签提出] {item.label} リトライ上限: {exhausted}")
        return item.advance(ItemStatus.ERROR, str(exhausted))

    async def _submit_once(self, session: SessionContext, payload: dict) -> None:
        result = await self._client.submit_correction(session, payload)
        if result.success:
            return
        if result.outcome is SubmitOutcome.RECOVERABLE:
            raise DuplicateSubmissionError(result.error or "重复提交")
        raise SubmissionRejectedError(result.error or "未知错误")
