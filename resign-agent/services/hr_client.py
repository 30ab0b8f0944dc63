import asyncio
from typing import Optional

import requests

from services.errors import ConfigFetchError, DataFetchError
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


class HRApiClient(HRClientInterface):
    """requestsでHR勤怠サービスのAPIを呼び出すクライアント

    認証はセッションのCookieとX-CSRF-TOKENヘッダで行う。
    requestsは同期APIなのでスレッドに逃がして呼び出す。
    """

    def __init__(self, base_url: str, config: dict):
        self._config = config["hr_api"]
        self._base_url = base_url.rstrip("/")
        self._endpoints = self._config["endpoints"]
        self._timeout = self._config["timeout_seconds"]
        self._duplicate_keywords = self._config["duplicate_keywords"]
        self._session = requests.Session()
        self._session.headers.update({
            "Accept": "application/json",
            "X-Requested-With": "XMLHttpRequest",
        })

    def _url(self, name: str) -> str:
        return f"{self._base_url}{self._endpoints[name]}"

    def _request(
        self,
        method: str,
        name: str,
        session: SessionContext,
        params: dict = None,
        payload: dict = None,
    ):
        """APIを呼び出してdata部を返す。失敗時はDataFetchError"""
        try:
            response = self._session.request(
                method,
                self._url(name),
                params=params,
                json=payload,
                headers=session.headers(),
                timeout=self._timeout,
            )
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            raise DataFetchError(f"{name}: {e}") from e

        if isinstance(body, dict):
            error = _envelope_error(body)
            if error:
                raise DataFetchError(error)
            return body.get("data", body)
        return body

    async def _call(self, *args, **kwargs):
        return await asyncio.to_thread(self._request, *args, **kwargs)

    async def fetch_month_records(
        self, session: SessionContext, year_month: str
    ) -> list[AttendanceRecord]:
        data = await self._call("GET", "records", session, params={"yearmo": year_month})
        if not isinstance(data, dict) or data.get("records") is None:
            raise DataFetchError("勤怠一覧の取得に失敗しました")
        return _parse_list(AttendanceRecord.from_dict, data["records"], "勤怠一覧")

    async def fetch_day_detail(
        self, session: SessionContext, api_date: str
    ) -> list[PunchEntry]:
        data = await self._call("GET", "day_detail", session, params={"date": api_date})
        if not isinstance(data, dict) or data.get("signTimeList") is None:
            raise DataFetchError(f"{api_date} の打刻詳細がありません")
        return _parse_list(PunchEntry.from_dict, data["signTimeList"], f"{api_date} の打刻詳細")

    async def fetch_existing_corrections(
        self, session: SessionContext, day_timestamp: int
    ) -> list[CorrectionEntry]:
        data = await self._call(
            "GET", "corrections", session, params={"date": str(day_timestamp)}
        )
        if data is None:
            return []
        return _parse_list(CorrectionEntry.from_dict, data, "既存の補签申請")

    async def fetch_submission_config(self, session: SessionContext) -> SubmissionConfig:
        try:
            data = await self._call("GET", "submission_config", session)
            return SubmissionConfig.from_dict(data or {})
        except (DataFetchError, ValueError, AttributeError) as e:
            raise ConfigFetchError(f"補签設定の取得に失敗しました: {e}") from e

    async def submit_correction(
        self, session: SessionContext, payload: dict
    ) -> SubmitResult:
        try:
            await self._call("POST", "submit", session, payload=payload)
        except DataFetchError as e:
            return self.classify_error(str(e))
        return SubmitResult(outcome=SubmitOutcome.SUCCESS)

    def classify_error(self, message: Optional[str]) -> SubmitResult:
        """拒否理由を重複提出（リトライ可）とそれ以外に分類"""
        message = message or "未知错误"
        if any(keyword in message for keyword in self._duplicate_keywords):
            return SubmitResult(outcome=SubmitOutcome.RECOVERABLE, error=message)
        return SubmitResult(outcome=SubmitOutcome.TERMINAL, error=message)

    async def close(self) -> None:
        self._session.close()


def _envelope_error(body: dict) -> Optional[str]:
    """レスポンス本文のエラー表現を取り出す（なければNone）"""
    code = body.get("code")
    if body.get("success") is False or code not in (None, 0, 200, "0", "200"):
        return body.get("msg") or body.get("message") or f"code={code}"
    return None


def _parse_list(parse, rows, what: str) -> list:
    """一覧レスポンスを変換する。形が崩れていればDataFetchError"""
    if not isinstance(rows, list):
        raise DataFetchError(f"{what}の形式が不正です: {type(rows).__name__}")
    try:
        return [parse(row) for row in rows]
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise DataFetchError(f"{what}の形式が不正です: {e!r}") from e
