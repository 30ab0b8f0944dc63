import sys

from services.errors import DataFetchError
from services.hr_client_interface import HRClientInterface
from services.models import (
    ApprovalItem,
    AttendanceRecord,
    PunchEntry,
    SessionContext,
)
from services.timeutil import (
    add_minutes,
    format_api_date,
    format_date,
    format_time,
    from_timestamp,
    parse_clock_time,
    validate_year_month,
)


class AttendanceAnalyzer:
    """月次勤怠を分析し、補签が必要な打刻を洗い出す

    異常（WARNING）の日だけを対象に、日別詳細と既存の補签申請を照合して
    ApprovalItem を日付順・上班→下班の順で返す。
    """

    def __init__(
        self,
        client: HRClientInterface,
        sign_in_hour: int = 10,
        sign_out_hour: int = 19,
        sign_in_range_name: str = "上班",
        sign_out_range_name: str = "下班",
        current_month_only: bool = False,
        tz_name: str = None,
    ):
        self._client = client
        self._sign_in_hour = sign_in_hour
        self._sign_out_hour = sign_out_hour
        self._sign_in_range_name = sign_in_range_name
        self._sign_out_range_name = sign_out_range_name
        self._current_month_only = current_month_only
        self._tz_name = tz_name

    @classmethod
    def from_config(cls, client: HRClientInterface, config: dict) -> "AttendanceAnalyzer":
        rules = config["analyzer"]
        return cls(
            client,
            sign_in_hour=rules["sign_in_hour"],
            sign_out_hour=rules["sign_out_hour"],
            sign_in_range_name=rules["sign_in_range_name"],
            sign_out_range_name=rules["sign_out_range_name"],
            current_month_only=rules["current_month_only"],
            tz_name=config.get("timezone"),
        )

    async def analyze(self, session: SessionContext, year_month: str) -> list[ApprovalItem]:
        """補签対象の一覧を返す。勤怠一覧が取れない場合は DataFetchError"""
        validate_year_month(year_month)
        records = await self._client.fetch_month_records(session, year_month)

        items: list[ApprovalItem] = []
        for record in records:
            if not record.is_warning:
                continue
            if self._current_month_only and not record.is_current_month:
                continue
            items.extend(await self._analyze_record(session, record))

        print(f"[補签分析] {year_month}: 補签対象 {len(items)} 件")
        return items

    async def _analyze_record(
        self, session: SessionContext, record: AttendanceRecord
    ) -> list[ApprovalItem]:
        api_date = format_api_date(record.timestamp, self._tz_name)
        try:
            punches = await self._client.fetch_day_detail(session, api_date)
        except DataFetchError as e:
            # 1日分の取得失敗で全体を止めない
            print(f"[補签分析] {api_date} の詳細取得に失敗したためスキップ: {e}", file=sys.stderr)
            return []

        sign_in, sign_out = self._find_ranges(punches)
        if sign_in is None or sign_out is None:
            print(f"[補签分析] {api_date} に上班/下班の打刻枠がないためスキップ", file=sys.stderr)
            return []

        has_sign_in_fix, has_sign_out_fix = await self._existing_corrections(
            session, record.timestamp
        )

        day = format_date(record.timestamp, self._tz_name)
        items = []

        if not has_sign_in_fix and sign_in.needs_correction:
            items.append(ApprovalItem(
                date=day,
                time=format_time(self._sign_in_hour, 0),
                clock_type=sign_in.clock_attribution,
                range_id=sign_in.range_id,
                timestamp=record.timestamp,
            ))

        if not has_sign_out_fix and sign_out.needs_correction:
            items.append(ApprovalItem(
                date=day,
                time=self._sign_out_target(sign_in),
                clock_type=sign_out.clock_attribution,
                range_id=sign_out.range_id,
                timestamp=record.timestamp,
            ))

        return items

    def _find_ranges(self, punches: list[PunchEntry]):
        sign_in = sign_out = None
        for punch in punches:
            if punch.range_name == self._sign_in_range_name:
                sign_in = punch
            elif punch.range_name == self._sign_out_range_name:
                sign_out = punch
        return sign_in, sign_out

    async def _existing_corrections(
        self, session: SessionContext, day_timestamp: int
    ) -> tuple[bool, bool]:
        """既存の補签申請から (上班補签済み, 下班補签済み) を判定"""
        corrections = await self._client.fetch_existing_corrections(session, day_timestamp)
        has_sign_in = has_sign_out = False
        for correction in corrections:
            hour = from_timestamp(correction.start_date, self._tz_name).hour
            if hour <= self._sign_in_hour:
                has_sign_in = True
            elif hour >= self._sign_out_hour:
                has_sign_out = True
        return has_sign_in, has_sign_out

    def _sign_out_target(self, sign_in: PunchEntry) -> str:
        """下班の補签時刻。上班が下班時刻以降なら上班+1分"""
        if sign_in.clock_time:
            hour, minute = parse_clock_time(sign_in.clock_time)
            if hour >= self._sign_out_hour:
                return format_time(*add_minutes(hour, minute, 1))
        return format_time(self._sign_out_hour, 0)
