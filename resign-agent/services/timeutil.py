# services/timeutil.py
from datetime import datetime, time
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "Asia/Shanghai"


def _tz(tz_name: str = None) -> ZoneInfo:
    return ZoneInfo(tz_name or DEFAULT_TIMEZONE)


def from_timestamp(timestamp: int, tz_name: str = None) -> datetime:
    """Unixタイムスタンプ（秒）を指定タイムゾーンのdatetimeに変換"""
    return datetime.fromtimestamp(int(timestamp), tz=_tz(tz_name))


def format_date(timestamp: int, tz_name: str = None) -> str:
    """MM-DD形式"""
    return from_timestamp(timestamp, tz_name).strftime("%m-%d")


def format_time(hour: int, minute: int) -> str:
    """HH:MM形式"""
    return f"{hour:02d}:{minute:02d}"


def format_api_date(timestamp: int, tz_name: str = None) -> str:
    """日別詳細APIが要求するyyyyMMdd形式"""
    return from_timestamp(timestamp, tz_name).strftime("%Y%m%d")


def midnight_timestamp(timestamp: int, tz_name: str = None) -> int:
    """同じ日の0:00のタイムスタンプ"""
    dt = from_timestamp(timestamp, tz_name)
    return int(datetime.combine(dt.date(), time(0, 0), tzinfo=dt.tzinfo).timestamp())


def parse_clock_time(value: str) -> tuple[int, int]:
    """HH:MM（HH:MM:SSも可）を(時, 分)に変換"""
    parts = value.strip().split(":")
    return int(parts[0]), int(parts[1])


def add_minutes(hour: int, minute: int, delta: int) -> tuple[int, int]:
    """分を加算する。日を跨ぐ場合は23:59で止める"""
    total = min(hour * 60 + minute + delta, 23 * 60 + 59)
    return divmod(total, 60)


def validate_year_month(year_month: str) -> str:
    """yyyyMM形式か検証して返す"""
    if len(year_month) != 6 or not year_month.isdigit():
        raise ValueError(f"年月はyyyyMM形式で指定してください: {year_month!r}")
    month = int(year_month[4:])
    if not 1 <= month <= 12:
        raise ValueError(f"月が不正です: {year_month!r}")
    return year_month


def shift_year_month(year_month: str, offset: int) -> str:
    """yyyyMMをoffsetヶ月ずらす（前月なら-1）"""
    validate_year_month(year_month)
    index = int(year_month[:4]) * 12 + int(year_month[4:]) - 1 + offset
    year, month0 = divmod(index, 12)
    return f"{year:04d}{month0 + 1:02d}"


def current_year_month(tz_name: str = None) -> str:
    return datetime.now(tz=_tz(tz_name)).strftime("%Y%m")
