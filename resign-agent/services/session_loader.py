# services/session_loader.py
import json
import os
from pathlib import Path

from dotenv import load_dotenv

from services.errors import SessionLoadError
from services.models import SessionContext


def _parse_cookie_header(header: str) -> dict:
    cookies = {}
    for part in header.split(";"):
        if "=" in part:
            name, value = part.split("=", 1)
            cookies[name.strip()] = value.strip()
    return cookies


def _load_cookie_file(path: Path, domain: str = None) -> dict:
    """保存済みCookieファイルを読む

    Playwrightのstorage_state形式（{"cookies": [...]}）と
    Cookieのリストをそのまま保存した形式の両方に対応する。
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    entries = data.get("cookies", []) if isinstance(data, dict) else data
    cookies = {}
    for entry in entries:
        if domain and not entry.get("domain", "").lstrip(".").endswith(domain):
            continue
        cookies[entry["name"]] = entry["value"]
    return cookies


def load_session(config: dict) -> SessionContext:
    """環境変数または保存済みCookieファイルから認証情報を組み立てる"""
    load_dotenv()
    session_config = config["session"]

    csrf = os.getenv("HR_CSRF_TOKEN", "")
    if not csrf:
        raise SessionLoadError("HR_CSRF_TOKEN が設定されていません")

    cookie_header = os.getenv("HR_COOKIE", "")
    if cookie_header:
        cookies = _parse_cookie_header(cookie_header)
    else:
        storage_path = Path(session_config["storage_path"])
        if not storage_path.exists():
            raise SessionLoadError(f"Cookieファイルが見つかりません: {storage_path}")
        try:
            cookies = _load_cookie_file(storage_path, session_config.get("cookie_domain"))
        except (OSError, ValueError, KeyError) as e:
            raise SessionLoadError(f"Cookieファイルを読み込めません: {e}") from e

    if not cookies:
        raise SessionLoadError("有効なCookieがありません")
    return SessionContext(cookies=cookies, csrf_token=csrf)
