import copy

import yaml
from pathlib import Path

DEFAULT_CONFIG = {
    "client": "dummy",
    "timezone": "Asia/Shanghai",
    "hr_api": {
        "base_url": "",
        "timeout_seconds": 30,
        "endpoints": {
            "records": "/attendance/record/list",
            "day_detail": "/attendance/record/date",
            "corrections": "/approve/bdk/flow",
            "submission_config": "/approve/sign-again/new",
            "submit": "/approve/attendance/start",
        },
        "duplicate_keywords": ["重复提交"],
    },
    "session": {
        "storage_path": ".session/cookies.json",
        "cookie_domain": "",
    },
    "analyzer": {
        "sign_in_hour": 10,
        "sign_out_hour": 19,
        "sign_in_range_name": "上班",
        "sign_out_range_name": "下班",
        "current_month_only": False,
    },
    "submitter": {
        "max_attempts": 5,
        "pacing_seconds": 10,
    },
    "slack": {
        "enabled": True,
        "notify_channel": "",
        "fallback": "console",
    },
    "scheduler": {
        "enabled": False,
        "day": "last",
        "hour": 20,
        "minute": 0,
        "month_offset": 0,
        "auto_confirm": False,
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """ベース設定にオーバーライドをマージする"""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(path: str = "config.yaml") -> dict:
    """YAML設定ファイルをロードし、デフォルト設定とマージして返す"""
    config_path = Path(path)
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}
        return _deep_merge(copy.deepcopy(DEFAULT_CONFIG), user_config)
    return copy.deepcopy(DEFAULT_CONFIG)
