class ResignError(Exception):
    """補签処理で発生するエラーの基底クラス"""


class SessionLoadError(ResignError):
    """認証情報（Cookie / CSRFトークン）が取得できない"""


class DataFetchError(ResignError):
    """勤怠データの取得に失敗した"""


class ConfigFetchError(DataFetchError):
    """補签申請の設定（フロー種別・部署）の取得に失敗した"""


class DuplicateSubmissionError(ResignError):
    """重複提出として拒否された（リトライ対象）"""


class SubmissionRejectedError(ResignError):
    """重複提出以外の理由で拒否された（リトライしない）"""


class RetryBudgetExhaustedError(ResignError):
    """リトライ上限まで重複提出が続いた"""

    def __init__(self, attempts: int, last_error: str):
        super().__init__(last_error)
        self.attempts = attempts
        self.last_error = last_error
