import sys

from graph.state import ResignState, RunPhase
from services.attendance_analyzer import AttendanceAnalyzer
from services.errors import DataFetchError
from services.models import SessionContext


async def analyze_node(
    state: ResignState,
    analyzer: AttendanceAnalyzer = None,
    session: SessionContext = None,
) -> dict:
    """勤怠を分析して補签対象を洗い出すノード"""
    try:
        items = await analyzer.analyze(session, state["year_month"])
    except DataFetchError as e:
        return {
            "phase": RunPhase.FAILED,
            "items": [],
            "error_message": str(e),
        }
    except Exception as e:
        # 想定外のエラーでも分析中のまま残さない
        print(f"[補签分析] 予期しないエラー: {e!r}", file=sys.stderr)
        return {
            "phase": RunPhase.FAILED,
            "items": [],
            "error_message": str(e),
        }

    # 0件でもプレビュー（何もしない）として扱う
    return {
        "phase": RunPhase.PREVIEWING,
        "items": items,
        "error_message": None,
    }
