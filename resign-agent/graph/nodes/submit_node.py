import sys

from graph.state import ResignState, RunPhase
from services.errors import ConfigFetchError
from services.models import RunSummary, SessionContext
from services.resign_executor import ProgressCallback, ResignExecutor


async def submit_node(
    state: ResignState,
    executor: ResignExecutor = None,
    session: SessionContext = None,
    on_progress: ProgressCallback = None,
) -> dict:
    """補签申請を順に提出するノード"""
    try:
        items = await executor.execute(session, state["items"], on_progress)
    except ConfigFetchError as e:
        return {"phase": RunPhase.FAILED, "error_message": str(e)}
    except Exception as e:
        print(f"[補签提出] 予期しないエラー: {e!r}", file=sys.stderr)
        return {"phase": RunPhase.FAILED, "error_message": str(e)}

    # 一部失敗でも実行自体は完了扱い
    return {
        "phase": RunPhase.COMPLETED,
        "items": items,
        "summary": RunSummary.from_items(items),
        "error_message": None,
    }
