# graph/graph.py
from langgraph.graph import StateGraph, END
from graph.state import ResignState, RunPhase


def route_after_analyze(state: ResignState) -> str:
    if state["phase"] == RunPhase.FAILED:
        return "notify"
    if state["items"] and state["auto_confirm"]:
        return "submit"
    return "notify"


def build_graph(
    analyzer=None,
    executor=None,
    notifier=None,
    session=None,
    on_progress=None,
):
    """無人実行用のLangGraphグラフを構築して返す

    analyze → (自動確定かつ対象ありなら) submit → notify の順に流す。
    各ノード関数はサービス依存を持つため、functools.partialでラップして
    LangGraphが期待する (state) -> dict シグネチャに合わせる。
    """
    from functools import partial
    from graph.nodes.analyze_node import analyze_node
    from graph.nodes.submit_node import submit_node
    from graph.nodes.notify_node import notify_node

    analyze_wrapped = partial(analyze_node, analyzer=analyzer, session=session)
    submit_wrapped = partial(
        submit_node, executor=executor, session=session, on_progress=on_progress
    )
    notify_wrapped = partial(notify_node, notifier=notifier)

    workflow = StateGraph(ResignState)

    workflow.add_node("analyze", analyze_wrapped)
    workflow.add_node("submit", submit_wrapped)
    workflow.add_node("notify", notify_wrapped)

    workflow.set_entry_point("analyze")

    workflow.add_conditional_edges(
        "analyze",
        route_after_analyze,
        {"submit": "submit", "notify": "notify"},
    )

    workflow.add_edge("submit", "notify")
    workflow.add_edge("notify", END)

    return workflow.compile()


def initial_state(year_month: str, auto_confirm: bool = False) -> ResignState:
    return {
        "year_month": year_month,
        "phase": RunPhase.ANALYZING,
        "items": [],
        "summary": None,
        "auto_confirm": auto_confirm,
        "error_message": None,
        "extra": {},
    }
