from graph.state import ResignState, RunPhase


MESSAGES = {
    "nothing_to_do": "✅ {year_month} の勤怠は正常です。補签は不要です",
    "preview": "📝 {year_month}: {count} 件の補签が必要です\n{lines}",
    "completed": "✅ 補签完了（{year_month}）成功: {success} 件 | 失敗: {error} 件",
    "completed_with_errors": "⚠️ 補签完了・失敗あり（{year_month}）成功: {success} 件 | 失敗: {error} 件\n{lines}",
}


def format_progress(index: int, total, item) -> str:
    """提出中の1件分の表示"""
    status = item.error if item.error else item.status.value
    position = f"{index + 1}/{total}" if total else f"{index + 1}"
    return f"[{position}] {item.label} {status}"


def notify_node(state: ResignState, notifier=None) -> dict:
    """実行結果を通知するノード"""
    phase = state["phase"]
    year_month = state["year_month"]

    if phase == RunPhase.FAILED:
        notifier.send_error(state["error_message"])
        return {}

    if phase == RunPhase.PREVIEWING:
        items = state["items"]
        if not items:
            notifier.send(MESSAGES["nothing_to_do"].format(year_month=year_month))
        else:
            lines = "\n".join(f"・{item.label}" for item in items)
            notifier.send(MESSAGES["preview"].format(
                year_month=year_month, count=len(items), lines=lines
            ))
        return {}

    if phase == RunPhase.COMPLETED:
        summary = state["summary"]
        if summary.error_count:
            lines = "\n".join(
                f"・{item.label}: {item.error or '未知错误'}"
                for item in summary.failed_items
            )
            notifier.send(MESSAGES["completed_with_errors"].format(
                year_month=year_month,
                success=summary.success_count,
                error=summary.error_count,
                lines=lines,
            ))
        else:
            notifier.send(MESSAGES["completed"].format(
                year_month=year_month,
                success=summary.success_count,
                error=summary.error_count,
            ))

    return {}
