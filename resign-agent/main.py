"""補签エージェント - エントリーポイント"""
import argparse
import asyncio
import signal
import sys
import time

from dotenv import load_dotenv
import os

from services.config_loader import load_config
from services.attendance_analyzer import AttendanceAnalyzer
from services.resign_executor import ResignExecutor
from services.session_loader import load_session
from services.slack_client import SlackNotifier, ConsoleNotifier
from services.errors import SessionLoadError
from services.timeutil import current_year_month, shift_year_month, validate_year_month
from graph.graph import build_graph, initial_state
from graph.nodes.notify_node import format_progress
from graph.orchestrator import ResignOrchestrator
from graph.state import RunPhase
from schedulers.scheduler import ResignScheduler


def create_services(config: dict):
    """設定に基づいてサービスインスタンスを生成"""
    load_dotenv()

    # Slack通知
    slack_config = config["slack"]
    slack_token = os.getenv("SLACK_BOT_TOKEN", "")
    slack_channel = os.getenv("SLACK_NOTIFY_CHANNEL", slack_config.get("notify_channel", ""))
    if slack_config["enabled"] and slack_token:
        notifier = SlackNotifier(token=slack_token, channel=slack_channel)
    else:
        notifier = ConsoleNotifier()

    # HRクライアント
    if config["client"] == "http":
        from services.hr_client import HRApiClient
        client = HRApiClient(
            base_url=os.getenv("HR_BASE_URL", config["hr_api"]["base_url"]),
            config=config,
        )
    else:
        from services.dummy_hr_client import DummyHRClient
        client = DummyHRClient()

    analyzer = AttendanceAnalyzer.from_config(client, config)
    executor = ResignExecutor.from_config(client, config)
    return client, notifier, analyzer, executor


def resolve_year_month(config: dict, year_month: str = None, month_offset: int = 0) -> str:
    """対象年月（yyyyMM）を決める。未指定なら今月を基準にする"""
    base = year_month or current_year_month(config.get("timezone"))
    return shift_year_month(validate_year_month(base), month_offset)


def _ask_confirm() -> bool:
    answer = input("補签を提出しますか？ [y/N]: ")
    return answer.strip().lower() in ("y", "yes")


async def run_interactive(orchestrator: ResignOrchestrator, session, year_month: str, assume_yes: bool) -> int:
    """分析→確認→提出を1回実行し、終了コードを返す"""
    await orchestrator.start(session, year_month)

    if orchestrator.phase == RunPhase.FAILED:
        orchestrator.dismiss()
        return 1

    if not orchestrator.items:
        orchestrator.cancel()
        return 0

    if not assume_yes and not _ask_confirm():
        orchestrator.cancel()
        print("[補签エージェント] キャンセルしました")
        return 0

    await orchestrator.confirm()
    phase = orchestrator.phase
    summary = orchestrator.summary
    orchestrator.dismiss()

    if phase == RunPhase.FAILED:
        return 1
    return 2 if summary.error_count else 0


def run_scheduled(config, client, notifier, analyzer, executor):
    """月次スケジュールで無人実行する"""
    sched_config = config["scheduler"]

    def on_progress(index, item):
        print(f"[補签エージェント] {format_progress(index, None, item)}")

    def resign_job():
        try:
            session = load_session(config)
            year_month = resolve_year_month(config, month_offset=sched_config["month_offset"])
            graph = build_graph(
                analyzer=analyzer,
                executor=executor,
                notifier=notifier,
                session=session,
                on_progress=on_progress,
            )
            asyncio.run(graph.ainvoke(initial_state(year_month, sched_config["auto_confirm"])))
        except Exception as e:
            print(f"[補签エージェント] 実行中にエラー: {e}")
            notifier.send_error(str(e))

    scheduler = ResignScheduler(
        job_func=resign_job,
        day=sched_config["day"],
        hour=sched_config["hour"],
        minute=sched_config["minute"],
        timezone=config.get("timezone"),
    )
    scheduler.start()
    print(f"[補签エージェント] 定期実行を開始します（day={sched_config['day']} {sched_config['hour']:02d}:{sched_config['minute']:02d}）")

    # シグナルハンドリング
    def shutdown(signum, frame):
        print("\n[補签エージェント] 停止中...")
        scheduler.stop()
        asyncio.run(client.close())
        print("[補签エージェント] 停止しました")
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    # メインループ
    print("[補签エージェント] Ctrl+Cで停止します")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        shutdown(None, None)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="勤怠の打刻漏れを補签申請する")
    parser.add_argument("--config", default="config.yaml", help="設定ファイル")
    parser.add_argument("--yearmo", help="対象年月 (yyyyMM)。省略時は今月")
    parser.add_argument("--month-offset", type=int, default=0, help="対象年月からずらす月数（前月なら-1）")
    parser.add_argument("--yes", action="store_true", help="確認なしで提出する")
    parser.add_argument("--schedule", action="store_true", help="スケジューラで常駐実行する")
    return parser.parse_args(argv)


def main(argv=None):
    """メイン起動処理"""
    args = parse_args(argv)
    config = load_config(args.config)
    client, notifier, analyzer, executor = create_services(config)

    if args.schedule or config["scheduler"]["enabled"]:
        run_scheduled(config, client, notifier, analyzer, executor)
        return 0

    try:
        session = load_session(config)
        year_month = resolve_year_month(config, args.yearmo, args.month_offset)
    except (SessionLoadError, ValueError) as e:
        notifier.send_error(str(e))
        return 1

    def on_progress(index, item):
        print(f"[補签エージェント] {format_progress(index, len(orchestrator.items), item)}")

    orchestrator = ResignOrchestrator(analyzer, executor, notifier, on_progress=on_progress)

    async def _run():
        try:
            return await run_interactive(orchestrator, session, year_month, args.yes)
        finally:
            await client.close()

    return asyncio.run(_run())


if __name__ == "__main__":
    sys.exit(main())
