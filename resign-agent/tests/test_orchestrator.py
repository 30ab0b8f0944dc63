# tests/test_orchestrator.py
import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from factories import item
from graph.orchestrator import ResignOrchestrator
from graph.state import RunPhase
from services.errors import ConfigFetchError, DataFetchError
from services.models import ItemStatus


def _make_orchestrator(found=None, executor=None, **kwargs):
    analyzer = AsyncMock()
    analyzer.analyze.return_value = found if found is not None else [item()]
    if executor is None:
        executor = AsyncMock()
    notifier = MagicMock()
    return ResignOrchestrator(analyzer, executor, notifier, **kwargs), analyzer, executor, notifier


class _FakeExecutor:
    """進捗を通知しながら全件成功させる"""

    async def execute(self, session, items, on_progress=None):
        results = list(items)
        for index, current in enumerate(results):
            current = current.advance(ItemStatus.PROCESSING)
            results[index] = current
            on_progress(index, current)
            current = current.advance(ItemStatus.SUCCESS)
            results[index] = current
            on_progress(index, current)
        return results


def test_initial_phase_is_idle():
    orchestrator, *_ = _make_orchestrator()
    assert orchestrator.phase == RunPhase.IDLE
    assert orchestrator.is_running() is False


@pytest.mark.asyncio
async def test_start_moves_to_previewing(session):
    orchestrator, analyzer, _, notifier = _make_orchestrator()

    assert await orchestrator.start(session, "202511") is True

    assert orchestrator.phase == RunPhase.PREVIEWING
    assert len(orchestrator.items) == 1
    notifier.send.assert_called_once()


@pytest.mark.asyncio
async def test_empty_analysis_is_previewing(session):
    """対象0件はそのまま「何もしない」プレビュー"""
    orchestrator, *_ = _make_orchestrator(found=[])

    await orchestrator.start(session, "202511")

    assert orchestrator.phase == RunPhase.PREVIEWING
    assert orchestrator.items == ()
    assert await orchestrator.confirm() is False


@pytest.mark.asyncio
async def test_analysis_failure(session):
    orchestrator, analyzer, _, notifier = _make_orchestrator()
    analyzer.analyze.side_effect = DataFetchError("获取考勤记录失败")

    await orchestrator.start(session, "202511")

    assert orchestrator.phase == RunPhase.FAILED
    assert orchestrator.error_message == "获取考勤记录失败"
    notifier.send_error.assert_called_once_with("获取考勤记录失败")
    assert orchestrator.dismiss() is True
    assert orchestrator.phase == RunPhase.IDLE


@pytest.mark.asyncio
async def test_confirm_completes_and_reports(session):
    progress = []
    results = []
    orchestrator, *_ = _make_orchestrator(
        found=[item(), item(clock_type=2, time="19:00")],
        executor=_FakeExecutor(),
        on_progress=lambda i, it: progress.append((i, it.status)),
        on_result=results.append,
    )
    await orchestrator.start(session, "202511")

    assert await orchestrator.confirm() is True

    assert orchestrator.phase == RunPhase.COMPLETED
    assert progress == [
        (0, ItemStatus.PROCESSING), (0, ItemStatus.SUCCESS),
        (1, ItemStatus.PROCESSING), (1, ItemStatus.SUCCESS),
    ]
    assert results[0].success_count == 2
    assert all(i.status is ItemStatus.SUCCESS for i in orchestrator.items)
    assert orchestrator.dismiss() is True
    assert orchestrator.phase == RunPhase.IDLE


@pytest.mark.asyncio
async def test_confirm_config_failure(session):
    executor = AsyncMock()
    executor.execute.side_effect = ConfigFetchError("获取补签配置失败")
    orchestrator, _, _, notifier = _make_orchestrator(executor=executor)
    await orchestrator.start(session, "202511")

    await orchestrator.confirm()

    assert orchestrator.phase == RunPhase.FAILED
    notifier.send_error.assert_called_once_with("获取补签配置失败")


@pytest.mark.asyncio
async def test_unexpected_analysis_error_fails_run(session):
    """取得エラー以外の例外でも failed に抜けて dismiss できること"""
    orchestrator, analyzer, _, notifier = _make_orchestrator()
    analyzer.analyze.side_effect = ValueError("年月はyyyyMM形式で指定してください")

    assert await orchestrator.start(session, "2025-11") is True

    assert orchestrator.phase == RunPhase.FAILED
    assert orchestrator.is_running() is False
    assert orchestrator.items == ()
    assert orchestrator.error_message == "年月はyyyyMM形式で指定してください"
    notifier.send_error.assert_called_once_with("年月はyyyyMM形式で指定してください")
    assert orchestrator.dismiss() is True
    assert orchestrator.phase == RunPhase.IDLE


@pytest.mark.asyncio
async def test_invalid_year_month_with_real_analyzer_fails_run(session):
    from services.attendance_analyzer import AttendanceAnalyzer

    analyzer = AttendanceAnalyzer(AsyncMock(), tz_name="Asia/Shanghai")
    notifier = MagicMock()
    orchestrator = ResignOrchestrator(analyzer, AsyncMock(), notifier)

    await orchestrator.start(session, "2025-11")

    assert orchestrator.phase == RunPhase.FAILED
    notifier.send_error.assert_called_once()
    assert orchestrator.dismiss() is True


@pytest.mark.asyncio
async def test_unexpected_submit_error_fails_run(session):
    executor = AsyncMock()
    executor.execute.side_effect = RuntimeError("boom")
    orchestrator, _, _, notifier = _make_orchestrator(executor=executor)
    await orchestrator.start(session, "202511")

    assert await orchestrator.confirm() is True

    assert orchestrator.phase == RunPhase.FAILED
    assert orchestrator.is_running() is False
    assert orchestrator.error_message == "boom"
    notifier.send_error.assert_called_once_with("boom")
    assert orchestrator.dismiss() is True
    assert orchestrator.phase == RunPhase.IDLE


@pytest.mark.asyncio
async def test_cancel_preview(session):
    orchestrator, _, executor, _ = _make_orchestrator()
    await orchestrator.start(session, "202511")

    assert orchestrator.cancel() is True

    assert orchestrator.phase == RunPhase.IDLE
    assert orchestrator.items == ()
    executor.execute.assert_not_called()


def test_cancel_and_dismiss_outside_phase():
    orchestrator, *_ = _make_orchestrator()
    assert orchestrator.cancel() is False
    assert orchestrator.dismiss() is False


@pytest.mark.asyncio
async def test_confirm_outside_preview_is_noop(session):
    orchestrator, _, executor, _ = _make_orchestrator()
    assert await orchestrator.confirm() is False
    executor.execute.assert_not_called()


@pytest.mark.asyncio
async def test_second_start_while_analyzing_is_rejected(session):
    """分析中の開始要求は拒否されること"""
    gate = asyncio.Event()
    orchestrator, analyzer, _, _ = _make_orchestrator()

    async def slow_analyze(session, year_month):
        await gate.wait()
        return [item()]

    analyzer.analyze.side_effect = slow_analyze

    first = asyncio.create_task(orchestrator.start(session, "202511"))
    await asyncio.sleep(0)
    assert orchestrator.is_running() is True
    assert orchestrator.phase == RunPhase.ANALYZING

    assert await orchestrator.start(session, "202510") is False

    gate.set()
    assert await first is True
    assert orchestrator.phase == RunPhase.PREVIEWING
    assert analyzer.analyze.await_count == 1


@pytest.mark.asyncio
async def test_start_while_submitting_is_rejected(session):
    gate = asyncio.Event()
    executor = AsyncMock()
    orchestrator, analyzer, _, _ = _make_orchestrator(executor=executor)

    async def slow_execute(session, items, on_progress=None):
        await gate.wait()
        return [i.advance(ItemStatus.PROCESSING).advance(ItemStatus.SUCCESS) for i in items]

    executor.execute.side_effect = slow_execute
    await orchestrator.start(session, "202511")

    submitting = asyncio.create_task(orchestrator.confirm())
    await asyncio.sleep(0)
    assert orchestrator.phase == RunPhase.SUBMITTING

    assert await orchestrator.start(session, "202511") is False
    assert await orchestrator.confirm() is False

    gate.set()
    await submitting
    assert orchestrator.phase == RunPhase.COMPLETED
    assert analyzer.analyze.await_count == 1
