# tests/test_graph.py
import pytest
from unittest.mock import AsyncMock, MagicMock

from factories import item
from graph.graph import build_graph, initial_state, route_after_analyze
from graph.state import RunPhase
from services.models import ItemStatus


def _make_state(**overrides):
    base = initial_state("202511")
    base.update(overrides)
    return base


def test_initial_state():
    state = initial_state("202511", auto_confirm=True)
    assert state["phase"] == RunPhase.ANALYZING
    assert state["items"] == []
    assert state["auto_confirm"] is True


def test_route_failed():
    """分析失敗は通知へ"""
    state = _make_state(phase=RunPhase.FAILED)
    assert route_after_analyze(state) == "notify"


def test_route_nothing_to_do():
    """対象0件は自動確定でも通知へ"""
    state = _make_state(phase=RunPhase.PREVIEWING, items=[], auto_confirm=True)
    assert route_after_analyze(state) == "notify"


def test_route_preview_without_auto_confirm():
    state = _make_state(phase=RunPhase.PREVIEWING, items=[item()], auto_confirm=False)
    assert route_after_analyze(state) == "notify"


def test_route_auto_confirm_submits():
    state = _make_state(phase=RunPhase.PREVIEWING, items=[item()], auto_confirm=True)
    assert route_after_analyze(state) == "submit"


def test_build_graph():
    """グラフが正常にビルドできること"""
    graph = build_graph()
    assert graph is not None


@pytest.mark.asyncio
async def test_graph_auto_confirm_run(session):
    """分析→提出→通知が一通り流れること"""
    found = item()
    done = found.advance(ItemStatus.PROCESSING).advance(ItemStatus.SUCCESS)
    mock_analyzer = AsyncMock()
    mock_analyzer.analyze.return_value = [found]
    mock_executor = AsyncMock()
    mock_executor.execute.return_value = [done]
    mock_notifier = MagicMock()

    graph = build_graph(
        analyzer=mock_analyzer,
        executor=mock_executor,
        notifier=mock_notifier,
        session=session,
    )
    result = await graph.ainvoke(initial_state("202511", auto_confirm=True))

    assert result["phase"] == RunPhase.COMPLETED
    assert result["summary"].success_count == 1
    mock_executor.execute.assert_awaited_once()
    assert "成功: 1 件" in mock_notifier.send.call_args[0][0]


@pytest.mark.asyncio
async def test_graph_preview_only_run(session):
    mock_analyzer = AsyncMock()
    mock_analyzer.analyze.return_value = [item()]
    mock_executor = AsyncMock()
    mock_notifier = MagicMock()

    graph = build_graph(
        analyzer=mock_analyzer,
        executor=mock_executor,
        notifier=mock_notifier,
        session=session,
    )
    result = await graph.ainvoke(initial_state("202511"))

    assert result["phase"] == RunPhase.PREVIEWING
    mock_executor.execute.assert_not_called()
    mock_notifier.send.assert_called_once()
