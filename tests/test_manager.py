"""Tests for per-user engine ownership and the tick runner."""

import asyncio
from datetime import timedelta

from focusflow.focus.engine import EnginePhase, IntervalCompleted, IntervalKind, TimerMode
from focusflow.focus.manager import EventFeed, TimerManager, mode_from_settings
from focusflow.focus.outbox import OutboxWorker
from focusflow.focus.runner import TimerRunner
from focusflow.storage.memory import MemoryStorage
from focusflow.storage.models import FocusSession, TimerSettings


def test_mode_from_settings():
    mode = mode_from_settings(TimerSettings(session_duration=25, short_break=5, long_break=15))
    assert mode == TimerMode(work_minutes=25, short_break_minutes=5, long_break_minutes=15, sessions_per_cycle=4)


def test_event_feed_keeps_recent_events_per_user():
    feed = EventFeed(max_events_per_user=2)
    for index in range(3):
        feed.notify(IntervalCompleted(
            user_id="user-1",
            session_id=f"s{index}",
            finished_kind=IntervalKind.WORK,
            next_kind=IntervalKind.SHORT_BREAK,
            completed=True,
            cycle_position=1,
            occurred_at=None,
        ))

    assert [e.session_id for e in feed.drain("user-1")] == ["s1", "s2"]
    assert feed.drain("user-1") == []
    assert feed.drain("someone-else") == []


class TestTimerManager:
    def test_engine_uses_user_settings(self, clock):
        async def run():
            storage = MemoryStorage()
            user = await storage.create_user("ada@example.com", "hash")
            await storage.update_user_settings(user.id, {"session_duration": 25})
            manager = TimerManager(storage, clock=clock)
            engine = await manager.get_engine(user.id)
            again = await manager.get_engine(user.id)
            return engine, again, manager

        engine, again, manager = asyncio.run(run())
        assert engine is again
        assert engine.mode.work_minutes == 25
        assert engine.remaining_seconds == 25 * 60
        assert manager.engine_count == 1

    def test_unknown_user_gets_default_mode(self, clock):
        async def run():
            manager = TimerManager(MemoryStorage(), default_mode=TimerMode(work_minutes=40), clock=clock)
            return await manager.get_engine("ghost")

        assert asyncio.run(run()).mode.work_minutes == 40

    def test_active_session_is_restored(self, clock):
        async def run():
            storage = MemoryStorage()
            user = await storage.create_user("ada@example.com", "hash")
            await storage.create_session(FocusSession(
                id="sess-1",
                user_id=user.id,
                type="work",
                duration=50,
                start_time=clock.now - timedelta(minutes=5),
            ))
            manager = TimerManager(storage, clock=clock)
            engine = await manager.get_engine(user.id)
            return engine, await manager.current_session_id(user.id)

        engine, current = asyncio.run(run())
        assert engine.phase == EnginePhase.PAUSED
        assert engine.remaining_seconds == 45 * 60
        assert current == "sess-1"

    def test_current_session_id_falls_back_to_storage(self, clock):
        async def run():
            storage = MemoryStorage()
            await storage.create_session(FocusSession(
                id="sess-1", user_id="user-1", type="break", duration=10, start_time=clock.now,
            ))
            manager = TimerManager(storage, clock=clock)
            return await manager.current_session_id("user-1"), await manager.current_session_id("user-2")

        assert asyncio.run(run()) == ("sess-1", None)

    def test_tick_all_only_ticks_running_engines(self, clock):
        async def run():
            manager = TimerManager(MemoryStorage(), clock=clock)
            running = await manager.get_engine("a")
            idle = await manager.get_engine("b")
            running.start()
            return manager, manager.tick_all(), running, idle

        manager, ticked, running, idle = asyncio.run(run())
        assert ticked == 1
        assert running.remaining_seconds == 50 * 60 - 1
        assert idle.remaining_seconds == 50 * 60

    def test_discarded_engine_is_restored_from_storage(self, clock):
        async def run():
            storage = MemoryStorage()
            manager = TimerManager(storage, clock=clock)
            worker = OutboxWorker(manager.outbox, storage)

            engine = await manager.get_engine("user-1")
            engine.start()
            session_id = engine.current_interval.session_id
            await worker.flush()

            clock.advance(600)
            discarded = manager.discard("user-1")
            again = manager.discard("user-1")
            reloaded = await manager.get_engine("user-1")
            return session_id, discarded, again, engine, reloaded

        session_id, discarded, again, engine, reloaded = asyncio.run(run())
        assert (discarded, again) == (True, False)
        assert reloaded is not engine
        assert reloaded.phase == EnginePhase.PAUSED
        assert reloaded.current_interval.session_id == session_id
        assert reloaded.remaining_seconds == 40 * 60

    def test_completion_events_are_drained_per_user(self, clock):
        async def run():
            manager = TimerManager(MemoryStorage(), default_mode=TimerMode(work_minutes=1), clock=clock)
            engine = await manager.get_engine("a")
            engine.start()
            for _ in range(60):
                manager.tick_all()
            return manager.drain_events("a"), manager.drain_events("a")

        events, after = asyncio.run(run())
        assert len(events) == 1
        assert events[0].next_kind == IntervalKind.SHORT_BREAK
        assert after == []


def test_runner_drives_engines_and_worker_persists(clock):
    async def run():
        storage = MemoryStorage()
        manager = TimerManager(storage, default_mode=TimerMode(work_minutes=1), clock=clock)
        worker = OutboxWorker(manager.outbox, storage, flush_interval=0.01)
        runner = TimerRunner(manager, interval=0.001)

        engine = await manager.get_engine("user-1")
        engine.start()
        session_id = engine.current_interval.session_id

        await worker.start()
        await runner.start()
        for _ in range(500):
            if engine.current_kind == IntervalKind.SHORT_BREAK:
                break
            await asyncio.sleep(0.01)
        await runner.stop()
        await worker.stop()
        return engine, await storage.get_session(session_id), runner

    engine, session, runner = asyncio.run(run())
    assert not runner.is_running
    assert engine.current_kind == IntervalKind.SHORT_BREAK
    assert session.completed is True
