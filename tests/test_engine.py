"""Tests for the rotation engine state machine."""

from datetime import timedelta

import pytest

from focusflow.core.errors import ValidationError
from focusflow.focus.engine import (
    EnginePhase,
    IntervalCompleted,
    IntervalKind,
    RotationEngine,
    TimerMode,
)
from focusflow.focus.outbox import CreateSession, SessionOutbox, UpdateSession


class RecordingSink:
    def __init__(self):
        self.events: list[IntervalCompleted] = []

    def notify(self, event):
        self.events.append(event)


class BrokenSink:
    def notify(self, event):
        raise RuntimeError("speaker unplugged")


def run_out(engine: RotationEngine) -> None:
    """Start the current interval and tick it to zero."""
    engine.start()
    for _ in range(engine.remaining_seconds):
        engine.tick()


@pytest.fixture
def outbox():
    return SessionOutbox()


@pytest.fixture
def engine(outbox, clock):
    return RotationEngine("user-1", TimerMode(), outbox=outbox, clock=clock)


class TestInitialState:
    def test_starts_idle_on_full_work_interval(self, engine):
        state = engine.state
        assert state.phase == EnginePhase.IDLE
        assert state.current_kind == IntervalKind.WORK
        assert state.remaining_seconds == 50 * 60
        assert state.cycle_position == 1
        assert state.session_id is None
        assert state.time_remaining_display == "50:00"
        assert state.progress_percent == 0.0

    def test_tick_while_idle_does_nothing(self, engine, outbox):
        engine.tick()
        assert engine.remaining_seconds == 50 * 60
        assert engine.phase == EnginePhase.IDLE
        assert len(outbox) == 0


class TestStartPause:
    def test_start_queues_one_create(self, engine, outbox, clock):
        engine.start(task_id="task-1")

        commands = outbox.take_all()
        assert len(commands) == 1
        create = commands[0]
        assert isinstance(create, CreateSession)
        assert create.session_id == engine.current_interval.session_id
        assert create.user_id == "user-1"
        assert create.session_type == "work"
        assert create.duration_minutes == 50
        assert create.start_time == clock.now
        assert create.task_id == "task-1"

    def test_start_while_running_is_a_noop(self, engine, outbox):
        engine.start()
        session_id = engine.current_interval.session_id
        engine.start()
        assert engine.current_interval.session_id == session_id
        assert len(outbox) == 1

    def test_pause_and_resume_keep_the_same_interval(self, engine, outbox):
        engine.start()
        session_id = engine.current_interval.session_id
        for _ in range(10):
            engine.tick()

        engine.pause()
        engine.tick()
        assert engine.phase == EnginePhase.PAUSED
        assert engine.remaining_seconds == 50 * 60 - 10

        engine.start()
        assert engine.phase == EnginePhase.RUNNING
        assert engine.current_interval.session_id == session_id
        assert engine.remaining_seconds == 50 * 60 - 10
        assert len(outbox) == 1

    def test_pause_while_idle_is_a_noop(self, engine):
        engine.pause()
        assert engine.phase == EnginePhase.IDLE

    def test_progress_percent(self, engine):
        engine.start()
        for _ in range(15 * 60):
            engine.tick()
        assert engine.state.progress_percent == pytest.approx(30.0)
        assert engine.state.time_remaining_display == "35:00"


class TestRotation:
    def test_full_cycle(self, engine):
        kinds = []
        positions = []
        for _ in range(9):
            run_out(engine)
            kinds.append(engine.current_kind)
            positions.append(engine.cycle_position)

        assert kinds == [
            IntervalKind.SHORT_BREAK, IntervalKind.WORK,
            IntervalKind.SHORT_BREAK, IntervalKind.WORK,
            IntervalKind.SHORT_BREAK, IntervalKind.WORK,
            IntervalKind.LONG_BREAK, IntervalKind.WORK,
            IntervalKind.SHORT_BREAK,
        ]
        assert positions == [1, 2, 2, 3, 3, 4, 1, 1, 1]

    def test_completion_returns_to_idle_with_next_duration(self, engine, outbox, clock):
        engine.start()
        session_id = engine.current_interval.session_id
        clock.advance(50 * 60)
        for _ in range(50 * 60):
            engine.tick()

        assert engine.phase == EnginePhase.IDLE
        assert engine.current_kind == IntervalKind.SHORT_BREAK
        assert engine.remaining_seconds == 10 * 60
        assert engine.current_interval is None

        create, update = outbox.take_all()
        assert isinstance(update, UpdateSession)
        assert update.session_id == session_id == create.session_id
        assert update.completed is True
        assert update.end_time == clock.now

    def test_break_records_are_typed_break(self, engine, outbox):
        run_out(engine)
        outbox.take_all()
        engine.start()
        create = outbox.take_all()[0]
        assert create.session_type == "break"
        assert create.duration_minutes == 10

    def test_long_break_length(self, engine):
        for _ in range(7):
            run_out(engine)
        assert engine.current_kind == IntervalKind.LONG_BREAK
        assert engine.remaining_seconds == 30 * 60

    def test_two_interval_cycle(self, outbox, clock):
        engine = RotationEngine(
            "user-1",
            TimerMode(work_minutes=1, short_break_minutes=1, long_break_minutes=2, sessions_per_cycle=2),
            outbox=outbox,
            clock=clock,
        )
        run_out(engine)
        run_out(engine)
        run_out(engine)
        assert engine.current_kind == IntervalKind.LONG_BREAK
        assert engine.cycle_position == 1


class TestSkipReset:
    def test_skip_running_work_moves_to_break_uncompleted(self, engine, outbox):
        engine.start()
        engine.tick()
        engine.skip()

        assert engine.phase == EnginePhase.IDLE
        assert engine.current_kind == IntervalKind.SHORT_BREAK
        update = outbox.take_all()[-1]
        assert isinstance(update, UpdateSession)
        assert update.completed is False

    def test_skip_paused_interval(self, engine, outbox):
        engine.start()
        engine.pause()
        engine.skip()
        assert engine.current_kind == IntervalKind.SHORT_BREAK
        assert len(outbox) == 2

    def test_skip_while_idle_only_resets_remaining(self, engine, outbox):
        engine.skip()
        assert engine.current_kind == IntervalKind.WORK
        assert engine.remaining_seconds == 50 * 60
        assert len(outbox) == 0

    def test_skipped_break_advances_cycle(self, engine):
        run_out(engine)
        engine.start()
        engine.skip()
        assert engine.current_kind == IntervalKind.WORK
        assert engine.cycle_position == 2

    def test_reset_closes_interval_and_keeps_kind(self, engine, outbox):
        run_out(engine)
        outbox.take_all()
        engine.start()
        for _ in range(30):
            engine.tick()

        engine.reset()
        assert engine.phase == EnginePhase.IDLE
        assert engine.current_kind == IntervalKind.SHORT_BREAK
        assert engine.remaining_seconds == 10 * 60
        assert engine.current_interval is None

        create, update = outbox.take_all()
        assert update.session_id == create.session_id
        assert update.completed is False

    def test_reset_while_idle_writes_nothing(self, engine, outbox):
        engine.reset()
        assert engine.remaining_seconds == 50 * 60
        assert len(outbox) == 0


class TestSwitchMode:
    def test_switch_restarts_rotation(self, engine, outbox):
        run_out(engine)
        run_out(engine)
        assert engine.cycle_position == 2

        engine.switch_mode(TimerMode(work_minutes=30))
        assert engine.phase == EnginePhase.IDLE
        assert engine.current_kind == IntervalKind.WORK
        assert engine.cycle_position == 1
        assert engine.remaining_seconds == 30 * 60

    def test_switch_closes_running_interval(self, engine, outbox):
        engine.start()
        engine.switch_mode({"work_minutes": 25})

        create, update = outbox.take_all()
        assert update.session_id == create.session_id
        assert update.completed is False
        assert engine.current_interval is None

    @pytest.mark.parametrize("values", [
        {"work_minutes": 0},
        {"short_break_minutes": -5},
        {"sessions_per_cycle": 0},
        {"work_minutes": "lots"},
    ])
    def test_invalid_mode_is_rejected_and_state_kept(self, engine, values):
        engine.start()
        before = engine.state

        with pytest.raises(ValidationError):
            engine.switch_mode(values)

        assert engine.state == before
        assert engine.mode == TimerMode()


class TestRestore:
    def test_restore_resumes_paused_with_elapsed_time_removed(self, engine, outbox, clock):
        started = clock.now - timedelta(minutes=20)
        engine.restore("sess-1", "work", 50, started, task_id="task-1")

        assert engine.phase == EnginePhase.PAUSED
        assert engine.current_kind == IntervalKind.WORK
        assert engine.remaining_seconds == 30 * 60
        assert engine.current_interval.session_id == "sess-1"
        assert engine.current_interval.task_id == "task-1"
        assert len(outbox) == 0

        engine.start()
        assert engine.phase == EnginePhase.RUNNING
        assert len(outbox) == 0

    def test_overdue_session_completes_on_next_tick(self, engine, outbox, clock):
        engine.restore("sess-1", "work", 50, clock.now - timedelta(hours=3))
        assert engine.remaining_seconds == 1

        engine.start()
        engine.tick()
        update = outbox.take_all()[0]
        assert update.session_id == "sess-1"
        assert update.completed is True
        assert engine.current_kind == IntervalKind.SHORT_BREAK

    def test_restore_break(self, engine, clock):
        engine.restore("sess-2", "break", 10, clock.now)
        assert engine.current_kind == IntervalKind.SHORT_BREAK
        assert engine.remaining_seconds == 10 * 60


class TestNotifications:
    def test_events_for_complete_and_skip(self, outbox, clock):
        sink = RecordingSink()
        engine = RotationEngine("user-1", TimerMode(work_minutes=1), outbox=outbox, notifier=sink, clock=clock)

        run_out(engine)
        engine.start()
        engine.skip()

        first, second = sink.events
        assert first.finished_kind == IntervalKind.WORK
        assert first.next_kind == IntervalKind.SHORT_BREAK
        assert first.completed is True
        assert first.title == "Work Session Complete!"
        assert first.description == "Starting break session"
        assert second.finished_kind == IntervalKind.SHORT_BREAK
        assert second.completed is False
        assert second.title == "Break Session Complete!"
        assert second.description == "Starting work session"

    def test_failing_sink_does_not_stop_the_timer(self, outbox, clock):
        engine = RotationEngine("user-1", TimerMode(work_minutes=1), outbox=outbox, notifier=BrokenSink(), clock=clock)
        run_out(engine)
        assert engine.current_kind == IntervalKind.SHORT_BREAK
        assert engine.phase == EnginePhase.IDLE
