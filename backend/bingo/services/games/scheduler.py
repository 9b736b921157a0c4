import time
from typing import List, NamedTuple, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from bingo import db, socketio
from bingo.models import Round
from .cards import letter_for
from .errors import PersistenceFailure
from .realtime import broadcast
from .store import transactional


DRAW_INTERVAL_SEC = 4
INITIAL_DELAY_SEC = 4
ROUND_DURATION_SEC = 240
MAX_DRAWS = 60


class TickResult(NamedTuple):
    round_id: int
    action: str  # drawn, pending, completed, stale, missing
    number: Optional[int] = None
    draw_index: Optional[int] = None
    next_delay: Optional[float] = None


def _load_round(round_id) -> Optional[Round]:
    try:
        return db.session.get(Round, round_id, populate_existing=True)
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceFailure(f"Could not load round {round_id}") from exc


@transactional
def _mark_completed(round_id, now: float) -> bool:
    # Guarded on status so end_time is only ever written once
    updated = Round.query.filter(Round.id == round_id, Round.status == 'active').update(
        {'status': 'completed', 'end_time': now}, synchronize_session=False
    )
    return updated == 1


@transactional
def _advance_draw_index(round_id, expected_index: int) -> bool:
    updated = Round.query.filter(
        Round.id == round_id,
        Round.status == 'active',
        Round.current_draw_index == expected_index,
    ).update({'current_draw_index': expected_index + 1}, synchronize_session=False)
    return updated == 1


def complete_round(round_id, now: Optional[float] = None) -> bool:
    """Complete an active round. Returns False when it was already completed."""
    now = time.time() if now is None else now
    if not _mark_completed(round_id, now):
        current_app.logger.info(f"[tick-stale] round={round_id} already completed")
        return False
    rnd = _load_round(round_id)
    current_app.logger.info(
        f"[tick-complete] round={round_id} draws={rnd.current_draw_index} elapsed={now - rnd.start_time:.1f}s"
    )
    broadcast(rnd.room.room_code, 'round_update', rnd.to_dict())
    return True


def draw_due_at(start_time: float, draw_index: int) -> float:
    """Wall-clock time at which draw number ``draw_index + 1`` may happen."""
    return start_time + INITIAL_DELAY_SEC + draw_index * DRAW_INTERVAL_SEC


def next_tick_delay(start_time: float, draws_done: int, now: float) -> float:
    """Delay until the next draw slot, absorbing any lateness of this tick."""
    target = draw_due_at(start_time, draws_done)
    ceiling = start_time + ROUND_DURATION_SEC
    delay = min(target, ceiling) - now
    return max(0.0, min(float(DRAW_INTERVAL_SEC), delay))


def draw_tick(round_id, now: Optional[float] = None) -> TickResult:
    """Advance a round by one draw, or complete it once a ceiling is reached.

    Safe to invoke repeatedly for the same logical tick: a call that arrives
    before the next draw slot is due reports ``pending``, and of the calls
    racing for a due slot only the one that wins the conditional update
    draws, the others report ``stale``.
    """
    rnd = _load_round(round_id)
    if rnd is None:
        current_app.logger.info(f"[tick-missing] round={round_id}")
        return TickResult(round_id, 'missing')
    if rnd.status != 'active':
        current_app.logger.info(f"[tick-stale] round={round_id} status={rnd.status}")
        return TickResult(round_id, 'stale', draw_index=rnd.current_draw_index)

    now = time.time() if now is None else now
    elapsed = now - rnd.start_time
    index = rnd.current_draw_index
    sequence = rnd.draw_sequence

    if elapsed >= ROUND_DURATION_SEC or index >= MAX_DRAWS or index >= len(sequence):
        if complete_round(round_id, now=now):
            return TickResult(round_id, 'completed', draw_index=index)
        return TickResult(round_id, 'stale', draw_index=index)

    due = draw_due_at(rnd.start_time, index)
    if now < due:
        current_app.logger.debug(f"[tick-pending] round={round_id} draw={index + 1} due in {due - now:.2f}s")
        return TickResult(round_id, 'pending', draw_index=index, next_delay=next_tick_delay(rnd.start_time, index, now))

    number = sequence[index]
    if not _advance_draw_index(round_id, index):
        current_app.logger.info(f"[tick-stale] round={round_id} index {index} already advanced")
        return TickResult(round_id, 'stale', draw_index=index)

    rnd = _load_round(round_id)
    current_app.logger.info(
        f"[tick-draw] round={round_id} draw={index + 1}/{MAX_DRAWS} number={letter_for(number)}{number} elapsed={elapsed:.1f}s"
    )
    payload = rnd.to_dict()
    payload['letter'] = letter_for(number)
    broadcast(rnd.room.room_code, 'round_update', payload)
    return TickResult(
        round_id,
        'drawn',
        number=number,
        draw_index=index + 1,
        next_delay=next_tick_delay(rnd.start_time, index + 1, now),
    )


def schedule_draw_tick(app, round_id, delay: float = INITIAL_DELAY_SEC) -> None:
    """Schedule the next tick for a round as an independent background task.

    - No-ops in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS is set
    - No-ops when ticks are driven by the external poller
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return
    if app.config.get('DRAW_SCHEDULER', 'background') != 'background':
        return
    app.logger.info(f"[tick-set] round={round_id} delay={delay:.2f}s")
    socketio.start_background_task(_tick_worker, app, round_id, delay)


def _tick_worker(app, round_id, delay: float) -> None:
    time.sleep(delay)
    with app.app_context():
        try:
            result = draw_tick(round_id)
        except PersistenceFailure as exc:
            app.logger.warning(f"[tick-retry] round={round_id} {exc.message}")
            result = None
        except Exception:
            app.logger.exception(f"[tick-error] round={round_id}, retrying")
            result = None
    if result is None:
        schedule_draw_tick(app, round_id, DRAW_INTERVAL_SEC)
    elif result.next_delay is not None:
        schedule_draw_tick(app, round_id, result.next_delay)


def tick_active_rounds(now: Optional[float] = None) -> List[TickResult]:
    """Run one tick for every active round; the entry point for cron-style polling."""
    try:
        round_ids = [r.id for r in Round.query.filter_by(status='active').order_by(Round.id).all()]
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceFailure("Could not list active rounds") from exc
    return [draw_tick(round_id, now=now) for round_id in round_ids]
