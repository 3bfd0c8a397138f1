"""Timer service for the Squadra team management application."""

import logging
from typing import Optional, Tuple

from ..models import ClockPhase, Match, MatchClockState, Period, PeriodType
from ..utils import INTERVAL_LABEL, now_ts, split_elapsed
from ..utils.constants import EXTRA_PERIOD_LABEL, REGULAR_PERIOD_LABEL
from .errors import MatchStateError

logger = logging.getLogger(__name__)


class MatchTimerService:
    """Service for managing the match clock and its periods.

    Every rejected transition raises :class:`MatchStateError` and leaves the
    match untouched.
    """

    def __init__(self, match: Match):
        self.match = match

    # ------------------------------------------------------------------
    # Core timer controls
    # ------------------------------------------------------------------
    def start(self) -> None:
        """Kick off the match, resume after a pause, or resume after an interval."""

        phase = self.match.clock.phase
        self._ensure_not_finished()

        if phase is ClockPhase.RUNNING:
            raise MatchStateError("Il cronometro è già in corso")

        if phase is ClockPhase.PRE_MATCH:
            self.match.periods = [self._new_period(PeriodType.REGULAR)]
            index = 0
        elif phase is ClockPhase.INTERVAL:
            self.match.periods.append(self._new_period(PeriodType.REGULAR))
            index = len(self.match.periods) - 1
        else:
            index = self.match.clock.period_index

        self.match.clock = MatchClockState.running(index)
        self.match.last_tick_ts = now_ts()
        logger.debug("Match %s running on period %d", self.match.id, index)

    def pause(self) -> None:
        """Stop accumulating time on the current period."""

        if self.match.clock.phase is not ClockPhase.RUNNING:
            raise MatchStateError("Il cronometro non è in corso")

        self.catch_up()
        self.match.clock = MatchClockState.paused(self.match.clock.period_index)
        self.match.last_tick_ts = None
        logger.debug("Match %s paused", self.match.id)

    def enter_interval(self) -> None:
        """Begin an interval break as a new, non-counting period."""

        self._ensure_started()
        self._ensure_not_finished()
        if self.match.clock.phase is ClockPhase.INTERVAL:
            raise MatchStateError("La partita è già nell'intervallo")

        self.catch_up()
        self.match.periods.append(Period(PeriodType.INTERVAL, INTERVAL_LABEL))
        self.match.clock = MatchClockState.interval(len(self.match.periods) - 1)
        self.match.last_tick_ts = None
        logger.debug("Match %s entered interval", self.match.id)

    def add_period(self, period_type: PeriodType) -> None:
        """Append a regular or extra period and make it current.

        A running clock keeps running on the new period; otherwise the new
        period starts paused.
        """

        if period_type is PeriodType.INTERVAL:
            raise MatchStateError("Usa l'intervallo per aggiungere una pausa")
        self._ensure_started()
        self._ensure_not_finished()

        was_running = self.match.clock.phase is ClockPhase.RUNNING
        if was_running:
            self.catch_up()

        self.match.periods.append(self._new_period(period_type))
        index = len(self.match.periods) - 1
        if was_running:
            self.match.clock = MatchClockState.running(index)
        else:
            self.match.clock = MatchClockState.paused(index)
        logger.debug("Match %s added %s period %d", self.match.id, period_type.value, index)

    def remove_last_period(self) -> Period:
        """Remove the last period; the sole remaining period can never be removed."""

        self._ensure_not_finished()
        if len(self.match.periods) <= 1:
            raise MatchStateError("Impossibile rimuovere l'unico periodo della partita")

        removed_index = len(self.match.periods) - 1
        current = self.match.clock.period_index
        if current == removed_index and self.match.clock.phase is ClockPhase.RUNNING:
            self.catch_up()

        removed = self.match.periods.pop()
        if current is not None and current >= removed_index:
            new_index = len(self.match.periods) - 1
            if self.match.periods[new_index].type is PeriodType.INTERVAL:
                self.match.clock = MatchClockState.interval(new_index)
            else:
                self.match.clock = MatchClockState.paused(new_index)
            self.match.last_tick_ts = None

        logger.debug("Match %s removed period '%s'", self.match.id, removed.label)
        return removed

    def finish(self) -> None:
        """End the match; no further clock or period operation is accepted."""

        self._ensure_started()
        self._ensure_not_finished()

        if self.match.clock.phase is ClockPhase.RUNNING:
            self.catch_up()
        self.match.clock = MatchClockState.finished(self.match.clock.period_index)
        self.match.last_tick_ts = None
        logger.debug("Match %s finished", self.match.id)

    # ------------------------------------------------------------------
    # Clock ticks
    # ------------------------------------------------------------------
    def tick(self) -> bool:
        """Advance the current period by one second when the clock runs."""

        if self.match.clock.phase is not ClockPhase.RUNNING:
            return False
        self.match.periods[self.match.clock.period_index].duration += 1
        return True

    def catch_up(self, now: Optional[float] = None) -> int:
        """Apply the whole seconds elapsed since the last catch-up as ticks.

        The fractional remainder is carried to the next call.

        Returns:
            Number of ticks applied
        """

        if self.match.clock.phase is not ClockPhase.RUNNING:
            return 0
        now = now_ts() if now is None else now
        if self.match.last_tick_ts is None:
            self.match.last_tick_ts = now
            return 0

        ticks = max(0, int(now - self.match.last_tick_ts))
        self.match.periods[self.match.clock.period_index].duration += ticks
        self.match.last_tick_ts += ticks
        return ticks

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------
    def current_elapsed_seconds(self) -> int:
        """Return the accumulated seconds of the current period."""

        period = self.match.current_period
        return period.duration if period is not None else 0

    def current_stamp(self) -> Tuple[int, int]:
        """Return the (minute, second) stamp for a record created now."""

        return split_elapsed(self.current_elapsed_seconds())

    def get_total_played_seconds(self) -> int:
        """Sum of all non-interval periods."""

        return sum(p.duration for p in self.match.periods if p.type is not PeriodType.INTERVAL)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _new_period(self, period_type: PeriodType) -> Period:
        number = sum(1 for p in self.match.periods if p.type is period_type) + 1
        template = REGULAR_PERIOD_LABEL if period_type is PeriodType.REGULAR else EXTRA_PERIOD_LABEL
        return Period(period_type, template.format(number=number))

    def _ensure_started(self) -> None:
        if not self.match.has_started:
            raise MatchStateError("La partita non è ancora iniziata")

    def _ensure_not_finished(self) -> None:
        if self.match.is_finished:
            raise MatchStateError("La partita è terminata")
