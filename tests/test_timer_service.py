import unittest
from unittest.mock import patch

from squadra.models import ClockPhase, Match, MatchStatus, PeriodType
from squadra.services import MatchStateError, MatchTimerService


class MatchTimerServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.match = Match(opponent="Virtus")
        self.service = MatchTimerService(self.match)
        patcher = patch("squadra.services.timer_service.now_ts", return_value=1000)
        self.now_ts = patcher.start()
        self.addCleanup(patcher.stop)

    def _start(self) -> None:
        self.service.start()

    def _ticks(self, count: int) -> None:
        for _ in range(count):
            self.service.tick()

    def test_start_creates_first_regular_period(self) -> None:
        self.assertEqual(self.match.status, MatchStatus.SCHEDULED)
        self.assertIsNone(self.match.current_period_index)

        self._start()

        self.assertEqual(self.match.status, MatchStatus.IN_PROGRESS)
        self.assertEqual(self.match.clock.phase, ClockPhase.RUNNING)
        self.assertEqual(len(self.match.periods), 1)
        self.assertEqual(self.match.periods[0].label, "1° Tempo")
        self.assertEqual(self.match.periods[0].type, PeriodType.REGULAR)
        self.assertEqual(self.match.current_period_index, 0)

    def test_start_rejected_while_running(self) -> None:
        self._start()
        with self.assertRaises(MatchStateError):
            self.service.start()

    def test_clock_accumulates_only_while_running(self) -> None:
        self._start()
        self._ticks(3)
        self.service.pause()

        self.assertFalse(self.service.tick())
        self._ticks(5)
        self.assertEqual(self.match.periods[0].duration, 3)

        self._start()
        self._ticks(2)
        self.assertEqual(self.match.periods[0].duration, 5)

    def test_tick_ignored_before_start(self) -> None:
        self.assertFalse(self.service.tick())
        self.assertEqual(self.match.periods, [])

    def test_catch_up_converts_wall_clock_into_ticks(self) -> None:
        self._start()
        self.assertEqual(self.service.catch_up(now=1002.5), 2)
        self.assertEqual(self.match.periods[0].duration, 2)
        # The half second carried over completes on the next call
        self.assertEqual(self.service.catch_up(now=1003.0), 1)
        self.assertEqual(self.match.periods[0].duration, 3)

    def test_pause_catches_up_with_wall_clock(self) -> None:
        self._start()
        self.now_ts.return_value = 1600
        self.service.pause()
        self.assertEqual(self.match.periods[0].duration, 600)
        self.assertEqual(self.match.clock.phase, ClockPhase.PAUSED)

    def test_pause_rejected_when_not_running(self) -> None:
        with self.assertRaises(MatchStateError):
            self.service.pause()

    def test_interval_then_start_adds_second_half(self) -> None:
        self._start()
        self._ticks(10)
        self.service.enter_interval()

        self.assertEqual(self.match.clock.phase, ClockPhase.INTERVAL)
        self.assertTrue(self.match.in_interval)
        self.assertEqual(self.match.current_period.label, "Intervallo")

        self._ticks(30)
        self.assertEqual(self.match.current_period.duration, 0)

        self._start()
        self.assertEqual([p.label for p in self.match.periods], ["1° Tempo", "Intervallo", "2° Tempo"])
        self.assertEqual(self.match.current_period_index, 2)
        self.assertEqual(self.match.clock.phase, ClockPhase.RUNNING)

    def test_interval_rejected_before_start_and_twice(self) -> None:
        with self.assertRaises(MatchStateError):
            self.service.enter_interval()
        self._start()
        self.service.enter_interval()
        with self.assertRaises(MatchStateError):
            self.service.enter_interval()
        self.assertEqual(len(self.match.periods), 2)

    def test_add_period_keeps_running_clock(self) -> None:
        self._start()
        self.service.add_period(PeriodType.EXTRA)
        self.assertEqual(self.match.current_period.label, "1° Supplementare")
        self.assertEqual(self.match.clock.phase, ClockPhase.RUNNING)
        self._ticks(4)
        self.assertEqual(self.match.periods[0].duration, 0)
        self.assertEqual(self.match.periods[1].duration, 4)

    def test_add_period_from_pause_stays_paused(self) -> None:
        self._start()
        self.service.pause()
        self.service.add_period(PeriodType.REGULAR)
        self.assertEqual(self.match.current_period.label, "2° Tempo")
        self.assertEqual(self.match.clock.phase, ClockPhase.PAUSED)

    def test_add_interval_period_rejected(self) -> None:
        self._start()
        with self.assertRaises(MatchStateError):
            self.service.add_period(PeriodType.INTERVAL)

    def test_remove_last_period_bounds(self) -> None:
        self._start()
        with self.assertRaises(MatchStateError):
            self.service.remove_last_period()
        self.assertEqual(len(self.match.periods), 1)

        self.service.add_period(PeriodType.REGULAR)
        removed = self.service.remove_last_period()

        self.assertEqual(removed.label, "2° Tempo")
        self.assertEqual(len(self.match.periods), 1)
        self.assertEqual(self.match.current_period_index, 0)
        self.assertEqual(self.match.clock.phase, ClockPhase.PAUSED)

    def test_remove_last_period_back_to_interval(self) -> None:
        self._start()
        self.service.enter_interval()
        self._start()
        self.service.remove_last_period()
        self.assertEqual(self.match.current_period_index, 1)
        self.assertEqual(self.match.clock.phase, ClockPhase.INTERVAL)

    def test_finish_is_terminal(self) -> None:
        with self.assertRaises(MatchStateError):
            self.service.finish()

        self._start()
        self._ticks(7)
        self.service.finish()
        self.assertEqual(self.match.status, MatchStatus.FINISHED)

        for operation in (
            self.service.start,
            self.service.enter_interval,
            self.service.remove_last_period,
            self.service.finish,
        ):
            with self.assertRaises(MatchStateError):
                operation()
        with self.assertRaises(MatchStateError):
            self.service.add_period(PeriodType.EXTRA)

        self.assertFalse(self.service.tick())
        self.assertEqual(self.match.periods[0].duration, 7)

    def test_current_stamp_and_total_played(self) -> None:
        self._start()
        self._ticks(125)
        self.assertEqual(self.service.current_stamp(), (2, 5))
        self.service.enter_interval()
        self._start()
        self._ticks(10)
        self.assertEqual(self.service.current_stamp(), (0, 10))
        self.assertEqual(self.service.get_total_played_seconds(), 135)


if __name__ == "__main__":
    unittest.main()
