from __future__ import annotations

from datetime import date
import threading
import unittest

from quest.errors import InvalidArgument
from quest.progression import ProgressionLedger, complete_task, lifetime_experience, threshold_for
from quest.runtime.models import Difficulty, ProgressionState, Reward, Task


class TestThresholds(unittest.TestCase):
    def test_geometric_curve(self) -> None:
        self.assertEqual([100, 150, 225, 337, 506], [threshold_for(lvl) for lvl in range(1, 6)])

    def test_monotonic(self) -> None:
        for level in range(1, 40):
            self.assertGreater(threshold_for(level + 1), threshold_for(level))

    def test_rejects_level_zero(self) -> None:
        with self.assertRaises(InvalidArgument):
            threshold_for(0)


class TestProgressionLedger(unittest.TestCase):
    def test_fresh_state(self) -> None:
        ledger = ProgressionLedger()
        self.assertEqual((0, 1, 0, 0), (ledger.experience, ledger.level, ledger.coins, ledger.total_completed))

    def test_single_level_up(self) -> None:
        ledger = ProgressionLedger()
        gained = ledger.add_experience(threshold_for(1))
        self.assertEqual(1, gained)
        self.assertEqual((2, 0, 50), (ledger.level, ledger.experience, ledger.coins))

    def test_multi_level_gain_pays_bonus_per_level(self) -> None:
        ledger = ProgressionLedger()
        gained = ledger.add_experience(threshold_for(1) + threshold_for(2) + threshold_for(3))
        self.assertEqual(3, gained)
        self.assertEqual((4, 0, 150), (ledger.level, ledger.experience, ledger.coins))

    def test_remainder_stays_below_threshold(self) -> None:
        ledger = ProgressionLedger()
        ledger.add_experience(99)
        self.assertEqual((1, 99), (ledger.level, ledger.experience))
        ledger.add_experience(60)
        self.assertEqual((2, 59), (ledger.level, ledger.experience))
        self.assertLess(ledger.experience, ledger.threshold())

    def test_negative_gain_fails_fast(self) -> None:
        ledger = ProgressionLedger()
        with self.assertRaises(InvalidArgument):
            ledger.add_experience(-1)
        with self.assertRaises(InvalidArgument):
            ledger.add_coins(-5)
        self.assertEqual(ProgressionState(), ledger.state)

    def test_spend_coins(self) -> None:
        ledger = ProgressionLedger(ProgressionState(coins=30))
        self.assertFalse(ledger.spend_coins(31))
        self.assertEqual(30, ledger.coins)
        self.assertTrue(ledger.spend_coins(30))
        self.assertEqual(0, ledger.coins)

    def test_negative_spend_fails_fast(self) -> None:
        ledger = ProgressionLedger(ProgressionState(coins=30))
        with self.assertRaises(InvalidArgument):
            ledger.spend_coins(-1)
        self.assertEqual(30, ledger.coins)

    def test_redeem_without_coins(self) -> None:
        ledger = ProgressionLedger()
        self.assertFalse(ledger.redeem(Reward("Movie night", 10)))
        self.assertEqual(0, ledger.coins)

    def test_redeem_reward(self) -> None:
        ledger = ProgressionLedger(ProgressionState(coins=100))
        self.assertTrue(ledger.redeem(Reward("Movie night", 80)))
        self.assertFalse(ledger.redeem(Reward("Movie night", 80)))
        self.assertEqual(20, ledger.coins)

    def test_completed_counter_is_independent_of_tasks(self) -> None:
        ledger = ProgressionLedger()
        tasks = [Task("a"), Task("b")]
        for task in tasks:
            complete_task(task, ledger)
        tasks.clear()
        self.assertEqual(2, ledger.total_completed)

    def test_concurrent_gains_are_serialized(self) -> None:
        ledger = ProgressionLedger()

        def worker() -> None:
            for _ in range(200):
                ledger.add_experience(5)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(4 * 200 * 5, lifetime_experience(ledger.state))


class TestSessionTracking(unittest.TestCase):
    def test_deltas_include_level_ups(self) -> None:
        ledger = ProgressionLedger(ProgressionState(experience=80, coins=10))
        self.assertEqual(0, ledger.experience_gained_in_session())

        ledger.begin_tracking()
        ledger.add_experience(100)
        ledger.add_coins(20)

        self.assertEqual(2, ledger.level)
        self.assertEqual(100, ledger.experience_gained_in_session())
        self.assertEqual(70, ledger.coins_gained_in_session())

        ledger.end_tracking()
        self.assertFalse(ledger.is_tracking)
        self.assertEqual(0, ledger.coins_gained_in_session())


class TestCompleteTask(unittest.TestCase):
    def test_pays_rewards_and_marks_done(self) -> None:
        ledger = ProgressionLedger()
        task = Task("exam", Difficulty.HARD)

        outcome = complete_task(task, ledger, on=date(2026, 3, 1))

        self.assertTrue(task.completed)
        self.assertEqual(date(2026, 3, 1), task.completion_date)
        self.assertEqual((200, 80, 1), (outcome.experience, outcome.coins, outcome.levels_gained))
        # 200 xp clears level 1 (100) and leaves 100 toward level 2 (150).
        self.assertEqual((2, 100, 80 + 50, 1), (ledger.level, ledger.experience, ledger.coins, ledger.total_completed))

    def test_completing_twice_fails(self) -> None:
        ledger = ProgressionLedger()
        task = Task("read")
        complete_task(task, ledger)
        with self.assertRaises(InvalidArgument):
            complete_task(task, ledger)
        self.assertEqual(1, ledger.total_completed)


if __name__ == "__main__":
    unittest.main()
