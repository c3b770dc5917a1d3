from __future__ import annotations

import random
import unittest
from unittest.mock import patch

from bingodraw.config import GameSettings
from bingodraw.game.bonus import BonusKind, BonusRegistry
from bingodraw.game.card import LINES, create_card
from bingodraw.game.engine import ActiveTarget, AlwaysBonusMode, GameEngine
from bingodraw.game.statistics import TotalStatistics


def _engine(seed: int = 1234) -> GameEngine:
    return GameEngine(rng=random.Random(seed))


def _open(engine: GameEngine, *numbers: int) -> None:
    for number in numbers:
        engine._card[number - 1].is_active = True
    engine.update_reach_status()


def _force_numbers(engine: GameEngine, *numbers: int):
    return patch.object(engine, "_draw_number", side_effect=list(numbers))


class EngineInvariantTests(unittest.TestCase):
    def _assert_invariants(self, engine: GameEngine, result) -> None:
        card = engine.get_card()
        free = [cell for cell in card if cell.is_free]
        self.assertEqual(len(free), 1)
        self.assertTrue(free[0].is_active)
        self.assertEqual(result.active_count, sum(cell.is_active for cell in card))
        for idx, cell in enumerate(card):
            if cell.is_line:
                self.assertTrue(
                    any(
                        idx in line and all(card[i].is_active for i in line)
                        for line in LINES
                    )
                )
        for line in LINES:
            open_cells = sum(card[i].is_active for i in line)
            for idx in line:
                if open_cells == 4:
                    self.assertTrue(card[idx].is_reach)
        for idx, cell in enumerate(card):
            if cell.is_reach:
                self.assertTrue(
                    any(
                        idx in line and sum(card[i].is_active for i in line) == 4
                        for line in LINES
                    )
                )
        self.assertEqual(sorted(result.line_numbers), list(result.line_numbers))
        self.assertEqual(len(set(result.activated_numbers)), len(result.activated_numbers))

    def test_invariants_hold_over_many_draws(self) -> None:
        engine = _engine()
        for _ in range(300):
            result = engine.draw()
            self._assert_invariants(engine, result)
            self.assertIs(engine.get_last_result(), result)
        total = sum(count for _, count in engine.get_statistics().get_lines_distribution())
        self.assertEqual(total, 300)

    def test_invariants_hold_with_board_randomization(self) -> None:
        for target in ActiveTarget.ALL:
            engine = _engine(99)
            engine.set_randomize_board(True, active_target=target)
            for _ in range(200):
                self._assert_invariants(engine, engine.draw())

    def test_invariants_hold_in_every_bonus_mode(self) -> None:
        for mode, kind in (
            (AlwaysBonusMode.OFF, None),
            (AlwaysBonusMode.RANDOM, None),
            (AlwaysBonusMode.FIXED, BonusKind.BOX),
        ):
            engine = _engine(5)
            engine.set_always_bonus(mode, kind)
            engine.set_scoring_policy("tiered")
            for _ in range(150):
                self._assert_invariants(engine, engine.draw())

    def test_draw_multiple_runs_sequential_draws(self) -> None:
        engine = _engine()
        results = engine.draw_multiple(100)
        self.assertEqual(len(results), 100)
        self.assertEqual(engine.get_statistics().get_total_draws(), 100)
        self.assertIs(engine.get_last_result(), results[-1])
        self.assertEqual(engine.draw_multiple(0), [])

    def test_draw_multiple_validates_count(self) -> None:
        engine = _engine()
        with self.assertRaises(ValueError):
            engine.draw_multiple(-1)
        with self.assertRaises(TypeError):
            engine.draw_multiple("3")  # type: ignore[arg-type]

    def test_same_seed_gives_same_results(self) -> None:
        first = _engine(42).draw_multiple(50)
        second = _engine(42).draw_multiple(50)
        self.assertEqual(first, second)


class DrawPhaseTests(unittest.TestCase):
    def test_pre_draw_phase_creates_reach(self) -> None:
        engine = _engine()
        with _force_numbers(engine, 13):
            result = engine.draw()
        card = engine.get_card()
        self.assertTrue(any(cell.is_reach and not cell.is_active for cell in card))
        self.assertEqual(result.lines_completed, 0)
        self.assertFalse(result.is_hit)
        self.assertEqual(result.activated_numbers, ())

    def test_hit_line_score_and_line_reset(self) -> None:
        engine = _engine()
        _open(engine, 1, 2, 3, 4, 8)

        with _force_numbers(engine, 8, 5, 8):
            repeat = engine.draw()
            winning = engine.draw()
            self.assertEqual(
                [cell.number for cell in engine.get_card() if cell.is_line],
                [1, 2, 3, 4, 5],
            )
            after = engine.draw()

        self.assertFalse(repeat.is_hit)
        self.assertEqual(repeat.activated_numbers, ())
        self.assertEqual(repeat.score, 0)

        self.assertTrue(winning.is_hit)
        self.assertEqual(winning.activated_numbers, (5,))
        self.assertEqual(winning.lines_completed, 1)
        self.assertEqual(winning.line_numbers, (1, 2, 3, 4, 5))
        self.assertEqual(winning.score, 1)

        self.assertEqual(after.lines_completed, 0)
        self.assertFalse(any(cell.is_line for cell in engine.get_card()))

        stats = engine.get_statistics()
        self.assertEqual(stats.get_total_draws(), 3)
        self.assertEqual(stats.get_hit_count(), 1)
        self.assertEqual(stats.get_win_count(), 1)
        self.assertEqual(stats.get_lines_distribution(), [(0, 2), (1, 1)])

    def test_tiered_scoring_for_double_line(self) -> None:
        engine = _engine()
        engine.set_scoring_policy("tiered")
        _open(engine, 2, 3, 4, 5, 6, 11, 16, 21)
        with _force_numbers(engine, 1):
            result = engine.draw()
        self.assertEqual(result.lines_completed, 2)
        self.assertEqual(result.score, 3)
        self.assertEqual(engine.get_statistics().get_score_distribution(), [(3, 1)])


class BonusResolutionTests(unittest.TestCase):
    def test_fixed_row_line_activates_the_whole_row(self) -> None:
        engine = _engine()
        engine.set_always_bonus(AlwaysBonusMode.FIXED, BonusKind.ROW_LINE)
        with _force_numbers(engine, 8):
            result = engine.draw()
        self.assertTrue(result.bonus_applied)
        self.assertEqual(result.bonus_kind, BonusKind.ROW_LINE)
        self.assertFalse(result.bonus_queued)
        self.assertEqual(sorted(result.activated_numbers), [3, 8, 13, 18, 23])
        self.assertGreaterEqual(result.lines_completed, 1)
        self.assertTrue({3, 8, 13, 18, 23} <= set(result.line_numbers))
        bonus = dict(engine.get_statistics().get_bonus_statistics())
        self.assertEqual(bonus[BonusKind.ROW_LINE].applied_count, 1)
        self.assertEqual(bonus[BonusKind.ROW_LINE].total_activated, 5)

    def test_free_number_queues_bonus_for_next_draw(self) -> None:
        engine = _engine()
        engine.set_enabled_bonus_kinds([BonusKind.ROW_LINE])
        with _force_numbers(engine, 13, 8):
            queued = engine.draw()
            self.assertEqual(engine.get_pending_bonus(), BonusKind.ROW_LINE)
            applied = engine.draw()

        self.assertTrue(queued.bonus_queued)
        self.assertEqual(queued.bonus_queued_kind, BonusKind.ROW_LINE)
        self.assertFalse(queued.bonus_applied)
        self.assertIsNone(queued.bonus_kind)

        self.assertFalse(applied.bonus_queued)
        self.assertTrue(applied.bonus_applied)
        self.assertEqual(applied.bonus_kind, BonusKind.ROW_LINE)
        self.assertEqual(sorted(applied.activated_numbers), [3, 8, 13, 18, 23])
        self.assertIsNone(engine.get_pending_bonus())

    def test_consecutive_free_numbers_apply_and_requeue(self) -> None:
        engine = _engine()
        engine.set_enabled_bonus_kinds([BonusKind.CROSS])
        with _force_numbers(engine, 13, 13):
            engine.draw()
            second = engine.draw()
        self.assertTrue(second.bonus_applied)
        self.assertTrue(second.bonus_queued)
        self.assertEqual(engine.get_pending_bonus(), BonusKind.CROSS)

    def test_disabled_kinds_leave_queued_bonus_without_handler(self) -> None:
        engine = _engine()
        engine.set_enabled_bonus_kinds([BonusKind.ROW_LINE])
        with _force_numbers(engine, 13, 8):
            engine.draw()
            engine.set_enabled_bonus_kinds([])
            result = engine.draw()
        self.assertFalse(result.bonus_applied)
        self.assertIsNone(result.bonus_kind)
        self.assertIsNone(engine.get_pending_bonus())

    def test_disabled_queued_kind_falls_back_to_enabled_kind(self) -> None:
        engine = _engine()
        engine.set_enabled_bonus_kinds([BonusKind.ROW_LINE])
        with _force_numbers(engine, 13, 8):
            engine.draw()
            engine.set_enabled_bonus_kinds([BonusKind.COLUMN_LINE])
            result = engine.draw()
        self.assertTrue(result.bonus_applied)
        self.assertEqual(result.bonus_kind, BonusKind.COLUMN_LINE)
        self.assertEqual(sorted(result.activated_numbers), [6, 7, 8, 9, 10])

    def test_nothing_is_queued_without_enabled_kinds(self) -> None:
        engine = _engine()
        engine.set_enabled_bonus_kinds([])
        with _force_numbers(engine, 13):
            result = engine.draw()
        self.assertFalse(result.bonus_queued)
        self.assertIsNone(engine.get_pending_bonus())

    def test_always_modes_skip_queueing(self) -> None:
        for mode, kind in (
            (AlwaysBonusMode.OFF, None),
            (AlwaysBonusMode.RANDOM, None),
            (AlwaysBonusMode.FIXED, BonusKind.CROSS),
        ):
            engine = _engine()
            engine.set_always_bonus(mode, kind)
            with _force_numbers(engine, 13):
                result = engine.draw()
            self.assertFalse(result.bonus_queued, mode)
            self.assertIsNone(engine.get_pending_bonus(), mode)
            self.assertEqual(result.bonus_applied, mode != AlwaysBonusMode.OFF, mode)

    def test_random_mode_picks_from_enabled_kinds(self) -> None:
        engine = _engine()
        engine.set_always_bonus(AlwaysBonusMode.RANDOM)
        engine.set_enabled_bonus_kinds([BonusKind.CROSS, BonusKind.X])
        kinds = {result.bonus_kind for result in engine.draw_multiple(40)}
        self.assertTrue(kinds <= {BonusKind.CROSS, BonusKind.X})
        self.assertTrue(kinds)

    def test_fixed_mode_with_unknown_kind_applies_nothing(self) -> None:
        engine = _engine()
        engine.set_always_bonus(AlwaysBonusMode.FIXED, "activate-nothing")
        result = engine.draw()
        self.assertFalse(result.bonus_applied)
        self.assertIsNone(result.bonus_kind)

    def test_switching_to_always_mode_clears_pending_bonus(self) -> None:
        engine = _engine()
        with _force_numbers(engine, 13):
            engine.draw()
        self.assertIsNotNone(engine.get_pending_bonus())
        engine.set_always_bonus(AlwaysBonusMode.OFF)
        self.assertIsNone(engine.get_pending_bonus())

    def test_empty_registry_never_applies_bonuses(self) -> None:
        engine = GameEngine(registry=BonusRegistry(), rng=random.Random(3))
        with _force_numbers(engine, 13, 8):
            first = engine.draw()
            second = engine.draw()
        self.assertFalse(first.bonus_queued)
        self.assertFalse(second.bonus_applied)


class ConfigurationTests(unittest.TestCase):
    def test_invalid_configuration_is_rejected(self) -> None:
        engine = _engine()
        with self.assertRaises(ValueError):
            engine.set_always_bonus("sometimes")
        with self.assertRaises(ValueError):
            engine.set_always_bonus(AlwaysBonusMode.FIXED)
        with self.assertRaises(ValueError):
            engine.set_randomize_board(True, active_target="most")
        with self.assertRaises(ValueError):
            engine.set_scoring_policy("unknown")
        with self.assertRaises(ValueError):
            GameEngine(scoring="unknown")

    def test_settings_are_applied(self) -> None:
        settings = GameSettings(
            enabled_bonus_kinds=(BonusKind.CROSS,),
            always_bonus_mode=AlwaysBonusMode.FIXED,
            always_bonus_kind=BonusKind.BOX,
            randomize_board=True,
            active_target=ActiveTarget.RANDOM,
            scoring="tiered",
        )
        engine = GameEngine(settings=settings, rng=random.Random(1))
        self.assertEqual(engine.enabled_bonus_kinds, frozenset({BonusKind.CROSS}))
        self.assertEqual(engine.always_bonus_mode, AlwaysBonusMode.FIXED)
        self.assertEqual(engine.always_bonus_kind, BonusKind.BOX)
        self.assertTrue(engine.randomize_board)
        self.assertEqual(engine.active_target, ActiveTarget.RANDOM)
        self.assertEqual(engine.scoring_policy.key, "tiered")


class BoardRandomizationTests(unittest.TestCase):
    def test_fixed_target_opens_thirteen_cells_without_lines(self) -> None:
        for seed in range(30):
            engine = _engine(seed)
            engine.set_randomize_board(True)
            engine._randomize_card()
            card = engine.get_card()
            self.assertEqual(sum(cell.is_active for cell in card), 13)
            self.assertTrue(card[12].is_active)
            self.assertFalse(any(cell.is_line for cell in card))
            self.assertFalse(
                any(all(card[i].is_active for i in line) for line in LINES)
            )

    def test_random_target_stays_within_bounds(self) -> None:
        for seed in range(30):
            engine = _engine(seed)
            engine.set_randomize_board(True, active_target=ActiveTarget.RANDOM)
            engine._randomize_card()
            opened = sum(cell.is_active for cell in engine.get_card())
            self.assertGreaterEqual(opened, 1)
            self.assertLessEqual(opened, 13)

    def test_force_reach_swaps_one_cell(self) -> None:
        engine = _engine()
        # column 1-5 is the only line with three open cells; 10 is outside it
        _open(engine, 1, 2, 3, 10)
        self.assertTrue(engine._force_reach())
        card = engine.get_card()
        self.assertEqual(sum(cell.is_active for cell in card), 5)
        self.assertFalse(card[9].is_active)
        engine.update_reach_status()
        self.assertTrue(any(cell.is_reach for cell in engine.get_card()))

    def test_force_reach_gives_up_without_candidate_line(self) -> None:
        engine = _engine()
        self.assertFalse(engine._force_reach())


class AccessorTests(unittest.TestCase):
    def test_get_card_returns_snapshot(self) -> None:
        engine = _engine()
        snapshot = engine.get_card()
        snapshot[0].is_active = True
        snapshot.clear()
        card = engine.get_card()
        self.assertEqual(len(card), 25)
        self.assertFalse(card[0].is_active)

    def test_statistics_handle_is_live(self) -> None:
        engine = _engine()
        stats = engine.get_statistics()
        engine.draw()
        self.assertEqual(stats.get_total_draws(), 1)

    def test_reset_is_idempotent(self) -> None:
        engine = _engine()
        engine.draw_multiple(25)
        engine.reset()
        once = (engine.get_card(), engine.get_statistics().get_stats())
        engine.reset()
        twice = (engine.get_card(), engine.get_statistics().get_stats())
        self.assertEqual(once, twice)
        self.assertEqual(once[0], create_card())
        self.assertEqual(once[1], TotalStatistics())
        self.assertIsNone(engine.get_last_result())
        self.assertIsNone(engine.get_pending_bonus())

    def test_check_lines_on_engine_card(self) -> None:
        engine = _engine()
        _open(engine, 11, 12, 14)
        self.assertTrue(all(engine.get_card()[i].is_reach for i in range(10, 15)))
        _open(engine, 15)
        result = engine.check_lines()
        self.assertEqual(result.lines_completed, 1)
        self.assertEqual(result.line_numbers, (11, 12, 13, 14, 15))


if __name__ == "__main__":
    unittest.main()
