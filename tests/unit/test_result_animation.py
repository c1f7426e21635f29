"""Unit tests for TimerResultAnimation and the result headline."""

from cybertrain.engines.timer.result_animation import (
    AnimationStage,
    ResultType,
    TimerResultAnimation,
    determine_result_type,
)
from cybertrain.engines.timer.scoring import calculate_time_bonus, calculate_timer_score


class TestDetermineResultType:
    """Tests for the result headline."""

    def test_bonus_means_excellent(self):
        score = calculate_timer_score(100, 20, 1.0, True)
        bonus = calculate_time_bonus(100, 20, score.total_score)
        assert determine_result_type(score, bonus) == ResultType.EXCELLENT

    def test_success_and_failure_split_at_80(self):
        slow = calculate_timer_score(100, 100, 1.0, True)  # 40 + 28 + 20 = 88
        assert determine_result_type(slow) == ResultType.SUCCESS
        sloppy = calculate_timer_score(100, 100, 0.0, True)  # 40 + 28 + 0 = 68
        assert determine_result_type(sloppy) == ResultType.FAILURE

    def test_timeout(self):
        score = calculate_timer_score(100, 100, 0.0, False)
        assert determine_result_type(score, None, timed_out=True) == ResultType.TIMEOUT


class TestTimerResultAnimation:
    """Tests for the staged reveal."""

    def test_stages_and_single_completion(self, tick):
        done = []
        animation = TimerResultAnimation(tick, ResultType.SUCCESS, on_animation_complete=lambda: done.append(1))
        animation.mount()
        assert animation.stage == AnimationStage.HIDDEN
        tick.advance(0.5)
        assert animation.stage == AnimationStage.VISIBLE
        tick.advance(1.5)
        assert animation.stage == AnimationStage.DETAILS
        assert animation.show_details is True

        animation.continue_()
        animation.continue_()
        assert animation.stage == AnimationStage.EXITING
        tick.advance(0.5)
        assert animation.stage == AnimationStage.COMPLETE
        assert done == [1]

    def test_auto_continue(self, tick):
        done = []
        animation = TimerResultAnimation(
            tick, ResultType.TIMEOUT, on_animation_complete=lambda: done.append(1), auto_continue_ms=1000
        )
        animation.mount()
        tick.advance(10)
        assert done == [1]

    def test_continue_before_reveal_is_ignored(self, tick):
        animation = TimerResultAnimation(tick, ResultType.SUCCESS)
        animation.mount()
        animation.continue_()
        assert animation.stage == AnimationStage.HIDDEN

    def test_cancel_drops_pending_stage(self, tick):
        done = []
        animation = TimerResultAnimation(tick, ResultType.SUCCESS, on_animation_complete=lambda: done.append(1))
        animation.mount()
        animation.cancel()
        tick.advance(10)
        assert animation.stage == AnimationStage.HIDDEN
        assert done == []

    def test_summary_without_score_defaults_to_zero(self, tick):
        summary = TimerResultAnimation(tick, ResultType.SUCCESS).summary()
        assert summary.title == "Success!"
        assert summary.total_score == 0
        assert summary.final_score == 0

    def test_summary_with_bonus(self, tick):
        score = calculate_timer_score(120, 30, 1.0, True)
        bonus = calculate_time_bonus(120, 30, score.total_score)
        summary = TimerResultAnimation(tick, ResultType.EXCELLENT, score, bonus).summary()
        assert summary.total_score == 100
        assert summary.bonus_percentage == 30
        assert summary.final_score == 130
