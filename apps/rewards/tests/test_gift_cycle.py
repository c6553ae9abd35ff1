import pytest

from rewards_engine.domain.rewards.gift_cycle import cycle_of, progress_percent


def test_zero_purchases_starts_a_full_cycle() -> None:
    cycle = cycle_of(0)
    assert cycle.purchases_until_gift == 10
    assert cycle.gifts_earned == 0
    assert not cycle.just_earned()


def test_exact_multiple_reports_just_earned() -> None:
    cycle = cycle_of(20)
    assert cycle.purchases_until_gift == 10
    assert cycle.gifts_earned == 2
    assert cycle.just_earned()


def test_countdown_stays_within_bounds() -> None:
    for threshold in (1, 3, 10):
        for purchases in range(0, 45):
            cycle = cycle_of(purchases, threshold)
            assert 0 < cycle.purchases_until_gift <= threshold
            assert (cycle.purchases_until_gift == threshold) == (purchases % threshold == 0)
            assert cycle.gifts_earned == purchases // threshold


def test_custom_threshold() -> None:
    cycle = cycle_of(7, threshold=5)
    assert cycle.purchases_until_gift == 3
    assert cycle.gifts_earned == 1


def test_invalid_inputs_raise() -> None:
    with pytest.raises(ValueError):
        cycle_of(3, threshold=0)
    with pytest.raises(ValueError):
        cycle_of(-1)


def test_progress_percent() -> None:
    assert progress_percent(10) == 0
    assert progress_percent(3) == 70
    assert progress_percent(1, threshold=4) == 75
