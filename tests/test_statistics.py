import pytest

from flledger.contracts.composed import ComposedContract, ContractConfig
from flledger.metrics import compute_round_statistics, gini_coefficient, jain_fairness, reward_distribution


def test_fairness_indices():
    assert jain_fairness([]) == 0.0
    assert jain_fairness([5, 5, 5]) == pytest.approx(1.0)
    assert jain_fairness([1, 0, 0, 0]) == pytest.approx(0.25)
    assert gini_coefficient([3, 3, 3]) == pytest.approx(0.0)
    assert gini_coefficient([0, 0, 0, 9]) == pytest.approx(0.75)


def test_compute_round_statistics():
    c = ComposedContract(ContractConfig())
    for i in range(1, 5):
        c.register(f"n{i}", 1000)
    c.start_round("operator")
    for i in range(1, 5):
        c.submit_update(f"n{i}", "h")
    c.advance_blocks(2)
    c.aggregate("operator", "g1")
    c.start_round("operator")
    c.submit_update("n1", "h")

    stats = compute_round_statistics(c)
    assert stats == [
        {"round": 1, "submissions": 4, "aggregated": True, "participant_count": 4,
         "aggregated_at_height": 2, "rewards_credited": 400_000},
        {"round": 2, "submissions": 1, "aggregated": False, "participant_count": None,
         "aggregated_at_height": None, "rewards_credited": 100_000},
    ]

    dist = reward_distribution(c)
    assert dist["participants"] == 4
    assert dist["total"] == 500_000
    assert dist["max"] == 200_000
    assert 0.0 < dist["fairness"] < 1.0


def test_reward_distribution_empty_ledger():
    dist = reward_distribution(ComposedContract())
    assert dist["total"] == 0
    assert dist["fairness"] == 0.0
