import pytest

from flledger.core.registry import REPUTATION, REWARD, Registry
from flledger.core.state import LedgerState
from flledger.core.types import Participant
from flledger.incentive.reputation import FlatReputation, ReputationParams, TieredReputation
from flledger.incentive.reward import MultiplierReward, RewardLedger


@pytest.mark.parametrize("score,expected", [
    (0, 100), (10, 100), (49, 100),
    (50, 125), (75, 125), (99, 125),
    (100, 150), (150, 150),
])
def test_multiplier_is_step_function(score, expected):
    assert TieredReputation().multiplier(score) == expected


def test_multiplier_custom_thresholds():
    rep = TieredReputation(ReputationParams(mid_threshold=20, high_threshold=40))
    assert rep.multiplier(19) == 100
    assert rep.multiplier(20) == 125
    assert rep.multiplier(40) == 150


def test_flat_policy_always_base():
    rep = FlatReputation()
    assert rep.multiplier(0) == 100
    assert rep.multiplier(500) == 100


@pytest.mark.parametrize("mult,expected", [(100, 100_000), (125, 125_000), (150, 150_000)])
def test_reward_per_multiplier(mult, expected):
    assert MultiplierReward().compute(mult) == expected


def test_reward_floors_fractional_amounts():
    assert MultiplierReward(base_reward=7).compute(125) == 8


def test_bump_preserves_stake_and_flag():
    st = LedgerState()
    st.participants["a"] = Participant(identity="a", stake=4242, reputation_score=10)
    assert TieredReputation().bump(st, "a", 5)
    p = st.participants["a"]
    assert (p.reputation_score, p.total_contributions) == (15, 1)
    assert (p.stake, p.is_active) == (4242, True)


def test_bump_unknown_identity_is_noop():
    st = LedgerState()
    assert TieredReputation().bump(st, "ghost", 5) is False
    assert st.participants == {}


def test_reward_ledger_credit_and_withdraw():
    st = LedgerState()
    ledger = RewardLedger(st, MultiplierReward())
    assert ledger.credit("a", 100) == 100_000
    assert ledger.credit("a", 150) == 150_000
    assert ledger.balance("a") == 250_000
    assert ledger.withdraw("a") == 250_000
    assert ledger.balance("a") == 0


def test_registry_lookup_and_duplicates():
    assert REPUTATION.get("Tiered") is TieredReputation
    assert REWARD.get("multiplier") is MultiplierReward
    assert "flat" in REPUTATION.available()
    with pytest.raises(KeyError):
        REWARD.get("nope")
    reg = Registry("demo")
    reg.register("x")(object)
    with pytest.raises(ValueError):
        reg.register("X")(object)
