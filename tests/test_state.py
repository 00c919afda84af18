import pytest

from flledger.contracts.composed import ComposedContract, ContractConfig
from flledger.core.errors import ErrorCode, ValidationError
from flledger.core.state import LedgerState
from flledger.core.types import UpdateHash


def _played_contract():
    c = ComposedContract(ContractConfig())
    for i in range(1, 4):
        c.register(f"node-{i}", 1000 * i)
    c.advance_blocks(3)
    c.start_round("operator")
    for i in range(1, 4):
        c.submit_update(f"node-{i}", f"hash-{i}")
    c.aggregate("operator", "global-1")
    c.start_round("operator")
    c.submit_update("node-2", "hash-2b")
    return c


def test_transaction_restores_on_error():
    st = LedgerState()
    st.pending_rewards["a"] = 5
    st.pending_rewards["b"] = 7
    with pytest.raises(RuntimeError):
        with st.transaction():
            st.put(st.pending_rewards, "a", 10)
            st.put(st.pending_rewards, "c", 1)
            st.pop(st.pending_rewards, "b")
            st.put(st.pending_rewards, "a", 20)
            st.current_round = 9
            st.round_active = True
            st.emit("Something")
            raise RuntimeError("boom")
    assert st.pending_rewards == {"a": 5, "b": 7}
    assert st.current_round == 0
    assert not st.round_active
    assert st.events == []


def test_nested_transaction_rolls_back_inner_only():
    st = LedgerState()
    with st.transaction():
        st.put(st.pending_rewards, "a", 1)
        with pytest.raises(KeyError):
            with st.transaction():
                st.put(st.pending_rewards, "b", 2)
                st.pop(st.pending_rewards, "missing")
        assert st.pending_rewards == {"a": 1}
    assert st.pending_rewards == {"a": 1}


def test_transaction_journals_only_touched_keys():
    c = ComposedContract(ContractConfig())
    for i in range(50):
        c.register(f"n{i}", 1000)
    for r in range(20):
        c.start_round("operator")
        for i in range(50):
            c.submit_update(f"n{i}", f"{r}-{i}")
        c.aggregate("operator", f"g{r}")
    c.start_round("operator")
    st = c.state
    assert len(st.updates) == 1000

    with pytest.raises(RuntimeError):
        with st.transaction():
            c.submit_update("n0", "late")
            # one update, one participant, one balance: history size is irrelevant
            assert len(st._undo) == 3
            raise RuntimeError("abort")
    assert st._undo == []
    assert c.model_update(21, "n0") is None
    assert c.participant("n0").reputation_score == 10 + 5 * 20
    # 7 submissions at 1.00x, 10 at 1.25x, 3 at 1.50x
    assert c.pending_reward("n0") == 7 * 100_000 + 10 * 125_000 + 3 * 150_000
    assert len(st.updates) == 1000


def test_update_hash_bounds():
    assert UpdateHash("a") == "a"
    assert UpdateHash("a" * 10, max_len=10) == "a" * 10
    with pytest.raises(ValidationError) as ei:
        UpdateHash("a" * 11, max_len=10)
    assert ei.value.code == ErrorCode.INVALID_UPDATE
    with pytest.raises(ValidationError):
        UpdateHash(None)


def test_save_and_load_resume_ledger(tmp_path):
    c = _played_contract()
    path = tmp_path / "ledger.yaml"
    c.state.save(str(path))

    st = LedgerState.load(str(path))
    resumed = ComposedContract(ContractConfig(), state=st)
    assert resumed.snapshot() == c.snapshot()
    assert resumed.current_round == 2
    assert resumed.round_active
    assert resumed.round_submission_count == 1
    assert resumed.participant("node-3").stake == 3000
    assert resumed.global_model(1).aggregated_at_height == 3
    assert resumed.model_update(2, "node-2").update_hash == "hash-2b"
    assert resumed.pending_reward("node-2") == 200_000

    resumed.submit_update("node-1", "hash-1b")
    resumed.submit_update("node-3", "hash-3b")
    resumed.aggregate("operator", "global-2")
    assert resumed.global_model(2).participant_count == 3


def test_from_dict_defaults_to_empty_ledger():
    st = LedgerState.from_dict({})
    assert st.current_round == 0
    assert st.participants == {}
    assert st.total_registered_participants == 0


def test_from_dict_rejects_inconsistent_participant_count():
    data = _played_contract().snapshot()
    data["total_registered_participants"] = 7
    with pytest.raises(ValueError, match="total_registered_participants"):
        LedgerState.from_dict(data)

    del data["total_registered_participants"]
    assert LedgerState.from_dict(data).total_registered_participants == 3
