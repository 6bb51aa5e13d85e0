from __future__ import annotations

import copy

import pytest

from ratelock.ledger.constants import DEFAULT_PROTOCOL_RATE, MAX_UINT256, PRECISION
from ratelock.ledger.types import LedgerState
from ratelock.runtime import accrual, substrate
from ratelock.runtime.errors import ApplyError, InsufficientBalance, RateMustNotIncrease

TOKEN = 10**18
R = DEFAULT_PROTOCOL_RATE  # 5e10


def _state(rate: int = R) -> LedgerState:
    return LedgerState.genesis(owner="0xowner", protocol_rate=rate)


def test_default_rate_is_five_e10() -> None:
    assert R == 5 * 10**10


def test_concrete_scenario_mint_then_accrue_then_burn_all() -> None:
    st = _state()
    accrual.mint(st, to="alice", amount=100 * TOKEN, now=0)

    assert accrual.get_user_rate(st, "alice") == 5 * 10**10
    assert accrual.principal_balance_of(st, "alice") == 100 * TOKEN

    expected = 100 * TOKEN * (PRECISION + 5 * 10**10 * 1000) // PRECISION
    assert accrual.balance_of(st, "alice", now=1000) == expected
    assert expected == 100 * TOKEN + 5 * 10**15

    burned = accrual.burn(st, holder="alice", amount=MAX_UINT256, now=1000)
    assert burned == expected
    assert accrual.principal_balance_of(st, "alice") == 0
    assert accrual.balance_of(st, "alice", now=5000) == 0
    assert substrate.total_supply(st) == 0


@pytest.mark.parametrize("t0,t1,principal", [(0, 1, 7), (10, 10_000, 123 * TOKEN), (500, 86_400 * 365, 1)])
def test_accrual_is_linear_in_elapsed_time_at_locked_rate(t0: int, t1: int, principal: int) -> None:
    st = _state()
    accrual.mint(st, to="alice", amount=principal, now=t0)

    # A later protocol rate change must not affect alice's growth.
    accrual.set_protocol_rate(st, new_rate=R // 2)

    got = accrual.compute_accrued_balance(st, "alice", now=t1)
    assert got == principal * (PRECISION + R * (t1 - t0)) // PRECISION


def test_balance_read_does_not_mutate_state() -> None:
    st = _state()
    accrual.mint(st, to="alice", amount=10 * TOKEN, now=0)
    before = copy.deepcopy(st.to_dict())
    accrual.balance_of(st, "alice", now=999)
    assert st.to_dict() == before


def test_settle_materializes_growth_and_synchronizes() -> None:
    st = _state()
    accrual.mint(st, to="alice", amount=10 * TOKEN, now=0)
    expected = accrual.balance_of(st, "alice", now=3600)

    delta = accrual.settle(st, "alice", now=3600)

    assert delta == expected - 10 * TOKEN
    assert delta > 0
    assert accrual.principal_balance_of(st, "alice") == expected
    assert accrual.balance_of(st, "alice", now=3600) == expected
    assert st.holders["alice"]["last_updated"] == 3600
    assert substrate.total_supply(st) == expected


def test_settle_twice_at_same_instant_is_idempotent() -> None:
    st = _state()
    accrual.mint(st, to="alice", amount=10 * TOKEN, now=0)

    accrual.settle(st, "alice", now=777)
    once = accrual.principal_balance_of(st, "alice")
    assert accrual.settle(st, "alice", now=777) == 0
    assert accrual.principal_balance_of(st, "alice") == once


def test_settle_advances_timestamp_even_with_zero_principal() -> None:
    st = _state()
    assert accrual.settle(st, "nobody", now=42) == 0
    assert st.holders["nobody"] == {"rate": 0, "last_updated": 42}
    assert accrual.principal_balance_of(st, "nobody") == 0


def test_never_synced_holder_accrues_from_epoch() -> None:
    # Principal present without any sync record: elapsed time counts from t=0.
    st = _state()
    st.balances["legacy"] = 1_000 * TOKEN
    st["total_supply"] = 1_000 * TOKEN
    st.holders["legacy"] = {"rate": R}

    now = 1_700_000_000
    assert accrual.balance_of(st, "legacy", now=now) == 1_000 * TOKEN * (PRECISION + R * now) // PRECISION


def test_mint_refreshes_rate_even_with_positive_balance() -> None:
    st = _state()
    accrual.mint(st, to="alice", amount=TOKEN, now=0)
    assert accrual.get_user_rate(st, "alice") == R

    accrual.set_protocol_rate(st, new_rate=R - 1)
    accrual.mint(st, to="alice", amount=TOKEN, now=10)

    assert accrual.get_user_rate(st, "alice") == R - 1


def test_mint_settles_at_old_rate_before_refreshing() -> None:
    st = _state()
    accrual.mint(st, to="alice", amount=TOKEN, now=0)
    accrual.set_protocol_rate(st, new_rate=0)

    grown = accrual.balance_of(st, "alice", now=100)
    accrual.mint(st, to="alice", amount=TOKEN, now=100)

    assert accrual.principal_balance_of(st, "alice") == grown + TOKEN
    # Rate is now 0: no further growth.
    assert accrual.balance_of(st, "alice", now=10_000) == grown + TOKEN


def test_transfer_to_empty_recipient_inherits_sender_rate() -> None:
    st = _state()
    accrual.mint(st, to="alice", amount=10 * TOKEN, now=0)
    accrual.set_protocol_rate(st, new_rate=R // 5)

    accrual.transfer(st, sender="alice", recipient="bob", amount=TOKEN, now=50)

    assert accrual.get_user_rate(st, "bob") == R
    assert accrual.get_protocol_rate(st) == R // 5


def test_transfer_to_funded_recipient_keeps_recipient_rate() -> None:
    st = _state()
    accrual.mint(st, to="alice", amount=10 * TOKEN, now=0)
    accrual.set_protocol_rate(st, new_rate=R // 5)
    accrual.mint(st, to="carol", amount=TOKEN, now=1)

    accrual.transfer(st, sender="alice", recipient="carol", amount=TOKEN, now=50)

    assert accrual.get_user_rate(st, "carol") == R // 5
    assert accrual.get_user_rate(st, "alice") == R


def test_transfer_settles_both_sides_and_conserves_value() -> None:
    st = _state()
    accrual.mint(st, to="alice", amount=1_000 * TOKEN, now=0)
    accrual.mint(st, to="bob", amount=500 * TOKEN, now=0)

    now = 5_000
    a0 = accrual.balance_of(st, "alice", now=now)
    b0 = accrual.balance_of(st, "bob", now=now)

    accrual.transfer(st, sender="alice", recipient="bob", amount=100 * TOKEN, now=now)

    a1 = accrual.balance_of(st, "alice", now=now)
    b1 = accrual.balance_of(st, "bob", now=now)
    assert a1 == a0 - 100 * TOKEN
    assert b1 == b0 + 100 * TOKEN
    assert a1 + b1 == a0 + b0
    assert st.holders["alice"]["last_updated"] == now
    assert st.holders["bob"]["last_updated"] == now
    assert substrate.total_supply(st) == a1 + b1


def test_transfer_max_moves_full_settled_balance() -> None:
    st = _state()
    accrual.mint(st, to="alice", amount=3 * TOKEN, now=0)
    full = accrual.balance_of(st, "alice", now=200)

    moved = accrual.transfer(st, sender="alice", recipient="bob", amount=MAX_UINT256, now=200)

    assert moved == full
    assert accrual.principal_balance_of(st, "alice") == 0
    assert accrual.principal_balance_of(st, "bob") == full


def test_transfer_exceeding_balance_raises() -> None:
    st = _state()
    accrual.mint(st, to="alice", amount=TOKEN, now=0)
    with pytest.raises(InsufficientBalance) as e:
        accrual.transfer(st, sender="alice", recipient="bob", amount=2 * TOKEN, now=0)
    assert e.value.details["holder"] == "alice"
    assert e.value.details["needed"] == 2 * TOKEN


def test_burn_exceeding_settled_balance_raises() -> None:
    st = _state()
    accrual.mint(st, to="alice", amount=TOKEN, now=0)
    with pytest.raises(InsufficientBalance):
        accrual.burn(st, holder="alice", amount=2 * TOKEN, now=10)


def test_burn_partial_uses_settled_balance() -> None:
    st = _state()
    accrual.mint(st, to="alice", amount=TOKEN, now=0)
    settled = accrual.balance_of(st, "alice", now=1_000)

    accrual.burn(st, holder="alice", amount=TOKEN, now=1_000)

    assert accrual.principal_balance_of(st, "alice") == settled - TOKEN


def test_rate_increase_rejected_with_old_and_new() -> None:
    st = _state()
    with pytest.raises(RateMustNotIncrease) as e:
        accrual.set_protocol_rate(st, new_rate=6 * 10**10)

    err = e.value
    assert err.code == "rate_must_not_increase"
    assert err.old_rate == 5 * 10**10
    assert err.new_rate == 6 * 10**10
    assert accrual.get_protocol_rate(st) == 5 * 10**10


def test_rate_sequence_is_non_increasing() -> None:
    st = _state()
    observed = [accrual.get_protocol_rate(st)]
    for proposed in [4 * 10**10, 4 * 10**10, 5 * 10**10, 10**10, 2 * 10**10, 0, 1]:
        try:
            accrual.set_protocol_rate(st, new_rate=proposed)
        except RateMustNotIncrease:
            pass
        observed.append(accrual.get_protocol_rate(st))

    assert observed == [5 * 10**10, 4 * 10**10, 4 * 10**10, 4 * 10**10, 10**10, 10**10, 0, 0]
    assert all(b <= a for a, b in zip(observed, observed[1:]))


def test_rate_change_emits_notification() -> None:
    st = _state()
    accrual.set_protocol_rate(st, new_rate=123)
    assert st["pending_events"][-1] == {"event": "InterestRateSet", "new_rate": 123}


def test_rate_change_leaves_holder_records_untouched() -> None:
    st = _state()
    accrual.mint(st, to="alice", amount=TOKEN, now=0)
    before = dict(st.holders["alice"])
    accrual.set_protocol_rate(st, new_rate=1)
    assert st.holders["alice"] == before


def test_transfer_from_spends_allowance() -> None:
    st = _state()
    accrual.mint(st, to="alice", amount=10 * TOKEN, now=0)
    substrate.approve(st, "alice", "spender", 4 * TOKEN)

    accrual.transfer_from(st, spender="spender", sender="alice", recipient="bob", amount=3 * TOKEN, now=5)

    assert substrate.allowance(st, "alice", "spender") == TOKEN
    assert accrual.principal_balance_of(st, "bob") == 3 * TOKEN
    assert accrual.get_user_rate(st, "bob") == R


def test_transfer_from_with_infinite_allowance_does_not_decrement() -> None:
    st = _state()
    accrual.mint(st, to="alice", amount=10 * TOKEN, now=0)
    substrate.approve(st, "alice", "spender", MAX_UINT256)

    accrual.transfer_from(st, spender="spender", sender="alice", recipient="bob", amount=TOKEN, now=5)

    assert substrate.allowance(st, "alice", "spender") == MAX_UINT256


def test_settles_first_declares_settled_holders_in_order() -> None:
    assert accrual.mint.settled_params == ("to",)
    assert accrual.burn.settled_params == ("holder",)
    assert accrual.transfer.settled_params == ("sender", "recipient")
    assert accrual.transfer_from.settled_params == ("sender", "recipient")


def test_clock_before_last_sync_is_rejected() -> None:
    st = _state()
    accrual.mint(st, to="alice", amount=TOKEN, now=100)
    with pytest.raises(ApplyError) as e:
        accrual.balance_of(st, "alice", now=99)
    assert e.value.reason == "clock_before_last_sync"
