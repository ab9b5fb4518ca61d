"""Local allocator state machine tests."""

import pytest

from suid.allocator import ID_SIZE, SHARD_SIZE, LocalAllocator
from suid.enums import AllocatorState
from suid.exceptions import PoolExhausted
from suid.models import Suid


def test_first_allocations_step_by_shard_size(allocator, store):
    store.save([1000])
    assert allocator.next() == Suid(1000)
    assert allocator.next() == Suid(1004)
    assert allocator.state is AllocatorState.ACTIVE
    assert allocator.current_id == 2


def test_block_yields_exactly_id_size_values(allocator, store):
    store.save([1000, 5000])
    values = [int(allocator.next()) for _ in range(ID_SIZE)]

    assert values == [1000 + k * SHARD_SIZE for k in range(ID_SIZE)]
    assert values == sorted(set(values))
    assert allocator.state is AllocatorState.IDLE
    assert allocator.active_block is None


def test_exhausted_block_is_discarded(allocator, store):
    store.save([1000, 5000])
    for _ in range(ID_SIZE):
        allocator.next()

    assert allocator.next() == Suid(5000)
    assert store.load() == []


def test_activation_persists_shrunk_pool(allocator, store, redis_data):
    store.save([1000, 2000])
    allocator.next()
    assert redis_data["suid:pool"] == "1jk"


def test_empty_pool_raises_and_signals(allocator, on_low):
    with pytest.raises(PoolExhausted):
        allocator.next()
    on_low.assert_called_once()
    assert allocator.state is AllocatorState.IDLE


def test_no_signal_while_pool_is_healthy(allocator, store, on_low):
    store.save([1000, 2000, 3000, 4000])
    # pool drops to the minimum but a block is active
    for _ in range(ID_SIZE):
        allocator.next()
    on_low.assert_not_called()

    # minimum reached with no active block
    allocator.next()
    on_low.assert_called_once()


def test_signal_below_minimum(allocator, store, on_low):
    store.save([1000, 2000])
    allocator.next()
    on_low.assert_called_once()


def test_restart_resumes_from_next_pooled_block(store, settings):
    store.save([1000, 2000])
    first = LocalAllocator(store, settings)
    assert first.next() == Suid(1000)

    restarted = LocalAllocator(store, settings)
    assert restarted.state is AllocatorState.IDLE
    assert restarted.next() == Suid(2000)


def test_check_supply_reports_trigger(allocator, on_low):
    assert allocator.check_supply(pool_size=10) is False
    assert allocator.check_supply(pool_size=0) is True
    on_low.assert_called_once()
