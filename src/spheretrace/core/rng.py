"""Per-worker random number state for the path tracer.

Every rendering worker owns one 32-bit xorshift state slot. The slot is
mutated on every draw and is never touched by any other worker, so kernels
can draw from it without atomics.

The generator is xorshift32:
    x ^= x << 13
    x ^= x >> 17   (logical shift)
    x ^= x << 5

Zero is a fixed point of the recurrence, so slots are seeded with
``worker_id + 1``.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.core.rng import seed_workers, rand01
    >>> seed_workers(8)
    >>> # Inside a kernel, worker 3 draws with: u = rand01(3)
"""

import logging

import taichi as ti

logger = logging.getLogger(__name__)

# Maximum number of concurrently rendering workers
MAX_WORKERS = 256

# 2^-24: scales the top 24 bits of a draw into [0, 1)
_INV_2_24 = 1.0 / 16777216.0

# One state slot per worker
_rng_state = ti.field(dtype=ti.u32, shape=MAX_WORKERS)


def seed_workers(num_workers: int) -> None:
    """Seed the first ``num_workers`` state slots with ``worker_id + 1``.

    Args:
        num_workers: Number of workers that will draw random numbers.

    Raises:
        ValueError: If num_workers is not in [1, MAX_WORKERS].
    """
    if num_workers < 1 or num_workers > MAX_WORKERS:
        raise ValueError(f"num_workers must be in [1, {MAX_WORKERS}], got {num_workers}")
    for worker in range(num_workers):
        _rng_state[worker] = worker + 1
    logger.debug("Seeded %d worker random states", num_workers)


def get_worker_state(worker: int) -> int:
    """Read a worker's current random state from the host."""
    return int(_rng_state[worker])


@ti.func
def next_u32(worker: ti.i32) -> ti.u32:
    """Advance a worker's xorshift32 state and return the new value."""
    x = _rng_state[worker]
    x ^= x << 13
    x ^= ti.bit_shr(x, 17)
    x ^= x << 5
    _rng_state[worker] = x
    return x


@ti.func
def rand01(worker: ti.i32) -> ti.f32:
    """Draw a uniform float in [0, 1) from a worker's state."""
    return ti.cast(ti.bit_shr(next_u32(worker), 8), ti.f32) * _INV_2_24


@ti.func
def rand_range(worker: ti.i32, lo: ti.f32, hi: ti.f32) -> ti.f32:
    """Draw a uniform float in [lo, hi) from a worker's state."""
    return lo + (hi - lo) * rand01(worker)
