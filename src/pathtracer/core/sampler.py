"""Per-task pseudo-random number generation for Monte Carlo sampling.

Every pixel task owns an independent generator whose state is a single u32.
The state is threaded explicitly through each Taichi function that draws a
random number (pixel jitter, diffuse scatter, metal fuzz) and returned
alongside the sample, so no generator state is shared between tasks.

A task's stream is derived from the render seed and the pixel index by an
integer hash, and then advanced with xorshift32. The same seed therefore
reproduces the same framebuffer regardless of thread count or the order in
which pixels are scheduled.

Example:
    >>> @ti.kernel
    ... def draw() -> ti.f32:
    ...     state = seed_rng(42, 0)
    ...     value, state = rand_f32(state)
    ...     return value
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Multiplier of the integer finalizer used to scramble seeds.
_HASH_MULTIPLIER = 0x045D9F3B

# Spreads consecutive stream ids (pixel indices) across the state space.
_STREAM_MULTIPLIER = 1103515245

# 2^-24: converts the top 24 bits of a state into a float in [0, 1).
_INV_2_24 = 1.0 / 16777216.0


@ti.func
def hash_u32(x: ti.u32) -> ti.u32:
    """Scramble a 32-bit integer with a multiply-xorshift finalizer."""
    h = x
    h = (h ^ (h >> 16)) * ti.cast(_HASH_MULTIPLIER, ti.u32)
    h = (h ^ (h >> 16)) * ti.cast(_HASH_MULTIPLIER, ti.u32)
    h = h ^ (h >> 16)
    return h


@ti.func
def seed_rng(seed: ti.i32, stream: ti.i32) -> ti.u32:
    """Derive the initial generator state for one task.

    Args:
        seed: The render-wide seed.
        stream: The task identifier (the linear pixel index).

    Returns:
        A non-zero u32 state.
    """
    s = hash_u32(
        ti.cast(stream, ti.u32) * ti.cast(_STREAM_MULTIPLIER, ti.u32)
        + hash_u32(ti.cast(seed, ti.u32))
    )
    # xorshift has a fixed point at zero
    if s == 0:
        s = ti.cast(1, ti.u32)
    return s


@ti.func
def rand_f32(state: ti.u32):
    """Draw a uniform float in [0, 1) and advance the generator.

    Args:
        state: The current generator state.

    Returns:
        A tuple of (value, new_state).
    """
    s = state
    s ^= s << 13
    s ^= s >> 17
    s ^= s << 5
    value = ti.cast(s >> 8, ti.f32) * _INV_2_24
    return value, s


@ti.func
def rand_vec3(state: ti.u32):
    """Draw a vector whose components are independent U(0, 1) samples.

    Args:
        state: The current generator state.

    Returns:
        A tuple of (vector, new_state).
    """
    x, s = rand_f32(state)
    y, s = rand_f32(s)
    z, s = rand_f32(s)
    return vec3(x, y, z), s
