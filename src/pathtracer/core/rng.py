"""Deterministic counter-based random numbers for parallel path tracing.

A stream is a small slot of state: the pixel key it is bound to, the index
of the sample being traced and a draw counter. A draw hashes the global
seed, the key, the sample index and the counter into 32 random bits and
bumps the counter; nothing else is shared. The renderer binds slot
``r * width + i`` of the band being rendered to the pixel key
``j * width + i``, so the values a pixel sees depend only on its position in
the image and the seed, never on the band it was rendered in or on how
Taichi schedules the work. The state therefore grows with the band, not
with the image.

``begin_sample`` restarts the draw counter at the start of every sample, so
the draws a sample sees do not depend on how many draws earlier samples
consumed. Two renders that differ only in ``max_depth`` therefore trace
identical path prefixes.

After ``seed`` every slot is bound to its own index as key, which is what
Python-side draws and test kernels use.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.core import rng
    >>> rng.seed(7)
    >>> values = rng.draw_reals(4, stream=0)  # four floats in [0, 1)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti

# Stream slots; one render band holds at most this many pixels
MAX_STREAMS = 1 << 20

# Maps 32 random bits onto [0, 1)
_INV_2_32 = 1.0 / 4294967296.0

_seed = ti.field(dtype=ti.u32, shape=())
_rng_key = ti.field(dtype=ti.u32, shape=MAX_STREAMS)
_rng_counter = ti.field(dtype=ti.u32, shape=MAX_STREAMS)
_rng_sample = ti.field(dtype=ti.u32, shape=MAX_STREAMS)

# Fixed-sample mode: every draw returns _fixed_value when enabled
_fixed_enabled = ti.field(dtype=ti.i32, shape=())
_fixed_value = ti.field(dtype=ti.f64, shape=())


@ti.kernel
def _reset_keys():
    for k in _rng_key:
        _rng_key[k] = ti.cast(k, ti.u32)


def seed(value: int) -> None:
    """Set the global seed and restart every stream.

    Args:
        value: Any integer. Only the low 32 bits are used.
    """
    _seed[None] = int(value) & 0xFFFFFFFF
    _reset_keys()
    _rng_counter.fill(0)
    _rng_sample.fill(0)


def get_seed() -> int:
    """Get the current global seed (low 32 bits)."""
    return int(_seed[None])


def use_fixed_sample(value: float | None) -> None:
    """Make every draw return a constant, or restore random draws.

    This is a debugging aid: with a fixed value of 0.5 every pixel is sampled
    exactly at its center and the lens sample is the lens center.

    Args:
        value: The constant in [0, 1), or None to disable fixed sampling.

    Raises:
        ValueError: If value is outside [0, 1).
    """
    if value is None:
        _fixed_enabled[None] = 0
        return
    if not 0.0 <= value < 1.0:
        raise ValueError(f"Fixed sample {value} is outside [0, 1)")
    _fixed_value[None] = value
    _fixed_enabled[None] = 1


def is_fixed_sample_enabled() -> bool:
    """Check whether fixed-sample mode is active."""
    return bool(_fixed_enabled[None])


@ti.func
def _mix(x: ti.u32) -> ti.u32:
    """Wang integer hash."""
    h = x
    h = (h ^ ti.u32(61)) ^ (h >> ti.u32(16))
    h = h * ti.u32(9)
    h = h ^ (h >> ti.u32(4))
    h = h * ti.u32(0x27D4EB2D)
    h = h ^ (h >> ti.u32(15))
    return h


@ti.func
def bind_stream(stream: ti.i32, key: ti.u32):
    """Attach a stream slot to the pixel whose draws it should produce.

    Args:
        stream: The slot to bind.
        key: Pixel key, ``j * width + i`` for pixel (i, j). Arithmetic wraps
            at 32 bits.
    """
    _rng_key[stream] = key


@ti.func
def begin_sample(stream: ti.i32, sample_index: ti.i32):
    """Restart a stream's draw counter for a new sample.

    Args:
        stream: The stream slot.
        sample_index: Index of the sample about to be traced for the pixel.
    """
    _rng_sample[stream] = ti.cast(sample_index, ti.u32)
    _rng_counter[stream] = ti.u32(0)


@ti.func
def random_real(stream: ti.i32) -> ti.f64:
    """Draw a uniform real in [0, 1) from a stream.

    Args:
        stream: The stream id. Must be owned by the calling kernel iteration.

    Returns:
        A double in [0, 1).
    """
    result = 0.0
    if _fixed_enabled[None] == 1:
        result = _fixed_value[None]
    else:
        counter = _rng_counter[stream]
        _rng_counter[stream] = counter + ti.u32(1)
        key = _mix(_rng_key[stream] ^ _mix(_seed[None]))
        bits = _mix(_mix(_mix(counter) + _rng_sample[stream]) ^ key)
        result = ti.cast(bits, ti.f64) * _INV_2_32
    return result


@ti.func
def random_range(stream: ti.i32, a: ti.f64, b: ti.f64) -> ti.f64:
    """Draw a uniform real in [a, b) from a stream."""
    return a + (b - a) * random_real(stream)


@ti.kernel
def _fill_reals(out: ti.types.ndarray(), stream: ti.i32):
    ti.loop_config(serialize=True)
    for k in range(out.shape[0]):
        out[k] = random_real(stream)


def draw_reals(count: int, stream: int = 0) -> npt.NDArray[np.float64]:
    """Draw reals from a stream on the Python side.

    Advances the stream exactly as ``count`` calls to ``random_real`` would.

    Args:
        count: Number of values to draw.
        stream: The stream id, in [0, MAX_STREAMS).

    Returns:
        A float64 array of shape (count,) with values in [0, 1).

    Raises:
        ValueError: If the stream id is out of range.
    """
    if not 0 <= stream < MAX_STREAMS:
        raise ValueError(f"Stream {stream} is outside [0, {MAX_STREAMS})")
    out = np.zeros(count, dtype=np.float64)
    if count > 0:
        _fill_reals(out, stream)
    return out
