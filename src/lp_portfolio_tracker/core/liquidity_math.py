"""
Concentrated-liquidity math for valuing positions.

ref: https://github.com/Uniswap/v3-core/blob/main/contracts/libraries/TickMath.sol
ref: https://github.com/Uniswap/v3-core/blob/main/contracts/libraries/SqrtPriceMath.sol
"""

import functools
from decimal import Decimal

MIN_TICK = -887272
MAX_TICK = -MIN_TICK
Q96_RESOLUTION = 96
Q96 = 1 << Q96_RESOLUTION
MAX_UINT128 = (1 << 128) - 1
MAX_UINT256 = (1 << 256) - 1


@functools.lru_cache(maxsize=512)
def get_sqrt_ratio_at_tick(tick: int) -> int:
    """
    Find the square root ratio in Q64.96 form for the given tick.

    Raises
    ------
    ValueError
        If the tick is outside [MIN_TICK, MAX_TICK]

    """
    abs_tick = abs(tick)
    if abs_tick > MAX_TICK:
        msg = f"Tick {tick} out of bounds [{MIN_TICK}, {MAX_TICK}]"
        raise ValueError(msg)

    ratio = 340265354078544963557816517032075149313 if abs_tick & 0x1 != 0 else MAX_UINT128 + 1

    for tick_mask, ratio_multiplier in (
        (2, 340248342086729790484326174814286782778),
        (4, 340214320654664324051920982716015181260),
        (8, 340146287995602323631171512101879684304),
        (16, 340010263488231146823593991679159461444),
        (32, 339738377640345403697157401104375502016),
        (64, 339195258003219555707034227454543997025),
        (128, 338111622100601834656805679988414885971),
        (256, 335954724994790223023589805789778977700),
        (512, 331682121138379247127172139078559817300),
        (1024, 323299236684853023288211250268160618739),
        (2048, 307163716377032989948697243942600083929),
        (4096, 277268403626896220162999269216087595045),
        (8192, 225923453940442621947126027127485391333),
        (16384, 149997214084966997727330242082538205943),
        (32768, 66119101136024775622716233608466517926),
        (65536, 12847376061809297530290974190478138313),
        (131072, 485053260817066172746253684029974020),
        (262144, 691415978906521570653435304214168),
        (524288, 1404880482679654955896180642),
    ):
        if abs_tick & tick_mask != 0:
            ratio = (ratio * ratio_multiplier) >> 128

    if tick > 0:
        ratio = MAX_UINT256 // ratio

    # Q128.128 -> Q64.96, rounding up
    return (ratio >> 32) + (0 if ratio % (1 << 32) == 0 else 1)


def get_amount0_delta(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int) -> int:
    """Amount of token0 between two prices for a non-negative liquidity, rounded down."""
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96
    if sqrt_ratio_a_x96 <= 0:
        msg = "sqrt ratio must be positive"
        raise ValueError(msg)

    numerator1 = liquidity << Q96_RESOLUTION
    numerator2 = sqrt_ratio_b_x96 - sqrt_ratio_a_x96
    return (numerator1 * numerator2 // sqrt_ratio_b_x96) // sqrt_ratio_a_x96


def get_amount1_delta(sqrt_ratio_a_x96: int, sqrt_ratio_b_x96: int, liquidity: int) -> int:
    """Amount of token1 between two prices for a non-negative liquidity, rounded down."""
    if sqrt_ratio_a_x96 > sqrt_ratio_b_x96:
        sqrt_ratio_a_x96, sqrt_ratio_b_x96 = sqrt_ratio_b_x96, sqrt_ratio_a_x96
    return liquidity * (sqrt_ratio_b_x96 - sqrt_ratio_a_x96) // Q96


def get_amounts_for_liquidity(
    tick_current: int,
    sqrt_price_x96: int,
    tick_lower: int,
    tick_upper: int,
    liquidity: int,
) -> tuple[int, int]:
    """
    Token amounts represented by a liquidity range at the current price.

    A negative liquidity yields the negated amounts of its magnitude.

    Parameters
    ----------
    tick_current : int
        Current pool tick
    sqrt_price_x96 : int
        Current pool sqrt price in Q64.96
    tick_lower : int
        Lower tick of the range
    tick_upper : int
        Upper tick of the range
    liquidity : int
        Position liquidity

    Returns
    -------
    tuple[int, int]
        Raw (amount0, amount1)

    Raises
    ------
    ValueError
        If the ticks or price are out of range

    """
    if sqrt_price_x96 <= 0:
        msg = f"Invalid sqrt price {sqrt_price_x96}"
        raise ValueError(msg)

    sign = -1 if liquidity < 0 else 1
    magnitude = abs(liquidity)
    sqrt_ratio_lower = get_sqrt_ratio_at_tick(tick_lower)
    sqrt_ratio_upper = get_sqrt_ratio_at_tick(tick_upper)

    if tick_current < tick_lower:
        amount0 = get_amount0_delta(sqrt_ratio_lower, sqrt_ratio_upper, magnitude)
        amount1 = 0
    elif tick_current < tick_upper:
        amount0 = get_amount0_delta(sqrt_price_x96, sqrt_ratio_upper, magnitude)
        amount1 = get_amount1_delta(sqrt_ratio_lower, sqrt_price_x96, magnitude)
    else:
        amount0 = 0
        amount1 = get_amount1_delta(sqrt_ratio_lower, sqrt_ratio_upper, magnitude)

    return sign * amount0, sign * amount1


def token0_price(sqrt_price_x96: int, decimals0: int, decimals1: int) -> Decimal:
    """Price of one whole token0 in whole token1 units."""
    return (Decimal(sqrt_price_x96) ** 2 / Decimal(Q96 * Q96)).scaleb(decimals0 - decimals1)
