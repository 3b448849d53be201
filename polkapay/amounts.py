"""Exact conversion between chain units and display amounts.

Chain amounts are integers in the smallest unit (planck); display amounts are
decimal strings in whole tokens. All arithmetic is done in ``Decimal`` under a
local context wide enough for the operand, so no precision is ever lost and
no binary float is involved. Rounding to chain units is ROUND_HALF_UP.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Mapping, Union

from .errors import AmountError
from .networks import NETWORKS, Network, get_network

ChainAmount = Union[str, int]
DisplayAmount = Union[str, int, Decimal]

_DIGITS_RE = re.compile(r"[0-9]+")


def _precision_for(value: Decimal, decimals: int) -> int:
    digits = len(value.as_tuple().digits)
    exponent = value.as_tuple().exponent
    span = digits + abs(exponent) if isinstance(exponent, int) else digits
    return max(28, span + decimals + 2)


def _parse_chain_amount(chain_amount: ChainAmount) -> int:
    if isinstance(chain_amount, bool):
        raise AmountError("Chain amount must be an integer, not a bool")
    if isinstance(chain_amount, int):
        value = chain_amount
    elif isinstance(chain_amount, str) and _DIGITS_RE.fullmatch(chain_amount.strip()):
        value = int(chain_amount.strip())
    else:
        raise AmountError(f"Invalid chain amount: {chain_amount!r}")
    if value < 0:
        raise AmountError(f"Chain amount must not be negative: {chain_amount!r}")
    return value


def _parse_display_amount(display_amount: DisplayAmount, network: Network) -> Decimal:
    if isinstance(display_amount, (float, bool)):
        raise AmountError("Display amounts must be given as str, int or Decimal")
    if isinstance(display_amount, (int, Decimal)):
        text = str(display_amount)
    elif isinstance(display_amount, str):
        text = display_amount.strip()
        if text.upper().endswith(network.symbol.upper()):
            text = text[: -len(network.symbol)].strip()
        text = text.replace(",", "")
    else:
        raise AmountError(f"Invalid display amount: {display_amount!r}")

    try:
        value = Decimal(text)
    except InvalidOperation:
        raise AmountError(f"Invalid display amount: {display_amount!r}") from None
    if not value.is_finite():
        raise AmountError(f"Invalid display amount: {display_amount!r}")
    if value < 0:
        raise AmountError(f"Display amount must not be negative: {display_amount!r}")
    return value


def to_display(
    chain_amount: ChainAmount,
    network: str | Network = "polkadot",
    *,
    with_symbol: bool = True,
    registry: Mapping[str, Network] = NETWORKS,
) -> str:
    """Render a chain amount in whole tokens, e.g. ``"10000000000"`` -> ``"1 DOT"``."""
    net = get_network(network, registry)
    value = Decimal(_parse_chain_amount(chain_amount))

    with localcontext() as ctx:
        ctx.prec = _precision_for(value, net.decimals)
        display = value.scaleb(-net.decimals).normalize()
        text = f"{display:,f}"

    return f"{text} {net.symbol}" if with_symbol else text


def to_chain(
    display_amount: DisplayAmount,
    network: str | Network = "polkadot",
    *,
    registry: Mapping[str, Network] = NETWORKS,
) -> str:
    """Convert a display amount to chain units, e.g. ``"1"`` -> ``"10000000000"``.

    Accepts grouping commas and a trailing symbol matching *network*. Excess
    fractional digits are rounded half-up, never truncated.
    """
    net = get_network(network, registry)
    value = _parse_display_amount(display_amount, net)

    with localcontext() as ctx:
        ctx.prec = _precision_for(value, net.decimals)
        scaled = value.scaleb(net.decimals).quantize(Decimal(1), rounding=ROUND_HALF_UP)

    return str(int(scaled))
