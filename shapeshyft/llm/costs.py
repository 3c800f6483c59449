"""Static per-model cost table and estimator.

Rates are cents per million tokens. `estimate_cost` returns dollars rounded to
two decimals (one unit of the last decimal is one cent); `to_storage_cents`
converts that to the integer cents persisted with analytics events.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CostRate:
    input: float
    output: float


COST_PER_MILLION_TOKENS: dict[str, CostRate] = {
    # OpenAI
    'gpt-4o': CostRate(input=250, output=1000),
    'gpt-4o-mini': CostRate(input=15, output=60),
    'gpt-4-turbo': CostRate(input=1000, output=3000),
    'gpt-3.5-turbo': CostRate(input=50, output=150),
    # Anthropic
    'claude-3-5-sonnet-20241022': CostRate(input=300, output=1500),
    'claude-3-opus-20240229': CostRate(input=1500, output=7500),
    'claude-3-haiku-20240307': CostRate(input=25, output=125),
    # Gemini
    'gemini-1.5-pro': CostRate(input=125, output=500),
    'gemini-1.5-flash': CostRate(input=7.5, output=30),
    'gemini-2.0-flash-exp': CostRate(input=0, output=0),
}

DEFAULT_RATE = CostRate(input=100, output=300)


def rate_for(model: str) -> CostRate:
    return COST_PER_MILLION_TOKENS.get(model, DEFAULT_RATE)


def estimate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    """Estimate the cost of one call.

    Examples:
        >>> estimate_cost('gpt-4o-mini', 1_000_000, 0)
        0.15
        >>> estimate_cost('unknown-model-xyz', 1_000_000, 1_000_000)
        4.0
    """
    rate = rate_for(model)
    cents = (input_tokens / 1_000_000) * rate.input + (output_tokens / 1_000_000) * rate.output
    return round(cents / 100, 2)


def to_storage_cents(cost: float) -> int:
    return int(round(cost * 100))
