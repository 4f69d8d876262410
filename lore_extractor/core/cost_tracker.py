"""Token and cost accounting for oracle calls.

Every successful oracle call is recorded with the pipeline phase that made
it (character, location, event, object, consolidation, relationships).
Cost is priced once, when the call is recorded: a small table of known
models first, then litellm's pricing database, otherwise zero.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# USD per 1M tokens as (prompt, completion), keyed by provider-less model name
_KNOWN_PRICES: dict[str, tuple[float, float]] = {
    "deepseek-chat": (0.27, 1.10),
    "deepseek-reasoner": (0.55, 2.19),
    "openai/gpt-4o-mini": (0.15, 0.60),
    "openai/gpt-4o": (2.50, 10.00),
}

_ROUTING_PREFIXES = ("openrouter/", "deepseek/")

# Report order for the per-phase breakdown; unknown phases sort after these
_PHASE_ORDER = ("character", "location", "event", "object", "consolidation", "relationships")


def price_call(model: str, prompt_tokens: int, completion_tokens: int) -> float:
    """Cost of one call in USD, 0.0 when the model has no known price."""
    bare = next((model[len(p):] for p in _ROUTING_PREFIXES if model.startswith(p)), model)
    if bare in _KNOWN_PRICES:
        prompt_rate, completion_rate = _KNOWN_PRICES[bare]
        return (prompt_tokens * prompt_rate + completion_tokens * completion_rate) / 1_000_000

    try:
        from litellm import cost_per_token
        prompt_cost, completion_cost = cost_per_token(
            model=model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
        )
    except Exception as e:
        logger.debug(f"No price for '{model}': {e}")
        return 0.0
    return prompt_cost + completion_cost


def _token_count(usage: Any, name: str) -> int:
    """Usage arrives as a raw dict or as litellm's Usage object."""
    value = usage.get(name) if isinstance(usage, dict) else getattr(usage, name, None)
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


@dataclass
class CallUsage:
    """Usage of one oracle call."""

    model: str
    prompt_tokens: int
    completion_tokens: int
    phase: str = ""

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    @property
    def cost(self) -> float:
        return price_call(self.model, self.prompt_tokens, self.completion_tokens)


@dataclass
class CostTracker:
    """Accumulates oracle usage for one run."""

    calls: list[CallUsage] = field(default_factory=list)
    _costs: list[float] = field(default_factory=list, repr=False)

    def record(self, model: str, usage: Any, phase: str = "") -> CallUsage | None:
        """Record one call; a response without usage is not counted."""
        if usage is None:
            return None
        call = CallUsage(
            model=model,
            prompt_tokens=_token_count(usage, "prompt_tokens"),
            completion_tokens=_token_count(usage, "completion_tokens"),
            phase=phase,
        )
        self.calls.append(call)
        self._costs.append(call.cost)
        return call

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def total_prompt_tokens(self) -> int:
        return sum(c.prompt_tokens for c in self.calls)

    @property
    def total_completion_tokens(self) -> int:
        return sum(c.completion_tokens for c in self.calls)

    @property
    def total_tokens(self) -> int:
        return self.total_prompt_tokens + self.total_completion_tokens

    @property
    def total_cost(self) -> float:
        return sum(self._costs)

    def by_phase(self) -> dict[str, dict[str, Any]]:
        """Calls, tokens and cost per phase, in pipeline order."""
        totals: dict[str, Counter] = {}
        for call, cost in zip(self.calls, self._costs):
            bucket = totals.setdefault(call.phase or "unknown", Counter())
            bucket["calls"] += 1
            bucket["prompt_tokens"] += call.prompt_tokens
            bucket["completion_tokens"] += call.completion_tokens
            bucket["cost"] += cost

        def rank(phase: str) -> tuple[int, str]:
            return (_PHASE_ORDER.index(phase) if phase in _PHASE_ORDER else len(_PHASE_ORDER), phase)

        return {
            phase: {
                "calls": totals[phase]["calls"],
                "prompt_tokens": totals[phase]["prompt_tokens"],
                "completion_tokens": totals[phase]["completion_tokens"],
                "cost": float(totals[phase]["cost"]),
            }
            for phase in sorted(totals, key=rank)
        }

    def summary(self) -> str:
        """Printable usage block for the CLI."""
        rule = "=" * 50
        lines = [
            rule,
            "COST SUMMARY",
            rule,
            f"Oracle calls: {self.call_count}",
            f"Tokens: {self.total_tokens:,} "
            f"({self.total_prompt_tokens:,} prompt / {self.total_completion_tokens:,} completion)",
            f"Cost: ${self.total_cost:.4f}",
        ]
        phases = self.by_phase()
        if phases:
            lines.append("")
            width = max(len(phase) for phase in phases)
            for phase, stats in phases.items():
                tokens = stats["prompt_tokens"] + stats["completion_tokens"]
                lines.append(
                    f"  {phase:<{width}}  {stats['calls']:>3} calls  {tokens:>9,} tokens  ${stats['cost']:.4f}"
                )
        lines.append(rule)
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready usage, attached to every PipelineResult."""
        return {
            "total_calls": self.call_count,
            "total_tokens": self.total_tokens,
            "prompt_tokens": self.total_prompt_tokens,
            "completion_tokens": self.total_completion_tokens,
            "total_cost_usd": round(self.total_cost, 6),
            "by_phase": self.by_phase(),
        }
