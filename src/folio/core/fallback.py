"""Ordered fallback strategies with early exit on the first usable result."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Generic, TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Strategy(Generic[T]):
    """One step of a fallback chain."""

    name: str
    fn: Callable[..., T]
    description: str = ""
    catch_errors: bool = False


def _is_usable(result: object) -> bool:
    if result is None:
        return False
    if isinstance(result, str):
        return bool(result.strip())
    try:
        return len(result) > 0  # type: ignore[arg-type]
    except TypeError:
        return True


@dataclass
class FallbackChain(Generic[T]):
    """Try strategies in order, returning the first non-empty result.

    An empty result (None, blank string, empty collection) is not an error:
    it simply moves on to the next strategy. Exceptions propagate unless the
    strategy was registered with catch_errors=True, in which case they are
    logged and treated as an empty result.
    """

    strategies: list[Strategy[T]] = field(default_factory=list)
    accept: Callable[[T], bool] = _is_usable

    def add(
        self,
        name: str,
        fn: Callable[..., T],
        description: str = "",
        catch_errors: bool = False,
    ) -> "FallbackChain[T]":
        self.strategies.append(Strategy(name, fn, description, catch_errors))
        return self

    def run(self, *args, **kwargs) -> tuple[str | None, T | None]:
        """Run the chain. Returns (strategy name, result), or (None, None)."""
        for strategy in self.strategies:
            log.debug(f"Trying strategy: {strategy.name} ({strategy.description})")
            try:
                result = strategy.fn(*args, **kwargs)
            except Exception as e:
                if not strategy.catch_errors:
                    raise
                log.warning(f"Strategy {strategy.name} failed with error: {e}")
                continue

            if self.accept(result):
                log.debug(f"  Strategy {strategy.name}: SUCCESS")
                return strategy.name, result

            log.info(f"  Strategy {strategy.name}: no usable result")

        return None, None
