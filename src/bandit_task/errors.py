"""Exception types raised by the bandit task core.

All exceptions derive from :class:`BanditTaskError` and additionally from the
closest builtin category so callers may catch either.
"""

from __future__ import annotations


class BanditTaskError(Exception):
    """Base class for errors raised by ``bandit_task``."""


class ConfigError(BanditTaskError, ValueError):
    """Invalid task configuration detected before any sampling.

    Parameters
    ----------
    message : str
        Human-readable description of the problem.
    game : int | None, optional
        Zero-based game index of the offending cell, if any.
    arm : int | None, optional
        Zero-based arm index of the offending cell, if any.
    parameter : str | None, optional
        Name of the offending parameter or config field, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        game: int | None = None,
        arm: int | None = None,
        parameter: str | None = None,
    ) -> None:
        self.detail = message
        self.game = game
        self.arm = arm
        self.parameter = parameter
        location = _format_location(game=game, arm=arm, parameter=parameter)
        super().__init__(f"{location}: {message}" if location else message)


class SequenceError(BanditTaskError, RuntimeError):
    """Trial-sequencer operation called outside a valid state."""


class SamplingDegenerateError(BanditTaskError, RuntimeError):
    """A distribution could not produce a valid outcome within the retry cap."""


def _format_location(*, game: int | None, arm: int | None, parameter: str | None) -> str:
    parts: list[str] = []
    if game is not None:
        parts.append(f"game={game}")
    if arm is not None:
        parts.append(f"arm={arm}")
    if parameter is not None:
        parts.append(f"parameter={parameter!r}")
    return ", ".join(parts)


__all__ = [
    "BanditTaskError",
    "ConfigError",
    "SamplingDegenerateError",
    "SequenceError",
]
