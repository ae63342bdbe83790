"""Options passed to routing value-store operations."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

Option = Callable[["Options"], None]
"""An option mutates an :class:`Options` in place and may raise to reject it."""


@dataclass
class Options:
    """A set of routing options."""

    expired: bool = False
    offline: bool = False
    other: dict[Any, Any] | None = None

    def apply(self, *options: Option) -> None:
        """Apply the options in order; stop at the first that raises."""
        for option in options:
            option(self)

    def to_option(self) -> Option:
        """Return an option that copies these options onto another set."""

        def option(target: Options) -> None:
            target.expired = self.expired
            target.offline = self.offline
            target.other = dict(self.other) if self.other is not None else None

        return option


def expired(opts: Options) -> None:
    """Ask the routing system to return expired records when nothing newer is known."""
    opts.expired = True


def offline(opts: Options) -> None:
    """Ask the routing system to rely on cached and local data only."""
    opts.offline = True