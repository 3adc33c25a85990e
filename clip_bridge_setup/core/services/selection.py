"""
Instance selector — decide which WSL instance to provision.

The decision is pure: the interactive menu is a callback supplied by
the UI layer, so selection is testable without a terminal.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from clip_bridge_setup.core.errors import (
    AmbiguousInstance,
    DiscoveryError,
    InvalidIdentifierError,
)
from clip_bridge_setup.core.models.guest import is_valid_identifier

logger = logging.getLogger(__name__)

PREFERRED_PREFIX = "ubuntu"

# (candidates, default_index) -> chosen name
ChooseFn = Callable[[Sequence[str], int], str]


def validate_instance_name(name: str) -> str:
    """Return ``name`` unchanged if it fits the identifier grammar.

    Raises:
        InvalidIdentifierError: empty, or any char outside ``[A-Za-z0-9_-]``.
    """
    if not is_valid_identifier(name):
        raise InvalidIdentifierError(f"Invalid WSL instance name: {name!r}")
    return name


def default_choice(candidates: Sequence[str]) -> int:
    """Index the menu should preselect: first Ubuntu-like name, else 0."""
    for index, name in enumerate(candidates):
        if name.lower().startswith(PREFERRED_PREFIX):
            return index
    return 0


def select_instance(
    candidates: Sequence[str],
    *,
    explicit: str | None = None,
    interactive: bool = False,
    choose: ChooseFn | None = None,
) -> str:
    """Resolve the target instance name.

    Order: explicit name → sole candidate → interactive menu.

    Raises:
        DiscoveryError: explicit name not installed, or no candidates.
        AmbiguousInstance: several candidates and no way to ask.
        InvalidIdentifierError: the resolved name fails the grammar
            (checked even for names that came from ``wsl.exe``).
    """
    if not candidates:
        raise DiscoveryError("No WSL instances to choose from.")

    if explicit:
        if explicit not in candidates:
            raise DiscoveryError(
                f"WSL instance {explicit!r} is not installed. "
                f"Available: {', '.join(candidates)}"
            )
        chosen = explicit
        logger.info("Using requested instance %s", chosen)
    elif len(candidates) == 1:
        chosen = candidates[0]
        logger.info("Using the only instance, %s", chosen)
    elif interactive and choose is not None:
        chosen = choose(candidates, default_choice(candidates))
        if chosen not in candidates:
            raise DiscoveryError(f"WSL instance {chosen!r} is not installed.")
    else:
        raise AmbiguousInstance(
            f"{len(candidates)} WSL instances found ({', '.join(candidates)}) "
            "and none was specified."
        )

    return validate_instance_name(chosen)
