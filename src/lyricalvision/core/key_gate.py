"""Key gate for the premium image model.

Premium models can only be used once the host reports that a paid API key has
been selected.  The host is injected as a :class:`KeyHost` so the gate holds
no hidden global state and can be replaced with a mock in tests.

States
------
=================  ====================================================
NoKeySelected      ``has_selected_key`` is False; premium requests are
                   turned into a call to :meth:`KeyGate.select_key`
KeySelected        premium requests proceed
=================  ====================================================

Selection is optimistic by default: once the host's selection flow returns,
the gate moves to ``KeySelected`` whether or not a key was actually chosen,
because the host does not report the outcome.  With ``verify_after_select``
the gate probes the host again instead and follows the probe.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


class KeyGateStatus(str, Enum):
    NO_KEY_SELECTED = "NoKeySelected"
    KEY_SELECTED = "KeySelected"


@runtime_checkable
class KeyHost(Protocol):
    """Host capability that owns API key selection."""

    async def has_selected_key(self) -> bool:
        """Return whether a key is currently selected."""
        ...

    async def select_key(self) -> None:
        """Run the host's selection flow.  Does not report the outcome."""
        ...


class SessionKeyHost:
    """Server-side key host for one session.

    The key lives in memory only.  :meth:`select_key` cannot open a dialog on
    the server, so it records a pending selection request which a frontend
    answers by calling :meth:`provide_key`.

    Attributes:
        selection_requests: Number of times the selection flow was started.
        selection_pending: True between a selection request and the next
            :meth:`provide_key` call.
    """

    def __init__(self, api_key: str | None = None) -> None:
        self._api_key = api_key or None
        self.selection_requests = 0
        self.selection_pending = False

    @property
    def api_key(self) -> str | None:
        return self._api_key

    def provide_key(self, api_key: str) -> None:
        """Install *api_key* and answer any pending selection request."""
        self._api_key = api_key.strip() or None
        self.selection_pending = False
        logger.info("API key provided for session")

    async def has_selected_key(self) -> bool:
        return self._api_key is not None

    async def select_key(self) -> None:
        self.selection_requests += 1
        self.selection_pending = True
        logger.info(f"Key selection requested (request #{self.selection_requests})")


class KeyGate:
    """Tracks whether a premium credential is active.

    Args:
        host: The injected key host.
        verify_after_select: Re-probe the host after selection instead of
            assuming success.
    """

    def __init__(self, host: KeyHost, *, verify_after_select: bool = False) -> None:
        self.host = host
        self.verify_after_select = verify_after_select
        self.has_selected_key = False

    @property
    def status(self) -> KeyGateStatus:
        if self.has_selected_key:
            return KeyGateStatus.KEY_SELECTED
        return KeyGateStatus.NO_KEY_SELECTED

    def requires_gate(self, is_premium_model: bool) -> bool:
        """Return True if a request for this model tier must go through selection."""
        return is_premium_model and not self.has_selected_key

    async def refresh(self) -> bool:
        """Probe the host and adopt its answer.  Called once at startup."""
        self.has_selected_key = bool(await self.host.has_selected_key())
        logger.info(f"Key gate initial state: {self.status.value}")
        return self.has_selected_key

    async def select_key(self) -> None:
        """Run the host selection flow, then update the gate."""
        await self.host.select_key()
        if self.verify_after_select:
            self.has_selected_key = bool(await self.host.has_selected_key())
        else:
            self.has_selected_key = True
        logger.info(f"Key gate after selection: {self.status.value}")

    def reset(self) -> None:
        """Return to ``NoKeySelected`` (used when a key is rejected)."""
        self.has_selected_key = False
        logger.warning("Key gate reset to NoKeySelected")
