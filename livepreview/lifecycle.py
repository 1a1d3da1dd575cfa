"""
livepreview — Preview Lifecycle Controller

  idle ──source──► loading ──grace elapsed──► success
   │                  │  ▲                       │
   │               failure  source / retry       sandbox error
   └──empty──► error ◄─┘                         ▼
                                               error

Every run (new source or retry) bumps retry_token. The grace timer and any
sandbox error report carry the token of the run that produced them; anything
older than the current token is dropped, so the last input always wins.

Success has no positive signal from the sandbox: it is declared when the
grace period passes without an error report.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum
from functools import partial
from typing import Any, Protocol

from livepreview.errors import EmptyInputError, SandboxRuntimeError
from livepreview.pipeline import build_preview
from livepreview.types import HarnessOptions, LifecycleState, PreviewStatus, RenderDocument, SourceDocument

logger = logging.getLogger(__name__)

DEFAULT_GRACE_PERIOD = 2.0


class LifecycleEvent(str, Enum):
    SOURCE = "source"
    EMPTY = "empty"
    RETRY = "retry"
    BUILT = "built"
    BUILD_FAILED = "build_failed"
    GRACE_ELAPSED = "grace_elapsed"
    SANDBOX_ERROR = "sandbox_error"


_S = LifecycleState
_E = LifecycleEvent

TRANSITIONS: dict[tuple[LifecycleState, LifecycleEvent], LifecycleState] = {
    # new input and retry are accepted from anywhere a run can exist
    **{(state, _E.SOURCE): _S.LOADING for state in _S},
    **{(state, _E.EMPTY): _S.ERROR for state in _S},
    **{(state, _E.RETRY): _S.LOADING for state in (_S.LOADING, _S.SUCCESS, _S.ERROR)},
    (_S.LOADING, _E.BUILT): _S.LOADING,
    (_S.LOADING, _E.BUILD_FAILED): _S.ERROR,
    (_S.LOADING, _E.GRACE_ELAPSED): _S.SUCCESS,
    (_S.LOADING, _E.SANDBOX_ERROR): _S.ERROR,
    # event handlers can still throw after the preview settled
    (_S.SUCCESS, _E.SANDBOX_ERROR): _S.ERROR,
}


class Sandbox(Protocol):
    def load(self, document: RenderDocument) -> None: ...


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioScheduler:
    """Schedules on the given loop, or on whichever loop is running at call time."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


Builder = Callable[[SourceDocument, HarnessOptions | None, int], RenderDocument]
Listener = Callable[[PreviewStatus], Any]


class PreviewController:
    """
    Drives one preview surface.

    Feed it code with set_source(); it builds a document, hands it to the
    sandbox, and reports state changes to subscribers. Sandbox errors come
    back through report_sandbox_error().
    """

    def __init__(
        self,
        sandbox: Sandbox,
        grace_period: float = DEFAULT_GRACE_PERIOD,
        scheduler: Scheduler | None = None,
        builder: Builder = build_preview,
        options: HarnessOptions | None = None,
    ) -> None:
        self._sandbox = sandbox
        self._grace_period = grace_period
        self._scheduler = scheduler or AsyncioScheduler()
        self._builder = builder
        self._options = options

        self._state = LifecycleState.IDLE
        self._token = 0
        self._error: str | None = None
        self._component: str | None = None
        self._sandbox_error: SandboxRuntimeError | None = None
        self._source: SourceDocument | None = None
        self._timer: TimerHandle | None = None
        self._listeners: list[Listener] = []
        self._published = self.status
        self._closed = False

    # -- introspection ---------------------------------------------------

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def retry_token(self) -> int:
        return self._token

    @property
    def status(self) -> PreviewStatus:
        return PreviewStatus(
            state=self._state,
            error_message=self._error,
            retry_token=self._token,
            component_name=self._component,
        )

    @property
    def last_sandbox_error(self) -> SandboxRuntimeError | None:
        """The runtime error reported for the current run, stack included."""
        return self._sandbox_error

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- inputs ----------------------------------------------------------

    def set_source(self, code: str | None, filename: str | None = None, class_name: str | None = None) -> None:
        """New code from the host. Always supersedes the run in flight."""
        if self._closed:
            logger.debug("preview: set_source after close ignored")
            return
        self._source = SourceDocument(code or "", filename, class_name)
        self._start(LifecycleEvent.SOURCE)

    def retry(self) -> None:
        """Re-run the pipeline on the current code."""
        if self._closed or self._source is None:
            logger.debug("preview: retry with nothing to run ignored")
            return
        self._start(LifecycleEvent.RETRY)

    def report_sandbox_error(self, message: str, stack: str | None = None, token: int | None = None) -> None:
        """
        Relay an error raised inside the sandbox document.

        token is the retry_token the document was built with; a report for an
        older run is discarded.
        """
        if token is not None and token != self._token:
            logger.debug("preview: stale sandbox error for token %s (current %d) dropped", token, self._token)
            return
        self._cancel_timer()
        if self._dispatch(LifecycleEvent.SANDBOX_ERROR, error=message or "Unknown error"):
            self._sandbox_error = SandboxRuntimeError(message or "Unknown error", stack)

    def close(self) -> None:
        self._cancel_timer()
        self._listeners.clear()
        self._closed = True

    # -- run -------------------------------------------------------------

    def _start(self, event: LifecycleEvent) -> None:
        source = self._source
        if source is None:
            logger.debug("preview: %s with no source ignored", event.value)
            return
        self._cancel_timer()
        self._token += 1
        token = self._token
        self._component = None
        self._sandbox_error = None

        if not source.code.strip():
            self._dispatch(LifecycleEvent.EMPTY, error=str(EmptyInputError()))
            return

        if not self._dispatch(event):
            return

        try:
            document = self._builder(source, self._options, token)
        except Exception as e:
            logger.exception("preview: builder raised for token %d", token)
            self._dispatch(LifecycleEvent.BUILD_FAILED, error=str(e) or type(e).__name__)
            return

        self._component = document.component_name
        try:
            self._sandbox.load(document)
        except Exception as e:
            logger.exception("preview: sandbox rejected document for token %d", token)
            self._dispatch(LifecycleEvent.BUILD_FAILED, error=str(e) or type(e).__name__)
            return

        if not document.ok:
            self._dispatch(LifecycleEvent.BUILD_FAILED, error=document.error)
            return

        self._dispatch(LifecycleEvent.BUILT)
        self._timer = self._scheduler.call_later(self._grace_period, partial(self._grace_elapsed, token))

    def _grace_elapsed(self, token: int) -> None:
        if self._closed or token != self._token:
            logger.debug("preview: stale timer for token %d (current %d) ignored", token, self._token)
            return
        self._timer = None
        self._dispatch(LifecycleEvent.GRACE_ELAPSED)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    # -- state machine ---------------------------------------------------

    def _dispatch(self, event: LifecycleEvent, error: str | None = None) -> bool:
        target = TRANSITIONS.get((self._state, event))
        if target is None:
            logger.debug("preview: %s ignored in state %s", event.value, self._state.value)
            return False

        previous = self._state
        self._state = target
        self._error = error if target is LifecycleState.ERROR else None
        current = self.status

        if current != self._published:
            self._published = current
            logger.info(
                "preview: %s -> %s on %s (token %d)",
                previous.value,
                target.value,
                event.value,
                self._token,
            )
            self._notify(current)
        return True

    def _notify(self, status: PreviewStatus) -> None:
        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception:
                logger.exception("preview: listener failed")
