"""Viewer session: the single owner of open-document, grouping and history state.

Every inbound event (CLI files, dialog picks, drops, OS open requests, read
completions, sidebar clicks) is posted to one event queue and handled in
arrival order. Notifications aimed at the presentation layer pass through a
readiness gate so nothing reaches the view before it has said it is ready.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable
from functools import partial
from typing import Any, Protocol

from loguru import logger

from mdshelf.errors import DocumentReadError, RenderError
from mdshelf.grouping import Group, GroupingView
from mdshelf.host import HostBridge, display_name, normalize_path
from mdshelf.recent import RecentEntry, RecentLedger
from mdshelf.registry import Document, DocumentRegistry
from mdshelf.session_store import RestoreState, SessionStore
from mdshelf.transform import Block, ContentTransformer, ErrorBlock


class Presenter(Protocol):
    """Outbound notifications consumed by the presentation layer."""

    def show_document(self, document: Document, blocks: list[Block]) -> None: ...

    def show_empty(self) -> None: ...

    def refresh_sidebar(
        self,
        groups: list[Group],
        active_index: int | None,
        *,
        flat: bool,
        collapsed: frozenset[str],
    ) -> None: ...

    def refresh_recent(self, entries: list[RecentEntry]) -> None: ...

    def show_notice(self, title: str, message: str) -> None: ...

    def ready_acknowledged(self) -> None: ...


class ReadinessGate:
    """Holds presentation work until the view signals it is ready.

    The first `open()` runs the held actions in arrival order and discards
    the queue; after that, actions run immediately and further `open()` calls
    are no-ops. A held action that raises is logged and the flush continues.
    """

    def __init__(self) -> None:
        self._pending: deque[Callable[[], Any]] | None = deque()

    @property
    def is_open(self) -> bool:
        return self._pending is None

    @property
    def pending_count(self) -> int:
        return len(self._pending) if self._pending is not None else 0

    def deliver(self, action: Callable[[], Any]) -> None:
        if self._pending is None:
            action()
        else:
            self._pending.append(action)

    def open(self) -> bool:
        if self._pending is None:
            return False
        pending = self._pending
        logger.debug("Readiness gate opening, flushing {} pending action(s)", len(pending))
        # Actions delivered while flushing join the same queue, keeping order.
        while pending:
            action = pending.popleft()
            try:
                action()
            except Exception:
                logger.exception("Held presentation action {} failed", getattr(action, "__name__", action))
        self._pending = None
        return True


class EventQueue:
    """Serializes handlers: posts made while draining run after the current one."""

    def __init__(self) -> None:
        self._events: deque[tuple[Callable[..., Any], tuple[Any, ...]]] = deque()
        self._draining = False

    def __len__(self) -> int:
        return len(self._events)

    def post(self, handler: Callable[..., Any], *args: Any) -> None:
        self._events.append((handler, args))
        if not self._draining:
            self._drain()

    def _drain(self) -> None:
        self._draining = True
        try:
            while self._events:
                handler, args = self._events.popleft()
                try:
                    handler(*args)
                except Exception:
                    logger.exception("Event handler {} failed", getattr(handler, "__name__", handler))
        finally:
            self._draining = False


class ViewerSession:
    def __init__(
        self,
        host: HostBridge,
        presenter: Presenter,
        *,
        session_store: SessionStore,
        ledger: RecentLedger,
        transformer: ContentTransformer | None = None,
    ) -> None:
        self.host = host
        self.presenter = presenter
        self.session_store = session_store
        self.ledger = ledger
        self.transformer = transformer or ContentTransformer()
        self.registry = DocumentRegistry()
        self.grouping = GroupingView()
        self.gate = ReadinessGate()
        self.events = EventQueue()
        self.restore_state = RestoreState.IDLE

    # Inbound events. Each one is queued and handled serially.

    def start(self, cli_args: Iterable[str] = ()) -> None:
        """Load history, then open CLI files or fall back to the saved session."""
        self.events.post(self._handle_start, list(cli_args))

    def open_paths(self, paths: Iterable[str]) -> None:
        for path in paths:
            self.events.post(self._handle_open, normalize_path(path))

    def open_dialog(self) -> None:
        self.open_paths(self.host.pick_files())

    def file_loaded(self, path: str, content: str) -> None:
        """Completion of an asynchronous read performed by the host."""
        self.events.post(self._handle_loaded, normalize_path(path), content)

    def file_load_failed(self, path: str, reason: str) -> None:
        self.events.post(self._handle_read_error, DocumentReadError(path, reason))

    def activate(self, index: int) -> None:
        self.events.post(self._handle_activate, index)

    def activate_identifier(self, identifier: str) -> None:
        self.events.post(self._handle_activate_identifier, identifier)

    def close(self, index: int) -> None:
        self.events.post(self._handle_close, index)

    def toggle_group(self, key: str) -> None:
        self.events.post(self._handle_toggle_group, key)

    def clear_recent(self) -> None:
        self.events.post(self._handle_clear_recent)

    def restore_session(self) -> None:
        self.events.post(self._handle_restore)

    def presentation_ready(self) -> None:
        self.events.post(self._handle_ready)

    def shutdown(self) -> None:
        """Write the session snapshot. Runs synchronously when called outside a handler."""
        self.events.post(self._handle_shutdown)

    # Handlers.

    def _handle_start(self, cli_args: list[str]) -> None:
        self.ledger.load()
        cli_files: list[str] = []
        for arg in cli_args:
            candidate = normalize_path(arg)
            if self.host.file_exists(candidate):
                cli_files.append(candidate)
            else:
                logger.debug("Ignoring command line argument that is not a file: {}", arg)

        if cli_files:
            for identifier in cli_files:
                logger.info("Opening file from command line: {}", identifier)
                self._open(identifier)
            return
        logger.info("No command line files, restoring previous session")
        self._handle_restore()

    def _handle_open(self, identifier: str) -> None:
        self._open(identifier)

    def _open(self, identifier: str) -> None:
        try:
            content = self.host.read_file(identifier)
        except DocumentReadError as exc:
            self._handle_read_error(exc)
            return
        self._handle_loaded(identifier, content)

    def _handle_loaded(self, identifier: str, content: str) -> None:
        index = self.registry.upsert(identifier, display_name(identifier), content)
        logger.info("Opened {} at position {}", identifier, index)
        self.ledger.touch(identifier)
        self.ledger.save()
        self._present_recent()
        self._present_active()
        self._present_sidebar()

    def _handle_read_error(self, exc: DocumentReadError) -> None:
        logger.error("Failed to read file {}: {}", exc.path, exc.reason)
        # Blocking notices are not gated: the host can show them at any time.
        self.presenter.show_notice("Error", str(exc))

    def _handle_activate(self, index: int) -> None:
        if not self.registry.activate(index):
            logger.debug("Ignoring activation of out-of-range index {}", index)
            return
        self._present_active()
        self._present_sidebar()

    def _handle_activate_identifier(self, identifier: str) -> None:
        index = self.registry.index_of(identifier)
        if index is None:
            logger.info("Previously active file is not open: {}", identifier)
            return
        self._handle_activate(index)

    def _handle_close(self, index: int) -> None:
        if not 0 <= index < len(self.registry):
            logger.debug("Ignoring close of out-of-range index {}", index)
            return
        previous_active = self.registry.active_index
        closed = self.registry[index]
        self.registry.close(index)
        logger.info("Closed {}", closed.identifier)
        if not len(self.registry):
            self._present(self.presenter.show_empty)
        elif previous_active is not None and index <= previous_active:
            self._present_active()
        self._present_sidebar()
        # The sidebar recent list hides open files, so it changes on close too.
        self._present_recent()

    def _handle_toggle_group(self, key: str) -> None:
        collapsed = self.grouping.toggle(key)
        logger.debug("Group {} {}", key, "collapsed" if collapsed else "expanded")
        self._present_sidebar()

    def _handle_clear_recent(self) -> None:
        self.ledger.clear()
        self.ledger.save()
        self._present_recent()

    def _handle_restore(self) -> None:
        self.restore_state = RestoreState.LOADING
        snapshot = self.session_store.load()
        if snapshot is None or not snapshot.open_files:
            self.restore_state = RestoreState.NO_SESSION
            logger.info("No previous session to restore")
            return

        self.restore_state = RestoreState.RESTORING
        logger.info("Restoring session with {} file(s)", len(snapshot.open_files))
        for identifier in snapshot.open_files:
            self._open(identifier)
        active_file = snapshot.active_file
        if active_file:
            # Runs once the view is ready; until then the last opened file stays active.
            self._present(partial(self.events.post, self._handle_activate_identifier, active_file))

    def _handle_ready(self) -> None:
        if self.gate.open():
            logger.info("Presentation ready")
            if not len(self.registry):
                self.presenter.show_empty()
            self._present_recent()
        self.presenter.ready_acknowledged()

    def _handle_shutdown(self) -> None:
        self.session_store.save(self.registry.list_open_identifiers(), self.registry.active_identifier())

    # Presentation helpers.

    def _present(self, action: Callable[[], Any]) -> None:
        self.gate.deliver(action)

    def blocks_for(self, document: Document) -> list[Block]:
        """Rendered blocks for document, cached until its content changes."""
        if document.rendered is None:
            try:
                document.rendered = self.transformer.render(document.content)
            except RenderError as exc:
                logger.warning("Could not render {}: {}", document.identifier, exc)
                return [ErrorBlock(str(exc))]
        return document.rendered

    def _present_active(self) -> None:
        document = self.registry.active_document
        if document is None:
            self._present(self.presenter.show_empty)
            return
        self._present(partial(self._show_document, document.identifier))

    def _show_document(self, identifier: str) -> None:
        index = self.registry.index_of(identifier)
        if index is None:
            return
        document = self.registry[index]
        self.presenter.show_document(document, self.blocks_for(document))

    def _present_sidebar(self) -> None:
        groups = self.grouping.refresh(self.registry)
        self._present(
            partial(
                self.presenter.refresh_sidebar,
                groups,
                self.registry.active_index,
                flat=self.grouping.is_flat,
                collapsed=self.grouping.collapsed_keys,
            )
        )

    def _present_recent(self) -> None:
        self._present(partial(self.presenter.refresh_recent, self.ledger.list()))
