"""Qt main window: sidebar of open and recent files plus the web preview."""

from __future__ import annotations

from pathlib import Path

from loguru import logger
from PySide6.QtCore import QEvent, QObject, QRunnable, Qt, QThreadPool, QUrl, Signal
from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import (
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMenu,
    QMessageBox,
    QPushButton,
    QSplitter,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
    QWidget,
)

from mdshelf.config import APP_NAME, RECENT_MENU_LIMIT, AppPaths, dialog_name_filters
from mdshelf.errors import DocumentReadError
from mdshelf.grouping import Group
from mdshelf.host import HostBridge, LocalFileSystem
from mdshelf.html_view import HtmlPageRenderer
from mdshelf.recent import RecentEntry, RecentLedger, sidebar_recent_entries
from mdshelf.registry import Document
from mdshelf.session import ViewerSession
from mdshelf.session_store import SessionStore
from mdshelf.transform import Block

ITEM_KIND_ROLE = Qt.ItemDataRole.UserRole
ITEM_VALUE_ROLE = Qt.ItemDataRole.UserRole + 1
EMPTY_STATE_TEXT = "Open a markdown file to get started (Ctrl+O), or drop files here."


class QtHostBridge(LocalFileSystem):
    """Local file system plus a native multi-select open dialog."""

    def __init__(self, parent: QWidget) -> None:
        self._parent = parent

    def pick_files(self) -> list[str]:
        paths, _selected_filter = QFileDialog.getOpenFileNames(
            self._parent,
            "Open File",
            "",
            dialog_name_filters(),
        )
        return list(paths)


class FileReadWorkerSignals(QObject):
    """Signals emitted by background file read workers."""

    finished = Signal(int, str, str, str)


class FileReadWorker(QRunnable):
    """Read one file off the UI thread and report path, content and error text."""

    def __init__(self, path: str, host: HostBridge, request_id: int):
        super().__init__()
        self.path = path
        self.host = host
        self.request_id = request_id
        self.signals = FileReadWorkerSignals()

    def run(self) -> None:
        try:
            content = self.host.read_file(self.path)
        except DocumentReadError as exc:
            self.signals.finished.emit(self.request_id, self.path, "", exc.reason)
            return
        except Exception as exc:
            logger.exception("Background read of {} failed", self.path)
            self.signals.finished.emit(self.request_id, self.path, "", str(exc) or type(exc).__name__)
            return
        self.signals.finished.emit(self.request_id, self.path, content, "")


class FileOpenEventFilter(QObject):
    """Forward OS "open with" requests (QFileOpenEvent) to the window."""

    def __init__(self, window: MdShelfWindow) -> None:
        super().__init__(window)
        self._window = window

    def eventFilter(self, obj, event) -> bool:  # noqa: N802
        if event.type() == QEvent.Type.FileOpen:
            path = event.file()
            if path:
                logger.info("open-file event: {}", path)
                self._window.open_paths_async([path])
            return True
        return super().eventFilter(obj, event)


class MdShelfWindow(QMainWindow):
    def __init__(self, paths: AppPaths):
        super().__init__()
        self.page_renderer = HtmlPageRenderer()
        self._read_pool = QThreadPool(self)
        self._read_pool.setMaxThreadCount(2)
        self._active_read_workers: set[FileReadWorker] = set()
        self._read_request_id = 0
        self._ready_signaled = False
        self._recent_entries: list[RecentEntry] = []

        host = QtHostBridge(self)
        self.session = ViewerSession(
            host,
            self,
            session_store=SessionStore(paths.session_file, host.file_exists),
            ledger=RecentLedger(paths.recent_file, host.file_exists),
        )

        self.setWindowTitle(APP_NAME)
        self.resize(1200, 800)
        self.setMinimumSize(600, 400)
        self.setAcceptDrops(True)

        self.open_tree = QTreeWidget()
        self.open_tree.setHeaderHidden(True)
        self.open_tree.setRootIsDecorated(True)
        self.open_tree.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)
        self.open_tree.customContextMenuRequested.connect(self._show_open_tree_context_menu)
        self.open_tree.itemClicked.connect(self._on_open_item_clicked)
        self.open_tree.itemExpanded.connect(self._on_group_expanded)
        self.open_tree.itemCollapsed.connect(self._on_group_collapsed)

        self.recent_label = QLabel("Recent")
        self.recent_list = QListWidget()
        self.recent_list.itemClicked.connect(self._on_recent_item_clicked)

        clear_recent_btn = QPushButton("Clear")
        clear_recent_btn.setToolTip("Clear recent files")
        clear_recent_btn.clicked.connect(self.session.clear_recent)

        restore_btn = QPushButton("Restore Previous Session")
        restore_btn.clicked.connect(self.session.restore_session)

        recent_header = QHBoxLayout()
        recent_header.setContentsMargins(0, 0, 0, 0)
        recent_header.addWidget(self.recent_label, 1)
        recent_header.addWidget(clear_recent_btn)

        self.open_label = QLabel("Open Files")
        sidebar = QWidget()
        sidebar_layout = QVBoxLayout(sidebar)
        sidebar_layout.setContentsMargins(6, 6, 6, 6)
        sidebar_layout.addWidget(self.open_label)
        sidebar_layout.addWidget(self.open_tree, 3)
        sidebar_layout.addLayout(recent_header)
        sidebar_layout.addWidget(self.recent_list, 2)
        sidebar_layout.addWidget(restore_btn)
        sidebar.setMinimumWidth(200)
        sidebar.setMaximumWidth(480)

        self.preview = QWebEngineView()
        # Drops land on the window, not on the web page.
        self.preview.setAcceptDrops(False)
        self.preview.loadFinished.connect(self._on_preview_load_finished)

        open_btn = QPushButton("Open")
        open_btn.clicked.connect(self.session.open_dialog)
        self.filename_label = QLabel("No file open")

        top_bar = QHBoxLayout()
        top_bar.setContentsMargins(0, 0, 0, 0)
        top_bar.addWidget(open_btn)
        top_bar.addWidget(self.filename_label, 1)

        preview_container = QWidget()
        preview_layout = QVBoxLayout(preview_container)
        preview_layout.setContentsMargins(0, 0, 0, 0)
        preview_layout.addLayout(top_bar)
        preview_layout.addWidget(self.preview, 1)

        self.splitter = QSplitter(Qt.Horizontal)
        self.splitter.addWidget(sidebar)
        self.splitter.addWidget(preview_container)
        self.splitter.setChildrenCollapsible(False)
        self.splitter.setStretchFactor(0, 1)
        self.splitter.setStretchFactor(1, 4)
        self.setCentralWidget(self.splitter)

        self._build_menu()
        self._set_open_section_visible(False)
        self._set_recent_section_visible(False)
        self.statusBar().showMessage("Loading...")
        self.preview.setHtml(self.page_renderer.placeholder_page(EMPTY_STATE_TEXT))

    def _build_menu(self) -> None:
        file_menu = self.menuBar().addMenu("&File")

        open_action = QAction("Open File...", self)
        open_action.setShortcut(QKeySequence.StandardKey.Open)
        open_action.triggered.connect(self.session.open_dialog)
        file_menu.addAction(open_action)

        self.recent_menu = file_menu.addMenu("Open Recent")
        self._rebuild_recent_menu()
        file_menu.addSeparator()

        restore_action = QAction("Restore Previous Session", self)
        restore_action.setShortcut("Ctrl+Shift+R")
        restore_action.triggered.connect(self.session.restore_session)
        file_menu.addAction(restore_action)
        file_menu.addSeparator()

        close_action = QAction("Close File", self)
        close_action.setShortcut(QKeySequence.StandardKey.Close)
        close_action.triggered.connect(self._close_active_document)
        file_menu.addAction(close_action)

        quit_action = QAction("Quit", self)
        quit_action.setShortcut(QKeySequence.StandardKey.Quit)
        quit_action.triggered.connect(self.close)
        file_menu.addAction(quit_action)

    def _rebuild_recent_menu(self) -> None:
        self.recent_menu.clear()
        entries = self._recent_entries[:RECENT_MENU_LIMIT]
        if not entries:
            empty_action = self.recent_menu.addAction("No Recent Files")
            empty_action.setEnabled(False)
            return
        for entry in entries:
            action = self.recent_menu.addAction(f"{entry.display_name}    ({entry.parent_display_name})")
            action.setToolTip(entry.identifier)
            action.triggered.connect(
                lambda _checked=False, identifier=entry.identifier: self.session.open_paths([identifier])
            )
        self.recent_menu.addSeparator()
        clear_action = self.recent_menu.addAction("Clear Recent Files")
        clear_action.triggered.connect(self.session.clear_recent)

    # Presenter notifications.

    def show_document(self, document: Document, blocks: list[Block]) -> None:
        html_doc = self.page_renderer.render_page(blocks, document.display_name)
        # Relative image paths resolve against the document's folder.
        base_url = QUrl.fromLocalFile(f"{Path(document.identifier).parent}/")
        self.preview.setHtml(html_doc, base_url)
        self.filename_label.setText(document.display_name)
        self.filename_label.setToolTip(document.identifier)
        self.setWindowTitle(f"{document.display_name} - {APP_NAME}")
        self.statusBar().showMessage(f"Showing {document.identifier}", 4000)

    def show_empty(self) -> None:
        self.preview.setHtml(self.page_renderer.placeholder_page(EMPTY_STATE_TEXT))
        self.filename_label.setText("No file open")
        self.filename_label.setToolTip("")
        self.setWindowTitle(APP_NAME)

    def refresh_sidebar(
        self,
        groups: list[Group],
        active_index: int | None,
        *,
        flat: bool,
        collapsed: frozenset[str],
    ) -> None:
        blocked = self.open_tree.blockSignals(True)
        self.open_tree.clear()
        active_item: QTreeWidgetItem | None = None
        if flat:
            self.open_tree.setRootIsDecorated(False)
            for position, document in groups[0].members:
                item = self._document_item(position, document)
                self.open_tree.addTopLevelItem(item)
                if position == active_index:
                    active_item = item
        else:
            self.open_tree.setRootIsDecorated(True)
            for group in groups:
                group_item = QTreeWidgetItem([f"{group.display_name}  ({len(group)})"])
                group_item.setToolTip(0, group.key)
                group_item.setData(0, ITEM_KIND_ROLE, "group")
                group_item.setData(0, ITEM_VALUE_ROLE, group.key)
                self.open_tree.addTopLevelItem(group_item)
                for position, document in group.members:
                    item = self._document_item(position, document)
                    group_item.addChild(item)
                    if position == active_index:
                        active_item = item
                group_item.setExpanded(group.key not in collapsed)
        if active_item is not None:
            self.open_tree.setCurrentItem(active_item)
        self.open_tree.blockSignals(blocked)
        self._set_open_section_visible(bool(groups))
        self._rebuild_recent_list()

    def refresh_recent(self, entries: list[RecentEntry]) -> None:
        self._recent_entries = list(entries)
        self._rebuild_recent_list()
        self._rebuild_recent_menu()

    def show_notice(self, title: str, message: str) -> None:
        QMessageBox.critical(self, title, message)

    def ready_acknowledged(self) -> None:
        self.statusBar().showMessage("Ready", 2000)

    # Sidebar helpers.

    def _document_item(self, position: int, document: Document) -> QTreeWidgetItem:
        item = QTreeWidgetItem([document.display_name])
        item.setToolTip(0, document.identifier)
        item.setData(0, ITEM_KIND_ROLE, "document")
        item.setData(0, ITEM_VALUE_ROLE, position)
        return item

    def _rebuild_recent_list(self) -> None:
        self.recent_list.clear()
        visible = sidebar_recent_entries(self._recent_entries, self.session.registry.list_open_identifiers())
        for entry in visible:
            item = QListWidgetItem(f"{entry.display_name}    {entry.parent_display_name}")
            item.setToolTip(entry.identifier)
            item.setData(ITEM_VALUE_ROLE, entry.identifier)
            self.recent_list.addItem(item)
        self._set_recent_section_visible(bool(visible))

    def _set_open_section_visible(self, visible: bool) -> None:
        self.open_label.setVisible(visible)
        self.open_tree.setVisible(visible)

    def _set_recent_section_visible(self, visible: bool) -> None:
        self.recent_label.setVisible(visible)
        self.recent_list.setVisible(visible)

    def _on_open_item_clicked(self, item: QTreeWidgetItem, _column: int) -> None:
        if item.data(0, ITEM_KIND_ROLE) == "document":
            self.session.activate(int(item.data(0, ITEM_VALUE_ROLE)))

    def _on_group_expanded(self, item: QTreeWidgetItem) -> None:
        key = item.data(0, ITEM_VALUE_ROLE)
        if item.data(0, ITEM_KIND_ROLE) == "group" and self.session.grouping.is_collapsed(key):
            self.session.toggle_group(key)

    def _on_group_collapsed(self, item: QTreeWidgetItem) -> None:
        key = item.data(0, ITEM_VALUE_ROLE)
        if item.data(0, ITEM_KIND_ROLE) == "group" and not self.session.grouping.is_collapsed(key):
            self.session.toggle_group(key)

    def _show_open_tree_context_menu(self, pos) -> None:
        item = self.open_tree.itemAt(pos)
        if item is None or item.data(0, ITEM_KIND_ROLE) != "document":
            return
        position = int(item.data(0, ITEM_VALUE_ROLE))
        menu = QMenu(self)
        close_action = menu.addAction("Close File")
        close_action.triggered.connect(lambda _checked=False, index=position: self.session.close(index))
        menu.exec(self.open_tree.viewport().mapToGlobal(pos))

    def _on_recent_item_clicked(self, item: QListWidgetItem) -> None:
        self.session.open_paths([item.data(ITEM_VALUE_ROLE)])

    def _close_active_document(self) -> None:
        index = self.session.registry.active_index
        if index is not None:
            self.session.close(index)

    # Readiness, background reads, drag and drop, shutdown.

    def _on_preview_load_finished(self, _ok: bool) -> None:
        if self._ready_signaled:
            return
        self._ready_signaled = True
        self.session.presentation_ready()

    def open_paths_async(self, paths: list[str]) -> None:
        """Read files in the background; completions post into the session queue."""
        for path in paths:
            self._read_request_id += 1
            worker = FileReadWorker(path, self.session.host, self._read_request_id)
            worker.signals.finished.connect(self._on_read_finished)
            self._active_read_workers.add(worker)
            self._read_pool.start(worker)

    def _on_read_finished(self, request_id: int, path: str, content: str, error_text: str) -> None:
        """Hand a finished read to the session; completion order decides the winner."""
        for worker in list(self._active_read_workers):
            if worker.request_id == request_id:
                self._active_read_workers.discard(worker)
                break
        if error_text:
            self.session.file_load_failed(path, error_text)
        else:
            self.session.file_loaded(path, content)

    def dragEnterEvent(self, event) -> None:  # noqa: N802
        if event.mimeData().hasUrls():
            event.acceptProposedAction()
        else:
            super().dragEnterEvent(event)

    def dragMoveEvent(self, event) -> None:  # noqa: N802
        if event.mimeData().hasUrls():
            event.acceptProposedAction()
        else:
            super().dragMoveEvent(event)

    def dropEvent(self, event) -> None:  # noqa: N802
        paths = [url.toLocalFile() for url in event.mimeData().urls() if url.isLocalFile()]
        if not paths:
            super().dropEvent(event)
            return
        event.acceptProposedAction()
        self.open_paths_async(paths)

    def closeEvent(self, event) -> None:  # noqa: N802
        self.session.shutdown()
        super().closeEvent(event)
