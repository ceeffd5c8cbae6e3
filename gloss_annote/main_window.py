# gloss_annote/main_window.py
from __future__ import annotations

import datetime
from typing import List, Optional

from PyQt5.QtCore import Qt, QTimer
from PyQt5.QtWidgets import (
    QAction,
    QDialog,
    QFileDialog,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QSizePolicy,
    QSplitter,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from .config import ClientConfig, TokenStore
from .dialogs.login import LoginDialog
from .domain import STATUS_DISPLAY, Segment, SignedVideoUrl, TaskCategory, find_task
from .logger import logger
from .persistence import default_export_filename, export_annotations, load_annotations_file
from .push import PushListener
from .store_client import AuthenticationError, StoreClient, StoreError
from .widgets.annotation_list import AnnotationListPanel
from .widgets.busy_overlay import BusyOverlay
from .widgets.gloss_panel import GlossPanel
from .widgets.task_list import TaskListPanel
from .widgets.timeline_editor import TimelineEditor
from .widgets.video_panel import VideoPanel
from .workspace import AnnotationWorkspace


class MainWindow(QMainWindow):
    def __init__(self, client: StoreClient, token_store: TokenStore, config: ClientConfig):
        super().__init__()
        self.setWindowTitle("Gloss Annotation Tool")
        self.resize(1600, 950)

        self.client = client
        self.token_store = token_store
        self.config = config

        # Last full fetch from the Store
        self._categories: List[TaskCategory] = []
        self._annotations: List[Segment] = []
        self._loaded_once = False

        self.workspace = AnnotationWorkspace(client)

        # Signed URL of the video currently loaded, and whether it was re-requested after a failure
        self._video_url: Optional[SignedVideoUrl] = None
        self._video_retry_used = False

        self._push: Optional[PushListener] = None
        self._relogin_active = False

        self._build_ui()
        self._update_enabled_state()

    # ---------------- UI ----------------

    def _build_ui(self):
        tb = self.addToolBar("Main")
        tb.setMovable(False)
        self.act_refresh = QAction("Refresh", self)
        self.act_refresh.triggered.connect(lambda: self.reload())
        self.act_import = QAction("Import annotations", self)
        self.act_import.triggered.connect(self._import_annotations)
        self.act_export = QAction("Export annotations", self)
        self.act_export.triggered.connect(self._export_annotations)
        self.act_logout = QAction("Sign out", self)
        self.act_logout.triggered.connect(self._logout)
        for act in (self.act_refresh, self.act_import, self.act_export):
            tb.addAction(act)
        spacer = QWidget()
        spacer.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Preferred)
        tb.addWidget(spacer)
        tb.addAction(self.act_logout)

        # Page 0: loading / load error. Page 1: the workspace.
        self.pages = QStackedWidget()
        self.setCentralWidget(self.pages)

        self.load_label = QLabel("Loading...")
        self.load_label.setAlignment(Qt.AlignCenter)
        self.load_label.setWordWrap(True)
        self.pages.addWidget(self.load_label)

        main = QWidget()
        main_layout = QHBoxLayout(main)
        main_layout.setContentsMargins(6, 6, 6, 6)
        self.pages.addWidget(main)

        split = QSplitter(Qt.Horizontal)
        main_layout.addWidget(split)

        # Left: tasks
        self.task_list = TaskListPanel()
        self.task_list.task_selected.connect(self._on_task_selected)
        split.addWidget(self.task_list)

        # Center: video + timeline + actions
        center = QGroupBox("Annotation workspace")
        c_lay = QVBoxLayout(center)
        c_lay.setContentsMargins(6, 6, 6, 6)
        c_lay.setSpacing(6)

        self.task_label = QLabel("No task selected")
        self.task_label.setTextInteractionFlags(Qt.TextSelectableByMouse)
        c_lay.addWidget(self.task_label)

        self.video_panel = VideoPanel()
        self.video_panel.duration_known.connect(self._on_duration_known)
        self.video_panel.position_changed.connect(self._on_position_changed)
        self.video_panel.media_failed.connect(self._on_media_failed)
        c_lay.addWidget(self.video_panel, stretch=1)

        c_lay.addWidget(QLabel("Gloss timeline"))
        self.timeline = TimelineEditor()
        self.timeline.segments_edited.connect(self._on_segments_edited)
        self.timeline.seek_requested.connect(self.video_panel.seek)
        self.timeline.drag_started.connect(lambda _k: self.video_panel.pause())
        self.timeline.drag_finished.connect(
            lambda _k: self.annotation_list.set_segments(self.workspace.display_segments())
        )
        c_lay.addWidget(self.timeline)

        actions = QHBoxLayout()
        actions.setSpacing(8)
        actions.addStretch()
        self.btn_reset = QPushButton("Delete marks")
        self.btn_reset.clicked.connect(self._reset_task)
        self.btn_save = QPushButton("Finish annotation")
        self.btn_save.clicked.connect(self._save_task)
        for btn in (self.btn_reset, self.btn_save):
            btn.setCursor(Qt.PointingHandCursor)
            actions.addWidget(btn)
        c_lay.addLayout(actions)

        split.addWidget(center)

        # Right: glosses + annotations
        right = QSplitter(Qt.Vertical)
        self.gloss_panel = GlossPanel()
        self.gloss_panel.gloss_selected.connect(self._on_gloss_selected)
        self.annotation_list = AnnotationListPanel()
        self.annotation_list.play_segment.connect(self.video_panel.play_segment)
        right.addWidget(self.gloss_panel)
        right.addWidget(self.annotation_list)
        split.addWidget(right)

        split.setStretchFactor(0, 3)
        split.setStretchFactor(1, 9)
        split.setStretchFactor(2, 3)

        self.overlay = BusyOverlay(self.pages)

        self.push_label = QLabel("Live updates: offline")
        self.statusBar().addPermanentWidget(self.push_label)

    # ---------------- Startup / data loading ----------------

    def start(self) -> None:
        self.reload()
        self._start_push()

    def reload(self) -> bool:
        """Fetch tasks + annotations. Used at startup, on Refresh and on every broadcast."""
        try:
            categories = self.client.fetch_tasks()
            annotations = self.client.fetch_annotations()
        except AuthenticationError:
            self._handle_auth_failure()
            return False
        except StoreError as e:
            logger.warning("Loading data failed: %s", e)
            if not self._loaded_once:
                self.load_label.setText(
                    f"Failed to load data from the server:\n{e}\n\nUse Refresh to try again."
                )
                self.pages.setCurrentIndex(0)
            else:
                self.statusBar().showMessage(f"Refresh failed: {e}", 8000)
            return False

        self._loaded_once = True
        self.pages.setCurrentIndex(1)
        self._apply_data(categories, annotations)
        return True

    def _apply_data(self, categories: List[TaskCategory], annotations: List[Segment]) -> None:
        self._categories = categories
        self._annotations = annotations
        self.task_list.set_categories(categories)

        if self.workspace.task is not None:
            task = self.workspace.refresh(categories, annotations)
            if task is None:
                self.video_panel.clear("The selected task no longer exists.")
                self._video_url = None
        self._refresh_task_views()

    def _on_annotations_updated(self) -> None:
        logger.info("Annotations updated broadcast received; refetching")
        self.reload()

    # ---------------- Push channel ----------------

    def _start_push(self) -> None:
        self._stop_push()
        self._push = PushListener(self.client.events_url(), lambda: self.client.token, parent=self)
        self._push.annotations_updated.connect(self._on_annotations_updated)
        self._push.unauthorized.connect(self._handle_auth_failure)
        self._push.connection_changed.connect(
            lambda ok: self.push_label.setText("Live updates: connected" if ok else "Live updates: offline")
        )
        self._push.start()

    def _stop_push(self) -> None:
        if self._push is not None:
            self._push.stop()
            self._push = None

    # ---------------- Task selection ----------------

    def _on_task_selected(self, task_id: str) -> None:
        task = find_task(self._categories, task_id)
        if task is None:
            return
        if self.workspace.task is not None and self.workspace.task.id == task_id:
            return

        # Any unsaved edits of the previous task are dropped
        self.workspace.select_task(task, self._annotations)
        self.task_list.set_selected_task(task_id)
        self.gloss_panel.set_task(task)
        self.timeline.set_duration(0)
        self._refresh_task_views()
        self._load_video(task_id)

    def _load_video(self, task_id: str) -> None:
        self._video_url = None
        self._video_retry_used = False
        self.video_panel.clear("Loading video...")
        try:
            self._video_url = self.client.signed_video_url(task_id)
        except AuthenticationError:
            self._handle_auth_failure()
            return
        except StoreError as e:
            self.video_panel.show_message(
                f"Unable to load the video. Check the network or contact an administrator.\n({e})",
                error=True,
            )
            return
        self.video_panel.load_url(self._video_url.url)

    def _on_media_failed(self, message: str) -> None:
        task = self.workspace.task
        if task is None or self._video_url is None:
            return
        # Signed URLs are short-lived: get a new one once if the old one expired
        if self._video_url.is_expired() and not self._video_retry_used:
            logger.info("Video URL for task %s expired; requesting a new one", task.id)
            self._video_retry_used = True
            try:
                self._video_url = self.client.signed_video_url(task.id)
            except AuthenticationError:
                self._handle_auth_failure()
                return
            except StoreError as e:
                self.video_panel.show_message(f"Unable to load the video.\n({e})", error=True)
                return
            self.video_panel.load_url(self._video_url.url)
        else:
            logger.warning("Video for task %s failed: %s", task.id, message)

    def _on_duration_known(self, seconds: float) -> None:
        if self.workspace.task is None:
            return
        self.workspace.set_duration(seconds)
        self.timeline.set_duration(seconds)
        self._refresh_task_views()

    def _on_position_changed(self, seconds: float) -> None:
        self.timeline.set_playhead(seconds)

    def _on_gloss_selected(self, idx: int) -> None:
        segs = self.workspace.segments
        if 0 <= idx < len(segs):
            self.video_panel.seek(segs[idx].start_time)

    # ---------------- Editing ----------------

    def _on_segments_edited(self, segments: List[Segment]) -> None:
        first_edit = not self.workspace.dirty
        try:
            self.workspace.edit(segments)
        except AuthenticationError:
            # The timeline still holds the mouse grab; open the login after the drag event
            QTimer.singleShot(0, self._handle_auth_failure)
            return
        except StoreError as e:
            # Non-modal: a dialog here would pop up mid-drag. The next edit retries.
            self.statusBar().showMessage(f"Status update failed: {e}", 8000)
        if first_edit:
            self._update_task_label()
            self._update_enabled_state()

    def _save_task(self) -> None:
        if not self.workspace.can_save():
            return
        self.overlay.begin("Saving annotations...")
        try:
            self.workspace.save()
        except ValueError as e:
            QMessageBox.warning(self, "Invalid segments", str(e))
        except AuthenticationError:
            self.overlay.end()
            self._handle_auth_failure()
            return
        except StoreError as e:
            QMessageBox.warning(self, "Save failed", f"Saving the annotations failed:\n{e}")
        finally:
            self.overlay.end()
        self._refresh_task_views()

    def _reset_task(self) -> None:
        if self.workspace.task is None:
            return
        resp = QMessageBox.question(
            self,
            "Delete marks" if self.workspace.reset_destroys_data() else "Reset status",
            self.workspace.reset_confirmation_text(),
            QMessageBox.Yes | QMessageBox.No,
            QMessageBox.No,
        )
        if resp != QMessageBox.Yes:
            return

        self.overlay.begin("Deleting annotations...")
        try:
            self.workspace.reset()
        except AuthenticationError:
            self.overlay.end()
            self._handle_auth_failure()
            return
        except StoreError as e:
            QMessageBox.warning(self, "Delete failed", f"Deleting the annotations failed:\n{e}")
        finally:
            self.overlay.end()
        self._refresh_task_views()

    # ---------------- Import / export ----------------

    def _export_annotations(self) -> None:
        if not self._annotations:
            QMessageBox.information(self, "Export", "There are no annotations to export.")
            return
        stamp = datetime.datetime.now().isoformat(timespec="seconds")
        path, _ = QFileDialog.getSaveFileName(
            self, "Export annotations", default_export_filename(stamp), "JSON files (*.json)"
        )
        if not path:
            return
        try:
            export_annotations(path, self._annotations)
        except OSError as e:
            QMessageBox.warning(self, "Export failed", str(e))
            return
        self.statusBar().showMessage(f"Exported {len(self._annotations)} annotations to {path}", 8000)

    def _import_annotations(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Import annotations", "", "JSON files (*.json)")
        if not path:
            return
        try:
            segments = load_annotations_file(path)
        except (OSError, ValueError) as e:
            QMessageBox.warning(self, "Import failed", f"The file could not be imported:\n{e}")
            return

        self.overlay.begin("Importing annotations...")
        try:
            self.client.import_annotations(segments)
        except AuthenticationError:
            self.overlay.end()
            self._handle_auth_failure()
            return
        except StoreError as e:
            QMessageBox.warning(self, "Import failed", str(e))
            return
        finally:
            self.overlay.end()
        QMessageBox.information(self, "Import", f"Imported {len(segments)} annotations.")

    # ---------------- Auth ----------------

    def _logout(self) -> None:
        self.client.token = None
        self.token_store.clear()
        self._handle_auth_failure(message="")

    def _handle_auth_failure(self, message: str = "Your session has expired. Please sign in again.") -> None:
        if self._relogin_active:
            return
        self._relogin_active = True
        try:
            self._stop_push()
            self.client.token = None
            self.token_store.clear()
            logger.info("Returning to the login step")

            dlg = LoginDialog(self.client, self, message=message)
            if dlg.exec_() != QDialog.Accepted:
                self.close()
                return
            self.token_store.set(self.client.token or "")
        finally:
            self._relogin_active = False
        self.start()

    # ---------------- View refresh ----------------

    def _refresh_task_views(self) -> None:
        task = self.workspace.task
        self.gloss_panel.set_task(task)
        self.annotation_list.set_segments(self.workspace.display_segments())
        self.timeline.set_segments(self.workspace.segments)
        if task is None:
            self.timeline.set_duration(0)
        self._update_task_label()
        self._update_enabled_state()

    def _update_task_label(self) -> None:
        task = self.workspace.task
        if task is None:
            self.task_label.setText("No task selected")
            return
        status = STATUS_DISPLAY.get(task.status, task.status)
        dirty = "  (unsaved changes)" if self.workspace.dirty else ""
        self.task_label.setText(f"{task.category} / {task.video}  -  {status}{dirty}")

    def _update_enabled_state(self) -> None:
        has_task = self.workspace.task is not None
        self.btn_reset.setEnabled(has_task)
        self.btn_save.setEnabled(self.workspace.can_save())

    def closeEvent(self, event):
        self._stop_push()
        self.video_panel.clear()
        super().closeEvent(event)
