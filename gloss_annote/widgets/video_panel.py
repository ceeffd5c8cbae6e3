# gloss_annote/widgets/video_panel.py
from __future__ import annotations

from typing import Optional

from PyQt5.QtCore import Qt, QUrl, pyqtSignal, QSize
from PyQt5.QtMultimedia import QMediaContent, QMediaPlayer
from PyQt5.QtMultimediaWidgets import QVideoWidget
from PyQt5.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QPushButton,
    QSizePolicy,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from ..timeutils import ms_to_seconds, ms_to_time_str, seconds_to_ms


class VideoPanel(QWidget):
    """
    One QMediaPlayer streaming the task video from a (signed) URL.

    Pages: (0) message label for loading / errors / empty, (1) video.

    Emits:
      - duration_known(seconds) once the media reports a duration > 0
      - position_changed(seconds)
      - media_failed(message)
    """
    duration_known = pyqtSignal(float)
    position_changed = pyqtSignal(float)
    media_failed = pyqtSignal(str)

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)

        self._player = QMediaPlayer(None, QMediaPlayer.VideoSurface)
        self._segment_end_ms: Optional[int] = None
        self._duration_ms: int = 0

        self._build_ui()

        self._player.setVideoOutput(self.video)
        self._player.durationChanged.connect(self._on_duration_changed)
        self._player.positionChanged.connect(self._on_position_changed)
        self._player.stateChanged.connect(self._update_play_button)
        self._player.error.connect(self._on_error)

        self.show_message("Select a task on the left to start annotating.")

    # ---------------- UI ----------------

    def _build_ui(self):
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(6)

        self.stack = QStackedWidget()
        self.stack.setStyleSheet("background-color: black;")
        self.stack.setMinimumHeight(300)

        self.message = QLabel()
        self.message.setAlignment(Qt.AlignCenter)
        self.message.setWordWrap(True)
        self.message.setStyleSheet("color: #9E9E9E;")

        self.video = QVideoWidget()
        self.video.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Expanding)

        self.stack.addWidget(self.message)  # index 0
        self.stack.addWidget(self.video)    # index 1
        layout.addWidget(self.stack, stretch=1)

        bar = QHBoxLayout()
        bar.setSpacing(8)
        self.btn_play = QPushButton("Play")
        self.btn_play.clicked.connect(self.toggle_play)
        self.btn_play.setCursor(Qt.PointingHandCursor)
        self.time_label = QLabel("00:00 / 00:00")
        bar.addWidget(self.btn_play)
        bar.addSpacing(12)
        bar.addWidget(self.time_label)
        bar.addStretch()
        layout.addLayout(bar)

        self.btn_play.setEnabled(False)

    def sizeHint(self) -> QSize:
        return QSize(640, 420)

    # ---------------- Public API ----------------

    def show_message(self, text: str, error: bool = False) -> None:
        self.message.setText(text)
        self.message.setStyleSheet("color: #EF5350;" if error else "color: #9E9E9E;")
        self.stack.setCurrentIndex(0)

    def clear(self, message: str = "Select a task on the left to start annotating.") -> None:
        self._player.stop()
        self._player.setMedia(QMediaContent())
        self._segment_end_ms = None
        self._duration_ms = 0
        self.btn_play.setEnabled(False)
        self.time_label.setText("00:00 / 00:00")
        self.show_message(message)

    def load_url(self, url: str) -> None:
        self._player.stop()
        self._segment_end_ms = None
        self._duration_ms = 0
        self._player.setMedia(QMediaContent(QUrl(url)))
        self.stack.setCurrentIndex(1)
        self.btn_play.setEnabled(True)
        # Show the first frame
        self._player.pause()

    def duration(self) -> float:
        return ms_to_seconds(self._duration_ms)

    def position(self) -> float:
        return ms_to_seconds(self._player.position())

    def seek(self, seconds: float) -> None:
        ms = max(0, seconds_to_ms(seconds))
        if self._duration_ms > 0:
            ms = min(ms, self._duration_ms)
        self._segment_end_ms = None
        self._player.setPosition(ms)

    def play(self) -> None:
        self._player.play()

    def pause(self) -> None:
        self._player.pause()

    def is_playing(self) -> bool:
        return self._player.state() == QMediaPlayer.PlayingState

    def toggle_play(self) -> None:
        if self.is_playing():
            self.pause()
        else:
            self._segment_end_ms = None
            self.play()

    def play_segment(self, start: float, end: float) -> None:
        """Play [start, end] and pause at end."""
        self.seek(start)
        self._segment_end_ms = seconds_to_ms(end)
        self.play()

    # ---------------- Player signals ----------------

    def _on_duration_changed(self, dur_ms: int) -> None:
        self._duration_ms = max(0, int(dur_ms or 0))
        self._update_time_label(self._player.position())
        if self._duration_ms > 0:
            self.duration_known.emit(ms_to_seconds(self._duration_ms))

    def _on_position_changed(self, pos_ms: int) -> None:
        if self._segment_end_ms is not None and pos_ms >= self._segment_end_ms:
            self._segment_end_ms = None
            self._player.pause()
        self._update_time_label(pos_ms)
        self.position_changed.emit(ms_to_seconds(pos_ms))

    def _on_error(self, _err) -> None:
        msg = self._player.errorString() or "Unable to play this video."
        self.show_message(f"Video failed to load: {msg}", error=True)
        self.btn_play.setEnabled(False)
        self.media_failed.emit(msg)

    def _update_play_button(self, *_args) -> None:
        self.btn_play.setText("Pause" if self.is_playing() else "Play")

    def _update_time_label(self, pos_ms: int) -> None:
        self.time_label.setText(f"{ms_to_time_str(pos_ms)} / {ms_to_time_str(self._duration_ms)}")
