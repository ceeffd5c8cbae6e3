# gloss_annote/dialogs/login.py
from __future__ import annotations

from PyQt5.QtCore import Qt
from PyQt5.QtWidgets import (
    QDialog,
    QDialogButtonBox,
    QLabel,
    QLineEdit,
    QVBoxLayout,
)

from ..logger import logger
from ..store_client import AuthenticationError, StoreClient, StoreError


class LoginDialog(QDialog):
    """
    Asks for the shared access password and exchanges it for a bearer token.
    On success the token is on client.token and the dialog is accepted.
    """

    def __init__(self, client: StoreClient, parent=None, message: str = ""):
        super().__init__(parent)
        self.setWindowTitle("Gloss Annotation Tool - Sign in")
        self.setModal(True)
        self.resize(400, 180)

        self._client = client
        self._build_ui()
        if message:
            self._show_error(message)

    # ---------------- UI ----------------

    def _build_ui(self):
        layout = QVBoxLayout(self)
        layout.setSpacing(10)

        title = QLabel("Gloss Annotation Tool")
        title.setAlignment(Qt.AlignCenter)
        title.setStyleSheet("font-size: 16px; font-weight: bold;")
        layout.addWidget(title)

        self.password = QLineEdit()
        self.password.setEchoMode(QLineEdit.Password)
        self.password.setPlaceholderText("Access password")
        self.password.returnPressed.connect(self._on_accept)
        layout.addWidget(self.password)

        self.error_label = QLabel("")
        self.error_label.setStyleSheet("color: #EF5350;")
        self.error_label.setWordWrap(True)
        self.error_label.hide()
        layout.addWidget(self.error_label)

        self.buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        self.buttons.button(QDialogButtonBox.Ok).setText("Sign in")
        self.buttons.accepted.connect(self._on_accept)
        self.buttons.rejected.connect(self.reject)
        layout.addWidget(self.buttons)

        for btn in self.buttons.buttons():
            btn.setCursor(Qt.PointingHandCursor)

    def _show_error(self, text: str) -> None:
        self.error_label.setText(text)
        self.error_label.show()

    # ---------------- Actions ----------------

    def _on_accept(self):
        pw = self.password.text()
        if not pw:
            self._show_error("Please enter the password.")
            return

        self.buttons.setEnabled(False)
        self.password.setEnabled(False)
        try:
            self._client.login(pw)
        except AuthenticationError:
            self._show_error("Sign-in failed. Please check the password.")
            return
        except StoreError as e:
            logger.warning("Login failed: %s", e)
            self._show_error("Cannot connect to the server. Please try again later.")
            return
        finally:
            self.buttons.setEnabled(True)
            self.password.setEnabled(True)

        self.accept()
