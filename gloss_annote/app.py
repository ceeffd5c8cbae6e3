# gloss_annote/app.py
from __future__ import annotations

import sys
from typing import Optional

from PyQt5.QtWidgets import QApplication, QDialog

from .config import ClientConfig, TokenStore, describe
from .dialogs.login import LoginDialog
from .logger import enable_file_logging, logger
from .main_window import MainWindow
from .store_client import StoreClient


def sign_in(client: StoreClient, token_store: TokenStore, parent=None) -> bool:
    dlg = LoginDialog(client, parent)
    if dlg.exec_() != QDialog.Accepted:
        return False
    token_store.set(client.token or "")
    return True


def run_app(config: Optional[ClientConfig] = None) -> int:
    config = config or ClientConfig.from_env()
    app = QApplication(sys.argv)
    app.setApplicationName("Gloss Annotation Tool")

    if config.log_to_file:
        path = enable_file_logging()
        logger.info("Logging to %s", path)
    logger.info("Client config: %s", describe(config))

    token_store = TokenStore()
    client = StoreClient(
        config.api_url,
        token=token_store.get(),
        timeout_s=config.timeout_s,
        on_unauthorized=token_store.clear,
    )

    # A stored token is tried first; a 401 on the first fetch brings the login back
    if not client.token and not sign_in(client, token_store):
        return 0

    win = MainWindow(client, token_store, config)
    win.show()
    win.start()

    return app.exec_()
