from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QLabel, QLineEdit,
    QComboBox, QPushButton, QHBoxLayout
)
from quizwise.config import load_config, save_config
from quizwise.quiz.messages import translate
from quizwise.quiz.models import LANGUAGES


class SettingsDialog(QDialog):
    def __init__(self, service, parent=None):
        super().__init__(parent)
        self.service = service
        self.setWindowTitle("Settings")
        self.setMinimumWidth(460)

        cfg = load_config()
        self.language = cfg.get("language", "en")

        self.lang_combo = QComboBox()
        self.lang_combo.addItems(list(LANGUAGES))
        self.lang_combo.setCurrentText(self.language)

        self.cli_input = QLineEdit()
        self.cli_input.setPlaceholderText("Gemini CLI path (optional override)")
        self.cli_input.setText(cfg.get("cli_path", ""))

        self.cli_status = QLabel()
        self.auth_status = QLabel()

        refresh_btn = QPushButton("Refresh")
        self.login_btn = QPushButton("Login")
        self.logout_btn = QPushButton("Logout")
        refresh_btn.clicked.connect(lambda: self.refresh_status(force=True))
        self.login_btn.clicked.connect(self.login)
        self.logout_btn.clicked.connect(self.logout)

        save_btn = QPushButton("Save")
        cancel_btn = QPushButton("Cancel")
        save_btn.clicked.connect(self.save)
        cancel_btn.clicked.connect(self.reject)

        layout = QVBoxLayout(self)
        layout.addWidget(QLabel("Language"))
        layout.addWidget(self.lang_combo)
        layout.addWidget(QLabel("Gemini CLI"))
        layout.addWidget(self.cli_input)
        layout.addWidget(self.cli_status)

        auth_row = QHBoxLayout()
        auth_row.addWidget(self.auth_status)
        auth_row.addStretch()
        auth_row.addWidget(refresh_btn)
        auth_row.addWidget(self.login_btn)
        auth_row.addWidget(self.logout_btn)
        layout.addLayout(auth_row)

        btns = QHBoxLayout()
        btns.addStretch()
        btns.addWidget(cancel_btn)
        btns.addWidget(save_btn)
        layout.addLayout(btns)

        self.refresh_status()

    def refresh_status(self, force: bool = False):
        info = self.service.get_cli_path(refresh=force)
        mark = "found" if info["exists"] else "not found"
        self.cli_status.setText(f"{info['path']} ({mark})")

        auth = self.service.check_auth()
        if auth["authenticated"]:
            self.auth_status.setText(f"Signed in: {auth['account'] or 'yes'}")
        else:
            self.auth_status.setText("Not signed in")
        self.logout_btn.setEnabled(auth["authenticated"])

    def login(self):
        result = self.service.open_login()
        if not result["success"]:
            self.auth_status.setText(translate(result["error"], self.language))

    def logout(self):
        result = self.service.logout()
        if not result["success"]:
            self.auth_status.setText(translate(result["error"], self.language))
            return
        self.refresh_status()

    def save(self):
        cfg = load_config()
        old_cli = cfg.get("cli_path", "")
        cfg.update({
            "language": self.lang_combo.currentText(),
            "cli_path": self.cli_input.text().strip(),
        })
        save_config(cfg)
        if cfg["cli_path"] != old_cli:
            self.service.get_cli_path(refresh=True)
        self.accept()
