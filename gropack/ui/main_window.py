import os

from PySide6.QtCore import Qt, QObject, QThread, Signal
from PySide6.QtWidgets import (
    QMainWindow,
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QFileDialog,
    QComboBox,
    QListWidget,
    QListWidgetItem,
    QPlainTextEdit,
    QSplitter,
    QMessageBox,
    QProgressBar,
    QCheckBox
)

from gropack.config import APP_NAME, APP_VERSION, DEFAULT_STORE_EXTENSIONS, PROFILES_DIR
from gropack.core.profiles import (
    ensure_default_profiles_on_disk,
    load_profile,
    save_profile,
    default_profiles,
    GameProfile,
)
from gropack.core.reporting import export_run
from gropack.core.scanner import run
from gropack.models import PackOptions


def _split_list(text):
    return [x.strip() for x in text.split(",") if x.strip()]


class PackWorker(QObject):
    progress = Signal(int, int, str)   # current, total, message
    message = Signal(str)
    finished = Signal(object, object)  # result, error

    def __init__(self, options, apply_game_flags=False, profiles_dir=None):
        super().__init__()
        self.options = options
        self.apply_game_flags = apply_game_flags
        self.profiles_dir = profiles_dir

    def run(self):
        def _progress(i, total, item):
            msg = f"{i}/{total}  {item.arcname} ({'deflate' if item.compress else 'store'})"
            self.progress.emit(i, total, msg)

        try:
            result = run(
                self.options,
                log_cb=self.message.emit,
                progress_cb=_progress,
                profiles_dir=self.profiles_dir,
                apply_game_flags=self.apply_game_flags,
            )
        except Exception as e:
            # archive write failures surface in the window
            self.finished.emit(None, e)
            return
        self.finished.emit(result, None)


class MainWindow(QMainWindow):
    def __init__(self, profiles_dir=None):
        super().__init__()
        self.setWindowTitle(f"{APP_NAME} (v{APP_VERSION})")
        self.setMinimumSize(1020, 680)

        # State
        self._last_result = None
        self._pack_thread = None
        self._pack_worker = None
        self._profiles_dir = str(profiles_dir or PROFILES_DIR)

        # --- Root widget
        root = QWidget()
        self.setCentralWidget(root)

        main_layout = QVBoxLayout(root)
        main_layout.setContentsMargins(12, 12, 12, 12)
        main_layout.setSpacing(10)

        # -------------------------
        # Top: Game root / Output rows
        # -------------------------
        self.root_edit = QLineEdit()
        self.root_edit.setPlaceholderText("Select the game folder...")

        btn_root = QPushButton("Browse...")
        btn_root.clicked.connect(self.pick_root_folder)

        root_row = QHBoxLayout()
        root_row.addWidget(QLabel("Game:"))
        root_row.addWidget(self.root_edit, 1)
        root_row.addWidget(btn_root)

        self.output_edit = QLineEdit()
        self.output_edit.setPlaceholderText("Output GRO file (absolute or relative to the game folder)...")

        btn_output = QPushButton("Browse...")
        btn_output.clicked.connect(self.pick_output_file)

        output_row = QHBoxLayout()
        output_row.addWidget(QLabel("Output:"))
        output_row.addWidget(self.output_edit, 1)
        output_row.addWidget(btn_output)

        main_layout.addLayout(root_row)
        main_layout.addLayout(output_row)

        # -------------------------
        # Sources / ignore / store
        # -------------------------
        self.sources_edit = QLineEdit()
        self.sources_edit.setPlaceholderText("Files to scan (comma-separated) e.g. Levels/MyLevel.wld, Bin/MyMod.dll")

        btn_sources = QPushButton("Add...")
        btn_sources.clicked.connect(self.pick_sources)

        sources_row = QHBoxLayout()
        sources_row.addWidget(QLabel("Scan:"))
        sources_row.addWidget(self.sources_edit, 1)
        sources_row.addWidget(btn_sources)

        self.ignore_edit = QLineEdit()
        self.ignore_edit.setPlaceholderText("Already available resources or GRO archives (comma-separated)")

        self.store_edit = QLineEdit()
        self.store_edit.setText(", ".join(DEFAULT_STORE_EXTENSIONS))
        self.store_edit.setMaximumWidth(220)

        deps_row = QHBoxLayout()
        deps_row.addWidget(QLabel("Ignore:"))
        deps_row.addWidget(self.ignore_edit, 1)
        deps_row.addWidget(QLabel("Store:"))
        deps_row.addWidget(self.store_edit)

        main_layout.addLayout(sources_row)
        main_layout.addLayout(deps_row)

        # -------------------------
        # Flags + buttons
        # -------------------------
        mid_row = QHBoxLayout()

        self.cb_ssr = QCheckBox("Revolution world")
        self.cb_ini = QCheckBox("Pack model configs")
        self.cb_ogg = QCheckBox("OGG replaces MP3")
        self.cb_detect = QCheckBox("Ignore game archives")
        self.cb_detect.setChecked(True)
        self.cb_game_flags = QCheckBox("Use game flags")
        self.cb_game_flags.setToolTip("Raise the flags of the detected game profile (e.g. ssr, ogg)")
        self.cb_detect.toggled.connect(self.cb_game_flags.setEnabled)

        mid_row.addWidget(self.cb_ssr)
        mid_row.addWidget(self.cb_ini)
        mid_row.addWidget(self.cb_ogg)
        mid_row.addWidget(self.cb_detect)
        mid_row.addWidget(self.cb_game_flags)

        mid_row.addStretch(1)

        self.btn_scan = QPushButton("Scan")
        self.btn_scan.clicked.connect(self.on_scan_clicked)

        self.btn_package = QPushButton("Package")
        self.btn_package.clicked.connect(self.on_package_clicked)

        self.btn_export = QPushButton("Export Report")
        self.btn_export.setEnabled(False)  # enabled after a run
        self.btn_export.clicked.connect(self.on_export_clicked)

        mid_row.addWidget(self.btn_scan)
        mid_row.addWidget(self.btn_package)
        mid_row.addWidget(self.btn_export)

        main_layout.addLayout(mid_row)

        # -------------------------
        # Game profile editor
        # -------------------------
        self.profile_combo = QComboBox()

        self.profile_detect_edit = QLineEdit()
        self.profile_detect_edit.setPlaceholderText("Files identifying the game (comma-separated) e.g. SE1_00.gro")

        self.profile_archives_edit = QLineEdit()
        self.profile_archives_edit.setPlaceholderText("Standard archives of the game (comma-separated)")

        self.profile_flags_edit = QLineEdit()
        self.profile_flags_edit.setPlaceholderText("Flags raised for worlds of this game e.g. ssr, ogg")

        prof_btn_row = QHBoxLayout()
        prof_btn_row.addWidget(QLabel("Game profile:"))
        prof_btn_row.addWidget(self.profile_combo)

        self.btn_profile_reload = QPushButton("Reload Profile")
        self.btn_profile_reload.clicked.connect(self.on_reload_profile_clicked)

        self.btn_profile_save = QPushButton("Save Profile")
        self.btn_profile_save.clicked.connect(self.on_save_profile_clicked)

        prof_btn_row.addWidget(self.btn_profile_reload)
        prof_btn_row.addWidget(self.btn_profile_save)
        prof_btn_row.addStretch(1)

        prof_edit_layout = QVBoxLayout()
        prof_edit_layout.addLayout(prof_btn_row)
        prof_edit_layout.addWidget(self.profile_detect_edit)
        prof_edit_layout.addWidget(self.profile_archives_edit)
        prof_edit_layout.addWidget(self.profile_flags_edit)

        main_layout.addLayout(prof_edit_layout)

        # -------------------------
        # Progress
        # -------------------------
        prog_row = QHBoxLayout()

        self.progress = QProgressBar()
        self.progress.setRange(0, 100)
        self.progress.setValue(0)

        prog_row.addWidget(QLabel("Progress:"))
        prog_row.addWidget(self.progress, 1)

        main_layout.addLayout(prog_row)

        # -------------------------
        # Bottom: Results + Logs
        # -------------------------
        splitter = QSplitter(Qt.Horizontal)

        results_panel = QWidget()
        results_layout = QVBoxLayout(results_panel)
        results_layout.setContentsMargins(0, 0, 0, 0)

        results_layout.addWidget(QLabel("Results"))
        self.results_list = QListWidget()
        results_layout.addWidget(self.results_list, 1)

        logs_panel = QWidget()
        logs_layout = QVBoxLayout(logs_panel)
        logs_layout.setContentsMargins(0, 0, 0, 0)

        logs_layout.addWidget(QLabel("Log"))
        self.log_box = QPlainTextEdit()
        self.log_box.setReadOnly(True)
        self.log_box.setPlaceholderText("Logs will appear here...")
        logs_layout.addWidget(self.log_box, 1)

        splitter.addWidget(results_panel)
        splitter.addWidget(logs_panel)
        splitter.setSizes([600, 420])

        main_layout.addWidget(splitter, 1)

        self.log("Ready. Choose the game folder and files, then Scan / Package.")

        # Stable IDs for UI tests
        self.root_edit.setObjectName("root_edit")
        self.output_edit.setObjectName("output_edit")
        self.sources_edit.setObjectName("sources_edit")
        self.ignore_edit.setObjectName("ignore_edit")
        self.store_edit.setObjectName("store_edit")
        self.btn_scan.setObjectName("btn_scan")
        self.btn_package.setObjectName("btn_package")
        self.btn_export.setObjectName("btn_export")
        self.results_list.setObjectName("results_list")
        self.log_box.setObjectName("log_box")
        self.progress.setObjectName("progress")

        ensure_default_profiles_on_disk(self._profiles_dir)

        for name in default_profiles():
            self.profile_combo.addItem(name)
        self.profile_combo.currentTextChanged.connect(self.on_profile_changed)
        self.on_profile_changed(self.profile_combo.currentText())

    # -------------------------
    # UI Helpers
    # -------------------------
    def log(self, msg: str):
        self.log_box.appendPlainText(msg)

    def add_result(self, level: str, message: str):
        text = f"[{level}] {message}"
        item = QListWidgetItem(text)

        lvl = level.upper().strip()
        if lvl == "ERROR":
            item.setForeground(Qt.red)
        elif lvl == "WARNING":
            item.setForeground(Qt.darkYellow)
        else:
            item.setForeground(Qt.darkGreen)

        self.results_list.addItem(item)

    def pick_root_folder(self):
        folder = QFileDialog.getExistingDirectory(self, "Select Game Folder")
        if folder:
            self.root_edit.setText(os.path.normpath(folder))
            self.log(f"Game folder set: {folder}")

    def pick_output_file(self):
        path, _ = QFileDialog.getSaveFileName(self, "Output GRO", self.root_edit.text(), "GRO archives (*.gro)")
        if path:
            self.output_edit.setText(os.path.normpath(path))
            self.log(f"Output set: {path}")

    def pick_sources(self):
        root = self.root_edit.text().strip()
        paths, _ = QFileDialog.getOpenFileNames(self, "Files to Scan", root)
        if not paths:
            return

        current = _split_list(self.sources_edit.text())
        for p in paths:
            try:
                rel = os.path.relpath(p, root).replace("\\", "/") if root else p
            except ValueError:
                rel = p
            if rel not in current:
                current.append(rel)
        self.sources_edit.setText(", ".join(current))

    def _flags(self, deps_only: bool):
        flags = []
        if self.cb_ssr.isChecked():
            flags.append("ssr")
        if self.cb_ini.isChecked():
            flags.append("ini")
        if self.cb_ogg.isChecked():
            flags.append("ogg")
        if self.cb_detect.isChecked():
            flags.append("gro")
        if deps_only:
            flags.append("dep")
        return flags

    def _use_game_flags(self) -> bool:
        return self.cb_detect.isChecked() and self.cb_game_flags.isChecked()

    def _read_options(self, deps_only: bool) -> PackOptions:
        return PackOptions(
            root=self.root_edit.text().strip(),
            output=self.output_edit.text().strip(),
            sources=_split_list(self.sources_edit.text()),
            store_extensions=_split_list(self.store_edit.text()),
            ignore=_split_list(self.ignore_edit.text()),
            flags=self._flags(deps_only),
        )

    def _set_busy(self, busy: bool):
        self.btn_scan.setEnabled(not busy)
        self.btn_package.setEnabled(not busy)
        self.btn_export.setEnabled(not busy and self._last_result is not None)

    def _show_issues(self, issues):
        def _sort_key(r):
            lvl = (r.level or "INFO").upper()
            pri = {"ERROR": 0, "WARNING": 1, "INFO": 2}.get(lvl, 3)
            return (pri, r.code, r.relpath or "")

        for r in sorted(issues, key=_sort_key):
            suffix = f" ({r.relpath})" if r.relpath and r.relpath not in r.message else ""
            self.add_result(r.level, f"{r.code}: {r.message}{suffix}")

    # -------------------------
    # Scan (dependencies only, runs in place)
    # -------------------------
    def on_scan_clicked(self):
        self.results_list.clear()
        options = self._read_options(deps_only=True)

        self.log("---- SCAN START ----")
        self.log(f"Game:    {options.root}")
        self.log(f"Sources: {', '.join(options.sources)}")

        try:
            result = run(
                options,
                log_cb=self.log,
                profiles_dir=self._profiles_dir,
                apply_game_flags=self._use_game_flags(),
            )
        except Exception as e:
            self.add_result("ERROR", f"Scan failed: {e}")
            self.log(f"ERROR: {e}")
            return

        self._show_issues(result.issues)

        if result.ctx is None:
            self.add_result("ERROR", "Scan blocked due to errors.")
            self.log("---- SCAN BLOCKED ----")
            return

        scheduled = result.ctx.scheduled
        self.add_result("INFO", f"Standard dependencies: {len(result.ctx.depends)}")
        self.add_result("INFO", f"Files to pack: {len(scheduled)} ({len(result.missing)} missing on disk)")
        for f in scheduled[:50]:
            self.add_result("INFO", f"  {f.path}")
        if len(scheduled) > 50:
            self.add_result("INFO", f"... +{len(scheduled) - 50} more")

        self._last_result = result
        self.btn_export.setEnabled(True)
        self.log("---- SCAN DONE ----")

    # -------------------------
    # Package (background worker)
    # -------------------------
    def on_package_clicked(self):
        options = self._read_options(deps_only=False)
        if not options.output:
            QMessageBox.information(self, "No Output", "Choose an output GRO file first.")
            return

        self.results_list.clear()
        self.progress.setValue(0)
        self._set_busy(True)

        self.log("---- PACKAGING START ----")

        self._pack_thread = QThread()
        self._pack_worker = PackWorker(
            options,
            apply_game_flags=self._use_game_flags(),
            profiles_dir=self._profiles_dir,
        )
        self._pack_worker.moveToThread(self._pack_thread)

        self._pack_thread.started.connect(self._pack_worker.run)
        self._pack_worker.progress.connect(self._on_pack_progress)
        self._pack_worker.message.connect(self.log)
        self._pack_worker.finished.connect(self._on_pack_finished)

        self._pack_worker.finished.connect(self._pack_thread.quit)
        self._pack_worker.finished.connect(self._pack_worker.deleteLater)
        self._pack_thread.finished.connect(self._pack_thread.deleteLater)

        self._pack_thread.start()

    def _on_pack_progress(self, current: int, total: int, message: str):
        pct = int((current / max(total, 1)) * 100)
        self.progress.setValue(pct)
        # Keep log readable
        if pct % 10 == 0 or current == 1 or current == total:
            self.log(message)

    def _on_pack_finished(self, result, error):
        if error is not None:
            self._set_busy(False)
            self.add_result("ERROR", f"PACK_FAILED: {error}")
            self.log(f"ERROR: {error}")
            self.log("---- PACKAGING FAILED ----")
            return

        self._last_result = result
        self._set_busy(False)
        self._show_issues(result.issues)

        if result.summary is not None and result.output:
            s = result.summary
            self.add_result("INFO", f"Pack done: packed={s.packed}, missing={s.missing}")
            self.add_result("INFO", f"Archive written: {result.output}")
            self.progress.setValue(100)
        else:
            self.add_result("ERROR", "Nothing was packed.")

        self.log("---- PACKAGING DONE ----")

    def on_export_clicked(self):
        result = self._last_result
        if result is None or result.ctx is None:
            QMessageBox.information(self, "Nothing to Export", "Run Scan or Package first.")
            return

        base = result.output or os.path.join(result.ctx.root, "gropack")
        stem = os.path.splitext(base)[0]

        try:
            written = export_run(result, stem + ".manifest.json", stem + ".report.html")
        except Exception as e:
            self.add_result("ERROR", f"EXPORT_FAILED: {e}")
            QMessageBox.critical(self, "Export Failed", f"Export failed:\n{e}")
            return

        for path in written:
            self.add_result("INFO", f"Written: {path}")
            self.log(f"Exported: {path}")
        QMessageBox.information(self, "Export Complete", "\n".join(written))

    # -------------------------
    # Game profiles
    # -------------------------
    def on_profile_changed(self, name: str):
        try:
            prof = load_profile(self._profiles_dir, name)
        except Exception:
            # fallback to defaults if disk load fails
            prof = default_profiles().get(name, list(default_profiles().values())[0])

        self._apply_profile_to_editor(prof)
        self.log(f"Profile loaded: {prof.name}")

    def _apply_profile_to_editor(self, prof: GameProfile):
        self.profile_detect_edit.setText(", ".join(prof.detect_files))
        self.profile_archives_edit.setText(", ".join(prof.ignore_archives))
        self.profile_flags_edit.setText(", ".join(prof.flags))

    def _read_profile_from_editor(self) -> GameProfile:
        name = self.profile_combo.currentText().strip() or "Custom"
        return GameProfile(
            name=name,
            detect_files=_split_list(self.profile_detect_edit.text()),
            ignore_archives=_split_list(self.profile_archives_edit.text()),
            flags=[f.lower() for f in _split_list(self.profile_flags_edit.text())],
        )

    def on_reload_profile_clicked(self):
        self.on_profile_changed(self.profile_combo.currentText())

    def on_save_profile_clicked(self):
        prof = self._read_profile_from_editor()
        try:
            prof.scan_flags()
            path = save_profile(self._profiles_dir, prof)
        except (OSError, ValueError) as e:
            QMessageBox.critical(self, "Save Failed", str(e))
            return
        self.add_result("INFO", f"Profile saved: {path}")
        self.log(f"Profile saved: {path}")
