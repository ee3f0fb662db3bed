# gui.py
import json
import logging
import queue
import threading
from pathlib import Path
from typing import Optional

import tkinter as tk
from tkinter import ttk, filedialog, messagebox

from .config import SorterConfig
from .errors import FitSorterError
from .log import setup_logging
from .models import Outcome, OutcomeKind
from .pipeline import run
from .utils import ensure_path

CONFIG_DIR = ".fitsort"
CONFIG_NAME = "gui_config.json"
MAX_LOG_LINES = 500  # keep widget light


def config_path() -> Path:
    return Path.home() / CONFIG_DIR / CONFIG_NAME


def load_settings(path: Path) -> dict:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def save_settings(path: Path, source: Path, dest_root: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    data = {"source": str(source), "dest": str(dest_root)}
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def describe(outcome: Outcome) -> str:
    if outcome.kind is OutcomeKind.COPIED:
        verb = "COPIED" if outcome.performed else "PLANNED"
        return f"{verb}: {outcome.source.name} -> {outcome.destination}"
    return f"{outcome.kind.value.upper()}: {outcome.source.name} ({outcome.reason})"


class QueueHandler(logging.Handler):
    """Forwards log records to the Tk log pane."""
    def __init__(self, log_q: "queue.Queue[str]"):
        super().__init__(level=logging.WARNING)
        self.log_q = log_q

    def emit(self, record):
        self.log_q.put(self.format(record))


class FitSortGUI(tk.Tk):
    def __init__(self):
        super().__init__()
        self.title("fitsort")
        self.geometry("900x600")

        # Queues for thread-safe communication
        self.log_q: queue.Queue[str] = queue.Queue()
        self.progress_q: queue.Queue[int] = queue.Queue()

        self.worker_thread: Optional[threading.Thread] = None
        self.cancel = threading.Event()

        self._build_ui()
        self._load_config()
        logging.getLogger("fitsorter").addHandler(QueueHandler(self.log_q))
        self._poll_queues()

    # ---------------- UI ----------------
    def _build_ui(self):
        frm = ttk.Frame(self, padding=10)
        frm.pack(fill="x")

        self.src_var = tk.StringVar()
        self.dst_var = tk.StringVar()
        self.dry_run_var = tk.BooleanVar(value=True)
        self.journal_var = tk.BooleanVar(value=False)

        self._dir_picker(frm, "Input folder:", self.src_var, row=0)
        self._dir_picker(frm, "Output root:", self.dst_var, row=1)

        ttk.Checkbutton(frm, text="Dry run", variable=self.dry_run_var)\
            .grid(row=2, column=0, sticky="w", pady=2)
        ttk.Checkbutton(frm, text="Write run journal", variable=self.journal_var)\
            .grid(row=2, column=1, sticky="w", pady=2)

        btns = ttk.Frame(frm)
        btns.grid(row=3, column=0, columnspan=3, sticky="w", pady=8)
        self.btn_start = ttk.Button(btns, text="Start", command=self.on_start)
        self.btn_start.pack(side="left")
        self.btn_stop = ttk.Button(btns, text="Stop", command=self.on_stop, state="disabled")
        self.btn_stop.pack(side="left", padx=(8, 0))
        self.btn_clear = ttk.Button(btns, text="Clear Log", command=lambda: self._clear_text(self.txt_log))
        self.btn_clear.pack(side="left", padx=(8, 0))

        # File counter; the walk is lazy so there is no total
        prog_frame = ttk.Frame(self)
        prog_frame.pack(fill="x", padx=10)
        self.progress = ttk.Progressbar(prog_frame, mode="indeterminate")
        self.progress.pack(fill="x", expand=True, side="left")
        self.lbl_progress = ttk.Label(prog_frame, text="")
        self.lbl_progress.pack(side="left", padx=8)

        self.txt_log = tk.Text(self, height=20, wrap="none")
        self.txt_log.pack(fill="both", expand=True, padx=10, pady=(6, 10))

        self.status_var = tk.StringVar(value="Ready")
        status = ttk.Label(self, textvariable=self.status_var, anchor="w", relief="sunken")
        status.pack(fill="x", side="bottom")

    def _dir_picker(self, parent, label, var, row):
        ttk.Label(parent, text=label).grid(row=row, column=0, sticky="w")
        ent = ttk.Entry(parent, textvariable=var, width=70)
        ent.grid(row=row, column=1, sticky="we", padx=5)
        parent.grid_columnconfigure(1, weight=1)

        def browse():
            path = filedialog.askdirectory()
            if path:
                var.set(path)

        ttk.Button(parent, text="Browse", command=browse).grid(row=row, column=2, padx=5)

    # ---------------- Helpers ----------------
    def _clear_text(self, widget: tk.Text):
        widget.delete("1.0", "end")

    def _trim_lines(self, widget: tk.Text, max_lines: int):
        lines = int(widget.index('end-1c').split('.')[0])
        if lines > max_lines:
            widget.delete("1.0", f"{lines - max_lines}.0")

    def log(self, msg: str):
        self.log_q.put(msg)

    def _poll_queues(self):
        while not self.log_q.empty():
            line = self.log_q.get_nowait()
            self.txt_log.insert("end", line + "\n")
            self.txt_log.see("end")
            self._trim_lines(self.txt_log, MAX_LOG_LINES)

        while not self.progress_q.empty():
            count = self.progress_q.get_nowait()
            self.lbl_progress.config(text=f"{count} files")

        self.after(100, self._poll_queues)

    # ---------------- Actions ----------------
    def on_start(self):
        if self.worker_thread and self.worker_thread.is_alive():
            return
        try:
            source = ensure_path(self.src_var.get())
        except FileNotFoundError as e:
            messagebox.showerror("Error", f"Invalid input folder: {e}")
            return

        dest_input = self.dst_var.get().strip()
        dest_root = Path(dest_input).expanduser().resolve() if dest_input else source / "out"

        config = SorterConfig(
            input_root=source,
            output_root=dest_root,
            dry_run=self.dry_run_var.get(),
            journal=self.journal_var.get(),
        )
        try:
            save_settings(config_path(), source, dest_root)
        except OSError:
            self.log("Could not save settings.")

        self.cancel.clear()
        self.btn_start.config(state="disabled")
        self.btn_stop.config(state="normal")
        self.lbl_progress.config(text="")
        self.progress.start(10)
        self._clear_text(self.txt_log)
        self.status_var.set("Running...")

        self.worker_thread = threading.Thread(target=self._sort_worker, args=(config,), daemon=True)
        self.worker_thread.start()

    def on_stop(self):
        self.cancel.set()
        self.log("Stop requested. Finishing current file...")

    # ---------------- Worker ----------------
    def _sort_worker(self, config: SorterConfig):
        processed = 0

        def on_outcome(outcome: Outcome):
            nonlocal processed
            processed += 1
            if outcome.kind is not OutcomeKind.SKIPPED:
                self.log(describe(outcome))
            self.progress_q.put(processed)

        try:
            summary = run(config, cancel=self.cancel, on_outcome=on_outcome)
            if summary.cancelled:
                self.log("Stopped early.")
            verb = "Planned" if config.dry_run else "Copied"
            self.log(f"{verb} {summary.copied} files, skipped {summary.skipped}, failed {summary.failed}.")
        except FitSorterError as e:
            message = str(e)
            self.log(f"ERROR: {message}")
            self.after(0, lambda: messagebox.showerror("Error", message))
        finally:
            self.after(0, self._finish_worker)

    def _finish_worker(self):
        self.btn_start.config(state="normal")
        self.btn_stop.config(state="disabled")
        self.status_var.set("Ready")
        self.progress.stop()

    # ---------------- Config ----------------
    def _load_config(self):
        data = load_settings(config_path())
        self.src_var.set(data.get("source", ""))
        self.dst_var.set(data.get("dest", ""))


def main():
    setup_logging()
    app = FitSortGUI()
    app.mainloop()


if __name__ == "__main__":
    main()
