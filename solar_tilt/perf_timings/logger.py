"""
Registro de tiempos en CSV (y JSONL opcional) con buffer.

Un archivo por corrida: ``timings_<run_id>_<fecha>.csv``. El bucle de cuadros
es de un solo hilo, asi que el buffer no necesita candados; solo el logger
global se protege porque ``atexit`` puede cerrarlo desde otro contexto.
"""

from __future__ import annotations

import atexit
import csv
import json
import logging
import os
import threading
import time
import uuid
from dataclasses import asdict, astuple, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO

CSV_HEADER: List[str] = [
    "run_id",
    "step",
    "individual_id",
    "section",
    "start_ns",
    "end_ns",
    "duration_us",
    "extra",
]

_INT_COLUMNS = ("step", "individual_id", "start_ns", "end_ns", "duration_us")
_FALSE_VALUES = {"0", "false", "off", "no", ""}


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() not in _FALSE_VALUES


PERF_TIMINGS_ENABLED = _env_flag("PERF_TIMINGS_ENABLED", "1")
PERF_TIMINGS_JSONL = _env_flag("PERF_TIMINGS_JSONL", "0")

DEFAULT_BUFFER_SIZE = 64
DEFAULT_TIMINGS_DIR = Path(__file__).resolve().parents[1] / "data" / "timings"

_log = logging.getLogger("solar_tilt_opt")


def _encode_extra(extra: Optional[Any]) -> str:
    if extra is None:
        return "{}"
    if isinstance(extra, str):
        return extra.strip() or "{}"
    return json.dumps(extra, separators=(",", ":"), default=str)


def _decode_extra(raw: str) -> Any:
    if not raw.strip():
        return {}
    try:
        return json.loads(raw)
    except ValueError:
        return {"raw": raw}


@dataclass(frozen=True)
class TimingRecord:
    run_id: str
    step: int
    individual_id: int
    section: str
    start_ns: int
    end_ns: int
    duration_us: int
    extra: str

    def as_row(self) -> List[str]:
        return [str(value) for value in astuple(self)]

    def as_jsonl(self) -> str:
        payload: Dict[str, Any] = asdict(self)
        payload["extra"] = _decode_extra(self.extra)
        return json.dumps(payload, separators=(",", ":"))


class TimingLogger:
    """
    Acumula registros de tiempo y los vuelca a disco cada ``buffer_size``
    registros, en ``flush`` o al cerrar.
    """

    def __init__(
        self,
        *,
        run_id: Optional[str] = None,
        enabled: bool = True,
        base_dir: Optional[Path | str] = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        enable_jsonl: bool = False,
    ) -> None:
        self.enabled = bool(enabled)
        self.enable_jsonl = bool(enable_jsonl)
        self.run_id = run_id or uuid.uuid4().hex
        self.base_dir = Path(base_dir) if base_dir else DEFAULT_TIMINGS_DIR
        self.buffer_size = max(1, int(buffer_size))
        stem = f"timings_{self.run_id}_{datetime.now():%Y%m%d_%H%M%S}"
        self.csv_path = self.base_dir / f"{stem}.csv"
        self.jsonl_path = self.base_dir / f"{stem}.jsonl"
        self._pending: List[TimingRecord] = []
        self._csv: Optional[TextIO] = None
        self._jsonl: Optional[TextIO] = None
        self._closed = False
        atexit.register(self.close)

    @property
    def path(self) -> Path:
        return self.csv_path

    def record(
        self,
        *,
        section: str,
        start_ns: Optional[int],
        end_ns: Optional[int],
        step: int = -1,
        individual_id: int = -1,
        extra: Optional[Any] = None,
    ) -> None:
        if not self.enabled or self._closed:
            return
        now = time.perf_counter_ns()
        start = now if start_ns is None else int(start_ns)
        end = max(start, now if end_ns is None else int(end_ns))
        try:
            encoded = _encode_extra(extra)
        except (TypeError, ValueError):
            encoded = json.dumps({"value": str(extra)})
        self._pending.append(
            TimingRecord(
                run_id=self.run_id,
                step=int(step),
                individual_id=int(individual_id),
                section=str(section),
                start_ns=start,
                end_ns=end,
                duration_us=max(1, (end - start) // 1_000),
                extra=encoded,
            )
        )
        if len(self._pending) >= self.buffer_size:
            self.flush()

    def flush(self) -> None:
        if not self.enabled or not self._pending:
            return
        batch, self._pending = self._pending, []
        try:
            self._write(batch)
        except OSError as exc:
            _log.warning("Could not write %d timing records to %s: %s", len(batch), self.base_dir, exc)

    def close(self) -> None:
        if self._closed:
            return
        self.flush()
        for handle in (self._csv, self._jsonl):
            if handle is not None:
                handle.close()
        self._csv = None
        self._jsonl = None
        self._closed = True

    def _write(self, batch: List[TimingRecord]) -> None:
        if self._csv is None:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            is_new = not self.csv_path.exists()
            self._csv = self.csv_path.open("a", newline="", encoding="utf-8")
            if is_new:
                csv.writer(self._csv).writerow(CSV_HEADER)
        csv.writer(self._csv).writerows(record.as_row() for record in batch)
        self._csv.flush()
        if self.enable_jsonl:
            if self._jsonl is None:
                self._jsonl = self.jsonl_path.open("a", encoding="utf-8")
            self._jsonl.writelines(record.as_jsonl() + "\n" for record in batch)
            self._jsonl.flush()


def read_timings_csv(path: Path) -> List[Dict[str, Any]]:
    """Lee un CSV de tiempos y valida la cabecera."""
    path = Path(path)
    with path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        if reader.fieldnames != CSV_HEADER:
            raise ValueError(f"{path} has header {reader.fieldnames}, expected {CSV_HEADER}.")
        rows: List[Dict[str, Any]] = []
        for raw in reader:
            row: Dict[str, Any] = dict(raw)
            for column in _INT_COLUMNS:
                row[column] = int(row[column])
            row["extra"] = _decode_extra(row.get("extra") or "")
            rows.append(row)
    return rows


_GLOBAL_LOGGER: Optional[TimingLogger] = None
_GLOBAL_LOCK = threading.Lock()


def get_timing_logger() -> TimingLogger:
    global _GLOBAL_LOGGER
    with _GLOBAL_LOCK:
        if _GLOBAL_LOGGER is None:
            _GLOBAL_LOGGER = TimingLogger(enabled=PERF_TIMINGS_ENABLED, enable_jsonl=PERF_TIMINGS_JSONL)
        return _GLOBAL_LOGGER


def configure_global_logger(**kwargs: Any) -> TimingLogger:
    """Reemplaza el logger global (cerrando el anterior); util en pruebas."""
    global _GLOBAL_LOGGER
    with _GLOBAL_LOCK:
        if _GLOBAL_LOGGER is not None:
            _GLOBAL_LOGGER.close()
        _GLOBAL_LOGGER = TimingLogger(**kwargs)
        return _GLOBAL_LOGGER


def shutdown_logger() -> None:
    global _GLOBAL_LOGGER
    with _GLOBAL_LOCK:
        if _GLOBAL_LOGGER is not None:
            _GLOBAL_LOGGER.close()
            _GLOBAL_LOGGER = None
