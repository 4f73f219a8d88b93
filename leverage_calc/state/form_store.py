import json
import logging
import os
import tempfile
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from leverage_calc.core.logging import get_logger, log_event
from leverage_calc.sizing.models import FORM_FIELDS


logger = get_logger(__name__)


class FormStateStore:
    """
    Persist the seven calculator form fields to a JSON file.

    The file holds a flat object keyed by the form field names. Reads are
    cached by path and mtime so restoring a session does not re-parse the file
    on every request; writes go through a temp file and ``os.replace`` so a
    crash mid-write never leaves a truncated snapshot behind.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._cache_mtime: Optional[float] = None
        self._cache_payload: Dict[str, str] = {}

    def load(self) -> Dict[str, str]:
        try:
            mtime = self.path.stat().st_mtime
        except OSError:
            mtime = None
        with self._lock:
            if mtime is not None and self._cache_mtime == mtime:
                return dict(self._cache_payload)
            payload: Dict[str, str] = {}
            if mtime is not None:
                try:
                    with self.path.open("r", encoding="utf-8") as f:
                        parsed = json.load(f)
                    payload = _sanitize(parsed)
                except (OSError, ValueError) as exc:
                    log_event(
                        logger,
                        "form_state_unreadable",
                        level=logging.WARNING,
                        path=str(self.path),
                        error=str(exc),
                    )
                    payload = {}
            self._cache_mtime = mtime
            self._cache_payload = payload
            return dict(payload)

    def save(self, snapshot: Mapping[str, Any]) -> Dict[str, str]:
        payload = _sanitize(snapshot)
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".form_state.", dir=str(self.path.parent))
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2, sort_keys=True)
                os.replace(tmp_name, self.path)
            except BaseException:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
                raise
            self._cache_mtime = self.path.stat().st_mtime
            self._cache_payload = payload
        log_event(logger, "form_state_saved", level=logging.DEBUG, path=str(self.path))
        return dict(payload)

    def clear(self) -> None:
        with self._lock:
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass
            self._cache_mtime = None
            self._cache_payload = {}


def _sanitize(raw: Any) -> Dict[str, str]:
    """Keep only known form keys, stringifying scalar values."""
    if not isinstance(raw, Mapping):
        return {}
    clean: Dict[str, str] = {}
    for key in FORM_FIELDS:
        value = raw.get(key)
        if value is None or isinstance(value, (dict, list)):
            continue
        if isinstance(value, Enum):
            value = value.value
        clean[key] = str(value)
    return clean
