import os
import sys
import threading

import pandas as pd

from roadmap import RequiresRemix, RoadmapState


PROGRESS_FILENAME = "roadmap_progress.csv"
_COLUMNS = ["project_id", "rdmp_req_remix", "rdmp_current_step"]

_BOOL_TRUE = {"true", "1", "yes", "y"}
_BOOL_FALSE = {"false", "0", "no", "n"}


def _coerce_req_remix(raw) -> bool | None:
    """CSV cell -> persisted tri-state. Blank or unrecognized -> None."""
    if raw is None or (not isinstance(raw, str) and pd.isna(raw)):
        return None
    if isinstance(raw, bool):
        return raw
    s = str(raw).strip().lower()
    if s in _BOOL_TRUE:
        return True
    if s in _BOOL_FALSE:
        return False
    return None


class ProjectStore:
    """
    Per-project roadmap progress (remix answer + current step) kept in a CSV.

    The whole file is read once at construction and rewritten on each
    effective save. Concurrent saves are serialized; the last one wins.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()
        self._rows: dict[str, dict] = self._read()

    def _read(self) -> dict[str, dict]:
        if not os.path.isfile(self.path):
            return {}
        try:
            df = pd.read_csv(self.path, dtype=str, keep_default_na=False)
        except pd.errors.EmptyDataError:
            return {}
        for col in _COLUMNS:
            if col not in df.columns:
                df[col] = ""
        rows: dict[str, dict] = {}
        for _, row in df.iterrows():
            pid = str(row["project_id"]).strip()
            if not pid:
                continue
            rows[pid] = {
                "rdmp_req_remix": _coerce_req_remix(row["rdmp_req_remix"]),
                "rdmp_current_step": str(row["rdmp_current_step"]).strip(),
            }
        return rows

    def _write(self) -> None:
        records = [
            {
                "project_id": pid,
                "rdmp_req_remix": "" if r["rdmp_req_remix"] is None else str(r["rdmp_req_remix"]).lower(),
                "rdmp_current_step": r["rdmp_current_step"],
            }
            for pid, r in sorted(self._rows.items())
        ]
        df = pd.DataFrame(records, columns=_COLUMNS)
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        df.to_csv(tmp_path, index=False)
        os.replace(tmp_path, self.path)

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

    def load_roadmap_state(self, project_id: str) -> RoadmapState:
        """Stored progress for a project; the initial state if there is none."""
        with self._lock:
            row = self._rows.get(project_id)
        if row is None:
            return RoadmapState()
        return RoadmapState(
            requires_remix=RequiresRemix.from_stored(row["rdmp_req_remix"]),
            current_step_key=row["rdmp_current_step"],
        )

    def save_roadmap_state(self, project_id: str, state: RoadmapState) -> bool:
        """
        Persist the remix answer and current step (never the open step).

        Returns True when the stored values changed, False when the write
        was skipped because nothing differed.
        """
        new_row = {
            "rdmp_req_remix": state.requires_remix.to_stored(),
            "rdmp_current_step": state.current_step_key,
        }
        with self._lock:
            if self._rows.get(project_id) == new_row:
                return False
            previous = self._rows.get(project_id)
            self._rows[project_id] = new_row
            try:
                self._write()
            except OSError as exc:
                if previous is None:
                    self._rows.pop(project_id, None)
                else:
                    self._rows[project_id] = previous
                print(f"[WARN] Failed to save roadmap progress for {project_id}: {exc}", file=sys.stderr)
                raise
        return True
