from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Union

from pydantic import ValidationError

from resumeforecast.agents.forecast_schema import OutcomeRecord, VariantHistory
from resumeforecast.core.errors import HistorySourceError

log = logging.getLogger("history")


def sqlite_path_from_database_url(database_url: str) -> str:
    """Convert sqlite:///path into local path."""
    if database_url.startswith("sqlite:///"):
        return database_url.replace("sqlite:///", "")
    if database_url.startswith("sqlite://"):
        return database_url.replace("sqlite://", "")
    # fallback: treat as file
    return database_url


class HistorySource(Protocol):
    """Description: Raw application history per resume variant for one profile."""

    def load_variants(self, profile_id: str, *, min_records: int = 0) -> List[VariantHistory]:
        ...


class InMemoryHistorySource:
    """
    Description: Dict-backed history source.
    Layer: L8
    Input: {profile_id: [VariantHistory, ...]}
    Output: HistorySource
    """

    def __init__(self, data: Optional[Mapping[str, Iterable[VariantHistory]]] = None) -> None:
        self._data: Dict[str, List[VariantHistory]] = {k: list(v) for k, v in (data or {}).items()}

    def add(self, profile_id: str, history: VariantHistory) -> None:
        self._data.setdefault(profile_id, []).append(history)

    def load_variants(self, profile_id: str, *, min_records: int = 0) -> List[VariantHistory]:
        return [h for h in self._data.get(profile_id, []) if len(h.records) >= min_records]


class SqliteHistorySource:
    """
    Description: Read-only view of the application tracking tables in SQLite.
    Layer: L8
    Input: database URL (sqlite:///path)
    Output: VariantHistory lists, newest variant first

    Tables mirror the dashboard's storage: resumes, resume_versions,
    job_applications and application_metrics. Storage failures raise
    HistorySourceError.
    """

    def __init__(self, database_url: Union[str, Path]) -> None:
        self._db_path = sqlite_path_from_database_url(str(database_url))

    def init_schema(self) -> None:
        """
        Description: Create tables if they do not exist.
        Layer: L0
        Input: None
        Output: SQLite schema initialized
        """
        Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        with sqlite3.connect(self._db_path) as con:
            con.executescript(
                """
                CREATE TABLE IF NOT EXISTS resumes (
                    id TEXT PRIMARY KEY,
                    profile_id TEXT NOT NULL,
                    created_at TEXT
                );
                CREATE TABLE IF NOT EXISTS resume_versions (
                    id TEXT PRIMARY KEY,
                    resume_id TEXT NOT NULL REFERENCES resumes(id),
                    title TEXT,
                    created_at TEXT
                );
                CREATE TABLE IF NOT EXISTS job_applications (
                    id TEXT PRIMARY KEY,
                    job_title TEXT,
                    company TEXT,
                    applied_at TEXT,
                    created_at TEXT NOT NULL
                );
                CREATE TABLE IF NOT EXISTS application_metrics (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    application_id TEXT NOT NULL REFERENCES job_applications(id),
                    resume_version_id TEXT NOT NULL REFERENCES resume_versions(id),
                    response_received INTEGER NOT NULL DEFAULT 0,
                    interview_granted INTEGER NOT NULL DEFAULT 0,
                    time_to_response_hours REAL
                );
                """
            )
            con.commit()

    def load_variants(self, profile_id: str, *, min_records: int = 0) -> List[VariantHistory]:
        """
        Description: Load every resume variant of a profile with its outcomes.
        Layer: L8
        Input: profile_id + minimum record count
        Output: VariantHistory list (variants below min_records omitted)
        """
        try:
            with sqlite3.connect(self._db_path) as con:
                versions = con.execute(
                    """
                    SELECT v.id, v.title
                    FROM resume_versions v
                    JOIN resumes r ON r.id = v.resume_id
                    WHERE r.profile_id = ?
                    ORDER BY v.created_at DESC
                    """,
                    (profile_id,),
                ).fetchall()
                if not versions:
                    return []

                ids = [row[0] for row in versions]
                placeholders = ",".join("?" for _ in ids)
                rows = con.execute(
                    f"""
                    SELECT m.resume_version_id,
                           COALESCE(a.applied_at, a.created_at),
                           m.response_received,
                           m.interview_granted,
                           m.time_to_response_hours,
                           a.job_title,
                           a.company
                    FROM application_metrics m
                    JOIN job_applications a ON a.id = m.application_id
                    WHERE m.resume_version_id IN ({placeholders})
                    ORDER BY m.id
                    """,
                    ids,
                ).fetchall()
        except sqlite3.Error as e:
            raise HistorySourceError(f"history store unreadable: {e}") from e

        records: Dict[str, List[OutcomeRecord]] = {vid: [] for vid in ids}
        skipped = 0
        for vid, applied_at, response, interview, hours, job_title, company in rows:
            try:
                rec = OutcomeRecord(
                    variant_id=vid,
                    applied_at=applied_at,
                    response_received=bool(response),
                    interview_granted=bool(interview),
                    response_time_hours=hours,
                    job_title=job_title,
                    company=company,
                )
            except ValidationError as e:
                skipped += 1
                log.warning("Skipping unreadable outcome row for variant %s: %s", vid, e.errors()[0].get("msg"))
                continue
            records[vid].append(rec)
        if skipped:
            log.warning("Skipped %d malformed outcome row(s) for profile %s", skipped, profile_id)

        out: List[VariantHistory] = []
        for vid, title in versions:
            if len(records[vid]) < min_records:
                continue
            out.append(VariantHistory(variant_id=vid, variant_title=title or "Untitled", records=records[vid]))

        log.debug("Loaded %d variant(s) for profile %s", len(out), profile_id)
        return out
