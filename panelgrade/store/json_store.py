"""
JSON document store.

Users, grade sheets and the venue list live together in a single JSON
document. Every write is a read-modify-write of the whole document while
holding an exclusive lock on a sidecar `.lock` file, so writers in other
processes wait their turn. The file is saved through a temporary file and
an atomic rename, so a reader never sees a half-written file.
"""

import fcntl
import os
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import structlog
from pydantic import BaseModel, Field, ValidationError

from panelgrade.errors import PanelGradeError
from panelgrade.models import DEFAULT_VENUES, Backup, GradeSheet, User, UserRole

log = structlog.get_logger(__name__)


class StoreError(PanelGradeError):
    """Raised when the store file cannot be read or written."""

    def __init__(self, message: str, path: str | Path, cause: Exception | None = None):
        self.path = str(path)
        self.cause = cause
        super().__init__(f"Store '{path}': {message}")


class StoreDocument(BaseModel):
    """The on-disk layout of the store."""

    users: list[User] = Field(default_factory=list)
    grade_sheets: list[GradeSheet] = Field(default_factory=list)
    venues: list[str] = Field(default_factory=lambda: list(DEFAULT_VENUES))


DEFAULT_USERS: tuple[User, ...] = (
    User(id="u_admin_01", name="Admin User", email="admin@example.com", role=UserRole.ADMIN),
    User(
        id="u_ca_01",
        name="Course Adviser",
        email="ca@example.com",
        role=UserRole.COURSE_ADVISER,
    ),
    User(id="u_p_01", name="Panel User 1", email="panel1@example.com", role=UserRole.PANEL),
    User(id="u_p_02", name="Panel User 2", email="panel2@example.com", role=UserRole.PANEL),
    User(id="u_p_03", name="Panel User 3", email="panel3@example.com", role=UserRole.PANEL),
)


class JsonStore:
    """
    File-backed store holding one StoreDocument.

    A store opened on a path that does not exist yet starts with the
    default accounts so that an administrator can log in and set up
    the rest.
    """

    def __init__(self, path: Path | str, seed_defaults: bool = True):
        """
        Initialize the store.

        Args:
            path: Location of the JSON document.
            seed_defaults: Whether a new store gets the default accounts.
        """
        self._path = Path(path)
        self._lock = threading.RLock()
        self._seed_defaults = seed_defaults

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> StoreDocument:
        """Load the current document."""
        with self._lock:
            return self._load()

    @contextmanager
    def transaction(self) -> Iterator[StoreDocument]:
        """
        Open the document for a read-modify-write.

        The document is saved when the block exits normally; an
        exception leaves the file untouched.
        """
        with self._lock, self._file_lock():
            document = self._load()
            yield document
            self._save(document)

    def backup(self) -> Backup:
        """Snapshot every user and grade sheet."""
        document = self.read()
        return Backup(
            users=tuple(document.users),
            grade_sheets=tuple(document.grade_sheets),
            venues=tuple(document.venues),
        )

    def restore(self, backup: Backup) -> None:
        """Replace the whole store with a backup."""
        with self.transaction() as document:
            document.users = list(backup.users)
            document.grade_sheets = list(backup.grade_sheets)
            document.venues = list(backup.venues)
        log.info(
            "store_restored",
            path=str(self._path),
            users=len(backup.users),
            grade_sheets=len(backup.grade_sheets),
        )

    def venues(self) -> list[str]:
        """Venues offered when scheduling a defense."""
        return list(self.read().venues)

    def add_venue(self, venue: str) -> bool:
        """
        Append a venue to the list unless it is already there.

        Returns:
            Whether the venue was added.
        """
        venue = venue.strip()
        if not venue:
            return False
        with self.transaction() as document:
            if venue in document.venues:
                return False
            document.venues.append(venue)
        log.info("venue_added", venue=venue)
        return True

    @contextmanager
    def _file_lock(self) -> Iterator[None]:
        lock_path = self._path.with_name(self._path.name + ".lock")
        try:
            lock_path.parent.mkdir(parents=True, exist_ok=True)
            handle = open(lock_path, "a", encoding="utf-8")
        except OSError as e:
            raise StoreError(f"Cannot open lock file: {e}", self._path, e) from e
        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
            yield
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
            handle.close()

    def _load(self) -> StoreDocument:
        if not self._path.exists():
            users = list(DEFAULT_USERS) if self._seed_defaults else []
            if users:
                log.debug("store_seeded", path=str(self._path), users=len(users))
            return StoreDocument(users=users)

        try:
            return StoreDocument.model_validate_json(self._path.read_text(encoding="utf-8"))
        except ValidationError as e:
            raise StoreError("Document is corrupted or has an invalid layout", self._path, e) from e
        except OSError as e:
            raise StoreError(f"Cannot read file: {e}", self._path, e) from e

    def _save(self, document: StoreDocument) -> None:
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(document.model_dump_json(indent=2), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise StoreError(f"Cannot write file: {e}", self._path, e) from e
