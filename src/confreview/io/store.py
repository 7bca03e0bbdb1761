"""Persistent document store for the review workflow, backed by SQLite.

The store plays the part of the abstract, review and configuration
collaborators.  Uniqueness of reviewer assignments and of reviews per
``(abstract, reviewer)`` pair is enforced by table constraints so that
races between a check and an insert cannot produce duplicates.  All
read-modify-write sequences run inside :meth:`ReviewStore.transaction`,
which takes SQLite's write lock up front (``BEGIN IMMEDIATE``).
"""

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    before_sleep_log,
)

from ..config.settings import settings
from ..core.errors import ConflictError, DuplicateReviewError, NotFoundError
from ..core.models import (
    Abstract,
    AbstractDraft,
    AbstractStatus,
    AssignmentRule,
    EmailKind,
    OPEN_STATUSES,
    PendingEmail,
    Recommendation,
    Review,
    Reviewer,
    ScoreCriterion,
    utc_now,
)
from ..utils.logging import get_logger

logger = get_logger(__name__)


def is_transient_store_error(exc: BaseException) -> bool:
    """True for lock contention errors that are worth retrying."""
    if not isinstance(exc, sqlite3.OperationalError):
        return False
    message = str(exc).lower()
    return "locked" in message or "busy" in message


# Applied around whole units of work. Workflow errors never match.
store_retry = retry(
    stop=stop_after_attempt(settings.max_retries),
    wait=wait_exponential(multiplier=settings.retry_backoff_factor, max=settings.retry_max_wait),
    retry=retry_if_exception(is_transient_store_error),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class ReviewStore:
    """
    SQLite-backed store for abstracts, reviews and review configuration.

    Holds abstracts with their assigned reviewer set, reviews, the
    reviewer directory, assignment rules, round-robin cursors, the
    reviewer configuration document and the pending email queue.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        if str(db_path) != ":memory:":
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(
            str(self.db_path), isolation_level=None, check_same_thread=False, timeout=5.0
        )
        self.conn.row_factory = sqlite3.Row
        # Performance options
        self.conn.execute("PRAGMA journal_mode = WAL")
        self.conn.execute("PRAGMA synchronous = NORMAL")
        self.conn.execute("PRAGMA foreign_keys = ON")
        self._lock = threading.RLock()
        self._depth = 0
        self._init_schema()

    def _init_schema(self) -> None:
        self.conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS abstracts (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                abstract_code TEXT NOT NULL UNIQUE,
                submitter_id TEXT NOT NULL,
                submitter_name TEXT NOT NULL DEFAULT '',
                submitter_email TEXT NOT NULL,
                registration_id TEXT NOT NULL,
                track TEXT NOT NULL,
                category TEXT,
                subcategory TEXT,
                title TEXT NOT NULL,
                word_count INTEGER,
                content TEXT NOT NULL,
                status TEXT NOT NULL,
                approved_for TEXT,
                average_score REAL,
                decision_at TEXT,
                submitted_at TEXT NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_abstracts_status ON abstracts(status);
            CREATE INDEX IF NOT EXISTS idx_abstracts_submitter ON abstracts(submitter_id);

            CREATE TABLE IF NOT EXISTS abstract_reviewers (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                abstract_id INTEGER NOT NULL,
                reviewer_id TEXT NOT NULL,
                assigned_at TEXT NOT NULL,
                FOREIGN KEY (abstract_id) REFERENCES abstracts(id),
                UNIQUE(abstract_id, reviewer_id)
            );

            CREATE INDEX IF NOT EXISTS idx_assignments_reviewer ON abstract_reviewers(reviewer_id);

            CREATE TABLE IF NOT EXISTS reviews (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                abstract_id INTEGER NOT NULL,
                abstract_code TEXT NOT NULL,
                reviewer_id TEXT NOT NULL,
                track TEXT NOT NULL,
                category TEXT,
                subcategory TEXT,
                scores TEXT NOT NULL,
                total_score INTEGER,
                comments TEXT NOT NULL DEFAULT '',
                recommendation TEXT NOT NULL,
                submitted_at TEXT NOT NULL,
                updated_at TEXT,
                FOREIGN KEY (abstract_id) REFERENCES abstracts(id),
                UNIQUE(abstract_id, reviewer_id)
            );

            CREATE TABLE IF NOT EXISTS reviewers (
                reviewer_id TEXT PRIMARY KEY,
                name TEXT NOT NULL DEFAULT '',
                email TEXT NOT NULL DEFAULT '',
                active BOOLEAN NOT NULL DEFAULT TRUE,
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS assignment_rules (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                track TEXT NOT NULL,
                category TEXT,
                subcategory TEXT,
                reviewer_ids TEXT NOT NULL,
                policy TEXT,
                reviewer_count INTEGER
            );

            CREATE TABLE IF NOT EXISTS assignment_cursors (
                track TEXT PRIMARY KEY,
                position INTEGER NOT NULL DEFAULT 0,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS reviewer_config (
                id INTEGER PRIMARY KEY CHECK (id = 1),
                document TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS pending_emails (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                abstract_code TEXT NOT NULL,
                kind TEXT NOT NULL,
                created_at TEXT NOT NULL
            );
            """
        )

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator["ReviewStore"]:
        """Run the enclosed block atomically.

        The outermost call opens an immediate write transaction; nested
        calls use savepoints so an inner failure only undoes its own
        writes.
        """
        with self._lock:
            depth = self._depth
            if depth == 0:
                self.conn.execute("BEGIN IMMEDIATE")
            else:
                self.conn.execute(f"SAVEPOINT sp_{depth}")
            self._depth += 1
            try:
                yield self
            except BaseException:
                self._depth -= 1
                if depth == 0:
                    self.conn.execute("ROLLBACK")
                else:
                    self.conn.execute(f"ROLLBACK TO sp_{depth}")
                    self.conn.execute(f"RELEASE sp_{depth}")
                raise
            else:
                self._depth -= 1
                if depth == 0:
                    self.conn.execute("COMMIT")
                else:
                    self.conn.execute(f"RELEASE sp_{depth}")

    # ------------------------------------------------------------------
    # Abstracts
    # ------------------------------------------------------------------

    def create_abstract(self, draft: AbstractDraft, abstract_code: str) -> Abstract:
        now = utc_now()
        content = draft.model_dump(mode="json", include={"authors", "keywords", "files"})
        try:
            with self.transaction():
                cur = self.conn.execute(
                    """INSERT INTO abstracts
                    (abstract_code, submitter_id, submitter_name, submitter_email, registration_id,
                     track, category, subcategory, title, word_count, content, status, submitted_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        abstract_code,
                        draft.submitter_id,
                        draft.submitter_name,
                        draft.submitter_email,
                        draft.registration_id,
                        draft.track,
                        draft.category,
                        draft.subcategory,
                        draft.title,
                        draft.word_count,
                        json.dumps(content),
                        AbstractStatus.SUBMITTED.value,
                        now.isoformat(),
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise ConflictError(f"Abstract code {abstract_code} already exists") from exc
        abstract = self.get_abstract(cur.lastrowid)
        if abstract is None:
            raise NotFoundError(f"Abstract {abstract_code} vanished after insert")
        return abstract

    def _row_to_abstract(self, row: sqlite3.Row) -> Abstract:
        content = json.loads(row["content"])
        return Abstract(
            id=row["id"],
            abstract_code=row["abstract_code"],
            submitter_id=row["submitter_id"],
            submitter_name=row["submitter_name"],
            submitter_email=row["submitter_email"],
            registration_id=row["registration_id"],
            track=row["track"],
            category=row["category"],
            subcategory=row["subcategory"],
            title=row["title"],
            word_count=row["word_count"],
            authors=content.get("authors", []),
            keywords=content.get("keywords", []),
            files=content.get("files", []),
            status=AbstractStatus(row["status"]),
            assigned_reviewer_ids=self.assigned_reviewer_ids(row["id"]),
            approved_for=row["approved_for"],
            average_score=row["average_score"],
            decision_at=_parse_dt(row["decision_at"]),
            submitted_at=_parse_dt(row["submitted_at"]),
        )

    def get_abstract(self, abstract_id: int) -> Optional[Abstract]:
        row = self.conn.execute("SELECT * FROM abstracts WHERE id = ?", (abstract_id,)).fetchone()
        return self._row_to_abstract(row) if row else None

    def get_abstract_by_code(self, abstract_code: str) -> Optional[Abstract]:
        row = self.conn.execute(
            "SELECT * FROM abstracts WHERE abstract_code = ?", (abstract_code,)
        ).fetchone()
        return self._row_to_abstract(row) if row else None

    def find_abstracts(
        self,
        statuses: Optional[Iterable[AbstractStatus]] = None,
        track: Optional[str] = None,
        unassigned_only: bool = False,
    ) -> List[Abstract]:
        """Find abstracts by a composite filter, oldest first."""
        clauses: List[str] = []
        params: List[Any] = []
        if statuses is not None:
            values = [s.value for s in statuses]
            clauses.append(f"status IN ({', '.join('?' for _ in values)})")
            params.extend(values)
        if track is not None:
            clauses.append("track = ?")
            params.append(track)
        if unassigned_only:
            clauses.append("NOT EXISTS (SELECT 1 FROM abstract_reviewers ar WHERE ar.abstract_id = abstracts.id)")
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        cur = self.conn.execute(f"SELECT * FROM abstracts {where} ORDER BY id", params)
        return [self._row_to_abstract(row) for row in cur.fetchall()]

    def count_abstracts_by_submitter(self, submitter_id: str) -> int:
        row = self.conn.execute(
            "SELECT COUNT(*) FROM abstracts WHERE submitter_id = ?", (submitter_id,)
        ).fetchone()
        return int(row[0])

    def count_abstracts_by_registration(self, registration_id: str) -> int:
        row = self.conn.execute(
            "SELECT COUNT(*) FROM abstracts WHERE registration_id = ?", (registration_id,)
        ).fetchone()
        return int(row[0])

    def update_abstract(self, abstract_id: int, **fields: Any) -> None:
        """Set workflow columns (status, approved_for, average_score, decision_at)."""
        allowed = {"status", "approved_for", "average_score", "decision_at"}
        unknown = set(fields) - allowed
        if unknown:
            raise ValueError(f"Cannot update abstract fields: {sorted(unknown)}")
        if not fields:
            return
        values = [self._column_value(v) for v in fields.values()]
        assignments = ", ".join(f"{name} = ?" for name in fields)
        self.conn.execute(
            f"UPDATE abstracts SET {assignments} WHERE id = ?", (*values, abstract_id)
        )

    def transition_status(
        self,
        abstract_id: int,
        from_statuses: Iterable[AbstractStatus],
        to_status: AbstractStatus,
        **fields: Any,
    ) -> bool:
        """Compare-and-set the status. Returns False if the current status did not match."""
        expected = [s.value for s in from_statuses]
        columns = {"status": to_status, **fields}
        values = [self._column_value(v) for v in columns.values()]
        assignments = ", ".join(f"{name} = ?" for name in columns)
        cur = self.conn.execute(
            f"UPDATE abstracts SET {assignments} WHERE id = ? "
            f"AND status IN ({', '.join('?' for _ in expected)})",
            (*values, abstract_id, *expected),
        )
        return cur.rowcount == 1

    @staticmethod
    def _column_value(value: Any) -> Any:
        if isinstance(value, AbstractStatus):
            return value.value
        if isinstance(value, datetime):
            return value.isoformat()
        return value

    # ------------------------------------------------------------------
    # Reviewer assignment (set semantics enforced by UNIQUE constraint)
    # ------------------------------------------------------------------

    def assigned_reviewer_ids(self, abstract_id: int) -> List[str]:
        cur = self.conn.execute(
            "SELECT reviewer_id FROM abstract_reviewers WHERE abstract_id = ? ORDER BY seq",
            (abstract_id,),
        )
        return [row[0] for row in cur.fetchall()]

    def add_assigned_reviewers(self, abstract_id: int, reviewer_ids: Iterable[str]) -> int:
        """Atomically add reviewers; already-assigned ids are ignored. Returns the number added."""
        now = utc_now().isoformat()
        added = 0
        with self.transaction():
            for reviewer_id in reviewer_ids:
                cur = self.conn.execute(
                    """INSERT OR IGNORE INTO abstract_reviewers (abstract_id, reviewer_id, assigned_at)
                    VALUES (?, ?, ?)""",
                    (abstract_id, reviewer_id, now),
                )
                added += cur.rowcount
        return added

    def remove_assigned_reviewers(self, abstract_id: int, reviewer_ids: Iterable[str]) -> int:
        ids = list(reviewer_ids)
        if not ids:
            return 0
        with self.transaction():
            cur = self.conn.execute(
                f"DELETE FROM abstract_reviewers WHERE abstract_id = ? "
                f"AND reviewer_id IN ({', '.join('?' for _ in ids)})",
                (abstract_id, *ids),
            )
        return cur.rowcount

    def open_assignment_counts(self, reviewer_ids: Iterable[str]) -> Dict[str, int]:
        """Number of non-terminal abstracts currently assigned to each reviewer."""
        ids = list(reviewer_ids)
        counts = {rid: 0 for rid in ids}
        if not ids:
            return counts
        open_values = [s.value for s in OPEN_STATUSES]
        cur = self.conn.execute(
            f"""SELECT ar.reviewer_id, COUNT(*) FROM abstract_reviewers ar
                JOIN abstracts a ON a.id = ar.abstract_id
                WHERE ar.reviewer_id IN ({', '.join('?' for _ in ids)})
                  AND a.status IN ({', '.join('?' for _ in open_values)})
                GROUP BY ar.reviewer_id""",
            (*ids, *open_values),
        )
        for reviewer_id, count in cur.fetchall():
            counts[reviewer_id] = int(count)
        return counts

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    def create_review(
        self,
        abstract: Abstract,
        reviewer_id: str,
        recommendation: Recommendation,
        comments: str,
        scores: Dict[ScoreCriterion, int],
        total_score: Optional[int],
    ) -> Review:
        now = utc_now()
        try:
            with self.transaction():
                cur = self.conn.execute(
                    """INSERT INTO reviews
                    (abstract_id, abstract_code, reviewer_id, track, category, subcategory,
                     scores, total_score, comments, recommendation, submitted_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        abstract.id,
                        abstract.abstract_code,
                        reviewer_id,
                        abstract.track,
                        abstract.category,
                        abstract.subcategory,
                        json.dumps({k.value: v for k, v in scores.items()}),
                        total_score,
                        comments,
                        recommendation.value,
                        now.isoformat(),
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise DuplicateReviewError(
                f"Reviewer {reviewer_id} has already reviewed {abstract.abstract_code}"
            ) from exc
        review = self.get_review_by_id(cur.lastrowid)
        if review is None:
            raise NotFoundError(f"Review by {reviewer_id} on {abstract.abstract_code} not found")
        return review

    def replace_review(
        self,
        review_id: int,
        recommendation: Recommendation,
        comments: str,
        scores: Dict[ScoreCriterion, int],
        total_score: Optional[int],
    ) -> Review:
        self.conn.execute(
            """UPDATE reviews SET recommendation = ?, comments = ?, scores = ?,
                   total_score = ?, updated_at = ? WHERE id = ?""",
            (
                recommendation.value,
                comments,
                json.dumps({k.value: v for k, v in scores.items()}),
                total_score,
                utc_now().isoformat(),
                review_id,
            ),
        )
        review = self.get_review_by_id(review_id)
        if review is None:
            raise NotFoundError(f"Review {review_id} not found")
        return review

    def _row_to_review(self, row: sqlite3.Row) -> Review:
        return Review(
            id=row["id"],
            abstract_id=row["abstract_id"],
            abstract_code=row["abstract_code"],
            reviewer_id=row["reviewer_id"],
            track=row["track"],
            category=row["category"],
            subcategory=row["subcategory"],
            scores=json.loads(row["scores"]),
            total_score=row["total_score"],
            comments=row["comments"],
            recommendation=Recommendation(row["recommendation"]),
            submitted_at=_parse_dt(row["submitted_at"]),
            updated_at=_parse_dt(row["updated_at"]),
        )

    def get_review_by_id(self, review_id: int) -> Optional[Review]:
        row = self.conn.execute("SELECT * FROM reviews WHERE id = ?", (review_id,)).fetchone()
        return self._row_to_review(row) if row else None

    def get_review(self, abstract_id: int, reviewer_id: str) -> Optional[Review]:
        row = self.conn.execute(
            "SELECT * FROM reviews WHERE abstract_id = ? AND reviewer_id = ?",
            (abstract_id, reviewer_id),
        ).fetchone()
        return self._row_to_review(row) if row else None

    def list_reviews(self, abstract_id: int) -> List[Review]:
        cur = self.conn.execute(
            "SELECT * FROM reviews WHERE abstract_id = ? ORDER BY id", (abstract_id,)
        )
        return [self._row_to_review(row) for row in cur.fetchall()]

    def count_reviews(self, abstract_id: int) -> int:
        row = self.conn.execute(
            "SELECT COUNT(*) FROM reviews WHERE abstract_id = ?", (abstract_id,)
        ).fetchone()
        return int(row[0])

    # ------------------------------------------------------------------
    # Reviewer directory
    # ------------------------------------------------------------------

    def upsert_reviewer(self, reviewer: Reviewer) -> Reviewer:
        with self.transaction():
            self.conn.execute(
                """INSERT INTO reviewers (reviewer_id, name, email, active, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(reviewer_id) DO UPDATE SET
                    name = excluded.name, email = excluded.email, active = excluded.active""",
                (
                    reviewer.reviewer_id,
                    reviewer.name,
                    reviewer.email,
                    reviewer.active,
                    utc_now().isoformat(),
                ),
            )
        return reviewer

    def get_reviewer(self, reviewer_id: str) -> Optional[Reviewer]:
        row = self.conn.execute(
            "SELECT reviewer_id, name, email, active FROM reviewers WHERE reviewer_id = ?",
            (reviewer_id,),
        ).fetchone()
        if not row:
            return None
        return Reviewer(
            reviewer_id=row["reviewer_id"], name=row["name"], email=row["email"], active=bool(row["active"])
        )

    def list_reviewers(self, active_only: bool = False) -> List[Reviewer]:
        """Directory entries in registration order."""
        query = "SELECT reviewer_id, name, email, active FROM reviewers"
        if active_only:
            query += " WHERE active"
        cur = self.conn.execute(query + " ORDER BY created_at, rowid")
        return [
            Reviewer(
                reviewer_id=row["reviewer_id"], name=row["name"], email=row["email"], active=bool(row["active"])
            )
            for row in cur.fetchall()
        ]

    # ------------------------------------------------------------------
    # Assignment rules
    # ------------------------------------------------------------------

    def save_rule(self, rule: AssignmentRule) -> AssignmentRule:
        params = (
            rule.track,
            rule.category,
            rule.subcategory,
            json.dumps(rule.reviewer_ids),
            rule.policy.value if rule.policy else None,
            rule.reviewer_count,
        )
        with self.transaction():
            if rule.id is None:
                cur = self.conn.execute(
                    """INSERT INTO assignment_rules
                    (track, category, subcategory, reviewer_ids, policy, reviewer_count)
                    VALUES (?, ?, ?, ?, ?, ?)""",
                    params,
                )
                rule_id = cur.lastrowid
            else:
                self.conn.execute(
                    """UPDATE assignment_rules SET track = ?, category = ?, subcategory = ?,
                    reviewer_ids = ?, policy = ?, reviewer_count = ? WHERE id = ?""",
                    (*params, rule.id),
                )
                rule_id = rule.id
        return rule.model_copy(update={"id": rule_id})

    def list_rules(self) -> List[AssignmentRule]:
        cur = self.conn.execute("SELECT * FROM assignment_rules ORDER BY id")
        return [
            AssignmentRule(
                id=row["id"],
                track=row["track"],
                category=row["category"],
                subcategory=row["subcategory"],
                reviewer_ids=json.loads(row["reviewer_ids"]),
                policy=row["policy"],
                reviewer_count=row["reviewer_count"],
            )
            for row in cur.fetchall()
        ]

    def delete_rule(self, rule_id: int) -> bool:
        with self.transaction():
            cur = self.conn.execute("DELETE FROM assignment_rules WHERE id = ?", (rule_id,))
        return cur.rowcount == 1

    # ------------------------------------------------------------------
    # Round-robin cursors
    # ------------------------------------------------------------------

    def get_cursor(self, track: str) -> int:
        row = self.conn.execute(
            "SELECT position FROM assignment_cursors WHERE track = ?", (track,)
        ).fetchone()
        return int(row[0]) if row else 0

    def advance_cursor(self, track: str, step: int) -> int:
        """Atomically read the cursor for ``track`` and add ``step``. Returns the old position."""
        with self.transaction():
            start = self.get_cursor(track)
            self.conn.execute(
                """INSERT INTO assignment_cursors (track, position, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(track) DO UPDATE SET position = excluded.position,
                    updated_at = excluded.updated_at""",
                (track, start + step, utc_now().isoformat()),
            )
        return start

    # ------------------------------------------------------------------
    # Reviewer configuration document
    # ------------------------------------------------------------------

    def load_config_document(self) -> Dict[str, Any]:
        row = self.conn.execute("SELECT document FROM reviewer_config WHERE id = 1").fetchone()
        return json.loads(row[0]) if row else {}

    def save_config_document(self, document: Dict[str, Any]) -> None:
        with self.transaction():
            self.conn.execute(
                """INSERT INTO reviewer_config (id, document, updated_at) VALUES (1, ?, ?)
                ON CONFLICT(id) DO UPDATE SET document = excluded.document,
                    updated_at = excluded.updated_at""",
                (json.dumps(document), utc_now().isoformat()),
            )

    # ------------------------------------------------------------------
    # Pending email queue
    # ------------------------------------------------------------------

    def enqueue_email(self, abstract_code: str, kind: EmailKind) -> PendingEmail:
        entry = PendingEmail(abstract_code=abstract_code, kind=kind)
        with self.transaction():
            cur = self.conn.execute(
                "INSERT INTO pending_emails (abstract_code, kind, created_at) VALUES (?, ?, ?)",
                (entry.abstract_code, entry.kind.value, entry.created_at.isoformat()),
            )
        return entry.model_copy(update={"id": cur.lastrowid})

    def list_pending_emails(self) -> List[PendingEmail]:
        cur = self.conn.execute("SELECT * FROM pending_emails ORDER BY id")
        return [
            PendingEmail(
                id=row["id"],
                abstract_code=row["abstract_code"],
                kind=EmailKind(row["kind"]),
                created_at=_parse_dt(row["created_at"]),
            )
            for row in cur.fetchall()
        ]

    def remove_pending_emails(self, entry_ids: Iterable[int]) -> int:
        """Delete exactly the given queue entries, leaving anything appended since."""
        ids = list(entry_ids)
        if not ids:
            return 0
        with self.transaction():
            cur = self.conn.execute(
                f"DELETE FROM pending_emails WHERE id IN ({', '.join('?' for _ in ids)})", ids
            )
        return cur.rowcount

    def close(self) -> None:
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
