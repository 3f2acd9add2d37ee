"""Database operations for TalentHub records.

Every query is scoped to a tenant (``user_id``). The store answers filtered,
ordered and limited queries; ranking and aggregation happen in memory above
it.
"""

import asyncio
import json
import logging
import os
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

import aiosqlite
from pydantic import BaseModel, Field, ValidationError

from talenthub.config import settings
from talenthub.models.records import (
    Application,
    ApplicationStatus,
    Candidate,
    Interview,
    Job,
    TeamMember,
    ensure_utc,
    utc_now,
)
from talenthub.models.search_models import FilterParams, SavedSearch

# Set up logging
logger = logging.getLogger(__name__)

# Current schema version
SCHEMA_VERSION = 1

MAX_CONNECTIONS = 5

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS schema_version (
        version INTEGER PRIMARY KEY,
        applied_at DATETIME DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS candidates (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        name TEXT NOT NULL,
        email TEXT NOT NULL,
        phone TEXT,
        title TEXT,
        location TEXT,
        experience_years REAL,
        skills TEXT NOT NULL DEFAULT '[]',
        availability TEXT,
        status TEXT NOT NULL DEFAULT 'active',
        current_salary REAL,
        expected_salary REAL,
        notice_period INTEGER,
        resume_url TEXT,
        linkedin_url TEXT,
        portfolio_url TEXT,
        notes TEXT,
        tags TEXT NOT NULL DEFAULT '[]',
        created_at TEXT,
        updated_at TEXT,
        last_contacted TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS jobs (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        title TEXT NOT NULL,
        department TEXT,
        location TEXT,
        status TEXT NOT NULL DEFAULT 'open',
        skills TEXT NOT NULL DEFAULT '[]',
        created_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS applications (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        candidate_id TEXT NOT NULL,
        job_id TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'applied',
        match_score INTEGER,
        applied_at TEXT,
        updated_at TEXT,
        notes TEXT,
        FOREIGN KEY (candidate_id) REFERENCES candidates(id),
        FOREIGN KEY (job_id) REFERENCES jobs(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS interviews (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        candidate_id TEXT NOT NULL,
        application_id TEXT,
        title TEXT NOT NULL,
        interview_type TEXT,
        scheduled_at TEXT,
        duration_minutes INTEGER,
        location TEXT,
        status TEXT NOT NULL DEFAULT 'scheduled',
        interviewer_name TEXT,
        interviewer_email TEXT,
        notes TEXT,
        created_at TEXT,
        FOREIGN KEY (candidate_id) REFERENCES candidates(id),
        FOREIGN KEY (application_id) REFERENCES applications(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS team_members (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        email TEXT NOT NULL,
        role TEXT NOT NULL,
        status TEXT NOT NULL,
        permissions TEXT NOT NULL,
        invited_by TEXT,
        invited_at TEXT,
        joined_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS subscriptions (
        user_id TEXT PRIMARY KEY,
        plan_id TEXT NOT NULL,
        status TEXT NOT NULL,
        current_period_end TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS search_history (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        search_query TEXT NOT NULL,
        result_count INTEGER NOT NULL,
        search_type TEXT NOT NULL,
        filters_applied TEXT,
        searched_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS saved_searches (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id TEXT NOT NULL,
        name TEXT NOT NULL,
        search_query TEXT NOT NULL,
        search_type TEXT NOT NULL,
        filters TEXT,
        last_results_count INTEGER DEFAULT 0,
        created_at TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_candidates_user ON candidates(user_id, created_at)",
    "CREATE INDEX IF NOT EXISTS idx_jobs_user ON jobs(user_id, created_at)",
    "CREATE INDEX IF NOT EXISTS idx_applications_user ON applications(user_id, applied_at)",
    "CREATE INDEX IF NOT EXISTS idx_interviews_user ON interviews(user_id, created_at)",
)

CANDIDATE_COLUMNS = (
    "id", "user_id", "name", "email", "phone", "title", "location", "experience_years",
    "skills", "availability", "status", "current_salary", "expected_salary", "notice_period",
    "resume_url", "linkedin_url", "portfolio_url", "notes", "tags", "created_at",
    "updated_at", "last_contacted",
)
JOB_COLUMNS = ("id", "user_id", "title", "department", "location", "status", "skills", "created_at")
APPLICATION_COLUMNS = (
    "id", "user_id", "candidate_id", "job_id", "status", "match_score", "applied_at",
    "updated_at", "notes",
)
INTERVIEW_COLUMNS = (
    "id", "user_id", "candidate_id", "application_id", "title", "interview_type",
    "scheduled_at", "duration_minutes", "location", "status", "interviewer_name",
    "interviewer_email", "notes", "created_at",
)
JSON_COLUMNS = ("skills", "tags")


class DatabaseError(Exception):
    """Custom exception for database operations."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Exception raised when database connection fails."""

    pass


class ImportResult(BaseModel):
    success: int = 0
    errors: List[str] = Field(default_factory=list)


class Subscription(BaseModel):
    user_id: str
    plan_id: str
    status: str
    current_period_end: Optional[datetime] = None


def _ts(value: Optional[datetime]) -> Optional[str]:
    """Serialise a timestamp so that string order equals time order."""
    if value is None:
        return None
    return ensure_utc(value).isoformat(timespec="microseconds")


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _row_to_dict(row: aiosqlite.Row) -> Dict[str, Any]:
    data = dict(row)
    for column in JSON_COLUMNS:
        if column in data and isinstance(data[column], str):
            data[column] = json.loads(data[column])
    return data


def _record_values(record: BaseModel, columns: Sequence[str], user_id: str) -> List[Any]:
    data = record.model_dump()
    data["user_id"] = user_id
    values = []
    for column in columns:
        value = data.get(column)
        if column in JSON_COLUMNS:
            value = json.dumps(value or [])
        elif isinstance(value, datetime):
            value = _ts(value)
        values.append(value)
    return values


class TalentHubDatabase:
    """Tenant-scoped storage for candidates, jobs, applications and interviews."""

    def __init__(self, db_path: Optional[str] = None, *, readonly: bool = False):
        """Initialize the database handle.

        Args:
            db_path: Path to the database file
            readonly: If True, write operations are refused
        """
        if db_path is None:
            db_path = os.getenv("TALENTHUB_DB_PATH") or settings.db_path

        self.db_path = db_path
        self._connection_pool: List[aiosqlite.Connection] = []
        self._pool_lock = asyncio.Lock()
        self._readonly = readonly

        db_dirname = os.path.dirname(self.db_path)
        if db_dirname:
            os.makedirs(db_dirname, exist_ok=True)

        logger.info(f"Database handle created for: {self.db_path} (readonly={readonly})")

    async def ainit(self) -> "TalentHubDatabase":
        """
        Async helper so callers can do:

            db = await TalentHubDatabase(path).ainit()
        """
        await self.init_db()
        return self

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get a database connection from the pool."""
        async with self._pool_lock:
            if self._connection_pool:
                return self._connection_pool.pop()
        try:
            conn = await aiosqlite.connect(self.db_path)
        except Exception as e:
            logger.error(f"Failed to connect to {self.db_path}: {e}")
            raise DatabaseConnectionError(f"Failed to connect to database: {e}") from e
        conn.row_factory = aiosqlite.Row
        # Enable foreign key constraints
        await conn.execute("PRAGMA foreign_keys = ON")
        # Set busy timeout to handle concurrent access
        await conn.execute("PRAGMA busy_timeout = 5000")
        if self._readonly:
            await conn.execute("PRAGMA query_only = ON")
        return conn

    async def _release_connection(self, conn: aiosqlite.Connection) -> None:
        """Release a connection back to the pool."""
        async with self._pool_lock:
            if len(self._connection_pool) < MAX_CONNECTIONS:
                self._connection_pool.append(conn)
                return
        await conn.close()

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[aiosqlite.Connection]:
        conn = await self._get_connection()
        try:
            yield conn
        finally:
            await self._release_connection(conn)

    async def check_connection(self) -> bool:
        """Check if the database connection is working."""
        try:
            async with self._connection() as conn:
                async with conn.execute("SELECT 1") as cursor:
                    await cursor.fetchone()
            return True
        except (DatabaseError, aiosqlite.Error) as e:
            logger.warning(f"Database connection check failed: {e}")
            return False

    async def init_db(self) -> None:
        """Create the tables if they don't exist."""
        if self._readonly:
            return
        try:
            logger.info("Creating database tables...")
            async with self._connection() as conn:
                for statement in SCHEMA:
                    await conn.execute(statement)
                await conn.execute(
                    "INSERT OR IGNORE INTO schema_version(version) VALUES (?)", (SCHEMA_VERSION,)
                )
                await conn.commit()
        except aiosqlite.Error as e:
            logger.error(f"Failed to initialize database: {str(e)}")
            raise DatabaseError(f"Failed to initialize database: {str(e)}") from e

    async def close(self) -> None:
        """Close all database connections."""
        async with self._pool_lock:
            for conn in self._connection_pool:
                await conn.close()
            self._connection_pool.clear()

    def _write_guard(self, op: str) -> None:
        """Guard against write operations in read-only mode."""
        if self._readonly:
            logger.debug("WRITE-GUARD tripped on %s", op)
            raise DatabaseError(f"{op} is disabled in read-only mode")

    async def _insert(self, table: str, columns: Sequence[str], values: Sequence[Any]) -> None:
        placeholders = ", ".join("?" for _ in columns)
        sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"
        async with self._connection() as conn:
            try:
                await conn.execute(sql, values)
                await conn.commit()
            except aiosqlite.Error as e:
                await conn.rollback()
                logger.error(f"Error inserting into {table}: {str(e)}")
                raise DatabaseError(f"Failed to insert into {table}: {str(e)}") from e

    async def _select(self, sql: str, params: Sequence[Any]) -> List[Dict[str, Any]]:
        try:
            async with self._connection() as conn:
                async with conn.execute(sql, params) as cursor:
                    rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            logger.error(f"Query failed: {str(e)}")
            raise DatabaseError(f"Query failed: {str(e)}") from e
        return [_row_to_dict(row) for row in rows]

    # --- Writes ---

    async def insert_candidate(self, user_id: str, candidate: Candidate) -> str:
        self._write_guard("insert_candidate")
        await self._insert("candidates", CANDIDATE_COLUMNS, _record_values(candidate, CANDIDATE_COLUMNS, user_id))
        return candidate.id

    async def import_candidates(self, user_id: str, rows: Sequence[Dict[str, Any]]) -> ImportResult:
        """Insert candidate rows one by one, collecting per-row failures."""
        self._write_guard("import_candidates")
        result = ImportResult()
        now = utc_now()
        for row in rows:
            name = row.get("name", "<unnamed>")
            try:
                candidate = Candidate(
                    **{"id": str(uuid.uuid4()), "created_at": now, "updated_at": now, **row}
                )
                await self.insert_candidate(user_id, candidate)
                result.success += 1
            except (ValidationError, DatabaseError) as e:
                result.errors.append(f"Failed to import {name}: {e}")
        logger.info(f"Imported {result.success} candidates with {len(result.errors)} errors")
        return result

    async def insert_job(self, user_id: str, job: Job) -> str:
        self._write_guard("insert_job")
        await self._insert("jobs", JOB_COLUMNS, _record_values(job, JOB_COLUMNS, user_id))
        return job.id

    async def insert_application(self, user_id: str, application: Application) -> str:
        self._write_guard("insert_application")
        await self._insert(
            "applications", APPLICATION_COLUMNS, _record_values(application, APPLICATION_COLUMNS, user_id)
        )
        return application.id

    async def insert_interview(self, user_id: str, interview: Interview) -> str:
        self._write_guard("insert_interview")
        await self._insert(
            "interviews", INTERVIEW_COLUMNS, _record_values(interview, INTERVIEW_COLUMNS, user_id)
        )
        return interview.id

    async def update_application_status(self, application_id: str, status: str) -> None:
        """Move an application to ``status``; no transition is refused."""
        self._write_guard("update_application_status")
        status = ApplicationStatus(status).value
        try:
            async with self._connection() as conn:
                await conn.execute(
                    "UPDATE applications SET status = ?, updated_at = ? WHERE id = ?",
                    (status, _ts(utc_now()), application_id),
                )
                await conn.commit()
        except aiosqlite.Error as e:
            raise DatabaseError(f"Failed to update application: {str(e)}") from e

    async def insert_team_member(self, user_id: str, member: TeamMember) -> str:
        self._write_guard("insert_team_member")
        await self._insert(
            "team_members",
            ("id", "user_id", "email", "role", "status", "permissions", "invited_by", "invited_at", "joined_at"),
            (
                member.id,
                user_id,
                member.email,
                member.role,
                member.status,
                member.permissions.model_dump_json(),
                member.invited_by,
                _ts(member.invited_at),
                _ts(member.joined_at),
            ),
        )
        return member.id

    async def set_subscription(
        self, user_id: str, plan_id: str, status: str, current_period_end: Optional[datetime] = None
    ) -> None:
        self._write_guard("set_subscription")
        try:
            async with self._connection() as conn:
                await conn.execute(
                    """
                    INSERT INTO subscriptions (user_id, plan_id, status, current_period_end)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET
                        plan_id = excluded.plan_id,
                        status = excluded.status,
                        current_period_end = excluded.current_period_end
                    """,
                    (user_id, plan_id, status, _ts(current_period_end)),
                )
                await conn.commit()
        except aiosqlite.Error as e:
            raise DatabaseError(f"Failed to store subscription: {str(e)}") from e

    async def save_search_history(
        self,
        user_id: str,
        search_query: str,
        result_count: int,
        search_type: str,
        filters: FilterParams,
        searched_at: Optional[datetime] = None,
    ) -> None:
        self._write_guard("save_search_history")
        await self._insert(
            "search_history",
            ("user_id", "search_query", "result_count", "search_type", "filters_applied", "searched_at"),
            (
                user_id,
                search_query,
                result_count,
                search_type,
                filters.model_dump_json(),
                _ts(searched_at or utc_now()),
            ),
        )

    async def save_search(self, saved: SavedSearch) -> SavedSearch:
        self._write_guard("save_search")
        try:
            async with self._connection() as conn:
                cursor = await conn.execute(
                    """
                    INSERT INTO saved_searches
                        (user_id, name, search_query, search_type, filters, last_results_count, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        saved.user_id,
                        saved.name,
                        saved.search_query,
                        saved.search_type,
                        saved.filters.model_dump_json(),
                        saved.last_results_count,
                        _ts(utc_now()),
                    ),
                )
                await conn.commit()
                saved_id = cursor.lastrowid
        except aiosqlite.Error as e:
            raise DatabaseError(f"Failed to save search: {str(e)}") from e
        return saved.model_copy(update={"id": saved_id})

    # --- Reads ---

    async def fetch_candidates(
        self,
        user_id: str,
        terms: Optional[Sequence[str]] = None,
        status: Optional[str] = None,
        location: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Candidate]:
        """Candidates of a tenant, newest first.

        ``terms`` are OR-ed: a candidate matches when any term appears in its
        name, title, email or location.
        """
        clauses = ["user_id = ?"]
        params: List[Any] = [user_id]

        terms = [term for term in (terms or []) if term]
        if terms:
            ors = []
            for term in terms:
                pattern = f"%{_escape_like(term)}%"
                for column in ("name", "title", "email", "location"):
                    ors.append(f"{column} LIKE ? ESCAPE '\\'")
                    params.append(pattern)
            clauses.append(f"({' OR '.join(ors)})")
        if status:
            clauses.append("status = ?")
            params.append(status)
        if location:
            clauses.append("location LIKE ? ESCAPE '\\'")
            params.append(f"%{_escape_like(location)}%")
        self._date_clauses("created_at", since, until, clauses, params)

        sql = f"SELECT * FROM candidates WHERE {' AND '.join(clauses)} ORDER BY created_at DESC"
        sql = self._limit(sql, limit, params)
        rows = await self._select(sql, params)
        return [Candidate(**row) for row in rows]

    async def fetch_jobs(
        self,
        user_id: str,
        terms: Optional[Sequence[str]] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Job]:
        clauses = ["user_id = ?"]
        params: List[Any] = [user_id]
        terms = [term for term in (terms or []) if term]
        if terms:
            ors = []
            for term in terms:
                pattern = f"%{_escape_like(term)}%"
                for column in ("title", "department", "location"):
                    ors.append(f"{column} LIKE ? ESCAPE '\\'")
                    params.append(pattern)
            clauses.append(f"({' OR '.join(ors)})")
        self._date_clauses("created_at", since, until, clauses, params)

        sql = f"SELECT * FROM jobs WHERE {' AND '.join(clauses)} ORDER BY created_at DESC"
        sql = self._limit(sql, limit, params)
        return [Job(**row) for row in await self._select(sql, params)]

    async def fetch_applications(
        self,
        user_id: str,
        job_id: Optional[str] = None,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: Optional[int] = None,
        with_candidates: bool = False,
    ) -> List[Application]:
        """Applications of a tenant, most recently applied first.

        With ``with_candidates`` each application carries its candidate.
        """
        clauses = ["user_id = ?"]
        params: List[Any] = [user_id]
        if job_id:
            clauses.append("job_id = ?")
            params.append(job_id)
        self._date_clauses("applied_at", since, until, clauses, params)

        sql = f"SELECT * FROM applications WHERE {' AND '.join(clauses)} ORDER BY applied_at DESC"
        sql = self._limit(sql, limit, params)
        applications = [Application(**row) for row in await self._select(sql, params)]

        if with_candidates and applications:
            ids = sorted({a.candidate_id for a in applications})
            placeholders = ", ".join("?" for _ in ids)
            rows = await self._select(
                f"SELECT * FROM candidates WHERE user_id = ? AND id IN ({placeholders})",
                [user_id, *ids],
            )
            by_id = {row["id"]: Candidate(**row) for row in rows}
            applications = [
                a.model_copy(update={"candidate": by_id.get(a.candidate_id)}) for a in applications
            ]
        return applications

    async def fetch_interviews(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Interview]:
        clauses = ["user_id = ?"]
        params: List[Any] = [user_id]
        self._date_clauses("created_at", since, until, clauses, params)
        sql = f"SELECT * FROM interviews WHERE {' AND '.join(clauses)} ORDER BY created_at DESC"
        sql = self._limit(sql, limit, params)
        return [Interview(**row) for row in await self._select(sql, params)]

    async def count_interviews(
        self, user_id: str, since: Optional[datetime] = None, until: Optional[datetime] = None
    ) -> int:
        clauses = ["user_id = ?"]
        params: List[Any] = [user_id]
        self._date_clauses("scheduled_at", since, until, clauses, params, inclusive_end=False)
        rows = await self._select(
            f"SELECT COUNT(*) AS total FROM interviews WHERE {' AND '.join(clauses)}", params
        )
        return rows[0]["total"]

    async def count_active_team_members(self, user_id: str) -> int:
        rows = await self._select(
            "SELECT COUNT(*) AS total FROM team_members WHERE user_id = ? AND status = 'active'",
            [user_id],
        )
        return rows[0]["total"]

    async def fetch_subscription(self, user_id: str) -> Optional[Subscription]:
        rows = await self._select("SELECT * FROM subscriptions WHERE user_id = ?", [user_id])
        if not rows:
            return None
        return Subscription(**rows[0])

    async def fetch_search_history(
        self, user_id: str, since: Optional[datetime] = None, limit: int = 50
    ) -> List[Dict[str, Any]]:
        clauses = ["user_id = ?"]
        params: List[Any] = [user_id]
        self._date_clauses("searched_at", since, None, clauses, params)
        sql = f"SELECT * FROM search_history WHERE {' AND '.join(clauses)} ORDER BY searched_at DESC"
        sql = self._limit(sql, limit, params)
        rows = await self._select(sql, params)
        for row in rows:
            if row.get("filters_applied"):
                row["filters_applied"] = json.loads(row["filters_applied"])
        return rows

    async def fetch_saved_searches(self, user_id: str, limit: Optional[int] = None) -> List[SavedSearch]:
        params: List[Any] = [user_id]
        sql = self._limit(
            "SELECT * FROM saved_searches WHERE user_id = ? ORDER BY created_at DESC, id DESC",
            limit,
            params,
        )
        rows = await self._select(sql, params)
        return [
            SavedSearch(
                id=row["id"],
                user_id=row["user_id"],
                name=row["name"],
                search_query=row["search_query"],
                search_type=row["search_type"],
                filters=FilterParams.model_validate_json(row["filters"]) if row["filters"] else FilterParams(),
                last_results_count=row["last_results_count"] or 0,
            )
            for row in rows
        ]

    # --- Query helpers ---

    @staticmethod
    def _date_clauses(
        column: str,
        since: Optional[datetime],
        until: Optional[datetime],
        clauses: List[str],
        params: List[Any],
        inclusive_end: bool = True,
    ) -> None:
        if since is not None:
            clauses.append(f"{column} >= ?")
            params.append(_ts(since))
        if until is not None:
            clauses.append(f"{column} {'<=' if inclusive_end else '<'} ?")
            params.append(_ts(until))

    @staticmethod
    def _limit(sql: str, limit: Optional[int], params: List[Any]) -> str:
        if limit is None:
            return sql
        params.append(limit)
        return f"{sql} LIMIT ?"
