import json
import sqlite3
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from cutroom.domain.entities import (
    Account,
    Asset,
    DelegatedCredential,
    Delegation,
    PublicationRecord,
    SessionRecord,
    Workspace,
    utcnow,
)


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def fmt_dt(dt: datetime | None) -> str | None:
    """UTC ISO string with fixed precision so stored values compare lexically."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat(timespec="microseconds")


def parse_dt(s: str | None) -> datetime | None:
    return datetime.fromisoformat(s) if s else None


def parse_uuid(s: str | None) -> UUID | None:
    return UUID(s) if s else None


class SQLiteRepoBase:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        # Writers queue on the database lock instead of failing immediately.
        conn = sqlite3.connect(self.db_path, timeout=10)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _execute_write(self, sql: str, params: tuple[Any, ...]) -> int:
        conn = self._get_conn()
        try:
            cursor = conn.execute(sql, params)
            conn.commit()
            return cursor.rowcount
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()


# --- Accounts ---


class SQLiteAccountRepo(SQLiteRepoBase):
    def _row_to_account(self, row: dict[str, Any]) -> Account:
        delegated = None
        if row["delegated_access_token"]:
            delegated = DelegatedCredential(
                access_token=row["delegated_access_token"],
                refresh_token=row["delegated_refresh_token"],
                scope=row["delegated_scope"] or "",
                expires_at=parse_dt(row["delegated_expires_at"]),
            )

        session = None
        if row["session_hash"]:
            session = SessionRecord(
                token_hash=row["session_hash"],
                issued_at=parse_dt(row["session_issued_at"]) or utcnow(),
            )

        return Account(
            id=UUID(row["id"]),
            email=row["email"],
            role=row["role"],
            delegated=delegated,
            session=session,
            created_at=parse_dt(row["created_at"]) or utcnow(),
            updated_at=parse_dt(row["updated_at"]) or utcnow(),
        )

    def get_by_id(self, account_id: UUID) -> Account | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM accounts WHERE id = ?", (str(account_id),)
            ).fetchone()
            return self._row_to_account(row) if row else None
        finally:
            conn.close()

    def get_by_email(self, email: str) -> Account | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM accounts WHERE email = ?", (email.lower(),)
            ).fetchone()
            return self._row_to_account(row) if row else None
        finally:
            conn.close()

    def create(self, account: Account) -> Account:
        conn = self._get_conn()
        try:
            # First writer wins; the role of an existing row is never touched.
            conn.execute(
                """
                INSERT INTO accounts (id, email, role, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(email) DO NOTHING
                """,
                (
                    str(account.id),
                    account.email.lower(),
                    account.role,
                    fmt_dt(account.created_at),
                    fmt_dt(account.updated_at),
                ),
            )
            conn.commit()
            row = conn.execute(
                "SELECT * FROM accounts WHERE email = ?", (account.email.lower(),)
            ).fetchone()
            return self._row_to_account(row)
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def swap_session(
        self,
        account_id: UUID,
        expected_hash: str | None,
        new_hash: str | None,
        issued_at: datetime | None,
    ) -> bool:
        sql = (
            "UPDATE accounts SET session_hash = ?, session_issued_at = ?, updated_at = ? "
            "WHERE id = ?"
        )
        params: tuple[Any, ...] = (new_hash, fmt_dt(issued_at), fmt_dt(utcnow()), str(account_id))
        if expected_hash is not None:
            sql += " AND session_hash = ?"
            params = params + (expected_hash,)
        return self._execute_write(sql, params) == 1

    def save_delegated(self, account_id: UUID, credential: DelegatedCredential | None) -> None:
        self._execute_write(
            """
            UPDATE accounts SET
                delegated_access_token = ?,
                delegated_refresh_token = ?,
                delegated_scope = ?,
                delegated_expires_at = ?,
                updated_at = ?
            WHERE id = ?
            """,
            (
                credential.access_token if credential else None,
                credential.refresh_token if credential else None,
                credential.scope if credential else None,
                fmt_dt(credential.expires_at) if credential else None,
                fmt_dt(utcnow()),
                str(account_id),
            ),
        )

    def delete(self, account_id: UUID) -> None:
        self._execute_write("DELETE FROM accounts WHERE id = ?", (str(account_id),))


# --- Workspaces ---


class SQLiteWorkspaceRepo(SQLiteRepoBase):
    def _row_to_workspace(self, row: dict[str, Any]) -> Workspace:
        return Workspace(
            id=UUID(row["id"]),
            name=row["name"],
            owner_id=UUID(row["owner_id"]),
            created_at=parse_dt(row["created_at"]) or utcnow(),
        )

    def save(self, workspace: Workspace) -> Workspace:
        # owner_id is deliberately absent from the update clause.
        self._execute_write(
            """
            INSERT INTO workspaces (id, name, owner_id, created_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET name = excluded.name
            """,
            (
                str(workspace.id),
                workspace.name,
                str(workspace.owner_id),
                fmt_dt(workspace.created_at),
            ),
        )
        return workspace

    def get_by_id(self, workspace_id: UUID) -> Workspace | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM workspaces WHERE id = ?", (str(workspace_id),)
            ).fetchone()
            return self._row_to_workspace(row) if row else None
        finally:
            conn.close()

    def list_by_owner(self, owner_id: UUID) -> list[Workspace]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM workspaces WHERE owner_id = ? ORDER BY created_at DESC",
                (str(owner_id),),
            ).fetchall()
            return [self._row_to_workspace(r) for r in rows]
        finally:
            conn.close()

    def list_by_ids(self, workspace_ids: list[UUID]) -> list[Workspace]:
        if not workspace_ids:
            return []
        placeholders = ", ".join("?" for _ in workspace_ids)
        conn = self._get_conn()
        try:
            rows = conn.execute(
                f"SELECT * FROM workspaces WHERE id IN ({placeholders}) ORDER BY created_at DESC",
                tuple(str(w) for w in workspace_ids),
            ).fetchall()
            return [self._row_to_workspace(r) for r in rows]
        finally:
            conn.close()


# --- Delegations ---


class SQLiteDelegationRepo(SQLiteRepoBase):
    def _row_to_delegation(self, row: dict[str, Any]) -> Delegation:
        return Delegation(
            id=UUID(row["id"]),
            workspace_id=UUID(row["workspace_id"]),
            email=row["email"],
            status=row["status"],
            accepted_by=parse_uuid(row["accepted_by"]),
            accepted_at=parse_dt(row["accepted_at"]),
            created_at=parse_dt(row["created_at"]) or utcnow(),
        )

    def get(self, workspace_id: UUID, email: str) -> Delegation | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM delegations WHERE workspace_id = ? AND email = ?",
                (str(workspace_id), email.lower()),
            ).fetchone()
            return self._row_to_delegation(row) if row else None
        finally:
            conn.close()

    def list_by_email(self, email: str) -> list[Delegation]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM delegations WHERE email = ? ORDER BY created_at DESC",
                (email.lower(),),
            ).fetchall()
            return [self._row_to_delegation(r) for r in rows]
        finally:
            conn.close()

    def save(self, delegation: Delegation) -> Delegation:
        self._execute_write(
            """
            INSERT INTO delegations (
                id, workspace_id, email, status, accepted_by, accepted_at, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(workspace_id, email) DO UPDATE SET
                status = excluded.status,
                accepted_by = excluded.accepted_by,
                accepted_at = excluded.accepted_at
            """,
            (
                str(delegation.id),
                str(delegation.workspace_id),
                delegation.email.lower(),
                delegation.status,
                str(delegation.accepted_by) if delegation.accepted_by else None,
                fmt_dt(delegation.accepted_at),
                fmt_dt(delegation.created_at),
            ),
        )
        return delegation


# --- Assets ---


class SQLiteAssetRepo(SQLiteRepoBase):
    def _row_to_asset(self, row: dict[str, Any]) -> Asset:
        made_for_kids = row["published_made_for_kids"]
        return Asset(
            id=UUID(row["id"]),
            workspace_id=UUID(row["workspace_id"]),
            uploaded_by=UUID(row["uploaded_by"]),
            assigned_to=UUID(row["assigned_to"]),
            original_ref=row["original_ref"],
            edited_ref=row["edited_ref"],
            status=row["status"],
            title=row["title"],
            description=row["description"],
            tags=json.loads(row["tags_json"] or "[]"),
            edited_at=parse_dt(row["edited_at"]),
            feedback=row["feedback"],
            feedback_at=parse_dt(row["feedback_at"]),
            published=bool(row["published"]),
            platform_id=row["platform_id"],
            published_title=row["published_title"],
            published_description=row["published_description"],
            published_visibility=row["published_visibility"],
            published_made_for_kids=None if made_for_kids is None else bool(made_for_kids),
            published_at=parse_dt(row["published_at"]),
            publish_attempted_at=parse_dt(row["publish_attempted_at"]),
            created_at=parse_dt(row["created_at"]) or utcnow(),
            updated_at=parse_dt(row["updated_at"]) or utcnow(),
        )

    def save(self, asset: Asset) -> Asset:
        self._execute_write(
            """
            INSERT INTO assets (
                id, workspace_id, uploaded_by, assigned_to, original_ref, edited_ref,
                status, title, description, tags_json, edited_at, feedback, feedback_at,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                assigned_to = excluded.assigned_to,
                edited_ref = excluded.edited_ref,
                status = excluded.status,
                title = excluded.title,
                description = excluded.description,
                tags_json = excluded.tags_json,
                edited_at = excluded.edited_at,
                feedback = excluded.feedback,
                feedback_at = excluded.feedback_at,
                updated_at = excluded.updated_at
            """,
            (
                str(asset.id),
                str(asset.workspace_id),
                str(asset.uploaded_by),
                str(asset.assigned_to),
                asset.original_ref,
                asset.edited_ref,
                asset.status,
                asset.title,
                asset.description,
                json.dumps(asset.tags),
                fmt_dt(asset.edited_at),
                asset.feedback,
                fmt_dt(asset.feedback_at),
                fmt_dt(asset.created_at),
                fmt_dt(asset.updated_at),
            ),
        )
        return asset

    def get_by_id(self, asset_id: UUID) -> Asset | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM assets WHERE id = ?", (str(asset_id),)).fetchone()
            return self._row_to_asset(row) if row else None
        finally:
            conn.close()

    def list_by_workspace(self, workspace_id: UUID) -> list[Asset]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM assets WHERE workspace_id = ? ORDER BY created_at DESC",
                (str(workspace_id),),
            ).fetchall()
            return [self._row_to_asset(r) for r in rows]
        finally:
            conn.close()

    def claim_publish(self, asset_id: UUID, now: datetime) -> bool:
        # An open attempt never expires on its own; see release_publish.
        rowcount = self._execute_write(
            """
            UPDATE assets SET publish_attempted_at = ?
            WHERE id = ? AND platform_id IS NULL AND publish_attempted_at IS NULL
            """,
            (fmt_dt(now), str(asset_id)),
        )
        return rowcount == 1

    def release_publish(self, asset_id: UUID) -> None:
        self._execute_write(
            """
            UPDATE assets SET publish_attempted_at = NULL
            WHERE id = ? AND platform_id IS NULL
            """,
            (str(asset_id),),
        )

    def record_publication(self, asset_id: UUID, record: PublicationRecord) -> bool:
        rowcount = self._execute_write(
            """
            UPDATE assets SET
                published = 1,
                platform_id = ?,
                published_title = ?,
                published_description = ?,
                published_visibility = ?,
                published_made_for_kids = ?,
                published_at = ?,
                updated_at = ?
            WHERE id = ? AND platform_id IS NULL
            """,
            (
                record.platform_id,
                record.title,
                record.description,
                record.visibility,
                int(record.made_for_kids),
                fmt_dt(record.published_at),
                fmt_dt(record.published_at),
                str(asset_id),
            ),
        )
        return rowcount == 1

    def list_unreconciled(self) -> list[Asset]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT * FROM assets
                WHERE publish_attempted_at IS NOT NULL AND platform_id IS NULL
                ORDER BY publish_attempted_at ASC
                """
            ).fetchall()
            return [self._row_to_asset(r) for r in rows]
        finally:
            conn.close()
