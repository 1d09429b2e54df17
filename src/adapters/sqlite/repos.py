import json
import math
import sqlite3
from typing import Any

from src.domain.entities import (
    AttachmentFile,
    Author,
    ConnectionSettings,
    Post,
    PostPage,
    PostQuery,
    Term,
)

EXCLUDED_ANY_STATUSES = ("trash", "auto-draft")
SORTABLE_COLUMNS = {"date", "modified", "title", "slug", "id", "author_id"}


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class _SQLiteRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn


class SQLiteConnectionStore(_SQLiteRepo):
    """The single connection row (id 1)."""

    def get(self) -> ConnectionSettings:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM connection WHERE id = 1").fetchone()
        finally:
            conn.close()
        if not row:
            return ConnectionSettings()
        return ConnectionSettings(
            connection_key=row["connection_key"] or "",
            connected=bool(row["connected"]),
            connected_at=row["connected_at"],
            forge_site_id=row["forge_site_id"],
        )

    def save(self, settings: ConnectionSettings) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO connection (id, connection_key, connected, connected_at, forge_site_id)
                VALUES (1, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    connection_key=excluded.connection_key,
                    connected=excluded.connected,
                    connected_at=excluded.connected_at,
                    forge_site_id=excluded.forge_site_id
            """,
                (
                    settings.connection_key,
                    int(settings.connected),
                    settings.connected_at,
                    settings.forge_site_id,
                ),
            )
            conn.commit()
        finally:
            conn.close()


class SQLiteUserRepo(_SQLiteRepo):
    def _map_row(self, row: dict[str, Any]) -> Author:
        return Author(
            id=row["id"],
            username=row["username"],
            display_name=row["display_name"],
            email=row["email"],
            roles=json.loads(row["roles_json"] or "[]"),
            registered=row["registered"],
        )

    def list_all(self) -> list[Author]:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM users ORDER BY id").fetchall()
        finally:
            conn.close()
        return [self._map_row(r) for r in rows]

    def get(self, user_id: int) -> Author | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        finally:
            conn.close()
        return self._map_row(row) if row else None

    def get_by_username(self, username: str) -> Author | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM users WHERE username = ?", (username,)).fetchone()
        finally:
            conn.close()
        return self._map_row(row) if row else None

    def save(self, user: Author) -> Author:
        conn = self._get_conn()
        try:
            values = (
                user.username,
                user.display_name,
                user.email,
                json.dumps(user.roles),
                user.registered,
            )
            if user.id:
                conn.execute(
                    """
                    INSERT INTO users (id, username, display_name, email, roles_json, registered)
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        username=excluded.username,
                        display_name=excluded.display_name,
                        email=excluded.email,
                        roles_json=excluded.roles_json,
                        registered=excluded.registered
                """,
                    (user.id, *values),
                )
                user_id = user.id
            else:
                cursor = conn.execute(
                    """
                    INSERT INTO users (username, display_name, email, roles_json, registered)
                    VALUES (?, ?, ?, ?, ?)
                """,
                    values,
                )
                user_id = cursor.lastrowid
            conn.commit()
        finally:
            conn.close()
        return user.model_copy(update={"id": user_id})


class SQLitePostRepo(_SQLiteRepo):
    """Post rows with their meta and term relationships."""

    def _load_relations(self, conn: sqlite3.Connection, row: dict[str, Any]) -> Post:
        post_id = row["id"]
        meta_rows = conn.execute(
            "SELECT meta_key, meta_value FROM postmeta WHERE post_id = ? ORDER BY meta_key",
            (post_id,),
        ).fetchall()
        term_rows = conn.execute(
            """
            SELECT t.id, t.taxonomy FROM term_relationships tr
            JOIN terms t ON t.id = tr.term_id
            WHERE tr.post_id = ?
            ORDER BY tr.position
        """,
            (post_id,),
        ).fetchall()

        attachment = None
        if row["attachment_json"]:
            attachment = AttachmentFile.model_validate_json(row["attachment_json"])

        return Post(
            id=post_id,
            post_type=row["post_type"],
            title=row["title"],
            slug=row["slug"],
            status=row["status"],
            content=row["content"],
            excerpt=row["excerpt"],
            author_id=row["author_id"],
            date=row["date"],
            date_gmt=row["date_gmt"],
            modified=row["modified"],
            modified_gmt=row["modified_gmt"],
            mime_type=row["mime_type"],
            parent_id=row["parent_id"],
            attachment=attachment,
            meta={m["meta_key"]: m["meta_value"] for m in meta_rows},
            category_ids=[t["id"] for t in term_rows if t["taxonomy"] == "category"],
            tag_ids=[t["id"] for t in term_rows if t["taxonomy"] == "post_tag"],
        )

    def get(self, post_id: int) -> Post | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM posts WHERE id = ?", (post_id,)).fetchone()
            return self._load_relations(conn, row) if row else None
        finally:
            conn.close()

    def save(self, post: Post) -> Post:
        conn = self._get_conn()
        try:
            values = (
                post.post_type,
                post.title,
                post.slug,
                post.status,
                post.content,
                post.excerpt,
                post.author_id,
                post.date,
                post.date_gmt,
                post.modified,
                post.modified_gmt,
                post.mime_type,
                post.parent_id,
                post.attachment.model_dump_json() if post.attachment else None,
            )
            columns = """
                post_type, title, slug, status, content, excerpt, author_id,
                date, date_gmt, modified, modified_gmt, mime_type, parent_id, attachment_json
            """
            if post.id:
                conn.execute(
                    f"""
                    INSERT INTO posts (id, {columns})
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        post_type=excluded.post_type,
                        title=excluded.title,
                        slug=excluded.slug,
                        status=excluded.status,
                        content=excluded.content,
                        excerpt=excluded.excerpt,
                        author_id=excluded.author_id,
                        date=excluded.date,
                        date_gmt=excluded.date_gmt,
                        modified=excluded.modified,
                        modified_gmt=excluded.modified_gmt,
                        mime_type=excluded.mime_type,
                        parent_id=excluded.parent_id,
                        attachment_json=excluded.attachment_json
                """,
                    (post.id, *values),
                )
                post_id = post.id
            else:
                cursor = conn.execute(
                    f"""
                    INSERT INTO posts ({columns})
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                    values,
                )
                post_id = cursor.lastrowid

            conn.execute("DELETE FROM postmeta WHERE post_id = ?", (post_id,))
            conn.executemany(
                "INSERT INTO postmeta (post_id, meta_key, meta_value) VALUES (?, ?, ?)",
                [(post_id, k, v) for k, v in post.meta.items()],
            )

            conn.execute("DELETE FROM term_relationships WHERE post_id = ?", (post_id,))
            conn.executemany(
                """
                INSERT OR IGNORE INTO term_relationships (post_id, term_id, position)
                VALUES (?, ?, ?)
            """,
                [
                    (post_id, term_id, position)
                    for position, term_id in enumerate(post.category_ids + post.tag_ids)
                ],
            )
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()
        return post.model_copy(update={"id": post_id})

    def delete(self, post_id: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM postmeta WHERE post_id = ?", (post_id,))
            conn.execute("DELETE FROM term_relationships WHERE post_id = ?", (post_id,))
            conn.execute("DELETE FROM posts WHERE id = ?", (post_id,))
            conn.commit()
        finally:
            conn.close()

    def query(self, query: PostQuery) -> PostPage:
        clauses: list[str] = []
        params: list[Any] = []

        if query.post_types:
            clauses.append(f"post_type IN ({', '.join('?' for _ in query.post_types)})")
            params.extend(query.post_types)

        if query.statuses is None:
            clauses.append("status NOT IN (?, ?)")
            params.extend(EXCLUDED_ANY_STATUSES)
        elif query.statuses:
            clauses.append(f"status IN ({', '.join('?' for _ in query.statuses)})")
            params.extend(query.statuses)

        if query.mime_type:
            if "/" in query.mime_type:
                clauses.append("mime_type = ?")
                params.append(query.mime_type)
            else:
                clauses.append("mime_type LIKE ? ESCAPE '\\'")
                params.append(_escape_like(query.mime_type) + "/%")

        if query.search:
            pattern = f"%{_escape_like(query.search)}%"
            clauses.append(
                "(title LIKE ? ESCAPE '\\' OR content LIKE ? ESCAPE '\\' "
                "OR excerpt LIKE ? ESCAPE '\\')"
            )
            params.extend([pattern, pattern, pattern])

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        column = query.orderby if query.orderby in SORTABLE_COLUMNS else "date"
        direction = "ASC" if query.order.upper() == "ASC" else "DESC"
        per_page = max(query.per_page, 1)
        offset = (max(query.page, 1) - 1) * per_page

        conn = self._get_conn()
        try:
            total = conn.execute(f"SELECT COUNT(*) AS n FROM posts {where}", params).fetchone()["n"]
            rows = conn.execute(
                f"""
                SELECT * FROM posts {where}
                ORDER BY {column} {direction}, id {direction}
                LIMIT ? OFFSET ?
            """,
                [*params, per_page, offset],
            ).fetchall()
            posts = [self._load_relations(conn, r) for r in rows]
        finally:
            conn.close()

        return PostPage(posts=posts, total=total, total_pages=math.ceil(total / per_page))

    def slug_exists(self, slug: str, post_type: str, exclude_id: int = 0) -> bool:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT 1 FROM posts WHERE slug = ? AND post_type = ? AND id != ? LIMIT 1",
                (slug, post_type, exclude_id),
            ).fetchone()
        finally:
            conn.close()
        return row is not None

    def count_by_status(self, post_type: str) -> dict[str, int]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT status, COUNT(*) AS n FROM posts WHERE post_type = ? GROUP BY status",
                (post_type,),
            ).fetchall()
        finally:
            conn.close()
        return {r["status"]: r["n"] for r in rows}


class SQLiteTermRepo(_SQLiteRepo):
    """Categories and tags; counts only include published posts."""

    _SELECT = """
        SELECT t.*, (
            SELECT COUNT(*) FROM term_relationships tr
            JOIN posts p ON p.id = tr.post_id
            WHERE tr.term_id = t.id AND p.status = 'publish'
        ) AS count
        FROM terms t
    """

    def _map_row(self, row: dict[str, Any]) -> Term:
        return Term(
            id=row["id"],
            taxonomy=row["taxonomy"],
            name=row["name"],
            slug=row["slug"],
            description=row["description"],
            parent=row["parent"],
            count=row["count"],
        )

    def get(self, term_id: int, taxonomy: str | None = None) -> Term | None:
        sql = f"{self._SELECT} WHERE t.id = ?"
        params: list[Any] = [term_id]
        if taxonomy is not None:
            sql += " AND t.taxonomy = ?"
            params.append(taxonomy)

        conn = self._get_conn()
        try:
            row = conn.execute(sql, params).fetchone()
        finally:
            conn.close()
        return self._map_row(row) if row else None

    def list_by_taxonomy(self, taxonomy: str) -> list[Term]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                f"{self._SELECT} WHERE t.taxonomy = ? ORDER BY t.name COLLATE NOCASE, t.id",
                (taxonomy,),
            ).fetchall()
        finally:
            conn.close()
        return [self._map_row(r) for r in rows]

    def find_by_name(self, taxonomy: str, name: str, parent: int | None = None) -> Term | None:
        sql = f"{self._SELECT} WHERE t.taxonomy = ? AND lower(t.name) = lower(?)"
        params: list[Any] = [taxonomy, name]
        if parent is not None:
            sql += " AND t.parent = ?"
            params.append(parent)

        conn = self._get_conn()
        try:
            row = conn.execute(sql + " ORDER BY t.id LIMIT 1", params).fetchone()
        finally:
            conn.close()
        return self._map_row(row) if row else None

    def slug_exists(self, taxonomy: str, slug: str) -> bool:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT 1 FROM terms WHERE taxonomy = ? AND slug = ? LIMIT 1", (taxonomy, slug)
            ).fetchone()
        finally:
            conn.close()
        return row is not None

    def insert(self, term: Term) -> Term:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                """
                INSERT INTO terms (taxonomy, name, slug, description, parent)
                VALUES (?, ?, ?, ?, ?)
            """,
                (term.taxonomy, term.name, term.slug, term.description, term.parent),
            )
            conn.commit()
            term_id = cursor.lastrowid
        finally:
            conn.close()
        return term.model_copy(update={"id": term_id, "count": 0})


class SQLiteTransientCache(_SQLiteRepo):
    """Expiring JSON values keyed by name."""

    def __init__(self, db_path: str, clock: Any):
        super().__init__(db_path)
        self.clock = clock

    def _now(self) -> int:
        return int(self.clock.now_utc().timestamp())

    def get(self, key: str) -> Any:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT value_json, expires_at FROM transients WHERE name = ?", (key,)
            ).fetchone()
            if row is None:
                return None
            if row["expires_at"] <= self._now():
                conn.execute("DELETE FROM transients WHERE name = ?", (key,))
                conn.commit()
                return None
        finally:
            conn.close()
        return json.loads(row["value_json"])

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO transients (name, value_json, expires_at) VALUES (?, ?, ?)
                ON CONFLICT(name) DO UPDATE SET
                    value_json=excluded.value_json,
                    expires_at=excluded.expires_at
            """,
                (key, json.dumps(value), self._now() + ttl_seconds),
            )
            conn.commit()
        finally:
            conn.close()

    def delete_prefix(self, prefix: str) -> int:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                "DELETE FROM transients WHERE substr(name, 1, ?) = ?", (len(prefix), prefix)
            )
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()
