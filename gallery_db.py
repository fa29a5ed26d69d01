"""docstring gallery_db.py: SQLite store for characters and their commissions.

Every call opens its own connection and closes it before returning. Writable
connections set a busy timeout so concurrent writers queue on SQLite's lock,
and multi-statement writes run inside one explicit transaction."""
import json
import logging
import os
import sqlite3
from contextlib import contextmanager
from urllib.request import pathname2url

from retrying import retry

import settings

ACTIVE = 'active'
STALE = 'stale'
PARTITIONS = (ACTIVE, STALE)


class GalleryError(Exception):
    """Base class for errors reported back to the admin UI."""
    pass


class ValidationError(GalleryError):
    """Raised when admin input is empty or malformed."""
    pass


class NotFoundError(GalleryError):
    """Raised when operating on an id that does not exist."""
    pass


class DatabaseError(GalleryError):
    """Raised for constraint violations and lock timeouts."""

    def __init__(self, message, locked=False):
        super().__init__(message)
        self.locked = locked


def wrap_database_error(e):
    locked = isinstance(e, sqlite3.OperationalError) and 'locked' in str(e).lower()
    return DatabaseError(str(e), locked=locked)


def is_lock_error(e):
    return isinstance(e, DatabaseError) and e.locked


def parse_links(raw):
    """Decode the JSON links column; anything malformed becomes an empty list."""
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return []
    if not isinstance(parsed, list):
        return []
    return [str(link) for link in parsed]


def clean_name(name):
    if not isinstance(name, str) or not name.strip():
        raise ValidationError('Character name is required.')
    return name.strip()


def check_status(status):
    if status not in PARTITIONS:
        raise ValidationError(f"Invalid character status: {status!r}")
    return status


def clean_file_name(file_name):
    if not isinstance(file_name, str) or not file_name.strip():
        raise ValidationError('File name is required.')
    return file_name.strip()


def check_id(value, label='id'):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"Invalid {label}: {value!r}")
    return value


@contextmanager
def transaction(connection):
    """BEGIN IMMEDIATE ... COMMIT, rolling back on any exception."""
    connection.execute('BEGIN IMMEDIATE')
    try:
        yield connection
    except BaseException:
        if connection.in_transaction:
            connection.execute('ROLLBACK')
        raise
    else:
        connection.execute('COMMIT')


class GalleryDb:
    TABLES = {
        'characters': (
            "CREATE TABLE IF NOT EXISTS characters ("
            "  id INTEGER PRIMARY KEY AUTOINCREMENT,"
            "  name TEXT NOT NULL,"
            "  status TEXT NOT NULL DEFAULT 'active' CHECK (status IN ('active', 'stale')),"
            "  sort_order INTEGER NOT NULL"
            ")"
        ),
        'commissions': (
            "CREATE TABLE IF NOT EXISTS commissions ("
            "  id INTEGER PRIMARY KEY AUTOINCREMENT,"
            "  character_id INTEGER NOT NULL REFERENCES characters(id),"
            "  file_name TEXT NOT NULL,"
            "  links TEXT NOT NULL DEFAULT '[]',"
            "  design TEXT,"
            "  description TEXT,"
            "  hidden INTEGER NOT NULL DEFAULT 0"
            ")"
        ),
    }

    def __init__(self, database_path=None, busy_timeout_ms=None, logger=None):
        self.database_path = database_path or settings.DATABASE_PATH
        self.busy_timeout_ms = busy_timeout_ms if busy_timeout_ms is not None else settings.BUSY_TIMEOUT_MS
        self.logger = logger or logging.getLogger(__name__)

    @contextmanager
    def connect(self, readonly=False):
        """
        Open a connection for the duration of one operation.

        Read-only connections require the database file to exist. The
        connection runs in autocommit mode; use transaction() for
        multi-statement writes.
        """
        if readonly:
            if not os.path.exists(self.database_path):
                raise DatabaseError(
                    f"SQLite database not found at {self.database_path}. Run create_tables() first."
                )
            target = 'file:' + pathname2url(os.path.abspath(self.database_path)) + '?mode=ro'
        else:
            directory = os.path.dirname(os.path.abspath(self.database_path))
            os.makedirs(directory, exist_ok=True)
            target = self.database_path

        connection = None
        try:
            connection = sqlite3.connect(
                target,
                uri=readonly,
                timeout=self.busy_timeout_ms / 1000,
                isolation_level=None,
            )
            connection.row_factory = sqlite3.Row
            connection.execute(f"PRAGMA busy_timeout = {int(self.busy_timeout_ms)}")
            if not readonly:
                connection.execute('PRAGMA foreign_keys = ON')
            yield connection
        except sqlite3.Error as e:
            self.logger.error(f"Database error: {e}")
            raise wrap_database_error(e) from e
        finally:
            if connection is not None:
                connection.close()

    def create_tables(self):
        """Create the required tables if they do not exist."""
        with self.connect() as connection:
            for table_name, table_description in self.TABLES.items():
                self.logger.debug(f"Creating table {table_name}...")
                connection.execute(table_description)
            connection.execute(
                "CREATE INDEX IF NOT EXISTS commissions_character_id ON commissions(character_id)"
            )

    # --- reads -------------------------------------------------------------

    def get_admin_data(self):
        """Characters with commission counts, plus every commission, in display order."""
        with self.connect(readonly=True) as connection:
            characters = [
                {
                    'id': row['id'],
                    'name': row['name'],
                    'status': row['status'],
                    'sort_order': row['sort_order'],
                    'commission_count': int(row['commission_count'] or 0),
                }
                for row in connection.execute(
                    """SELECT characters.id, characters.name, characters.status, characters.sort_order,
                              COUNT(commissions.id) AS commission_count
                       FROM characters
                       LEFT JOIN commissions ON commissions.character_id = characters.id
                       GROUP BY characters.id
                       ORDER BY characters.sort_order ASC"""
                )
            ]

            commissions = [
                {
                    'id': row['id'],
                    'character_id': row['character_id'],
                    'character_name': row['character_name'],
                    'file_name': row['file_name'],
                    'links': parse_links(row['links']),
                    'design': row['design'],
                    'description': row['description'],
                    'hidden': bool(row['hidden']),
                }
                for row in connection.execute(
                    """SELECT commissions.id, commissions.character_id, characters.name AS character_name,
                              commissions.file_name, commissions.links, commissions.design,
                              commissions.description, commissions.hidden
                       FROM commissions
                       JOIN characters ON characters.id = commissions.character_id
                       ORDER BY characters.sort_order ASC, commissions.file_name DESC"""
                )
            ]

        return {'characters': characters, 'commissions': commissions}

    def get_character_records(self):
        """Characters in sort order, each with its commissions nested."""
        with self.connect(readonly=True) as connection:
            rows = connection.execute(
                """SELECT characters.id, characters.name, characters.status, characters.sort_order,
                          commissions.file_name, commissions.links, commissions.design,
                          commissions.description, commissions.hidden
                   FROM characters
                   LEFT JOIN commissions ON commissions.character_id = characters.id
                   ORDER BY characters.sort_order ASC, commissions.file_name DESC"""
            ).fetchall()

        records = {}
        for row in rows:
            record = records.get(row['id'])
            if record is None:
                record = records[row['id']] = {
                    'id': row['id'],
                    'name': row['name'],
                    'status': row['status'],
                    'sort_order': row['sort_order'],
                    'commissions': [],
                }
            if not row['file_name']:
                continue
            record['commissions'].append({
                'file_name': row['file_name'],
                'links': parse_links(row['links']),
                'design': row['design'],
                'description': row['description'],
                'hidden': bool(row['hidden'] or 0),
            })

        return sorted(records.values(), key=lambda r: r['sort_order'])

    def get_character(self, character_id):
        with self.connect(readonly=True) as connection:
            row = connection.execute(
                "SELECT id, name, status, sort_order FROM characters WHERE id = ?",
                (character_id,)
            ).fetchone()
        if row is None:
            raise NotFoundError('Character not found.')
        return dict(row)

    # --- character writes ----------------------------------------------------

    @retry(retry_on_exception=is_lock_error, stop_max_attempt_number=3, wait_exponential_multiplier=100)
    def create_character(self, name, status=ACTIVE):
        """Append a character at max(sort_order) + 1 and return its id."""
        name = clean_name(name)
        check_status(status)

        with self.connect() as connection:
            with transaction(connection):
                max_order = connection.execute(
                    "SELECT COALESCE(MAX(sort_order), 0) FROM characters"
                ).fetchone()[0]
                cursor = connection.execute(
                    "INSERT INTO characters (name, status, sort_order) VALUES (?, ?, ?)",
                    (name, status, int(max_order) + 1)
                )
                character_id = cursor.lastrowid

        self.logger.debug(f"Created character {character_id}: {name} ({status})")
        return character_id

    @retry(retry_on_exception=is_lock_error, stop_max_attempt_number=3, wait_exponential_multiplier=100)
    def update_character(self, character_id, name, status):
        """Rename a character and set its status; sort_order is left alone."""
        check_id(character_id, 'character id')
        name = clean_name(name)
        check_status(status)

        with self.connect() as connection:
            cursor = connection.execute(
                "UPDATE characters SET name = ?, status = ? WHERE id = ?",
                (name, status, character_id)
            )
            if cursor.rowcount == 0:
                raise NotFoundError('Character not found.')

    @retry(retry_on_exception=is_lock_error, stop_max_attempt_number=3, wait_exponential_multiplier=100)
    def reindex_characters(self, active, stale, strict=False):
        """
        Rewrite sort_order and status from two ordered id lists in one transaction.

        Position i (0-based) in active + stale gets sort_order i + 1, and the
        status of the list it came from. Ids missing from both lists keep their
        old values, so callers should pass every character; with strict=True a
        list that does not cover the table exactly is rejected.
        """
        if not isinstance(active, (list, tuple)) or not isinstance(stale, (list, tuple)):
            raise ValidationError('Invalid character order payload.')
        for value in list(active) + list(stale):
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError('Invalid character order payload.')

        combined = [(i, ACTIVE) for i in active] + [(i, STALE) for i in stale]
        ids = [character_id for character_id, _ in combined]
        if len(set(ids)) != len(ids):
            raise ValidationError('Character order must not list an id more than once.')

        with self.connect() as connection:
            with transaction(connection):
                existing = {row[0] for row in connection.execute("SELECT id FROM characters")}
                missing = existing - set(ids)
                unknown = set(ids) - existing
                if missing or unknown:
                    message = (
                        f"Character order does not match the table "
                        f"(missing: {sorted(missing)}, unknown: {sorted(unknown)})"
                    )
                    if strict:
                        raise ValidationError(message)
                    self.logger.warning(message)

                for position, (character_id, status) in enumerate(combined):
                    connection.execute(
                        "UPDATE characters SET sort_order = ?, status = ? WHERE id = ?",
                        (position + 1, status, character_id)
                    )

        self.logger.debug(f"Reindexed {len(active)} active and {len(stale)} stale characters")

    @retry(retry_on_exception=is_lock_error, stop_max_attempt_number=3, wait_exponential_multiplier=100)
    def delete_character(self, character_id):
        """Delete a character and all of its commissions atomically."""
        with self.connect() as connection:
            with transaction(connection):
                row = connection.execute(
                    "SELECT name FROM characters WHERE id = ?", (character_id,)
                ).fetchone()
                if row is None:
                    raise NotFoundError('Character not found.')

                removed = connection.execute(
                    "DELETE FROM commissions WHERE character_id = ?", (character_id,)
                ).rowcount
                connection.execute("DELETE FROM characters WHERE id = ?", (character_id,))

        self.logger.debug(f"Deleted character {character_id} ({row['name']}) and {removed} commissions")
        return row['name']

    # --- commission writes ---------------------------------------------------

    @staticmethod
    def _lookup_character(connection, character_id):
        row = connection.execute(
            "SELECT id, name FROM characters WHERE id = ?", (character_id,)
        ).fetchone()
        if row is None:
            raise ValidationError('Selected character does not exist.')
        return row

    @retry(retry_on_exception=is_lock_error, stop_max_attempt_number=3, wait_exponential_multiplier=100)
    def create_commission(self, character_id, file_name, links=None, design=None, description=None,
                          hidden=False):
        """Insert a commission for an existing character; returns (id, character name)."""
        file_name = clean_file_name(file_name)
        with self.connect() as connection:
            with transaction(connection):
                character = self._lookup_character(connection, character_id)
                cursor = connection.execute(
                    """INSERT INTO commissions (character_id, file_name, links, design, description, hidden)
                       VALUES (?, ?, ?, ?, ?, ?)""",
                    (character['id'], file_name, json.dumps(list(links or [])),
                     design, description, 1 if hidden else 0)
                )
                commission_id = cursor.lastrowid

        return commission_id, character['name']

    @retry(retry_on_exception=is_lock_error, stop_max_attempt_number=3, wait_exponential_multiplier=100)
    def update_commission(self, commission_id, character_id, file_name, links=None, design=None,
                          description=None, hidden=False):
        file_name = clean_file_name(file_name)
        with self.connect() as connection:
            with transaction(connection):
                character = self._lookup_character(connection, character_id)
                cursor = connection.execute(
                    """UPDATE commissions
                       SET character_id = ?, file_name = ?, links = ?, design = ?, description = ?, hidden = ?
                       WHERE id = ?""",
                    (character['id'], file_name, json.dumps(list(links or [])),
                     design, description, 1 if hidden else 0, commission_id)
                )
                if cursor.rowcount == 0:
                    raise NotFoundError('Commission not found.')

    @retry(retry_on_exception=is_lock_error, stop_max_attempt_number=3, wait_exponential_multiplier=100)
    def delete_commission(self, commission_id):
        with self.connect() as connection:
            cursor = connection.execute("DELETE FROM commissions WHERE id = ?", (commission_id,))
            if cursor.rowcount == 0:
                raise NotFoundError('Commission not found.')
