import psycopg2
import psycopg2.errors
import pytest
from datetime import datetime, timezone

from eventboard.database.postgres_store import PostgresStore
from eventboard.database.store import DuplicateRecord, RecordNotFound, StoreError

WHEN = datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def mock_db(mocker):
    """
    Mocks the pooled connection and cursor used by PostgresStore.
    """
    mock_conn = mocker.Mock()
    mock_cursor = mocker.Mock()

    mock_conn.__enter__ = mocker.Mock(return_value=mock_conn)
    mock_conn.__exit__ = mocker.Mock(return_value=None)

    mock_cursor.__enter__ = mocker.Mock(return_value=mock_cursor)
    mock_cursor.__exit__ = mocker.Mock(return_value=None)

    mock_conn.cursor.return_value = mock_cursor

    mocker.patch("eventboard.database.postgres_store.get_db", return_value=mock_conn)

    return mock_conn, mock_cursor


def test_create_user(mock_db):
    _, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = {"id": 7}

    user = PostgresStore().create_user("a@x.com", "hashed")

    assert user.id == 7
    args, _ = mock_cursor.execute.call_args
    assert "INSERT INTO users" in args[0]
    assert args[1] == ("a@x.com", "hashed")


def test_create_user_duplicate(mock_db):
    _, mock_cursor = mock_db
    mock_cursor.execute.side_effect = psycopg2.errors.UniqueViolation()

    with pytest.raises(DuplicateRecord):
        PostgresStore().create_user("a@x.com", "hashed")


def test_get_user_by_email_missing(mock_db):
    _, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = None

    assert PostgresStore().get_user_by_email("a@x.com") is None


def test_get_user_by_email(mock_db):
    _, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = {"id": 1, "email": "a@x.com", "password": "hashed"}

    user = PostgresStore().get_user_by_email("a@x.com")

    assert user.password_hash == "hashed"


def test_list_events(mock_db):
    _, mock_cursor = mock_db
    mock_cursor.fetchall.return_value = [
        {"id": 1, "name": "n", "description": "d", "location": "l", "date_time": WHEN, "user_id": 3}
    ]

    events = PostgresStore().list_events()

    assert len(events) == 1
    assert events[0].user_id == 3
    assert events[0].date_time == WHEN


def test_get_event_missing(mock_db):
    _, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = None

    with pytest.raises(RecordNotFound):
        PostgresStore().get_event(1)


def test_update_event_puts_owner_in_where_clause(mock_db):
    _, mock_cursor = mock_db
    mock_cursor.rowcount = 1
    fields = {"name": "n", "description": "d", "location": "l", "date_time": WHEN}

    assert PostgresStore().update_event(5, 9, fields) is True

    sql, params = mock_cursor.execute.call_args[0]
    assert "WHERE id = %s AND user_id = %s" in sql
    assert params == ("n", "d", "l", WHEN, 5, 9)


def test_update_event_no_match(mock_db):
    _, mock_cursor = mock_db
    mock_cursor.rowcount = 0
    fields = {"name": "n", "description": "d", "location": "l", "date_time": WHEN}

    assert PostgresStore().update_event(5, 9, fields) is False


def test_delete_event_removes_registrations(mock_db):
    _, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = {"id": 5}

    assert PostgresStore().delete_event(5, 9) is True

    statements = [c[0][0] for c in mock_cursor.execute.call_args_list]
    assert "DELETE FROM events WHERE id = %s AND user_id = %s" in statements[0]
    assert "DELETE FROM registrations" in statements[1]


def test_delete_event_no_match(mock_db):
    _, mock_cursor = mock_db
    mock_cursor.fetchone.return_value = None

    assert PostgresStore().delete_event(5, 9) is False
    assert mock_cursor.execute.call_count == 1


def test_create_registration_missing_event(mock_db):
    _, mock_cursor = mock_db
    mock_cursor.execute.side_effect = psycopg2.errors.ForeignKeyViolation()

    with pytest.raises(RecordNotFound):
        PostgresStore().create_registration(1, 1)


def test_cancel_registration_returns_rowcount(mock_db):
    _, mock_cursor = mock_db
    mock_cursor.rowcount = 0

    assert PostgresStore().cancel_registration(1, 1) == 0


def test_generic_database_error(mock_db):
    _, mock_cursor = mock_db
    mock_cursor.execute.side_effect = psycopg2.OperationalError("connection lost")

    with pytest.raises(StoreError):
        PostgresStore().list_registrations()
