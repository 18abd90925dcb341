from datetime import date

import pytest

from arbledger.core.entities.split import Split
from arbledger.core.entities.transaction import Transaction
from arbledger.infrastructure.persistence import postgres_repo
from arbledger.infrastructure.persistence.postgres_repo import LedgerRepo
from tests.conftest import ALICE, TRACKED


class FakeCursor:
    def __init__(self, log, rows):
        self.log = log
        self.rows = rows
        self.closed = False

    def execute(self, query, params=None):
        self.log.append((" ".join(query.split()), params))

    def fetchall(self):
        return self.rows

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, log, rows):
        self.log = log
        self.rows = rows
        self.commits = 0
        self.closed = False
        self.cursors = []

    def cursor(self):
        cur = FakeCursor(self.log, self.rows)
        self.cursors.append(cur)
        return cur

    def commit(self):
        self.commits += 1

    def close(self):
        self.closed = True


@pytest.fixture
def db(monkeypatch):
    state = {"log": [], "values": [], "rows": [], "connections": []}

    def connect(dsn):
        conn = FakeConnection(state["log"], state["rows"])
        state["connections"].append(conn)
        return conn

    monkeypatch.setattr(postgres_repo.psycopg2, "connect", connect)
    monkeypatch.setattr(
        postgres_repo, "execute_values",
        lambda cur, query, data: state["values"].append((" ".join(query.split()), data))
    )
    return state


def test_creates_tables(db):
    LedgerRepo("postgresql://test")
    created = [q for q, _ in db["log"] if q.startswith("CREATE TABLE")]
    assert len(created) == 2


def test_transactions_keep_full_precision_values(db):
    repo = LedgerRepo("postgresql://test")
    tx = Transaction(hash="0xaa", from_address=ALICE, to_address=TRACKED, value=2 ** 255)

    repo.bulk_insert_transactions([tx], TRACKED)

    query, data = db["values"][0]
    assert query.startswith("INSERT INTO transactions")
    assert data[0][5] == str(2 ** 255)
    assert data[0][-1] == TRACKED


def test_replace_splits_clears_previous_rows(db):
    repo = LedgerRepo("postgresql://test")
    split = Split(date=date(2024, 1, 2), description="from alice", account="alice", commodity="ETH", amount=1.0)

    repo.replace_splits([split], TRACKED)

    assert ("DELETE FROM splits WHERE address = %s", (TRACKED,)) in db["log"]
    assert db["values"][0][1] == [(date(2024, 1, 2), "from alice", "alice", "ETH", 1.0, None, TRACKED)]


def test_get_splits_maps_rows(db):
    db["rows"].append((date(2024, 1, 2), "to bob", "bob", "USDC", -3.5, None))
    repo = LedgerRepo("postgresql://test")

    splits = repo.get_splits(TRACKED)

    assert splits[0].amount == -3.5
    assert splits[0].commodity == "USDC"
    assert splits[0].value_usd is None


def test_connections_are_closed_after_each_call(db):
    repo = LedgerRepo("postgresql://test")
    repo.bulk_insert_transactions([], TRACKED)
    repo.replace_splits([], TRACKED)
    repo.get_splits(TRACKED)

    assert len(db["connections"]) == 4
    assert all(conn.closed for conn in db["connections"])
    assert all(cur.closed for conn in db["connections"] for cur in conn.cursors)


def test_failed_insert_still_closes_the_connection(db, monkeypatch):
    repo = LedgerRepo("postgresql://test")

    def fail(cur, query, data):
        raise postgres_repo.psycopg2.DataError("numeric field overflow")

    monkeypatch.setattr(postgres_repo, "execute_values", fail)
    tx = Transaction(hash="0xaa", from_address=ALICE, to_address=TRACKED, value=1)
    split = Split(date=date(2024, 1, 2), description="from alice", account="alice", commodity="ETH", amount=1.0)

    with pytest.raises(postgres_repo.psycopg2.DataError):
        repo.bulk_insert_transactions([tx], TRACKED)
    with pytest.raises(postgres_repo.psycopg2.DataError):
        repo.replace_splits([split], TRACKED)

    failed = db["connections"][1:]
    assert len(failed) == 2
    assert all(conn.closed and conn.commits == 0 for conn in failed)
    assert all(cur.closed for conn in failed for cur in conn.cursors)
