from typing import List

import psycopg2
from psycopg2.extras import execute_values

from arbledger.core.entities.split import Split
from arbledger.core.entities.transaction import Transaction


class LedgerRepo:
    """
    Postgres sink for fetched transactions and their ledger splits.
    Values are stored as NUMERIC text so 256-bit integers survive intact.
    """

    def __init__(self, dsn: str):
        self.dsn = dsn
        self._init_db()

    def _init_db(self):
        conn = psycopg2.connect(self.dsn)
        try:
            cur = conn.cursor()
            try:
                # Transactions Table
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS transactions (
                        hash VARCHAR PRIMARY KEY,
                        block_number BIGINT,
                        timestamp BIGINT,
                        from_address VARCHAR,
                        to_address VARCHAR,
                        value NUMERIC(78, 0),
                        tag VARCHAR,
                        category VARCHAR,
                        description VARCHAR,
                        address VARCHAR
                    );
                """)

                # Splits Table
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS splits (
                        date DATE,
                        description VARCHAR,
                        account VARCHAR,
                        commodity VARCHAR,
                        amount DOUBLE PRECISION,
                        value_usd DOUBLE PRECISION,
                        address VARCHAR
                    );
                """)

                conn.commit()
            finally:
                cur.close()
        finally:
            conn.close()

    def bulk_insert_transactions(self, transactions: List[Transaction], address: str):
        data = [
            (t.hash, t.block_number, t.timestamp, t.from_address, t.to_address,
             str(t.value), t.tag, t.category, t.description, address)
            for t in transactions
        ]

        insert_query = """
            INSERT INTO transactions
                (hash, block_number, timestamp, from_address, to_address, value, tag, category, description, address)
            VALUES %s
            ON CONFLICT (hash) DO NOTHING
        """

        conn = psycopg2.connect(self.dsn)
        try:
            cur = conn.cursor()
            try:
                execute_values(cur, insert_query, data)
                conn.commit()
            finally:
                cur.close()
        finally:
            conn.close()

    def replace_splits(self, splits: List[Split], address: str):
        """Splits are derived data, so a sync rewrites the address's set."""
        data = [
            (s.date, s.description, s.account, s.commodity, s.amount, s.value_usd, address)
            for s in splits
        ]

        insert_query = """
            INSERT INTO splits (date, description, account, commodity, amount, value_usd, address)
            VALUES %s
        """

        conn = psycopg2.connect(self.dsn)
        try:
            cur = conn.cursor()
            try:
                # Delete and insert commit together; a failed insert keeps the old rows
                cur.execute("DELETE FROM splits WHERE address = %s", (address,))
                if data:
                    execute_values(cur, insert_query, data)
                conn.commit()
            finally:
                cur.close()
        finally:
            conn.close()

    def get_splits(self, address: str) -> List[Split]:
        conn = psycopg2.connect(self.dsn)
        try:
            cur = conn.cursor()
            try:
                cur.execute("""
                    SELECT date, description, account, commodity, amount, value_usd
                    FROM splits
                    WHERE address = %s
                """, (address,))
                rows = cur.fetchall()
            finally:
                cur.close()
        finally:
            conn.close()

        splits = []
        for row in rows:
            splits.append(Split(
                date=row[0],
                description=row[1],
                account=row[2],
                commodity=row[3],
                amount=float(row[4]),
                value_usd=float(row[5]) if row[5] is not None else None
            ))
        return splits
