import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from leadgen.models.state import GenerationRequest, Lead

logger = logging.getLogger(__name__)


def create_connection(db_path: Union[str, Path]) -> sqlite3.Connection:
    """Create a database connection to the SQLite database."""
    if str(db_path) != ":memory:":
        # Ensure the parent directory exists
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def create_tables(conn: sqlite3.Connection) -> None:
    """Create the saved_leads and audit_logs tables if they don't exist."""
    c = conn.cursor()
    c.execute("""
        CREATE TABLE IF NOT EXISTS saved_leads (
            lead_id TEXT PRIMARY KEY,
            business_name TEXT,
            official_website TEXT,
            payload TEXT NOT NULL,
            saved_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
    """)
    c.execute("""
        CREATE TABLE IF NOT EXISTS audit_logs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            timestamp TEXT NOT NULL,
            params TEXT NOT NULL,
            generated_leads_count INTEGER NOT NULL
        );
    """)
    conn.commit()


class LeadStore:
    """
    Saved leads and the local audit trail, keyed by ``Lead.storage_key``.
    Saving a lead with an existing key replaces it.
    """

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = db_path
        self.conn = create_connection(db_path)
        create_tables(self.conn)
        logger.info(f"Lead store ready at {db_path}")

    def close(self) -> None:
        self.conn.close()

    def upsert(self, lead: Lead) -> Lead:
        """Save one lead, assigning its id from name and website when missing."""
        if not lead.id:
            lead = lead.model_copy(update={"id": lead.storage_key})

        sql = ''' INSERT OR REPLACE INTO saved_leads(
                    lead_id, business_name, official_website, payload
                  ) VALUES(?,?,?,?) '''
        self.conn.execute(
            sql,
            (lead.id, lead.business_name, lead.official_website, lead.model_dump_json(by_alias=True)),
        )
        self.conn.commit()
        logger.info(f"Saved lead_id {lead.id}")
        return lead

    def upsert_many(self, leads: List[Lead]) -> List[Lead]:
        return [self.upsert(lead) for lead in leads]

    def get_all(self) -> List[Lead]:
        rows = self.conn.execute("SELECT lead_id, payload FROM saved_leads ORDER BY saved_at, rowid").fetchall()
        leads = []
        for row in rows:
            try:
                leads.append(Lead.model_validate_json(row["payload"]))
            except ValueError as e:
                logger.error(f"Skipping unreadable saved lead '{row['lead_id']}': {e}")
        return leads

    def business_names(self) -> List[str]:
        rows = self.conn.execute("SELECT business_name FROM saved_leads").fetchall()
        return [row["business_name"] for row in rows if row["business_name"]]

    def clear(self) -> int:
        cursor = self.conn.execute("DELETE FROM saved_leads")
        self.conn.commit()
        logger.info(f"Cleared {cursor.rowcount} saved leads")
        return cursor.rowcount

    def add_audit_log(
        self,
        request: GenerationRequest,
        generated_leads_count: int,
        timestamp: Optional[datetime] = None,
    ) -> int:
        timestamp = timestamp or datetime.now(timezone.utc)
        cursor = self.conn.execute(
            "INSERT INTO audit_logs(timestamp, params, generated_leads_count) VALUES(?,?,?)",
            (timestamp.isoformat(), request.model_dump_json(by_alias=True), generated_leads_count),
        )
        self.conn.commit()
        return cursor.lastrowid

    def get_audit_logs(self) -> List[Dict[str, Any]]:
        """Audit entries, newest first, each flattened with its request parameters."""
        rows = self.conn.execute("SELECT * FROM audit_logs").fetchall()
        entries = []
        for row in rows:
            entry = json.loads(row["params"])
            entry.update({
                "id": row["id"],
                "timestamp": row["timestamp"],
                "generatedLeadsCount": row["generated_leads_count"],
            })
            entries.append(entry)
        return sorted(entries, key=lambda e: (e["timestamp"], e["id"]), reverse=True)
