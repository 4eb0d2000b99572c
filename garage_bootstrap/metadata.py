"""
Access key purge for the Garage metadata database.

Deleting every stored key before the server starts means the configured
key is always imported into an empty key table.
"""

import logging
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

KEY_TABLE = "tree_key_COLON_table"


def purge_access_keys(db_path: str) -> Optional[int]:
    """
    Delete all access keys from the sqlite metadata database.

    Args:
        db_path: Path to ``db.sqlite`` in the metadata directory

    Returns:
        Number of deleted keys, or None if the database does not exist yet

    Raises:
        sqlite3.Error: If the database cannot be opened or modified
    """
    if not Path(db_path).exists():
        logger.info(f"{db_path} does not exist. Skipping key deletion.")
        return None

    logger.info("Deleting all access keys...")
    with closing(sqlite3.connect(db_path)) as conn:
        with conn:
            count = conn.execute(f"DELETE FROM {KEY_TABLE};").rowcount
    logger.info(f"All access keys removed: {count}")
    return count
