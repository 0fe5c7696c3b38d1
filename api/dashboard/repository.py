"""
Dashboard counters (raw SQL).
"""

from __future__ import annotations

from core.db import Database


async def get_stats(db: Database) -> dict:
    row = await db.fetch_one(
        """
        SELECT
          (SELECT count(*) FROM usuario)::int AS usuarios,
          (SELECT count(*) FROM colmena)::int AS colmenas,
          (SELECT count(*) FROM mensaje WHERE fecha::date = current_date)::int AS mensajes_hoy
        """
    )
    return row or {"usuarios": 0, "colmenas": 0, "mensajes_hoy": 0}
