"""Runtime data repository — the ``runtime_data`` table.

Stores the JSON execution context a job row points at through
``jobs.runtime_data_id``.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from jobspine.core.models import RuntimeData
from jobspine.core.repository import BaseRepository
from jobspine.core.timestamps import generate_ulid

from ._helpers import store_errors


class RuntimeDataRepository(BaseRepository):
    """Read and write stored execution payloads."""

    TABLE = "runtime_data"

    def get(self, runtime_data_id: str) -> RuntimeData | None:
        with store_errors("fetch runtime data"):
            data = self.query_one(
                f"SELECT runtime_data_id, runtime_info FROM {self.TABLE} "
                f"WHERE runtime_data_id = {self.ph(1)}",
                (runtime_data_id,),
            )
        if data is None:
            return None
        return RuntimeData(
            runtime_data_id=data["runtime_data_id"],
            runtime_info=data["runtime_info"],
        )

    def create(self, context: Mapping[str, Any], runtime_data_id: str | None = None) -> RuntimeData:
        """Serialize ``context`` to JSON and store it."""
        record = RuntimeData(
            runtime_data_id=runtime_data_id or generate_ulid(),
            runtime_info=json.dumps(dict(context), default=str),
        )
        with store_errors("create runtime data"):
            self.insert(
                self.TABLE,
                {"runtime_data_id": record.runtime_data_id, "runtime_info": record.runtime_info},
            )
            self.commit()
        return record


__all__ = [
    "RuntimeDataRepository",
]
