"""HTTP journal store adapter - RPC client for the remote database."""

import asyncio
import logging
import threading
from datetime import date
from typing import Callable

import requests

from daybook.config import Config, Session, load_config
from daybook.core.entries import JournalEntry
from daybook.errors import AuthenticationRequired

logger = logging.getLogger(__name__)

ENTRIES_TABLE = "gratitude_entries"


class HttpJournalApi:
    """
    Remote journal store over HTTP.

    Implements JournalApi protocol. Statement mutations are database RPCs,
    reads go through the table endpoint. Blocking requests run in a worker
    thread so the event loop keeps serving other mutations; each worker thread
    gets its own HTTP session. No business
    logic - just I/O.
    """

    def __init__(
        self,
        config: Config | None = None,
        session: Session | None = None,
        http_factory: Callable[[], requests.Session] = requests.Session,
    ):
        self.config = config or load_config()
        self.session = session or Session.load()
        self.base_url = self.config.api_base_url.rstrip("/")
        self.timeout = self.config.api_timeout
        self._http_factory = http_factory
        self._local = threading.local()

    def _client(self) -> requests.Session:
        http = getattr(self._local, "http", None)
        if http is None:
            http = self._http_factory()
            self._local.http = http
        return http

    def _headers(self) -> dict[str, str]:
        if not self.session.access_token:
            raise AuthenticationRequired("No access token. Run 'daybook login' first.")
        return {
            "Authorization": f"Bearer {self.session.access_token}",
            "Content-Type": "application/json",
        }

    def _rpc(self, name: str, params: dict):
        """Call a database function. Returns its decoded JSON result, if any."""
        resp = self._client().post(
            f"{self.base_url}/rpc/{name}",
            json=params,
            headers=self._headers(),
            timeout=self.timeout,
        )
        resp.raise_for_status()
        if not resp.content:
            return None
        return resp.json()

    def _select(self, params: dict) -> list[dict]:
        resp = self._client().get(
            f"{self.base_url}/{ENTRIES_TABLE}",
            params=params,
            headers=self._headers(),
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    async def _call(self, name: str, params: dict):
        logger.debug(f"RPC {name} {params}")
        return await asyncio.to_thread(self._rpc, name, params)

    async def append_statement(
        self, owner_id: str, entry_date: date, statement: str, mood: str | None = None
    ) -> JournalEntry | None:
        """Append a statement, then read back the authoritative entry."""
        params = {"p_entry_date": entry_date.isoformat(), "p_statement": statement}
        if mood:
            params["p_mood"] = mood
        await self._call("add_gratitude_statement", params)
        return await self.read_entry_by_date(owner_id, entry_date)

    async def edit_statement(
        self, owner_id: str, entry_date: date, index: int, statement: str, mood: str | None = None
    ) -> None:
        await self._call(
            "edit_gratitude_statement",
            {
                "p_entry_date": entry_date.isoformat(),
                "p_statement_index": index,
                "p_updated_statement": statement,
                "p_mood": mood,
            },
        )

    async def delete_statement(self, owner_id: str, entry_date: date, index: int) -> None:
        await self._call(
            "delete_gratitude_statement",
            {"p_entry_date": entry_date.isoformat(), "p_statement_index": index},
        )

    async def delete_entry(self, owner_id: str, entry_date: date) -> None:
        await self._call("delete_gratitude_entry_by_date", {"p_entry_date": entry_date.isoformat()})

    async def set_mood(self, owner_id: str, entry_date: date, index: int, mood: str | None) -> None:
        await self._call(
            "set_gratitude_statement_mood",
            {"p_entry_date": entry_date.isoformat(), "p_statement_index": index, "p_mood": mood},
        )

    async def read_entry_by_date(self, owner_id: str, entry_date: date) -> JournalEntry | None:
        rows = await asyncio.to_thread(
            self._select,
            {
                "user_id": f"eq.{owner_id}",
                "entry_date": f"eq.{entry_date.isoformat()}",
                "limit": "1",
            },
        )
        if not rows:
            return None
        return JournalEntry.from_dict(rows[0])

    async def list_entries(self, owner_id: str) -> list[JournalEntry]:
        rows = await asyncio.to_thread(
            self._select,
            {"user_id": f"eq.{owner_id}", "order": "entry_date.desc"},
        )
        return [JournalEntry.from_dict(row) for row in rows]

    async def recompute_derived_aggregate(self, owner_id: str) -> int:
        """Ask the server to recalculate the streak, then fetch its value."""
        await self._call("recalculate_user_streak", {"p_user_id": owner_id})
        value = await self._call("calculate_streak", {"p_user_id": owner_id})
        return int(value or 0)
