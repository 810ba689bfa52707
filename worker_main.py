# worker_main.py
"""
DB Queue Worker for the glossary bot (STRICT routing)

Receiver logic
--------------
Each QueueMessage row has a receiver_id column.

This worker process is identified by QUEUE_RECEIVER_ID (env var).
AsyncGuard polls ONLY messages where:
    QueueMessage.receiver_id == QUEUE_RECEIVER_ID and QueueMessage.type == "message_posted"

Routing logic
-------------
Routing is done by sender_id prefix:
    "<app_key><app_key_delim><room_id>"

Example sender_ids:
  - "glossary::room_42" -> GlossaryApp (key="glossary", key_delim="::"), room_id="room_42"

STRICT mode:
  - There is NO default/fallback app here.
  - If sender_id does not match any registered app prefix, the job is logged and dropped.

Replies
-------
Replies are written back to the same table as "send_text" rows whose
receiver_id is the room id (see glossary_bot/transport.py).

Concurrency
-----------
Each claimed row runs as its own asyncio task (the dispatcher itself is sync and
runs in a worker thread). max_concurrent is a GLOBAL cap. There is no per-key
locking: two messages touching the same key at the same time can lose an update.
"""

import os
import asyncio
import logging
from typing import Any, Dict, List, Optional, Set, Tuple, Callable

from sqlalchemy.orm import Session

from dotenv import load_dotenv
load_dotenv()

from glossary_bot.entities import QueueMessage
from glossary_bot.GCConnection_hlpr import GCConnection
from glossary_bot.dispatcher import GlossaryDispatcher
from glossary_bot.glossary_store import GlossaryStore
from glossary_bot.models import PostedMessage
from glossary_bot.persistence import SqlPersistence
from glossary_bot.transport import QueueTransport, StaticUserReader


logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s | %(levelname)s | %(name)s\n%(message)s\n",
)
logger = logging.getLogger("glossary_worker")

QUEUE_RECEIVER_ID = os.getenv("QUEUE_RECEIVER_ID")
BOT_USER_ID = os.getenv("BOT_USER_ID")
BOT_USERNAME = os.getenv("BOT_USERNAME")
CONCURRENT_INSTANCES = int(os.getenv("CONCURRENT_INSTANCES", "4"))
POLL_INTERVAL = float(os.getenv("POLL_INTERVAL", "1.0"))

MESSAGE_POSTED = "message_posted"


class JobContext:
    def __init__(
        self,
        host: "AppHost",
        job: Dict[str, Any],
        room_id: str,
    ):
        self.host = host
        self.job = job
        self.room_id = room_id

    def transport(self) -> QueueTransport:
        # replies carry the inbound row id so a client can correlate them
        return QueueTransport(
            self.host.SessionFactory,
            sender_id=str(self.job.get("receiver_id") or self.host.receiver_id),
            extra_payload={"correlation_id": self.job.get("id")},
        )


class AppHost:
    def __init__(self, Session: Callable[[], Session], receiver_id: str, apps: List[Any]):
        self.SessionFactory = Session
        self.receiver_id = receiver_id
        self.apps = list(apps or [])

    def _resolve_app(self, sender_full: str) -> Tuple[Any, str, str]:
        """
        STRICT: must match a registered app prefix.
        Returns: (app, matched_prefix, room_id)
        """
        candidates: List[Tuple[int, str, Any]] = []

        for app in self.apps:
            key = getattr(app, "key", "")
            delim = getattr(app, "key_delim", "")
            prefix = f"{key}{delim}"
            if not prefix:
                continue
            if sender_full.startswith(prefix):
                candidates.append((len(prefix), prefix, app))

        if not candidates:
            known = [f"{getattr(a,'key','')}{getattr(a,'key_delim','')}" for a in self.apps]
            raise RuntimeError(f"No app matched sender_id='{sender_full}'. Known prefixes: {known}")

        candidates.sort(key=lambda x: x[0], reverse=True)
        _, prefix, app = candidates[0]
        return app, prefix, sender_full[len(prefix):]

    def process_queue_job(self, job: Dict[str, Any]) -> None:
        sender_full = str(job.get("sender_id") or "")
        msg_type = job.get("type") or "unknown"

        try:
            app, _prefix, room_id = self._resolve_app(sender_full)
            ctx = JobContext(self, job, room_id)
            app.handle(job, ctx)
        except Exception:
            # nothing to reply through: the job is dropped after logging
            logger.exception("Error processing job id=%s type=%s", job.get("id"), msg_type)


class GlossaryApp:
    """
    Routes "message_posted" jobs to the glossary dispatcher.

    sender_id must start with:  "glossary::"
    """
    key = "glossary"
    key_delim = "::"

    def __init__(self, store: GlossaryStore, user_reader: StaticUserReader) -> None:
        self.store = store
        self.user_reader = user_reader

    def handle(self, job: Dict[str, Any], ctx: JobContext):
        msg_type = job.get("type")
        if msg_type != MESSAGE_POSTED:
            logger.warning("GlossaryApp ignoring job id=%s with type=%s", job.get("id"), msg_type)
            return None

        message = PostedMessage.from_dict(job.get("payload") or {})
        if not message.room.id:
            message.room.id = ctx.room_id

        dispatcher = GlossaryDispatcher(
            store=self.store,
            transport=ctx.transport(),
            user_reader=self.user_reader,
        )
        return dispatcher.on_message_posted(message)


class Executor:
    def __init__(self, host: AppHost):
        self.host = host

    def execute(self, job: Dict[str, Any]) -> None:
        self.host.process_queue_job(job)


class AsyncGuard:
    def __init__(
        self,
        host: AppHost,
        receiver_id: str,
        poll_interval: float = 1.0,
        max_concurrent: int = 4,
    ):
        self.host = host
        self.receiver_id = receiver_id
        self.poll_interval = poll_interval
        self.max_concurrent = max_concurrent
        self._in_flight = set()
        # strong refs until each task finishes
        self._tasks: Set[asyncio.Task] = set()
        self.SessionFactory = host.SessionFactory

    async def _run_executor_for_message(self, job: Dict[str, Any]) -> None:
        executor = Executor(self.host)
        try:
            await asyncio.to_thread(executor.execute, job)
        finally:
            self._in_flight.discard(job["id"])

    def claim_jobs(self, limit: int) -> List[Dict[str, Any]]:
        """
        Pop up to `limit` inbound "message_posted" rows (oldest first) for this receiver.
        """
        session = self.SessionFactory()
        try:
            rows = (
                session.query(QueueMessage)
                .filter(
                    QueueMessage.receiver_id == str(self.receiver_id),
                    QueueMessage.type == MESSAGE_POSTED,
                )
                .order_by(QueueMessage.created_at.asc())
                .with_for_update(skip_locked=True)
                .limit(limit)
                .all()
            )

            jobs = [
                {
                    "id": r.id,
                    "sender_id": r.sender_id,
                    "receiver_id": r.receiver_id,
                    "type": r.type,
                    "payload": r.payload,
                }
                for r in rows
            ]

            for r in rows:
                session.delete(r)

            session.commit()
            return jobs
        finally:
            session.close()

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Queue task failed: %s", task.exception())

    async def run_once(self) -> List[asyncio.Task]:
        available_slots = self.max_concurrent - len(self._in_flight)
        if available_slots <= 0:
            return []

        tasks = []
        for job in self.claim_jobs(available_slots):
            if job["id"] in self._in_flight:
                continue
            self._in_flight.add(job["id"])
            task = asyncio.create_task(self._run_executor_for_message(job))
            self._tasks.add(task)
            task.add_done_callback(self._on_task_done)
            tasks.append(task)
        return tasks

    async def run(self) -> None:
        logger.info("AsyncGuard running - receiver_id=%s (max_concurrent=%d)", self.receiver_id, self.max_concurrent)

        while True:
            await self.run_once()
            await asyncio.sleep(self.poll_interval)


def build_host(
    session_factory: Callable[[], Session],
    receiver_id: str,
    user_reader: Optional[StaticUserReader] = None,
) -> AppHost:
    store = GlossaryStore(SqlPersistence(session_factory))
    user_reader = user_reader or StaticUserReader(BOT_USER_ID, BOT_USERNAME)

    # STRICT: every sender_id must match one of these prefixes:
    #   - "glossary::"
    apps = [
        GlossaryApp(store, user_reader),
    ]
    return AppHost(session_factory, receiver_id=receiver_id, apps=apps)


def main() -> None:
    if not QUEUE_RECEIVER_ID:
        raise RuntimeError("QUEUE_RECEIVER_ID env var is required for DB queue mode")
    if not BOT_USER_ID:
        logger.warning("BOT_USER_ID is not set: every inbound message will be ignored")

    session_factory = GCConnection().build_db_session_factory()
    host = build_host(session_factory, QUEUE_RECEIVER_ID)
    guard = AsyncGuard(
        host=host,
        receiver_id=QUEUE_RECEIVER_ID,
        poll_interval=POLL_INTERVAL,
        max_concurrent=CONCURRENT_INSTANCES,
    )
    asyncio.run(guard.run())


if __name__ == "__main__":
    main()
