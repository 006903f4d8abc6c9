"""
Draft store - persistence of the in-progress lesson form.

One slot holds one JSON document (the LessonInput in its browser layout).
Production uses a DynamoDB item; local development can point
LESSON_DRAFT_PATH at a JSON file instead. Reading never fails: an empty,
unparseable or invalid slot yields the default lesson.
"""

import json
import logging
import os
import threading
from datetime import datetime
from typing import Callable, Optional, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from rpp.config import AWS_REGION, DRAFT_SLOT_KEY, DRAFT_TABLE_NAME
from rpp.core.errors import PersistError
from rpp.core.lesson_models import LessonInput, default_lesson_input
from rpp.core.workflow_models import SaveStatus

logger = logging.getLogger(__name__)


class DraftSlot(Protocol):
    """Raw storage for one serialized draft."""

    def read(self) -> Optional[str]: ...

    def write(self, payload: str) -> None: ...

    def delete(self) -> None: ...


class DynamoDBDraftSlot:
    """Draft stored as ``{draft_key, draft_json, updated_at}`` in DynamoDB."""

    def __init__(self, key: str = DRAFT_SLOT_KEY, table_name: str = DRAFT_TABLE_NAME, dynamodb=None):
        self.key = key
        self.table_name = table_name
        self._dynamodb = dynamodb or boto3.resource('dynamodb', region_name=AWS_REGION)

    @property
    def table(self):
        return self._dynamodb.Table(self.table_name)

    def read(self) -> Optional[str]:
        response = self.table.get_item(Key={'draft_key': self.key})
        item = response.get('Item')
        return item.get('draft_json') if item else None

    def write(self, payload: str) -> None:
        self.table.put_item(Item={
            'draft_key': self.key,
            'draft_json': payload,
            'updated_at': datetime.utcnow().isoformat(),
        })

    def delete(self) -> None:
        self.table.delete_item(Key={'draft_key': self.key})


class FileDraftSlot:
    """Draft stored as a JSON file on local disk."""

    def __init__(self, path: str):
        self.path = path

    def read(self) -> Optional[str]:
        if not os.path.exists(self.path):
            return None
        with open(self.path, encoding='utf-8') as f:
            return f.read()

    def write(self, payload: str) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, 'w', encoding='utf-8') as f:
            f.write(payload)
        os.replace(tmp_path, self.path)

    def delete(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)


class DraftStore:
    """Load / save / clear the lesson draft on top of a slot."""

    def __init__(self, slot: DraftSlot):
        self.slot = slot

    @classmethod
    def from_settings(cls, local_path: Optional[str] = None, key: str = DRAFT_SLOT_KEY) -> "DraftStore":
        """File slot when a local path is configured, DynamoDB otherwise."""
        if local_path:
            return cls(FileDraftSlot(local_path))
        return cls(DynamoDBDraftSlot(key=key))

    def load(self) -> LessonInput:
        """Persisted draft, or the default lesson when there is none usable."""
        try:
            payload = self.slot.read()
        except (OSError, UnicodeDecodeError, ClientError, BotoCoreError) as e:
            logger.warning(f"Could not read lesson draft, using default: {e}")
            return default_lesson_input()

        if not payload:
            return default_lesson_input()

        try:
            return LessonInput.model_validate(json.loads(payload))
        except (ValueError, ValidationError) as e:
            logger.warning(f"Discarding invalid lesson draft: {e}")
            return default_lesson_input()

    def save(self, lesson_input: LessonInput) -> None:
        payload = json.dumps(lesson_input.to_draft_payload(), ensure_ascii=False)
        try:
            self.slot.write(payload)
        except (OSError, ClientError, BotoCoreError) as e:
            raise PersistError(f"Failed to save lesson draft: {e}") from e

    def clear(self) -> None:
        try:
            self.slot.delete()
        except (OSError, ClientError, BotoCoreError) as e:
            raise PersistError(f"Failed to clear lesson draft: {e}") from e


class DebouncedDraftWriter:
    """
    Coalesces rapid lesson edits into one draft write.

    Every ``schedule`` cancels the pending write and starts a new timer; the
    last scheduled input wins. A failed write is logged and reported as
    ``unsaved`` through ``on_status``; it is not retried.
    """

    def __init__(
        self,
        store: DraftStore,
        delay_seconds: float = 1.5,
        on_status: Optional[Callable[[SaveStatus], None]] = None,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        self.store = store
        self.delay_seconds = delay_seconds
        self.on_status = on_status
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._timer = None
        self._pending: Optional[LessonInput] = None
        self.status: SaveStatus = "saved"

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def schedule(self, lesson_input: LessonInput) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pending = lesson_input
            self._timer = self._timer_factory(self.delay_seconds, self._write_pending)
            self._timer.daemon = True
            self._timer.start()
        self._set_status("unsaved")

    def flush(self) -> SaveStatus:
        """Write the pending draft now (end of a Lambda invocation)."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        self._write_pending()
        return self.status

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pending = None

    def _write_pending(self) -> None:
        with self._lock:
            lesson_input = self._pending
            self._pending = None
            self._timer = None
        if lesson_input is None:
            return

        self._set_status("saving")
        try:
            self.store.save(lesson_input)
        except PersistError as e:
            logger.error(f"Lesson draft not saved: {e}", exc_info=True)
            self._set_status("unsaved")
            return

        # An edit scheduled during the write keeps the draft dirty
        with self._lock:
            newer_pending = self._pending is not None
        self._set_status("unsaved" if newer_pending else "saved")

    def _set_status(self, status: SaveStatus) -> None:
        self.status = status
        if self.on_status is not None:
            self.on_status(status)
