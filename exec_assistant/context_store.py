"""
Context Storage

JSON-file persistence for the assistant's life context.

Features:
- Append-only conversation log of every slash command
- Last-analysis timestamp stamped on each write
- Serialized read-modify-write (asyncio lock) so concurrent webhooks never clobber each other
- Atomic file replacement; readers never see a partial document
"""

import os
import json
import logging
import asyncio
import tempfile
from datetime import datetime, timezone
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from pathlib import Path

logger = logging.getLogger(__name__)


class ContextStoreError(Exception):
    """The context document could not be read or written."""


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ConversationRecord:
    """A single slash command as received."""
    timestamp: str
    user: Optional[str]
    channel: Optional[str]
    command: Optional[str]
    message: Optional[str] = None
    full_command: str = ""

    @classmethod
    def create(
        cls,
        command: Optional[str],
        text: Optional[str],
        user: Optional[str],
        channel: Optional[str],
    ) -> "ConversationRecord":
        """Build a record stamped with the current time."""
        full_command = (command or "") + (f" {text}" if text else "")
        return cls(
            timestamp=utc_now(),
            user=user,
            channel=channel,
            command=command,
            message=text,
            full_command=full_command,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage."""
        return {
            "timestamp": self.timestamp,
            "user": self.user,
            "channel": self.channel,
            "command": self.command,
            "message": self.message,
            "fullCommand": self.full_command,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ConversationRecord":
        """Create from dictionary."""
        return cls(
            timestamp=d.get("timestamp", ""),
            user=d.get("user"),
            channel=d.get("channel"),
            command=d.get("command"),
            message=d.get("message"),
            full_command=d.get("fullCommand", ""),
        )


@dataclass
class ContextDocument:
    """Everything the assistant remembers between requests."""

    initialized: str = field(default_factory=utc_now)
    conversations: List[ConversationRecord] = field(default_factory=list)
    patterns: Dict[str, Any] = field(default_factory=dict)
    goals: Dict[str, Any] = field(default_factory=dict)
    budget_tracking: Dict[str, Any] = field(default_factory=dict)
    last_analysis: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "initialized": self.initialized,
            "conversations": [c.to_dict() for c in self.conversations],
            "patterns": self.patterns,
            "goals": self.goals,
            "budget_tracking": self.budget_tracking,
            "last_analysis": self.last_analysis,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ContextDocument":
        if not isinstance(d, dict):
            raise ValueError("context document must be a JSON object")
        return cls(
            initialized=d.get("initialized") or utc_now(),
            conversations=[ConversationRecord.from_dict(c) for c in d.get("conversations") or []],
            patterns=d.get("patterns") or {},
            goals=d.get("goals") or {},
            budget_tracking=d.get("budget_tracking") or {},
            last_analysis=d.get("last_analysis"),
        )


class ContextStore:
    """
    File-backed storage for the context document.

    Usage:
        store = ContextStore("./data/life-context.json")
        await store.initialize()

        context = await store.load()
        record = ConversationRecord.create("/morning-focus", None, "ann", "general")
        await store.append_conversation(record)
    """

    def __init__(self, path: str):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def initialize(self) -> bool:
        """
        Create the context file with default structure if it is missing.

        Returns:
            True if a new file was created
        """
        async with self._lock:
            if self.path.exists():
                return False
            await asyncio.to_thread(self._write_sync, ContextDocument())

        logger.info(f"Context file initialized at {self.path}")
        return True

    async def load(self) -> ContextDocument:
        """Read the full context document."""
        async with self._lock:
            return await asyncio.to_thread(self._read_sync)

    async def save(self, document: ContextDocument):
        """Replace the stored document."""
        async with self._lock:
            await asyncio.to_thread(self._write_sync, document)

    async def append_conversation(
        self,
        record: ConversationRecord,
        analyzed_at: Optional[str] = None,
    ) -> ContextDocument:
        """
        Append a conversation record and stamp last_analysis.

        The latest document is re-read under the lock so records appended by
        concurrent requests are preserved.

        Returns:
            The document as written
        """
        async with self._lock:
            document = await asyncio.to_thread(self._read_sync)
            document.conversations.append(record)
            document.last_analysis = analyzed_at or utc_now()
            await asyncio.to_thread(self._write_sync, document)

        logger.debug(f"Saved context: {len(document.conversations)} conversations")
        return document

    async def get_stats(self) -> Dict[str, Any]:
        """Get store statistics."""
        document = await self.load()
        return {
            "total_conversations": len(document.conversations),
            "initialized": document.initialized,
            "last_analysis": document.last_analysis,
            "path": str(self.path),
        }

    def _read_sync(self) -> ContextDocument:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return ContextDocument.from_dict(data)
        except (OSError, ValueError, TypeError, AttributeError) as e:
            raise ContextStoreError(f"Cannot read context file {self.path}: {e}") from e

    def _write_sync(self, document: ContextDocument):
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document.to_dict(), f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise ContextStoreError(f"Cannot write context file {self.path}: {e}") from e
