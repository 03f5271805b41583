"""
Transaction journal for ConfidentialCast.

The journal is the engine's total order: one signed, hash-chained JSONL
line per committed transaction. Rejected transactions never reach it.
Replaying the journal from the first line rebuilds the exact engine
state, because every transaction is deterministic given its caller,
arguments and timestamp.

Entry contract:
    hash         = SHA-256(JCS(entry without signature))
    previous_hash = hash of the previous entry, GENESIS_HASH for the first
    signature    = Ed25519 over JCS(entry without signature), base64url

Writers:
    One engine at a time may extend a journal file. JournalLock holds an
    exclusive flock on "<journal>.lock" from load until the last append,
    and every append checks that the file still ends at the head this
    process loaded.
"""

import fcntl
import json
import logging
import os
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from confidentialcast.core.canonical import canonical_hash, canonicalize
from confidentialcast.core.crypto import Ed25519KeyManager
from confidentialcast.core.exceptions import JournalError

logger = logging.getLogger(__name__)

GENESIS_HASH = "0" * 64


@dataclass
class JournalEntry:
    """A single committed transaction"""
    sequence:          int
    timestamp:         int
    caller:            str
    command:           str
    args:              Dict[str, Any]
    notification:      Dict[str, Any]
    previous_hash:     str
    signer_public_key: str
    signature:         str = ""

    def to_signing_dict(self) -> Dict[str, Any]:
        return {
            "sequence":          self.sequence,
            "timestamp":         self.timestamp,
            "caller":            self.caller,
            "command":           self.command,
            "args":              self.args,
            "notification":      self.notification,
            "previous_hash":     self.previous_hash,
            "signer_public_key": self.signer_public_key,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_signing_dict()
        data["signature"] = self.signature
        return data

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "JournalEntry":
        return JournalEntry(
            sequence=          data["sequence"],
            timestamp=         data["timestamp"],
            caller=            data["caller"],
            command=           data["command"],
            args=              data["args"],
            notification=      data["notification"],
            previous_hash=     data["previous_hash"],
            signer_public_key= data["signer_public_key"],
            signature=         data.get("signature", ""),
        )

    def compute_hash(self) -> str:
        """Hash of this entry for chaining"""
        return canonical_hash(self.to_signing_dict())

    def verify_signature(self) -> bool:
        return Ed25519KeyManager.verify_detached(
            canonicalize(self.to_signing_dict()),
            self.signature,
            self.signer_public_key,
        )


@dataclass
class JournalViolation:
    """A single detected problem in a journal file."""
    at_sequence:    int
    violation_type: str   # "chain_break" | "sequence_gap" | "invalid_signature" | "unknown_signer"
    detail:         str


@dataclass
class JournalSummary:
    """Aggregate result of a full journal verification pass."""
    total_entries:  int
    violations:     List[JournalViolation] = field(default_factory=list)
    command_counts: Dict[str, int]         = field(default_factory=dict)
    callers_seen:   List[str]              = field(default_factory=list)
    head_hash:      Optional[str]          = None

    @property
    def valid(self) -> bool:
        return not self.violations

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_entries":  self.total_entries,
            "valid":          self.valid,
            "head_hash":      self.head_hash,
            "command_counts": self.command_counts,
            "callers_seen":   self.callers_seen,
            "violations": [
                {
                    "at_sequence":    v.at_sequence,
                    "violation_type": v.violation_type,
                    "detail":         v.detail,
                }
                for v in self.violations
            ],
        }


class Journal:
    """
    Append-only signed transaction journal.

    With no path the journal lives in memory only, which is what tests
    and throwaway engines use.
    """

    def __init__(self, journal_path: Optional[Path], signing_key: Ed25519KeyManager):
        self.journal_path = Path(journal_path) if journal_path else None
        self.signing_key  = signing_key
        self.entries: List[JournalEntry] = []

        if self.journal_path is not None and self.journal_path.exists():
            self._load()

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def head_hash(self) -> str:
        return self.entries[-1].compute_hash() if self.entries else GENESIS_HASH

    def append(
        self,
        timestamp:    int,
        caller:       str,
        command:      str,
        args:         Dict[str, Any],
        notification: Dict[str, Any],
    ) -> JournalEntry:
        """Sign, chain and persist one committed transaction"""
        entry = JournalEntry(
            sequence=          len(self.entries),
            timestamp=         timestamp,
            caller=            caller,
            command=           command,
            args=              args,
            notification=      notification,
            previous_hash=     self.head_hash,
            signer_public_key= self.signing_key.public_key_hex,
        )
        entry.signature = self.signing_key.sign(canonicalize(entry.to_signing_dict()))

        # Disk first: state only advances after a confirmed write
        self._write_entry(entry)
        self.entries.append(entry)
        return entry

    def get_entries_by_command(self, command: str) -> List[JournalEntry]:
        return [e for e in self.entries if e.command == command]

    def verify(self, trusted_public_key_hex: Optional[str] = None) -> JournalSummary:
        """
        Check chain linkage, sequence and signatures of every entry.

        With trusted_public_key_hex, entries signed by any other key are
        reported as "unknown_signer" even if their signature is valid.
        """
        summary = JournalSummary(total_entries=len(self.entries))
        expected_prev = GENESIS_HASH

        for index, entry in enumerate(self.entries):
            if trusted_public_key_hex and entry.signer_public_key != trusted_public_key_hex:
                summary.violations.append(JournalViolation(
                    index, "unknown_signer",
                    f"signed by {entry.signer_public_key[:16]}..., not the engine key",
                ))
            if entry.sequence != index:
                summary.violations.append(JournalViolation(
                    index, "sequence_gap",
                    f"expected sequence {index}, got {entry.sequence}",
                ))
            if entry.previous_hash != expected_prev:
                summary.violations.append(JournalViolation(
                    index, "chain_break",
                    f"expected previous_hash {expected_prev[:16]}..., "
                    f"got {entry.previous_hash[:16]}...",
                ))
            if not entry.verify_signature():
                summary.violations.append(JournalViolation(
                    index, "invalid_signature", "signature does not verify",
                ))
            expected_prev = entry.compute_hash()

        summary.command_counts = dict(Counter(e.command for e in self.entries))
        summary.callers_seen   = sorted({e.caller for e in self.entries})
        summary.head_hash      = self.head_hash if self.entries else None
        return summary

    def verify_or_raise(self) -> None:
        """Verify journal integrity against our own signing key or raise JournalError"""
        summary = self.verify(self.signing_key.public_key_hex)
        if not summary.valid:
            first = summary.violations[0]
            raise JournalError(
                f"Journal integrity violation at sequence {first.at_sequence}: {first.detail}",
                {"violation_type": first.violation_type, "total": len(summary.violations)},
            )

    def _write_entry(self, entry: JournalEntry) -> None:
        """Append one line and fsync, refusing if the file moved on without us"""
        if self.journal_path is None:
            return

        self.journal_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(self.journal_path, "a+", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                try:
                    f.seek(0)
                    self._check_on_disk_head([line for line in f.read().splitlines() if line.strip()])
                    f.write(json.dumps(entry.to_dict(), ensure_ascii=False) + "\n")
                    f.flush()
                    os.fsync(f.fileno())
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except OSError as e:
            raise JournalError(f"Failed to write journal entry: {e}") from e

    def _check_on_disk_head(self, lines: List[str]) -> None:
        """The file must hold exactly the entries loaded into this journal."""
        if len(lines) != len(self.entries):
            raise JournalError(
                "Journal changed on disk since it was loaded",
                {"loaded_entries": len(self.entries), "on_disk_entries": len(lines)},
            )
        if not lines:
            return
        try:
            on_disk_head = JournalEntry.from_dict(json.loads(lines[-1])).compute_hash()
        except (json.JSONDecodeError, KeyError) as e:
            raise JournalError(f"Unreadable last journal entry: {e}") from e
        if on_disk_head != self.head_hash:
            raise JournalError(
                "Journal changed on disk since it was loaded",
                {"loaded_head": self.head_hash, "on_disk_head": on_disk_head},
            )

    def _load(self) -> None:
        """Load journal from disk"""
        self.entries = []

        try:
            with open(self.journal_path, "r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, 1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        self.entries.append(JournalEntry.from_dict(json.loads(line)))
                    except (json.JSONDecodeError, KeyError) as e:
                        raise JournalError(f"Invalid journal entry at line {line_num}: {e}")
        except OSError as e:
            raise JournalError(f"Failed to load journal: {e}") from e

        logger.debug("Loaded %d journal entries from %s", len(self.entries), self.journal_path)


class JournalLock:
    """
    Exclusive advisory lock for one journal file, held in "<journal>.lock".

        with JournalLock(config.journal_path):
            runtime = RuntimeContext.from_config(config)
            runtime.confirm(account, period)

    acquire() blocks until no other holder remains. A journal without a
    path has nothing to lock.
    """

    def __init__(self, journal_path: Optional[Path]):
        self.lock_path = Path(f"{journal_path}.lock") if journal_path else None
        self._handle   = None

    def acquire(self) -> None:
        if self.lock_path is None or self._handle is not None:
            return
        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            handle = open(self.lock_path, "a", encoding="utf-8")
        except OSError as e:
            raise JournalError(f"Cannot open journal lock {self.lock_path}: {e}") from e
        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
        except OSError as e:
            handle.close()
            raise JournalError(f"Cannot lock journal {self.lock_path}: {e}") from e
        self._handle = handle
        logger.debug("Acquired journal lock %s", self.lock_path)

    def release(self) -> None:
        if self._handle is None:
            return
        try:
            fcntl.flock(self._handle.fileno(), fcntl.LOCK_UN)
        finally:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> "JournalLock":
        self.acquire()
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()
