#!/usr/bin/env python3
"""
Mail Attachment Stripper
Main orchestrator: finds large messages, rebuilds them without their
attachments, inserts the copies and deletes the originals
"""

import sys
import time
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from attachment_stripper.utils.config import Config, SystemConfig
from attachment_stripper.utils.logging_utils import ColoredFormatter
from attachment_stripper.utils.metrics import Metrics
from attachment_stripper.utils.sanitization import format_size, sanitize_for_logging
from attachment_stripper.utils.structured_logging import JSONFormatter
from attachment_stripper.utils.ui import Spinner
from attachment_stripper.modules.errors import MailStoreError, MessageRebuildError, MissingPayloadError
from attachment_stripper.modules.mail_store import MailStore
from attachment_stripper.modules.message_model import Message, MimePart
from attachment_stripper.modules.message_rebuilder import MessageRebuilder


INTERNAL_DATE_SOURCE = "dateHeader"


@dataclass
class AttachmentInfo:
    """An attachment that will be dropped from a message"""
    filename: str
    attachment_id: str
    size: int


@dataclass
class StripRunSummary:
    """Outcome of one run over a search query"""
    query: str
    matched: int = 0
    # original message id -> id of the inserted copy
    stripped: Dict[str, str] = field(default_factory=dict)
    would_strip: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[Tuple[str, str]] = field(default_factory=list)
    remaining: Optional[int] = None

    def to_dict(self) -> Dict:
        return {
            "query": self.query,
            "matched": self.matched,
            "stripped": dict(self.stripped),
            "would_strip": list(self.would_strip),
            "skipped": list(self.skipped),
            "failed": [{"message_id": mid, "error": err} for mid, err in self.failed],
            "remaining": self.remaining,
        }


ConfirmCallback = Callable[[Message, List[AttachmentInfo]], bool]


def collect_attachments(part: MimePart) -> List[MimePart]:
    """Parts of the tree that carry a filename and a stored attachment"""
    return [
        p for p in part.walk()
        if p.filename and p.body is not None and p.body.attachment_id
    ]


def setup_logging(system: SystemConfig):
    """Configure root logging with a file handler and a console handler"""
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    log_path = Path(system.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Resolve log level with safe fallback
    level_name = str(system.log_level).upper()
    level = logging.getLevelName(level_name)
    level_valid = isinstance(level, int)
    if not level_valid:
        level = logging.INFO

    file_handler = logging.FileHandler(system.log_file)
    console_handler = logging.StreamHandler(sys.stdout)

    if system.log_format == "json":
        file_handler.setFormatter(JSONFormatter())
        console_handler.setFormatter(JSONFormatter())
    else:
        file_handler.setFormatter(logging.Formatter(log_format))
        console_handler.setFormatter(ColoredFormatter(log_format))

    logging.basicConfig(level=level, handlers=[file_handler, console_handler], force=True)

    if not level_valid:
        logging.getLogger("AttachmentStripperPipeline").warning(
            "Invalid log level '%s'; defaulting to INFO",
            system.log_level
        )


class AttachmentStripperPipeline:
    """Main pipeline orchestrator"""

    def __init__(
        self,
        config: Config,
        store: Optional[MailStore] = None,
        confirm: Optional[ConfirmCallback] = None,
    ):
        """
        Initialize pipeline

        Args:
            config: Loaded configuration
            store: Mailbox to operate on; a Gmail store is built on first use if omitted
            confirm: Called with the full message and its attachments before
                anything is changed; returning False skips the message
        """
        self.config = config
        self.store = store
        self.confirm = confirm or (lambda message, attachments: True)
        self.rebuilder = MessageRebuilder(max_depth=config.stripper.max_mime_depth)
        self.metrics = Metrics()
        self.logger = logging.getLogger("AttachmentStripperPipeline")

    def _get_store(self) -> MailStore:
        if self.store is None:
            from attachment_stripper.modules.gmail_store import GmailMailStore, build_gmail_service

            service = build_gmail_service(self.config.gmail.token_file, self.config.gmail.scopes)
            self.store = GmailMailStore(service, self.config.gmail.user_id)
        return self.store

    def start(self, query: Optional[str] = None) -> Optional[StripRunSummary]:
        """Run the pipeline, exiting the process on fatal errors"""
        try:
            self.config.validate()
            self.logger.info("Starting Mail Attachment Stripper")
            return self.run(query)
        except KeyboardInterrupt:
            self.logger.info("Received shutdown signal")
            return None
        except Exception as e:
            self.logger.error(f"Fatal error: {e}", exc_info=True)
            sys.exit(1)

    def run(self, query: Optional[str] = None) -> StripRunSummary:
        """
        Strip attachments from every message matching query

        Args:
            query: Mailbox search query; defaults to the configured one

        Returns:
            StripRunSummary describing what happened to each message
        """
        query = query or self.config.stripper.query
        store = self._get_store()
        summary = StripRunSummary(query=query)

        self.logger.info(f"Using query string [{query}]")
        with Spinner(f"Searching messages matching [{query}]"):
            message_ids = store.list_message_ids(query)

        summary.matched = len(message_ids)
        if not message_ids:
            self.logger.info("No messages found")
            return summary

        self.logger.info(f"Found {len(message_ids)} messages")

        for message in self._fetch_sorted_metadata(message_ids, summary):
            self.process_message(message, summary)

        self.logger.info("Querying again...")
        try:
            summary.remaining = len(store.list_message_ids(query))
            self.logger.info(f"{summary.remaining} messages still match [{query}]")
        except MailStoreError as e:
            self.logger.warning(f"Could not count remaining messages: {e}")
            self.metrics.record_error(type(e).__name__)
        self.logger.info(f"Run metrics: {self.metrics.get_summary()}")

        return summary

    def _fetch_sorted_metadata(self, message_ids: List[str], summary: StripRunSummary) -> List[Message]:
        """Fetch metadata for each id, smallest messages first"""
        messages = []
        for message_id in message_ids:
            try:
                messages.append(self.store.get_message(message_id, "metadata"))
            except MailStoreError as e:
                self._record_failure(message_id, e, summary)

        messages.sort(key=lambda m: m.size_estimate)

        limit = self.config.stripper.max_messages
        if limit > 0 and len(messages) > limit:
            self.logger.info(f"Limiting run to the {limit} smallest messages")
            messages = messages[:limit]

        return messages

    def _describe_attachments(self, message: Message) -> List[AttachmentInfo]:
        """List the attachments of a fully fetched message with their sizes"""
        attachments = []
        for part in collect_attachments(message.payload):
            size = part.body.size
            if size <= 0:
                size = len(self.store.get_attachment(message.id, part.body.attachment_id))
            attachments.append(AttachmentInfo(part.filename, part.body.attachment_id, size))
        return attachments

    def process_message(self, message: Message, summary: StripRunSummary) -> str:
        """
        Strip the attachments of a single message

        Failures are logged and recorded; they never stop the run. When the
        copy is inserted but the original cannot be deleted, the message is
        listed both as stripped and as failed.

        Returns:
            "stripped", "would_strip", "skipped" or "failed"
        """
        start = time.monotonic()
        self.metrics.record_message_processed()
        self.logger.info(
            f"Processing message {message.id} (size estimate {format_size(message.size_estimate)})"
        )
        if message.snippet:
            self.logger.debug(f"Snippet: {sanitize_for_logging(message.snippet)}")

        try:
            full = self.store.get_message(message.id, "full")
            if full.payload is None:
                raise MissingPayloadError("Message must have a payload", message_id=message.id)

            attachments = self._describe_attachments(full)

            if not attachments:
                self.logger.info(f"Skipped message {message.id}: no attachments found")
                summary.skipped.append(message.id)
                return "skipped"

            self.logger.info(f"Attachments ({len(attachments)}):")
            for attachment in attachments:
                self.logger.info(
                    f"* {sanitize_for_logging(attachment.filename)}: {format_size(attachment.size)}"
                )

            if not self.confirm(full, attachments):
                self.logger.info(f"Skipped message {message.id}: not confirmed")
                summary.skipped.append(message.id)
                return "skipped"

            rebuilt = self.rebuilder.rebuild(full)

            if self.config.stripper.dry_run:
                self.logger.info(
                    f"Dry run: message {message.id} would be replaced without "
                    f"{len(attachments)} attachments"
                )
                summary.would_strip.append(message.id)
                return "would_strip"

            self.logger.info(f"Inserting copy of message {message.id} without attachments")
            new_id = self.store.insert_message(rebuilt, internal_date_source=INTERNAL_DATE_SOURCE)

            # The copy exists from here on, whatever happens to the original
            self.metrics.record_strip(len(attachments), sum(a.size for a in attachments))
            summary.stripped[message.id] = new_id
            self.logger.info(
                f"Stripped attachments from message {message.id}: "
                f"{len(attachments)} removed, new message {new_id}"
            )

            if self.config.stripper.delete_original:
                self.logger.info(f"Deleting original message {message.id}")
                try:
                    self.store.delete_message(message.id)
                except MailStoreError as e:
                    self._record_failure(
                        message.id,
                        MailStoreError(
                            "delete",
                            f"copy inserted as {new_id}, original not deleted: {e.reason}",
                            message.id,
                        ),
                        summary,
                    )
                    return "failed"

            return "stripped"

        except (MessageRebuildError, MailStoreError) as e:
            self._record_failure(message.id, e, summary)
            return "failed"
        except Exception as e:
            self.logger.error(f"Unexpected error processing message {message.id}: {e}", exc_info=True)
            self.metrics.record_error(type(e).__name__)
            summary.failed.append((message.id, str(e)))
            return "failed"
        finally:
            self.metrics.record_processing_time((time.monotonic() - start) * 1000)

    def _record_failure(self, message_id: str, error: Exception, summary: StripRunSummary):
        self.logger.error(
            f"Failed message {message_id}: {type(error).__name__}: "
            f"{sanitize_for_logging(str(error), max_length=500)}"
        )
        self.metrics.record_error(type(error).__name__)
        summary.failed.append((message_id, str(error)))


def main():
    """Main entry point"""
    from attachment_stripper.app_runner import AppRunner

    AppRunner().run()


if __name__ == "__main__":
    main()
