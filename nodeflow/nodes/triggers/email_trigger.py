"""Email trigger node - polls an IMAP mailbox for unseen messages."""

from __future__ import annotations

import asyncio
import email
import imaplib
import logging
from email.header import decode_header, make_header
from email.message import Message
from email.utils import parsedate_to_datetime
from typing import Any, TYPE_CHECKING

from ...core.exceptions import PollError
from ..base import (
    BaseNode,
    NodeTypeDescription,
    NodeOutputDefinition,
    NodeProperty,
    NodePropertyOption,
    utc_timestamp,
)

if TYPE_CHECKING:
    from ...engine.types import ExecutionContext, NodeData, NodeDefinition, NodeExecutionResult

logger = logging.getLogger(__name__)

REQUIRED_CREDENTIALS = ("host", "user", "password")


def _decode(value: str | None) -> str:
    if not value:
        return ""
    try:
        return str(make_header(decode_header(value)))
    except (UnicodeDecodeError, LookupError):
        return value


def _text_body(msg: Message) -> str:
    """Prefer the first text/plain part, falling back to text/html."""
    html = ""
    parts = msg.walk() if msg.is_multipart() else [msg]
    for part in parts:
        if part.get_content_disposition() == "attachment":
            continue
        content_type = part.get_content_type()
        if content_type not in ("text/plain", "text/html"):
            continue
        payload = part.get_payload(decode=True) or b""
        text = payload.decode(part.get_content_charset() or "utf-8", errors="replace")
        if content_type == "text/plain":
            return text
        html = html or text
    return html


def parse_message(raw: bytes, uid: str, download_attachments: bool) -> NodeData:
    """Turn a raw RFC822 message into a workflow item."""
    from ...engine.types import NodeData

    msg = email.message_from_bytes(raw)

    timestamp = utc_timestamp()
    if msg.get("Date"):
        try:
            timestamp = parsedate_to_datetime(msg["Date"]).isoformat()
        except (TypeError, ValueError):
            pass

    attachments: list[dict[str, Any]] = []
    binary: dict[str, bytes] = {}
    for part in msg.walk():
        if part.get_content_disposition() != "attachment":
            continue
        payload = part.get_payload(decode=True) or b""
        filename = _decode(part.get_filename()) or f"attachment_{len(attachments)}"
        attachments.append({
            "filename": filename,
            "contentType": part.get_content_type(),
            "size": len(payload),
        })
        if download_attachments:
            binary[f"attachment_{len(attachments) - 1}"] = payload

    return NodeData(
        json={
            "messageId": msg.get("Message-ID", ""),
            "uid": uid,
            "from": _decode(msg.get("From")),
            "to": _decode(msg.get("To")),
            "subject": _decode(msg.get("Subject")),
            "body": _text_body(msg),
            "timestamp": timestamp,
            "attachments": attachments,
        },
        binary=binary or None,
    )


def fetch_unseen(
    credentials: dict[str, Any],
    mailbox: str,
    post_process_action: str,
    download_attachments: bool,
    after_uid: int | None = None,
) -> list[NodeData]:
    """
    Blocking IMAP round trip; run it off the event loop.

    Messages with a UID at or below after_uid are skipped.
    """
    host = credentials["host"]
    secure = credentials.get("secure", True)
    port = int(credentials.get("port") or (993 if secure else 143))

    connection = imaplib.IMAP4_SSL(host, port) if secure else imaplib.IMAP4(host, port)
    try:
        connection.login(credentials["user"], credentials["password"])
        status, _ = connection.select(mailbox)
        if status != "OK":
            raise PollError(f'Cannot open mailbox "{mailbox}"')

        _, data = connection.uid("search", None, "UNSEEN")
        uids = data[0].split() if data and data[0] else []

        items: list[NodeData] = []
        for raw_uid in uids:
            uid = raw_uid.decode() if isinstance(raw_uid, bytes) else str(raw_uid)
            if after_uid is not None and uid.isdigit() and int(uid) <= after_uid:
                continue
            _, msg_data = connection.uid("fetch", uid, "(BODY.PEEK[])")
            raw = next(
                (part[1] for part in msg_data or [] if isinstance(part, tuple)),
                None,
            )
            if raw is None:
                logger.warning("IMAP message %s returned no body", uid)
                continue
            items.append(parse_message(raw, uid, download_attachments))

            if post_process_action == "read":
                connection.uid("store", uid, "+FLAGS", "(\\Seen)")
            elif post_process_action == "delete":
                connection.uid("store", uid, "+FLAGS", "(\\Deleted)")

        if post_process_action == "delete" and items:
            connection.expunge()
        return items
    finally:
        try:
            connection.logout()
        except (imaplib.IMAP4.error, OSError):
            logger.debug("IMAP logout failed", exc_info=True)


class EmailTriggerNode(BaseNode):
    """Email trigger node - emits one item per unseen message in a mailbox."""

    node_description = NodeTypeDescription(
        name="EmailTrigger",
        display_name="Email Trigger (IMAP)",
        description="Trigger workflow when new email arrives in a mailbox",
        category="triggers",
        icon="fa:envelope",
        group=("trigger",),
        inputs=(),  # No inputs - this is a trigger
        outputs=(NodeOutputDefinition(name="main", display_name="Output"),),
        properties=(
            NodeProperty(
                display_name="Mailbox Name",
                name="mailbox",
                type="string",
                default="INBOX",
            ),
            NodeProperty(
                display_name="Action",
                name="postProcessAction",
                type="options",
                default="read",
                options=(
                    NodePropertyOption(name="Mark as Read", value="read"),
                    NodePropertyOption(name="Nothing", value="nothing"),
                    NodePropertyOption(name="Delete", value="delete"),
                ),
                description="What to do with a message once it has been received",
            ),
            NodeProperty(
                display_name="Download Attachments",
                name="downloadAttachments",
                type="boolean",
                default=False,
            ),
        ),
        is_trigger=True,
        supports_polling=True,
    )

    async def execute(
        self,
        context: ExecutionContext,
        node_definition: NodeDefinition,
        input_data: list[NodeData],
    ) -> NodeExecutionResult:
        if input_data:
            return self.output(input_data)
        return self.output(await self.poll(context, node_definition))

    async def poll(
        self,
        context: ExecutionContext,
        node_definition: NodeDefinition,
    ) -> list[NodeData]:
        credentials = context.credentials or {}
        missing = [key for key in REQUIRED_CREDENTIALS if not credentials.get(key)]
        if missing:
            raise PollError(f"IMAP credentials are required (missing: {', '.join(missing)})")

        action = self.get_parameter(node_definition, "postProcessAction", "read")
        # Unflagged messages stay UNSEEN, so remember the highest UID already emitted
        state = context.trigger_state
        after_uid = state.get("lastUid") if action == "nothing" else None

        items = await asyncio.to_thread(
            fetch_unseen,
            credentials,
            self.get_parameter(node_definition, "mailbox", "INBOX"),
            action,
            bool(self.get_parameter(node_definition, "downloadAttachments", False)),
            after_uid,
        )
        if action == "nothing":
            uids = [int(item.json["uid"]) for item in items if str(item.json["uid"]).isdigit()]
            if uids:
                state["lastUid"] = max([*uids, after_uid or 0])
        return items
