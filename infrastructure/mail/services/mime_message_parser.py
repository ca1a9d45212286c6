"""RFC 822 邮件解析"""

import email
from datetime import datetime, timezone
from email.header import decode_header
from email.message import Message
from email.utils import getaddresses, parseaddr, parsedate_to_datetime
from typing import FrozenSet, List, Optional, Tuple

from domain.mail.value_objects.email_content import EmailContent
from domain.mail.value_objects.raw_message import RawAttachment, RawMessage


def parse_message(
    raw_bytes: bytes,
    uid: Optional[str] = None,
    folder: Optional[str] = None,
    flags: FrozenSet[str] = frozenset(),
) -> RawMessage:
    """
    把服务器返回的原始字节解析成 RawMessage

    头部保持原样（解码 RFC 2047 编码），缺失的字段留空，由入库时补默认值。

    Args:
        raw_bytes: RFC 822 原文
        uid: 服务器 UID
        folder: 远程文件夹名
        flags: IMAP 标志

    Returns:
        RawMessage
    """
    msg = email.message_from_bytes(raw_bytes)

    from_name, from_address = parseaddr(decode_header_value(msg.get("From")))
    body_text, body_html, attachments = _walk_parts(msg)

    return RawMessage(
        uid=uid,
        message_id=_strip(msg.get("Message-ID")),
        folder=folder,
        from_address=from_address or None,
        from_name=from_name or None,
        to_addresses=_addresses(msg, "To"),
        cc_addresses=_addresses(msg, "Cc"),
        bcc_addresses=_addresses(msg, "Bcc"),
        subject=decode_header_value(msg.get("Subject")) or None,
        content=EmailContent(text=body_text, html=body_html),
        received_at=parse_date(msg.get("Date")),
        flags=flags,
        in_reply_to=_strip(msg.get("In-Reply-To")),
        references=tuple((msg.get("References") or "").split()),
        attachments=tuple(attachments),
    )


def decode_header_value(value: Optional[str]) -> str:
    """
    解码邮件头部值（处理编码）

    Args:
        value: 原始头部值

    Returns:
        解码后的字符串
    """
    if not value:
        return ""

    result_parts = []
    for part, charset in decode_header(str(value)):
        if isinstance(part, bytes):
            result_parts.append(_decode_bytes(part, charset))
        else:
            result_parts.append(part)

    return "".join(result_parts)


def parse_date(date_str: Optional[str]) -> Optional[datetime]:
    """解析 Date 头，无法解析时返回 None；没有时区的按 UTC 处理"""
    if not date_str:
        return None

    try:
        parsed = parsedate_to_datetime(date_str)
    except (TypeError, ValueError):
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _strip(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = str(value).strip()
    return stripped or None


def _addresses(msg: Message, header: str) -> Tuple[str, ...]:
    values = [decode_header_value(v) for v in msg.get_all(header, [])]
    return tuple(addr for _, addr in getaddresses(values) if addr)


def _decode_bytes(payload: bytes, charset: Optional[str]) -> str:
    try:
        return payload.decode(charset or "utf-8", errors="replace")
    except (LookupError, UnicodeDecodeError):
        return payload.decode("utf-8", errors="replace")


def _walk_parts(msg: Message) -> Tuple[Optional[str], Optional[str], List[RawAttachment]]:
    body_text: Optional[str] = None
    body_html: Optional[str] = None
    attachments: List[RawAttachment] = []

    for part in msg.walk():
        if part.is_multipart():
            continue

        content_type = part.get_content_type()
        disposition = part.get_content_disposition()
        filename = part.get_filename()
        if filename:
            filename = decode_header_value(filename)

        payload = part.get_payload(decode=True)
        if payload is None:
            continue

        # 带文件名或显式附件的部分；没有文件名的内联文本仍算正文
        is_attachment = disposition == "attachment" or (
            filename is not None and content_type not in ("text/plain", "text/html")
        ) or (disposition == "inline" and part.get("Content-ID") and content_type.startswith("image/"))

        if is_attachment:
            attachments.append(RawAttachment(
                filename=filename,
                mime_type=content_type,
                content=payload,
                content_id=_strip(part.get("Content-ID")),
                content_disposition=disposition,
            ))
            continue

        decoded = _decode_bytes(payload, part.get_content_charset())
        if content_type == "text/plain" and body_text is None:
            body_text = decoded
        elif content_type == "text/html" and body_html is None:
            body_html = decoded

    return body_text, body_html, attachments
