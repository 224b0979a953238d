# chatty/domain/cursor.py
import base64
import binascii

from chatty.domain.exceptions import InvalidCursor

# ids are stored as signed 64-bit integers
MAX_MESSAGE_ID = 2**63 - 1


def encode_cursor(message_id: int) -> str:
    return base64.b64encode(str(message_id).encode()).decode()


def decode_cursor(cursor: str) -> int:
    try:
        raw = base64.b64decode(cursor.encode(), validate=True).decode()
    except (binascii.Error, UnicodeError) as e:
        raise InvalidCursor(f"Invalid cursor: {cursor!r}") from e
    if not (raw.isascii() and raw.isdigit()) or len(raw) > len(str(MAX_MESSAGE_ID)):
        raise InvalidCursor(f"Invalid cursor: {cursor!r}")
    message_id = int(raw)
    if message_id > MAX_MESSAGE_ID:
        raise InvalidCursor(f"Invalid cursor: {cursor!r}")
    return message_id
