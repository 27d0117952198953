"""
Event classification for the image-processor dispatcher

Every inbound event maps to exactly one of:
- TextRequest: direct text-processing call ({"text": ..., "action": ...})
- StorageNotification: S3 object-created notification
- Unrecognized: anything else
"""

from dataclasses import dataclass
from typing import Any, Union
from urllib.parse import unquote_plus


S3_EVENT_SOURCE = 'aws:s3'
DEFAULT_ACTION = 'uppercase'


@dataclass(frozen=True)
class TextRequest:
    text: str
    action: str = DEFAULT_ACTION


@dataclass(frozen=True)
class StorageNotification:
    bucket: str
    key: str


@dataclass(frozen=True)
class Unrecognized:
    pass


DispatchEvent = Union[TextRequest, StorageNotification, Unrecognized]


def classify_event(event: Any) -> DispatchEvent:
    """
    Classify an inbound event. Predicates are checked in a fixed order:
    text first, then S3 notification.

    Raises:
        KeyError: S3 record is missing bucket name or object key
    """
    if not isinstance(event, dict):
        return Unrecognized()

    text = event.get('text')
    if text:
        action = event.get('action') or DEFAULT_ACTION
        return TextRequest(text=str(text), action=str(action))

    records = event.get('Records')
    if isinstance(records, list) and records:
        record = records[0]
        if isinstance(record, dict) and record.get('eventSource') == S3_EVENT_SOURCE:
            bucket = record['s3']['bucket']['name']
            # S3 notifications form-encode object keys
            key = unquote_plus(record['s3']['object']['key'])
            return StorageNotification(bucket=bucket, key=key)

    return Unrecognized()
