"""Record subsystem public API.

Public API:
- RecordService: Main entry point
- create_record_service: Factory function

Types:
- RecordCodec, EditSession, SaveResult
"""

from shelf.records.codec import RecordCodec, encode_image, format_value, read_image
from shelf.records.service import RecordService, SaveResult, create_record_service
from shelf.records.session import EditSession, SessionState

__all__ = [
    "EditSession",
    "RecordCodec",
    "RecordService",
    "SaveResult",
    "SessionState",
    "create_record_service",
    "encode_image",
    "format_value",
    "read_image",
]
