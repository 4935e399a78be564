"""
users/envelopes.py — The {errno, msg[, payload]} result shape

Account endpoints answer HTTP 200 with an envelope instead of raising:

    errno 0  success
    errno 1  request failure (validation, wrong credential, conflict,
             not found, cooldown, feature disabled)
    errno 2  transport failure (mail server, plugin registry); msg embeds the
             underlying diagnostic
    errno 3  operation failed (unexpected persistence error); msg embeds the
             underlying diagnostic
"""

from dataclasses import dataclass, field
from enum import IntEnum

from rest_framework import status
from rest_framework.response import Response


class Errno(IntEnum):
    OK = 0
    FAILED = 1
    TRANSPORT_FAILED = 2
    OPERATION_FAILED = 3


@dataclass
class Outcome:
    errno: Errno
    msg: str
    data: dict = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.errno == Errno.OK

    def to_response(self) -> Response:
        return envelope(self.msg, self.errno, **self.data)


def envelope(msg, errno=Errno.OK, **extra) -> Response:
    return Response({"errno": int(errno), "msg": str(msg), **extra}, status=status.HTTP_200_OK)


def first_error(errors) -> str:
    """First message of a DRF `serializer.errors` structure (fields keep declaration order)."""
    if isinstance(errors, dict):
        for value in errors.values():
            return first_error(value)
        return ""
    if isinstance(errors, (list, tuple)):
        for value in errors:
            return first_error(value)
        return ""
    return str(errors)
