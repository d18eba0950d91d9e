"""Request signing for the iFLYTEK V2 API (HMAC-SHA1 over the sorted query)."""
import base64
import hashlib
import hmac
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Optional
from urllib.parse import quote

from src.constants import (
    IFLYTEK_DATETIME_FORMAT,
    IFLYTEK_SIGNATURE_KEY,
    IFLYTEK_UTC_OFFSET_HOURS,
    URI_COMPONENT_SAFE,
)

_VENDOR_TZ = timezone(timedelta(hours=IFLYTEK_UTC_OFFSET_HOURS))


def canonical_string(params: Mapping[str, Optional[str]]) -> str:
    """Sorted ``key=encodedValue`` pairs joined by ``&``, minus signature and empties."""
    keys = sorted(
        filter(lambda k: k != IFLYTEK_SIGNATURE_KEY and params[k], params),
        key=lambda k: k.encode(),
    )
    return "&".join(
        map(lambda k: f"{k}={quote(str(params[k]), safe=URI_COMPONENT_SAFE)}", keys)
    )


def sign(params: Mapping[str, Optional[str]], secret: str) -> str:
    digest = hmac.new(
        secret.encode(), canonical_string(params).encode(), hashlib.sha1
    ).digest()
    return base64.b64encode(digest).decode()


def vendor_datetime(now: Optional[datetime] = None) -> str:
    """Format ``now`` (default: current time) as the vendor's ``+0800`` dateTime."""
    moment = now or datetime.now(timezone.utc)
    return moment.astimezone(_VENDOR_TZ).strftime(IFLYTEK_DATETIME_FORMAT)
