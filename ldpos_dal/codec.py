"""Scalar encodings for values the archive stores but never queries by field."""
import base64
import json
from typing import Any, List, Optional

MEMBER_ADDRESS_SEPARATOR = ","


def encode_signatures(signatures: Any) -> Optional[str]:
    """Serialize a signature set to an opaque blob (JSON, UTF-8, base64)."""
    if signatures is None:
        return None
    return base64.b64encode(json.dumps(signatures).encode("utf-8")).decode("ascii")


def decode_signatures(blob: Optional[str]) -> Any:
    if blob is None:
        return None
    return json.loads(base64.b64decode(blob).decode("utf-8"))


def encode_member_addresses(addresses: Optional[List[str]]) -> Optional[str]:
    if addresses is None:
        return None
    for address in addresses:
        if MEMBER_ADDRESS_SEPARATOR in address:
            raise ValueError(f"Member address {address!r} contains {MEMBER_ADDRESS_SEPARATOR!r}")
    return MEMBER_ADDRESS_SEPARATOR.join(addresses)


def decode_member_addresses(value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    if value == "":
        return []
    return value.split(MEMBER_ADDRESS_SEPARATOR)
