"""
Validation codes and the QR payload that carries them.

Codes use only A-Z and 0-9 so the same string prints as a CODE39 barcode.
The QR payload is a small JSON document; scanners may hand back either that
document or a bare code, and both decode to the bare code.
"""

import json
import secrets
import string
from datetime import datetime, timezone
from typing import Optional

CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_validation_code(length: int = 8) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def build_qr_payload(
    code: str,
    full_name: str,
    registration_id: Optional[int],
    generated_at: Optional[datetime] = None,
) -> str:
    generated_at = generated_at or datetime.now(timezone.utc)
    return json.dumps(
        {
            "code": code,
            "name": full_name,
            "registration_id": registration_id,
            "generated_at": generated_at.isoformat(),
        },
        ensure_ascii=False,
    )


def decode_scan_payload(text: str) -> str:
    """
    Reduce whatever the scanner read to the raw validation code.

    Returns an empty string when nothing usable is present.
    """
    text = (text or "").strip()
    if not text.startswith("{"):
        return text

    try:
        data = json.loads(text)
    except ValueError:
        return text

    if not isinstance(data, dict):
        return text
    code = data.get("code") or data.get("validation_code") or ""
    return str(code).strip()
