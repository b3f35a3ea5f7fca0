"""正文字段加密（可选，服务端专用）

格式：`enc:v1:{iv_b64}:{ciphertext_b64}:{tag_b64}`（AES-256-GCM，12 字节 IV，16 字节 tag）。

说明：
- 只有配置了 ENCRYPTION_KEY 才会加密；未配置时写入明文。
- 解密只处理带 `enc:v1:` 前缀的值，明文原样返回，因此读取方可以无条件调用。
- 密钥支持 64 位 hex、base64（解码后 32 字节），其余按 UTF-8 字节补零/截断到 32 字节。
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
import re

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..config import settings

logger = logging.getLogger(__name__)

ENCRYPTED_PREFIX = "enc:v1:"

_HEX_KEY_RE = re.compile(r"^[0-9a-fA-F]{64}$")
_IV_LEN = 12
_TAG_LEN = 16


def _load_key() -> bytes | None:
    raw = settings.encryption_key
    if not raw:
        return None
    if _HEX_KEY_RE.match(raw):
        return bytes.fromhex(raw)
    try:
        decoded = base64.b64decode(raw, validate=True)
        if len(decoded) == 32:
            return decoded
    except (binascii.Error, ValueError):
        pass
    return raw.encode("utf-8")[:32].ljust(32, b"\0")


def is_encrypted(value: str | None) -> bool:
    return bool(value) and str(value).startswith(ENCRYPTED_PREFIX)


def encrypt_if_possible(plaintext: str) -> str:
    key = _load_key()
    if key is None:
        return plaintext

    iv = os.urandom(_IV_LEN)
    sealed = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), None)
    # cryptography 把 tag 追加在密文末尾；存储格式里单独存放
    ciphertext, tag = sealed[:-_TAG_LEN], sealed[-_TAG_LEN:]
    parts = [base64.b64encode(p).decode("ascii") for p in (iv, ciphertext, tag)]
    return ENCRYPTED_PREFIX + ":".join(parts)


def decrypt_if_encrypted(value: str | None) -> str | None:
    if not is_encrypted(value):
        return value
    key = _load_key()
    if key is None:
        return value

    try:
        parts = str(value).split(":")
        iv = base64.b64decode(parts[2])
        ciphertext = base64.b64decode(parts[3])
        tag = base64.b64decode(parts[4])
        plain = AESGCM(key).decrypt(iv, ciphertext + tag, None)
        return plain.decode("utf-8")
    except (IndexError, ValueError, binascii.Error, InvalidTag, UnicodeDecodeError):
        logger.warning("[CRYPTO] Failed to decrypt value, returning as stored")
        return value
