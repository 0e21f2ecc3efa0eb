"""kubeconfig 加密工具

使用 AES-256-GCM，密文格式为 base64(nonce || ciphertext+tag)。
密钥取配置的字符串，不足 32 字节右侧补零，超出部分截断。
"""
import base64
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

NONCE_SIZE = 12
KEY_SIZE = 32


class DecryptError(ValueError):
    """密文损坏或密钥不匹配"""


def derive_key(secret: str) -> bytes:
    key = secret.encode("utf-8")
    if len(key) < KEY_SIZE:
        key = key + b"\x00" * (KEY_SIZE - len(key))
    return key[:KEY_SIZE]


class SecretBox:
    """对称加解密封装，服务层持有一个实例"""

    def __init__(self, secret: str):
        self._aead = AESGCM(derive_key(secret))

    def encrypt(self, plaintext: str) -> str:
        nonce = os.urandom(NONCE_SIZE)
        sealed = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        return base64.b64encode(nonce + sealed).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        try:
            data = base64.b64decode(ciphertext, validate=True)
        except (ValueError, TypeError) as e:
            raise DecryptError(f"invalid ciphertext encoding: {e}") from e
        if len(data) < NONCE_SIZE:
            raise DecryptError("ciphertext too short")
        nonce, sealed = data[:NONCE_SIZE], data[NONCE_SIZE:]
        try:
            return self._aead.decrypt(nonce, sealed, None).decode("utf-8")
        except InvalidTag as e:
            raise DecryptError("ciphertext authentication failed") from e
