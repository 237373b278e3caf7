# services/signature.py
# 交互回调验签：平台用应用私钥对 timestamp + raw_body 做 Ed25519 签名，
# 签名（hex）和时间戳放在 X-Signature-Ed25519 / X-Signature-Timestamp
from typing import Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from services.logger import get_logger

logger = get_logger(__name__)


def load_public_key(public_key_hex: str) -> Ed25519PublicKey:
    """开发者后台给的 64 位 hex（32 字节原始公钥）"""
    return Ed25519PublicKey.from_public_bytes(bytes.fromhex(public_key_hex.strip()))


def verify_ed25519(
    public_key_hex: str,
    signature_hex: str,
    timestamp: str,
    raw_body: Union[bytes, str],
) -> bool:
    """签名匹配返回 True；签名不对或 key/签名格式坏一律 False，不抛异常"""
    if isinstance(raw_body, str):
        raw_body = raw_body.encode("utf-8")
    try:
        key = load_public_key(public_key_hex)
        signature = bytes.fromhex(signature_hex.strip())
    except (ValueError, TypeError, AttributeError) as e:
        logger.warning(f"Malformed signature material: {e}")
        return False
    if len(signature) != 64:
        return False

    message = str(timestamp).encode("utf-8") + raw_body
    try:
        key.verify(signature, message)
    except InvalidSignature:
        return False
    return True
