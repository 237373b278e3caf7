# services/cos_client.py
# COS 对象读写（get_text/put_text 供 db_index 使用）
# 客户端首次使用时才创建：未配置 COS 的部署（TOKEN_STORE=supabase）不受影响

import os
from qcloud_cos import CosConfig, CosS3Client

_cos = None

def _bucket() -> str:
    return os.environ.get("COS_BUCKET", "")  # 形如 name-appid

def _client() -> CosS3Client:
    global _cos
    if _cos is None:
        cfg = CosConfig(
            Region=os.environ.get("COS_REGION", "ap-beijing"),
            SecretId=os.environ.get("TENCENTCLOUD_SECRETID"),
            SecretKey=os.environ.get("TENCENTCLOUD_SECRETKEY"),
            Token=os.environ.get("TENCENTCLOUD_SESSIONTOKEN"),  # 执行角色会注入
            Scheme="https",
        )
        _cos = CosS3Client(cfg)
    return _cos

def cos_put_bytes(key: str, blob: bytes, content_type: str = None):
    kwargs = dict(Bucket=_bucket(), Key=key, Body=blob)
    if content_type:
        kwargs["ContentType"] = content_type
    _client().put_object(**kwargs)

def cos_get_bytes(key: str) -> bytes:
    obj = _client().get_object(Bucket=_bucket(), Key=key)
    return obj["Body"].get_raw_stream().read()

def get_text(key: str, encoding: str = "utf-8") -> str:
    return cos_get_bytes(key).decode(encoding, "ignore")

def put_text(key: str, text: str, content_type: str = "application/json", encoding: str = "utf-8"):
    cos_put_bytes(key, text.encode(encoding), content_type=content_type)
