# src/storage.py
import hashlib
import hmac
import logging
import os
import urllib.parse
from datetime import datetime
from typing import Optional

import requests
from fastapi import HTTPException

from config import settings

logger = logging.getLogger(__name__)


class ObjectStorage:
    """Stores generated PDFs and logos either on local disk or in an S3-compatible bucket."""

    def __init__(self, backend: Optional[str] = None):
        self.backend = backend or settings.STORAGE_BACKEND

    def upload(self, bucket: str, key: str, data: bytes, content_type: str) -> str:
        """Store bytes under bucket/key and return the public URL."""
        key = urllib.parse.quote(key)
        if self.backend == "s3":
            return self._upload_to_s3(bucket, key, data, content_type)
        path = os.path.join(settings.MEDIA_ROOT, bucket, *key.split("/"))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)
        return f"{settings.MEDIA_URL}/{bucket}/{key}"

    def delete(self, url: str) -> bool:
        """Delete the object behind a URL produced by upload(). Returns False for foreign URLs."""
        location = self.parse_url(url)
        if location is None:
            return False
        bucket, key = location
        if self.backend == "s3":
            self._delete_from_s3(bucket, key)
            return True
        path = os.path.join(settings.MEDIA_ROOT, bucket, *key.split("/"))
        if os.path.exists(path):
            os.remove(path)
        return True

    def read(self, url: str) -> Optional[bytes]:
        location = self.parse_url(url)
        if location is None:
            return None
        bucket, key = location
        if self.backend == "s3":
            response = requests.get(f"{settings.S3_ENDPOINT_URL}/{bucket}/{key}", timeout=10)
            return response.content if response.status_code == 200 else None
        path = os.path.join(settings.MEDIA_ROOT, bucket, *key.split("/"))
        if not os.path.exists(path):
            return None
        with open(path, "rb") as f:
            return f.read()

    def parse_url(self, url: Optional[str]):
        """Split a stored object URL into (bucket, key)."""
        if not url:
            return None
        base = settings.S3_ENDPOINT_URL if self.backend == "s3" else settings.MEDIA_URL
        if not url.startswith(f"{base}/"):
            return None
        bucket, _, key = url[len(base) + 1:].partition("/")
        if not bucket or not key:
            return None
        return bucket, key

    def _upload_to_s3(self, bucket: str, key: str, data: bytes, content_type: str) -> str:
        host = self._host(bucket)
        canonical_uri = f"/{key}"
        payload_hash = hashlib.sha256(data).hexdigest()
        headers = self._create_auth_headers("PUT", host, canonical_uri, payload_hash, content_type, len(data))
        response = requests.put(f"https://{host}{canonical_uri}", data=data, headers=headers, timeout=30)
        if response.status_code != 200:
            logger.error(f"Storage upload failed: {response.status_code} - {response.text}")
            raise HTTPException(status_code=500, detail="File upload failed")
        return f"{settings.S3_ENDPOINT_URL}/{bucket}/{key}"

    def _delete_from_s3(self, bucket: str, key: str) -> None:
        host = self._host(bucket)
        canonical_uri = f"/{key}"
        payload_hash = hashlib.sha256(b"").hexdigest()
        headers = self._create_auth_headers("DELETE", host, canonical_uri, payload_hash, None, 0)
        response = requests.delete(f"https://{host}{canonical_uri}", headers=headers, timeout=30)
        if response.status_code not in (200, 204):
            logger.error(f"Storage delete failed: {response.status_code} - {response.text}")
            raise HTTPException(status_code=500, detail="File delete failed")

    @staticmethod
    def _host(bucket: str) -> str:
        endpoint_host = urllib.parse.urlparse(settings.S3_ENDPOINT_URL).netloc
        return f"{bucket}.{endpoint_host}"

    @staticmethod
    def _create_auth_headers(
            method: str, host: str, canonical_uri: str, payload_hash: str,
            content_type: Optional[str], content_length: int
    ) -> dict:
        """Create AWS Signature V4 headers for the bucket request."""
        def sign(key, msg):
            return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()

        now = datetime.utcnow()
        amz_date = now.strftime("%Y%m%dT%H%M%SZ")
        date_stamp = now.strftime("%Y%m%d")
        region = settings.S3_REGION_NAME
        service = "s3"

        canonical_headers = f"host:{host}\nx-amz-content-sha256:{payload_hash}\nx-amz-date:{amz_date}\n"
        signed_headers = "host;x-amz-content-sha256;x-amz-date"
        canonical_request = f"{method}\n{canonical_uri}\n\n{canonical_headers}\n{signed_headers}\n{payload_hash}"
        algorithm = "AWS4-HMAC-SHA256"
        credential_scope = f"{date_stamp}/{region}/{service}/aws4_request"
        string_to_sign = f'{algorithm}\n{amz_date}\n{credential_scope}\n{hashlib.sha256(canonical_request.encode("utf-8")).hexdigest()}'

        k_date = sign(("AWS4" + settings.S3_SECRET_KEY).encode("utf-8"), date_stamp)
        k_region = sign(k_date, region)
        k_service = sign(k_region, service)
        k_signing = sign(k_service, "aws4_request")
        signature = hmac.new(k_signing, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()

        headers = {
            "Authorization": f"{algorithm} Credential={settings.S3_ACCESS_KEY}/{credential_scope}, "
                             f"SignedHeaders={signed_headers}, Signature={signature}",
            "x-amz-content-sha256": payload_hash,
            "x-amz-date": amz_date,
            "Content-Length": str(content_length),
        }
        if content_type:
            headers["Content-Type"] = content_type
        return headers


storage = ObjectStorage()
