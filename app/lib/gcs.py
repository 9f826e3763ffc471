# app/lib/gcs.py
import io
import os
from datetime import timedelta
from typing import Any, Dict, Optional

from google.cloud import storage
from app.config import config
from app import logger

log = logger.get_logger(__name__)

_storage = None
def _client():
    global _storage
    if _storage is None:
        _storage = storage.Client()
    return _storage

def _signing_creds():
    import google.auth
    from google.auth import impersonated_credentials
    # Base creds from runtime (Cloud Run SA token)
    base_creds, _ = google.auth.default(scopes=["https://www.googleapis.com/auth/cloud-platform"])
    # A key file already carries a signer
    if getattr(base_creds, "signer", None):
        return base_creds
    target_sa = os.getenv("GCS_SIGNING_SERVICE_ACCOUNT")
    if not target_sa:
        try:
            from google.auth.compute_engine import metadata
            target_sa = metadata.get_service_account_email()
        except Exception as e:
            log.debug(f"metadata server has no service account email: {e}")
    if not target_sa:
        raise RuntimeError("Cannot sign URLs: set GCS_SIGNING_SERVICE_ACCOUNT to the service account email.")
    return impersonated_credentials.Credentials(
        source_credentials=base_creds,
        target_principal=target_sa,
        target_scopes=[
            "https://www.googleapis.com/auth/devstorage.read_write",
            "https://www.googleapis.com/auth/cloud-platform",
        ],
        lifetime=3600,
    )

def _bucket(bucket_name: Optional[str] = None):
    name = bucket_name or config.gcs_bucket
    if not name:
        raise RuntimeError("GCS_BUCKET not configured")
    return _client().bucket(name)

def upload_bytes_to_gcs(
    data: bytes,
    *,
    object_name: str,
    content_type: str = "image/png",
    cache_control: str = "public, max-age=31536000",
    url_mode: Optional[str] = None,
    bucket_name: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Upload raw bytes to `object_name` (overwriting) and return
    bucket/object/gs_uri plus a long-lived `url`:
      - url_mode "public": the object's public https URL
      - url_mode "signed": a v4 signed GET URL valid for GCS_SIGNED_URL_TTL
    """
    bucket = _bucket(bucket_name)
    blob = bucket.blob(object_name)
    blob.cache_control = cache_control
    blob.upload_from_file(io.BytesIO(data), size=len(data), content_type=content_type)

    mode = (url_mode or config.gcs_url_mode).lower()
    if mode == "signed":
        url = blob.generate_signed_url(
            version="v4",
            expiration=timedelta(seconds=config.signed_url_ttl),
            method="GET",
            response_type=content_type,
            credentials=_signing_creds(),
        )
    else:
        url = blob.public_url

    return {
        "bucket": bucket.name,
        "object": object_name,
        "gs_uri": f"gs://{bucket.name}/{object_name}",
        "url": url,
        "content_type": content_type,
    }

def delete_gcs_prefix(prefix: str, *, bucket_name: Optional[str] = None) -> int:
    """
    Delete every object whose name starts with `prefix`. Returns how many were removed.
    """
    bucket = _bucket(bucket_name)
    removed = 0
    for blob in _client().list_blobs(bucket, prefix=prefix):
        blob.delete()
        removed += 1
    return removed
