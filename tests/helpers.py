"""Fakes and builders shared by the test modules."""

import hashlib
import hmac
import io
import json
import time
from pathlib import Path
from typing import Dict, List

from botocore.exceptions import ClientError
from PIL import Image

from src.services.errors import PaymentRequiredError, UpstreamError
from src.services.notification_service import NotificationService
from src.services.payment_service import CheckoutSession
from src.services.video_service import VideoService

WEBHOOK_SECRET = "whsec_test_secret"
TEST_ORIGIN = "http://kit.test"
ADMIN_USER = "admin"
ADMIN_PASS = "s3cret"

LISTING_JSON = json.dumps({
    "mls": "Sunny three bedroom home with an updated kitchen.",
    "seo": "Updated 3BR near the park",
    "captions": ["Just listed!", "Open house Sunday", "Light everywhere", "Move-in ready", "Call today"],
})


def make_photo(path: Path, size=(640, 480), color=(120, 160, 200)) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color).save(path, format="JPEG")
    return path


def photo_bytes(size=(320, 240), color=(90, 140, 60)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="JPEG")
    return buffer.getvalue()


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload.decode('utf-8')}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


class FakePaymentService:
    """Stands in for Stripe session creation and lookup."""

    def __init__(self, sessions: Dict[str, CheckoutSession] = None):
        self.sessions = sessions or {}
        self.retrieved: List[str] = []
        self.created: List[tuple] = []
        self.outage = False

    def retrieve_session(self, session_id: str) -> CheckoutSession:
        self.retrieved.append(session_id)
        if self.outage:
            raise UpstreamError("Connection error")
        if session_id not in self.sessions:
            raise PaymentRequiredError("Payment has not been confirmed")
        return self.sessions[session_id]

    def create_checkout_session(self, email: str, mode: str = "payment") -> CheckoutSession:
        self.created.append((email, mode))
        return CheckoutSession(id="cs_test_new", url=f"https://checkout.stripe.test/{mode}")


class FakeS3Client:
    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.uploads: List[dict] = []

    def upload_file(self, filename, bucket, key, ExtraArgs=None):
        self.uploads.append({"filename": filename, "bucket": bucket, "key": key, "extra": ExtraArgs})
        self.objects[key] = Path(filename).read_bytes()

    def head_object(self, Bucket, Key):
        if Key not in self.objects:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject")
        return {"ContentLength": len(self.objects[Key])}

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        return f"https://{Params['Bucket']}.s3.test/{Params['Key']}?X-Amz-Expires={ExpiresIn}"


class FakeVideoService(VideoService):
    """Skips the ffmpeg binary and writes a placeholder file instead."""

    def __init__(self, fail: bool = False):
        super().__init__(ffmpeg_path="ffmpeg", timeout=5)
        self.fail = fail
        self.commands: List[List[str]] = []

    def _run(self, command):
        self.commands.append(command)
        if self.fail:
            raise UpstreamError("ffmpeg exited with code 1")
        Path(command[-1]).write_bytes(b"\x00\x00\x00\x18ftypmp42")


class RecordingNotificationService(NotificationService):
    def __init__(self):
        super().__init__(host="smtp.test", username="mailer", password="pw", sender="kits@test")
        self.sent: List[tuple] = []

    def send_kit_ready(self, to_email: str, download_url: str) -> bool:
        self.sent.append((to_email, download_url))
        return True

