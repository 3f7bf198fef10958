import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from src.api.server import AppServices, create_app
from src.graph.workflow import PipelineServices, create_workflow
from src.services.archive_service import ArchiveService
from src.services.document_service import DocumentService
from src.services.entitlement_service import EntitlementService
from src.services.generation_service import GenerationService
from src.services.image_service import ImageService
from src.services.job_repository import JobRepository
from src.services.job_service import JobService
from src.services.llm_service import LLMService
from src.services.payment_service import CheckoutSession, PaymentService
from src.services.storage_service import StorageService
from src.services.upload_service import UploadStore
from src.services.webhook_service import WebhookService
from tests.helpers import (
    ADMIN_PASS,
    ADMIN_USER,
    LISTING_JSON,
    TEST_ORIGIN,
    WEBHOOK_SECRET,
    FakePaymentService,
    FakeS3Client,
    FakeVideoService,
    RecordingNotificationService,
)


@pytest.fixture
def job_service(tmp_path):
    repo = JobRepository(database_url=f"sqlite:///{tmp_path / 'jobs.db'}")
    repo.create_schema()
    return JobService(repository=repo)


@pytest.fixture
def s3_client():
    return FakeS3Client()


@pytest.fixture
def storage(s3_client):
    return StorageService(client=s3_client, bucket="kits", prefix="kits/", url_expiry_seconds=600)


@pytest.fixture
def payments():
    return FakePaymentService({
        "cs_paid": CheckoutSession(id="cs_paid", payment_status="paid", status="complete"),
        "cs_unpaid": CheckoutSession(id="cs_unpaid", payment_status="unpaid", status="open"),
    })


@pytest.fixture
def kit(tmp_path, job_service, storage, payments):
    """Fully wired services with fakes only at the network and ffmpeg edges."""

    class Kit:
        pass

    kit = Kit()
    kit.job_service = job_service
    kit.storage = storage
    kit.payments = payments
    kit.video = FakeVideoService()
    kit.notifications = RecordingNotificationService()
    kit.chat_model = FakeListChatModel(responses=[LISTING_JSON] * 10)
    kit.out_dir = tmp_path / "out"
    kit.upload_dir = tmp_path / "uploads"

    def build(chat_model=None, video=None):
        pipeline = PipelineServices(
            llm=LLMService(chat_model=chat_model or kit.chat_model),
            storage=storage,
            images=ImageService(target_width=320),
            documents=DocumentService(),
            videos=video or kit.video,
            archives=ArchiveService(),
            notifications=kit.notifications,
        )
        workflow = create_workflow(pipeline, job_service, origin=TEST_ORIGIN)
        return GenerationService(job_service, workflow, out_dir=kit.out_dir, tracing_enabled=False)

    kit.build_generation = build
    kit.generation = build()
    kit.webhook_payments = PaymentService(api_key="sk_test_123", webhook_secret=WEBHOOK_SECRET, origin=TEST_ORIGIN)
    kit.services = AppServices(
        job_service=job_service,
        payments=payments,
        entitlements=EntitlementService(payments),
        generation=kit.generation,
        webhooks=WebhookService(kit.webhook_payments, job_service),
        storage=storage,
        uploads=UploadStore(kit.upload_dir),
    )
    return kit


@pytest.fixture
def client(kit):
    app = create_app(kit.services, origin=TEST_ORIGIN, admin_user=ADMIN_USER, admin_pass=ADMIN_PASS)
    app.config["TESTING"] = True
    return app.test_client()
