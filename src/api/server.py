"""Flask API server for marketing kit generation."""

import hmac
import logging
import os
import time
from dataclasses import dataclass
from typing import Optional, Type, TypeVar

from flask import Flask, g, jsonify, redirect, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from config.settings import (
    ADMIN_PASS,
    ADMIN_USER,
    DATABASE_URL,
    FLASK_DEBUG,
    LOG_LEVEL,
    MAX_UPLOAD_FILES,
    MAX_UPLOAD_MB,
    ORIGIN,
    PORT,
    RATE_LIMIT_PER_MIN,
)
from src.api.schemas import CheckoutRequest, GenerateForm, GenerateQuery
from src.graph.workflow import PipelineServices, create_workflow
from src.services.entitlement_service import EntitlementService
from src.services.errors import (
    GenerationFailedError,
    KitError,
    PayloadTooLargeError,
    UpstreamError,
    ValidationError,
)
from src.services.generation_service import GenerationRequest, GenerationService
from src.services.job_repository import JobRepository
from src.services.job_service import JobService
from src.services.llm_service import LLMService
from src.services.payment_service import PaymentService
from src.services.storage_service import StorageService
from src.services.upload_service import UploadStore
from src.services.webhook_service import WebhookService

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

ADMIN_JOBS_LIMIT = 500

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class AppServices:
    """Long-lived handles the routes depend on, built once per process."""

    job_service: JobService
    payments: PaymentService
    entitlements: EntitlementService
    generation: GenerationService
    webhooks: WebhookService
    storage: StorageService
    uploads: UploadStore


def build_services(database_url: str = DATABASE_URL, origin: str = ORIGIN) -> AppServices:
    """Construct the production collaborators from settings."""
    repository = JobRepository(database_url=database_url)
    repository.create_schema()
    job_service = JobService(repository=repository)

    payments = PaymentService(origin=origin)
    storage = StorageService()
    pipeline = PipelineServices(llm=LLMService(), storage=storage)

    logger.info("Initializing LangGraph workflow")
    generation = GenerationService(job_service, create_workflow(pipeline, job_service, origin=origin))

    return AppServices(
        job_service=job_service,
        payments=payments,
        entitlements=EntitlementService(payments),
        generation=generation,
        webhooks=WebhookService(payments, job_service),
        storage=storage,
        uploads=UploadStore(),
    )


def _parse(model: Type[ModelT], data: dict, code: str) -> ModelT:
    try:
        return model(**data)
    except PydanticValidationError as error:
        first = error.errors()[0] if error.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()))
        detail = first.get("msg", "invalid request")
        message = f"{location}: {detail}" if location else detail
        raise ValidationError(message, code=code) from error


def create_app(
    services: Optional[AppServices] = None,
    *,
    origin: str = ORIGIN,
    admin_user: Optional[str] = ADMIN_USER,
    admin_pass: Optional[str] = ADMIN_PASS,
    max_upload_files: int = MAX_UPLOAD_FILES,
    max_upload_mb: int = MAX_UPLOAD_MB,
    rate_limit_per_min: int = RATE_LIMIT_PER_MIN,
) -> Flask:
    """Create the Flask app around injected services.

    Args:
        services: Collaborators to use; built from settings when omitted
        origin: Public origin allowed by CORS
        admin_user: Basic auth user for the admin API
        admin_pass: Basic auth password for the admin API
        max_upload_files: Maximum photos per generate request
        max_upload_mb: Size limit for each photo, in MB
        rate_limit_per_min: Requests per client per minute across /api/ routes, 0 to disable

    Returns:
        Configured Flask application
    """
    services = services or build_services(origin=origin)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = max_upload_mb * max_upload_files * 1024 * 1024
    CORS(app, origins=[origin], supports_credentials=True)

    limiter = Limiter(
        get_remote_address,
        app=app,
        storage_uri="memory://",
        enabled=rate_limit_per_min > 0,
    )
    # One budget shared by every /api/ route except the Stripe webhook
    api_limit = limiter.shared_limit(f"{max(rate_limit_per_min, 1)} per minute", scope="api")

    @app.before_request
    def start_timer():
        g.start_time = time.time()

    @app.after_request
    def finish_request(response):
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        if hasattr(g, "start_time"):
            elapsed_ms = (time.time() - g.start_time) * 1000
            logger.info(f"{request.method} {request.path} -> {response.status_code} ({elapsed_ms:.1f} ms)")
        return response

    @app.errorhandler(KitError)
    def handle_kit_error(error: KitError):
        if error.status_code >= 500:
            logger.error(f"{error.code}: {error.message}", exc_info=error)
        else:
            logger.warning(f"{request.path} rejected with {error.status_code} {error.code}: {error.message}")

        body = {"error": error.code, "message": error.public_message}
        if isinstance(error, GenerationFailedError) and error.job_id:
            body["jobId"] = error.job_id
        return jsonify(body), error.status_code

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 errors."""
        return jsonify({
            "error": "not_found",
            "message": "Endpoint not found"
        }), 404

    @app.errorhandler(413)
    def too_large(error):
        return jsonify({
            "error": "payload_too_large",
            "message": f"Uploads are limited to {max_upload_files} photos of {max_upload_mb} MB"
        }), 413

    @app.errorhandler(429)
    def rate_limited(error):
        return jsonify({
            "error": "rate_limited",
            "message": "Too many requests, please slow down"
        }), 429

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        logger.error(f"Internal server error: {error}")
        return jsonify({
            "error": "internal_error",
            "message": "Internal server error"
        }), 500

    # Reads the raw body; nothing may parse it before signature verification.
    @app.route('/api/stripe-webhook', methods=['POST'])
    def stripe_webhook():
        """Verify and apply a Stripe event.

        Returns:
            200 {"received": true}, or 400 when the signature does not verify
        """
        payload = request.get_data(cache=False)
        event_type = services.webhooks.handle(payload, request.headers.get("Stripe-Signature"))
        logger.info("Processed webhook event %s", event_type)
        return jsonify({"received": True}), 200

    @app.route('/api/health', methods=['GET'])
    @api_limit
    def health_check():
        """Liveness probe."""
        return jsonify({"ok": True}), 200

    @app.route('/api/create-checkout-session', methods=['POST'])
    @api_limit
    def create_checkout_session():
        """Start a Stripe checkout for a one-time kit or a subscription.

        Request JSON:
            {"email": "buyer@example.com", "mode": "payment" | "subscription"}

        Returns:
            JSON with the hosted checkout URL
        """
        body = _parse(CheckoutRequest, request.get_json(silent=True) or {}, code="bad_request")
        try:
            session = services.payments.create_checkout_session(body.email, body.mode)
        except UpstreamError as error:
            logger.error(f"Checkout session creation failed: {error}", exc_info=True)
            return jsonify({"error": "bad_request", "message": str(error)}), 400
        return jsonify({"url": session.url}), 200

    @app.route('/api/generate', methods=['POST'])
    @api_limit
    def generate():
        """Build a marketing kit from uploaded photos.

        Query parameters:
            kind: one_time | subscription | demo (default demo)
            session_id: Stripe checkout session id, required unless demo

        Form fields:
            photos: 1-20 image files
            address: Property address
            email: Customer email, required unless demo
            details: Optional free-text details

        Returns:
            JSON with jobId, status and download URL
        """
        photos = [photo for photo in request.files.getlist('photos') if photo and photo.filename]

        query = _parse(
            GenerateQuery,
            {
                "session_id": request.args.get("session_id"),
                "kind": request.args.get("kind") or "demo",
            },
            code="bad_request",
        )
        form = _parse(
            GenerateForm,
            {
                "kind": query.kind,
                "address": request.form.get("address", ""),
                "email": request.form.get("email"),
                "details": request.form.get("details"),
            },
            code="missing_fields",
        )
        if not photos:
            raise ValidationError("At least one photo is required")
        if len(photos) > max_upload_files:
            raise ValidationError(f"At most {max_upload_files} photos are allowed", code="bad_request")
        max_bytes = max_upload_mb * 1024 * 1024
        for photo in photos:
            if _upload_size(photo) > max_bytes:
                raise PayloadTooLargeError(f"{photo.filename} exceeds the {max_upload_mb} MB per-photo limit")

        services.entitlements.check(query.kind, query.session_id)

        logger.info(f"Received {query.kind} generation request with {len(photos)} photos for {form.address}")

        with services.uploads.scoped(photos) as photo_paths:
            result = services.generation.generate(
                GenerationRequest(
                    address=form.address,
                    kind=query.kind,
                    photo_paths=photo_paths,
                    email=form.email,
                    details=form.details,
                    session_id=query.session_id,
                )
            )

        logger.info(f"Kit generated successfully: {result.job_id}")
        return jsonify(result.to_dict()), 200

    @app.route('/download/s3/<path:key>', methods=['GET'])
    def download_artifact(key: str):
        """Redirect to a time-limited S3 URL for ``key``; 404 if it does not exist."""
        return redirect(services.storage.presigned_download_url(key), code=302)

    @app.route('/api/admin/jobs', methods=['GET'])
    @api_limit
    def list_jobs():
        """Return recent jobs for the admin dashboard (HTTP Basic auth)."""
        if not _admin_authorized(admin_user, admin_pass):
            response = jsonify({"error": "unauthorized", "message": "Invalid credentials"})
            response.headers["WWW-Authenticate"] = 'Basic realm="admin"'
            return response, 401

        limit = min(request.args.get("limit", ADMIN_JOBS_LIMIT, type=int) or ADMIN_JOBS_LIMIT, ADMIN_JOBS_LIMIT)
        jobs = services.job_service.list_recent(limit=limit)
        return jsonify({"jobs": [job.to_dict() for job in jobs]}), 200

    return app


def _upload_size(upload) -> int:
    stream = upload.stream
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


def _admin_authorized(admin_user: Optional[str], admin_pass: Optional[str]) -> bool:
    if not admin_user or not admin_pass:
        return False
    auth = request.authorization
    if auth is None or auth.username is None or auth.password is None:
        return False
    user_ok = hmac.compare_digest(auth.username.encode("utf-8"), admin_user.encode("utf-8"))
    pass_ok = hmac.compare_digest(auth.password.encode("utf-8"), admin_pass.encode("utf-8"))
    return user_ok and pass_ok


def run_server():
    """Run the Flask server."""
    from config.settings import (
        OPENAI_API_KEY,
        S3_BUCKET,
        SMTP_HOST,
        STRIPE_SECRET_KEY,
        STRIPE_WEBHOOK_SECRET,
    )

    logger.info("=" * 60)
    logger.info("Configuration Check:")
    logger.info(f"OpenAI API Key: {'Configured' if OPENAI_API_KEY else 'MISSING'}")
    logger.info(f"Stripe Secret Key: {'Configured' if STRIPE_SECRET_KEY else 'MISSING'}")
    logger.info(f"Stripe Webhook Secret: {'Configured' if STRIPE_WEBHOOK_SECRET else 'MISSING'}")
    logger.info(f"S3 Bucket: {S3_BUCKET or 'MISSING'}")
    logger.info(f"SMTP Relay: {'Configured' if SMTP_HOST else 'disabled'}")
    logger.info(f"Admin Credentials: {'Configured' if ADMIN_USER and ADMIN_PASS else 'MISSING'}")
    logger.info("=" * 60)

    app = create_app()

    logger.info("Registered Routes:")
    for rule in app.url_map.iter_rules():
        methods = ','.join(sorted(rule.methods - {'HEAD', 'OPTIONS'}))
        logger.info(f"  {rule.rule:50s} [{methods}]")
    logger.info("=" * 60)

    logger.info(f"Listing kit service running on {ORIGIN}")
    app.run(
        host='0.0.0.0',
        port=PORT,
        debug=FLASK_DEBUG,
        threaded=True
    )


if __name__ == '__main__':
    run_server()
