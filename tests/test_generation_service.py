import json
import zipfile

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from src.graph.workflow import PIPELINE_STEPS, download_url_for, should_continue
from src.services.errors import GenerationFailedError
from src.services.generation_service import GenerationRequest
from tests.helpers import FakeVideoService, TEST_ORIGIN, make_photo


def make_request(tmp_path, count=3, **overrides):
    photos = [
        str(make_photo(tmp_path / "uploads" / f"photo_{index}.jpg", color=(40 * index, 90, 150)))
        for index in range(count)
    ]
    fields = {"address": "12 Elm St", "kind": "demo", "photo_paths": photos}
    fields.update(overrides)
    return GenerationRequest(**fields)


def test_pipeline_order():
    assert PIPELINE_STEPS[0] == "generate_copy"
    assert PIPELINE_STEPS[-1] == "finalize"
    assert PIPELINE_STEPS.index("upload_archive") < PIPELINE_STEPS.index("notify_customer")


def test_should_continue():
    assert should_continue({"status": "processing"}) == "continue"
    assert should_continue({"status": "failed", "failed_step": "render_video"}) == "end"


def test_download_url_for_quotes_key():
    assert download_url_for("kits/a b.zip", "http://kit.test/") == "http://kit.test/download/s3/kits/a%20b.zip"


def test_generate_demo_kit_end_to_end(tmp_path, kit):
    result = kit.generation.generate(make_request(tmp_path))

    assert result.status == "ready"
    assert result.download_url == f"{TEST_ORIGIN}/download/s3/kits/{result.job_id}.zip"

    job = kit.job_service.get(result.job_id)
    assert job.status == "ready"
    assert job.kind == "demo"
    assert job.artifact_key == f"kits/{result.job_id}.zip"
    assert job.last_error is None

    archive_path = kit.out_dir / f"{result.job_id}.zip"
    with zipfile.ZipFile(archive_path) as archive:
        names = set(archive.namelist())
    assert {"listing.json", "brochure.pdf", "tour.mp4"} <= names
    assert {"enhanced/img_1.jpg", "enhanced/img_2.jpg", "enhanced/img_3.jpg"} <= names

    listing = json.loads((kit.out_dir / result.job_id / "listing.json").read_text())
    assert listing["seo"] == "Updated 3BR near the park"

    assert kit.storage.client.uploads[0]["key"] == job.artifact_key
    assert kit.notifications.sent == []


def test_generate_notifies_when_email_given(tmp_path, kit):
    result = kit.generation.generate(make_request(tmp_path, email="buyer@example.com"))

    assert kit.notifications.sent == [("buyer@example.com", result.download_url)]


def test_generate_records_session_as_correlation(tmp_path, kit):
    result = kit.generation.generate(
        make_request(tmp_path, kind="one_time", email="buyer@example.com", session_id="cs_paid")
    )

    assert kit.job_service.find_latest_by_correlation("cs_paid").id == result.job_id


def test_non_json_copy_still_produces_kit(tmp_path, kit):
    generation = kit.build_generation(chat_model=FakeListChatModel(responses=["Just a paragraph of copy."]))

    result = generation.generate(make_request(tmp_path, count=1))

    assert result.status == "ready"
    listing = json.loads((kit.out_dir / result.job_id / "listing.json").read_text())
    assert listing == {"mls": "Just a paragraph of copy.", "seo": "", "captions": []}


def test_failed_step_leaves_job_processing(tmp_path, kit):
    generation = kit.build_generation(video=FakeVideoService(fail=True))

    with pytest.raises(GenerationFailedError) as excinfo:
        generation.generate(make_request(tmp_path))

    error = excinfo.value
    assert error.step == "render_video"
    job = kit.job_service.get(error.job_id)
    assert job.status == "processing"
    assert job.artifact_key is None
    assert job.last_error.startswith("render_video:")
    assert kit.storage.client.uploads == []


def test_failed_copy_step_stops_before_images(tmp_path, kit):
    class DownModel:
        def invoke(self, messages):
            raise ConnectionError("api unreachable")

    generation = kit.build_generation(chat_model=DownModel())

    with pytest.raises(GenerationFailedError) as excinfo:
        generation.generate(make_request(tmp_path))

    assert excinfo.value.step == "generate_copy"
    assert not (kit.out_dir / excinfo.value.job_id / "enhanced").exists()
