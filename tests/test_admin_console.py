import asyncio
import logging
from datetime import date

import pytest

from basamu.models import CulturalImage, Event, Executive, HomeContent
from basamu.schemas import CulturalImageDraft, EventDraft, ExecutiveDraft, ExecutiveUpdate, HomeContentPatch
from basamu.services import public_views
from basamu.services.admin_console import AdminConsole, form_key, parse_rank, pending
from basamu.services.session_service import Session, SessionContext
from basamu.services.upload_service import IncomingFile
from basamu.utils.errors import (
    AdminAccessError,
    ContentNotFoundError,
    DraftValidationError,
    SubmissionInProgressError,
    UploadFailedError,
)
from tests.conftest import (
    ADMIN_ID,
    FakeBlobStore,
    TestingSession,
    auth_headers,
    fetch_all,
    run_console,
    run_sql,
    seed,
)

GALLERY_URL = "https://res.cloudinary.com/demo/image/upload/v1/cultural-images/1700000000000-ab12cd34.jpg"


def _home_content():
    return HomeContent(
        hero_title="Welcome to BASAMU",
        hero_subtitle="Banyankore Students Association",
        mission_text="Celebrate our heritage",
        vision_text="A united community",
        slogan="Our culture, our pride",
    )


# Executives


def test_parse_rank():
    assert parse_rank(3) == 3
    assert parse_rank(" 2 ") == 2
    assert parse_rank("first") == 0
    assert parse_rank("") == 0
    assert parse_rank(None) == 0


def test_added_executive_is_listed_first_by_rank(blob_store):
    seed(
        Executive(name="Older Treasurer", position="Treasurer", role="Finances", year="2024/2025", rank=1),
        Executive(name="General Secretary", position="Secretary", role="Minutes", year="2025/2026", rank=2),
        Executive(name="Patron", position="Patron", role="Advises", year="2025/2026", rank=0),
    )
    draft = ExecutiveDraft(name="Jane Doe", position="President", role="Leads the team", year="2025/2026", rank=1)

    executive, next_draft = run_console(blob_store, lambda console: console.add_executive(draft))
    assert executive.id
    assert next_draft == ExecutiveDraft()

    async def _fetch():
        async with TestingSession() as db:
            return await public_views.fetch_executives(db)
    roster = asyncio.run(_fetch())
    ranked = [e for e in roster if e.rank >= 1]
    assert ranked[0].name == "Jane Doe"
    assert [e.name for e in roster] == ["Patron", "Jane Doe", "Older Treasurer", "General Secretary"]


def test_executive_missing_fields_rejected_locally(blob_store):
    draft = ExecutiveDraft(name="Jane Doe", position="  ", role="", year="2025/2026")
    with pytest.raises(DraftValidationError) as exc_info:
        run_console(blob_store, lambda console: console.add_executive(draft))
    assert set(exc_info.value.field_errors) == {"position", "role"}
    assert fetch_all(Executive) == []
    assert draft.name == "Jane Doe"


def test_executive_unparsable_rank_defaults_to_zero(client, seed_roles):
    resp = client.post(
        "/api/admin/executives",
        json={"name": "John", "position": "Vice President", "role": "Deputises", "year": 2025, "rank": "abc"},
        headers=auth_headers(ADMIN_ID),
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["record"]["rank"] == 0
    assert body["record"]["year"] == "2025"
    assert body["draft"]["name"] == ""
    assert body["message"] == "Executive added successfully"


def test_executive_detail_edit(client, seed_roles):
    executive = Executive(name="Jane", position="Secretary", role="Minutes", year="2025/2026", rank=3)
    seed(executive)

    resp = client.put(
        f"/api/admin/executives/{executive.id}",
        json={"position": "President", "rank": "1", "email": "jane@example.com"},
        headers=auth_headers(ADMIN_ID),
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["position"] == "President"
    assert body["rank"] == 1
    assert body["email"] == "jane@example.com"
    assert body["name"] == "Jane"

    resp = client.put(
        f"/api/admin/executives/{executive.id}",
        json={"name": ""},
        headers=auth_headers(ADMIN_ID),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == {"name": "Name is required"}


def test_edit_unknown_executive_is_404(client, seed_roles):
    resp = client.put("/api/admin/executives/missing", json={"name": "X"}, headers=auth_headers(ADMIN_ID))
    assert resp.status_code == 404


def test_replace_executive_photo(client, blob_store, seed_roles):
    executive = Executive(name="Jane", position="President", role="Leads", year="2025/2026", rank=1)
    seed(executive)

    resp = client.put(
        f"/api/admin/executives/{executive.id}/photo",
        files={"file": ("jane.png", b"\x89PNG\r\n\x1a\n", "image/png")},
        headers=auth_headers(ADMIN_ID),
    )
    assert resp.status_code == 200, resp.text
    assert "/executive-photos/" in resp.json()["photo_url"]
    assert blob_store.uploads[0]["bucket"] == "executive-photos"


def test_failed_photo_upload_leaves_executive_unchanged():
    store = FakeBlobStore()
    store.fail_upload = True
    executive = Executive(name="Jane", position="President", role="Leads", year="2025/2026", rank=1, photo_url="old.jpg")
    seed(executive)

    photo = IncomingFile(filename="jane.png", content_type="image/png", data=b"\0" * 10)
    with pytest.raises(UploadFailedError):
        run_console(store, lambda console: console.replace_executive_photo(executive.id, photo))
    assert fetch_all(Executive)[0].photo_url == "old.jpg"


def test_failed_executive_insert_names_the_action(client, seed_roles):
    run_sql(
        "CREATE TRIGGER block_executive_insert BEFORE INSERT ON executives "
        "BEGIN SELECT RAISE(ABORT, 'insert blocked'); END"
    )
    resp = client.post(
        "/api/admin/executives",
        json={"name": "Jane Doe", "position": "President", "role": "Leads the team", "year": "2025/2026", "rank": 1},
        headers=auth_headers(ADMIN_ID),
    )
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Failed to add executive"
    assert "draft" not in body
    assert "INSERT" not in resp.text
    assert "insert blocked" not in resp.text
    assert fetch_all(Executive) == []


# Events


def test_add_event_stores_blanks_as_null(client, seed_roles):
    resp = client.post(
        "/api/admin/events",
        json={"title": "Cultural Gala", "description": "Annual gala", "event_date": "", "media_link": "", "image_url": ""},
        headers=auth_headers(ADMIN_ID),
    )
    assert resp.status_code == 201, resp.text
    record = resp.json()["record"]
    assert record["event_date"] is None
    assert record["media_link"] is None
    assert record["image_url"] is None
    assert record["media_kind"] is None
    assert resp.json()["draft"]["title"] == ""


def test_add_event_keeps_media_kind_from_upload(blob_store):
    draft = EventDraft(
        title="Dance night",
        description="Traditional dance",
        event_date="2024-06-15",
        image_url="https://res.cloudinary.com/demo/video/upload/v1/event-images/1-a.mp4",
        media_kind="video",
    )
    event, _ = run_console(blob_store, lambda console: console.add_event(draft))
    assert event.media_kind == "video"
    assert event.event_date == date(2024, 6, 15)


def test_add_event_requires_title_and_description(blob_store):
    with pytest.raises(DraftValidationError) as exc_info:
        run_console(blob_store, lambda console: console.add_event(EventDraft(title="Gala")))
    assert exc_info.value.field_errors == {"description": "Description is required"}
    assert fetch_all(Event) == []


def test_event_edit_changes_details_but_not_image(client, seed_roles):
    event = Event(title="Gala", description="Old", image_url="https://example.com/gala.jpg", media_kind="image")
    seed(event)
    headers = auth_headers(ADMIN_ID)

    resp = client.put(
        f"/api/admin/events/{event.id}",
        json={"description": "New description", "event_date": "2024-11-02", "media_link": "https://photos.example.com/album"},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["description"] == "New description"
    assert body["event_date"] == "2024-11-02"
    assert body["image_url"] == "https://example.com/gala.jpg"

    resp = client.put(
        f"/api/admin/events/{event.id}",
        json={"image_url": "https://example.com/other.jpg"},
        headers=headers,
    )
    assert resp.status_code == 400
    assert fetch_all(Event)[0].image_url == "https://example.com/gala.jpg"


# Cultural images


def test_cultural_image_requires_uploaded_url(client, seed_roles):
    resp = client.post(
        "/api/admin/cultural-images",
        json={"image_url": "", "caption": "Dancers"},
        headers=auth_headers(ADMIN_ID),
    )
    assert resp.status_code == 400
    assert "image_url" in resp.json()["detail"]
    assert fetch_all(CulturalImage) == []


def test_add_cultural_image_returns_refreshed_list(client, seed_roles):
    seed(CulturalImage(image_url="https://example.com/old.jpg", caption="Older"))
    resp = client.post(
        "/api/admin/cultural-images",
        json={"image_url": GALLERY_URL, "caption": "Dancers"},
        headers=auth_headers(ADMIN_ID),
    )
    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["draft"] == {"image_url": "", "caption": ""}
    assert [img["caption"] for img in body["images"]] == ["Dancers", "Older"]


def test_delete_cultural_image_removes_blob_and_row(client, blob_store, seed_roles):
    image = CulturalImage(image_url=GALLERY_URL, caption="Dancers")
    seed(image)

    resp = client.delete(f"/api/admin/cultural-images/{image.id}", headers=auth_headers(ADMIN_ID))
    assert resp.status_code == 200, resp.text
    assert resp.json()["storage_deleted"] is True
    assert resp.json()["images"] == []
    assert blob_store.deletes == [
        {"bucket": "cultural-images", "path": "1700000000000-ab12cd34.jpg", "resource_type": "image"}
    ]
    assert fetch_all(CulturalImage) == []


def test_delete_cultural_image_when_blob_delete_fails(caplog):
    store = FakeBlobStore()
    store.fail_delete = True
    image = CulturalImage(image_url=GALLERY_URL, caption="Dancers")
    seed(image)

    with caplog.at_level(logging.ERROR, logger="basamu.services.admin_console"):
        storage_deleted = run_console(store, lambda console: console.delete_cultural_image(image.id))

    assert storage_deleted is False
    assert fetch_all(CulturalImage) == []
    assert "Failed to delete blob for cultural image" in caplog.text


def test_failed_row_delete_keeps_image_and_skips_refresh(client, blob_store, seed_roles):
    image = CulturalImage(image_url=GALLERY_URL, caption="Dancers")
    seed(image)
    run_sql(
        "CREATE TRIGGER block_image_delete BEFORE DELETE ON cultural_images "
        "BEGIN SELECT RAISE(ABORT, 'delete blocked'); END"
    )

    resp = client.delete(f"/api/admin/cultural-images/{image.id}", headers=auth_headers(ADMIN_ID))
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Failed to delete image"
    assert "images" not in body
    assert "delete blocked" not in resp.text
    assert [img.id for img in fetch_all(CulturalImage)] == [image.id]


def test_delete_unknown_cultural_image_is_404(client, blob_store, seed_roles):
    resp = client.delete("/api/admin/cultural-images/missing", headers=auth_headers(ADMIN_ID))
    assert resp.status_code == 404
    assert blob_store.deletes == []


# Home content


class RecordingDb:
    def __init__(self):
        self.statements = []

    async def execute(self, statement, *args, **kwargs):
        self.statements.append(statement)
        raise AssertionError("no statement expected")


def test_home_content_update_without_fetch_fails_fast():
    db = RecordingDb()
    console = AdminConsole(db, FakeBlobStore(), SessionContext(Session(user_id=ADMIN_ID))).mount()
    patch = HomeContentPatch(hero_title="New", hero_subtitle="Sub", mission_text="M", vision_text="V", slogan="S")

    with pytest.raises(ContentNotFoundError) as exc_info:
        asyncio.run(console.update_home_content(patch))
    assert exc_info.value.error == "Content not found"
    assert db.statements == []


def test_home_content_update_never_inserts(client, seed_roles):
    resp = client.put(
        "/api/admin/home-content",
        json={"id": "not-a-row", "hero_title": "T", "hero_subtitle": "S", "mission_text": "M", "vision_text": "V", "slogan": "S"},
        headers=auth_headers(ADMIN_ID),
    )
    assert resp.status_code == 404
    assert resp.json()["error"] == "Content not found"
    assert fetch_all(HomeContent) == []


def test_home_content_fetch_then_update(client, seed_roles):
    seed(_home_content())
    headers = auth_headers(ADMIN_ID)

    current = client.get("/api/admin/home-content", headers=headers).json()
    current["slogan"] = "Obuntu bulamu"
    current["chairperson_email"] = "chair@example.com"
    payload = {k: v for k, v in current.items() if k != "updated_at"}

    resp = client.put("/api/admin/home-content", json=payload, headers=headers)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["record"]["slogan"] == "Obuntu bulamu"
    assert body["draft"]["slogan"] == "Obuntu bulamu"
    assert body["draft"]["id"] == current["id"]
    assert len(fetch_all(HomeContent)) == 1


def test_home_content_missing_row_is_404(client, seed_roles):
    resp = client.get("/api/admin/home-content", headers=auth_headers(ADMIN_ID))
    assert resp.status_code == 404


# Pending submissions and session lifecycle


def test_second_submission_of_same_form_is_rejected():
    async def _run():
        async with pending(ADMIN_ID, "executive"):
            with pytest.raises(SubmissionInProgressError):
                async with pending(ADMIN_ID, "executive"):
                    pass
            async with pending(ADMIN_ID, "event"):
                pass
        async with pending(ADMIN_ID, "executive"):
            pass
    asyncio.run(_run())


def test_edits_of_different_records_do_not_block_each_other(blob_store):
    first = Executive(name="Jane", position="President", role="Leads", year="2025/2026", rank=1)
    second = Executive(name="John", position="Secretary", role="Minutes", year="2025/2026", rank=2)
    seed(first, second)

    async def action(console):
        async with pending(ADMIN_ID, form_key("executive-edit", first.id)):
            updated = await console.update_executive(second.id, ExecutiveUpdate(rank=5))
            with pytest.raises(SubmissionInProgressError):
                await console.update_executive(first.id, ExecutiveUpdate(rank=5))
        return updated

    updated = run_console(blob_store, action)
    assert updated.rank == 5
    ranks = {e.name: e.rank for e in fetch_all(Executive)}
    assert ranks == {"Jane": 1, "John": 5}


def test_sign_out_revokes_mounted_console(blob_store):
    context = SessionContext(Session(user_id=ADMIN_ID))

    async def _run():
        async with TestingSession() as db:
            console = AdminConsole(db, blob_store, context).mount()
            assert context.listener_count == 1
            context.sign_out()
            with pytest.raises(AdminAccessError):
                await console.add_cultural_image(CulturalImageDraft(image_url=GALLERY_URL, caption="Dancers"))
            console.unmount()
            assert context.listener_count == 0
    asyncio.run(_run())
    assert fetch_all(CulturalImage) == []
