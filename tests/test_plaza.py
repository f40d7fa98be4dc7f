# tests/test_plaza.py
import uuid

import pytest

import notedraw_app.blueprints.plaza as plaza_mod
from notedraw_app.blueprints.plaza import generate_slug
from notedraw_app.extensions import db
from notedraw_app.models import NoteProject, NoteCard


@pytest.fixture
def completed_project(app, user_normal):
    def _make(public=False, style="sketch", tags=None, featured=False):
        with app.app_context():
            p = NoteProject(user_id=user_normal.id, input_text="some source text", title="Sleep",
                            visual_style=style, status="completed", is_public=public, is_featured=featured,
                            tags=tags, slug=f"sleep-{uuid.uuid4().hex[:10]}" if public else None)
            db.session.add(p)
            db.session.flush()
            db.session.add(NoteCard(project_id=p.id, order=0, status="completed", image_url="https://img/1.png"))
            db.session.add(NoteCard(project_id=p.id, order=1, status="failed"))
            db.session.commit()
            return p.id, p.slug
    return _make


def test_generate_slug_shape():
    slug = generate_slug("Deep Sleep & Memory!")
    base, suffix = slug.rsplit("-", 1)
    assert base == "deep-sleep-memory"
    assert len(suffix) == 8
    assert generate_slug("") != generate_slug("")
    assert len(generate_slug("!!!")) == 8


def test_share_publishes_completed_project(app, logged_client_user, completed_project):
    pid, _ = completed_project()
    r = logged_client_user.post("/plaza/share", json={"projectId": pid, "title": "My Sleep Notes",
                                                      "description": "notes", "tags": "sleep, health ,"})
    assert r.status_code == 200
    slug = r.get_json()["slug"]
    assert slug.startswith("my-sleep-notes-")
    with app.app_context():
        p = db.session.get(NoteProject, pid)
        assert p.is_public and p.published_at is not None
        assert p.tag_list() == ["sleep", "health"]

    again = logged_client_user.post("/plaza/share", json={"projectId": pid, "title": "Again"})
    assert again.status_code == 400


def test_share_validation(app, logged_client_user, user_normal, completed_project):
    pid, _ = completed_project()
    assert logged_client_user.post("/plaza/share", json={"projectId": pid, "title": ""}).status_code == 400
    assert logged_client_user.post("/plaza/share", json={"projectId": pid, "title": "t" * 101}).status_code == 400
    assert logged_client_user.post("/plaza/share", json={"projectId": 999999, "title": "x"}).status_code == 404

    with app.app_context():
        draft = NoteProject(user_id=user_normal.id, input_text="x", status="draft")
        db.session.add(draft)
        db.session.commit()
        draft_id = draft.id
    r = logged_client_user.post("/plaza/share", json={"projectId": draft_id, "title": "x"})
    assert r.status_code == 400
    assert "completed" in r.get_json()["error"]


def test_note_detail_json_counts_views_and_hides_source(client, completed_project):
    pid, slug = completed_project(public=True)
    r = client.get(f"/plaza/notes/{slug}?format=json")
    assert r.status_code == 200
    note = r.get_json()["note"]
    assert note["views"] == 1
    assert "inputText" not in note
    # só cartas concluídas aparecem
    assert [c["status"] for c in note["cards"]] == ["completed"]
    assert note["author"] == "User"

    assert client.get(f"/plaza/notes/{slug}?format=json").get_json()["note"]["views"] == 2


def test_private_note_is_404(client, completed_project):
    assert client.get("/plaza/notes/does-not-exist?format=json").status_code == 404


def test_list_filters_by_style(client, completed_project):
    pid_cute, _ = completed_project(public=True, style="cute")
    pid_private, _ = completed_project(public=False, style="cute")
    r = client.get("/plaza/?format=json&style=cute&limit=50")
    data = r.get_json()
    ids = [i["id"] for i in data["items"]]
    assert pid_cute in ids and pid_private not in ids
    assert all(i["visualStyle"] == "cute" for i in data["items"])
    assert data["pagination"]["limit"] == 50


def test_list_page_renders_template(client, monkeypatch):
    captured = {}

    def _fake_render(name, **ctx):
        captured["name"] = name
        captured["ctx"] = ctx
        return "OK"
    monkeypatch.setattr(plaza_mod, "render_template", _fake_render)
    r = client.get("/plaza/")
    assert r.status_code == 200
    assert captured["name"] == "plaza.html"
    assert "items" in captured["ctx"] and "pagination" in captured["ctx"]


def test_like_and_unshare(app, logged_client_user, completed_project):
    pid, _ = completed_project(public=True, featured=True)
    r = logged_client_user.post(f"/plaza/{pid}/like")
    assert r.get_json()["likes"] == 1

    r = logged_client_user.post(f"/plaza/{pid}/unshare")
    assert r.status_code == 200
    with app.app_context():
        p = db.session.get(NoteProject, pid)
        assert not p.is_public and not p.is_featured
    assert logged_client_user.post(f"/plaza/{pid}/like").status_code == 404


def test_popular_tags(client, completed_project):
    tag = f"t{uuid.uuid4().hex[:6]}"
    completed_project(public=True, tags=f"{tag},other")
    completed_project(public=True, tags=tag)
    tags = {t["tag"]: t["count"] for t in client.get("/plaza/tags").get_json()["tags"]}
    assert tags.get(tag) == 2


def test_plaza_disabled_by_feature_flag(client, set_config):
    set_config("features", "plaza_enabled", "false")
    assert client.get("/plaza/?format=json").status_code == 404
