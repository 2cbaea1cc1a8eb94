"""Tests for crawler and integration endpoints."""

from fastapi import status

from unfiltered_voice.services.site_settings import upsert_setting

CACHE = "public, max-age=3600, s-maxage=3600"


def test_health(client) -> None:
    r = client.get("/health")
    assert r.status_code == status.HTTP_200_OK
    body = r.json()
    assert body["status"] == "ok"
    assert body["timestamp"]
    assert body["service"]


def test_root(client) -> None:
    r = client.get("/")
    assert r.json()["docs"] == "/docs"
    assert r.json()["redoc"] == "/redoc"


def test_rss_feed(client, published_post, make_post) -> None:
    make_post(slug="hidden-draft")
    r = client.get("/rss.xml")
    assert r.status_code == status.HTTP_200_OK
    assert r.headers["content-type"].startswith("application/rss+xml")
    assert r.headers["cache-control"] == CACHE
    assert f"/{published_post.category}/{published_post.slug}" in r.text
    assert "hidden-draft" not in r.text


def test_sitemap(client, published_post) -> None:
    r = client.get("/sitemap.xml")
    assert r.status_code == status.HTTP_200_OK
    assert r.headers["content-type"].startswith("application/xml")
    assert r.headers["cache-control"] == CACHE
    assert f"/{published_post.category}/{published_post.slug}</loc>" in r.text


def test_public_settings(client, db_session) -> None:
    upsert_setting(db_session, "site_name", "Quiet Hours")
    db_session.commit()

    r = client.get("/api/settings")
    assert r.status_code == status.HTTP_200_OK
    assert r.headers["access-control-allow-origin"] == "*"
    assert r.json() == {"success": True, "data": [{"key": "site_name", "value": "Quiet Hours"}]}


def test_public_settings_preflight_and_methods(client) -> None:
    assert client.options("/api/settings").status_code == status.HTTP_200_OK

    r = client.post("/api/settings", json={})
    assert r.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
    assert r.json() == {"error": "Method not allowed"}
