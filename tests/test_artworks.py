"""Tests for the artwork catalogue and system endpoints."""

from datetime import timedelta

from artview import models

from .conftest import T0

NEW_ARTWORK = {
    "title": "The Great Wave",
    "artist": "Hokusai",
    "description": "Woodblock print",
    "year": "1831",
    "medium": "Woodblock",
    "dimensions": "25.7 cm × 37.9 cm",
    "imageUrl": "https://images.example.org/wave.png",
}


class TestPublicCatalogue:
    def test_list_newest_first(self, client, make_artwork):
        older = make_artwork(title="Older")
        newer = make_artwork(title="Newer")

        response = client.get("/api/artworks")

        assert response.status_code == 200
        assert [a["id"] for a in response.json()] == [newer.id, older.id]

    def test_get_artwork(self, client, make_artwork):
        artwork = make_artwork(title="Mona Lisa", artist="Leonardo")

        data = client.get(f"/api/artworks/{artwork.id}").json()

        assert data["title"] == "Mona Lisa"
        assert data["artist"] == "Leonardo"
        assert data["imageUrl"].startswith("https://")

    def test_unknown_artwork(self, client):
        response = client.get("/api/artworks/missing")

        assert response.status_code == 404
        assert response.json() == {"message": "Artwork not found"}


class TestAdminCatalogue:
    def test_create_requires_a_token(self, client):
        assert client.post("/api/admin/artworks", json=NEW_ARTWORK).status_code == 401

    def test_create_artwork(self, client, auth_headers):
        response = client.post("/api/admin/artworks", json=NEW_ARTWORK, headers=auth_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "The Great Wave"
        assert data["createdBy"] == "curator"
        assert len(data["id"]) == 36
        assert client.get(f"/api/artworks/{data['id']}").status_code == 200

    def test_create_rejects_missing_fields(self, client, auth_headers):
        payload = dict(NEW_ARTWORK)
        del payload["title"]

        assert client.post("/api/admin/artworks", json=payload, headers=auth_headers).status_code == 400

    def test_delete_cascades_to_engagements(self, client, db, auth_headers, make_artwork, add_engagement):
        doomed = make_artwork()
        kept = make_artwork()
        add_engagement(doomed.id, T0 - timedelta(hours=1), duration=5)
        add_engagement(doomed.id, T0 - timedelta(hours=2))
        add_engagement(kept.id, T0 - timedelta(hours=1), duration=5)

        response = client.delete(f"/api/admin/artworks/{doomed.id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"message": "Artwork deleted successfully"}
        db.expire_all()
        assert db.query(models.Artwork).filter_by(id=doomed.id).count() == 0
        assert db.query(models.Engagement).filter_by(artwork_id=doomed.id).count() == 0
        assert db.query(models.Engagement).filter_by(artwork_id=kept.id).count() == 1

    def test_delete_unknown_artwork(self, client, auth_headers):
        assert client.delete("/api/admin/artworks/missing", headers=auth_headers).status_code == 404


class TestQrCodeDownload:
    def test_redirects_to_stored_qr_code(self, client, auth_headers, make_artwork):
        artwork = make_artwork(qr_code_url="https://images.example.org/qr/wave.png")

        response = client.get(f"/api/admin/download-qr/{artwork.id}", headers=auth_headers,
                              follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "https://images.example.org/qr/wave.png"

    def test_requires_a_token(self, client, make_artwork):
        artwork = make_artwork(qr_code_url="https://images.example.org/qr/wave.png")

        assert client.get(f"/api/admin/download-qr/{artwork.id}", follow_redirects=False).status_code == 401

    def test_unknown_artwork(self, client, auth_headers):
        response = client.get("/api/admin/download-qr/missing", headers=auth_headers, follow_redirects=False)

        assert response.status_code == 404
        assert response.json() == {"message": "Artwork not found"}

    def test_artwork_without_qr_code(self, client, auth_headers, make_artwork):
        artwork = make_artwork()

        response = client.get(f"/api/admin/download-qr/{artwork.id}", headers=auth_headers,
                              follow_redirects=False)

        assert response.status_code == 404


class TestSystem:
    def test_health(self, client):
        data = client.get("/api/health").json()

        assert data["status"] == "OK"
        assert data["database"] == "Connected"

    def test_unknown_route(self, client):
        response = client.get("/api/nowhere")

        assert response.status_code == 404
        assert response.json() == {"message": "Endpoint not found"}
