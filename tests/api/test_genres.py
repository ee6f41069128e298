"""
Tests for the genre endpoints.
"""

from bson import ObjectId


class TestGenres:
    """Test cases for /genres."""

    def test_create_and_list(self, client, create_genre):
        create_genre("Horror")
        create_genre("Fantasy")

        genres = client.get("/genres").json()["genres"]

        assert [g["name"] for g in genres] == ["Fantasy", "Horror"]

    def test_duplicate_name(self, client, create_genre):
        create_genre("Fantasy")
        response = client.post("/genres", json={"name": "Fantasy"})
        assert response.status_code == 400
        assert response.json() == {"code": 400, "message": "Genre already exists"}

    def test_names_are_case_sensitive(self, client, create_genre):
        create_genre("Fantasy")
        assert client.post("/genres", json={"name": "fantasy"}).status_code == 201

    def test_name_too_short(self, client):
        assert client.post("/genres", json={"name": "SF"}).status_code == 400

    def test_create_many(self, client):
        response = client.post("/genres/multiple", json={"names": ["Fantasy", "Horror"]})
        assert response.status_code == 201
        assert [g["name"] for g in response.json()["genres"]] == ["Fantasy", "Horror"]

    def test_create_many_with_existing(self, client, create_genre):
        create_genre("Horror")
        response = client.post("/genres/multiple", json={"names": ["Fantasy", "Horror"]})
        assert response.status_code == 400
        assert [g["name"] for g in client.get("/genres").json()["genres"]] == ["Horror"]

    def test_prefix_filter(self, client, create_genre):
        create_genre("Science Fiction")
        create_genre("Satire")
        response = client.request("GET", "/genres", json={"name": "Sci"})
        assert [g["name"] for g in response.json()["genres"]] == ["Science Fiction"]

    def test_detail_with_book_list(self, client, create_genre, create_author, create_book, author_payload):
        genre = create_genre("Science Fiction")
        author = create_author(**author_payload)
        create_book(title="Foundation", authorId=author["_id"], genreId=genre["_id"])

        response = client.request("GET", f"/genres/{genre['_id']}", json={"showBookList": True})

        data = response.json()
        assert data["genre"]["name"] == "Science Fiction"
        assert [b["title"] for b in data["listOfBooks"]] == ["Foundation"]
        assert "genre" not in data["listOfBooks"][0]

    def test_detail_without_book_list(self, client, create_genre):
        genre = create_genre("Fantasy")
        assert "listOfBooks" not in client.get(f"/genres/{genre['_id']}").json()

    def test_update(self, client, create_genre):
        genre = create_genre("Fantasy")
        response = client.patch(f"/genres/{genre['_id']}", json={"name": "High Fantasy"})
        assert response.json()["genre"]["name"] == "High Fantasy"

    def test_update_to_existing_name(self, client, create_genre):
        create_genre("Fantasy")
        horror = create_genre("Horror")
        assert client.patch(f"/genres/{horror['_id']}", json={"name": "Fantasy"}).status_code == 400

    def test_update_many(self, client, create_genre):
        fantasy = create_genre("Fantasy")
        horror = create_genre("Horror")
        body = {"genres": [{"id": fantasy["_id"], "name": "Dark Fantasy"}, {"id": horror["_id"], "name": "Cosmic Horror"}]}

        response = client.patch("/genres/multiple", json=body)

        assert response.json()["updateCount"] == 2
        assert [g["name"] for g in response.json()["genres"]] == ["Dark Fantasy", "Cosmic Horror"]

    def test_delete_many_missing(self, client, create_genre):
        genre = create_genre("Fantasy")
        missing = str(ObjectId())
        response = client.request("DELETE", "/genres/multiple", json={"ids": [genre["_id"], missing]})
        assert response.status_code == 404
        assert response.json()["message"] == f"Cannot find genre(s) with id(s) {missing}"

    def test_delete(self, client, create_genre):
        genre = create_genre("Fantasy")
        response = client.delete(f"/genres/{genre['_id']}")
        assert response.json() == {"message": "Deleted genre", "genre": genre}
