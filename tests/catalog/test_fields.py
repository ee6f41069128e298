"""
Tests for the field projection builder.
"""

from catalog.entities import AUTHOR, BOOK
from catalog.fields import build_projection, visible_relations


class TestBuildProjection:
    """Test cases for build_projection."""

    def test_no_lists_gives_empty_projection(self):
        """Without only/omit every field is left to the store default."""
        assert build_projection(AUTHOR.fields) == {}

    def test_only_id(self):
        assert build_projection(AUTHOR.fields, only=["_id"]) == {"_id": 1}

    def test_only_without_id_excludes_id(self):
        """An only list without _id forces _id out."""
        projection = build_projection(AUTHOR.fields, only=["firstName", "lastName"])
        assert projection == {"firstName": 1, "lastName": 1, "_id": 0}

    def test_omit_fields(self):
        projection = build_projection(AUTHOR.fields, omit=["_id", "__v"])
        assert projection == {"__v": 0, "_id": 0}

    def test_only_wins_over_omit(self):
        projection = build_projection(AUTHOR.fields, only=["firstName"], omit=["firstName", "lastName"])
        assert projection["firstName"] == 1
        assert projection["lastName"] == 0

    def test_unknown_fields_are_ignored(self):
        assert build_projection(BOOK.fields, only=["title", "pages"]) == {"title": 1, "_id": 0}


class TestVisibleRelations:
    """Test cases for visible_relations."""

    def test_all_visible_without_projection(self):
        assert visible_relations(("author", "genre")) == ["author", "genre"]

    def test_only_gates_relations(self):
        """Relations missing from only are never populated."""
        assert visible_relations(("author", "genre"), only=["title", "author"]) == ["author"]

    def test_omit_hides_relations(self):
        assert visible_relations(("author", "genre"), omit=["genre"]) == ["author"]
