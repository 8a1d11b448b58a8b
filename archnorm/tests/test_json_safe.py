from datetime import date
from pathlib import PurePosixPath

from archnorm.core.multilingual import MultilingualText
from archnorm.core.normalization import normalize_item
from archnorm.core.vocabulary import ItemCategory
from archnorm.utils.json_safe import to_jsonable


def test_scalars_and_containers() -> None:
    assert to_jsonable(None) is None
    assert to_jsonable(ItemCategory.SPATIAL_UNIT) == "spatialUnit"
    assert to_jsonable(date(2020, 1, 2)) == "2020-01-02"
    assert to_jsonable((1, "a", frozenset({True}))) == [1, "a", [True]]
    assert to_jsonable({1: ("x",)}) == {"1": ["x"]}
    assert to_jsonable(PurePosixPath("a/b")) == "a/b"


def test_multilingual_text_is_a_language_mapping() -> None:
    text = MultilingualText.from_mapping({"eng": "Hello", "fra": "Bonjour"}, ["eng", "fra"])
    assert to_jsonable(text) == {"eng": "Hello", "fra": "Bonjour"}


def test_item_rendering() -> None:
    item = normalize_item(
        {
            "resource": {
                "uuid": "r1",
                "publicationDateTime": "2023-01-01T00:00:00Z",
                "identification": {"label": "Tablet"},
            }
        }
    )
    out = to_jsonable(item)
    assert out["uuid"] == "r1"
    assert out["category"] == "resource"
    assert out["publication_date_time"] == "2023-01-01T00:00:00+00:00"
    assert out["identification"]["label"] == {"eng": "Tablet"}
    assert out["description"] is None
    assert out["properties"] == []
