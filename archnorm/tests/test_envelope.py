import pytest

from archnorm.core.errors import ShapeViolation
from archnorm.core.normalization import normalize_record, parse_languages, parse_metadata
from archnorm.core.options import NormalizationOptions
from archnorm.core.vocabulary import ItemCategory


def _record() -> dict:
    return {
        "ochre": {
            "uuid": "r1",
            "uuidBelongsTo": "p1",
            "belongsTo": "PRJ",
            "publicationDateTime": "2023-01-01T00:00:00Z",
            "persistentUrl": "https://pid.example.org/r1",
            "metadata": {
                "language": [{"text": "eng"}, {"text": "fra", "default": "true"}],
                "project": {"identification": {"label": "Project", "website": "https://project.example.org"}},
                "item": {"label": "Tablet", "abbreviation": "T", "category": "resource", "type": "image"},
                "dataset": "Dataset X",
                "publisher": {"content": [{"lang": "eng", "string": "University Press"}]},
                "identifier": "id-1",
                "description": "About this dataset",
            },
            "resource": {"uuid": "r1", "identification": {"label": "Tablet"}},
        }
    }


def test_record_envelope() -> None:
    record = normalize_record(_record())
    assert record.uuid == "r1"
    assert record.category is ItemCategory.RESOURCE
    assert record.belongs_to.uuid == "p1"
    assert record.belongs_to.abbreviation == "PRJ"
    assert record.publication_date_time.year == 2023
    assert record.persistent_url == "https://pid.example.org/r1"


def test_record_languages_come_from_metadata_when_undeclared() -> None:
    assert normalize_record(_record()).languages == ("eng", "fra")


def test_declared_record_languages_win() -> None:
    raw = _record()
    raw["ochre"]["languages"] = "eng;deu"
    assert normalize_record(raw).languages == ("eng", "deu")


def test_inner_mapping_accepted_without_root_wrapper() -> None:
    record = normalize_record(_record()["ochre"])
    assert record.item.uuid == "r1"


def test_metadata_fields() -> None:
    metadata = normalize_record(_record()).metadata
    assert metadata.languages == ("eng", "fra")
    assert metadata.default_language == "fra"
    assert metadata.project.identification.label.get_text() == "Project"
    assert metadata.project.website == "https://project.example.org"
    assert metadata.item.identification.label.get_text() == "Tablet"
    assert metadata.item.identification.abbreviation.get_text() == "T"
    assert metadata.item.category == "resource"
    assert metadata.dataset == "Dataset X"
    assert metadata.publisher == "University Press"
    assert metadata.description == "About this dataset"


def test_parse_languages() -> None:
    assert parse_languages(None) == (("eng",), "eng")
    assert parse_languages("deu") == (("deu",), "deu")
    assert parse_languages([{"text": "eng"}, {"text": "fra"}]) == (("eng", "fra"), "eng")


def test_absent_metadata() -> None:
    assert parse_metadata(None) is None


def test_record_without_item_fails() -> None:
    with pytest.raises(ShapeViolation, match="no item category"):
        normalize_record({"ochre": {"uuid": "x"}})


def test_non_mapping_record_fails() -> None:
    with pytest.raises(ShapeViolation):
        normalize_record("resource")


def test_labels_fall_back_when_requested_language_is_missing() -> None:
    raw = _record()
    raw["ochre"]["resource"]["properties"] = {
        "property": {"label": {"content": [{"lang": "eng", "string": "Material"}]}, "value": "Clay"}
    }
    record = normalize_record(raw, options=NormalizationOptions(languages=("fra",)))
    assert record.item.properties[0].label.name == "Material"
    assert record.metadata.publisher == "University Press"
