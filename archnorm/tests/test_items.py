from archnorm.core.content.markup import item_url
from archnorm.core.model import Concept, MapData, Person, Resource, SpatialUnit
from archnorm.core.normalization import normalize_item
from archnorm.core.normalization.items import (
    parse_bibliography,
    parse_notes,
    parse_observation,
    parse_person,
    text_value,
)
from archnorm.core.options import NormalizationOptions


def test_resource_end_to_end() -> None:
    item = normalize_item(
        {
            "resource": {
                "uuid": "r1",
                "type": "image",
                "n": "3",
                "publicationDateTime": "2023-01-01T00:00:00Z",
                "identification": {"label": {"content": [{"lang": "eng", "string": "Tablet"}]}},
                "description": "Hello",
                "properties": {"property": {"label": "Material", "value": "Clay"}},
                "resource": {"uuid": "r2", "identification": {"label": "Detail"}},
            }
        }
    )
    assert isinstance(item, Resource)
    assert item.uuid == "r1"
    assert item.number == 3
    assert item.identification.label.get_text() == "Tablet"
    assert item.description.get_text() == "Hello"
    assert item.properties[0].values[0].content == "Clay"
    assert [r.uuid for r in item.resources] == ["r2"]
    assert item.resources[0].identification.label.get_text() == "Detail"


def test_resource_document_and_image_map() -> None:
    item = normalize_item(
        {
            "resource": {
                "uuid": "r1",
                "identification": {"label": "Plan"},
                "document": {"content": [{"lang": "eng", "string": [{"text": "Body", "rend": "bold"}]}]},
                "imagemap": {"area": {"uuid": "a1", "shape": "rect", "coords": "0,0,1,1"}},
            }
        }
    )
    assert item.document.get_text() == "**Body**"
    assert item.image_map.areas[0].uuid == "a1"


def test_notes_shapes() -> None:
    notes = parse_notes(
        {
            "note": [
                "Plain note",
                "",
                {
                    "noteNo": "2",
                    "content": [
                        {"lang": "fra", "title": "Titre", "string": "Note fr"},
                        {"lang": "eng", "title": "Title", "string": "Note en"},
                    ],
                    "authors": {"author": {"identification": {"label": "Ann"}}},
                },
            ]
        }
    )
    assert len(notes) == 2
    assert (notes[0].number, notes[0].content) == (-1, "Plain note")
    assert notes[1].number == 2
    assert notes[1].content == "Note en"
    assert notes[1].title == "Title"
    assert notes[1].authors[0].identification.label.get_text() == "Ann"


def test_note_falls_back_to_first_branch() -> None:
    notes = parse_notes({"note": {"content": {"lang": "fra", "string": "Seulement"}}})
    assert notes[0].content == "Seulement"


def test_observation() -> None:
    obs = parse_observation(
        {
            "observationNo": "1",
            "date": "2019-07-01",
            "observers": "Ann; Bob",
            "notes": {"note": "seen"},
            "properties": {"property": {"label": "Colour", "value": "Red"}},
        }
    )
    assert obs.number == 1
    assert obs.observers == ("Ann", "Bob")
    assert obs.notes[0].content == "seen"
    assert obs.properties[0].label.name == "Colour"


def test_observers_as_persons() -> None:
    obs = parse_observation({"observers": {"observer": [{"uuid": "p1", "identification": {"label": "Ann"}}]}})
    (observer,) = obs.observers
    assert isinstance(observer, Person)
    assert observer.uuid == "p1"


def test_spatial_unit_with_observations_and_children() -> None:
    item = normalize_item(
        {
            "spatialUnit": {
                "uuid": "s1",
                "identification": {"label": "Site"},
                "observations": {"observation": [{"observationNo": "1"}, {"observationNo": "2"}]},
                "spatialUnit": [{"uuid": "s2", "identification": {"label": "Trench"}}],
            }
        }
    )
    assert isinstance(item, SpatialUnit)
    assert [o.number for o in item.observations] == [1, 2]
    assert item.spatial_units[0].uuid == "s2"
    assert item.spatial_units[0].map_data is None


def test_spatial_unit_map_data() -> None:
    item = normalize_item(
        {
            "spatialUnit": {
                "uuid": "s1",
                "identification": {"label": "Site"},
                "mapData": {"geoJSON": {"multiPolygon": " MULTIPOLYGON(((0 0,1 0,1 1,0 0))) ", "EPSG": "4326"}},
            }
        }
    )
    assert item.map_data == MapData(multi_polygon="MULTIPOLYGON(((0 0,1 0,1 1,0 0)))", epsg=4326)


def test_concept_with_interpretations() -> None:
    item = normalize_item(
        {
            "concept": {
                "uuid": "c1",
                "identification": {"label": "Bowl"},
                "interpretations": {
                    "interpretation": {
                        "interpretationNo": "1",
                        "properties": {"property": {"label": "Use", "value": "Serving"}},
                    }
                },
            }
        }
    )
    assert isinstance(item, Concept)
    assert item.interpretations[0].number == 1
    assert item.interpretations[0].properties[0].values[0].content == "Serving"


def test_bibliography() -> None:
    bib = parse_bibliography(
        {
            "uuid": "b1",
            "identification": {"label": "Smith 2000"},
            "citationFormatSpan": {"span": {"content": [{"lang": "eng", "string": "Smith 2000"}]}},
            "publicationInfo": {
                "publishers": {"publisher": {"identification": {"label": "Press"}}},
                "startDate": {"year": "2000", "month": "5"},
            },
            "entryInfo": {"startIssue": "3", "startVolume": "12"},
            "sourceDocument": {"uuid": "d1"},
            "authors": {"person": [{"identification": {"label": "Smith"}}]},
        }
    )
    assert bib.citation.short == "Smith 2000"
    assert bib.publication_info.publishers[0].identification.label.get_text() == "Press"
    assert bib.publication_info.start_date.isoformat() == "2000-05-01"
    assert bib.entry_info.start_volume == "12"
    assert bib.source.document_url == item_url("d1")
    assert bib.authors[0].identification.label.get_text() == "Smith"


def test_person_from_name_only() -> None:
    person = parse_person("Jane Doe")
    assert person.uuid == ""
    assert person.identification.label.get_text() == "Jane Doe"


def test_person_fields() -> None:
    person = parse_person(
        {
            "uuid": "p1",
            "type": "person",
            "identification": {"label": "Jane Doe"},
            "address": {"country": "US", "city": "Chicago"},
            "content": "Archaeologist",
        }
    )
    assert person.address.city == "Chicago"
    assert person.content == "Archaeologist"


def test_text_value_shapes() -> None:
    opts = NormalizationOptions()
    assert text_value(None, opts) is None
    assert text_value("plain", opts) == "plain"
    assert text_value([{"lang": "eng", "string": "listed"}], opts) == "listed"
    assert text_value({"content": [{"lang": "eng", "string": "tree"}]}, opts) == "tree"
