import json
import logging
import pytest

from bomcheck.config import ValidatorConfig
from bomcheck.errors import DocumentError, IntegrationError, UnsupportedSpecVersion
from bomcheck.parser import BomParser

VALID = {
    "bomFormat": "CycloneDX",
    "specVersion": "1.5",
    "serialNumber": "urn:uuid:3e671687-395b-41f5-a30f-a58921a69b79",
    "version": "1",
    "metadata": {"timestamp": "2023-06-01T12:00:00Z"},
    "components": [{"name": "requests", "type": "library", "bom-ref": "pkg:pypi/requests@2.31.0"}],
}


class TestSources:
    def test_from_string(self):
        parser = BomParser(json_string=json.dumps(VALID))
        assert parser.is_valid()
        assert parser.errors() == []
        assert parser.spec_version == "1.5"
        assert parser.sbom_data == VALID
        assert parser.filename is None

    def test_from_file(self, tmp_path):
        path = tmp_path / "bom.json"
        path.write_text(json.dumps(VALID), encoding="utf-8")
        parser = BomParser(json_path=path)
        assert parser.is_valid()
        assert parser.filename == path
        assert json.loads(parser.json) == VALID

    def test_from_data(self):
        parser = BomParser(data={"bomFormat": "AnotherFormat", "specVersion": "1.5"})
        assert not parser.is_valid()
        assert parser.errors() == ["Invalid bomFormat. Must be 'CycloneDX', not 'AnotherFormat'"]

    def test_exactly_one_source(self):
        with pytest.raises(IntegrationError):
            BomParser()
        with pytest.raises(IntegrationError):
            BomParser(json_string="{}", data={})

    def test_missing_file(self, tmp_path):
        with pytest.raises(DocumentError, match="Can't open"):
            BomParser(json_path=tmp_path / "nope.json")

    def test_invalid_json(self):
        with pytest.raises(DocumentError, match="Invalid JSON"):
            BomParser(json_string="{not json")

    @pytest.mark.parametrize("data", [{"bomFormat": "CycloneDX"}, ["specVersion"]])
    def test_spec_version_required(self, data):
        with pytest.raises(DocumentError, match="No specVersion"):
            BomParser(data=data)

    def test_unsupported_version(self):
        with pytest.raises(UnsupportedSpecVersion):
            BomParser(data={"bomFormat": "CycloneDX", "specVersion": "1.2"})


class TestResults:
    def test_warnings_are_logged(self, caplog):
        data = {"bomFormat": "CycloneDX", "specVersion": "1.5",
                "components": [{"name": "a", "type": "library", "modified": False}]}
        with caplog.at_level(logging.WARNING, logger="bomcheck"):
            parser = BomParser(data=data)
        assert parser.is_valid()
        assert parser.has_warnings()
        assert parser.warnings() == ["components.0.modified is deprecated and should not be used."]
        assert "components.0.modified is deprecated" in caplog.text

    def test_revalidate_after_mutation(self):
        parser = BomParser(data=json.loads(json.dumps(VALID)))
        assert parser.is_valid()
        parser.sbom_data["components"].append({"name": "dup", "type": "library",
                                               "bom-ref": "pkg:pypi/requests@2.31.0"})
        report = parser.validate()
        assert not report.valid
        assert parser.errors() == ["components.1.bom-ref: Duplicate bom-ref 'pkg:pypi/requests@2.31.0'"]

    def test_config_is_applied(self):
        nested = {"name": "a", "type": "library", "components": [{"name": "b", "type": "library"}]}
        data = {"bomFormat": "CycloneDX", "specVersion": "1.5", "components": [nested]}
        assert BomParser(data=data).is_valid()
        parser = BomParser(data=data, config=ValidatorConfig(max_depth=2))
        assert parser.errors() == ["Invalid components.0.components. Nesting exceeds the maximum depth of 2"]


DEEP = 100_000

def deep_data(depth):
    node = {"name": "leaf", "type": "library"}
    for _ in range(depth):
        node = {"name": "c", "type": "library", "components": [node]}
    return {"bomFormat": "CycloneDX", "specVersion": "1.5", "components": [node]}

def deep_json(depth):
    """Built by hand; json.dumps would need the nesting this is meant to exceed"""
    opener = '{"name": "c", "type": "library", "components": ['
    return ('{"bomFormat": "CycloneDX", "specVersion": "1.5", "components": ['
            + opener * depth + "]}" * depth + "]}")


class TestDeepDocuments:
    def test_deep_data_stops_at_max_depth(self):
        parser = BomParser(data=deep_data(DEEP))
        assert not parser.is_valid()
        assert len(parser.errors()) == 1
        assert parser.errors()[0].endswith("Nesting exceeds the maximum depth of 128")

    def test_deep_data_json_is_a_document_error(self):
        parser = BomParser(data=deep_data(DEEP))
        with pytest.raises(DocumentError, match="Can't serialize"):
            parser.json

    def test_deep_json_string_is_a_document_error(self):
        with pytest.raises(DocumentError, match="too deep"):
            BomParser(json_string=deep_json(DEEP))

    def test_shallow_data_json_is_serialized_on_demand(self):
        parser = BomParser(data=VALID)
        assert json.loads(parser.json) == VALID
        assert parser.json is parser.json
