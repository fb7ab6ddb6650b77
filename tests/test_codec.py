import importlib.resources
import json
import logging

import pytest
from mv64e_grz_dto import CodecSettings, Metadata, decode, encode, json_schema

from . import resources

resource_files = importlib.resources.files(resources)


@pytest.fixture
def trio_metadata() -> Metadata:
    return decode(resource_files.joinpath("example_metadata/trio_tumor.json").read_text(encoding="utf-8"))


def test_encode_omits_absent_optionals(trio_metadata: Metadata):
    encoded = encode(trio_metadata)
    document = json.loads(encoded)

    assert "null" not in encoded

    index_donor = document["donors"][0]
    assert "presentationDate" not in index_donor["mvConsent"]
    assert index_donor["researchConsents"][0] == {
        "presentationDate": "2025-01-10",
        "noScopeJustification": "patient refuses to sign consent",
    }

    tumor, normal = index_donor["labData"]
    assert "sequenceData" not in normal
    assert "tumorCellCount" not in normal
    assert tumor["sequenceData"]["files"][0] == {
        "filePath": "index/tumor.fastq.gz",
        "fileType": "fastq",
        "fileChecksum": "5fa2f1cf6e8d1e1bb4a1ac6eab1d6a8a0d4a2a3e1a8f5d7b6c4d2e9f0a1b2c3d",
        "fileSizeInBytes": 3214560.0,
        "readLength": 101,
    }


def test_encode_uses_wire_names_and_spellings(trio_metadata: Metadata):
    document = json.loads(encode(trio_metadata))

    assert set(document) == {"donors", "submission"}
    assert document["submission"]["tanG"] == "0123456789abcdef0123456789ABCDEF0123456789abcdef0123456789abcdef"
    assert document["submission"]["genomicStudySubtype"] == "tumor+germline"
    assert document["donors"][0]["mvConsent"]["scope"][1] == {
        "type": "deny",
        "date": "2025-01-10",
        "domain": "reIdentification",
    }

    lab_datum = document["donors"][0]["labData"][0]
    assert lab_datum["tissueOntology"] == {"name": "BRENDA tissue ontology", "version": "2021-10-08"}
    assert lab_datum["tumorCellCount"][0] == {"count": 60.0, "method": "pathology"}
    assert lab_datum["sampleConservation"] == "ffpe"
    assert lab_datum["sequenceData"]["referenceGenome"] == "GRCh37"
    assert lab_datum["sequenceData"]["percentBasesAboveQualityThreshold"] == {"minimumQuality": 30.0, "percent": 88.0}
    assert lab_datum["sequenceData"]["callerUsed"][1] == {"name": "manta", "version": "1.6.0"}
    assert document["donors"][0]["labData"][1]["enrichmentKitManufacturer"] == "NEB"


def test_encode_is_compact_by_default(trio_metadata: Metadata):
    assert "\n" not in encode(trio_metadata)


def test_encode_indent_from_environment(trio_metadata: Metadata, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("GRZ_DTO_INDENT", "2")
    settings = CodecSettings()

    encoded = encode(trio_metadata, settings=settings)

    assert settings.indent == 2
    assert encoded.startswith('{\n  "donors": [\n    {\n')
    assert decode(encoded) == trio_metadata


def test_default_settings_ignore_environment(trio_metadata: Metadata, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("GRZ_DTO_INDENT", "4")

    assert "\n" not in encode(trio_metadata)


def test_decode_accepts_bytes(trio_metadata: Metadata):
    assert decode(encode(trio_metadata).encode("utf-8")) == trio_metadata


def test_decode_is_logged(caplog: pytest.LogCaptureFixture, trio_metadata: Metadata):
    caplog.set_level(logging.DEBUG, logger="mv64e_grz_dto")

    decode(encode(trio_metadata))

    assert "Decoded metadata with 3 donor(s)." in caplog.text


def test_json_schema():
    schema = json_schema()

    assert set(schema["properties"]) == {"donors", "submission"}
    assert schema["additionalProperties"] is False

    definitions = schema["$defs"]
    assert "donorPseudonym" in definitions["Donor"]["properties"]
    assert definitions["Donor"]["additionalProperties"] is False
    assert set(definitions["Scope"]["properties"]) == {"type", "date", "domain"}
    assert definitions["ReferenceGenome"]["enum"] == ["GRCh37", "GRCh38"]
    assert definitions["EnrichmentKitManufacturer"]["enum"] == [
        "Illumina",
        "Agilent",
        "Twist",
        "NEB",
        "other",
        "unknown",
        "none",
    ]
    assert "readLength" not in definitions["File"]["required"]
    assert "fileChecksum" in definitions["File"]["required"]
