import json

import pytest

from healthdash.ingestion.lab_structure import DEFAULT_LAB_STRUCTURE, load_lab_structure
from healthdash.ingestion.parsers.utils import sort_keys_longest_first


def test_default_structure_loads_read_only(monkeypatch):
    monkeypatch.delenv("LAB_STRUCTURE_PATH", raising=False)
    known = load_lab_structure()
    assert known["Hemoglobin"] == "Hematology"
    assert known["Hemoglobin A1c"] == "Diabetes"
    with pytest.raises(TypeError):
        known["Hemoglobin"] = "Other"


def test_default_structure_prefers_specific_names():
    keys = sort_keys_longest_first(load_lab_structure(str(DEFAULT_LAB_STRUCTURE)))
    assert keys.index("Hemoglobin A1c") < keys.index("Hemoglobin")
    assert keys.index("Mean Corpuscular Hemoglobin Concentration") < keys.index("Mean Corpuscular Hemoglobin")


def test_custom_path_and_env_override(tmp_path, monkeypatch):
    fp = tmp_path / "labs.json"
    fp.write_text(json.dumps({"Zinc": "Minerals"}))
    assert dict(load_lab_structure(str(fp))) == {"Zinc": "Minerals"}

    monkeypatch.setenv("LAB_STRUCTURE_PATH", str(fp))
    assert dict(load_lab_structure()) == {"Zinc": "Minerals"}


@pytest.mark.parametrize("payload", [["Hemoglobin"], {"Hemoglobin": 1}, {" ": "Hematology"}])
def test_invalid_structure_raises(tmp_path, payload):
    fp = tmp_path / "bad.json"
    fp.write_text(json.dumps(payload))
    with pytest.raises(ValueError):
        load_lab_structure(str(fp))


def main(argv=None):
    import sys
    import pytest as _pytest
    from pathlib import Path as _Path
    test_path = str(_Path(__file__).resolve())
    rc = _pytest.main([test_path] if argv is None else argv + [test_path])
    sys.exit(rc)


if __name__ == "__main__":
    main()
