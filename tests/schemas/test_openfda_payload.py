"""openFDA payload schema — validation boundary for upstream JSON.

Tests:
    - Unknown fields ignored, sections accept string or list
    - Scalar openfda names wrapped into lists; missing openfda block tolerated
    - Numeric effective_time coerced to string
    - total falls back to the result count when meta is absent
"""

import pytest
from pydantic import ValidationError

from rxguard.schemas.openfda import OpenFdaLabelRecord, OpenFdaSearchPayload


def test_record_tolerates_shapes():
    rec = OpenFdaLabelRecord.model_validate({
        "set_id": "abc",
        "effective_time": 20230405,
        "openfda": {"brand_name": "Advil", "generic_name": ["IBUPROFEN"]},
        "active_ingredient": "Ibuprofen 200 mg",
        "warnings": ["one", "two"],
        "spl_product_data_elements": ["ignored"],
    })
    assert rec.effective_time == "20230405"
    assert rec.openfda.brand_name == ["Advil"]
    assert rec.active_ingredients == ["Ibuprofen 200 mg"]
    assert rec.warnings == ["one", "two"]
    assert rec.stable_id == "abc"


def test_missing_openfda_block():
    rec = OpenFdaLabelRecord.model_validate({"id": "x", "openfda": None})
    assert rec.openfda.brand_name == []
    assert rec.active_ingredients == []
    assert rec.stable_id == "x"


def test_section_of_wrong_type_rejected():
    with pytest.raises(ValidationError):
        OpenFdaLabelRecord.model_validate({"warnings": {"nested": "dict"}})


def test_total_prefers_meta():
    payload = OpenFdaSearchPayload.model_validate({
        "meta": {"results": {"skip": 0, "limit": 1, "total": 42}},
        "results": [{"set_id": "a"}],
    })
    assert payload.total == 42
    assert OpenFdaSearchPayload.model_validate({"results": [{}, {}]}).total == 2
