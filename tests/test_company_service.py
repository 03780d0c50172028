import pytest

from sstpro.services.company_service import _normalize_cnpj

from conftest import OTHER_COMPANY_ID


@pytest.fixture
def svc(services):
    return services["companies"]


@pytest.mark.parametrize("raw,expected", [
    ("12345678000190", "12.345.678/0001-90"),
    (" 12.345.678/0001-90 ", "12.345.678/0001-90"),
    ("123", "123"),
    (None, ""),
])
def test_normalize_cnpj(raw, expected):
    assert _normalize_cnpj(raw) == expected


def test_create_and_search(svc):
    cid = svc.create({"name": " Gama Construções ", "cnpj": "98765432000110"})
    company = svc.by_id(cid)
    assert company.name == "Gama Construções"
    assert company.cnpj == "98.765.432/0001-10"
    assert [c.name for c in svc.list_all("gama")] == ["Gama Construções"]


def test_list_is_sorted_by_name(svc):
    assert [c.name for c in svc.list_all()] == ["Beta Logística", "Metalúrgica Alfa"]


def test_create_requires_name(svc):
    with pytest.raises(ValueError):
        svc.create({"name": "  "})


def test_update(svc):
    assert svc.update(OTHER_COMPANY_ID, {"name": "Beta Log", "phone": "1133334444"}) is True
    company = svc.by_id(OTHER_COMPANY_ID)
    assert company.name == "Beta Log"
    assert company.phone == "1133334444"


def test_update_missing_company(svc):
    assert svc.update("nope", {"name": "X"}) is False
    assert svc.by_id("nope") is None
