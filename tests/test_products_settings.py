import json

import pytest

from tdsgrade.io.products import ProductConfig, cacao_mass_config, default_product_configs, serialize_products
from tdsgrade.io.settings import TDSSettings
from tdsgrade.tasting.attributes import AttributeId
from tdsgrade.util.errors import ConfigError

A = AttributeId


def _make_definition(**overrides):
    payload = {
        "id": "dark_bar",
        "name": "Dark Bar",
        "attributes": ["cacao", "acidity", "roast", "caramel", "defects"],
        "core": ["cacao", "acidity", "roast"],
        "defect": ["defects"],
        "parent_children": {"roast": ["caramel"]},
    }
    payload.update(overrides)
    return payload


def test_builtin_registry_has_cacao_mass() -> None:
    products = default_product_configs()
    cacao = products["cacao_mass"]
    assert cacao.core == (A.CACAO, A.ACIDITY, A.BITTERNESS, A.ASTRINGENCY, A.ROAST)
    assert len(cacao.attributes) == 15
    assert cacao.category_of(A.DEFECTS) == "defect"
    assert cacao.category_of(A.NUTTY) == "complementary"
    assert cacao.children_of(A.CACAO) == (A.BROWNED_FRUIT, A.NUTTY)
    assert default_product_configs()["cacao_mass"] is not cacao


def test_serialized_products_are_json() -> None:
    payload = serialize_products()
    text = json.dumps(payload)
    assert [p["id"] for p in payload["products"]] == ["cacao_mass"]
    assert '"fresh_fruit"' in text


def test_product_round_trips_through_dict() -> None:
    cacao = cacao_mass_config()
    assert ProductConfig.from_dict(json.loads(json.dumps(cacao.to_dict()))) == cacao


def test_definition_fills_complementary_and_defaults() -> None:
    product = ProductConfig.from_dict(_make_definition())
    assert product.complementary == (A.CARAMEL,)
    assert product.children_of(A.ROAST) == (A.CARAMEL,)
    assert product.zones.attack_fraction == 0.2
    assert product.kick_rules == ()


def test_unknown_attribute_is_rejected_at_load() -> None:
    with pytest.raises(ConfigError):
        ProductConfig.from_dict(_make_definition(core=["cacao", "umami"]))
    with pytest.raises(ConfigError):
        ProductConfig.from_dict(_make_definition(parent_children={"umami": ["cacao"]}))


def test_inconsistent_definitions_are_rejected() -> None:
    with pytest.raises(ConfigError):
        ProductConfig.from_dict(_make_definition(core=["cacao", "defects"]))
    with pytest.raises(ConfigError):
        ProductConfig.from_dict(_make_definition(core=["floral"]))
    with pytest.raises(ConfigError):
        ProductConfig.from_dict(_make_definition(id=""))
    with pytest.raises(ConfigError):
        ProductConfig.from_dict(_make_definition(zones={"attack_fraction": 1.5}))


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TDSGRADE_RESOLUTION", "0.5")
    monkeypatch.setenv("TDSGRADE_SIGMA_SINGLE", "-1")
    monkeypatch.setenv("TDSGRADE_SIGMA_MULTIPLE", "4")
    monkeypatch.setenv("TDSGRADE_ANALYSIS_WORKERS", "lots")
    monkeypatch.setenv("TDSGRADE_PRODUCT", "Dark_Bar")
    settings = TDSSettings.from_env()
    assert settings.resolution == 0.5
    assert settings.sigma_single == 2.0
    assert settings.sigma_multiple == 4.0
    assert settings.analysis_workers == 2
    assert settings.product == "dark_bar"


def test_settings_defaults_without_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "TDSGRADE_RESOLUTION",
        "TDSGRADE_SIGMA_SINGLE",
        "TDSGRADE_SIGMA_MULTIPLE",
        "TDSGRADE_SILENCE_CONSTANT",
        "TDSGRADE_SIGNIFICANCE_Z",
        "TDSGRADE_ANALYSIS_WORKERS",
        "TDSGRADE_PRODUCT",
    ):
        monkeypatch.delenv(name, raising=False)
    assert TDSSettings.from_env() == TDSSettings()
