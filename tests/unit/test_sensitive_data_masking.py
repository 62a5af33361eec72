import pytest

from modules.core.structured_logging import MASK, build_logging_config, mask_sensitive_data

pytestmark = pytest.mark.unit


def _masked(**values):
    return mask_sensitive_data(None, None, {"event": "test", **values})


class TestSensitiveDataMasking:
    @pytest.mark.parametrize(
        "secret",
        ["123.456.789-00", "12345678900", "12.345.678/0001-90", "4111 1111 1111 1111"],
    )
    def test_documents_and_cards(self, secret):
        result = _masked(value=f"cliente {secret}")
        assert secret not in result["value"]
        assert MASK in result["value"]

    @pytest.mark.parametrize(
        "text, secret",
        [
            ("password='s3cret123'", "s3cret123"),
            ("access_token=$aact_abc123", "$aact_abc123"),
            ("cvv: 123", "123"),
        ],
    )
    def test_credentials(self, text, secret):
        assert secret not in _masked(data=text)["data"]

    def test_nested_payloads(self):
        result = _masked(
            payload={"customer": {"cpfCnpj": "529.982.247-25"}, "notes": ["token=xyz"]}
        )

        assert result["payload"]["customer"]["cpfCnpj"] == MASK
        assert "xyz" not in result["payload"]["notes"][0]

    def test_non_sensitive_data_unchanged(self):
        result = _masked(order_number="42", total=215)

        assert result["order_number"] == "42"
        assert result["total"] == 215
        assert result["event"] == "test"


class TestLoggingConfig:
    def test_level_is_applied_to_root_and_django(self):
        config = build_logging_config("WARNING")

        assert config["root"]["level"] == "WARNING"
        assert config["loggers"]["django"]["level"] == "WARNING"
        assert config["handlers"]["console"]["formatter"] == "json"
