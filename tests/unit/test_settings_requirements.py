import pytest

from cafeteria_client.config.settings import require_credentials


@pytest.mark.unit
def test_require_credentials_raises_when_missing():
    with pytest.raises(RuntimeError, match="GOURMET_USERNAME, GOURMET_PASSWORD"):
        require_credentials("gourmet", None, None)


@pytest.mark.unit
def test_require_credentials_names_only_the_missing_variable():
    with pytest.raises(RuntimeError) as exc:
        require_credentials("ventopay", "user", "")
    assert "VENTOPAY_PASSWORD" in str(exc.value)
    assert "VENTOPAY_USERNAME" not in str(exc.value)


@pytest.mark.unit
def test_require_credentials_returns_explicit_values():
    assert require_credentials("Gourmet", "user", "secret") == ("user", "secret")


@pytest.mark.unit
def test_require_credentials_rejects_unknown_site():
    with pytest.raises(ValueError):
        require_credentials("mensa", "user", "secret")
