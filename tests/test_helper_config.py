import pytest


def test_string_val_strips_and_defaults(helper_config, monkeypatch):
    monkeypatch.setenv("SIGN_SHARE_BASE_URL", "  http://front.example  ")
    assert helper_config.get_string_val("sign_share_base_url") == "http://front.example"
    assert helper_config.get_string_val("UNSET_KEY_FOR_TEST", default="fallback") == "fallback"


def test_missing_required_value_raises(helper_config, monkeypatch):
    monkeypatch.delenv("UNSET_KEY_FOR_TEST", raising=False)
    with pytest.raises(ValueError, match="UNSET_KEY_FOR_TEST"):
        helper_config.get_string_val("UNSET_KEY_FOR_TEST")


def test_number_and_bool_vals(helper_config, monkeypatch):
    monkeypatch.setenv("MAIL_SMTP_PORT", "465")
    monkeypatch.setenv("CONVERTER_TIMEOUT", "2.5")
    monkeypatch.setenv("MAIL_SMTP_STARTTLS", "No")
    assert helper_config.get_number_val("MAIL_SMTP_PORT") == 465
    assert helper_config.get_number_val("CONVERTER_TIMEOUT") == 2.5
    assert helper_config.get_bool_val("MAIL_SMTP_STARTTLS") is False

    monkeypatch.setenv("MAIL_SMTP_PORT", "abc")
    with pytest.raises(ValueError, match="not a valid number"):
        helper_config.get_number_val("MAIL_SMTP_PORT")


def test_list_val(helper_config, monkeypatch):
    monkeypatch.setenv("SIGN_SOURCE_EXTENSIONS", "[.doc, .docx ,.odt]")
    assert helper_config.get_list_val("SIGN_SOURCE_EXTENSIONS") == [".doc", ".docx", ".odt"]

    monkeypatch.setenv("SIGN_SOURCE_EXTENSIONS", ".doc,.docx")
    with pytest.raises(ValueError, match="format"):
        helper_config.get_list_val("SIGN_SOURCE_EXTENSIONS")

    monkeypatch.delenv("SIGN_SOURCE_EXTENSIONS")
    assert helper_config.get_list_val("SIGN_SOURCE_EXTENSIONS", default=[".docx"]) == [".docx"]


def test_root_dir(helper_config, tmp_path):
    assert helper_config.get_root_dir() == tmp_path.resolve()
