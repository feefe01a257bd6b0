import pytest

from justgold.core.exceptions import ColorPanelError
from justgold.services.color_panel import ColorPanel, check_color_panel, resolve_color_panel

SWATCH_URL = "https://proj.supabase.co/storage/v1/object/public/assets/products/variants/a.png"


def test_invalid_hex_rejected():
    with pytest.raises(ColorPanelError, match="hex"):
        resolve_color_panel("hex", "#zzz", required=True)


def test_valid_hex_accepted():
    assert resolve_color_panel("hex", "#1a2b3c", required=True) == ColorPanel("hex", "#1a2b3c")


@pytest.mark.parametrize("value", ["#abc", "#ABCD", "#a1b2c3", "#a1b2c3d4"])
def test_hex_lengths(value):
    assert resolve_color_panel("hex", value).value == value


def test_gradient_accepted():
    panel = resolve_color_panel("gradient", "linear-gradient(to right, red, blue)", required=True)
    assert panel == ColorPanel("gradient", "linear-gradient(to right, red, blue)")


def test_malformed_gradient_rejected():
    with pytest.raises(ColorPanelError, match="gradient"):
        resolve_color_panel("gradient", "red to blue", required=True)


def test_uploaded_file_with_hex_type_rejected():
    with pytest.raises(ColorPanelError):
        resolve_color_panel("hex", None, uploaded_url=SWATCH_URL, required=True)


def test_uploaded_file_with_image_type_uses_upload_url():
    panel = resolve_color_panel("image", "ignored", uploaded_url=SWATCH_URL, required=True)
    assert panel == ColorPanel("image", SWATCH_URL)


def test_image_type_accepts_http_url_value():
    panel = resolve_color_panel("image", "https://cdn.example.com/s.png")
    assert panel.type == "image"


def test_image_type_rejects_non_url():
    with pytest.raises(ColorPanelError, match="image"):
        resolve_color_panel("image", "swatch.png", required=True)


def test_required_upload_without_type_rejected():
    with pytest.raises(ColorPanelError, match="type is required"):
        resolve_color_panel(None, None, uploaded_url=SWATCH_URL, required=True)


def test_required_defaults_type_to_hex():
    assert resolve_color_panel(None, "#fff", required=True) == ColorPanel("hex", "#fff")


def test_optional_and_empty_is_a_noop():
    assert resolve_color_panel(None, None) is None
    assert resolve_color_panel("", "  ") is None


def test_optional_value_without_type_rejected():
    with pytest.raises(ColorPanelError, match="type is required"):
        resolve_color_panel(None, "#fff")


def test_optional_type_without_value_rejected():
    with pytest.raises(ColorPanelError, match="value or image is required"):
        resolve_color_panel("hex", None)


def test_unknown_type_rejected():
    with pytest.raises(ColorPanelError, match="Allowed"):
        resolve_color_panel("pattern", "#fff")


def test_check_accepts_pending_upload_without_url():
    assert check_color_panel("image", None, has_file=True, required=True) == "image"
    assert check_color_panel(" IMAGE ", None, has_file=True) == "image"


def test_check_rejects_bad_values_before_any_upload():
    with pytest.raises(ColorPanelError, match="hex"):
        check_color_panel("hex", "#zzz", required=True)
    with pytest.raises(ColorPanelError, match="requires type 'image'"):
        check_color_panel("gradient", None, has_file=True, required=True)
