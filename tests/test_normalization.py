from __future__ import annotations

import math

import pytest

from pynspanel.parsing.actions import action_code
from pynspanel.parsing.colors import hmi_pos_to_color
from pynspanel.parsing.normalize import parse_timestamp, safe_float, to_boolean, to_number
from pynspanel.updater.acquisition import lexical_greater, semver_greater, strip_tasmota_build
from pynspanel.updater.sources import parse_berry_driver_source, parse_nlui_source, parse_tasmota_release


@pytest.mark.parametrize(
    ("action", "expected"),
    [("single", 1), ("DOUBLE", 2), ("Triple", 3), ("quad", 4), ("PENTA", 5), ("hold", None), ("", None), (None, None)],
)
def test_action_code(action: str | None, expected: int | None) -> None:
    assert action_code(action) == expected


def test_to_number_keeps_integers_integral() -> None:
    assert to_number("3") == 3
    assert isinstance(to_number("3"), int)
    assert to_number("12.5") == 12.5
    assert to_number(" 7 ") == 7


@pytest.mark.parametrize(
    "raw",
    [None, "", "  ", "abc", "NaN", "inf", "-inf", "Infinity", "1_000", "1_0.5", True, float("nan")],
)
def test_to_number_rejects_non_finite_and_non_numeric(raw: object) -> None:
    assert to_number(raw) is None


def test_safe_float() -> None:
    assert safe_float("21") == 21.0
    assert safe_float("x") is None


def test_to_boolean() -> None:
    assert to_boolean("1") is True
    assert to_boolean("ON") is True
    assert to_boolean("0") is False
    assert to_boolean("") is False
    assert to_boolean(None) is False


def test_parse_timestamp() -> None:
    parsed = parse_timestamp("2023-10-16T15:15:05")
    assert parsed is not None
    assert (parsed.year, parsed.month, parsed.day, parsed.second) == (2023, 10, 16, 5)
    assert parse_timestamp("not a date") is None
    assert parse_timestamp(None) is None


# ------------------------------------------------------------------
# Colour wheel
# ------------------------------------------------------------------


def test_color_wheel_centre_is_white() -> None:
    rgb, hsv = hmi_pos_to_color(80, 80)
    assert rgb == (255, 255, 255)
    assert hsv[1] == 0.0


def test_color_wheel_right_edge_is_red() -> None:
    rgb, hsv = hmi_pos_to_color(160, 80)
    assert rgb == (255, 0, 0)
    assert hsv == (0.0, 1.0, 1.0)


def test_color_wheel_top_edge_is_hue_90() -> None:
    rgb, hsv = hmi_pos_to_color(80, 0)
    assert math.isclose(hsv[0], 90.0)
    assert hsv[1] == 1.0
    # hue 90 is a yellow-green
    assert rgb[1] == 255
    assert rgb[2] == 0


def test_color_wheel_outside_radius_is_unsaturated() -> None:
    rgb, hsv = hmi_pos_to_color(160, 0)
    assert hsv[1] == 0.0
    assert rgb == (255, 255, 255)


# ------------------------------------------------------------------
# Version sources
# ------------------------------------------------------------------


def test_tasmota_release_tag_prefix_is_stripped() -> None:
    info = parse_tasmota_release({"tag_name": "v13.2.0", "name": "Tasmota v13.2.0 Quinn"})
    assert info is not None
    assert info.version == "13.2.0"


def test_tasmota_release_without_prefix() -> None:
    info = parse_tasmota_release({"tag_name": "13.2.0"})
    assert info is not None
    assert info.version == "13.2.0"


def test_tasmota_release_without_tag() -> None:
    assert parse_tasmota_release({"message": "API rate limit exceeded"}) is None
    assert parse_tasmota_release([]) is None


def test_berry_driver_source() -> None:
    source = 'class LoveLaceUIDriver\n  var version_of_this_script = 9\n  def init()\n'
    info = parse_berry_driver_source(source)
    assert info is not None
    assert info.version == "9"
    assert parse_berry_driver_source("no version here") is None


def test_nlui_source() -> None:
    source = (
        "class NsPanelLovelaceUIManager:\n"
        "    desired_display_firmware_version = 53\n"
        '    version = "v4.3.3"\n'
    )
    info = parse_nlui_source(source)
    assert info is not None
    assert info.internal_version == "53"
    assert info.version == "4.3.3"
    assert parse_nlui_source("desired_display_firmware_version = 53") is None


# ------------------------------------------------------------------
# Version comparison
# ------------------------------------------------------------------


@pytest.mark.parametrize(
    ("latest", "current", "expected"),
    [
        ("13.2.0", "13.1.0", True),
        ("13.10.0", "13.9.1", True),
        ("13.1.0", "13.1.0", False),
        ("13.1", "13.1.0", False),
        ("13.1.1", "13.1", True),
        ("12.5.0", "13.1.0", False),
        ("garbage", "13.1.0", False),
        (None, "13.1.0", False),
    ],
)
def test_semver_greater(latest: str | None, current: str | None, expected: bool) -> None:
    assert semver_greater(latest, current) is expected


def test_lexical_greater() -> None:
    assert lexical_greater("54", "53") is True
    assert lexical_greater("53", "53") is False
    assert lexical_greater(None, "53") is False
    # lexicographic, not numeric
    assert lexical_greater("9", "10") is True


def test_strip_tasmota_build() -> None:
    assert strip_tasmota_build("13.1.0(tasmota32)") == "13.1.0"
    assert strip_tasmota_build("13.1.0") == "13.1.0"
    assert strip_tasmota_build("(odd)") == "(odd)"
