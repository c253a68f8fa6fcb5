import pytest

from hyderaqi.lib.aqi import AQI_CATEGORIES, category_color, category_rank, category_rgb, classify


@pytest.mark.parametrize(
    "aqi,label",
    [
        (0, "Good"),
        (50, "Good"),
        (51, "Moderate"),
        (100, "Moderate"),
        (101, "Unhealthy for Sensitive Groups"),
        (150, "Unhealthy for Sensitive Groups"),
        (151, "Unhealthy"),
        (200, "Unhealthy"),
        (201, "Very Unhealthy"),
        (300, "Very Unhealthy"),
        (301, "Hazardous"),
        (999, "Hazardous"),
    ],
)
def test_classify_boundaries(aqi, label):
    assert classify(aqi) == label


def test_classify_is_monotonic():
    ranks = [category_rank(classify(aqi)) for aqi in range(0, 600)]
    assert ranks == sorted(ranks)
    assert set(ranks) == set(range(len(AQI_CATEGORIES)))


def test_classify_rejects_negative():
    with pytest.raises(ValueError):
        classify(-1)


def test_colors_follow_bands():
    assert category_color(50) == "#22c55e"
    assert category_color(188) == "#ef4444"
    assert category_rgb(50) == [0x22, 0xC5, 0x5E]
