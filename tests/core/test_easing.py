import pytest

from swaypath.core.easing import EASINGS, get_easing, linear


@pytest.mark.parametrize("name", sorted(EASINGS))
def test_easing_endpoints(name: str) -> None:
    f = get_easing(name)
    assert f(0.0) == pytest.approx(0.0)
    assert f(1.0) == pytest.approx(1.0)


def test_ease_in_out_is_symmetric() -> None:
    f = get_easing("easeInOut")
    assert f(0.5) == pytest.approx(0.5)
    assert f(0.25) == pytest.approx(1.0 - f(0.75))


def test_get_easing_defaults_and_rejects_unknown() -> None:
    assert get_easing(None) is linear
    with pytest.raises(ValueError):
        get_easing("bounce")
