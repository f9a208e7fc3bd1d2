"""ETA heuristic tests."""

import pytest

from delivery_hub.services.eta import Coordinates, estimate_minutes, haversine_km

RESTAURANT = Coordinates(-12.05, -77.04)
# ~5.56 km due south: ceil(5.56 * 4) = 23 travel minutes.
CUSTOMER = Coordinates(-12.10, -77.04)


def test_haversine_one_tenth_degree_latitude() -> None:
    assert haversine_km(0, 0, 0.1, 0) == pytest.approx(11.12, abs=0.01)


def test_confirmed_order_adds_prep_travel_and_buffer() -> None:
    assert estimate_minutes(RESTAURANT, CUSTOMER, "confirmed") == 43


@pytest.mark.parametrize(
    ("status", "expected"),
    [("pending", 28), ("preparing", 38), ("ready", 28), ("picked_up", 26)],
)
def test_estimate_per_status(status: str, expected: int) -> None:
    assert estimate_minutes(RESTAURANT, CUSTOMER, status) == expected


def test_estimates_are_clamped() -> None:
    far_away = Coordinates(-13.05, -77.04)
    assert estimate_minutes(RESTAURANT, far_away, "confirmed") == 60
    assert estimate_minutes(RESTAURANT, RESTAURANT, "picked_up") == 5


def test_missing_coordinates_fall_back_to_default() -> None:
    assert estimate_minutes(None, CUSTOMER, "confirmed") == 35
    assert estimate_minutes(RESTAURANT, None, "picked_up") == 35


@pytest.mark.parametrize("status", ["delivered", "cancelled"])
def test_terminal_orders_have_no_eta(status: str) -> None:
    assert estimate_minutes(RESTAURANT, CUSTOMER, status) is None
