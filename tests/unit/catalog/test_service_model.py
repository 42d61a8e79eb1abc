import pytest
from decimal import Decimal

from src.core.service.catalog.models import Service, normalize_available
from src.core.service.tracking.models import RentalDuration


@pytest.mark.parametrize("raw", ["1", "true", "TRUE", " yes ", "on", 1, True])
def test_truthy_availability(raw):
    assert normalize_available(raw) is True


@pytest.mark.parametrize("raw", ["0", "false", "", "no", "off", "maybe", None, 0, False])
def test_falsy_availability(raw):
    assert normalize_available(raw) is False


def test_service_normalizes_text_availability():
    service = Service(
        name="Telegram",
        price=Decimal("1.00"),
        ltr_short_price=Decimal("1.20"),
        ltr_price=Decimal("4.00"),
        available="0"
    )
    assert service.available is False


def test_rental_price_follows_duration():
    service = Service(
        name="WhatsApp",
        price=Decimal("1.50"),
        ltr_short_price=Decimal("2.00"),
        ltr_price=Decimal("5.00"),
        available="1"
    )
    assert service.rental_price(RentalDuration.SHORT_TERM) == Decimal("2.00")
    assert service.rental_price(RentalDuration.LONG_TERM) == Decimal("5.00")
