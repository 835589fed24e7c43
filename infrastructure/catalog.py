"""In-memory catalog of bookable units and chargeable items"""
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from domain.enums import UnitCategory
from domain.exceptions import NotFoundError
from domain.money import DEFAULT_CURRENCY, Money
from domain.value_objects import BookableUnit


class CatalogItem(BaseModel):
    """Priced item that can be added to a bill"""
    item_id: str
    name: str
    price: Money

    model_config = ConfigDict(frozen=True)


DEFAULT_UNITS = [
    # (unit_id, name, category, rate in major units, capacity)
    ("deluxe-suite", "Deluxe Suite", UnitCategory.ROOM, 7999, 2),
    ("executive-room", "Executive Room", UnitCategory.ROOM, 4999, 2),
    ("standard-room", "Standard Room", UnitCategory.ROOM, 2999, 2),
    ("grand-ballroom", "Grand Ballroom", UnitCategory.BANQUET, 49999, 200),
    ("crystal-hall", "Crystal Hall", UnitCategory.BANQUET, 29999, 100),
    ("le-jardin", "Le Jardin Restaurant", UnitCategory.RESTAURANT, 2499, 8),
]

DEFAULT_BOOKING_EXTRAS = [
    ("extra-pillows", "Extra Pillows", 150),
    ("extra-bedding", "Extra Bedding Set", 300),
    ("extra-towels", "Extra Towels", 100),
    ("bathrobe", "Bathrobe", 250),
    ("breakfast-for-2", "Breakfast for 2", 800),
    ("airport-transport", "Airport Transport", 1200),
]

DEFAULT_IN_STAY_ITEMS = [
    ("bedsheets", "Bed Sheets", 200),
    ("blanket", "Extra Blanket", 250),
    ("pillow", "Pillow", 150),
    ("towel", "Towel Set", 100),
    ("utensils", "Utensils Set", 180),
    ("extraguest", "Extra Guest", 800),
]


class InMemoryCatalog:
    """Bookable units plus the booking-extras and in-stay menus.

    Constructed explicitly and injected; tests build their own instances.
    """

    def __init__(
        self,
        units: List[BookableUnit],
        booking_extras: List[CatalogItem],
        in_stay_items: List[CatalogItem],
    ):
        self._units: Dict[str, BookableUnit] = {u.unit_id: u for u in units}
        self._extras: Dict[str, CatalogItem] = {i.item_id: i for i in booking_extras}
        self._in_stay: Dict[str, CatalogItem] = {i.item_id: i for i in in_stay_items}

    @classmethod
    def default(cls, currency: str = DEFAULT_CURRENCY) -> "InMemoryCatalog":
        units = [
            BookableUnit(
                unit_id=unit_id,
                name=name,
                category=category,
                rate=Money.from_major(rate, currency),
                capacity=capacity,
            )
            for unit_id, name, category, rate, capacity in DEFAULT_UNITS
        ]
        extras = [
            CatalogItem(item_id=item_id, name=name, price=Money.from_major(price, currency))
            for item_id, name, price in DEFAULT_BOOKING_EXTRAS
        ]
        in_stay = [
            CatalogItem(item_id=item_id, name=name, price=Money.from_major(price, currency))
            for item_id, name, price in DEFAULT_IN_STAY_ITEMS
        ]
        return cls(units, extras, in_stay)

    def list_units(self, category: Optional[UnitCategory] = None) -> List[BookableUnit]:
        return [u for u in self._units.values() if category is None or u.category == category]

    def get_unit(self, unit_id: str) -> BookableUnit:
        unit = self._units.get(unit_id)
        if unit is None:
            raise NotFoundError(f"Unit {unit_id} not found")
        return unit

    def list_booking_extras(self) -> List[CatalogItem]:
        return list(self._extras.values())

    def get_booking_extra(self, item_id: str) -> CatalogItem:
        item = self._extras.get(item_id)
        if item is None:
            raise NotFoundError(f"Booking extra {item_id} not found")
        return item

    def list_in_stay_items(self) -> List[CatalogItem]:
        return list(self._in_stay.values())

    def get_in_stay_item(self, item_id: str) -> CatalogItem:
        item = self._in_stay.get(item_id)
        if item is None:
            raise NotFoundError(f"In-stay item {item_id} not found")
        return item
