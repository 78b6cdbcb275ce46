import datetime as dt
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CatalogueEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str = Field(pattern=r"^\d{13}$")
    brand: str = ""
    description: str = ""
    price: Decimal = Field(ge=0, decimal_places=2)
    subdept: str = ""


class ScaleLabel(BaseModel):
    """Decoded variable-weight label: PLU, sticker price and catalogue keys to try."""

    model_config = ConfigDict(frozen=True)

    plu: str
    price: Decimal
    candidate_codes: tuple[str, str]


class ResolvedItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    entry: Optional[CatalogueEntry] = None
    override_price: Optional[Decimal] = None
    candidate_codes: tuple[str, ...] = ()

    @property
    def found(self) -> bool:
        return self.entry is not None

    @property
    def scale(self) -> bool:
        return self.override_price is not None

    @property
    def price(self) -> Decimal | None:
        if self.override_price is not None:
            return self.override_price
        return self.entry.price if self.entry is not None else None


# ===== HTTP bodies =====
class ListCreate(BaseModel):
    name: str = Field(min_length=1, max_length=128)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Missing list name")
        return value


class ItemUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    item_code: str = Field(alias="itemCode", min_length=1)
    brand: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0)
    delta: float

    @field_validator("price", mode="before")
    @classmethod
    def _blank_price(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ListItemView(BaseModel):
    key: str
    code: str
    brand: str
    description: str
    price: float
    qty: float
    total: float


class ListView(BaseModel):
    name: str
    created: dt.datetime | None = None
    items: dict[str, ListItemView] = Field(default_factory=dict)
    grand_total: float = 0.0


class ItemUpdateOut(BaseModel):
    message: str
    item: ListItemView
    removed: bool = False


class ResolveOut(BaseModel):
    code: str
    found: bool
    scale: bool
    locked: bool
    brand: str = ""
    description: str = ""
    price: float | None = None
    subdept: str = ""
    candidate_codes: list[str] = Field(default_factory=list)
