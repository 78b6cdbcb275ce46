import datetime as dt
import logging
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .barcode_resolver import storage_key
from .schemas import ListItemView, ListView, ResolvedItem

LOGGER = logging.getLogger("inventory-api")

_CENTS = Decimal("0.01")
_ZERO_QTY = 1e-9


class ListStoreError(Exception):
    """Base error for inventory list operations."""


class ListNotFoundError(ListStoreError, LookupError):
    pass


class ItemNotFoundError(ListStoreError, LookupError):
    pass


class ListExistsError(ListStoreError):
    pass


async def _ensure_list_tables(session: AsyncSession) -> None:
    await session.execute(
        text(
            """
            CREATE TABLE IF NOT EXISTS inventory_list (
              name VARCHAR(128) PRIMARY KEY,
              line_seq INTEGER NOT NULL DEFAULT 0,
              created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
            """
        )
    )
    await session.execute(
        text(
            """
            CREATE TABLE IF NOT EXISTS list_item (
              list_name VARCHAR(128) NOT NULL REFERENCES inventory_list(name),
              item_key VARCHAR(64) NOT NULL,
              code VARCHAR(13) NOT NULL,
              brand TEXT NOT NULL DEFAULT '',
              description TEXT NOT NULL DEFAULT '',
              price NUMERIC(12,2) NOT NULL DEFAULT 0,
              qty NUMERIC(18,3) NOT NULL DEFAULT 0,
              created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
              PRIMARY KEY (list_name, item_key)
            )
            """
        )
    )


def _price(value: Any) -> Decimal:
    return Decimal(str(value if value is not None else 0)).quantize(_CENTS)


def _item_view(m: Any) -> ListItemView:
    price = _price(m["price"])
    qty = float(m["qty"])
    return ListItemView(
        key=m["item_key"],
        code=m["code"],
        brand=m["brand"],
        description=m["description"],
        price=float(price),
        qty=qty,
        total=round(qty * float(price), 2),
    )


def _list_view(header: Any, items: list[ListItemView]) -> ListView:
    created = header["created_at"]
    if isinstance(created, str):
        # SQLite hands timestamps back as text
        created = dt.datetime.fromisoformat(created)
    return ListView(
        name=header["name"],
        created=created,
        items={it.key: it for it in items},
        grand_total=round(sum(it.total for it in items), 2),
    )


async def _list_header(session: AsyncSession, name: str) -> Any:
    rs = await session.execute(
        text("SELECT name, line_seq, created_at FROM inventory_list WHERE name=:n"), {"n": name}
    )
    header = rs.mappings().first()
    if header is None:
        raise ListNotFoundError(name)
    return header


async def _fetch_line(session: AsyncSession, name: str, key: str) -> Any:
    rs = await session.execute(
        text(
            """
            SELECT item_key, code, brand, description, price, qty
              FROM list_item WHERE list_name=:n AND item_key=:k
            """
        ),
        {"n": name, "k": key},
    )
    return rs.mappings().first()


async def _next_token(session: AsyncSession, name: str) -> int:
    await session.execute(
        text("UPDATE inventory_list SET line_seq = line_seq + 1 WHERE name=:n"), {"n": name}
    )
    rs = await session.execute(text("SELECT line_seq FROM inventory_list WHERE name=:n"), {"n": name})
    return int(rs.scalar_one())


def _line_details(
    resolved: ResolvedItem,
    existing: Any,
    brand: Optional[str],
    description: Optional[str],
    price: Optional[Decimal],
) -> tuple[str, str, Decimal]:
    entry = resolved.entry
    if entry is not None:
        # master data wins over whatever the user typed
        line_brand, line_desc, line_price = entry.brand, entry.description, entry.price
    else:
        line_brand = brand if brand is not None else (existing["brand"] if existing else "")
        line_desc = description if description is not None else (existing["description"] if existing else "")
        if price is not None:
            line_price = price
        else:
            line_price = _price(existing["price"]) if existing else Decimal("0")
    if resolved.override_price is not None:
        line_price = resolved.override_price
    return line_brand, line_desc, _price(line_price)


async def create_list(session: AsyncSession, name: str) -> None:
    await _ensure_list_tables(session)
    rs = await session.execute(text("SELECT 1 FROM inventory_list WHERE name=:n"), {"n": name})
    if rs.first() is not None:
        raise ListExistsError(name)
    try:
        await session.execute(text("INSERT INTO inventory_list(name) VALUES (:n)"), {"n": name})
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise ListExistsError(name) from exc
    LOGGER.info("Created list %s", name)


async def list_lists(session: AsyncSession) -> dict[str, ListView]:
    await _ensure_list_tables(session)
    headers = (
        await session.execute(text("SELECT name, created_at FROM inventory_list ORDER BY created_at, name"))
    ).mappings().all()
    rows = (
        await session.execute(
            text(
                """
                SELECT list_name, item_key, code, brand, description, price, qty
                  FROM list_item ORDER BY created_at, item_key
                """
            )
        )
    ).mappings().all()
    grouped: dict[str, list[ListItemView]] = {}
    for r in rows:
        grouped.setdefault(r["list_name"], []).append(_item_view(r))
    return {h["name"]: _list_view(h, grouped.get(h["name"], [])) for h in headers}


async def get_list(session: AsyncSession, name: str) -> ListView:
    await _ensure_list_tables(session)
    header = await _list_header(session, name)
    rows = (
        await session.execute(
            text(
                """
                SELECT item_key, code, brand, description, price, qty
                  FROM list_item WHERE list_name=:n ORDER BY created_at, item_key
                """
            ),
            {"n": name},
        )
    ).mappings().all()
    return _list_view(header, [_item_view(r) for r in rows])


async def find_item(session: AsyncSession, name: str, code: str) -> ListItemView | None:
    """Line previously stored under a plain code, used to prefill unknown items."""
    await _ensure_list_tables(session)
    await _list_header(session, name)
    row = await _fetch_line(session, name, code)
    return _item_view(row) if row is not None else None


async def apply_scan(
    session: AsyncSession,
    name: str,
    resolved: ResolvedItem,
    delta: float,
    brand: Optional[str] = None,
    description: Optional[str] = None,
    price: Optional[Decimal] = None,
) -> tuple[ListItemView, bool]:
    """Add ``delta`` to the line of a resolved scan.

    Returns the line and whether it was removed because its quantity hit zero.
    """
    if not delta:
        raise ValueError("delta must be non-zero")
    await _ensure_list_tables(session)
    await _list_header(session, name)

    if resolved.scale:
        if delta <= 0:
            raise ValueError("Scale label lines only accept positive quantities")
        key = storage_key(resolved, await _next_token(session, name))
        existing = None
    else:
        key = storage_key(resolved)
        existing = await _fetch_line(session, name, key)

    line_brand, line_desc, line_price = _line_details(resolved, existing, brand, description, price)
    await session.execute(
        text(
            """
            INSERT INTO list_item(list_name, item_key, code, brand, description, price, qty)
            VALUES (:n, :k, :c, :b, :d, :p, :q)
            ON CONFLICT (list_name, item_key) DO UPDATE
               SET brand = excluded.brand,
                   description = excluded.description,
                   price = excluded.price,
                   qty = list_item.qty + excluded.qty
            """
        ),
        {
            "n": name,
            "k": key,
            "c": resolved.code,
            "b": line_brand,
            "d": line_desc,
            "p": float(line_price),
            "q": float(delta),
        },
    )
    line = await _fetch_line(session, name, key)
    view = _item_view(line)
    removed = abs(view.qty) < _ZERO_QTY
    if removed:
        await session.execute(
            text("DELETE FROM list_item WHERE list_name=:n AND item_key=:k"), {"n": name, "k": key}
        )
    await session.commit()
    return view, removed


async def remove_item(session: AsyncSession, name: str, key: str) -> None:
    await _ensure_list_tables(session)
    await _list_header(session, name)
    rs = await session.execute(
        text("DELETE FROM list_item WHERE list_name=:n AND item_key=:k"), {"n": name, "k": key}
    )
    if rs.rowcount == 0:
        await session.rollback()
        raise ItemNotFoundError(key)
    await session.commit()


async def delete_list(session: AsyncSession, name: str) -> None:
    await _ensure_list_tables(session)
    await _list_header(session, name)
    await session.execute(text("DELETE FROM list_item WHERE list_name=:n"), {"n": name})
    await session.execute(text("DELETE FROM inventory_list WHERE name=:n"), {"n": name})
    await session.commit()
    LOGGER.info("Deleted list %s", name)


async def delete_all(session: AsyncSession) -> None:
    await _ensure_list_tables(session)
    await session.execute(text("DELETE FROM list_item"))
    await session.execute(text("DELETE FROM inventory_list"))
    await session.commit()
    LOGGER.info("Deleted all lists")
