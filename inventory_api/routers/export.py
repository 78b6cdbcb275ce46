import csv
import io
import re
from collections.abc import Iterable
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from .. import list_store
from ..deps import get_session

router = APIRouter(prefix="/api", tags=["export"])


def _content_disposition(filename: str) -> str:
    # latin-1 headers: ASCII fallback plus the RFC 5987 UTF-8 form
    fallback = re.sub(r"[^A-Za-z0-9._ -]", "_", filename)
    encoded = quote(filename, safe="")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"


def _csv_response(rows: Iterable[list], filename: str) -> Response:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerows(rows)
    return Response(
        content=buf.getvalue(),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": _content_disposition(filename)},
    )


def _money(value: float) -> str:
    return f"{value:.2f}"


@router.get("/export/{name}")
async def export_list_csv(name: str, session: AsyncSession = Depends(get_session)) -> Response:
    """Export one list with line totals and a grand total row."""
    try:
        inv = await list_store.get_list(session, name)
    except list_store.ListNotFoundError:
        raise HTTPException(status_code=404, detail="List not found")
    rows: list[list] = [["Item Code", "Brand", "Description", "Price", "Quantity", "Total"]]
    for it in inv.items.values():
        rows.append([it.code, it.brand, it.description, _money(it.price), f"{it.qty:g}", _money(it.total)])
    rows.append(["", "", "", "", "Grand Total", _money(inv.grand_total)])
    return _csv_response(rows, f"{name}.csv")


@router.get("/exportall")
async def export_all_csv(session: AsyncSession = Depends(get_session)) -> Response:
    lists = await list_store.list_lists(session)
    rows: list[list] = [["List", "Item Code", "Brand", "Description", "Price", "Quantity", "Total"]]
    for list_name, inv in lists.items():
        for it in inv.items.values():
            rows.append(
                [list_name, it.code, it.brand, it.description, _money(it.price), f"{it.qty:g}", _money(it.total)]
            )
    return _csv_response(rows, "all_lists.csv")
