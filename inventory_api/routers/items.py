from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..barcode_resolver import resolve
from ..barcodes import BarcodeError
from ..catalogue import Catalogue
from ..deps import get_catalogue, get_session
from ..list_store import ListNotFoundError, find_item
from ..schemas import ResolveOut

router = APIRouter(prefix="/api/items", tags=["items"])


@router.get("")
async def list_items(catalogue: Catalogue = Depends(get_catalogue)) -> dict[str, dict]:
    return catalogue.as_dict()


@router.get("/resolve", response_model=ResolveOut)
async def resolve_item(
    code: str = Query(min_length=1, max_length=64),
    list_name: str | None = Query(default=None, alias="list", max_length=128),
    catalogue: Catalogue = Depends(get_catalogue),
    session: AsyncSession = Depends(get_session),
) -> ResolveOut:
    try:
        resolved = resolve(code, catalogue.lookup)
    except BarcodeError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    out = ResolveOut(
        code=resolved.code,
        found=resolved.found,
        scale=resolved.scale,
        locked=resolved.found,
        price=float(resolved.price) if resolved.price is not None else None,
        candidate_codes=list(resolved.candidate_codes),
    )
    if resolved.entry is not None:
        out.brand = resolved.entry.brand
        out.description = resolved.entry.description
        out.subdept = resolved.entry.subdept
        return out

    # Unknown to the catalogue: reuse what was typed for this code before
    if list_name and not resolved.scale:
        try:
            prior = await find_item(session, list_name, resolved.code)
        except ListNotFoundError:
            raise HTTPException(status_code=404, detail="List not found")
        if prior is not None:
            out.brand = prior.brand
            out.description = prior.description
            out.price = prior.price
    return out
