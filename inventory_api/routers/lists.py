from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from .. import list_store
from ..barcode_resolver import resolve
from ..barcodes import BarcodeError
from ..catalogue import Catalogue
from ..deps import get_catalogue, get_session
from ..schemas import ItemUpdate, ItemUpdateOut, ListCreate, ListView

router = APIRouter(prefix="/api/lists", tags=["lists"])


@router.get("", response_model=dict[str, ListView])
async def list_lists(session: AsyncSession = Depends(get_session)) -> dict[str, ListView]:
    return await list_store.list_lists(session)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_list(payload: ListCreate, session: AsyncSession = Depends(get_session)) -> dict[str, str]:
    try:
        await list_store.create_list(session, payload.name)
    except list_store.ListExistsError:
        raise HTTPException(status_code=409, detail="List already exists")
    return {"message": "List created", "name": payload.name}


@router.delete("")
async def delete_all_lists(session: AsyncSession = Depends(get_session)) -> dict[str, str]:
    await list_store.delete_all(session)
    return {"message": "All lists deleted"}


@router.get("/{name}", response_model=ListView)
async def get_list(name: str, session: AsyncSession = Depends(get_session)) -> ListView:
    try:
        return await list_store.get_list(session, name)
    except list_store.ListNotFoundError:
        raise HTTPException(status_code=404, detail="List not found")


@router.delete("/{name}")
async def delete_list(name: str, session: AsyncSession = Depends(get_session)) -> dict[str, str]:
    try:
        await list_store.delete_list(session, name)
    except list_store.ListNotFoundError:
        raise HTTPException(status_code=404, detail="Not found")
    return {"message": "List deleted"}


@router.post("/{name}/items", response_model=ItemUpdateOut)
async def update_item(
    name: str,
    payload: ItemUpdate,
    session: AsyncSession = Depends(get_session),
    catalogue: Catalogue = Depends(get_catalogue),
) -> ItemUpdateOut:
    try:
        resolved = resolve(payload.item_code, catalogue.lookup)
    except BarcodeError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    try:
        item, removed = await list_store.apply_scan(
            session,
            name,
            resolved,
            payload.delta,
            brand=payload.brand,
            description=payload.description,
            price=payload.price,
        )
    except list_store.ListNotFoundError:
        raise HTTPException(status_code=404, detail="List not found")
    except ValueError as ve:
        await session.rollback()
        raise HTTPException(status_code=400, detail=str(ve))
    except Exception as exc:
        await session.rollback()
        raise HTTPException(status_code=500, detail="Error updating item") from exc
    return ItemUpdateOut(message="Item removed" if removed else "Item updated", item=item, removed=removed)


@router.delete("/{name}/items/{key}")
async def remove_item(name: str, key: str, session: AsyncSession = Depends(get_session)) -> dict[str, str]:
    try:
        await list_store.remove_item(session, name, key)
    except list_store.ListNotFoundError:
        raise HTTPException(status_code=404, detail="List not found")
    except list_store.ItemNotFoundError:
        raise HTTPException(status_code=404, detail="Item not found")
    return {"message": "Item removed"}
