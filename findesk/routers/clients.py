"""Client master router.

Endpoints:
    GET    /api/clients/          List clients (active by default)
    GET    /api/clients/lookup    Autofill data for an exact client name
    POST   /api/clients/          Create client
    PATCH  /api/clients/{id}      Update client
    DELETE /api/clients/{id}      Soft-delete (deactivate) client
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from findesk.database import get_db
from findesk.deps import get_actor
from findesk.models.client_master import ClientMaster
from findesk.schemas.client_master import ClientCreate, ClientOut, ClientUpdate
from findesk.services.invoices import find_client
from findesk.utils.audit import diff_fields, log_change, log_field_changes

router = APIRouter()

AUDITED_FIELDS = tuple(ClientUpdate.model_fields)


async def _get_client(db: AsyncSession, client_id: str) -> ClientMaster:
    result = await db.execute(select(ClientMaster).where(ClientMaster.id == client_id))
    client = result.scalar_one_or_none()
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


@router.get("/", response_model=list[ClientOut])
async def list_clients(
    include_inactive: bool = False,
    search: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """List all clients (active by default)."""
    query = select(ClientMaster)
    if not include_inactive:
        query = query.where(ClientMaster.is_active == True)  # noqa: E712
    if search:
        q = f"%{search}%"
        query = query.where(
            or_(ClientMaster.client_name.ilike(q), ClientMaster.client_email.ilike(q))
        )
    query = query.order_by(ClientMaster.client_name)
    result = await db.execute(query)
    return [ClientOut.model_validate(c) for c in result.scalars().all()]


@router.get("/lookup", response_model=ClientOut)
async def lookup_client(
    client_name: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    """The active client whose name matches exactly, as used for invoice autofill."""
    client = await find_client(db, client_name)
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return ClientOut.model_validate(client)


@router.post("/", response_model=ClientOut, status_code=201)
async def create_client(
    body: ClientCreate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    """Create a new client."""
    # (name, email) must be unique
    existing = await db.execute(
        select(ClientMaster).where(
            ClientMaster.client_name == body.client_name,
            ClientMaster.client_email == body.client_email,
        )
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=400,
            detail=f"Client '{body.client_name}' with email {body.client_email} already exists",
        )

    client = ClientMaster(**body.model_dump(), created_by=actor, updated_by=actor)
    db.add(client)
    await db.flush()
    await log_change(
        db, actor,
        action="created",
        entity_type="client_master",
        entity_id=client.id,
        entity_code=client.client_name,
        details={"client_name": client.client_name},
    )
    return ClientOut.model_validate(client)


@router.patch("/{client_id}", response_model=ClientOut)
async def update_client(
    client_id: str,
    body: ClientUpdate,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    """Update a client."""
    client = await _get_client(db, client_id)
    before = {f: getattr(client, f) for f in AUDITED_FIELDS}

    updates = body.model_dump(exclude_unset=True)
    for key, value in updates.items():
        if value is None and key not in ("country", "phone", "payment_terms_days"):
            continue
        setattr(client, key, value)
    client.updated_by = actor
    await db.flush()

    changes = diff_fields(before, {f: getattr(client, f) for f in AUDITED_FIELDS}, AUDITED_FIELDS)
    await log_field_changes(
        db, actor,
        entity_type="client_master",
        entity_id=client.id,
        entity_code=client.client_name,
        changes=changes,
        details={"client_name": client.client_name},
    )
    return ClientOut.model_validate(client)


@router.delete("/{client_id}", response_model=ClientOut)
async def deactivate_client(
    client_id: str,
    db: AsyncSession = Depends(get_db),
    actor: str = Depends(get_actor),
):
    """Soft-delete (deactivate) a client."""
    client = await _get_client(db, client_id)

    client.is_active = False
    client.updated_by = actor
    await db.flush()
    await log_change(
        db, actor,
        action="deleted",
        entity_type="client_master",
        entity_id=client.id,
        entity_code=client.client_name,
        field_name="is_active",
        old_value=True,
        new_value=False,
        details={"client_name": client.client_name},
    )
    return ClientOut.model_validate(client)
