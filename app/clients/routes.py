import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import desc, or_
from sqlalchemy.orm import Session, joinedload

from app.auth.dependencies import get_current_lawyer
from app.clients.schemas import ClientCreate, ClientName, ClientResponse, ClientUpdate
from app.database import get_db
from app.models import Case, CaseClientLink, Client, Lawyer
from app.utils import paginate, validate_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/clients", tags=["Clients"])


def serialize_client(client: Client) -> dict:
    cases = [link.case for link in client.case_links if link.case is not None]
    return {
        "id": client.id,
        "nom": client.nom,
        "cin": client.cin,
        "telephone_1": client.telephone_1,
        "telephone_2": client.telephone_2,
        "adresse_1": client.adresse_1,
        "adresse_2": client.adresse_2,
        "avocat_id": client.avocat_id,
        "created_at": client.created_at,
        "total_affairs": len(cases),
        "affaires": [
            {
                "id": case.id,
                "case_number": case.case_number,
                "category": case.category,
                "type": case.type,
                "statut": case.statut.value,
            }
            for case in cases
        ],
    }


def get_owned_client(db: Session, client_id: str, lawyer: Lawyer) -> Client:
    validate_id(client_id, "client ID")
    client = (
        db.query(Client)
        .options(joinedload(Client.case_links).joinedload(CaseClientLink.case))
        .filter(Client.id == client_id, Client.avocat_id == lawyer.id)
        .first()
    )
    if not client:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found or not authorized")
    return client


def ensure_unique_cin(db: Session, cin: Optional[str], exclude_id: Optional[str] = None) -> None:
    if not cin:
        return
    query = db.query(Client).filter(Client.cin == cin)
    if exclude_id:
        query = query.filter(Client.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A client with this CIN already exists")


def owned_case_ids(db: Session, case_ids: List[str], lawyer: Lawyer) -> List[str]:
    unique_ids = list(dict.fromkeys(validate_id(case_id, "affaire ID") for case_id in case_ids))
    found = {
        case_id for (case_id,) in db.query(Case.id).filter(Case.id.in_(unique_ids), Case.avocat_id == lawyer.id).all()
    }
    missing = [case_id for case_id in unique_ids if case_id not in found]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Affaire not found or not authorized: {', '.join(missing)}"
        )
    return unique_ids


@router.get("/")
async def list_clients(
    search: Optional[str] = None,
    page: Optional[int] = Query(None, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    """List the caller's clients with their linked cases.

    Returns a plain list, or the ``{data, total, page, pages}`` envelope
    when ``page`` is given.
    """
    query = (
        db.query(Client)
        .options(joinedload(Client.case_links).joinedload(CaseClientLink.case))
        .filter(Client.avocat_id == current_lawyer.id)
    )
    if search:
        query = query.filter(or_(
            Client.nom.ilike(f"%{search}%"),
            Client.cin.ilike(f"%{search}%"),
            Client.telephone_1.ilike(f"%{search}%"),
        ))
    query = query.order_by(desc(Client.created_at))

    if page is not None:
        return paginate(query, page, limit, serialize_client)
    return [serialize_client(client) for client in query.all()]


@router.get("/search", response_model=List[ClientName])
async def search_clients(
    query: Optional[str] = None,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    if not query:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Query parameter is required")
    clients = (
        db.query(Client)
        .filter(Client.avocat_id == current_lawyer.id, Client.nom.ilike(f"%{query}%"))
        .order_by(Client.nom)
        .limit(5)
        .all()
    )
    return [{"id": client.id, "nom": client.nom} for client in clients]


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    return serialize_client(get_owned_client(db, client_id, current_lawyer))


@router.post("/", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    client_data: ClientCreate,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    ensure_unique_cin(db, client_data.cin)
    case_ids = owned_case_ids(db, client_data.affaires or [], current_lawyer)

    client = Client(avocat_id=current_lawyer.id, **client_data.model_dump(exclude={"affaires"}))
    db.add(client)
    db.flush()
    for case_id in case_ids:
        db.add(CaseClientLink(affaire_id=case_id, client_id=client.id))
    db.commit()
    logger.info(f"Client {client.id} created for avocat {current_lawyer.id}")

    return serialize_client(get_owned_client(db, client.id, current_lawyer))


@router.put("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: str,
    client_update: ClientUpdate,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    """Partially update a client; a provided ``affaires`` list replaces its case links."""
    client = get_owned_client(db, client_id, current_lawyer)

    update_data = client_update.model_dump(exclude_unset=True)
    case_ids = update_data.pop("affaires", None)
    if "cin" in update_data:
        ensure_unique_cin(db, update_data["cin"], exclude_id=client.id)

    for field, value in update_data.items():
        if value is None and field in ("nom", "telephone_1", "adresse_1"):
            continue
        setattr(client, field, value)

    if case_ids is not None:
        wanted = owned_case_ids(db, case_ids, current_lawyer)
        current = {link.affaire_id: link for link in client.case_links}
        for affaire_id, link in current.items():
            if affaire_id not in wanted:
                client.case_links.remove(link)
        for affaire_id in wanted:
            if affaire_id not in current:
                client.case_links.append(CaseClientLink(affaire_id=affaire_id))

    db.commit()
    db.expire_all()
    logger.info(f"Client {client.id} updated")
    return serialize_client(get_owned_client(db, client.id, current_lawyer))


@router.delete("/{client_id}")
async def delete_client(
    client_id: str,
    current_lawyer: Lawyer = Depends(get_current_lawyer),
    db: Session = Depends(get_db)
):
    """Delete a client and its case links. The cases themselves are kept."""
    client = get_owned_client(db, client_id, current_lawyer)
    db.delete(client)
    db.commit()
    logger.info(f"Client {client_id} deleted")
    return {"message": "Client deleted successfully"}
