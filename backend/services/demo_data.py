"""
Demo data for DEMO_MODE.

Seeds a demo operator, two clients and a handful of documents so the API can
be explored without any setup. Runs once per repository: if the demo
operator already owns clients nothing is added.
"""

import uuid
import logging
from datetime import datetime, timezone, timedelta
from typing import Dict, Any

from services.auth import seed_demo_user
from services.repository import Repository
from whatsapp_integration.models import Client, Document, DocumentDirection

logger = logging.getLogger(__name__)


DEMO_CLIENTS = [
    {
        "company_name": "Empresa ABC Ltda",
        "contact_name": "João Silva",
        "phone": "(11) 99999-9999",
        "drive_link": "https://drive.google.com/drive/folders/abc123",
        "documents": [
            ("Extrato bancário - março", DocumentDirection.receive, "Drive > Clientes > ABC > Extratos", True, False),
            ("Notas fiscais de entrada", DocumentDirection.receive, None, True, True),
            ("Guia DAS", DocumentDirection.send, "Drive > Clientes > ABC > Impostos", False, False),
        ],
    },
    {
        "company_name": "Comércio XYZ ME",
        "contact_name": "Maria Santos",
        "phone": "(11) 88888-8888",
        "drive_link": "https://drive.google.com/drive/folders/xyz456",
        "documents": [
            ("Folha de pagamento", DocumentDirection.receive, None, True, False),
            ("Balancete mensal", DocumentDirection.send, None, False, False),
        ],
    },
]


async def seed_demo_data(repo: Repository) -> Dict[str, Any]:
    """Create the demo operator and their clients. Returns seeding counts."""
    user = await seed_demo_user(repo)

    if await repo.list_clients(user.id):
        return {"user_id": user.id, "clients": 0, "documents": 0}

    base = datetime.now(timezone.utc)
    clients_created = 0
    documents_created = 0

    for offset, data in enumerate(DEMO_CLIENTS):
        created_at = base + timedelta(seconds=offset)
        client = await repo.create_client(Client(
            id=str(uuid.uuid4()),
            user_id=user.id,
            company_name=data["company_name"],
            contact_name=data["contact_name"],
            phone=data["phone"],
            drive_link=data["drive_link"],
            created_at=created_at,
            updated_at=created_at,
        ))
        clients_created += 1

        for position, (name, direction, drive_path, required, received) in enumerate(data["documents"]):
            doc_time = created_at + timedelta(milliseconds=position)
            await repo.create_document(Document(
                id=str(uuid.uuid4()),
                client_id=client.id,
                name=name,
                direction=direction,
                drive_path=drive_path,
                required=required,
                received=received,
                created_at=doc_time,
                updated_at=doc_time,
            ))
            documents_created += 1

    logger.info(f"Demo data seeded: {clients_created} clients, {documents_created} documents")
    return {"user_id": user.id, "clients": clients_created, "documents": documents_created}
