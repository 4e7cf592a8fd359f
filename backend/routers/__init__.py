from .auth import router as auth_router
from .clients import router as clients_router
from .documents import router as documents_router, client_documents_router
from .templates import router as templates_router
from .messages import router as messages_router
from .drive import router as drive_router

__all__ = [
    'auth_router',
    'clients_router',
    'documents_router',
    'client_documents_router',
    'templates_router',
    'messages_router',
    'drive_router',
]
