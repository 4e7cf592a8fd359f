from .connection import engine, AsyncSessionLocal, init_db, dispose_db, Base

from .models import UserDB, ClientDB, DocumentDB, MessageTemplateDB

__all__ = [
    'engine', 'AsyncSessionLocal', 'init_db', 'dispose_db', 'Base',
    'UserDB', 'ClientDB', 'DocumentDB', 'MessageTemplateDB',
]
