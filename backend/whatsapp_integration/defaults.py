"""
Fixed texts used by the rendering engine: status glyphs, bucket labels,
the in-process fallback template and the system default templates that are
seeded into a fresh repository.
"""

from .models import DocumentDirection

RECEIVED_GLYPH = "✅"
PENDING_GLYPH = "❌"

NO_DOCUMENTS_TEXT = "Nenhum documento selecionado"

PENDING_BUCKET_LABEL = "📥 Documentos pendentes:"
TO_SEND_BUCKET_LABEL = "📤 Documentos para envio:"
RECEIVED_BUCKET_LABEL = "✅ Documentos recebidos:"

DRIVE_LINK_LABEL = "📁 Pasta no Drive:"

TUTORIAL_TEXT = (
    "Como enviar os documentos:\n"
    "1. Abra o link da pasta no Drive.\n"
    "2. Clique em \"Novo\" > \"Upload de arquivo\".\n"
    "3. Selecione os arquivos e aguarde o envio terminar.\n"
    "Se preferir, pode enviar os arquivos por aqui mesmo."
)

# Used when neither the client nor the system has a template for a direction
FALLBACK_TEMPLATE = "Olá {{contact_name}}!\n\n{{documents_list}}"

# Recognized placeholder names with operator-facing labels
AVAILABLE_VARIABLES = {
    "contact_name": "Nome do Contato",
    "company_name": "Nome da Empresa",
    "phone": "Telefone",
    "documents_list": "Lista de Documentos",
    "document_path": "Caminho do Documento",
}

DEFAULT_TEMPLATES = [
    {
        "name": "Template Padrão - Solicitar Documentos",
        "direction": DocumentDirection.receive,
        "content": (
            "Olá {{contact_name}}!\n\n"
            "Precisamos dos seguintes documentos da {{company_name}}:\n\n"
            "{{documents_list}}\n\n"
            "Por favor, envie os documentos pendentes o mais breve possível.\n\n"
            "Obrigado!"
        ),
    },
    {
        "name": "Template Padrão - Enviar Documentos",
        "direction": DocumentDirection.send,
        "content": (
            "Olá {{contact_name}}!\n\n"
            "Seguem os documentos da {{company_name}}:\n\n"
            "{{documents_list}}\n\n"
            "Todos os documentos estão organizados no Drive.\n\n"
            "Qualquer dúvida, estamos à disposição!"
        ),
    },
]
