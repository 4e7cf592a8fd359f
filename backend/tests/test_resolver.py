"""
Unit Tests for the variable resolver

Covers the documents_list layouts (single direction and grouped buckets),
document_path, and the optional preamble / drive link / tutorial blocks.

Run with: pytest tests/test_resolver.py -v
"""

import re

import pytest

from whatsapp_integration.defaults import NO_DOCUMENTS_TEXT, TUTORIAL_TEXT
from whatsapp_integration.models import (
    DocumentDirection,
    RenderContext,
    RenderingMode,
    RenderWarning,
)
from whatsapp_integration.resolver import (
    format_documents_list,
    format_grouped_documents_list,
    resolve_variables,
)


class TestSingleDirectionList:
    """documents_list in single-direction-list mode."""

    def test_receive_lines_carry_status_glyphs(self, make_document):
        documents = [
            make_document("1", name="RG", received=True),
            make_document("2", name="CPF", drive_path="Drive > Pessoais"),
        ]
        text = format_documents_list(documents, DocumentDirection.receive)
        assert text == "1. RG ✅\n2. CPF (Drive > Pessoais) ❌"

    def test_send_lines_have_no_glyph(self, make_document):
        documents = [
            make_document("1", DocumentDirection.send, name="Guia DAS"),
            make_document("2", DocumentDirection.send, name="Balancete", received=True),
        ]
        text = format_documents_list(documents, DocumentDirection.send)
        assert text == "1. Guia DAS\n2. Balancete"

    def test_line_count_and_ordinals(self, make_document):
        documents = [make_document(str(i)) for i in range(12)]
        lines = format_documents_list(documents, DocumentDirection.receive).split("\n")
        assert len(lines) == 12
        for index, line in enumerate(lines, start=1):
            assert line.startswith(f"{index}. ")

    def test_empty_drive_path_adds_no_suffix(self, make_document):
        text = format_documents_list(
            [make_document("1", DocumentDirection.send, name="Contrato", drive_path="")],
            DocumentDirection.send
        )
        assert text == "1. Contrato"

    def test_empty_selection_placeholder(self):
        text = format_documents_list([], DocumentDirection.receive)
        assert text == NO_DOCUMENTS_TEXT
        assert text
        assert "{{" not in text


class TestGroupedBuckets:
    """documents_list in grouped-bucket mode."""

    def test_buckets_in_fixed_order_with_restarting_numbers(self, make_document):
        documents = [
            make_document("a", DocumentDirection.receive, name="Recebido", received=True),
            make_document("b", DocumentDirection.send, name="Guia"),
            make_document("c", DocumentDirection.receive, name="Extrato"),
            make_document("d", DocumentDirection.receive, name="Notas"),
        ]
        text = format_grouped_documents_list(documents)
        assert text == (
            "📥 Documentos pendentes:\n"
            "1. Extrato ❌\n"
            "2. Notas ❌\n"
            "\n"
            "📤 Documentos para envio:\n"
            "1. Guia\n"
            "\n"
            "✅ Documentos recebidos:\n"
            "1. Recebido ✅"
        )

    def test_empty_buckets_are_left_out(self, make_document):
        text = format_grouped_documents_list([make_document("b", DocumentDirection.send, name="Guia")])
        assert text == "📤 Documentos para envio:\n1. Guia"

    def test_all_empty_uses_placeholder(self):
        assert format_grouped_documents_list([]) == NO_DOCUMENTS_TEXT


class TestResolveVariables:
    """The full mapping plus extra blocks."""

    def test_mapping_has_exactly_the_recognized_keys(self, make_client, make_document):
        client = make_client()
        resolved = resolve_variables(client, RenderContext(), [make_document("1")])
        assert set(resolved.values) == {
            "contact_name", "company_name", "phone", "documents_list", "document_path"
        }
        assert resolved.values["contact_name"] == "Maria"
        assert resolved.values["company_name"] == "ABC Ltda"
        assert resolved.values["phone"] == "(11) 99999-9999"

    def test_document_path_is_first_selected_path(self, make_client, make_document):
        documents = [
            make_document("1", drive_path="Drive > A"),
            make_document("2", drive_path="Drive > B"),
        ]
        resolved = resolve_variables(make_client(), RenderContext(), documents)
        assert resolved.values["document_path"] == "Drive > A"

    def test_document_path_empty_without_documents(self, make_client):
        resolved = resolve_variables(make_client(), RenderContext(), [])
        assert resolved.values["document_path"] == ""
        assert RenderWarning.no_documents_selected in resolved.warnings

    def test_grouped_mode_uses_bucket_layout(self, make_client, make_document):
        context = RenderContext(mode=RenderingMode.grouped_bucket)
        resolved = resolve_variables(
            make_client(), context, [make_document("1", DocumentDirection.send, name="Guia")]
        )
        assert resolved.values["documents_list"].startswith("📤 Documentos para envio:")

    def test_drive_link_block(self, make_client):
        client = make_client(drive_link=" https://drive.google.com/drive/folders/abc123 ")
        resolved = resolve_variables(client, RenderContext(include_drive_link=True), [])
        assert resolved.drive_link_block == "📁 Pasta no Drive: https://drive.google.com/drive/folders/abc123"
        assert RenderWarning.drive_link_missing not in resolved.warnings

    def test_drive_link_requested_but_missing_is_skipped(self, make_client):
        resolved = resolve_variables(make_client(), RenderContext(include_drive_link=True), [])
        assert resolved.drive_link_block == ""
        assert RenderWarning.drive_link_missing in resolved.warnings

    def test_drive_link_not_requested(self, make_client):
        client = make_client(drive_link="https://drive.google.com/x")
        resolved = resolve_variables(client, RenderContext(), [])
        assert resolved.drive_link_block == ""

    def test_preamble_is_stripped_and_tutorial_added(self, make_client):
        context = RenderContext(preamble="  Bom dia!  \n", include_tutorial=True)
        resolved = resolve_variables(make_client(), context, [])
        assert resolved.preamble == "Bom dia!"
        assert resolved.tutorial_block == TUTORIAL_TEXT

    def test_values_contain_no_tokens(self, make_client):
        resolved = resolve_variables(make_client(), RenderContext(), [])
        for value in resolved.values.values():
            assert not re.search(r"\{\{[A-Za-z0-9_]+\}\}", value)
