"""
Unit Tests for the template compositor

Run with: pytest tests/test_compositor.py -v
"""

import pytest

from whatsapp_integration.compositor import TemplateCompositor, compose, find_unresolved_tokens, get_compositor
from whatsapp_integration.defaults import FALLBACK_TEMPLATE
from whatsapp_integration.models import (
    DocumentDirection,
    ResolvedVariables,
    TemplateSource,
)


@pytest.fixture
def compositor():
    return TemplateCompositor()


class TestCompose:
    """Placeholder substitution."""

    def test_replaces_known_keys(self, compositor):
        result = compositor.compose(
            "Oi {{contact_name}}, aqui é da {{company_name}}.",
            {"contact_name": "Maria", "company_name": "ABC Ltda"}
        )
        assert result == "Oi Maria, aqui é da ABC Ltda."

    def test_replaces_every_occurrence(self, compositor):
        assert compositor.compose("{{a}}-{{a}}-{{a}}", {"a": "x"}) == "x-x-x"

    def test_missing_key_stays_verbatim(self, compositor):
        result = compositor.compose("Olá {{contact_name}} {{missing_key}}", {"contact_name": "Ana"})
        assert result == "Olá Ana {{missing_key}}"

    def test_case_sensitive(self, compositor):
        assert compositor.compose("{{Contact_Name}}", {"contact_name": "Ana"}) == "{{Contact_Name}}"

    def test_inner_whitespace_is_not_a_token(self, compositor):
        assert compositor.compose("{{ contact_name }}", {"contact_name": "Ana"}) == "{{ contact_name }}"

    def test_values_are_not_rescanned(self, compositor):
        result = compositor.compose("{{a}}", {"a": "{{b}}", "b": "nope"})
        assert result == "{{b}}"

    def test_empty_template(self, compositor):
        assert compositor.compose("", {"a": "x"}) == ""

    def test_module_level_wrapper_uses_singleton(self):
        assert get_compositor() is get_compositor()
        assert compose("{{x}}!", {"x": "oi"}) == "oi!"


class TestScans:
    """Placeholder extraction and leftover detection."""

    def test_extract_placeholders_distinct_in_order(self, compositor):
        names = compositor.extract_placeholders(
            "{{company_name}} {{contact_name}} {{company_name}} {{ bad }}"
        )
        assert names == ["company_name", "contact_name"]

    def test_find_unresolved_tokens(self, compositor):
        text = "Olá Ana {{missing}} e {{ outro }} e {{missing}}"
        assert compositor.find_unresolved_tokens(text) == ["{{missing}}", "{{ outro }}"]

    def test_no_unresolved_tokens(self, compositor):
        assert compositor.find_unresolved_tokens("tudo certo") == []

    def test_module_level_scan(self):
        assert find_unresolved_tokens("{{a}} {{b}}") == ["{{a}}", "{{b}}"]


class TestSelectTemplate:
    """Template selection policy."""

    def test_explicit_template_wins(self, compositor, make_client, make_template):
        client = make_client(message_template_receive="override")
        templates = [
            make_template("t-default", "default", is_default=True),
            make_template("t-pick", "picked"),
        ]
        content, source, template_id = compositor.select_template(
            client, DocumentDirection.receive, templates, template_id="t-pick"
        )
        assert (content, source, template_id) == ("picked", TemplateSource.explicit, "t-pick")

    def test_explicit_template_of_another_client_is_ignored(self, compositor, make_client, make_template):
        client = make_client()
        templates = [
            make_template("foreign", "foreign text", client_id="client-2"),
            make_template("t-default", "default", is_default=True),
        ]
        content, source, _ = compositor.select_template(
            client, DocumentDirection.receive, templates, template_id="foreign"
        )
        assert content == "default"
        assert source == TemplateSource.system_default

    def test_client_field_override(self, compositor, make_client, make_template):
        client = make_client(message_template_send="Envio: {{documents_list}}")
        templates = [make_template("t", "default", DocumentDirection.send, is_default=True)]
        content, source, template_id = compositor.select_template(client, "send", templates)
        assert content == "Envio: {{documents_list}}"
        assert source == TemplateSource.client_override
        assert template_id is None

    def test_blank_override_is_ignored(self, compositor, make_client, make_template):
        client = make_client(message_template_receive="   ")
        templates = [make_template("t", "default", is_default=True)]
        _, source, _ = compositor.select_template(client, DocumentDirection.receive, templates)
        assert source == TemplateSource.system_default

    def test_client_attached_template(self, compositor, make_client, make_template):
        client = make_client()
        templates = [
            make_template("global", "default", is_default=True),
            make_template("attached", "só deste cliente", client_id="client-1"),
        ]
        content, source, template_id = compositor.select_template(
            client, DocumentDirection.receive, templates
        )
        assert (content, source, template_id) == ("só deste cliente", TemplateSource.client_override, "attached")

    def test_override_for_other_direction_does_not_apply(self, compositor, make_client, make_template):
        client = make_client(message_template_send="send override")
        templates = [make_template("t", "receive default", is_default=True)]
        content, source, _ = compositor.select_template(client, DocumentDirection.receive, templates)
        assert content == "receive default"
        assert source == TemplateSource.system_default

    def test_non_default_global_template_is_not_system_default(self, compositor, make_client, make_template):
        templates = [make_template("t", "just a global")]
        content, source, template_id = compositor.select_template(
            make_client(), DocumentDirection.receive, templates
        )
        assert (content, source, template_id) == (FALLBACK_TEMPLATE, TemplateSource.fallback, None)

    def test_fallback_without_templates(self, compositor, make_client):
        content, source, _ = compositor.select_template(make_client(), DocumentDirection.send, [])
        assert content == "Olá {{contact_name}}!\n\n{{documents_list}}"
        assert source == TemplateSource.fallback


class TestAssemble:
    """Placement of the optional blocks."""

    def test_all_blocks(self, compositor):
        resolved = ResolvedVariables(
            values={}, preamble="Bom dia!", drive_link_block="📁 Pasta no Drive: x", tutorial_block="Tutorial"
        )
        assert compositor.assemble("Corpo\n", resolved) == "Bom dia!\n\nCorpo\n\n📁 Pasta no Drive: x\n\nTutorial"

    def test_empty_blocks_are_skipped(self, compositor):
        resolved = ResolvedVariables(values={}, tutorial_block="Tutorial")
        assert compositor.assemble("Corpo", resolved) == "Corpo\n\nTutorial"
