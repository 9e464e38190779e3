from __future__ import annotations

import asyncio
from typing import Any

import pytest

from formflow import FormController, StepNavigator, create_form_schema, validators
from formflow.processing.normalization import slugify
from formflow.settings import Settings

PLAN_FEATURES = {"basic": ["inventory"], "pro": ["inventory", "reports", "pos"]}

COMPANY_SCHEMA = create_form_schema(
    {
        "name": {
            "type": "text",
            "label": "Company name",
            "required": True,
            "trim": True,
            "validators": [validators.min_length(2), validators.max_length(100)],
        },
        "slug": {
            "type": "text",
            "label": "Slug",
            "required": True,
            "validators": [
                validators.pattern(r"[a-z0-9]+(?:-[a-z0-9]+)*", "Use lowercase letters, digits and dashes."),
            ],
        },
        "email": {"type": "email", "label": "Contact email", "required": True, "validators": [validators.email]},
        "address.street": {"type": "text", "label": "Street", "required": True},
        "address.city": {"type": "text", "label": "City", "required": True},
        "settings.taxId": {
            "type": "text",
            "label": "Tax ID",
            "required": True,
            "validators": [validators.pattern(r"\d{7,8}-[\dkK]", "Invalid tax id.")],
        },
        "settings.currency": {
            "type": "select",
            "label": "Currency",
            "required": True,
            "options": [{"value": "CLP", "label": "Chilean peso"}, {"value": "USD", "label": "US dollar"}],
            "default_value": "CLP",
        },
        "subscription.planId": {
            "type": "select",
            "label": "Plan",
            "required": True,
            "options": [{"value": "basic", "label": "Basic"}, {"value": "pro", "label": "Pro"}],
        },
        "features": {
            "type": "multiselect",
            "label": "Features",
            "options": [
                {"value": "inventory", "label": "Inventory"},
                {"value": "reports", "label": "Reports"},
                {"value": "pos", "label": "Point of sale"},
            ],
        },
        "branding.primaryColor": {
            "type": "text",
            "label": "Primary color",
            "default_value": "#3B82F6",
            "validators": [validators.pattern(r"#[0-9a-fA-F]{6}", "Use a hex color.")],
        },
        "logo": {
            "type": "file",
            "label": "Logo",
            "accept": "image/*",
            "validators": [validators.file_type(["image/*"]), validators.file_size(2)],
        },
    },
)

COMPANY_STEPS = [
    {
        "id": "basic-info",
        "title": "Basic information",
        "fields": ["name", "slug", "email", "address.street", "address.city"],
    },
    {"id": "business", "title": "Business settings", "fields": ["settings.taxId", "settings.currency"]},
    {"id": "plan", "title": "Plan and features", "fields": ["subscription.planId", "features"]},
    {"id": "branding", "title": "Branding", "fields": ["branding.primaryColor", "logo"]},
]


class _CompanyApi:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.created: list[dict[str, Any]] = []

    async def create_company(self, values: dict[str, Any]) -> None:
        await asyncio.sleep(0)
        if self.fail:
            raise ConnectionError("API unavailable")
        self.created.append(values)


def _wizard(api: _CompanyApi) -> StepNavigator:
    controller = FormController(COMPANY_SCHEMA, api.create_company, settings=Settings())
    controller.add_derivation("slug", ["name"], lambda values: slugify(values["name"]))
    controller.add_derivation(
        "features",
        ["subscription.planId"],
        lambda values: list(PLAN_FEATURES.get(values["subscription.planId"], [])),
    )
    return StepNavigator(controller, COMPANY_STEPS)


def _fill_basic_info(wizard: StepNavigator) -> None:
    form = wizard.controller
    form.set_value("name", "  Comercial Los Andes  ")
    form.set_value("email", "Contacto@LosAndes.cl")
    form.set_value("address.street", "Av. Providencia 1234")
    form.set_value("address.city", "Santiago")


def test_company_wizard_happy_path() -> None:
    api = _CompanyApi()
    wizard = _wizard(api)

    assert wizard.next_step() is False
    assert wizard.controller.fields["name"].visible_errors == ("This field is required.",)

    _fill_basic_info(wizard)
    assert wizard.controller.values["slug"] == "comercial-los-andes"
    assert wizard.next_step() is True

    wizard.controller.set_value("settings.taxId", "12345678-K")
    assert wizard.next_step() is True

    wizard.controller.set_value("subscription.planId", "pro")
    assert wizard.controller.values["features"] == ["inventory", "reports", "pos"]
    assert wizard.next_step() is True
    assert wizard.is_last_step

    assert asyncio.run(wizard.advance()) is True
    assert len(api.created) == 1
    created = api.created[0]
    assert created["name"] == "Comercial Los Andes"
    assert created["email"] == "contacto@losandes.cl"
    assert created["settings.currency"] == "CLP"
    assert created["branding.primaryColor"] == "#3B82F6"
    assert created["logo"] is None
    assert wizard.controller.is_submitting is False


def test_company_wizard_manual_slug_is_kept() -> None:
    wizard = _wizard(_CompanyApi())

    wizard.controller.set_value("name", "Acme")
    wizard.controller.set_value("slug", "Acme Custom")
    wizard.controller.set_value("name", "Acme Renamed")

    assert wizard.controller.values["slug"] == "Acme Custom"
    assert wizard.controller.fields["slug"].errors == ("Use lowercase letters, digits and dashes.",)


def test_company_wizard_jump_stops_on_first_invalid_step() -> None:
    wizard = _wizard(_CompanyApi())
    _fill_basic_info(wizard)

    assert wizard.go_to_step(4) is False
    assert wizard.current_step == 2
    assert wizard.controller.fields["settings.taxId"].visible_errors == ("This field is required.",)
    assert not wizard.controller.fields["subscription.planId"].touched


def test_company_wizard_api_failure_propagates_and_allows_retry() -> None:
    api = _CompanyApi(fail=True)
    wizard = _wizard(api)
    _fill_basic_info(wizard)
    wizard.controller.set_value("settings.taxId", "1234567-8")
    wizard.controller.set_value("subscription.planId", "basic")
    assert wizard.go_to_step(4) is True

    with pytest.raises(ConnectionError, match="API unavailable"):
        asyncio.run(wizard.advance())
    assert wizard.controller.is_submitting is False
    assert wizard.controller.values["name"] == "  Comercial Los Andes  "

    api.fail = False
    assert asyncio.run(wizard.advance()) is True
    assert api.created[0]["features"] == ["inventory"]
    assert wizard.controller.submit_count == 2


def test_company_wizard_double_submit_calls_api_once() -> None:
    api = _CompanyApi()
    wizard = _wizard(api)
    _fill_basic_info(wizard)
    wizard.controller.set_value("settings.taxId", "1234567-8")
    wizard.controller.set_value("subscription.planId", "basic")
    wizard.go_to_step(4)

    async def _double_click() -> list[bool]:
        return list(await asyncio.gather(wizard.advance(), wizard.advance()))

    assert asyncio.run(_double_click()) == [True, False]
    assert len(api.created) == 1
