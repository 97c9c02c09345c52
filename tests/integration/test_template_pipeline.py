"""
End-to-End Template Pipeline Tests
==================================

Compile, resolve and render complete templates against registered providers.
"""

import pytest

from templater import ArgumentTypingError, ProviderRegistry, compile_template
from templater.core.errors import UnknownViewError

from tests.utils.data_generators import TemplateDataGenerator
from tests.utils.mocks import FailingProvider, RecordingProvider


@pytest.fixture
def incident_registry(registry: ProviderRegistry) -> ProviderRegistry:
    """Providers backing the incident report template."""
    registry.register("Al", RecordingProvider(lambda arguments, index: {"world": f"Al [{arguments['d']}]"}))

    @registry.provider("IncidentById", argument_model={"id": "string", "name": "string"})
    async def incident_by_id(batch):
        return [
            {
                "tag": f"tag-{arguments['id']}",
                "name": f"incident {arguments['id']}",
                "description": f"{arguments['id']} opened by {arguments['name']}",
            }
            for arguments in batch
        ]

    registry.register(
        "Potate",
        RecordingProvider(lambda arguments, index: {"work": f"{arguments['a']} & {arguments['b']}"}),
        {"a": "string", "b": "string"},
    )
    return registry


OVERRIDES = {"user_name": "Ada", "user_incident_id": "SD42"}


@pytest.mark.integration
class TestIncidentReport:
    """Test the three-level incident report template."""

    @pytest.mark.asyncio
    async def test_resolve(self, incident_registry):
        compiled = compile_template(TemplateDataGenerator.generate_incident_report(), incident_registry)

        values = await compiled.resolve(OVERRIDES)

        assert values["s"] == "Al [hello]"
        assert values["incident_name"] == "incident SD42"
        assert values["tag"] == "tag-SD42"
        assert values["incident_description"] == "SD000000 opened by Ada"
        assert values["work"] == "incident SD42 & SD000000 opened by Ada"
        assert values["message"] == "hello 234234"

    @pytest.mark.asyncio
    async def test_render_all_views(self, incident_registry):
        compiled = compile_template(TemplateDataGenerator.generate_incident_report(), incident_registry)

        rendered = await compiled.render(OVERRIDES)

        assert compiled.view_names == ["mail", "summary"]
        assert rendered["mail"] == "\n".join(
            [
                "<Mail>",
                "  <H1>Ada</H1>",
                "  <H1>incident SD42</H1>",
                "  <H1>SD000000 opened by Ada</H1>",
                "  <H1>hello 234234</H1>",
                "</Mail>",
            ]
        )
        assert rendered["summary"] == "incident SD42 & SD000000 opened by Ada for Ada"

    @pytest.mark.asyncio
    async def test_render_single_view(self, incident_registry):
        compiled = compile_template(TemplateDataGenerator.generate_incident_report(), incident_registry)
        rendered = await compiled.render(OVERRIDES, views="summary")
        assert list(rendered) == ["summary"]

    @pytest.mark.asyncio
    async def test_unknown_view(self, incident_registry):
        compiled = compile_template(TemplateDataGenerator.generate_incident_report(), incident_registry)
        with pytest.raises(UnknownViewError):
            await compiled.render(OVERRIDES, views=["pdf"])

    @pytest.mark.asyncio
    async def test_missing_overrides_fail_typing(self, incident_registry):
        compiled = compile_template(TemplateDataGenerator.generate_incident_report(), incident_registry)
        with pytest.raises(ArgumentTypingError) as exc_info:
            await compiled.resolve()
        assert exc_info.value.provider == "IncidentById"

    @pytest.mark.asyncio
    async def test_run_reports_outcomes(self, incident_registry):
        compiled = compile_template(TemplateDataGenerator.generate_incident_report(), incident_registry)

        result = await compiled.run(OVERRIDES)

        assert result.levels_executed == 4
        assert result.skipped_services == ["arguments"]
        assert result.failed_services == []

    @pytest.mark.asyncio
    async def test_compiled_template_is_reusable(self, incident_registry):
        compiled = compile_template(TemplateDataGenerator.generate_incident_report(), incident_registry)

        first = await compiled.resolve(OVERRIDES)
        second = await compiled.resolve({"user_name": "Grace", "user_incident_id": "SD7"})

        assert first["incident_name"] == "incident SD42"
        assert second["incident_name"] == "incident SD7"
        assert second["incident_description"] == "SD000000 opened by Grace"

    @pytest.mark.asyncio
    async def test_root_failure_renders_placeholders(self, incident_registry):
        incident_registry.register("Al", FailingProvider())
        compiled = compile_template(TemplateDataGenerator.generate_incident_report(), incident_registry)

        result = await compiled.run(OVERRIDES)
        rendered = await compiled.render(OVERRIDES, views="summary")

        assert result.failed_services == ["uno"]
        assert result.skipped_services == ["arguments"]
        assert result.levels_executed == 1
        assert rendered["summary"] == " for Ada"


@pytest.mark.integration
class TestGreeter:
    """Test the smallest useful template."""

    @pytest.mark.asyncio
    async def test_greeter(self, registry, greeter):
        registry.register("Greeter", greeter)
        compiled = compile_template(TemplateDataGenerator.generate_greeter(), registry)

        rendered = await compiled.render()

        assert rendered == {"default": "<h1>Al [world 0]</h1>"}

    @pytest.mark.asyncio
    async def test_snapshot_isolates_later_registrations(self, registry, greeter):
        registry.register("Greeter", greeter)
        compiled = compile_template(TemplateDataGenerator.generate_greeter(), registry.snapshot())

        registry.register("Greeter", FailingProvider())

        assert await compiled.resolve() == {"s": "Al [world 0]"}
