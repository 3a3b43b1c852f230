"""Tests for the carousel CLI commands.

Settings point into tmp_path and the provider registry is replaced with
the conftest fakes, so no vendor is contacted.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from carousel_studio.cli import app
from carousel_studio.constants import GenerationStatus
from carousel_studio.errors import RateLimitedError
from carousel_studio.projects import Canvas, CanvasFormat, SlideMetadata

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_environment(monkeypatch: pytest.MonkeyPatch, settings, fake_registry):
    """Route the CLI to tmp_path settings and fake providers."""
    monkeypatch.setattr("carousel_studio.cli.commands.get_settings", lambda: settings)
    monkeypatch.setattr("carousel_studio.cli.commands.load_provider_config", lambda path: None)
    monkeypatch.setattr("carousel_studio.cli.commands.ProviderRegistry", lambda config: fake_registry)


class TestGenerateCommand:
    """Tests for `carousel generate`."""

    def test_success(self, service, settings, fake_registry):
        result = runner.invoke(app, ["generate", "5 tips for morning routines", "--slides", "5"])

        assert result.exit_code == 0, result.output
        records = service.list_generations(settings.user_id)
        assert len(records) == 1
        assert records[0].status is GenerationStatus.COMPLETED
        assert fake_registry.closed

    def test_provider_options_forwarded(self, fake_registry):
        result = runner.invoke(
            app, ["generate", "Coffee guide", "--text-ai", "lmstudio", "--skip-images"]
        )

        assert result.exit_code == 0, result.output
        assert fake_registry.text_requests == [("lmstudio", "carousel_text")]
        assert fake_registry.image_requests == []

    def test_enhance_prompt_flag(self, service, settings, mock_text_provider):
        mock_text_provider.enhance_prompt.return_value = "Coffee brewing guide for beginners"

        result = runner.invoke(app, ["generate", "Coffee guide", "--skip-images", "--enhance-prompt"])

        assert result.exit_code == 0, result.output
        mock_text_provider.enhance_prompt.assert_awaited_once_with("Coffee guide")
        assert service.list_generations(settings.user_id)[0].options["enhance_prompt"] is True

    def test_failed_generation_exits_1(self, service, settings, mock_text_provider):
        mock_text_provider.generate_text.side_effect = RateLimitedError("mock-text", "429")

        result = runner.invoke(app, ["generate", "5 tips for morning routines"])

        assert result.exit_code == 1
        assert service.list_generations(settings.user_id)[0].status is GenerationStatus.FAILED

    def test_slide_count_out_of_range(self):
        result = runner.invoke(app, ["generate", "Topic", "--slides", "11"])

        assert result.exit_code == 2

    def test_unknown_project(self):
        result = runner.invoke(app, ["generate", "Topic", "--project", "missing"])

        assert result.exit_code == 1


class TestRecordCommands:
    """Tests for status, list and delete."""

    def test_status(self, service, settings):
        record = service.create_generation(settings.user_id, {"type": "carousel", "prompt": "Tea rituals"})

        result = runner.invoke(app, ["status", record.id])

        assert result.exit_code == 0, result.output
        assert "Tea rituals" in result.output

    def test_status_unknown(self):
        assert runner.invoke(app, ["status", "missing"]).exit_code == 1

    def test_list(self, service, settings):
        service.create_generation(settings.user_id, {"type": "carousel", "prompt": "Tea rituals"})

        result = runner.invoke(app, ["list", "--status", "pending", "--limit", "10"])

        assert result.exit_code == 0, result.output

    def test_delete_with_yes(self, service, settings):
        record = service.create_generation(settings.user_id, {"type": "carousel", "prompt": "Tea rituals"})

        result = runner.invoke(app, ["delete", record.id, "--yes"])

        assert result.exit_code == 0, result.output
        assert f"Deleted generation {record.id}" in result.output
        assert service.list_generations(settings.user_id) == []

    def test_delete_declined(self, service, settings):
        record = service.create_generation(settings.user_id, {"type": "carousel", "prompt": "Tea rituals"})

        result = runner.invoke(app, ["delete", record.id], input="n\n")

        assert result.exit_code == 0
        assert service.get_generation(settings.user_id, record.id)


class TestExportCommand:
    """Tests for `carousel export`."""

    @pytest.fixture
    def project_id(self, project_store, settings, clock) -> str:
        project = project_store.create_project(settings.user_id, "Morning routines")
        now = clock()
        canvases = [
            Canvas(
                id=f"canvas-{n}",
                project_id=project.id,
                slide_number=n,
                slide_metadata=SlideMetadata(slide_number=n, title=f"Step {n}", content="Drink water"),
                format=CanvasFormat(width=100, height=100, aspect_ratio="1:1"),
                created_at=now,
            )
            for n in range(1, 4)
        ]
        project_store.add_slides(settings.user_id, project.id, canvases, [])
        return project.id

    def test_grid(self, project_id: str, tmp_path: Path):
        output = tmp_path / "out"

        result = runner.invoke(app, ["export", project_id, "--type", "grid", "--output", str(output)])

        assert result.exit_code == 0, result.output
        files = list(output.glob("export_*/carousel_grid_2x2_*.png"))
        assert len(files) == 1

    def test_sequence_needs_animation_format(self, project_id: str):
        result = runner.invoke(app, ["export", project_id, "--type", "sequence", "--format", "png"])

        assert result.exit_code == 1

    def test_unknown_project(self):
        assert runner.invoke(app, ["export", "missing"]).exit_code == 1
