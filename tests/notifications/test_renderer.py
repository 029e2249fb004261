"""Tests for certnag.notifications.renderer.TemplateRenderer."""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import patch

import pytest
from jinja2 import TemplateNotFound, UndefinedError

from certnag.core.types import NotificationType
from certnag.notifications.renderer import TemplateRenderer


def _context(**overrides):
    ctx = {
        "serial": "000000000000000000000000000000abcdef",
        "common_name": "example.com",
        "dns_names": "example.com, www.example.com",
        "expiration_date": datetime(2024, 5, 4, tzinfo=UTC),
        "days_to_expiration": 3,
    }
    ctx.update(overrides)
    return ctx


# ---------------------------------------------------------------------------
# Init
# ---------------------------------------------------------------------------


class TestTemplateRendererInit:
    @patch("certnag.notifications.renderer.PackageLoader")
    @patch("certnag.notifications.renderer.ChoiceLoader")
    @patch("certnag.notifications.renderer.Environment")
    def test_init_without_custom_templates(
        self,
        mock_env_cls,
        mock_choice_loader,
        mock_pkg_loader,
    ):
        """Without templates_path, only PackageLoader is used."""
        TemplateRenderer(templates_path=None)

        loaders = mock_choice_loader.call_args[0][0]
        assert len(loaders) == 1
        mock_pkg_loader.assert_called_once_with("certnag.notifications", "templates")

    @patch("certnag.notifications.renderer.FileSystemLoader")
    @patch("certnag.notifications.renderer.PackageLoader")
    @patch("certnag.notifications.renderer.ChoiceLoader")
    @patch("certnag.notifications.renderer.Environment")
    def test_init_with_custom_templates(
        self,
        mock_env_cls,
        mock_choice_loader,
        mock_pkg_loader,
        mock_fs_loader,
    ):
        """Custom path is consulted before the bundled templates."""
        TemplateRenderer(templates_path="/etc/certnag/templates")

        loaders = mock_choice_loader.call_args[0][0]
        assert loaders == [mock_fs_loader.return_value, mock_pkg_loader.return_value]
        mock_fs_loader.assert_called_once_with("/etc/certnag/templates")


# ---------------------------------------------------------------------------
# Render
# ---------------------------------------------------------------------------


class TestRender:
    def test_bundled_templates(self):
        subject, body = TemplateRenderer().render(NotificationType.EXPIRATION_WARNING, _context())

        assert subject == "Certificate for example.com expires in 3 days"
        assert "common name example.com" in body
        assert "www.example.com" in body
        assert "expire in 3 days" in body

    def test_subject_falls_back_to_dns_names(self):
        subject, _ = TemplateRenderer().render(
            NotificationType.EXPIRATION_WARNING,
            _context(common_name=""),
        )
        assert subject == "Certificate for example.com, www.example.com expires in 3 days"

    def test_override_from_templates_path(self, tmp_path):
        (tmp_path / "expiration_warning_subject.txt").write_text(
            "Renew\n  {{ common_name }}\n", encoding="utf-8"
        )
        renderer = TemplateRenderer(templates_path=str(tmp_path))

        subject, body = renderer.render(NotificationType.EXPIRATION_WARNING, _context())

        assert subject == "Renew example.com"
        # Body not overridden: bundled template is used.
        assert "make sure you" in body

    def test_missing_variable_raises(self, tmp_path):
        (tmp_path / "expiration_warning_body.txt").write_text("{{ nonexistent }}", encoding="utf-8")
        renderer = TemplateRenderer(templates_path=str(tmp_path))

        with pytest.raises(UndefinedError):
            renderer.render(NotificationType.EXPIRATION_WARNING, _context())

    def test_missing_template_raises(self, tmp_path):
        renderer = TemplateRenderer(templates_path=str(tmp_path))
        with patch.object(renderer._env, "get_template", side_effect=TemplateNotFound("x")):
            with pytest.raises(TemplateNotFound):
                renderer.render(NotificationType.EXPIRATION_WARNING, _context())

    def test_body_not_html_escaped(self):
        _, body = TemplateRenderer().render(
            NotificationType.EXPIRATION_WARNING,
            _context(common_name="<a&b>"),
        )
        assert "<a&b>" in body
