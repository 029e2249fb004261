"""Jinja2 template renderer for warning emails.

Resolves templates with a two-tier loader:
1. User-specified ``templates_path`` (overrides)
2. Built-in templates shipped with the package

Bodies are plain text, so autoescaping is off; undefined variables
raise instead of rendering as empty strings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from jinja2 import (
    BaseLoader,
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    PackageLoader,
    StrictUndefined,
)

if TYPE_CHECKING:
    from certnag.core.types import NotificationType


class TemplateRenderer:
    """Renders notification email subjects and bodies from Jinja2 templates."""

    def __init__(self, templates_path: str | None = None) -> None:
        loaders: list[BaseLoader] = []
        if templates_path:
            loaders.append(FileSystemLoader(templates_path))
        loaders.append(PackageLoader("certnag.notifications", "templates"))

        self._env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=False,  # noqa: S701
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )

    def render(
        self,
        notification_type: NotificationType,
        context: dict[str, Any],
    ) -> tuple[str, str]:
        """Render subject and body for a notification type.

        Parameters
        ----------
        notification_type:
            Selects ``<type>_subject.txt`` and ``<type>_body.txt``.
        context:
            Template variables.

        Returns
        -------
        tuple[str, str]
            ``(subject, body)``

        """
        type_name = notification_type.value
        subject_tpl = self._env.get_template(f"{type_name}_subject.txt")
        body_tpl = self._env.get_template(f"{type_name}_body.txt")

        subject = " ".join(subject_tpl.render(**context).split())
        body = body_tpl.render(**context)

        return subject, body
